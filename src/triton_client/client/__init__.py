"""
HTTP Client module for the Triton client
"""

from triton_client.client.context import RequestContext
from triton_client.client.http_client import (
    ACCEPT_VERSION,
    USER_AGENT,
    QueryParams,
    TritonClient,
    create_client,
    format_date_header,
)
from triton_client.client.transport import (
    HardenedAdapter,
    TransportSettings,
    build_http_client,
    build_transport,
)

__all__ = [
    "TritonClient",
    "RequestContext",
    "create_client",
    "format_date_header",
    "QueryParams",
    "ACCEPT_VERSION",
    "USER_AGENT",
    "HardenedAdapter",
    "TransportSettings",
    "build_http_client",
    "build_transport",
]
