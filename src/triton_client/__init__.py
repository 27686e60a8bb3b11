"""
Triton API client for Python

Main entry point for the package
"""

from triton_client.client import (
    ACCEPT_VERSION,
    USER_AGENT,
    HardenedAdapter,
    RequestContext,
    TransportSettings,
    TritonClient,
    build_http_client,
    build_transport,
    create_client,
    format_date_header,
)
from triton_client.exceptions import (
    TritonError,
    TritonErrorCategory,
    ConfigError,
    ValidationError,
    InvalidEndpointError,
    MissingAccountNameError,
    MissingKeyIdError,
    SignerInitError,
    SigningError,
    RequestConstructionError,
    TransportError,
    ClientError,
    ErrorBodyDecodeError,
)

# Authentication
from triton_client.authentication import (
    Signer,
    PrivateKeySigner,
    SSHAgentSigner,
    fingerprint_md5,
)

# Configuration
from triton_client.config import (
    TritonConfig,
    ConfigLoader,
    ConfigValidator,
    ENV_VAR_MAPPING,
    ConfigDefaults,
)

__version__ = "0.1.0"

__all__ = [
    # Client
    "TritonClient",
    "RequestContext",
    "create_client",
    "format_date_header",
    "ACCEPT_VERSION",
    "USER_AGENT",
    # Transport
    "HardenedAdapter",
    "TransportSettings",
    "build_http_client",
    "build_transport",
    # Exceptions
    "TritonError",
    "TritonErrorCategory",
    "ConfigError",
    "ValidationError",
    "InvalidEndpointError",
    "MissingAccountNameError",
    "MissingKeyIdError",
    "SignerInitError",
    "SigningError",
    "RequestConstructionError",
    "TransportError",
    "ClientError",
    "ErrorBodyDecodeError",
    # Authentication
    "Signer",
    "PrivateKeySigner",
    "SSHAgentSigner",
    "fingerprint_md5",
    # Configuration
    "TritonConfig",
    "ConfigLoader",
    "ConfigValidator",
    "ENV_VAR_MAPPING",
    "ConfigDefaults",
]
