"""
HTTP client for the Triton API
Builds signed, versioned requests, sends them over the hardened transport
and turns failed responses into ClientError
"""

import json
import logging
import re
from datetime import datetime, timezone
from email.utils import format_datetime
from typing import (
    Any,
    BinaryIO,
    Callable,
    Dict,
    List,
    Mapping,
    Optional,
    Sequence,
    Tuple,
    Union,
)
from urllib.parse import SplitResult, urlencode, urlsplit, urlunsplit

import requests
from pydantic import BaseModel
from urllib3.exceptions import HTTPError as Urllib3HTTPError
from urllib3.response import BaseHTTPResponse

from triton_client.authentication import PrivateKeySigner, Signer, SSHAgentSigner
from triton_client.client.context import RequestContext, bind_context
from triton_client.client.transport import (
    DEFAULT_TRANSPORT_SETTINGS,
    TransportSettings,
    build_http_client,
    build_transport,
    mount_transport,
)
from triton_client.config.client_config import TritonConfig
from triton_client.exceptions import (
    ClientError,
    ErrorBodyDecodeError,
    InvalidEndpointError,
    MissingAccountNameError,
    MissingKeyIdError,
    RequestConstructionError,
    SignerInitError,
    SigningError,
    TransportError,
)
from triton_client.models import ErrorBody


# Logger for this module
logger = logging.getLogger(__name__)

ACCEPT_VERSION = "8"
USER_AGENT = "triton-client Python API"
JSON_MEDIA_TYPE = "application/json"

# RFC 7230 token characters
_METHOD_PATTERN = re.compile(r"^[!#$%&'*+\-.^_`|~0-9A-Za-z]+$")

# Headers that should be redacted in logs
SENSITIVE_HEADERS = ("authorization",)

QueryParams = Union[
    Mapping[str, Union[str, Sequence[str]]],
    Sequence[Tuple[str, str]],
]

SignerFactory = Callable[[str, str], Signer]


def format_date_header(moment: Optional[datetime] = None) -> str:
    """Format a moment (default: now) as an RFC 1123 date in UTC"""
    # IMF-fixdate ("... GMT"); the signature covers this exact string
    moment = moment or datetime.now(timezone.utc)
    return format_datetime(moment.astimezone(timezone.utc), usegmt=True)


def encode_query(query: QueryParams) -> str:
    """URL-encode query parameters, sorted by key"""
    pairs = query.items() if isinstance(query, Mapping) else query
    return urlencode(sorted(pairs, key=lambda pair: pair[0]), doseq=True)


def encode_body(body: Any) -> Optional[bytes]:
    """
    Serialize a request body to indented JSON

    Raises:
        RequestConstructionError: If the value is not JSON serializable
    """
    if body is None:
        return None

    if isinstance(body, BaseModel):
        body = body.model_dump(mode="json", by_alias=True)

    try:
        return json.dumps(body, indent=4).encode("utf-8")
    except (TypeError, ValueError) as e:
        raise RequestConstructionError(
            f"Error encoding request body: {e}", cause=e
        ) from e


def redact_headers(headers: Mapping[str, str]) -> Dict[str, str]:
    """Copy headers with sensitive values replaced"""
    return {
        key: "[REDACTED]" if key.lower() in SENSITIVE_HEADERS else value
        for key, value in headers.items()
    }


class TritonClient:
    """
    Client for the Triton API

    Every request carries a ``date`` header and an ``Authorization`` header
    produced by the first configured signer from that same date. Requests
    go through a transport that disables keep-alive and never follows
    redirects.

    Example:
        >>> signer = PrivateKeySigner(key_id, "~/.ssh/id_rsa", "alice")
        >>> client = TritonClient("https://us-east-1.api.joyent.com", "alice", signer)
        >>> ctx = RequestContext.with_timeout(30)
        >>> with client.execute_request(ctx, "GET", "/alice/machines") as body:
        ...     machines = json.load(body)
    """

    def __init__(
        self,
        endpoint: str,
        account_name: str,
        *signers: Optional[Signer],
        key_id: Optional[str] = None,
        agent_signer_factory: SignerFactory = SSHAgentSigner,
        transport_settings: TransportSettings = DEFAULT_TRANSPORT_SETTINGS,
    ) -> None:
        """
        Create a new client

        At least one signer must be available. When none is given the
        client falls back to an SSH agent signer for ``key_id``.

        Args:
            endpoint: Base URL of the Triton API
            account_name: Account the requests are made for
            signers: Signers; only the first non-None one signs requests
            key_id: Key fingerprint for the SSH agent fallback
            agent_signer_factory: Builds the fallback signer from
                ``(key_id, account_name)``
            transport_settings: Transport timeouts

        Raises:
            InvalidEndpointError: If the endpoint is not an http(s) URL
            MissingAccountNameError: If the account name is empty
            MissingKeyIdError: If there is no signer and no key id
            SignerInitError: If the fallback signer cannot be built
        """
        api_url = self._parse_endpoint(endpoint)

        if not account_name:
            raise MissingAccountNameError()

        authorizers: List[Signer] = [signer for signer in signers if signer is not None]
        if not authorizers:
            authorizers.append(
                self._default_signer(key_id, account_name, agent_signer_factory)
            )

        self.transport_settings = transport_settings
        self.http_client: Optional[requests.Session] = build_http_client(
            build_transport(False, transport_settings)
        )
        self.authorizers = authorizers
        self.api_url = api_url
        self.account_name = account_name
        self.endpoint = endpoint

        if len(authorizers) > 1:
            logger.debug(
                f"{len(authorizers)} signers configured, only the first one signs requests"
            )

    @staticmethod
    def _parse_endpoint(endpoint: str) -> SplitResult:
        try:
            api_url = urlsplit(endpoint)
            # Accessing the port validates it
            api_url.port
        except (TypeError, ValueError, AttributeError) as e:
            raise InvalidEndpointError(str(endpoint), cause=e) from e

        if api_url.scheme not in ("http", "https") or not api_url.hostname:
            raise InvalidEndpointError(endpoint)

        return api_url

    @staticmethod
    def _default_signer(
        key_id: Optional[str],
        account_name: str,
        agent_signer_factory: SignerFactory,
    ) -> Signer:
        if not key_id:
            raise MissingKeyIdError()

        try:
            signer = agent_signer_factory(key_id, account_name)
        except Exception as e:
            raise SignerInitError(
                f"Problem initializing SSH agent signer: {e}", cause=e
            ) from e

        logger.debug(f"Using SSH agent signer for key {key_id}")
        return signer

    def insecure_skip_tls_verify(self) -> None:
        """
        Turn off TLS certificate verification

        Allows connecting to an endpoint whose certificate is signed by an
        untrusted CA, such as a self-signed certificate on a development
        installation. Cannot be undone for this client.
        """
        if self.http_client is None:
            return

        previous = self.http_client.adapters.get("https://")
        mount_transport(
            self.http_client,
            build_transport(True, self.transport_settings),
        )
        if previous is not None:
            previous.close()

    def format_url(self, path: str) -> str:
        """Append a path to the raw endpoint string"""
        return f"{self.endpoint}{path}"

    def decode_error(self, status_code: int, body: Union[BinaryIO, bytes]) -> ClientError:
        """
        Decode an API error response

        Args:
            status_code: HTTP status of the response
            body: Response body stream or bytes

        Returns:
            ClientError carrying the status code and the body's code/message

        Raises:
            ErrorBodyDecodeError: If the body is not a JSON error document
        """
        try:
            raw = body.read() if hasattr(body, "read") else body
            error_body = ErrorBody.model_validate_json(raw)
        except (ValueError, OSError, Urllib3HTTPError) as e:
            raise ErrorBodyDecodeError(status_code, cause=e) from e

        return ClientError(
            status_code=status_code,
            code=error_body.code,
            message=error_body.message,
        )

    # -------------------------------------------------------------------------

    def execute_request_uri_params(
        self,
        ctx: RequestContext,
        method: str,
        path: str,
        body: Any = None,
        query: Optional[QueryParams] = None,
    ) -> BaseHTTPResponse:
        """
        Execute a signed request with query parameters

        Args:
            ctx: Request context
            method: HTTP method
            path: Request path, replaces the endpoint's path
            body: JSON serializable body, or None
            query: Query parameters, or None

        Returns:
            Open response body stream; the caller must close it

        Raises:
            ClientError: If the API answered with a non-2xx status
            ErrorBodyDecodeError: If that answer could not be decoded
        """
        response = self._send(ctx, method, path, body, query)

        if 200 <= response.status_code < 300:
            response.raw.decode_content = True
            return response.raw

        try:
            response.raw.decode_content = True
            raise self.decode_error(response.status_code, response.raw)
        finally:
            response.close()

    def execute_request(
        self,
        ctx: RequestContext,
        method: str,
        path: str,
        body: Any = None,
    ) -> BaseHTTPResponse:
        """Execute a signed request without query parameters"""
        return self.execute_request_uri_params(ctx, method, path, body, None)

    def execute_request_raw(
        self,
        ctx: RequestContext,
        method: str,
        path: str,
        body: Any = None,
        query: Optional[QueryParams] = None,
    ) -> requests.Response:
        """
        Execute a signed request and return the response untouched

        The status is not interpreted. The caller must close the response.
        """
        return self._send(ctx, method, path, body, query)

    def _resolve_url(self, path: str, query: Optional[QueryParams]) -> str:
        endpoint = self.api_url._replace(path=path)
        if query is not None:
            endpoint = endpoint._replace(query=encode_query(query))
        return urlunsplit(endpoint)

    def _build_request(
        self,
        method: str,
        url: str,
        payload: Optional[bytes],
    ) -> requests.PreparedRequest:
        """Prepare an unsigned request"""
        if self.http_client is None:
            raise RequestConstructionError("client has no HTTP transport")

        if not isinstance(method, str) or not _METHOD_PATTERN.match(method):
            raise RequestConstructionError(f"invalid method {method!r}")

        try:
            return self.http_client.prepare_request(
                requests.Request(method=method, url=url, data=payload)
            )
        except (requests.RequestException, ValueError) as e:
            raise RequestConstructionError(
                f"Error constructing HTTP request: {e}", cause=e
            ) from e

    def _sign(self, prepared: requests.PreparedRequest) -> None:
        """Set the date and Authorization headers"""
        date_header = format_date_header()
        prepared.headers["date"] = date_header

        # The constructor guarantees at least one authorizer
        try:
            auth_header = self.authorizers[0].sign(date_header)
        except SigningError:
            raise
        except Exception as e:
            raise SigningError(f"Error signing HTTP request: {e}", cause=e) from e

        prepared.headers["Authorization"] = auth_header

    def _send(
        self,
        ctx: RequestContext,
        method: str,
        path: str,
        body: Any,
        query: Optional[QueryParams],
    ) -> requests.Response:
        """Build, sign and send a request"""
        if ctx is None:
            raise ValueError("nil context")

        payload = encode_body(body)
        url = self._resolve_url(path, query)
        prepared = self._build_request(method, url, payload)

        self._sign(prepared)
        prepared.headers["Accept"] = JSON_MEDIA_TYPE
        prepared.headers["Accept-Version"] = ACCEPT_VERSION
        prepared.headers["User-Agent"] = USER_AGENT
        if payload is not None:
            prepared.headers["Content-Type"] = JSON_MEDIA_TYPE

        ctx.check()
        remaining = ctx.remaining()
        dial_timeout = self.transport_settings.dial_timeout
        if remaining is not None:
            # urllib3 rejects non-positive timeouts
            remaining = max(remaining, 0.001)
            dial_timeout = min(dial_timeout, remaining)

        send_kwargs = self.http_client.merge_environment_settings(
            prepared.url, {}, True, None, None
        )

        logger.debug(f"{method} {prepared.url} {redact_headers(prepared.headers)}")

        try:
            with bind_context(ctx):
                response = self.http_client.send(
                    prepared,
                    allow_redirects=False,
                    timeout=(dial_timeout, remaining),
                    **send_kwargs,
                )
        except requests.RequestException as e:
            reason = ctx.err()
            if reason is not None:
                raise TransportError(reason, cause=e) from e
            raise TransportError(f"Error executing HTTP request: {e}", cause=e) from e

        # An aborted socket can still yield a truncated response
        reason = ctx.err()
        if reason is not None:
            response.close()
            raise TransportError(reason)

        logger.debug(f"{method} {prepared.url} -> {response.status_code}")
        return response

    def close(self) -> None:
        """Close the HTTP session"""
        if self.http_client is not None:
            self.http_client.close()

    def __enter__(self) -> "TritonClient":
        """Context manager entry"""
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        """Context manager exit"""
        self.close()


def create_client(config: TritonConfig, *signers: Optional[Signer]) -> TritonClient:
    """
    Create a client from resolved configuration

    A private key signer is built when key material is configured. Without
    any signer the configured key id is used for the SSH agent fallback.

    Args:
        config: Resolved configuration
        signers: Additional signers, tried after the configured key

    Returns:
        Configured client
    """
    configured: List[Optional[Signer]] = []
    if config.key_material:
        configured.append(
            PrivateKeySigner(
                key_id=config.key_id or "",
                key_material=config.key_material,
                account_name=config.account_name,
                password=config.private_key_password,
            )
        )
    configured.extend(signers)

    client = TritonClient(
        config.endpoint,
        config.account_name,
        *configured,
        key_id=config.key_id,
    )

    if config.insecure_skip_tls_verify:
        client.insecure_skip_tls_verify()

    return client
