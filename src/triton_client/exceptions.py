"""Exception classes for the Triton client"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Optional


class TritonErrorCategory(str, Enum):
    """Triton client error categories"""
    CONFIG = "CONFIG"
    AUTH = "AUTH"
    REQUEST = "REQUEST"
    NETWORK = "NETWORK"
    API = "API"
    UNKNOWN = "UNKNOWN"


class TritonError(Exception):
    """
    Base exception for Triton client errors

    All errors raised by the client extend from this class.
    Provides consistent error handling and categorization.
    """

    category = TritonErrorCategory.UNKNOWN

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        status_code: Optional[int] = None,
        cause: Optional[BaseException] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.code = code
        self.status_code = status_code
        self.cause = cause
        self.details = details
        self.timestamp = datetime.now(timezone.utc)

    def to_dict(self) -> Dict[str, Any]:
        """Convert error to dictionary"""
        return {
            "name": self.__class__.__name__,
            "message": str(self),
            "code": self.code,
            "status_code": self.status_code,
            "category": self.category.value,
            "timestamp": self.timestamp.isoformat(),
            "details": self.details,
        }

    def has_code(self, code: str) -> bool:
        """Check if error has a specific code"""
        return self.code == code

    def is_category(self, category: TritonErrorCategory) -> bool:
        """Check if error belongs to a category"""
        return self.category == category

    def get_description(self) -> str:
        """Get human-readable error description"""
        parts = [str(self)]

        if self.code:
            parts.insert(0, f"[{self.code}]")

        if self.status_code:
            parts.append(f"(HTTP {self.status_code})")

        return " ".join(parts)


class ConfigError(TritonError):
    """Configuration error"""

    category = TritonErrorCategory.CONFIG

    def __init__(
        self,
        message: str,
        code: str = "CONFIG_ERROR",
        cause: Optional[BaseException] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(message, code=code, cause=cause, details=details)


class ValidationError(ConfigError):
    """Configuration validation error"""

    def __init__(
        self,
        message: str,
        field: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(message, code="VALIDATION_ERROR", details=details)
        self.field = field


class InvalidEndpointError(ConfigError):
    """The endpoint could not be parsed as an API URL"""

    def __init__(self, endpoint: str, cause: Optional[BaseException] = None) -> None:
        reason = f": {cause}" if cause else ""
        super().__init__(
            f"invalid endpoint {endpoint!r}{reason}",
            code="INVALID_ENDPOINT",
            cause=cause,
            details={"endpoint": endpoint},
        )


class MissingAccountNameError(ConfigError):
    """An empty account name was given to the client"""

    def __init__(self) -> None:
        super().__init__("account name can not be empty", code="MISSING_ACCOUNT_NAME")


class MissingKeyIdError(ConfigError):
    """No signer was given and no key id is available for the agent fallback"""

    def __init__(self) -> None:
        super().__init__(
            "Default SSH agent authentication requires SDC_KEY_ID",
            code="MISSING_KEY_ID",
        )


class SignerInitError(TritonError):
    """The default SSH agent signer could not be constructed"""

    category = TritonErrorCategory.AUTH

    def __init__(self, message: str, cause: Optional[BaseException] = None) -> None:
        super().__init__(message, code="SIGNER_INIT_ERROR", cause=cause)


class SigningError(TritonError):
    """A signer failed to produce an Authorization header"""

    category = TritonErrorCategory.AUTH

    def __init__(self, message: str, cause: Optional[BaseException] = None) -> None:
        super().__init__(message, code="SIGNING_ERROR", cause=cause)


class RequestConstructionError(TritonError):
    """The HTTP request could not be built"""

    category = TritonErrorCategory.REQUEST

    def __init__(self, message: str, cause: Optional[BaseException] = None) -> None:
        super().__init__(message, code="REQUEST_CONSTRUCTION_ERROR", cause=cause)


class TransportError(TritonError):
    """
    Network error for HTTP transport layer failures

    Raised for connection, DNS, TLS and timeout failures as well as for
    cancelled or expired request contexts. Never retried.
    """

    category = TritonErrorCategory.NETWORK

    def __init__(self, message: str, cause: Optional[BaseException] = None) -> None:
        super().__init__(message, code="TRANSPORT_ERROR", cause=cause)


class ClientError(TritonError):
    """
    A non-2xx response returned by the Triton API

    Carries the HTTP status code together with the machine readable
    ``code`` and human readable ``message`` from the response body.
    """

    category = TritonErrorCategory.API

    def __init__(self, status_code: int, code: str = "", message: str = "") -> None:
        super().__init__(message, code=code, status_code=status_code)

    def __str__(self) -> str:
        return f"{self.code}: {self.message}"

    def __repr__(self) -> str:
        return (
            f"ClientError(status_code={self.status_code}, "
            f"code={self.code!r}, message={self.message!r})"
        )


class ErrorBodyDecodeError(TritonError):
    """The body of an API error response could not be decoded"""

    category = TritonErrorCategory.API

    def __init__(
        self,
        status_code: int,
        cause: Optional[BaseException] = None,
    ) -> None:
        super().__init__(
            f"Error decoding error response: {cause}",
            code="ERROR_BODY_DECODE_ERROR",
            status_code=status_code,
            cause=cause,
        )
