"""
Triton client configuration types
Type-safe configuration objects for building a TritonClient
"""

import re
from typing import Optional, Union
from urllib.parse import urlsplit

from pydantic import BaseModel, Field, field_validator


class ConfigDefaults:
    """Default configuration values"""
    INSECURE_SKIP_TLS_VERIFY = False


# Environment variable mapping; TRITON_* entries come last and win over SDC_*
ENV_VAR_MAPPING = {
    "SDC_URL": "endpoint",
    "SDC_ACCOUNT": "account_name",
    "SDC_KEY_ID": "key_id",
    "SDC_KEY_MATERIAL": "key_material",
    "TRITON_URL": "endpoint",
    "TRITON_ACCOUNT": "account_name",
    "TRITON_KEY_ID": "key_id",
    "TRITON_KEY_MATERIAL": "key_material",
    "TRITON_KEY_PASSWORD": "private_key_password",
    "TRITON_SKIP_TLS_VERIFY": "insecure_skip_tls_verify",
}

# MD5 fingerprint, optionally prefixed with "MD5:"
KEY_ID_PATTERN = re.compile(r"^(MD5:)?([0-9a-fA-F]{2}:){15}[0-9a-fA-F]{2}$")


def is_pem_content(value: Union[str, bytes]) -> bool:
    """Check whether key material is inline PEM/OpenSSH content"""
    marker = b"-----BEGIN" if isinstance(value, bytes) else "-----BEGIN"
    return marker in value


class TritonConfig(BaseModel):
    """
    Main Triton client configuration
    Defines everything needed to construct an authenticated client
    """

    endpoint: str = Field(
        ...,
        description="Base URL of the Triton CloudAPI",
        min_length=1,
    )
    account_name: str = Field(
        ...,
        description="Triton account login",
        min_length=1,
    )
    key_id: Optional[str] = Field(
        default=None,
        description="MD5 fingerprint of the account key",
    )
    key_material: Optional[Union[str, bytes]] = Field(
        default=None,
        description="Private key - file path or PEM/OpenSSH content",
    )
    private_key_password: Optional[str] = Field(
        default=None,
        description="Password for an encrypted private key",
    )
    insecure_skip_tls_verify: bool = Field(
        default=ConfigDefaults.INSECURE_SKIP_TLS_VERIFY,
        description="Skip TLS certificate verification (development only)",
    )

    model_config = {
        "str_strip_whitespace": True,
        "validate_assignment": True,
    }

    @field_validator("endpoint")
    @classmethod
    def validate_endpoint(cls, v: str) -> str:
        """Validate endpoint is an HTTP/HTTPS URL"""
        parsed = urlsplit(v)
        if parsed.scheme not in ("http", "https") or not parsed.netloc:
            raise ValueError("endpoint must be a valid HTTP/HTTPS URL")
        return v

    @field_validator("key_id")
    @classmethod
    def validate_key_id(cls, v: Optional[str]) -> Optional[str]:
        """Validate key_id is an MD5 fingerprint"""
        if v is not None and v != "" and not KEY_ID_PATTERN.match(v):
            raise ValueError("key_id must be an MD5 key fingerprint (aa:bb:...)")
        return v or None

