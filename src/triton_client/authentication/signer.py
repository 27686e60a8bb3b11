"""
Signer capability and HTTP Signature helpers

A signer turns the value of a request's ``date`` header into the value of
its ``Authorization`` header. The client only depends on the ``Signer``
protocol defined here; concrete signers live next to it.
"""

import base64
import hashlib
from typing import Protocol, runtime_checkable

from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric.types import PublicKeyTypes


AUTHORIZATION_HEADER_FORMAT = (
    'Signature keyId="{key_id}",algorithm="{algorithm}",'
    'headers="{headers}",signature="{signature}"'
)

# Only the date header is covered by the signature
SIGNED_HEADER_NAME = "date"


@runtime_checkable
class Signer(Protocol):
    """
    Anything able to produce an ``Authorization`` header value

    ``sign`` receives the exact string sent as the ``date`` header and
    returns the header value. It raises on failure.
    """

    def sign(self, date_string: str) -> str:
        ...


def signing_string(date_string: str) -> str:
    """Build the string covered by the signature"""
    return f"{SIGNED_HEADER_NAME}: {date_string}"


def key_id_path(account_name: str, fingerprint: str) -> str:
    """Build the keyId parameter for an account key"""
    return f"/{account_name}/keys/{fingerprint}"


def format_authorization_header(
    key_id: str,
    algorithm: str,
    signature: bytes,
    headers: str = SIGNED_HEADER_NAME,
) -> str:
    """
    Format a Signature authorization header

    Args:
        key_id: Full keyId parameter (``/<account>/keys/<fingerprint>``)
        algorithm: HTTP Signature algorithm name, e.g. ``rsa-sha256``
        signature: Raw signature bytes
        headers: Space separated list of signed header names

    Returns:
        Header value for ``Authorization``
    """
    return AUTHORIZATION_HEADER_FORMAT.format(
        key_id=key_id,
        algorithm=algorithm,
        headers=headers,
        signature=base64.b64encode(signature).decode("ascii"),
    )


def normalize_fingerprint(key_id: str) -> str:
    """Lower-case an MD5 fingerprint and drop an optional ``MD5:`` prefix"""
    value = key_id.strip()
    if value.upper().startswith("MD5:"):
        value = value[4:]
    return value.lower()


def fingerprint_md5_from_blob(blob: bytes) -> str:
    """Colon separated MD5 fingerprint of an SSH wire-format public key"""
    digest = hashlib.md5(blob, usedforsecurity=False).hexdigest()
    return ":".join(digest[i:i + 2] for i in range(0, len(digest), 2))


def fingerprint_md5(public_key: PublicKeyTypes) -> str:
    """
    Compute the MD5 fingerprint Triton uses to identify account keys

    Args:
        public_key: RSA, ECDSA or Ed25519 public key

    Returns:
        Fingerprint such as ``9f:0e:...:a1``
    """
    openssh = public_key.public_bytes(
        serialization.Encoding.OpenSSH,
        serialization.PublicFormat.OpenSSH,
    )
    blob = base64.b64decode(openssh.split()[1])
    return fingerprint_md5_from_blob(blob)
