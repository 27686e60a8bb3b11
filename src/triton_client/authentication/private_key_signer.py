"""
Private key signer

Signs requests with a private key held in process memory. The key is
loaded from a file path or from PEM/DER/OpenSSH content and must match
the fingerprint of the account key it is registered as.
"""

import logging
from pathlib import Path
from typing import Optional, Tuple, Union

from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.asymmetric import ec, ed25519, padding, rsa
from cryptography.hazmat.primitives.serialization import (
    load_der_private_key,
    load_pem_private_key,
    load_ssh_private_key,
)

from triton_client.authentication.signer import (
    fingerprint_md5,
    format_authorization_header,
    key_id_path,
    normalize_fingerprint,
    signing_string,
)
from triton_client.exceptions import SignerInitError, SigningError


logger = logging.getLogger(__name__)

KeyMaterial = Union[str, bytes, Path]

SupportedPrivateKey = Union[
    rsa.RSAPrivateKey,
    ec.EllipticCurvePrivateKey,
    ed25519.Ed25519PrivateKey,
]

# ECDSA digest by curve size, as negotiated by the http-signature scheme
_ECDSA_HASHES = {
    256: (hashes.SHA256, "ecdsa-sha256"),
    384: (hashes.SHA384, "ecdsa-sha384"),
    521: (hashes.SHA512, "ecdsa-sha512"),
}


class PrivateKeySigner:
    """
    Signer backed by a private key

    Example:
        >>> signer = PrivateKeySigner(
        ...     key_id="9f:0e:6a:...:a1",
        ...     key_material="~/.ssh/id_rsa",
        ...     account_name="alice",
        ... )
        >>> signer.sign("Mon, 19 Oct 2026 12:00:00 GMT")
        'Signature keyId="/alice/keys/9f:0e:...",algorithm="rsa-sha256",...'
    """

    def __init__(
        self,
        key_id: str,
        key_material: KeyMaterial,
        account_name: str,
        password: Optional[str] = None,
    ) -> None:
        """
        Load the key and check it against the key id

        Args:
            key_id: MD5 fingerprint of the account key
            key_material: File path, Path object, or key content
            account_name: Account the key belongs to
            password: Password for an encrypted private key

        Raises:
            SignerInitError: If the key cannot be loaded or does not match
        """
        if not account_name:
            raise SignerInitError("account name can not be empty")

        self._private_key = self._load_private_key(key_material, password)
        self.fingerprint = fingerprint_md5(self._private_key.public_key())

        if key_id and normalize_fingerprint(key_id) != self.fingerprint:
            raise SignerInitError(
                f"Private key does not match public key fingerprint {key_id}"
            )

        self.account_name = account_name
        self.key_id = key_id_path(account_name, self.fingerprint)
        self.algorithm = self._algorithm_name()
        logger.debug(f"Loaded {self.algorithm} private key {self.fingerprint}")

    def sign(self, date_string: str) -> str:
        """
        Sign the date header value

        Args:
            date_string: Value of the request's date header

        Returns:
            Authorization header value

        Raises:
            SigningError: If the signing operation fails
        """
        data = signing_string(date_string).encode("utf-8")
        try:
            signature = self._sign_bytes(data)
        except Exception as e:
            raise SigningError(f"Failed to sign request: {e}", cause=e) from e

        return format_authorization_header(self.key_id, self.algorithm, signature)

    def _sign_bytes(self, data: bytes) -> bytes:
        key = self._private_key
        if isinstance(key, rsa.RSAPrivateKey):
            return key.sign(data, padding.PKCS1v15(), hashes.SHA256())
        if isinstance(key, ec.EllipticCurvePrivateKey):
            hash_cls, _ = self._ecdsa_params(key)
            return key.sign(data, ec.ECDSA(hash_cls()))
        return key.sign(data)

    def _algorithm_name(self) -> str:
        key = self._private_key
        if isinstance(key, rsa.RSAPrivateKey):
            return "rsa-sha256"
        if isinstance(key, ec.EllipticCurvePrivateKey):
            return self._ecdsa_params(key)[1]
        return "ed25519-sha512"

    @staticmethod
    def _ecdsa_params(key: ec.EllipticCurvePrivateKey) -> Tuple[type, str]:
        try:
            return _ECDSA_HASHES[key.curve.key_size]
        except KeyError:
            raise SignerInitError(f"Unsupported ECDSA curve: {key.curve.name}")

    def _load_private_key(
        self,
        key_material: KeyMaterial,
        password: Optional[str],
    ) -> SupportedPrivateKey:
        """Load a private key from file path or content"""
        try:
            key_data = self._resolve_key_input(key_material)
        except OSError as e:
            raise SignerInitError(f"Failed to read private key: {e}", cause=e) from e

        password_bytes = password.encode("utf-8") if password else None

        try:
            if b"OPENSSH PRIVATE KEY" in key_data:
                private_key = load_ssh_private_key(key_data, password=password_bytes)
            elif b"-----BEGIN" in key_data:
                private_key = load_pem_private_key(key_data, password=password_bytes)
            else:
                private_key = load_der_private_key(key_data, password=password_bytes)
        except (ValueError, TypeError) as e:
            raise SignerInitError(f"Failed to load private key: {e}", cause=e) from e

        if isinstance(private_key, ec.EllipticCurvePrivateKey):
            self._ecdsa_params(private_key)
        elif not isinstance(private_key, (rsa.RSAPrivateKey, ed25519.Ed25519PrivateKey)):
            raise SignerInitError(
                f"Unsupported key type: {type(private_key).__name__}"
            )

        return private_key

    @staticmethod
    def _resolve_key_input(key_material: KeyMaterial) -> bytes:
        """Resolve key input to bytes"""
        if isinstance(key_material, bytes):
            return key_material

        if isinstance(key_material, Path):
            return key_material.expanduser().read_bytes()

        # PEM headers mean content, anything else is a path
        if "-----BEGIN" in key_material:
            return key_material.encode("utf-8")

        return Path(key_material).expanduser().read_bytes()
