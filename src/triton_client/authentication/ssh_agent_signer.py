"""
SSH agent signer

Signs requests through a running SSH agent so the private key never
leaves the agent. This is the signer the client falls back to when it is
given a key id but no explicit signer.
"""

import logging
from typing import Any, Optional, Tuple

import paramiko
from cryptography.hazmat.primitives.asymmetric.utils import encode_dss_signature

from triton_client.authentication.signer import (
    fingerprint_md5_from_blob,
    format_authorization_header,
    key_id_path,
    normalize_fingerprint,
    signing_string,
)
from triton_client.exceptions import SignerInitError, SigningError


logger = logging.getLogger(__name__)

# SSH key type -> (agent signature flag, http-signature algorithm)
_KEY_ALGORITHMS = {
    "ssh-rsa": ("rsa-sha2-256", "rsa-sha256"),
    "ecdsa-sha2-nistp256": (None, "ecdsa-sha256"),
    "ecdsa-sha2-nistp384": (None, "ecdsa-sha384"),
    "ecdsa-sha2-nistp521": (None, "ecdsa-sha512"),
    "ssh-ed25519": (None, "ed25519-sha512"),
}


class SSHAgentSigner:
    """
    Signer that delegates to the SSH agent

    Example:
        >>> signer = SSHAgentSigner("9f:0e:6a:...:a1", "alice")
        >>> signer.sign("Mon, 19 Oct 2026 12:00:00 GMT")
    """

    def __init__(
        self,
        key_id: str,
        account_name: str,
        agent: Optional[Any] = None,
    ) -> None:
        """
        Find the key in the agent

        Args:
            key_id: MD5 fingerprint of the account key
            account_name: Account the key belongs to
            agent: Agent to use, defaults to the one behind SSH_AUTH_SOCK

        Raises:
            SignerInitError: If the agent is unreachable or lacks the key
        """
        if not account_name:
            raise SignerInitError("account name can not be empty")
        if not key_id:
            raise SignerInitError("key id can not be empty")

        try:
            self._agent = agent if agent is not None else paramiko.Agent()
            keys = self._agent.get_keys()
        except (paramiko.SSHException, OSError) as e:
            raise SignerInitError(f"Error connecting to SSH agent: {e}", cause=e) from e

        wanted = normalize_fingerprint(key_id)
        self._key = None
        for key in keys:
            if fingerprint_md5_from_blob(key.asbytes()) == wanted:
                self._key = key
                break

        if self._key is None:
            raise SignerInitError(f"No key in the SSH agent matches fingerprint {key_id}")

        key_type = self._key.get_name()
        if key_type not in _KEY_ALGORITHMS:
            raise SignerInitError(f"Unsupported SSH agent key type: {key_type}")

        self._agent_algorithm, self.algorithm = _KEY_ALGORITHMS[key_type]
        self.fingerprint = wanted
        self.account_name = account_name
        self.key_id = key_id_path(account_name, wanted)
        logger.debug(f"Using {key_type} key {wanted} from SSH agent")

    def sign(self, date_string: str) -> str:
        """
        Sign the date header value through the agent

        Raises:
            SigningError: If the agent refuses or fails to sign
        """
        data = signing_string(date_string).encode("utf-8")
        try:
            blob = self._key.sign_ssh_data(data, algorithm=self._agent_algorithm)
            signature = self._decode_signature(blob)
        except SigningError:
            raise
        except Exception as e:
            raise SigningError(f"Error signing with SSH agent: {e}", cause=e) from e

        return format_authorization_header(self.key_id, self.algorithm, signature)

    def close(self) -> None:
        """Close the agent connection"""
        self._agent.close()

    def _decode_signature(self, blob: bytes) -> bytes:
        """Unwrap an SSH signature blob into the raw http-signature bytes"""
        signature_format, raw = self._split_blob(blob)

        if signature_format.startswith("ecdsa-sha2-"):
            inner = paramiko.Message(raw)
            r = inner.get_mpint()
            s = inner.get_mpint()
            return encode_dss_signature(r, s)

        if signature_format == "ssh-rsa" and self._agent_algorithm:
            # Agent ignored the sha2 flag and signed with SHA-1
            raise SigningError("SSH agent does not support rsa-sha2-256 signatures")

        return raw

    @staticmethod
    def _split_blob(blob: bytes) -> Tuple[str, bytes]:
        message = paramiko.Message(blob)
        return message.get_text(), message.get_binary()
