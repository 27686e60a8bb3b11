"""Authentication module

Signers turn a request date into an Authorization header:
- Signer: the capability the client depends on
- PrivateKeySigner: in-process private key
- SSHAgentSigner: key held by the SSH agent
"""

from triton_client.authentication.signer import (
    Signer,
    fingerprint_md5,
    format_authorization_header,
    key_id_path,
    signing_string,
)
from triton_client.authentication.private_key_signer import PrivateKeySigner
from triton_client.authentication.ssh_agent_signer import SSHAgentSigner

__all__ = [
    "Signer",
    "PrivateKeySigner",
    "SSHAgentSigner",
    "fingerprint_md5",
    "format_authorization_header",
    "key_id_path",
    "signing_string",
]
