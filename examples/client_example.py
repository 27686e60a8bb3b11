"""
Client Examples for the Triton API client
Demonstrates the ways to configure a client and execute requests
"""

import json
import logging

from triton_client import (
    ClientError,
    ConfigLoader,
    ConfigValidator,
    PrivateKeySigner,
    RequestContext,
    TritonClient,
    create_client,
)


# =============================================================================
# Example 1: Explicit Signer
# =============================================================================

def explicit_signer_example() -> TritonClient:
    """Sign requests with a private key read from disk"""
    signer = PrivateKeySigner(
        key_id="9f:0e:6a:3b:1c:22:4d:5e:6f:70:81:92:a3:b4:c5:d6",
        key_material="~/.ssh/id_rsa",
        account_name="alice",
    )

    return TritonClient("https://us-east-1.api.joyent.com", "alice", signer)


# =============================================================================
# Example 2: SSH Agent Fallback
# =============================================================================

def agent_fallback_example() -> TritonClient:
    """
    Without a signer the client signs through the SSH agent

    The key with this fingerprint must be loaded in the agent
    behind SSH_AUTH_SOCK.
    """
    return TritonClient(
        "https://us-east-1.api.joyent.com",
        "alice",
        key_id="9f:0e:6a:3b:1c:22:4d:5e:6f:70:81:92:a3:b4:c5:d6",
    )


# =============================================================================
# Example 3: Environment Configuration
# =============================================================================

def env_config_example() -> TritonClient:
    """
    Build a client from environment variables

    Set these environment variables before running:

    export SDC_URL="https://us-east-1.api.joyent.com"
    export SDC_ACCOUNT="alice"
    export SDC_KEY_ID="9f:0e:6a:3b:1c:22:4d:5e:6f:70:81:92:a3:b4:c5:d6"
    export SDC_KEY_MATERIAL="~/.ssh/id_rsa"
    """
    loader = ConfigLoader()
    return create_client(loader.load(env=True))


# =============================================================================
# Example 4: Development Installation
# =============================================================================

def development_example() -> TritonClient:
    """Talk to a local installation with a self-signed certificate"""
    loader = ConfigLoader()

    config = loader.load(
        env=False,
        config={
            "endpoint": "https://10.88.88.3",
            "account_name": "admin",
            "key_material": "~/.ssh/id_ed25519",
            "insecure_skip_tls_verify": True,
        },
    )
    return create_client(config)


# =============================================================================
# Example 5: Executing Requests
# =============================================================================

def list_machines_example(client: TritonClient) -> list:
    """List running machines, bounded by a 30 second deadline"""
    ctx = RequestContext.with_timeout(30)
    path = f"/{client.account_name}/machines"

    try:
        body = client.execute_request_uri_params(
            ctx, "GET", path, query={"state": "running"}
        )
    except ClientError as e:
        print(f"API error {e.status_code}: {e}")
        return []

    try:
        return json.load(body)
    finally:
        body.close()


# =============================================================================
# Example 6: Configuration Validation
# =============================================================================

def validation_example() -> None:
    """Validate configuration before use"""
    validator = ConfigValidator()

    partial_config = {
        "endpoint": "cloudapi.example.com",
        # Missing account_name...
    }

    result = validator.validate(partial_config)

    if not result.valid:
        print("Configuration validation failed:")
        for error in result.errors:
            print(f"  - {error.field}: {error.message}")


# =============================================================================
# Run Examples
# =============================================================================

if __name__ == "__main__":
    logging.basicConfig(level=logging.DEBUG)

    print("=== Triton Client Examples ===\n")

    print("6. Configuration Validation:")
    validation_example()
    print()

    print("5. List Machines:")
    with env_config_example() as client:
        for machine in list_machines_example(client):
            print(f"  - {machine['name']} ({machine['state']})")
