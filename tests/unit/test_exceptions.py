"""
Exception Unit Tests
"""

import pytest

from triton_client.exceptions import (
    ClientError,
    ConfigError,
    ErrorBodyDecodeError,
    InvalidEndpointError,
    MissingAccountNameError,
    MissingKeyIdError,
    RequestConstructionError,
    SignerInitError,
    SigningError,
    TransportError,
    TritonError,
    TritonErrorCategory,
    ValidationError,
)


class TestClientError:
    """Tests for ClientError"""

    def test_fields_and_message(self):
        """Should format as code: message"""
        error = ClientError(409, "Conflict", "exists")

        assert error.status_code == 409
        assert error.code == "Conflict"
        assert error.message == "exists"
        assert str(error) == "Conflict: exists"
        assert repr(error) == "ClientError(status_code=409, code='Conflict', message='exists')"

    def test_empty_fields(self):
        """Should format even without code and message"""
        assert str(ClientError(500)) == ": "

    def test_description(self):
        """Should include code and HTTP status"""
        error = ClientError(404, "ResourceNotFound", "no such machine")

        assert error.get_description() == (
            "[ResourceNotFound] ResourceNotFound: no such machine (HTTP 404)"
        )

    def test_to_dict(self):
        """Should serialize the error fields"""
        data = ClientError(409, "Conflict", "exists").to_dict()

        assert data["name"] == "ClientError"
        assert data["code"] == "Conflict"
        assert data["status_code"] == 409
        assert data["category"] == "API"
        assert data["message"] == "Conflict: exists"


class TestErrorCategories:
    """Tests for the error hierarchy"""

    @pytest.mark.parametrize(
        "error,category",
        [
            (InvalidEndpointError("::"), TritonErrorCategory.CONFIG),
            (MissingAccountNameError(), TritonErrorCategory.CONFIG),
            (MissingKeyIdError(), TritonErrorCategory.CONFIG),
            (ValidationError("bad", field="endpoint"), TritonErrorCategory.CONFIG),
            (SignerInitError("no agent"), TritonErrorCategory.AUTH),
            (SigningError("failed"), TritonErrorCategory.AUTH),
            (RequestConstructionError("bad method"), TritonErrorCategory.REQUEST),
            (TransportError("refused"), TritonErrorCategory.NETWORK),
            (ClientError(400), TritonErrorCategory.API),
            (ErrorBodyDecodeError(500), TritonErrorCategory.API),
        ],
    )
    def test_category(self, error: TritonError, category: TritonErrorCategory):
        """Should belong to the expected category"""
        assert isinstance(error, TritonError)
        assert error.is_category(category)

    def test_config_errors(self):
        """Should share the ConfigError base"""
        assert isinstance(MissingAccountNameError(), ConfigError)
        assert isinstance(MissingKeyIdError(), ConfigError)
        assert isinstance(ValidationError("bad"), ConfigError)

    def test_codes(self):
        """Should carry stable codes"""
        assert MissingKeyIdError().has_code("MISSING_KEY_ID")
        assert ValidationError("bad").has_code("VALIDATION_ERROR")
        assert InvalidEndpointError("x").has_code("INVALID_ENDPOINT")
        assert TransportError("x").has_code("TRANSPORT_ERROR")

    def test_missing_key_id_message(self):
        """Should name the environment variable to set"""
        assert str(MissingKeyIdError()) == "Default SSH agent authentication requires SDC_KEY_ID"

    def test_decode_error_is_not_client_error(self):
        """Should stay distinguishable from API errors"""
        cause = ValueError("Expecting value")
        error = ErrorBodyDecodeError(502, cause=cause)

        assert not isinstance(error, ClientError)
        assert error.status_code == 502
        assert error.cause is cause
        assert "Expecting value" in str(error)

    def test_cause(self):
        """Should keep the underlying exception"""
        cause = OSError("connection refused")
        error = TransportError("Error executing HTTP request", cause=cause)

        assert error.cause is cause
        assert error.to_dict()["category"] == "NETWORK"
