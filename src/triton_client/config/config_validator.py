"""
Configuration Validator
Validates Triton client configuration with clear error messages
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional
from urllib.parse import urlsplit

from triton_client.config.client_config import KEY_ID_PATTERN, is_pem_content


@dataclass
class ValidationErrorDetail:
    """Validation error detail"""
    field: str
    message: str
    value: Optional[Any] = None


@dataclass
class ValidationResult:
    """Validation result"""
    valid: bool
    errors: List[ValidationErrorDetail] = field(default_factory=list)


class ConfigValidator:
    """
    ConfigValidator class
    Provides validation for Triton client configuration
    """

    def __init__(self) -> None:
        self._errors: List[ValidationErrorDetail] = []

    def validate(self, config: Dict[str, Any]) -> ValidationResult:
        """
        Validate the entire configuration dictionary

        Args:
            config: Configuration dictionary to validate

        Returns:
            ValidationResult with any errors
        """
        self._errors = []

        self._validate_required(config)
        self._validate_endpoint(config)
        self._validate_key_id(config)
        self._validate_key_material(config)

        return ValidationResult(
            valid=len(self._errors) == 0,
            errors=self._errors.copy()
        )

    def validate_or_raise(self, config: Dict[str, Any]) -> None:
        """
        Validate and raise if invalid

        Raises:
            ValidationError: If configuration is invalid
        """
        from triton_client.exceptions import ValidationError

        result = self.validate(config)
        if not result.valid:
            error_messages = "; ".join(
                f"{e.field}: {e.message}" for e in result.errors
            )
            raise ValidationError(
                f"Configuration validation failed: {error_messages}",
                field=result.errors[0].field,
            )

    def _validate_required(self, config: Dict[str, Any]) -> None:
        """Validate required fields are present and non-empty"""
        for field_name in ("endpoint", "account_name"):
            value = config.get(field_name)
            if value is None:
                self._errors.append(ValidationErrorDetail(
                    field=field_name,
                    message=f"{field_name} is required"
                ))
            elif isinstance(value, str) and value.strip() == "":
                self._errors.append(ValidationErrorDetail(
                    field=field_name,
                    message=f"{field_name} cannot be empty",
                    value=value
                ))

    def _validate_endpoint(self, config: Dict[str, Any]) -> None:
        """Validate endpoint URL format"""
        endpoint = config.get("endpoint")
        if not isinstance(endpoint, str) or endpoint.strip() == "":
            return

        try:
            parsed = urlsplit(endpoint.strip())
            parsed.port
        except ValueError:
            parsed = None

        if parsed is None or parsed.scheme not in ("http", "https") or not parsed.netloc:
            self._errors.append(ValidationErrorDetail(
                field="endpoint",
                message="endpoint must be a valid HTTP/HTTPS URL",
                value=endpoint
            ))

    def _validate_key_id(self, config: Dict[str, Any]) -> None:
        """Validate the key fingerprint format"""
        key_id = config.get("key_id")
        if key_id is None or key_id == "":
            return

        if not isinstance(key_id, str) or not KEY_ID_PATTERN.match(key_id.strip()):
            self._errors.append(ValidationErrorDetail(
                field="key_id",
                message="key_id must be an MD5 key fingerprint (aa:bb:...)",
                value=key_id
            ))

    def _validate_key_material(self, config: Dict[str, Any]) -> None:
        """Validate private key configuration"""
        key_material = config.get("key_material")
        if key_material is None or key_material == "":
            return

        if isinstance(key_material, bytes):
            return

        if not isinstance(key_material, str):
            self._errors.append(ValidationErrorDetail(
                field="key_material",
                message="key_material must be a file path or PEM-encoded content",
                value="[REDACTED]"
            ))
            return

        if is_pem_content(key_material) and "-----END" not in key_material:
            self._errors.append(ValidationErrorDetail(
                field="key_material",
                message="key_material contains a malformed PEM block",
                value="[REDACTED]"
            ))
