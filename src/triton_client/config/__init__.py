"""
Configuration module
"""

from triton_client.config.client_config import (
    TritonConfig,
    ENV_VAR_MAPPING,
    ConfigDefaults,
)
from triton_client.config.config_loader import ConfigLoader
from triton_client.config.config_validator import (
    ConfigValidator,
    ValidationResult,
    ValidationErrorDetail,
)

__all__ = [
    "TritonConfig",
    "ENV_VAR_MAPPING",
    "ConfigDefaults",
    "ConfigLoader",
    "ConfigValidator",
    "ValidationResult",
    "ValidationErrorDetail",
]
