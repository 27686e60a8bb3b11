"""API error response model"""

from typing import Any, Optional

from pydantic import BaseModel, Field, field_validator


class ErrorBody(BaseModel):
    """Body of a non-2xx Triton API response"""

    code: Optional[str] = Field(default="", description="Machine readable error code")
    message: Optional[str] = Field(default="", description="Human readable error message")

    @field_validator("code", "message", mode="before")
    @classmethod
    def null_as_empty(cls, v: Any) -> Any:
        """Treat JSON null like a missing field"""
        return "" if v is None else v
