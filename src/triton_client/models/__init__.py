"""Models module initialization"""

from triton_client.models.error import ErrorBody

__all__ = ["ErrorBody"]
