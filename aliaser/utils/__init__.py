"""
Utils module - Utility functions and helpers.
"""

from aliaser.utils.passwords import generate_password
from aliaser.utils.validators import (
    ValidationError,
    validate_master_password,
    validate_service_name,
)

__all__ = [
    "ValidationError",
    "generate_password",
    "validate_master_password",
    "validate_service_name",
]
