"""
Schemas Package

JSON schema definitions and validation utilities for the customization
wire format.
"""

from .validator import (
    validate_customization,
    validate_selection,
    ValidationError,
    OPTION_TYPES,
    PRICE_TYPES,
)

__all__ = [
    "validate_customization",
    "validate_selection",
    "ValidationError",
    "OPTION_TYPES",
    "PRICE_TYPES",
]
