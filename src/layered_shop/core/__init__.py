"""
Layered Shop Core Package

Shared data models, wire schemas and serialization used by the storefront
customizer, the admin schema editor and the cart.

1. **Immutable Data Models**
   - Frozen dataclasses; every interaction produces a new selection

2. **Calculated Prices (Never Stored)**
   - `price_modifier` on a selection is always derived from its content

3. **Closed Tagged Unions**
   - One option class and one selection class per option type
"""

from .models import (
    CustomizationOption,
    OptionType,
    PriceType,
    ProductCustomization,
    SelectedCustomization,
    UploadedFile,
)
from .schemas import ValidationError

__all__ = [
    "CustomizationOption",
    "OptionType",
    "PriceType",
    "ProductCustomization",
    "SelectedCustomization",
    "UploadedFile",
    "ValidationError",
]
