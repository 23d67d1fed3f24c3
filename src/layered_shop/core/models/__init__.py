"""
Core Models Package

Immutable data models shared by the storefront evaluator, the admin
schema editor and the cart.

**DESIGN RATIONALE:**

All models in this package are frozen dataclasses. This ensures:
1. A selection is replaced on every interaction, never patched in place
2. Price modifiers are calculated from content, never stored
3. Options and selections are tagged unions: a size selection cannot
   carry colours, a text option cannot carry material choices

| Concept | Type |
|---------|------|
| Option schema | `CustomizationOption` subclasses |
| Product schema | `ProductCustomization` |
| Shopper answer | `SelectedCustomization` subclasses |
| Upload | `UploadedFile` |
"""

from .choices import (
    ColorOption,
    FileConfig,
    MaterialCode,
    MaterialOption,
    Position,
    SelectOption,
    SizeOption,
    StrengthOption,
    TextConfig,
)
from .options import (
    OPTION_CLASSES,
    SELECTABLE_TYPES,
    ColorCustomization,
    CustomizationOption,
    FileCustomization,
    MaterialCustomization,
    OptionType,
    PriceType,
    ProductCustomization,
    SelectCustomization,
    SizeCustomization,
    StrengthCustomization,
    TextCustomization,
    choices_of,
)
from .selections import (
    SELECTION_CLASSES,
    ColorSelection,
    FileSelection,
    MaterialSelection,
    SelectedCustomization,
    SelectSelection,
    SizeSelection,
    StrengthSelection,
    TextSelection,
    UploadedFile,
)

__all__ = [
    # Choices
    "ColorOption",
    "FileConfig",
    "MaterialCode",
    "MaterialOption",
    "Position",
    "SelectOption",
    "SizeOption",
    "StrengthOption",
    "TextConfig",
    # Options
    "OPTION_CLASSES",
    "SELECTABLE_TYPES",
    "ColorCustomization",
    "CustomizationOption",
    "FileCustomization",
    "MaterialCustomization",
    "OptionType",
    "PriceType",
    "ProductCustomization",
    "SelectCustomization",
    "SizeCustomization",
    "StrengthCustomization",
    "TextCustomization",
    "choices_of",
    # Selections
    "SELECTION_CLASSES",
    "ColorSelection",
    "FileSelection",
    "MaterialSelection",
    "SelectedCustomization",
    "SelectSelection",
    "SizeSelection",
    "StrengthSelection",
    "TextSelection",
    "UploadedFile",
]
