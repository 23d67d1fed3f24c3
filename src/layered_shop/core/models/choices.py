"""
Module: choices

Purpose:
    Provides the leaf value objects an admin lists inside a customization
    option: colours, materials, sizes, print strengths and free-form select
    entries, plus the text and file configuration blocks.

Key Classes:
    - ColorOption, MaterialOption, SizeOption, StrengthOption, SelectOption
    - TextConfig, FileConfig
    - MaterialCode, Position

Dependencies:
    - dataclasses (std)
    - decimal (std)

Used By:
    - core.models.options
    - core.models.selections
    - customizer.pricing
    - editor.schema_editor
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import Optional, Tuple


class MaterialCode(str, Enum):
    """Filament/resin families the print farm stocks."""
    PLA = "pla"
    PETG = "petg"
    ABS = "abs"
    TPU = "tpu"
    RESIN = "resin"

    def __str__(self) -> str:
        return self.value


class Position(str, Enum):
    """Where engraved or printed text is placed on the model."""
    FRONT = "front"
    BACK = "back"
    SIDE = "side"

    def __str__(self) -> str:
        return self.value


def as_money(value: object) -> Optional[Decimal]:
    """
    Coerce a numeric price value to Decimal.

    Floats go through ``str`` first so ``2.5`` becomes ``Decimal("2.5")``
    rather than its binary expansion.

    Args:
        value: int, float, str, Decimal or None

    Returns:
        Decimal, or None when value is None
    """
    if value is None:
        return None
    if isinstance(value, Decimal):
        return value
    if isinstance(value, bool):
        raise TypeError(f"Price modifier cannot be a boolean: {value!r}")
    return Decimal(str(value))


class _Priced:
    """Shared price_modifier normalisation for priced choices."""

    def _normalise_price(self) -> None:
        object.__setattr__(self, "price_modifier", as_money(self.price_modifier))

    @property
    def price_delta(self) -> Decimal:
        """Price modifier with the missing case read as zero."""
        return self.price_modifier if self.price_modifier is not None else Decimal(0)


@dataclass(frozen=True)
class ColorOption(_Priced):
    """
    A selectable colour swatch.

    Colours are identified by ``name`` for membership and toggling; two
    swatches with the same name are the same colour even if their hex
    values differ.

    Attributes:
        name: Display name, unique within one colour option
        hex: CSS hex colour (e.g. "#ff0000")
        image: Optional swatch image reference used instead of hex
        price_modifier: Signed price delta, None when free

    Invariants:
        - name is non-empty
        - at least one of hex / image is set
    """

    name: str
    hex: Optional[str] = None
    image: Optional[str] = None
    price_modifier: Optional[Decimal] = None

    def __post_init__(self) -> None:
        if not self.name:
            raise ValueError("Colour name cannot be empty")
        if not self.hex and not self.image:
            raise ValueError(f"Colour {self.name!r} needs a hex value or an image")
        self._normalise_price()


@dataclass(frozen=True)
class MaterialOption(_Priced):
    """A printable material with its stock code."""

    name: str
    code: MaterialCode
    price_modifier: Optional[Decimal] = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "code", MaterialCode(self.code))
        self._normalise_price()


@dataclass(frozen=True)
class SizeOption(_Priced):
    """A size variant; ``dimensions`` is free text such as "20x20mm"."""

    name: str
    dimensions: str
    price_modifier: Optional[Decimal] = None

    def __post_init__(self) -> None:
        self._normalise_price()


@dataclass(frozen=True)
class StrengthOption(_Priced):
    """
    A print strength expressed as infill percentage.

    Invariants:
        - 0 <= fill_percentage <= 100
    """

    name: str
    fill_percentage: int
    price_modifier: Optional[Decimal] = None

    def __post_init__(self) -> None:
        if not 0 <= self.fill_percentage <= 100:
            raise ValueError(
                f"fill_percentage must be within 0..100: {self.fill_percentage}"
            )
        self._normalise_price()


@dataclass(frozen=True)
class SelectOption(_Priced):
    """A generic labelled entry of a select option."""

    label: str
    value: str
    price_modifier: Optional[Decimal] = None

    def __post_init__(self) -> None:
        self._normalise_price()


@dataclass(frozen=True)
class TextConfig:
    """
    Constraints for engraved or printed text.

    ``allow_emoji`` and ``allow_profanity`` are carried for the storefront
    to enforce; the engine only applies ``max_length``.
    """

    max_length: int = 50
    allow_emoji: bool = False
    allow_profanity: bool = False
    placeholder: Optional[str] = None

    def __post_init__(self) -> None:
        if self.max_length < 1:
            raise ValueError(f"max_length must be positive: {self.max_length}")


@dataclass(frozen=True)
class FileConfig:
    """
    Upload constraints for a file option.

    Attributes:
        allowed_formats: Lower-case extensions without the dot
        max_files: Maximum accepted files (>= 1)
        max_size_mb: Per-file size ceiling in megabytes
        show_preview: Whether image uploads get a preview handle

    Example:
        >>> FileConfig(allowed_formats=(".JPG", "png")).allowed_formats
        ('jpg', 'png')
    """

    allowed_formats: Tuple[str, ...] = ("jpg", "png")
    max_files: int = 1
    max_size_mb: float = 5
    show_preview: bool = True

    def __post_init__(self) -> None:
        formats = tuple(f.lower().lstrip(".") for f in self.allowed_formats)
        object.__setattr__(self, "allowed_formats", formats)
        if self.max_files < 1:
            raise ValueError(f"max_files must be at least 1: {self.max_files}")
        if self.max_size_mb <= 0:
            raise ValueError(f"max_size_mb must be positive: {self.max_size_mb}")

    @property
    def max_size_bytes(self) -> float:
        """Per-file byte ceiling (``max_size_mb * 1024 * 1024``)."""
        return self.max_size_mb * 1024 * 1024

    def allows(self, extension: str) -> bool:
        """Check a lower-cased extension against the allow list."""
        return extension.lower() in self.allowed_formats
