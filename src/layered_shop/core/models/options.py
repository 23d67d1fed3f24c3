"""
Module: options

Purpose:
    Provides the customization schema: one CustomizationOption subclass per
    option type (a closed tagged union) and the ProductCustomization that
    groups them with the product's refund policy.

Key Classes:
    - OptionType: The seven option tags
    - PriceType: Declared pricing mode (only "add" is evaluated)
    - CustomizationOption: Common option header
    - ColorCustomization, MaterialCustomization, SizeCustomization,
      StrengthCustomization, TextCustomization, FileCustomization,
      SelectCustomization: Type-specific variants
    - ProductCustomization: Full schema attached to a product

Dependencies:
    - dataclasses (std)
    - .choices

Used By:
    - customizer (pricing, validation, handlers, session)
    - editor.schema_editor
    - core.utils.serialization
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import ClassVar, Dict, Optional, Tuple, Type

from .choices import (
    ColorOption,
    FileConfig,
    MaterialOption,
    Position,
    SelectOption,
    SizeOption,
    StrengthOption,
    TextConfig,
)


class OptionType(str, Enum):
    """Tag selecting the option variant and its selection handler."""
    COLOR = "color"
    MATERIAL = "material"
    SIZE = "size"
    STRENGTH = "strength"
    TEXT = "text"
    FILE = "file"
    SELECT = "select"

    def __str__(self) -> str:
        return self.value


class PriceType(str, Enum):
    """
    Declared pricing mode of an option.

    Only ADD is evaluated; MULTIPLY and FREE_LIMIT are accepted on the wire
    and evaluated as ADD.
    """
    ADD = "add"
    MULTIPLY = "multiply"
    FREE_LIMIT = "free_limit"

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class CustomizationOption:
    """
    Common header of every customization option.

    Never instantiated directly; use one of the typed subclasses so that
    the option's configuration always matches its ``type``.

    Attributes:
        id: Stable identifier, unique within a schema
        label: Display label ("Colour", "Engraving text")
        required: Whether a satisfying selection is needed before checkout
        description: Optional help text
        price_type: Declared pricing mode
        free_limit: Threshold carried for FREE_LIMIT pricing (not evaluated)
    """

    type: ClassVar[OptionType]

    id: str
    label: str
    required: bool = False
    description: Optional[str] = None
    price_type: PriceType = PriceType.ADD
    free_limit: Optional[int] = None

    def __post_init__(self) -> None:
        if type(self) is CustomizationOption:
            raise TypeError("CustomizationOption is abstract; use a typed subclass")
        if not self.id:
            raise ValueError("Option id cannot be empty")
        object.__setattr__(self, "price_type", PriceType(self.price_type))

    def _freeze(self, *names: str) -> None:
        """Store sequence fields as tuples so options stay hashable."""
        for name in names:
            object.__setattr__(self, name, tuple(getattr(self, name)))


@dataclass(frozen=True)
class ColorCustomization(CustomizationOption):
    """
    Colour option, single or multiple choice.

    Attributes:
        color_options: Available swatches
        multiple_colors: Whether several colours may be chosen
        color_limit: Maximum colours in multi-choice mode (None = unlimited)
    """

    type: ClassVar[OptionType] = OptionType.COLOR
    choices_field: ClassVar[str] = "color_options"

    color_options: Tuple[ColorOption, ...] = ()
    multiple_colors: bool = False
    color_limit: Optional[int] = None

    def __post_init__(self) -> None:
        super().__post_init__()
        self._freeze("color_options")
        if self.color_limit is not None and self.color_limit < 1:
            raise ValueError(f"color_limit must be at least 1: {self.color_limit}")


@dataclass(frozen=True)
class MaterialCustomization(CustomizationOption):
    """Material option (single choice)."""

    type: ClassVar[OptionType] = OptionType.MATERIAL
    choices_field: ClassVar[str] = "material_options"

    material_options: Tuple[MaterialOption, ...] = ()

    def __post_init__(self) -> None:
        super().__post_init__()
        self._freeze("material_options")


@dataclass(frozen=True)
class SizeCustomization(CustomizationOption):
    """Size option (single choice)."""

    type: ClassVar[OptionType] = OptionType.SIZE
    choices_field: ClassVar[str] = "size_options"

    size_options: Tuple[SizeOption, ...] = ()

    def __post_init__(self) -> None:
        super().__post_init__()
        self._freeze("size_options")


@dataclass(frozen=True)
class StrengthCustomization(CustomizationOption):
    """Print strength option (single choice)."""

    type: ClassVar[OptionType] = OptionType.STRENGTH
    choices_field: ClassVar[str] = "strength_options"

    strength_options: Tuple[StrengthOption, ...] = ()

    def __post_init__(self) -> None:
        super().__post_init__()
        self._freeze("strength_options")


@dataclass(frozen=True)
class TextCustomization(CustomizationOption):
    """
    Free text option (engraving, printed name).

    Attributes:
        text_config: Length and content constraints
        font_options: Font families offered (empty = storefront default)
        position_options: Placements offered (empty = not selectable)
    """

    type: ClassVar[OptionType] = OptionType.TEXT

    text_config: TextConfig = TextConfig()
    font_options: Tuple[str, ...] = ()
    position_options: Tuple[Position, ...] = ()

    def __post_init__(self) -> None:
        super().__post_init__()
        self._freeze("font_options")
        object.__setattr__(
            self, "position_options", tuple(Position(p) for p in self.position_options)
        )


@dataclass(frozen=True)
class FileCustomization(CustomizationOption):
    """Upload option (photos, logos, reference files)."""

    type: ClassVar[OptionType] = OptionType.FILE

    file_config: FileConfig = FileConfig()


@dataclass(frozen=True)
class SelectCustomization(CustomizationOption):
    """Generic labelled single choice."""

    type: ClassVar[OptionType] = OptionType.SELECT
    choices_field: ClassVar[str] = "select_options"

    select_options: Tuple[SelectOption, ...] = ()

    def __post_init__(self) -> None:
        super().__post_init__()
        self._freeze("select_options")


OPTION_CLASSES: Dict[OptionType, Type[CustomizationOption]] = {
    OptionType.COLOR: ColorCustomization,
    OptionType.MATERIAL: MaterialCustomization,
    OptionType.SIZE: SizeCustomization,
    OptionType.STRENGTH: StrengthCustomization,
    OptionType.TEXT: TextCustomization,
    OptionType.FILE: FileCustomization,
    OptionType.SELECT: SelectCustomization,
}

# Option types whose satisfaction depends on picking from an admin list.
SELECTABLE_TYPES = frozenset({
    OptionType.COLOR,
    OptionType.MATERIAL,
    OptionType.SIZE,
    OptionType.STRENGTH,
    OptionType.SELECT,
})


def choices_of(option: CustomizationOption) -> Tuple[object, ...]:
    """
    Get the admin-listed choices of a selectable option.

    Args:
        option: Any option variant

    Returns:
        Tuple of choices, empty for text and file options
    """
    field_name = getattr(option, "choices_field", None)
    if field_name is None:
        return ()
    return getattr(option, field_name)


@dataclass(frozen=True)
class ProductCustomization:
    """
    Full customization schema attached to a product.

    Attributes:
        options: Options in display order
        non_refundable: Whether buyers must accept a no-returns policy
        non_refundable_reason: Optional explanation shown with the consent box

    Invariants:
        - option ids are unique

    Example:
        >>> schema = ProductCustomization(options=(
        ...     MaterialCustomization(id="mat", label="Material", required=True),
        ... ))
        >>> [o.id for o in schema.required_options]
        ['mat']
    """

    options: Tuple[CustomizationOption, ...] = ()
    non_refundable: bool = False
    non_refundable_reason: Optional[str] = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "options", tuple(self.options))
        seen = set()
        duplicates = set()
        for option in self.options:
            if option.id in seen:
                duplicates.add(option.id)
            seen.add(option.id)
        if duplicates:
            raise ValueError(f"Duplicate option ids: {sorted(duplicates)}")

    @classmethod
    def empty(cls) -> ProductCustomization:
        """Schema with no options and a standard refund policy."""
        return cls()

    @property
    def required_options(self) -> Tuple[CustomizationOption, ...]:
        """Options that must be satisfied, in display order."""
        return tuple(o for o in self.options if o.required)

    def get_option(self, option_id: str) -> CustomizationOption | None:
        """
        Find an option by id.

        Args:
            option_id: Option identifier

        Returns:
            Matching option or None
        """
        for option in self.options:
            if option.id == option_id:
                return option
        return None

    def __repr__(self) -> str:
        """Concise representation for debugging."""
        return (
            f"ProductCustomization(options={len(self.options)}, "
            f"required={len(self.required_options)}, "
            f"non_refundable={self.non_refundable})"
        )
