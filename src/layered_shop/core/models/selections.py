"""
Module: selections

Purpose:
    Provides the shopper's answer to one option. Each option type has its
    own selection variant so a selection can only ever carry the fields
    that belong to its option.

Key Classes:
    - SelectedCustomization: Common selection header (price is calculated)
    - ColorSelection, MaterialSelection, SizeSelection, StrengthSelection,
      TextSelection, FileSelection, SelectSelection: Typed variants
    - UploadedFile: An accepted upload with its local handles

Dependencies:
    - dataclasses (std)
    - .choices, .options
    - customizer.pricing (lazily, for price_modifier)

Used By:
    - customizer (pricing, validation, handlers, session)
    - cart.line_item
    - core.utils.serialization
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import ClassVar, Dict, Optional, Tuple, Type

from .choices import (
    ColorOption,
    MaterialOption,
    Position,
    SelectOption,
    SizeOption,
    StrengthOption,
)
from .options import OptionType


@dataclass(frozen=True)
class UploadedFile:
    """
    An accepted upload.

    ``url`` and ``preview`` are handles issued by the session's
    ObjectUrlRegistry; they are only meaningful inside that session.

    Attributes:
        id: Locally generated id, unique within the session
        name: Original file name
        url: Handle to the raw bytes
        size: Size in bytes
        preview: Handle to a preview image (image uploads only)
    """

    id: str
    name: str
    url: str
    size: int
    preview: Optional[str] = None

    @property
    def handles(self) -> Tuple[str, ...]:
        """All registry handles owned by this file."""
        return (self.url,) if self.preview is None else (self.url, self.preview)


@dataclass(frozen=True)
class SelectedCustomization:
    """
    Common header of a shopper's selection for one option.

    ``type`` is fixed per variant and ``price_modifier`` is always
    calculated from the selection content, so neither can drift from the
    data they describe.

    Attributes:
        option_id: Id of the option this answers
        option_label: Option label copied for display downstream
    """

    type: ClassVar[OptionType]

    option_id: str
    option_label: str

    def __post_init__(self) -> None:
        if type(self) is SelectedCustomization:
            raise TypeError("SelectedCustomization is abstract; use a typed subclass")

    # ─────────────────────────────────────────────────────────────────────────
    # Calculated Properties (NEVER stored)
    # ─────────────────────────────────────────────────────────────────────────

    @property
    def price_modifier(self) -> Decimal:
        """Sum of the modifiers contributed by the current content."""
        from layered_shop.customizer.pricing import compute_modifier

        return compute_modifier(self)


@dataclass(frozen=True)
class ColorSelection(SelectedCustomization):
    """Chosen colours, in the order they were picked."""

    type: ClassVar[OptionType] = OptionType.COLOR

    selected_colors: Tuple[ColorOption, ...] = ()

    def __post_init__(self) -> None:
        super().__post_init__()
        object.__setattr__(self, "selected_colors", tuple(self.selected_colors))

    def contains(self, name: str) -> bool:
        """Check whether a colour with this name is chosen."""
        return any(c.name == name for c in self.selected_colors)

    @property
    def color_names(self) -> Tuple[str, ...]:
        """Names of chosen colours."""
        return tuple(c.name for c in self.selected_colors)


@dataclass(frozen=True)
class MaterialSelection(SelectedCustomization):
    type: ClassVar[OptionType] = OptionType.MATERIAL

    selected_material: MaterialOption


@dataclass(frozen=True)
class SizeSelection(SelectedCustomization):
    type: ClassVar[OptionType] = OptionType.SIZE

    selected_size: SizeOption


@dataclass(frozen=True)
class StrengthSelection(SelectedCustomization):
    type: ClassVar[OptionType] = OptionType.STRENGTH

    selected_strength: StrengthOption


@dataclass(frozen=True)
class SelectSelection(SelectedCustomization):
    type: ClassVar[OptionType] = OptionType.SELECT

    selected_option: SelectOption


@dataclass(frozen=True)
class TextSelection(SelectedCustomization):
    """
    Text answer. Each field is set independently; a font or position change
    never clears the text and vice versa.
    """

    type: ClassVar[OptionType] = OptionType.TEXT

    text_value: Optional[str] = None
    font_family: Optional[str] = None
    position: Optional[Position] = None

    def __post_init__(self) -> None:
        super().__post_init__()
        if self.position is not None:
            object.__setattr__(self, "position", Position(self.position))


@dataclass(frozen=True)
class FileSelection(SelectedCustomization):
    """Accepted uploads, in acceptance order."""

    type: ClassVar[OptionType] = OptionType.FILE

    uploaded_files: Tuple[UploadedFile, ...] = ()

    def __post_init__(self) -> None:
        super().__post_init__()
        object.__setattr__(self, "uploaded_files", tuple(self.uploaded_files))

    def get_file(self, file_id: str) -> UploadedFile | None:
        """
        Find an uploaded file by id.

        Args:
            file_id: UploadedFile.id

        Returns:
            Matching file or None
        """
        for uploaded in self.uploaded_files:
            if uploaded.id == file_id:
                return uploaded
        return None


SELECTION_CLASSES: Dict[OptionType, Type[SelectedCustomization]] = {
    OptionType.COLOR: ColorSelection,
    OptionType.MATERIAL: MaterialSelection,
    OptionType.SIZE: SizeSelection,
    OptionType.STRENGTH: StrengthSelection,
    OptionType.TEXT: TextSelection,
    OptionType.FILE: FileSelection,
    OptionType.SELECT: SelectSelection,
}
