"""
Module: editor.schema_editor

Purpose:
    Admin-side editor that builds a product's ProductCustomization: add,
    reorder, duplicate and remove options, edit each option's choices and
    configuration, and toggle the non-refundable policy.

    The editor keeps an ordered working list; models stay immutable and
    every edit swaps in a replaced option. ``build()`` produces the final
    schema and, in strict mode, refuses required options that offer
    nothing to pick.

Key Classes:
    - SchemaEditor: Working copy of one product's customization
    - SchemaError: Build-time consistency failure

Key Functions:
    - check_customization(): Strict build check
    - slugify_label(): Select entry value derived from its label

Dependencies:
    - layered_shop.core: Models and serialization
    - layered_shop.customizer: Error types and supported formats

Used By:
    - Admin product form (``to_form_field`` feeds the multipart write)
"""

from __future__ import annotations

import json
import logging
import re
import time
from dataclasses import fields, replace
from typing import Any, Callable, List, Optional, Tuple

from layered_shop.core.models.choices import (
    ColorOption,
    MaterialCode,
    MaterialOption,
    Position,
    SelectOption,
    SizeOption,
    StrengthOption,
)
from layered_shop.core.models.options import (
    OPTION_CLASSES,
    SELECTABLE_TYPES,
    CustomizationOption,
    FileCustomization,
    OptionType,
    ProductCustomization,
    TextCustomization,
    choices_of,
)
from layered_shop.core.utils.serialization import serialize_customization
from layered_shop.customizer.config import SUPPORTED_FILE_FORMATS
from layered_shop.customizer.handlers import OptionTypeError
from layered_shop.customizer.session import UnknownOptionError

from .config import EditorConfig

logger = logging.getLogger(__name__)

FORM_FIELD = "customization"


class SchemaError(Exception):
    """Raised when a schema cannot be built consistently."""

    def __init__(self, message: str, errors: list[str] | None = None):
        super().__init__(message)
        self.errors = errors or []


def check_customization(customization: ProductCustomization) -> None:
    """
    Check that every required selectable option offers at least one choice.

    A required colour, material, size, strength or select option with an
    empty list can never be satisfied, so the product could never be
    added to the cart.

    Args:
        customization: Schema to check

    Raises:
        SchemaError: Listing every offending option
    """
    errors = [
        f"Required option {option.id!r} ({option.type}) has no choices"
        for option in customization.required_options
        if option.type in SELECTABLE_TYPES and not choices_of(option)
    ]
    if errors:
        raise SchemaError(
            f"{len(errors)} required option(s) cannot be satisfied",
            errors=errors
        )


def slugify_label(label: str) -> str:
    """
    Derive a select entry value from its label.

    Example:
        >>> slugify_label("Gift Wrap  Red")
        'gift_wrap_red'
    """
    return re.sub(r"\s+", "_", label.lower())


class SchemaEditor:
    """
    Working copy of a product customization.

    Starting from ``None`` means the product has no customization; the
    first edit creates one and ``clear()`` removes it again.

    Example:
        >>> editor = SchemaEditor()
        >>> mat = editor.add_option("material")
        >>> mat = editor.add_choice(mat.id, MaterialOption("PETG", "petg", 5))
        >>> mat = editor.update_option(mat.id, required=True)
        >>> editor.build().required_options[0].label
        'Materials'
    """

    def __init__(
        self,
        customization: Optional[ProductCustomization] = None,
        *,
        config: Optional[EditorConfig] = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.config = config or EditorConfig()
        self._clock = clock
        self._removed = customization is None
        base = customization or ProductCustomization.empty()
        self._options: List[CustomizationOption] = list(base.options)
        self._non_refundable = base.non_refundable
        self._non_refundable_reason = base.non_refundable_reason

    # ─────────────────────────────────────────────────────────────────────────
    # Calculated Properties (NEVER stored)
    # ─────────────────────────────────────────────────────────────────────────

    @property
    def options(self) -> Tuple[CustomizationOption, ...]:
        return tuple(self._options)

    @property
    def removed(self) -> bool:
        """True when the product carries no customization at all."""
        return self._removed

    def get_option(self, option_id: str) -> CustomizationOption:
        return self._find(option_id)[1]

    # ─────────────────────────────────────────────────────────────────────────
    # Options
    # ─────────────────────────────────────────────────────────────────────────

    def add_option(
        self, option_type: OptionType | str, label: Optional[str] = None
    ) -> CustomizationOption:
        """
        Append a new option with the defaults for its type.

        Args:
            option_type: Type tag of the new option
            label: Label, defaults to the configured per-type label

        Returns:
            The new option (not required, priced as "add")
        """
        kind = OptionType(option_type)
        extra: dict[str, Any] = {}
        if kind is OptionType.COLOR:
            extra = {"multiple_colors": False, "color_limit": self.config.color_limit}
        elif kind is OptionType.TEXT:
            extra = {"text_config": self.config.text_config}
        elif kind is OptionType.FILE:
            extra = {"file_config": self.config.file_config}

        option = OPTION_CLASSES[kind](
            id=self._new_id(),
            label=label if label is not None else self.config.label_for(kind),
            **extra,
        )
        self._options.append(option)
        self._removed = False
        logger.debug(f"Added {kind} option {option.id}")
        return option

    def update_option(self, option_id: str, **changes: Any) -> CustomizationOption:
        """
        Merge changes into an option.

        Args:
            option_id: Option to update
            **changes: Field values (snake_case model fields)

        Returns:
            The replaced option

        Raises:
            UnknownOptionError: If option_id is not in the schema
            TypeError: If a field does not exist on the option's type
            ValueError: If the new id collides with another option
        """
        index, option = self._find(option_id)
        new_id = changes.get("id", option_id)
        if new_id != option_id and any(o.id == new_id for o in self._options):
            raise ValueError(f"Option id already in use: {new_id!r}")
        updated = self._replace(option, changes)
        return self._store(index, updated)

    def remove_option(self, option_id: str) -> bool:
        """Remove an option; returns False when the id is unknown."""
        for index, option in enumerate(self._options):
            if option.id == option_id:
                del self._options[index]
                self._removed = False
                logger.debug(f"Removed option {option_id}")
                return True
        logger.debug(f"Remove of unknown option {option_id} ignored")
        return False

    def duplicate_option(self, option_id: str) -> CustomizationOption:
        """
        Append a copy of an option under a new id.

        Choices are immutable, so sharing them between the original and
        the copy is equivalent to a deep copy.

        Returns:
            The copy, labelled with the configured copy suffix
        """
        _, option = self._find(option_id)
        copy = replace(
            option, id=self._new_id(), label=f"{option.label}{self.config.copy_suffix}"
        )
        self._options.append(copy)
        self._removed = False
        logger.debug(f"Duplicated option {option_id} as {copy.id}")
        return copy

    def move_option(self, index: int, direction: str) -> bool:
        """
        Swap the option at ``index`` with its neighbour.

        Args:
            index: Position of the option
            direction: "up" (towards 0) or "down"

        Returns:
            False when the move would leave the list (nothing changes)
        """
        if direction not in ("up", "down"):
            raise ValueError(f"direction must be 'up' or 'down': {direction!r}")
        target = index - 1 if direction == "up" else index + 1
        if not 0 <= index < len(self._options) or not 0 <= target < len(self._options):
            return False
        self._options[index], self._options[target] = (
            self._options[target],
            self._options[index],
        )
        self._removed = False
        return True

    def move_up(self, option_id: str) -> bool:
        return self.move_option(self._find(option_id)[0], "up")

    def move_down(self, option_id: str) -> bool:
        return self.move_option(self._find(option_id)[0], "down")

    # ─────────────────────────────────────────────────────────────────────────
    # Choices (colour, material, size, strength, select)
    # ─────────────────────────────────────────────────────────────────────────

    def add_choice(self, option_id: str, choice: Any = None) -> CustomizationOption:
        """
        Append a choice to a selectable option.

        Args:
            option_id: Selectable option
            choice: Choice model; defaults to a "New ..." template

        Returns:
            The replaced option
        """
        index, option = self._find(option_id)
        field_name = self._choices_field(option)
        if choice is None:
            choice = self._default_choice(option.type)
        choices = getattr(option, field_name) + (choice,)
        return self._store(index, replace(option, **{field_name: choices}))

    def update_choice(self, option_id: str, index: int, **changes: Any) -> CustomizationOption:
        """
        Merge changes into one choice.

        For select entries, a new label re-derives ``value`` unless a value
        is passed explicitly.

        Raises:
            IndexError: If there is no choice at ``index``
        """
        position, option = self._find(option_id)
        field_name = self._choices_field(option)
        choices = list(getattr(option, field_name))
        if not 0 <= index < len(choices):
            raise IndexError(f"Option {option_id} has no choice at index {index}")

        if option.type is OptionType.SELECT and "label" in changes and "value" not in changes:
            changes["value"] = slugify_label(changes["label"])
        choices[index] = replace(choices[index], **changes)
        return self._store(position, replace(option, **{field_name: tuple(choices)}))

    def remove_choice(self, option_id: str, index: int) -> CustomizationOption:
        """Remove one choice; an out-of-range index leaves the option unchanged."""
        position, option = self._find(option_id)
        field_name = self._choices_field(option)
        choices = tuple(c for i, c in enumerate(getattr(option, field_name)) if i != index)
        return self._store(position, replace(option, **{field_name: choices}))

    # ─────────────────────────────────────────────────────────────────────────
    # Text options
    # ─────────────────────────────────────────────────────────────────────────

    def update_text_config(self, option_id: str, **changes: Any) -> CustomizationOption:
        index, option = self._find_typed(option_id, TextCustomization)
        config = replace(option.text_config, **changes)
        return self._store(index, replace(option, text_config=config))

    def add_font(self, option_id: str, font: str) -> CustomizationOption:
        """Append a font family; blank names are ignored."""
        index, option = self._find_typed(option_id, TextCustomization)
        if not font:
            return option
        return self._store(index, replace(option, font_options=option.font_options + (font,)))

    def remove_font(self, option_id: str, font_index: int) -> CustomizationOption:
        index, option = self._find_typed(option_id, TextCustomization)
        fonts = tuple(f for i, f in enumerate(option.font_options) if i != font_index)
        return self._store(index, replace(option, font_options=fonts))

    def toggle_position(self, option_id: str, position: Position | str) -> CustomizationOption:
        """Offer a placement if it is not offered yet, withdraw it otherwise."""
        index, option = self._find_typed(option_id, TextCustomization)
        position = Position(position)
        if position in option.position_options:
            positions = tuple(p for p in option.position_options if p is not position)
        else:
            positions = option.position_options + (position,)
        return self._store(index, replace(option, position_options=positions))

    # ─────────────────────────────────────────────────────────────────────────
    # File options
    # ─────────────────────────────────────────────────────────────────────────

    def update_file_config(self, option_id: str, **changes: Any) -> CustomizationOption:
        index, option = self._find_typed(option_id, FileCustomization)
        config = replace(option.file_config, **changes)
        return self._store(index, replace(option, file_config=config))

    def toggle_format(self, option_id: str, file_format: str) -> CustomizationOption:
        """
        Allow or disallow an upload format.

        Raises:
            ValueError: If the format is not one of SUPPORTED_FILE_FORMATS
        """
        file_format = file_format.lower().lstrip(".")
        if file_format not in SUPPORTED_FILE_FORMATS:
            raise ValueError(
                f"Unsupported file format {file_format!r}; "
                f"choose from {', '.join(SUPPORTED_FILE_FORMATS)}"
            )
        index, option = self._find_typed(option_id, FileCustomization)
        formats = option.file_config.allowed_formats
        if file_format in formats:
            formats = tuple(f for f in formats if f != file_format)
        else:
            formats = formats + (file_format,)
        config = replace(option.file_config, allowed_formats=formats)
        return self._store(index, replace(option, file_config=config))

    # ─────────────────────────────────────────────────────────────────────────
    # Schema
    # ─────────────────────────────────────────────────────────────────────────

    def set_non_refundable(self, flag: bool, reason: Optional[str] = None) -> None:
        """Toggle the no-returns policy; ``reason`` replaces the text when given."""
        self._non_refundable = flag
        if reason is not None:
            self._non_refundable_reason = reason or None
        self._removed = False

    def clear(self) -> None:
        """Remove the customization from the product entirely."""
        self._options.clear()
        self._non_refundable = False
        self._non_refundable_reason = None
        self._removed = True
        logger.debug("Customization cleared")

    def build(self, strict: bool = True) -> ProductCustomization:
        """
        Produce the ProductCustomization.

        Args:
            strict: Refuse required selectable options without choices

        Raises:
            SchemaError: If strict and the schema cannot be satisfied
        """
        customization = ProductCustomization(
            options=tuple(self._options),
            non_refundable=self._non_refundable,
            non_refundable_reason=self._non_refundable_reason if self._non_refundable else None,
        )
        if strict:
            check_customization(customization)
        return customization

    def to_form_field(self, strict: bool = True) -> Optional[Tuple[str, str]]:
        """
        Multipart field for the product write.

        Returns:
            ("customization", json_text), or None when the product has no
            customization and the field must be omitted
        """
        if self._removed:
            return None
        data = serialize_customization(self.build(strict=strict))
        return (FORM_FIELD, json.dumps(data, ensure_ascii=False))

    # ─────────────────────────────────────────────────────────────────────────
    # Internals
    # ─────────────────────────────────────────────────────────────────────────

    def _new_id(self) -> str:
        stamp = int(self._clock() * 1000)
        taken = {o.id for o in self._options}
        while f"{self.config.option_id_prefix}_{stamp}" in taken:
            stamp += 1
        return f"{self.config.option_id_prefix}_{stamp}"

    def _find(self, option_id: str) -> Tuple[int, CustomizationOption]:
        for index, option in enumerate(self._options):
            if option.id == option_id:
                return index, option
        raise UnknownOptionError(option_id)

    def _find_typed(self, option_id: str, option_cls: type) -> Tuple[int, Any]:
        index, option = self._find(option_id)
        if not isinstance(option, option_cls):
            raise OptionTypeError(
                f"Option {option_id} is {option.type}, not {option_cls.__name__}"
            )
        return index, option

    def _choices_field(self, option: CustomizationOption) -> str:
        field_name = getattr(option, "choices_field", None)
        if field_name is None:
            raise OptionTypeError(f"Option {option.id} ({option.type}) has no choice list")
        return field_name

    def _default_choice(self, option_type: OptionType) -> Any:
        if option_type is OptionType.COLOR:
            return ColorOption(name="New colour", hex="#000000")
        if option_type is OptionType.MATERIAL:
            return MaterialOption(name="New material", code=MaterialCode.PLA)
        if option_type is OptionType.SIZE:
            return SizeOption(name="New size", dimensions="0x0mm")
        if option_type is OptionType.STRENGTH:
            return StrengthOption(name="New strength", fill_percentage=15)
        return SelectOption(
            label="New option",
            value=f"{self.config.option_id_prefix}_{int(self._clock() * 1000)}",
        )

    def _replace(self, option: CustomizationOption, changes: dict[str, Any]) -> CustomizationOption:
        allowed = {f.name for f in fields(option)}
        unknown = sorted(set(changes) - allowed)
        if unknown:
            raise TypeError(f"{option.type} option has no field(s) {unknown}")
        return replace(option, **changes)

    def _store(self, index: int, option: CustomizationOption) -> CustomizationOption:
        self._options[index] = option
        self._removed = False
        return option

    def __repr__(self) -> str:
        return (
            f"SchemaEditor(options={len(self._options)}, "
            f"non_refundable={self._non_refundable}, removed={self._removed})"
        )
