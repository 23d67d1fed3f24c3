"""
Module: editor.config

Purpose:
    Configuration dataclass for the admin schema editor.
    Immutable configuration with validation on construction.

Key Classes:
    - EditorConfig: Defaults applied to new options and choices

Dependencies:
    - dataclasses (std)

Used By:
    - editor.schema_editor: New option and choice templates
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict

from layered_shop.core.models.choices import FileConfig, TextConfig
from layered_shop.core.models.options import OptionType


DEFAULT_LABELS: Dict[OptionType, str] = {
    OptionType.COLOR: "Colours",
    OptionType.MATERIAL: "Materials",
    OptionType.SIZE: "Sizes",
    OptionType.STRENGTH: "Strength",
    OptionType.TEXT: "Text / engraving",
    OptionType.FILE: "File / photo",
    OptionType.SELECT: "Choose option",
}


@dataclass(frozen=True)
class EditorConfig:
    """
    Configuration for the schema editor (immutable).

    Attributes:
        labels: Label given to a new option, per type
        fallback_label: Label used for a type missing from ``labels``
        text_config: TextConfig given to a new text option
        file_config: FileConfig given to a new file option
        color_limit: colorLimit given to a new colour option
        copy_suffix: Appended to the label of a duplicated option
        option_id_prefix: Prefix of generated option ids and select values

    Invariants:
        - option_id_prefix is non-empty
        - color_limit >= 1

    Example:
        >>> EditorConfig().label_for(OptionType.SIZE)
        'Sizes'
    """

    labels: Dict[OptionType, str] = field(default_factory=lambda: dict(DEFAULT_LABELS))
    fallback_label: str = "Option"
    text_config: TextConfig = TextConfig(placeholder="Enter text...")
    file_config: FileConfig = FileConfig()
    color_limit: int = 1
    copy_suffix: str = " (copy)"
    option_id_prefix: str = "opt"

    def __post_init__(self) -> None:
        """Validate configuration on construction."""
        if not self.option_id_prefix:
            raise ValueError("option_id_prefix cannot be empty")
        if self.color_limit < 1:
            raise ValueError(f"color_limit must be at least 1: {self.color_limit}")

    def label_for(self, option_type: OptionType | str) -> str:
        """
        Get the default label for a new option.

        Args:
            option_type: Option type tag

        Returns:
            Configured label, or ``fallback_label``
        """
        return self.labels.get(OptionType(option_type), self.fallback_label)
