"""
Serialization Utilities

Provides to/from JSON utilities for the customization models.

The wire format is the camelCase JSON the product API stores in a
product's ``customization`` field and the cart persists with each line.

- Clean separation: ``serialize_*`` and ``deserialize_*`` functions
- Validation via schemas before deserialization
- Optional fields are omitted when unset
- ``priceModifier`` on a selection is always written (it is calculated)
  and ignored on load
"""

from __future__ import annotations

import json
from decimal import Decimal
from pathlib import Path
from typing import Any

from ..models.choices import (
    ColorOption,
    FileConfig,
    MaterialOption,
    SelectOption,
    SizeOption,
    StrengthOption,
    TextConfig,
)
from ..models.options import (
    ColorCustomization,
    CustomizationOption,
    FileCustomization,
    MaterialCustomization,
    OPTION_CLASSES,
    OptionType,
    ProductCustomization,
    SelectCustomization,
    SizeCustomization,
    StrengthCustomization,
    TextCustomization,
)
from ..models.selections import (
    ColorSelection,
    FileSelection,
    MaterialSelection,
    SELECTION_CLASSES,
    SelectedCustomization,
    SelectSelection,
    SizeSelection,
    StrengthSelection,
    TextSelection,
    UploadedFile,
)
from ..schemas.validator import validate_customization, validate_selection, ValidationError


def _number(value: Decimal | float | int) -> int | float:
    """JSON number for a Decimal: int when integral, float otherwise."""
    value = Decimal(str(value)) if not isinstance(value, Decimal) else value
    if value == value.to_integral_value():
        return int(value)
    return float(value)


def _put(data: dict[str, Any], key: str, value: Any) -> None:
    """Set an optional key, skipping None."""
    if value is not None:
        data[key] = value


# ─────────────────────────────────────────────────────────────────────────────
# Choice Serialization
# ─────────────────────────────────────────────────────────────────────────────

def _serialize_price(data: dict[str, Any], choice: Any) -> dict[str, Any]:
    if choice.price_modifier is not None:
        data["priceModifier"] = _number(choice.price_modifier)
    return data


def serialize_color(color: ColorOption) -> dict[str, Any]:
    data: dict[str, Any] = {"name": color.name}
    _put(data, "hex", color.hex)
    _put(data, "image", color.image)
    return _serialize_price(data, color)


def serialize_material(material: MaterialOption) -> dict[str, Any]:
    return _serialize_price({"name": material.name, "code": material.code.value}, material)


def serialize_size(size: SizeOption) -> dict[str, Any]:
    return _serialize_price({"name": size.name, "dimensions": size.dimensions}, size)


def serialize_strength(strength: StrengthOption) -> dict[str, Any]:
    return _serialize_price(
        {"name": strength.name, "fillPercentage": strength.fill_percentage}, strength
    )


def serialize_select_entry(entry: SelectOption) -> dict[str, Any]:
    return _serialize_price({"label": entry.label, "value": entry.value}, entry)


def _deserialize_color(data: dict[str, Any]) -> ColorOption:
    return ColorOption(
        name=data["name"],
        hex=data.get("hex"),
        image=data.get("image"),
        price_modifier=data.get("priceModifier"),
    )


def _deserialize_material(data: dict[str, Any]) -> MaterialOption:
    return MaterialOption(
        name=data["name"],
        code=data["code"],
        price_modifier=data.get("priceModifier"),
    )


def _deserialize_size(data: dict[str, Any]) -> SizeOption:
    return SizeOption(
        name=data["name"],
        dimensions=data["dimensions"],
        price_modifier=data.get("priceModifier"),
    )


def _deserialize_strength(data: dict[str, Any]) -> StrengthOption:
    return StrengthOption(
        name=data["name"],
        fill_percentage=data["fillPercentage"],
        price_modifier=data.get("priceModifier"),
    )


def _deserialize_select_entry(data: dict[str, Any]) -> SelectOption:
    return SelectOption(
        label=data["label"],
        value=data["value"],
        price_modifier=data.get("priceModifier"),
    )


def serialize_text_config(config: TextConfig) -> dict[str, Any]:
    data: dict[str, Any] = {
        "maxLength": config.max_length,
        "allowEmoji": config.allow_emoji,
        "allowProfanity": config.allow_profanity,
    }
    _put(data, "placeholder", config.placeholder)
    return data


def serialize_file_config(config: FileConfig) -> dict[str, Any]:
    return {
        "allowedFormats": list(config.allowed_formats),
        "maxFiles": config.max_files,
        "maxSizeMB": _number(config.max_size_mb),
        "showPreview": config.show_preview,
    }


def _deserialize_text_config(data: dict[str, Any]) -> TextConfig:
    defaults = TextConfig()
    return TextConfig(
        max_length=data.get("maxLength", defaults.max_length),
        allow_emoji=data.get("allowEmoji", defaults.allow_emoji),
        allow_profanity=data.get("allowProfanity", defaults.allow_profanity),
        placeholder=data.get("placeholder"),
    )


def _deserialize_file_config(data: dict[str, Any]) -> FileConfig:
    defaults = FileConfig()
    return FileConfig(
        allowed_formats=tuple(data.get("allowedFormats", defaults.allowed_formats)),
        max_files=data.get("maxFiles", defaults.max_files),
        max_size_mb=data.get("maxSizeMB", defaults.max_size_mb),
        show_preview=data.get("showPreview", defaults.show_preview),
    )


# ─────────────────────────────────────────────────────────────────────────────
# Option Serialization
# ─────────────────────────────────────────────────────────────────────────────

def serialize_option(option: CustomizationOption) -> dict[str, Any]:
    """
    Serialize one option to its wire dictionary.

    Only the fields belonging to the option's type are written.

    Args:
        option: Any option variant

    Returns:
        Dictionary suitable for JSON serialization
    """
    data: dict[str, Any] = {
        "id": option.id,
        "type": option.type.value,
        "label": option.label,
        "required": option.required,
        "priceType": option.price_type.value,
    }
    _put(data, "description", option.description)
    _put(data, "freeLimit", option.free_limit)

    if isinstance(option, ColorCustomization):
        data["colorOptions"] = [serialize_color(c) for c in option.color_options]
        data["multipleColors"] = option.multiple_colors
        _put(data, "colorLimit", option.color_limit)
    elif isinstance(option, MaterialCustomization):
        data["materialOptions"] = [serialize_material(m) for m in option.material_options]
    elif isinstance(option, SizeCustomization):
        data["sizeOptions"] = [serialize_size(s) for s in option.size_options]
    elif isinstance(option, StrengthCustomization):
        data["strengthOptions"] = [serialize_strength(s) for s in option.strength_options]
    elif isinstance(option, SelectCustomization):
        data["selectOptions"] = [serialize_select_entry(e) for e in option.select_options]
    elif isinstance(option, TextCustomization):
        data["textConfig"] = serialize_text_config(option.text_config)
        if option.font_options:
            data["fontOptions"] = list(option.font_options)
        if option.position_options:
            data["positionOptions"] = [p.value for p in option.position_options]
    elif isinstance(option, FileCustomization):
        data["fileConfig"] = serialize_file_config(option.file_config)

    return data


def deserialize_option(data: dict[str, Any]) -> CustomizationOption:
    """
    Deserialize one option from its wire dictionary.

    Args:
        data: Option dictionary (already validated)

    Returns:
        Typed option variant matching ``data["type"]``

    Raises:
        ValueError: If the type tag or a field value is invalid
    """
    kind = OptionType(data["type"])
    common: dict[str, Any] = {
        "id": data["id"],
        "label": data["label"],
        "required": data.get("required", False),
        "description": data.get("description"),
        "price_type": data.get("priceType", "add"),
        "free_limit": data.get("freeLimit"),
    }
    option_cls = OPTION_CLASSES[kind]

    if kind is OptionType.COLOR:
        return option_cls(
            **common,
            color_options=tuple(_deserialize_color(c) for c in data.get("colorOptions", [])),
            multiple_colors=data.get("multipleColors", False),
            color_limit=data.get("colorLimit"),
        )
    if kind is OptionType.MATERIAL:
        return option_cls(
            **common,
            material_options=tuple(
                _deserialize_material(m) for m in data.get("materialOptions", [])
            ),
        )
    if kind is OptionType.SIZE:
        return option_cls(
            **common,
            size_options=tuple(_deserialize_size(s) for s in data.get("sizeOptions", [])),
        )
    if kind is OptionType.STRENGTH:
        return option_cls(
            **common,
            strength_options=tuple(
                _deserialize_strength(s) for s in data.get("strengthOptions", [])
            ),
        )
    if kind is OptionType.SELECT:
        return option_cls(
            **common,
            select_options=tuple(
                _deserialize_select_entry(e) for e in data.get("selectOptions", [])
            ),
        )
    if kind is OptionType.TEXT:
        return option_cls(
            **common,
            text_config=_deserialize_text_config(data.get("textConfig", {})),
            font_options=tuple(data.get("fontOptions", [])),
            position_options=tuple(data.get("positionOptions", [])),
        )
    return option_cls(
        **common,
        file_config=_deserialize_file_config(data.get("fileConfig", {})),
    )


# ─────────────────────────────────────────────────────────────────────────────
# Customization Serialization
# ─────────────────────────────────────────────────────────────────────────────

def serialize_customization(customization: ProductCustomization) -> dict[str, Any]:
    """
    Serialize a ProductCustomization to a dictionary.

    The output can be written to JSON and will pass schema validation.

    Args:
        customization: Schema to serialize

    Returns:
        Dictionary suitable for JSON serialization
    """
    data: dict[str, Any] = {
        "options": [serialize_option(o) for o in customization.options],
        "nonRefundable": customization.non_refundable,
    }
    _put(data, "nonRefundableReason", customization.non_refundable_reason)
    return data


def deserialize_customization(
    data: dict[str, Any],
    *,
    validate: bool = True,
    strict: bool = False,
) -> ProductCustomization:
    """
    Deserialize a ProductCustomization from a dictionary.

    Args:
        data: Dictionary from JSON
        validate: Whether to validate against schema first
        strict: Also run the JSON Schema when validating

    Returns:
        ProductCustomization instance

    Raises:
        ValidationError: If validate=True and data is invalid
        ValueError: If data cannot be parsed
    """
    if validate:
        validate_customization(data, strict=strict)

    options = []
    for i, option in enumerate(data.get("options", [])):
        try:
            options.append(deserialize_option(option))
        except (KeyError, TypeError, AttributeError) as e:
            raise ValidationError(
                f"Malformed option: {e!r}",
                path=f"options[{i}]",
                errors=[str(e)]
            ) from e

    return ProductCustomization(
        options=tuple(options),
        non_refundable=data.get("nonRefundable", False),
        non_refundable_reason=data.get("nonRefundableReason"),
    )


# ─────────────────────────────────────────────────────────────────────────────
# Selection Serialization
# ─────────────────────────────────────────────────────────────────────────────

def serialize_uploaded_file(uploaded: UploadedFile) -> dict[str, Any]:
    data: dict[str, Any] = {
        "id": uploaded.id,
        "name": uploaded.name,
        "url": uploaded.url,
        "size": uploaded.size,
    }
    _put(data, "preview", uploaded.preview)
    return data


def _deserialize_uploaded_file(data: dict[str, Any]) -> UploadedFile:
    return UploadedFile(
        id=data["id"],
        name=data["name"],
        url=data["url"],
        size=data["size"],
        preview=data.get("preview"),
    )


def serialize_selection(selection: SelectedCustomization) -> dict[str, Any]:
    """
    Serialize a selection to a dictionary.

    Args:
        selection: Any selection variant

    Returns:
        Dictionary suitable for JSON serialization

    Note:
        priceModifier is written from the calculated property.
    """
    data: dict[str, Any] = {
        "optionId": selection.option_id,
        "optionLabel": selection.option_label,
        "type": selection.type.value,
        "priceModifier": _number(selection.price_modifier),
    }

    if isinstance(selection, ColorSelection):
        data["selectedColors"] = [serialize_color(c) for c in selection.selected_colors]
    elif isinstance(selection, MaterialSelection):
        data["selectedMaterial"] = serialize_material(selection.selected_material)
    elif isinstance(selection, SizeSelection):
        data["selectedSize"] = serialize_size(selection.selected_size)
    elif isinstance(selection, StrengthSelection):
        data["selectedStrength"] = serialize_strength(selection.selected_strength)
    elif isinstance(selection, SelectSelection):
        data["selectedOption"] = serialize_select_entry(selection.selected_option)
    elif isinstance(selection, TextSelection):
        _put(data, "textValue", selection.text_value)
        _put(data, "fontFamily", selection.font_family)
        _put(data, "position", selection.position.value if selection.position else None)
    elif isinstance(selection, FileSelection):
        data["uploadedFiles"] = [serialize_uploaded_file(f) for f in selection.uploaded_files]

    return data


def deserialize_selection(
    data: dict[str, Any],
    *,
    validate: bool = True,
) -> SelectedCustomization:
    """
    Deserialize a selection from a dictionary.

    Args:
        data: Dictionary from JSON
        validate: Whether to validate first

    Returns:
        Typed selection variant; priceModifier is recalculated, not read

    Raises:
        ValidationError: If validate=True and data is invalid
        ValueError: If data cannot be parsed
    """
    if validate:
        validate_selection(data, strict=False)

    kind = OptionType(data["type"])
    common = {"option_id": data["optionId"], "option_label": data["optionLabel"]}
    selection_cls = SELECTION_CLASSES[kind]

    try:
        if kind is OptionType.COLOR:
            return selection_cls(
                **common,
                selected_colors=tuple(
                    _deserialize_color(c) for c in data.get("selectedColors", [])
                ),
            )
        if kind is OptionType.MATERIAL:
            return selection_cls(
                **common, selected_material=_deserialize_material(data["selectedMaterial"])
            )
        if kind is OptionType.SIZE:
            return selection_cls(**common, selected_size=_deserialize_size(data["selectedSize"]))
        if kind is OptionType.STRENGTH:
            return selection_cls(
                **common, selected_strength=_deserialize_strength(data["selectedStrength"])
            )
        if kind is OptionType.SELECT:
            return selection_cls(
                **common, selected_option=_deserialize_select_entry(data["selectedOption"])
            )
    except KeyError as e:
        raise ValidationError(
            f"Selection of type {kind.value!r} is missing {e.args[0]!r}",
            path=data["optionId"],
            errors=[f"Missing field: {e.args[0]}"]
        ) from e

    if kind is OptionType.TEXT:
        return selection_cls(
            **common,
            text_value=data.get("textValue"),
            font_family=data.get("fontFamily"),
            position=data.get("position"),
        )
    return selection_cls(
        **common,
        uploaded_files=tuple(
            _deserialize_uploaded_file(f) for f in data.get("uploadedFiles", [])
        ),
    )


# ─────────────────────────────────────────────────────────────────────────────
# JSON File Utilities
# ─────────────────────────────────────────────────────────────────────────────

def load_customization_json(
    path: Path,
    *,
    validate: bool = True,
    strict: bool = False,
) -> ProductCustomization:
    """
    Load a customization schema from a JSON file.

    Args:
        path: Path to the JSON file
        validate: Whether to validate
        strict: Also run the JSON Schema

    Returns:
        ProductCustomization instance

    Raises:
        FileNotFoundError: If file doesn't exist
        ValidationError: If the file is not valid JSON or fails validation
    """
    if not path.exists():
        raise FileNotFoundError(f"Customization file not found: {path}")

    with open(path, "r", encoding="utf-8") as f:
        try:
            data = json.load(f)
        except json.JSONDecodeError as e:
            raise ValidationError(
                f"Invalid JSON: {e}",
                path=str(path),
                errors=[str(e)]
            ) from e

    return deserialize_customization(data, validate=validate, strict=strict)


def save_customization_json(customization: ProductCustomization, path: Path) -> None:
    """
    Save a customization schema to a JSON file.

    Args:
        customization: Schema to save
        path: Output path
    """
    path.parent.mkdir(parents=True, exist_ok=True)

    data = serialize_customization(customization)

    with open(path, "w", encoding="utf-8") as f:
        json.dump(data, f, indent=2, ensure_ascii=False)
