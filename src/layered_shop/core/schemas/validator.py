"""
Schema Validation Utilities

Validates wire JSON (the camelCase shape the product API stores and the
cart posts) before it is turned into models.

- Basic mode checks required fields, tags and that every type-specific
  block belongs to the option's type.
- Strict mode additionally runs the bundled JSON Schema documents
  through ``jsonschema``.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import jsonschema


OPTION_TYPES = ("color", "material", "size", "strength", "text", "file", "select")
PRICE_TYPES = ("add", "multiply", "free_limit")

# Type-specific option fields; a field is only legal on its own type.
OPTION_FIELDS_BY_TYPE: dict[str, tuple[str, ...]] = {
    "color": ("colorOptions", "multipleColors", "colorLimit"),
    "material": ("materialOptions",),
    "size": ("sizeOptions",),
    "strength": ("strengthOptions",),
    "text": ("textConfig", "fontOptions", "positionOptions"),
    "file": ("fileConfig",),
    "select": ("selectOptions",),
}

# Type-specific selection fields.
SELECTION_FIELDS_BY_TYPE: dict[str, tuple[str, ...]] = {
    "color": ("selectedColors",),
    "material": ("selectedMaterial",),
    "size": ("selectedSize",),
    "strength": ("selectedStrength",),
    "text": ("textValue", "fontFamily", "position"),
    "file": ("uploadedFiles",),
    "select": ("selectedOption",),
}


# Keys every entry of a choice list must carry.
CHOICE_FIELDS: dict[str, tuple[str, ...]] = {
    "colorOptions": ("name",),
    "materialOptions": ("name", "code"),
    "sizeOptions": ("name", "dimensions"),
    "strengthOptions": ("name", "fillPercentage"),
    "selectOptions": ("label", "value"),
}


# Load schemas lazily
_SCHEMAS: dict[str, dict] = {}


def _load_schema(name: str) -> dict:
    """Load a schema from the schemas directory."""
    if name not in _SCHEMAS:
        schema_path = Path(__file__).parent / f"{name}.schema.json"
        if not schema_path.exists():
            raise FileNotFoundError(f"Schema not found: {schema_path}")
        with open(schema_path, "r", encoding="utf-8") as f:
            _SCHEMAS[name] = json.load(f)
    return _SCHEMAS[name]


class ValidationError(Exception):
    """Raised when data fails schema validation."""

    def __init__(self, message: str, path: str = "", errors: list[str] | None = None):
        super().__init__(message)
        self.path = path
        self.errors = errors or []


def _run_jsonschema(data: Any, schema_name: str) -> None:
    schema = _load_schema(schema_name)
    try:
        jsonschema.validate(data, schema)
    except jsonschema.ValidationError as e:
        raise ValidationError(
            f"Schema validation failed: {e.message}",
            path=".".join(str(p) for p in e.absolute_path),
            errors=[e.message]
        ) from e


def _require(data: dict[str, Any], required: list[str], path: str) -> None:
    missing = [f for f in required if f not in data]
    if missing:
        raise ValidationError(
            f"Missing required fields: {missing}",
            path=path,
            errors=[f"Missing field: {f}" for f in missing]
        )


def _check_foreign_fields(
    data: dict[str, Any],
    kind: str,
    fields_by_type: dict[str, tuple[str, ...]],
    path: str,
) -> None:
    """Reject fields that belong to another option type."""
    foreign = [
        name
        for other, names in fields_by_type.items()
        if other != kind
        for name in names
        if name in data and name not in fields_by_type[kind]
    ]
    if foreign:
        raise ValidationError(
            f"Fields {foreign} are not valid for type {kind!r}",
            path=path,
            errors=[f"Foreign field: {name}" for name in foreign]
        )


def validate_customization(data: dict[str, Any], *, strict: bool = False) -> None:
    """
    Validate ProductCustomization JSON.

    Args:
        data: Customization dictionary to validate
        strict: If True, also validate against customization.schema.json

    Raises:
        ValidationError: If data is invalid
    """
    if not isinstance(data, dict):
        raise ValidationError("Customization must be a JSON object")

    _require(data, ["options", "nonRefundable"], "")

    if not isinstance(data["nonRefundable"], bool):
        raise ValidationError(
            f"Invalid nonRefundable: {data['nonRefundable']!r} (must be boolean)",
            path="nonRefundable"
        )

    options = data["options"]
    if not isinstance(options, list):
        raise ValidationError("options must be a list", path="options")

    seen: set[str] = set()
    for i, option in enumerate(options):
        path = f"options[{i}]"
        _validate_option(option, path)
        if option["id"] in seen:
            raise ValidationError(
                f"Duplicate option id: {option['id']!r}",
                path=f"{path}.id"
            )
        seen.add(option["id"])

    if strict:
        _run_jsonschema(data, "customization")


def _validate_option(data: Any, path: str) -> None:
    """Validate one option object."""
    if not isinstance(data, dict):
        raise ValidationError("Option must be a JSON object", path=path)

    _require(data, ["id", "type", "label", "required", "priceType"], path)

    kind = data["type"]
    if kind not in OPTION_TYPES:
        raise ValidationError(
            f"Invalid option type: {kind!r}",
            path=f"{path}.type"
        )

    if data["priceType"] not in PRICE_TYPES:
        raise ValidationError(
            f"Invalid priceType: {data['priceType']!r}",
            path=f"{path}.priceType"
        )

    if not isinstance(data["id"], str) or not data["id"]:
        raise ValidationError(
            f"Invalid option id: {data['id']!r}",
            path=f"{path}.id"
        )

    _check_foreign_fields(data, kind, OPTION_FIELDS_BY_TYPE, path)

    limit = data.get("colorLimit")
    if limit is not None and (not isinstance(limit, int) or limit < 1):
        raise ValidationError(
            f"Invalid colorLimit: {limit!r} (must be a positive integer)",
            path=f"{path}.colorLimit"
        )

    for field_name, required in CHOICE_FIELDS.items():
        _validate_choices(data.get(field_name, []), required, f"{path}.{field_name}")

    for i, strength in enumerate(data.get("strengthOptions", [])):
        fill = strength.get("fillPercentage")
        if not isinstance(fill, int) or not 0 <= fill <= 100:
            raise ValidationError(
                f"Invalid fillPercentage: {fill!r} (must be 0-100)",
                path=f"{path}.strengthOptions[{i}].fillPercentage"
            )

    for block in ("textConfig", "fileConfig"):
        if block in data and not isinstance(data[block], dict):
            raise ValidationError(f"{block} must be a JSON object", path=f"{path}.{block}")

    file_config = data.get("fileConfig")
    if file_config is not None:
        max_files = file_config.get("maxFiles")
        if not isinstance(max_files, int) or max_files < 1:
            raise ValidationError(
                f"Invalid maxFiles: {max_files!r} (must be >= 1)",
                path=f"{path}.fileConfig.maxFiles"
            )


def _validate_choices(entries: Any, required: tuple[str, ...], path: str) -> None:
    """Each choice must be an object carrying its required keys."""
    if not isinstance(entries, list):
        raise ValidationError("Choice list must be a JSON array", path=path)
    for i, entry in enumerate(entries):
        if not isinstance(entry, dict):
            raise ValidationError("Choice must be a JSON object", path=f"{path}[{i}]")
        _require(entry, list(required), f"{path}[{i}]")


def validate_selection(data: dict[str, Any], *, strict: bool = False) -> None:
    """
    Validate SelectedCustomization JSON.

    Args:
        data: Selection dictionary to validate
        strict: If True, also validate against selection.schema.json

    Raises:
        ValidationError: If data is invalid
    """
    if not isinstance(data, dict):
        raise ValidationError("Selection must be a JSON object")

    _require(data, ["optionId", "optionLabel", "type", "priceModifier"], "")

    kind = data["type"]
    if kind not in OPTION_TYPES:
        raise ValidationError(
            f"Invalid selection type: {kind!r}",
            path="type"
        )

    _check_foreign_fields(data, kind, SELECTION_FIELDS_BY_TYPE, "")

    if strict:
        _run_jsonschema(data, "selection")
