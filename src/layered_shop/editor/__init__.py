"""
Module: editor

Purpose:
    Admin-side construction of a product's customization schema.

Key Classes:
    - SchemaEditor: Ordered working copy with per-type sub-editors
    - SchemaError: Strict build failure
    - EditorConfig: Defaults for new options and choices
"""

from .config import DEFAULT_LABELS, EditorConfig
from .schema_editor import SchemaEditor, SchemaError, check_customization, slugify_label

__all__ = [
    "DEFAULT_LABELS",
    "EditorConfig",
    "SchemaEditor",
    "SchemaError",
    "check_customization",
    "slugify_label",
]
