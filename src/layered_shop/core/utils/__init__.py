"""
Utils Package

Serialization between the models and the camelCase wire format.
"""

from .serialization import (
    serialize_customization,
    deserialize_customization,
    serialize_option,
    deserialize_option,
    serialize_selection,
    deserialize_selection,
    serialize_uploaded_file,
    load_customization_json,
    save_customization_json,
)

__all__ = [
    "serialize_customization",
    "deserialize_customization",
    "serialize_option",
    "deserialize_option",
    "serialize_selection",
    "deserialize_selection",
    "serialize_uploaded_file",
    "load_customization_json",
    "save_customization_json",
]
