"""
Module: cart

Purpose:
    Cart lines built from a customization state, cart totals and locked
    JSON persistence.
"""

from .line_item import Cart, CartError, CartLineItem, line_item_from_state, new_cart_item_id
from .storage import (
    DEFAULT_CART_FILE,
    deserialize_line_item,
    load_cart,
    locked_update_cart,
    save_cart,
    serialize_line_item,
)

__all__ = [
    "Cart",
    "CartError",
    "CartLineItem",
    "line_item_from_state",
    "new_cart_item_id",
    "DEFAULT_CART_FILE",
    "deserialize_line_item",
    "load_cart",
    "locked_update_cart",
    "save_cart",
    "serialize_line_item",
]
