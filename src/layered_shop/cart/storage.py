"""
Module: cart.storage

Purpose:
    Cart persistence as a JSON file guarded by cross-process locks.
    Uses portalocker for Mac, Windows, and Linux compatibility.

Key Functions:
    - save_cart / load_cart: Whole-cart write and read
    - locked_update_cart: Read-modify-write under one exclusive lock
    - serialize_line_item / deserialize_line_item: camelCase wire shape
    - locked_file: Context manager for locked file access

Dependencies:
    - portalocker: Cross-platform file locking

Used By:
    - Storefront cart persistence
"""

from __future__ import annotations

import json
import logging
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Callable, Dict, Generator, List

import portalocker

from layered_shop.core.schemas.validator import ValidationError
from layered_shop.core.utils.serialization import deserialize_selection, serialize_selection

from .line_item import Cart, CartLineItem, new_cart_item_id

logger = logging.getLogger(__name__)

DEFAULT_CART_FILE = "layered-cart.json"


@contextmanager
def locked_file(
    path: Path,
    mode: str = 'r',
    lock_type: int = portalocker.LOCK_EX,
) -> Generator:
    """
    Context manager for cross-platform locked file access.

    Args:
        path: Path to file.
        mode: File open mode ('r', 'r+').
        lock_type: Lock type (LOCK_EX for exclusive, LOCK_SH for shared).

    Yields:
        Open file handle with lock held.
    """
    path.parent.mkdir(parents=True, exist_ok=True)

    # Ensure file exists for read modes
    if 'r' in mode and not path.exists():
        path.touch()

    with open(path, mode, encoding='utf-8') as f:
        portalocker.lock(f, lock_type)
        try:
            yield f
        finally:
            portalocker.unlock(f)


def _number(value) -> int | float:
    return int(value) if value == value.to_integral_value() else float(value)


def serialize_line_item(item: CartLineItem) -> Dict[str, Any]:
    """Serialize a line to its stored shape (customizationPrice is calculated)."""
    data: Dict[str, Any] = {
        "id": item.product_id,
        "cartItemId": item.cart_item_id,
        "name": item.name,
        "price": _number(item.price),
        "quantity": item.quantity,
        "customizations": [serialize_selection(c) for c in item.customizations],
        "customizationPrice": _number(item.customization_price),
        "nonRefundable": item.non_refundable,
        "nonRefundableAccepted": item.non_refundable_accepted,
    }
    if item.image is not None:
        data["image"] = item.image
    return data


def deserialize_line_item(data: Dict[str, Any]) -> CartLineItem:
    """
    Deserialize a stored line.

    Lines saved without a ``cartItemId`` get a fresh one.

    Raises:
        ValidationError: If a field is missing or invalid
    """
    try:
        return CartLineItem(
            product_id=data["id"],
            cart_item_id=data.get("cartItemId") or new_cart_item_id(),
            name=data["name"],
            price=data["price"],
            image=data.get("image"),
            quantity=data.get("quantity", 1),
            customizations=tuple(
                deserialize_selection(c) for c in data.get("customizations") or []
            ),
            non_refundable=data.get("nonRefundable", False),
            non_refundable_accepted=data.get("nonRefundableAccepted", False),
        )
    except (KeyError, ValueError) as e:
        raise ValidationError(
            f"Invalid cart line: {e}",
            path=str(data.get("cartItemId", "")),
            errors=[str(e)]
        ) from e


def _parse(content: str, path: Path) -> List[Dict[str, Any]]:
    if not content.strip():
        return []
    try:
        data = json.loads(content)
    except json.JSONDecodeError as e:
        raise ValidationError(f"Invalid cart JSON: {e}", path=str(path), errors=[str(e)]) from e
    if not isinstance(data, list):
        raise ValidationError("Cart file must hold a JSON list", path=str(path))
    return data


def load_cart(path: Path) -> Cart:
    """
    Load a cart; a missing or empty file is an empty cart.

    Args:
        path: Cart JSON file

    Raises:
        ValidationError: If the file content is not a valid cart
    """
    if not path.exists():
        return Cart()

    with locked_file(path, 'r', portalocker.LOCK_SH) as f:
        records = _parse(f.read(), path)

    cart = Cart(deserialize_line_item(record) for record in records)
    logger.debug(f"Loaded {len(cart)} cart lines from {path.name}")
    return cart


def save_cart(cart: Cart, path: Path) -> None:
    """
    Write the whole cart with an exclusive lock.

    Args:
        cart: Cart to persist
        path: Cart JSON file
    """
    records = [serialize_line_item(item) for item in cart]
    # Truncate under the lock
    with locked_file(path, 'r+', portalocker.LOCK_EX) as f:
        f.seek(0)
        f.truncate()
        json.dump(records, f, indent=2, ensure_ascii=False)

    logger.info(f"Saved cart ({len(records)} lines) to {path.name}")


def locked_update_cart(path: Path, modifier: Callable[[Cart], None]) -> Cart:
    """
    Read the cart, apply modifier, write back - all with exclusive lock.

    Args:
        path: Cart JSON file
        modifier: Function that mutates the loaded cart in place

    Returns:
        The cart that was written.

    Example:
        >>> locked_update_cart(path, lambda cart: cart.update_quantity(line_id, 3))
    """
    with locked_file(path, 'r+', portalocker.LOCK_EX) as f:
        f.seek(0)
        cart = Cart(deserialize_line_item(r) for r in _parse(f.read(), path))

        modifier(cart)

        f.seek(0)
        f.truncate()
        json.dump([serialize_line_item(item) for item in cart], f, indent=2, ensure_ascii=False)

    logger.debug(f"Updated cart at {path.name}")
    return cart
