"""
Module: cart.line_item

Purpose:
    Cart lines carrying a product's customization selections, and the
    in-memory cart that merges, edits and totals them.

Key Classes:
    - CartLineItem: One cart line (immutable)
    - Cart: Ordered collection of lines
    - CartError: Invalid cart operation

Key Functions:
    - line_item_from_state(): Add-to-cart gate for a CustomizationState
    - new_cart_item_id(): Cart line id generator

Dependencies:
    - layered_shop.core.models
    - layered_shop.customizer (pricing, session state)

Used By:
    - cart.storage: Persistence
"""

from __future__ import annotations

import logging
import time
import uuid
from dataclasses import dataclass, replace
from decimal import Decimal
from typing import Iterable, List, Optional, Sequence, Tuple

from layered_shop.core.models.choices import as_money
from layered_shop.core.models.options import ProductCustomization
from layered_shop.core.models.selections import SelectedCustomization, TextSelection
from layered_shop.customizer.pricing import total_price
from layered_shop.customizer.session import CustomizationState
from layered_shop.customizer.validation import is_valid

logger = logging.getLogger(__name__)


class CartError(Exception):
    """Raised for an invalid cart operation."""

    def __init__(self, message: str, cart_item_id: str = ""):
        super().__init__(message)
        self.cart_item_id = cart_item_id


def new_cart_item_id() -> str:
    """Unique cart line id (``cart_<ms>_<random>``)."""
    return f"cart_{int(time.time() * 1000)}_{uuid.uuid4().hex[:9]}"


@dataclass(frozen=True)
class CartLineItem:
    """
    One line in the cart.

    Attributes:
        product_id: Product identifier
        cart_item_id: Unique line id
        name: Product name
        price: Base unit price
        image: Product image reference
        quantity: Units on this line (>= 1)
        customizations: Selections captured at add-to-cart time
        non_refundable: Product's no-returns policy
        non_refundable_accepted: Shopper consent to that policy

    Invariants:
        - quantity >= 1
        - customization_price always equals the sum of the selections'
          price modifiers
    """

    product_id: str
    cart_item_id: str
    name: str
    price: Decimal
    image: Optional[str] = None
    quantity: int = 1
    customizations: Tuple[SelectedCustomization, ...] = ()
    non_refundable: bool = False
    non_refundable_accepted: bool = False

    def __post_init__(self) -> None:
        object.__setattr__(self, "price", as_money(self.price))
        object.__setattr__(self, "customizations", tuple(self.customizations))
        if self.quantity < 1:
            raise ValueError(f"quantity must be at least 1: {self.quantity}")

    # ─────────────────────────────────────────────────────────────────────────
    # Calculated Properties (NEVER stored)
    # ─────────────────────────────────────────────────────────────────────────

    @property
    def is_customized(self) -> bool:
        return bool(self.customizations)

    @property
    def customization_price(self) -> Decimal:
        """Sum of the selections' price modifiers."""
        return total_price(self.customizations)

    @property
    def unit_price(self) -> Decimal:
        return self.price + self.customization_price

    @property
    def line_total(self) -> Decimal:
        return self.unit_price * self.quantity

    def __repr__(self) -> str:
        return (
            f"CartLineItem({self.cart_item_id}, product={self.product_id}, "
            f"qty={self.quantity}, unit={self.unit_price})"
        )


def line_item_from_state(
    product_id: str,
    name: str,
    price: Decimal | float | int | str,
    state: Optional[CustomizationState] = None,
    *,
    customization: Optional[ProductCustomization] = None,
    image: Optional[str] = None,
) -> CartLineItem:
    """
    Build a cart line from a product and its customization state.

    Args:
        product_id: Product identifier
        name: Product name
        price: Base unit price
        state: Latest CustomizationState, None for products without options
        customization: Product schema (source of the no-returns policy),
            required whenever a state is given
        image: Product image reference

    Returns:
        New CartLineItem with quantity 1

    Raises:
        CartError: If the state does not allow add-to-cart, or a product
            with required options or a no-returns policy comes without one
    """
    if state is not None and customization is None:
        raise CartError(f"Customization state of product {product_id} needs its schema")
    if state is not None and not state.is_valid:
        raise CartError(f"Customization of product {product_id} is incomplete")
    if state is None and customization is not None and not is_valid(customization, {}, False):
        raise CartError(f"Product {product_id} must be customized before adding to cart")

    return CartLineItem(
        product_id=product_id,
        cart_item_id=new_cart_item_id(),
        name=name,
        price=as_money(price),
        image=image,
        customizations=state.selections if state is not None else (),
        non_refundable=customization.non_refundable if customization else False,
        non_refundable_accepted=state.non_refundable_accepted if state is not None else False,
    )


class Cart:
    """
    Ordered cart lines.

    Uncustomized lines for the same product merge their quantities;
    customized lines are always kept separate.

    Example:
        >>> cart = Cart()
        >>> line = cart.add_item(line_item_from_state("p1", "Vase", 20))
        >>> line = cart.add_item(line_item_from_state("p1", "Vase", 20))
        >>> cart.total_items, cart.total_price
        (2, Decimal('40'))
    """

    def __init__(self, items: Iterable[CartLineItem] = ()) -> None:
        self._items: List[CartLineItem] = list(items)

    @property
    def items(self) -> Tuple[CartLineItem, ...]:
        return tuple(self._items)

    @property
    def total_items(self) -> int:
        return sum(item.quantity for item in self._items)

    @property
    def total_price(self) -> Decimal:
        return sum((item.line_total for item in self._items), Decimal(0))

    def get(self, cart_item_id: str) -> CartLineItem:
        return self._items[self._index(cart_item_id)]

    def add_item(self, item: CartLineItem) -> CartLineItem:
        """
        Add a line, merging with an uncustomized line of the same product.

        Returns:
            The line now holding the item
        """
        if not item.is_customized:
            for index, existing in enumerate(self._items):
                if existing.product_id == item.product_id and not existing.is_customized:
                    merged = replace(existing, quantity=existing.quantity + item.quantity)
                    self._items[index] = merged
                    logger.debug(f"Merged {item.product_id} into {existing.cart_item_id}")
                    return merged
        self._items.append(item)
        logger.debug(f"Added cart line {item.cart_item_id} for {item.product_id}")
        return item

    def remove_item(self, cart_item_id: str) -> None:
        del self._items[self._index(cart_item_id)]

    def update_quantity(self, cart_item_id: str, quantity: int) -> Optional[CartLineItem]:
        """
        Set a line's quantity; zero or less removes the line.

        Returns:
            Updated line, or None when it was removed
        """
        index = self._index(cart_item_id)
        if quantity <= 0:
            del self._items[index]
            return None
        self._items[index] = replace(self._items[index], quantity=quantity)
        return self._items[index]

    def update_customizations(
        self, cart_item_id: str, customizations: Sequence[SelectedCustomization]
    ) -> CartLineItem:
        """Replace a line's selections; its customization price follows them."""
        index = self._index(cart_item_id)
        self._items[index] = replace(self._items[index], customizations=tuple(customizations))
        return self._items[index]

    def update_text(self, cart_item_id: str, option_id: str, text: str) -> CartLineItem:
        """
        Edit the text of one text selection on a line.

        Raises:
            CartError: If the line has no text selection for option_id
        """
        item = self.get(cart_item_id)
        customizations = list(item.customizations)
        for position, selection in enumerate(customizations):
            if selection.option_id == option_id and isinstance(selection, TextSelection):
                customizations[position] = replace(selection, text_value=text)
                return self.update_customizations(cart_item_id, customizations)
        raise CartError(
            f"Cart line has no text customization {option_id!r}",
            cart_item_id=cart_item_id
        )

    def clear(self) -> None:
        self._items.clear()

    def _index(self, cart_item_id: str) -> int:
        for index, item in enumerate(self._items):
            if item.cart_item_id == cart_item_id:
                return index
        raise CartError(f"Unknown cart item: {cart_item_id}", cart_item_id=cart_item_id)

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self):
        return iter(self._items)

    def __repr__(self) -> str:
        return f"Cart(lines={len(self._items)}, items={self.total_items}, total={self.total_price})"
