"""
Module: customizer.pricing

Purpose:
    Price modifier calculator. Maps a selection to the signed price delta
    contributed by its chosen values, and a store of selections to the
    cumulative add-on price of the order line.

Key Functions:
    - compute_modifier(): Price delta of one selection
    - total_price(): Sum of modifiers across a selection store

Dependencies:
    - decimal (std)
    - core.models.selections

Used By:
    - core.models.selections.SelectedCustomization.price_modifier
    - customizer.session
    - cart.line_item
"""

from __future__ import annotations

import logging
from decimal import Decimal
from typing import Iterable

from layered_shop.core.models.options import CustomizationOption, PriceType
from layered_shop.core.models.selections import (
    ColorSelection,
    FileSelection,
    MaterialSelection,
    SelectedCustomization,
    SelectSelection,
    SizeSelection,
    StrengthSelection,
    TextSelection,
)

logger = logging.getLogger(__name__)

ZERO = Decimal(0)


def compute_modifier(selection: SelectedCustomization) -> Decimal:
    """
    Calculate the price delta of one selection.

    Colours contribute the sum of every chosen swatch; material, size,
    strength and select choices contribute their own modifier. Text and
    file selections never carry a price.

    Args:
        selection: Any selection variant

    Returns:
        Signed Decimal delta, zero when nothing priced is chosen

    Example:
        >>> compute_modifier(MaterialSelection("mat", "Material", petg))
        Decimal('5')
    """
    if isinstance(selection, ColorSelection):
        return sum((c.price_delta for c in selection.selected_colors), ZERO)
    if isinstance(selection, MaterialSelection):
        return selection.selected_material.price_delta
    if isinstance(selection, SizeSelection):
        return selection.selected_size.price_delta
    if isinstance(selection, StrengthSelection):
        return selection.selected_strength.price_delta
    if isinstance(selection, SelectSelection):
        return selection.selected_option.price_delta
    if isinstance(selection, (TextSelection, FileSelection)):
        return ZERO
    raise TypeError(f"Unsupported selection type: {type(selection).__name__}")


def total_price(selections: Iterable[SelectedCustomization]) -> Decimal:
    """
    Calculate the add-on price of a whole selection store.

    Always summed from scratch; there is no running total to drift.

    Args:
        selections: Current store contents

    Returns:
        Sum of price_modifier across all selections
    """
    return sum((s.price_modifier for s in selections), ZERO)


def effective_price_type(option: CustomizationOption) -> PriceType:
    """
    Get the pricing mode actually applied to an option.

    MULTIPLY and FREE_LIMIT are accepted in schemas but have no agreed
    semantics yet, so every option is priced additively.

    Args:
        option: Option being priced

    Returns:
        Always PriceType.ADD
    """
    if option.price_type is not PriceType.ADD:
        logger.debug(
            f"Option {option.id}: price_type {option.price_type} evaluated as add"
        )
    return PriceType.ADD
