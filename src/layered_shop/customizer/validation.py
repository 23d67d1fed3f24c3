"""
Module: customizer.validation

Purpose:
    Decide whether the shopper's selections allow "add to cart": every
    required option must be satisfied and, for non-refundable products,
    the no-returns policy must be accepted.

Key Functions:
    - is_satisfied(): Per-option non-emptiness rule
    - is_valid(): Whole-form validity (fail fast)
    - missing_required(): Ids of unsatisfied required options

Dependencies:
    - core.models

Used By:
    - customizer.session
    - cart.line_item
"""

from __future__ import annotations

from typing import List, Mapping, Optional

from layered_shop.core.models.options import (
    ColorCustomization,
    CustomizationOption,
    FileCustomization,
    MaterialCustomization,
    ProductCustomization,
    SelectCustomization,
    SizeCustomization,
    StrengthCustomization,
    TextCustomization,
)
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


def is_satisfied(
    option: CustomizationOption,
    selection: Optional[SelectedCustomization],
) -> bool:
    """
    Check whether a selection satisfies an option.

    | option   | satisfied when                         |
    |----------|----------------------------------------|
    | color    | at least one colour chosen             |
    | material | a material chosen                      |
    | size     | a size chosen                          |
    | strength | a strength chosen                      |
    | text     | text present and non-blank after strip |
    | file     | at least one file accepted             |
    | select   | an entry chosen                        |

    A selection of the wrong variant never satisfies an option.

    Args:
        option: Option to check
        selection: Current selection for that option, or None

    Returns:
        True if the rule above holds
    """
    if selection is None:
        return False
    if isinstance(option, ColorCustomization):
        return isinstance(selection, ColorSelection) and len(selection.selected_colors) >= 1
    if isinstance(option, MaterialCustomization):
        return isinstance(selection, MaterialSelection) and selection.selected_material is not None
    if isinstance(option, SizeCustomization):
        return isinstance(selection, SizeSelection) and selection.selected_size is not None
    if isinstance(option, StrengthCustomization):
        return isinstance(selection, StrengthSelection) and selection.selected_strength is not None
    if isinstance(option, TextCustomization):
        return (
            isinstance(selection, TextSelection)
            and selection.text_value is not None
            and selection.text_value.strip() != ""
        )
    if isinstance(option, FileCustomization):
        return isinstance(selection, FileSelection) and len(selection.uploaded_files) >= 1
    if isinstance(option, SelectCustomization):
        return isinstance(selection, SelectSelection) and selection.selected_option is not None
    raise TypeError(f"Unsupported option type: {type(option).__name__}")


def is_valid(
    customization: ProductCustomization,
    selections: Mapping[str, SelectedCustomization],
    non_refundable_accepted: bool,
) -> bool:
    """
    Check whether the whole customization may be added to the cart.

    Required options are checked in display order and the first failure
    returns False. Consent is only demanded once every required option
    passes, and only for non-refundable products.

    Args:
        customization: Product schema
        selections: Selection store keyed by option id
        non_refundable_accepted: State of the consent checkbox

    Returns:
        True if add-to-cart is allowed

    Example:
        >>> is_valid(ProductCustomization.empty(), {}, False)
        True
    """
    for option in customization.required_options:
        if not is_satisfied(option, selections.get(option.id)):
            return False

    if customization.non_refundable and not non_refundable_accepted:
        return False

    return True


def missing_required(
    customization: ProductCustomization,
    selections: Mapping[str, SelectedCustomization],
) -> List[str]:
    """
    List required options that are not yet satisfied.

    Args:
        customization: Product schema
        selections: Selection store keyed by option id

    Returns:
        Option ids in display order, empty when all are satisfied
    """
    return [
        option.id
        for option in customization.required_options
        if not is_satisfied(option, selections.get(option.id))
    ]
