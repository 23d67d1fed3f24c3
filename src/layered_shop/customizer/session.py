"""
Module: customizer.session

Purpose:
    Caller-owned selection store for one product view. Routes every
    shopper interaction to its handler, then synchronously recomputes the
    price and validity and notifies listeners with a CustomizationState.

    Open a session when the product view mounts and close it when the
    view is torn down; closing clears the store and revokes every upload
    handle the session minted.

Key Classes:
    - CustomizationState: Aggregation tuple handed to the page and cart
    - CustomizationSession: Selection store + notification
    - UnknownOptionError: Interaction for an option not in the schema

Dependencies:
    - customizer.handlers, customizer.pricing, customizer.validation
    - customizer.resources

Used By:
    - cart.line_item: Line items are built from a CustomizationState
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Callable, Dict, Iterable, List, Optional, Tuple, Type, TypeVar

from layered_shop.core.models.choices import (
    ColorOption,
    MaterialOption,
    Position,
    SelectOption,
    SizeOption,
    StrengthOption,
)
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
from layered_shop.core.models.selections import SelectedCustomization

from . import handlers
from .config import CustomizerConfig
from .handlers import CandidateFile, HandlerResult, OptionTypeError, Rejection
from .pricing import total_price
from .resources import ObjectUrlRegistry
from .validation import is_valid, missing_required

logger = logging.getLogger(__name__)

OptionT = TypeVar("OptionT", bound=CustomizationOption)
Listener = Callable[["CustomizationState"], None]


class UnknownOptionError(KeyError):
    """Raised when an interaction names an option id the schema lacks."""


@dataclass(frozen=True)
class CustomizationState:
    """
    Snapshot emitted after every interaction.

    Attributes:
        selections: Store contents in first-interaction order
        total_price: Sum of price modifiers across selections
        is_valid: Whether add-to-cart is allowed
        non_refundable_accepted: State of the consent checkbox
        rejected: Constraint outcomes of the triggering interaction
    """

    selections: Tuple[SelectedCustomization, ...]
    total_price: Decimal
    is_valid: bool
    non_refundable_accepted: bool
    rejected: Tuple[Rejection, ...] = ()

    def as_tuple(self) -> Tuple[List[SelectedCustomization], Decimal, bool, bool]:
        """The four-value notification shape (selections, price, valid, accepted)."""
        return (
            list(self.selections),
            self.total_price,
            self.is_valid,
            self.non_refundable_accepted,
        )

    def get(self, option_id: str) -> SelectedCustomization | None:
        for selection in self.selections:
            if selection.option_id == option_id:
                return selection
        return None


class CustomizationSession:
    """
    Selection store and aggregation for one product view.

    Example:
        >>> with CustomizationSession(schema) as session:
        ...     state = session.select_material("mat", petg)
        ...     state.total_price, state.is_valid
        (Decimal('5'), True)
    """

    def __init__(
        self,
        customization: ProductCustomization,
        *,
        on_change: Optional[Listener] = None,
        registry: Optional[ObjectUrlRegistry] = None,
        config: Optional[CustomizerConfig] = None,
    ) -> None:
        self.customization = customization
        self.config = config or CustomizerConfig()
        self._owns_registry = registry is None
        self.registry = registry or ObjectUrlRegistry(self.config.url_scheme)
        self._selections: Dict[str, SelectedCustomization] = {}
        self._non_refundable_accepted = False
        self._listeners: List[Listener] = []
        self._closed = False
        if on_change is not None:
            self._listeners.append(on_change)

    # ─────────────────────────────────────────────────────────────────────────
    # Store access
    # ─────────────────────────────────────────────────────────────────────────

    @property
    def selections(self) -> Dict[str, SelectedCustomization]:
        """Copy of the store keyed by option id."""
        return dict(self._selections)

    @property
    def non_refundable_accepted(self) -> bool:
        return self._non_refundable_accepted

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def state(self) -> CustomizationState:
        """Current aggregation without notifying listeners."""
        return self._aggregate(())

    def missing_required(self) -> List[str]:
        """Ids of required options still unsatisfied."""
        return missing_required(self.customization, self._selections)

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """
        Register a listener called with every new state.

        Returns:
            Callable that unregisters the listener
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    # ─────────────────────────────────────────────────────────────────────────
    # Interactions
    # ─────────────────────────────────────────────────────────────────────────

    def select_color(self, option_id: str, color: ColorOption) -> CustomizationState:
        option = self._option(option_id, ColorCustomization)
        return self._apply(handlers.select_color(option, self._previous(option_id), color))

    def select_material(self, option_id: str, material: MaterialOption) -> CustomizationState:
        option = self._option(option_id, MaterialCustomization)
        return self._apply(handlers.select_material(option, self._previous(option_id), material))

    def select_size(self, option_id: str, size: SizeOption) -> CustomizationState:
        option = self._option(option_id, SizeCustomization)
        return self._apply(handlers.select_size(option, self._previous(option_id), size))

    def select_strength(self, option_id: str, strength: StrengthOption) -> CustomizationState:
        option = self._option(option_id, StrengthCustomization)
        return self._apply(handlers.select_strength(option, self._previous(option_id), strength))

    def select_option(self, option_id: str, entry: SelectOption) -> CustomizationState:
        option = self._option(option_id, SelectCustomization)
        return self._apply(handlers.select_option(option, self._previous(option_id), entry))

    def set_text(self, option_id: str, text: str) -> CustomizationState:
        option = self._option(option_id, TextCustomization)
        return self._apply(handlers.set_text(option, self._previous(option_id), text))

    def set_font(self, option_id: str, font_family: str) -> CustomizationState:
        option = self._option(option_id, TextCustomization)
        return self._apply(handlers.set_font(option, self._previous(option_id), font_family))

    def set_position(self, option_id: str, position: Position | str) -> CustomizationState:
        option = self._option(option_id, TextCustomization)
        return self._apply(handlers.set_position(option, self._previous(option_id), position))

    def upload_files(self, option_id: str, candidates: Iterable[CandidateFile]) -> CustomizationState:
        option = self._option(option_id, FileCustomization)
        result = handlers.upload_files(
            option, self._previous(option_id), candidates, self.registry, self.config
        )
        return self._apply(result)

    def remove_file(self, option_id: str, file_id: str) -> CustomizationState:
        option = self._option(option_id, FileCustomization)
        return self._apply(
            handlers.remove_file(option, self._previous(option_id), file_id, self.registry)
        )

    def clear_selection(self, option_id: str) -> CustomizationState:
        """
        Drop the selection of one option ("no selection yet" again).

        Upload handles held by the dropped selection are revoked.
        """
        option = self._option(option_id, CustomizationOption)
        removed = self._selections.pop(option.id, None)
        self._release(removed)
        return self._notify(())

    def set_non_refundable_accepted(self, accepted: bool) -> CustomizationState:
        """Toggle the no-returns consent checkbox."""
        self._ensure_open()
        self._non_refundable_accepted = accepted
        return self._notify(())

    # ─────────────────────────────────────────────────────────────────────────
    # Lifecycle
    # ─────────────────────────────────────────────────────────────────────────

    def close(self) -> None:
        """
        Clear the store and revoke every handle the session owns.

        A registry passed in by the caller may hold handles of other
        sessions; only this session's uploads are revoked from it.
        """
        if self._closed:
            return
        for selection in self._selections.values():
            self._release(selection)
        released = self.registry.revoke_all() if self._owns_registry else 0
        self._selections.clear()
        self._listeners.clear()
        self._closed = True
        logger.info(f"Customization session closed ({released} orphan handles released)")

    def __enter__(self) -> CustomizationSession:
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    # ─────────────────────────────────────────────────────────────────────────
    # Internals
    # ─────────────────────────────────────────────────────────────────────────

    def _ensure_open(self) -> None:
        if self._closed:
            raise RuntimeError("Customization session is closed")

    def _option(self, option_id: str, option_cls: Type[OptionT]) -> OptionT:
        self._ensure_open()
        option = self.customization.get_option(option_id)
        if option is None:
            raise UnknownOptionError(option_id)
        if not isinstance(option, option_cls):
            raise OptionTypeError(
                f"Option {option_id} is {option.type}, not {option_cls.__name__}"
            )
        return option

    def _previous(self, option_id: str):
        return self._selections.get(option_id)

    def _release(self, selection: Optional[SelectedCustomization]) -> None:
        for uploaded in getattr(selection, "uploaded_files", ()):
            self.registry.revoke_many(uploaded.handles)

    def _apply(self, result: HandlerResult) -> CustomizationState:
        self._selections[result.selection.option_id] = result.selection
        return self._notify(result.rejected)

    def _aggregate(self, rejected: Tuple[Rejection, ...]) -> CustomizationState:
        selections = tuple(self._selections.values())
        return CustomizationState(
            selections=selections,
            total_price=total_price(selections),
            is_valid=is_valid(
                self.customization, self._selections, self._non_refundable_accepted
            ),
            non_refundable_accepted=self._non_refundable_accepted,
            rejected=rejected,
        )

    def _notify(self, rejected: Tuple[Rejection, ...]) -> CustomizationState:
        state = self._aggregate(rejected)
        for listener in list(self._listeners):
            listener(state)
        return state

    def __repr__(self) -> str:
        return (
            f"CustomizationSession(selections={len(self._selections)}, "
            f"live_handles={len(self.registry)}, closed={self._closed})"
        )
