"""
Module: customizer

Purpose:
    Storefront-side evaluation of a product customization: turns the
    admin schema plus the shopper's selections into a price add-on, a
    validity flag and the non-refundable consent gate.

Key Functions:
    - compute_modifier(), total_price(): Price calculation
    - is_valid(), is_satisfied(), missing_required(): Validation

Key Classes:
    - CustomizationSession: Selection store for one product view
    - CustomizationState: Aggregated result of every interaction
    - ObjectUrlRegistry: Local upload handles
    - CandidateFile, Rejection, HandlerResult: Handler inputs/outputs
    - CustomizerConfig: Session configuration

Dependencies:
    - layered_shop.core.models: Schema and selection models
    - Pillow: Upload previews

Used By:
    - layered_shop.cart: Line items from session state
"""

from .config import CustomizerConfig, SUPPORTED_FILE_FORMATS
from .handlers import (
    CandidateFile,
    HandlerResult,
    OptionTypeError,
    Rejection,
    RejectionReason,
)
from .pricing import compute_modifier, total_price
from .resources import ObjectUrlRegistry
from .session import CustomizationSession, CustomizationState, UnknownOptionError
from .validation import is_satisfied, is_valid, missing_required

__all__ = [
    # Config
    "CustomizerConfig",
    "SUPPORTED_FILE_FORMATS",
    # Handlers
    "CandidateFile",
    "HandlerResult",
    "OptionTypeError",
    "Rejection",
    "RejectionReason",
    # Pricing
    "compute_modifier",
    "total_price",
    # Resources
    "ObjectUrlRegistry",
    # Session
    "CustomizationSession",
    "CustomizationState",
    "UnknownOptionError",
    # Validation
    "is_satisfied",
    "is_valid",
    "missing_required",
]
