"""
Module: customizer.handlers

Purpose:
    Type-specific selection handlers. Each handler takes an option, the
    previous selection for it (or None) and an interaction payload, and
    returns the next selection. Inputs are never mutated.

    Out-of-constraint input (colour limit hit, disallowed or oversized
    file, file count exceeded, text over the length limit) is not an error:
    the handler leaves the selection as the constraint allows and reports
    a Rejection so the storefront can decide whether to tell the shopper.

Key Functions:
    - select_color(): Replace (single) or toggle within limit (multiple)
    - select_material(), select_size(), select_strength(), select_option():
      Unconditional replace
    - set_text(), set_font(), set_position(): Partial merge of text fields
    - upload_files(): Filter and accept a batch of candidate files
    - remove_file(): Drop an accepted file and release its handles

Key Classes:
    - CandidateFile: A file the shopper is trying to attach
    - Rejection / RejectionReason: Reportable constraint outcome
    - HandlerResult: Next selection plus its rejections
    - OptionTypeError: Handler called for the wrong option variant

Dependencies:
    - Pillow: Preview thumbnails for image uploads
    - core.models
    - customizer.resources, customizer.config

Used By:
    - customizer.session
"""

from __future__ import annotations

import io
import logging
import mimetypes
import time
import uuid
from dataclasses import dataclass, replace
from enum import Enum
from typing import Iterable, List, Optional, Tuple

from PIL import Image, UnidentifiedImageError

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
    UploadedFile,
)

from .config import CustomizerConfig
from .resources import ObjectUrlRegistry

logger = logging.getLogger(__name__)


class OptionTypeError(TypeError):
    """Raised when a handler receives an option or selection of another type."""


class RejectionReason(str, Enum):
    """Why an interaction did not (fully) apply."""
    COLOR_LIMIT_REACHED = "color_limit_reached"
    DISALLOWED_FORMAT = "disallowed_format"
    FILE_TOO_LARGE = "file_too_large"
    FILE_LIMIT_REACHED = "file_limit_reached"
    TEXT_TRUNCATED = "text_truncated"

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class Rejection:
    """
    A constraint outcome reported to the caller instead of raised.

    Attributes:
        option_id: Option the interaction targeted
        reason: Constraint that applied
        subject: What was rejected (colour name, file name, text)
    """

    option_id: str
    reason: RejectionReason
    subject: str

    def __str__(self) -> str:
        return f"{self.option_id}: {self.reason} ({self.subject})"


@dataclass(frozen=True)
class HandlerResult:
    """Next selection for one option and what was rejected producing it."""

    selection: SelectedCustomization
    rejected: Tuple[Rejection, ...] = ()


@dataclass(frozen=True)
class CandidateFile:
    """
    A file offered for upload.

    Attributes:
        name: Original file name including extension
        data: Raw bytes
        media_type: MIME type; guessed from the name when omitted
    """

    name: str
    data: bytes
    media_type: Optional[str] = None

    @property
    def size(self) -> int:
        return len(self.data)

    @property
    def extension(self) -> str:
        """Lower-cased text after the last dot (the whole name if there is none)."""
        return self.name.rsplit(".", 1)[-1].lower()

    @property
    def resolved_media_type(self) -> Optional[str]:
        if self.media_type:
            return self.media_type
        guessed, _ = mimetypes.guess_type(self.name)
        return guessed

    @property
    def is_image(self) -> bool:
        media_type = self.resolved_media_type
        return media_type is not None and media_type.startswith("image/")


def _expect(option: CustomizationOption, option_cls: type, previous, selection_cls: type) -> None:
    if not isinstance(option, option_cls):
        raise OptionTypeError(
            f"Option {option.id} is {option.type}, expected {option_cls.type}"
        )
    if previous is not None and not isinstance(previous, selection_cls):
        raise OptionTypeError(
            f"Selection for {option.id} is {previous.type}, expected {option_cls.type}"
        )


# ─────────────────────────────────────────────────────────────────────────────
# Colour
# ─────────────────────────────────────────────────────────────────────────────

def select_color(
    option: ColorCustomization,
    previous: Optional[ColorSelection],
    color: ColorOption,
) -> HandlerResult:
    """
    Apply a colour click.

    Single choice replaces the selection. Multiple choice toggles by name:
    a chosen colour is removed, an unchosen one is appended unless the
    selection already holds ``color_limit`` colours.

    Args:
        option: Colour option
        previous: Current selection or None
        color: Clicked swatch

    Returns:
        HandlerResult; on a limit hit the selection is unchanged and a
        COLOR_LIMIT_REACHED rejection is reported

    Example:
        >>> r1 = select_color(multi, None, red)
        >>> r2 = select_color(multi, r1.selection, red)
        >>> r2.selection.selected_colors
        ()
    """
    _expect(option, ColorCustomization, previous, ColorSelection)
    current = previous.selected_colors if previous is not None else ()

    if not option.multiple_colors:
        colors: Tuple[ColorOption, ...] = (color,)
    elif any(c.name == color.name for c in current):
        colors = tuple(c for c in current if c.name != color.name)
    elif option.color_limit is not None and len(current) >= option.color_limit:
        logger.debug(f"Option {option.id}: colour limit {option.color_limit} reached")
        return HandlerResult(
            selection=ColorSelection(option.id, option.label, current),
            rejected=(Rejection(option.id, RejectionReason.COLOR_LIMIT_REACHED, color.name),),
        )
    else:
        colors = current + (color,)

    return HandlerResult(selection=ColorSelection(option.id, option.label, colors))


# ─────────────────────────────────────────────────────────────────────────────
# Single-choice replace
# ─────────────────────────────────────────────────────────────────────────────

def select_material(
    option: MaterialCustomization,
    previous: Optional[MaterialSelection],
    material: MaterialOption,
) -> HandlerResult:
    """Replace the chosen material."""
    _expect(option, MaterialCustomization, previous, MaterialSelection)
    return HandlerResult(selection=MaterialSelection(option.id, option.label, material))


def select_size(
    option: SizeCustomization,
    previous: Optional[SizeSelection],
    size: SizeOption,
) -> HandlerResult:
    """Replace the chosen size."""
    _expect(option, SizeCustomization, previous, SizeSelection)
    return HandlerResult(selection=SizeSelection(option.id, option.label, size))


def select_strength(
    option: StrengthCustomization,
    previous: Optional[StrengthSelection],
    strength: StrengthOption,
) -> HandlerResult:
    """Replace the chosen strength."""
    _expect(option, StrengthCustomization, previous, StrengthSelection)
    return HandlerResult(selection=StrengthSelection(option.id, option.label, strength))


def select_option(
    option: SelectCustomization,
    previous: Optional[SelectSelection],
    entry: SelectOption,
) -> HandlerResult:
    """Replace the chosen select entry."""
    _expect(option, SelectCustomization, previous, SelectSelection)
    return HandlerResult(selection=SelectSelection(option.id, option.label, entry))


# ─────────────────────────────────────────────────────────────────────────────
# Text (partial merge)
# ─────────────────────────────────────────────────────────────────────────────

def _merge_text(option: TextCustomization, previous: Optional[TextSelection], **changes) -> TextSelection:
    if previous is None:
        return TextSelection(option.id, option.label, **changes)
    return replace(previous, option_label=option.label, **changes)


def set_text(
    option: TextCustomization,
    previous: Optional[TextSelection],
    text: str,
) -> HandlerResult:
    """
    Set the text value, keeping font and position.

    Text longer than ``text_config.max_length`` is cut to the limit, the
    same as the storefront input field does, and a TEXT_TRUNCATED
    rejection is reported.
    """
    _expect(option, TextCustomization, previous, TextSelection)
    max_length = option.text_config.max_length
    rejected: Tuple[Rejection, ...] = ()
    if len(text) > max_length:
        rejected = (Rejection(option.id, RejectionReason.TEXT_TRUNCATED, text),)
        text = text[:max_length]
    return HandlerResult(
        selection=_merge_text(option, previous, text_value=text),
        rejected=rejected,
    )


def set_font(
    option: TextCustomization,
    previous: Optional[TextSelection],
    font_family: str,
) -> HandlerResult:
    """Set the font family, keeping text and position."""
    _expect(option, TextCustomization, previous, TextSelection)
    return HandlerResult(selection=_merge_text(option, previous, font_family=font_family))


def set_position(
    option: TextCustomization,
    previous: Optional[TextSelection],
    position: Position | str,
) -> HandlerResult:
    """Set the text placement, keeping text and font."""
    _expect(option, TextCustomization, previous, TextSelection)
    return HandlerResult(selection=_merge_text(option, previous, position=Position(position)))


# ─────────────────────────────────────────────────────────────────────────────
# Files
# ─────────────────────────────────────────────────────────────────────────────

def _new_file_id(config: CustomizerConfig) -> str:
    return f"{config.file_id_prefix}_{int(time.time() * 1000)}_{uuid.uuid4().hex[:9]}"


def _make_preview(candidate: CandidateFile, config: CustomizerConfig) -> Tuple[bytes, Optional[str]]:
    """
    Build preview bytes for an image upload.

    Images Pillow can decode are thumbnailed to ``preview_max_px``;
    anything else (e.g. HEIC without a plugin) is previewed as-is.
    """
    try:
        with Image.open(io.BytesIO(candidate.data)) as img:
            img.thumbnail(config.preview_size)
            buffer = io.BytesIO()
            img.save(buffer, format=config.preview_format)
    except (UnidentifiedImageError, Image.DecompressionBombError, OSError) as e:
        logger.warning(f"Preview for {candidate.name} uses original bytes: {e}")
        return candidate.data, candidate.resolved_media_type
    return buffer.getvalue(), f"image/{config.preview_format.lower()}"


def _accept(
    candidate: CandidateFile,
    registry: ObjectUrlRegistry,
    config: CustomizerConfig,
) -> UploadedFile:
    preview_data, preview_type = (
        _make_preview(candidate, config) if candidate.is_image else (None, None)
    )
    url = registry.create(candidate.data, candidate.resolved_media_type)
    preview = registry.create(preview_data, preview_type) if preview_data is not None else None
    return UploadedFile(
        id=_new_file_id(config),
        name=candidate.name,
        url=url,
        size=candidate.size,
        preview=preview,
    )


def upload_files(
    option: FileCustomization,
    previous: Optional[FileSelection],
    candidates: Iterable[CandidateFile],
    registry: ObjectUrlRegistry,
    config: CustomizerConfig | None = None,
) -> HandlerResult:
    """
    Accept a batch of candidate files in input order.

    Each candidate is rejected if its extension is not allowed, if it is
    larger than ``max_size_mb``, or if ``max_files`` files are already
    accepted (counting earlier candidates of the same batch). Accepted
    files get a fresh id, a handle to their bytes, and a preview handle
    when they are images.

    Args:
        option: File option
        previous: Current selection or None
        candidates: Files to attach
        registry: Session registry that owns the new handles
        config: Customizer config (defaults used when None)

    Returns:
        HandlerResult with previously accepted files followed by new ones

    Example:
        >>> result = upload_files(photo, None, [CandidateFile("a.png", data)], registry)
        >>> len(result.selection.uploaded_files)
        1
    """
    _expect(option, FileCustomization, previous, FileSelection)
    config = config or CustomizerConfig()
    file_config = option.file_config
    current = previous.uploaded_files if previous is not None else ()

    accepted: List[UploadedFile] = []
    rejected: List[Rejection] = []
    for candidate in candidates:
        if not file_config.allows(candidate.extension):
            reason = RejectionReason.DISALLOWED_FORMAT
        elif candidate.size > file_config.max_size_bytes:
            reason = RejectionReason.FILE_TOO_LARGE
        elif len(current) + len(accepted) >= file_config.max_files:
            reason = RejectionReason.FILE_LIMIT_REACHED
        else:
            accepted.append(_accept(candidate, registry, config))
            continue
        logger.debug(f"Option {option.id}: rejected {candidate.name} ({reason})")
        rejected.append(Rejection(option.id, reason, candidate.name))

    return HandlerResult(
        selection=FileSelection(option.id, option.label, current + tuple(accepted)),
        rejected=tuple(rejected),
    )


def remove_file(
    option: FileCustomization,
    previous: Optional[FileSelection],
    file_id: str,
    registry: ObjectUrlRegistry,
) -> HandlerResult:
    """
    Remove an accepted file and revoke its url and preview handles.

    Unknown ids leave the selection unchanged.
    """
    _expect(option, FileCustomization, previous, FileSelection)
    current = previous.uploaded_files if previous is not None else ()

    kept = []
    for uploaded in current:
        if uploaded.id == file_id:
            registry.revoke_many(uploaded.handles)
        else:
            kept.append(uploaded)
    if len(kept) == len(current):
        logger.debug(f"Option {option.id}: no uploaded file {file_id}")

    return HandlerResult(selection=FileSelection(option.id, option.label, tuple(kept)))
