"""
Module: customizer.config

Purpose:
    Configuration dataclass for the storefront customizer.
    Immutable configuration with validation on construction.

Key Classes:
    - CustomizerConfig: Upload id and handle settings

Dependencies:
    - dataclasses (std)

Used By:
    - customizer.handlers: Upload acceptance
    - customizer.resources: Handle minting
    - customizer.session: Session wiring
"""

from __future__ import annotations

from dataclasses import dataclass

# Formats the admin editor offers for file options.
SUPPORTED_FILE_FORMATS = ("jpg", "png", "heic", "webp", "gif", "pdf")


@dataclass(frozen=True)
class CustomizerConfig:
    """
    Configuration for a customization session (immutable).

    Attributes:
        file_id_prefix: Prefix of generated UploadedFile ids
        url_scheme: Scheme of handles minted by ObjectUrlRegistry
        preview_max_px: Longest edge of generated preview thumbnails
        preview_format: Pillow format name used to encode previews

    Invariants:
        - file_id_prefix and url_scheme are non-empty
        - preview_max_px > 0

    Example:
        >>> config = CustomizerConfig(preview_max_px=256)
        >>> config.preview_size
        (256, 256)
    """

    file_id_prefix: str = "file"
    url_scheme: str = "blob"
    preview_max_px: int = 512
    preview_format: str = "PNG"

    def __post_init__(self) -> None:
        """Validate configuration on construction."""
        if not self.file_id_prefix:
            raise ValueError("file_id_prefix cannot be empty")
        if not self.url_scheme:
            raise ValueError("url_scheme cannot be empty")
        if self.preview_max_px <= 0:
            raise ValueError(f"preview_max_px must be positive: {self.preview_max_px}")

    @property
    def preview_size(self) -> tuple[int, int]:
        """Bounding box passed to Image.thumbnail."""
        return (self.preview_max_px, self.preview_max_px)
