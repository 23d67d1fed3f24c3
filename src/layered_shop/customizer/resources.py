"""
Module: customizer.resources

Purpose:
    Process-local handles for uploaded bytes (the object-URL equivalent).
    Handles are acquired when a file is accepted and must be released when
    the file leaves the selection or the session ends.

Key Classes:
    - LocalObject: Bytes and media type behind a handle
    - ObjectUrlRegistry: Mints, resolves and revokes handles

Dependencies:
    - uuid (std)

Used By:
    - customizer.handlers: upload_files / remove_file
    - customizer.session: Revocation on close
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from typing import Dict, Iterable, Optional

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LocalObject:
    """Payload referenced by a handle."""

    data: bytes
    media_type: Optional[str] = None

    @property
    def size(self) -> int:
        return len(self.data)


class ObjectUrlRegistry:
    """
    Registry of live local handles.

    Use as a context manager (or call ``close``) so every handle minted
    inside the scope is revoked on exit, including on error paths.

    Example:
        >>> with ObjectUrlRegistry() as registry:
        ...     url = registry.create(b"...", "image/png")
        ...     registry.resolve(url).media_type
        'image/png'
    """

    def __init__(self, scheme: str = "blob") -> None:
        self._scheme = scheme
        self._objects: Dict[str, LocalObject] = {}

    def create(self, data: bytes, media_type: Optional[str] = None) -> str:
        """
        Mint a handle for a payload.

        Args:
            data: Raw bytes
            media_type: MIME type, if known

        Returns:
            New handle string, unique for the registry lifetime
        """
        url = f"{self._scheme}:layered/{uuid.uuid4()}"
        self._objects[url] = LocalObject(data=data, media_type=media_type)
        return url

    def resolve(self, url: str) -> LocalObject:
        """
        Get the payload behind a live handle.

        Raises:
            KeyError: If the handle was never issued or is revoked
        """
        try:
            return self._objects[url]
        except KeyError:
            raise KeyError(f"Handle is not live: {url}") from None

    def revoke(self, url: str) -> bool:
        """
        Release a handle.

        Args:
            url: Handle to release

        Returns:
            True if the handle was live, False if already released
        """
        if self._objects.pop(url, None) is None:
            logger.warning(f"Revoke of unknown or already revoked handle {url}")
            return False
        logger.debug(f"Revoked {url}")
        return True

    def revoke_many(self, urls: Iterable[str]) -> int:
        """Release several handles; returns how many were live."""
        return sum(1 for url in urls if self.revoke(url))

    def revoke_all(self) -> int:
        """
        Release every live handle.

        Returns:
            Number of handles released
        """
        count = len(self._objects)
        self._objects.clear()
        if count:
            logger.debug(f"Revoked {count} remaining handles")
        return count

    def close(self) -> None:
        self.revoke_all()

    def __enter__(self) -> ObjectUrlRegistry:
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def __contains__(self, url: object) -> bool:
        return url in self._objects

    def __len__(self) -> int:
        return len(self._objects)

    def __repr__(self) -> str:
        return f"ObjectUrlRegistry(live={len(self._objects)})"
