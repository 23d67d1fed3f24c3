"""Top-level package for the Layered shop customization engine.

Provides subpackages:
- layered_shop.core – models, wire schemas and serialization
- layered_shop.customizer – storefront selection handling, pricing and validity
- layered_shop.editor – admin schema editor
- layered_shop.cart – cart line items and persistence
"""

from importlib.metadata import PackageNotFoundError, version as _pkg_version


def _get_version() -> str:
    """Get version from importlib.metadata (installed) or fall back for source checkouts."""
    try:
        return _pkg_version("layered-shop")
    except PackageNotFoundError:
        return "0.0.0"


__version__ = _get_version()
__all__: list[str] = ["__version__"]
