"""Document handling: node arena, asset discovery and the rewrite engine."""

from .arena import HtmlDocument
from .discover import AssetKind, AssetReference, discover_assets
from .rewrite import RewriteEngine, apply_localized, strip_disallowed

__all__ = [
    "HtmlDocument",
    "AssetKind",
    "AssetReference",
    "discover_assets",
    "RewriteEngine",
    "apply_localized",
    "strip_disallowed",
]
