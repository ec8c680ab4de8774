"""Discovery of remote asset references inside an HtmlDocument."""

import re
import urllib.parse
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from ..config import VIDEO_IFRAME_CLASS
from .arena import HtmlDocument

_REMOTE_URL_RE = re.compile(r"^https?://", re.I)
# background / background-image declaration values inside a style attribute
_BACKGROUND_DECL_RE = re.compile(r"background(?:-image)?\s*:([^;]*)", re.I)
_CSS_URL_RE = re.compile(r"""url\(\s*['"]?(https?://[^)'"\s]+)['"]?\s*\)""", re.I)


class AssetKind(Enum):
    IMAGE = "image"
    STYLE_BACKGROUND = "style_background"
    VIDEO_COVER = "video_cover"


@dataclass(frozen=True)
class AssetReference:
    """One remote URL found at *attribute* of *node*."""

    kind: AssetKind
    source_url: str
    node: int
    attribute: str
    type_hint: Optional[str] = None
    play_url: Optional[str] = None


def is_remote(url: Optional[str]) -> bool:
    return bool(url) and bool(_REMOTE_URL_RE.match(url.strip()))


def is_video_embed(doc: HtmlDocument, node: int) -> bool:
    return doc.tags[node] == "iframe" and (
        doc.has_class(node, VIDEO_IFRAME_CLASS)
        or doc.get_attr(node, "data-cover") is not None
    )


def extract_style_urls(style: str) -> list[str]:
    """Return the distinct absolute URLs used as background values in *style*."""
    found: dict[str, None] = {}
    for decl in _BACKGROUND_DECL_RE.finditer(style):
        for m in _CSS_URL_RE.finditer(decl.group(1)):
            found.setdefault(m.group(1), None)
    return list(found)


def replace_style_url(style: str, old: str, new: str) -> str:
    """
    Swap *old* for *new* only where it is the whole target of a `url(...)`
    inside a background declaration; the rest of *style* is left as is.
    """
    def _swap_url(m: re.Match) -> str:
        if m.group(1) != old:
            return m.group(0)
        return m.group(0)[:m.start(1) - m.start(0)] + new + m.group(0)[m.end(1) - m.start(0):]

    def _swap_decl(m: re.Match) -> str:
        value = _CSS_URL_RE.sub(_swap_url, m.group(1))
        return m.group(0)[:m.start(1) - m.start(0)] + value

    return _BACKGROUND_DECL_RE.sub(_swap_decl, style)


def discover_images(doc: HtmlDocument) -> list[AssetReference]:
    refs = []
    for node in doc.iter_elements("img"):
        src = doc.get_attr(node, "src")
        if is_remote(src):
            refs.append(AssetReference(
                AssetKind.IMAGE, src.strip(), node, "src",
                type_hint=doc.get_attr(node, "data-type"),
            ))
    return refs


def discover_style_backgrounds(doc: HtmlDocument) -> list[AssetReference]:
    refs = []
    for node in doc.iter_elements():
        style = doc.get_attr(node, "style")
        if not style:
            continue
        for url in extract_style_urls(style):
            refs.append(AssetReference(AssetKind.STYLE_BACKGROUND, url, node, "style"))
    return refs


def discover_video_covers(doc: HtmlDocument) -> list[AssetReference]:
    refs = []
    for node in doc.iter_elements("iframe"):
        if not is_video_embed(doc, node):
            continue
        cover = doc.get_attr(node, "data-cover")
        play_url = doc.get_attr(node, "data-src")
        if not cover or not play_url:
            continue
        cover = urllib.parse.unquote(cover)
        if is_remote(cover):
            refs.append(AssetReference(
                AssetKind.VIDEO_COVER, cover, node, "data-cover", play_url=play_url,
            ))
    return refs


def discover_assets(doc: HtmlDocument) -> list[AssetReference]:
    """All references of the three recognised kinds, each kind in document order."""
    return (
        discover_images(doc)
        + discover_style_backgrounds(doc)
        + discover_video_covers(doc)
    )
