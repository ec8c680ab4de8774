"""
Document rewrite engine.

Discovers every remote asset reference, localizes all of them in one
concurrent wave, waits for every localization to settle, applies the
successful ones, strips disallowed tags and serializes the body.
"""

import asyncio
from typing import Optional

from ..config import VIDEO_SNIPPET_TAG
from ..localizer import AssetLocalizer
from ..logging_setup import log
from .arena import HtmlDocument
from .discover import (
    AssetKind,
    AssetReference,
    discover_assets,
    is_video_embed,
    replace_style_url,
)


def apply_localized(doc: HtmlDocument, ref: AssetReference, public_url: str) -> None:
    """Point *ref*'s host location at *public_url*."""
    if ref.kind is AssetKind.IMAGE:
        doc.set_attr(ref.node, ref.attribute, public_url)
    elif ref.kind is AssetKind.STYLE_BACKGROUND:
        style = doc.get_attr(ref.node, ref.attribute) or ""
        doc.set_attr(ref.node, ref.attribute, replace_style_url(style, ref.source_url, public_url))
    elif ref.kind is AssetKind.VIDEO_COVER:
        if not doc.is_attached(ref.node):
            return
        anchor = doc.create_element("a", {"href": ref.play_url or ""})
        doc.append_child(anchor, doc.create_element("img", {"src": public_url}))
        doc.replace(ref.node, anchor)


def strip_disallowed(doc: HtmlDocument) -> int:
    """Remove video snippet tags and raw video embeds; return how many went."""
    doomed = [
        node for node in doc.iter_elements()
        if doc.tags[node] == VIDEO_SNIPPET_TAG or is_video_embed(doc, node)
    ]
    for node in doomed:
        doc.detach(node)
    return len(doomed)


class RewriteEngine:
    def __init__(self, localizer: AssetLocalizer) -> None:
        self.localizer = localizer

    async def localize_all(self, refs: list[AssetReference]) -> list[Optional[str]]:
        return list(await asyncio.gather(*(
            self.localizer.localize(ref.source_url, ref.type_hint) for ref in refs
        )))

    async def rewrite(self, doc: HtmlDocument) -> HtmlDocument:
        """Localize and rewrite *doc* in place."""
        refs = discover_assets(doc)
        results = await self.localize_all(refs)

        localized = 0
        for ref, public_url in zip(refs, results):
            if public_url is None:
                continue
            apply_localized(doc, ref, public_url)
            localized += 1
        stripped = strip_disallowed(doc)
        log.info(
            "Localized %d/%d assets, stripped %d video elements",
            localized, len(refs), stripped,
        )
        return doc

    async def process(self, html: str) -> str:
        doc = await self.rewrite(HtmlDocument.parse(html))
        return doc.inner_html(doc.body)
