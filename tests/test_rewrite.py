"""
Tests for the document rewrite engine – per-kind rewriting, partial failure,
tag stripping and concurrent localization.
"""

import asyncio
import itertools
import tempfile
import unittest
from pathlib import Path

import httpx

from wechat_mirror.document.arena import HtmlDocument
from wechat_mirror.document.discover import AssetKind, AssetReference
from wechat_mirror.document.rewrite import RewriteEngine, apply_localized, strip_disallowed
from wechat_mirror.localizer import AssetLocalizer
from wechat_mirror.network.client import build_client
from wechat_mirror.storage import LocalStorageSink

DOMAIN = "https://cdn.test"
VIDEO = (
    '<iframe class="video_iframe" data-src="https://v.qq.com/x/page/abc.html" '
    'data-cover="http%3A%2F%2Fmmbiz.qpic.cn%2Fcover.jpg"></iframe>'
)


class FakeLocalizer:
    """Maps source URLs to public URLs; unknown URLs fail."""

    def __init__(self, mapping, delay=0.0):
        self.mapping = mapping
        self.delay = delay
        self.calls = []
        self.in_flight = 0
        self.peak = 0

    async def localize(self, url, type_hint=None):
        self.calls.append((url, type_hint))
        self.in_flight += 1
        self.peak = max(self.peak, self.in_flight)
        await asyncio.sleep(self.delay)
        self.in_flight -= 1
        return self.mapping.get(url)


class TestRewriteEngine(unittest.IsolatedAsyncioTestCase):
    async def test_image_src_replaced(self):
        engine = RewriteEngine(FakeLocalizer({"http://x/pic.png": "https://cdn.test/images/1.png"}))
        out = await engine.process('<p><img src="http://x/pic.png" alt="a"></p>')
        self.assertEqual(out, '<p><img src="https://cdn.test/images/1.png" alt="a"></p>')

    async def test_failed_image_left_verbatim(self):
        engine = RewriteEngine(FakeLocalizer({}))
        out = await engine.process('<p><img src="http://x/pic.png?a=1&amp;b=2"></p>')
        self.assertEqual(out, '<p><img src="http://x/pic.png?a=1&amp;b=2"></p>')

    async def test_type_hint_passed_through(self):
        localizer = FakeLocalizer({})
        await RewriteEngine(localizer).process('<p><img src="http://x/a" data-type="svg"></p>')
        self.assertEqual(localizer.calls, [("http://x/a", "svg")])

    async def test_style_only_url_replaced(self):
        engine = RewriteEngine(FakeLocalizer({"http://x/b.jpg": "https://cdn.test/images/2.jpg"}))
        out = await engine.process(
            """<section style="color: red; background-image:url('http://x/b.jpg'); """
            """padding: 0 4px">t</section>"""
        )
        self.assertEqual(
            out,
            """<section style="color: red; background-image:url('https://cdn.test/images/2.jpg'); """
            """padding: 0 4px">t</section>""",
        )

    async def test_style_urls_rewritten_independently(self):
        engine = RewriteEngine(FakeLocalizer({"http://x/ok.png": "https://cdn.test/images/3.png"}))
        out = await engine.process(
            '<p style="background: url(http://x/ok.png), url(http://x/bad.png)">t</p>'
        )
        self.assertIn("url(https://cdn.test/images/3.png)", out)
        self.assertIn("url(http://x/bad.png)", out)

    async def test_style_url_prefix_of_another_url_untouched(self):
        engine = RewriteEngine(FakeLocalizer({"http://x/a.png": "https://cdn.test/images/1.png"}))
        out = await engine.process(
            '<p style="background: url(http://x/a.png), url(http://x/a.png2)">t</p>'
        )
        self.assertIn(
            'style="background: url(https://cdn.test/images/1.png), url(http://x/a.png2)"', out,
        )

    async def test_style_url_outside_background_untouched(self):
        engine = RewriteEngine(FakeLocalizer({"http://x/a.png": "https://cdn.test/images/1.png"}))
        out = await engine.process(
            '<p style="border-image: url(http://x/a.png) 30; background:url(http://x/a.png)">t</p>'
        )
        self.assertIn(
            'style="border-image: url(http://x/a.png) 30; background:url(https://cdn.test/images/1.png)"',
            out,
        )

    async def test_video_replaced_by_linked_cover(self):
        engine = RewriteEngine(FakeLocalizer({
            "http://mmbiz.qpic.cn/cover.jpg": "https://cdn.test/images/4.jpg",
        }))
        out = await engine.process(f"<section>{VIDEO}</section>")
        self.assertEqual(
            out,
            '<section><a href="https://v.qq.com/x/page/abc.html">'
            '<img src="https://cdn.test/images/4.jpg"></a></section>',
        )

    async def test_failed_video_is_stripped(self):
        engine = RewriteEngine(FakeLocalizer({}))
        out = await engine.process(f"<section><p>before</p>{VIDEO}<p>after</p></section>")
        self.assertEqual(out, "<section><p>before</p><p>after</p></section>")

    async def test_disallowed_tags_always_removed(self):
        engine = RewriteEngine(FakeLocalizer({}))
        out = await engine.process(
            "<section><mp-common-videosnippet data-pluginname=\"x\"></mp-common-videosnippet>"
            '<iframe class="video_iframe" data-src="https://v.qq.com/y"></iframe>'
            "<p>kept</p></section>"
        )
        self.assertNotIn("mp-common-videosnippet", out)
        self.assertNotIn("<iframe", out)
        self.assertIn("<p>kept</p>", out)

    async def test_non_video_iframe_kept(self):
        engine = RewriteEngine(FakeLocalizer({}))
        out = await engine.process('<section><iframe src="https://maps.example/"></iframe></section>')
        self.assertIn('<iframe src="https://maps.example/"></iframe>', out)

    async def test_localizations_run_concurrently(self):
        localizer = FakeLocalizer({}, delay=0.02)
        html = "<p>" + "".join(f'<img src="http://x/{i}.png">' for i in range(8)) + "</p>"
        await RewriteEngine(localizer).process(html)
        self.assertEqual(len(localizer.calls), 8)
        self.assertEqual(localizer.peak, 8)

    async def test_document_without_assets(self):
        localizer = FakeLocalizer({})
        out = await RewriteEngine(localizer).process("<p>plain <em>text</em></p>")
        self.assertEqual(out, "<p>plain <em>text</em></p>")
        self.assertEqual(localizer.calls, [])


class TestArenaLevelEdits(unittest.TestCase):
    """The rewrite steps operate on a hand-built arena without any parser."""

    def test_apply_and_strip(self):
        doc = HtmlDocument()
        img = doc.create_element("img", {"src": "http://x/a.png"})
        snippet = doc.create_element("mp-common-videosnippet")
        doc.append_child(doc.ROOT, img)
        doc.append_child(doc.ROOT, snippet)

        apply_localized(
            doc, AssetReference(AssetKind.IMAGE, "http://x/a.png", img, "src"),
            "https://cdn.test/images/a.png",
        )
        self.assertEqual(strip_disallowed(doc), 1)
        self.assertEqual(doc.inner_html(doc.ROOT), '<img src="https://cdn.test/images/a.png">')


class TestEndToEnd(unittest.IsolatedAsyncioTestCase):
    async def test_real_localizer_with_partial_failure(self):
        def handler(request: httpx.Request) -> httpx.Response:
            if request.url.path.startswith("/dead"):
                raise httpx.ConnectError("connection refused", request=request)
            return httpx.Response(200, content=b"bytes-of-" + request.url.path.encode())

        counter = itertools.count(1)
        with tempfile.TemporaryDirectory() as tmp:
            async with build_client(transport=httpx.MockTransport(handler)) as client:
                localizer = AssetLocalizer(
                    client, LocalStorageSink(Path(tmp), DOMAIN),
                    id_factory=lambda: f"f{next(counter)}",
                )
                with self.assertLogs("wechat-mirror", level="WARNING"):
                    out = await RewriteEngine(localizer).process(
                        '<section><img src="http://x/pic.png">'
                        '<img src="http://x/dead/pic.png"></section>'
                    )
            files = sorted(p.name for p in Path(tmp).iterdir())

        self.assertEqual(len(files), 1)
        self.assertIn(f'<img src="{DOMAIN}/images/{files[0]}">', out)
        self.assertTrue(files[0].endswith(".png"))
        self.assertIn('<img src="http://x/dead/pic.png">', out)

    async def test_malformed_url_does_not_abort_conversion(self):
        transport = httpx.MockTransport(lambda request: httpx.Response(200, content=b"png"))
        with tempfile.TemporaryDirectory() as tmp:
            async with build_client(transport=transport) as client:
                localizer = AssetLocalizer(
                    client, LocalStorageSink(Path(tmp), DOMAIN), id_factory=lambda: "ok",
                )
                with self.assertLogs("wechat-mirror", level="WARNING"):
                    out = await RewriteEngine(localizer).process(
                        '<p><img src="http://x/ok.png"><img src="http://[::1/a.png"></p>'
                    )

        self.assertIn(f'<img src="{DOMAIN}/images/ok.png">', out)
        self.assertIn('<img src="http://[::1/a.png">', out)


if __name__ == "__main__":
    unittest.main()
