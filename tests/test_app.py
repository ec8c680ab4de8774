"""
Tests for the HTTP surface – routing, error mapping and static files.
"""

import tempfile
import unittest
from pathlib import Path
from unittest.mock import AsyncMock

from fastapi.testclient import TestClient

from wechat_mirror.app import Services, create_app
from wechat_mirror.config import Settings
from wechat_mirror.errors import AuthError, ConversionTimeout, UpstreamError


class TestApp(unittest.TestCase):
    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        self.image_dir = Path(self._tmp.name)
        self.platform = AsyncMock()
        self.orchestrator = AsyncMock()
        app = create_app(
            Settings(domain="https://cdn.test", image_dir=self.image_dir),
            services=Services(platform=self.platform, orchestrator=self.orchestrator),
        )
        self.client = TestClient(app)
        self.client.__enter__()

    def tearDown(self):
        self.client.__exit__(None, None, None)
        self._tmp.cleanup()

    def test_articles_default_paging(self):
        self.platform.published_articles.return_value = {"item": [], "total_count": 0}
        res = self.client.get("/wechat/articles")
        self.assertEqual(res.status_code, 200)
        self.assertEqual(res.json(), {"item": [], "total_count": 0})
        self.platform.published_articles.assert_awaited_once_with(0, 10)

    def test_articles_query_params(self):
        self.platform.published_articles.return_value = {"item": []}
        self.client.get("/wechat/articles", params={"offset": 20, "count": 5})
        self.platform.published_articles.assert_awaited_once_with(20, 5)

    def test_article_detail(self):
        self.platform.article_detail.return_value = {"news_item": []}
        res = self.client.get("/wechat/article/abc123")
        self.assertEqual(res.status_code, 200)
        self.platform.article_detail.assert_awaited_once_with("abc123")

    def test_drafts(self):
        self.platform.drafts.return_value = {"item": [{"media_id": "m"}]}
        res = self.client.get("/wechat/drafts", params={"count": 3})
        self.assertEqual(res.json()["item"][0]["media_id"], "m")
        self.platform.drafts.assert_awaited_once_with(0, 3)

    def test_convert_by_url(self):
        self.orchestrator.convert.return_value = {"title": "T", "content_noencode": "<p>x</p>"}
        res = self.client.post("/wechat/convertByUrl", json={"url": "https://mp.weixin.qq.com/s/abc"})
        self.assertEqual(res.status_code, 200)
        self.assertEqual(res.json()["content_noencode"], "<p>x</p>")
        self.orchestrator.convert.assert_awaited_once_with("https://mp.weixin.qq.com/s/abc")

    def test_convert_requires_url(self):
        res = self.client.post("/wechat/convertByUrl", json={})
        self.assertEqual(res.status_code, 422)

    def test_upstream_error_maps_to_500(self):
        self.orchestrator.convert.side_effect = UpstreamError("article deleted")
        res = self.client.post("/wechat/convertByUrl", json={"url": "https://x"})
        self.assertEqual(res.status_code, 500)
        self.assertEqual(res.json(), {"statusCode": 500, "message": "article deleted"})

    def test_auth_error_maps_to_500(self):
        self.platform.published_articles.side_effect = AuthError("invalid appsecret")
        res = self.client.get("/wechat/articles")
        self.assertEqual(res.status_code, 500)
        self.assertEqual(res.json()["message"], "invalid appsecret")

    def test_timeout_maps_to_504(self):
        self.orchestrator.convert.side_effect = ConversionTimeout("too slow")
        res = self.client.post("/wechat/convertByUrl", json={"url": "https://x"})
        self.assertEqual(res.status_code, 504)

    def test_static_images(self):
        (self.image_dir / "abc.png").write_bytes(b"png-bytes")
        res = self.client.get("/images/abc.png")
        self.assertEqual(res.status_code, 200)
        self.assertEqual(res.content, b"png-bytes")

    def test_cors_open(self):
        res = self.client.get("/wechat/drafts", headers={"Origin": "https://elsewhere.example"})
        self.assertEqual(res.headers.get("access-control-allow-origin"), "*")


if __name__ == "__main__":
    unittest.main()
