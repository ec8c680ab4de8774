"""
wechat_mirror
=============
Mirror the media embedded in WeChat articles to local storage and rewrite
the article HTML so it references the mirrored copies.

Package structure
-----------------
wechat_mirror/
├── __init__.py       – package init and public API
├── config.py         – constants and Settings
├── errors.py         – exception hierarchy
├── logging_setup.py  – colorlog console + optional file logging
├── network/          – httpx client and request helpers
├── auth/             – single-flight access-token cache
├── storage.py        – local storage sink and public URLs
├── localizer.py      – download + store one asset
├── document/         – node arena, asset discovery, rewrite engine
├── upstream.py       – content source and platform API clients
├── converter.py      – conversion orchestrator
├── app.py            – FastAPI application
└── cli.py            – argparse CLI (``python -m wechat_mirror``)

Quick start
-----------
    import asyncio
    from pathlib import Path
    from wechat_mirror import (
        AssetLocalizer, LocalStorageSink, RewriteEngine, build_client,
    )

    async def main(html):
        async with build_client() as client:
            storage = LocalStorageSink(Path("public/images"), "https://mp.kloud.cn")
            engine = RewriteEngine(AssetLocalizer(client, storage))
            return await engine.process(html)
"""

from .auth import AccessToken, AccessTokenCache
from .converter import ConversionOrchestrator
from .document import HtmlDocument, RewriteEngine, discover_assets
from .errors import (
    AssetFetchError,
    AuthError,
    ConversionTimeout,
    MirrorError,
    StorageError,
    UpstreamError,
)
from .localizer import AssetLocalizer, LocalizedAsset, extension_for
from .network import build_client
from .storage import LocalStorageSink
from .upstream import ContentSourceClient, PlatformClient

__version__ = "1.0.0"

__all__ = [
    "AccessToken",
    "AccessTokenCache",
    "ConversionOrchestrator",
    "HtmlDocument",
    "RewriteEngine",
    "discover_assets",
    "AssetFetchError",
    "AuthError",
    "ConversionTimeout",
    "MirrorError",
    "StorageError",
    "UpstreamError",
    "AssetLocalizer",
    "LocalizedAsset",
    "extension_for",
    "build_client",
    "LocalStorageSink",
    "ContentSourceClient",
    "PlatformClient",
]
