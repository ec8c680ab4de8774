"""
HTTP surface: article listing / detail pass-through, URL conversion and
static serving of mirrored files.
"""

from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import Any, Optional

import httpx
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from pydantic import BaseModel

from .auth.token import AccessTokenCache
from .config import IMAGES_PREFIX, Settings
from .converter import ConversionOrchestrator
from .document.rewrite import RewriteEngine
from .errors import ConversionTimeout, MirrorError
from .localizer import AssetLocalizer
from .logging_setup import log
from .network.client import build_client
from .storage import LocalStorageSink
from .upstream import ContentSourceClient, PlatformClient


class ConvertRequest(BaseModel):
    url: str


@dataclass
class Services:
    """Long-lived collaborators shared by every request."""

    platform: PlatformClient
    orchestrator: ConversionOrchestrator


def build_services(settings: Settings, client: httpx.AsyncClient) -> Services:
    """Wire the token cache, storage, localizer, engine and upstream clients."""
    tokens = AccessTokenCache(client, settings.app_id, settings.app_secret)
    storage = LocalStorageSink(settings.image_dir, settings.domain)
    storage.ensure_dir()
    localizer = AssetLocalizer(client, storage, deadline=settings.asset_timeout)
    orchestrator = ConversionOrchestrator(
        ContentSourceClient(client),
        RewriteEngine(localizer),
        deadline=settings.convert_timeout,
    )
    return Services(
        platform=PlatformClient(client, tokens),
        orchestrator=orchestrator,
    )


def create_app(settings: Optional[Settings] = None, services: Optional[Services] = None) -> FastAPI:
    """
    Build the FastAPI application.

    When *services* is omitted they are built from *settings* on startup and
    the shared HTTP client is closed on shutdown.
    """
    settings = settings or Settings.from_env()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if services is not None:
            app.state.services = services
            yield
            return
        async with build_client(settings.request_timeout) as client:
            app.state.services = build_services(settings, client)
            log.info("Serving mirrored files from %s", settings.image_dir.resolve())
            yield

    app = FastAPI(title="wechat-mirror", lifespan=lifespan)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization"],
    )

    @app.exception_handler(MirrorError)
    async def _mirror_error(request: Request, exc: MirrorError) -> JSONResponse:
        status = 504 if isinstance(exc, ConversionTimeout) else 500
        return JSONResponse(status_code=status, content={"statusCode": status, "message": exc.message})

    def _services(request: Request) -> Services:
        return request.app.state.services

    @app.get("/wechat/articles")
    async def get_articles(request: Request, offset: int = 0, count: int = 10) -> dict[str, Any]:
        return await _services(request).platform.published_articles(offset, count)

    @app.get("/wechat/article/{article_id}")
    async def get_article(request: Request, article_id: str) -> dict[str, Any]:
        return await _services(request).platform.article_detail(article_id)

    @app.get("/wechat/drafts")
    async def get_drafts(request: Request, offset: int = 0, count: int = 10) -> dict[str, Any]:
        return await _services(request).platform.drafts(offset, count)

    @app.post("/wechat/convertByUrl")
    async def convert_by_url(request: Request, body: ConvertRequest) -> dict[str, Any]:
        return await _services(request).orchestrator.convert(body.url)

    app.mount(
        IMAGES_PREFIX,
        StaticFiles(directory=str(settings.image_dir), check_dir=False),
        name="images",
    )
    return app
