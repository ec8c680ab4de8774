"""
Upstream collaborators: the content source and the WeChat platform API.

Raw JSON payloads are turned into tagged outcomes here, so callers never
probe for ad hoc fields:

* content source – ``status_code == 200`` means ``Success(data)``,
  anything else ``Failure(status_message)``;
* platform API – a non-zero ``errcode`` means ``Failure(errmsg)``,
  anything else ``Success(payload)``.
"""

from dataclasses import dataclass
from typing import Any, Union

import httpx

from .auth.token import AccessTokenCache
from .config import (
    ARTICLE_DETAIL_URL,
    CONTENT_SOURCE_URL,
    DRAFT_LIST_URL,
    PUBLISHED_LIST_URL,
)
from .errors import UpstreamError
from .logging_setup import log
from .network.client import post_json


@dataclass(frozen=True)
class Success:
    data: dict[str, Any]


@dataclass(frozen=True)
class Failure:
    message: str


Outcome = Union[Success, Failure]


def content_source_outcome(payload: dict[str, Any]) -> Outcome:
    if payload.get("status_code") == 200:
        data = payload.get("data")
        return Success(data if isinstance(data, dict) else {})
    return Failure(str(payload.get("status_message") or "content source request failed"))


def platform_outcome(payload: dict[str, Any]) -> Outcome:
    errcode = payload.get("errcode", 0)
    if errcode:
        return Failure(str(payload.get("errmsg") or f"errcode {errcode}"))
    return Success(payload)


def unwrap(outcome: Outcome) -> dict[str, Any]:
    """Return the data of a Success or raise UpstreamError for a Failure."""
    if isinstance(outcome, Failure):
        raise UpstreamError(outcome.message)
    return outcome.data


class ContentSourceClient:
    """Fetches the raw HTML of an article given its public URL."""

    def __init__(self, client: httpx.AsyncClient, endpoint: str = CONTENT_SOURCE_URL) -> None:
        self.client = client
        self.endpoint = endpoint

    async def fetch_article(self, url: str) -> Outcome:
        payload = await post_json(self.client, self.endpoint, {"url": url})
        return content_source_outcome(payload)


class PlatformClient:
    """Authorized listing and detail calls against the WeChat platform API."""

    def __init__(self, client: httpx.AsyncClient, tokens: AccessTokenCache) -> None:
        self.client = client
        self.tokens = tokens

    async def _call(self, url: str, body: dict[str, Any]) -> dict[str, Any]:
        access_token = await self.tokens.get_token()
        payload = await post_json(self.client, url, body, params={"access_token": access_token})
        outcome = platform_outcome(payload)
        if isinstance(outcome, Failure):
            log.error("Platform call %s failed: %s", url, outcome.message)
        return unwrap(outcome)

    async def published_articles(self, offset: int = 0, count: int = 100) -> dict[str, Any]:
        return await self._call(PUBLISHED_LIST_URL, {
            "offset": offset, "count": count, "no_content": 0,
        })

    async def article_detail(self, article_id: str) -> dict[str, Any]:
        return await self._call(ARTICLE_DETAIL_URL, {"article_id": article_id})

    async def drafts(self, offset: int = 0, count: int = 100) -> dict[str, Any]:
        return await self._call(DRAFT_LIST_URL, {
            "offset": offset, "count": count, "no_content": 0,
        })
