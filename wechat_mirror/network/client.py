"""
HTTP client setup and request helpers.

Every outbound call goes through a shared ``httpx.AsyncClient``.  Asset
downloads raise ``AssetFetchError``; JSON API calls raise ``UpstreamError``.
"""

import asyncio
from typing import Any, Optional

import httpx

from ..config import ASSET_TIMEOUT, REQUEST_TIMEOUT, USER_AGENT
from ..errors import AssetFetchError, UpstreamError
from ..logging_setup import log


def build_client(
    timeout: float = REQUEST_TIMEOUT,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> httpx.AsyncClient:
    """
    Return an ``httpx.AsyncClient`` with a browser User-Agent and keep-alive
    pre-configured.

    Args:
        timeout: Default per-phase timeout in seconds
        transport: Optional transport override (``httpx.MockTransport`` in tests)

    Returns:
        Configured client; the caller owns it and must close it
    """
    # Some image CDNs reject requests without a browser-like User-Agent.
    return httpx.AsyncClient(
        timeout=httpx.Timeout(timeout),
        follow_redirects=True,
        transport=transport,
        headers={
            "User-Agent": USER_AGENT,
            "Connection": "keep-alive",
        },
    )


async def fetch_bytes(
    client: httpx.AsyncClient,
    url: str,
    deadline: float = ASSET_TIMEOUT,
) -> bytes:
    """
    GET *url* and return the response body.

    The whole download, including a slowly trickling body, must finish
    within *deadline* seconds.
    """
    try:
        resp = await asyncio.wait_for(client.get(url), timeout=deadline)
        resp.raise_for_status()
    except asyncio.TimeoutError as exc:
        raise AssetFetchError(url, f"timed out after {deadline}s") from exc
    except (httpx.HTTPError, httpx.InvalidURL, ValueError) as exc:
        # InvalidURL is not an HTTPError; malformed URLs count as failed fetches
        raise AssetFetchError(url, str(exc) or exc.__class__.__name__) from exc
    log.debug("Fetched %s (%d bytes)", url, len(resp.content))
    return resp.content


def _decode_json(resp: httpx.Response) -> dict[str, Any]:
    try:
        payload = resp.json()
    except ValueError as exc:
        raise UpstreamError(f"invalid JSON from {resp.request.url}") from exc
    if not isinstance(payload, dict):
        raise UpstreamError(f"unexpected JSON payload from {resp.request.url}")
    return payload


async def get_json(
    client: httpx.AsyncClient,
    url: str,
    params: Optional[dict[str, Any]] = None,
) -> dict[str, Any]:
    """GET *url* and decode the JSON object it returns."""
    try:
        resp = await client.get(url, params=params)
    except httpx.HTTPError as exc:
        raise UpstreamError(f"GET {url} failed: {exc}") from exc
    return _decode_json(resp)


async def post_json(
    client: httpx.AsyncClient,
    url: str,
    payload: dict[str, Any],
    params: Optional[dict[str, Any]] = None,
) -> dict[str, Any]:
    """POST *payload* as JSON to *url* and decode the JSON object it returns."""
    try:
        resp = await client.post(url, json=payload, params=params)
    except httpx.HTTPError as exc:
        raise UpstreamError(f"POST {url} failed: {exc}") from exc
    return _decode_json(resp)
