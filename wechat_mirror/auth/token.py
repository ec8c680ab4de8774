"""Access-token cache for the WeChat platform API."""

import asyncio
import time
from dataclasses import dataclass
from typing import Callable, Optional

import httpx

from ..config import TOKEN_SAFETY_MARGIN, TOKEN_URL
from ..errors import AuthError, UpstreamError
from ..logging_setup import log
from ..network.client import get_json


@dataclass(frozen=True)
class AccessToken:
    value: str
    expires_at_ms: int

    def is_valid(self, now_ms: int) -> bool:
        return now_ms < self.expires_at_ms


def _consume_exception(future: "asyncio.Future[AccessToken]") -> None:
    # marks a failed refresh as retrieved even when every waiter was cancelled
    if not future.cancelled():
        future.exception()


class AccessTokenCache:
    """
    Holds one platform access token and refreshes it on demand.

    Built once at process start and shared by every caller.  When the cached
    token has expired, the first caller starts a refresh and every concurrent
    caller awaits that same refresh, so at most one credential exchange is in
    flight at a time.
    """

    def __init__(
        self,
        client: httpx.AsyncClient,
        app_id: str,
        app_secret: str,
        token_url: str = TOKEN_URL,
        safety_margin: int = TOKEN_SAFETY_MARGIN,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._client = client
        self._app_id = app_id
        self._app_secret = app_secret
        self._token_url = token_url
        self._safety_margin = safety_margin
        self._clock = clock
        self._token: Optional[AccessToken] = None
        self._inflight: Optional["asyncio.Future[AccessToken]"] = None

    def _now_ms(self) -> int:
        return int(self._clock() * 1000)

    @property
    def token(self) -> Optional[AccessToken]:
        return self._token

    def invalidate(self) -> None:
        """Forget the cached token so the next call performs an exchange."""
        self._token = None

    async def get_token(self) -> str:
        token = self._token
        if token is not None and token.is_valid(self._now_ms()):
            return token.value

        if self._inflight is None:
            self._inflight = asyncio.ensure_future(self._refresh())
            self._inflight.add_done_callback(_consume_exception)
        # shield: a cancelled waiter must not cancel the refresh other
        # callers are waiting on
        token = await asyncio.shield(self._inflight)
        return token.value

    async def _refresh(self) -> AccessToken:
        try:
            now_ms = self._now_ms()
            try:
                payload = await get_json(self._client, self._token_url, params={
                    "grant_type": "client_credential",
                    "appid": self._app_id,
                    "secret": self._app_secret,
                })
            except UpstreamError as exc:
                raise AuthError(f"credential exchange failed: {exc.message}") from exc

            value = payload.get("access_token")
            if not value:
                raise AuthError(payload.get("errmsg") or "failed to obtain access_token")

            try:
                expires_in = int(payload["expires_in"])
            except (KeyError, TypeError, ValueError) as exc:
                raise AuthError(f"unusable expires_in: {payload.get('expires_in')!r}") from exc
            if expires_in <= self._safety_margin:
                raise AuthError(f"expires_in {expires_in}s is shorter than the safety margin")

            token = AccessToken(
                value=value,
                expires_at_ms=now_ms + (expires_in - self._safety_margin) * 1000,
            )
            self._token = token
            log.debug("Refreshed access token (valid for %ds)", expires_in - self._safety_margin)
            return token
        finally:
            self._inflight = None
