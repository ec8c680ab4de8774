"""Conversion orchestrator: article URL in, localized article payload out."""

import asyncio
from typing import Any

from .config import CONVERT_TIMEOUT
from .document.rewrite import RewriteEngine
from .errors import ConversionTimeout
from .logging_setup import log
from .upstream import ContentSourceClient, Failure, unwrap

CONTENT_FIELD = "content_noencode"


class ConversionOrchestrator:
    def __init__(
        self,
        source: ContentSourceClient,
        engine: RewriteEngine,
        deadline: float = CONVERT_TIMEOUT,
    ) -> None:
        self.source = source
        self.engine = engine
        self.deadline = deadline

    async def convert(self, url: str) -> dict[str, Any]:
        """
        Fetch the article at *url*, mirror its media and return the
        content-source payload with the HTML field replaced.

        Raises UpstreamError when the content source reports a failure and
        ConversionTimeout when the whole conversion exceeds the deadline;
        in both cases nothing is returned.
        """
        try:
            return await asyncio.wait_for(self._convert(url), timeout=self.deadline)
        except asyncio.TimeoutError as exc:
            log.error("Conversion of %s exceeded %ss", url, self.deadline)
            raise ConversionTimeout(f"conversion of {url} timed out") from exc

    async def _convert(self, url: str) -> dict[str, Any]:
        log.info("Converting %s", url)
        outcome = await self.source.fetch_article(url)
        if isinstance(outcome, Failure):
            log.error("Content source rejected %s: %s", url, outcome.message)
        data = unwrap(outcome)
        html = await self.engine.process(data.get(CONTENT_FIELD) or "")
        return {**data, CONTENT_FIELD: html}
