"""Asset localization: download one remote asset and re-host it locally."""

import re
import urllib.parse
import uuid
from dataclasses import dataclass
from enum import Enum
from pathlib import PurePosixPath
from typing import Callable, Optional

import httpx

from .config import ASSET_TIMEOUT, DEFAULT_EXTENSION, VECTOR_TYPE_HINTS
from .errors import AssetFetchError, StorageError
from .logging_setup import log
from .network.client import fetch_bytes
from .storage import LocalStorageSink

_EXTENSION_RE = re.compile(r"^\.[A-Za-z0-9]{1,10}$")


class AssetStatus(Enum):
    SUCCESS = "success"
    FAILED = "failed"


@dataclass(frozen=True)
class LocalizedAsset:
    id: str
    extension: str
    public_url: str
    status: AssetStatus

    @property
    def ok(self) -> bool:
        return self.status is AssetStatus.SUCCESS

    @property
    def filename(self) -> str:
        return self.id + self.extension


def extension_for(url: str, type_hint: Optional[str] = None) -> str:
    """
    Pick the file extension for a mirrored copy of *url*.

    A vector type hint wins over whatever the URL says.  Otherwise the suffix
    of the last path segment is used (the query string never counts), falling
    back to ``DEFAULT_EXTENSION``.
    """
    if type_hint:
        forced = VECTOR_TYPE_HINTS.get(type_hint.strip().lower())
        if forced:
            return forced
    try:
        path = urllib.parse.urlparse(url).path
    except ValueError:
        return DEFAULT_EXTENSION
    suffix = PurePosixPath(path).suffix
    if suffix and _EXTENSION_RE.match(suffix):
        return suffix
    return DEFAULT_EXTENSION


def new_asset_id() -> str:
    return str(uuid.uuid4())


class AssetLocalizer:
    """Fetches a remote asset through *client* and stores it in *storage*."""

    def __init__(
        self,
        client: httpx.AsyncClient,
        storage: LocalStorageSink,
        deadline: float = ASSET_TIMEOUT,
        id_factory: Callable[[], str] = new_asset_id,
    ) -> None:
        self.client = client
        self.storage = storage
        self.deadline = deadline
        self._id_factory = id_factory

    async def localize_asset(self, url: str, type_hint: Optional[str] = None) -> LocalizedAsset:
        asset_id = self._id_factory()
        extension = DEFAULT_EXTENSION
        public_url = ""
        try:
            extension = extension_for(url, type_hint)
            filename = asset_id + extension
            public_url = self.storage.public_url(filename)
            data = await fetch_bytes(self.client, url, deadline=self.deadline)
            await self.storage.write(filename, data)
        except (AssetFetchError, StorageError) as exc:
            log.warning("Failed to localize %s: %s", url, exc.message)
            return LocalizedAsset(asset_id, extension, public_url, AssetStatus.FAILED)
        return LocalizedAsset(asset_id, extension, public_url, AssetStatus.SUCCESS)

    async def localize(self, url: str, type_hint: Optional[str] = None) -> Optional[str]:
        """Return the public URL of the mirrored copy, or None on failure."""
        asset = await self.localize_asset(url, type_hint)
        return asset.public_url if asset.ok else None
