"""
Local storage sink for mirrored assets.

Files land flat in one directory and are served statically under
``IMAGES_PREFIX``.  Filenames are generated unique by the caller, so
concurrent writers never share a path and no locking is needed.
"""

import asyncio
from pathlib import Path

from .config import IMAGES_PREFIX
from .errors import StorageError
from .logging_setup import log


def save_file(local_path: Path, content: bytes) -> None:
    """Write *content* to *local_path*, creating parent directories."""
    local_path.parent.mkdir(parents=True, exist_ok=True)
    local_path.write_bytes(content)
    log.debug("Saved → %s (%d bytes)", local_path, len(content))


class LocalStorageSink:
    """Writes asset bytes under *root* and maps filenames to public URLs."""

    def __init__(self, root: Path, domain: str, prefix: str = IMAGES_PREFIX) -> None:
        self.root = Path(root)
        self.domain = domain.rstrip("/")
        self.prefix = "/" + prefix.strip("/")
        self._ready = False

    def ensure_dir(self) -> Path:
        """Create the storage directory; safe to call any number of times."""
        if not self._ready:
            try:
                self.root.mkdir(parents=True, exist_ok=True)
            except OSError as exc:
                raise StorageError(self.root, f"cannot create {self.root}: {exc}") from exc
            self._ready = True
        return self.root

    async def write(self, filename: str, data: bytes) -> Path:
        """Persist *data* as *filename* and return the local path."""
        self.ensure_dir()
        # filenames are generated, but never let one escape the directory
        path = self.root / Path(filename).name
        try:
            await asyncio.to_thread(save_file, path, data)
        except OSError as exc:
            raise StorageError(path, f"cannot write {path}: {exc}") from exc
        return path

    def public_url(self, filename: str) -> str:
        return f"{self.domain}{self.prefix}/{filename}"
