"""
Filesystem storage for protocol assets.

Each installed protocol owns one directory under the storage root, named
by its storage key. Blocking filesystem calls run in a worker thread.
"""

import asyncio
import shutil
from pathlib import Path

import structlog

from interviewer.core.exceptions import StorageError

log = structlog.get_logger(__name__)


class FilesystemProtocolStorage:
    """IProtocolStorage backed by directories under ``root``."""

    def __init__(self, root: Path):
        self.root = Path(root)

    def protocol_path(self, key: str) -> Path:
        path = (self.root / key).resolve()
        if path.parent != self.root.resolve():
            raise StorageError(f"Invalid protocol key: {key!r}")
        return path

    async def exists(self, key: str) -> bool:
        return await asyncio.to_thread(self.protocol_path(key).is_dir)

    async def remove_directory(self, key: str) -> None:
        """Remove the directory for key; a missing directory is not an error."""
        path = self.protocol_path(key)
        try:
            await asyncio.to_thread(shutil.rmtree, path)
        except FileNotFoundError:
            log.debug("protocol_directory_missing", key=key)
            return
        except OSError as e:
            raise StorageError(f"Failed to remove protocol directory {path}: {e}") from e
        log.info("protocol_directory_removed", key=key)

    async def rename(self, from_key: str, to_key: str) -> None:
        """Move the directory for from_key to to_key.

        Raises:
            StorageError: from_key has no directory, to_key is occupied, or
                the move failed
        """
        source = self.protocol_path(from_key)
        target = self.protocol_path(to_key)
        if not source.is_dir():
            raise StorageError(f"Protocol directory not found: {source}")
        if target.exists():
            raise StorageError(f"Protocol directory already exists: {target}")
        try:
            await asyncio.to_thread(source.rename, target)
        except OSError as e:
            raise StorageError(f"Failed to rename {source} to {target}: {e}") from e
        log.info("protocol_directory_renamed", from_key=from_key, to_key=to_key)
