"""Local disk backend for caches.

Stores cache entries under per-scope directories on the build host
instead of in the remote store. Each entry is a zip archive plus its md5
manifest, laid out like the remote store::

    {scope_cache_dir}/{canonical_key}.zip
    {scope_cache_dir}/{canonical_key}_md5.json
"""

import json
import logging
import os
import tempfile
import zipfile
from pathlib import Path
from typing import Dict, Optional, Union

from store_cli.config import ExecutionContext
from store_cli.core.keys import normalize_key
from store_cli.core.models import Action, Scope, StoreType
from store_cli.errors import BackendTransferError, InvalidParameters
from store_cli.services.archive import compress, compute_md5_manifest, extract
from store_cli.services.store import ARCHIVE_SUFFIX, MANIFEST_SUFFIX

logger = logging.getLogger(__name__)

BYTES_PER_MB = 1024 * 1024


class DiskCache:
    """Cache backend rooted in local directories.

    Attributes:
        ctx: Execution context providing the per-scope cache directories
    """

    def __init__(self, ctx: ExecutionContext):
        self.ctx = ctx

    def entry_path(self, scope: Scope, key: str) -> Path:
        """Get the entry path (without suffix) for a cache key.

        Args:
            scope: Cache scope
            key: Raw cache key

        Returns:
            Path inside the scope's cache directory

        Raises:
            InvalidParameters: If the scope has no cache directory or the
                key is empty
        """
        root = self.ctx.cache_dir_for(scope)
        if root is None:
            raise InvalidParameters(
                f"invalid parameters: no local cache directory for scope '{scope.value}'"
            )

        canonical = normalize_key(StoreType.CACHE, key)
        relative = canonical.lstrip("/")
        if relative in ("", "."):
            raise InvalidParameters(f"invalid parameters: empty cache key '{key}'")
        return root / relative

    def run(
        self,
        action: Union[Action, str],
        scope: Union[Scope, str],
        key: str,
        max_size_mb: int = 0,
    ) -> None:
        """Perform a cache action against the local disk.

        Args:
            action: get, set or remove
            scope: Cache scope
            key: Raw cache key, a local path on the build host
            max_size_mb: Largest archive to store; 0 means unbounded

        Raises:
            InvalidParameters: If the action, scope or key is unusable
            BackendTransferError: If the disk operation fails
        """
        action = Action.parse(action)
        scope = Scope.parse(scope)
        entry = self.entry_path(scope, key)
        local_path = Path(normalize_key(StoreType.CACHE, key))

        try:
            if action is Action.GET:
                self._get(entry, local_path)
            elif action is Action.SET:
                self._set(entry, local_path, max_size_mb)
            else:
                self._remove(entry)
        except (OSError, ValueError, zipfile.BadZipFile) as e:
            raise BackendTransferError(
                f"disk cache {action.value} failed for {entry}: {e}"
            ) from e

    @staticmethod
    def _archive(entry: Path) -> Path:
        return entry.with_name(entry.name + ARCHIVE_SUFFIX)

    @staticmethod
    def _manifest(entry: Path) -> Path:
        return entry.with_name(entry.name + MANIFEST_SUFFIX)

    def _read_manifest(self, entry: Path) -> Optional[Dict[str, str]]:
        manifest_file = self._manifest(entry)
        if not manifest_file.exists():
            return None
        try:
            return json.loads(manifest_file.read_text())
        except (json.JSONDecodeError, IOError):
            return None

    def _get(self, entry: Path, local_path: Path) -> None:
        archive = self._archive(entry)
        if not archive.exists():
            logger.info("No cache found at %s", archive)
            return

        extract(archive, local_path.parent)
        logger.info("Restored cache %s from %s", local_path, archive)

    def _set(self, entry: Path, local_path: Path, max_size_mb: int) -> None:
        if not local_path.exists():
            logger.warning("Path %s does not exist, nothing to cache", local_path)
            return

        manifest = compute_md5_manifest(local_path)
        if self._read_manifest(entry) == manifest:
            logger.info("Cache %s is unchanged, skipping", local_path)
            return

        entry.parent.mkdir(parents=True, exist_ok=True)
        archive = self._archive(entry)

        fd, tmp_name = tempfile.mkstemp(dir=entry.parent, suffix=ARCHIVE_SUFFIX)
        os.close(fd)
        tmp_archive = Path(tmp_name)
        try:
            compress(local_path, tmp_archive)
            size = tmp_archive.stat().st_size
            if max_size_mb > 0 and size > max_size_mb * BYTES_PER_MB:
                logger.warning(
                    "Cache %s is %.1f MB, over the %d MB limit; not storing",
                    local_path,
                    size / BYTES_PER_MB,
                    max_size_mb,
                )
                return
            os.replace(tmp_archive, archive)
        finally:
            if tmp_archive.exists():
                tmp_archive.unlink()

        manifest_file = self._manifest(entry)
        tmp_manifest = manifest_file.with_name(manifest_file.name + ".tmp")
        tmp_manifest.write_text(json.dumps(manifest, indent=2))
        os.replace(tmp_manifest, manifest_file)
        logger.info("Stored cache %s at %s", local_path, archive)

    def _remove(self, entry: Path) -> None:
        removed = 0
        for path in (self._manifest(entry), self._archive(entry)):
            if path.exists():
                path.unlink()
                removed += 1
        if not removed:
            logger.info("Nothing to remove at %s", entry)
