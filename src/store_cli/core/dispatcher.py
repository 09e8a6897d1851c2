"""Route get/set/remove requests to the remote store or the disk cache.

Every request passes through the same steps exactly once:
pull-request policy check, backend selection, address build, backend call.
"""

import logging
from pathlib import Path
from typing import Optional, Union

from store_cli.config import ExecutionContext
from store_cli.core.addresses import build_address
from store_cli.core.keys import clean_path
from store_cli.core.models import Action, Scope, StoreType
from store_cli.core.policy import should_skip
from store_cli.errors import BackendTransferError
from store_cli.services.disk_cache import DiskCache
from store_cli.services.store import ARCHIVE_SUFFIX, MANIFEST_SUFFIX, StoreClient

logger = logging.getLogger(__name__)


class Dispatcher:
    """Entry point for store actions.

    Backends are created on first use so that a skipped or disk-routed
    request never builds an HTTP client.

    Attributes:
        ctx: Execution context for this process
    """

    def __init__(
        self,
        ctx: ExecutionContext,
        store: Optional[StoreClient] = None,
        disk_cache: Optional[DiskCache] = None,
    ):
        self.ctx = ctx
        self._store = store
        self._disk_cache = disk_cache

    @property
    def store(self) -> StoreClient:
        if self._store is None:
            self._store = StoreClient(self.ctx.token, timeout=self.ctx.store_timeout)
        return self._store

    @property
    def disk_cache(self) -> DiskCache:
        if self._disk_cache is None:
            self._disk_cache = DiskCache(self.ctx)
        return self._disk_cache

    def execute(
        self,
        action: Union[Action, str],
        store_type: Union[StoreType, str],
        scope: Union[Scope, str],
        key: str,
    ) -> None:
        """Run one action.

        Args:
            action: get, set or remove
            store_type: cache, artifact or log
            scope: event, job, pipeline, build, or empty
            key: Raw key from the command line

        Raises:
            InvalidParameters: If the request cannot be addressed
            MalformedAddress: If the store URL cannot be built
            BackendTransferError: If the backend call fails
        """
        action = Action.parse(action)
        store_type = StoreType.parse(store_type)
        scope = Scope.parse(scope)

        if should_skip(store_type, scope, action, self.ctx):
            return

        if store_type is StoreType.CACHE and self.ctx.uses_disk_cache:
            logger.debug("Routing %s of %s to disk cache", action.value, key)
            self.disk_cache.run(action, scope, key, self.ctx.cache_max_size_mb)
            return

        if action is Action.GET:
            self._get(store_type, scope, key)
        elif action is Action.SET:
            self._set(store_type, scope, key)
        else:
            self._remove(store_type, scope, key)

    def get(self, store_type, scope, key: str) -> None:
        self.execute(Action.GET, store_type, scope, key)

    def set(self, store_type, scope, key: str) -> None:
        self.execute(Action.SET, store_type, scope, key)

    def remove(self, store_type, scope, key: str) -> None:
        self.execute(Action.REMOVE, store_type, scope, key)

    def _get(self, store_type: StoreType, scope: Scope, key: str) -> None:
        address = build_address(store_type, scope, key, self.ctx)
        self.store.download(
            address,
            Path(address.key),
            extract_archive=store_type is StoreType.CACHE,
        )

    def _set(self, store_type: StoreType, scope: Scope, key: str) -> None:
        address = build_address(store_type, scope, key, self.ctx)
        self.store.upload(
            address,
            Path(address.key),
            compress_archive=store_type is StoreType.CACHE,
        )

    def _remove(self, store_type: StoreType, scope: Scope, key: str) -> None:
        if store_type is not StoreType.CACHE:
            self.store.remove(build_address(store_type, scope, key, self.ctx))
            return

        # A cache entry is an archive plus its manifest, keyed on the cleaned key.
        cleaned = clean_path(key)
        for suffix in (MANIFEST_SUFFIX, ARCHIVE_SUFFIX):
            address = build_address(store_type, scope, cleaned + suffix, self.ctx)
            try:
                self.store.remove(address)
            except BackendTransferError as e:
                raise BackendTransferError(
                    f"failed to remove file from {address.url}: {e}",
                    status_code=e.status_code,
                ) from e
