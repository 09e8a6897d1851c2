"""Backends for store-cli.

Provides the remote store client, the local disk cache, and the archive
helpers they share.
"""

from store_cli.services.disk_cache import DiskCache
from store_cli.services.store import StoreClient

__all__ = ["DiskCache", "StoreClient"]
