"""store-cli - fetch, store, or remove build blobs in the build store.

This package provides:
- Addressing of caches, artifacts and logs in the remote store
- Pull-request write policy for shared caches
- A local on-disk cache backend as an alternative to the remote store
"""

__version__ = "0.1.0"
