"""Key canonicalization.

Cache keys are local paths on the build host, so they are cleaned and made
unambiguous before they become part of a store address. Artifact keys only
lose a leading ``./``; log keys are used verbatim.
"""

import os
import posixpath
from typing import Union

from store_cli.core.models import StoreType


def clean_path(path: str) -> str:
    """Lexically clean a slash-separated path.

    Collapses repeated separators, drops ``.`` segments and resolves ``..``
    against the preceding segment. An empty path cleans to ``.``.
    """
    cleaned = posixpath.normpath(path) if path else "."
    # normpath keeps a POSIX "//" root, a single root is wanted here
    if cleaned.startswith("//"):
        cleaned = "/" + cleaned.lstrip("/")
    return cleaned


def normalize_key(store_type: Union[StoreType, str], key: str) -> str:
    """Canonicalize a caller-supplied key for the given store type.

    Args:
        store_type: Store type the key addresses
        key: Raw key from the command line

    Returns:
        Canonical key. Never raises.
    """
    if store_type == StoreType.CACHE:
        key = clean_path(key)
        if key.startswith("~/"):
            key = clean_path(posixpath.join(os.path.expanduser("~"), key[2:]))
        if key.startswith("../"):
            key = clean_path(posixpath.join(os.getcwd(), key))
        return key.rstrip("/")

    if store_type == StoreType.ARTIFACT:
        return key[2:] if key.startswith("./") else key

    return key
