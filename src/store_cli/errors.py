"""Errors raised by store-cli.

Every failure that should end the process with a one-line ``ERROR:``
message derives from StoreError. Anything else reaching the CLI entry
point is treated as an internal fault.
"""

from typing import Optional


class StoreError(Exception):
    """Base error for store operations."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class InvalidParameters(StoreError):
    """Unsupported store type or scope, or a path that could not be resolved."""


class MalformedAddress(StoreError):
    """The store URL could not be constructed from its parts."""


class BackendTransferError(StoreError):
    """Download, upload or delete failed in the remote store or disk cache."""
