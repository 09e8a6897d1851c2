"""HTTP client for the remote build store.

Provides StoreClient for moving caches, artifacts and logs to and from the
store over HTTP. Handles authentication, cache archives and their md5
manifests, and translates transport failures into BackendTransferError.
"""

import json
import logging
import tempfile
import zipfile
from pathlib import Path
from typing import Dict, Optional

import requests

from store_cli.core.models import Address
from store_cli.errors import BackendTransferError
from store_cli.services.archive import compress, compute_md5_manifest, extract

logger = logging.getLogger(__name__)

ARCHIVE_SUFFIX = ".zip"
MANIFEST_SUFFIX = "_md5.json"


class StoreClient:
    """HTTP client for the remote build store.

    Uses Bearer token authentication when a token is configured.

    Attributes:
        timeout: Request timeout in seconds
    """

    def __init__(self, token: str = "", timeout: float = 60):
        """Initialize the store client.

        Args:
            token: Store API token (may be empty)
            timeout: Request timeout in seconds
        """
        self.timeout = timeout
        self._token = token

    def _auth_headers(self) -> Dict[str, str]:
        """Get authentication headers.

        Returns:
            Dictionary with Authorization header, empty without a token
        """
        if not self._token:
            return {}
        return {"Authorization": f"Bearer {self._token}"}

    def _request(
        self,
        method: str,
        url: str,
        headers: Optional[Dict[str, str]] = None,
        **kwargs,
    ) -> requests.Response:
        """Send a request to the store.

        Raises:
            BackendTransferError: If the store is unreachable
        """
        all_headers = self._auth_headers()
        if headers:
            all_headers.update(headers)

        try:
            return requests.request(
                method, url, headers=all_headers, timeout=self.timeout, **kwargs
            )
        except requests.exceptions.ConnectionError as e:
            raise BackendTransferError(f"Cannot connect to store at {url}: {e}")
        except requests.exceptions.RequestException as e:
            raise BackendTransferError(f"{method} {url} failed: {e}")

    @staticmethod
    def _raise_for_status(response: requests.Response, method: str, url: str) -> None:
        if response.status_code >= 400:
            raise BackendTransferError(
                f"{method} {url} failed (HTTP {response.status_code})",
                status_code=response.status_code,
            )

    def download(self, address: Address, dest: Path, extract_archive: bool = False) -> None:
        """Download an object from the store.

        Args:
            address: Store address of the object
            dest: Local path to write. For archives this is the path the
                archive was created from; it is recreated in place.
            extract_archive: Whether the object is a cache archive

        Raises:
            BackendTransferError: If the download fails
        """
        if extract_archive:
            self._download_archive(address, dest)
            return

        url = address.url
        response = self._request("GET", url)
        self._raise_for_status(response, "GET", url)

        try:
            dest.parent.mkdir(parents=True, exist_ok=True)
            dest.write_bytes(response.content)
        except OSError as e:
            raise BackendTransferError(f"Failed to write {dest}: {e}") from e

    def _download_archive(self, address: Address, dest: Path) -> None:
        url = address.url + ARCHIVE_SUFFIX
        response = self._request("GET", url)
        if response.status_code == 404:
            logger.info("No cache found at %s", url)
            return
        self._raise_for_status(response, "GET", url)

        with tempfile.TemporaryDirectory() as tmp:
            archive = Path(tmp) / "cache.zip"
            try:
                archive.write_bytes(response.content)
                extract(archive, dest.parent)
            except (OSError, ValueError, zipfile.BadZipFile) as e:
                raise BackendTransferError(f"Failed to extract {url}: {e}") from e

        logger.info("Restored cache %s from %s", dest, url)

    def fetch_manifest(self, address: Address) -> Optional[Dict[str, str]]:
        """Fetch the md5 manifest stored next to a cache archive.

        Returns:
            Manifest dictionary, or None if the store has none
        """
        url = address.url + MANIFEST_SUFFIX
        response = self._request("GET", url)
        if response.status_code == 404:
            return None
        self._raise_for_status(response, "GET", url)

        try:
            return response.json()
        except ValueError:
            logger.warning("Ignoring unreadable manifest at %s", url)
            return None

    def upload(self, address: Address, src: Path, compress_archive: bool = False) -> None:
        """Upload a local file or cache directory to the store.

        Args:
            address: Store address of the object
            src: Local file, or file/directory for cache archives
            compress_archive: Whether to store *src* as a cache archive

        Raises:
            BackendTransferError: If *src* is missing or the upload fails
        """
        if not src.exists():
            raise BackendTransferError(f"Path not found: {src}")

        if compress_archive:
            self._upload_archive(address, src)
            return

        url = address.url
        try:
            with open(src, "rb") as f:
                response = self._request(
                    "PUT", url, headers={"Content-Type": "application/octet-stream"}, data=f
                )
        except OSError as e:
            raise BackendTransferError(f"Failed to read {src}: {e}") from e
        self._raise_for_status(response, "PUT", url)

    def _upload_archive(self, address: Address, src: Path) -> None:
        try:
            manifest = compute_md5_manifest(src)
        except OSError as e:
            raise BackendTransferError(f"Failed to read {src}: {e}") from e
        if self.fetch_manifest(address) == manifest:
            logger.info("Cache %s is unchanged, skipping upload", src)
            return

        with tempfile.TemporaryDirectory() as tmp:
            url = address.url + ARCHIVE_SUFFIX
            try:
                archive = compress(src, Path(tmp) / "cache.zip")
                with open(archive, "rb") as f:
                    response = self._request(
                        "PUT", url, headers={"Content-Type": "application/zip"}, data=f
                    )
            except OSError as e:
                raise BackendTransferError(f"Failed to compress {src}: {e}") from e
            self._raise_for_status(response, "PUT", url)

        url = address.url + MANIFEST_SUFFIX
        response = self._request(
            "PUT",
            url,
            headers={"Content-Type": "application/json"},
            data=json.dumps(manifest),
        )
        self._raise_for_status(response, "PUT", url)
        logger.info("Stored cache %s at %s", src, address.url)

    def remove(self, address: Address) -> None:
        """Delete an object from the store.

        An object that is already gone is not an error.

        Raises:
            BackendTransferError: If the delete fails
        """
        url = address.url
        response = self._request("DELETE", url)
        if response.status_code == 404:
            logger.info("Nothing to remove at %s", url)
            return
        self._raise_for_status(response, "DELETE", url)
