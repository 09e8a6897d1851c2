"""Zip archives and md5 manifests for cache entries.

A cache entry is a file or directory on the build host. It is stored as a
zip archive whose members are relative to the entry's parent directory,
next to an md5 manifest that lets an unchanged entry skip re-upload.
"""

import hashlib
import zipfile
from pathlib import Path
from typing import Dict, Iterator, Tuple


def compute_file_md5(file_path: Path) -> str:
    """Compute the md5 hex digest of a file.

    Reads in 8 KiB chunks so arbitrarily large files are handled without
    loading the entire file into memory.

    Args:
        file_path: Path to the file to hash

    Returns:
        md5 hex digest
    """
    md5 = hashlib.md5()
    with open(file_path, "rb") as f:
        for chunk in iter(lambda: f.read(8192), b""):
            md5.update(chunk)
    return md5.hexdigest()


def _iter_members(src: Path) -> Iterator[Tuple[Path, str]]:
    """Yield (file, archive name) pairs for every file under *src*."""
    base = src.parent
    if src.is_file():
        yield src, src.name
        return

    for path in sorted(src.rglob("*")):
        if path.is_file():
            yield path, path.relative_to(base).as_posix()


def compute_md5_manifest(src: Path) -> Dict[str, str]:
    """Map every archive member name under *src* to its md5 digest.

    Args:
        src: File or directory

    Returns:
        Dictionary of archive name to md5 hex digest
    """
    return {name: compute_file_md5(path) for path, name in _iter_members(src)}


def compress(src: Path, dest_zip: Path) -> Path:
    """Zip *src* into *dest_zip*.

    Args:
        src: File or directory to archive
        dest_zip: Archive to create

    Returns:
        *dest_zip*

    Raises:
        FileNotFoundError: If *src* does not exist
    """
    if not src.exists():
        raise FileNotFoundError(f"Path not found: {src}")

    dest_zip.parent.mkdir(parents=True, exist_ok=True)
    with zipfile.ZipFile(dest_zip, "w", compression=zipfile.ZIP_DEFLATED) as zf:
        for path, name in _iter_members(src):
            zf.write(path, name)
    return dest_zip


def extract(zip_path: Path, dest_dir: Path) -> Path:
    """Extract *zip_path* into *dest_dir*.

    Args:
        zip_path: Archive to extract
        dest_dir: Target directory, created if needed

    Returns:
        *dest_dir*

    Raises:
        ValueError: If a member would be written outside *dest_dir*
        zipfile.BadZipFile: If the archive is corrupt
    """
    dest_dir.mkdir(parents=True, exist_ok=True)
    root = dest_dir.resolve()

    with zipfile.ZipFile(zip_path) as zf:
        for member in zf.namelist():
            target = (root / member).resolve()
            if target != root and root not in target.parents:
                raise ValueError(f"Unsafe archive member: {member}")
        zf.extractall(root)
    return dest_dir
