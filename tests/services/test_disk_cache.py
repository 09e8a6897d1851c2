"""Tests for the local disk cache backend."""

import json
import logging
import os

import pytest

from store_cli.core.models import Action, Scope
from store_cli.errors import BackendTransferError, InvalidParameters
from store_cli.services.disk_cache import DiskCache


@pytest.fixture
def workspace(tmp_path, monkeypatch):
    """Working directory holding a cacheable 'mycache' directory."""
    work = tmp_path / "work"
    (work / "mycache" / "sub").mkdir(parents=True)
    (work / "mycache" / "a.txt").write_text("alpha")
    (work / "mycache" / "sub" / "b.txt").write_text("beta")
    monkeypatch.chdir(work)
    return work


@pytest.fixture
def cache_root(tmp_path):
    return tmp_path / "cache" / "events"


@pytest.fixture
def disk_cache(make_ctx, cache_root, tmp_path):
    ctx = make_ctx(
        cache_strategy="disk",
        event_cache_dir=str(cache_root),
        pipeline_cache_dir=str(tmp_path / "cache" / "pipelines"),
    )
    return DiskCache(ctx)


class TestEntryPath:
    """Tests for DiskCache.entry_path."""

    def test_relative_key(self, disk_cache, cache_root):
        assert disk_cache.entry_path(Scope.EVENT, "./mycache/") == cache_root / "mycache"

    def test_absolute_key(self, disk_cache, cache_root):
        assert disk_cache.entry_path(Scope.EVENT, "/opt/deps") == cache_root / "opt" / "deps"

    def test_scope_without_directory(self, disk_cache):
        with pytest.raises(InvalidParameters, match="no local cache directory for scope 'job'"):
            disk_cache.entry_path(Scope.JOB, "mycache")

    def test_empty_key(self, disk_cache):
        with pytest.raises(InvalidParameters, match="empty cache key"):
            disk_cache.entry_path(Scope.EVENT, "./")


class TestSetAndGet:
    """Tests for storing and restoring cache entries."""

    def test_set_writes_archive_and_manifest(self, disk_cache, workspace, cache_root):
        disk_cache.run("set", "event", "mycache")

        assert (cache_root / "mycache.zip").exists()
        manifest = json.loads((cache_root / "mycache_md5.json").read_text())
        assert sorted(manifest) == ["mycache/a.txt", "mycache/sub/b.txt"]

    def test_get_restores_entry(self, disk_cache, workspace):
        disk_cache.run(Action.SET, Scope.EVENT, "mycache")
        (workspace / "mycache" / "a.txt").unlink()
        (workspace / "mycache" / "sub" / "b.txt").write_text("changed")

        disk_cache.run(Action.GET, Scope.EVENT, "mycache")

        assert (workspace / "mycache" / "a.txt").read_text() == "alpha"
        assert (workspace / "mycache" / "sub" / "b.txt").read_text() == "beta"

    def test_scopes_are_separate(self, disk_cache, workspace, tmp_path):
        disk_cache.run("set", "pipeline", "mycache")

        assert (tmp_path / "cache" / "pipelines" / "mycache.zip").exists()
        assert not (tmp_path / "cache" / "events" / "mycache.zip").exists()

    def test_get_miss_is_not_an_error(self, disk_cache, workspace, caplog):
        caplog.set_level(logging.INFO, logger="store_cli.services.disk_cache")

        disk_cache.run("get", "event", "other")

        assert "No cache found" in caplog.text
        assert not (workspace / "other").exists()

    def test_unchanged_entry_is_skipped(self, disk_cache, workspace, cache_root, caplog):
        disk_cache.run("set", "event", "mycache")
        archive = cache_root / "mycache.zip"
        os.utime(archive, (0, 0))
        caplog.set_level(logging.INFO, logger="store_cli.services.disk_cache")

        disk_cache.run("set", "event", "mycache")

        assert "unchanged" in caplog.text
        assert archive.stat().st_mtime == 0

    def test_changed_entry_is_replaced(self, disk_cache, workspace, cache_root):
        disk_cache.run("set", "event", "mycache")
        (workspace / "mycache" / "c.txt").write_text("gamma")

        disk_cache.run("set", "event", "mycache")

        manifest = json.loads((cache_root / "mycache_md5.json").read_text())
        assert "mycache/c.txt" in manifest

    def test_missing_source_is_skipped(self, disk_cache, workspace, cache_root, caplog):
        caplog.set_level(logging.WARNING, logger="store_cli.services.disk_cache")

        disk_cache.run("set", "event", "missing")

        assert "does not exist" in caplog.text
        assert not cache_root.exists() or not any(cache_root.iterdir())

    def test_oversized_entry_is_not_stored(self, disk_cache, workspace, cache_root, caplog):
        (workspace / "mycache" / "big.bin").write_bytes(os.urandom(2 * 1024 * 1024))
        caplog.set_level(logging.WARNING, logger="store_cli.services.disk_cache")

        disk_cache.run("set", "event", "mycache", max_size_mb=1)

        assert "over the 1 MB limit" in caplog.text
        assert not (cache_root / "mycache.zip").exists()
        assert not (cache_root / "mycache_md5.json").exists()
        assert list(cache_root.iterdir()) == []

    def test_unbounded_when_max_size_is_zero(self, disk_cache, workspace, cache_root):
        (workspace / "mycache" / "big.bin").write_bytes(os.urandom(2 * 1024 * 1024))

        disk_cache.run("set", "event", "mycache", max_size_mb=0)

        assert (cache_root / "mycache.zip").exists()


class TestRemove:
    """Tests for removing cache entries."""

    def test_remove_deletes_both_files(self, disk_cache, workspace, cache_root):
        disk_cache.run("set", "event", "mycache")

        disk_cache.run("remove", "event", "mycache")

        assert not (cache_root / "mycache.zip").exists()
        assert not (cache_root / "mycache_md5.json").exists()
        assert (workspace / "mycache" / "a.txt").exists()

    def test_remove_missing_entry(self, disk_cache, workspace):
        disk_cache.run("remove", "event", "mycache")


class TestErrors:
    """Tests for disk failures."""

    def test_corrupt_archive(self, disk_cache, workspace, cache_root):
        cache_root.mkdir(parents=True)
        (cache_root / "mycache.zip").write_bytes(b"not a zip")

        with pytest.raises(BackendTransferError, match="disk cache get failed"):
            disk_cache.run("get", "event", "mycache")

    def test_unknown_action(self, disk_cache):
        with pytest.raises(InvalidParameters):
            disk_cache.run("list", "event", "mycache")
