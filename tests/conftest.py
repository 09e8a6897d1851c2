"""Pytest configuration and fixtures for store-cli tests."""

import os

import pytest

from store_cli.config import ExecutionContext

STORE_URL = "http://store.example/v1/"


@pytest.fixture(autouse=True)
def clean_sd_env(monkeypatch):
    """Keep the host's SD_* variables out of every test."""
    for name in list(os.environ):
        if name.startswith("SD_"):
            monkeypatch.delenv(name)


@pytest.fixture
def make_ctx():
    """Factory for ExecutionContext with the standard test build ids."""

    def _make(**overrides) -> ExecutionContext:
        values = {
            "store_url": STORE_URL,
            "build_id": "10038",
            "job_id": "888",
            "event_id": "499",
            "pipeline_id": "100",
        }
        values.update(overrides)
        return ExecutionContext(**values)

    return _make


@pytest.fixture
def ctx(make_ctx):
    """ExecutionContext for a regular (non-PR) build."""
    return make_ctx()


@pytest.fixture
def pr_ctx(make_ctx):
    """ExecutionContext for a pull-request build."""
    return make_ctx(pull_request="900", pr_parent_job_id="987")
