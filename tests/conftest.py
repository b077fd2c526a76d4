"""Shared test fixtures for sdkgen."""

from __future__ import annotations

import os

import pytest

from sdkgen.build.executor import BlockingExecutor
from sdkgen.build.filesystem import FileSystem
from sdkgen.config import reset_settings
from sdkgen.core.models import Triple
from tests.helpers.fakes import FakeContainerClient, make_container_root


@pytest.fixture(autouse=True)
def _fresh_settings(monkeypatch):
    """Isolate every test from the developer's SDKGEN_* environment."""
    for key in list(os.environ):
        if key.startswith("SDKGEN_"):
            monkeypatch.delenv(key)
    reset_settings()
    yield
    reset_settings()


@pytest.fixture
def container_root(tmp_path):
    return make_container_root(tmp_path / "container")


@pytest.fixture
def containers(container_root):
    return FakeContainerClient(container_root)


@pytest.fixture
def executor():
    with BlockingExecutor(max_workers=2) as pool:
        yield pool


@pytest.fixture
def fs(executor):
    return FileSystem(executor)


@pytest.fixture
def x86_triple():
    return Triple.parse("x86_64-unknown-linux-gnu")
