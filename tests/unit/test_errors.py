"""Tests for sdkgen error types and atomic_write."""

from __future__ import annotations

import pytest

from sdkgen.core.errors import (
    ConfigurationError,
    MissingPathError,
    QueryCancelledError,
    SdkGenError,
    atomic_write,
)


class TestAtomicWrite:
    def test_writes_bytes_and_text(self, tmp_path):
        atomic_write(tmp_path / "a.json", b"{}")
        atomic_write(tmp_path / "b.txt", "hello")
        assert (tmp_path / "a.json").read_bytes() == b"{}"
        assert (tmp_path / "b.txt").read_text() == "hello"

    def test_replaces_existing_file(self, tmp_path):
        target = tmp_path / "cache.json"
        target.write_text("old")
        atomic_write(target, "new")
        assert target.read_text() == "new"
        assert list(tmp_path.iterdir()) == [target]

    def test_failed_replace_raises_original_error(self, tmp_path):
        target = tmp_path / "toolset.json"
        target.mkdir()
        with pytest.raises(IsADirectoryError):
            atomic_write(target, b"{}")
        assert list(tmp_path.glob("*.tmp")) == []
        assert target.is_dir()


class TestErrorHierarchy:
    def test_missing_path_is_fatal_configuration_error(self):
        err = MissingPathError("copy-headers", "/usr/include")
        assert isinstance(err, ConfigurationError)
        assert "[copy-headers]" in str(err)

    def test_query_cancelled_is_not_fatal(self):
        err = QueryCancelledError("sdkgen:download:v1:abc")
        assert isinstance(err, SdkGenError)
        assert not isinstance(err, ConfigurationError)
