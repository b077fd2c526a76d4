"""Unit tests for sdkgen structured logging."""

from __future__ import annotations

import json
import logging

import pytest

from sdkgen.core.logging import GeneratorLogger, RunLog, StepLog, Verbosity


class RecordingListener:
    def __init__(self):
        self.events = []

    def step_start(self, name):
        self.events.append(("start", name))

    def step_finish(self, name, copied, skipped, removed):
        self.events.append(("finish", name, copied, skipped, removed))

    def download_progress(self, name, received, total):
        self.events.append(("download", name, received, total))


def _events(path):
    return [json.loads(line) for line in path.read_text().splitlines()]


class TestStepLog:
    def test_creation_defaults(self):
        step = StepLog(name="copy-headers")
        assert step.copied == []
        assert step.skipped == []
        assert step.removed == []
        assert step.time_seconds == 0.0

    def test_to_dict(self):
        step = StepLog(name="copy-libraries", copied=["/usr/lib/swift"], skipped=["/usr/lib/clang"])
        d = step.to_dict()
        assert d["name"] == "copy-libraries"
        assert d["copied"] == ["/usr/lib/swift"]
        assert d["skipped"] == ["/usr/lib/clang"]


class TestRunLog:
    def test_get_or_create_step(self):
        log = RunLog(run_id="r")
        step = log.get_or_create_step("a")
        assert log.get_or_create_step("a") is step

    def test_finalize_totals(self):
        log = RunLog()
        log.get_or_create_step("a").copied.extend(["x", "y"])
        log.get_or_create_step("b").skipped.append("z")
        log.finalize()
        assert log.total_copied == 2
        assert log.total_skipped == 1

    def test_skip_notices_in_step_order(self):
        log = RunLog()
        log.get_or_create_step("a").skipped.append("/first")
        log.get_or_create_step("b").skipped.append("/second")
        assert log.skip_notices() == ["/first", "/second"]


class TestGeneratorLogger:
    def test_writes_jsonl(self, tmp_path):
        gl = GeneratorLogger(log_dir=tmp_path)
        gl.run_start("x86_64-unknown-linux-gnu", "linux")
        with gl.step("copy-headers"):
            gl.path_copied("/usr/include", "/sdk/usr/include")
        gl.run_finish(1.0)

        events = _events(gl.log_path)
        kinds = [e["event"] for e in events]
        assert kinds == ["run_start", "step_start", "path_copied", "step_finish", "run_finish"]
        assert events[3]["copied"] == 1
        assert all("timestamp" in e for e in events)

    def test_back_to_back_runs_get_separate_logs(self, tmp_path):
        first = GeneratorLogger(log_dir=tmp_path)
        second = GeneratorLogger(log_dir=tmp_path)
        first.close()
        second.close()
        assert first.run_log.run_id != second.run_log.run_id
        assert first.log_path != second.log_path
        assert len(list(tmp_path.glob("*.jsonl"))) == 2

    def test_no_log_dir_means_no_file(self):
        gl = GeneratorLogger()
        gl.step_start("a")
        gl.step_finish("a")
        assert gl.log_path is None

    def test_path_events_attach_to_current_step(self):
        gl = GeneratorLogger()
        with gl.step("copy-libraries") as step:
            gl.path_copied("/usr/lib/swift", "dest")
            gl.path_skipped("/usr/lib/clang", "not present")
            gl.path_removed("/sdk/usr/lib/ssl", "redundant")
        assert step.copied == ["/usr/lib/swift"]
        assert step.skipped == ["/usr/lib/clang"]
        assert step.removed == ["/sdk/usr/lib/ssl"]

    def test_skip_logged_at_info(self, caplog):
        gl = GeneratorLogger()
        with caplog.at_level(logging.INFO, logger="sdkgen.core.logging"):
            gl.path_skipped("/usr/lib/clang", "not present in container")
        assert "/usr/lib/clang" in caplog.text

    def test_failed_step_left_open(self, tmp_path):
        """run_failed names the step that raised."""
        gl = GeneratorLogger(log_dir=tmp_path)
        with pytest.raises(RuntimeError):
            with gl.step("copy-libraries"):
                raise RuntimeError("boom")
        gl.run_failed(RuntimeError("boom"))

        events = _events(gl.log_path)
        assert events[-1]["event"] == "run_failed"
        assert events[-1]["step"] == "copy-libraries"
        assert "step_finish" not in [e["event"] for e in events]

    def test_progress_listener_notified(self):
        listener = RecordingListener()
        gl = GeneratorLogger(progress=listener)
        with gl.step("download-toolchain"):
            gl.download_progress("t.tar.gz", 10, 100)
        assert listener.events == [
            ("start", "download-toolchain"),
            ("download", "t.tar.gz", 10, 100),
            ("finish", "download-toolchain", 0, 0, 0),
        ]

    def test_download_start_counts(self):
        gl = GeneratorLogger()
        gl.download_start("https://example.com/a")
        assert gl.run_log.downloads == 1

    def test_verbose_prints(self, capsys):
        gl = GeneratorLogger(verbosity=Verbosity.VERBOSE)
        gl.step_start("copy-headers")
        assert "copy-headers" in capsys.readouterr().out

    def test_default_is_quiet(self, capsys):
        gl = GeneratorLogger(verbosity=Verbosity.DEFAULT)
        gl.step_start("copy-headers")
        assert capsys.readouterr().out == ""
