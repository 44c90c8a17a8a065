"""Tests for nightly.platform.process module."""

from __future__ import annotations

import sys
from pathlib import Path

import pytest

from nightly.core.result import Err, Ok
from nightly.platform.process import ProcessError, merged_env, run


class TestProcessError:
    def test_str_short_command(self) -> None:
        error = ProcessError(command=("gh", "release"), returncode=1, stdout="", stderr="")
        assert str(error) == "gh release failed (exit 1)"

    def test_str_long_command_truncated(self) -> None:
        error = ProcessError(
            command=("cargo", "build", "--locked", "--release"),
            returncode=101,
            stdout="",
            stderr="",
        )
        assert str(error) == "cargo build --locked ... failed (exit 101)"

    def test_detail_prefers_last_stderr_line(self) -> None:
        error = ProcessError(
            command=("gh",),
            returncode=1,
            stdout="",
            stderr="warning: something\nHTTP 422: Validation Failed\n",
        )
        assert error.detail == "HTTP 422: Validation Failed"

    def test_detail_falls_back_to_summary(self) -> None:
        error = ProcessError(command=("gh", "x"), returncode=2, stdout="", stderr="")
        assert error.detail == "gh x failed (exit 2)"


class TestMergedEnv:
    def test_none_without_overrides(self) -> None:
        assert merged_env(None) is None
        assert merged_env({}) is None

    def test_overrides_layer_on_environment(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("NIGHTLY_BASE", "base")
        env = merged_env({"RUSTFLAGS": "-Ctarget-feature=+crt-static"})
        assert env is not None
        assert env["NIGHTLY_BASE"] == "base"
        assert env["RUSTFLAGS"] == "-Ctarget-feature=+crt-static"


class TestRun:
    def test_success_returns_stdout(self, tmp_path: Path) -> None:
        result = run([sys.executable, "-c", "print('hello')"], cwd=tmp_path)
        assert isinstance(result, Ok)
        assert "hello" in result.value

    def test_failure_returns_error(self, tmp_path: Path) -> None:
        result = run(
            [sys.executable, "-c", "import sys; sys.stderr.write('bad'); sys.exit(3)"],
            cwd=tmp_path,
        )
        assert isinstance(result, Err)
        assert result.error.returncode == 3
        assert "bad" in result.error.stderr

    def test_env_overrides_reach_child(self, tmp_path: Path) -> None:
        result = run(
            [sys.executable, "-c", "import os; print(os.environ['NIGHTLY_CHILD_ENV'])"],
            cwd=tmp_path,
            env={"NIGHTLY_CHILD_ENV": "child-value"},
        )
        assert isinstance(result, Ok)
        assert result.value.strip() == "child-value"

    def test_missing_executable(self, tmp_path: Path) -> None:
        result = run(["definitely-not-a-real-tool-xyz"], cwd=tmp_path)
        assert isinstance(result, Err)
        assert result.error.returncode == -1

    def test_timeout(self, tmp_path: Path) -> None:
        result = run(
            [sys.executable, "-c", "import time; time.sleep(5)"],
            cwd=tmp_path,
            timeout=0.2,
        )
        assert isinstance(result, Err)
        assert "timed out" in result.error.stderr
