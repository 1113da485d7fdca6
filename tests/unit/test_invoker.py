"""
Tests for GitDiffInvoker with subprocess.run patched out.
"""

import subprocess
from unittest.mock import patch

import pytest

from matomeru.diff.invoker import GitDiffInvoker
from matomeru.errors import DiffProcessError, NotARepositoryError, ToolNotFoundError


def _completed(stdout="", stderr="", returncode=0):
    return subprocess.CompletedProcess(args=[], returncode=returncode, stdout=stdout, stderr=stderr)


class TestGitDiffInvoker:
    def test_runs_without_shell(self, tmp_path):
        with patch("subprocess.run", return_value=_completed("a.py\n\nb.py\n")) as run:
            output = GitDiffInvoker(timeout=5).run(tmp_path, ["diff", "--name-only"])

        assert output.stdout_lines == ["a.py", "b.py"]
        assert output.text == "a.py\nb.py"
        args, kwargs = run.call_args
        assert args[0] == ["git", "diff", "--name-only"]
        assert kwargs["shell"] is False
        assert kwargs["cwd"] == tmp_path
        assert kwargs["timeout"] == 5

    def test_not_a_repository(self, tmp_path):
        stderr = "fatal: not a git repository (or any of the parent directories): .git\n"
        with patch("subprocess.run", return_value=_completed(stderr=stderr, returncode=128)):
            with pytest.raises(NotARepositoryError):
                GitDiffInvoker().run(tmp_path, ["diff"])

    def test_missing_executable(self, tmp_path):
        with patch("subprocess.run", side_effect=FileNotFoundError("git")):
            with pytest.raises(ToolNotFoundError):
                GitDiffInvoker("no-such-git").run(tmp_path, ["diff"])

    def test_missing_working_directory(self, tmp_path):
        with patch("subprocess.run", side_effect=FileNotFoundError("cwd")):
            with pytest.raises(DiffProcessError):
                GitDiffInvoker().run(tmp_path / "gone", ["diff"])

    def test_non_zero_exit(self, tmp_path):
        stderr = "fatal: ambiguous argument 'nope'\n"
        with patch("subprocess.run", return_value=_completed(stderr=stderr, returncode=128)):
            with pytest.raises(DiffProcessError) as exc_info:
                GitDiffInvoker().run(tmp_path, ["diff", "nope"])
        assert exc_info.value.exit_code == 128
        assert "ambiguous argument" in exc_info.value.stderr

    def test_timeout(self, tmp_path):
        with patch("subprocess.run", side_effect=subprocess.TimeoutExpired("git", 1)):
            with pytest.raises(DiffProcessError, match="timed out"):
                GitDiffInvoker(timeout=1).run(tmp_path, ["diff"])

    def test_stderr_on_success_is_logged(self, tmp_path, caplog):
        completed = _completed("a.py\n", stderr="warning: CRLF will be replaced\n")
        with patch("subprocess.run", return_value=completed):
            output = GitDiffInvoker().run(tmp_path, ["diff"])
        assert output.stdout_lines == ["a.py"]
        assert any("CRLF" in r.message for r in caplog.records)
