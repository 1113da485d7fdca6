"""
Invocation of the git executable for diff mode.
"""

import logging
import subprocess
from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path

from matomeru.errors import DiffProcessError, NotARepositoryError, ToolNotFoundError

logger = logging.getLogger(__name__)

_NOT_A_REPOSITORY = "not a git repository"
_TOOL_MISSING_MARKERS = ("command not found", "not recognized", "no such file")


@dataclass(frozen=True)
class DiffOutput:
    """Captured stdout of a successful git run."""

    stdout_lines: list[str]

    @property
    def text(self) -> str:
        return "\n".join(self.stdout_lines)


class DiffProcessInvokerInterface(ABC):
    """Abstract interface for running a diff tool."""

    @abstractmethod
    def run(self, cwd: Path, argv: list[str]) -> DiffOutput:
        """
        Run the diff tool with a pre-validated argv.

        Args:
            cwd: Working directory (inside the repository)
            argv: Arguments after the executable, e.g. from build_args()

        Raises:
            NotARepositoryError: cwd is not inside a repository
            ToolNotFoundError: The executable could not be launched
            DiffProcessError: Non-zero exit or timeout
        """
        pass


class GitDiffInvoker(DiffProcessInvokerInterface):
    """Runs git without a shell and classifies its failures."""

    def __init__(self, executable: str = "git", timeout: float = 30.0):
        self._executable = executable
        self._timeout = timeout

    def run(self, cwd: Path, argv: list[str]) -> DiffOutput:
        command = [self._executable, *argv]
        logger.info(f"Running {' '.join(command)} in {cwd}")

        try:
            result = subprocess.run(
                command,
                cwd=cwd,
                capture_output=True,
                text=True,
                encoding="utf-8",
                errors="replace",
                shell=False,
                timeout=self._timeout,
                check=False,
            )
        except FileNotFoundError as e:
            if not Path(cwd).is_dir():
                raise DiffProcessError(f"Working directory not found: {cwd}", exit_code=-1) from e
            raise ToolNotFoundError(f"Executable not found: {self._executable}") from e
        except subprocess.TimeoutExpired as e:
            raise DiffProcessError(
                f"{self._executable} timed out after {self._timeout}s", exit_code=-1
            ) from e
        except OSError as e:
            message = str(e).lower()
            if any(marker in message for marker in _TOOL_MISSING_MARKERS):
                raise ToolNotFoundError(f"Executable not found: {self._executable}") from e
            raise DiffProcessError(f"Failed to launch {self._executable}: {e}", exit_code=-1) from e

        stderr = result.stderr or ""
        if _NOT_A_REPOSITORY in stderr.lower():
            raise NotARepositoryError(f"Not a git repository: {cwd}")

        if result.returncode != 0:
            lowered = stderr.lower()
            if result.returncode == 127 and any(m in lowered for m in _TOOL_MISSING_MARKERS):
                raise ToolNotFoundError(f"Executable not found: {self._executable}")
            raise DiffProcessError(
                f"{self._executable} exited with status {result.returncode}: {stderr.strip()}",
                exit_code=result.returncode,
                stderr=stderr,
            )

        if stderr.strip():
            logger.warning(f"git reported: {stderr.strip()}")

        lines = [line for line in result.stdout.splitlines() if line]
        logger.debug(f"git produced {len(lines)} lines")
        return DiffOutput(stdout_lines=lines)
