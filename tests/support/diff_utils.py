"""Fake diff invoker for service and CLI tests."""

from pathlib import Path

from matomeru.diff.invoker import DiffOutput, DiffProcessInvokerInterface


class FakeDiffInvoker(DiffProcessInvokerInterface):
    """
    Returns canned git output keyed by diff mode.

    Args:
        name_only: Lines returned for '--name-only' runs
        unified: Lines returned for '--unified=0' runs
        error: Exception raised by every run instead of returning output
    """

    def __init__(
        self,
        name_only: list[str] | None = None,
        unified: list[str] | None = None,
        error: Exception | None = None,
    ):
        self.name_only = name_only or []
        self.unified = unified or []
        self.error = error
        self.calls: list[tuple[Path, list[str]]] = []

    def run(self, cwd: Path, argv: list[str]) -> DiffOutput:
        self.calls.append((cwd, list(argv)))
        if self.error is not None:
            raise self.error
        if "--unified=0" in argv:
            return DiffOutput(stdout_lines=list(self.unified))
        return DiffOutput(stdout_lines=list(self.name_only))
