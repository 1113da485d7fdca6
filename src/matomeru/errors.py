"""Exception types for matomeru.

Every error carries a ``kind`` string so callers can branch on the failure
category without importing the concrete class.
"""


class MatomeruError(Exception):
    """Base exception for matomeru errors."""

    kind: str = "Error"

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class ScanFailure(MatomeruError):
    """A fatal error scanning a single root."""

    kind = "ScanFailure"

    def __init__(self, message: str, path: str | None = None):
        self.path = path
        super().__init__(message)


class DirectoryNotFoundError(ScanFailure):
    """The root path does not exist."""

    kind = "DirectoryNotFound"


class ScanPermissionError(ScanFailure):
    """The root path exists but cannot be listed."""

    kind = "PermissionDenied"


class RootNotDirectoryError(ScanFailure):
    """The root path is neither a directory nor a regular file."""

    kind = "NotADirectory"


class ScanCancelled(ScanFailure):
    """The scan was aborted through its cancellation token."""

    kind = "Cancelled"


class DiffError(MatomeruError):
    """Base exception for diff mode errors."""

    kind = "DiffError"


class InvalidRangeTokenError(DiffError):
    """A diff range token contains characters outside the allow-list."""

    kind = "InvalidRangeToken"

    def __init__(self, token: str):
        self.token = token
        super().__init__(f"Invalid diff range token: {token!r}")


class NotARepositoryError(DiffError):
    """The working directory is not inside a git repository."""

    kind = "NotARepository"


class ToolNotFoundError(DiffError):
    """The git executable could not be launched."""

    kind = "ToolNotFound"


class DiffProcessError(DiffError):
    """git exited with a non-zero status or timed out."""

    kind = "ProcessError"

    def __init__(self, message: str, exit_code: int, stderr: str = ""):
        self.exit_code = exit_code
        self.stderr = stderr
        super().__init__(message)


_REMEDIATION: dict[str, str] = {
    "DirectoryNotFound": "Check that the path exists and is spelled correctly.",
    "PermissionDenied": "Check read permissions on the directory.",
    "NotADirectory": "Select a directory or a regular file.",
    "Cancelled": "The scan was cancelled before it finished.",
    "InvalidRangeToken": (
        "Use a plain revision range such as HEAD~1..HEAD; "
        "shell metacharacters are not allowed."
    ),
    "NotARepository": "Run the diff command inside a git working tree.",
    "ToolNotFound": "Install git and make sure it is on PATH.",
    "ProcessError": "git reported an error; check the revision range.",
    "UnsupportedFormat": "Choose one of the supported output formats: markdown or yaml.",
    "ScanFailure": "The root could not be scanned; see the log for details.",
}


def describe_failure(kind: str) -> str:
    """Return a short remediation hint for a failure kind."""
    return _REMEDIATION.get(kind, "An unexpected error occurred.")
