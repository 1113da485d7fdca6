"""
Ignore-file loading for matomeru.

Parses gitignore-style files (.gitignore, .vscodeignore) into IgnorePattern
objects with support for:
- Nested ignore files scoped to their own directory
- Ignore files above the scan root, re-based onto the root
- Negation patterns (!)
- Directory-only patterns (trailing /)
- Anchored patterns (leading /)
- Double-star globs (**)
"""

import logging
import os
from dataclasses import dataclass, field, replace
from pathlib import Path

import pathspec

logger = logging.getLogger(__name__)

GITIGNORE = ".gitignore"
VSCODEIGNORE = ".vscodeignore"

# Directories never searched for nested ignore files
_SKIP_DIRS = frozenset({".git", "node_modules", "__pycache__", "venv", ".venv"})


class PatternSyntaxError(ValueError):
    """Raised when an ignore-file line is not a valid glob."""


def _validate(pattern: str) -> None:
    """
    Reject patterns that a glob matcher cannot compile sensibly.

    Raises:
        PatternSyntaxError: On an unclosed character class or a dangling escape
    """
    i = 0
    n = len(pattern)
    while i < n:
        ch = pattern[i]
        if ch == "\\":
            if i + 1 >= n:
                raise PatternSyntaxError("incomplete escape at end of pattern")
            i += 2
            continue
        if ch == "[":
            j = i + 1
            if j < n and pattern[j] in "!^":
                j += 1
            if j < n and pattern[j] == "]":
                j += 1
            while j < n and pattern[j] != "]":
                j += 2 if pattern[j] == "\\" else 1
            if j >= n:
                raise PatternSyntaxError("Unbalanced brackets")
            i = j + 1
            continue
        i += 1


@dataclass
class IgnorePattern:
    """
    A parsed ignore-file pattern with metadata.

    Attributes:
        raw: Original line (e.g., "!/important.py")
        pattern: Normalized, lower-cased pattern body (e.g., "important.py")
        negation: True if the line re-includes paths (leading !)
        directory_only: True if the line only matches directories (trailing /)
        anchored: True if the pattern is relative to its scope directory only
        source_path: Ignore file the line came from
        scope: Directory (relative to the scan root) the pattern applies under;
            "" for the root itself and for ancestor files
        base_prefix: For anchored patterns from an ignore file above the root,
            the root's path relative to that file's directory; paths are
            matched as base_prefix/path so the pattern keeps its own anchor
    """

    raw: str
    pattern: str
    negation: bool
    directory_only: bool
    anchored: bool
    source_path: Path
    scope: str = ""
    base_prefix: str = ""
    _spec: pathspec.PathSpec = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        line = self.pattern
        if line.startswith(("#", "!")):
            line = "\\" + line
        if self.anchored:
            line = "/" + line
        self._spec = pathspec.PathSpec.from_lines(
            pathspec.patterns.GitWildMatchPattern, [line]
        )

    @classmethod
    def parse(cls, raw_line: str, source_path: Path, scope: str = "") -> "IgnorePattern | None":
        """
        Parse one ignore-file line.

        Args:
            raw_line: Line as read from the file (line ending removed)
            source_path: Ignore file containing the line
            scope: Root-relative directory of that file

        Returns:
            IgnorePattern, or None for blank lines and comments

        Raises:
            PatternSyntaxError: If the pattern cannot be compiled
        """
        line = raw_line
        # Trailing spaces are insignificant unless escaped
        while line.endswith(" ") and not line.endswith("\\ "):
            line = line[:-1]
        line = line.lstrip()

        if not line or line.startswith("#"):
            return None

        negation = False
        if line.startswith("!"):
            negation = True
            line = line[1:]
        elif line.startswith(("\\#", "\\!")):
            line = line[1:]

        directory_only = False
        if line.endswith("/"):
            directory_only = True
            line = line.rstrip("/")

        anchored = False
        if line.startswith("/"):
            anchored = True
            line = line.lstrip("/")

        if not line:
            return None

        _validate(line)

        # A slash anywhere but the end anchors the pattern to its scope
        if "/" in line and not line.startswith("**/"):
            anchored = True

        return cls(
            raw=raw_line,
            pattern=line.lower(),
            negation=negation,
            directory_only=directory_only,
            anchored=anchored,
            source_path=source_path,
            scope=scope.lower(),
        )

    def matches(self, relative_path: str, is_dir: bool) -> bool:
        """
        Check the pattern against a lower-cased, root-relative POSIX path.

        A match on any ancestor directory of the path counts as a match, so a
        file below an ignored directory is reported as ignored.
        """
        scoped = relative_path
        if self.scope:
            if relative_path == self.scope:
                return False
            if not relative_path.startswith(self.scope + "/"):
                return False
            scoped = relative_path[len(self.scope) + 1:]
        if self.base_prefix:
            scoped = f"{self.base_prefix}/{scoped}" if scoped else self.base_prefix

        if self.directory_only and not is_dir:
            # Only the containing directories can satisfy a directory-only line
            parent, _, _ = scoped.rpartition("/")
            return bool(parent) and self._spec.match_file(parent)

        return self._spec.match_file(scoped)


class IgnoreFileLoader:
    """
    Collects ignore-file patterns that apply to a scan root.

    Patterns are returned in precedence order: ancestor files from the
    outermost inwards, then the root's own files, then nested files sorted by
    depth. Later patterns override earlier ones.
    """

    def __init__(self, root_path: Path):
        self._root_path = Path(root_path).resolve()

    def load(self, use_gitignore: bool, use_vscodeignore: bool) -> list[IgnorePattern]:
        """
        Load every enabled ignore file at, above and below the root.

        Args:
            use_gitignore: Read .gitignore files
            use_vscodeignore: Read .vscodeignore files

        Returns:
            Patterns in precedence order (empty if both toggles are off)
        """
        names = []
        if use_gitignore:
            names.append(GITIGNORE)
        if use_vscodeignore:
            names.append(VSCODEIGNORE)
        if not names:
            return []

        patterns: list[IgnorePattern] = []

        for ancestor in self._ancestor_dirs():
            prefix = self._root_path.relative_to(ancestor).as_posix()
            for name in names:
                ignore_file = ancestor / name
                if ignore_file.is_file():
                    patterns.extend(self._load_ancestor_file(ignore_file, prefix))

        for scope, directory in self._nested_dirs():
            for name in names:
                ignore_file = directory / name
                if ignore_file.is_file():
                    patterns.extend(self.load_file(ignore_file, scope))

        logger.debug(
            f"Loaded {len(patterns)} ignore patterns for {self._root_path}",
            extra={"root": str(self._root_path), "pattern_count": len(patterns)},
        )
        return patterns

    def load_file(self, ignore_file: Path, scope: str = "") -> list[IgnorePattern]:
        """
        Parse a single ignore file.

        Read errors and invalid lines are logged at WARNING and skipped;
        this method never raises.
        """
        try:
            content = ignore_file.read_text(encoding="utf-8")
        except UnicodeDecodeError as e:
            logger.warning(f"Invalid UTF-8 encoding in {ignore_file}: {e}")
            return []
        except PermissionError as e:
            logger.warning(f"Permission denied reading {ignore_file}: {e}")
            return []
        except OSError as e:
            logger.warning(f"Error reading {ignore_file}: {e}")
            return []

        patterns = []
        for line in content.splitlines():
            try:
                pattern = IgnorePattern.parse(line, ignore_file, scope)
            except PatternSyntaxError as e:
                logger.warning(f"Malformed pattern '{line}' in {ignore_file}: {e}")
                continue
            if pattern is not None:
                patterns.append(pattern)

        if patterns:
            logger.debug(f"Loaded {len(patterns)} patterns from {ignore_file}")
        return patterns

    def _load_ancestor_file(self, ignore_file: Path, prefix: str) -> list[IgnorePattern]:
        """
        Load an ignore file above the root.

        Unanchored patterns apply at any depth and are used as they are.
        Anchored patterns are matched from the ignore file's own directory by
        prefixing root-relative paths with `prefix`. A pattern matching the
        root or a directory between the ignore file and the root is dropped,
        since the root is never excluded.
        """
        prefix_lower = prefix.lower()
        parts = prefix_lower.split("/")
        between = ["/".join(parts[: i + 1]) for i in range(len(parts))]

        patterns = []
        for pattern in self.load_file(ignore_file):
            if not pattern.anchored:
                patterns.append(pattern)
                continue
            if any(pattern.matches(directory, is_dir=True) for directory in between):
                logger.debug(f"Dropping '{pattern.raw}' from {ignore_file}: it covers the scan root")
                continue
            patterns.append(replace(pattern, base_prefix=prefix_lower))
        return patterns

    def _ancestor_dirs(self) -> list[Path]:
        """
        Directories above the root, outermost first.

        The search stops at the enclosing git work tree (a directory holding
        .git), or at the filesystem root when there is none.
        """
        if (self._root_path / ".git").exists():
            return []

        ancestors = []
        for parent in self._root_path.parents:
            ancestors.append(parent)
            if (parent / ".git").exists():
                break
        ancestors.reverse()
        return ancestors

    def _nested_dirs(self) -> list[tuple[str, Path]]:
        """The root and its subdirectories as (scope, path), shallowest first."""
        found: list[tuple[int, str, Path]] = []
        try:
            for dirpath, dirnames, _ in os.walk(self._root_path):
                directory = Path(dirpath)
                scope = directory.relative_to(self._root_path).as_posix()
                if scope == ".":
                    scope = ""
                found.append((scope.count("/") + (1 if scope else 0), scope, directory))
                dirnames[:] = sorted(d for d in dirnames if d not in _SKIP_DIRS)
        except OSError as e:
            logger.warning(f"Error scanning for ignore files under {self._root_path}: {e}")

        found.sort(key=lambda item: (item[0], item[1]))
        return [(scope, directory) for _, scope, directory in found]
