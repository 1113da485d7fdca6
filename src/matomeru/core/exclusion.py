"""
Exclusion policy: merges the mandatory security patterns, caller patterns and
ignore-file patterns into a single matcher.

Precedence is fixed. The mandatory set is checked first and cannot be
overridden; caller patterns come next; ignore-file patterns are evaluated
last-match-wins so that negations can re-include paths excluded by an
earlier ignore line.
"""

import logging
from collections.abc import Iterable, Sequence

import pathspec

from matomeru.core.ignore_loader import IgnorePattern

logger = logging.getLogger(__name__)

# Patterns that are ALWAYS excluded regardless of user configuration.
# These protect credentials, keys and private data from ending up in a document.
MANDATORY_EXCLUDE_PATTERNS: tuple[str, ...] = (
    # Version control metadata
    ".git/**",
    ".svn/**",
    ".hg/**",
    # SSH and GPG directories
    ".ssh/**",
    ".gnupg/**",
    # SSH key files
    "id_rsa",
    "id_rsa.pub",
    "id_ed25519",
    "id_ed25519.pub",
    "id_ecdsa",
    "id_ecdsa.pub",
    "id_dsa",
    "id_dsa.pub",
    # Certificates and keys
    "*.pem",
    "*.key",
    "*.p12",
    "*.pfx",
    "*.crt",
    "*.jks",
    "*.keystore",
    # Secrets and credentials
    "secrets/**",
    ".aws/**",
    "credentials",
    "credentials.json",
    ".htpasswd",
    # Environment files
    ".env",
    ".env.*",
    ".netrc",
    ".npmrc",
    ".pypirc",
    # Lockfiles
    "package-lock.json",
    "yarn.lock",
    "pnpm-lock.yaml",
    "*.lock",
    ".pnp.*",
    ".yarn/**",
    ".npm/**",
    # Build and tool caches
    "__pycache__/**",
    "*.pyc",
    ".pytest_cache/**",
    ".mypy_cache/**",
    ".ruff_cache/**",
    ".hypothesis/**",
    ".tox/**",
    ".cache/**",
)


def _normalize(path: str) -> str:
    return path.replace("\\", "/").strip("/").lower()


def _to_gitwildmatch(pattern: str) -> str:
    """
    Convert an exclusion glob into a gitwildmatch line.

    A trailing '/**' names a directory; it is reduced to the directory name so
    the directory itself matches and can be pruned along with its contents.
    """
    pattern = pattern.strip().replace("\\", "/").lower()
    if pattern.endswith("/**"):
        pattern = pattern[:-3]
    return pattern


def compile_patterns(patterns: Iterable[str]) -> pathspec.PathSpec:
    """
    Compile exclusion globs into one PathSpec.

    Malformed patterns are logged at WARNING and left out, so they never match.
    """
    compiled = []
    for raw in patterns:
        line = _to_gitwildmatch(raw)
        if not line or line.startswith("!"):
            logger.warning(f"Ignoring unsupported exclude pattern: {raw!r}")
            continue
        try:
            pattern = pathspec.patterns.GitWildMatchPattern(line)
        except ValueError as e:
            logger.warning(f"Malformed exclude pattern {raw!r}: {e}")
            continue
        if pattern.include is not None:
            compiled.append(pattern)
    return pathspec.PathSpec(compiled)


class ExclusionMatcher:
    """
    Compiled exclusion policy for one scan root.

    Paths are root-relative and compared case-insensitively with '/' separators.
    """

    def __init__(
        self,
        mandatory: pathspec.PathSpec,
        caller: pathspec.PathSpec,
        ignore_patterns: Sequence[IgnorePattern] = (),
    ):
        self._mandatory = mandatory
        self._caller = caller
        self._ignore_patterns = list(ignore_patterns)

    def is_mandatory_excluded(self, relative_path: str, is_dir: bool = False) -> bool:
        """Check the path against the mandatory security set only."""
        path = _normalize(relative_path)
        if not path:
            return False
        return self._mandatory.match_file(f"{path}/" if is_dir else path)

    def is_excluded(self, relative_path: str, is_dir: bool = False) -> bool:
        """
        Check whether a path is excluded.

        Args:
            relative_path: Path relative to the scan root
            is_dir: True if the path is a directory

        Returns:
            True if the path (or, for a directory, its whole subtree) is excluded
        """
        path = _normalize(relative_path)
        if not path:
            # The selected root itself is never excluded
            return False

        # A trailing slash lets directory-only globs such as 'tmp/' hit the directory
        candidate = f"{path}/" if is_dir else path

        if self._mandatory.match_file(candidate):
            return True

        if self._caller.match_file(candidate):
            return True

        ignored = False
        for pattern in self._ignore_patterns:
            if pattern.matches(path, is_dir):
                ignored = not pattern.negation
        return ignored

    def is_excluded_with_parents(self, relative_path: str) -> bool:
        """
        Check a file path and every directory above it.

        Used when paths are supplied directly instead of discovered by a walk
        that would already have pruned excluded directories.
        """
        parts = _normalize(relative_path).split("/")
        for i in range(1, len(parts)):
            if self.is_excluded("/".join(parts[:i]), is_dir=True):
                return True
        return self.is_excluded("/".join(parts), is_dir=False)


class ExclusionPolicy:
    """Builds ExclusionMatcher instances; holds no per-scan state."""

    @staticmethod
    def effective_patterns(patterns: Iterable[str]) -> list[str]:
        """Mandatory patterns followed by the caller's, de-duplicated, order preserved."""
        return list(dict.fromkeys([*MANDATORY_EXCLUDE_PATTERNS, *patterns]))

    @staticmethod
    def compile(
        patterns: Iterable[str],
        ignore_patterns: Sequence[IgnorePattern] = (),
    ) -> ExclusionMatcher:
        """
        Compile caller patterns and ignore-file patterns into a matcher.

        Args:
            patterns: Caller-supplied exclusion globs
            ignore_patterns: Patterns loaded by IgnoreFileLoader, in precedence order

        Returns:
            ExclusionMatcher with the mandatory set always applied first
        """
        caller = [p for p in patterns if p not in MANDATORY_EXCLUDE_PATTERNS]
        return ExclusionMatcher(
            mandatory=compile_patterns(MANDATORY_EXCLUDE_PATTERNS),
            caller=compile_patterns(caller),
            ignore_patterns=ignore_patterns,
        )
