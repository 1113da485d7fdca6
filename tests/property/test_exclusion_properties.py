"""
Property-based tests for the exclusion policy.

The mandatory security patterns must hold whatever caller patterns and
ignore-file lines are combined with them.
"""

from pathlib import Path

from hypothesis import given, settings
from hypothesis import strategies as st

from matomeru.core.exclusion import ExclusionPolicy
from matomeru.core.ignore_loader import IgnorePattern

MANDATORY_PATHS = [
    ".env",
    "app/.env.local",
    ".git/HEAD",
    ".ssh/id_rsa",
    "secrets/db.txt",
    "deploy/server.pem",
    "package-lock.json",
    "src/__pycache__/mod.cpython-312.pyc",
    "credentials.json",
]

caller_pattern = st.from_regex(r"!?[a-z*./_]{1,12}", fullmatch=True)

ignore_line = st.one_of(
    st.sampled_from(["!.env", "!*.pem", "!secrets/", "!.git/**", "!**/*", "*", "!*"]),
    st.from_regex(r"!?[a-z*._/]{1,12}", fullmatch=True),
)

directory_prefix = st.lists(st.from_regex(r"[a-z]{1,6}", fullmatch=True), max_size=3).map(
    lambda parts: "".join(f"{p}/" for p in parts)
)


def _ignore_patterns(lines: list[str]) -> list[IgnorePattern]:
    patterns = []
    for line in lines:
        pattern = IgnorePattern.parse(line, Path(".gitignore"))
        if pattern is not None:
            patterns.append(pattern)
    return patterns


@settings(max_examples=100, deadline=None)
@given(
    caller=st.lists(caller_pattern, max_size=6),
    ignore=st.lists(ignore_line, max_size=6),
    path=st.sampled_from(MANDATORY_PATHS),
)
def test_mandatory_paths_stay_excluded(caller, ignore, path):
    """No caller pattern or ignore negation re-includes a mandatory path."""
    matcher = ExclusionPolicy.compile(caller, _ignore_patterns(ignore))
    assert matcher.is_excluded(path)
    assert matcher.is_excluded_with_parents(path)


@settings(max_examples=100, deadline=None)
@given(prefix=directory_prefix, path=st.sampled_from(MANDATORY_PATHS))
def test_mandatory_paths_excluded_at_any_depth(prefix, path):
    matcher = ExclusionPolicy.compile([])
    assert matcher.is_excluded_with_parents(prefix + path)


@settings(max_examples=100, deadline=None)
@given(
    caller=st.lists(caller_pattern, max_size=6),
    extra=st.lists(caller_pattern, max_size=3),
    path=st.from_regex(r"[a-z]{1,6}(/[a-z]{1,6}){0,2}\.(py|md|txt)", fullmatch=True),
)
def test_adding_caller_patterns_never_reincludes(caller, extra, path):
    """Exclusion is monotonic in the caller pattern list."""
    base = ExclusionPolicy.compile(caller)
    extended = ExclusionPolicy.compile([*caller, *extra])
    if base.is_excluded(path):
        assert extended.is_excluded(path)
