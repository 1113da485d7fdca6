"""
Validation of user-supplied diff ranges.

A range is split on whitespace and every token must match a conservative
allow-list before it is placed in a git argv. The argv is never passed
through a shell.
"""

import re

from matomeru.errors import InvalidRangeTokenError

# Revision characters: names, paths, '..'/'...', reflog '@{n}', peel '^{type}', '~n', ':path'
_TOKEN_PATTERN = re.compile(r"^[A-Za-z0-9_./@^~:{}-]+$")


def split_range(raw_range: str | None) -> list[str]:
    """Split a raw range string into validated tokens."""
    if raw_range is None:
        return []
    tokens = raw_range.split()
    for token in tokens:
        validate_token(token)
    return tokens


def validate_token(token: str) -> str:
    """
    Check a single range token.

    Raises:
        InvalidRangeTokenError: If the token contains a character outside the
            allow-list, or starts with '-' and would be read as a git option
    """
    if not _TOKEN_PATTERN.fullmatch(token) or token.startswith("-"):
        raise InvalidRangeTokenError(token)
    return token


def build_args(raw_range: str | None = None, *, unified_zero: bool = False) -> list[str]:
    """
    Build the git argv for a diff range.

    Args:
        raw_range: Range such as 'HEAD~1..HEAD'; None or blank diffs the work tree
        unified_zero: Request hunks without context instead of file names

    Returns:
        ["diff", "--name-only", *tokens] or ["diff", "--unified=0", *tokens]

    Raises:
        InvalidRangeTokenError: Before any process is spawned
    """
    mode = "--unified=0" if unified_zero else "--name-only"
    return ["diff", mode, *split_range(raw_range)]
