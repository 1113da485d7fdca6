"""
Lenient unified diff parser.

Produces, for every file touched by a diff, the set of new-side line numbers
covered by its hunks. Anything it does not understand is skipped.
"""

import logging
import re
from collections.abc import Iterable

logger = logging.getLogger(__name__)

HunkLineMap = dict[str, set[int]]

_HUNK_HEADER = re.compile(r"@@ -\d+(?:,\d+)? \+(\d+)(?:,(\d+))? @@")
_NULL_DEVICE = "/dev/null"

# Single-character escapes git uses when it C-quotes a path
_C_ESCAPES = {
    "a": 0x07,
    "b": 0x08,
    "t": 0x09,
    "n": 0x0A,
    "v": 0x0B,
    "f": 0x0C,
    "r": 0x0D,
    '"': 0x22,
    "\\": 0x5C,
}
_OCTAL_DIGITS = "01234567"


def unquote_c_path(raw_path: str) -> str:
    """
    Decode a path as git prints it.

    git wraps paths holding non-ASCII bytes, quotes, backslashes or control
    characters in double quotes and escapes them C-style, with each non-ASCII
    byte written in octal: "caf\\303\\251.py" is café.py. Unquoted paths are
    returned as they are. Undecodable bytes are kept as surrogate escapes,
    matching os.fsdecode.
    """
    path = raw_path.strip()
    if len(path) < 2 or path[0] != '"' or path[-1] != '"':
        return path

    body = path[1:-1]
    decoded = bytearray()
    i = 0
    while i < len(body):
        ch = body[i]
        if ch != "\\" or i + 1 >= len(body):
            decoded.extend(ch.encode("utf-8"))
            i += 1
            continue
        nxt = body[i + 1]
        if nxt in _OCTAL_DIGITS:
            end = i + 1
            while end < min(i + 4, len(body)) and body[end] in _OCTAL_DIGITS:
                end += 1
            decoded.append(int(body[i + 1:end], 8) & 0xFF)
            i = end
        elif nxt in _C_ESCAPES:
            decoded.append(_C_ESCAPES[nxt])
            i += 2
        else:
            decoded.extend(nxt.encode("utf-8"))
            i += 2
    return decoded.decode("utf-8", errors="surrogateescape")


def normalize_diff_path(raw_path: str) -> str:
    """Decode a '---'/'+++' label and strip its a/ or b/ prefix."""
    cleaned = unquote_c_path(raw_path)
    if cleaned.startswith(("a/", "b/")):
        return cleaned[2:]
    return cleaned


def parse_name_list(lines: Iterable[str]) -> list[str]:
    """
    Decode 'git diff --name-only' output into paths.

    Names carry no a/ or b/ prefix, so a directory really called 'a' keeps
    its name. Blank lines are dropped.
    """
    return [unquote_c_path(line) for line in lines if line.strip()]


def parse_unified_diff(diff_text: str | Iterable[str]) -> HunkLineMap:
    """
    Parse unified diff text into a HunkLineMap.

    Args:
        diff_text: Diff text, or an iterable of its lines

    Returns:
        Mapping of new-side path to the changed line numbers (1-based).
        Deleted files and pure-deletion hunks contribute nothing.
    """
    lines = diff_text.splitlines() if isinstance(diff_text, str) else diff_text
    line_map: HunkLineMap = {}
    current_file: str | None = None

    for line in lines:
        if line.startswith("diff --git"):
            current_file = None
            continue

        if line.startswith("+++ "):
            label = line[4:].strip()
            # git appends a tab and timestamp for some diff sources
            label = label.split("\t", 1)[0]
            current_file = None if label == _NULL_DEVICE else normalize_diff_path(label)
            continue

        if not line.startswith("@@"):
            continue

        if current_file is None:
            logger.debug(f"Hunk header without a current file: {line!r}")
            continue

        match = _HUNK_HEADER.match(line)
        if match is None:
            logger.debug(f"Skipping malformed hunk header: {line!r}")
            continue

        start = int(match.group(1))
        length = int(match.group(2)) if match.group(2) is not None else 1
        if length == 0:
            continue

        line_map.setdefault(current_file, set()).update(range(start, start + length))

    return line_map
