"""
Binary content detection.

A file is treated as binary when its extension is a known binary format,
its first bytes match a known magic number, or the sniffed prefix contains
NUL bytes or too many non-text bytes.
"""

from pathlib import Path

# Number of leading bytes inspected by the content sniff
SNIFF_SIZE = 8192

# Fraction of non-text bytes above which a prefix is considered binary
NON_TEXT_RATIO = 0.30

BINARY_EXTENSIONS: frozenset[str] = frozenset([
    # Executables and libraries
    ".exe", ".dll", ".so", ".dylib", ".bin", ".o", ".a", ".class", ".pyc", ".wasm",
    # Images
    ".jpg", ".jpeg", ".png", ".gif", ".bmp", ".ico", ".webp", ".tiff",
    # Audio and video
    ".mp3", ".wav", ".ogg", ".mp4", ".avi", ".mov", ".wmv",
    # Archives
    ".zip", ".tar", ".gz", ".7z", ".rar", ".jar",
    # Documents
    ".pdf", ".doc", ".docx", ".xls", ".xlsx", ".ppt", ".pptx",
    # Databases
    ".db", ".sqlite",
])

_MAGIC_NUMBERS: tuple[bytes, ...] = (
    b"\x89PNG\r\n\x1a\n",
    b"\xff\xd8\xff",  # JPEG
    b"GIF87a",
    b"GIF89a",
    b"%PDF-",
    b"PK\x03\x04",  # zip, jar, docx
    b"\x1f\x8b",  # gzip
    b"\x7fELF",
    b"MZ",  # PE executables
    b"\xca\xfe\xba\xbe",  # Mach-O fat / Java class
    b"\xcf\xfa\xed\xfe",  # Mach-O 64
    b"\x00asm",  # WebAssembly
    b"SQLite format 3\x00",
)

# Byte values that appear in ordinary text: printable ASCII, tab, newlines,
# form feed, backspace, escape, and everything >= 0x80 (UTF-8 sequences).
_TEXT_BYTES = bytes({7, 8, 9, 10, 12, 13, 27} | set(range(0x20, 0x7F)) | set(range(0x80, 0x100)))


def has_binary_extension(path: Path | str) -> bool:
    """Check whether the file extension names a known binary format."""
    return Path(path).suffix.lower() in BINARY_EXTENSIONS


def is_binary_content(sample: bytes) -> bool:
    """
    Classify a byte prefix as binary or text.

    Args:
        sample: Leading bytes of the file (empty files are text)

    Returns:
        True if the sample looks binary
    """
    if not sample:
        return False

    if sample.startswith(_MAGIC_NUMBERS):
        # "MZ" is also a plausible start of a text file; require a NUL too
        if not sample.startswith(b"MZ") or b"\x00" in sample:
            return True

    if b"\x00" in sample:
        return True

    non_text = sample.translate(None, _TEXT_BYTES)
    return len(non_text) / len(sample) > NON_TEXT_RATIO


def sniff_file(path: Path) -> bool:
    """
    Read the leading bytes of a file and classify them.

    Raises:
        OSError: If the file cannot be read
    """
    with open(path, "rb") as f:
        return is_binary_content(f.read(SNIFF_SIZE))
