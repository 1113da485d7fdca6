"""
Tests for binary detection.
"""

from matomeru.core.file_scanner.binary import (
    SNIFF_SIZE,
    has_binary_extension,
    is_binary_content,
    sniff_file,
)


class TestBinaryExtension:
    def test_known_extensions(self):
        assert has_binary_extension("image.PNG")
        assert has_binary_extension("lib/app.jar")
        assert has_binary_extension("data.sqlite")

    def test_text_extensions(self):
        assert not has_binary_extension("main.py")
        assert not has_binary_extension("Makefile")


class TestBinaryContent:
    def test_empty_is_text(self):
        assert not is_binary_content(b"")

    def test_plain_text(self):
        assert not is_binary_content(b"def main():\n    return 0\n")

    def test_utf8_text(self):
        assert not is_binary_content("こんにちは、世界\n".encode("utf-8"))

    def test_nul_byte_means_binary(self):
        assert is_binary_content(b"abc\x00def")

    def test_magic_numbers(self):
        assert is_binary_content(b"\x89PNG\r\n\x1a\n" + b"rest")
        assert is_binary_content(b"%PDF-1.7\n")
        assert is_binary_content(b"\x7fELF\x02\x01\x01")

    def test_mz_needs_nul(self):
        assert not is_binary_content(b"MZ is also how this note starts\n")
        assert is_binary_content(b"MZ\x90\x00\x03")

    def test_control_byte_ratio(self):
        noisy = bytes([1, 2, 3, 4, 5, 6]) * 10 + b"text"
        assert is_binary_content(noisy)

    def test_few_control_bytes_are_tolerated(self):
        assert not is_binary_content(b"colour \x1b[31mred\x1b[0m text\n")


class TestSniffFile:
    def test_only_prefix_is_inspected(self, tmp_path):
        path = tmp_path / "late-nul.txt"
        path.write_bytes(b"a" * SNIFF_SIZE + b"\x00")
        assert not sniff_file(path)

    def test_binary_file(self, tmp_path):
        path = tmp_path / "blob"
        path.write_bytes(b"\x00\x01\x02")
        assert sniff_file(path)
