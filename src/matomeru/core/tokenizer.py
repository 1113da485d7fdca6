"""
Tokenizer module for token counting and byte-based token estimates.

Uses the tiktoken library for exact counts of generated documents. Size
estimates made before anything is read use a fixed bytes-per-token ratio.
"""

import math
from abc import ABC, abstractmethod
from typing import Optional

import tiktoken

# Average number of UTF-8 bytes per model token, tuned empirically on source code
BYTES_PER_TOKEN = 3.6


def estimate_tokens_from_bytes(total_bytes: int, bytes_per_token: float = BYTES_PER_TOKEN) -> int:
    """
    Estimate a token count from a byte count.

    Args:
        total_bytes: Number of content bytes
        bytes_per_token: Divisor; must be positive

    Returns:
        ceil(total_bytes / bytes_per_token)
    """
    if bytes_per_token <= 0:
        raise ValueError(f"bytes_per_token must be positive, got {bytes_per_token}")
    if total_bytes <= 0:
        return 0
    return math.ceil(total_bytes / bytes_per_token)


class TokenizerInterface(ABC):
    """Abstract interface for tokenization operations."""

    @abstractmethod
    def count_tokens(self, text: str) -> int:
        """
        Count the number of tokens in the given text.

        Args:
            text: The text to tokenize.

        Returns:
            The number of tokens in the text.
        """
        pass


class TiktokenTokenizer(TokenizerInterface):
    """
    Tokenizer implementation using tiktoken library.

    Default encoding is 'cl100k_base', used by the gpt-4 family of models.
    """

    def __init__(self, encoding_name: str = "cl100k_base"):
        """
        Initialize the tokenizer with the specified encoding.

        Args:
            encoding_name: The tiktoken encoding name, e.g. 'cl100k_base' or 'o200k_base'
        """
        self._encoding_name = encoding_name
        self._encoding: Optional[tiktoken.Encoding] = None

    @property
    def encoding(self) -> tiktoken.Encoding:
        """Lazy-load the encoding to avoid initialization overhead."""
        if self._encoding is None:
            self._encoding = tiktoken.get_encoding(self._encoding_name)
        return self._encoding

    def count_tokens(self, text: str) -> int:
        if not text:
            return 0
        return len(self.encoding.encode(text, disallowed_special=()))


class ByteRatioTokenizer(TokenizerInterface):
    """
    Approximate tokenizer that divides the UTF-8 size by a fixed ratio.

    Needs no encoding download, which makes it suitable for offline use.
    """

    def __init__(self, bytes_per_token: float = BYTES_PER_TOKEN):
        if bytes_per_token <= 0:
            raise ValueError(f"bytes_per_token must be positive, got {bytes_per_token}")
        self._bytes_per_token = bytes_per_token

    def count_tokens(self, text: str) -> int:
        return estimate_tokens_from_bytes(len(text.encode("utf-8")), self._bytes_per_token)


def get_default_tokenizer() -> TokenizerInterface:
    """
    Get the default tokenizer instance.

    Returns:
        A TiktokenTokenizer with cl100k_base encoding.
    """
    return TiktokenTokenizer(encoding_name="cl100k_base")


def create_tokenizer(
    kind: str = "tiktoken",
    encoding_name: str = "cl100k_base",
    bytes_per_token: float = BYTES_PER_TOKEN,
) -> TokenizerInterface:
    """
    Create a tokenizer by name.

    Args:
        kind: 'tiktoken' or 'bytes'
        encoding_name: tiktoken encoding, used when kind is 'tiktoken'
        bytes_per_token: Ratio used when kind is 'bytes'

    Raises:
        ValueError: If kind is not recognized
    """
    if kind == "tiktoken":
        return TiktokenTokenizer(encoding_name=encoding_name)
    if kind == "bytes":
        return ByteRatioTokenizer(bytes_per_token)
    raise ValueError(f"Unknown tokenizer: {kind}")
