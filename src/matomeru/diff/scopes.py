"""
Tree-sitter based lookup of the functions, methods and classes enclosing
changed lines.

Grammars are loaded lazily on first use. A language whose grammar package is
not installed is reported as unsupported and callers fall back to plain line
windows.
"""

import logging
from typing import Any

logger = logging.getLogger(__name__)

# Grammar module and the attribute returning its language capsule
LANGUAGE_MODULES: dict[str, tuple[str, str]] = {
    "python": ("tree_sitter_python", "language"),
    "javascript": ("tree_sitter_javascript", "language"),
    "typescript": ("tree_sitter_typescript", "language_typescript"),
    "go": ("tree_sitter_go", "language"),
    "java": ("tree_sitter_java", "language"),
}

# Node types treated as a self-contained scope for each language
SCOPE_NODE_TYPES: dict[str, frozenset[str]] = {
    "python": frozenset({"function_definition", "class_definition"}),
    "javascript": frozenset({
        "function_declaration",
        "method_definition",
        "class_declaration",
        "lexical_declaration",
        "variable_declaration",
        "arrow_function",
        "generator_function",
    }),
    "typescript": frozenset({
        "function_declaration",
        "method_definition",
        "class_declaration",
        "lexical_declaration",
        "variable_declaration",
        "interface_declaration",
    }),
    "go": frozenset({"function_declaration", "method_declaration"}),
    "java": frozenset({"method_declaration", "constructor_declaration", "class_declaration"}),
}

DEFAULT_SCOPE_NODE_TYPES = frozenset({
    "function_declaration",
    "method_definition",
    "class_declaration",
    "function_definition",
    "class_definition",
})


class ScopeFinder:
    """Finds enclosing declaration ranges with Tree-sitter."""

    def __init__(self) -> None:
        self._parsers: dict[str, Any] = {}
        self._initialized_languages: set[str] = set()

    def supports_language(self, language: str | None) -> bool:
        """Check whether a grammar for the language can be loaded."""
        if not language:
            return False
        return self._ensure_language_loaded(language)

    def _ensure_language_loaded(self, language: str) -> bool:
        """Lazily load a language parser when first needed."""
        if language in self._initialized_languages:
            return language in self._parsers

        self._initialized_languages.add(language)

        if language not in LANGUAGE_MODULES:
            logger.debug(f"No Tree-sitter grammar configured for '{language}'")
            return False

        module_name, attribute = LANGUAGE_MODULES[language]
        try:
            import tree_sitter

            lang_obj = getattr(__import__(module_name), attribute)()
            if not isinstance(lang_obj, tree_sitter.Language):
                lang_obj = tree_sitter.Language(lang_obj)
            self._parsers[language] = tree_sitter.Parser(lang_obj)
            logger.debug(f"Loaded Tree-sitter parser for '{language}'")
            return True
        except ImportError as e:
            logger.info(f"Tree-sitter grammar for '{language}' is not installed: {e}")
            return False
        except Exception as e:
            logger.error(f"Failed to initialize parser for '{language}': {e}")
            return False

    def parse(self, source: bytes, language: str | None) -> Any | None:
        """
        Parse UTF-8 source with the grammar for a language.

        Returns:
            Tree-sitter tree, or None if the language is unsupported or
            parsing failed
        """
        if not language or not self._ensure_language_loaded(language):
            return None
        try:
            return self._parsers[language].parse(source)
        except Exception as e:
            logger.warning(f"Failed to parse content for '{language}': {e}")
            return None

    def find_scopes(
        self, content: str, language: str, changed_rows: set[int]
    ) -> list[tuple[int, int]] | None:
        """
        Find declarations that contain at least one changed row.

        Args:
            content: Source text
            language: Language tag
            changed_rows: Changed rows, 0-based

        Returns:
            (start_row, end_row) pairs, 0-based and inclusive, in document
            order; None if the language is unsupported or parsing failed
        """
        tree = self.parse(content.encode("utf-8"), language)
        if tree is None:
            return None

        node_types = SCOPE_NODE_TYPES.get(language, DEFAULT_SCOPE_NODE_TYPES)
        ranges: list[tuple[int, int]] = []
        stack = [tree.root_node]
        while stack:
            node = stack.pop()
            if node.type in node_types:
                start_row = node.start_point[0]
                end_row = node.end_point[0]
                if any(start_row <= row <= end_row for row in changed_rows):
                    ranges.append((start_row, end_row))
            stack.extend(reversed(node.children))

        ranges.sort()
        return ranges

    def close(self) -> None:
        """Release loaded parsers; they are reloaded on next use."""
        self._parsers.clear()
        self._initialized_languages.clear()
