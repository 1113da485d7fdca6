"""
Import dependency graph between files of an aggregated tree.

Provides language-specific import extraction, a registry for the extractors,
resolution of import specifiers to files present in the tree, and Mermaid
rendering of the resulting graph.
"""

import logging
import posixpath
import re
from abc import ABC, abstractmethod

from .base import RootDocument, display_path

logger = logging.getLogger(__name__)

DependencyGraph = dict[str, list[str]]

# Extensions tried, in order, for extension-less relative JS/TS specifiers
_JS_RESOLVE_EXTENSIONS = (".ts", ".tsx", ".js", ".jsx", ".mjs", ".cjs")


class ImportExtractorInterface(ABC):
    """Extracts import specifiers from source text."""

    @abstractmethod
    def extract(self, content: str) -> list[str]:
        """
        Return the module specifiers imported by the content, in source order.

        Args:
            content: Source code content
        """
        pass


class PythonImportExtractor(ImportExtractorInterface):
    """
    Import extractor for Python.

    Specifiers keep leading dots for relative imports; 'from . import a, b'
    yields '.a' and '.b'.
    """

    _IMPORT = re.compile(r"^\s*import\s+(.+)$", re.MULTILINE)
    _FROM = re.compile(r"^\s*from\s+(\.*[\w.]*)\s+import\s+\(?([^)#\n]*)", re.MULTILINE)

    def extract(self, content: str) -> list[str]:
        found: list[tuple[int, str]] = []

        for match in self._IMPORT.finditer(content):
            for part in match.group(1).split("#", 1)[0].split(","):
                name = part.strip().split(" as ")[0].strip()
                if name:
                    found.append((match.start(), name))

        for match in self._FROM.finditer(content):
            module = match.group(1)
            if module.strip("."):
                found.append((match.start(), module))
                continue
            # 'from . import x' imports sibling modules by name
            for part in match.group(2).split(","):
                name = part.strip().split(" as ")[0].strip()
                if name and name != "*":
                    found.append((match.start(), f"{module}{name}"))

        return [name for _, name in sorted(found, key=lambda item: item[0])]


class JavaScriptImportExtractor(ImportExtractorInterface):
    """Import extractor for JavaScript/TypeScript (import, export from, require, import())."""

    _PATTERNS = (
        re.compile(r"""\bimport\s+(?:[\w*{}\s,$]+\s+from\s+)?["']([^"']+)["']"""),
        re.compile(r"""\bexport\s+(?:\*|\{[^}]*\}|\*\s+as\s+\w+)\s+from\s+["']([^"']+)["']"""),
        re.compile(r"""\brequire\(\s*["']([^"']+)["']\s*\)"""),
        re.compile(r"""\bimport\(\s*["']([^"']+)["']\s*\)"""),
    )

    def extract(self, content: str) -> list[str]:
        found: list[tuple[int, str]] = []
        for pattern in self._PATTERNS:
            for match in pattern.finditer(content):
                found.append((match.start(), match.group(1)))
        seen: set[str] = set()
        result = []
        for _, spec in sorted(found, key=lambda item: item[0]):
            if spec not in seen:
                seen.add(spec)
                result.append(spec)
        return result


class GoImportExtractor(ImportExtractorInterface):
    """Import extractor for Go."""

    def extract(self, content: str) -> list[str]:
        imports = []
        in_import_block = False
        for line in content.split("\n"):
            stripped = line.strip()
            if stripped.startswith("import ("):
                in_import_block = True
                continue
            elif in_import_block:
                if stripped == ")":
                    in_import_block = False
                elif stripped and not stripped.startswith("//"):
                    import_path = self._extract_package_path(stripped)
                    if import_path:
                        imports.append(import_path)
            elif stripped.startswith("import "):
                import_path = self._extract_package_path(stripped[7:].strip())
                if import_path:
                    imports.append(import_path)
        return imports

    def _extract_package_path(self, import_spec: str) -> str:
        """
        Extract the package path from an import specification.

        Handles:
        - Simple imports: "fmt" -> fmt
        - Aliased imports: f "fmt" -> fmt
        - Dot imports: . "fmt" -> fmt
        - Blank imports: _ "fmt" -> fmt
        """
        first_quote = import_spec.find('"')
        if first_quote == -1:
            return ""

        last_quote = import_spec.rfind('"')
        if last_quote <= first_quote:
            return ""

        return import_spec[first_quote + 1 : last_quote]


class NullImportExtractor(ImportExtractorInterface):
    """Null extractor for unsupported languages."""

    def extract(self, content: str) -> list[str]:
        return []


class ImportExtractorRegistry:
    """
    Registry for language-specific import extractors.

    New languages can be added without modifying existing code.
    """

    def __init__(self):
        self._extractors: dict[str, ImportExtractorInterface] = {}
        self._null_extractor = NullImportExtractor()

    def register(
        self, language: str, extractor: ImportExtractorInterface
    ) -> "ImportExtractorRegistry":
        """Register an import extractor for a language. Returns self for chaining."""
        self._extractors[language] = extractor
        return self

    def get(self, language: str) -> ImportExtractorInterface:
        """Get the extractor for a language (NullImportExtractor if not registered)."""
        return self._extractors.get(language, self._null_extractor)

    def extract_imports(self, content: str, language: str) -> list[str]:
        return self.get(language).extract(content)


def create_default_import_registry() -> ImportExtractorRegistry:
    """Create a registry with the Python, JavaScript/TypeScript and Go extractors."""
    registry = ImportExtractorRegistry()
    registry.register("python", PythonImportExtractor())
    registry.register("javascript", JavaScriptImportExtractor())
    registry.register("typescript", JavaScriptImportExtractor())
    registry.register("go", GoImportExtractor())
    return registry


class _RootIndex:
    """Lookup tables over the files of one root."""

    def __init__(self, paths: list[str]):
        self.paths = set(paths)
        self.by_dir: dict[str, list[str]] = {}
        for path in sorted(paths):
            self.by_dir.setdefault(posixpath.dirname(path), []).append(path)

    def find_suffix(self, suffix: str) -> str | None:
        """Shortest path equal to suffix or ending in '/suffix'."""
        if suffix in self.paths:
            return suffix
        matches = sorted(
            (p for p in self.paths if p.endswith("/" + suffix)), key=lambda p: (len(p), p)
        )
        return matches[0] if matches else None


def _resolve_python(spec: str, importer: str, index: _RootIndex) -> list[str]:
    if spec.startswith("."):
        level = len(spec) - len(spec.lstrip("."))
        base = posixpath.dirname(importer)
        for _ in range(level - 1):
            base = posixpath.dirname(base)
        rest = spec[level:].replace(".", "/")
        stem = posixpath.join(base, rest) if rest else base
        for candidate in (f"{stem}.py", posixpath.join(stem, "__init__.py")):
            if candidate in index.paths:
                return [candidate]
        return []

    stem = spec.replace(".", "/")
    # 'import a.b.c' may name a module or a package; try the longest prefix first
    parts = stem.split("/")
    for end in range(len(parts), 0, -1):
        prefix = "/".join(parts[:end])
        for candidate in (f"{prefix}.py", f"{prefix}/__init__.py"):
            found = index.find_suffix(candidate)
            if found:
                return [found]
    return []


def _resolve_javascript(spec: str, importer: str, index: _RootIndex) -> list[str]:
    if not spec.startswith("."):
        return []
    target = posixpath.normpath(posixpath.join(posixpath.dirname(importer), spec))
    if target.startswith(".."):
        return []
    candidates = [target]
    candidates.extend(target + ext for ext in _JS_RESOLVE_EXTENSIONS)
    candidates.extend(posixpath.join(target, "index" + ext) for ext in _JS_RESOLVE_EXTENSIONS)
    for candidate in candidates:
        if candidate in index.paths:
            return [candidate]
    return []


def _resolve_go(spec: str, importer: str, index: _RootIndex) -> list[str]:
    # Packages are directories; match the longest directory that ends the import path
    for directory, files in sorted(index.by_dir.items(), key=lambda item: -len(item[0])):
        if not directory:
            continue
        if spec == directory or spec.endswith("/" + directory):
            return [f for f in files if f.endswith(".go") and not f.endswith("_test.go")]
    return []


_RESOLVERS = {
    "python": _resolve_python,
    "javascript": _resolve_javascript,
    "typescript": _resolve_javascript,
    "go": _resolve_go,
}


class DependencyGraphBuilder:
    """Builds file-to-file import edges restricted to the aggregated tree."""

    def __init__(self, registry: ImportExtractorRegistry | None = None):
        self._registry = registry or create_default_import_registry()

    def build(self, roots: list[RootDocument]) -> DependencyGraph:
        """
        Build the dependency graph of the given roots.

        Imports are resolved within the importing file's own root; unresolved
        and external imports are dropped.

        Returns:
            Display path -> sorted display paths it imports; files without
            resolved imports are left out
        """
        multi_root = len(roots) > 1
        graph: DependencyGraph = {}

        for root in roots:
            records = list(root.node.iter_files())
            index = _RootIndex([r.relative_path for r in records])
            by_path = {r.relative_path: r for r in records}

            for record in sorted(records, key=lambda r: r.relative_path):
                resolver = _RESOLVERS.get(record.language)
                if record.content is None or resolver is None:
                    continue

                targets: set[str] = set()
                for spec in self._registry.extract_imports(record.content, record.language):
                    for target in resolver(spec, record.relative_path, index):
                        if target != record.relative_path:
                            targets.add(target)

                if targets:
                    source = display_path(root, record, multi_root)
                    graph[source] = sorted(
                        display_path(root, by_path[t], multi_root) for t in targets
                    )

        logger.debug(
            f"Built dependency graph with {len(graph)} source files",
            extra={"edge_count": sum(len(v) for v in graph.values())},
        )
        return graph


def escape_mermaid_label(label: str) -> str:
    return label.replace("\\", "\\\\").replace('"', '\\"')


def render_mermaid(graph: DependencyGraph, max_nodes: int = 300) -> str:
    """
    Render a dependency graph as a Mermaid flowchart.

    When the graph has more than max_nodes distinct nodes, a warning subgraph
    is emitted and edges are added only while both ends fit within the limit.

    Returns:
        Flowchart text, or "" for an empty graph
    """
    edges = [(source, target) for source in sorted(graph) for target in graph[source]]
    if not edges:
        return ""

    all_nodes = {node for edge in edges for node in edge}
    truncated = len(all_nodes) > max_nodes

    lines = ["flowchart TD"]
    if truncated:
        lines.append("    subgraph Warning [Warning: Mermaid graph truncated.]")
        lines.append("    direction LR")
        lines.append(
            f'    truncated_message["The number of nodes ({len(all_nodes)}) '
            f'exceeds the configured limit ({max_nodes})."]'
        )
        lines.append("    end")

    shown: set[str] = set()
    omitted = 0
    for source, target in edges:
        if truncated and len(shown | {source, target}) > max_nodes:
            omitted += 1
            continue
        shown.update((source, target))
        lines.append(f'    "{escape_mermaid_label(source)}" --> "{escape_mermaid_label(target)}"')

    if omitted:
        lines.append(f'    more_dependencies["... {omitted} more dependencies not shown"]')

    return "\n".join(lines)
