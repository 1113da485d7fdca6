"""
Tests for import extraction, resolution and Mermaid rendering.
"""

from matomeru.generators.dependencies import (
    DependencyGraphBuilder,
    GoImportExtractor,
    ImportExtractorInterface,
    ImportExtractorRegistry,
    JavaScriptImportExtractor,
    NullImportExtractor,
    PythonImportExtractor,
    create_default_import_registry,
    escape_mermaid_label,
    render_mermaid,
)
from tests.support.document_utils import root_document


class TestPythonImportExtractor:
    def test_plain_and_aliased_imports(self):
        content = "import os\nimport numpy as np, json  # stdlib\n"
        assert PythonImportExtractor().extract(content) == ["os", "numpy", "json"]

    def test_from_imports(self):
        content = "from pkg.sub import thing\nfrom .sibling import x\nfrom ..parent import y\n"
        assert PythonImportExtractor().extract(content) == ["pkg.sub", ".sibling", "..parent"]

    def test_from_dot_imports_name_modules(self):
        content = "from . import a, b as c\nfrom .. import (d)\n"
        assert PythonImportExtractor().extract(content) == [".a", ".b", "..d"]

    def test_indented_imports_are_found(self):
        content = "try:\n    import yaml\nexcept ImportError:\n    pass\n"
        assert PythonImportExtractor().extract(content) == ["yaml"]


class TestJavaScriptImportExtractor:
    def test_all_forms(self):
        content = (
            "import React from 'react';\n"
            "import { a, b } from \"./a\";\n"
            "import './styles.css';\n"
            "export * from './reexport';\n"
            "const lib = require('./lib');\n"
            "const lazy = await import('./lazy');\n"
        )
        assert JavaScriptImportExtractor().extract(content) == [
            "react",
            "./a",
            "./styles.css",
            "./reexport",
            "./lib",
            "./lazy",
        ]

    def test_duplicates_are_removed(self):
        content = "import a from './a';\nconst again = require('./a');\n"
        assert JavaScriptImportExtractor().extract(content) == ["./a"]


class TestGoImportExtractor:
    def test_single_and_block_imports(self):
        content = (
            'package main\n\nimport "fmt"\n\nimport (\n\tstr "strings"\n\t_ "embed"\n'
            '\t// comment\n\t"example.com/app/util"\n)\n'
        )
        assert GoImportExtractor().extract(content) == [
            "fmt",
            "strings",
            "embed",
            "example.com/app/util",
        ]


class TestImportExtractorRegistry:
    def test_unknown_language_uses_null_extractor(self):
        registry = ImportExtractorRegistry()
        assert isinstance(registry.get("cobol"), NullImportExtractor)
        assert registry.extract_imports("import os", "cobol") == []

    def test_register_is_chainable(self):
        class Upper(ImportExtractorInterface):
            def extract(self, content):
                return [content.upper()]

        registry = ImportExtractorRegistry().register("x", Upper())
        assert registry.extract_imports("mod", "x") == ["MOD"]

    def test_default_languages(self):
        registry = create_default_import_registry()
        assert isinstance(registry.get("python"), PythonImportExtractor)
        assert isinstance(registry.get("typescript"), JavaScriptImportExtractor)
        assert isinstance(registry.get("go"), GoImportExtractor)


class TestDependencyGraphBuilder:
    def test_python_resolution(self):
        root = root_document(
            "p",
            {
                "pkg/__init__.py": "",
                "pkg/a.py": "from . import b\nimport os\n",
                "pkg/b.py": "from pkg.c import thing\n",
                "pkg/c.py": "from .sub import helper\n",
                "pkg/sub/__init__.py": "",
                "main.py": "import pkg.a\n",
            },
        )
        assert DependencyGraphBuilder().build([root]) == {
            "main.py": ["pkg/a.py"],
            "pkg/a.py": ["pkg/b.py"],
            "pkg/b.py": ["pkg/c.py"],
            "pkg/c.py": ["pkg/sub/__init__.py"],
        }

    def test_javascript_resolution(self):
        root = root_document(
            "p",
            {
                "src/index.ts": (
                    "import { a } from './a';\n"
                    "const lib = require('./lib');\n"
                    "import React from 'react';\n"
                    "import up from '../../outside';\n"
                ),
                "src/a.ts": "export const a = 1;\n",
                "src/lib/index.js": "",
            },
        )
        assert DependencyGraphBuilder().build([root]) == {
            "src/index.ts": ["src/a.ts", "src/lib/index.js"]
        }

    def test_go_resolution_skips_test_files(self):
        root = root_document(
            "p",
            {
                "cmd/main.go": 'package main\n\nimport (\n\t"fmt"\n\t"example.com/app/internal/util"\n)\n',
                "internal/util/util.go": "package util\n",
                "internal/util/util_test.go": "package util\n",
            },
        )
        assert DependencyGraphBuilder().build([root]) == {
            "cmd/main.go": ["internal/util/util.go"]
        }

    def test_self_imports_and_skipped_files_are_ignored(self):
        root = root_document("p", {"a.py": "import a\n", "b.py": None})
        assert DependencyGraphBuilder().build([root]) == {}

    def test_imports_resolve_within_their_own_root(self):
        roots = [
            root_document("api", {"a.py": "import b\n", "b.py": ""}),
            root_document("web", {"c.py": "import b\n"}),
        ]
        assert DependencyGraphBuilder().build(roots) == {"api/a.py": ["api/b.py"]}


class TestRenderMermaid:
    def test_empty_graph(self):
        assert render_mermaid({}) == ""
        assert render_mermaid({"a.py": []}) == ""

    def test_edges(self):
        assert render_mermaid({"b.py": ["c.py"], "a.py": ["b.py"]}) == (
            'flowchart TD\n    "a.py" --> "b.py"\n    "b.py" --> "c.py"'
        )

    def test_truncation(self):
        text = render_mermaid({"a": ["b", "c", "d"]}, max_nodes=2)
        lines = text.split("\n")
        assert lines[0] == "flowchart TD"
        assert "    subgraph Warning [Warning: Mermaid graph truncated.]" in lines
        assert any("The number of nodes (4) exceeds the configured limit (2)." in l for l in lines)
        assert '    "a" --> "b"' in lines
        assert '    "a" --> "c"' not in lines
        assert lines[-1] == '    more_dependencies["... 2 more dependencies not shown"]'

    def test_labels_are_escaped(self):
        assert escape_mermaid_label('say "hi"\\') == 'say \\"hi\\"\\\\'
