"""Regression tests for ignore-file hierarchy matching behavior."""

from pathlib import Path

from matomeru.core.ignore_loader import IgnoreFileLoader


def _matches(patterns, relative_path: str, is_dir: bool) -> bool:
    ignored = False
    for pattern in patterns:
        if pattern.matches(relative_path, is_dir):
            ignored = not pattern.negation
    return ignored


def test_nested_directory_pattern_ignores_files_under_that_directory(tmp_path):
    """A nested .gitignore pattern like `out/` should ignore files inside that directory."""
    (tmp_path / ".git").mkdir()
    (tmp_path / "apps" / "web").mkdir(parents=True)
    (tmp_path / "apps" / "web" / ".gitignore").write_text("out/\n", encoding="utf-8")

    patterns = IgnoreFileLoader(tmp_path).load(use_gitignore=True, use_vscodeignore=False)

    assert _matches(patterns, "apps/web/out", is_dir=True)
    assert _matches(patterns, "apps/web/out/_next/static/chunks/framework.js", is_dir=False)
    assert not _matches(patterns, "apps/web/src/app.js", is_dir=False)
    assert not _matches(patterns, "out", is_dir=True)


def test_nested_anchored_pattern_is_scoped_to_its_gitignore_directory(tmp_path):
    """Anchored patterns in nested .gitignore files are anchored to that directory, not the root."""
    (tmp_path / ".git").mkdir()
    (tmp_path / "a" / "b").mkdir(parents=True)
    (tmp_path / "a" / ".gitignore").write_text("/build\n", encoding="utf-8")

    patterns = IgnoreFileLoader(tmp_path).load(use_gitignore=True, use_vscodeignore=False)

    assert _matches(patterns, "a/build", is_dir=False)
    assert not _matches(patterns, "build", is_dir=False)
    assert not _matches(patterns, "a/b/build", is_dir=False)


def test_nested_slash_pattern_is_scoped_to_its_gitignore_directory(tmp_path):
    """Patterns containing slashes in nested .gitignore should stay scoped to that subtree."""
    (tmp_path / ".git").mkdir()
    (tmp_path / "sub" / "nested" / "tmp").mkdir(parents=True)
    (tmp_path / "other" / "tmp").mkdir(parents=True)
    (tmp_path / "sub" / ".gitignore").write_text("tmp/*.js\n", encoding="utf-8")

    patterns = IgnoreFileLoader(tmp_path).load(use_gitignore=True, use_vscodeignore=False)

    assert _matches(patterns, "sub/tmp/file.js", is_dir=False)
    assert not _matches(patterns, "sub/nested/tmp/file.js", is_dir=False)
    assert not _matches(patterns, "other/tmp/file.js", is_dir=False)


def test_ancestor_gitignore_is_rebased_onto_the_root(tmp_path):
    """Patterns from a .gitignore above the root apply relative to the root."""
    repo = tmp_path / "repo"
    (repo / ".git").mkdir(parents=True)
    (repo / "pkg" / "src").mkdir(parents=True)
    (repo / ".gitignore").write_text("*.log\n/pkg/src/generated\n/other\n", encoding="utf-8")

    patterns = IgnoreFileLoader(repo / "pkg").load(use_gitignore=True, use_vscodeignore=False)

    assert _matches(patterns, "debug.log", is_dir=False)
    assert _matches(patterns, "src/generated", is_dir=True)
    assert _matches(patterns, "src/generated/a.py", is_dir=False)
    assert not _matches(patterns, "other", is_dir=True)
    assert not _matches(patterns, "src/other", is_dir=True)


def test_ancestor_glob_patterns_reach_below_the_root(tmp_path):
    """Anchored globs in an ancestor file are matched from that file's directory."""
    repo = tmp_path / "repo"
    (repo / ".git").mkdir(parents=True)
    (repo / "src" / "pkg").mkdir(parents=True)
    (repo / ".gitignore").write_text(
        "src/**/generated.py\n*/pkg/*.tmp.py\nlib/**/x.py\n", encoding="utf-8"
    )

    patterns = IgnoreFileLoader(repo / "src" / "pkg").load(
        use_gitignore=True, use_vscodeignore=False
    )

    assert _matches(patterns, "generated.py", is_dir=False)
    assert _matches(patterns, "deep/generated.py", is_dir=False)
    assert _matches(patterns, "cache.tmp.py", is_dir=False)
    assert not _matches(patterns, "keep.py", is_dir=False)
    assert not _matches(patterns, "sub/cache.tmp.py", is_dir=False)
    assert not _matches(patterns, "lib/a/x.py", is_dir=False)


def test_ancestor_pattern_covering_the_root_is_dropped(tmp_path):
    """A pattern matching the root or a directory above it never empties the scan."""
    repo = tmp_path / "repo"
    (repo / ".git").mkdir(parents=True)
    (repo / "src" / "pkg").mkdir(parents=True)
    (repo / ".gitignore").write_text("/src\nsrc/pkg/\n*.log\n", encoding="utf-8")

    patterns = IgnoreFileLoader(repo / "src" / "pkg").load(
        use_gitignore=True, use_vscodeignore=False
    )

    assert [p.raw for p in patterns] == ["*.log"]
    assert not _matches(patterns, "main.py", is_dir=False)


def test_search_stops_at_enclosing_work_tree(tmp_path):
    """Ignore files above the directory holding .git are not read."""
    (tmp_path / ".gitignore").write_text("*.py\n", encoding="utf-8")
    repo = tmp_path / "repo"
    (repo / ".git").mkdir(parents=True)
    (repo / "lib").mkdir()

    patterns = IgnoreFileLoader(repo / "lib").load(use_gitignore=True, use_vscodeignore=False)

    assert patterns == []


def test_later_files_override_earlier_ones(tmp_path):
    """A nested negation re-includes a file excluded by the root file."""
    (tmp_path / ".git").mkdir()
    (tmp_path / "docs").mkdir()
    (tmp_path / ".gitignore").write_text("*.md\n", encoding="utf-8")
    (tmp_path / "docs" / ".gitignore").write_text("!guide.md\n", encoding="utf-8")

    patterns = IgnoreFileLoader(tmp_path).load(use_gitignore=True, use_vscodeignore=False)

    assert _matches(patterns, "readme.md", is_dir=False)
    assert not _matches(patterns, "docs/guide.md", is_dir=False)
    assert _matches(patterns, "docs/other.md", is_dir=False)


def test_toggles_select_which_files_are_read(tmp_path):
    (tmp_path / ".git").mkdir()
    (tmp_path / ".gitignore").write_text("a.txt\n", encoding="utf-8")
    (tmp_path / ".vscodeignore").write_text("b.txt\n", encoding="utf-8")
    loader = IgnoreFileLoader(tmp_path)

    assert loader.load(use_gitignore=False, use_vscodeignore=False) == []
    assert [p.raw for p in loader.load(True, False)] == ["a.txt"]
    assert [p.raw for p in loader.load(False, True)] == ["b.txt"]
    assert [p.source_path.name for p in loader.load(True, True)] == [".gitignore", ".vscodeignore"]


def test_source_path_is_recorded(tmp_path):
    (tmp_path / ".git").mkdir()
    ignore_file = tmp_path / ".gitignore"
    ignore_file.write_text("dist\n", encoding="utf-8")

    patterns = IgnoreFileLoader(tmp_path).load(use_gitignore=True, use_vscodeignore=False)

    assert patterns[0].source_path == Path(ignore_file).resolve()
