"""
Indented directory outline used at the top of Markdown documents.
"""

from matomeru.core.config import OutlineConfig
from matomeru.core.file_scanner.models import DirectoryNode


def _file_name(name: str, style: OutlineConfig) -> str:
    if style.show_file_extensions:
        return name
    dot = name.rfind(".")
    return name[:dot] if dot > 0 else name


def _directory_line(prefix: str, name: str, style: OutlineConfig) -> str:
    if style.use_emoji:
        return f"{prefix}{style.directory_icon} {name}"
    return f"{prefix}{name}/"


def _file_line(prefix: str, name: str, style: OutlineConfig) -> str:
    if style.use_emoji:
        return f"{prefix}{style.file_icon} {_file_name(name, style)}"
    return f"{prefix}{_file_name(name, style)}"


def render_outline(node: DirectoryNode, style: OutlineConfig, root_name: str = ".") -> str:
    """
    Render a directory tree as indented lines.

    Files are listed before subdirectories at every level, each group sorted
    by name.
    """
    lines: list[str] = []
    _render(node, style, "", root_name, lines)
    return "\n".join(lines)


def _render(
    node: DirectoryNode, style: OutlineConfig, prefix: str, name: str, lines: list[str]
) -> None:
    lines.append(_directory_line(prefix, name, style))
    child_prefix = prefix + " " * style.indent_size

    for record in sorted(node.files, key=lambda r: r.relative_path):
        lines.append(_file_line(child_prefix, record.name, style))

    for child in node.sorted_children():
        _render(child, style, child_prefix, child.name, lines)
