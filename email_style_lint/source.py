"""Source file parsing primitives backed by tree-sitter."""

from __future__ import annotations

from bisect import bisect_right
from dataclasses import dataclass, field
from functools import lru_cache
from pathlib import Path, PurePosixPath

import tree_sitter_typescript
from tree_sitter import Language, Node, Parser, Tree

from email_style_lint.errors import ParseInputError

TSX_SUFFIXES = {".tsx", ".jsx", ".js", ".mjs", ".cjs"}
TYPESCRIPT_SUFFIXES = {".ts", ".mts", ".cts"}
SOURCE_SUFFIXES = TSX_SUFFIXES | TYPESCRIPT_SUFFIXES


@dataclass(frozen=True, slots=True)
class SourcePosition:
    """A 1-based line and character column."""

    line: int
    column: int

    def __str__(self) -> str:
        return f"{self.line}:{self.column}"


@dataclass(slots=True)
class SourceFile:
    """A parsed source file."""

    path: str
    data: bytes
    tree: Tree
    _line_starts: list[int] = field(init=False, repr=False)

    def __post_init__(self) -> None:
        starts = [0]
        offset = self.data.find(b"\n")
        while offset != -1:
            starts.append(offset + 1)
            offset = self.data.find(b"\n", offset + 1)
        self._line_starts = starts

    @property
    def root(self) -> Node:
        return self.tree.root_node

    def text(self, start_byte: int, end_byte: int) -> str:
        """Decode the source between two byte offsets."""
        return self.data[start_byte:end_byte].decode("utf-8", errors="replace")

    def node_text(self, node: Node) -> str:
        return self.text(node.start_byte, node.end_byte)

    def position(self, byte_offset: int) -> SourcePosition:
        """Convert a byte offset into a line/column position."""
        index = bisect_right(self._line_starts, byte_offset) - 1
        line_start = self._line_starts[index]
        column = len(self.text(line_start, byte_offset)) + 1
        return SourcePosition(line=index + 1, column=column)


def parse_source(text: str | bytes, path: str = "<input>") -> SourceFile:
    """Parse JSX/TSX/JS/TS source text into a ``SourceFile``.

    Raises ``ParseInputError`` when the text contains syntax errors; a
    malformed tree is never analyzed partially.
    """
    data = text.encode("utf-8") if isinstance(text, str) else text
    parser = Parser(_language_for(path))
    tree = parser.parse(data)
    if tree is None:
        raise ParseInputError(f"{path}: parser produced no syntax tree")
    source = SourceFile(path=path, data=data, tree=tree)
    if tree.root_node.has_error:
        position = source.position(_first_error_offset(tree.root_node))
        raise ParseInputError(f"{path}:{position}: syntax error")
    return source


def read_source(path: Path) -> SourceFile:
    """Read and parse a file from disk."""
    try:
        data = path.read_bytes()
    except OSError as exc:
        raise ParseInputError(f"{path}: cannot read file ({exc.strerror or exc})") from exc
    try:
        data.decode("utf-8")
    except UnicodeDecodeError as exc:
        raise ParseInputError(f"{path}: file is not valid UTF-8") from exc
    return parse_source(data, path=str(path))


def is_source_path(path: str | Path) -> bool:
    return PurePosixPath(str(path)).suffix.lower() in SOURCE_SUFFIXES


@lru_cache(maxsize=None)
def _load_language(name: str) -> Language:
    if name == "typescript":
        return Language(tree_sitter_typescript.language_typescript())
    return Language(tree_sitter_typescript.language_tsx())


def _language_for(path: str) -> Language:
    suffix = PurePosixPath(path).suffix.lower()
    if suffix in TYPESCRIPT_SUFFIXES:
        return _load_language("typescript")
    return _load_language("tsx")


def _first_error_offset(root: Node) -> int:
    stack = [root]
    while stack:
        node = stack.pop()
        if node.type == "ERROR" or node.is_missing:
            return node.start_byte
        stack.extend(
            reversed([child for child in node.children if child.has_error or child.is_missing])
        )
    return root.start_byte
