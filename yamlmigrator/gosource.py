"""
Rewrite yaml import paths inside Go source files.

Each file is parsed with the tree-sitter Go grammar.  Only the path
literals of ``import`` declarations are inspected, so a string constant or
a comment that happens to mention ``gopkg.in/yaml.v3`` is never touched.
Matching literals are replaced in the file text and the result is passed
through ``gofmt`` so the written file is canonically formatted.  When
``gofmt`` is missing or rejects the input the unformatted text is used; the
change still counts.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Iterator, List, Optional, Sequence

import tree_sitter_go
from tree_sitter import Language, Node, Parser, Tree

from .errors import SourceParseError, TraversalError
from .literals import quote_go_string, unquote_go_string
from .matcher import rewrite_module_path
from .runner import ProcessRunner

__all__ = [
    "ImportReference",
    "SourceRewrite",
    "parse_go",
    "find_imports",
    "gofmt_formatter",
    "rewrite_source",
    "process_go_file",
]

logger = logging.getLogger(__name__)

Formatter = Callable[[bytes], Optional[bytes]]

GO_LANGUAGE = Language(tree_sitter_go.language())

_parser: Optional[Parser] = None


def get_parser() -> Parser:
    """Get or create the Go parser."""
    global _parser
    if _parser is None:
        _parser = Parser(GO_LANGUAGE)
    return _parser


@dataclass
class ImportReference:
    """One import path literal found in a parsed file.

    ``raw`` keeps the literal exactly as written, quotes included.  ``line``
    is 1-based and ``column`` is a 0-based byte offset, as reported by
    tree-sitter.  ``replacement`` is set once the path has matched.
    """

    raw: str
    path: str
    line: int
    column: int
    start_byte: int
    end_byte: int
    replacement: Optional[str] = None

    @property
    def matched(self) -> bool:
        return self.replacement is not None


@dataclass
class SourceRewrite:
    """Result of rewriting one Go file in memory."""

    path: Optional[Path]
    original: bytes
    text: bytes
    imports: List[ImportReference] = field(default_factory=list)
    formatted: bool = False

    @property
    def matches(self) -> List[ImportReference]:
        return [ref for ref in self.imports if ref.matched]

    @property
    def changed(self) -> bool:
        return bool(self.matches)


def _first_error(node: Node) -> Optional[Node]:
    stack = [node]
    while stack:
        current = stack.pop()
        if current.type == "ERROR" or current.is_missing:
            return current
        if current.has_error:
            stack.extend(reversed(current.children))
    return None


_TOP_LEVEL = frozenset(
    {
        "package_clause",
        "import_declaration",
        "function_declaration",
        "method_declaration",
        "const_declaration",
        "var_declaration",
        "type_declaration",
        "comment",
    }
)


def _check_file_layout(root: Node, path: Optional[Path]) -> None:
    """Reject layouts the grammar accepts but the Go compiler does not.

    A file must open with its package clause, hold only declarations at
    top level, and keep every import ahead of the other declarations.
    """

    def _fail(node: Node, message: str) -> None:
        row, column = node.start_point
        raise SourceParseError(path, message, line=row + 1, column=column + 1)

    seen_package = False
    seen_declaration = False
    for node in root.named_children:
        if node.type == "comment":
            continue
        if node.type not in _TOP_LEVEL:
            _fail(node, f"non-declaration statement outside function body ({node.type})")
        if node.type == "package_clause":
            if seen_package:
                _fail(node, "duplicate package clause")
            seen_package = True
            continue
        if not seen_package:
            _fail(node, "expected 'package' clause")
        if node.type == "import_declaration":
            if seen_declaration:
                _fail(node, "imports must appear before other declarations")
        else:
            seen_declaration = True
    if not seen_package:
        raise SourceParseError(path, "expected 'package' clause", line=1, column=1)


def parse_go(source: bytes, path: Optional[Path] = None) -> Tree:
    """Parse Go source, raising :class:`SourceParseError` on malformed syntax."""
    tree = get_parser().parse(source)
    if tree.root_node.has_error:
        bad = _first_error(tree.root_node) or tree.root_node
        row, column = bad.start_point
        what = f"missing {bad.type}" if bad.is_missing else "syntax error"
        raise SourceParseError(path, what, line=row + 1, column=column + 1)
    _check_file_layout(tree.root_node, path)
    return tree


def _import_specs(declaration: Node) -> Iterator[Node]:
    for child in declaration.named_children:
        if child.type == "import_spec":
            yield child
        elif child.type == "import_spec_list":
            for spec in child.named_children:
                if spec.type == "import_spec":
                    yield spec


def find_imports(tree: Tree, source: bytes) -> List[ImportReference]:
    """List the path literals of every top-level import declaration.

    Literals that cannot be unquoted are skipped.
    """
    refs: List[ImportReference] = []
    for node in tree.root_node.children:
        if node.type != "import_declaration":
            continue
        for spec in _import_specs(node):
            literal = spec.child_by_field_name("path")
            if literal is None:
                continue
            raw = source[literal.start_byte:literal.end_byte].decode("utf-8", "replace")
            try:
                path = unquote_go_string(raw)
            except ValueError as exc:
                logger.debug("skipping import literal %s: %s", raw, exc)
                continue
            row, column = literal.start_point
            refs.append(
                ImportReference(
                    raw=raw,
                    path=path,
                    line=row + 1,
                    column=column,
                    start_byte=literal.start_byte,
                    end_byte=literal.end_byte,
                )
            )
    return refs


def gofmt_formatter(runner: ProcessRunner, command: Sequence[str] = ("gofmt",)) -> Formatter:
    """Build a formatter that pipes source through ``gofmt``.

    The formatter returns ``None`` when ``gofmt`` cannot be run or fails.
    """

    def _format(source: bytes) -> Optional[bytes]:
        result = runner.run(command, input=source, capture=True)
        if not result.ok or not result.stdout:
            logger.debug("gofmt unavailable, keeping unformatted output: %s", result.describe())
            return None
        return result.stdout

    return _format


def rewrite_source(
    source: bytes,
    path: Optional[Path] = None,
    formatter: Optional[Formatter] = None,
) -> SourceRewrite:
    """Rewrite deprecated yaml imports in ``source``.

    Parameters
    ----------
    source: bytes
        Contents of a ``.go`` file.
    path: Path, optional
        Used in error messages only.
    formatter: callable, optional
        Applied to the rewritten text when at least one import changed.  A
        ``None`` return keeps the unformatted text.

    Raises
    ------
    SourceParseError
        If ``source`` is not valid Go.
    """
    tree = parse_go(source, path)
    refs = find_imports(tree, source)
    for ref in refs:
        new_path = rewrite_module_path(ref.path)
        if new_path is not None and new_path != ref.path:
            ref.replacement = new_path
    result = SourceRewrite(path=path, original=source, text=source, imports=refs)
    matches = result.matches
    if not matches:
        return result

    buf = bytearray(source)
    # splice from the end so earlier byte offsets stay valid
    for ref in sorted(matches, key=lambda r: r.start_byte, reverse=True):
        buf[ref.start_byte:ref.end_byte] = quote_go_string(ref.replacement).encode("utf-8")
    text = bytes(buf)

    if formatter is not None:
        formatted = formatter(text)
        if formatted is not None:
            text = formatted
            result.formatted = True
    result.text = text
    return result


def process_go_file(path: Path, formatter: Optional[Formatter] = None) -> SourceRewrite:
    """Read ``path`` and rewrite it in memory.  Nothing is written."""
    try:
        source = path.read_bytes()
    except OSError as exc:
        raise TraversalError(f"cannot read {path}: {exc}") from exc
    return rewrite_source(source, path=path, formatter=formatter)
