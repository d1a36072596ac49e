"""
Structured reading and writing of ``go.mod``.

The manifest is parsed into an ordered list of top-level :class:`Line` and
:class:`Block` entries.  Every line keeps its tokens and its trailing
comment, blank and comment-only lines included, so formatting the model
gives back the same manifest in canonical layout:

* tokens separated by a single space,
* one space before a trailing ``//`` comment,
* block entries indented with one tab,
* no runs of blank lines, no leading or trailing blank lines.

Requirement entries are exposed as :class:`Requirement` views; setting a
requirement's ``path`` edits the underlying line, leaving the version and
the ``// indirect`` marker alone.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterator, List, Optional, Tuple, Union

from .errors import ManifestParseError, TraversalError
from .literals import quote_go_string, unquote_go_string
from .matcher import rewrite_module_path

__all__ = [
    "Line",
    "Block",
    "ModFile",
    "Requirement",
    "RequirementChange",
    "ManifestRewrite",
    "parse_modfile",
    "format_modfile",
    "rewrite_requirements",
    "process_go_mod",
]

logger = logging.getLogger(__name__)

_TOKEN_STOP = " \t\r\"`()"


@dataclass
class Line:
    tokens: List[str] = field(default_factory=list)
    comment: str = ""
    lineno: int = 0


@dataclass
class Block:
    """A parenthesised group such as ``require ( ... )``."""

    verb: str
    lines: List[Line] = field(default_factory=list)
    comment: str = ""
    close_comment: str = ""
    lineno: int = 0


Entry = Union[Line, Block]


def _unquote_token(token: str) -> str:
    if token[:1] in ('"', "`"):
        return unquote_go_string(token)
    return token


def _needs_quotes(value: str) -> bool:
    return not value or "//" in value or any(c in _TOKEN_STOP for c in value)


@dataclass
class Requirement:
    """View of one ``require`` entry.

    ``offset`` is the index of the module path within ``line.tokens``: ``1``
    for a single-line ``require path version``, ``0`` inside a block.
    """

    line: Line
    offset: int

    @property
    def path(self) -> str:
        return _unquote_token(self.line.tokens[self.offset])

    @path.setter
    def path(self, value: str) -> None:
        self.line.tokens[self.offset] = quote_go_string(value) if _needs_quotes(value) else value

    @property
    def version(self) -> str:
        return _unquote_token(self.line.tokens[self.offset + 1])

    @property
    def indirect(self) -> bool:
        text = self.line.comment[2:].strip() if self.line.comment.startswith("//") else ""
        return text == "indirect" or text.startswith("indirect;")


@dataclass
class ModFile:
    entries: List[Entry] = field(default_factory=list)
    path: Optional[Path] = None

    def directives(self) -> Iterator[Tuple[str, Line, int]]:
        """Yield ``(verb, line, offset)`` for every directive line.

        ``offset`` is where the arguments start in ``line.tokens``.
        """
        for entry in self.entries:
            if isinstance(entry, Block):
                for line in entry.lines:
                    if line.tokens:
                        yield entry.verb, line, 0
            elif entry.tokens:
                yield entry.tokens[0], entry, 1

    def _first_argument(self, verb: str) -> Optional[str]:
        for name, line, offset in self.directives():
            if name == verb:
                return _unquote_token(line.tokens[offset])
        return None

    @property
    def module_path(self) -> Optional[str]:
        return self._first_argument("module")

    @property
    def go_version(self) -> Optional[str]:
        return self._first_argument("go")

    @property
    def requirements(self) -> List[Requirement]:
        return [
            Requirement(line, offset)
            for verb, line, offset in self.directives()
            if verb == "require"
        ]

    def validate(self) -> None:
        for verb, line, offset in self.directives():
            args = line.tokens[offset:]
            if verb == "require" and len(args) != 2:
                raise ManifestParseError(
                    self.path, "usage: require module/path v1.2.3", line=line.lineno
                )
            if verb in ("go", "module") and len(args) != 1:
                raise ManifestParseError(
                    self.path, f"usage: {verb} expects exactly one argument", line=line.lineno
                )
            for token in args:
                if token[:1] in ('"', "`"):
                    try:
                        unquote_go_string(token)
                    except ValueError as exc:
                        raise ManifestParseError(self.path, str(exc), line=line.lineno) from exc


def _split_line(text: str, lineno: int, path: Optional[Path]) -> Tuple[List[str], str]:
    """Split one manifest line into tokens and a trailing comment."""
    tokens: List[str] = []
    i, n = 0, len(text)
    while i < n:
        ch = text[i]
        if ch in " \t\r":
            i += 1
            continue
        if text.startswith("//", i):
            return tokens, text[i:].rstrip()
        if ch in "\"`":
            j = i + 1
            while j < n and text[j] != ch:
                j += 2 if ch == '"' and text[j] == "\\" else 1
            if j >= n:
                raise ManifestParseError(path, "unterminated quoted string", line=lineno)
            tokens.append(text[i:j + 1])
            i = j + 1
            continue
        if ch in "()":
            tokens.append(ch)
            i += 1
            continue
        j = i
        while j < n and text[j] not in _TOKEN_STOP and not text.startswith("//", j):
            j += 1
        tokens.append(text[i:j])
        i = j
    return tokens, ""


def parse_modfile(text: str, path: Optional[Path] = None) -> ModFile:
    """Parse ``go.mod`` contents.

    Raises
    ------
    ManifestParseError
        On unterminated quotes or blocks, misplaced parentheses, or
        ``require``/``go``/``module`` directives with the wrong number of
        arguments.
    """
    entries: List[Entry] = []
    block: Optional[Block] = None
    for lineno, raw in enumerate(text.splitlines(), start=1):
        tokens, comment = _split_line(raw, lineno, path)
        if block is not None:
            if tokens == [")"]:
                block.close_comment = comment
                entries.append(block)
                block = None
            elif "(" in tokens or ")" in tokens:
                raise ManifestParseError(path, "unexpected parenthesis in block", line=lineno)
            else:
                block.lines.append(Line(tokens, comment, lineno))
            continue
        if tokens and tokens[-1] == "(":
            if len(tokens) != 2 or tokens[0] in ("(", ")"):
                raise ManifestParseError(path, "malformed block opening", line=lineno)
            block = Block(tokens[0], comment=comment, lineno=lineno)
            continue
        if "(" in tokens or ")" in tokens:
            raise ManifestParseError(path, "unexpected parenthesis", line=lineno)
        entries.append(Line(tokens, comment, lineno))
    if block is not None:
        raise ManifestParseError(path, f"unterminated {block.verb} block", line=block.lineno)
    modfile = ModFile(entries, path)
    modfile.validate()
    return modfile


def _format_line(tokens: List[str], comment: str) -> str:
    text = " ".join(tokens)
    if comment:
        return f"{text} {comment}" if text else comment
    return text


def format_modfile(modfile: ModFile) -> str:
    """Render ``modfile`` in canonical go.mod layout."""
    out: List[str] = []

    def emit(text: str) -> None:
        if not text and (not out or not out[-1]):
            return
        out.append(text)

    for entry in modfile.entries:
        if isinstance(entry, Block):
            emit(_format_line([entry.verb, "("], entry.comment))
            for line in entry.lines:
                text = _format_line(line.tokens, line.comment)
                emit(f"\t{text}" if text else "")
            if out and not out[-1]:
                out.pop()
            emit(_format_line([")"], entry.close_comment))
        else:
            emit(_format_line(entry.tokens, entry.comment))
    while out and not out[-1]:
        out.pop()
    return "\n".join(out) + "\n" if out else ""


@dataclass
class RequirementChange:
    old_path: str
    new_path: str
    version: str


def rewrite_requirements(modfile: ModFile) -> List[RequirementChange]:
    """Rewrite every deprecated yaml requirement in place and list the changes."""
    changes: List[RequirementChange] = []
    for req in modfile.requirements:
        old_path = req.path
        new_path = rewrite_module_path(old_path)
        if new_path is None or new_path == old_path:
            continue
        req.path = new_path
        changes.append(RequirementChange(old_path, new_path, req.version))
    return changes


@dataclass
class ManifestRewrite:
    """Result of rewriting ``go.mod`` in memory."""

    path: Path
    original: bytes
    text: bytes
    changes: List[RequirementChange] = field(default_factory=list)

    @property
    def changed(self) -> bool:
        return bool(self.changes)


def process_go_mod(path: Path) -> ManifestRewrite:
    """Read and parse ``path`` and rewrite its requirements in memory.

    ``text`` equals ``original`` when no requirement matched.  Nothing is
    written.
    """
    try:
        original = path.read_bytes()
    except OSError as exc:
        raise TraversalError(f"cannot read {path}: {exc}") from exc
    try:
        text = original.decode("utf-8")
    except UnicodeDecodeError as exc:
        raise ManifestParseError(path, f"invalid UTF-8: {exc}") from exc
    modfile = parse_modfile(text, path)
    changes = rewrite_requirements(modfile)
    if not changes:
        return ManifestRewrite(path, original, original)
    for change in changes:
        logger.debug("go.mod require %s -> %s %s", change.old_path, change.new_path, change.version)
    return ManifestRewrite(path, original, format_modfile(modfile).encode("utf-8"), changes)
