"""Data models for the line source, context tracker, scanner and assembler"""

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Optional, Union


@dataclass(frozen=True)
class StreamPosition:
    """Diagnostic location in the input; never used for seeking.

    `offset` is the byte offset within the UTF-8 rendition of the stream.
    """
    line:   int = 1
    column: int = 1
    offset: int = 0

    def shift(self, prefix: str) -> "StreamPosition":
        """Position of the character that follows `prefix` on the same line."""
        return StreamPosition(
            line=self.line,
            column=self.column + len(prefix),
            offset=self.offset + len(prefix.encode("utf-8")),
        )

    def __str__(self) -> str:
        return f"line {self.line}, column {self.column}"


class LineKind(str, Enum):
    """What the leading token of a line means for document splitting"""
    plain_content  = "plain-content"
    document_start = "document-start-marker"
    document_end   = "document-end-marker"
    comment        = "comment"
    scope_enter    = "scope-enter"
    scope_exit     = "scope-exit"
    blank          = "blank"
    directive      = "directive"


# Lines that may precede a document body without belonging to the previous one.
PREFIX_KINDS = frozenset({LineKind.blank, LineKind.comment, LineKind.directive})


@dataclass(frozen=True)
class TopLevel:
    """Block context outside any scalar or flow collection."""


@dataclass(frozen=True)
class BlockScalar:
    style:      str                  # '|' literal or '>' folded
    chomping:   str                  # 'clip', 'strip' or 'keep'
    min_indent: int                  # smallest indentation accepted as content
    indent:     Optional[int] = None # content indentation once detected
    opened_at:  StreamPosition = field(default_factory=StreamPosition)


@dataclass(frozen=True)
class QuotedScalar:
    style:     str                   # "'" or '"'
    opened_at: StreamPosition = field(default_factory=StreamPosition)


@dataclass(frozen=True)
class FlowCollection:
    depth:     int
    in_plain:  bool = False          # previous line ended inside a plain scalar
    opened_at: StreamPosition = field(default_factory=StreamPosition)


@dataclass(frozen=True)
class PlainScalar:
    """A multi-line plain scalar in block context, owned by a node at `indent`."""
    indent: int


Scope = Union[TopLevel, BlockScalar, QuotedScalar, FlowCollection, PlainScalar]


@dataclass(frozen=True)
class LexicalContext:
    """Immutable scope stack; the last scope is the current one."""
    scopes: tuple = (TopLevel(),)

    @property
    def current(self) -> Scope:
        return self.scopes[-1]

    @property
    def at_top_level(self) -> bool:
        return len(self.scopes) == 1

    def push(self, scope: Scope) -> "LexicalContext":
        return replace(self, scopes=self.scopes + (scope,))

    def pop(self) -> "LexicalContext":
        if self.at_top_level:
            return self
        return replace(self, scopes=self.scopes[:-1])

    def swap(self, scope: Scope) -> "LexicalContext":
        """Replace the current scope (top-level is never replaced)."""
        return self.pop().push(scope)


@dataclass(frozen=True)
class SourceLine:
    """One raw input line, line break included."""
    text:     str
    position: StreamPosition

    @property
    def terminated(self) -> bool:
        return self.text.endswith(("\n", "\r"))

    @property
    def end(self) -> StreamPosition:
        """Position just past this line."""
        if self.terminated:
            return StreamPosition(
                line=self.position.line + 1,
                offset=self.position.offset + len(self.text.encode("utf-8")),
            )
        return self.position.shift(self.text)


class Split(str, Enum):
    """Split decision attached to a scanned line"""
    none   = "none"
    before = "before"   # close the current document, then start a new one with this line
    after  = "after"    # append this line, then close the current document


@dataclass(frozen=True)
class ScannedLine:
    text:     str
    kind:     LineKind
    position: StreamPosition
    split:    Split = Split.none


@dataclass(frozen=True)
class Document:
    """A contiguous run of input lines between two top-level boundaries."""
    index:          int
    content:        str
    start:          StreamPosition
    explicit_start: bool = False
    explicit_end:   bool = False
    is_empty:       bool = False

    def __len__(self) -> int:
        return len(self.content)
