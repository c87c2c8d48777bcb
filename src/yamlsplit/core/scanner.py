"""Boundary scanner: turns per-line classifications into split decisions"""

from typing import Iterable, Iterator

from yamlsplit.core.models import LexicalContext, LineKind, ScannedLine, SourceLine, Split, StreamPosition
from yamlsplit.core.tracker import advance, finish


SPLITS = {
    LineKind.document_start: Split.before,
    LineKind.document_end:   Split.after,
}


class BoundaryScanner:
    """Owns the lexical context for one stream; create a new scanner per stream."""

    def __init__(self) -> None:
        self.context = LexicalContext()
        self.position = StreamPosition()

    def scan(self, lines: Iterable[SourceLine]) -> Iterator[ScannedLine]:
        """Yield every input line with its classification and split decision.

        Raises TruncatedScalarError once the lines run out if a scalar is
        still open.
        """
        complete = True
        for line in lines:
            self.context, kind = advance(self.context, line.text, line.position)
            self.position = line.end
            complete = line.terminated
            yield ScannedLine(line.text, kind, line.position, SPLITS.get(kind, Split.none))
        finish(self.context, self.position, complete_line=complete)
