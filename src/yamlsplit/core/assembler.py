"""Document assembler: buffers lines between split points and emits documents"""

import logging
from typing import Iterable, Iterator, Optional

from yamlsplit.core.models import PREFIX_KINDS, Document, LineKind, ScannedLine, Split, StreamPosition
from yamlsplit.core.tracker import marker_payload


logger = logging.getLogger(__name__)


class DocumentAssembler:
    """Accumulates scanned lines into documents, strictly in input order.

    Blank, comment and directive lines seen before any document body are
    kept as the prefix of the next document, so a `---` only closes the
    current document once that document has a body.
    """

    def __init__(self, skip_empty: bool = False) -> None:
        self.skip_empty = skip_empty
        self.count = 0
        self._reset()

    def _reset(self) -> None:
        self._lines: list[str] = []
        self._start: Optional[StreamPosition] = None
        self._has_body = False
        self._has_content = False
        self._explicit_start = False
        self._explicit_end = False

    def _append(self, line: ScannedLine) -> None:
        if not self._lines:
            self._start = line.position
        self._lines.append(line.text)
        if line.kind in PREFIX_KINDS and not self._has_body:
            return
        if not self._has_body:
            self._explicit_start = line.kind == LineKind.document_start
        self._has_body = True
        if line.kind == LineKind.document_start:
            self._has_content = self._has_content or bool(marker_payload(line.text))
        elif line.kind not in PREFIX_KINDS and line.kind != LineKind.document_end:
            self._has_content = True
        self._explicit_end = line.kind == LineKind.document_end

    def _flush(self) -> Optional[Document]:
        doc = Document(
            index=self.count,
            content=''.join(self._lines),
            start=self._start,
            explicit_start=self._explicit_start,
            explicit_end=self._explicit_end,
            is_empty=not self._has_content,
        )
        self._reset()
        if doc.is_empty and self.skip_empty:
            logger.debug("Skipped empty document at %s", doc.start)
            return None
        self.count += 1
        logger.debug("Document %d: %d chars from %s", doc.index, len(doc), doc.start)
        return doc

    def feed(self, line: ScannedLine) -> Optional[Document]:
        """Add one line; return the document it completes, if any."""
        emitted = None
        if line.split is Split.before and self._has_body:
            emitted = self._flush()
        self._append(line)
        if line.split is Split.after:
            emitted = self._flush()
        return emitted

    def close(self) -> Optional[Document]:
        """Emit whatever is buffered at end-of-stream."""
        if not self._lines:
            return None
        return self._flush()

    def assemble(self, lines: Iterable[ScannedLine]) -> Iterator[Document]:
        for line in lines:
            doc = self.feed(line)
            if doc is not None:
                yield doc
        doc = self.close()
        if doc is not None:
            yield doc
