"""Pipeline functions: split a stream, a string or a file, and run CLI operations"""

import io
import logging
from contextlib import closing
from itertools import islice
from pathlib import Path
from typing import IO, Iterator, Optional

from yamlsplit.config import Settings
from yamlsplit.core.assembler import DocumentAssembler
from yamlsplit.core.export import write_chunks, write_files, write_stream
from yamlsplit.core.models import Document
from yamlsplit.core.scanner import BoundaryScanner
from yamlsplit.core.source import DEFAULT_CHUNK_SIZE, iter_lines
from yamlsplit.core.utils.slug import slugify


logger = logging.getLogger(__name__)

DEFAULT_STEM = "stream"


def split_stream(
    stream: IO,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
    detect_encoding: bool = True,
    skip_empty: bool = False,
    ) -> Iterator[Document]:
    """Lazily yield the documents of a YAML stream in input order.

    Only the document being assembled is held in memory. The caller may
    stop iterating after any document; closing the stream is its concern.
    """
    lines = iter_lines(stream, chunk_size=chunk_size, detect=detect_encoding)
    scanned = BoundaryScanner().scan(lines)
    yield from DocumentAssembler(skip_empty=skip_empty).assemble(scanned)


def split_text(text: str, skip_empty: bool = False) -> list[Document]:
    """Split an in-memory string into documents."""
    return list(split_stream(io.StringIO(text), skip_empty=skip_empty))


def split_file(path: Path, **kwargs) -> Iterator[Document]:
    """Yield the documents of a file, closing it when iteration ends or is abandoned."""
    with open(path, "rb") as f:
        yield from split_stream(f, **kwargs)


def _split(source: IO, settings: Settings) -> Iterator[Document]:
    return split_stream(
        source,
        chunk_size=settings.chunk_size,
        detect_encoding=settings.detect_encoding,
        skip_empty=settings.skip_empty,
    )


def _limit(docs: Iterator[Document], settings: Settings) -> Iterator[Document]:
    """Stop after settings.max_documents documents (0 = no limit)."""
    return islice(docs, settings.max_documents) if settings.max_documents else docs


def run_split(
    source: IO,
    settings: Settings,
    out: IO[bytes],
    stem: Optional[str] = None,
    ) -> list[tuple[int, Optional[Path]]]:
    """Split `source` and write documents according to settings.output_mode.

    Returns (index, path) pairs; path is None for the stdout modes.
    """
    docs = _split(source, settings)
    with closing(docs):
        limited = _limit(docs, settings)
        if settings.output_mode == "files":
            return write_files(
                limited, Path(settings.output_dir),
                slugify(stem or "") or DEFAULT_STEM, settings.name_template,
            )
        if settings.output_mode == "chunks":
            indexes = write_chunks(limited, out)
        else:
            indexes = write_stream(limited, out)
    logger.debug("Wrote %d document(s) in %s mode", len(indexes), settings.output_mode)
    return [(i, None) for i in indexes]


def run_count(source: IO, settings: Settings) -> int:
    """Count the documents in `source` without keeping any of them."""
    docs = _split(source, settings)
    with closing(docs):
        limited = _limit(docs, settings)
        return sum(1 for _ in limited)
