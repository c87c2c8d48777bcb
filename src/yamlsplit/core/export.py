"""Output sinks: write documents to stdout or to one file per document"""

from pathlib import Path
from typing import IO, Iterable

from yamlsplit.core.models import Document


DEFAULT_NAME_TEMPLATE = "{stem}-{number:03d}.yaml"


def document_filename(doc: Document, stem: str, template: str = DEFAULT_NAME_TEMPLATE) -> str:
    """Render the output filename for a document (index is 0-based, number 1-based)."""
    try:
        name = template.format(stem=stem, index=doc.index, number=doc.index + 1)
    except (KeyError, IndexError, ValueError) as e:
        raise ValueError(f"Invalid name template {template!r}: {e}") from e
    if not name or Path(name).name != name:
        raise ValueError(f"Name template {template!r} must render a plain file name, got {name!r}")
    return name


def write_stream(docs: Iterable[Document], out: IO[bytes]) -> list[int]:
    """Write documents back to back; for UTF-8 input this reproduces the input."""
    indexes = []
    for doc in docs:
        out.write(doc.content.encode("utf-8"))
        indexes.append(doc.index)
    out.flush()
    return indexes


def write_chunks(docs: Iterable[Document], out: IO[bytes]) -> list[int]:
    """Write each document framed by START/END CHUNK markers, for inspection."""
    indexes = []
    for doc in docs:
        content = doc.content.encode("utf-8")
        out.write(f">>> START CHUNK ({len(content)} bytes) >>>|".encode("utf-8"))
        out.write(content)
        out.write(b"|<<< END CHUNK <<<\n")
        indexes.append(doc.index)
    out.flush()
    return indexes


def write_files(
    docs: Iterable[Document],
    output_dir: Path,
    stem: str,
    template: str = DEFAULT_NAME_TEMPLATE,
    ) -> list[tuple[int, Path]]:
    """Write each document to its own file in output_dir. Returns (index, path) pairs."""
    output_dir.mkdir(parents=True, exist_ok=True)
    results = []
    for doc in docs:
        path = output_dir / document_filename(doc, stem, template)
        path.write_text(doc.content, encoding="utf-8", newline="")
        results.append((doc.index, path))
    return results
