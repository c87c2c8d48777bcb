"""Integration tests for the split pipeline: source → scanner → assembler.

Checks the lossless round trip, marker suppression inside scalars,
truncation errors, and that documents are produced one at a time
without buffering the whole stream.
"""

import io
import tracemalloc
from itertools import islice

import pytest
import yaml

from yamlsplit.config import Settings
from yamlsplit.core.errors import TruncatedScalarError
from yamlsplit.core.pipeline import run_count, run_split, split_file, split_stream, split_text


MANIFESTS = r"""# leading comment
apiVersion: v1
kind: ConfigMap
data:
  script: |
    #!/bin/sh
    echo "---"
    ---
    ...
  quoted: "line one
    ---
    line two"
---
apiVersion: v1
kind: List
items: [
  a, b,
  "c"
  ]
--- |
  a root literal
  ---
...
---
- 'it''s'
- "tab\there"
"""


STREAMS = [
    "",
    "a: 1\n",
    "a: 1",
    "---\n---\n---\n",
    "a: 1\r\n---\r\nb: 2\r\n",
    "a: 1\r---\rb: 2\r",
    "%YAML 1.2\n---\na: 1\n...\n%YAML 1.2\n---\nb: 2\n...\n",
    "# only comments\n\n# here\n",
    "\ufeffa: 1\n---\nb: 2\n",
    MANIFESTS,
]


@pytest.mark.parametrize("text", STREAMS)
def test_round_trip(text):
    """Concatenating the documents reproduces the input exactly."""
    assert "".join(d.content for d in split_text(text)) == text


def test_documents_match_yaml_loader():
    """Each document loads on its own to the same value a full YAML parse gives."""
    docs = split_text(MANIFESTS)
    assert len(docs) == 4
    assert [yaml.safe_load(d.content) for d in docs] == list(yaml.safe_load_all(MANIFESTS))
    assert yaml.safe_load(docs[0].content)["data"]["script"] == '#!/bin/sh\necho "---"\n---\n...\n'


def test_block_scalar_markers_not_split():
    """`---` inside a block scalar is part of the scalar."""
    text = "script: |\n  ---\n  echo hi\n"
    docs = split_text(text)
    assert len(docs) == 1
    assert yaml.safe_load(docs[0].content) == {"script": "---\necho hi\n"}


def test_quoted_scalar_markers_not_split():
    """`...` inside a multi-line quoted scalar is part of the scalar."""
    text = 'msg: "wait\n  ...\n  done"\n'
    docs = split_text(text)
    assert len(docs) == 1
    assert yaml.safe_load(docs[0].content) == {"msg": "wait ... done"}


def test_consecutive_start_markers():
    """Three `---` lines give two empty documents and one starting at the last marker."""
    docs = split_text("---\n---\n---\n")
    assert [d.content for d in docs] == ["---\n"] * 3
    assert all(d.explicit_start for d in docs)


def test_single_document_without_markers():
    """A stream with no markers is one document."""
    docs = split_text("a: 1\nb: [1, 2]\n")
    assert len(docs) == 1
    assert docs[0].content == "a: 1\nb: [1, 2]\n"
    assert not docs[0].explicit_start


@pytest.mark.parametrize("text", [
    "a: |\n  line1\n  line2",
    "a: 'oops\n---\nb: 2\n",
    'a: "oops\n',
])
def test_truncated_scalar(text):
    """An unterminated scalar at end-of-stream raises TruncatedScalarError."""
    with pytest.raises(TruncatedScalarError):
        split_text(text)


def test_stream_ending_on_block_header():
    """A final block scalar header without a line break loads as an empty string."""
    docs = split_text("a: 1\n---\nb: |")
    assert [d.content for d in docs] == ["a: 1\n", "---\nb: |"]
    assert yaml.safe_load(docs[1].content) == {"b": ""}


def test_documents_before_truncation_are_delivered():
    """Documents completed before a truncation error reach the consumer."""
    docs = split_stream(io.StringIO("a: 1\n---\nb: 'oops\n"))
    assert next(docs).content == "a: 1\n"
    with pytest.raises(TruncatedScalarError):
        next(docs)


def test_skip_empty():
    """skip_empty drops documents with only markers and comments."""
    docs = split_text("---\n# nothing\n---\na: 1\n", skip_empty=True)
    assert [d.content for d in docs] == ["---\na: 1\n"]


def test_utf16_input():
    """UTF-16 input is decoded before splitting."""
    data = b"\xff\xfe" + "a: 1\n---\nb: é\n".encode("utf-16-le")
    docs = list(split_stream(io.BytesIO(data)))
    assert [d.content for d in docs] == ["a: 1\n", "---\nb: é\n"]


def test_split_file(tmp_path):
    """split_file yields the documents of a file on disk."""
    path = tmp_path / "multi.yaml"
    path.write_bytes(b"a: 1\n---\nb: 2\n")
    assert [d.content for d in split_file(path)] == ["a: 1\n", "---\nb: 2\n"]


def test_consumer_may_stop_early():
    """Taking the first documents reads only part of the input."""
    data = "".join(f"---\nn: {i}\n" for i in range(200)).encode("utf-8")
    stream = io.BytesIO(data)
    first = list(islice(split_stream(stream, chunk_size=16), 2))
    assert [d.content for d in first] == ["---\nn: 0\n", "---\nn: 1\n"]
    assert stream.tell() < len(data)


# --- run_split / run_count ---

def test_run_split_stream_mode():
    """run_split in stream mode writes the input back out."""
    out = io.BytesIO()
    results = run_split(io.BytesIO(b"a: 1\n---\nb: 2\n"), Settings(), out)
    assert results == [(0, None), (1, None)]
    assert out.getvalue() == b"a: 1\n---\nb: 2\n"


def test_run_split_files_mode(tmp_path):
    """run_split in files mode names files after the slugged stem."""
    settings = Settings(output_mode="files", output_dir=str(tmp_path / "out"))
    results = run_split(io.BytesIO(b"a: 1\n---\nb: 2\n"), settings, io.BytesIO(), stem="My Pods")
    assert [p.name for _, p in results] == ["my-pods-001.yaml", "my-pods-002.yaml"]
    assert results[1][1].read_text() == "---\nb: 2\n"


def test_run_split_default_stem(tmp_path):
    """Without a stem (standard input), files are named after 'stream'."""
    settings = Settings(output_mode="files", output_dir=str(tmp_path))
    results = run_split(io.BytesIO(b"a: 1\n"), settings, io.BytesIO())
    assert results[0][1].name == "stream-001.yaml"


def test_run_split_max_documents():
    """max_documents stops after N documents."""
    out = io.BytesIO()
    results = run_split(io.BytesIO(b"a\n---\nb\n---\nc\n"), Settings(max_documents=2), out)
    assert len(results) == 2
    assert out.getvalue() == b"a\n---\nb\n"


def test_run_count():
    """run_count counts documents, honouring skip_empty."""
    data = b"---\n---\na: 1\n---\nb: 2\n"
    assert run_count(io.BytesIO(data), Settings()) == 3
    assert run_count(io.BytesIO(data), Settings(skip_empty=True)) == 2


# --- bounded memory ---

LINE = b"  " + b"x" * 1021 + b"\n"
SMALL_LINES = 16
LARGE_LINES = 2048
SMALL_DOCS = 2000


class GeneratedStream:
    """A binary stream whose content is produced on demand and never held whole."""

    def __init__(self, parts) -> None:
        self._parts = iter(parts)
        self._buf = b""

    def read(self, size=-1):
        parts, have = [self._buf], len(self._buf)
        while size < 0 or have < size:
            part = next(self._parts, None)
            if part is None:
                break
            parts.append(part)
            have += len(part)
        data = b"".join(parts)
        if size < 0:
            size = len(data)
        data, self._buf = data[:size], data[size:]
        return data


def _document(name: str, lines: int):
    yield f"---\n{name}: |\n".encode("utf-8")
    for _ in range(lines):
        yield LINE


def _generated_stream():
    for i in range(SMALL_DOCS):
        yield from _document(f"small{i}", SMALL_LINES)
        if i == SMALL_DOCS // 2:
            yield from _document("large", LARGE_LINES)


def test_memory_bounded_by_largest_document():
    """Peak memory follows the largest document, not the stream size."""
    large_size = LARGE_LINES * len(LINE)
    total_size = SMALL_DOCS * SMALL_LINES * len(LINE) + large_size

    count = 0
    largest = 0
    tracemalloc.start()
    try:
        tracemalloc.reset_peak()
        for doc in split_stream(GeneratedStream(_generated_stream())):
            count += 1
            largest = max(largest, len(doc))
        _, peak = tracemalloc.get_traced_memory()
    finally:
        tracemalloc.stop()

    assert count == SMALL_DOCS + 1
    assert largest > large_size
    assert peak < 3 * large_size
    assert peak < total_size / 4
