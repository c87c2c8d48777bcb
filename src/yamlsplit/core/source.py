"""Line source: chunked reading, YAML 1.2 encoding detection, and line splitting"""

import codecs
import logging
import re
from typing import IO, Iterator, Union

from yamlsplit.core.errors import EncodingError, ReadError
from yamlsplit.core.models import SourceLine, StreamPosition


logger = logging.getLogger(__name__)

DEFAULT_CHUNK_SIZE = 64 * 1024
DETECT_LEN = 4

LINE_BREAK_RE = re.compile(r'\r\n|\r|\n')


def detect_encoding(prefix: bytes) -> str:
    """Return the codec name for a YAML stream, judged from its first four bytes.

    Follows YAML 1.2 section 5.2: a stream starts with a byte order mark or
    an ASCII character, so the position of null bytes reveals UTF-16/32.
    Codecs with a BOM are returned without endianness so Python drops it.
    """
    if len(prefix) >= 4:
        if prefix[:4] == b'\x00\x00\xfe\xff' or prefix[:4] == b'\xff\xfe\x00\x00':
            return 'utf-32'
        if prefix[:3] == b'\x00\x00\x00':
            return 'utf-32-be'
        if prefix[1:4] == b'\x00\x00\x00':
            return 'utf-32-le'
    if len(prefix) >= 2:
        if prefix[:2] in (b'\xfe\xff', b'\xff\xfe'):
            return 'utf-16'
        if prefix[0] == 0:
            return 'utf-16-be'
        if prefix[1] == 0:
            return 'utf-16-le'
    return 'utf-8'


def _read(stream: IO, size: int) -> Union[bytes, str]:
    try:
        return stream.read(size)
    except OSError as e:
        raise ReadError(f"Failed to read input: {e}") from e


def _read_prefix(stream: IO, chunk_size: int) -> Union[bytes, str]:
    """Read the first chunk, topping up short reads until detection has enough bytes."""
    data = _read(stream, chunk_size)
    while isinstance(data, bytes) and 0 < len(data) < DETECT_LEN:
        more = _read(stream, chunk_size)
        if not more:
            break
        data += more
    return data


def iter_text(stream: IO, chunk_size: int = DEFAULT_CHUNK_SIZE,
              detect: bool = True) -> Iterator[str]:
    """Yield decoded text chunks from a binary or text stream."""
    first = _read_prefix(stream, chunk_size)
    if isinstance(first, str):
        chunk = first
        while chunk:
            yield chunk
            chunk = _read(stream, chunk_size)
        return

    encoding = detect_encoding(first) if detect else 'utf-8'
    logger.debug("Input encoding: %s", encoding)
    decoder = codecs.getincrementaldecoder(encoding)(errors='strict')
    consumed = 0
    chunk, final = first, not first
    while True:
        consumed += len(chunk)
        try:
            text = decoder.decode(chunk, final=final)
        except UnicodeDecodeError as e:
            offset = consumed - len(e.object) + e.start
            raise EncodingError(f"Invalid input text: {e.reason}", encoding, offset) from e
        if text:
            yield text
        if final:
            return
        chunk = _read(stream, chunk_size)
        final = not chunk


def iter_lines(stream: IO, chunk_size: int = DEFAULT_CHUNK_SIZE,
               detect: bool = True) -> Iterator[SourceLine]:
    """Yield input lines with their original line breaks, in order.

    Lines break on LF, CRLF and CR. A CR at the end of a chunk is held back
    until the next chunk shows whether an LF follows.
    """
    parts: list[str] = []
    position = StreamPosition()

    def emit(text: str) -> SourceLine:
        nonlocal position
        line = SourceLine(text=text, position=position)
        position = line.end
        return line

    for text in iter_text(stream, chunk_size, detect):
        if parts and parts[-1].endswith('\r') and not text.startswith('\n'):
            yield emit(''.join(parts))
            parts = []
        start = 0
        for m in LINE_BREAK_RE.finditer(text):
            if m.group() == '\r' and m.end() == len(text):
                break
            parts.append(text[start:m.end()])
            yield emit(''.join(parts))
            parts = []
            start = m.end()
        if start < len(text):
            parts.append(text[start:])

    if parts:
        yield emit(''.join(parts))
