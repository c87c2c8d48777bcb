"""Error taxonomy for splitting YAML streams.

Every error is fatal for the stream being split and is raised to the
caller unchanged; nothing here is retried. Each carries the stream
position it refers to so that messages can point at the offending input.
"""

from typing import Optional

from yamlsplit.core.models import BlockScalar, QuotedScalar, Scope, StreamPosition


class SplitError(Exception):
    """Base class for errors raised while splitting a stream."""

    def __init__(self, message: str, position: Optional[StreamPosition] = None) -> None:
        self.message = message
        self.position = position
        super().__init__(self.format())

    def format(self) -> str:
        if self.position is None:
            return self.message
        return f"{self.message} at {self.position}"


class ReadError(SplitError):
    """Reading the input failed mid-stream."""


class EncodingError(SplitError):
    """The input is not valid text in its detected encoding."""

    def __init__(self, message: str, encoding: str, offset: int) -> None:
        self.encoding = encoding
        self.offset = offset
        super().__init__(message)

    def format(self) -> str:
        return f"{self.message} ({self.encoding}) at byte {self.offset}"


def _describe(scope: Scope) -> str:
    if isinstance(scope, QuotedScalar):
        return "a single-quoted scalar" if scope.style == "'" else "a double-quoted scalar"
    if isinstance(scope, BlockScalar):
        return "a literal block scalar" if scope.style == "|" else "a folded block scalar"
    return "a scalar"


class TruncatedScalarError(SplitError):
    """The stream ended while a quoted or block scalar was still open."""

    def __init__(self, scope: Scope, position: StreamPosition) -> None:
        self.scope = scope
        self.opened_at = getattr(scope, "opened_at", None)
        message = f"stream ended inside {_describe(scope)}"
        if self.opened_at is not None:
            message += f" opened at {self.opened_at}"
        super().__init__(message, position)
