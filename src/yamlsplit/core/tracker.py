"""Lexical context tracker: classifies each line without a full YAML parse.

The tracker is a pure function of `(context, line) -> (context, kind)`.
It only follows the YAML constructs that can hide boundary-marker-like
text: block scalars, quoted scalars, multi-line plain scalars, comments,
and flow collections. Structure is never validated; anything it does not
recognise is treated as plain content.
"""

import logging
import re
from typing import Optional

from yamlsplit.core.errors import TruncatedScalarError
from yamlsplit.core.models import (
    BlockScalar,
    FlowCollection,
    LexicalContext,
    LineKind,
    PlainScalar,
    QuotedScalar,
    StreamPosition,
)


logger = logging.getLogger(__name__)

BOM = '\ufeff'
FLOW_INDICATORS = ',[]{}'

DOCUMENT_START_RE = re.compile(r'---(?=[ \t\[\]{},]|$)')
DOCUMENT_END_RE = re.compile(r'\.\.\.(?:[ \t]+(?:#.*)?)?$')
BLOCK_HEADER_RE = re.compile(r'([|>])(?:([1-9])([+-])?|([+-])([1-9])?)?(?:[ \t]+(?:#.*)?)?$')

CHOMPING = {'-': 'strip', '+': 'keep', None: 'clip'}

# Scanner states within a line
_EXPECT = 'expect'   # a node may start here
_PLAIN = 'plain'     # inside a plain scalar
_AFTER = 'after'     # a complete node (quoted scalar, alias, closed collection) just ended


def _strip_break(line: str) -> str:
    if line.endswith('\r\n'):
        return line[:-2]
    if line.endswith(('\n', '\r')):
        return line[:-1]
    return line


def _indent(body: str) -> int:
    """Leading spaces; tabs never count as indentation."""
    return len(body) - len(body.lstrip(' '))


def _is_blank(body: str) -> bool:
    return not body.strip(' \t')


def match_marker(body: str) -> Optional[LineKind]:
    """Return the marker kind if `body` is a column-0 document marker line."""
    if DOCUMENT_START_RE.match(body):
        return LineKind.document_start
    if DOCUMENT_END_RE.match(body):
        return LineKind.document_end
    return None


def marker_payload(line: str) -> str:
    """Return whatever follows a `---` marker on its line, without comments."""
    body = _strip_break(line).removeprefix(BOM)
    if not DOCUMENT_START_RE.match(body):
        return ''
    rest = body[3:].strip(' \t')
    return '' if rest.startswith('#') else rest


def closing_quote(body: str, start: int, style: str) -> int:
    """Index of the quote that closes a scalar, searching from `start`; -1 if none."""
    i = start
    while True:
        j = body.find(style, i)
        if j < 0:
            return -1
        if style == "'":
            if body.startswith("''", j):
                i = j + 2
                continue
            return j
        k = j
        while k > start and body[k - 1] == '\\':
            k -= 1
        if (j - k) % 2 == 0:
            return j
        i = j + 1


def _skip_token(body: str, i: int, flow: int) -> int:
    """Skip a tag, anchor or alias token starting at `i`."""
    n = len(body)
    while i < n and body[i] not in ' \t' and not (flow and body[i] in FLOW_INDICATORS):
        i += 1
    return i


def _block_header(body: str, i: int, owner: int, at: StreamPosition) -> Optional[BlockScalar]:
    m = BLOCK_HEADER_RE.match(body, i)
    if not m:
        return None
    style, digit, chomp = m.group(1), m.group(2) or m.group(5), m.group(3) or m.group(4)
    if digit:
        indent = owner + int(digit) if owner >= 0 else int(digit)
        return BlockScalar(style, CHOMPING[chomp], min_indent=indent, indent=indent,
                           opened_at=at.shift(body[:i]))
    return BlockScalar(style, CHOMPING[chomp], min_indent=max(owner + 1, 1),
                       opened_at=at.shift(body[:i]))


def _scan(ctx: LexicalContext, body: str, at: StreamPosition,
          pos: int = 0, owner: Optional[int] = None, state: str = _EXPECT) -> LexicalContext:
    """Scan the rest of a line in top-level or flow context and return the next context.

    `owner` is the indentation of the block node that would own a block
    scalar or plain scalar starting on this line.
    """
    scope = ctx.current
    flow = scope.depth if isinstance(scope, FlowCollection) else 0
    opened_at = scope.opened_at if isinstance(scope, FlowCollection) else at.shift(body[:pos])
    if flow:
        ctx = ctx.pop()
        if scope.in_plain and state == _EXPECT and not _is_blank(body):
            state = _PLAIN
    if owner is None:
        owner = _indent(body) - 1
    node_col = owner + 1 if state == _AFTER else pos
    n = len(body)
    i = pos

    while i < n:
        c = body[i]

        if state == _PLAIN:
            if c == '#' and (i == 0 or body[i - 1] in ' \t'):
                break
            if c == ':' and (i + 1 == n or body[i + 1] in ' \t' or (flow and body[i + 1] in FLOW_INDICATORS)):
                if not flow:
                    owner = node_col
                state = _EXPECT
                i += 1
                continue
            if flow and c in FLOW_INDICATORS:
                state = _EXPECT
                continue
            i += 1
            continue

        if c in ' \t':
            i += 1
            continue
        if c == '#' and (i == 0 or body[i - 1] in ' \t'):
            break

        if state == _AFTER:
            if c == ':':
                if not flow:
                    owner = node_col
                state = _EXPECT
                i += 1
                continue
            if not (flow and c in ',]}'):
                node_col, state = i, _PLAIN
                i += 1
                continue
            state = _EXPECT

        # _EXPECT: a node, an indicator, or a flow delimiter
        if c in '"\'':
            end = closing_quote(body, i + 1, c)
            if end < 0:
                if flow:
                    ctx = ctx.push(FlowCollection(flow, opened_at=opened_at))
                return ctx.push(QuotedScalar(c, opened_at=at.shift(body[:i])))
            node_col, state = i, _AFTER
            i = end + 1
            continue
        if c in '[{':
            if not flow:
                opened_at = at.shift(body[:i])
            flow += 1
            i += 1
            continue
        if c in ']}':
            if flow:
                flow -= 1
            node_col, state = i, _AFTER
            i += 1
            continue
        if c == ',' and flow:
            i += 1
            continue
        if c in '|>' and not flow:
            header = _block_header(body, i, owner, at)
            if header is not None:
                return ctx.push(header)
        if c in '-?:' and (i + 1 == n or body[i + 1] in ' \t'):
            if c in '-?' and not flow:
                owner = i
            i += 1
            continue
        if c in '!&':
            i = _skip_token(body, i, flow)
            continue
        if c == '*':
            node_col, state = i, _AFTER
            i = _skip_token(body, i, flow)
            continue
        node_col, state = i, _PLAIN
        i += 1

    if flow:
        return ctx.push(FlowCollection(flow, in_plain=state == _PLAIN, opened_at=opened_at))
    if state == _PLAIN:
        return ctx.push(PlainScalar(owner))
    return ctx


def _continue_block(scope: BlockScalar, body: str) -> Optional[BlockScalar]:
    """Return the (possibly updated) scope if the line is block scalar content, else None."""
    if _is_blank(body):
        return scope
    indent = _indent(body)
    if scope.indent is None:
        if indent >= scope.min_indent:
            return BlockScalar(scope.style, scope.chomping, scope.min_indent, indent, scope.opened_at)
        return None
    return scope if indent >= scope.indent else None


def _continues_plain(scope: PlainScalar, body: str) -> bool:
    if _is_blank(body):
        return True
    if match_marker(body) or body.lstrip(' \t').startswith('#'):
        return False
    return _indent(body) > scope.indent


def _classify(ctx: LexicalContext, body: str, at: StreamPosition) -> tuple[LexicalContext, Optional[LineKind]]:
    scope = ctx.current

    if isinstance(scope, BlockScalar):
        kept = _continue_block(scope, body)
        if kept is not None:
            return (ctx if kept is scope else ctx.swap(kept)), LineKind.plain_content
        ctx = ctx.pop()
    elif isinstance(scope, PlainScalar):
        if _continues_plain(scope, body):
            return ctx, LineKind.plain_content
        ctx = ctx.pop()
    elif isinstance(scope, QuotedScalar):
        end = closing_quote(body, 0, scope.style)
        if end < 0:
            return ctx, LineKind.plain_content
        return _scan(ctx.pop(), body, at, pos=end + 1, state=_AFTER), None

    if ctx.at_top_level:
        marker = match_marker(body)
        if marker is LineKind.document_start:
            return _scan(ctx, body, at, pos=3, owner=-1), marker
        if marker is LineKind.document_end:
            return ctx, marker
        if _is_blank(body):
            return ctx, LineKind.blank
        if body.lstrip(' \t').startswith('#'):
            return ctx, LineKind.comment
        if body.startswith('%'):
            return ctx, LineKind.directive
    elif _is_blank(body):
        return ctx, LineKind.blank

    return _scan(ctx, body, at), None


def _depth(ctx: LexicalContext) -> int:
    return sum(1 for s in ctx.scopes if not isinstance(s, PlainScalar))


def _kind_of(ctx: LexicalContext) -> type:
    scopes = [s for s in ctx.scopes if not isinstance(s, PlainScalar)]
    return type(scopes[-1])


def advance(context: LexicalContext, line: str,
            at: StreamPosition = StreamPosition()) -> tuple[LexicalContext, LineKind]:
    """Classify one raw line and return the context for the next one.

    `at` is the position of the line start and is only used to record
    where scopes were opened, for error messages.
    """
    body = _strip_break(line).removeprefix(BOM)
    after, kind = _classify(context, body, at)
    if kind is not None:
        return after, kind

    before_depth, after_depth = _depth(context), _depth(after)
    if after_depth > before_depth:
        return after, LineKind.scope_enter
    if after_depth < before_depth:
        return after, LineKind.scope_exit
    if after_depth > 1 and _kind_of(after) is not _kind_of(context):
        return after, LineKind.scope_enter
    return after, LineKind.plain_content


def _header_only(scope: BlockScalar, at: StreamPosition) -> bool:
    return scope.indent is None or scope.opened_at.line == at.line


def finish(context: LexicalContext, at: StreamPosition, complete_line: bool = True) -> None:
    """Check the context left at end-of-stream.

    Raises TruncatedScalarError for an open quoted scalar, or for an open
    block scalar when the stream stopped in the middle of a content line.
    A header with no content line yet is an empty scalar.
    """
    for scope in reversed(context.scopes):
        if isinstance(scope, QuotedScalar):
            raise TruncatedScalarError(scope, at)
        if isinstance(scope, BlockScalar) and not complete_line and not _header_only(scope, at):
            raise TruncatedScalarError(scope, at)
        if isinstance(scope, FlowCollection):
            logger.warning("Stream ended inside an unclosed flow collection opened at %s", scope.opened_at)
