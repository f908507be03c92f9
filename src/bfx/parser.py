## Copyright © 2025, Alex J. Champandard.  Licensed under AGPLv3; see LICENSE! ⚘

from bisect import bisect_left

from .types import Instruction, LoopTable, Position
from .errors import BfxIncompleteParse, BfxUnmatchedLoop


def _as_bytes(source) -> bytes:
    if isinstance(source, str): return source.encode('utf-8')
    return bytes(source)


class PositionTracker:
    """Maps offsets into the source to (line, column) pairs for diagnostics."""

    def __init__(self, source):
        source = _as_bytes(source)
        self.length = len(source)
        self.newlines = [i for i, c in enumerate(source) if c == Instruction.NEWLINE]

    def position(self, offset: int) -> Position:
        # Newlines strictly before the offset decide the line; the newline itself
        # still belongs to the line it terminates.
        count = bisect_left(self.newlines, offset)
        line_start = self.newlines[count - 1] + 1 if count else 0
        return Position(offset, count + 1, offset - line_start + 1)

    def end(self) -> Position:
        """Position reached after scanning the whole source."""
        last = self.newlines[-1] if self.newlines else -1
        return Position(self.length, len(self.newlines) + 1, self.length - last - 1)


def position_of(source, offset: int) -> Position:
    return PositionTracker(source).position(offset)


def build_loops(source, filename: str | None = None) -> LoopTable:
    """Pair every `[` with its `]` in a single scan, or raise on bad nesting."""
    source = _as_bytes(source)
    loops, stack = LoopTable(), []
    line, column = 1, 0

    for offset, c in enumerate(source):
        column += 1
        if c == Instruction.LOOP_OPEN:
            stack.append(Position(offset, line, column))
        elif c == Instruction.LOOP_CLOSE:
            if not stack:
                raise BfxUnmatchedLoop(f"Error ({line},{column}): Unmatched closing bracket ']'.",
                                       filename=filename, line=line, column=column, token=']')
            loops.add(stack.pop(), Position(offset, line, column))
        elif c == Instruction.NEWLINE:
            line += 1
            column = 0

    if stack:
        raise BfxIncompleteParse(f"Error ({line},{column}): Unmatched opening bracket '['.",
                                 filename=filename, line=line, column=column, token='[')
    return loops


def split_source(source) -> tuple[bytes, bytes | None]:
    """Split at the first `!` into program text and its input data region."""
    source = _as_bytes(source)
    index = source.find(Instruction.SEPARATOR)
    if index < 0: return source, None
    return source[:index], source[index+1:]
