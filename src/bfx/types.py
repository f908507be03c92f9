## bfx — Copyright © 2025, Alex J. Champandard.  Licensed under AGPLv3; see LICENSE! ⚘

from enum import Enum
from typing import NamedTuple
from dataclasses import dataclass, field


DEFAULT_TAPE_SIZE = 30000
DEFAULT_INPUT_MAX = 1024
DEFAULT_COMPILER = "gcc"
DEFAULT_COMPILE_FLAGS = "-O3 -s -ffast-math"
DEFAULT_COMMAND = "{compiler} {flags} -o {output} {input}"


class Instruction:
    INC_CELL = ord('+')
    DEC_CELL = ord('-')
    NEXT_CELL = ord('>')
    PREV_CELL = ord('<')
    READ = ord(',')
    WRITE = ord('.')
    LOOP_OPEN = ord('[')
    LOOP_CLOSE = ord(']')
    DUMP = ord('#')
    RESET = ord('@')
    NEWLINE = ord('\n')
    SEPARATOR = ord('!')


class EofPolicy(Enum):
    ZERO = 'zero'
    DECREMENT = 'decrement'
    UNCHANGED = 'unchanged'

    @classmethod
    def parse(cls, name: str) -> 'EofPolicy':
        try:
            return cls(name.strip().lower())
        except ValueError:
            choices = ', '.join(f'"{p.value}"' for p in cls)
            raise ValueError(f"Unknown end-of-input policy `{name}`; expected one of {choices}.") from None


class MachineState(Enum):
    RUNNING = 1
    AWAITING_INPUT = 2
    HALTED = 3
    FAULTED = 4


class Position(NamedTuple):
    offset: int
    line: int
    column: int

    def __str__(self):
        return f"({self.line},{self.column})"


class Loop(NamedTuple):
    start: Position
    end: Position


@dataclass
class LoopTable:
    """Matched bracket pairs, indexed both ways by source offset."""
    loops: list[Loop] = field(default_factory=list)
    forward: dict[int, int] = field(default_factory=dict)
    backward: dict[int, int] = field(default_factory=dict)

    def add(self, start: Position, end: Position) -> None:
        self.loops.append(Loop(start, end))
        self.forward[start.offset] = end.offset
        self.backward[end.offset] = start.offset

    def clear(self) -> None:
        self.loops.clear()
        self.forward.clear()
        self.backward.clear()

    def __len__(self):
        return len(self.loops)

    def __iter__(self):
        return iter(self.loops)


@dataclass(frozen=True)
class Parameters:
    tape_size: int = DEFAULT_TAPE_SIZE
    input_max: int = DEFAULT_INPUT_MAX
    eof_policy: EofPolicy = EofPolicy.ZERO
    debug: bool = False
    repl: bool = False
    extended: bool = True
    separate_input: bool = False
    compiler: str = DEFAULT_COMPILER
    compile_flags: str = DEFAULT_COMPILE_FLAGS
    command: str = DEFAULT_COMMAND

    def __post_init__(self):
        if self.tape_size <= 0:
            raise ValueError(f"Tape size must be positive, got {self.tape_size}.")
        if self.input_max <= 0:
            raise ValueError(f"Input buffer size must be positive, got {self.input_max}.")


class SourceBuffer:
    """Append-only program text with capacity grown by doubling."""

    def __init__(self, capacity: int = DEFAULT_INPUT_MAX):
        self._data = bytearray(max(1, capacity))
        self._length = 0

    @property
    def capacity(self) -> int:
        return len(self._data)

    def append(self, text: bytes) -> int:
        """Append text and return the offset at which it begins."""
        start, needed = self._length, self._length + len(text)
        if needed > len(self._data):
            capacity = len(self._data)
            while capacity < needed: capacity *= 2
            self._data.extend(bytes(capacity - len(self._data)))
        self._data[start:needed] = text
        self._length = needed
        assert self._length <= len(self._data)
        return start

    def truncate(self, length: int) -> None:
        if not 0 <= length <= self._length:
            raise ValueError(f"Cannot truncate buffer of length {self._length} to {length}.")
        self._data[length:self._length] = bytes(self._length - length)
        self._length = length

    def clear(self) -> None:
        self.truncate(0)

    def view(self) -> bytes:
        return bytes(self._data[:self._length])

    def __len__(self):
        return self._length

    def __getitem__(self, index):
        if isinstance(index, slice):
            return bytes(self._data[:self._length][index])
        if not -self._length <= index < self._length:
            raise IndexError("source buffer index out of range")
        return self._data[index % self._length]

    def __repr__(self):
        return f"SourceBuffer({self.view()!r}, capacity={self.capacity})"
