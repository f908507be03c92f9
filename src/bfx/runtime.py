## bfx — Copyright © 2025, Alex J. Champandard.  Licensed under AGPLv3; see LICENSE! ⚘

import io
import sys
from pathlib import Path

from .types import LoopTable, MachineState, Parameters, SourceBuffer
from .errors import BfxIncompleteParse, BfxParseError, BfxResourceError
from .parser import PositionTracker, build_loops, split_source
from .interpreter import Machine


class Session:
    """One interpreter session: source buffer, loop table, tape and pointers."""

    def __init__(self, params: Parameters | None = None, output=None, input=None, diagnostics=None):
        self.params = params or Parameters()
        self.input = input if input is not None else sys.stdin.buffer
        self.buffer = SourceBuffer(self.params.input_max)
        self.loops = LoopTable()
        self.tracker = PositionTracker(b'')
        self.machine = Machine(self.params, output=output, input=self.input, diagnostics=diagnostics)
        self.machine.on_reset = self._drop_program
        self.pending = False

    def __enter__(self):
        return self

    def __exit__(self, *exc_info):
        self.close()
        return False

    # Inspection ──────────────────────────────────────────────────────────────────────────────
    @property
    def tape(self) -> bytearray:
        return self.machine.tape

    @property
    def ip(self) -> int:
        return self.machine.ip

    @property
    def dp(self) -> int:
        return self.machine.dp

    @property
    def dp_max(self) -> int:
        return self.machine.dp_max

    @property
    def state(self) -> MachineState:
        return self.machine.state

    @property
    def source(self) -> bytes:
        return self.buffer.view()

    # One-shot ────────────────────────────────────────────────────────────────────────────────
    def run(self, source: str | bytes, filename: str | None = None, stats: dict | None = None) -> MachineState:
        """Load the whole program, resolve loops once and run it to completion.

        Any state left from earlier use of this session is cleared first. With
        `separate_input`, text after the first `!` feeds the `,` instruction.
        """
        program = source.encode('utf-8') if isinstance(source, str) else bytes(source)
        self.reset()
        self.machine.receiving = True
        self.machine.input = self.input

        if self.params.separate_input:
            program, data = split_source(program)
            if data is not None:
                self.machine.input = io.BytesIO(data)

        self.buffer.append(program)
        self.loops = build_loops(self.buffer.view(), filename=filename)
        self.tracker = PositionTracker(self.buffer.view())
        return self.machine.run(self.buffer, self.loops, self.tracker, start=0, stats=stats)

    def run_file(self, path: str | Path, stats: dict | None = None) -> MachineState:
        try:
            source = Path(path).read_bytes()
        except OSError as exc:
            raise BfxResourceError(f"Cannot open file {path} for reading.", filename=str(path)) from exc
        return self.run(source, filename=str(path), stats=stats)

    # Interactive ─────────────────────────────────────────────────────────────────────────────
    def feed(self, line: str | bytes, filename: str = '<REPL>', stats: dict | None = None) -> bool:
        """Append one REPL line and execute only the newly added instructions.

        Returns False while the text is held back by an unmatched `[`. When the
        new text has an unmatched `]` it is dropped again and the error raised;
        the program, tape and pointers from earlier turns stay as they were.
        """
        text = line.encode('utf-8') if isinstance(line, str) else bytes(line)
        previous = len(self.buffer)
        self.buffer.append(text)

        try:
            loops = build_loops(self.buffer.view(), filename=filename)
        except BfxIncompleteParse:
            self.pending = True
            return False
        except BfxParseError:
            self.buffer.truncate(previous)
            raise

        self.pending = False
        self.loops = loops
        self.tracker = PositionTracker(self.buffer.view())
        self.machine.run(self.buffer, self.loops, self.tracker, stats=stats)
        return True

    def _drop_program(self) -> None:
        self.buffer.clear()
        self.loops = LoopTable()
        self.tracker = PositionTracker(b'')
        self.pending = False

    def reset(self) -> None:
        """Clear program, tape, loop table and pointers for a fresh start."""
        self.machine.clear()
        self._drop_program()

    def close(self) -> None:
        self.reset()
        self.machine.receiving = True
        self.machine.input = self.input
        self.machine.state = MachineState.HALTED
