## Copyright © 2025, Alex J. Champandard.  Licensed under AGPLv3; see LICENSE! ⚘

import sys

from .types import Instruction, EofPolicy, LoopTable, MachineState, Parameters, SourceBuffer
from .errors import BfxInternalError
from .parser import PositionTracker
from .formatting import format_warning, format_dump


class Machine:
    """Byte tape, data pointer and instruction pointer, stepped one instruction at a time."""

    def __init__(self, params: Parameters, output=None, input=None, diagnostics=None):
        self.params = params
        self.output = output if output is not None else sys.stdout.buffer
        self.input = input
        self.diagnostics = diagnostics if diagnostics is not None else sys.stderr

        self.tape = bytearray(params.tape_size)
        self.ip = 0
        self.dp = 0
        self.dp_max = 0
        self.receiving = True
        self.state = MachineState.RUNNING
        self.on_reset = None

    def warn(self, tracker: PositionTracker, message: str) -> None:
        print(format_warning(tracker.position(self.ip), message), file=self.diagnostics)

    def _read_byte(self) -> int | None:
        if self.input is None: return None
        self.output.flush()
        self.state = MachineState.AWAITING_INPUT
        data = self.input.read(1)
        self.state = MachineState.RUNNING
        return data[0] if data else None

    def _jump(self, table: dict[int, int]) -> None:
        if (target := table.get(self.ip)) is None:
            self.state = MachineState.FAULTED
            raise BfxInternalError(f"No matching bracket recorded for offset {self.ip}.", bfx_pos=self.ip)
        self.ip = target

    def clear(self) -> None:
        self.tape[:] = bytes(len(self.tape))
        self.ip, self.dp, self.dp_max = 0, 0, 0

    def step(self, source: SourceBuffer | bytes, loops: LoopTable, tracker: PositionTracker) -> None:
        tape, params = self.tape, self.params

        match source[self.ip]:
            case Instruction.INC_CELL:
                tape[self.dp] = (tape[self.dp] + 1) & 0xFF
            case Instruction.DEC_CELL:
                tape[self.dp] = (tape[self.dp] - 1) & 0xFF
            case Instruction.NEXT_CELL:
                self.dp += 1
                if self.dp >= params.tape_size:
                    self.warn(tracker, "Tape pointer overflow. Tape pointer set to zero.")
                    self.dp = 0
                elif self.dp > self.dp_max:
                    self.dp_max = self.dp
            case Instruction.PREV_CELL:
                self.dp -= 1
                if self.dp < 0:
                    self.warn(tracker, "Tape pointer underflow. Tape pointer set to zero.")
                    self.dp = 0
            case Instruction.READ:
                value = self._read_byte() if self.receiving else None
                if value is not None:
                    tape[self.dp] = value
                else:
                    self.receiving = False
                    match params.eof_policy:
                        case EofPolicy.ZERO: tape[self.dp] = 0
                        case EofPolicy.DECREMENT: tape[self.dp] = (tape[self.dp] - 1) & 0xFF
                        case EofPolicy.UNCHANGED: pass
            case Instruction.WRITE:
                self.output.write(bytes((tape[self.dp],)))
            case Instruction.LOOP_OPEN:
                if not tape[self.dp]: self._jump(loops.forward)
            case Instruction.LOOP_CLOSE:
                if tape[self.dp]: self._jump(loops.backward)
            case Instruction.DUMP:
                if params.debug and params.extended:
                    dump = format_dump(tracker.position(self.ip), self.dp, self.ip, tape, self.dp_max)
                    print(dump, file=self.diagnostics)
            case Instruction.RESET:
                if params.repl and params.extended:
                    # Session drops its source and loops too; nothing further runs this turn.
                    self.clear()
                    if self.on_reset is not None: self.on_reset()
                    self.state = MachineState.HALTED
                    return

        self.ip += 1

    def run(self, source: SourceBuffer | bytes, loops: LoopTable, tracker: PositionTracker | None = None,
            start: int | None = None, stats: dict | None = None) -> MachineState:
        """Step from `start` (or the current pointer) until the end of source or a halt."""
        program = source.view() if isinstance(source, SourceBuffer) else bytes(source)
        tracker = tracker or PositionTracker(program)
        if start is not None: self.ip = start

        self.state, steps = MachineState.RUNNING, 0
        while self.ip < len(program) and self.state is MachineState.RUNNING:
            self.step(program, loops, tracker)
            steps += 1

        if self.state is MachineState.RUNNING:
            self.state = MachineState.HALTED
        self.output.flush()
        if stats is not None:
            stats['steps'] = stats.get('steps', 0) + steps
        return self.state
