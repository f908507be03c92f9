## Copyright © 2025, Alex J. Champandard.  Licensed under AGPLv3; see LICENSE! ⚘
#
# bfx — An interpreter, REPL and C backend for the eight-instruction byte tape language.
#

import sys
import time
from pathlib import Path
from dataclasses import dataclass, replace

import click

from .types import EofPolicy, Parameters, DEFAULT_TAPE_SIZE, DEFAULT_COMPILER, DEFAULT_COMPILE_FLAGS
from .errors import BfxError, BfxParseError, BfxResourceError, BfxToolchainError, BfxInternalError
from .formatting import write_without_ansi, format_parse_error_context
from .runtime import Session
from .compiler import compile_program


@dataclass(frozen=True)
class RuntimeConfig:
    stats: bool
    plain: bool


class _TextInput:
    """Byte reader over the text stream that `input()` also consumes in the REPL.

    Program input is taken a whole line at a time, so nothing is left in the
    stream's own buffer for `input()` to miss. Whatever the program did not read
    by the end of a turn is dropped, and the next prompt starts on a fresh line.
    """

    def __init__(self, stream):
        self.stream = stream
        self.pending = b''

    def read(self, size: int = 1) -> bytes:
        while len(self.pending) < size:
            if not (line := self.stream.readline()): break
            self.pending += line.encode('utf-8')
        data, self.pending = self.pending[:size], self.pending[size:]
        return data

    def discard(self) -> None:
        self.pending = b''


class BfxRunner:
    def __init__(self, params: Parameters, config: RuntimeConfig):
        self.params = params
        self.stats_enabled = config.stats
        self.plain = config.plain

        if self.plain:
            sys.stdout.write = write_without_ansi(sys.stdout.write)
            sys.stderr.write = write_without_ansi(sys.stderr.write)

        self.total_stats = {'steps': 0, 'start': time.time()} if self.stats_enabled else None
        self.failure = False
        self.executed_items = 0

    def _maybe_fatal_error(self, message: str, detail: str, exc_type: str = None, context: str = '', is_repl: bool = False) -> None:
        header = detail if not exc_type else f"{detail} (Exception: \033[33m{exc_type}\033[0m)"
        print(f'\033[30;43m {message} \033[0m {header}\n{context}', file=sys.stderr)
        if not is_repl:
            self.failure = True
            sys.exit(1)

    def _handle_exception(self, exc: BfxError, filename: str, source: bytes | None = None, is_repl: bool = False) -> None:
        if isinstance(exc, BfxParseError):
            context = ''
            if source is not None or (filename and Path(filename).is_file()):
                context = format_parse_error_context(filename, exc.line, exc.column, exc.token, source=source)
            context += f"\n\033[90m{str(exc)}\033[0m\n"
            self._maybe_fatal_error("SYNTAX ERROR.", f"Parsing `\033[97m{filename}\033[0m` caused a problem!", type(exc).__name__, context, is_repl)
        elif isinstance(exc, BfxResourceError):
            self._maybe_fatal_error("RESOURCE ERROR.", str(exc), type(exc).__name__, '', is_repl)
        elif isinstance(exc, BfxToolchainError):
            command = ' '.join(exc.command or ())
            context = f"\033[90m  $ {command}\033[0m\n{exc.stderr or ''}"
            self._maybe_fatal_error("COMPILER ERROR.", str(exc), type(exc).__name__, context, is_repl)
        elif isinstance(exc, BfxInternalError):
            self._maybe_fatal_error("INTERNAL ERROR.", str(exc), type(exc).__name__, '', is_repl)
        else:
            self._maybe_fatal_error("ERROR.", str(exc), type(exc).__name__, '', is_repl)

    def _session(self, **kwargs) -> Session:
        return Session(self.params, output=sys.stdout.buffer, diagnostics=sys.stderr, **kwargs)

    def run_file(self, path: str) -> None:
        filename, source = (path, None) if path != '-' else ('<STDIN>', sys.stdin.buffer.read())
        with self._session() as session:
            try:
                if source is None:
                    session.run_file(path, stats=self.total_stats)
                else:
                    session.run(source, filename=filename, stats=self.total_stats)
            except BfxError as exc:
                self._handle_exception(exc, filename, source)
            else:
                self.executed_items += 1

    def compile(self, path: str | None, output: str | None, binary: bool) -> None:
        try:
            compile_program(path, output, self.params, binary=binary)
        except BfxError as exc:
            self._handle_exception(exc, path or '<STDIN>')
        else:
            self.executed_items += 1

    def repl(self) -> None:
        if sys.platform != "win32": import readline

        print('bfx - Byte tape REPL; type Ctrl+D to exit.')
        program_input = _TextInput(sys.stdin)
        with self._session(input=program_input) as session:
            while True:
                try:
                    prompt = "\033[36m... \033[0m" if session.pending else "\033[36m<<< \033[0m"
                    line = input(prompt)
                    if len(line.strip()) == 0: continue
                    if line.strip() in ('quit', 'exit'): break

                    sys.stdout.flush()
                    try:
                        if session.feed(line + '\n', stats=self.total_stats):
                            self.executed_items += 1
                    except BfxError as exc:
                        self._handle_exception(exc, '<REPL>', session.source + (line + '\n').encode('utf-8'), is_repl=True)
                    program_input.discard()
                    sys.stdout.buffer.flush()

                except (KeyboardInterrupt, EOFError):
                    print(""); break

    def finalize(self) -> int:
        if self.total_stats and self.executed_items > 0:
            elapsed_time = time.time() - self.total_stats['start']
            print(f"\n\033[97m\033[48;5;30m STATISTICS. \033[0m", file=sys.stderr)
            print(f"step\t\033[97m{self.total_stats['steps']:,}\033[0m", file=sys.stderr)
            print(f"time\t\033[97m{elapsed_time:.3f}s\033[0m", file=sys.stderr)
        return 1 if self.failure else 0


@click.command(context_settings={'help_option_names': ['-h', '--help']})
@click.argument('file', required=False)
@click.option('--repl', '-r', is_flag=True, help='Start an interactive session; state persists between lines.')
@click.option('--compile', '-c', 'compile_binary', is_flag=True, help='Compile FILE into a native executable (default ./a.out).')
@click.option('--compile-c', '-C', 'compile_c', is_flag=True, help='Translate FILE into C source (default ./a.out.c).')
@click.option('--output', '-o', default=None, help='Output path for the compilation modes.')
@click.option('--tape-size', '-t', type=click.IntRange(min=1), default=DEFAULT_TAPE_SIZE, show_default=True, help='Number of cells on the tape.')
@click.option('--debug', '-d', is_flag=True, help='Make `#` print position, pointers and a memory dump.')
@click.option('--no-extended', '-s', is_flag=True, help='Disable the `#` and `@` instructions.')
@click.option('--eof', '-e', type=click.Choice([p.value for p in EofPolicy]), default=EofPolicy.ZERO.value, show_default=True, help='What `,` stores once input is exhausted.')
@click.option('--separate-input', '-x', is_flag=True, help='Text after the first `!` in FILE is used as program input.')
@click.option('--compiler', default=DEFAULT_COMPILER, show_default=True, help='External C compiler for --compile.')
@click.option('--compile-flags', default=DEFAULT_COMPILE_FLAGS, show_default=True, help='Flags passed to the external compiler.')
@click.option('--stats', is_flag=True, help='Display execution statistics (e.g., number of steps).')
@click.option('--plain', '-p', is_flag=True, help='Strip ANSI color codes from diagnostics.')
@click.pass_context
def cli(ctx: click.Context, file: str | None, repl: bool, compile_binary: bool, compile_c: bool, output: str | None,
        tape_size: int, debug: bool, no_extended: bool, eof: str, separate_input: bool,
        compiler: str, compile_flags: str, stats: bool, plain: bool) -> None:
    if compile_binary and compile_c:
        raise click.UsageError("Options --compile and --compile-c are mutually exclusive.")
    if repl and (file is not None or compile_binary or compile_c):
        raise click.UsageError("REPL mode takes no FILE and cannot be combined with compilation.")

    params = Parameters(tape_size=tape_size, eof_policy=EofPolicy.parse(eof), debug=debug, repl=repl,
                        extended=not no_extended, separate_input=separate_input,
                        compiler=compiler, compile_flags=compile_flags)

    if compile_binary or compile_c:
        runner = BfxRunner(params, RuntimeConfig(stats=False, plain=plain))
        runner.compile(file, output, binary=compile_binary)
        ctx.exit(runner.finalize())

    # No file: piped standard input is a program, a terminal gets the REPL.
    if not repl and file is None and sys.stdin.isatty():
        repl = True
        params = replace(params, repl=True)

    runner = BfxRunner(params, RuntimeConfig(stats=stats, plain=plain))
    if repl:
        runner.repl()
    else:
        runner.run_file(file or '-')
    ctx.exit(runner.finalize())


def main(argv: list[str] | None = None) -> None:
    cli.main(args=argv, prog_name='bfx')


if __name__ == "__main__":
    main()
