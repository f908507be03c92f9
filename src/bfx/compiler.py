## bfx — Copyright © 2025, Alex J. Champandard.  Licensed under AGPLv3; see LICENSE! ⚘
#
# Native backend: transliterates programs into C and optionally builds them.
#

import os
import sys
import shlex
import tempfile
import subprocess
from pathlib import Path

from .types import Parameters
from .errors import BfxParseError, BfxIncompleteParse, BfxUnmatchedLoop, BfxResourceError, BfxToolchainError


PROLOGUE = "#include <stdio.h>\nint main(void) {unsigned char t[%d]={0};int p=0;"
EPILOGUE = "return 0;}"

TOKENS = {
    '>': "p++;",
    '<': "p--;",
    '+': "t[p]++;",
    '-': "t[p]--;",
    '.': "putchar(t[p]);",
    ',': "t[p]=getchar();",
    '[': "while(t[p]){",
    ']': "}",
}


def transpile(stream, tape_size: int, filename: str | None = None):
    """Yield C text for the program read one character at a time from `stream`.

    Columns count bytes, as `build_loops` does, whether the stream is text or binary.
    """
    yield PROLOGUE % tape_size

    depth, line, column = 0, 1, 0
    while c := stream.read(1):
        if isinstance(c, bytes):
            c, width = c.decode('latin-1'), 1
        else:
            width = len(c.encode('utf-8', errors='replace'))
        column += width
        if c == '\n':
            line, column = line + 1, 0
            continue
        if (snippet := TOKENS.get(c)) is None: continue
        if c == '[':
            depth += 1
        elif c == ']':
            depth -= 1
            if depth < 0:
                raise BfxUnmatchedLoop(f"Error ({line},{column}): Unmatched closing bracket ']'.",
                                       filename=filename, line=line, column=column, token=']')
        yield snippet

    if depth != 0:
        raise BfxIncompleteParse(f"Error ({line},{column}): Unbalanced brackets, {depth} left open.",
                                 filename=filename, line=line, column=column, token='[')
    yield EPILOGUE


def write_c_source(stream, output_path: str | Path, params: Parameters, filename: str | None = None) -> Path:
    output_path = Path(output_path)
    try:
        output = open(output_path, 'w', encoding='utf-8')
    except OSError as exc:
        raise BfxResourceError(f"Failed to open output file {output_path}.", filename=str(output_path)) from exc

    try:
        with output:
            for chunk in transpile(stream, params.tape_size, filename=filename):
                output.write(chunk)
    except BfxParseError:
        output_path.unlink(missing_ok=True)
        raise
    except OSError as exc:
        output_path.unlink(missing_ok=True)
        raise BfxResourceError(f"Failed to write output file {output_path}: {exc}", filename=str(output_path)) from exc
    return output_path


def build_command(params: Parameters, source_path: str, output_path: str) -> list[str]:
    return shlex.split(params.command.format(
        compiler=params.compiler, flags=params.compile_flags,
        output=shlex.quote(str(output_path)), input=shlex.quote(str(source_path))))


def compile_binary(stream, output_path: str | Path, params: Parameters, filename: str | None = None) -> Path:
    """Generate C, hand it to the external compiler, and always remove the temporary file."""
    # Fully generated before any file exists, so bad nesting leaves nothing behind.
    text = ''.join(transpile(stream, params.tape_size, filename=filename))

    with tempfile.NamedTemporaryFile('w', suffix='.c', prefix='bfx-', delete=False, encoding='utf-8') as f:
        f.write(text)
        source_path = f.name

    command = None
    try:
        command = build_command(params, source_path, output_path)
        result = subprocess.run(command, capture_output=True, text=True)
    except (KeyError, IndexError, ValueError) as exc:
        raise BfxToolchainError(f"Invalid compiler command `{params.command}` with flags `{params.compile_flags}`: {exc}",
                                command=command) from exc
    except OSError as exc:
        raise BfxToolchainError(f"Failed to run compiler `{command[0]}`: {exc}", command=command) from exc
    finally:
        os.remove(source_path)

    if result.returncode != 0:
        raise BfxToolchainError(f"Failed to compile program (exit status {result.returncode}).",
                                command=command, returncode=result.returncode, stderr=result.stderr)
    return Path(output_path)


def compile_program(input_path: str | Path | None, output_path: str | Path | None,
                    params: Parameters, binary: bool = True) -> Path:
    """Compile a source file, or standard input when no path is given."""
    if output_path is None:
        output_path = './a.out' if binary else './a.out.c'
    build = compile_binary if binary else write_c_source

    if input_path is None or str(input_path) == '-':
        return build(sys.stdin.buffer, output_path, params, filename='<STDIN>')
    try:
        stream = open(input_path, 'rb')
    except OSError as exc:
        raise BfxResourceError(f"Failed to open input file {input_path}.", filename=str(input_path)) from exc
    with stream:
        return build(stream, output_path, params, filename=str(input_path))
