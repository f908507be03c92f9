## Copyright © 2025, Alex J. Champandard.  Licensed under AGPLv3; see LICENSE! ⚘

import re

from .types import Position


def write_without_ansi(write_fn):
    """Wrapper function that strips ANSI codes before calling the original writer."""
    ansi_re = re.compile(r'\033\[[0-9;]*m')
    return lambda text: write_fn(ansi_re.sub('', text))


def format_warning(pos: Position, message: str) -> str:
    return f"\033[33mWarning ({pos.line},{pos.column}):\033[0m {message}"


def format_dump(pos: Position, dp: int, ip: int, tape, dp_max: int) -> str:
    lines = [f"Line: {pos.line},{pos.column}",
             f"Tape pointer: {dp}",
             f"Instruction pointer: {ip}",
             "Memory map:"]
    lines += [f"{i}: {tape[i]}" for i in range(min(dp_max + 1, len(tape)))]
    return '\n'.join(lines)


def format_parse_error_context(filename, line, column, token_value, source=None):
    if isinstance(source, (bytes, bytearray)):
        source = bytes(source).decode('utf-8', errors='replace')
    lines = source.splitlines(keepends=True) if source else open(filename, 'r').readlines()
    start_line, end_line = max(0, line - 3), min(len(lines), line + 2)
    result = [f"\033[97m  File \"{filename}\", line {line}, column {column}\033[0m"]

    for i in range(start_line, end_line):
        line_content = lines[i].rstrip('\n')
        line_color = '\033[90m'
        if i+1 == line:
            line_color = '\033[97m'
            if column > 0 and column <= len(line_content):
                line_content = (
                    line_content[:column-1] +
                    f"\033[48;5;30m\033[1;97m{line_content[column-1:column+len(token_value)-1]}\033[0m" +
                    line_content[column+len(token_value)-1:]
                )
        result.append(f"{line_color}{i+1:>5} |\033[0m {line_content}")
    return '\n' + '\n'.join(result) + '\n'
