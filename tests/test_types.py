## bfx — Copyright © 2025, Alex J. Champandard.  Licensed under AGPLv3; see LICENSE! ⚘

import pytest

from bfx.types import EofPolicy, LoopTable, Parameters, Position, SourceBuffer


def test_source_buffer_grows_by_doubling():
    buf = SourceBuffer(4)
    assert buf.append(b"+++") == 0
    assert buf.capacity == 4
    assert buf.append(b"--") == 3
    assert buf.capacity == 8
    assert buf.append(b"x" * 20) == 5
    assert buf.capacity == 32
    assert len(buf) == 25 <= buf.capacity
    assert buf.view() == b"+++--" + b"x" * 20


def test_source_buffer_indexing_stops_at_logical_length():
    buf = SourceBuffer(16)
    buf.append(b"+-")
    assert buf[0] == ord('+')
    assert buf[-1] == ord('-')
    assert buf[0:5] == b"+-"
    with pytest.raises(IndexError):
        buf[2]


def test_source_buffer_truncate_and_clear():
    buf = SourceBuffer(2)
    buf.append(b"abcdef")
    buf.truncate(2)
    assert buf.view() == b"ab"
    buf.append(b"z")
    assert buf.view() == b"abz"
    buf.clear()
    assert len(buf) == 0 and buf.view() == b""
    with pytest.raises(ValueError):
        buf.truncate(1)


def test_eof_policy_parse():
    assert EofPolicy.parse("zero") is EofPolicy.ZERO
    assert EofPolicy.parse(" Decrement ") is EofPolicy.DECREMENT
    assert EofPolicy.parse("unchanged") is EofPolicy.UNCHANGED
    with pytest.raises(ValueError, match="expected one of"):
        EofPolicy.parse("minus-one")


def test_parameters_defaults_and_validation():
    params = Parameters()
    assert params.tape_size == 30000
    assert params.input_max == 1024
    assert params.eof_policy is EofPolicy.ZERO
    assert params.extended and not params.debug and not params.repl
    with pytest.raises(ValueError):
        Parameters(tape_size=0)
    with pytest.raises(ValueError):
        Parameters(input_max=-1)


def test_loop_table_add_and_clear():
    table = LoopTable()
    table.add(Position(0, 1, 1), Position(5, 1, 6))
    assert table.forward == {0: 5} and table.backward == {5: 0}
    assert str(list(table)[0].end) == "(1,6)"
    table.clear()
    assert len(table) == 0 and not table.forward and not table.backward
