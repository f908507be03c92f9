## bfx — Copyright © 2025, Alex J. Champandard.  Licensed under AGPLv3; see LICENSE! ⚘

import random

import pytest

from bfx.parser import PositionTracker, build_loops, position_of, split_source
from bfx.errors import BfxParseError, BfxIncompleteParse, BfxUnmatchedLoop


def _random_program(rng: random.Random, size: int) -> str:
    """Helper: a well-bracketed program with noise characters mixed in."""
    out, depth = [], 0
    for _ in range(size):
        c = rng.choice('+-<>.,[]\n x')
        if c == ']' and depth == 0: c = '['
        depth += {'[': 1, ']': -1}.get(c, 0)
        out.append(c)
    return ''.join(out) + ']' * depth


def test_nested_loops_pair_both_ways():
    loops = build_loops("[[]]")
    assert loops.forward == {0: 3, 1: 2}
    assert loops.backward == {3: 0, 2: 1}
    assert len(loops) == 2


def test_loop_positions_carry_line_and_column():
    loops = build_loops("+\n[ ]")
    [loop] = list(loops)
    assert (loop.start.offset, loop.start.line, loop.start.column) == (2, 2, 1)
    assert (loop.end.offset, loop.end.line, loop.end.column) == (4, 2, 3)


def test_unmatched_close_reports_its_position():
    with pytest.raises(BfxUnmatchedLoop) as info:
        build_loops("+[]\n+]", filename="<test>")
    assert (info.value.line, info.value.column) == (2, 2)
    assert info.value.token == ']'
    assert info.value.filename == "<test>"
    assert "Unmatched closing bracket" in str(info.value)


def test_first_unmatched_close_wins():
    with pytest.raises(BfxUnmatchedLoop) as info:
        build_loops("]]")
    assert info.value.column == 1


def test_unmatched_open_reports_end_of_scan():
    with pytest.raises(BfxIncompleteParse) as info:
        build_loops("[\n++")
    assert (info.value.line, info.value.column) == (2, 2)
    assert "Unmatched opening bracket" in str(info.value)

    with pytest.raises(BfxIncompleteParse) as info:
        build_loops("[+\n")
    assert (info.value.line, info.value.column) == (2, 0)


def test_parse_errors_share_base_class():
    for source in ("]", "["):
        with pytest.raises(BfxParseError):
            build_loops(source)


def test_deep_nesting_has_no_ceiling():
    depth = 5000
    loops = build_loops("[" * depth + "]" * depth)
    assert len(loops) == depth
    assert loops.forward[0] == 2 * depth - 1


def test_loops_cover_every_bracket_and_never_cross():
    rng = random.Random(1234)
    for _ in range(50):
        source = _random_program(rng, rng.randint(0, 200))
        loops = build_loops(source)
        opens = {i for i, c in enumerate(source) if c == '['}
        closes = {i for i, c in enumerate(source) if c == ']'}
        assert set(loops.forward) == opens
        assert set(loops.backward) == closes
        for a, b in loops.forward.items():
            assert a < b
            for c, d in loops.forward.items():
                # Either disjoint or properly nested.
                assert b < c or d < a or (a <= c and d <= b) or (c <= a and b <= d)


def test_accepts_bytes_and_text():
    assert build_loops(b"[]").forward == build_loops("[]").forward


def test_position_tracker_lines_and_columns():
    tracker = PositionTracker("ab\ncd\n")
    assert tuple(tracker.position(0)) == (0, 1, 1)
    assert tuple(tracker.position(2)) == (2, 1, 3)  # the newline ends line 1
    assert tuple(tracker.position(3)) == (3, 2, 1)
    assert tuple(tracker.end()) == (6, 3, 0)
    assert tuple(PositionTracker("").end()) == (0, 1, 0)
    assert position_of("x\ny", 2).line == 2


def test_split_source_at_first_separator():
    assert split_source(",.!ab!c") == (b",.", b"ab!c")
    assert split_source(b"+.") == (b"+.", None)
    assert split_source("!") == (b"", b"")
