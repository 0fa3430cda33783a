from __future__ import annotations

import logging
import random

import pytest

from arbinterop import common, decoder, tree
from tests import utils


def test_generated() -> None:
    t = tree.ValueTree(utils.decode_record, b"\x0a\x05\x02\xff")
    assert t.state == tree.TreeState.GENERATED
    assert t.current() == (10, 5, 2)
    assert t.buffer == b"\x0a\x05\x02\xff"
    assert t.original == b"\x0a\x05\x02\xff"
    assert t.consumed == 3
    assert t.depth == 0
    assert repr(t) == "ValueTree((10, 5, 2), GENERATED)"


def test_invalid_buffer() -> None:
    with pytest.raises(common.InsufficientDataError):
        tree.ValueTree(utils.decode_record, b"\x0a\x05")


def test_simplify_consumed_prefix() -> None:
    t = tree.ValueTree(utils.decode_record, b"\x0a\x05\x02\xff\xff")
    assert t.simplify()
    assert t.state == tree.TreeState.SHRINKING
    assert t.buffer == b"\x0a\x05\x02"
    assert t.current() == (10, 5, 2)
    assert t.depth == 1


def test_simplify_skips_undecodable(caplog: pytest.LogCaptureFixture) -> None:
    t = tree.ValueTree(utils.decode_record, b"\x0a\x0a\x00")
    with caplog.at_level(logging.DEBUG):
        assert t.simplify()
    assert t.buffer == b"\x00\x00\x00"
    assert t.current() == (0, 0, 0)
    assert t.rejected == 2
    assert [r.levelno for r in caplog.records] == [logging.DEBUG, logging.DEBUG]
    assert "Skipping candidate of length 1: Need 3 bytes, got 1" in caplog.text


def test_complicate() -> None:
    t = tree.ValueTree(utils.decode_record, b"\x0a\x0a\x00")
    assert not t.complicate()
    assert t.simplify()
    assert t.current() == (0, 0, 0)
    assert t.complicate()
    assert t.current() == (10, 10, 0)
    assert t.buffer == b"\x0a\x0a\x00"
    assert t.state == tree.TreeState.SHRINKING
    assert not t.complicate()
    assert t.simplify()
    assert t.current() == (0, 10, 0)


def test_complicate_restores_previous_step() -> None:
    t = tree.ValueTree(utils.decode_record, b"\x0a\x0a\x00\x01")
    assert t.simplify()
    assert t.buffer == b"\x0a\x0a\x00"
    assert t.simplify()
    assert t.buffer == b"\x00\x00\x00"
    assert t.complicate()
    assert t.buffer == b"\x0a\x0a\x00"
    assert t.complicate()
    assert t.buffer == b"\x0a\x0a\x00\x01"
    assert not t.complicate()


def test_concluded() -> None:
    t = tree.ValueTree(utils.decode_record, b"\x00\x00\x00")
    assert not t.simplify()
    assert t.state == tree.TreeState.CONCLUDED
    assert not t.simplify()
    assert t.current() == (0, 0, 0)


def test_simplify_until_concluded() -> None:
    t = tree.ValueTree(utils.decode_list, b"\x03\x07\x08\x09")
    steps = 0
    while t.simplify():
        steps += 1
    assert t.state == tree.TreeState.CONCLUDED
    assert t.current() == []
    assert t.buffer == b"\x00"
    assert t.depth == steps


def test_current_consistent_with_buffer() -> None:
    rng = random.Random(3)
    for _ in range(50):
        buf = rng.randbytes(16)
        try:
            t = tree.ValueTree(utils.decode_list, buf)
        except common.DecodeError:
            continue
        for _ in range(100):
            if rng.random() < 0.7:
                t.simplify()
            else:
                t.complicate()
            assert (t.current(), t.consumed) == decoder.decode(utils.decode_list, t.buffer)
