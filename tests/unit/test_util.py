import logging

import pytest

from arbinterop import util


def test_disable_logging(caplog: pytest.LogCaptureFixture) -> None:
    with caplog.at_level(logging.INFO):
        with util.disable_logging():
            logging.critical("hidden")
        logging.info("visible")
    assert caplog.record_tuples == [("root", logging.INFO, "visible")]


@pytest.mark.parametrize(
    ("title", "data", "expected"),
    [
        ("", b"", ""),
        (
            "some title",
            b"x",
            "some title\n00000000: 78                                               x",
        ),
        (
            "title:",
            b"0123456780123456",
            "title:\n00000000: 30 31 32 33 34 35 36 37 38 30 31 32 33 34 35 36  0123456780123456",
        ),
        (
            "title:",
            b"012345678012345678",
            "title:\n"
            "00000000: 30 31 32 33 34 35 36 37 38 30 31 32 33 34 35 36  0123456780123456\n"
            "00000010: 37 38                                            78",
        ),
    ],
)
def test_hexdump(title: str, data: bytes, expected: str) -> None:
    assert util.hexdump(title, data) == expected


def test_hexdump_limit() -> None:
    assert util.hexdump("t", b"\x00\x01\x02\x03", limit=2) == (
        f"t\n00000000: {'00 01':<48} ..\n... (2 more bytes)"
    )
