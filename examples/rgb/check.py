# mypy: disable-error-code="attr-defined"
from __future__ import annotations

from dataclasses import dataclass

from arbinterop.common import InsufficientDataError
from arbinterop.main import Interop
from arbinterop.strategy import arb


@dataclass(frozen=True)
class Rgb:
    r: int
    g: int
    b: int


def decode_rgb(data: bytes) -> tuple[Rgb, int]:
    if len(data) < 3:
        raise InsufficientDataError(f"Need 3 bytes, got {len(data)}")
    return Rgb(r=data[0], g=data[1], b=data[2]), 3


def always_red(color: Rgb) -> None:
    assert color.g == 0 or color.r > color.g


check = Interop(arb(decode_rgb), always_red)

if __name__ == "__main__":
    check()
