# mypy: disable-error-code="attr-defined"
from __future__ import annotations

from arbinterop.common import InsufficientDataError, InvalidEncodingError
from arbinterop.main import Interop
from arbinterop.strategy import arb_sized


def decode_varint(data: bytes) -> tuple[int, int]:
    result = 0
    for i, b in enumerate(data[:10]):
        result |= (b & 0x7F) << (7 * i)
        if not b & 0x80:
            return result, i + 1
    if len(data) >= 10:
        raise InvalidEncodingError("Varint longer than 10 bytes")
    raise InsufficientDataError("Unterminated varint")


def encode_varint(value: int) -> bytes:
    result = bytearray()
    while True:
        b = value & 0x7F
        value >>= 7
        if not value:
            result.append(b)
            return bytes(result)
        result.append(b | 0x80)


def roundtrip(value: int) -> None:
    assert decode_varint(encode_varint(value)) == (value, len(encode_varint(value)))


check = Interop(arb_sized(decode_varint, 16), roundtrip)

if __name__ == "__main__":
    check()
