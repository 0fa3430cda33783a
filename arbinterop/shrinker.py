from __future__ import annotations

from enum import Enum
from typing import Iterator, Optional


class Phase(Enum):
    PREFIX = 1
    TRUNCATE = 2
    ZERO = 3
    LOWER = 4
    DONE = 5


def _widths(length: int) -> Iterator[int]:
    width = length
    while width > 0:
        yield width
        width //= 2


def _lowered(value: int) -> Iterator[int]:
    if not value:
        return
    seen = {0, value}
    shift = 1
    while value >> shift:
        candidate = value >> shift
        seen.add(candidate)
        yield candidate
        shift += 1
    if value - 1 not in seen:
        yield value - 1


class BufferShrinker:
    def __init__(self, buffer: bytes, consumed: Optional[int] = None) -> None:
        """
        Cursor over candidate buffers that are simpler than buffer.

        Candidates are proposed in order: the consumed prefix, binary-search
        truncation, zeroing of spans and lowering of single bytes. Each candidate
        is strictly smaller than buffer by (length, sum of bytes). Once exhausted,
        the cursor keeps returning None.

        Arguments:
        ---------
        buffer:   Buffer to simplify.
        consumed: Number of bytes the decoder consumed from buffer, if known.
        """
        self._buffer = bytes(buffer)
        self._consumed = consumed
        self._phase = Phase.PREFIX
        self._drop = (len(self._buffer) + 1) // 2
        self._widths = _widths(len(self._buffer))
        self._width = next(self._widths, 0)
        self._offset = 0
        self._position = 0
        self._values: Optional[Iterator[int]] = None
        self._proposed = 0

    @property
    def buffer(self) -> bytes:
        return self._buffer

    @property
    def proposed(self) -> int:
        return self._proposed

    @property
    def exhausted(self) -> bool:
        return self._phase == Phase.DONE

    def next_candidate(self) -> Optional[bytes]:
        while self._phase != Phase.DONE:
            candidate = self._step()
            if candidate is not None:
                self._proposed += 1
                return candidate
        return None

    def _step(self) -> Optional[bytes]:
        if self._phase == Phase.PREFIX:
            return self._prefix()
        if self._phase == Phase.TRUNCATE:
            return self._truncate()
        if self._phase == Phase.ZERO:
            return self._zero()
        if self._phase == Phase.LOWER:
            return self._lower()
        assert False, f"Unhandled phase: {self._phase}"

    def _prefix(self) -> Optional[bytes]:
        self._phase = Phase.TRUNCATE
        if self._consumed is not None and 0 <= self._consumed < len(self._buffer):
            return self._buffer[: self._consumed]
        return None

    def _truncate(self) -> Optional[bytes]:
        if self._drop < 1:
            self._phase = Phase.ZERO
            return None
        length = len(self._buffer) - self._drop
        self._drop //= 2
        # Already proposed by the prefix move
        if length == self._consumed:
            return None
        return self._buffer[:length]

    def _zero(self) -> Optional[bytes]:
        if self._width < 1:
            self._phase = Phase.LOWER
            return None
        if self._offset >= len(self._buffer):
            self._width = next(self._widths, 0)
            self._offset = 0
            return None

        start = self._offset
        end = min(start + self._width, len(self._buffer))
        self._offset += self._width

        if not any(self._buffer[start:end]):
            return None
        return self._buffer[:start] + bytes(end - start) + self._buffer[end:]

    def _lower(self) -> Optional[bytes]:
        if self._position >= len(self._buffer):
            self._phase = Phase.DONE
            return None

        if self._values is None:
            self._values = _lowered(self._buffer[self._position])

        value = next(self._values, None)
        if value is None:
            self._values = None
            self._position += 1
            return None

        return (
            self._buffer[: self._position]
            + bytes([value])
            + self._buffer[self._position + 1 :]
        )
