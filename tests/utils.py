from __future__ import annotations

from typing import Callable, Generic, Optional, TypeVar

from arbinterop import common


def decode_record(data: bytes) -> tuple[tuple[int, int, int], int]:
    """Three single-byte fields."""
    if len(data) < 3:
        raise common.InsufficientDataError(f"Need 3 bytes, got {len(data)}")
    return (data[0], data[1], data[2]), 3


def decode_list(data: bytes) -> tuple[list[int], int]:
    """Length byte followed by that many single-byte elements."""
    if not data:
        raise common.InsufficientDataError("Missing length")
    length = data[0]
    if len(data) < length + 1:
        raise common.InsufficientDataError(f"Need {length + 1} bytes, got {len(data)}")
    return list(data[1 : length + 1]), length + 1


def decode_invalid(data: bytes) -> tuple[int, int]:
    raise common.InvalidEncodingError(f"Rejecting {len(data)} bytes")


def decode_borrowed(data: bytes) -> tuple[memoryview, int]:
    return memoryview(data)[:2], 2


def decode_aliased(data: bytes) -> tuple[list[bytes], int]:
    return [data], len(data)


def record_property(value: tuple[int, int, int]) -> None:
    assert value[1] == 0 or value[0] > value[1]


def failing(_: object) -> None:
    raise AssertionError("always fails")


def passing(_: object) -> None:
    pass


class CountingDecoder:
    def __init__(self, decoder: Callable[[bytes], tuple[object, int]]) -> None:
        self.decoder = decoder
        self.calls = 0

    def __call__(self, data: bytes) -> tuple[object, int]:
        self.calls += 1
        return self.decoder(data)


QueueType = TypeVar("QueueType")


class DummyQueue(Generic[QueueType]):
    def __init__(self, length: Optional[int] = None) -> None:
        self._data: list[QueueType] = []
        self.length = length

    def put(self, item: QueueType) -> None:
        self._data.append(item)

    def get(self) -> QueueType:
        result = self._data[0]
        self._data = self._data[1:]
        return result

    def empty(self) -> bool:
        return len(self._data) == 0


def test_dummy_queue() -> None:
    dq: DummyQueue[int] = DummyQueue()
    assert dq.empty()
    dq.put(1)
    assert not dq.empty()
    assert dq.get() == 1
    assert dq.empty()
