from __future__ import annotations

import copy
import struct
from typing import Callable, Tuple, TypeVar, Union

from arbinterop import common

Value = TypeVar("Value")

Decoder = Callable[[bytes], Tuple[Value, int]]

_MISSING = object()


def decode(decoder: Decoder[Value], data: Union[bytes, bytearray]) -> tuple[Value, int]:
    """
    Decode value from buffer and validate the consumed length.

    Running past the end of the buffer (IndexError, struct.error) is reported as
    InsufficientDataError. A consumed length outside of the buffer is reported as
    InvalidEncodingError.
    """
    return _run(decoder, bytes(data))


def check_owned(decoder: Decoder[Value], data: Union[bytes, bytearray]) -> Value:
    """
    Decode value and make sure it does not depend on the memory of its buffer.

    The value is decoded from a mutable copy of data which is poisoned afterwards.
    Raise BorrowError if the value references the buffer or a memoryview, or if
    its representation or its equality to a deep copy taken before poisoning changes.
    Decode errors are reported as by decode().

    Arguments:
    ---------
    decoder: Decoder to check.
    data: Buffer to decode value from.
    """
    buf = bytearray(data)
    value, _ = _run(decoder, buf)

    if _references(value, buf):
        raise common.BorrowError(f"Value references buffer memory ({value!r})")

    snapshot = copy.deepcopy(value)
    try:
        comparable = bool(snapshot == value)
    except RecursionError:
        # Self-referential values are checked by repr only
        comparable = False
    before = repr(value)

    for i in range(len(buf)):
        buf[i] ^= 0xFF

    after = repr(value)
    if before != after:
        raise common.BorrowError(f"Value changed after poisoning buffer ({before} != {after})")
    if comparable and not snapshot == value:
        raise common.BorrowError(f"Value differs from its copy after poisoning buffer ({after})")
    return value


def _run(decoder: Decoder[Value], buf: Union[bytes, bytearray]) -> tuple[Value, int]:
    try:
        value, consumed = decoder(buf)  # type: ignore[arg-type]
    except (IndexError, struct.error) as e:
        raise common.InsufficientDataError(str(e)) from e

    if isinstance(consumed, bool) or not isinstance(consumed, int):
        raise common.InvalidEncodingError(f"Invalid consumed length ({consumed!r})")
    if consumed < 0 or consumed > len(buf):
        raise common.InvalidEncodingError(
            f"Consumed length out of range ({consumed=}, length={len(buf)})",
        )
    return value, consumed


def _references(value: object, buf: bytearray) -> bool:
    seen: set[int] = set()
    stack = [value]

    while stack:
        v = stack.pop()
        if v is buf or isinstance(v, memoryview):
            return True
        if id(v) in seen or isinstance(v, (str, bytes, bytearray, int, float, complex)):
            continue
        seen.add(id(v))

        if isinstance(v, dict):
            stack.extend(v.keys())
            stack.extend(v.values())
        elif isinstance(v, (list, tuple, set, frozenset)):
            stack.extend(v)
        stack.extend(_attributes(v))

    return False


def _attributes(value: object) -> list[object]:
    result = list(vars(value).values()) if hasattr(value, "__dict__") else []

    for cls in type(value).__mro__:
        slots = cls.__dict__.get("__slots__", ())
        for name in (slots,) if isinstance(slots, str) else slots:
            if name in ("__dict__", "__weakref__"):
                continue
            if name.startswith("__") and not name.endswith("__"):
                name = f"_{cls.__name__.lstrip('_')}{name}"  # noqa: PLW2901
            attr = getattr(value, name, _MISSING)
            if attr is not _MISSING:
                result.append(attr)

    return result
