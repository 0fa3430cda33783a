from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Iterator


@contextmanager
def disable_logging() -> Iterator[None]:
    previous_level = logging.root.manager.disable
    logging.disable(logging.CRITICAL)

    try:
        yield
    finally:
        logging.disable(previous_level)


def hexdump(title: str, data: bytes, limit: int = 256) -> str:
    """
    Render buffer as hex and printable characters, 16 bytes per line.

    Arguments:
    ---------
    title: First line of output.
    data: Buffer to render.
    limit: Maximum number of bytes to render, remaining bytes are summarized.
    """
    length = 16
    result = [title]
    for i in range(0, min(len(data), limit), length):
        chunk = data[i : min(i + length, limit)]
        hex_chunk = " ".join(f"{b:02x}" for b in chunk)
        ascii_chunk = "".join(chr(b) if 32 <= b < 127 else "." for b in chunk)
        result.append(f"{i:08x}: {hex_chunk:<{length*3}} {ascii_chunk}")
    if len(data) > limit:
        result.append(f"... ({len(data) - limit} more bytes)")
    return "\n".join(result)
