from __future__ import annotations

import random
from typing import Callable, Optional

from arbinterop import common


class RandomByteSource:
    def __init__(
        self,
        length: Optional[Callable[[int], int]] = None,
        max_size: int = 1 << 20,
    ) -> None:
        """
        Produce uniformly random buffers.

        Arguments:
        ---------
        length:   Map size hint to number of bytes to generate (default: identity).
        max_size: Upper bound for the number of generated bytes.
        """
        if max_size < 0:
            raise common.OutOfBoundsError(f"Negative maximum size ({max_size=})")
        self._length = length or (lambda size: size)
        self._max_size = max_size

    def length(self, size_hint: int) -> int:
        if size_hint < 0:
            raise common.OutOfBoundsError(f"Negative size hint ({size_hint=})")
        return max(0, min(self._length(size_hint), self._max_size))

    def generate(self, size_hint: int, rng: random.Random) -> bytes:
        return rng.randbytes(self.length(size_hint))
