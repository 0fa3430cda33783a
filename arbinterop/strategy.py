from __future__ import annotations

import logging
import random
from dataclasses import dataclass, field
from typing import Generic, Optional

from arbinterop import common, decoder as dec, tree
from arbinterop.source import RandomByteSource

DEFAULT_SIZE = 256


@dataclass
class Config:
    cases: int = 256
    size: Optional[int] = None
    max_retries: int = 64
    max_shrink_iters: int = 4096
    seed: Optional[int] = None
    rng: random.Random = field(default_factory=random.Random, repr=False, compare=False)

    def __post_init__(self) -> None:
        if self.seed is not None:
            self.rng.seed(self.seed)


class ArbStrategy(Generic[dec.Value]):
    def __init__(
        self,
        decoder: dec.Decoder[dec.Value],
        size: int = DEFAULT_SIZE,
        source: Optional[RandomByteSource] = None,
    ) -> None:
        """
        Strategy generating values by decoding random buffers.

        Arguments:
        ---------
        decoder: Deterministic function turning a buffer into (value, consumed length).
                 Values must not reference the buffer they were decoded from.
        size:    Size hint used when the configuration does not provide one.
        source:  Source of random buffers (default: RandomByteSource()).
        """
        if size < 0:
            raise common.OutOfBoundsError(f"Negative size ({size=})")
        self._decoder = decoder
        self._size = size
        self._source = source or RandomByteSource()

    def __repr__(self) -> str:
        name = getattr(self._decoder, "__qualname__", repr(self._decoder))
        return f"{self.__class__.__name__}({name}, size={self._size})"

    @property
    def decoder(self) -> dec.Decoder[dec.Value]:
        return self._decoder

    @property
    def size(self) -> int:
        return self._size

    def new_tree(self, config: Config) -> tree.ValueTree[dec.Value]:
        if config.max_retries < 1:
            raise common.OutOfBoundsError(
                f"Retry ceiling must be positive (max_retries={config.max_retries})",
            )

        size = config.size if config.size is not None else self._size
        error: Optional[common.DecodeError] = None

        for attempt in range(1, config.max_retries + 1):
            buffer = self._source.generate(size, config.rng)
            try:
                return tree.ValueTree(self._decoder, buffer)
            except common.DecodeError as e:
                error = e
                logging.debug(
                    "Rejected buffer (attempt %d/%d): %s: %s",
                    attempt,
                    config.max_retries,
                    e.__class__.__name__,
                    e,
                )

        raise common.GenerationExhaustedError(
            f"No value generated after {config.max_retries} attempts "
            f"(size={size}, last error: {error.__class__.__name__}: {error})",
        ) from error

    def tree_from(self, buffer: bytes) -> tree.ValueTree[dec.Value]:
        """Build tree from a known buffer, e.g. a stored failure."""
        return tree.ValueTree(self._decoder, buffer)


def arb_sized(decoder: dec.Decoder[dec.Value], size: int) -> ArbStrategy[dec.Value]:
    return ArbStrategy(decoder, size=size)


def arb(decoder: dec.Decoder[dec.Value]) -> ArbStrategy[dec.Value]:
    return arb_sized(decoder, DEFAULT_SIZE)
