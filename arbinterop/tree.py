from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Generic

from arbinterop import common, decoder as dec
from arbinterop.shrinker import BufferShrinker


class TreeState(Enum):
    GENERATED = 1
    SHRINKING = 2
    CONCLUDED = 3


@dataclass
class Node(Generic[dec.Value]):
    buffer: bytes
    value: dec.Value
    consumed: int
    shrinker: BufferShrinker


class ValueTree(Generic[dec.Value]):
    def __init__(self, decoder: dec.Decoder[dec.Value], buffer: bytes) -> None:
        """
        Shrinkable value decoded from a byte buffer.

        Raises DecodeError if buffer cannot be decoded.

        Arguments:
        ---------
        decoder: Decoder used to derive values from buffers.
        buffer:  Initial buffer.
        """
        self._decoder = decoder
        self._original = bytes(buffer)
        value, consumed = dec.decode(decoder, self._original)
        self._node: Node[dec.Value] = Node(
            buffer=self._original,
            value=value,
            consumed=consumed,
            shrinker=BufferShrinker(self._original, consumed),
        )
        self._history: list[Node[dec.Value]] = []
        self._state = TreeState.GENERATED
        self._rejected = 0

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self._node.value!r}, {self._state.name})"

    @property
    def state(self) -> TreeState:
        return self._state

    @property
    def buffer(self) -> bytes:
        return self._node.buffer

    @property
    def original(self) -> bytes:
        return self._original

    @property
    def consumed(self) -> int:
        return self._node.consumed

    @property
    def depth(self) -> int:
        return len(self._history)

    @property
    def rejected(self) -> int:
        return self._rejected

    def current(self) -> dec.Value:
        return self._node.value

    def simplify(self) -> bool:
        shrinker = self._node.shrinker
        while True:
            candidate = shrinker.next_candidate()
            if candidate is None:
                self._state = TreeState.CONCLUDED
                return False

            try:
                value, consumed = dec.decode(self._decoder, candidate)
            except common.DecodeError as e:
                self._rejected += 1
                logging.debug("Skipping candidate of length %d: %s", len(candidate), e)
                continue

            self._history.append(self._node)
            self._node = Node(
                buffer=candidate,
                value=value,
                consumed=consumed,
                shrinker=BufferShrinker(candidate, consumed),
            )
            self._state = TreeState.SHRINKING
            return True

    def complicate(self) -> bool:
        if not self._history:
            return False

        self._node = self._history.pop()
        self._state = TreeState.SHRINKING
        return True
