from __future__ import annotations

from typing import Optional


class DecodeError(Exception):
    pass


class InsufficientDataError(DecodeError):
    pass


class InvalidEncodingError(DecodeError):
    pass


class GenerationExhaustedError(Exception):
    pass


class BorrowError(Exception):
    pass


class OutOfBoundsError(Exception):
    pass


class PropertyFailedError(AssertionError):
    def __init__(  # noqa: PLR0913
        self,
        message: str,
        value: object,
        buffer: bytes,
        original: bytes,
        steps: int = 0,
        cause: Optional[str] = None,
    ) -> None:
        super().__init__(message)
        self.value = value
        self.buffer = buffer
        self.original = original
        self.steps = steps
        self.cause = cause


class WorkerError(Exception):
    pass
