from __future__ import annotations

from typing import Any

from orchestra.exceptions.base import OrchestraError


class EncodingError(OrchestraError):
    """Base exception for failures at the wire-encoding boundary.

    These never affect the run loop; they are raised by the encoder while it
    consumes the event sequence.
    """


class UnrecognizedChunkError(EncodingError):
    """Raised when a stream chunk is outside the encoder's known catalogue.

    Attributes:
        chunk_type: The ``type`` field of the chunk, if it had one.
        chunk: The offending chunk.
    """

    def __init__(
        self, chunk_type: str | None, chunk: Any = None, reason: str | None = None
    ) -> None:
        self.chunk_type = chunk_type
        self.chunk = chunk
        message = f"Unknown chunk type: {chunk_type!r}"
        if reason:
            message += f" ({reason})"
        super().__init__(message)
