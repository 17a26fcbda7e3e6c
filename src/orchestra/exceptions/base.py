from __future__ import annotations


class OrchestraError(Exception):
    """Base exception class for all Orchestra-specific errors.

    Errors raised by handlers are never wrapped in this hierarchy; they
    propagate out of the event sequence unchanged. Catching ``OrchestraError``
    therefore only catches failures of the engine itself.

    Attributes:
        message: Human-readable error message describing what went wrong.

    Example:
        ```python
        try:
            async for event in run:
                ...
        except OrchestraError as e:
            logger.error("run_failed", error=e.message)
        ```
    """

    def __init__(self, message: str) -> None:
        """Initialize the OrchestraError.

        Args:
            message: Human-readable error message.
        """
        self.message = message
        super().__init__(message)
