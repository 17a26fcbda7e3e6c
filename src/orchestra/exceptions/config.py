from __future__ import annotations

from typing import Any

from orchestra.exceptions.base import OrchestraError


class ConfigError(OrchestraError):
    """Exception for configuration loading and validation errors.

    Raised when ``orchestra.yaml`` cannot be parsed or when a value (from the
    file or from an ``ORCHESTRA_*`` environment variable) fails validation.

    Attributes:
        message: Human-readable error message describing the problem.
        field: Optional name of the offending field.
        value: Optional value that failed validation (for debugging).
    """

    def __init__(
        self,
        message: str,
        field: str | None = None,
        value: Any = None,
    ) -> None:
        self.field = field
        self.value = value
        super().__init__(message)
