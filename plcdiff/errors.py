"""Exceptions raised by the textconv pipeline."""

from typing import Optional


class PlcDiffError(Exception):
    """Base class for all textconv failures."""

    def __init__(self, message: str, path: Optional[str] = None):
        self.message = message
        self.path = path
        super().__init__(f"{message} (at {path})" if path else message)


class MalformedInput(PlcDiffError):
    """Input is not well-formed XML or lacks structure the printer depends on."""


class UnsupportedEncoding(MalformedInput):
    """Input bytes cannot be decoded with the declared or assumed encoding."""


class InternalInvariantViolation(PlcDiffError):
    """Unbalanced nesting or another broken assumption while decoding logic."""
