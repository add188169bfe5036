# opsmith/synthesis/exceptions.py
from typing import ClassVar

from opsmith.exceptions.base import ImplementError


class SynthesisError(ImplementError):
    """The code-generation service produced no usable source."""

    phase: ClassVar[str] = "synthesis"

    def __init__(self, message: str = "", *, timed_out: bool = False, **kwargs) -> None:
        super().__init__(message, **kwargs)
        self.timed_out = timed_out
