"""Error taxonomy shared by the dispatcher, primitives and method variants.

Every failure of an ``embed`` or ``project`` call surfaces as one of the
classes below so callers can tell a configuration mistake apart from a
numerical or resource failure.
"""

from __future__ import annotations


class EmbedkitError(Exception):
    """Base class for all errors raised by the engine."""


class MissingParameterError(EmbedkitError, KeyError):
    """A required parameter is absent from the parameters map."""

    def __str__(self) -> str:
        # KeyError quotes its argument; keep the plain message instead.
        return str(self.args[0]) if self.args else ""


class WrongParameterTypeError(EmbedkitError, TypeError):
    """A parameter value cannot be read as its declared type."""


class WrongParameterValueError(EmbedkitError, ValueError):
    """A parameter value is well typed but outside its valid domain."""


class UnsupportedMethodError(EmbedkitError):
    """The requested method (or method combination) is not implemented."""


class CapabilityMissingError(EmbedkitError):
    """A callback required by the selected method was not supplied."""


class NotEnoughMemoryError(EmbedkitError, MemoryError):
    """Allocation failed while constructing or decomposing a matrix."""


class CancelledError(EmbedkitError):
    """The cancellation hook signalled during the computation."""


class EigendecompositionError(EmbedkitError):
    """The eigensolver failed to converge."""


class DimensionMismatchError(EmbedkitError, ValueError):
    """A feature vector does not have the expected length."""


__all__ = [
    "EmbedkitError",
    "MissingParameterError",
    "WrongParameterTypeError",
    "WrongParameterValueError",
    "UnsupportedMethodError",
    "CapabilityMissingError",
    "NotEnoughMemoryError",
    "CancelledError",
    "EigendecompositionError",
    "DimensionMismatchError",
]
