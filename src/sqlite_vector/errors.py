"""Exception hierarchy for sqlite_vector.

Every error raised by the codec, quantization, distance and cursor layers
derives from :class:`VectorError`, so callers can catch the whole family at
the SQL boundary while tests assert on the precise subclass.
"""

from typing import Optional


class VectorError(Exception):
    """Base exception for all sqlite_vector errors.

    Attributes:
        message: Human-readable error description
        context: Optional diagnostic object (offending lengths, function name, ...)
    """

    def __init__(self, message: str, context: Optional[object] = None):
        self.message = message
        self.context = context
        super().__init__(message)

    def with_prefix(self, prefix: str) -> "VectorError":
        """Return a copy of this error whose message is prefixed with ``prefix``."""
        return type(self)(f"{prefix}: {self.message}", context=self.context)


class DimensionError(VectorError):
    """A vector or blob length does not match the configured dimension."""


class FormatError(VectorError):
    """A blob lacks the expected header or has an impossible byte length."""


class ConfigurationError(VectorError):
    """An operation needs a collaborator or range that was never configured."""


class CursorStateError(VectorError):
    """A chunk cursor method was called in a state that does not allow it."""


class ChunkerError(VectorError):
    """The external chunker failed; the original exception is chained."""


class EmbedderError(VectorError):
    """The external embedder failed; the original exception is chained."""
