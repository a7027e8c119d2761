"""Scalar int8 quantization over a fixed float range.

Each element ``v`` maps onto the signed byte code space through an affine
transform of the configured range::

    normalized = (v - minimum) / (maximum - minimum) * 255
    code       = clamp(round(normalized) - 128, -128, 127)

``round`` is round-half-away-from-zero, so with range ``(-1, 1)`` the value
``0.0`` normalizes to 127.5 and lands on code 0. Out-of-range values saturate
silently; they are never an error. NaN maps to the low end of the range.

Dequantization inverts the transform::

    v = (code + 128) / 255 * (maximum - minimum) + minimum

which bounds the per-element reconstruction error by ``(maximum - minimum) / 255``.
"""

import math
from collections.abc import Sequence

import numpy as np
import numpy.typing as npt
from pydantic import BaseModel, ConfigDict, model_validator

from sqlite_vector.codec import QUANTIZED_HEADER, Vector, as_vector, is_quantized_format
from sqlite_vector.errors import FormatError

CODE_MIN = -128
CODE_MAX = 127
CODE_LEVELS = 255


class QuantizationRange(BaseModel):
    """Float range mapped onto the int8 code space.

    Attributes:
        minimum: Value mapped to code -128
        maximum: Value mapped to code 127 (must exceed minimum)
    """

    model_config = ConfigDict(frozen=True)

    minimum: float
    maximum: float

    @model_validator(mode="after")
    def validate_bounds(self) -> "QuantizationRange":
        """Ensure the range is finite and non-empty."""
        if not (math.isfinite(self.minimum) and math.isfinite(self.maximum)):
            raise ValueError(
                f"quantization range must be finite, got ({self.minimum}, {self.maximum})"
            )
        if self.maximum <= self.minimum:
            raise ValueError(
                f"quantization maximum ({self.maximum}) must be greater than "
                f"minimum ({self.minimum})"
            )
        return self

    @property
    def span(self) -> float:
        return self.maximum - self.minimum

    @property
    def max_error(self) -> float:
        """Upper bound on the per-element reconstruction error."""
        return self.span / CODE_LEVELS


def round_half_away(values: npt.NDArray[np.float64]) -> npt.NDArray[np.float64]:
    """Round to nearest, resolving .5 ties away from zero."""
    return np.copysign(np.floor(np.abs(values) + 0.5), values)


def quantize_codes(
    vector: Sequence[float] | npt.ArrayLike, quant_range: QuantizationRange
) -> npt.NDArray[np.int8]:
    """Map a vector to its int8 codes (no header)."""
    values = as_vector(vector).astype(np.float64)
    normalized = (values - quant_range.minimum) / quant_range.span * CODE_LEVELS
    normalized = np.nan_to_num(normalized, nan=0.0, posinf=np.inf, neginf=-np.inf)
    codes = round_half_away(normalized) + CODE_MIN
    return np.clip(codes, CODE_MIN, CODE_MAX).astype(np.int8)


def quantize(vector: Sequence[float] | npt.ArrayLike, quant_range: QuantizationRange) -> bytes:
    """Encode a vector as a QuantizedBlob (header plus one int8 code per element).

    The caller is responsible for checking the vector length against the
    configured dimension.
    """
    return QUANTIZED_HEADER + quantize_codes(vector, quant_range).tobytes()


def dequantize(blob: bytes, quant_range: QuantizationRange, dim: int | None = None) -> Vector:
    """Decode a QuantizedBlob back into a float32 vector.

    Args:
        blob: QuantizedBlob bytes
        quant_range: Range the blob was quantized with
        dim: Expected dimension; when given, the payload length must match it

    Raises:
        FormatError: If the magic bytes are missing or the payload length is
            inconsistent with ``dim``
    """
    if not is_quantized_format(blob):
        raise FormatError("missing quantized format magic bytes")
    payload = blob[len(QUANTIZED_HEADER) :]
    if dim is not None and len(payload) != dim:
        raise FormatError(
            f"quantized payload has {len(payload)} codes, expected {dim}",
            context={"length": len(blob), "dim": dim},
        )
    codes = np.frombuffer(payload, dtype=np.int8).astype(np.float64)
    values = (codes - CODE_MIN) / CODE_LEVELS * quant_range.span + quant_range.minimum
    return values.astype(np.float32)
