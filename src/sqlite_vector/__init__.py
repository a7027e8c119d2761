"""Brute-force vector search for SQLite.

Vectors live in ordinary BLOB columns and distances are computed by SQL
functions at query time; ordering and limiting are left to the query engine.

Architecture:
    - codec: RawBlob (float32) and QuantizedBlob (int8) byte layouts
    - quantization: Affine int8 mapping over a configured range
    - distance: Squared L2 over either representation
    - cursor: Row-at-a-time cursor behind the vector_chunk table
    - chunking / embedding: Pluggable text chunker and embedder collaborators
    - extension: apsw registration of the SQL surface
    - config: Pydantic models and Hydra YAML loading

Usage:
    >>> import apsw
    >>> from sqlite_vector import register
    >>> conn = apsw.Connection(":memory:")
    >>> _ = register(conn, 3)
    >>> conn.execute(
    ...     "SELECT rowid FROM items ORDER BY vector_distance(embedding, vector_encode(?)) LIMIT 5",
    ...     ("[0.1, 0.2, 0.3]",),
    ... )
"""

__version__ = "0.1.0"

from sqlite_vector.codec import decode_raw, encode_raw, is_quantized_format
from sqlite_vector.config import ExtensionSettings, VectorConfig, load_config
from sqlite_vector.distance import distance_quantized, distance_raw, squared_l2
from sqlite_vector.errors import (
    ChunkerError,
    ConfigurationError,
    CursorStateError,
    DimensionError,
    EmbedderError,
    FormatError,
    VectorError,
)
from sqlite_vector.extension import VectorExtension, register, register_from_settings
from sqlite_vector.quantization import QuantizationRange, dequantize, quantize

__all__ = [
    "ChunkerError",
    "ConfigurationError",
    "CursorStateError",
    "DimensionError",
    "EmbedderError",
    "ExtensionSettings",
    "FormatError",
    "QuantizationRange",
    "VectorConfig",
    "VectorError",
    "VectorExtension",
    "decode_raw",
    "dequantize",
    "distance_quantized",
    "distance_raw",
    "encode_raw",
    "is_quantized_format",
    "load_config",
    "quantize",
    "register",
    "register_from_settings",
    "squared_l2",
]
