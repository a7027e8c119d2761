"""SQLite bindings: scalar vector functions and the ``vector_chunk`` module.

Usage:
    >>> import apsw
    >>> from sqlite_vector import QuantizationRange, register
    >>> conn = apsw.Connection(":memory:")
    >>> _ = register(conn, 3, quant_range=QuantizationRange(minimum=-1, maximum=1))
    >>> sql = "SELECT vector_distance(vector_encode(?), vector_encode(?))"
    >>> conn.execute(sql, ("[1,2,3]", "[4,5,6]")).get
    27.0

Every function returns NULL for a NULL argument without running any
validation. Core errors propagate out of the statement with their original
class and a message prefixed by the SQL function name.
"""

import functools
import json
from collections.abc import Callable
from typing import Any

import apsw
from loguru import logger

from sqlite_vector.chunking import Chunker, RecursiveTokenChunker
from sqlite_vector.codec import as_vector, decode_raw, encode_raw, raw_blob_size
from sqlite_vector.config import ExtensionSettings, VectorConfig
from sqlite_vector.cursor import SCHEMA, ChunkCursor, Constraint, plan_query
from sqlite_vector.distance import distance_quantized, distance_raw
from sqlite_vector.embedding import Embedder, create_embedding_client
from sqlite_vector.errors import (
    ConfigurationError,
    DimensionError,
    EmbedderError,
    FormatError,
    VectorError,
)
from sqlite_vector.quantization import QuantizationRange, quantize

CHUNK_MODULE = "vector_chunk"


def sql_function(name: str) -> Callable[[Callable[..., Any]], Callable[..., Any]]:
    """Wrap a core operation as a SQL function.

    NULL in any argument short-circuits to NULL, and VectorErrors are
    re-raised with the function name in front of the message.
    """

    def decorator(func: Callable[..., Any]) -> Callable[..., Any]:
        @functools.wraps(func)
        def wrapper(*args: Any) -> Any:
            if any(arg is None for arg in args):
                return None
            try:
                return func(*args)
            except VectorError as exc:
                raise exc.with_prefix(name) from exc

        return wrapper

    return decorator


def _reject_constant(token: str) -> float:
    raise ValueError(f"non-finite JSON number {token}")


def _as_blob(value: Any, label: str) -> bytes:
    if not isinstance(value, (bytes, bytearray, memoryview)):
        raise FormatError(
            f"input {label} must be a BLOB, got {type(value).__name__}",
            context={"argument": label},
        )
    return bytes(value)


def parse_json_vector(text: Any) -> list[float]:
    """Parse a JSON array of numbers.

    Raises:
        FormatError: For invalid JSON, non-arrays and non-numeric members
    """
    if isinstance(text, (bytes, bytearray)):
        text = bytes(text).decode("utf-8", errors="replace")
    try:
        values = json.loads(str(text), parse_constant=_reject_constant)
    except ValueError as exc:
        raise FormatError(f"invalid JSON: {exc}") from exc
    if not isinstance(values, list):
        raise FormatError(f"expected a JSON array, got {type(values).__name__}")
    floats = []
    for i, value in enumerate(values):
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise FormatError(f"element {i} is not a number: {value!r}")
        try:
            floats.append(float(value))
        except OverflowError as exc:
            raise FormatError(f"element {i} is out of range: {value}") from exc
    return floats


class VectorExtension:
    """The functions registered on one connection, bound to one VectorConfig."""

    def __init__(
        self,
        config: VectorConfig,
        embedder: Embedder | None = None,
        chunker: Chunker | None = None,
    ):
        self.config = config
        self.embedder = embedder
        self.chunker = chunker

    @property
    def dim(self) -> int:
        return self.config.dim

    def encode(self, text: Any) -> bytes:
        values = parse_json_vector(text)
        if len(values) != self.dim:
            raise DimensionError(
                f"expected dimension {self.dim}, got {len(values)}",
                context={"expected": self.dim, "actual": len(values)},
            )
        return encode_raw(values)

    def distance(self, blob_a: Any, blob_b: Any) -> float:
        return distance_raw(_as_blob(blob_a, "a"), _as_blob(blob_b, "b"), self.dim)

    def quantize(self, blob: Any) -> bytes:
        quant_range = self._require_quant_range()
        raw = _as_blob(blob, "a")
        expected = raw_blob_size(self.dim)
        if len(raw) != expected:
            raise DimensionError(
                f"expected {expected} bytes (dim={self.dim}), got {len(raw)}",
                context={"expected": expected, "actual": len(raw), "dim": self.dim},
            )
        return quantize(decode_raw(raw), quant_range)

    def distance_quantized(self, blob_a: Any, blob_b: Any) -> float:
        return distance_quantized(
            _as_blob(blob_a, "a"), _as_blob(blob_b, "b"), self.dim, self.config.quant_range
        )

    def embed(self, text: Any) -> bytes:
        if self.embedder is None:
            raise ConfigurationError("no embedder configured, register with an embedder")
        if isinstance(text, bytes):
            text = text.decode("utf-8", errors="replace")
        try:
            vector = as_vector(list(self.embedder.embed(str(text))))
        except Exception as exc:
            raise EmbedderError(f"embedder failed: {exc}") from exc
        if vector.ndim != 1:
            raise EmbedderError("embedder must return a flat sequence of numbers")
        if len(vector) != self.dim:
            raise DimensionError(
                f"embedder returned dimension {len(vector)}, expected {self.dim}",
                context={"expected": self.dim, "actual": len(vector)},
            )
        return encode_raw(vector)

    def _require_quant_range(self) -> QuantizationRange:
        if self.config.quant_range is None:
            raise ConfigurationError("quantization not configured, register with a quant_range")
        return self.config.quant_range

    def scalar_functions(self) -> list[tuple[str, Callable[..., Any], int, bool]]:
        """(SQL name, callable, argument count, deterministic) for each function."""
        return [
            ("vector_encode", sql_function("vector_encode")(self.encode), 1, True),
            ("vector_distance", sql_function("vector_distance")(self.distance), 2, True),
            ("vector_quantize", sql_function("vector_quantize")(self.quantize), 1, True),
            (
                "vector_distance_q",
                sql_function("vector_distance_q")(self.distance_quantized),
                2,
                True,
            ),
            ("vector_embed", sql_function("vector_embed")(self.embed), 1, False),
        ]


class ChunkModule:
    """apsw virtual table source for ``vector_chunk``."""

    def __init__(self, chunker: Chunker | None):
        self.chunker = chunker

    def Connect(  # noqa: N802
        self,
        connection: apsw.Connection,
        modulename: str,
        databasename: str,
        tablename: str,
        *args: str,
    ) -> tuple[str, "ChunkTable"]:
        return SCHEMA, ChunkTable(self.chunker)

    Create = Connect


class ChunkTable:
    """apsw virtual table: plans queries and hands out cursors."""

    def __init__(self, chunker: Chunker | None):
        self.chunker = chunker

    def BestIndexObject(self, index_info: apsw.IndexInfo) -> bool:  # noqa: N802
        constraints = [
            Constraint(
                column=index_info.get_aConstraint_iColumn(i),
                op=index_info.get_aConstraint_op(i),
                usable=index_info.get_aConstraint_usable(i),
            )
            for i in range(index_info.nConstraint)
        ]
        plan = plan_query(constraints)
        for i, usage in plan.constraint_usage.items():
            index_info.set_aConstraintUsage_argvIndex(i, usage.argv_index)
            index_info.set_aConstraintUsage_omit(i, usage.omit)
        index_info.idxNum = plan.index_number
        index_info.estimatedCost = plan.estimated_cost
        index_info.estimatedRows = plan.estimated_rows
        return True

    def Open(self) -> "ChunkTableCursor":  # noqa: N802
        return ChunkTableCursor(ChunkCursor(self.chunker))

    def Disconnect(self) -> None:  # noqa: N802
        pass

    Destroy = Disconnect


class ChunkTableCursor:
    """Adapts :class:`ChunkCursor` to apsw's cursor method names."""

    def __init__(self, cursor: ChunkCursor):
        self.cursor = cursor

    def Filter(  # noqa: N802
        self, indexnum: int, indexname: str | None, constraintargs: tuple[Any, ...]
    ) -> None:
        source_text = constraintargs[0] if constraintargs else None
        if isinstance(source_text, bytes):
            source_text = source_text.decode("utf-8", errors="replace")
        elif source_text is not None and not isinstance(source_text, str):
            source_text = str(source_text)
        try:
            self.cursor.open(source_text)
        except VectorError as exc:
            raise exc.with_prefix(CHUNK_MODULE) from exc

    def Eof(self) -> bool:  # noqa: N802
        return self.cursor.at_end()

    def Column(self, number: int) -> Any:  # noqa: N802
        return self.cursor.column(number)

    def Rowid(self) -> int:  # noqa: N802
        return self.cursor.row_id()

    def Next(self) -> None:  # noqa: N802
        self.cursor.next()

    def Close(self) -> None:  # noqa: N802
        self.cursor.close()


def register(
    connection: apsw.Connection,
    dim: int,
    *,
    quant_range: QuantizationRange | None = None,
    embedder: Embedder | None = None,
    chunker: Chunker | None = None,
) -> VectorExtension:
    """Register all vector functions on ``connection`` for vectors of dimension ``dim``.

    Calling it again on the same connection replaces the earlier registration.

    Raises:
        ConfigurationError: If ``dim`` is less than 1
    """
    if dim < 1:
        raise ConfigurationError(f"dimension must be >= 1, got {dim}")
    extension = VectorExtension(
        VectorConfig(dim=dim, quant_range=quant_range), embedder=embedder, chunker=chunker
    )

    for name, func, nargs, deterministic in extension.scalar_functions():
        connection.create_scalar_function(name, func, nargs, deterministic=deterministic)

    connection.create_module(
        CHUNK_MODULE,
        ChunkModule(chunker),
        use_bestindex_object=True,
        eponymous=True,
    )

    logger.debug(
        f"Registered vector functions (dim={dim}, "
        f"quantization={'on' if quant_range else 'off'}, "
        f"embedder={'yes' if embedder else 'no'}, chunker={'yes' if chunker else 'no'})"
    )
    return extension


def register_from_settings(
    connection: apsw.Connection, settings: ExtensionSettings
) -> VectorExtension:
    """Build collaborators from ``settings`` and register on ``connection``."""
    embedder = create_embedding_client(settings.embedding) if settings.embedding else None
    chunker = RecursiveTokenChunker(settings.chunking) if settings.chunking else None
    return register(
        connection,
        settings.vector.dim,
        quant_range=settings.vector.quantization,
        embedder=embedder,
        chunker=chunker,
    )
