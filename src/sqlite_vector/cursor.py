"""Row-producing cursor behind the ``vector_chunk`` table-valued function.

The host engine drives the cursor one call at a time::

    plan_query(constraints)  -> QueryPlan
    open(source_text)        -> chunks computed eagerly, position 0
    at_end() / column(i) / row_id() / next()  ...repeated...
    close()

Chunking happens once, at open time; the cursor then only walks the list.
"""

import enum
from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import NamedTuple

from loguru import logger

from sqlite_vector.chunking import Chunker
from sqlite_vector.errors import ChunkerError, ConfigurationError, CursorStateError

SCHEMA = "CREATE TABLE x(value TEXT, chunk_index INTEGER, text TEXT HIDDEN)"

COLUMN_VALUE = 0
COLUMN_INDEX = 1
COLUMN_TEXT = 2
COLUMN_ROWID = -1

# SQLITE_INDEX_CONSTRAINT_EQ
CONSTRAINT_EQ = 2

PLAN_FULL_SCAN = 0
PLAN_TEXT_EQ = 1

FULL_SCAN_COST = 1e12
FULL_SCAN_ROWS = 1_000_000
TEXT_EQ_COST = 1.0
TEXT_EQ_ROWS = 10


class Constraint(NamedTuple):
    """A predicate offered by the planner: ``column <op> ?``."""

    column: int
    op: int
    usable: bool = True


class ConstraintUsage(NamedTuple):
    """How a consumed constraint reaches ``open``: 1-based argument slot."""

    argv_index: int
    omit: bool = True


@dataclass(frozen=True)
class QueryPlan:
    """Outcome of plan selection, in the shape SQLite's xBestIndex expects."""

    index_number: int
    estimated_cost: float
    estimated_rows: int
    constraint_usage: dict[int, ConstraintUsage] = field(default_factory=dict)

    @property
    def consumes_text(self) -> bool:
        return self.index_number == PLAN_TEXT_EQ


def plan_query(constraints: Sequence[Constraint]) -> QueryPlan:
    """Choose between the cheap text-equality plan and an expensive full scan.

    A usable ``text = ?`` constraint is consumed as the first argument to
    ``open``. Without one, the plan reports a huge cost so the planner avoids
    it whenever an alternative exists.
    """
    for i, constraint in enumerate(constraints):
        usable_eq = constraint.usable and constraint.op == CONSTRAINT_EQ
        if usable_eq and constraint.column == COLUMN_TEXT:
            return QueryPlan(
                index_number=PLAN_TEXT_EQ,
                estimated_cost=TEXT_EQ_COST,
                estimated_rows=TEXT_EQ_ROWS,
                constraint_usage={i: ConstraintUsage(argv_index=1, omit=True)},
            )
    return QueryPlan(
        index_number=PLAN_FULL_SCAN,
        estimated_cost=FULL_SCAN_COST,
        estimated_rows=FULL_SCAN_ROWS,
    )


class CursorState(enum.Enum):
    CREATED = "created"
    FILTERED = "filtered"
    ITERATING = "iterating"
    EXHAUSTED = "exhausted"
    CLOSED = "closed"


_READABLE = (CursorState.FILTERED, CursorState.ITERATING)


class ChunkCursor:
    """Stateful iterator exposing a chunker's output as ``(value, chunk_index)`` rows.

    Row identity is the chunk position; it is stable within one ``open`` and
    restarts at 0 whenever the cursor is opened with new input.
    """

    def __init__(self, chunker: Chunker | None):
        self.chunker = chunker
        self.state = CursorState.CREATED
        self.source_text: str | None = None
        self.chunks: list[str] = []
        self.position = 0

    def open(self, source_text: str | None) -> None:
        """Chunk ``source_text`` and rewind to the first row.

        A ``None`` source produces zero rows.

        Raises:
            ConfigurationError: If no chunker is registered
            CursorStateError: If the cursor was closed
            ChunkerError: If the chunker fails; no rows are produced
        """
        if self.state is CursorState.CLOSED:
            raise CursorStateError("cannot open a closed cursor")
        if self.chunker is None:
            raise ConfigurationError("no chunker configured, register with a chunker")

        self.chunks = []
        self.position = 0
        self.source_text = source_text
        self.state = CursorState.EXHAUSTED

        if source_text is None:
            return

        try:
            chunks = list(self.chunker.chunk(source_text))
        except Exception as exc:
            raise ChunkerError(f"chunker failed: {exc}") from exc
        if not all(isinstance(chunk, str) for chunk in chunks):
            raise ChunkerError("chunker must return a list of strings")

        logger.debug(f"vector_chunk produced {len(chunks)} chunks from {len(source_text)} chars")
        self.chunks = chunks
        self.state = CursorState.FILTERED if chunks else CursorState.EXHAUSTED

    def next(self) -> None:
        """Advance to the next row."""
        if self.state not in _READABLE:
            raise CursorStateError(f"cannot advance a cursor that is {self.state.value}")
        self.position += 1
        self.state = CursorState.EXHAUSTED if self.at_end() else CursorState.ITERATING

    def at_end(self) -> bool:
        if self.state in (CursorState.CREATED, CursorState.CLOSED):
            raise CursorStateError(f"cursor is {self.state.value}")
        return self.position >= len(self.chunks)

    def column(self, index: int) -> str | int | None:
        """Read a column of the current row.

        Column 0 is the chunk text, column 1 its position, and the hidden
        column 2 echoes the text supplied to ``open``.
        """
        if self.state not in _READABLE:
            raise CursorStateError(f"cannot read a column from a cursor that is {self.state.value}")
        if index == COLUMN_VALUE:
            return self.chunks[self.position]
        if index in (COLUMN_INDEX, COLUMN_ROWID):
            return self.position
        if index == COLUMN_TEXT:
            return self.source_text
        raise IndexError(f"vector_chunk has no column {index}")

    def row_id(self) -> int:
        if self.state not in _READABLE:
            raise CursorStateError(f"cannot read the rowid of a cursor that is {self.state.value}")
        return self.position

    def close(self) -> None:
        """Release the chunk list. Safe to call more than once."""
        self.chunks = []
        self.source_text = None
        self.state = CursorState.CLOSED
