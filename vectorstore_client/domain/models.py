from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Sequence, Tuple

from .errors import ContractError

METADATA_KEY = "metadata"
MAX_POINT_ID = 2 ** 64 - 1


class Distance(str, Enum):
    """Similarity metric fixed on a collection at creation time."""

    COSINE = "Cosine"
    EUCLID = "Euclid"
    DOT = "Dot"
    MANHATTAN = "Manhattan"

    @classmethod
    def parse(cls, value: object) -> "Distance":
        """Accept a Distance or its engine spelling in any case."""
        if isinstance(value, cls):
            return value
        for d in cls:
            if d.value.lower() == str(value).strip().lower():
                return d
        raise ContractError(f"Unsupported distance metric: {value!r}")


class PayloadPolicy(str, Enum):
    """What search does with a hit whose metadata is not a plain string.

    ERROR raises PayloadError, SKIP drops the hit, COERCE renders it as text
    (missing/null becomes "", anything else is JSON-encoded).
    """

    ERROR = "error"
    SKIP = "skip"
    COERCE = "coerce"

    @classmethod
    def parse(cls, value: object) -> "PayloadPolicy":
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            raise ContractError(f"Unsupported payload policy: {value!r}") from None


def validate_point_id(value: object) -> int:
    """Return ``value`` if it is a valid unsigned 64-bit point id."""
    if isinstance(value, bool) or not isinstance(value, int):
        raise ContractError(f"Point id must be an unsigned 64-bit integer, got {type(value).__name__}")
    if value < 0 or value > MAX_POINT_ID:
        raise ContractError(f"Point id {value} is outside the unsigned 64-bit range")
    return value


def _to_vector(pos: int, emb: object) -> Tuple[float, ...]:
    if isinstance(emb, (str, bytes)):
        raise ContractError(f"Embedding at position {pos} must be a sequence of numbers, got {type(emb).__name__}")
    try:
        return tuple(_to_float(x) for x in emb)
    except (TypeError, ValueError) as ex:
        raise ContractError(f"Embedding at position {pos} is not numeric: {ex}") from ex


def _to_float(x: object) -> float:
    if isinstance(x, (str, bytes)):
        raise ValueError(f"got {type(x).__name__} value {x!r}")
    return float(x)


@dataclass(frozen=True)
class PointRecord:
    """A point to upsert into the vector store.

    Fields:
        id: uint64 point id.
        vector: Embedding (default unnamed vector).
        payload: Payload map; holds the metadata string under ``METADATA_KEY``.
    """
    id: int
    vector: List[float]
    payload: Dict[str, object]


@dataclass(frozen=True)
class SearchHit:
    """Vector search match returned by the engine.

    Fields:
        id: Point ID as returned by the engine.
        score: Similarity score (higher is better for cosine).
        payload: Returned payload, empty when the engine sent none.
    """
    id: object
    score: float
    payload: Dict[str, object]


@dataclass(frozen=True)
class ColumnarBatch:
    """Parallel ids/embeddings/metadata columns describing one upsert.

    Position ``i`` of each column describes one point. Use ``build`` to
    construct a batch; it rejects mismatched or malformed columns before any
    wire structure is created.
    """
    ids: Tuple[int, ...]
    embeddings: Tuple[Tuple[float, ...], ...]
    metadata: Tuple[str, ...]

    @classmethod
    def build(
        cls,
        ids: Sequence[int],
        embeddings: Sequence[Sequence[float]],
        metadata: Sequence[str],
    ) -> "ColumnarBatch":
        for label, column in (("ids", ids), ("embeddings", embeddings), ("metadata", metadata)):
            if isinstance(column, (str, bytes)):
                raise ContractError(f"Column {label} must be a sequence of rows, got {type(column).__name__}")
        if not (len(ids) == len(embeddings) == len(metadata)):
            raise ContractError(
                f"Columnar batch length mismatch: ids={len(ids)}, "
                f"embeddings={len(embeddings)}, metadata={len(metadata)}"
            )
        checked_ids = tuple(validate_point_id(i) for i in ids)

        dim = None
        vectors: List[Tuple[float, ...]] = []
        for pos, emb in enumerate(embeddings):
            vec = _to_vector(pos, emb)
            if not vec:
                raise ContractError(f"Embedding at position {pos} is empty")
            if dim is None:
                dim = len(vec)
            elif len(vec) != dim:
                raise ContractError(f"Inconsistent embedding dimension at position {pos}: got {len(vec)}, expected {dim}")
            vectors.append(vec)

        for pos, meta in enumerate(metadata):
            if not isinstance(meta, str):
                raise ContractError(f"Metadata at position {pos} must be a string, got {type(meta).__name__}")

        return cls(ids=checked_ids, embeddings=tuple(vectors), metadata=tuple(metadata))

    def __len__(self) -> int:
        return len(self.ids)

    @property
    def dim(self) -> int:
        return len(self.embeddings[0]) if self.embeddings else 0

    def to_points(self) -> List[PointRecord]:
        return [
            PointRecord(id=pid, vector=list(vec), payload={METADATA_KEY: meta})
            for pid, vec, meta in zip(self.ids, self.embeddings, self.metadata)
        ]
