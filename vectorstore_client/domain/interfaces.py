from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Dict, List, Optional, Sequence, Tuple, Union

from .models import PointRecord

Timeout = Union[None, float, Tuple[float, float]]


class EngineProtocol(ABC):
    """Port for the vector engine's request/response protocol (e.g., Qdrant REST).

    Each call returns the decoded ``result`` part of the engine response.
    Failures surface as the transport's own exceptions; callers classify them.
    """

    @abstractmethod
    def list_collections(self, timeout: Timeout = None) -> List[Dict[str, object]]:
        """Return collection descriptors (each with at least ``name``) in engine order."""
        raise NotImplementedError

    @abstractmethod
    def get_collection(self, name: str, timeout: Timeout = None) -> Dict[str, object]:
        """Return collection info; fails with a not-found status when absent."""
        raise NotImplementedError

    @abstractmethod
    def create_collection(self, name: str, size: int, distance: str, timeout: Timeout = None) -> object:
        """Create a collection with a single unnamed vector of ``size`` dimensions."""
        raise NotImplementedError

    @abstractmethod
    def get_points(
        self,
        name: str,
        ids: Sequence[int],
        with_payload: bool = False,
        with_vector: bool = False,
        timeout: Timeout = None,
    ) -> Optional[List[Dict[str, object]]]:
        """Retrieve points by id; ``None`` or an empty list when nothing matched."""
        raise NotImplementedError

    @abstractmethod
    def upsert_points(self, name: str, points: List[PointRecord], wait: bool, timeout: Timeout = None) -> Dict[str, object]:
        """Upsert points; ``wait`` asks the engine to ack only after the write is applied."""
        raise NotImplementedError

    @abstractmethod
    def search_points(
        self,
        name: str,
        vector: Sequence[float],
        limit: int,
        with_payload: bool = True,
        with_vector: bool = False,
        timeout: Timeout = None,
    ) -> List[Dict[str, object]]:
        """Nearest-neighbour search; hits are ``{id, score, payload}`` dicts ranked by the engine."""
        raise NotImplementedError


class VectorClient(ABC):
    """Port for the domain-level vector store operations."""

    @abstractmethod
    def list_collections(self, timeout: Timeout = None) -> List[str]:
        raise NotImplementedError

    @abstractmethod
    def collection_exists(self, name: str, timeout: Timeout = None) -> bool:
        raise NotImplementedError

    @abstractmethod
    def create_collection(self, name: str, dimensionality: int, timeout: Timeout = None) -> None:
        raise NotImplementedError

    @abstractmethod
    def point_exists(self, collection: str, point_id: int, timeout: Timeout = None) -> bool:
        raise NotImplementedError

    @abstractmethod
    def upsert_columnar(
        self,
        collection: str,
        ids: Sequence[int],
        embeddings: Sequence[Sequence[float]],
        metadata: Sequence[str],
        timeout: Timeout = None,
    ) -> None:
        raise NotImplementedError

    @abstractmethod
    def search(self, collection: str, vector: Sequence[float], limit: int, timeout: Timeout = None) -> List[str]:
        raise NotImplementedError
