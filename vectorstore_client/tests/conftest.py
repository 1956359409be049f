"""
Pytest configuration and fixtures for vector store client tests.

Provides an in-memory engine speaking the same protocol contract as the
Qdrant REST adapter, plus environment helpers.
"""

import json
import math
import os
from typing import Dict, List, Optional, Sequence
from unittest.mock import Mock

import pytest
import requests

from vectorstore_client.application.vector_client import VectorStoreClient
from vectorstore_client.domain.interfaces import EngineProtocol
from vectorstore_client.domain.models import PayloadPolicy, PointRecord


def http_error(status: int, message: str = "error", raw: Optional[bytes] = None) -> requests.HTTPError:
    """Build an HTTPError the way ``Response.raise_for_status`` does.

    The body is a Qdrant error envelope unless ``raw`` replaces it.
    """
    response = requests.Response()
    response.status_code = status
    response._content = raw if raw is not None else json.dumps({"status": {"error": message}, "result": None}).encode()
    response.url = "http://engine.test"
    return requests.HTTPError(f"{status} Error: {message}", response=response)


def _cosine(a: Sequence[float], b: Sequence[float]) -> float:
    dot = sum(x * y for x, y in zip(a, b))
    na = math.sqrt(sum(x * x for x in a))
    nb = math.sqrt(sum(y * y for y in b))
    if na == 0 or nb == 0:
        return 0.0
    return dot / (na * nb)


class FakeEngine(EngineProtocol):
    """In-memory engine. Missing collections fail with 404 like Qdrant does.

    ``missing_point`` selects how an absent point id is reported by
    ``get_points``: "empty" (``[]``), "absent" (``None``) or "404".
    """

    def __init__(self, missing_point: str = "empty") -> None:
        self.collections: Dict[str, Dict[str, object]] = {}
        self.missing_point = missing_point
        self.calls: List[tuple] = []

    def _collection(self, name: str) -> Dict[str, object]:
        if name not in self.collections:
            raise http_error(404, f"Collection `{name}` doesn't exist!")
        return self.collections[name]

    def list_collections(self, timeout=None):
        self.calls.append(("list_collections", {"timeout": timeout}))
        return [{"name": n} for n in self.collections]

    def get_collection(self, name, timeout=None):
        self.calls.append(("get_collection", {"name": name, "timeout": timeout}))
        coll = self._collection(name)
        return {"status": "green", "config": {"params": {"vectors": {"size": coll["size"], "distance": coll["distance"]}}}}

    def create_collection(self, name, size, distance, timeout=None):
        self.calls.append(("create_collection", {"name": name, "size": size, "distance": distance, "timeout": timeout}))
        if name in self.collections:
            raise http_error(409, f"Collection `{name}` already exists!")
        self.collections[name] = {"size": size, "distance": distance, "points": {}}
        return True

    def get_points(self, name, ids, with_payload=False, with_vector=False, timeout=None):
        self.calls.append(("get_points", {"name": name, "ids": list(ids), "with_payload": with_payload, "with_vector": with_vector}))
        points = self._collection(name)["points"]
        found = [{"id": i} for i in ids if i in points]
        if found:
            return found
        if self.missing_point == "404":
            raise http_error(404, "No point with id found")
        return None if self.missing_point == "absent" else []

    def upsert_points(self, name, points: List[PointRecord], wait, timeout=None):
        self.calls.append(("upsert_points", {"name": name, "points": list(points), "wait": wait, "timeout": timeout}))
        coll = self._collection(name)
        for p in points:
            if len(p.vector) != coll["size"]:
                raise http_error(400, f"Wrong input: Vector dimension error: expected dim: {coll['size']}, got {len(p.vector)}")
        for p in points:
            coll["points"][p.id] = (list(p.vector), dict(p.payload))
        return {"operation_id": len(self.calls), "status": "completed" if wait else "acknowledged"}

    def search_points(self, name, vector, limit, with_payload=True, with_vector=False, timeout=None):
        self.calls.append(("search_points", {"name": name, "vector": list(vector), "limit": limit, "with_payload": with_payload, "with_vector": with_vector}))
        coll = self._collection(name)
        scored = [(pid, _cosine(vector, vec), payload, vec) for pid, (vec, payload) in coll["points"].items()]
        scored.sort(key=lambda t: t[1], reverse=True)
        hits = []
        for pid, score, payload, vec in scored[:limit]:
            hit: Dict[str, object] = {"id": pid, "version": 0, "score": score}
            hit["payload"] = payload if with_payload else None
            hit["vector"] = vec if with_vector else None
            hits.append(hit)
        return hits

    def last_call(self, method: str) -> Optional[dict]:
        for name, kwargs in reversed(self.calls):
            if name == method:
                return kwargs
        return None


@pytest.fixture
def engine():
    """Fresh in-memory engine."""
    return FakeEngine()


@pytest.fixture
def engine_factory():
    """FakeEngine class, for tests that need a non-default missing-point mode."""
    return FakeEngine


@pytest.fixture
def make_http_error():
    """Factory for status errors shaped like requests' own."""
    return http_error


@pytest.fixture
def client(engine):
    """Client over the fake engine with explicit defaults."""
    return VectorStoreClient(engine, engine, distance="Cosine", wait=False, payload_policy=PayloadPolicy.COERCE)


@pytest.fixture
def mock_protocol():
    """Protocol double for failure-path tests."""
    return Mock(spec=EngineProtocol)


@pytest.fixture
def clean_environment():
    """Clean environment variables for testing."""
    env_vars_to_clean = [
        'QDRANT_URL',
        'QDRANT_API_KEY',
        'VECTOR_DISTANCE',
        'VECTOR_UPSERT_WAIT',
        'VECTOR_PAYLOAD_POLICY',
        'VECTOR_HTTP_TIMEOUT',
    ]

    original_env = {}
    for var in env_vars_to_clean:
        if var in os.environ:
            original_env[var] = os.environ[var]
            del os.environ[var]

    yield

    for var in env_vars_to_clean:
        os.environ.pop(var, None)
    for var, value in original_env.items():
        os.environ[var] = value


def pytest_configure(config):
    """Configure pytest markers."""
    config.addinivalue_line(
        "markers", "unit: mark test as unit test"
    )
    config.addinivalue_line(
        "markers", "env: mark test as environment resolution test"
    )
