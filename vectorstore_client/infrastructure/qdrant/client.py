from __future__ import annotations

from typing import Any, Dict, List, Optional, Sequence
from urllib.parse import quote

import requests

from ...domain.errors import VectorStoreError
from ...domain.interfaces import EngineProtocol, Timeout
from ...domain.models import PointRecord
from ..logging import get_logger
from ..timeouts import resolve_timeout

logger = get_logger("vectorstore_client.qdrant")


class QdrantRestProtocol(EngineProtocol):
    """Engine protocol adapter for Qdrant REST over one long-lived requests.Session.

    Every method returns the ``result`` member of the Qdrant response body.
    HTTP failures are raised as ``requests.HTTPError`` (status on ``.response``);
    connectivity failures and timeouts propagate as raised by requests.
    """

    def __init__(
        self,
        base_url: str,
        api_key: Optional[str] = None,
        timeout: Timeout = None,
        session: Optional[requests.Session] = None,
    ) -> None:
        self._base = base_url.rstrip("/")
        self._timeout = timeout
        self._session = session if session is not None else requests.Session()
        self._session.headers.update({"Accept": "application/json"})
        if api_key:
            self._session.headers["api-key"] = api_key

    @property
    def base_url(self) -> str:
        return self._base

    def close(self) -> None:
        self._session.close()

    def __enter__(self) -> "QdrantRestProtocol":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def _collection_url(self, name: str, suffix: str = "") -> str:
        return f"{self._base}/collections/{quote(name, safe='')}{suffix}"

    def _call(
        self,
        method: str,
        url: str,
        timeout: Timeout,
        json: Optional[Dict[str, Any]] = None,
        params: Optional[Dict[str, str]] = None,
    ) -> Any:
        r = self._session.request(method, url, json=json, params=params, timeout=resolve_timeout(timeout, self._timeout))
        r.raise_for_status()
        try:
            data = r.json()
        except ValueError as ex:
            raise VectorStoreError(f"Non-JSON response from {method} {url} (status={r.status_code})") from ex
        if not isinstance(data, dict):
            raise VectorStoreError(f"Unexpected response shape from {method} {url}: {type(data).__name__}")
        return data.get("result")

    def list_collections(self, timeout: Timeout = None) -> List[Dict[str, object]]:
        result = self._call("GET", f"{self._base}/collections", timeout) or {}
        return list(result.get("collections") or [])

    def get_collection(self, name: str, timeout: Timeout = None) -> Dict[str, object]:
        return self._call("GET", self._collection_url(name), timeout) or {}

    def create_collection(self, name: str, size: int, distance: str, timeout: Timeout = None) -> object:
        body = {"vectors": {"size": int(size), "distance": str(distance)}}
        logger.debug("Create collection | name=%s | size=%d | distance=%s", name, size, distance)
        return self._call("PUT", self._collection_url(name), timeout, json=body)

    def get_points(
        self,
        name: str,
        ids: Sequence[int],
        with_payload: bool = False,
        with_vector: bool = False,
        timeout: Timeout = None,
    ) -> Optional[List[Dict[str, object]]]:
        body = {"ids": list(ids), "with_payload": with_payload, "with_vector": with_vector}
        return self._call("POST", self._collection_url(name, "/points"), timeout, json=body)

    def upsert_points(self, name: str, points: List[PointRecord], wait: bool, timeout: Timeout = None) -> Dict[str, object]:
        body = {
            "points": [
                {"id": p.id, "vector": p.vector, "payload": p.payload}
                for p in points
            ]
        }
        params = {"wait": "true" if wait else "false"}
        return self._call("PUT", self._collection_url(name, "/points"), timeout, json=body, params=params) or {}

    def search_points(
        self,
        name: str,
        vector: Sequence[float],
        limit: int,
        with_payload: bool = True,
        with_vector: bool = False,
        timeout: Timeout = None,
    ) -> List[Dict[str, object]]:
        body = {
            "vector": [float(x) for x in vector],
            "limit": int(limit),
            "with_payload": with_payload,
            "with_vector": with_vector,
        }
        return list(self._call("POST", self._collection_url(name, "/points/search"), timeout, json=body) or [])
