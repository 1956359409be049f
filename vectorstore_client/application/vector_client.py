from __future__ import annotations

import json
from typing import Any, Callable, Dict, Iterable, List, Optional, Sequence, Tuple, TypeVar, Union

import requests

from ..domain.errors import ContractError, PayloadError
from ..domain.interfaces import EngineProtocol, Timeout, VectorClient
from ..domain.models import (
    METADATA_KEY,
    ColumnarBatch,
    Distance,
    PayloadPolicy,
    SearchHit,
    validate_point_id,
)
from ..infrastructure.config import payload_policy as default_payload_policy
from ..infrastructure.config import upsert_wait, vector_distance
from ..infrastructure.logging import get_logger

logger = get_logger("vectorstore_client.client")

T = TypeVar("T")


def _engine_error(response: requests.Response) -> Optional[str]:
    try:
        body = response.json()
    except ValueError:
        return None
    status = body.get("status") if isinstance(body, dict) else None
    error = status.get("error") if isinstance(status, dict) else None
    return error if isinstance(error, str) else None


def is_not_found(exc: BaseException) -> bool:
    """
    True when ``exc`` is an engine status failure whose status means "not found".

    The 404 must carry Qdrant's ``{"status": {"error": ...}}`` envelope; a bare
    404 from a proxy or an unknown route (wrong path prefix) is a real failure.
    """
    if not isinstance(exc, requests.HTTPError):
        return False
    response = getattr(exc, "response", None)
    if response is None or response.status_code != 404:
        return False
    return _engine_error(response) is not None


def not_found_as_false(call: Callable[[], T]) -> Tuple[bool, Optional[T]]:
    """
    Run an identity-check call and classify its outcome.

    Returns ``(True, result)`` on success and ``(False, None)`` when the engine
    reported "not found". Any other failure, including one without a status
    (connection refused, timeout), is re-raised untouched.
    """
    try:
        return True, call()
    except requests.HTTPError as ex:
        if is_not_found(ex):
            return False, None
        raise


def _to_hit(raw: Dict[str, Any]) -> SearchHit:
    payload = raw.get("payload")
    return SearchHit(
        id=raw.get("id"),
        score=float(raw.get("score") or 0.0),
        payload=payload if isinstance(payload, dict) else {},
    )


def extract_metadata(hits: Iterable[SearchHit], policy: PayloadPolicy) -> List[str]:
    """Pull the metadata string out of each hit, keeping engine order."""
    out: List[str] = []
    for hit in hits:
        value = hit.payload.get(METADATA_KEY)
        if isinstance(value, str):
            out.append(value)
            continue
        if policy is PayloadPolicy.ERROR:
            raise PayloadError(hit.id, value)
        if policy is PayloadPolicy.SKIP:
            logger.warning("Skipping hit with non-string metadata | id=%s | type=%s", hit.id, type(value).__name__)
            continue
        logger.warning("Coercing non-string metadata | id=%s | type=%s", hit.id, type(value).__name__)
        out.append("" if value is None else json.dumps(value, ensure_ascii=False))
    return out


class VectorStoreClient(VectorClient):
    """
    Stateless façade mapping collection/point/search operations onto an engine protocol.

    ``collections`` serves collection management and ``points`` serves point
    operations; both are normally bound to the same connection. Nothing about
    collections or points is cached: every call asks the engine.

    Args:
        collections: Protocol handle for collection calls.
        points: Protocol handle for point calls (defaults to ``collections``).
        distance: Metric used by ``create_collection`` (default from VECTOR_DISTANCE, else Cosine).
        wait: Wait for durable apply on upsert (default from VECTOR_UPSERT_WAIT, else False).
        payload_policy: Handling of non-string metadata in search hits
            (default from VECTOR_PAYLOAD_POLICY, else coerce).
    """

    def __init__(
        self,
        collections: EngineProtocol,
        points: Optional[EngineProtocol] = None,
        distance: Union[Distance, str, None] = None,
        wait: Optional[bool] = None,
        payload_policy: Union[PayloadPolicy, str, None] = None,
    ) -> None:
        self._collections = collections
        self._points = points if points is not None else collections
        self._distance = Distance.parse(distance) if distance is not None else vector_distance()
        self._wait = bool(wait) if wait is not None else upsert_wait()
        self._policy = PayloadPolicy.parse(payload_policy) if payload_policy is not None else default_payload_policy()

    @property
    def distance(self) -> Distance:
        return self._distance

    @property
    def wait(self) -> bool:
        return self._wait

    @property
    def payload_policy(self) -> PayloadPolicy:
        return self._policy

    # --- Collections ---
    def list_collections(self, timeout: Timeout = None) -> List[str]:
        descriptors = self._collections.list_collections(timeout=timeout)
        return [str(d.get("name", "")) for d in descriptors]

    def collection_exists(self, name: str, timeout: Timeout = None) -> bool:
        found, _ = not_found_as_false(lambda: self._collections.get_collection(name, timeout=timeout))
        if not found:
            logger.debug("Collection not found | name=%s", name)
        return found

    def create_collection(self, name: str, dimensionality: int, timeout: Timeout = None) -> None:
        if isinstance(dimensionality, bool) or not isinstance(dimensionality, int) or dimensionality <= 0:
            raise ContractError(f"Dimensionality must be a positive integer, got {dimensionality!r}")
        self._collections.create_collection(name, dimensionality, self._distance.value, timeout=timeout)
        logger.info("Collection created | name=%s | dim=%d | distance=%s", name, dimensionality, self._distance.value)

    # --- Points ---
    def point_exists(self, collection: str, point_id: int, timeout: Timeout = None) -> bool:
        pid = validate_point_id(point_id)
        found, result = not_found_as_false(
            lambda: self._points.get_points(collection, [pid], with_payload=False, with_vector=False, timeout=timeout)
        )
        if not found:
            logger.debug("Point lookup not found | collection=%s | id=%d", collection, pid)
            return False
        # The engine may also answer a missing point with an empty result.
        return bool(result)

    def upsert_columnar(
        self,
        collection: str,
        ids: Sequence[int],
        embeddings: Sequence[Sequence[float]],
        metadata: Sequence[str],
        timeout: Timeout = None,
    ) -> None:
        batch = ColumnarBatch.build(ids, embeddings, metadata)
        if not len(batch):
            return
        self._points.upsert_points(collection, batch.to_points(), wait=self._wait, timeout=timeout)
        logger.debug("Upsert accepted | collection=%s | points=%d | dim=%d | wait=%s", collection, len(batch), batch.dim, self._wait)

    def search(self, collection: str, vector: Sequence[float], limit: int, timeout: Timeout = None) -> List[str]:
        if isinstance(limit, bool) or not isinstance(limit, int) or limit <= 0:
            raise ContractError(f"Search limit must be a positive integer, got {limit!r}")
        if len(vector) == 0:
            raise ContractError("Search vector must not be empty")
        raw = self._points.search_points(
            collection,
            [float(x) for x in vector],
            limit,
            with_payload=True,
            with_vector=False,
            timeout=timeout,
        )
        hits = [_to_hit(r) for r in raw]
        logger.debug("Search | collection=%s | limit=%d | hits=%d", collection, limit, len(hits))
        return extract_metadata(hits, self._policy)