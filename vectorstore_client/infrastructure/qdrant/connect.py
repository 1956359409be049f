from __future__ import annotations

import threading
from typing import Callable, Optional, Tuple, Union
from urllib.parse import urlparse

from ...application.vector_client import VectorStoreClient
from ...domain.errors import ContractError
from ...domain.interfaces import Timeout
from ...domain.models import Distance, PayloadPolicy
from ..config import qdrant_api_key, qdrant_url
from ..logging import get_logger
from .client import QdrantRestProtocol

logger = get_logger("vectorstore_client.qdrant")


def normalize_address(address: str) -> str:
    """
    Validate an engine address and return its base URL.

    Accepts ``http(s)://host[:port][/prefix]`` or a bare ``host:port``
    (``http://`` is assumed). Raises ContractError for anything that could
    not be dialled: empty or whitespace-bearing input, other schemes, a
    missing host, or a non-numeric / out-of-range port.
    """
    if not isinstance(address, str) or not address.strip():
        raise ContractError("Engine address must be a non-empty string")
    s = address.strip()
    if any(ch.isspace() for ch in s):
        raise ContractError(f"Engine address contains whitespace: {address!r}")
    if "://" not in s:
        s = f"http://{s}"
    parsed = urlparse(s)
    if parsed.scheme not in {"http", "https"}:
        raise ContractError(f"Unsupported engine address scheme: {parsed.scheme!r}")
    if not parsed.hostname:
        raise ContractError(f"Engine address has no host: {address!r}")
    try:
        parsed.port
    except ValueError as ex:
        raise ContractError(f"Engine address has an invalid port: {address!r}") from ex
    return f"{parsed.scheme}://{parsed.netloc}{parsed.path.rstrip('/')}"


def _close_once(close: Callable[[], None], base: str) -> Callable[[], None]:
    lock = threading.Lock()
    closed = False

    def dispose() -> None:
        nonlocal closed
        with lock:
            if closed:
                return
            closed = True
        close()
        logger.debug("Engine connection closed | url=%s", base)

    return dispose


def new_qdrant_client(
    address: Optional[str] = None,
    *,
    api_key: Optional[str] = None,
    distance: Union[Distance, str, None] = None,
    wait: Optional[bool] = None,
    payload_policy: Union[PayloadPolicy, str, None] = None,
    timeout: Timeout = None,
) -> Tuple[VectorStoreClient, Callable[[], None]]:
    """
    Build a client bound to one Qdrant engine.

    Nothing is sent to the engine here; reachability errors surface on the
    first operation. A malformed address fails immediately.

    Args:
        address: Engine URL or ``host:port``; defaults to QDRANT_URL.
        api_key: Sent as the ``api-key`` header; defaults to QDRANT_API_KEY.
        distance: Metric for new collections (default Cosine).
        wait: Wait for durable apply on upsert (default False).
        payload_policy: Handling of non-string metadata in search results.
        timeout: Default per-request timeout; defaults to VECTOR_HTTP_TIMEOUT.

    Returns:
        Tuple[VectorStoreClient, Callable[[], None]]: the client and an
        idempotent ``close`` releasing the connection.
    """
    base = normalize_address(address if address is not None else qdrant_url())
    # Reject bad options before a session exists.
    if distance is not None:
        distance = Distance.parse(distance)
    if payload_policy is not None:
        payload_policy = PayloadPolicy.parse(payload_policy)
    protocol = QdrantRestProtocol(base, api_key=api_key or qdrant_api_key(), timeout=timeout)
    client = VectorStoreClient(
        protocol,
        protocol,
        distance=distance,
        wait=wait,
        payload_policy=payload_policy,
    )
    logger.info("Engine client ready | url=%s | distance=%s | wait=%s", base, client.distance.value, client.wait)
    return client, _close_once(protocol.close, base)
