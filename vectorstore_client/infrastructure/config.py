from __future__ import annotations

import os
from typing import Optional

from ..domain.errors import ContractError
from ..domain.models import Distance, PayloadPolicy


def env_str(name: str, default: str) -> str:
    return os.getenv(name, default).strip() or default


def env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    v = raw.strip().lower()
    if v in {"1", "true", "yes", "on"}:
        return True
    if v in {"0", "false", "no", "off"}:
        return False
    return default


def qdrant_url() -> str:
    return env_str("QDRANT_URL", "http://localhost:6333").rstrip("/")


def qdrant_api_key() -> Optional[str]:
    v = os.getenv("QDRANT_API_KEY")
    return v.strip() if v is not None and v.strip() else None


def vector_distance() -> Distance:
    """
    Distance metric used when creating collections.
    Accepts the engine spelling case-insensitively ("cosine", "Dot", ...); defaults to Cosine.
    """
    try:
        return Distance.parse(env_str("VECTOR_DISTANCE", Distance.COSINE.value))
    except ContractError:
        return Distance.COSINE


def upsert_wait() -> bool:
    return env_bool("VECTOR_UPSERT_WAIT", False)


def payload_policy() -> PayloadPolicy:
    try:
        return PayloadPolicy.parse(env_str("VECTOR_PAYLOAD_POLICY", PayloadPolicy.COERCE.value))
    except ContractError:
        return PayloadPolicy.COERCE
