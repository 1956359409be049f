from __future__ import annotations

import os

from ..domain.interfaces import Timeout

DEFAULT_HTTP_TIMEOUT = 15.0


def http_timeout_seconds() -> float:
    try:
        value = float(os.getenv("VECTOR_HTTP_TIMEOUT", str(DEFAULT_HTTP_TIMEOUT)))
    except ValueError:
        return DEFAULT_HTTP_TIMEOUT
    return value if value > 0 else DEFAULT_HTTP_TIMEOUT


def resolve_timeout(timeout: Timeout, default: Timeout = None) -> Timeout:
    """Per-call timeout wins; otherwise the client default, then the env default."""
    if timeout is not None:
        return timeout
    if default is not None:
        return default
    return http_timeout_seconds()
