from __future__ import annotations


class VectorStoreError(RuntimeError):
    """Raised when the vector engine answers with something the client cannot decode."""


class PayloadError(VectorStoreError):
    """Raised when a search hit carries metadata that is not a plain string."""

    def __init__(self, point_id: object, value: object) -> None:
        super().__init__(f"Point {point_id} has non-string metadata of type {type(value).__name__}")
        self.point_id = point_id
        self.value = value


class ContractError(ValueError):
    """Raised when request violates documented contract (e.g., ID format)."""
