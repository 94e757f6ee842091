from __future__ import annotations

from typing import Any, Generic, TypeVar

from pydantic import BaseModel

T = TypeVar("T")


class ApiResponse(BaseModel, Generic[T]):
    """Success envelope wrapping every business endpoint's payload."""

    success: bool = True
    message: str | None = None
    data: T | None = None


class ItemResult(BaseModel):
    """Outcome of one item in a best-effort bulk operation."""

    key: str
    success: bool
    value: Any = None
    error: str | None = None


class BulkResult(BaseModel):
    """Per-item outcomes of a best-effort bulk operation."""

    results: list[ItemResult]
    success_count: int
    failure_count: int

    @classmethod
    def from_items(cls, results: list[ItemResult]) -> BulkResult:
        succeeded = sum(1 for r in results if r.success)
        return cls(results=results, success_count=succeeded, failure_count=len(results) - succeeded)
