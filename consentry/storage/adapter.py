"""
Storage Adapter Interface

Database-agnostic persistence contract consumed by the registry.
Records are plain dicts keyed by snake_case field names; models are
addressed by name (``subject``, ``consent``, ``auditLog``, ...).
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Sequence
from contextlib import AbstractAsyncContextManager
from dataclasses import dataclass
from typing import Any, Literal

Operator = Literal["eq", "ne", "lt", "lte", "gt", "gte", "in", "contains", "starts_with", "ends_with"]


@dataclass(frozen=True)
class Where:
    """A single AND-ed filter clause."""

    field: str
    value: Any
    operator: Operator = "eq"


@dataclass(frozen=True)
class SortBy:
    field: str
    direction: Literal["asc", "desc"] = "asc"


class Adapter(ABC):
    """Abstract storage adapter."""

    id: str = "adapter"

    @abstractmethod
    async def create(self, model: str, data: dict[str, Any]) -> dict[str, Any]:
        """Insert a record and return it with its generated ``id``."""

    @abstractmethod
    async def find_one(self, model: str, where: Sequence[Where]) -> dict[str, Any] | None:
        pass

    @abstractmethod
    async def find_many(
        self,
        model: str,
        where: Sequence[Where] = (),
        *,
        sort_by: SortBy | None = None,
        limit: int | None = None,
        offset: int = 0,
    ) -> list[dict[str, Any]]:
        pass

    @abstractmethod
    async def update(
        self,
        model: str,
        where: Sequence[Where],
        data: dict[str, Any],
    ) -> dict[str, Any] | None:
        """Update the first matching record and return it."""

    @abstractmethod
    async def delete(self, model: str, where: Sequence[Where]) -> int:
        """Delete matching records and return how many were removed."""

    async def count(self, model: str, where: Sequence[Where] = ()) -> int:
        return len(await self.find_many(model, where))

    @abstractmethod
    def transaction(self) -> AbstractAsyncContextManager[Adapter]:
        """
        Scoped transaction.

        Usage:
            async with adapter.transaction() as tx:
                await tx.create("consent", {...})

        Commits on successful exit, rolls back on any exception.
        """

    async def health_check(self) -> bool:
        return True


__all__ = ["Adapter", "Operator", "SortBy", "Where"]
