"""
Base Repository

Common find/create/update operations over the storage adapter, with
database hooks applied around writes.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any, Generic, TypeVar

import structlog
from pydantic import BaseModel

from consentry.storage.adapter import Adapter, SortBy, Where
from consentry.utils.awaitables import maybe_await

T = TypeVar("T", bound=BaseModel)

BeforeWriteHook = Callable[[dict[str, Any]], "Awaitable[Any] | Any"]
AfterWriteHook = Callable[[dict[str, Any]], "Awaitable[Any] | Any"]


@dataclass
class ModelHooks:
    """
    Hooks around writes to one model.

    ``before`` receives the data about to be written and may return
    ``False`` to abort the write or ``{"data": {...}}`` to patch it.
    ``after`` receives the stored record.
    """

    before: BeforeWriteHook | None = None
    after: AfterWriteHook | None = None


@dataclass
class DatabaseHooks:
    create: dict[str, ModelHooks] = field(default_factory=dict)
    update: dict[str, ModelHooks] = field(default_factory=dict)


class BaseRepository(ABC, Generic[T]):
    """Repository over a single storage model."""

    def __init__(self, adapter: Adapter, database_hooks: Sequence[DatabaseHooks] = ()) -> None:
        self.adapter = adapter
        self.database_hooks = list(database_hooks)
        self.logger = structlog.get_logger(self.__class__.__name__)

    @property
    @abstractmethod
    def model_name(self) -> str:
        """Model name understood by the adapter."""

    @property
    @abstractmethod
    def model_class(self) -> type[T]:
        pass

    def bind(self, adapter: Adapter) -> BaseRepository[T]:
        """Same repository over another adapter handle (e.g. a transaction)."""
        return type(self)(adapter, self.database_hooks)

    @staticmethod
    def _now() -> datetime:
        return datetime.now(UTC)

    def _to_model(self, record: dict[str, Any] | None) -> T | None:
        if record is None:
            return None
        return self.model_class.model_validate(record)

    def _to_models(self, records: list[dict[str, Any]]) -> list[T]:
        return [self.model_class.model_validate(record) for record in records]

    # -------------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------------

    async def get_by_id(self, entity_id: str) -> T | None:
        return self._to_model(await self.adapter.find_one(self.model_name, [Where("id", entity_id)]))

    async def find_one(self, *where: Where) -> T | None:
        return self._to_model(await self.adapter.find_one(self.model_name, where))

    async def find_many(
        self,
        *where: Where,
        sort_by: SortBy | None = None,
        limit: int | None = None,
    ) -> list[T]:
        records = await self.adapter.find_many(self.model_name, where, sort_by=sort_by, limit=limit)
        return self._to_models(records)

    # -------------------------------------------------------------------------
    # Writes
    # -------------------------------------------------------------------------

    async def _run_before(self, kind: str, data: dict[str, Any]) -> dict[str, Any] | None:
        for hooks in self.database_hooks:
            model_hooks = getattr(hooks, kind).get(self.model_name)
            if model_hooks is None or model_hooks.before is None:
                continue
            result = await maybe_await(model_hooks.before(dict(data)))
            if result is False:
                self.logger.info("write_aborted_by_hook", model=self.model_name, operation=kind)
                return None
            if isinstance(result, dict) and isinstance(result.get("data"), dict):
                data = {**data, **result["data"]}
        return data

    async def _run_after(self, kind: str, record: dict[str, Any]) -> None:
        for hooks in self.database_hooks:
            model_hooks = getattr(hooks, kind).get(self.model_name)
            if model_hooks is not None and model_hooks.after is not None:
                await maybe_await(model_hooks.after(dict(record)))

    async def create(self, data: dict[str, Any]) -> T | None:
        """Create a record; returns None when a database hook aborts the write."""
        now = self._now()
        payload = dict(data)
        for stamp in ("created_at", "updated_at"):
            if stamp in self.model_class.model_fields:
                payload.setdefault(stamp, now)

        payload = await self._run_before("create", payload)
        if payload is None:
            return None

        record = await self.adapter.create(self.model_name, payload)
        await self._run_after("create", record)
        return self._to_model(record)

    async def update(self, entity_id: str, data: dict[str, Any]) -> T | None:
        payload = dict(data)
        if "updated_at" in self.model_class.model_fields:
            payload.setdefault("updated_at", self._now())

        payload = await self._run_before("update", payload)
        if payload is None:
            return None

        record = await self.adapter.update(self.model_name, [Where("id", entity_id)], payload)
        if record is not None:
            await self._run_after("update", record)
        return self._to_model(record)


__all__ = ["BaseRepository", "DatabaseHooks", "ModelHooks"]
