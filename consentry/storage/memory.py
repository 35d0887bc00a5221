"""
In-Memory Storage Adapter

Dict-backed adapter used for development and tests. Writes made inside a
transaction are journaled with the prior state of each touched record and
undone if the block raises; nested transactions in the same task behave
as savepoints. Writes made outside the transaction are never rolled back.
"""

from __future__ import annotations

import asyncio
import copy
from collections.abc import AsyncGenerator, Sequence
from contextlib import asynccontextmanager
from contextvars import ContextVar
from typing import Any
from uuid import uuid4

import structlog

from consentry.storage.adapter import Adapter, SortBy, Where

logger = structlog.get_logger(__name__)

# (model, record id, prior record or None when the write created it)
JournalEntry = tuple[str, str, dict[str, Any] | None]

ID_PREFIXES: dict[str, str] = {
    "subject": "sub",
    "domain": "dom",
    "consentPolicy": "pol",
    "consentPurpose": "pur",
    "consent": "cns",
    "consentRecord": "rec",
    "auditLog": "log",
}


def generate_id(model: str) -> str:
    prefix = ID_PREFIXES.get(model, model[:3].lower())
    return f"{prefix}_{uuid4().hex}"


def _matches(record: dict[str, Any], clause: Where) -> bool:
    value = record.get(clause.field)
    expected = clause.value
    op = clause.operator

    if op == "eq":
        return value == expected
    if op == "ne":
        return value != expected
    if op == "in":
        return value in expected
    if op == "contains":
        if isinstance(value, (list, tuple, set)):
            return expected in value
        return isinstance(value, str) and str(expected) in value
    if op == "starts_with":
        return isinstance(value, str) and value.startswith(str(expected))
    if op == "ends_with":
        return isinstance(value, str) and value.endswith(str(expected))

    if value is None or expected is None:
        return False
    if op == "lt":
        return value < expected
    if op == "lte":
        return value <= expected
    if op == "gt":
        return value > expected
    if op == "gte":
        return value >= expected
    raise ValueError(f"Unsupported operator: {op}")


class MemoryAdapter(Adapter):
    """Adapter keeping every table in process memory."""

    id = "memory"

    def __init__(self) -> None:
        self._tables: dict[str, dict[str, dict[str, Any]]] = {}
        self._lock = asyncio.Lock()
        self._journal: ContextVar[list[JournalEntry] | None] = ContextVar(
            f"memory_adapter_tx_{id(self)}", default=None
        )

    def _table(self, model: str) -> dict[str, dict[str, Any]]:
        return self._tables.setdefault(model, {})

    def _remember(self, model: str, record_id: str, previous: dict[str, Any] | None) -> None:
        journal = self._journal.get()
        if journal is not None:
            journal.append((model, record_id, copy.deepcopy(previous)))

    def _undo(self, journal: list[JournalEntry], mark: int) -> None:
        while len(journal) > mark:
            model, record_id, previous = journal.pop()
            table = self._table(model)
            if previous is None:
                table.pop(record_id, None)
            else:
                table[record_id] = previous

    def _select(self, model: str, where: Sequence[Where]) -> list[dict[str, Any]]:
        return [
            record
            for record in self._table(model).values()
            if all(_matches(record, clause) for clause in where)
        ]

    async def create(self, model: str, data: dict[str, Any]) -> dict[str, Any]:
        record = copy.deepcopy(data)
        record["id"] = record.get("id") or generate_id(model)
        table = self._table(model)
        if record["id"] in table:
            raise ValueError(f"Duplicate id for {model}: {record['id']}")
        table[record["id"]] = record
        self._remember(model, record["id"], None)
        return copy.deepcopy(record)

    async def find_one(self, model: str, where: Sequence[Where]) -> dict[str, Any] | None:
        matches = self._select(model, where)
        return copy.deepcopy(matches[0]) if matches else None

    async def find_many(
        self,
        model: str,
        where: Sequence[Where] = (),
        *,
        sort_by: SortBy | None = None,
        limit: int | None = None,
        offset: int = 0,
    ) -> list[dict[str, Any]]:
        records = self._select(model, where)

        if sort_by is not None:
            present = [r for r in records if r.get(sort_by.field) is not None]
            missing = [r for r in records if r.get(sort_by.field) is None]
            present.sort(key=lambda r: r[sort_by.field], reverse=sort_by.direction == "desc")
            records = present + missing

        records = records[offset:]
        if limit is not None:
            records = records[:limit]
        return copy.deepcopy(records)

    async def update(
        self,
        model: str,
        where: Sequence[Where],
        data: dict[str, Any],
    ) -> dict[str, Any] | None:
        matches = self._select(model, where)
        if not matches:
            return None
        record = matches[0]
        self._remember(model, record["id"], record)
        record.update(copy.deepcopy({k: v for k, v in data.items() if k != "id"}))
        return copy.deepcopy(record)

    async def delete(self, model: str, where: Sequence[Where]) -> int:
        table = self._table(model)
        doomed = self._select(model, where)
        for record in doomed:
            self._remember(model, record["id"], record)
            del table[record["id"]]
        return len(doomed)

    @asynccontextmanager
    async def transaction(self) -> AsyncGenerator[MemoryAdapter, None]:
        current = self._journal.get()
        if current is not None:
            async with self._savepoint(current):
                yield self
            return

        async with self._lock:
            journal: list[JournalEntry] = []
            token = self._journal.set(journal)
            try:
                async with self._savepoint(journal):
                    yield self
            finally:
                self._journal.reset(token)

    @asynccontextmanager
    async def _savepoint(self, journal: list[JournalEntry]) -> AsyncGenerator[None, None]:
        mark = len(journal)
        try:
            yield
        except BaseException:
            undone = len(journal) - mark
            self._undo(journal, mark)
            logger.debug("memory_transaction_rolled_back", writes_undone=undone)
            raise

    async def health_check(self) -> bool:
        return True

    def clear(self) -> None:
        self._tables.clear()


__all__ = ["MemoryAdapter", "generate_id"]
