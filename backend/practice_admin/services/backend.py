# backend client: generic table query/mutation interface over mongodb
# fetch(table, filters, order) -> rows, mutate(table, op, payload) -> row(s)
#
# every other module talks to the store through this client:
#   1. filters are (column, op, value) triples translated to a mongodb query
#   2. rows carry a sequential integer "id" assigned from a per-table counter
#   3. the store-internal _id never leaves this module
#   4. driver failures surface as BackendQueryError with the driver message

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Iterable, Optional, Sequence

from fastapi import Depends
from pymongo import ASCENDING, DESCENDING, ReturnDocument
from pymongo.errors import PyMongoError

from practice_admin.services.db import Database, get_db

logger = logging.getLogger(__name__)

# postgrest-style error codes kept so callers can special-case them
TABLE_NOT_FOUND_CODE = "42P01"
NO_ROWS_CODE = "PGRST116"

_OPERATORS = {
    "eq": "$eq",
    "neq": "$ne",
    "gt": "$gt",
    "gte": "$gte",
    "lt": "$lt",
    "lte": "$lte",
    "in": "$in",
    "is": "$eq",
}

MUTATION_OPS = ("insert", "update", "delete")


class BackendQueryError(Exception):
    """a query or mutation against the backend failed"""

    def __init__(self, message: str, code: Optional[str] = None, table: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.code = code
        self.table = table


class TableNotFoundError(BackendQueryError):
    def __init__(self, table: str):
        super().__init__(f'relation "{table}" does not exist', code=TABLE_NOT_FOUND_CODE, table=table)


class RecordNotFoundError(BackendQueryError):
    def __init__(self, table: str):
        super().__init__(f"no rows returned from {table}", code=NO_ROWS_CODE, table=table)


@dataclass(frozen=True)
class Filter:
    column: str
    op: str
    value: Any = None

    def __post_init__(self):
        if self.op not in _OPERATORS:
            raise ValueError(f"Unsupported filter operator: {self.op}")


@dataclass(frozen=True)
class Order:
    column: str
    ascending: bool = True


@dataclass(frozen=True)
class Embed:
    """join rows of another table through a foreign key column on the parent row"""
    foreign_key: str
    columns: tuple[str, ...] = field(default_factory=tuple)


def eq(column: str, value: Any) -> Filter:
    return Filter(column, "eq", value)


def build_query(filters: Iterable[Filter]) -> dict:
    """translate filter triples into a mongodb query document"""
    query: dict = {}
    for f in filters:
        value = None if f.op == "is" else f.value
        if f.op == "in":
            value = list(f.value)
        query.setdefault(f.column, {})[_OPERATORS[f.op]] = value
    return query


def _clean(doc: dict, columns: Optional[Sequence[str]] = None) -> dict:
    row = {k: v for k, v in doc.items() if k != "_id"}
    if columns:
        row = {k: row.get(k) for k in columns}
    return row


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


class BackendClient:
    """thin pass-through to the store; one instance per request"""

    def __init__(self, database: Database):
        self._db = database

    async def fetch(
        self,
        table: str,
        filters: Iterable[Filter] = (),
        order: Iterable[Order] = (),
        columns: Optional[Sequence[str]] = None,
        limit: Optional[int] = None,
        embed: Optional[dict[str, Embed]] = None,
        strict: bool = False,
    ) -> list[dict]:
        """filtered, ordered read. returns an empty list when nothing matches."""
        query = build_query(filters)
        sort = [(o.column, ASCENDING if o.ascending else DESCENDING) for o in order]

        projection = None
        if columns:
            wanted = set(columns)
            for rel in (embed or {}).values():
                wanted.add(rel.foreign_key)
            projection = {c: 1 for c in wanted}

        try:
            if strict and table not in await self._db.table_names():
                raise TableNotFoundError(table)

            cursor = self._db.table(table).find(query, projection)
            if sort:
                cursor = cursor.sort(sort)
            if limit:
                cursor = cursor.limit(limit)
            docs = await cursor.to_list(length=None)
        except PyMongoError as e:
            logger.error(f"Error fetching {table}: {e}")
            raise BackendQueryError(str(e), table=table) from e

        rows = [_clean(doc) for doc in docs]
        if embed:
            for name, rel in embed.items():
                await self._embed(rows, name, rel)
        if columns:
            keep = list(columns) + list((embed or {}).keys())
            rows = [{k: row.get(k) for k in keep} for row in rows]

        logger.debug(f"Fetched {len(rows)} rows from {table}")
        return rows

    async def fetch_one(
        self,
        table: str,
        filters: Iterable[Filter],
        columns: Optional[Sequence[str]] = None,
    ) -> dict:
        """single-row read, raises RecordNotFoundError when nothing matches"""
        rows = await self.fetch(table, filters, columns=columns, limit=1)
        if not rows:
            raise RecordNotFoundError(table)
        return rows[0]

    async def mutate(
        self,
        table: str,
        op: str,
        payload: Optional[dict] = None,
        filters: Iterable[Filter] = (),
    ):
        """insert returns the new row, update and delete return the affected rows"""
        if op not in MUTATION_OPS:
            raise ValueError(f"Unsupported mutation: {op}")

        filters = list(filters)
        try:
            if op == "insert":
                return await self._insert(table, dict(payload or {}))
            if op == "update":
                return await self._update(table, dict(payload or {}), filters)
            return await self._delete(table, filters)
        except PyMongoError as e:
            logger.error(f"Error running {op} on {table}: {e}")
            raise BackendQueryError(str(e), table=table) from e

    # convenience wrappers

    async def insert(self, table: str, payload: dict) -> dict:
        return await self.mutate(table, "insert", payload)

    async def update(self, table: str, payload: dict, filters: Iterable[Filter]) -> list[dict]:
        return await self.mutate(table, "update", payload, filters)

    async def update_one(self, table: str, record_id: int, payload: dict) -> dict:
        rows = await self.update(table, payload, [eq("id", record_id)])
        if not rows:
            raise RecordNotFoundError(table)
        return rows[0]

    async def delete(self, table: str, filters: Iterable[Filter]) -> list[dict]:
        return await self.mutate(table, "delete", filters=filters)

    async def delete_one(self, table: str, record_id: int) -> dict:
        rows = await self.delete(table, [eq("id", record_id)])
        if not rows:
            raise RecordNotFoundError(table)
        return rows[0]

    # internals

    async def _next_id(self, table: str) -> int:
        counter = await self._db.counters.find_one_and_update(
            {"_id": table},
            {"$inc": {"seq": 1}},
            upsert=True,
            return_document=ReturnDocument.AFTER,
        )
        return int(counter["seq"])

    async def _insert(self, table: str, payload: dict) -> dict:
        payload.pop("_id", None)
        if payload.get("id") is None:
            payload["id"] = await self._next_id(table)
        payload.setdefault("created_at", _now_iso())
        doc = dict(payload)
        await self._db.table(table).insert_one(doc)
        logger.info(f"Inserted row {payload['id']} into {table}")
        return _clean(payload)

    async def _update(self, table: str, payload: dict, filters: list[Filter]) -> list[dict]:
        if not filters:
            raise BackendQueryError(f"update on {table} requires a filter", table=table)
        payload.pop("_id", None)
        payload.pop("id", None)
        payload["updated_at"] = _now_iso()

        collection = self._db.table(table)
        query = build_query(filters)
        matched = await collection.find(query, {"id": 1}).to_list(length=None)
        ids = [doc["id"] for doc in matched if "id" in doc]
        if not ids:
            return []

        await collection.update_many({"id": {"$in": ids}}, {"$set": payload})
        docs = await collection.find({"id": {"$in": ids}}).to_list(length=None)
        logger.info(f"Updated {len(docs)} rows in {table}")
        return [_clean(doc) for doc in docs]

    async def _delete(self, table: str, filters: list[Filter]) -> list[dict]:
        if not filters:
            raise BackendQueryError(f"delete on {table} requires a filter", table=table)
        collection = self._db.table(table)
        query = build_query(filters)
        docs = await collection.find(query).to_list(length=None)
        if docs:
            await collection.delete_many(query)
            logger.info(f"Deleted {len(docs)} rows from {table}")
        return [_clean(doc) for doc in docs]

    async def _embed(self, rows: list[dict], table: str, rel: Embed):
        keys = {row.get(rel.foreign_key) for row in rows} - {None}
        related: dict = {}
        if keys:
            try:
                docs = await self._db.table(table).find({"id": {"$in": list(keys)}}).to_list(length=None)
            except PyMongoError as e:
                logger.error(f"Error embedding {table}: {e}")
                raise BackendQueryError(str(e), table=table) from e
            related = {doc["id"]: _clean(doc, rel.columns or None) for doc in docs}
        for row in rows:
            row[table] = related.get(row.get(rel.foreign_key))


async def get_backend(db: Database = Depends(get_db)) -> BackendClient:
    """dependency injection for the backend client"""
    return BackendClient(db)
