from __future__ import annotations

import json
import logging
from contextlib import contextmanager
from typing import Any, List, Mapping, Optional, Sequence, Tuple

import mysql.connector

from ..core.exceptions import StorageError
from .connection import DatabaseConnection
from .document_store import Document, Filter, Sort, check_name
from .mysql_base import db_cursor, fetchall, fetchone, load_json_column

logger = logging.getLogger(__name__)


def _json_path(field: str) -> str:
    return "$." + check_name(field)


def _where(filter: Filter) -> Tuple[str, List[Any]]:
    clauses = ["1=1"]
    params: List[Any] = []
    for field, value in filter.items():
        path = _json_path(field)
        if value is None:
            clauses.append(f"(JSON_EXTRACT(body, '{path}') IS NULL OR JSON_TYPE(JSON_EXTRACT(body, '{path}')) = 'NULL')")
        else:
            clauses.append(f"JSON_EXTRACT(body, '{path}') = CAST(%s AS JSON)")
            params.append(json.dumps(value))
    return " AND ".join(clauses), params


def _set_clause(patch: Mapping[str, Any]) -> Tuple[str, List[Any]]:
    parts: List[str] = []
    params: List[Any] = []
    for field, value in patch.items():
        parts.append(f"'{_json_path(field)}', CAST(%s AS JSON)")
        params.append(json.dumps(value))
    return "JSON_SET(body, " + ", ".join(parts) + ")", params


class MySQLDocumentStore:
    """Document store on MySQL: one table per collection, one JSON row per document.

    Tables are created by `database.bootstrap.apply_schema`.
    """

    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    @contextmanager
    def _cursor(self, action: str):
        try:
            with db_cursor(self._conn_factory) as (conn, cur):
                yield conn, cur
        except mysql.connector.Error as ex:
            logger.error(f"MySQL {action} failed: {ex}")
            raise StorageError(f"Storage failure during {action}") from ex

    def find_one(self, collection: str, filter: Filter) -> Optional[Document]:
        found = self.find(collection, filter, limit=1)
        return found[0] if found else None

    def find(
        self,
        collection: str,
        filter: Filter,
        *,
        sort: Optional[Sort] = None,
        limit: Optional[int] = None,
    ) -> Sequence[Document]:
        table = check_name(collection)
        where, params = _where(filter)
        order = ""
        if sort:
            order = "ORDER BY " + ", ".join(
                f"JSON_EXTRACT(body, '{_json_path(field)}') {'DESC' if direction < 0 else 'ASC'}"
                for field, direction in sort
            )
        sql = f"SELECT body FROM `{table}` WHERE {where} {order}"
        if limit is not None:
            sql += " LIMIT %s"
            params.append(max(int(limit), 0))

        with self._cursor(f"find on {table}") as (_, cur):
            cur.execute(sql, tuple(params))
            return [load_json_column(r["body"]) for r in fetchall(cur)]

    def insert_one(self, collection: str, doc: Document) -> None:
        table = check_name(collection)
        if not doc.get("id"):
            raise StorageError("Document id is required")
        with self._cursor(f"insert into {table}") as (_, cur):
            cur.execute(
                f"INSERT INTO `{table}`(doc_id, body) VALUES(%s, %s)",
                (str(doc["id"]), json.dumps(doc)),
            )

    def update_one(self, collection: str, filter: Filter, patch: Mapping[str, Any]) -> int:
        if not patch:
            return 0
        table = check_name(collection)
        where, params = _where(filter)
        setter, set_params = _set_clause(patch)
        with self._cursor(f"update on {table}") as (_, cur):
            cur.execute(f"SELECT doc_id FROM `{table}` WHERE {where} LIMIT 1 FOR UPDATE", tuple(params))
            row = fetchone(cur)
            if not row:
                return 0
            cur.execute(
                f"UPDATE `{table}` SET body = {setter} WHERE doc_id=%s",
                tuple(set_params + [row["doc_id"]]),
            )
            return 1

    def update_many(self, collection: str, filter: Filter, patch: Mapping[str, Any]) -> int:
        if not patch:
            return 0
        table = check_name(collection)
        where, params = _where(filter)
        setter, set_params = _set_clause(patch)
        with self._cursor(f"update on {table}") as (_, cur):
            cur.execute(f"UPDATE `{table}` SET body = {setter} WHERE {where}", tuple(set_params + params))
            return int(cur.rowcount)

    def delete_one(self, collection: str, filter: Filter) -> int:
        table = check_name(collection)
        where, params = _where(filter)
        with self._cursor(f"delete on {table}") as (_, cur):
            cur.execute(f"DELETE FROM `{table}` WHERE {where} LIMIT 1", tuple(params))
            return int(cur.rowcount)

    def delete_many(self, collection: str, filter: Filter) -> int:
        table = check_name(collection)
        where, params = _where(filter)
        with self._cursor(f"delete on {table}") as (_, cur):
            cur.execute(f"DELETE FROM `{table}` WHERE {where}", tuple(params))
            return int(cur.rowcount)

    def count(self, collection: str, filter: Filter) -> int:
        table = check_name(collection)
        where, params = _where(filter)
        with self._cursor(f"count on {table}") as (_, cur):
            cur.execute(f"SELECT COUNT(*) AS n FROM `{table}` WHERE {where}", tuple(params))
            row = fetchone(cur)
            return int(row["n"]) if row else 0

    def close(self) -> None:
        # Connections are per operation; nothing to release.
        pass
