from __future__ import annotations

import json

import mysql.connector
import pytest

from src.storeshift.storeshift.core.exceptions import StorageError
from src.storeshift.storeshift.database.mysql_document_store import MySQLDocumentStore


class FakeCursor:
    def __init__(self, conn):
        self._conn = conn
        self.rowcount = 0

    def execute(self, sql, params=()):
        self._conn.executed.append((" ".join(sql.split()), params))
        if self._conn.error:
            raise self._conn.error
        self.rowcount = self._conn.rowcount

    def fetchone(self):
        return self._conn.rows[0] if self._conn.rows else None

    def fetchall(self):
        return list(self._conn.rows)

    def close(self):
        pass


class FakeConnection:
    def __init__(self, rows=None, rowcount=0, error=None):
        self.rows = rows or []
        self.rowcount = rowcount
        self.error = error
        self.executed = []
        self.committed = False
        self.rolled_back = False

    def cursor(self, dictionary=True):
        return FakeCursor(self)

    def commit(self):
        self.committed = True

    def rollback(self):
        self.rolled_back = True

    def close(self):
        pass


class FakeConnFactory:
    def __init__(self, conn):
        self.conn = conn

    def connect(self, *, with_database=True):
        return self.conn


def test_find_builds_json_filter_sort_and_limit():
    conn = FakeConnection(rows=[{"body": json.dumps({"id": "n1", "read": False})}])
    store = MySQLDocumentStore(FakeConnFactory(conn))

    found = store.find("notifications", {"targetUserId": "u1", "data.approvalId": "a1"}, sort=[("createdAt", -1)], limit=5)

    assert found == [{"id": "n1", "read": False}]
    sql, params = conn.executed[0]
    assert sql == (
        "SELECT body FROM `notifications` WHERE 1=1 "
        "AND JSON_EXTRACT(body, '$.targetUserId') = CAST(%s AS JSON) "
        "AND JSON_EXTRACT(body, '$.data.approvalId') = CAST(%s AS JSON) "
        "ORDER BY JSON_EXTRACT(body, '$.createdAt') DESC LIMIT %s"
    )
    assert params == ('"u1"', '"a1"', 5)


def test_conditional_update_reports_no_match():
    conn = FakeConnection(rows=[])
    store = MySQLDocumentStore(FakeConnFactory(conn))

    matched = store.update_one("lateApprovals", {"id": "a1", "status": "pending"}, {"status": "approved"})

    assert matched == 0
    assert len(conn.executed) == 1
    assert conn.executed[0][0].endswith("LIMIT 1 FOR UPDATE")


def test_update_one_patches_the_locked_row():
    conn = FakeConnection(rows=[{"doc_id": "a1"}])
    store = MySQLDocumentStore(FakeConnFactory(conn))

    assert store.update_one("lateApprovals", {"id": "a1"}, {"status": "approved"}) == 1
    sql, params = conn.executed[1]
    assert sql == "UPDATE `lateApprovals` SET body = JSON_SET(body, '$.status', CAST(%s AS JSON)) WHERE doc_id=%s"
    assert params == ('"approved"', "a1")
    assert conn.committed


def test_connector_errors_become_storage_errors():
    conn = FakeConnection(error=mysql.connector.Error("gone away"))
    store = MySQLDocumentStore(FakeConnFactory(conn))

    with pytest.raises(StorageError):
        store.count("attendance", {})

    assert conn.rolled_back
