from __future__ import annotations

import logging
import uuid

from werkzeug.security import generate_password_hash

from ..core.constants import COLLECTIONS, USERS
from ..core.enums import Role
from .connection import DatabaseConnection
from .document_store import DocumentStore, check_name
from .mysql_base import db_cursor

logger = logging.getLogger(__name__)

_TABLE_DDL = """
CREATE TABLE IF NOT EXISTS `{table}` (
    doc_id VARCHAR(64) NOT NULL PRIMARY KEY,
    body JSON NOT NULL,
    created_at TIMESTAMP NOT NULL DEFAULT CURRENT_TIMESTAMP
) CHARACTER SET utf8mb4 COLLATE utf8mb4_unicode_ci
"""


def ensure_database_exists(conn_factory: DatabaseConnection) -> None:
    database = check_name(conn_factory.config.database)
    conn = conn_factory.connect(with_database=False)
    try:
        cur = conn.cursor()
        cur.execute(
            f"CREATE DATABASE IF NOT EXISTS `{database}` CHARACTER SET utf8mb4 COLLATE utf8mb4_unicode_ci;"
        )
        conn.commit()
    finally:
        conn.close()


def apply_schema(conn_factory: DatabaseConnection) -> None:
    """Create one JSON-document table per collection (idempotent)."""
    ensure_database_exists(conn_factory)
    with db_cursor(conn_factory, dictionary=False) as (_, cur):
        for table in COLLECTIONS:
            cur.execute(_TABLE_DDL.format(table=check_name(table)))
    logger.info(f"Schema ready ({len(COLLECTIONS)} collections).")


def list_tables(conn_factory: DatabaseConnection) -> list[str]:
    with db_cursor(conn_factory, dictionary=False) as (_, cur):
        cur.execute("SHOW TABLES")
        return [row[0] for row in cur.fetchall()]


DEMO_USERS = (
    ("Store Admin", "admin", "1111", Role.ADMIN),
    ("Asha Employee", "asha", "2222", Role.EMPLOYEE),
)


def ensure_demo_users(store: DocumentStore) -> None:
    """Insert the demo admin/employee when missing (matched by username)."""
    for name, username, pin, role in DEMO_USERS:
        if store.find_one(USERS, {"username": username}):
            continue
        store.insert_one(
            USERS,
            {
                "id": str(uuid.uuid4()),
                "name": name,
                "username": username,
                "pinHash": generate_password_hash(pin),
                "role": role.value,
            },
        )
        logger.info(f"Demo user '{username}' ({role.value}) created.")
