"""Schema installation for a MySQL data backend (used by AUTO_INIT_DB and scripts/init_db.py)."""
from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Iterator

import mysql.connector

from .connection import DatabaseConnection, DBConfig

logger = logging.getLogger(__name__)

# quoted strings are kept whole so a ';' inside them never ends a statement
_SQL_TOKEN = re.compile(r"""'(?:[^'\\]|\\.)*'|"(?:[^"\\]|\\.)*"|;|[^'";]+|['"]""", re.S)
_LINE_COMMENT = re.compile(r"(?m)^\s*--.*$")
_DB_SWITCH = re.compile(r"(?im)^\s*(?:CREATE\s+DATABASE|USE)\b[^;]*;")


def iter_sql_statements(sql: str) -> Iterator[str]:
    statement: list[str] = []
    for token in _SQL_TOKEN.findall(sql):
        if token == ";":
            text = "".join(statement).strip()
            statement.clear()
            if text:
                yield text
        else:
            statement.append(token)
    tail = "".join(statement).strip()
    if tail:
        yield tail


def prepare_schema(sql: str) -> str:
    """Drop comments and database selection; the target database comes from DB_NAME."""
    return _DB_SWITCH.sub("", _LINE_COMMENT.sub("", sql))


def ensure_database_exists(config: DBConfig) -> None:
    conn = mysql.connector.connect(
        host=config.host,
        port=config.port,
        user=config.user,
        password=config.password,
        use_pure=True,
    )
    try:
        cur = conn.cursor()
        cur.execute(
            f"CREATE DATABASE IF NOT EXISTS `{config.database}` CHARACTER SET utf8mb4 COLLATE utf8mb4_unicode_ci"
        )
        conn.commit()
    finally:
        conn.close()


def apply_schema(config: DBConfig, *, schema_path: str | Path) -> None:
    """Create the database if needed and run every statement of schema.sql (CREATE ... IF NOT EXISTS)."""
    ensure_database_exists(config)
    statements = list(iter_sql_statements(prepare_schema(Path(schema_path).read_text(encoding="utf-8"))))

    conn = DatabaseConnection(config).connect()
    try:
        cur = conn.cursor()
        for stmt in statements:
            cur.execute(stmt)
        conn.commit()
    finally:
        conn.close()
    logger.info("applied %d schema statements to %s", len(statements), config.database)


def list_tables(config: DBConfig) -> list[str]:
    conn = DatabaseConnection(config).connect()
    try:
        cur = conn.cursor()
        cur.execute("SHOW TABLES")
        return [row[0] for row in cur.fetchall()]
    finally:
        conn.close()
