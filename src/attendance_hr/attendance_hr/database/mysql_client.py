from __future__ import annotations

import logging
import re
import uuid
from contextlib import contextmanager
from typing import Any, Mapping, Optional, Sequence

import mysql.connector
from mysql.connector import errorcode

from ..core.exceptions import ConflictError, NotFoundError, RemoteUnavailableError, ValidationError
from .client import Entity, Filter, Order
from .connection import DatabaseConnection
from .mysql_base import db_cursor, from_mysql_value, to_mysql_value

logger = logging.getLogger(__name__)

_IDENTIFIER = re.compile(r"^[a-z_][a-z0-9_]*$")

_SQL_OPS = {"eq": "=", "neq": "<>", "gte": ">=", "lte": "<="}


def _ident(name: str) -> str:
    if not _IDENTIFIER.match(name or ""):
        raise ValidationError(f"Invalid column name: {name!r}")
    return f"`{name}`"


def _table(entity: str) -> str:
    if entity not in Entity.ALL:
        raise ValidationError(f"Unknown entity: {entity!r}")
    return f"`{entity}`"


def _where(filters: Sequence[Filter]) -> tuple[str, list]:
    clauses: list[str] = []
    params: list = []
    for f in filters:
        col = _ident(f.column)
        if f.op == "in":
            values = list(f.value)
            if not values:
                clauses.append("1=0")
                continue
            clauses.append(f"{col} IN ({', '.join(['%s'] * len(values))})")
            params.extend(to_mysql_value(v) for v in values)
        elif f.value is None and f.op in ("eq", "neq"):
            clauses.append(f"{col} IS {'NOT ' if f.op == 'neq' else ''}NULL")
        else:
            clauses.append(f"{col} {_SQL_OPS[f.op]} %s")
            params.append(to_mysql_value(f.value))
    if not clauses:
        return "", params
    return " WHERE " + " AND ".join(clauses), params


def _row_out(row: Optional[Mapping[str, Any]]) -> Optional[dict]:
    if row is None:
        return None
    return {k: from_mysql_value(v) for k, v in row.items()}


class MySQLDataClient:
    """DataClient over mysql-connector; one short-lived connection per call."""

    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    @contextmanager
    def _guard(self, action: str, entity: str):
        try:
            yield
        except mysql.connector.IntegrityError as e:
            if e.errno == errorcode.ER_DUP_ENTRY:
                raise ConflictError(f"Duplicate {entity} row", details=str(e)) from e
            logger.exception("%s on %s violated a constraint", action, entity)
            raise ValidationError(f"Invalid {entity} data", details=str(e)) from e
        except mysql.connector.Error as e:
            logger.exception("%s on %s failed", action, entity)
            raise RemoteUnavailableError(f"Could not {action} {entity}", details=str(e)) from e

    def query(
        self,
        entity: str,
        *,
        filters: Sequence[Filter] = (),
        columns: Optional[Sequence[str]] = None,
        order: Sequence[Order] = (),
        limit: Optional[int] = None,
    ) -> list[dict]:
        cols = ", ".join(_ident(c) for c in columns) if columns else "*"
        where, params = _where(filters)
        sql = f"SELECT {cols} FROM {_table(entity)}{where}"
        if order:
            sql += " ORDER BY " + ", ".join(
                f"{_ident(o.column)} {'ASC' if o.ascending else 'DESC'}" for o in order
            )
        if limit is not None:
            sql += " LIMIT %s"
            params.append(int(limit))
        with self._guard("query", entity):
            with db_cursor(self._conn_factory) as (_, cur):
                cur.execute(sql, tuple(params))
                return [_row_out(r) for r in cur.fetchall() or []]

    def count(self, entity: str, *, filters: Sequence[Filter] = ()) -> int:
        where, params = _where(filters)
        with self._guard("count", entity):
            with db_cursor(self._conn_factory) as (_, cur):
                cur.execute(f"SELECT COUNT(*) AS n FROM {_table(entity)}{where}", tuple(params))
                row = cur.fetchone()
                return int(row["n"]) if row else 0

    def _get(self, cur, entity: str, row_id: str) -> Optional[dict]:
        cur.execute(f"SELECT * FROM {_table(entity)} WHERE `id`=%s", (row_id,))
        return _row_out(cur.fetchone())

    def insert(self, entity: str, row: Mapping[str, Any]) -> dict:
        data = dict(row)
        data.setdefault("id", str(uuid.uuid4()))
        cols = list(data)
        sql = (
            f"INSERT INTO {_table(entity)}({', '.join(_ident(c) for c in cols)}) "
            f"VALUES({', '.join(['%s'] * len(cols))})"
        )
        with self._guard("insert", entity):
            with db_cursor(self._conn_factory) as (_, cur):
                cur.execute(sql, tuple(to_mysql_value(data[c]) for c in cols))
                return self._get(cur, entity, data["id"])

    def update(self, entity: str, row_id: str, patch: Mapping[str, Any]) -> dict:
        if not patch:
            raise ValidationError("Nothing to update")
        cols = [c for c in patch if c != "id"]
        sql = f"UPDATE {_table(entity)} SET {', '.join(f'{_ident(c)}=%s' for c in cols)} WHERE `id`=%s"
        with self._guard("update", entity):
            with db_cursor(self._conn_factory) as (_, cur):
                cur.execute(sql, tuple(to_mysql_value(patch[c]) for c in cols) + (row_id,))
                row = self._get(cur, entity, row_id)
        if row is None:
            raise NotFoundError(f"{entity} row {row_id} not found")
        return row

    def delete(self, entity: str, row_id: str) -> list[dict]:
        with self._guard("delete", entity):
            with db_cursor(self._conn_factory) as (_, cur):
                row = self._get(cur, entity, row_id)
                if row is None:
                    return []
                cur.execute(f"DELETE FROM {_table(entity)} WHERE `id`=%s", (row_id,))
                return [row]

    def upsert(
        self,
        entity: str,
        row: Mapping[str, Any],
        *,
        on_conflict: Sequence[str],
        ignore_duplicates: bool = False,
    ) -> dict:
        data = dict(row)
        data.setdefault("id", str(uuid.uuid4()))
        cols = list(data)
        if ignore_duplicates:
            # no-op assignment keeps the stored row untouched
            assignments = "`id`=`id`"
        else:
            assignments = ", ".join(
                f"{_ident(c)}=VALUES({_ident(c)})" for c in cols if c != "id" and c not in on_conflict
            ) or "`id`=`id`"
        sql = (
            f"INSERT INTO {_table(entity)}({', '.join(_ident(c) for c in cols)}) "
            f"VALUES({', '.join(['%s'] * len(cols))}) "
            f"ON DUPLICATE KEY UPDATE {assignments}"
        )
        where, params = _where([Filter(c, "eq", data[c]) for c in on_conflict])
        with self._guard("upsert", entity):
            with db_cursor(self._conn_factory) as (_, cur):
                cur.execute(sql, tuple(to_mysql_value(data[c]) for c in cols))
                cur.execute(f"SELECT * FROM {_table(entity)}{where}", tuple(params))
                return _row_out(cur.fetchone())
