from datetime import date, datetime, time, timedelta, timezone

import mysql.connector
import pytest
from mysql.connector import errorcode

from src.attendance_hr.attendance_hr.core.exceptions import (
    ConflictError,
    RemoteUnavailableError,
    ValidationError,
)
from src.attendance_hr.attendance_hr.database.bootstrap import iter_sql_statements
from src.attendance_hr.attendance_hr.database.client import (
    Entity,
    Filter,
    UnconfiguredDataClient,
    eq,
    gte,
    is_in,
    lte,
    neq,
)
from src.attendance_hr.attendance_hr.database.connection import DBConfig, missing_db_settings
from src.attendance_hr.attendance_hr.database.mysql_base import (
    from_mysql_value,
    mysql_time,
    to_mysql_value,
)
from src.attendance_hr.attendance_hr.database.mysql_client import MySQLDataClient


class FakeCursor:
    def __init__(self, conn):
        self.conn = conn
        self._result = []

    def execute(self, sql, params=()):
        self.conn.executed.append((sql, params))
        if self.conn.error is not None:
            raise self.conn.error
        self._result = list(self.conn.results.pop(0)) if self.conn.results else []

    def fetchone(self):
        return self._result[0] if self._result else None

    def fetchall(self):
        return self._result

    def close(self):
        pass


class FakeConnection:
    def __init__(self, results=(), error=None):
        self.results = list(results)
        self.error = error
        self.executed = []
        self.committed = self.rolled_back = self.closed = False

    def cursor(self, dictionary=True):
        return FakeCursor(self)

    def commit(self):
        self.committed = True

    def rollback(self):
        self.rolled_back = True

    def close(self):
        self.closed = True


class FakeConnFactory:
    def __init__(self, conn):
        self.conn = conn

    def connect(self):
        return self.conn


def test_filters_match_rows():
    row = {"status": "late", "attendance_date": date(2026, 3, 4), "notes": None}

    assert eq("status", "late").matches(row)
    assert neq("status", "absent").matches(row)
    assert gte("attendance_date", date(2026, 3, 1)).matches(row)
    assert not lte("attendance_date", date(2026, 3, 1)).matches(row)
    assert is_in("status", ["late", "on_time"]).matches(row)
    assert not is_in("status", []).matches(row)
    # ordering comparisons never match NULL
    assert not gte("notes", "a").matches(row)


def test_unknown_filter_operator_is_rejected():
    with pytest.raises(ValidationError):
        Filter("status", "like", "l%")


def test_missing_db_settings():
    assert missing_db_settings(None) == ["DB_HOST", "DB_USER", "DB_DATABASE"]
    assert missing_db_settings({"host": "db", "user": "app", "database": "hr"}) == []
    assert missing_db_settings({"host": "db", "user": "", "database": "hr"}) == ["DB_USER"]


def test_db_config_defaults():
    config = DBConfig.from_mapping({"host": "db", "user": "app", "database": "hr"})

    assert config.port == 3306
    assert config.password == ""


def test_unconfigured_client_reports_missing_settings():
    client = UnconfiguredDataClient(["DB_HOST"])

    with pytest.raises(RemoteUnavailableError) as exc:
        client.query(Entity.EMPLOYEES)

    assert exc.value.details == {"missing": ["DB_HOST"]}
    assert exc.value.to_dict()["error"] == "remote_unavailable"
    with pytest.raises(RemoteUnavailableError):
        client.upsert(Entity.ATTENDANCES, {}, on_conflict=("employee_id", "attendance_date"))


def test_mysql_values_are_naive_utc():
    aware = datetime(2026, 3, 4, 16, 0, tzinfo=timezone(timedelta(hours=7)))

    assert to_mysql_value(aware) == datetime(2026, 3, 4, 9, 0)
    assert from_mysql_value(datetime(2026, 3, 4, 9, 0)) == datetime(2026, 3, 4, 9, 0, tzinfo=timezone.utc)
    assert from_mysql_value(timedelta(hours=8, minutes=30)) == time(8, 30)
    assert to_mysql_value("x") == "x"


@pytest.mark.parametrize(
    "value,expected",
    [(None, None), (time(9, 0), time(9, 0)), ("08:30", time(8, 30)), ("18:00:15", time(18, 0, 15))],
)
def test_mysql_time_values(value, expected):
    assert mysql_time(value) == expected


def test_query_builds_parameterized_sql():
    conn = FakeConnection(results=[[{"id": "a1", "status": "late"}]])
    client = MySQLDataClient(FakeConnFactory(conn))

    rows = client.query(
        Entity.ATTENDANCES,
        filters=[eq("organization_id", "org-1"), is_in("employee_id", ["e1", "e2"]), eq("notes", None)],
        limit=5,
    )

    sql, params = conn.executed[0]
    assert sql == (
        "SELECT * FROM `attendances` WHERE `organization_id` = %s AND `employee_id` IN (%s, %s) "
        "AND `notes` IS NULL LIMIT %s"
    )
    assert params == ("org-1", "e1", "e2", 5)
    assert rows == [{"id": "a1", "status": "late"}]
    assert conn.committed and conn.closed


def test_query_rejects_unsafe_identifiers():
    client = MySQLDataClient(FakeConnFactory(FakeConnection()))

    with pytest.raises(ValidationError):
        client.query(Entity.EMPLOYEES, filters=[eq("id; DROP TABLE x", 1)])
    with pytest.raises(ValidationError):
        client.query("users")


def test_upsert_ignoring_duplicates_keeps_the_stored_row():
    stored = {"id": "a1", "employee_id": "e1", "attendance_date": date(2026, 3, 4), "status": "on_time"}
    conn = FakeConnection(results=[[], [stored]])
    client = MySQLDataClient(FakeConnFactory(conn))

    row = client.upsert(
        Entity.ATTENDANCES,
        {"id": "a2", "employee_id": "e1", "attendance_date": date(2026, 3, 4), "status": "late"},
        on_conflict=("employee_id", "attendance_date"),
        ignore_duplicates=True,
    )

    assert row == stored
    insert_sql, _ = conn.executed[0]
    assert insert_sql.endswith("ON DUPLICATE KEY UPDATE `id`=`id`")
    select_sql, select_params = conn.executed[1]
    assert select_sql == "SELECT * FROM `attendances` WHERE `employee_id` = %s AND `attendance_date` = %s"
    assert select_params == ("e1", date(2026, 3, 4))


def test_upsert_updates_non_key_columns():
    conn = FakeConnection(results=[[], [{"id": "s1"}]])
    client = MySQLDataClient(FakeConnFactory(conn))

    client.upsert(
        Entity.SYSTEM_SETTINGS,
        {"organization_id": "org-1", "category": "general", "key": "timezone", "value": "UTC"},
        on_conflict=("organization_id", "category", "key"),
    )

    assert conn.executed[0][0].endswith("ON DUPLICATE KEY UPDATE `value`=VALUES(`value`)")


def test_duplicate_key_maps_to_conflict():
    error = mysql.connector.IntegrityError(msg="Duplicate entry", errno=errorcode.ER_DUP_ENTRY)
    conn = FakeConnection(error=error)
    client = MySQLDataClient(FakeConnFactory(conn))

    with pytest.raises(ConflictError):
        client.insert(Entity.DEPARTMENTS, {"organization_id": "org-1", "code": "SAL"})
    assert conn.rolled_back


def test_driver_errors_map_to_remote_unavailable():
    conn = FakeConnection(error=mysql.connector.InterfaceError(msg="Can't connect"))
    client = MySQLDataClient(FakeConnFactory(conn))

    with pytest.raises(RemoteUnavailableError):
        client.count(Entity.EMPLOYEES)


def test_iter_sql_statements_respects_quotes():
    sql = "CREATE TABLE a (x INT);\nINSERT INTO a VALUES ('x;y');\n  "

    assert list(iter_sql_statements(sql)) == ["CREATE TABLE a (x INT)", "INSERT INTO a VALUES ('x;y')"]
