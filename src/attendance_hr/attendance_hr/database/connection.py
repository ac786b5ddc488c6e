from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

import mysql.connector


@dataclass
class DBConfig:
    host: str
    port: int
    user: str
    password: str
    database: str

    @classmethod
    def from_mapping(cls, db_config: dict) -> "DBConfig":
        return cls(
            host=str(db_config["host"]),
            port=int(db_config.get("port") or 3306),
            user=str(db_config["user"]),
            password=str(db_config.get("password") or ""),
            database=str(db_config["database"]),
        )


REQUIRED_DB_KEYS = ("host", "user", "database")


def missing_db_settings(db_config: Optional[dict]) -> list[str]:
    """Names of the DB_* settings that are absent; empty when configured."""
    db_config = db_config or {}
    return [f"DB_{key.upper()}" for key in REQUIRED_DB_KEYS if not db_config.get(key)]


class DatabaseConnection:
    """Connection factory.

    Note: We create short-lived connections per operation (safe for simple Flask apps).
    """

    def __init__(self, config: DBConfig):
        self._config = config

    @property
    def config(self) -> DBConfig:
        return self._config

    def connect(self):
        return mysql.connector.connect(
            host=self._config.host,
            port=int(self._config.port),
            user=self._config.user,
            password=self._config.password,
            database=self._config.database,
        )
