from __future__ import annotations

import importlib
import sys
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from config import get_settings_module

from src.attendance_hr.attendance_hr.database.bootstrap import apply_schema, list_tables
from src.attendance_hr.attendance_hr.database.connection import DBConfig, missing_db_settings


def main() -> None:
    settings = importlib.import_module(get_settings_module())
    db_config = dict(settings.DB_CONFIG)
    missing = missing_db_settings(db_config)
    if missing:
        raise SystemExit("Database is not configured, missing: " + ", ".join(missing))

    config = DBConfig.from_mapping(db_config)
    schema_path = REPO_ROOT / "database" / "schema.sql"
    apply_schema(config, schema_path=schema_path)
    tables = list_tables(config)
    print(
        "OK: Applied schema.sql -> "
        f"{config.user}@{config.host}:{config.port}/{config.database} (tables={len(tables)})"
    )


if __name__ == "__main__":
    main()
