from __future__ import annotations

import importlib
import logging
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from flask import Flask, jsonify, session

from config import get_settings_module

from .attendance.controller import register as register_attendance
from .auth.controller import register as register_auth
from .common.http import error_response
from .container import build_container, build_data_client
from .core.enums import ErrorKind
from .core.exceptions import DomainError
from .database.bootstrap import apply_schema, list_tables
from .database.client import DataClient
from .database.connection import DBConfig
from .employees.controller import register as register_employees
from .organization.controller import register as register_organization
from .reports.controller import register as register_reports

logger = logging.getLogger(__name__)

SCHEMA_PATH = Path(__file__).resolve().parents[3] / "database" / "schema.sql"


def create_app(settings_module: Optional[str] = None, *, data_client: Optional[DataClient] = None) -> Flask:
    """Application factory.

    `data_client` replaces the configured backend (tests pass an in-memory one).
    """
    load_dotenv(override=False)
    app = Flask(__name__)

    settings_module = settings_module or get_settings_module()
    settings = importlib.import_module(settings_module)
    logging.basicConfig(level=getattr(settings, "LOG_LEVEL", "INFO"))

    app.secret_key = getattr(settings, "SECRET_KEY")
    app.config["DEBUG"] = bool(getattr(settings, "DEBUG", False))
    app.config["TESTING"] = bool(getattr(settings, "TESTING", False))
    app.config["APP_BASE_URL"] = getattr(settings, "APP_BASE_URL", "")
    db_config = getattr(settings, "DB_CONFIG", {})

    if data_client is not None:
        data, missing = data_client, []
    else:
        data, missing = build_data_client(db_config)
        if not missing:
            logger.info(
                "settings=%s db=%s@%s:%s/%s",
                settings_module,
                db_config.get("user"),
                db_config.get("host"),
                db_config.get("port", 3306),
                db_config.get("database"),
            )
            if getattr(settings, "AUTO_INIT_DB", False):
                config = DBConfig.from_mapping(db_config)
                apply_schema(config, schema_path=SCHEMA_PATH)
                logger.info("schema ready (tables=%d)", len(list_tables(config)))

    container = build_container(
        data=data,
        session_store=session,
        org_timezone=getattr(settings, "ORG_TIMEZONE", "UTC"),
        standard_daily_hours=float(getattr(settings, "STANDARD_DAILY_HOURS", 8)),
        missing_settings=missing,
    )
    app.extensions["attendance_hr"] = container

    @app.errorhandler(DomainError)
    def handle_domain_error(error: DomainError):
        if error.kind == ErrorKind.REMOTE_UNAVAILABLE:
            logger.error("remote operation failed: %s", error.message)
        return error_response(error)

    @app.route("/api/health", methods=["GET"], endpoint="health")
    def health():
        return jsonify(
            {
                "success": True,
                "configured": container.configured,
                "missing": list(container.missing_settings),
                "base_url": app.config["APP_BASE_URL"],
            }
        )

    register_auth(app, container)
    register_employees(app, container)
    register_attendance(app, container)
    register_organization(app, container)
    register_reports(app, container)

    return app
