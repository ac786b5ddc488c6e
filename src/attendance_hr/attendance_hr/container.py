from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import MutableMapping, Optional, Sequence

from .attendance.data_attendance_repository import DataAttendanceRepository
from .attendance.factory import AttendanceStrategyFactory
from .attendance.service import AttendanceService
from .auth.password_client import PasswordAuthClient
from .core.constants import DEFAULT_STANDARD_DAILY_HOURS
from .database.client import DataClient, UnconfiguredDataClient
from .database.connection import DBConfig, DatabaseConnection, missing_db_settings
from .database.mysql_client import MySQLDataClient
from .employees.data_employee_repository import DataEmployeeRepository
from .employees.service import EmployeeService
from .organization.data_repository import (
    DataDepartmentRepository,
    DataPositionRepository,
    DataSettingRepository,
    DataWorkPolicyRepository,
)
from .organization.service import OrganizationService
from .reports.service import ReportService

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Container:
    data: DataClient
    auth: PasswordAuthClient

    employees_repo: DataEmployeeRepository
    departments_repo: DataDepartmentRepository
    positions_repo: DataPositionRepository
    policies_repo: DataWorkPolicyRepository
    settings_repo: DataSettingRepository
    attendance_repo: DataAttendanceRepository

    employee_service: EmployeeService
    organization_service: OrganizationService
    attendance_service: AttendanceService
    report_service: ReportService

    # DB_* settings that were not provided; empty when the backend is configured
    missing_settings: Sequence[str] = field(default_factory=tuple)

    @property
    def configured(self) -> bool:
        return not self.missing_settings


def build_data_client(db_config: Optional[dict]) -> tuple[DataClient, list[str]]:
    """MySQL client for a complete DB config, otherwise the unconfigured stand-in."""
    missing = missing_db_settings(db_config)
    if missing:
        logger.warning("data backend not configured, missing: %s", ", ".join(missing))
        return UnconfiguredDataClient(missing), missing
    return MySQLDataClient(DatabaseConnection(DBConfig.from_mapping(db_config))), []


def build_container(
    *,
    data: DataClient,
    session_store: MutableMapping,
    org_timezone: str = "UTC",
    standard_daily_hours: float = DEFAULT_STANDARD_DAILY_HOURS,
    missing_settings: Sequence[str] = (),
) -> Container:
    auth = PasswordAuthClient(data, session_store)

    employees_repo = DataEmployeeRepository(data)
    departments_repo = DataDepartmentRepository(data)
    positions_repo = DataPositionRepository(data)
    policies_repo = DataWorkPolicyRepository(data)
    settings_repo = DataSettingRepository(data)
    attendance_repo = DataAttendanceRepository(data)

    organization_service = OrganizationService(
        departments_repo,
        positions_repo,
        policies_repo,
        settings_repo,
        default_timezone=org_timezone,
    )
    employee_service = EmployeeService(employees_repo, auth, departments_repo, positions_repo)
    attendance_service = AttendanceService(
        attendance_repo,
        employees_repo,
        organization_service,
        strategy_factory=AttendanceStrategyFactory(),
        standard_daily_hours=standard_daily_hours,
    )
    report_service = ReportService(
        attendance_repo,
        employees_repo,
        organization_service,
        standard_daily_hours=standard_daily_hours,
    )

    return Container(
        data=data,
        auth=auth,
        employees_repo=employees_repo,
        departments_repo=departments_repo,
        positions_repo=positions_repo,
        policies_repo=policies_repo,
        settings_repo=settings_repo,
        attendance_repo=attendance_repo,
        employee_service=employee_service,
        organization_service=organization_service,
        attendance_service=attendance_service,
        report_service=report_service,
        missing_settings=tuple(missing_settings),
    )
