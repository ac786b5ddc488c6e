"""Tabular exports of attendance and employee lists (CSV and Excel)."""
from __future__ import annotations

import csv
import io
from datetime import timezone, tzinfo
from typing import Iterable, Mapping, Optional

import pandas as pd

from ..attendance.model import AttendanceReportRow
from ..common.datetime_utils import format_local
from ..employees.model import Employee

ATTENDANCE_COLUMNS = [
    "Employee",
    "Code",
    "Department",
    "Date",
    "Check-in",
    "Check-out",
    "Worked hours",
    "Overtime hours",
    "Status",
    "Location",
]

EMPLOYEE_COLUMNS = [
    "Code",
    "Name",
    "Email",
    "Phone",
    "Department",
    "Position",
    "Role",
    "Active",
    "Hire date",
]

XLSX_MIMETYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


def attendance_table(rows: Iterable[AttendanceReportRow], tz: tzinfo = timezone.utc) -> list[dict]:
    """Report rows as label -> display value, times shown in the organization timezone."""
    out = []
    for r in rows:
        rec = r.record
        out.append(
            {
                "Employee": r.employee_name,
                "Code": r.employee_code,
                "Department": r.department_name or "",
                "Date": rec.work_date.isoformat(),
                "Check-in": format_local(rec.check_in_time, tz),
                "Check-out": format_local(rec.check_out_time, tz),
                "Worked hours": f"{rec.work_hours:.2f}",
                "Overtime hours": f"{rec.overtime_hours:.2f}",
                "Status": rec.status.value,
                "Location": rec.location.label() if rec.location else "",
            }
        )
    return out


def employee_table(
    employees: Iterable[Employee],
    *,
    departments: Optional[Mapping[str, str]] = None,
    positions: Optional[Mapping[str, str]] = None,
) -> list[dict]:
    departments = departments or {}
    positions = positions or {}
    return [
        {
            "Code": e.employee_code,
            "Name": e.full_name,
            "Email": e.email,
            "Phone": e.phone or "",
            "Department": departments.get(e.department_id, "") if e.department_id else "",
            "Position": positions.get(e.position_id, "") if e.position_id else "",
            "Role": e.role.value,
            "Active": "yes" if e.is_active else "no",
            "Hire date": e.hire_date.isoformat(),
        }
        for e in employees
    ]


def to_csv(table: list[dict], columns: list[str]) -> str:
    """Header of labels then one line per row; every field is quoted."""
    out = io.StringIO()
    writer = csv.DictWriter(out, fieldnames=columns, quoting=csv.QUOTE_ALL, lineterminator="\n")
    writer.writeheader()
    for row in table:
        writer.writerow(row)
    return out.getvalue()


def to_xlsx(table: list[dict], columns: list[str], *, sheet_name: str = "Attendance") -> bytes:
    df = pd.DataFrame(table, columns=columns)
    output = io.BytesIO()
    with pd.ExcelWriter(output, engine="openpyxl") as writer:
        df.to_excel(writer, index=False, sheet_name=sheet_name)
    return output.getvalue()


def attendance_csv(rows: Iterable[AttendanceReportRow], tz: tzinfo = timezone.utc) -> str:
    return to_csv(attendance_table(rows, tz), ATTENDANCE_COLUMNS)


def attendance_xlsx(rows: Iterable[AttendanceReportRow], tz: tzinfo = timezone.utc) -> bytes:
    return to_xlsx(attendance_table(rows, tz), ATTENDANCE_COLUMNS)


def employees_csv(employees: Iterable[Employee], **lookups) -> str:
    return to_csv(employee_table(employees, **lookups), EMPLOYEE_COLUMNS)


def employees_xlsx(employees: Iterable[Employee], **lookups) -> bytes:
    return to_xlsx(employee_table(employees, **lookups), EMPLOYEE_COLUMNS, sheet_name="Employees")
