"""Attendance & HR administration package.

Organized by feature modules (attendance, employees, organization, reports, ...)
with a thin Flask controller layer over service/repository layers that talk to
a generic data client.
"""
