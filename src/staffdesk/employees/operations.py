"""Employee records: validation, numbering and CRUD operations."""

from __future__ import annotations

import re
from datetime import date

import sqlalchemy as sa
import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from staffdesk.audit import record_audit
from staffdesk.errors import ConflictError, NotFoundError, ValidationFailedError
from staffdesk.models._time import utcnow
from staffdesk.models.employee import Employee

logger = structlog.get_logger()

EMPLOYEE_STATUSES = ("active", "inactive", "terminated", "on_leave")
WORK_STATUSES = ("available", "busy", "offline")

MIN_NAME_LENGTH = 2
MAX_NAME_LENGTH = 100
MAX_EMPLOYEE_NUMBER_LENGTH = 20
MAX_EMAIL_LENGTH = 254
MAX_PHONE_LENGTH = 20
MAX_DEPARTMENT_LENGTH = 100
MAX_POSITION_LENGTH = 100
MAX_SALARY = 10_000_000

NAME_PATTERN = re.compile(r"^[^\W\d_]+(?:[ '.\-]+[^\W\d_]+)*\.?$")
EMPLOYEE_NUMBER_PATTERN = re.compile(r"^[A-Z0-9-]+$")
EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
PHONE_PATTERN = re.compile(r"^\+?[0-9\s().-]{6,}$")

# Columns an update may touch; everything else is managed by the system.
EDITABLE_FIELDS = (
    "name",
    "email",
    "work_email",
    "phone",
    "work_phone",
    "department",
    "position",
    "status",
    "hire_date",
    "end_date",
    "salary",
    "office_location",
    "office_country",
    "office_country_code",
)


def _check_text(
    errors: list[str],
    value: str | None,
    label: str,
    max_length: int,
    pattern: re.Pattern | None = None,
) -> None:
    if value is None or not value.strip():
        return
    value = value.strip()
    if len(value) > max_length:
        errors.append(f"{label} cannot exceed {max_length} characters")
    elif pattern is not None and not pattern.match(value):
        errors.append(f"Invalid {label.lower()} format")


def validate_employee_data(data: dict, creating: bool = False) -> list[str]:
    """Return one message per invalid field; an empty list means valid.

    Only keys present in ``data`` are checked, so partial updates validate
    just what they change.  ``creating`` additionally requires the office
    fields.
    """
    errors: list[str] = []

    if "name" in data or creating:
        name = (data.get("name") or "").strip()
        if not name:
            errors.append("Name is required")
        elif len(name) < MIN_NAME_LENGTH:
            errors.append(f"Name must be at least {MIN_NAME_LENGTH} characters")
        elif len(name) > MAX_NAME_LENGTH:
            errors.append(f"Name cannot exceed {MAX_NAME_LENGTH} characters")
        elif not NAME_PATTERN.match(name):
            errors.append(
                "Name contains invalid characters. Only letters, spaces, hyphens, "
                "apostrophes, and periods are allowed"
            )

    if data.get("employee_number") is not None:
        number = data["employee_number"].strip()
        if not number:
            errors.append("Employee number is required")
        elif len(number) > MAX_EMPLOYEE_NUMBER_LENGTH:
            errors.append(f"Employee number cannot exceed {MAX_EMPLOYEE_NUMBER_LENGTH} characters")
        elif not EMPLOYEE_NUMBER_PATTERN.match(number):
            errors.append("Employee number must contain only uppercase letters, numbers, and hyphens")

    _check_text(errors, data.get("email"), "Email", MAX_EMAIL_LENGTH, EMAIL_PATTERN)
    _check_text(errors, data.get("work_email"), "Work email", MAX_EMAIL_LENGTH, EMAIL_PATTERN)
    _check_text(errors, data.get("phone"), "Phone", MAX_PHONE_LENGTH, PHONE_PATTERN)
    _check_text(errors, data.get("work_phone"), "Work phone", MAX_PHONE_LENGTH, PHONE_PATTERN)
    _check_text(errors, data.get("department"), "Department", MAX_DEPARTMENT_LENGTH)
    _check_text(errors, data.get("position"), "Position", MAX_POSITION_LENGTH)

    salary = data.get("salary")
    if salary is not None:
        if salary < 0:
            errors.append("Salary cannot be negative")
        elif salary > MAX_SALARY:
            errors.append(f"Salary cannot exceed {MAX_SALARY}")

    status = data.get("status")
    if status is not None and status not in EMPLOYEE_STATUSES:
        errors.append(f"Invalid status: {status}")

    hire_date: date | None = data.get("hire_date")
    end_date: date | None = data.get("end_date")
    if hire_date is not None and end_date is not None and end_date < hire_date:
        errors.append("End date cannot be before start date")

    if creating:
        for key, label in (
            ("office_location", "Office location"),
            ("office_country", "Office country"),
            ("office_country_code", "Office country code"),
        ):
            if not (data.get(key) or "").strip():
                errors.append(f"{label} is required")

    return errors


def generate_employee_number(sequence: int, prefix: str = "EMP") -> str:
    """``generate_employee_number(1)`` -> ``"EMP-000001"``."""
    return f"{prefix}-{sequence:06d}"


def is_employee_editable(employee: Employee) -> bool:
    return employee.deleted_at is None and employee.status != "terminated"


def can_request_vacation(employee: Employee) -> bool:
    return employee.deleted_at is None and employee.status == "active"


async def get_employee(session: AsyncSession, employee_id: int) -> Employee:
    stmt = sa.select(Employee).where(Employee.id == employee_id, Employee.deleted_at.is_(None))
    employee = (await session.execute(stmt)).scalar_one_or_none()
    if employee is None:
        raise NotFoundError("Employee", employee_id)
    return employee


async def _next_employee_number(session: AsyncSession) -> str:
    last_id = (await session.execute(sa.select(sa.func.max(Employee.id)))).scalar_one()
    sequence = (last_id or 0) + 1
    while True:
        number = generate_employee_number(sequence)
        taken = await session.execute(
            sa.select(Employee.id).where(Employee.employee_number == number)
        )
        if taken.first() is None:
            return number
        sequence += 1


async def create_employee(session: AsyncSession, data: dict, operator: str = "anonymous") -> Employee:
    errors = validate_employee_data(data, creating=True)
    if errors:
        raise ValidationFailedError(errors)

    number = (data.get("employee_number") or "").strip() or await _next_employee_number(session)
    existing = await session.execute(sa.select(Employee.id).where(Employee.employee_number == number))
    if existing.first() is not None:
        raise ConflictError(f"Employee number already in use: {number}")

    employee = Employee(employee_number=number)
    for key in EDITABLE_FIELDS:
        value = data.get(key)
        if isinstance(value, str):
            value = value.strip()
        if value is not None:
            setattr(employee, key, value)
    session.add(employee)
    await session.flush()

    record_audit(
        session,
        "employee.created",
        "employee",
        employee.id,
        operator,
        entity_title=employee.employee_number,
        description=f"Created employee {employee.name}",
    )
    await session.commit()
    logger.info("employee_created", employee_id=employee.id, employee_number=number)
    return employee


async def update_employee(
    session: AsyncSession,
    employee_id: int,
    data: dict,
    operator: str = "anonymous",
) -> Employee:
    employee = await get_employee(session, employee_id)
    if not is_employee_editable(employee):
        raise ConflictError(f"Employee {employee.employee_number} is terminated and cannot be edited")

    # end date is checked against the stored hire date when only one side changes
    merged = {"hire_date": employee.hire_date, "end_date": employee.end_date, **data}
    errors = validate_employee_data(merged)
    if errors:
        raise ValidationFailedError(errors)

    changed: dict = {}
    for key in EDITABLE_FIELDS:
        if key not in data:
            continue
        value = data[key].strip() if isinstance(data[key], str) else data[key]
        if getattr(employee, key) != value:
            changed[key] = str(value) if isinstance(value, date) else value
            setattr(employee, key, value)

    if changed:
        record_audit(
            session,
            "employee.updated",
            "employee",
            employee.id,
            operator,
            entity_title=employee.employee_number,
            details={"changes": changed},
        )
        await session.commit()
        logger.info("employee_updated", employee_id=employee.id, fields=sorted(changed))
    return employee


async def list_employees(
    session: AsyncSession,
    page: int = 1,
    size: int = 20,
    search: str | None = None,
    status: str | None = None,
    department: str | None = None,
) -> tuple[list[Employee], int]:
    """Live employees ordered by name, plus the total count before paging."""
    stmt = sa.select(Employee).where(Employee.deleted_at.is_(None))
    if search:
        pattern = f"%{search}%"
        stmt = stmt.where(
            sa.or_(
                Employee.name.ilike(pattern),
                Employee.employee_number.ilike(pattern),
                Employee.email.ilike(pattern),
            )
        )
    if status is not None:
        stmt = stmt.where(Employee.status == status)
    if department is not None:
        stmt = stmt.where(Employee.department == department)

    count_stmt = sa.select(sa.func.count()).select_from(stmt.subquery())
    total = (await session.execute(count_stmt)).scalar_one()

    stmt = stmt.order_by(Employee.name, Employee.id).offset((page - 1) * size).limit(size)
    employees = list((await session.execute(stmt)).scalars().all())
    return employees, total


async def delete_employee(session: AsyncSession, employee_id: int, operator: str = "anonymous") -> None:
    employee = await get_employee(session, employee_id)
    employee.deleted_at = utcnow()
    employee.is_online = False
    employee.work_status = "offline"
    record_audit(
        session,
        "employee.deleted",
        "employee",
        employee.id,
        operator,
        entity_title=employee.employee_number,
    )
    await session.commit()
    logger.info("employee_deleted", employee_id=employee_id, operator=operator)
