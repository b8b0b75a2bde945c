"""Tests for employee validation, CRUD operations and API endpoints."""

import datetime as dt

import pytest

from staffdesk.employees.operations import (
    can_request_vacation,
    create_employee,
    delete_employee,
    generate_employee_number,
    get_employee,
    is_employee_editable,
    list_employees,
    update_employee,
    validate_employee_data,
)
from staffdesk.errors import ConflictError, NotFoundError, ValidationFailedError
from staffdesk.models.employee import Employee

OFFICE = {"office_location": "Munich", "office_country": "Germany", "office_country_code": "DE"}


class TestValidateEmployeeData:
    def test_valid(self):
        assert validate_employee_data({"name": "Jean-Luc O'Brien", **OFFICE}, creating=True) == []

    def test_name_required(self):
        assert "Name is required" in validate_employee_data({"name": "  "})

    def test_name_too_short(self):
        assert validate_employee_data({"name": "A"}) == ["Name must be at least 2 characters"]

    def test_name_invalid_characters(self):
        errors = validate_employee_data({"name": "R2-D2"})
        assert errors[0].startswith("Name contains invalid characters")

    def test_unicode_names_allowed(self):
        assert validate_employee_data({"name": "Zoë Müller"}) == []

    def test_employee_number_format(self):
        errors = validate_employee_data({"employee_number": "emp_1"})
        assert errors == ["Employee number must contain only uppercase letters, numbers, and hyphens"]

    def test_email_and_phone(self):
        errors = validate_employee_data({"email": "not-an-email", "phone": "abc"})
        assert errors == ["Invalid email format", "Invalid phone format"]

    def test_salary_bounds(self):
        assert validate_employee_data({"salary": -1}) == ["Salary cannot be negative"]
        assert validate_employee_data({"salary": 5_000_000}) == []

    def test_end_before_hire(self):
        data = {"hire_date": dt.date(2024, 5, 1), "end_date": dt.date(2024, 4, 1)}
        assert validate_employee_data(data) == ["End date cannot be before start date"]

    def test_office_required_on_create(self):
        errors = validate_employee_data({"name": "Max Mustermann"}, creating=True)
        assert errors == [
            "Office location is required",
            "Office country is required",
            "Office country code is required",
        ]

    def test_partial_update_only_checks_present_keys(self):
        assert validate_employee_data({"department": "Ops"}) == []


class TestHelpers:
    def test_generate_employee_number(self):
        assert generate_employee_number(1) == "EMP-000001"
        assert generate_employee_number(42, prefix="CON") == "CON-000042"

    def test_editable_and_vacation_eligibility(self):
        active = Employee(status="active")
        terminated = Employee(status="terminated")
        on_leave = Employee(status="on_leave")

        assert is_employee_editable(active) and can_request_vacation(active)
        assert not is_employee_editable(terminated)
        assert is_employee_editable(on_leave) and not can_request_vacation(on_leave)


class TestOperations:
    async def test_create_generates_number(self, db_session):
        first = await create_employee(db_session, {"name": "Lena Vogel", **OFFICE})
        second = await create_employee(db_session, {"name": "Tom Berger", **OFFICE})
        assert first.employee_number == "EMP-000001"
        assert second.employee_number == "EMP-000002"
        assert first.work_status == "offline"

    async def test_create_invalid(self, db_session):
        with pytest.raises(ValidationFailedError) as exc_info:
            await create_employee(db_session, {"name": "X"})
        assert "Name must be at least 2 characters" in exc_info.value.errors

    async def test_duplicate_number(self, db_session):
        await create_employee(db_session, {"name": "Lena Vogel", "employee_number": "S-1", **OFFICE})
        with pytest.raises(ConflictError):
            await create_employee(db_session, {"name": "Tom Berger", "employee_number": "S-1", **OFFICE})

    async def test_update(self, db_session, employee):
        updated = await update_employee(db_session, employee.id, {"position": "Team Lead"}, operator="hr")
        assert updated.position == "Team Lead"

    async def test_update_end_date_checked_against_stored_hire_date(self, db_session, employee):
        with pytest.raises(ValidationFailedError):
            await update_employee(db_session, employee.id, {"end_date": dt.date(2019, 1, 1)})

    async def test_terminated_is_read_only(self, db_session, employee):
        await update_employee(db_session, employee.id, {"status": "terminated"})
        with pytest.raises(ConflictError):
            await update_employee(db_session, employee.id, {"position": "CEO"})

    async def test_list_and_search(self, db_session, employee):
        await create_employee(db_session, {"name": "Tom Berger", "department": "Support", **OFFICE})

        everyone, total = await list_employees(db_session)
        assert total == 2
        assert [e.name for e in everyone] == ["Anna Schmidt", "Tom Berger"]

        found, total = await list_employees(db_session, search="schmidt")
        assert total == 1 and found[0].id == employee.id

        found, _ = await list_employees(db_session, department="Support")
        assert [e.name for e in found] == ["Tom Berger"]

    async def test_delete(self, db_session, employee):
        await delete_employee(db_session, employee.id, operator="hr")
        with pytest.raises(NotFoundError):
            await get_employee(db_session, employee.id)


class TestEmployeesApi:
    async def test_create_and_get(self, api_client):
        resp = await api_client.post(
            "/api/employees",
            json={"name": "Clara Weiss", "email": "clara@example.com", "hire_date": "2025-02-01", **OFFICE},
        )
        assert resp.status_code == 201
        body = resp.json()
        assert body["employee_number"] == "EMP-000001"
        assert body["hire_date"] == "2025-02-01"

        fetched = (await api_client.get(f"/api/employees/{body['id']}")).json()
        assert fetched["name"] == "Clara Weiss"

    async def test_create_validation_error(self, api_client):
        resp = await api_client.post("/api/employees", json={"name": "Clara Weiss", "email": "bad"})
        assert resp.status_code == 422
        body = resp.json()
        assert body["code"] == "validation_failed"
        assert "Invalid email format" in body["errors"]

    async def test_patch(self, api_client, employee):
        resp = await api_client.patch(f"/api/employees/{employee.id}", json={"department": "Marketing"})
        assert resp.status_code == 200
        assert resp.json()["department"] == "Marketing"

        audit = (await api_client.get("/api/audit-log", params={"action": "employee.updated"})).json()
        assert audit["items"][0]["details"] == {"changes": {"department": "Marketing"}}

    async def test_list_paginated(self, api_client, employee):
        body = (await api_client.get("/api/employees", params={"size": 10})).json()
        assert body["total"] == 1
        assert body["pages"] == 1

    async def test_delete_and_missing(self, api_client, employee):
        assert (await api_client.delete(f"/api/employees/{employee.id}")).status_code == 200
        resp = await api_client.get(f"/api/employees/{employee.id}")
        assert resp.status_code == 404
        assert resp.json()["code"] == "not_found"
