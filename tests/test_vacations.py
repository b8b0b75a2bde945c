"""Tests for vacation entitlement, requests and balances."""

import datetime as dt

import pytest

from staffdesk.employees.operations import update_employee
from staffdesk.employees.vacations import (
    approve_vacation,
    calculate_annual_entitlement,
    calculate_business_days,
    cancel_vacation,
    carry_over_days,
    get_balance,
    list_entries,
    reject_vacation,
    request_vacation,
    validate_vacation_request,
)
from staffdesk.errors import ConflictError, NotFoundError, ValidationFailedError

# 2026-03-16 is a Monday
MONDAY = dt.date(2026, 3, 16)
FRIDAY = dt.date(2026, 3, 20)
SUNDAY = dt.date(2026, 3, 22)


class TestBusinessDays:
    def test_full_week(self):
        assert calculate_business_days(MONDAY, FRIDAY) == 5

    def test_weekend_not_counted(self):
        assert calculate_business_days(MONDAY, SUNDAY) == 5
        assert calculate_business_days(dt.date(2026, 3, 21), SUNDAY) == 0

    def test_single_day(self):
        assert calculate_business_days(MONDAY, MONDAY) == 1

    def test_end_before_start(self):
        assert calculate_business_days(FRIDAY, MONDAY) == 0


class TestEntitlement:
    def test_hired_in_earlier_year(self):
        assert calculate_annual_entitlement(dt.date(2019, 6, 1), 2026) == 25

    def test_no_hire_date(self):
        assert calculate_annual_entitlement(None, 2026) == 25

    def test_pro_rated(self):
        assert calculate_annual_entitlement(dt.date(2026, 1, 15), 2026) == 25
        assert calculate_annual_entitlement(dt.date(2026, 7, 1), 2026) == 13
        assert calculate_annual_entitlement(dt.date(2026, 12, 1), 2026) == 2

    def test_hired_in_later_year(self):
        assert calculate_annual_entitlement(dt.date(2027, 1, 1), 2026) == 0


class TestValidateRequest:
    def test_valid(self):
        assert validate_vacation_request(MONDAY, FRIDAY, 5) == []

    def test_weekend_only_request(self):
        errors = validate_vacation_request(dt.date(2026, 3, 21), SUNDAY, 0)
        assert errors == ["Days must be greater than 0"]

    def test_reason_too_long(self):
        errors = validate_vacation_request(MONDAY, FRIDAY, 5, reason="x" * 501)
        assert errors == ["Reason cannot exceed 500 characters"]


class TestWorkflow:
    async def test_request_reserves_pending_days(self, db_session, employee):
        entry = await request_vacation(db_session, employee.id, MONDAY, FRIDAY, "annual", reason="Family trip")
        assert entry.status == "pending"
        assert entry.days == 5

        balance = await get_balance(db_session, employee.id, 2026)
        assert balance.annual_entitlement == 25
        assert balance.pending == 5
        assert balance.remaining == 20

    async def test_approve_moves_to_used(self, db_session, employee):
        entry = await request_vacation(db_session, employee.id, MONDAY, FRIDAY, "annual")
        approved = await approve_vacation(db_session, entry.id, operator="manager", note="Enjoy")

        assert approved.status == "approved"
        assert approved.decided_by == "manager"
        balance = await get_balance(db_session, employee.id, 2026)
        assert (balance.used, balance.pending, balance.remaining) == (5, 0, 20)

    async def test_reject_releases_days(self, db_session, employee):
        entry = await request_vacation(db_session, employee.id, MONDAY, FRIDAY, "annual")
        await reject_vacation(db_session, entry.id, operator="manager", note="Busy season")

        balance = await get_balance(db_session, employee.id, 2026)
        assert (balance.used, balance.pending, balance.remaining) == (0, 0, 25)

    async def test_decision_requires_pending(self, db_session, employee):
        entry = await request_vacation(db_session, employee.id, MONDAY, FRIDAY, "annual")
        await approve_vacation(db_session, entry.id)
        with pytest.raises(ConflictError):
            await reject_vacation(db_session, entry.id)

    async def test_cancel_approved_returns_days(self, db_session, employee):
        entry = await request_vacation(db_session, employee.id, MONDAY, FRIDAY, "annual")
        await approve_vacation(db_session, entry.id)
        cancelled = await cancel_vacation(db_session, entry.id, operator="anna")

        assert cancelled.status == "cancelled"
        balance = await get_balance(db_session, employee.id, 2026)
        assert balance.remaining == 25
        with pytest.raises(ConflictError):
            await cancel_vacation(db_session, entry.id)

    async def test_insufficient_days(self, db_session, employee):
        # six full weeks: 30 business days
        with pytest.raises(ValidationFailedError) as exc_info:
            await request_vacation(db_session, employee.id, dt.date(2026, 3, 2), dt.date(2026, 4, 10), "annual")
        assert exc_info.value.errors == ["Insufficient vacation days. Remaining: 25, Requested: 30"]

    async def test_sick_leave_not_limited_by_balance(self, db_session, employee):
        entry = await request_vacation(db_session, employee.id, dt.date(2026, 3, 2), dt.date(2026, 4, 10), "sick")
        assert entry.days == 30

    async def test_inactive_employee_cannot_request(self, db_session, employee):
        await update_employee(db_session, employee.id, {"status": "on_leave"})
        with pytest.raises(ConflictError):
            await request_vacation(db_session, employee.id, MONDAY, FRIDAY, "annual")

    async def test_invalid_range(self, db_session, employee):
        with pytest.raises(ValidationFailedError):
            await request_vacation(db_session, employee.id, FRIDAY, MONDAY, "annual")

    async def test_carry_over_capped(self, db_session, employee):
        entry = await request_vacation(db_session, employee.id, MONDAY, FRIDAY, "annual")
        await approve_vacation(db_session, entry.id)

        carried = await carry_over_days(db_session, employee.id, 2026, 2027)
        assert carried == 5
        next_year = await get_balance(db_session, employee.id, 2027)
        assert next_year.carryover_days == 5
        assert next_year.available == 30
        assert next_year.remaining == 30

    async def test_carry_over_without_balance(self, db_session, employee):
        with pytest.raises(NotFoundError):
            await carry_over_days(db_session, employee.id, 2025, 2026)

    async def test_list_entries(self, db_session, employee):
        await request_vacation(db_session, employee.id, MONDAY, FRIDAY, "annual")
        entry = await request_vacation(db_session, employee.id, dt.date(2026, 5, 4), dt.date(2026, 5, 5), "personal")
        await approve_vacation(db_session, entry.id)

        assert len(await list_entries(db_session, employee_id=employee.id)) == 2
        approved = await list_entries(db_session, employee_id=employee.id, status="approved")
        assert [e.id for e in approved] == [entry.id]


class TestVacationsApi:
    async def test_request_approve_and_balance(self, api_client, employee):
        resp = await api_client.post(
            f"/api/employees/{employee.id}/vacations",
            json={"start_date": "2026-03-16", "end_date": "2026-03-20", "type": "annual", "operator": "anna"},
        )
        assert resp.status_code == 201
        entry = resp.json()
        assert entry["days"] == 5

        resp = await api_client.post(
            f"/api/employees/vacation-entries/{entry['id']}/approve",
            json={"operator": "manager"},
        )
        assert resp.json()["status"] == "approved"

        balance = (await api_client.get(f"/api/employees/{employee.id}/vacation-balance/2026")).json()
        assert balance["used"] == 5
        assert balance["remaining"] == 20
        assert [e["status"] for e in balance["entries"]] == ["approved"]

    async def test_double_approve_conflict(self, api_client, employee):
        entry = (
            await api_client.post(
                f"/api/employees/{employee.id}/vacations",
                json={"start_date": "2026-03-16", "end_date": "2026-03-16"},
            )
        ).json()
        url = f"/api/employees/vacation-entries/{entry['id']}/approve"
        await api_client.post(url, json={})
        resp = await api_client.post(url, json={})
        assert resp.status_code == 409
        assert resp.json()["code"] == "conflict"

    async def test_missing_balance(self, api_client, employee):
        resp = await api_client.get(f"/api/employees/{employee.id}/vacation-balance/1999")
        assert resp.status_code == 404
