"""Tests for employee work sessions and presence."""

import datetime as dt

import pytest

from staffdesk.employees.operations import get_employee
from staffdesk.employees.sessions import (
    check_inactivity,
    end_session,
    list_sessions,
    start_session,
    summarize_work_hours,
    update_activity,
)
from staffdesk.errors import NotFoundError
from staffdesk.models.employee_session import EmployeeSession

T0 = dt.datetime(2026, 3, 16, 8, 0)


class TestSessionLifecycle:
    async def test_start_marks_online(self, db_session, employee):
        work_session = await start_session(db_session, employee.id, now=T0)
        assert work_session.is_active
        assert work_session.login_time == T0

        refreshed = await get_employee(db_session, employee.id)
        assert refreshed.is_online
        assert refreshed.work_status == "available"

    async def test_start_closes_previous(self, db_session, employee):
        first = await start_session(db_session, employee.id, now=T0)
        await start_session(db_session, employee.id, now=T0 + dt.timedelta(hours=2))

        assert first.is_active is False
        assert first.duration_minutes == 120
        assert len(await list_sessions(db_session, employee.id)) == 2

    async def test_end(self, db_session, employee):
        await start_session(db_session, employee.id, now=T0)
        ended = await end_session(db_session, employee.id, now=T0 + dt.timedelta(minutes=95))

        assert ended.duration_minutes == 95
        assert ended.logout_time == T0 + dt.timedelta(minutes=95)
        refreshed = await get_employee(db_session, employee.id)
        assert refreshed.work_status == "offline"
        assert refreshed.is_online is False

    async def test_end_without_session(self, db_session, employee):
        with pytest.raises(NotFoundError):
            await end_session(db_session, employee.id)

    async def test_heartbeat_starts_session(self, db_session, employee):
        work_session = await update_activity(db_session, employee.id, now=T0)
        assert work_session.session_type == "automatic"
        assert work_session.is_active


class TestInactivity:
    async def test_idle_employee_marked_busy(self, db_session, employee):
        await start_session(db_session, employee.id, now=T0)

        assert await check_inactivity(db_session, now=T0 + dt.timedelta(minutes=10)) == 0
        assert await check_inactivity(db_session, now=T0 + dt.timedelta(minutes=16)) == 1
        assert (await get_employee(db_session, employee.id)).work_status == "busy"
        # already busy
        assert await check_inactivity(db_session, now=T0 + dt.timedelta(minutes=30)) == 0

    async def test_heartbeat_after_idle_restores_available(self, db_session, employee):
        await start_session(db_session, employee.id, now=T0)
        await check_inactivity(db_session, now=T0 + dt.timedelta(minutes=20))

        work_session = await update_activity(db_session, employee.id, now=T0 + dt.timedelta(minutes=21))
        assert work_session.last_activity == T0 + dt.timedelta(minutes=21)
        assert (await get_employee(db_session, employee.id)).work_status == "available"


class TestWorkHours:
    def test_minutes_per_day(self):
        sessions = [
            EmployeeSession(login_time=T0, logout_time=T0 + dt.timedelta(hours=4), duration_minutes=240),
            EmployeeSession(login_time=T0 + dt.timedelta(hours=5), duration_minutes=180),
            EmployeeSession(login_time=T0 + dt.timedelta(days=1)),
        ]
        days = summarize_work_hours(sessions, now=T0 + dt.timedelta(days=1, minutes=30))

        assert [(d.date, d.sessions, d.total_minutes) for d in days] == [
            ("2026-03-16", 2, 420),
            ("2026-03-17", 1, 30),
        ]

    def test_empty(self):
        assert summarize_work_hours([]) == []


class TestSessionsApi:
    async def test_start_heartbeat_end(self, api_client, employee):
        resp = await api_client.post(f"/api/employees/{employee.id}/sessions/start", json={"session_type": "manual"})
        assert resp.status_code == 200
        assert resp.json()["is_active"] is True

        assert (await api_client.post(f"/api/employees/{employee.id}/sessions/heartbeat")).status_code == 200

        resp = await api_client.post(f"/api/employees/{employee.id}/sessions/end")
        assert resp.json()["is_active"] is False

        sessions = (await api_client.get(f"/api/employees/{employee.id}/sessions")).json()
        assert len(sessions) == 1

        hours = (await api_client.get(f"/api/employees/{employee.id}/work-hours")).json()
        assert hours[0]["sessions"] == 1

    async def test_check_inactivity(self, api_client, employee):
        resp = await api_client.post("/api/employees/sessions/check-inactivity")
        assert resp.json() == {"updated": 0}

    async def test_end_without_session(self, api_client, employee):
        resp = await api_client.post(f"/api/employees/{employee.id}/sessions/end")
        assert resp.status_code == 404
