"""Tests for KPI metrics, targets and rankings."""

import pytest

from staffdesk.employees.commissions import cancel_commission, create_commission, create_rule
from staffdesk.employees.kpis import (
    calculate_kpis,
    calculate_rankings,
    compute_kpi_metrics,
    compute_target_achievement,
    list_kpis,
    rank_kpis,
    set_targets,
)
from staffdesk.employees.operations import create_employee
from staffdesk.errors import ValidationFailedError
from staffdesk.models._time import utcnow
from staffdesk.models.commission import Commission
from staffdesk.models.employee_kpi import EmployeeKPI, EmployeeTarget


class TestComputeMetrics:
    def test_rates_and_commission_totals(self):
        commissions = [
            Commission(status="paid", commission_amount=100.0),
            Commission(status="approved", commission_amount=50.0),
            Commission(status="cancelled", commission_amount=999.0),
        ]
        metrics = compute_kpi_metrics(20, 5, 4, 10_000.0, commissions)

        assert metrics.conversion_rate == 25.0
        assert metrics.average_order_value == 2500.0
        assert metrics.commissions_earned == 150.0
        assert metrics.commissions_paid == 100.0
        assert metrics.commissions_pending == 50.0

    def test_no_activity(self):
        metrics = compute_kpi_metrics(0, 0, 0, 0.0, [])
        assert metrics.conversion_rate == 0.0
        assert metrics.average_order_value == 0.0


class TestTargetAchievement:
    def test_only_set_targets_reported(self):
        metrics = compute_kpi_metrics(20, 5, 4, 10_000.0, [])
        target = EmployeeTarget(quotes_target=40, revenue_target=8_000.0)
        assert compute_target_achievement(metrics, target) == {"quotes": 50.0, "revenue": 125.0}


class TestRanking:
    def test_rank_by_revenue(self):
        kpis = [
            EmployeeKPI(employee_id=1, orders_value=500.0, orders_processed=9),
            EmployeeKPI(employee_id=2, orders_value=1500.0, orders_processed=3),
        ]
        ranked = rank_kpis(kpis, "revenue")
        assert [(k.employee_id, k.rank) for k in ranked] == [(2, 1), (1, 2)]
        assert ranked[0].rank_by == "revenue"

    def test_rank_by_orders(self):
        kpis = [
            EmployeeKPI(employee_id=1, orders_value=500.0, orders_processed=9),
            EmployeeKPI(employee_id=2, orders_value=1500.0, orders_processed=3),
        ]
        assert [k.employee_id for k in rank_kpis(kpis, "orders")] == [1, 2]

    def test_unknown_metric(self):
        with pytest.raises(ValidationFailedError):
            rank_kpis([], "smiles")


class TestKpiOperations:
    async def test_calculate_with_targets(self, db_session, employee):
        now = utcnow()
        await create_rule(db_session, employee.id, "Flat", "fixed_amount", fixed_amount=100)
        await create_commission(db_session, employee.id, revenue=1000)
        cancelled = await create_commission(db_session, employee.id, revenue=1000)
        await cancel_commission(db_session, cancelled.id)

        await set_targets(db_session, employee.id, now.year, now.month, orders_target=10, commissions_target=400)
        kpi = await calculate_kpis(
            db_session,
            employee.id,
            now.year,
            now.month,
            quotes_created=10,
            quotes_converted=4,
            orders_processed=5,
            orders_value=7500.0,
        )

        assert kpi.commissions_earned == 100.0
        assert kpi.commissions_pending == 100.0
        assert kpi.conversion_rate == 40.0
        assert kpi.target_achievement == {"orders": 50.0, "commissions": 25.0}

    async def test_recalculate_updates_snapshot(self, db_session, employee):
        await calculate_kpis(db_session, employee.id, 2026, 1, orders_processed=1)
        await calculate_kpis(db_session, employee.id, 2026, 1, orders_processed=3)
        kpis = await list_kpis(db_session, employee_id=employee.id)
        assert len(kpis) == 1
        assert kpis[0].orders_processed == 3

    async def test_invalid_month(self, db_session, employee):
        with pytest.raises(ValidationFailedError):
            await calculate_kpis(db_session, employee.id, 2026, 13)

    async def test_targets_replace_existing(self, db_session, employee):
        first = await set_targets(db_session, employee.id, 2026, None, revenue_target=1000)
        second = await set_targets(db_session, employee.id, 2026, None, revenue_target=2000)
        assert first.id == second.id
        assert second.revenue_target == 2000

    async def test_negative_target(self, db_session, employee):
        with pytest.raises(ValidationFailedError):
            await set_targets(db_session, employee.id, 2026, 3, orders_target=-1)

    async def test_rankings(self, db_session, employee):
        office = {"office_location": "Hamburg", "office_country": "Germany", "office_country_code": "DE"}
        other = await create_employee(db_session, {"name": "Jonas Klein", **office})
        await calculate_kpis(db_session, employee.id, 2026, 2, orders_value=1000.0)
        await calculate_kpis(db_session, other.id, 2026, 2, orders_value=3000.0)

        ranked = await calculate_rankings(db_session, 2026, 2, "revenue")
        assert [(k.employee_id, k.rank) for k in ranked] == [(other.id, 1), (employee.id, 2)]


class TestKpisApi:
    async def test_targets_calculate_and_rank(self, api_client, employee):
        resp = await api_client.put(
            f"/api/employees/{employee.id}/targets",
            json={"year": 2026, "month": 2, "orders_target": 20},
        )
        assert resp.status_code == 200
        assert resp.json()["orders_target"] == 20

        resp = await api_client.post(
            f"/api/employees/{employee.id}/kpis/calculate",
            json={"year": 2026, "month": 2, "orders_processed": 5, "orders_value": 2000},
        )
        assert resp.status_code == 200
        assert resp.json()["target_achievement"] == {"orders": 25.0}

        ranked = (
            await api_client.post("/api/employees/kpis/rankings", json={"year": 2026, "month": 2})
        ).json()
        assert ranked[0]["rank"] == 1
        assert ranked[0]["rank_by"] == "revenue"

        listing = (await api_client.get("/api/employees/kpis", params={"year": 2026})).json()
        assert len(listing) == 1

    async def test_invalid_month(self, api_client, employee):
        resp = await api_client.post(
            f"/api/employees/{employee.id}/kpis/calculate", json={"year": 2026, "month": 0}
        )
        assert resp.status_code == 422
