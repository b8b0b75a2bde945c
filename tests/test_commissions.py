"""Tests for commission rules, calculation and lifecycle."""

import pytest

from staffdesk.employees.commissions import (
    apply_commission_rule,
    approve_commission,
    cancel_commission,
    create_commission,
    create_rule,
    list_commissions,
    pay_commission,
    recalculate_commission,
    validate_rule,
)
from staffdesk.errors import ConflictError, NotFoundError, ValidationFailedError
from staffdesk.models.commission import CommissionRule

TIERS = [
    {"min_amount": 0, "max_amount": 500, "rate": 5},
    {"min_amount": 500, "max_amount": None, "rate": 10},
]


class TestApplyCommissionRule:
    def test_margin_percentage(self):
        rule = CommissionRule(type="margin_percentage", rate=30)
        calc = apply_commission_rule(rule, revenue=1000, cost=600)
        assert calc.margin == 400
        assert calc.margin_percentage == 40
        assert calc.base_amount == 400
        assert calc.commission_amount == 120

    def test_revenue_percentage(self):
        rule = CommissionRule(type="revenue_percentage", rate=5)
        calc = apply_commission_rule(rule, revenue=1000, cost=600)
        assert calc.base_amount == 1000
        assert calc.commission_amount == 50

    def test_fixed_amount(self):
        rule = CommissionRule(type="fixed_amount", fixed_amount=75)
        assert apply_commission_rule(rule, revenue=10).commission_amount == 75

    def test_tiered_picks_tier_by_margin(self):
        rule = CommissionRule(type="tiered", tiers=TIERS)
        low = apply_commission_rule(rule, revenue=1000, cost=600)
        assert (low.applied_tier, low.commission_rate, low.commission_amount) == (0, 5, 20)

        boundary = apply_commission_rule(rule, revenue=1000, cost=500)
        assert (boundary.applied_tier, boundary.commission_amount) == (1, 50)

    def test_tiered_without_matching_tier(self):
        rule = CommissionRule(type="tiered", tiers=[{"min_amount": 1000, "max_amount": None, "rate": 10}])
        calc = apply_commission_rule(rule, revenue=100)
        assert calc.applied_tier is None
        assert calc.commission_amount == 0

    def test_negative_margin_pays_nothing(self):
        rule = CommissionRule(type="margin_percentage", rate=30)
        calc = apply_commission_rule(rule, revenue=100, cost=150)
        assert calc.margin == -50
        assert calc.commission_amount == 0

    def test_zero_revenue(self):
        rule = CommissionRule(type="revenue_percentage", rate=10)
        assert apply_commission_rule(rule, revenue=0).margin_percentage == 0

    def test_amount_rounded_to_cents(self):
        rule = CommissionRule(type="revenue_percentage", rate=3.333)
        assert apply_commission_rule(rule, revenue=100).commission_amount == 3.33


class TestValidateRule:
    def test_percentage_needs_rate(self):
        assert validate_rule("margin_percentage", None, None, None) == ["Rate is required for percentage rules"]

    def test_rate_bounds(self):
        assert validate_rule("revenue_percentage", 120, None, None) == ["Rate must be between 0 and 100"]

    def test_tiers(self):
        assert validate_rule("tiered", None, None, TIERS) == []
        assert validate_rule("tiered", None, None, []) == ["Tiered rules need at least one tier"]
        bad = [{"min_amount": 100, "max_amount": 50, "rate": 5}]
        assert validate_rule("tiered", None, None, bad) == ["Tier 1: max_amount must be greater than min_amount"]

    def test_unknown_type(self):
        assert validate_rule("bonus", None, None, None) == ["Unknown commission type: bonus"]


class TestLifecycle:
    @pytest.fixture
    async def rule(self, db_session, employee):
        return await create_rule(db_session, employee.id, "Standard margin", "margin_percentage", rate=10)

    async def test_create_uses_first_active_rule(self, db_session, employee, rule):
        commission = await create_commission(db_session, employee.id, revenue=2000, cost=1200, reference="Q-17")
        assert commission.rule_id == rule.id
        assert commission.commission_amount == 80
        assert commission.status == "pending"

    async def test_no_rule(self, db_session, employee):
        with pytest.raises(NotFoundError):
            await create_commission(db_session, employee.id, revenue=100)

    async def test_invalid_rule_rejected(self, db_session, employee):
        with pytest.raises(ValidationFailedError):
            await create_rule(db_session, employee.id, "", "fixed_amount", fixed_amount=-5)

    async def test_approve_then_pay(self, db_session, employee, rule):
        commission = await create_commission(db_session, employee.id, revenue=1000)
        approved = await approve_commission(db_session, commission.id, operator="finance")
        assert approved.status == "approved"
        assert approved.approved_by == "finance"

        paid = await pay_commission(db_session, commission.id, payment_reference=" TX-991 ")
        assert paid.status == "paid"
        assert paid.payment_reference == "TX-991"
        assert paid.paid_at is not None

    async def test_pay_requires_approval(self, db_session, employee, rule):
        commission = await create_commission(db_session, employee.id, revenue=1000)
        with pytest.raises(ConflictError, match="must be approved before payment"):
            await pay_commission(db_session, commission.id)

    async def test_paid_cannot_be_cancelled_or_recalculated(self, db_session, employee, rule):
        commission = await create_commission(db_session, employee.id, revenue=1000)
        await approve_commission(db_session, commission.id)
        await pay_commission(db_session, commission.id)

        with pytest.raises(ConflictError):
            await cancel_commission(db_session, commission.id)
        with pytest.raises(ConflictError):
            await recalculate_commission(db_session, commission.id, revenue=5000)

    async def test_cancel(self, db_session, employee, rule):
        commission = await create_commission(db_session, employee.id, revenue=1000)
        cancelled = await cancel_commission(db_session, commission.id, reason="Order refunded")
        assert cancelled.status == "cancelled"
        assert cancelled.cancellation_reason == "Order refunded"

    async def test_recalculate(self, db_session, employee, rule):
        commission = await create_commission(db_session, employee.id, revenue=1000, cost=500)
        assert commission.commission_amount == 50
        updated = await recalculate_commission(db_session, commission.id, cost=200)
        assert updated.commission_amount == 80

    async def test_list_filtered(self, db_session, employee, rule):
        first = await create_commission(db_session, employee.id, revenue=1000)
        await create_commission(db_session, employee.id, revenue=2000)
        await approve_commission(db_session, first.id)

        _, total = await list_commissions(db_session, employee_id=employee.id)
        assert total == 2
        approved, total = await list_commissions(db_session, status="approved")
        assert total == 1 and approved[0].id == first.id


class TestCommissionsApi:
    async def test_full_flow(self, api_client, employee):
        resp = await api_client.post(
            "/api/commissions/rules",
            json={"employee_id": employee.id, "name": "Tiered", "type": "tiered", "tiers": TIERS},
        )
        assert resp.status_code == 201
        rule = resp.json()
        assert rule["tiers"][1]["rate"] == 10

        resp = await api_client.post(
            "/api/commissions",
            json={"employee_id": employee.id, "revenue": 1500, "cost": 700},
        )
        assert resp.status_code == 201
        commission = resp.json()
        assert commission["applied_tier"] == 1
        assert commission["commission_amount"] == 80

        resp = await api_client.post(f"/api/commissions/{commission['id']}/pay", json={})
        assert resp.status_code == 409
        assert resp.json() == {"message": "Commission must be approved before payment", "code": "conflict"}

        await api_client.post(f"/api/commissions/{commission['id']}/approve", json={"operator": "finance"})
        resp = await api_client.post(
            f"/api/commissions/{commission['id']}/pay", json={"payment_reference": "TX-1"}
        )
        assert resp.json()["status"] == "paid"

        rules = (await api_client.get("/api/commissions/rules", params={"employee_id": employee.id})).json()
        assert [r["name"] for r in rules] == ["Tiered"]

        listing = (await api_client.get("/api/commissions", params={"status": "paid"})).json()
        assert listing["total"] == 1

    async def test_missing_commission(self, api_client):
        assert (await api_client.get("/api/commissions/999")).status_code == 404
