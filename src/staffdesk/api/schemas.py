"""Pydantic request/response schemas for the staffdesk API."""

from __future__ import annotations

import datetime as dt
import math
from typing import Annotated, Generic, Literal, TypeVar

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field

from staffdesk.employees.commissions import CommissionStatus, CommissionType
from staffdesk.employees.kpis import RankBy
from staffdesk.employees.vacations import VacationStatus, VacationType
from staffdesk.logs.criteria import FilterCriteria


def _coerce_to_str(v: object) -> str | None:
    """Coerce date/time objects to ISO string for schema output."""
    if v is None:
        return None
    if isinstance(v, (dt.date, dt.time)):
        return v.isoformat()
    return str(v)


DateStr = Annotated[str, BeforeValidator(_coerce_to_str)]
OptDateStr = Annotated[str | None, BeforeValidator(_coerce_to_str)]

T = TypeVar("T")


class PaginatedResponse(BaseModel, Generic[T]):
    items: list[T]
    total: int
    page: int
    size: int
    pages: int
    has_next: bool = False
    has_prev: bool = False


class OperatorRequest(BaseModel):
    operator: str = "anonymous"


# --- AI logs ---


class ExportRequest(BaseModel):
    format: Literal["csv", "json"] = "csv"
    fields: list[str] | None = None
    criteria: FilterCriteria = Field(default_factory=FilterCriteria)


class AuditLogEntry(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    action: str
    entity_type: str
    entity_id: str
    entity_title: str | None = None
    description: str | None = None
    operator: str
    details: dict | None = None
    created_at: DateStr


# --- Employees ---


class EmployeeCreate(BaseModel):
    employee_number: str | None = None
    name: str
    email: str | None = None
    work_email: str | None = None
    phone: str | None = None
    work_phone: str | None = None
    department: str | None = None
    position: str | None = None
    status: str = "active"
    hire_date: dt.date | None = None
    end_date: dt.date | None = None
    salary: float | None = None
    office_location: str | None = None
    office_country: str | None = None
    office_country_code: str | None = None
    operator: str = "anonymous"


class EmployeeUpdate(BaseModel):
    name: str | None = None
    email: str | None = None
    work_email: str | None = None
    phone: str | None = None
    work_phone: str | None = None
    department: str | None = None
    position: str | None = None
    status: str | None = None
    hire_date: dt.date | None = None
    end_date: dt.date | None = None
    salary: float | None = None
    office_location: str | None = None
    office_country: str | None = None
    office_country_code: str | None = None
    operator: str = "anonymous"


class EmployeeSchema(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    employee_number: str
    name: str
    email: str | None = None
    work_email: str | None = None
    phone: str | None = None
    work_phone: str | None = None
    department: str | None = None
    position: str | None = None
    status: str
    work_status: str
    is_online: bool
    hire_date: OptDateStr = None
    end_date: OptDateStr = None
    salary: float | None = None
    office_location: str | None = None
    office_country: str | None = None
    office_country_code: str | None = None
    created_at: DateStr


# --- Vacations ---


class VacationRequestBody(BaseModel):
    start_date: dt.date
    end_date: dt.date
    type: VacationType = "annual"
    reason: str | None = None
    notes: str | None = None
    operator: str = "anonymous"


class VacationDecisionRequest(BaseModel):
    operator: str = "anonymous"
    note: str | None = None


class CarryoverRequest(BaseModel):
    from_year: int
    to_year: int
    max_carryover_days: float = Field(default=5, ge=0)
    operator: str = "anonymous"


class VacationEntrySchema(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    balance_id: int
    start_date: DateStr
    end_date: DateStr
    days: float
    type: VacationType
    status: VacationStatus
    reason: str | None = None
    notes: str | None = None
    requested_by: str
    decided_by: str | None = None
    decided_at: OptDateStr = None
    decision_note: str | None = None


class VacationBalanceSchema(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    employee_id: int
    year: int
    annual_entitlement: float
    carryover_days: float
    available: float
    used: float
    pending: float
    remaining: float
    entries: list[VacationEntrySchema] = []


# --- Commissions ---


class CommissionTier(BaseModel):
    min_amount: float = Field(default=0, ge=0)
    max_amount: float | None = None
    rate: float


class CommissionRuleCreate(BaseModel):
    employee_id: int
    name: str
    type: CommissionType
    rate: float | None = None
    fixed_amount: float | None = None
    tiers: list[CommissionTier] | None = None
    operator: str = "anonymous"


class CommissionRuleSchema(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    employee_id: int
    name: str
    type: CommissionType
    rate: float | None = None
    fixed_amount: float | None = None
    tiers: list | None = None
    is_active: bool


class CommissionCreate(BaseModel):
    employee_id: int
    revenue: float
    cost: float = 0.0
    rule_id: int | None = None
    reference: str | None = None
    operator: str = "anonymous"


class CommissionPayRequest(BaseModel):
    payment_reference: str | None = None
    operator: str = "anonymous"


class CommissionCancelRequest(BaseModel):
    reason: str | None = None
    operator: str = "anonymous"


class CommissionRecalculateRequest(BaseModel):
    revenue: float | None = Field(default=None, ge=0)
    cost: float | None = Field(default=None, ge=0)
    operator: str = "anonymous"


class CommissionSchema(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    employee_id: int
    rule_id: int | None = None
    reference: str | None = None
    revenue: float
    cost: float
    base_amount: float
    margin: float
    margin_percentage: float
    commission_rate: float
    commission_amount: float
    applied_tier: int | None = None
    status: CommissionStatus
    approved_by: str | None = None
    approved_at: OptDateStr = None
    paid_at: OptDateStr = None
    payment_reference: str | None = None
    cancellation_reason: str | None = None
    created_at: DateStr


# --- Sessions ---


class SessionStartRequest(BaseModel):
    session_type: Literal["manual", "automatic"] = "manual"
    device: dict | None = None
    ip_address: str | None = None


class EmployeeSessionSchema(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    employee_id: int
    session_type: str
    login_time: DateStr
    last_activity: DateStr
    logout_time: OptDateStr = None
    duration_minutes: int | None = None
    is_active: bool


# --- KPIs ---


class TargetsRequest(BaseModel):
    year: int
    month: int | None = Field(default=None, ge=1, le=12)
    quotes_target: int | None = Field(default=None, ge=0)
    orders_target: int | None = Field(default=None, ge=0)
    revenue_target: float | None = Field(default=None, ge=0)
    conversion_target: float | None = Field(default=None, ge=0)
    commissions_target: float | None = Field(default=None, ge=0)
    notes: str | None = None
    operator: str = "anonymous"


class TargetSchema(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    employee_id: int
    year: int
    month: int | None = None
    quotes_target: int | None = None
    orders_target: int | None = None
    revenue_target: float | None = None
    conversion_target: float | None = None
    commissions_target: float | None = None
    set_by: str


class KPICalculateRequest(BaseModel):
    year: int
    month: int = Field(ge=1, le=12)
    quotes_created: int = Field(default=0, ge=0)
    quotes_converted: int = Field(default=0, ge=0)
    orders_processed: int = Field(default=0, ge=0)
    orders_value: float = Field(default=0.0, ge=0)


class RankingRequest(BaseModel):
    year: int
    month: int = Field(ge=1, le=12)
    rank_by: RankBy = "revenue"


class EmployeeKPISchema(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    employee_id: int
    year: int
    month: int
    quotes_created: int
    quotes_converted: int
    orders_processed: int
    orders_value: float
    average_order_value: float
    conversion_rate: float
    commissions_earned: float
    commissions_paid: float
    commissions_pending: float
    target_achievement: dict | None = None
    rank: int | None = None
    rank_by: str | None = None


def page_response(items: list, total: int, page: int, size: int) -> PaginatedResponse:
    """Wrap an already-sliced page; an empty result has zero pages."""
    pages = math.ceil(total / size) if total > 0 else 0
    return PaginatedResponse(
        items=items,
        total=total,
        page=page,
        size=size,
        pages=pages,
        has_next=page < pages,
        has_prev=page > 1 and total > 0,
    )
