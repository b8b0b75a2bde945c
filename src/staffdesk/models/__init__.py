from staffdesk.models.ai_log import AILog
from staffdesk.models.audit_log import AuditLog
from staffdesk.models.base import Base
from staffdesk.models.commission import Commission, CommissionRule
from staffdesk.models.employee import Employee
from staffdesk.models.employee_kpi import EmployeeKPI, EmployeeTarget
from staffdesk.models.employee_session import EmployeeSession
from staffdesk.models.vacation import VacationBalance, VacationEntry

__all__ = [
    "AILog",
    "AuditLog",
    "Base",
    "Commission",
    "CommissionRule",
    "Employee",
    "EmployeeKPI",
    "EmployeeSession",
    "EmployeeTarget",
    "VacationBalance",
    "VacationEntry",
]
