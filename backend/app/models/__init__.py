from app.models.tenant import Tenant
from app.models.user import User
from app.models.guard import Guard
from app.models.site import Site
from app.models.shift import Shift, ShiftTemplate, ShiftRequirement
from app.models.time_off import TimeOffRequest
from app.models.shift_log import ShiftLog, BreakCheckQuery
from app.models.edob import EdobEntry
from app.models.incident import IncidentReport
from app.models.visitor import VisitorLog
from app.models.uniform import UniformCheck
from app.models.licence import SiaLicence, LicenceAlert
from app.models.training import TrainingRecord
from app.models.kpi import DailyKpiMetric
from app.models.no_show import NoShowAlert
from app.models.payroll import PayrollInput, PayrollVariance
from app.models.report import DailySummary, WeeklyReport
from app.models.knowledge import SystemTemplate, KnowledgeTopic
from app.models.notification import NotificationLog
from app.models.audit import AuditLog

__all__ = [
    "Tenant",
    "User",
    "Guard",
    "Site",
    "Shift",
    "ShiftTemplate",
    "ShiftRequirement",
    "TimeOffRequest",
    "ShiftLog",
    "BreakCheckQuery",
    "EdobEntry",
    "IncidentReport",
    "VisitorLog",
    "UniformCheck",
    "SiaLicence",
    "LicenceAlert",
    "TrainingRecord",
    "DailyKpiMetric",
    "NoShowAlert",
    "PayrollInput",
    "PayrollVariance",
    "DailySummary",
    "WeeklyReport",
    "SystemTemplate",
    "KnowledgeTopic",
    "NotificationLog",
    "AuditLog",
]
