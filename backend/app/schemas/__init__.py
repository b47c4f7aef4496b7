from app.schemas.auth import Token, TokenData, LoginRequest, RefreshRequest, ChangePasswordRequest
from app.schemas.guard import GuardCreate, GuardUpdate, GuardOut, SiteCreate, SiteUpdate, SiteOut
from app.schemas.shift import (
    ShiftCreate, ShiftUpdate, ShiftOut, ShiftTemplateCreate, ShiftTemplateOut, BulkShiftCreate,
    ShiftRespond, BreakWindow,
)
from app.schemas.breaks import BreakCheckRequest, BreakCheckResult

__all__ = [
    "Token", "TokenData", "LoginRequest", "RefreshRequest", "ChangePasswordRequest",
    "GuardCreate", "GuardUpdate", "GuardOut", "SiteCreate", "SiteUpdate", "SiteOut",
    "ShiftCreate", "ShiftUpdate", "ShiftOut", "ShiftTemplateCreate", "ShiftTemplateOut", "BulkShiftCreate",
    "ShiftRespond", "BreakWindow",
    "BreakCheckRequest", "BreakCheckResult",
]
