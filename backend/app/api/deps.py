from typing import Annotated
import uuid

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select

from app.core.database import get_db
from app.core.security import decode_token, TOKEN_ACCESS
from app.models.guard import Guard
from app.models.user import User, ROLE_ADMIN, ROLE_MANAGER
from app.schemas.auth import TokenData

security = HTTPBearer()


async def get_current_user(
    credentials: Annotated[HTTPAuthorizationCredentials, Depends(security)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> User:
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )
    try:
        payload = decode_token(credentials.credentials, expected_type=TOKEN_ACCESS)
        user_id = uuid.UUID(payload["sub"])
    except (ValueError, KeyError):
        raise credentials_exception

    result = await db.execute(select(User).where(User.id == user_id))
    user = result.scalar_one_or_none()

    if user is None or not user.is_active:
        raise credentials_exception

    return user


async def get_current_active_admin(
    current_user: Annotated[User, Depends(get_current_user)],
) -> User:
    if current_user.role != ROLE_ADMIN:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Insufficient permissions",
        )
    return current_user


async def get_current_manager_or_admin(
    current_user: Annotated[User, Depends(get_current_user)],
) -> User:
    """Allows admin and manager (supervisor) roles."""
    if current_user.role not in (ROLE_ADMIN, ROLE_MANAGER):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Insufficient permissions – admin or manager required",
        )
    return current_user


def get_token_data(user: User) -> TokenData:
    return TokenData(
        user_id=user.id,
        tenant_id=user.tenant_id,
        role=user.role,
    )


async def get_own_guard(db: AsyncSession, user: User) -> Guard | None:
    """Guard profile linked to the user, if any."""
    result = await db.execute(
        select(Guard).where(Guard.user_id == user.id, Guard.tenant_id == user.tenant_id)
    )
    return result.scalar_one_or_none()


async def require_own_guard(db: AsyncSession, user: User) -> Guard:
    guard = await get_own_guard(db, user)
    if guard is None:
        raise HTTPException(status_code=404, detail="No guard profile linked to this account")
    return guard


async def get_tenant_row(db: AsyncSession, model, row_id: uuid.UUID, tenant_id: uuid.UUID, label: str):
    """Fetch a row by id within the tenant or raise 404."""
    result = await db.execute(
        select(model).where(model.id == row_id, model.tenant_id == tenant_id)
    )
    row = result.scalar_one_or_none()
    if not row:
        raise HTTPException(status_code=404, detail=f"{label} not found")
    return row


CurrentUser = Annotated[User, Depends(get_current_user)]
AdminUser = Annotated[User, Depends(get_current_active_admin)]
ManagerOrAdmin = Annotated[User, Depends(get_current_manager_or_admin)]
DB = Annotated[AsyncSession, Depends(get_db)]
