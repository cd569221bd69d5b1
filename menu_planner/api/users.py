"""
Users API - staff accounts and directory entries still eligible to sign up
"""
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func
from typing import List
from pydantic import BaseModel

from menu_planner.database import get_db
from menu_planner.models.user import User, UserRole, StaffDirectoryEntry
from menu_planner.api.auth import require_admin

router = APIRouter()


class UserSummary(BaseModel):
    id: int
    username: str


@router.get("/eligible-staff", response_model=List[UserSummary])
async def eligible_staff(db: AsyncSession = Depends(get_db)):
    """Directory names that have no account yet. Public: the signup form lists them."""
    result = await db.execute(
        select(StaffDirectoryEntry.id, StaffDirectoryEntry.full_name)
        .outerjoin(User, func.lower(func.trim(StaffDirectoryEntry.full_name)) == User.username)
        .where(User.id.is_(None))
        .order_by(StaffDirectoryEntry.full_name)
    )
    return [UserSummary(id=entry_id, username=full_name) for entry_id, full_name in result.all()]


@router.get("/staff", response_model=List[UserSummary])
async def staff_users(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_admin),
):
    result = await db.execute(
        select(User.id, User.username)
        .where(User.role == UserRole.STAFF)
        .order_by(User.username)
    )
    return [UserSummary(id=user_id, username=username) for user_id, username in result.all()]
