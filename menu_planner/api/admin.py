"""
Admin API - selection overview, per-staff selection grid, rating feedback
"""
from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from typing import List, Optional
from datetime import date, datetime
from pydantic import BaseModel

from menu_planner.database import get_db
from menu_planner.models.user import User
from menu_planner.models.menu import Menu
from menu_planner.models.rating import MenuRating
from menu_planner.api.auth import require_admin
from menu_planner.services.overview_service import (
    build_overview,
    get_active_menu,
    staff_selection_grid,
)

router = APIRouter()


class StaffSelectionRow(BaseModel):
    user_id: int
    username: str
    selections: List[Optional[str]]  # Monday..Friday
    progress: str


class OverviewResponse(BaseModel):
    active_menu_id: Optional[int]
    total_staff: int
    total_menu_items: int
    total_selections: int
    complete_profiles: int
    progress_percentage: int
    max_possible_selections: int
    staff_selections: List[StaffSelectionRow]


class RatingFeedback(BaseModel):
    id: int
    rating: int
    comment: Optional[str]
    created_at: Optional[datetime]
    username: Optional[str]
    week_start: Optional[date]


@router.get("/overview", response_model=OverviewResponse)
async def overview(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_admin),
):
    return await build_overview(db)


@router.get("/selections", response_model=List[StaffSelectionRow])
async def staff_selections(
    menu_id: Optional[int] = Query(None, alias="menuId"),
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_admin),
):
    """Selections of every staff member for the given menu, or the active one"""
    if menu_id is None:
        menu = await get_active_menu(db)
        menu_id = menu.id if menu else None
    return await staff_selection_grid(db, menu_id)


@router.get("/menu-ratings", response_model=List[RatingFeedback])
async def menu_ratings(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_admin),
):
    result = await db.execute(
        select(
            MenuRating.id,
            MenuRating.rating,
            MenuRating.comment,
            MenuRating.created_at,
            User.username,
            Menu.week_start,
        )
        .outerjoin(User, MenuRating.user_id == User.id)
        .outerjoin(Menu, MenuRating.menu_id == Menu.id)
        .order_by(MenuRating.created_at.desc())
    )
    return [RatingFeedback(**row._mapping) for row in result.all()]
