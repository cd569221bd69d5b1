"""
Menus API - weekly menus, activation and cascade deletion
"""
from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, update, delete
from typing import List, Optional
from datetime import date, datetime
from pydantic import BaseModel

from menu_planner.database import get_db
from menu_planner.models.user import User
from menu_planner.models.menu import Menu, MenuItem
from menu_planner.models.selection import Selection
from menu_planner.models.rating import MenuRating
from menu_planner.api.auth import get_current_user, require_admin
from menu_planner.utils.helpers import as_utc, start_of_week
from menu_planner.utils.logger import get_logger

router = APIRouter()
logger = get_logger(__name__)


# --- Pydantic Schemas ---

class MenuResponse(BaseModel):
    id: int
    week_start: date
    deadline: datetime
    is_active: bool
    created_at: Optional[datetime]

    class Config:
        from_attributes = True


class MenuCreate(BaseModel):
    week_start: Optional[date] = None
    deadline: Optional[datetime] = None
    is_active: bool = True


class MenuUpdate(BaseModel):
    is_active: Optional[bool] = None


# --- Helpers ---

async def get_menu_or_404(db: AsyncSession, menu_id: int) -> Menu:
    result = await db.execute(select(Menu).where(Menu.id == menu_id))
    menu = result.scalar_one_or_none()
    if not menu:
        raise HTTPException(status_code=404, detail="Menu not found")
    return menu


async def _deactivate_others(db: AsyncSession, menu_id: int) -> None:
    await db.execute(
        update(Menu).where(Menu.id != menu_id, Menu.is_active == True).values(is_active=False)
    )


# --- Endpoints ---

@router.get("/", response_model=List[MenuResponse])
async def list_menus(
    active: Optional[bool] = None,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    query = select(Menu)
    if active:
        query = query.where(Menu.is_active == True)
    query = query.order_by(Menu.week_start.desc())

    result = await db.execute(query)
    return result.scalars().all()


@router.post("/", response_model=MenuResponse, status_code=201)
async def create_menu(
    data: MenuCreate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_admin),
):
    if data.week_start is None or data.deadline is None:
        raise HTTPException(status_code=400, detail="Week start and deadline are required.")
    if start_of_week(data.week_start) != data.week_start:
        raise HTTPException(status_code=400, detail="Week start must be a Monday.")

    # SQLite drops the offset, so store the instant as UTC
    menu = Menu(week_start=data.week_start, deadline=as_utc(data.deadline), is_active=data.is_active)
    db.add(menu)
    await db.flush()
    if menu.is_active:
        await _deactivate_others(db, menu.id)

    await db.commit()
    await db.refresh(menu)
    logger.info(f"Created menu {menu.id} for week of {menu.week_start}")
    return menu


@router.patch("/", response_model=MenuResponse)
async def update_menu(
    data: MenuUpdate,
    menu_id: int = Query(..., alias="menuId"),
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_admin),
):
    if data.is_active is None:
        raise HTTPException(status_code=400, detail="is_active must be boolean")

    menu = await get_menu_or_404(db, menu_id)
    menu.is_active = data.is_active
    if menu.is_active:
        await _deactivate_others(db, menu.id)

    await db.commit()
    await db.refresh(menu)
    return menu


@router.delete("/")
async def delete_menu(
    menu_id: int = Query(..., alias="menuId"),
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_admin),
):
    """Delete a menu with its items, the selections pointing at them, and its ratings"""
    menu = await get_menu_or_404(db, menu_id)
    deleted = MenuResponse.model_validate(menu)

    item_ids = select(MenuItem.id).where(MenuItem.menu_id == menu_id)
    selections = await db.execute(
        delete(Selection).where(Selection.menu_item_id.in_(item_ids))
    )
    items = await db.execute(delete(MenuItem).where(MenuItem.menu_id == menu_id))
    await db.execute(delete(MenuRating).where(MenuRating.menu_id == menu_id))
    await db.execute(delete(Menu).where(Menu.id == menu_id))
    await db.commit()

    logger.info(
        f"Deleted menu {menu_id}: {items.rowcount} items, {selections.rowcount} selections"
    )
    return {
        "message": "Menu deleted successfully",
        "menu": deleted,
    }
