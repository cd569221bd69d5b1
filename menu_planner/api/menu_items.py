"""
Menu items API - dishes per weekday and their main course / dessert pairing
"""
from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, delete
from typing import Dict, List, Optional
from datetime import datetime
from pydantic import BaseModel

from menu_planner.database import get_db
from menu_planner.models.user import User
from menu_planner.models.menu import MenuItem
from menu_planner.models.selection import Selection
from menu_planner.api.auth import get_current_user, require_admin
from menu_planner.api.menus import get_menu_or_404
from menu_planner.utils.helpers import WEEKDAYS
from menu_planner.utils.logger import get_logger

router = APIRouter()
logger = get_logger(__name__)


# --- Pydantic Schemas ---

class MenuItemResponse(BaseModel):
    id: int
    menu_id: int
    name: str
    description: Optional[str]
    day: str
    created_at: Optional[datetime]

    class Config:
        from_attributes = True


class MenuItemIn(BaseModel):
    name: Optional[str] = None
    description: Optional[str] = None
    day: Optional[str] = None


class MenuItemsCreate(BaseModel):
    menu_id: Optional[int] = None
    items: List[MenuItemIn] = []


class MealPair(BaseModel):
    meal_id: int
    main_course: MenuItemResponse
    dessert: Optional[MenuItemResponse] = None


# --- Helpers ---

def pair_meals(items: List[MenuItem]) -> Dict[str, List[MealPair]]:
    """
    Group items per weekday into main course / dessert pairs.

    Items of a day are taken in id order; even positions are main courses and
    odd positions the dessert served with the preceding main course. A meal is
    identified by its main course id, which is what staff select.
    """
    by_day: Dict[str, List[MenuItem]] = {day: [] for day in WEEKDAYS}
    for item in sorted(items, key=lambda i: i.id):
        if item.day in by_day:
            by_day[item.day].append(item)

    paired: Dict[str, List[MealPair]] = {}
    for day, day_items in by_day.items():
        mains = day_items[0::2]
        desserts = day_items[1::2]
        paired[day] = [
            MealPair(
                meal_id=main.id,
                main_course=MenuItemResponse.model_validate(main),
                dessert=MenuItemResponse.model_validate(desserts[i]) if i < len(desserts) else None,
            )
            for i, main in enumerate(mains)
        ]
    return paired


async def _menu_items(db: AsyncSession, menu_id: int) -> List[MenuItem]:
    result = await db.execute(
        select(MenuItem).where(MenuItem.menu_id == menu_id).order_by(MenuItem.day, MenuItem.id)
    )
    return result.scalars().all()


# --- Endpoints ---

@router.get("/", response_model=List[MenuItemResponse])
async def list_menu_items(
    menu_id: int = Query(..., alias="menuId"),
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return await _menu_items(db, menu_id)


@router.get("/meals", response_model=Dict[str, List[MealPair]])
async def list_meals(
    menu_id: int = Query(..., alias="menuId"),
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Items grouped per weekday into main course / dessert pairs"""
    return pair_meals(await _menu_items(db, menu_id))


@router.post("/", response_model=List[MenuItemResponse], status_code=201)
async def create_menu_items(
    data: MenuItemsCreate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_admin),
):
    if not data.menu_id or not data.items:
        raise HTTPException(
            status_code=400,
            detail="Menu ID and items are required, and items must be a non-empty array.",
        )
    for item in data.items:
        if not item.name or not item.day:
            raise HTTPException(status_code=400, detail="Each item must have a name and day.")
        if item.day not in WEEKDAYS:
            raise HTTPException(status_code=400, detail=f"Invalid day: {item.day}")

    await get_menu_or_404(db, data.menu_id)

    created = [
        MenuItem(
            menu_id=data.menu_id,
            name=item.name,
            description=item.description or None,
            day=item.day,
        )
        for item in data.items
    ]
    # Added one at a time so ids follow request order (pairing depends on it)
    for menu_item in created:
        db.add(menu_item)
        await db.flush()

    await db.commit()
    logger.info(f"Added {len(created)} item(s) to menu {data.menu_id}")
    return created


@router.delete("/")
async def delete_menu_item(
    item_id: int = Query(..., alias="itemId"),
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_admin),
):
    result = await db.execute(select(MenuItem).where(MenuItem.id == item_id))
    item = result.scalar_one_or_none()
    if not item:
        raise HTTPException(status_code=404, detail="Menu item not found")

    await db.execute(delete(Selection).where(Selection.menu_item_id == item_id))
    await db.execute(delete(MenuItem).where(MenuItem.id == item_id))
    await db.commit()
    return {"message": "Item deleted successfully"}
