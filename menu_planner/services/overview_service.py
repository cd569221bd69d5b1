"""
Admin aggregation: per-staff selection grids and overall progress
"""
from typing import Dict, List, Optional

from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from menu_planner.models.menu import Menu, MenuItem
from menu_planner.models.selection import Selection
from menu_planner.models.user import User, UserRole
from menu_planner.utils.helpers import WEEKDAYS


async def get_active_menu(db: AsyncSession) -> Optional[Menu]:
    result = await db.execute(
        select(Menu)
        .where(Menu.is_active == True)
        .order_by(Menu.week_start.desc())
        .limit(1)
    )
    return result.scalar_one_or_none()


async def staff_selection_grid(db: AsyncSession, menu_id: Optional[int]) -> List[dict]:
    """One row per staff user: the item name picked for each weekday, or None."""
    staff_result = await db.execute(
        select(User.id, User.username)
        .where(User.role == UserRole.STAFF)
        .order_by(User.username)
    )
    staff = staff_result.all()

    picks: Dict[int, Dict[str, str]] = {}
    if menu_id is not None:
        result = await db.execute(
            select(Selection.user_id, MenuItem.day, MenuItem.name)
            .join(MenuItem, Selection.menu_item_id == MenuItem.id)
            .where(MenuItem.menu_id == menu_id)
        )
        for user_id, day, name in result.all():
            picks.setdefault(user_id, {})[day] = name

    grid = []
    for user_id, username in staff:
        chosen = picks.get(user_id, {})
        grid.append({
            "user_id": user_id,
            "username": username,
            "selections": [chosen.get(day) for day in WEEKDAYS],
            "progress": f"{len(chosen)}/{len(WEEKDAYS)}",
        })
    return grid


async def build_overview(db: AsyncSession) -> dict:
    """Selection progress for the active menu"""
    menu = await get_active_menu(db)
    menu_id = menu.id if menu else None

    total_staff = (await db.execute(
        select(func.count(User.id)).where(User.role == UserRole.STAFF)
    )).scalar() or 0

    total_menu_items = 0
    total_selections = 0
    if menu_id is not None:
        total_menu_items = (await db.execute(
            select(func.count(MenuItem.id)).where(MenuItem.menu_id == menu_id)
        )).scalar() or 0
        total_selections = (await db.execute(
            select(func.count(Selection.id))
            .join(MenuItem, Selection.menu_item_id == MenuItem.id)
            .where(MenuItem.menu_id == menu_id)
        )).scalar() or 0

    grid = await staff_selection_grid(db, menu_id)
    complete_profiles = sum(
        1 for row in grid if all(name is not None for name in row["selections"])
    )

    max_possible = total_staff * len(WEEKDAYS)
    progress = round(total_selections / max_possible * 100) if max_possible else 0

    return {
        "active_menu_id": menu_id,
        "total_staff": total_staff,
        "total_menu_items": total_menu_items,
        "total_selections": total_selections,
        "complete_profiles": complete_profiles,
        "progress_percentage": progress,
        "max_possible_selections": max_possible,
        "staff_selections": grid,
    }
