"""
Selection upsert: maps per-day meal choices onto date-stamped selection rows
"""
from typing import Dict, List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from menu_planner.models.menu import Menu, MenuItem
from menu_planner.models.selection import Selection
from menu_planner.utils.helpers import WEEKDAYS, selection_date_for
from menu_planner.utils.logger import get_logger

logger = get_logger(__name__)


class SelectionError(ValueError):
    """A submitted day/item pair cannot be saved"""


async def upsert_selections(
    db: AsyncSession,
    user_id: int,
    menu: Menu,
    choices: Dict[str, Optional[int]],
) -> List[Selection]:
    """
    Save one selection per chosen day for `user_id` on `menu`.

    Days mapped to a falsy item id are skipped. An existing row for the same
    user and calendar date is updated in place; otherwise a row is inserted.
    Nothing is committed here: the caller's session commits the whole batch.
    """
    chosen = {day: item_id for day, item_id in choices.items() if item_id}
    for day in chosen:
        if day not in WEEKDAYS:
            raise SelectionError(f"Unknown day: {day}")

    items: Dict[int, MenuItem] = {}
    if chosen:
        result = await db.execute(
            select(MenuItem).where(
                MenuItem.menu_id == menu.id,
                MenuItem.id.in_(list(chosen.values())),
            )
        )
        items = {item.id: item for item in result.scalars().all()}

    affected: List[Selection] = []
    for day, item_id in chosen.items():
        item = items.get(item_id)
        if item is None:
            raise SelectionError(f"Menu item {item_id} is not on this menu")
        if item.day != day:
            raise SelectionError(f"Menu item {item_id} is served on {item.day}, not {day}")

        selection_date = selection_date_for(menu.week_start, day)
        result = await db.execute(
            select(Selection).where(
                Selection.user_id == user_id,
                Selection.selection_date == selection_date,
            )
        )
        selection = result.scalar_one_or_none()
        if selection:
            logger.debug(f"Updating selection user={user_id} date={selection_date} item={item_id}")
            selection.menu_item_id = item_id
        else:
            logger.debug(f"Inserting selection user={user_id} date={selection_date} item={item_id}")
            selection = Selection(
                user_id=user_id,
                menu_item_id=item_id,
                selection_date=selection_date,
            )
            db.add(selection)
        affected.append(selection)

    await db.flush()
    logger.info(f"Saved {len(affected)} selection(s) for user={user_id} menu={menu.id}")
    return affected


async def list_user_selections(db: AsyncSession, user_id: int, menu_id: int) -> List[dict]:
    """A user's selections on one menu, with the chosen item's details"""
    result = await db.execute(
        select(Selection, MenuItem)
        .join(MenuItem, Selection.menu_item_id == MenuItem.id)
        .where(Selection.user_id == user_id, MenuItem.menu_id == menu_id)
        .order_by(Selection.selection_date)
    )
    return [
        {
            "id": selection.id,
            "user_id": selection.user_id,
            "menu_item_id": selection.menu_item_id,
            "selection_date": selection.selection_date,
            "name": item.name,
            "description": item.description,
            "day": item.day,
        }
        for selection, item in result.all()
    ]
