"""
Selections API - staff pick one meal per weekday of a menu
"""
from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession
from typing import Dict, List, Optional
from datetime import date, datetime
from pydantic import BaseModel, ConfigDict, Field

from menu_planner.database import get_db
from menu_planner.models.user import User
from menu_planner.api.auth import get_current_user
from menu_planner.api.menus import get_menu_or_404
from menu_planner.services.selection_service import (
    SelectionError,
    list_user_selections,
    upsert_selections,
)
from menu_planner.utils.helpers import deadline_passed

router = APIRouter()


# --- Pydantic Schemas ---

class SelectionResponse(BaseModel):
    id: int
    user_id: int
    menu_item_id: int
    selection_date: date
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class SelectionDetail(BaseModel):
    id: int
    user_id: int
    menu_item_id: int
    selection_date: date
    name: str
    description: Optional[str]
    day: str


class SelectionSubmit(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    selections: Optional[Dict[str, Optional[int]]] = None
    menu_id: Optional[int] = Field(None, alias="menuId")
    user_id: Optional[int] = Field(None, alias="userId")


class SelectionSubmitResponse(BaseModel):
    message: str
    selections: List[SelectionResponse]


# --- Helpers ---

def _resolve_user_id(current_user: User, requested: Optional[int]) -> int:
    """Staff act on their own selections; admins may act for anyone."""
    if requested is None or requested == current_user.id:
        return current_user.id
    if not current_user.is_admin:
        raise HTTPException(status_code=403, detail="Cannot access another user's selections.")
    return requested


# --- Endpoints ---

@router.get("/", response_model=List[SelectionDetail])
async def get_selections(
    menu_id: int = Query(..., alias="menuId"),
    user_id: Optional[int] = Query(None, alias="userId"),
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    target = _resolve_user_id(current_user, user_id)
    return await list_user_selections(db, target, menu_id)


@router.post("/", response_model=SelectionSubmitResponse, status_code=201)
async def submit_selections(
    data: SelectionSubmit,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    if not data.selections or not data.menu_id:
        raise HTTPException(status_code=400, detail="selections and menuId are required")

    target = _resolve_user_id(current_user, data.user_id)
    menu = await get_menu_or_404(db, data.menu_id)

    if not current_user.is_admin and deadline_passed(menu.deadline):
        raise HTTPException(status_code=400, detail="Selection deadline has passed.")

    try:
        saved = await upsert_selections(db, target, menu, data.selections)
    except SelectionError as e:
        await db.rollback()
        raise HTTPException(status_code=400, detail=str(e))

    await db.commit()
    return SelectionSubmitResponse(
        message="Selections saved successfully",
        selections=[SelectionResponse.model_validate(s) for s in saved],
    )
