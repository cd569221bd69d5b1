"""
Menu ratings API - one rating per user per menu, resubmission overwrites
"""
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from typing import Optional
from datetime import datetime
from pydantic import BaseModel, field_validator

from menu_planner.database import get_db
from menu_planner.models.user import User
from menu_planner.models.rating import MenuRating
from menu_planner.api.auth import get_current_user
from menu_planner.api.menus import get_menu_or_404
from menu_planner.utils.db_compat import dialect_insert
from menu_planner.utils.validators import validate_rating

router = APIRouter()


class RatingCreate(BaseModel):
    menu_id: int
    rating: int
    comment: Optional[str] = None

    @field_validator("rating")
    @classmethod
    def check_rating(cls, v: int) -> int:
        return validate_rating(v)


class RatingResponse(BaseModel):
    id: int
    menu_id: int
    user_id: int
    rating: int
    comment: Optional[str]
    created_at: Optional[datetime]

    class Config:
        from_attributes = True


@router.post("/", response_model=RatingResponse, status_code=201)
async def submit_rating(
    data: RatingCreate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    await get_menu_or_404(db, data.menu_id)

    now = datetime.utcnow()
    stmt = dialect_insert(db, MenuRating).values(
        menu_id=data.menu_id,
        user_id=current_user.id,
        rating=data.rating,
        comment=data.comment,
        created_at=now,
    )
    stmt = stmt.on_conflict_do_update(
        index_elements=[MenuRating.menu_id, MenuRating.user_id],
        set_={
            "rating": stmt.excluded.rating,
            "comment": stmt.excluded.comment,
            "created_at": stmt.excluded.created_at,
        },
    )
    await db.execute(stmt)
    await db.commit()

    result = await db.execute(
        select(MenuRating)
        .where(MenuRating.menu_id == data.menu_id, MenuRating.user_id == current_user.id)
        .execution_options(populate_existing=True)
    )
    return result.scalar_one()
