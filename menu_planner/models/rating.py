"""
Menu feedback ratings
"""
from sqlalchemy import Column, Integer, Text, DateTime, ForeignKey, UniqueConstraint, CheckConstraint
from datetime import datetime
from menu_planner.database import Base


class MenuRating(Base):
    __tablename__ = "menu_ratings"

    id = Column(Integer, primary_key=True, index=True)
    menu_id = Column(Integer, ForeignKey("menus.id"), nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    rating = Column(Integer, nullable=False)  # 1-5
    comment = Column(Text, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)

    __table_args__ = (
        UniqueConstraint("menu_id", "user_id", name="uq_menu_rating_user"),
        CheckConstraint("rating >= 1 AND rating <= 5", name="valid_rating"),
    )
