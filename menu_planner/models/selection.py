"""
Staff meal selections, one per user per calendar date
"""
from sqlalchemy import Column, Integer, Date, DateTime, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship
from datetime import datetime
from menu_planner.database import Base


class Selection(Base):
    __tablename__ = "selections"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    menu_item_id = Column(Integer, ForeignKey("menu_items.id"), nullable=False, index=True)
    selection_date = Column(Date, nullable=False)  # menu.week_start + weekday offset
    created_at = Column(DateTime, default=datetime.utcnow)

    menu_item = relationship("MenuItem")

    __table_args__ = (
        UniqueConstraint("user_id", "selection_date", name="uq_selection_user_date"),
    )
