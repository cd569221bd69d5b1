"""
Weekly menu and its items
"""
from sqlalchemy import Column, Integer, String, Text, Date, DateTime, Boolean, ForeignKey
from sqlalchemy.orm import relationship
from datetime import datetime
from menu_planner.database import Base


class Menu(Base):
    __tablename__ = "menus"

    id = Column(Integer, primary_key=True, index=True)
    week_start = Column(Date, nullable=False, index=True)  # Monday of the week
    deadline = Column(DateTime(timezone=True), nullable=False)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime, default=datetime.utcnow)

    items = relationship("MenuItem", back_populates="menu", order_by="MenuItem.id")


class MenuItem(Base):
    """A dish served on one weekday.

    Within a day, items alternate main course / dessert in insert order.
    """
    __tablename__ = "menu_items"

    id = Column(Integer, primary_key=True, index=True)
    menu_id = Column(Integer, ForeignKey("menus.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String(100), nullable=False)
    description = Column(Text, nullable=True)
    day = Column(String(20), nullable=False)  # "Monday" .. "Friday"
    created_at = Column(DateTime, default=datetime.utcnow)

    menu = relationship("Menu", back_populates="items")
