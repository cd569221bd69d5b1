from menu_planner.models.user import User, UserRole, StaffDirectoryEntry
from menu_planner.models.menu import Menu, MenuItem
from menu_planner.models.selection import Selection
from menu_planner.models.rating import MenuRating

__all__ = [
    "User",
    "UserRole",
    "StaffDirectoryEntry",
    "Menu",
    "MenuItem",
    "Selection",
    "MenuRating",
]
