"""
User accounts and the staff directory allow-list
"""
from sqlalchemy import Column, Integer, String, DateTime, Enum
from datetime import datetime
from menu_planner.database import Base
import enum


class UserRole(str, enum.Enum):
    ADMIN = "admin"
    STAFF = "staff"


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    username = Column(String, unique=True, nullable=False, index=True)  # trimmed + lowercased
    password_hash = Column(String, nullable=False)
    role = Column(Enum(UserRole, native_enum=False), nullable=False, default=UserRole.STAFF)
    created_at = Column(DateTime, default=datetime.utcnow)

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN


class StaffDirectoryEntry(Base):
    """Pre-seeded name allowed to sign up as staff"""
    __tablename__ = "staff_directory"

    id = Column(Integer, primary_key=True, index=True)
    full_name = Column(String, nullable=False, index=True)
