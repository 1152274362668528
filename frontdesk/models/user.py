"""User model definitions."""

from sqlalchemy import Boolean, Column, Integer, String
from frontdesk.database import Base


class User(Base):
    """A front-desk staff account."""
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String, unique=True, index=True)
    full_name = Column(String)
    role = Column(String, default="staff")  # staff/admin
    is_active = Column(Boolean, default=True)
