"""User and resident reference models (managed outside the letter workflow)."""

import uuid
from datetime import datetime
from enum import Enum

from sqlalchemy import Boolean, Column, DateTime, String

from siades_api.db.base import Base


class UserRole(str, Enum):
    """Roles assigned by the user administration service."""

    ADMIN = "admin"
    OPERATOR = "operator"
    KEPALA_DESA = "kepala_desa"


class User(Base):
    """Office staff account."""

    __tablename__ = "users"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    name = Column(String(255), nullable=False)
    email = Column(String(255), nullable=False, unique=True, index=True)
    role = Column(String(50), nullable=False, index=True)  # admin, operator, kepala_desa
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)


class Resident(Base):
    """Registered village resident."""

    __tablename__ = "residents"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    nik = Column(String(16), nullable=False, unique=True, index=True)  # National ID number
    full_name = Column(String(255), nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)  # False once soft-deleted
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
