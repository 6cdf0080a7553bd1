"""Audit log model."""

from datetime import datetime
from enum import Enum

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String

from siades_api.db.base import Base


class AuditAction(str, Enum):
    """Kind of mutation recorded in the audit log."""

    CREATE = "CREATE"
    UPDATE = "UPDATE"
    DELETE = "DELETE"


class AuditLog(Base):
    """Append-only record of a committed mutation."""

    __tablename__ = "audit_logs"

    id = Column(Integer, primary_key=True, index=True)
    action = Column(String(20), nullable=False, index=True)  # CREATE, UPDATE, DELETE
    entity_table = Column(String(100), nullable=False, index=True)  # LetterRequest, LetterType
    entity_id = Column(String(36), nullable=False, index=True)
    actor_id = Column(String(36), ForeignKey("users.id"), nullable=False, index=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False, index=True)

    __table_args__ = (
        {"sqlite_autoincrement": True},
    )
