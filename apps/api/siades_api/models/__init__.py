"""Database models - import all models here for Alembic discovery."""

from siades_api.models.audit import AuditAction, AuditLog
from siades_api.models.letter import DigitalSignature, LetterRequest, LetterStatus, LetterType
from siades_api.models.user import Resident, User, UserRole

__all__ = [
    "User",
    "UserRole",
    "Resident",
    "LetterType",
    "LetterRequest",
    "LetterStatus",
    "DigitalSignature",
    "AuditLog",
    "AuditAction",
]
