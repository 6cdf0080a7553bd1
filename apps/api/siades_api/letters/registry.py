"""Letter type registry."""

import logging
import math
from typing import Optional

from sqlalchemy.orm import Session

from siades_api.audit.recorder import AuditRecorder
from siades_api.db.session import transaction
from siades_api.errors import NotFoundError, ValidationError
from siades_api.letters.schemas import LetterTypeCreate, LetterTypeUpdate, parse_input, validate_uuid
from siades_api.letters.store import LetterRequestStore
from siades_api.models import AuditAction, LetterStatus, LetterType

logger = logging.getLogger(__name__)

ENTITY_TABLE = "LetterType"


class LetterTypeRegistry:
    """Manage the letter types requests can be filed under."""

    def __init__(self, db: Session, audit: Optional[AuditRecorder] = None):
        """Initialize letter type registry."""
        self.db = db
        self.audit = audit or AuditRecorder(db)

    def _find(self, letter_type_id: str, active_only: bool = True) -> Optional[LetterType]:
        query = self.db.query(LetterType).filter(LetterType.id == letter_type_id)
        if active_only:
            query = query.filter(LetterType.is_active == True)  # noqa: E712
        return query.first()

    def get_active(self, letter_type_id: str) -> LetterType:
        """Get an active letter type or raise NotFoundError."""
        letter_type_id = validate_uuid(letter_type_id, "letter_type_id")
        letter_type = self._find(letter_type_id)
        if not letter_type:
            raise NotFoundError("Letter type not found")
        return letter_type

    def list_active(self, page: int = 1, limit: int = 20) -> dict:
        """List active letter types, newest first."""
        if page < 1 or not 1 <= limit <= 100:
            raise ValidationError("Invalid pagination parameters")

        query = self.db.query(LetterType).filter(LetterType.is_active == True)  # noqa: E712
        total = query.count()
        items = (
            query.order_by(LetterType.created_at.desc())
            .offset((page - 1) * limit)
            .limit(limit)
            .all()
        )
        return {
            "items": items,
            "page": page,
            "limit": limit,
            "total": total,
            "total_pages": math.ceil(total / limit),
        }

    def create(self, data: dict, actor_id: str) -> LetterType:
        """Create a letter type."""
        payload = parse_input(LetterTypeCreate, data)

        with transaction(self.db):
            letter_type = LetterType(
                name=payload.name,
                description=payload.description,
                is_active=True,
            )
            self.db.add(letter_type)
            self.db.flush()
            self.audit.record(AuditAction.CREATE, ENTITY_TABLE, letter_type.id, actor_id)

        logger.info(f"Letter type {letter_type.id} created", extra={"actor_id": actor_id})
        return letter_type

    def update(self, letter_type_id: str, data: dict, actor_id: str) -> LetterType:
        """Update name or description of an active letter type."""
        letter_type_id = validate_uuid(letter_type_id, "letter_type_id")
        payload = parse_input(LetterTypeUpdate, data)
        changes = payload.model_dump(exclude_unset=True)

        with transaction(self.db):
            letter_type = self._find(letter_type_id)
            if not letter_type:
                raise NotFoundError("Letter type not found")
            for field, value in changes.items():
                setattr(letter_type, field, value)
            self.db.flush()
            self.audit.record(AuditAction.UPDATE, ENTITY_TABLE, letter_type_id, actor_id)

        return letter_type

    def deactivate(self, letter_type_id: str, actor_id: str) -> LetterType:
        """Soft-delete a letter type unless an approved request uses it."""
        letter_type_id = validate_uuid(letter_type_id, "letter_type_id")

        with transaction(self.db):
            letter_type = self._find(letter_type_id)
            if not letter_type:
                raise NotFoundError("Letter type not found")

            approved = LetterRequestStore(self.db).count_by_type_and_status(
                letter_type_id, LetterStatus.APPROVED
            )
            if approved > 0:
                raise ValidationError("Cannot delete letter type used in approved requests")

            letter_type.is_active = False
            self.db.flush()
            self.audit.record(AuditAction.DELETE, ENTITY_TABLE, letter_type_id, actor_id)

        logger.info(f"Letter type {letter_type_id} deactivated", extra={"actor_id": actor_id})
        return letter_type

    def reactivate(self, letter_type_id: str, actor_id: str) -> LetterType:
        """Undo a deactivation."""
        letter_type_id = validate_uuid(letter_type_id, "letter_type_id")

        with transaction(self.db):
            letter_type = self._find(letter_type_id, active_only=False)
            if not letter_type:
                raise NotFoundError("Letter type not found")
            if letter_type.is_active:
                return letter_type

            letter_type.is_active = True
            self.db.flush()
            self.audit.record(AuditAction.UPDATE, ENTITY_TABLE, letter_type_id, actor_id)

        logger.info(f"Letter type {letter_type_id} reactivated", extra={"actor_id": actor_id})
        return letter_type
