"""Append-only audit recorder."""

import logging

from sqlalchemy.orm import Session

from siades_api.models import AuditAction, AuditLog

logger = logging.getLogger(__name__)


class AuditRecorder:
    """Write audit entries inside the caller's transaction."""

    def __init__(self, db: Session):
        """Initialize audit recorder."""
        self.db = db

    def record(
        self,
        action: AuditAction,
        entity_table: str,
        entity_id: str,
        actor_id: str,
    ) -> AuditLog:
        """Append one audit entry; committed or rolled back with the caller's unit of work."""
        entry = AuditLog(
            action=AuditAction(action).value,
            entity_table=entity_table,
            entity_id=entity_id,
            actor_id=actor_id,
        )
        self.db.add(entry)
        self.db.flush()

        logger.debug(
            f"Audit entry {entry.action} {entity_table}/{entity_id}",
            extra={"actor_id": actor_id},
        )
        return entry

    def entries_for(self, entity_table: str, entity_id: str) -> list[AuditLog]:
        """Get the audit trail of an entity, oldest first."""
        return (
            self.db.query(AuditLog)
            .filter(
                AuditLog.entity_table == entity_table,
                AuditLog.entity_id == entity_id,
            )
            .order_by(AuditLog.created_at.asc(), AuditLog.id.asc())
            .all()
        )
