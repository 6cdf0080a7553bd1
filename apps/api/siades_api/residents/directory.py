"""Read-only lookup of residents managed by the population registry."""

from typing import Optional

from sqlalchemy.orm import Session

from siades_api.models import Resident


class ResidentDirectory:
    """Resolve residents by id."""

    def __init__(self, db: Session):
        """Initialize resident directory."""
        self.db = db

    def find_active(self, resident_id: str) -> Optional[Resident]:
        """Get resident if it exists and has not been soft-deleted."""
        return (
            self.db.query(Resident)
            .filter(
                Resident.id == resident_id,
                Resident.is_active == True,  # noqa: E712
            )
            .first()
        )
