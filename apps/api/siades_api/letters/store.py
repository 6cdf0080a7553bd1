"""Versioned persistence for letter requests."""

from typing import NamedTuple, Optional

from sqlalchemy.orm import Session, joinedload

from siades_api.models import LetterRequest, LetterStatus


class RequestState(NamedTuple):
    """Status and version observed for a request."""

    status: LetterStatus
    version: int


class LetterRequestStore:
    """Read and conditionally update letter request rows."""

    def __init__(self, db: Session):
        """Initialize store."""
        self.db = db

    def add(self, letter_request: LetterRequest) -> LetterRequest:
        """Insert a new request."""
        self.db.add(letter_request)
        self.db.flush()
        return letter_request

    def get(self, request_id: str) -> Optional[LetterRequest]:
        """Get request with its letter type and signature."""
        return (
            self.db.query(LetterRequest)
            .options(
                joinedload(LetterRequest.letter_type),
                joinedload(LetterRequest.signature),
            )
            .populate_existing()
            .filter(LetterRequest.id == request_id)
            .first()
        )

    def read_state(self, request_id: str) -> Optional[RequestState]:
        """Read current status and version without loading the entity."""
        row = (
            self.db.query(LetterRequest.status, LetterRequest.version)
            .filter(LetterRequest.id == request_id)
            .first()
        )
        if row is None:
            return None
        return RequestState(LetterStatus(row.status), row.version)

    def compare_and_swap(
        self,
        request_id: str,
        expected: RequestState,
        new_status: LetterStatus,
        values: Optional[dict] = None,
    ) -> bool:
        """Move the request to new_status only if it still has the expected status and version.

        Returns False when another writer got there first (zero rows matched).
        """
        changes = dict(values or {})
        changes["status"] = new_status.value
        changes["version"] = LetterRequest.version + 1

        updated = (
            self.db.query(LetterRequest)
            .filter(
                LetterRequest.id == request_id,
                LetterRequest.status == expected.status.value,
                LetterRequest.version == expected.version,
            )
            .update(changes, synchronize_session=False)
        )
        return updated == 1

    def detach(self, letter_request: LetterRequest) -> LetterRequest:
        """Remove a loaded request and its signature from the session, keeping loaded values."""
        if letter_request.signature is not None:
            self.db.expunge(letter_request.signature)
        self.db.expunge(letter_request)
        return letter_request

    def count_by_type_and_status(self, letter_type_id: str, status: LetterStatus) -> int:
        """Count requests of a letter type in a status."""
        return (
            self.db.query(LetterRequest)
            .filter(
                LetterRequest.letter_type_id == letter_type_id,
                LetterRequest.status == status.value,
            )
            .count()
        )
