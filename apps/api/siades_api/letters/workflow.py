"""Letter request workflow engine.

Drives a letter request through its approval states:

    pending -> verified -> approved
    pending | verified -> rejected

Every transition runs as one unit of work: read the current status and
version, check the transition table, apply a conditional update keyed on
(id, status, version), run the action's side effects (signature issuance on
approval), append the audit entry and commit. An update that matches no row
means another transition committed first; the attempt is rolled back and
reported as ConcurrentModificationError, never retried here. A lock wait or
statement timeout is reported as TransitionTimeoutError; any other database
error propagates unchanged.
"""

import logging
import time
from datetime import datetime
from enum import Enum
from typing import Callable, Optional

from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session

from siades_api.audit.recorder import AuditRecorder
from siades_api.db.session import apply_statement_timeout, is_lock_timeout, transaction
from siades_api.errors import (
    ConcurrentModificationError,
    InvalidTransitionError,
    NotFoundError,
    TransitionTimeoutError,
    WorkflowError,
)
from siades_api.letters.registry import LetterTypeRegistry
from siades_api.letters.schemas import LetterRequestCreate, LetterRequestReject, parse_input, validate_uuid
from siades_api.letters.signature import SignatureIssuer
from siades_api.letters.store import LetterRequestStore
from siades_api.models import AuditAction, LetterRequest, LetterStatus
from siades_api.residents.directory import ResidentDirectory
from siades_api.settings import get_settings
from siades_api.utils.metrics import letter_transition_duration, letter_transitions, signatures_issued

settings = get_settings()
logger = logging.getLogger(__name__)

ENTITY_TABLE = "LetterRequest"


class LetterAction(str, Enum):
    """Actions that move a letter request between states."""

    CREATE = "create"
    VERIFY = "verify"
    APPROVE = "approve"
    REJECT = "reject"


TRANSITIONS = {
    (LetterStatus.PENDING, LetterAction.VERIFY): LetterStatus.VERIFIED,
    (LetterStatus.VERIFIED, LetterAction.APPROVE): LetterStatus.APPROVED,
    (LetterStatus.PENDING, LetterAction.REJECT): LetterStatus.REJECTED,
    (LetterStatus.VERIFIED, LetterAction.REJECT): LetterStatus.REJECTED,
}

TERMINAL_STATUSES = frozenset({LetterStatus.APPROVED, LetterStatus.REJECTED})


def next_status(current: LetterStatus, action: LetterAction) -> LetterStatus:
    """Target status for an action, or InvalidTransitionError."""
    try:
        return TRANSITIONS[(LetterStatus(current), LetterAction(action))]
    except KeyError:
        raise InvalidTransitionError(
            f"Cannot {LetterAction(action).value} a letter request that is {LetterStatus(current).value}"
        )


class WorkflowEngine:
    """Create letter requests and move them through approval."""

    def __init__(
        self,
        db: Session,
        store: Optional[LetterRequestStore] = None,
        signatures: Optional[SignatureIssuer] = None,
        audit: Optional[AuditRecorder] = None,
        letter_types: Optional[LetterTypeRegistry] = None,
        residents: Optional[ResidentDirectory] = None,
    ):
        """Initialize workflow engine over a caller-owned session."""
        self.db = db
        self.store = store or LetterRequestStore(db)
        self.signatures = signatures or SignatureIssuer(db)
        self.audit = audit or AuditRecorder(db)
        self.letter_types = letter_types or LetterTypeRegistry(db, audit=self.audit)
        self.residents = residents or ResidentDirectory(db)

    def get_request(self, request_id: str) -> LetterRequest:
        """Get a letter request with its letter type and signature."""
        request_id = validate_uuid(request_id, "request_id")
        letter_request = self.store.get(request_id)
        if not letter_request:
            raise NotFoundError("Letter request not found")
        return letter_request

    def create_request(
        self,
        letter_type_id: str,
        resident_id: str,
        purpose: str,
        operator_id: str,
    ) -> LetterRequest:
        """File a new request in pending state at version 1."""
        payload = parse_input(
            LetterRequestCreate,
            {"letter_type_id": letter_type_id, "resident_id": resident_id, "purpose": purpose},
        )

        # Letter type activity is checked here only, not on later transitions
        self.letter_types.get_active(payload.letter_type_id)
        if not self.residents.find_active(payload.resident_id):
            raise NotFoundError("Resident not found")

        with transaction(self.db):
            letter_request = self.store.add(
                LetterRequest(
                    status=LetterStatus.PENDING.value,
                    version=1,
                    letter_type_id=payload.letter_type_id,
                    resident_id=payload.resident_id,
                    operator_id=operator_id,
                    form_payload={"purpose": payload.purpose},
                )
            )
            request_id = letter_request.id
            self.audit.record(AuditAction.CREATE, ENTITY_TABLE, request_id, operator_id)
            letter_request = self.store.detach(self.store.get(request_id))

        letter_transitions.labels(action=LetterAction.CREATE.value, outcome="committed").inc()
        logger.info(
            f"Letter request {request_id} created",
            extra={"actor_id": operator_id, "letter_type_id": payload.letter_type_id},
        )
        return letter_request

    def verify(self, request_id: str, operator_id: str) -> LetterRequest:
        """Mark a pending request as verified."""
        return self._transition(request_id, LetterAction.VERIFY, operator_id)

    def approve(self, request_id: str, approver_id: str) -> LetterRequest:
        """Approve a verified request and issue its signature."""
        return self._transition(
            request_id,
            LetterAction.APPROVE,
            approver_id,
            values=lambda: {"approved_at": datetime.utcnow(), "kepala_desa_id": approver_id},
            side_effect=self.signatures.issue,
        )

    def reject(self, request_id: str, actor_id: str, reason: str) -> LetterRequest:
        """Reject a pending or verified request."""
        payload = parse_input(LetterRequestReject, {"reason": reason})
        return self._transition(
            request_id,
            LetterAction.REJECT,
            actor_id,
            values=lambda: {"rejection_reason": payload.reason, "rejected_by_id": actor_id},
        )

    def _transition(
        self,
        request_id: str,
        action: LetterAction,
        actor_id: str,
        values: Optional[Callable[[], dict]] = None,
        side_effect: Optional[Callable[[str], object]] = None,
    ) -> LetterRequest:
        """Apply one transition with the optimistic concurrency protocol.

        Returns the request as this transition committed it, detached from the
        session; a later commit by another actor does not show through.
        """
        request_id = validate_uuid(request_id, "request_id")
        started = time.perf_counter()

        try:
            with transaction(self.db):
                apply_statement_timeout(self.db, settings.transition_timeout_ms)

                state = self.store.read_state(request_id)
                if state is None:
                    raise NotFoundError("Letter request not found")
                target = next_status(state.status, action)

                swapped = self.store.compare_and_swap(
                    request_id,
                    state,
                    target,
                    values() if values else None,
                )
                if not swapped:
                    raise ConcurrentModificationError(
                        f"Letter request {request_id} was modified concurrently"
                    )

                if side_effect:
                    side_effect(request_id)
                self.audit.record(AuditAction.UPDATE, ENTITY_TABLE, request_id, actor_id)

                # Returned row holds the values this transaction commits
                letter_request = self.store.detach(self.store.get(request_id))
        except OperationalError as e:
            if not is_lock_timeout(e):
                letter_transitions.labels(action=action.value, outcome="error").inc()
                logger.error(
                    f"Letter request {request_id} {action.value} failed: {e}",
                    extra={"actor_id": actor_id},
                )
                raise
            letter_transitions.labels(action=action.value, outcome=TransitionTimeoutError.code).inc()
            logger.warning(
                f"Letter request {request_id} {action.value} timed out: {e}",
                extra={"actor_id": actor_id},
            )
            raise TransitionTimeoutError(
                f"Letter request {request_id} could not be updated in time"
            ) from e
        except WorkflowError as e:
            letter_transitions.labels(action=action.value, outcome=e.code).inc()
            log = logger.warning if e.retryable else logger.info
            log(
                f"Letter request {request_id} {action.value} refused: {e.code}",
                extra={"actor_id": actor_id},
            )
            raise
        finally:
            letter_transition_duration.labels(action=action.value).observe(
                time.perf_counter() - started
            )

        letter_transitions.labels(action=action.value, outcome="committed").inc()
        if target is LetterStatus.APPROVED:
            signatures_issued.inc()
        logger.info(
            f"Letter request {request_id} {state.status.value} -> {target.value} "
            f"(version {state.version + 1})",
            extra={"actor_id": actor_id},
        )
        return letter_request
