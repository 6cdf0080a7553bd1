"""Letter type and letter request endpoints."""

from typing import Optional

from fastapi import APIRouter, Body, Depends, Query, status
from sqlalchemy.orm import Session

from siades_api.audit.recorder import AuditRecorder
from siades_api.db.session import get_db
from siades_api.letters.queries import LetterRequestQueries
from siades_api.letters.registry import LetterTypeRegistry
from siades_api.letters.schemas import (
    AuditLogResponse,
    LetterRequestPage,
    LetterRequestResponse,
    LetterTypePage,
    LetterTypeResponse,
)
from siades_api.letters.workflow import ENTITY_TABLE, WorkflowEngine
from siades_api.middleware.actor import Actor, get_current_actor

router = APIRouter(prefix="/v1/letters", tags=["letters"])


# Letter types

@router.post("/types", response_model=LetterTypeResponse, status_code=status.HTTP_201_CREATED)
def create_letter_type(
    payload: dict = Body(...),
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_current_actor),
):
    """Create a letter type."""
    return LetterTypeRegistry(db).create(payload, actor.id)


@router.get("/types", response_model=LetterTypePage)
def list_letter_types(
    page: int = Query(1),
    limit: int = Query(20),
    db: Session = Depends(get_db),
):
    """List active letter types."""
    return LetterTypeRegistry(db).list_active(page=page, limit=limit)


@router.put("/types/{letter_type_id}", response_model=LetterTypeResponse)
def update_letter_type(
    letter_type_id: str,
    payload: dict = Body(...),
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_current_actor),
):
    """Update a letter type."""
    return LetterTypeRegistry(db).update(letter_type_id, payload, actor.id)


@router.delete("/types/{letter_type_id}", response_model=LetterTypeResponse)
def deactivate_letter_type(
    letter_type_id: str,
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_current_actor),
):
    """Deactivate a letter type."""
    return LetterTypeRegistry(db).deactivate(letter_type_id, actor.id)


@router.post("/types/{letter_type_id}/reactivate", response_model=LetterTypeResponse)
def reactivate_letter_type(
    letter_type_id: str,
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_current_actor),
):
    """Reactivate a letter type."""
    return LetterTypeRegistry(db).reactivate(letter_type_id, actor.id)


# Letter requests

@router.post("/requests", response_model=LetterRequestResponse, status_code=status.HTTP_201_CREATED)
def create_letter_request(
    payload: dict = Body(...),
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_current_actor),
):
    """File a letter request on behalf of a resident."""
    return WorkflowEngine(db).create_request(
        letter_type_id=payload.get("letter_type_id"),
        resident_id=payload.get("resident_id"),
        purpose=payload.get("purpose"),
        operator_id=actor.id,
    )


@router.get("/requests", response_model=LetterRequestPage)
def list_letter_requests(
    page: Optional[str] = None,
    limit: Optional[str] = None,
    status_filter: Optional[str] = Query(None, alias="status"),
    letter_type_id: Optional[str] = None,
    resident_id: Optional[str] = None,
    operator_id: Optional[str] = None,
    kepala_desa_id: Optional[str] = None,
    start_date: Optional[str] = None,
    end_date: Optional[str] = None,
    sort_by: Optional[str] = None,
    sort_order: Optional[str] = None,
    db: Session = Depends(get_db),
):
    """List letter requests with filters and sorting."""
    params = {
        "page": page,
        "limit": limit,
        "status": status_filter,
        "letter_type_id": letter_type_id,
        "resident_id": resident_id,
        "operator_id": operator_id,
        "kepala_desa_id": kepala_desa_id,
        "start_date": start_date,
        "end_date": end_date,
        "sort_by": sort_by,
        "sort_order": sort_order,
    }
    return LetterRequestQueries(db).list({k: v for k, v in params.items() if v is not None})


@router.get("/requests/{request_id}", response_model=LetterRequestResponse)
def get_letter_request(request_id: str, db: Session = Depends(get_db)):
    """Get a letter request with its signature."""
    return WorkflowEngine(db).get_request(request_id)


@router.get("/requests/{request_id}/audit", response_model=list[AuditLogResponse])
def get_letter_request_audit(request_id: str, db: Session = Depends(get_db)):
    """Get the audit trail of a letter request."""
    letter_request = WorkflowEngine(db).get_request(request_id)
    return AuditRecorder(db).entries_for(ENTITY_TABLE, letter_request.id)


@router.patch("/requests/{request_id}/verify", response_model=LetterRequestResponse)
def verify_letter_request(
    request_id: str,
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_current_actor),
):
    """Verify a pending request."""
    return WorkflowEngine(db).verify(request_id, actor.id)


@router.patch("/requests/{request_id}/approve", response_model=LetterRequestResponse)
def approve_letter_request(
    request_id: str,
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_current_actor),
):
    """Approve a verified request and issue its signature."""
    return WorkflowEngine(db).approve(request_id, actor.id)


@router.patch("/requests/{request_id}/reject", response_model=LetterRequestResponse)
def reject_letter_request(
    request_id: str,
    payload: Optional[dict] = Body(None),
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_current_actor),
):
    """Reject a pending or verified request."""
    return WorkflowEngine(db).reject(request_id, actor.id, (payload or {}).get("reason"))
