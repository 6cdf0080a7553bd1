"""Request validation and response models for letter types and letter requests."""

import uuid
from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic import ValidationError as PydanticValidationError

from siades_api.errors import ValidationError


def validate_uuid(value: str, field: str = "id") -> str:
    """Return the canonical form of a UUID string or raise ValidationError."""
    try:
        return str(uuid.UUID(str(value)))
    except (TypeError, ValueError, AttributeError):
        raise ValidationError(
            "Invalid UUID format",
            errors=[{"field": field, "message": "Invalid UUID format"}],
        )


def parse_input(model: type[BaseModel], data: dict) -> BaseModel:
    """Validate input with a pydantic model, translating failures to ValidationError."""
    try:
        return model.model_validate(data)
    except PydanticValidationError as e:
        raise ValidationError(
            "Validation error",
            errors=[
                {"field": ".".join(str(loc) for loc in err["loc"]), "message": err["msg"]}
                for err in e.errors()
            ],
        ) from e


class _UUIDFields(BaseModel):
    """Canonicalize *_id fields given as UUID strings."""

    @field_validator("*", mode="before")
    @classmethod
    def _canonical_ids(cls, value, info):
        if info.field_name.endswith("_id") and value is not None:
            try:
                return str(uuid.UUID(str(value)))
            except ValueError:
                raise ValueError("Invalid UUID format")
        return value


# Letter types

class LetterTypeCreate(BaseModel):
    """Letter type creation request."""

    model_config = ConfigDict(extra="forbid")

    name: str = Field(..., min_length=3, max_length=100)
    description: Optional[str] = Field(None, max_length=255)


class LetterTypeUpdate(BaseModel):
    """Letter type update request."""

    model_config = ConfigDict(extra="forbid")

    name: Optional[str] = Field(None, min_length=3, max_length=100)
    description: Optional[str] = Field(None, max_length=255)


class LetterTypeResponse(BaseModel):
    """Letter type response."""

    id: str
    name: str
    description: Optional[str] = None
    is_active: bool
    created_at: datetime

    class Config:
        from_attributes = True


class LetterTypePage(BaseModel):
    """Page of letter types."""

    items: list[LetterTypeResponse]
    page: int
    limit: int
    total: int
    total_pages: int


# Letter requests

class LetterRequestCreate(_UUIDFields):
    """Letter request creation request."""

    model_config = ConfigDict(extra="forbid")

    letter_type_id: str
    resident_id: str
    purpose: str = Field(..., min_length=5, max_length=255)


class LetterRequestReject(BaseModel):
    """Rejection request."""

    model_config = ConfigDict(extra="forbid")

    reason: str = Field(..., min_length=3, max_length=255)


class LetterRequestQuery(_UUIDFields):
    """Filters, sort and pagination for listing letter requests."""

    model_config = ConfigDict(extra="forbid")

    page: int = Field(1, ge=1)
    limit: int = Field(20, ge=1, le=100)
    status: Optional[Literal["pending", "verified", "approved", "rejected"]] = None
    letter_type_id: Optional[str] = None
    resident_id: Optional[str] = None
    operator_id: Optional[str] = None
    kepala_desa_id: Optional[str] = None
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    sort_by: Literal["created_at", "approved_at"] = "created_at"
    sort_order: Literal["asc", "desc"] = "desc"


class LetterTypeSummary(BaseModel):
    """Letter type as embedded in a request."""

    id: str
    name: str

    class Config:
        from_attributes = True


class DigitalSignatureResponse(BaseModel):
    """Digital signature response."""

    id: str
    letter_request_id: str
    signature_image_ref: str
    document_hash: str
    qr_code_ref: str
    created_at: datetime

    class Config:
        from_attributes = True


class LetterRequestResponse(BaseModel):
    """Letter request response."""

    id: str
    status: str
    version: int
    letter_type_id: str
    resident_id: str
    operator_id: str
    kepala_desa_id: Optional[str] = None
    rejected_by_id: Optional[str] = None
    purpose: Optional[str] = None
    approved_at: Optional[datetime] = None
    rejection_reason: Optional[str] = None
    created_at: datetime
    letter_type: Optional[LetterTypeSummary] = None
    signature: Optional[DigitalSignatureResponse] = None

    class Config:
        from_attributes = True


class LetterRequestPage(BaseModel):
    """Page of letter requests."""

    items: list[LetterRequestResponse]
    page: int
    limit: int
    total: int
    total_pages: int


class AuditLogResponse(BaseModel):
    """Audit log entry response."""

    id: int
    action: str
    entity_table: str
    entity_id: str
    actor_id: str
    created_at: datetime

    class Config:
        from_attributes = True
