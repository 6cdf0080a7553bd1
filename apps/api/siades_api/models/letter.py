"""Letter type, letter request and digital signature models."""

import uuid
from datetime import datetime
from enum import Enum

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, JSON, String, Text
from sqlalchemy.orm import relationship

from siades_api.db.base import Base


class LetterStatus(str, Enum):
    """Letter request workflow states."""

    PENDING = "pending"
    VERIFIED = "verified"
    APPROVED = "approved"
    REJECTED = "rejected"


class LetterType(Base):
    """Kind of official letter the office can issue."""

    __tablename__ = "letter_types"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    name = Column(String(100), nullable=False, index=True)
    description = Column(String(255), nullable=True)
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    # Relationships
    requests = relationship("LetterRequest", back_populates="letter_type")


class LetterRequest(Base):
    """Request for a letter, moved through the approval workflow."""

    __tablename__ = "letter_requests"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    status = Column(String(20), default=LetterStatus.PENDING.value, nullable=False, index=True)
    version = Column(Integer, default=1, nullable=False)  # CAS token, +1 per transition
    letter_type_id = Column(String(36), ForeignKey("letter_types.id"), nullable=False, index=True)
    resident_id = Column(String(36), ForeignKey("residents.id"), nullable=False, index=True)
    operator_id = Column(String(36), ForeignKey("users.id"), nullable=False, index=True)
    kepala_desa_id = Column(String(36), ForeignKey("users.id"), nullable=True, index=True)  # Set on approval only
    rejected_by_id = Column(String(36), ForeignKey("users.id"), nullable=True)
    form_payload = Column(JSON, nullable=False)  # {"purpose": ...}
    approved_at = Column(DateTime, nullable=True, index=True)
    rejection_reason = Column(Text, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False, index=True)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    # Relationships
    letter_type = relationship("LetterType", back_populates="requests")
    resident = relationship("Resident")
    signature = relationship("DigitalSignature", back_populates="letter_request", uselist=False)

    @property
    def purpose(self):
        return (self.form_payload or {}).get("purpose")


class DigitalSignature(Base):
    """Signature artifact certifying an approved letter request."""

    __tablename__ = "digital_signatures"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    letter_request_id = Column(
        String(36), ForeignKey("letter_requests.id"), nullable=False, unique=True, index=True
    )
    signature_image_ref = Column(String(500), nullable=False)
    document_hash = Column(String(255), nullable=False, unique=True)
    qr_code_ref = Column(String(500), nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    # Relationships
    letter_request = relationship("LetterRequest", back_populates="signature")
