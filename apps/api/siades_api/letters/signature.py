"""Digital signature issuance for approved letter requests."""

import hashlib
import json
import logging
import uuid

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from siades_api.errors import ConflictError
from siades_api.models import DigitalSignature
from siades_api.settings import get_settings

settings = get_settings()
logger = logging.getLogger(__name__)


class SignatureIssuer:
    """Generate and persist one signature artifact per approved request."""

    def __init__(self, db: Session):
        """Initialize signature issuer."""
        self.db = db

    def _hash_document(self, letter_request_id: str, token: str) -> str:
        """Hash the request id and signing token."""
        document_str = json.dumps(
            {"letter_request_id": letter_request_id, "token": token},
            sort_keys=True,
        )
        return hashlib.sha256(document_str.encode()).hexdigest()

    def derive_artifact(self, letter_request_id: str, token: str) -> dict:
        """Derive artifact references from a signing token."""
        return {
            "signature_image_ref": f"{settings.signature_image_base.rstrip('/')}/{token}.png",
            "document_hash": self._hash_document(letter_request_id, token),
            "qr_code_ref": f"{settings.qr_code_base.rstrip('/')}/{token}.png",
        }

    def issue(self, letter_request_id: str) -> DigitalSignature:
        """Issue the signature for a request; raises ConflictError if one exists."""
        existing = (
            self.db.query(DigitalSignature.id)
            .filter(DigitalSignature.letter_request_id == letter_request_id)
            .first()
        )
        if existing:
            raise ConflictError(f"Letter request {letter_request_id} is already signed")

        token = str(uuid.uuid4())
        signature = DigitalSignature(
            letter_request_id=letter_request_id,
            **self.derive_artifact(letter_request_id, token),
        )
        self.db.add(signature)
        try:
            self.db.flush()
        except IntegrityError as e:
            raise ConflictError(f"Letter request {letter_request_id} is already signed") from e

        logger.info(
            f"Signature issued for letter request {letter_request_id}",
            extra={"document_hash": signature.document_hash},
        )
        return signature
