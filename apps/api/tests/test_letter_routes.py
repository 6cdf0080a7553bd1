"""Tests for letter type and letter request routes."""

import logging
import uuid
from types import SimpleNamespace
from unittest.mock import patch

import pytest
from fastapi.testclient import TestClient

from siades_api.db.base import Base
from siades_api.db.session import SessionLocal
from siades_api.db.session import engine as app_engine
from siades_api.errors import (
    ConcurrentModificationError,
    ConflictError,
    InvalidTransitionError,
    NotFoundError,
    TransitionTimeoutError,
)
from siades_api.main import app
from siades_api.models import LetterType, Resident, User, UserRole


@pytest.fixture
def api():
    """Client plus seeded actors against the application database."""
    Base.metadata.create_all(app_engine)
    db = SessionLocal()
    try:
        users = {
            role: User(name=f"{role.value} user", email=f"{role.value}@siades.test", role=role.value)
            for role in UserRole
        }
        inactive = User(name="Former operator", email="former@siades.test", role=UserRole.OPERATOR.value, is_active=False)
        resident = Resident(nik="3301010101010001", full_name="Budi Santoso")
        letter_type = LetterType(name="Surat Keterangan Usaha", description="Untuk keperluan usaha")
        db.add_all([*users.values(), inactive, resident, letter_type])
        db.commit()

        with TestClient(app) as client:
            yield SimpleNamespace(
                client=client,
                admin=users[UserRole.ADMIN].id,
                operator=users[UserRole.OPERATOR].id,
                kepala_desa=users[UserRole.KEPALA_DESA].id,
                inactive=inactive.id,
                resident=resident.id,
                letter_type=letter_type.id,
            )
    finally:
        db.close()
        Base.metadata.drop_all(app_engine)


def as_actor(actor_id):
    return {"x-actor-id": actor_id}


def _file_request(api):
    response = api.client.post(
        "/v1/letters/requests",
        json={
            "letter_type_id": api.letter_type,
            "resident_id": api.resident,
            "purpose": "Pengajuan kredit usaha",
        },
        headers=as_actor(api.operator),
    )
    assert response.status_code == 201
    return response.json()


class TestActorResolution:
    """Actor header and role checks."""

    def test_missing_actor(self, api):
        response = api.client.get("/v1/letters/types")
        assert response.status_code == 401

    def test_unknown_actor(self, api):
        response = api.client.get("/v1/letters/types", headers=as_actor(str(uuid.uuid4())))
        assert response.status_code == 401
        assert response.json()["detail"] == "Unknown or inactive actor."

    def test_inactive_actor(self, api):
        response = api.client.get("/v1/letters/types", headers=as_actor(api.inactive))
        assert response.status_code == 401

    @pytest.mark.parametrize("role", ["operator", "kepala_desa"])
    def test_only_admin_manages_types(self, api, role):
        response = api.client.post(
            "/v1/letters/types", json={"name": "Surat Baru"}, headers=as_actor(getattr(api, role))
        )
        assert response.status_code == 403

    def test_operator_cannot_approve(self, api):
        letter_request = _file_request(api)
        response = api.client.patch(
            f"/v1/letters/requests/{letter_request['id']}/approve", headers=as_actor(api.operator)
        )
        assert response.status_code == 403

    def test_kepala_desa_cannot_file_requests(self, api):
        response = api.client.post(
            "/v1/letters/requests",
            json={"letter_type_id": api.letter_type, "resident_id": api.resident, "purpose": "Keperluan usaha"},
            headers=as_actor(api.kepala_desa),
        )
        assert response.status_code == 403

    def test_request_id_echoed(self, api):
        response = api.client.get(
            "/v1/letters/types", headers={**as_actor(api.admin), "x-request-id": "req-123"}
        )
        assert response.headers["x-request-id"] == "req-123"

    def test_request_id_generated_when_missing(self, api):
        response = api.client.get("/v1/letters/types", headers=as_actor(api.admin))
        assert uuid.UUID(response.headers["x-request-id"])

    @pytest.mark.parametrize("forwarded", ["r" * 129, "req 123", "req-<script>"])
    def test_malformed_request_id_replaced(self, api, forwarded):
        response = api.client.get(
            "/v1/letters/types", headers={**as_actor(api.admin), "x-request-id": forwarded}
        )
        assert response.headers["x-request-id"] != forwarded
        assert uuid.UUID(response.headers["x-request-id"])

    def test_completed_request_logged_with_actor(self, api, caplog):
        with caplog.at_level(logging.INFO, logger="siades_api.middleware.correlation"):
            api.client.get("/v1/letters/types", headers={**as_actor(api.admin), "x-request-id": "req-456"})

        [record] = [r for r in caplog.records if r.getMessage() == "Request completed"]
        assert record.request_id == "req-456"
        assert record.actor_id == api.admin
        assert record.method == "GET"
        assert record.path == "/v1/letters/types"
        assert record.status_code == 200
        assert record.duration_ms >= 0

    def test_rejected_request_logged_without_actor(self, api, caplog):
        with caplog.at_level(logging.INFO, logger="siades_api.middleware.correlation"):
            api.client.get("/v1/letters/types")

        [record] = [r for r in caplog.records if r.getMessage() == "Request completed"]
        assert record.actor_id is None
        assert record.status_code == 401


class TestLetterTypeRoutes:
    """Letter type administration."""

    def test_create_and_list(self, api):
        response = api.client.post(
            "/v1/letters/types",
            json={"name": "Surat Pengantar SKCK", "description": "Pengantar ke kepolisian"},
            headers=as_actor(api.admin),
        )
        assert response.status_code == 201
        assert response.json()["is_active"] is True

        listing = api.client.get("/v1/letters/types", headers=as_actor(api.operator)).json()
        assert listing["total"] == 2

    def test_create_invalid(self, api):
        response = api.client.post("/v1/letters/types", json={"name": "AB"}, headers=as_actor(api.admin))
        assert response.status_code == 400
        body = response.json()
        assert body["code"] == "VALIDATION_ERROR"
        assert body["errors"][0]["field"] == "name"

    def test_update(self, api):
        response = api.client.put(
            f"/v1/letters/types/{api.letter_type}",
            json={"name": "Surat Keterangan Usaha Mikro"},
            headers=as_actor(api.admin),
        )
        assert response.status_code == 200
        assert response.json()["name"] == "Surat Keterangan Usaha Mikro"

    def test_deactivate_and_reactivate(self, api):
        response = api.client.delete(f"/v1/letters/types/{api.letter_type}", headers=as_actor(api.admin))
        assert response.status_code == 200
        assert response.json()["is_active"] is False

        listing = api.client.get("/v1/letters/types", headers=as_actor(api.admin)).json()
        assert listing["total"] == 0

        response = api.client.post(
            f"/v1/letters/types/{api.letter_type}/reactivate", headers=as_actor(api.admin)
        )
        assert response.status_code == 200
        assert response.json()["is_active"] is True

    def test_deactivate_blocked_by_approved_request(self, api):
        letter_request = _file_request(api)
        api.client.patch(f"/v1/letters/requests/{letter_request['id']}/verify", headers=as_actor(api.operator))
        api.client.patch(f"/v1/letters/requests/{letter_request['id']}/approve", headers=as_actor(api.kepala_desa))

        response = api.client.delete(f"/v1/letters/types/{api.letter_type}", headers=as_actor(api.admin))
        assert response.status_code == 400
        assert response.json()["code"] == "VALIDATION_ERROR"

    def test_unknown_type(self, api):
        response = api.client.delete(f"/v1/letters/types/{uuid.uuid4()}", headers=as_actor(api.admin))
        assert response.status_code == 404
        assert response.json()["code"] == "NOT_FOUND"


class TestLetterRequestRoutes:
    """Letter request lifecycle over HTTP."""

    def test_full_lifecycle(self, api):
        letter_request = _file_request(api)
        assert letter_request["status"] == "pending"
        assert letter_request["version"] == 1
        assert letter_request["purpose"] == "Pengajuan kredit usaha"
        assert letter_request["letter_type"]["name"] == "Surat Keterangan Usaha"

        request_id = letter_request["id"]
        verified = api.client.patch(f"/v1/letters/requests/{request_id}/verify", headers=as_actor(api.operator))
        assert verified.status_code == 200
        assert verified.json()["version"] == 2

        approved = api.client.patch(
            f"/v1/letters/requests/{request_id}/approve", headers=as_actor(api.kepala_desa)
        )
        assert approved.status_code == 200
        body = approved.json()
        assert body["status"] == "approved"
        assert body["version"] == 3
        assert body["kepala_desa_id"] == api.kepala_desa
        assert body["approved_at"] is not None
        assert body["signature"]["letter_request_id"] == request_id

        fetched = api.client.get(f"/v1/letters/requests/{request_id}", headers=as_actor(api.admin)).json()
        assert fetched["signature"]["document_hash"] == body["signature"]["document_hash"]

        audit = api.client.get(f"/v1/letters/requests/{request_id}/audit", headers=as_actor(api.admin)).json()
        assert [entry["action"] for entry in audit] == ["CREATE", "UPDATE", "UPDATE"]
        assert [entry["actor_id"] for entry in audit] == [api.operator, api.operator, api.kepala_desa]

    def test_reject_by_kepala_desa(self, api):
        request_id = _file_request(api)["id"]
        response = api.client.patch(
            f"/v1/letters/requests/{request_id}/reject",
            json={"reason": "Domisili tidak sesuai"},
            headers=as_actor(api.kepala_desa),
        )
        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "rejected"
        assert body["rejection_reason"] == "Domisili tidak sesuai"
        assert body["rejected_by_id"] == api.kepala_desa
        assert body["kepala_desa_id"] is None

    def test_reject_without_reason(self, api):
        request_id = _file_request(api)["id"]
        response = api.client.patch(f"/v1/letters/requests/{request_id}/reject", headers=as_actor(api.operator))
        assert response.status_code == 400
        assert response.json()["code"] == "VALIDATION_ERROR"

    def test_approve_pending_is_invalid_transition(self, api):
        request_id = _file_request(api)["id"]
        response = api.client.patch(
            f"/v1/letters/requests/{request_id}/approve", headers=as_actor(api.kepala_desa)
        )
        assert response.status_code == 400
        assert response.json()["code"] == "INVALID_TRANSITION"

    def test_create_with_unknown_resident(self, api):
        response = api.client.post(
            "/v1/letters/requests",
            json={"letter_type_id": api.letter_type, "resident_id": str(uuid.uuid4()), "purpose": "Keperluan usaha"},
            headers=as_actor(api.operator),
        )
        assert response.status_code == 404
        assert response.json()["code"] == "NOT_FOUND"

    def test_create_with_invalid_body(self, api):
        response = api.client.post(
            "/v1/letters/requests",
            json={"letter_type_id": "abc", "resident_id": api.resident},
            headers=as_actor(api.operator),
        )
        assert response.status_code == 400
        fields = {error["field"] for error in response.json()["errors"]}
        assert fields == {"letter_type_id", "purpose"}

    def test_unknown_request(self, api):
        response = api.client.get(f"/v1/letters/requests/{uuid.uuid4()}", headers=as_actor(api.admin))
        assert response.status_code == 404

    def test_malformed_request_id(self, api):
        response = api.client.patch("/v1/letters/requests/not-a-uuid/verify", headers=as_actor(api.operator))
        assert response.status_code == 400
        assert response.json()["code"] == "VALIDATION_ERROR"

    @pytest.mark.parametrize(
        "error,status_code",
        [
            (ConcurrentModificationError("modified concurrently"), 409),
            (TransitionTimeoutError("lock wait exceeded"), 409),
            (ConflictError("already signed"), 409),
            (InvalidTransitionError("already approved"), 400),
            (NotFoundError("Letter request not found"), 404),
        ],
    )
    def test_error_kinds_map_to_status(self, api, error, status_code):
        request_id = _file_request(api)["id"]
        with patch("siades_api.routes.letters.WorkflowEngine.verify", side_effect=error):
            response = api.client.patch(
                f"/v1/letters/requests/{request_id}/verify", headers=as_actor(api.operator)
            )
        assert response.status_code == status_code
        assert response.json() == {"detail": error.message, "code": error.code}

    def test_list_with_filters(self, api):
        first = _file_request(api)["id"]
        second = _file_request(api)["id"]
        api.client.patch(f"/v1/letters/requests/{second}/verify", headers=as_actor(api.operator))

        response = api.client.get(
            "/v1/letters/requests", params={"status": "pending"}, headers=as_actor(api.kepala_desa)
        )
        assert response.status_code == 200
        assert [item["id"] for item in response.json()["items"]] == [first]

        everything = api.client.get(
            "/v1/letters/requests", params={"limit": 1, "sort_order": "asc"}, headers=as_actor(api.admin)
        ).json()
        assert everything["total"] == 2
        assert everything["total_pages"] == 2

    def test_list_invalid_filter(self, api):
        response = api.client.get(
            "/v1/letters/requests", params={"status": "archived"}, headers=as_actor(api.admin)
        )
        assert response.status_code == 400
        assert response.json()["errors"][0]["field"] == "status"
