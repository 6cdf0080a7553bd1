"""Actor middleware: resolve the user forwarded by the authentication gate."""

import logging
import re
from typing import NamedTuple, Optional

from fastapi import HTTPException, Request, status
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import JSONResponse

from siades_api.db.session import SessionLocal
from siades_api.models import User, UserRole
from siades_api.settings import get_settings

logger = logging.getLogger(__name__)

PUBLIC_PATHS = ["/health", "/ready", "/metrics", "/docs", "/openapi.json", "/"]

ALL_ROLES = frozenset(role.value for role in UserRole)
ADMIN = frozenset({UserRole.ADMIN.value})
OPERATOR = frozenset({UserRole.OPERATOR.value})
KEPALA_DESA = frozenset({UserRole.KEPALA_DESA.value})

# (method, path pattern) -> roles allowed; first match wins
ROLE_RULES = [
    ("POST", re.compile(r"^/v1/letters/types$"), ADMIN),
    ("PUT", re.compile(r"^/v1/letters/types/[^/]+$"), ADMIN),
    ("DELETE", re.compile(r"^/v1/letters/types/[^/]+$"), ADMIN),
    ("POST", re.compile(r"^/v1/letters/types/[^/]+/reactivate$"), ADMIN),
    ("GET", re.compile(r"^/v1/letters/"), ALL_ROLES),
    ("POST", re.compile(r"^/v1/letters/requests$"), OPERATOR),
    ("PATCH", re.compile(r"^/v1/letters/requests/[^/]+/verify$"), OPERATOR),
    ("PATCH", re.compile(r"^/v1/letters/requests/[^/]+/approve$"), KEPALA_DESA),
    ("PATCH", re.compile(r"^/v1/letters/requests/[^/]+/reject$"), OPERATOR | KEPALA_DESA),
]


class Actor(NamedTuple):
    """Authenticated user acting on a request."""

    id: str
    role: str


def get_allowed_roles(path: str, method: str) -> Optional[frozenset]:
    """Get roles allowed for a path and HTTP method."""
    normalized_path = path.rstrip("/") or "/"
    for rule_method, pattern, roles in ROLE_RULES:
        if rule_method == method and pattern.match(normalized_path):
            return roles
    return None


class ActorMiddleware(BaseHTTPMiddleware):
    """Attach the acting user to the request and enforce the route role table."""

    async def dispatch(self, request: Request, call_next):
        """Process request with actor resolution."""
        if (request.url.path.rstrip("/") or "/") in PUBLIC_PATHS:
            return await call_next(request)

        actor_id = request.headers.get(get_settings().actor_header)
        if not actor_id:
            return JSONResponse(
                status_code=status.HTTP_401_UNAUTHORIZED,
                content={"detail": "Missing actor. Requests must pass the authentication gate."},
            )

        db = SessionLocal()
        try:
            user = (
                db.query(User)
                .filter(User.id == actor_id, User.is_active == True)  # noqa: E712
                .first()
            )
            if not user:
                return JSONResponse(
                    status_code=status.HTTP_401_UNAUTHORIZED,
                    content={"detail": "Unknown or inactive actor."},
                )
            actor = Actor(id=user.id, role=user.role)
        finally:
            db.close()

        allowed = get_allowed_roles(request.url.path, request.method)
        if allowed is not None and actor.role not in allowed:
            logger.warning(
                "Actor role not allowed",
                extra={"actor_id": actor.id, "role": actor.role, "path": request.url.path},
            )
            return JSONResponse(
                status_code=status.HTTP_403_FORBIDDEN,
                content={"detail": "Insufficient permissions"},
            )

        request.state.actor = actor

        logger.info(
            "Actor resolved",
            extra={
                "actor_id": actor.id,
                "request_id": getattr(request.state, "request_id", None),
                "path": request.url.path,
            },
        )
        return await call_next(request)


def get_current_actor(request: Request) -> Actor:
    """Get the actor resolved by ActorMiddleware."""
    actor = getattr(request.state, "actor", None)
    if actor is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing actor.",
        )
    return actor
