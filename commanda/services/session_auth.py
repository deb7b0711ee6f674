from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Any, Dict, Optional

from fastapi import Request
from itsdangerous import BadSignature, SignatureExpired, URLSafeTimedSerializer

from commanda.core.config import (
    SESSION_COOKIE_NAME,
    SESSION_MAX_AGE_SECONDS,
    SESSION_SECRET,
)
from commanda.core.errors import NotFound, Unauthenticated
from commanda.repositories import SessionRepository

SESSION_SALT = "dashboard-session"


@dataclass(frozen=True)
class DashboardUser:
    user_id: str
    tenant_id: str
    email: str | None = None


def _serializer() -> URLSafeTimedSerializer:
    if not SESSION_SECRET:
        raise RuntimeError("SESSION_SECRET não configurado.")
    return URLSafeTimedSerializer(SESSION_SECRET, salt=SESSION_SALT)


def create_session(user_id: str) -> str:
    payload = {
        "user_id": user_id,
        "exp": int(time.time()) + SESSION_MAX_AGE_SECONDS,
    }
    return _serializer().dumps(payload)


def decode_session(token: str) -> Optional[Dict[str, Any]]:
    try:
        payload = _serializer().loads(token, max_age=SESSION_MAX_AGE_SECONDS)
    except (BadSignature, SignatureExpired, ValueError):
        return None
    if not isinstance(payload, dict):
        return None
    exp = payload.get("exp")
    if exp is not None:
        try:
            if int(exp) < int(time.time()):
                return None
        except (TypeError, ValueError):
            return None
    return payload


def session_user_id(request: Request) -> str:
    """Lê o cookie de sessão e devolve o user_id, ou levanta ``Unauthenticated``."""
    token = request.cookies.get(SESSION_COOKIE_NAME)
    if not token:
        raise Unauthenticated()
    payload = decode_session(token)
    if not payload:
        raise Unauthenticated()
    user_id = str(payload.get("user_id") or "").strip()
    if not user_id:
        raise Unauthenticated()
    return user_id


def load_dashboard_user(repository: SessionRepository) -> DashboardUser:
    profile = repository.get_profile()
    if profile is None:
        raise NotFound("Perfil não encontrado")
    return DashboardUser(
        user_id=str(profile.id),
        tenant_id=str(profile.tenant_id),
        email=profile.email,
    )
