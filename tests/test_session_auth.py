import time
from types import SimpleNamespace

import pytest
from itsdangerous import URLSafeTimedSerializer

from commanda.core.config import SESSION_COOKIE_NAME
from commanda.core.errors import NotFound, Unauthenticated
from commanda.repositories import SessionRepository
from commanda.services import session_auth
from commanda.services.session_auth import (
    SESSION_SALT,
    create_session,
    decode_session,
    load_dashboard_user,
    session_user_id,
)
from tests.fixtures_data import TENANT_A, USER_A, USER_B, seed_profile, seed_tenant


def _request(cookies):
    return SimpleNamespace(cookies=cookies)


def test_session_cookie_carries_user_id():
    token = create_session(USER_A)

    assert decode_session(token)["user_id"] == USER_A
    assert session_user_id(_request({SESSION_COOKIE_NAME: token})) == USER_A


def test_tampered_or_foreign_signed_token_is_rejected():
    token = create_session(USER_A)
    forged = URLSafeTimedSerializer("outro-segredo", salt=SESSION_SALT).dumps({"user_id": USER_A})

    assert decode_session(token[:-2] + "xx") is None
    assert decode_session(forged) is None


def test_expired_session_is_rejected(monkeypatch):
    token = create_session(USER_A)
    ten_days_later = time.time() + 10 * 24 * 3600
    monkeypatch.setattr(session_auth.time, "time", lambda: ten_days_later)

    assert decode_session(token) is None


@pytest.mark.parametrize("cookies", [{}, {SESSION_COOKIE_NAME: ""}, {SESSION_COOKIE_NAME: "lixo"}])
def test_missing_or_invalid_cookie_is_unauthenticated(cookies):
    with pytest.raises(Unauthenticated) as exc:
        session_user_id(_request(cookies))

    assert exc.value.message == "Não autorizado"
    assert exc.value.status_code == 401


def test_dashboard_user_comes_from_profile(db):
    seed_tenant(db)
    seed_profile(db)

    user = load_dashboard_user(SessionRepository(db, USER_A))

    assert user.user_id == USER_A
    assert user.tenant_id == TENANT_A
    assert user.email == "dono@burger.test"


def test_session_without_profile_is_not_found(db):
    seed_tenant(db)

    with pytest.raises(NotFound) as exc:
        load_dashboard_user(SessionRepository(db, USER_B))

    assert exc.value.message == "Perfil não encontrado"
