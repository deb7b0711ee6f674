from __future__ import annotations

from contextvars import ContextVar


_REQUEST_ID_CTX: ContextVar[str | None] = ContextVar("request_id", default=None)
_TENANT_ID_CTX: ContextVar[str | None] = ContextVar("tenant_id", default=None)
_USER_ID_CTX: ContextVar[str | None] = ContextVar("user_id", default=None)
# "session", "instance_token", "api_key" ou "internal"
_AUTH_SCHEME_CTX: ContextVar[str | None] = ContextVar("auth_scheme", default=None)

_ALL_VARS = (_REQUEST_ID_CTX, _TENANT_ID_CTX, _USER_ID_CTX, _AUTH_SCHEME_CTX)


def set_request_context(
    *,
    request_id: str | None = None,
    tenant_id: str | None = None,
    user_id: str | None = None,
    auth_scheme: str | None = None,
) -> None:
    if request_id is not None:
        _REQUEST_ID_CTX.set(request_id)
    if tenant_id is not None:
        _TENANT_ID_CTX.set(str(tenant_id))
    if user_id is not None:
        _USER_ID_CTX.set(str(user_id))
    if auth_scheme is not None:
        _AUTH_SCHEME_CTX.set(auth_scheme)


def get_request_id() -> str | None:
    return _REQUEST_ID_CTX.get()


def get_tenant_id() -> str | None:
    return _TENANT_ID_CTX.get()


def get_user_id() -> str | None:
    return _USER_ID_CTX.get()


def get_auth_scheme() -> str | None:
    return _AUTH_SCHEME_CTX.get()


def clear_request_context() -> None:
    for var in _ALL_VARS:
        var.set(None)
