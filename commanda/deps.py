# commanda/deps.py
from __future__ import annotations

import hmac
import logging
from dataclasses import dataclass
from typing import Optional

from fastapi import Body, Depends, Request
from sqlalchemy.orm import Session

from commanda.core.config import INNGEST_INTERNAL_SECRET
from commanda.core.database import get_db
from commanda.core.errors import Unauthenticated, ValidationFailed
from commanda.core.request_context import set_request_context
from commanda.integrations.uazapi import UazapiClient
from commanda.repositories import AdminRepository, SessionRepository
from commanda.schemas.requests import WhatsAppRequest
from commanda.services.job_dispatcher import JobDispatcher, build_dispatcher
from commanda.services.session_auth import DashboardUser, load_dashboard_user, session_user_id
from commanda.services.tenant_auth import TenantContext, resolve_tenant_context
from commanda.services.whatsapp_instances import WhatsAppInstanceService

logger = logging.getLogger(__name__)

INTERNAL_SECRET_HEADER = "x-inngest-secret"


def _remember_caller(request: Request, *, tenant_id: str, user_id: str | None, auth_scheme: str) -> None:
    # request.state chega ao middleware; o contextvar vale para os logs desta thread
    request.state.tenant_id = tenant_id
    request.state.user_id = user_id
    request.state.auth_scheme = auth_scheme
    set_request_context(tenant_id=tenant_id, user_id=user_id, auth_scheme=auth_scheme)


def get_admin_repository(db: Session = Depends(get_db)) -> AdminRepository:
    return AdminRepository(db)


def get_dashboard_user(request: Request, db: Session = Depends(get_db)) -> DashboardUser:
    """Usuário do dashboard a partir do cookie de sessão assinado."""
    user_id = session_user_id(request)
    user = load_dashboard_user(SessionRepository(db, user_id))
    _remember_caller(request, tenant_id=user.tenant_id, user_id=user.user_id, auth_scheme="session")
    return user


def get_tenant_context(
    request: Request,
    repository: AdminRepository = Depends(get_admin_repository),
) -> TenantContext:
    context = resolve_tenant_context(request.headers, repository)
    _remember_caller(request, tenant_id=context.tenant_id, user_id=None, auth_scheme=context.auth_scheme)
    return context


def get_job_dispatcher() -> JobDispatcher:
    return build_dispatcher()


def get_uazapi_client() -> UazapiClient:
    return UazapiClient()


def get_whatsapp_service(
    repository: AdminRepository = Depends(get_admin_repository),
    client: UazapiClient = Depends(get_uazapi_client),
) -> WhatsAppInstanceService:
    return WhatsAppInstanceService(repository, client)


@dataclass(frozen=True)
class WhatsAppCaller:
    tenant_id: str
    user_id: str | None
    auth_scheme: str
    phone: str | None = None


def internal_secret_matches(provided: str) -> bool:
    if not INNGEST_INTERNAL_SECRET:
        return False
    return hmac.compare_digest(provided.encode("utf-8"), INNGEST_INTERNAL_SECRET.encode("utf-8"))


def get_whatsapp_caller(
    request: Request,
    body: Optional[WhatsAppRequest] = Body(default=None),
    db: Session = Depends(get_db),
) -> WhatsAppCaller:
    """Chamador das rotas de WhatsApp: job interno (segredo + tenantId) ou sessão do dashboard.

    Com o header ``x-inngest-secret`` presente, só o segredo vale; um segredo
    errado não cai para a sessão.
    """
    body = body or WhatsAppRequest()
    provided_secret = request.headers.get(INTERNAL_SECRET_HEADER)

    if provided_secret is not None:
        if not internal_secret_matches(provided_secret):
            logger.warning("internal secret rejected endpoint=%s", request.url.path)
            raise Unauthenticated()
        tenant_id = (body.tenant_id or "").strip()
        if not tenant_id:
            raise ValidationFailed("tenantId é obrigatório")
        _remember_caller(request, tenant_id=tenant_id, user_id=None, auth_scheme="internal")
        return WhatsAppCaller(tenant_id=tenant_id, user_id=None, auth_scheme="internal", phone=body.phone)

    user = get_dashboard_user(request, db)
    return WhatsAppCaller(
        tenant_id=user.tenant_id,
        user_id=user.user_id,
        auth_scheme="session",
        phone=body.phone,
    )
