"""Resolução do tenant a partir das credenciais de integração.

Usado pelo bot/automação (n8n) nas rotas ``/api/tenant/*``. O tenant vem
sempre do registro da instância encontrado no banco, nunca de um valor
informado pelo chamador.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Mapping

from commanda.core.errors import InvalidCredentials, MissingCredentials
from commanda.repositories import AdminRepository

logger = logging.getLogger(__name__)

INSTANCE_TOKEN_HEADER = "x-instance-token"
API_KEY_HEADER = "x-api-key"


@dataclass(frozen=True)
class TenantContext:
    tenant_id: str
    instance_id: str
    instance_token: str
    api_key: str
    # "instance_token" ou "api_key": o header que identificou a instância
    auth_scheme: str


def _header(headers: Mapping[str, str], name: str) -> str | None:
    # comparação exata: só o valor vazio conta como ausente
    return headers.get(name) or None


def resolve_tenant_context(headers: Mapping[str, str], repository: AdminRepository) -> TenantContext:
    instance_token = _header(headers, INSTANCE_TOKEN_HEADER)
    api_key = _header(headers, API_KEY_HEADER)

    # token da instância tem precedência sobre a api key
    if instance_token:
        instance = repository.find_instance_by_token(instance_token)
        scheme = "instance_token"
    elif api_key:
        instance = repository.find_instance_by_api_key(api_key)
        scheme = "api_key"
    else:
        raise MissingCredentials()

    if instance is None:
        logger.warning("integration credential rejected scheme=%s", scheme)
        raise InvalidCredentials()

    return TenantContext(
        tenant_id=str(instance.tenant_id),
        instance_id=str(instance.instance_id),
        instance_token=instance.instance_token,
        api_key=instance.api_key,
        auth_scheme=scheme,
    )
