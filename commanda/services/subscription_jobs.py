from __future__ import annotations

import logging
from typing import Any

import httpx

from commanda.core.config import APP_URL, INNGEST_INTERNAL_SECRET
from commanda.core.errors import UpstreamFailure
from commanda.services.event_bus import event_bus
from commanda.services.subscription_watcher import (
    SUBSCRIPTION_CANCELLED,
    SUBSCRIPTION_EXPIRED,
    SUBSCRIPTION_REACTIVATED,
)

logger = logging.getLogger(__name__)

INTERNAL_SECRET_HEADER = "x-inngest-secret"


def call_internal(
    path: str,
    tenant_id: str,
    *,
    action: str,
    transport: httpx.BaseTransport | None = None,
) -> dict[str, Any]:
    """Chama uma rota de WhatsApp deste serviço como job interno."""
    url = f"{APP_URL}{path}"
    headers = {INTERNAL_SECRET_HEADER: INNGEST_INTERNAL_SECRET}
    with httpx.Client(timeout=60.0, transport=transport) as client:
        response = client.post(url, headers=headers, json={"tenantId": tenant_id})

    try:
        body = response.json()
    except ValueError:
        body = {"raw": response.text}

    if not response.is_success:
        logger.error(
            "job %s failed tenant_id=%s status=%s",
            action,
            tenant_id,
            response.status_code,
            extra={"tenant_id": tenant_id},
        )
        # levanta para o runner tentar de novo
        raise UpstreamFailure(f"Erro ao {action}: {body}")

    logger.info("job %s done tenant_id=%s", action, tenant_id, extra={"tenant_id": tenant_id})
    return body


def disconnect_whatsapp(data: dict[str, Any], *, transport: httpx.BaseTransport | None = None) -> dict[str, Any]:
    tenant_id = data["tenantId"]
    call_internal("/api/whatsapp/disconnect", tenant_id, action="desconectar", transport=transport)
    return {"success": True, "tenantId": tenant_id}


def delete_whatsapp_instance(data: dict[str, Any], *, transport: httpx.BaseTransport | None = None) -> dict[str, Any]:
    tenant_id = data["tenantId"]
    call_internal("/api/whatsapp/delete", tenant_id, action="deletar", transport=transport)
    return {"success": True, "tenantId": tenant_id}


def reconnect_whatsapp(data: dict[str, Any], *, transport: httpx.BaseTransport | None = None) -> dict[str, Any]:
    tenant_id = data["tenantId"]
    was_deleted = bool(data.get("wasDeleted"))
    if was_deleted:
        call_internal("/api/whatsapp/create", tenant_id, action="criar instância", transport=transport)
    else:
        call_internal("/api/whatsapp/qrcode", tenant_id, action="gerar QR Code", transport=transport)
    return {"success": True, "tenantId": tenant_id, "wasDeleted": was_deleted}


event_bus.subscribe(SUBSCRIPTION_EXPIRED, disconnect_whatsapp)
event_bus.subscribe(SUBSCRIPTION_CANCELLED, delete_whatsapp_instance)
event_bus.subscribe(SUBSCRIPTION_REACTIVATED, reconnect_whatsapp)
