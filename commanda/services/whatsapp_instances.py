from __future__ import annotations

import logging
import re
import secrets
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any

from commanda.core.config import N8N_WEBHOOK_URL
from commanda.core.errors import CommandaError, Forbidden, NotFound, UpstreamFailure, ValidationFailed
from commanda.integrations.uazapi import DEFAULT_WEBHOOK_EVENTS, UazapiClient, UazapiError
from commanda.models.whatsapp_instance import WhatsAppInstance
from commanda.repositories import AdminRepository

logger = logging.getLogger(__name__)

_JID_PHONE = re.compile(r"^(\d+)@")

# status reportado pelo gateway -> status local
_GATEWAY_STATUS = {
    "connecting": "connecting",
    "open": "connecting",
    "connected": "connected",
    "disconnected": "disconnected",
    "close": "disconnected",
}


def generate_api_key(tenant_id: str) -> str:
    return f"tenant_{tenant_id[:8]}_{secrets.token_hex(16)}"


def phone_from_jid(jid: str | None) -> str | None:
    if not jid:
        return None
    match = _JID_PHONE.match(jid)
    return match.group(1) if match else None


def map_gateway_status(status: str | None) -> str | None:
    if not status:
        return None
    return _GATEWAY_STATUS.get(status.lower())


def _now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class GatewayEvent:
    instance_token: str
    status: str | None = None
    qrcode: str | None = None
    phone_number: str | None = None
    profile_name: str | None = None
    profile_pic_url: str | None = None


def parse_gateway_event(payload: dict[str, Any]) -> GatewayEvent:
    """Aceita o formato enriquecido pela automação e o formato cru da Uazapi."""
    if payload.get("instanceToken"):
        return GatewayEvent(
            instance_token=str(payload["instanceToken"]),
            status=payload.get("status"),
            qrcode=payload.get("qrcode"),
            phone_number=payload.get("phoneNumber") or phone_from_jid(payload.get("jid")),
            profile_name=payload.get("profileName"),
            profile_pic_url=payload.get("profilePicUrl"),
        )

    raw_instance = payload.get("instance")
    if payload.get("token") and isinstance(raw_instance, dict):
        return GatewayEvent(
            instance_token=str(payload["token"]),
            status=raw_instance.get("status"),
            qrcode=raw_instance.get("qrcode"),
            phone_number=phone_from_jid(raw_instance.get("jid")) or payload.get("owner"),
            profile_name=raw_instance.get("profileName"),
            profile_pic_url=raw_instance.get("profilePicUrl"),
        )

    raise ValidationFailed("Formato inválido. Esperado instanceToken ou token + instance")


class WhatsAppInstanceService:
    def __init__(
        self,
        repository: AdminRepository,
        client: UazapiClient | None = None,
        *,
        webhook_url: str | None = None,
    ) -> None:
        self.repository = repository
        self.client = client or UazapiClient()
        self.webhook_url = N8N_WEBHOOK_URL if webhook_url is None else webhook_url

    def _require_active_subscription(self, tenant_id: str, action: str) -> None:
        tenant = self.repository.get_tenant(tenant_id)
        if tenant is None:
            raise NotFound("Tenant não encontrado")
        if tenant.subscription_status != "active":
            logger.info(
                "whatsapp %s blocked tenant_id=%s subscription_status=%s",
                action,
                tenant_id,
                tenant.subscription_status,
            )
            raise Forbidden(f"Subscription inativa. Ative sua assinatura para {action}.")

    def _require_instance(self, tenant_id: str) -> WhatsAppInstance:
        instance = self.repository.get_instance_for_tenant(tenant_id)
        if instance is None or not instance.instance_token:
            raise NotFound("Instância não encontrada")
        return instance

    def create(self, tenant_id: str, user_id: str) -> WhatsAppInstance:
        self._require_active_subscription(tenant_id, "criar instância")
        if not self.webhook_url:
            logger.error("N8N_WEBHOOK_URL não configurada")
            raise CommandaError("Configuração do servidor incompleta")

        removed = self.repository.delete_instance_for_tenant(tenant_id)
        if removed:
            logger.info("previous whatsapp instance removed tenant_id=%s", tenant_id)

        instance_name = f"tenant_{tenant_id[:8]}"
        remote = self.client.init_instance(
            instance_name,
            admin_field_01=tenant_id,
            admin_field_02=user_id,
        )
        connection = self.client.connect_with_retry(remote.token)
        if not connection.instance.qrcode:
            logger.error("qrcode not generated tenant_id=%s instance_id=%s", tenant_id, remote.id)
            raise UpstreamFailure("QR Code não foi gerado. Tente novamente.")

        self.client.configure_webhook(remote.token, self.webhook_url, DEFAULT_WEBHOOK_EVENTS)

        instance = WhatsAppInstance(
            tenant_id=tenant_id,
            instance_id=remote.id,
            instance_token=remote.token,
            instance_name=instance_name,
            api_key=generate_api_key(tenant_id),
            status="connecting",
            qr_code=connection.instance.qrcode,
            pair_code=connection.instance.paircode,
            profile_name=connection.instance.profile_name,
            profile_pic_url=connection.instance.profile_pic_url,
            is_business=connection.instance.is_business,
            webhook_url=self.webhook_url,
        )
        instance = self.repository.add_instance(instance)
        logger.info("whatsapp instance created tenant_id=%s instance_id=%s", tenant_id, remote.id)
        return instance

    def request_qrcode(self, tenant_id: str, phone: str | None = None) -> str | None:
        self._require_active_subscription(tenant_id, "conectar o WhatsApp")
        instance = self._require_instance(tenant_id)

        phone = (phone or "").strip() or instance.phone_number
        if not phone:
            raise ValidationFailed("Número de telefone não encontrado")

        connection = self.client.connect(instance.instance_token, phone)
        qrcode = connection.instance.qrcode
        if qrcode:
            self.repository.update_instance(
                instance,
                {
                    "status": "connecting",
                    "qr_code": qrcode,
                    "phone_number": phone,
                    "updated_at": _now(),
                },
            )
        return qrcode

    def disconnect(self, tenant_id: str) -> dict[str, Any] | None:
        instance = self._require_instance(tenant_id)
        try:
            remote = self.client.disconnect(instance.instance_token)
        except UazapiError as exc:
            # o estado local segue o pedido mesmo se o gateway falhar
            logger.warning("uazapi disconnect failed tenant_id=%s error=%s", tenant_id, exc.message)
            remote = None

        now = _now()
        self.repository.update_instance(
            instance,
            {
                "status": "disconnected",
                "phone_number": None,
                "qr_code": None,
                "disconnected_at": now,
                "updated_at": now,
            },
        )
        logger.info("whatsapp instance disconnected tenant_id=%s", tenant_id)
        return remote

    def delete(self, tenant_id: str) -> dict[str, Any]:
        instance = self._require_instance(tenant_id)
        remote: dict[str, Any] | None = None
        remote_deleted = False
        try:
            remote = self.client.delete_instance(instance.instance_token)
            remote_deleted = True
        except UazapiError as exc:
            logger.error(
                "uazapi delete failed; removing local record anyway tenant_id=%s instance_id=%s error=%s",
                tenant_id,
                instance.instance_id,
                exc.message,
            )

        self.repository.delete_instance_for_tenant(tenant_id)
        logger.info("whatsapp instance deleted tenant_id=%s remote_deleted=%s", tenant_id, remote_deleted)
        return {"remote_deleted": remote_deleted, "uazapi": remote}

    def apply_gateway_event(self, payload: dict[str, Any]) -> tuple[bool, WhatsAppInstance]:
        """Aplica um evento de conexão do gateway.

        Retorna ``(alterou, instância)``; um evento sem mudança não grava nada.
        """
        event = parse_gateway_event(payload)
        instance = self.repository.find_instance_by_token(event.instance_token)
        if instance is None:
            raise NotFound("Instância não encontrada")

        values: dict[str, Any] = {}
        raw_status = (event.status or "").lower()

        mapped = map_gateway_status(event.status)
        if mapped and mapped != instance.status:
            values["status"] = mapped

        if event.qrcode:
            values["qr_code"] = event.qrcode

        if event.phone_number and raw_status in {"connected", "open"}:
            values["phone_number"] = event.phone_number
            values["connected_at"] = _now()
            values["disconnected_at"] = None
            if event.profile_name:
                values["profile_name"] = event.profile_name
            if event.profile_pic_url:
                values["profile_pic_url"] = event.profile_pic_url

        if raw_status in {"disconnected", "close"}:
            values.update(
                {
                    "disconnected_at": _now(),
                    "phone_number": None,
                    "profile_name": None,
                    "profile_pic_url": None,
                    "qr_code": None,
                }
            )

        if not values:
            return False, instance

        values["updated_at"] = _now()
        instance = self.repository.update_instance(instance, values)
        logger.info(
            "whatsapp instance updated from gateway tenant_id=%s status=%s",
            instance.tenant_id,
            instance.status,
        )
        return True, instance
