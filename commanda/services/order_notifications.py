"""Avisa o cliente pelo WhatsApp quando o status do pedido muda.

O handler escuta ``order.status.changed`` e envia a mensagem para o fluxo
do n8n, que a entrega pela instância conectada do tenant. Só ``preparing``,
``completed`` e ``cancelled`` geram mensagem.
"""

from __future__ import annotations

import logging
from typing import Any, Callable

import httpx
from sqlalchemy.orm import Session

from commanda.core.config import N8N_ORDER_STATUS_WEBHOOK_URL, ORDER_NOTIFY_TIMEOUT_SECONDS
from commanda.core.database import SessionLocal
from commanda.core.errors import UpstreamFailure
from commanda.repositories import AdminRepository
from commanda.services.event_bus import event_bus
from commanda.services.order_events import ORDER_STATUS_CHANGED

logger = logging.getLogger(__name__)

DEFAULT_RESTAURANT_NAME = "Restaurante"

SKIPPED_NO_MESSAGE = "no_message_for_status"
SKIPPED_NOT_CONFIGURED = "n8n_not_configured"
SKIPPED_NOT_CONNECTED = "whatsapp_not_connected"
NOTIFIED = "notified"


def _greeting(customer_name: str | None) -> str:
    parts = (customer_name or "").split()
    return f"Olá {parts[0]}" if parts else "Olá"


def build_status_message(payload: dict[str, Any], restaurant_name: str) -> str | None:
    order = payload.get("order") or {}
    status = payload.get("status")
    short_id = str(payload.get("order_id", ""))[:8]
    greeting = _greeting(order.get("customer_name"))
    is_delivery = order.get("delivery_type") == "delivery"
    address = order.get("delivery_address")

    if status == "preparing":
        total = float(order.get("total_amount") or 0)
        where = f"🚚 Entregaremos em: {address}\n\n" if is_delivery else "📦 Pedido para retirada no local\n\n"
        return (
            "✅ *Pedido Aceito!*\n\n"
            f"{greeting}! Seu pedido *#{short_id}* foi aceito pelo {restaurant_name}.\n\n"
            "🍽️ Estamos preparando seu pedido agora!\n\n"
            f"📱 Total: R$ {total:.2f}\n"
            f"{where}"
            "Você receberá uma nova mensagem quando estiver pronto."
        )

    if status == "completed":
        if is_delivery:
            body = f"🚚 Seu pedido *#{short_id}* está a caminho!\n\nChegará em breve no endereço: {address}"
        else:
            body = f"📦 Seu pedido *#{short_id}* está pronto para retirada!\n\nVenha buscar no {restaurant_name}."
        return f"🎉 *Pedido Concluído!*\n\n{greeting}!\n\n{body}\n\n✨ Obrigado pela preferência!"

    if status == "cancelled":
        reason = order.get("cancellation_reason")
        reason_line = f"Motivo: {reason}\n\n" if reason else ""
        return (
            "❌ *Pedido Cancelado*\n\n"
            f"{greeting}!\n\n"
            f"Infelizmente não conseguimos aceitar seu pedido *#{short_id}*.\n\n"
            f"{reason_line}"
            "😔 Pedimos desculpas pelo inconveniente.\n\n"
            "Estamos à disposição para um novo pedido!"
        )

    return None


class OrderStatusNotifier:
    def __init__(
        self,
        webhook_url: str | None = None,
        *,
        session_factory: Callable[[], Session] = SessionLocal,
        timeout: float = ORDER_NOTIFY_TIMEOUT_SECONDS,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self.webhook_url = N8N_ORDER_STATUS_WEBHOOK_URL if webhook_url is None else webhook_url
        self._session_factory = session_factory
        self.timeout = timeout
        self._transport = transport

    def notify(self, payload: dict[str, Any]) -> str:
        """Retorna ``notified`` ou o motivo de não ter enviado."""
        tenant_id = payload.get("tenant_id")
        if payload.get("status") not in {"preparing", "completed", "cancelled"}:
            return SKIPPED_NO_MESSAGE
        if not self.webhook_url:
            logger.warning("N8N_ORDER_STATUS_WEBHOOK_URL não configurada", extra={"tenant_id": tenant_id})
            return SKIPPED_NOT_CONFIGURED

        db = self._session_factory()
        try:
            repository = AdminRepository(db)
            instance = repository.get_instance_for_tenant(tenant_id)
            tenant = repository.get_tenant(tenant_id)
        finally:
            db.close()

        if instance is None or instance.status != "connected":
            logger.warning("whatsapp not connected; customer not notified", extra={"tenant_id": tenant_id})
            return SKIPPED_NOT_CONNECTED

        message = build_status_message(payload, tenant.name if tenant else DEFAULT_RESTAURANT_NAME)
        order = payload.get("order") or {}
        body = {
            "instance_id": instance.instance_id,
            "phone": order.get("customer_phone"),
            "message": message,
            "order_id": payload.get("order_id"),
            "old_status": payload.get("previous_status"),
            "new_status": payload.get("status"),
            "tenant_id": tenant_id,
        }
        try:
            with httpx.Client(timeout=self.timeout, transport=self._transport) as client:
                response = client.post(self.webhook_url, json=body)
        except httpx.HTTPError as exc:
            logger.error("order notification failed error=%s", exc, extra={"tenant_id": tenant_id})
            raise UpstreamFailure("Erro ao notificar cliente") from exc

        if not response.is_success:
            logger.error(
                "order notification rejected status=%s",
                response.status_code,
                extra={"tenant_id": tenant_id},
            )
            raise UpstreamFailure("Erro ao notificar cliente")

        logger.info(
            "customer notified order_id=%s %s -> %s",
            payload.get("order_id"),
            payload.get("previous_status"),
            payload.get("status"),
            extra={"tenant_id": tenant_id},
        )
        return NOTIFIED


def notify_customer(payload: dict[str, Any]) -> None:
    OrderStatusNotifier().notify(payload)


event_bus.subscribe(ORDER_STATUS_CHANGED, notify_customer)
