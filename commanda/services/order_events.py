from __future__ import annotations

import logging

from commanda.services.event_bus import event_bus

logger = logging.getLogger(__name__)

ORDER_STATUS_CHANGED = "order.status.changed"


def build_status_payload(
    *,
    order_id: str,
    tenant_id: str,
    previous_status: str | None,
    status: str,
    actor_id: str | None,
    order: dict | None = None,
) -> dict:
    return {
        "order_id": order_id,
        "tenant_id": tenant_id,
        "status": status,
        "previous_status": previous_status,
        "actor_id": actor_id,
        # dados do pedido para quem avisa o cliente
        "order": order or {},
    }


def emit_order_status_changed(
    *,
    order_id: str,
    tenant_id: str,
    previous_status: str | None,
    status: str,
    actor_id: str | None,
    order: dict | None = None,
) -> None:
    if previous_status == status:
        return
    event_bus.emit(
        ORDER_STATUS_CHANGED,
        build_status_payload(
            order_id=order_id,
            tenant_id=tenant_id,
            previous_status=previous_status,
            status=status,
            actor_id=actor_id,
            order=order,
        ),
    )


def _log_status_change(payload: dict) -> None:
    logger.info(
        "order %s status %s -> %s by %s",
        payload["order_id"],
        payload.get("previous_status"),
        payload["status"],
        payload.get("actor_id"),
        extra={"tenant_id": payload["tenant_id"], "event_name": ORDER_STATUS_CHANGED},
    )


event_bus.subscribe(ORDER_STATUS_CHANGED, _log_status_change)
