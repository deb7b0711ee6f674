"""Converte notificações de mudança na tabela ``tenants`` em eventos de assinatura.

    active    -> expired    subscription/expired
    expired   -> cancelled  subscription/cancelled
    expired   -> active     subscription/reactivated (wasDeleted=false)
    cancelled -> active     subscription/reactivated (wasDeleted=true)

Qualquer outro par é logado e descartado.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any

from commanda.services.job_dispatcher import JobDispatcher

logger = logging.getLogger(__name__)

SUBSCRIPTION_EXPIRED = "subscription/expired"
SUBSCRIPTION_CANCELLED = "subscription/cancelled"
SUBSCRIPTION_REACTIVATED = "subscription/reactivated"


@dataclass
class StatusChange:
    old_status: str | None
    new_status: str | None
    event_name: str | None = None

    @property
    def label(self) -> str:
        return f"{self.old_status} → {self.new_status}"


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


class SubscriptionWatcher:
    def __init__(self, dispatcher: JobDispatcher) -> None:
        self.dispatcher = dispatcher

    def handle(self, notification: dict[str, Any]) -> StatusChange | None:
        if notification.get("table") != "tenants":
            return None

        record = notification.get("record") or {}
        old_record = notification.get("old_record") or {}
        old_status = old_record.get("subscription_status")
        new_status = record.get("subscription_status")
        if old_status == new_status:
            return None

        change = StatusChange(old_status=old_status, new_status=new_status)
        logger.info("subscription status changed %s", change.label, extra={"tenant_id": record.get("id")})

        event = self._event_for(old_status, new_status, record)
        if event is None:
            logger.warning("unmapped subscription change %s", change.label, extra={"tenant_id": record.get("id")})
            return change

        change.event_name, data = event
        self.dispatcher.send(change.event_name, data)
        return change

    @staticmethod
    def _event_for(
        old_status: str | None,
        new_status: str | None,
        record: dict[str, Any],
    ) -> tuple[str, dict[str, Any]] | None:
        base = {"tenantId": record.get("id"), "tenantName": record.get("name")}
        if old_status == "active" and new_status == "expired":
            return SUBSCRIPTION_EXPIRED, {**base, "expiredAt": _now_iso()}
        if old_status == "expired" and new_status == "cancelled":
            return SUBSCRIPTION_CANCELLED, {**base, "cancelledAt": _now_iso()}
        if old_status in {"expired", "cancelled"} and new_status == "active":
            return SUBSCRIPTION_REACTIVATED, {
                **base,
                "wasDeleted": old_status == "cancelled",
                "reactivatedAt": _now_iso(),
            }
        return None
