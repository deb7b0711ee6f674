"""Ciclo de vida do pedido.

    pending ──accept──▶ preparing ──complete──▶ completed
       │                    │
       └──────reject────────┴──────────────────▶ cancelled

``completed`` e ``cancelled`` são terminais. Toda transição é feita com um
único UPDATE condicionado a ``id``, ``tenant_id`` e ao status lido, então
duas requisições concorrentes nunca aplicam a mesma transição duas vezes:
a perdedora recebe ``InvalidTransition`` com o status que venceu.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone

from sqlalchemy.exc import SQLAlchemyError

from commanda.core.errors import InvalidTransition, NotFound, UpstreamFailure
from commanda.repositories import AdminRepository
from commanda.services.order_events import emit_order_status_changed

logger = logging.getLogger(__name__)

DEFAULT_REJECT_REASON = "Recusado pelo atendente"


@dataclass(frozen=True)
class _Transition:
    verb: str
    from_statuses: tuple[str, ...]
    to_status: str
    at_field: str
    by_field: str


ACCEPT = _Transition("aceitar", ("pending",), "preparing", "accepted_at", "accepted_by")
COMPLETE = _Transition("completar", ("preparing",), "completed", "completed_at", "completed_by")
REJECT = _Transition("recusar", ("pending", "preparing"), "cancelled", "cancelled_at", "cancelled_by")


@dataclass
class TransitionResult:
    order_id: str
    status: str
    previous_status: str
    reason: str | None = None


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _snapshot(order, values: dict) -> dict:
    return {
        "customer_name": order.customer_name,
        "customer_phone": order.customer_phone,
        "delivery_type": order.delivery_type,
        "delivery_address": order.delivery_address,
        "total_amount": float(order.total_amount or 0),
        "cancellation_reason": values.get("cancellation_reason"),
    }


def _invalid(transition: _Transition, current_status: str) -> InvalidTransition:
    return InvalidTransition(
        f"Não é possível {transition.verb} pedido com status '{current_status}'",
        current_status=current_status,
    )


class OrderLifecycle:
    def __init__(self, repository: AdminRepository) -> None:
        self.repository = repository

    def accept(self, order_id: str, caller_tenant_id: str, actor_id: str) -> TransitionResult:
        return self._apply(ACCEPT, order_id, caller_tenant_id, actor_id)

    def complete(self, order_id: str, caller_tenant_id: str, actor_id: str) -> TransitionResult:
        return self._apply(COMPLETE, order_id, caller_tenant_id, actor_id)

    def reject(
        self,
        order_id: str,
        caller_tenant_id: str,
        actor_id: str,
        reason: str | None = None,
    ) -> TransitionResult:
        reason = (reason or "").strip() or DEFAULT_REJECT_REASON
        return self._apply(
            REJECT,
            order_id,
            caller_tenant_id,
            actor_id,
            extra_values={"cancellation_reason": reason},
            reason=reason,
        )

    def _apply(
        self,
        transition: _Transition,
        order_id: str,
        caller_tenant_id: str,
        actor_id: str,
        *,
        extra_values: dict | None = None,
        reason: str | None = None,
    ) -> TransitionResult:
        # pedido de outro tenant e pedido inexistente são indistinguíveis
        order = self.repository.get_order(order_id, caller_tenant_id)
        if order is None:
            raise NotFound("Pedido não encontrado")

        previous_status = order.status
        if previous_status not in transition.from_statuses:
            raise _invalid(transition, previous_status)

        now = _now()
        values = {
            "status": transition.to_status,
            transition.at_field: now,
            transition.by_field: actor_id,
            "updated_at": now,
            **(extra_values or {}),
        }

        try:
            updated = self.repository.transition_order(
                order_id,
                caller_tenant_id,
                from_statuses=(previous_status,),
                values=values,
            )
        except SQLAlchemyError as exc:
            logger.exception("order transition failed order_id=%s", order_id)
            raise UpstreamFailure(f"Erro ao {transition.verb} pedido") from exc

        if updated == 0:
            current = self.repository.get_order(order_id, caller_tenant_id, fresh=True)
            if current is None:
                raise NotFound("Pedido não encontrado")
            logger.warning(
                "order transition lost race order_id=%s expected=%s current=%s",
                order_id,
                previous_status,
                current.status,
            )
            raise _invalid(transition, current.status)

        emit_order_status_changed(
            order_id=order_id,
            tenant_id=caller_tenant_id,
            previous_status=previous_status,
            status=transition.to_status,
            actor_id=actor_id,
            order=_snapshot(order, values),
        )
        return TransitionResult(
            order_id=order_id,
            status=transition.to_status,
            previous_status=previous_status,
            reason=reason,
        )
