from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation

from sqlalchemy.exc import SQLAlchemyError

from commanda.core.errors import NotFound, UpstreamFailure, ValidationFailed
from commanda.models.payment import PAYMENT_METHODS, Payment
from commanda.repositories import AdminRepository
from commanda.schemas.requests import CreatePaymentRequest

logger = logging.getLogger(__name__)


@dataclass
class RegisteredPayment:
    payment_id: str
    order_id: str
    amount: float


def _amount(value) -> Decimal:
    try:
        amount = Decimal(str(value))
    except (InvalidOperation, ValueError):
        raise ValidationFailed("Valor do pagamento inválido") from None
    if not amount.is_finite() or amount <= 0:
        raise ValidationFailed("Valor do pagamento inválido")
    return amount


def register_payment(
    repository: AdminRepository,
    tenant_id: str,
    request: CreatePaymentRequest,
) -> RegisteredPayment:
    """Registra o pagamento de um pedido do tenant. O status do pedido não muda."""
    order_id = (request.order_id or "").strip()
    if not order_id:
        raise ValidationFailed("order_id é obrigatório")
    if request.payment_method not in PAYMENT_METHODS:
        raise ValidationFailed("Método de pagamento inválido")
    amount = _amount(request.amount)

    order = repository.get_order(order_id, tenant_id)
    if order is None:
        raise NotFound("Pedido não encontrado")
    if repository.get_payment_for_order(order_id) is not None:
        raise ValidationFailed("Pedido já foi pago")

    payment = Payment(
        order_id=order_id,
        payment_method=request.payment_method,
        amount=amount,
        status="completed",
    )
    try:
        payment = repository.add_payment(payment)
    except SQLAlchemyError as exc:
        logger.exception("payment registration failed order_id=%s", order_id, extra={"tenant_id": tenant_id})
        raise UpstreamFailure("Erro ao registrar pagamento") from exc

    logger.info(
        "payment registered order_id=%s method=%s amount=%s",
        order_id,
        payment.payment_method,
        amount,
        extra={"tenant_id": tenant_id},
    )
    return RegisteredPayment(payment_id=payment.id, order_id=order_id, amount=float(amount))
