"""Criação de pedidos pelo bot.

Os itens chegam em dois formatos e são normalizados antes do cálculo:

    {"product_id": "p1", "quantity": 2, "variation_id": "v1", "extras": ["e1"]}
    {"product_id": ["p1", "p2"], "quantity": [2, 1], "extras": [["e1"], []]}

Preços vêm sempre do catálogo do tenant, nunca do chamador. O preço da
variação substitui o do produto; extras somam por unidade.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any

from sqlalchemy.exc import SQLAlchemyError

from commanda.core.errors import UpstreamFailure, ValidationFailed
from commanda.models.order import DELIVERY_TYPES, Order, OrderItem, OrderItemExtra
from commanda.repositories import AdminRepository
from commanda.schemas.requests import CreateOrderRequest

logger = logging.getLogger(__name__)


@dataclass
class NormalizedItem:
    product_id: str
    quantity: int
    variation_id: str | None = None
    extras: list[str] = field(default_factory=list)


@dataclass
class CreatedOrder:
    order_id: str
    total: float
    items_count: int
    status: str


def _quantity(value: Any, product_id: str) -> int:
    if isinstance(value, bool):
        value = None
    try:
        quantity = int(value)
    except (TypeError, ValueError):
        raise ValidationFailed(f"Quantidade inválida para o produto {product_id}") from None
    if quantity < 1:
        raise ValidationFailed(f"Quantidade inválida para o produto {product_id}")
    return quantity


def _extras_list(value: Any) -> list[str]:
    if not isinstance(value, list):
        return []
    return [str(extra) for extra in value if extra]


def normalize_items(items: list[dict[str, Any]]) -> list[NormalizedItem]:
    normalized: list[NormalizedItem] = []

    for item in items:
        product_id = item.get("product_id")
        quantity = item.get("quantity")
        variation_id = item.get("variation_id")
        extras = item.get("extras")

        if isinstance(product_id, list):
            count = len(product_id)
            quantities = quantity if isinstance(quantity, list) else [quantity] * count
            variation_ids = variation_id if isinstance(variation_id, list) else [variation_id] * count
            if isinstance(extras, list) and extras and isinstance(extras[0], list):
                extras_per_item = extras
            else:
                extras_per_item = [extras or []] * count

            if len(quantities) != count:
                raise ValidationFailed("Arrays de product_id e quantity devem ter o mesmo tamanho")

            for index, pid in enumerate(product_id):
                pid = str(pid)
                normalized.append(
                    NormalizedItem(
                        product_id=pid,
                        quantity=_quantity(quantities[index], pid),
                        variation_id=(variation_ids[index] if index < len(variation_ids) else None) or None,
                        extras=_extras_list(extras_per_item[index] if index < len(extras_per_item) else []),
                    )
                )
            continue

        if not product_id:
            raise ValidationFailed("product_id é obrigatório em todos os itens")
        pid = str(product_id)
        if isinstance(quantity, list):
            quantity = quantity[0] if quantity else None
        if isinstance(variation_id, list):
            variation_id = variation_id[0] if variation_id else None
        if isinstance(extras, list) and extras and isinstance(extras[0], list):
            extras = extras[0]
        normalized.append(
            NormalizedItem(
                product_id=pid,
                quantity=_quantity(quantity, pid),
                variation_id=variation_id or None,
                extras=_extras_list(extras),
            )
        )

    return normalized


def _validate_request(request: CreateOrderRequest) -> tuple[str, str, str | None]:
    phone = ((request.customer.phone if request.customer else None) or "").strip()
    if not phone:
        raise ValidationFailed("Telefone do cliente é obrigatório")
    if not request.items:
        raise ValidationFailed("Pedido deve ter pelo menos 1 item")
    if request.delivery_type not in DELIVERY_TYPES:
        raise ValidationFailed('Tipo de entrega inválido. Use "delivery" ou "pickup"')

    address = (request.delivery_address or "").strip() or None
    if request.delivery_type == "delivery" and not address:
        raise ValidationFailed("Endereço de entrega é obrigatório para pedidos delivery")
    return phone, request.delivery_type, address if request.delivery_type == "delivery" else None


class OrderIntake:
    def __init__(self, repository: AdminRepository) -> None:
        self.repository = repository

    def create(self, tenant_id: str, request: CreateOrderRequest) -> CreatedOrder:
        phone, delivery_type, address = _validate_request(request)
        items = normalize_items(request.items)

        products = {
            p.id: p
            for p in self.repository.list_products_by_ids(tenant_id, [i.product_id for i in items])
        }
        if not products:
            raise ValidationFailed("Nenhum produto encontrado")

        unavailable = sorted(p.name for p in products.values() if not p.is_available)
        if unavailable:
            raise ValidationFailed(f"Produtos indisponíveis: {', '.join(unavailable)}")

        variations = {
            v.id: v
            for v in self.repository.list_variations_by_ids([i.variation_id for i in items if i.variation_id])
        }
        extras = {
            e.id: e
            for e in self.repository.list_extras_by_ids([e for i in items for e in i.extras])
        }

        total = Decimal("0")
        order_items: list[OrderItem] = []
        for item in items:
            order_item = self._price_item(item, products, variations, extras)
            total += order_item.subtotal
            order_items.append(order_item)

        order = Order(
            tenant_id=tenant_id,
            customer_name=(request.customer.name or "").strip() or None,
            customer_phone=phone,
            delivery_type=delivery_type,
            delivery_address=address,
            notes=(request.notes or "").strip() or None,
            status="pending",
            total_amount=total,
            items=order_items,
        )
        try:
            order = self.repository.add_order(order)
        except SQLAlchemyError as exc:
            logger.exception("order creation failed", extra={"tenant_id": tenant_id})
            raise UpstreamFailure("Erro ao criar pedido") from exc

        logger.info(
            "order created order_id=%s items=%s total=%s delivery_type=%s",
            order.id,
            len(order_items),
            total,
            delivery_type,
            extra={"tenant_id": tenant_id},
        )
        return CreatedOrder(
            order_id=order.id,
            total=float(total),
            items_count=len(order_items),
            status=order.status,
        )

    @staticmethod
    def _price_item(item: NormalizedItem, products, variations, extras) -> OrderItem:
        product = products.get(item.product_id)
        if product is None:
            raise ValidationFailed(f"Produto {item.product_id} não encontrado")

        unit_price = Decimal(product.price)
        variation = None
        if item.variation_id:
            variation = variations.get(item.variation_id)
            if variation is None:
                raise ValidationFailed(f"Variação {item.variation_id} não encontrada")
            if variation.product_id != product.id:
                raise ValidationFailed(f"Variação não pertence ao produto {product.name}")
            if not variation.is_available:
                raise ValidationFailed(f'Variação "{variation.name}" está indisponível')
            unit_price = Decimal(variation.price)

        extras_price = Decimal("0")
        item_extras: list[OrderItemExtra] = []
        for extra_id in item.extras:
            extra = extras.get(extra_id)
            if extra is None:
                raise ValidationFailed(f"Extra {extra_id} não encontrado")
            if extra.product_id != product.id:
                raise ValidationFailed(f'Extra "{extra.name}" não pertence ao produto {product.name}')
            if not extra.is_available:
                raise ValidationFailed(f'Extra "{extra.name}" está indisponível')
            extras_price += Decimal(extra.price)
            item_extras.append(OrderItemExtra(extra_id=extra.id, extra_name=extra.name, extra_price=extra.price))

        return OrderItem(
            product_id=product.id,
            product_name=product.name,
            variation_id=variation.id if variation else None,
            variation_name=variation.name if variation else None,
            quantity=item.quantity,
            product_price=unit_price,
            subtotal=(unit_price + extras_price) * item.quantity,
            extras=item_extras,
        )


def order_to_dict(order: Order) -> dict[str, Any]:
    return {
        "id": order.id,
        "customer_name": order.customer_name,
        "customer_phone": order.customer_phone,
        "delivery_type": order.delivery_type,
        "delivery_address": order.delivery_address,
        "total_amount": float(order.total_amount or 0),
        "status": order.status,
        "notes": order.notes,
        "created_at": order.created_at,
        "accepted_at": order.accepted_at,
        "completed_at": order.completed_at,
        "cancelled_at": order.cancelled_at,
        "order_items": [
            {
                "id": item.id,
                "product_id": item.product_id,
                "product_name": item.product_name,
                "variation_id": item.variation_id,
                "variation_name": item.variation_name,
                "quantity": item.quantity,
                "product_price": float(item.product_price),
                "subtotal": float(item.subtotal),
                "order_item_extras": [
                    {
                        "id": extra.id,
                        "extra_id": extra.extra_id,
                        "extra_name": extra.extra_name,
                        "extra_price": float(extra.extra_price),
                    }
                    for extra in item.extras
                ],
            }
            for item in order.items
        ],
    }
