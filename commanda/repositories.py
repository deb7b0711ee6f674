"""Acesso ao banco.

Dois colaboradores explícitos, injetados por dependência em cada rota:

- ``AdminRepository``: acesso total; toda consulta recebe o ``tenant_id``
  explicitamente e filtra por ele.
- ``SessionRepository``: preso ao usuário autenticado do dashboard; só
  enxerga o próprio perfil.
"""

from __future__ import annotations

from typing import Any

from sqlalchemy.orm import Session, selectinload

from commanda.models.catalog import Category, Product, ProductExtra, ProductVariation
from commanda.models.order import Order, OrderItem
from commanda.models.payment import Payment
from commanda.models.profile import Profile
from commanda.models.tenant import Tenant
from commanda.models.whatsapp_instance import WhatsAppInstance


class AdminRepository:
    def __init__(self, db: Session) -> None:
        self.db = db

    # Tenants

    def get_tenant(self, tenant_id: str) -> Tenant | None:
        return self.db.query(Tenant).filter(Tenant.id == tenant_id).first()

    def get_tenant_by_slug(self, slug: str) -> Tenant | None:
        return self.db.query(Tenant).filter(Tenant.slug == slug).first()

    # Instâncias WhatsApp

    def find_instance_by_token(self, instance_token: str) -> WhatsAppInstance | None:
        return (
            self.db.query(WhatsAppInstance)
            .filter(WhatsAppInstance.instance_token == instance_token)
            .first()
        )

    def find_instance_by_api_key(self, api_key: str) -> WhatsAppInstance | None:
        return self.db.query(WhatsAppInstance).filter(WhatsAppInstance.api_key == api_key).first()

    def get_instance_for_tenant(self, tenant_id: str) -> WhatsAppInstance | None:
        return self.db.query(WhatsAppInstance).filter(WhatsAppInstance.tenant_id == tenant_id).first()

    def add_instance(self, instance: WhatsAppInstance) -> WhatsAppInstance:
        self.db.add(instance)
        self.db.commit()
        self.db.refresh(instance)
        return instance

    def update_instance_for_tenant(self, tenant_id: str, values: dict[str, Any]) -> int:
        updated = (
            self.db.query(WhatsAppInstance)
            .filter(WhatsAppInstance.tenant_id == tenant_id)
            .update(values, synchronize_session=False)
        )
        self.db.commit()
        return updated

    def update_instance(self, instance: WhatsAppInstance, values: dict[str, Any]) -> WhatsAppInstance:
        for key, value in values.items():
            setattr(instance, key, value)
        self.db.commit()
        self.db.refresh(instance)
        return instance

    def delete_instance_for_tenant(self, tenant_id: str) -> int:
        deleted = (
            self.db.query(WhatsAppInstance)
            .filter(WhatsAppInstance.tenant_id == tenant_id)
            .delete(synchronize_session=False)
        )
        self.db.commit()
        return deleted

    # Pedidos

    def get_order(self, order_id: str, tenant_id: str, *, fresh: bool = False) -> Order | None:
        query = self.db.query(Order).filter(Order.id == order_id, Order.tenant_id == tenant_id)
        if fresh:
            query = query.populate_existing()
        return query.first()

    def transition_order(
        self,
        order_id: str,
        tenant_id: str,
        *,
        from_statuses: tuple[str, ...],
        values: dict[str, Any],
    ) -> int:
        """UPDATE condicional: só altera se o status atual ainda for um dos esperados.

        Retorna o número de linhas afetadas (0 ou 1).
        """
        try:
            updated = (
                self.db.query(Order)
                .filter(
                    Order.id == order_id,
                    Order.tenant_id == tenant_id,
                    Order.status.in_(from_statuses),
                )
                .update(values, synchronize_session=False)
            )
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        return updated

    def add_order(self, order: Order) -> Order:
        """Grava o pedido com itens e extras num único commit."""
        try:
            self.db.add(order)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        self.db.refresh(order)
        return order

    def list_orders(
        self,
        tenant_id: str,
        *,
        status: str | None = None,
        limit: int = 50,
        offset: int = 0,
    ) -> tuple[list[Order], int]:
        query = self.db.query(Order).filter(Order.tenant_id == tenant_id)
        if status:
            query = query.filter(Order.status == status)
        total = query.count()
        orders = (
            query.options(selectinload(Order.items).selectinload(OrderItem.extras))
            .order_by(Order.created_at.desc(), Order.id.asc())
            .offset(offset)
            .limit(limit)
            .all()
        )
        return orders, total

    # Pagamentos

    def get_payment_for_order(self, order_id: str) -> Payment | None:
        return self.db.query(Payment).filter(Payment.order_id == order_id).first()

    def add_payment(self, payment: Payment) -> Payment:
        try:
            self.db.add(payment)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        self.db.refresh(payment)
        return payment

    # Catálogo

    def list_products_by_ids(self, tenant_id: str, product_ids: list[str]) -> list[Product]:
        if not product_ids:
            return []
        return (
            self.db.query(Product)
            .filter(Product.tenant_id == tenant_id, Product.id.in_(product_ids))
            .all()
        )

    def list_variations_by_ids(self, variation_ids: list[str]) -> list[ProductVariation]:
        if not variation_ids:
            return []
        return self.db.query(ProductVariation).filter(ProductVariation.id.in_(variation_ids)).all()

    def list_extras_by_ids(self, extra_ids: list[str]) -> list[ProductExtra]:
        if not extra_ids:
            return []
        return self.db.query(ProductExtra).filter(ProductExtra.id.in_(extra_ids)).all()

    def list_available_products(self, tenant_id: str) -> list[Product]:
        return (
            self.db.query(Product)
            .filter(Product.tenant_id == tenant_id, Product.is_available.is_(True))
            .order_by(Product.name.asc())
            .all()
        )

    def list_active_categories(self, tenant_id: str) -> list[Category]:
        return (
            self.db.query(Category)
            .filter(Category.tenant_id == tenant_id, Category.is_active.is_(True))
            .order_by(Category.display_order.asc())
            .all()
        )

    def list_menu_products(self, tenant_id: str) -> list[Product]:
        return (
            self.db.query(Product)
            .options(selectinload(Product.variations), selectinload(Product.extras))
            .filter(Product.tenant_id == tenant_id, Product.is_available.is_(True))
            .order_by(Product.name.asc())
            .all()
        )


class SessionRepository:
    def __init__(self, db: Session, user_id: str) -> None:
        self.db = db
        self.user_id = user_id

    def get_profile(self) -> Profile | None:
        return self.db.query(Profile).filter(Profile.id == self.user_id).first()
