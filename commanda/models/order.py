import uuid

from sqlalchemy import Column, DateTime, ForeignKey, Integer, Numeric, String, Text, func
from sqlalchemy.orm import relationship

from commanda.core.database import Base

ORDER_STATUSES = ("pending", "preparing", "completed", "cancelled")
DELIVERY_TYPES = ("delivery", "pickup")


def _new_id() -> str:
    return str(uuid.uuid4())


class Order(Base):
    __tablename__ = "orders"

    id = Column(String(36), primary_key=True, default=_new_id)
    tenant_id = Column(String(36), ForeignKey("tenants.id"), index=True, nullable=False)

    customer_name = Column(String(120), nullable=True)
    customer_phone = Column(String(30), index=True, nullable=False)
    delivery_type = Column(String(20), nullable=False, default="delivery")  # delivery / pickup
    delivery_address = Column(Text, nullable=True)
    total_amount = Column(Numeric(10, 2), nullable=False, default=0)
    notes = Column(Text, nullable=True)

    # pending → preparing → completed; pending/preparing → cancelled
    status = Column(String(20), index=True, nullable=False, default="pending")

    accepted_at = Column(DateTime(timezone=True), nullable=True)
    accepted_by = Column(String(36), nullable=True)
    completed_at = Column(DateTime(timezone=True), nullable=True)
    completed_by = Column(String(36), nullable=True)
    cancelled_at = Column(DateTime(timezone=True), nullable=True)
    cancelled_by = Column(String(36), nullable=True)
    cancellation_reason = Column(Text, nullable=True)

    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    items = relationship("OrderItem", back_populates="order", cascade="all, delete-orphan")


class OrderItem(Base):
    __tablename__ = "order_items"

    id = Column(String(36), primary_key=True, default=_new_id)
    order_id = Column(String(36), ForeignKey("orders.id"), index=True, nullable=False)
    product_id = Column(String(36), ForeignKey("products.id"), nullable=False)
    product_name = Column(String, nullable=False)
    variation_id = Column(String(36), ForeignKey("product_variations.id"), nullable=True)
    variation_name = Column(String, nullable=True)

    quantity = Column(Integer, nullable=False, default=1)
    # preço unitário do produto ou da variação, sem extras
    product_price = Column(Numeric(10, 2), nullable=False, default=0)
    subtotal = Column(Numeric(10, 2), nullable=False, default=0)

    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    order = relationship("Order", back_populates="items")
    extras = relationship("OrderItemExtra", cascade="all, delete-orphan")


class OrderItemExtra(Base):
    __tablename__ = "order_item_extras"

    id = Column(String(36), primary_key=True, default=_new_id)
    order_item_id = Column(String(36), ForeignKey("order_items.id"), index=True, nullable=False)
    extra_id = Column(String(36), ForeignKey("product_extras.id"), nullable=False)
    extra_name = Column(String, nullable=False)
    extra_price = Column(Numeric(10, 2), nullable=False, default=0)
