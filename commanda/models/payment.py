import uuid

from sqlalchemy import Column, DateTime, ForeignKey, Numeric, String, func

from commanda.core.database import Base

PAYMENT_METHODS = ("cash", "card", "pix")


class Payment(Base):
    __tablename__ = "payments"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    # um pagamento por pedido
    order_id = Column(String(36), ForeignKey("orders.id"), unique=True, index=True, nullable=False)
    payment_method = Column(String(20), nullable=False)  # cash / card / pix
    amount = Column(Numeric(10, 2), nullable=False)
    status = Column(String(20), nullable=False, default="completed")

    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
