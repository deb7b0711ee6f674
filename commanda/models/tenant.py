import uuid

from sqlalchemy import Boolean, Column, DateTime, String, Text, func

from commanda.core.database import Base

SUBSCRIPTION_STATUSES = ("pending", "active", "expired", "cancelled")
SUBSCRIPTION_PLANS = ("basic", "premium")


class Tenant(Base):
    __tablename__ = "tenants"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    name = Column(String, nullable=False)
    slug = Column(String, unique=True, index=True, nullable=False)

    subscription_plan = Column(String(20), nullable=False, default="basic")
    subscription_status = Column(String(20), nullable=False, default="pending")  # pending / active / expired / cancelled

    whatsapp_number = Column(String(30), nullable=True)
    theme_color = Column(String(20), nullable=True)
    welcome_message = Column(Text, nullable=True)
    menu_enabled = Column(Boolean, nullable=False, default=False)

    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now())
