import uuid

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, String, Text, func

from commanda.core.database import Base

INSTANCE_STATUSES = ("disconnected", "connecting", "connected")


class WhatsAppInstance(Base):
    __tablename__ = "whatsapp_instances"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    # uma instância viva por tenant
    tenant_id = Column(String(36), ForeignKey("tenants.id"), unique=True, index=True, nullable=False)

    instance_id = Column(String, nullable=False)
    instance_token = Column(String, unique=True, index=True, nullable=False)
    instance_name = Column(String, nullable=False)
    api_key = Column(String, unique=True, index=True, nullable=False)

    status = Column(String(20), nullable=False, default="disconnected")
    qr_code = Column(Text, nullable=True)
    pair_code = Column(String(30), nullable=True)
    phone_number = Column(String(30), nullable=True)
    profile_name = Column(String, nullable=True)
    profile_pic_url = Column(Text, nullable=True)
    is_business = Column(Boolean, nullable=False, default=False)
    webhook_url = Column(Text, nullable=True)

    connected_at = Column(DateTime(timezone=True), nullable=True)
    disconnected_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now())
