from __future__ import annotations

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field


class RejectOrderRequest(BaseModel):
    reason: Optional[str] = None


class WhatsAppRequest(BaseModel):
    """Corpo das rotas /api/whatsapp/*. ``tenantId`` só vale para chamadas internas."""

    model_config = ConfigDict(populate_by_name=True)

    tenant_id: Optional[str] = Field(default=None, alias="tenantId")
    phone: Optional[str] = None



class OrderCustomer(BaseModel):
    phone: Optional[str] = None
    name: Optional[str] = None


class CreateOrderRequest(BaseModel):
    customer: Optional[OrderCustomer] = None
    delivery_type: Optional[str] = None
    delivery_address: Optional[str] = None
    notes: Optional[str] = None
    # formatos aceitos em commanda.services.order_intake
    items: list[dict[str, Any]] = Field(default_factory=list)


class CreatePaymentRequest(BaseModel):
    order_id: Optional[str] = None
    payment_method: Optional[str] = None
    amount: Optional[float] = None
