from __future__ import annotations

from typing import Optional

from pydantic import BaseModel


class OrderTransitionData(BaseModel):
    order_id: str
    status: str
    reason: Optional[str] = None


class OrderTransitionResponse(BaseModel):
    success: bool = True
    message: str
    data: OrderTransitionData


class TenantInfo(BaseModel):
    tenant_id: str
    tenant_name: str
    tenant_slug: str
    whatsapp_number: Optional[str] = None


class TenantInfoResponse(BaseModel):
    success: bool = True
    data: TenantInfo


class ProductSummary(BaseModel):
    id: str
    name: str
    price: float
    is_available: bool


class ProductList(BaseModel):
    products: list[ProductSummary]
    total: int


class ProductListResponse(BaseModel):
    success: bool = True
    data: ProductList
