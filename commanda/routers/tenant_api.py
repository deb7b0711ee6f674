import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request

from commanda.core.errors import NotFound, Unauthenticated
from commanda.deps import get_admin_repository, get_tenant_context
from commanda.repositories import AdminRepository
from commanda.models.order import ORDER_STATUSES
from commanda.schemas.requests import CreateOrderRequest, CreatePaymentRequest
from commanda.schemas.responses import ProductListResponse, TenantInfoResponse
from commanda.services.menu import build_menu, product_summary
from commanda.services.order_intake import OrderIntake, order_to_dict
from commanda.services.payments import register_payment
from commanda.services.tenant_auth import INSTANCE_TOKEN_HEADER, TenantContext

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/tenant", tags=["tenant"])


def _tenant_or_404(repository: AdminRepository, tenant_id: str):
    tenant = repository.get_tenant(tenant_id)
    if tenant is None:
        raise NotFound("Tenant não encontrado")
    return tenant


@router.get("/info", response_model=TenantInfoResponse)
def tenant_info(request: Request, repository: AdminRepository = Depends(get_admin_repository)):
    # só aceita o token da instância, sem fallback para api key
    instance_token = request.headers.get(INSTANCE_TOKEN_HEADER)
    if not instance_token:
        raise Unauthenticated("instance_token não fornecido")

    instance = repository.find_instance_by_token(instance_token)
    if instance is None:
        raise NotFound("Instância não encontrada")

    tenant = _tenant_or_404(repository, instance.tenant_id)
    return {
        "success": True,
        "data": {
            "tenant_id": tenant.id,
            "tenant_name": tenant.name,
            "tenant_slug": tenant.slug,
            "whatsapp_number": tenant.whatsapp_number,
        },
    }


@router.get("/products", response_model=ProductListResponse)
def tenant_products(
    context: TenantContext = Depends(get_tenant_context),
    repository: AdminRepository = Depends(get_admin_repository),
):
    products = [product_summary(p) for p in repository.list_available_products(context.tenant_id)]
    return {"success": True, "data": {"products": products, "total": len(products)}}


@router.get("/menu")
def tenant_menu(
    context: TenantContext = Depends(get_tenant_context),
    repository: AdminRepository = Depends(get_admin_repository),
):
    tenant = _tenant_or_404(repository, context.tenant_id)
    menu = build_menu(
        repository,
        tenant,
        {
            "subscription_plan": tenant.subscription_plan,
            "whatsapp_number": tenant.whatsapp_number,
        },
    )
    logger.debug(
        "menu served categories=%s products=%s",
        len(menu["categories"]),
        len(menu["products"]),
        extra={"tenant_id": tenant.id},
    )
    return {"success": True, "data": menu}


@router.post("/orders", status_code=201)
def create_order(
    payload: CreateOrderRequest,
    context: TenantContext = Depends(get_tenant_context),
    repository: AdminRepository = Depends(get_admin_repository),
):
    created = OrderIntake(repository).create(context.tenant_id, payload)
    return {
        "success": True,
        "data": {
            "order_id": created.order_id,
            "total": created.total,
            "items_count": created.items_count,
            "status": created.status,
        },
    }


@router.get("/orders")
def list_orders(
    status: Optional[str] = None,
    limit: int = Query(50, ge=1),
    offset: int = Query(0, ge=0),
    context: TenantContext = Depends(get_tenant_context),
    repository: AdminRepository = Depends(get_admin_repository),
):
    limit = min(limit, 100)
    # status fora da lista é ignorado
    status_filter = status if status in ORDER_STATUSES else None
    orders, total = repository.list_orders(context.tenant_id, status=status_filter, limit=limit, offset=offset)
    return {
        "success": True,
        "data": [order_to_dict(order) for order in orders],
        "pagination": {
            "total": total,
            "limit": limit,
            "offset": offset,
            "hasMore": total > offset + limit,
        },
    }


@router.post("/payments", status_code=201)
def create_payment(
    payload: CreatePaymentRequest,
    context: TenantContext = Depends(get_tenant_context),
    repository: AdminRepository = Depends(get_admin_repository),
):
    payment = register_payment(repository, context.tenant_id, payload)
    return {
        "success": True,
        "data": {
            "payment_id": payment.payment_id,
            "order_id": payment.order_id,
            "amount": payment.amount,
        },
    }
