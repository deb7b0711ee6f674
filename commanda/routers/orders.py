from typing import Optional

from fastapi import APIRouter, Body, Depends

from commanda.deps import get_admin_repository, get_dashboard_user
from commanda.repositories import AdminRepository
from commanda.schemas.requests import RejectOrderRequest
from commanda.schemas.responses import OrderTransitionResponse
from commanda.services.order_lifecycle import OrderLifecycle, TransitionResult
from commanda.services.session_auth import DashboardUser

router = APIRouter(prefix="/api/orders", tags=["orders"])


def _transition_response(result: TransitionResult, message: str) -> dict:
    data = {"order_id": result.order_id, "status": result.status}
    if result.reason is not None:
        data["reason"] = result.reason
    return {"success": True, "message": message, "data": data}


@router.post("/{order_id}/accept", response_model=OrderTransitionResponse, response_model_exclude_none=True)
def accept_order(
    order_id: str,
    user: DashboardUser = Depends(get_dashboard_user),
    repository: AdminRepository = Depends(get_admin_repository),
):
    result = OrderLifecycle(repository).accept(order_id, user.tenant_id, user.user_id)
    return _transition_response(result, "Pedido aceito com sucesso")


@router.post("/{order_id}/complete", response_model=OrderTransitionResponse, response_model_exclude_none=True)
def complete_order(
    order_id: str,
    user: DashboardUser = Depends(get_dashboard_user),
    repository: AdminRepository = Depends(get_admin_repository),
):
    result = OrderLifecycle(repository).complete(order_id, user.tenant_id, user.user_id)
    return _transition_response(result, "Pedido completado com sucesso")


@router.post("/{order_id}/reject", response_model=OrderTransitionResponse, response_model_exclude_none=True)
def reject_order(
    order_id: str,
    payload: Optional[RejectOrderRequest] = Body(default=None),
    user: DashboardUser = Depends(get_dashboard_user),
    repository: AdminRepository = Depends(get_admin_repository),
):
    reason = payload.reason if payload else None
    result = OrderLifecycle(repository).reject(order_id, user.tenant_id, user.user_id, reason=reason)
    return _transition_response(result, "Pedido recusado com sucesso")
