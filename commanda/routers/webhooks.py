import logging
from datetime import datetime, timezone

from fastapi import APIRouter, Body, Depends
from fastapi.responses import JSONResponse

from commanda.deps import get_job_dispatcher, get_whatsapp_service
from commanda.routers.whatsapp import instance_to_dict
from commanda.services.job_dispatcher import JobDispatcher
from commanda.services.subscription_watcher import SubscriptionWatcher
from commanda.services.whatsapp_instances import WhatsAppInstanceService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/webhooks", tags=["webhooks"])


@router.post("/subscription")
def subscription_webhook(
    payload: dict = Body(...),
    dispatcher: JobDispatcher = Depends(get_job_dispatcher),
):
    try:
        change = SubscriptionWatcher(dispatcher).handle(payload)
    except Exception:
        logger.exception("subscription webhook failed")
        return JSONResponse(status_code=500, content={"success": False, "error": "Erro ao processar webhook"})

    if change is None:
        return {"received": True}
    return {"success": True, "statusChange": change.label}


@router.post("/uazapi")
def uazapi_webhook(
    payload: dict = Body(...),
    service: WhatsAppInstanceService = Depends(get_whatsapp_service),
):
    changed, instance = service.apply_gateway_event(payload)
    message = "Instância atualizada com sucesso" if changed else "Nenhuma alteração necessária"
    return {"success": True, "message": message, "data": instance_to_dict(instance)}


@router.get("/uazapi")
def uazapi_webhook_health():
    return {
        "success": True,
        "message": "Webhook Uazapi está ativo",
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }
