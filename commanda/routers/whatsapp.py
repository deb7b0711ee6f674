import logging

from fastapi import APIRouter, Depends

from commanda.deps import WhatsAppCaller, get_whatsapp_caller, get_whatsapp_service
from commanda.models.whatsapp_instance import WhatsAppInstance
from commanda.services.whatsapp_instances import WhatsAppInstanceService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/whatsapp", tags=["whatsapp"])


def instance_to_dict(instance: WhatsAppInstance, *, include_api_key: bool = False) -> dict:
    # instance_token nunca sai na resposta
    data = {
        "id": instance.id,
        "tenant_id": instance.tenant_id,
        "instance_id": instance.instance_id,
        "instance_name": instance.instance_name,
        "status": instance.status,
        "qr_code": instance.qr_code,
        "pair_code": instance.pair_code,
        "phone_number": instance.phone_number,
        "profile_name": instance.profile_name,
        "profile_pic_url": instance.profile_pic_url,
        "is_business": bool(instance.is_business),
        "webhook_url": instance.webhook_url,
        "connected_at": instance.connected_at,
        "disconnected_at": instance.disconnected_at,
    }
    if include_api_key:
        data["api_key"] = instance.api_key
    return data


@router.post("/create")
def create_instance(
    caller: WhatsAppCaller = Depends(get_whatsapp_caller),
    service: WhatsAppInstanceService = Depends(get_whatsapp_service),
):
    instance = service.create(caller.tenant_id, caller.user_id)
    return {
        "success": True,
        "message": "Instância criada com sucesso",
        "data": {
            "instance": instance_to_dict(instance, include_api_key=True),
            "qrcode": instance.qr_code,
            "paircode": instance.pair_code,
        },
    }


@router.post("/qrcode")
def request_qrcode(
    caller: WhatsAppCaller = Depends(get_whatsapp_caller),
    service: WhatsAppInstanceService = Depends(get_whatsapp_service),
):
    qrcode = service.request_qrcode(caller.tenant_id, caller.phone)
    return {"success": True, "message": "QR Code gerado com sucesso", "data": {"qrcode": qrcode}}


@router.post("/disconnect")
def disconnect_instance(
    caller: WhatsAppCaller = Depends(get_whatsapp_caller),
    service: WhatsAppInstanceService = Depends(get_whatsapp_service),
):
    remote = service.disconnect(caller.tenant_id)
    return {"success": True, "message": "WhatsApp desconectado com sucesso", "data": {"uazapi": remote}}


@router.post("/delete")
def delete_instance(
    caller: WhatsAppCaller = Depends(get_whatsapp_caller),
    service: WhatsAppInstanceService = Depends(get_whatsapp_service),
):
    result = service.delete(caller.tenant_id)
    return {"success": True, "message": "Instância deletada com sucesso", "data": result}
