from fastapi import APIRouter, Depends

from commanda.core.errors import Forbidden, NotFound
from commanda.deps import get_admin_repository
from commanda.repositories import AdminRepository
from commanda.services.menu import build_menu

router = APIRouter(prefix="/api/public", tags=["public-menu"])


@router.get("/menu/{slug}")
def public_menu(slug: str, repository: AdminRepository = Depends(get_admin_repository)):
    tenant = repository.get_tenant_by_slug(slug)
    if tenant is None or not tenant.menu_enabled:
        raise NotFound("Cardápio não encontrado")
    if tenant.subscription_plan != "premium":
        raise Forbidden("Cardápio não disponível")

    menu = build_menu(
        repository,
        tenant,
        {
            "theme_color": tenant.theme_color,
            "whatsapp_number": tenant.whatsapp_number,
            "welcome_message": tenant.welcome_message,
        },
    )
    return {"success": True, "data": menu}
