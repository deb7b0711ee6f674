from __future__ import annotations

from typing import Any

from commanda.models.catalog import Category, Product
from commanda.models.tenant import Tenant
from commanda.repositories import AdminRepository


def _price(value) -> float:
    return float(value) if value is not None else 0.0


def product_summary(product: Product) -> dict[str, Any]:
    return {
        "id": product.id,
        "name": product.name,
        "price": _price(product.price),
        "is_available": bool(product.is_available),
    }


def _option_to_dict(option) -> dict[str, Any]:
    return {
        "id": option.id,
        "name": option.name,
        "price": _price(option.price),
        "display_order": option.display_order,
        "is_available": bool(option.is_available),
    }


def menu_product(product: Product) -> dict[str, Any]:
    return {
        **product_summary(product),
        "description": product.description,
        "category_id": product.category_id,
        "image_url": product.image_url,
        "product_variations": [_option_to_dict(item) for item in product.variations],
        "product_extras": [_option_to_dict(item) for item in product.extras],
    }


def category_to_dict(category: Category) -> dict[str, Any]:
    return {
        "id": category.id,
        "name": category.name,
        "description": category.description,
        "display_order": category.display_order,
    }


def build_menu(repository: AdminRepository, tenant: Tenant, tenant_fields: dict[str, Any]) -> dict[str, Any]:
    """Cardápio do tenant: categorias ativas e produtos disponíveis com variações e extras."""
    return {
        "tenant": {"id": tenant.id, "name": tenant.name, "slug": tenant.slug, **tenant_fields},
        "categories": [category_to_dict(c) for c in repository.list_active_categories(tenant.id)],
        "products": [menu_product(p) for p in repository.list_menu_products(tenant.id)],
    }
