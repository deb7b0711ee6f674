"""tenants, profiles, whatsapp_instances, orders e catálogo

Revision ID: 0001_create_schema
Revises:
"""
from __future__ import annotations

from alembic import op

from commanda.core.database import Base
import commanda.models  # noqa: F401

revision = "0001_create_schema"
down_revision = None
branch_labels = None
depends_on = None

# tabelas posteriores vêm nas migrations seguintes
_TABLES = (
    "tenants",
    "profiles",
    "whatsapp_instances",
    "categories",
    "products",
    "product_variations",
    "product_extras",
    "orders",
)


def _tables():
    return [Base.metadata.tables[name] for name in _TABLES]


def upgrade() -> None:
    Base.metadata.create_all(bind=op.get_bind(), tables=_tables())


def downgrade() -> None:
    Base.metadata.drop_all(bind=op.get_bind(), tables=_tables())
