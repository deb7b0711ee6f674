from sqlalchemy import Column, DateTime, ForeignKey, String, func

from commanda.core.database import Base


class Profile(Base):
    """Usuário do dashboard. O id é o mesmo do provedor de identidade."""

    __tablename__ = "profiles"

    id = Column(String(36), primary_key=True)
    tenant_id = Column(String(36), ForeignKey("tenants.id"), index=True, nullable=False)
    full_name = Column(String, nullable=False, default="")
    email = Column(String, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
