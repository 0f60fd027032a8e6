"""SQLAlchemy ORM model for the tenants table.

Stores the tenant registry in the shared schema. Each row tracks one
organization's schema and its provisioning lifecycle.
"""

from datetime import datetime

from sqlalchemy import DateTime, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from infrastructure.database.models import Base, SoftDeleteMixin, TimestampMixin
from tenancy.domain.value_objects import TenantStatus


class TenantModel(Base, TimestampMixin, SoftDeleteMixin):
    """ORM model for tenants table.

    Notes:
    - external_org_id is the identity system's organization id (unique)
    - schema_name is derived from external_org_id (unique)
    - status is stored as plain text (PROVISIONING, ACTIVE, FAILED)
    - rows are soft-deleted through deleted_at only
    """

    __tablename__ = "tenants"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    external_org_id: Mapped[str] = mapped_column(
        String(100), nullable=False, unique=True
    )
    schema_name: Mapped[str] = mapped_column(String(100), nullable=False, unique=True)
    status: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default=TenantStatus.PROVISIONING.value,
    )
    started_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    activated_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    failed_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    error_message: Mapped[str | None] = mapped_column(Text, nullable=True)

    def __repr__(self) -> str:
        """Return string representation."""
        return (
            f"<TenantModel(id={self.id}, external_org_id={self.external_org_id}, "
            f"status={self.status})>"
        )
