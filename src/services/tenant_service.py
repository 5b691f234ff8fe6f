"""Tenant lookups used by the transcription jobs."""

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from src.db.models import Tenant
from src.schemas.schemas import AITenantData


class TenantService:
    """Read access to tenants."""

    async def list_tenants_with_ai_enabled(self, db: AsyncSession) -> list[AITenantData]:
        """All tenants whose AI features flag is on, oldest first."""
        result = await db.execute(
            select(Tenant)
            .where(Tenant.ai_enabled.is_(True))
            .order_by(Tenant.created_at, Tenant.id)
        )
        return [
            AITenantData(
                id=t.id,
                name=t.name,
                ai_enabled=t.ai_enabled,
                bunny_library_id=t.bunny_library_id,
                bunny_library_api_key=t.bunny_library_api_key,
            )
            for t in result.scalars().all()
        ]


# Singleton instance
tenant_service = TenantService()
