from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession
from kol360.auth import UserPrincipal, require_client_admin
from kol360.database import get_db
from kol360.models.campaign import Campaign
from kol360.services.campaign_service import campaign_service


async def get_campaign_for_user(
    campaign_id: str,
    db: AsyncSession = Depends(get_db),
    current_user: UserPrincipal = Depends(require_client_admin),
) -> Campaign:
    """Load the campaign in the path, enforcing the caller's tenant."""
    return await campaign_service.get(db, campaign_id, current_user)
