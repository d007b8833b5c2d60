from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from kol360.auth import UserPrincipal, require_platform_admin
from kol360.database import get_db
from kol360.schemas.settings import SettingsUpdate
from kol360.services.settings_service import settings_service

router = APIRouter(dependencies=[Depends(require_platform_admin)])


@router.get("")
async def get_settings_view(db: AsyncSession = Depends(get_db)):
    return await settings_service.get_view(db)


@router.put("")
async def update_settings(
    data: SettingsUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: UserPrincipal = Depends(require_platform_admin),
):
    return await settings_service.update(db, data, current_user.sub)
