from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession
from kol360.auth import UserPrincipal, require_client_admin, require_platform_admin
from kol360.database import get_db
from kol360.schemas.user import UserInvite, UserUpdate, UserResponse
from kol360.services.user_service import user_service

router = APIRouter()


@router.get("")
async def list_users(
    client_id: str = Query(""),
    role: str = Query(""),
    status: str = Query(""),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    db: AsyncSession = Depends(get_db),
    current_user: UserPrincipal = Depends(require_client_admin),
):
    return await user_service.list_all(db, current_user, client_id or None, role or None, status or None, page, limit)


@router.get("/{user_id}", response_model=UserResponse)
async def get_user(
    user_id: str,
    db: AsyncSession = Depends(get_db),
    current_user: UserPrincipal = Depends(require_client_admin),
):
    return UserResponse.model_validate(await user_service.get(db, user_id, current_user))


@router.post("/invite", response_model=UserResponse, status_code=201)
async def invite_user(
    data: UserInvite,
    db: AsyncSession = Depends(get_db),
    current_user: UserPrincipal = Depends(require_client_admin),
):
    return UserResponse.model_validate(await user_service.invite(db, data, current_user))


@router.put("/{user_id}", response_model=UserResponse)
async def update_user(
    user_id: str,
    data: UserUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: UserPrincipal = Depends(require_client_admin),
):
    return UserResponse.model_validate(await user_service.update(db, user_id, data, current_user))


@router.post("/{user_id}/approve", response_model=UserResponse)
async def approve_user(
    user_id: str,
    db: AsyncSession = Depends(get_db),
    current_user: UserPrincipal = Depends(require_platform_admin),
):
    return UserResponse.model_validate(await user_service.approve(db, user_id, current_user))


@router.post("/{user_id}/disable", response_model=UserResponse)
async def disable_user(
    user_id: str,
    db: AsyncSession = Depends(get_db),
    current_user: UserPrincipal = Depends(require_client_admin),
):
    return UserResponse.model_validate(await user_service.disable(db, user_id, current_user))


@router.post("/{user_id}/enable", response_model=UserResponse)
async def enable_user(
    user_id: str,
    db: AsyncSession = Depends(get_db),
    current_user: UserPrincipal = Depends(require_client_admin),
):
    return UserResponse.model_validate(await user_service.enable(db, user_id, current_user))
