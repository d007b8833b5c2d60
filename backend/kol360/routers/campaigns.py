from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession
from kol360.auth import UserPrincipal, require_client_admin
from kol360.database import get_db
from kol360.schemas.campaign import (
    CampaignCreate, CampaignUpdate, CampaignResponse, CampaignDetailResponse, EmailTemplatesUpdate,
    LandingPageUpdate,
)
from kol360.services.campaign_service import campaign_service

router = APIRouter()


@router.get("")
async def list_campaigns(
    client_id: str = Query(""),
    status: str = Query(""),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    db: AsyncSession = Depends(get_db),
    current_user: UserPrincipal = Depends(require_client_admin),
):
    return await campaign_service.list_all(db, current_user, client_id or None, status or None, page, limit)


@router.get("/{campaign_id}", response_model=CampaignDetailResponse)
async def get_campaign(
    campaign_id: str,
    db: AsyncSession = Depends(get_db),
    current_user: UserPrincipal = Depends(require_client_admin),
):
    return await campaign_service.get_detail(db, campaign_id, current_user)


@router.post("", response_model=CampaignResponse, status_code=201)
async def create_campaign(
    data: CampaignCreate,
    db: AsyncSession = Depends(get_db),
    current_user: UserPrincipal = Depends(require_client_admin),
):
    return CampaignResponse.model_validate(await campaign_service.create(db, data, current_user))


@router.put("/{campaign_id}", response_model=CampaignResponse)
async def update_campaign(
    campaign_id: str,
    data: CampaignUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: UserPrincipal = Depends(require_client_admin),
):
    return CampaignResponse.model_validate(await campaign_service.update(db, campaign_id, data, current_user))


@router.delete("/{campaign_id}")
async def delete_campaign(
    campaign_id: str,
    db: AsyncSession = Depends(get_db),
    current_user: UserPrincipal = Depends(require_client_admin),
):
    await campaign_service.delete(db, campaign_id, current_user)
    return {"deleted": True, "id": campaign_id}


# Lifecycle

@router.post("/{campaign_id}/activate", response_model=CampaignResponse)
async def activate_campaign(
    campaign_id: str,
    db: AsyncSession = Depends(get_db),
    current_user: UserPrincipal = Depends(require_client_admin),
):
    return CampaignResponse.model_validate(await campaign_service.transition(db, campaign_id, "activate", current_user))


@router.post("/{campaign_id}/close", response_model=CampaignResponse)
async def close_campaign(
    campaign_id: str,
    db: AsyncSession = Depends(get_db),
    current_user: UserPrincipal = Depends(require_client_admin),
):
    return CampaignResponse.model_validate(await campaign_service.transition(db, campaign_id, "close", current_user))


@router.post("/{campaign_id}/reopen", response_model=CampaignResponse)
async def reopen_campaign(
    campaign_id: str,
    db: AsyncSession = Depends(get_db),
    current_user: UserPrincipal = Depends(require_client_admin),
):
    return CampaignResponse.model_validate(await campaign_service.transition(db, campaign_id, "reopen", current_user))


@router.post("/{campaign_id}/publish", response_model=CampaignResponse)
async def publish_campaign(
    campaign_id: str,
    db: AsyncSession = Depends(get_db),
    current_user: UserPrincipal = Depends(require_client_admin),
):
    return CampaignResponse.model_validate(await campaign_service.transition(db, campaign_id, "publish", current_user))


# Templates

@router.get("/{campaign_id}/email-templates")
async def get_email_templates(
    campaign_id: str,
    db: AsyncSession = Depends(get_db),
    current_user: UserPrincipal = Depends(require_client_admin),
):
    return await campaign_service.get_email_templates(db, campaign_id, current_user)


@router.put("/{campaign_id}/email-templates")
async def update_email_templates(
    campaign_id: str,
    data: EmailTemplatesUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: UserPrincipal = Depends(require_client_admin),
):
    return await campaign_service.update_email_templates(db, campaign_id, data, current_user)


@router.get("/{campaign_id}/landing-page-templates")
async def get_landing_page(
    campaign_id: str,
    db: AsyncSession = Depends(get_db),
    current_user: UserPrincipal = Depends(require_client_admin),
):
    return await campaign_service.get_landing_page(db, campaign_id, current_user)


@router.put("/{campaign_id}/landing-page-templates")
async def update_landing_page(
    campaign_id: str,
    data: LandingPageUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: UserPrincipal = Depends(require_client_admin),
):
    return await campaign_service.update_landing_page(db, campaign_id, data, current_user)


@router.get("/{campaign_id}/survey-preview")
async def survey_preview(
    campaign_id: str,
    db: AsyncSession = Depends(get_db),
    current_user: UserPrincipal = Depends(require_client_admin),
):
    return await campaign_service.survey_preview(db, campaign_id, current_user)


@router.get("/{campaign_id}/audit-log")
async def campaign_audit_log(
    campaign_id: str,
    limit: int = Query(100, ge=1, le=500),
    db: AsyncSession = Depends(get_db),
    current_user: UserPrincipal = Depends(require_client_admin),
):
    return {"items": await campaign_service.audit_log(db, campaign_id, current_user, limit)}
