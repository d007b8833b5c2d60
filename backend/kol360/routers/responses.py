from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession
from kol360.auth import UserPrincipal, require_client_admin
from kol360.database import get_db
from kol360.dependencies import get_campaign_for_user
from kol360.models.campaign import Campaign
from kol360.schemas.survey import AnswerUpdate, ExcludeResponseRequest
from kol360.services.response_service import response_service

router = APIRouter()


@router.get("/{campaign_id}/responses")
async def list_responses(
    status: str = Query(""),
    page: int = Query(1, ge=1),
    limit: int = Query(50, ge=1, le=200),
    campaign: Campaign = Depends(get_campaign_for_user),
    db: AsyncSession = Depends(get_db),
):
    return await response_service.list_for_campaign(db, campaign.id, status, page, limit)


@router.get("/{campaign_id}/responses/stats")
async def response_stats(
    campaign: Campaign = Depends(get_campaign_for_user),
    db: AsyncSession = Depends(get_db),
):
    return await response_service.get_stats(db, campaign.id)


@router.get("/{campaign_id}/responses/{response_id}")
async def get_response(
    response_id: str,
    campaign: Campaign = Depends(get_campaign_for_user),
    db: AsyncSession = Depends(get_db),
):
    return await response_service.get_detail(db, response_id, campaign.id)


@router.put("/{campaign_id}/responses/{response_id}")
async def update_answer(
    response_id: str,
    data: AnswerUpdate,
    campaign: Campaign = Depends(get_campaign_for_user),
    db: AsyncSession = Depends(get_db),
    current_user: UserPrincipal = Depends(require_client_admin),
):
    await response_service.update_answer(db, response_id, campaign.id, data.question_id, data.value, current_user.sub)
    return await response_service.get_detail(db, response_id, campaign.id)


@router.post("/{campaign_id}/responses/{response_id}/exclude")
async def exclude_response(
    response_id: str,
    data: ExcludeResponseRequest,
    campaign: Campaign = Depends(get_campaign_for_user),
    db: AsyncSession = Depends(get_db),
    current_user: UserPrincipal = Depends(require_client_admin),
):
    response = await response_service.exclude(db, response_id, campaign.id, data.reason, current_user.sub)
    return {"id": response.id, "status": response.status}


@router.post("/{campaign_id}/responses/{response_id}/include")
async def include_response(
    response_id: str,
    campaign: Campaign = Depends(get_campaign_for_user),
    db: AsyncSession = Depends(get_db),
    current_user: UserPrincipal = Depends(require_client_admin),
):
    response = await response_service.include(db, response_id, campaign.id, current_user.sub)
    return {"id": response.id, "status": response.status}
