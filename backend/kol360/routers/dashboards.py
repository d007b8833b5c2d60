from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession
from kol360.database import get_db
from kol360.dependencies import get_campaign_for_user
from kol360.models.campaign import Campaign
from kol360.services.dashboard_service import dashboard_service

router = APIRouter()


@router.get("/{campaign_id}/dashboard/stats")
async def dashboard_stats(campaign: Campaign = Depends(get_campaign_for_user), db: AsyncSession = Depends(get_db)):
    return await dashboard_service.get_stats(db, campaign.id)


@router.get("/{campaign_id}/dashboard/funnel")
async def completion_funnel(campaign: Campaign = Depends(get_campaign_for_user), db: AsyncSession = Depends(get_db)):
    return await dashboard_service.get_completion_funnel(db, campaign.id)


@router.get("/{campaign_id}/dashboard/score-distribution")
async def score_distribution(campaign: Campaign = Depends(get_campaign_for_user), db: AsyncSession = Depends(get_db)):
    return await dashboard_service.get_score_distribution(db, campaign.id)


@router.get("/{campaign_id}/dashboard/top-kols")
async def top_kols(
    limit: int = Query(10, ge=1, le=100),
    campaign: Campaign = Depends(get_campaign_for_user),
    db: AsyncSession = Depends(get_db),
):
    return {"items": await dashboard_service.get_top_kols(db, campaign.id, limit)}


@router.get("/{campaign_id}/dashboard/segment-scores")
async def segment_scores(campaign: Campaign = Depends(get_campaign_for_user), db: AsyncSession = Depends(get_db)):
    return await dashboard_service.get_segment_scores(db, campaign.id)
