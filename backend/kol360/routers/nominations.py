from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession
from kol360.auth import UserPrincipal, require_client_admin
from kol360.database import get_db
from kol360.dependencies import get_campaign_for_user
from kol360.models.campaign import Campaign
from kol360.schemas.nomination import (
    MatchRequest, CreateHcpFromNomination, ExcludeNominationRequest, UpdateRawNameRequest,
)
from kol360.services.audit_service import create_audit_log
from kol360.services.nomination_service import nomination_service

router = APIRouter()


@router.get("/{campaign_id}/nominations")
async def list_nominations(
    status: str = Query(""),
    page: int = Query(1, ge=1),
    limit: int = Query(50, ge=1, le=200),
    campaign: Campaign = Depends(get_campaign_for_user),
    db: AsyncSession = Depends(get_db),
):
    return await nomination_service.list_for_campaign(db, campaign.id, status, page, limit)


@router.get("/{campaign_id}/nominations/stats")
async def nomination_stats(
    campaign: Campaign = Depends(get_campaign_for_user),
    db: AsyncSession = Depends(get_db),
):
    return await nomination_service.get_stats(db, campaign.id)


@router.post("/{campaign_id}/nominations/bulk-match")
async def bulk_match(
    campaign: Campaign = Depends(get_campaign_for_user),
    db: AsyncSession = Depends(get_db),
    current_user: UserPrincipal = Depends(require_client_admin),
):
    result = await nomination_service.bulk_auto_match(db, campaign.id, current_user.sub)
    await create_audit_log(db, current_user.sub, "nomination.bulk_matched", "Campaign", campaign.id,
                           new_values={"matched": result["matched"], "total": result["total"]},
                           tenant_id=campaign.client_id)
    return result


@router.get("/{campaign_id}/nominations/{nomination_id}/suggestions")
async def nomination_suggestions(
    nomination_id: str,
    campaign: Campaign = Depends(get_campaign_for_user),
    db: AsyncSession = Depends(get_db),
):
    nomination = await nomination_service.get(db, nomination_id, campaign.id)
    return {
        "nomination": await nomination_service.serialize(db, nomination),
        "suggestions": await nomination_service.get_suggestions(db, nomination),
    }


@router.post("/{campaign_id}/nominations/{nomination_id}/match")
async def match_nomination(
    nomination_id: str,
    data: MatchRequest,
    campaign: Campaign = Depends(get_campaign_for_user),
    db: AsyncSession = Depends(get_db),
    current_user: UserPrincipal = Depends(require_client_admin),
):
    nomination = await nomination_service.get(db, nomination_id, campaign.id)
    nomination = await nomination_service.match_to_hcp(db, nomination, data, current_user.sub)
    await create_audit_log(db, current_user.sub, "nomination.matched", "Nomination", nomination.id,
                           new_values={"hcp_id": data.hcp_id, "match_status": nomination.match_status},
                           tenant_id=campaign.client_id)
    return await nomination_service.serialize(db, nomination)


@router.post("/{campaign_id}/nominations/{nomination_id}/create-hcp", status_code=201)
async def create_hcp_from_nomination(
    nomination_id: str,
    data: CreateHcpFromNomination,
    campaign: Campaign = Depends(get_campaign_for_user),
    db: AsyncSession = Depends(get_db),
    current_user: UserPrincipal = Depends(require_client_admin),
):
    nomination = await nomination_service.get(db, nomination_id, campaign.id)
    nomination = await nomination_service.create_hcp_and_match(db, nomination, data, current_user.sub)
    await create_audit_log(db, current_user.sub, "nomination.hcp_created", "Nomination", nomination.id,
                           new_values={"hcp_id": nomination.matched_hcp_id, "npi": data.npi},
                           tenant_id=campaign.client_id)
    return await nomination_service.serialize(db, nomination)


@router.post("/{campaign_id}/nominations/{nomination_id}/exclude")
async def exclude_nomination(
    nomination_id: str,
    data: ExcludeNominationRequest,
    campaign: Campaign = Depends(get_campaign_for_user),
    db: AsyncSession = Depends(get_db),
    current_user: UserPrincipal = Depends(require_client_admin),
):
    nomination = await nomination_service.get(db, nomination_id, campaign.id)
    nomination = await nomination_service.exclude(db, nomination, current_user.sub, data.reason)
    return await nomination_service.serialize(db, nomination)


@router.put("/{campaign_id}/nominations/{nomination_id}")
async def update_raw_name(
    nomination_id: str,
    data: UpdateRawNameRequest,
    campaign: Campaign = Depends(get_campaign_for_user),
    db: AsyncSession = Depends(get_db),
):
    nomination = await nomination_service.get(db, nomination_id, campaign.id)
    nomination = await nomination_service.update_raw_name(db, nomination, data.raw_name_entered)
    return await nomination_service.serialize(db, nomination)
