from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from kol360.auth import UserPrincipal, require_client_admin, require_platform_admin
from kol360.database import get_db
from kol360.dependencies import get_campaign_for_user
from kol360.models.campaign import Campaign
from kol360.schemas.score import ScoreConfigUpdate, ScoreConfigResponse, WEIGHT_FIELDS
from kol360.services.audit_service import create_audit_log
from kol360.services.campaign_service import campaign_service
from kol360.services.score_calculation_service import score_calculation_service
from kol360.services.score_config_service import score_config_service

router = APIRouter()


def weights_of(config) -> dict:
    return {f: getattr(config, f) for f in WEIGHT_FIELDS}


# Score configuration

@router.get("/{campaign_id}/score-config", response_model=ScoreConfigResponse)
async def get_score_config(
    campaign: Campaign = Depends(get_campaign_for_user),
    db: AsyncSession = Depends(get_db),
):
    return ScoreConfigResponse.model_validate(await score_config_service.get(db, campaign.id))


@router.put("/{campaign_id}/score-config", response_model=ScoreConfigResponse)
async def update_score_config(
    data: ScoreConfigUpdate,
    campaign: Campaign = Depends(get_campaign_for_user),
    db: AsyncSession = Depends(get_db),
    current_user: UserPrincipal = Depends(require_client_admin),
):
    old = weights_of(await score_config_service.get(db, campaign.id))
    config = await score_config_service.update(db, campaign.id, data)
    await create_audit_log(db, current_user.sub, "score_config.updated", "CompositeScoreConfig", config.id,
                           old_values=old, new_values=weights_of(config), tenant_id=campaign.client_id)
    return ScoreConfigResponse.model_validate(config)


@router.post("/{campaign_id}/score-config/reset", response_model=ScoreConfigResponse)
async def reset_score_config(
    campaign: Campaign = Depends(get_campaign_for_user),
    db: AsyncSession = Depends(get_db),
    current_user: UserPrincipal = Depends(require_client_admin),
):
    config = await score_config_service.reset(db, campaign.id)
    await create_audit_log(db, current_user.sub, "score_config.reset", "CompositeScoreConfig", config.id,
                           new_values=weights_of(config), tenant_id=campaign.client_id)
    return ScoreConfigResponse.model_validate(config)


# Score calculation

@router.get("/{campaign_id}/scores/status")
async def score_status(
    campaign_id: str,
    db: AsyncSession = Depends(get_db),
    current_user: UserPrincipal = Depends(require_platform_admin),
):
    return await score_calculation_service.get_status(db, campaign_id)


@router.post("/{campaign_id}/scores/calculate-survey")
async def calculate_survey_scores(
    campaign_id: str,
    db: AsyncSession = Depends(get_db),
    current_user: UserPrincipal = Depends(require_platform_admin),
):
    campaign = await campaign_service.get(db, campaign_id)
    result = await score_calculation_service.calculate_survey_scores(db, campaign_id)
    await create_audit_log(db, current_user.sub, "scores.survey_calculated", "Campaign", campaign_id,
                           new_values=result, tenant_id=campaign.client_id)
    return result


@router.post("/{campaign_id}/scores/calculate-composite")
async def calculate_composite_scores(
    campaign_id: str,
    db: AsyncSession = Depends(get_db),
    current_user: UserPrincipal = Depends(require_platform_admin),
):
    campaign = await campaign_service.get(db, campaign_id)
    result = await score_calculation_service.calculate_composite_scores(db, campaign_id)
    await create_audit_log(db, current_user.sub, "scores.composite_calculated", "Campaign", campaign_id,
                           new_values=result, tenant_id=campaign.client_id)
    return result


@router.post("/{campaign_id}/scores/calculate-all")
async def calculate_all_scores(
    campaign_id: str,
    db: AsyncSession = Depends(get_db),
    current_user: UserPrincipal = Depends(require_platform_admin),
):
    campaign = await campaign_service.get(db, campaign_id)
    result = await score_calculation_service.calculate_all(db, campaign_id)
    await create_audit_log(db, current_user.sub, "scores.all_calculated", "Campaign", campaign_id,
                           new_values=result, tenant_id=campaign.client_id)
    return result
