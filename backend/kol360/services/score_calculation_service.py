"""
Campaign score calculation.

Survey score:    nominations received / most nominations received in the campaign * 100
Composite score: weighted sum of the 8 objective segment scores and the survey score
Publishing folds campaign scores into the per-disease-area history (SCD type 2).
"""

import logging
from typing import Optional
from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession
from kol360.constants import NominationStatus, SEGMENTS
from kol360.database import utcnow
from kol360.exceptions import NotFoundError, BadRequestError
from kol360.logging_config import LogActions, log_event
from kol360.models.campaign import Campaign, CompositeScoreConfig
from kol360.models.hcp import HcpDiseaseAreaScore
from kol360.models.nomination import Nomination
from kol360.models.score import HcpCampaignScore
from kol360.models.survey_response import SurveyResponse

logger = logging.getLogger(__name__)


def survey_score(count: int, max_count: int) -> float:
    return count / max_count * 100 if max_count else 0.0


def composite_score(objective: Optional[HcpDiseaseAreaScore], survey: Optional[float],
                    weights: CompositeScoreConfig) -> float:
    """Weights are percentages; missing scores count as zero."""
    total = 0.0
    for score_field, weight_field, _ in SEGMENTS:
        value = getattr(objective, score_field, None) if objective else None
        total += (value or 0) * (getattr(weights, weight_field) or 0) / 100
    total += (survey or 0) * (weights.weight_survey or 0) / 100
    return total


class ScoreCalculationService:
    async def _campaign(self, db: AsyncSession, campaign_id: str) -> Campaign:
        campaign = await db.get(Campaign, campaign_id)
        if not campaign:
            raise NotFoundError("Campaign", campaign_id)
        return campaign

    async def calculate_survey_scores(self, db: AsyncSession, campaign_id: str) -> dict:
        await self._campaign(db, campaign_id)
        rows = (await db.execute(
            select(Nomination.matched_hcp_id, func.count(Nomination.id))
            .join(SurveyResponse, SurveyResponse.id == Nomination.response_id)
            .where(
                SurveyResponse.campaign_id == campaign_id,
                Nomination.match_status == NominationStatus.MATCHED,
                Nomination.matched_hcp_id.isnot(None),
            )
            .group_by(Nomination.matched_hcp_id)
        )).all()
        if not rows:
            return {"processed": 0, "updated": 0}

        max_count = max(count for _, count in rows)
        existing = {
            s.hcp_id: s for s in (await db.execute(
                select(HcpCampaignScore).where(HcpCampaignScore.campaign_id == campaign_id)
            )).scalars().all()
        }
        now = utcnow()
        for hcp_id, count in rows:
            score = existing.get(hcp_id)
            if not score:
                score = HcpCampaignScore(hcp_id=hcp_id, campaign_id=campaign_id)
                db.add(score)
            score.score_survey = survey_score(count, max_count)
            score.nomination_count = count
            score.calculated_at = now
        await db.flush()

        log_event(logger, LogActions.SCORES_CALCULATED, campaign_id=campaign_id, kind="survey", hcps=len(rows))
        return {"processed": len(rows), "updated": len(rows)}

    async def calculate_composite_scores(self, db: AsyncSession, campaign_id: str) -> dict:
        campaign = await self._campaign(db, campaign_id)
        weights = await db.scalar(
            select(CompositeScoreConfig).where(CompositeScoreConfig.campaign_id == campaign_id)
        )
        if not weights:
            raise BadRequestError("Campaign score config not found")

        scores = (await db.execute(
            select(HcpCampaignScore).where(HcpCampaignScore.campaign_id == campaign_id)
        )).scalars().all()
        if not scores:
            return {"processed": 0, "updated": 0}

        objective = {
            s.hcp_id: s for s in (await db.execute(
                select(HcpDiseaseAreaScore).where(
                    HcpDiseaseAreaScore.hcp_id.in_([s.hcp_id for s in scores]),
                    HcpDiseaseAreaScore.disease_area_id == campaign.disease_area_id,
                    HcpDiseaseAreaScore.is_current.is_(True),
                )
            )).scalars().all()
        }
        now = utcnow()
        for score in scores:
            score.composite_score = composite_score(objective.get(score.hcp_id), score.score_survey, weights)
            score.calculated_at = now
        await db.flush()

        log_event(logger, LogActions.SCORES_CALCULATED, campaign_id=campaign_id, kind="composite",
                  hcps=len(scores))
        return {"processed": len(scores), "updated": len(scores)}

    async def calculate_all(self, db: AsyncSession, campaign_id: str) -> dict:
        return {
            "survey_scores": await self.calculate_survey_scores(db, campaign_id),
            "composite_scores": await self.calculate_composite_scores(db, campaign_id),
        }

    async def publish_scores(self, db: AsyncSession, campaign_id: str) -> dict:
        campaign = await self._campaign(db, campaign_id)
        scores = (await db.execute(
            select(HcpCampaignScore).where(HcpCampaignScore.campaign_id == campaign_id)
        )).scalars().all()

        for score in scores:
            now = utcnow()
            current = await db.scalar(select(HcpDiseaseAreaScore).where(
                HcpDiseaseAreaScore.hcp_id == score.hcp_id,
                HcpDiseaseAreaScore.disease_area_id == campaign.disease_area_id,
                HcpDiseaseAreaScore.is_current.is_(True),
            ))
            if current:
                current.is_current = False
                current.effective_to = now

                # Survey score is averaged over every campaign in this disease area
                area_scores = (await db.execute(
                    select(HcpCampaignScore.score_survey)
                    .join(Campaign, Campaign.id == HcpCampaignScore.campaign_id)
                    .where(
                        HcpCampaignScore.hcp_id == score.hcp_id,
                        Campaign.disease_area_id == campaign.disease_area_id,
                        HcpCampaignScore.score_survey.isnot(None),
                    )
                )).scalars().all()
                average = sum(area_scores) / len(area_scores) if area_scores else (score.score_survey or 0)

                db.add(HcpDiseaseAreaScore(
                    hcp_id=score.hcp_id,
                    disease_area_id=campaign.disease_area_id,
                    **{field: getattr(current, field) for field, _, _ in SEGMENTS},
                    score_survey=average,
                    composite_score=current.composite_score,
                    total_nomination_count=(current.total_nomination_count or 0) + (score.nomination_count or 0),
                    campaign_count=(current.campaign_count or 0) + 1,
                    is_current=True,
                    effective_from=now,
                    last_calculated_at=now,
                ))
            else:
                db.add(HcpDiseaseAreaScore(
                    hcp_id=score.hcp_id,
                    disease_area_id=campaign.disease_area_id,
                    score_survey=score.score_survey,
                    total_nomination_count=score.nomination_count or 0,
                    campaign_count=1,
                    is_current=True,
                    effective_from=now,
                    last_calculated_at=now,
                ))
            score.published_at = now
            # Close-out must hit the database before the next lookup of the current row
            await db.flush()

        log_event(logger, LogActions.SCORES_PUBLISHED, campaign_id=campaign_id, hcps=len(scores))
        return {"processed": len(scores)}

    async def get_status(self, db: AsyncSession, campaign_id: str) -> dict:
        await self._campaign(db, campaign_id)
        nominations = (
            select(func.count(Nomination.id))
            .join(SurveyResponse, SurveyResponse.id == Nomination.response_id)
            .where(SurveyResponse.campaign_id == campaign_id)
        )
        total = await db.scalar(nominations) or 0
        matched = await db.scalar(nominations.where(Nomination.match_status == NominationStatus.MATCHED)) or 0
        hcp_scores = await db.scalar(
            select(func.count(HcpCampaignScore.id)).where(HcpCampaignScore.campaign_id == campaign_id)
        ) or 0
        with_composite = await db.scalar(
            select(func.count(HcpCampaignScore.id)).where(
                HcpCampaignScore.campaign_id == campaign_id,
                HcpCampaignScore.composite_score.isnot(None),
            )
        ) or 0
        return {
            "total_nominations": total,
            "matched_nominations": matched,
            "unmatched_nominations": total - matched,
            "hcp_scores_calculated": hcp_scores,
            "composite_scores_calculated": with_composite,
            "ready_to_publish": matched > 0 and hcp_scores > 0 and with_composite == hcp_scores,
        }


score_calculation_service = ScoreCalculationService()
