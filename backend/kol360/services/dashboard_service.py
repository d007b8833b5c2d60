import math
from typing import Optional
from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession
from kol360.constants import ResponseStatus, SEGMENTS
from kol360.exceptions import NotFoundError
from kol360.models.campaign import Campaign, CampaignHcp, CompositeScoreConfig
from kol360.models.hcp import Hcp, HcpDiseaseAreaScore
from kol360.models.score import HcpCampaignScore
from kol360.models.survey_response import SurveyResponse
from kol360.schemas.score import DEFAULT_WEIGHTS

BUCKET_SIZE = 20
BUCKET_COUNT = 5


def round2(value: float) -> float:
    return math.floor(value * 100 + 0.5) / 100


def median(values: list[float]) -> float:
    ordered = sorted(values)
    mid = len(ordered) // 2
    if len(ordered) % 2:
        return ordered[mid]
    return (ordered[mid - 1] + ordered[mid]) / 2


def bucket_index(score: float) -> int:
    """0-20, 20-40, 40-60, 60-80, 80-100; 100 itself lands in the last bucket."""
    return max(0, min(int(score // BUCKET_SIZE), BUCKET_COUNT - 1))


def funnel(sent: int, status_counts: dict) -> dict:
    completed = status_counts.get(ResponseStatus.COMPLETED, 0)
    started = status_counts.get(ResponseStatus.IN_PROGRESS, 0) + completed
    opened = status_counts.get(ResponseStatus.OPENED, 0) + started
    return {"sent": sent, "opened": opened, "started": started, "completed": completed}


class DashboardService:
    async def _campaign(self, db: AsyncSession, campaign_id: str) -> Campaign:
        campaign = await db.get(Campaign, campaign_id)
        if not campaign:
            raise NotFoundError("Campaign", campaign_id)
        return campaign

    async def _sent_count(self, db: AsyncSession, campaign_id: str) -> int:
        return await db.scalar(
            select(func.count(CampaignHcp.id)).where(
                CampaignHcp.campaign_id == campaign_id, CampaignHcp.email_sent_at.isnot(None),
            )
        ) or 0

    async def _status_counts(self, db: AsyncSession, campaign_id: str) -> dict:
        rows = await db.execute(
            select(SurveyResponse.status, func.count(SurveyResponse.id))
            .where(SurveyResponse.campaign_id == campaign_id)
            .group_by(SurveyResponse.status)
        )
        return {status: count for status, count in rows.all()}

    async def _composite_scores(self, db: AsyncSession, campaign_id: str) -> list[float]:
        return list((await db.execute(
            select(HcpCampaignScore.composite_score).where(
                HcpCampaignScore.campaign_id == campaign_id,
                HcpCampaignScore.composite_score.isnot(None),
            )
        )).scalars().all())

    async def _group_hcps(self, db: AsyncSession, campaign_id: str, column) -> list[dict]:
        rows = await db.execute(
            select(column, func.count(Hcp.id))
            .join(CampaignHcp, CampaignHcp.hcp_id == Hcp.id)
            .where(CampaignHcp.campaign_id == campaign_id, column.isnot(None))
            .group_by(column)
        )
        groups = [{"name": name, "count": count} for name, count in rows.all() if name]
        return sorted(groups, key=lambda g: g["count"], reverse=True)

    async def get_stats(self, db: AsyncSession, campaign_id: str) -> dict:
        await self._campaign(db, campaign_id)
        sent = await self._sent_count(db, campaign_id)
        stages = funnel(sent, await self._status_counts(db, campaign_id))

        scores = await self._composite_scores(db, campaign_id)
        total_hcps = await db.scalar(
            select(func.count(CampaignHcp.id)).where(CampaignHcp.campaign_id == campaign_id)
        ) or 0

        return {
            "total_sent": sent,
            "total_opened": stages["opened"],
            "total_started": stages["started"],
            "total_completed": stages["completed"],
            "response_rate": math.floor(stages["completed"] / sent * 100 + 0.5) if sent else 0,
            "average_score": round2(sum(scores) / len(scores)) if scores else None,
            "median_score": round2(median(scores)) if scores else None,
            "min_score": min(scores) if scores else None,
            "max_score": max(scores) if scores else None,
            "total_hcps": total_hcps,
            "hcps_by_specialty": await self._group_hcps(db, campaign_id, Hcp.specialty),
            "hcps_by_state": await self._group_hcps(db, campaign_id, Hcp.state),
        }

    async def get_completion_funnel(self, db: AsyncSession, campaign_id: str) -> dict:
        await self._campaign(db, campaign_id)
        return funnel(await self._sent_count(db, campaign_id), await self._status_counts(db, campaign_id))

    async def get_score_distribution(self, db: AsyncSession, campaign_id: str) -> dict:
        await self._campaign(db, campaign_id)
        ranges = [
            {"min": i * BUCKET_SIZE, "max": (i + 1) * BUCKET_SIZE, "count": 0} for i in range(BUCKET_COUNT)
        ]
        for score in await self._composite_scores(db, campaign_id):
            ranges[bucket_index(score)]["count"] += 1
        return {"ranges": ranges}

    async def get_top_kols(self, db: AsyncSession, campaign_id: str, limit: int = 10) -> list[dict]:
        await self._campaign(db, campaign_id)
        rows = await db.execute(
            select(HcpCampaignScore, Hcp)
            .join(Hcp, Hcp.id == HcpCampaignScore.hcp_id)
            .where(HcpCampaignScore.campaign_id == campaign_id)
            .order_by(HcpCampaignScore.composite_score.desc().nulls_last(), Hcp.last_name)
            .limit(limit)
        )
        return [
            {
                "id": hcp.id,
                "npi": hcp.npi,
                "first_name": hcp.first_name,
                "last_name": hcp.last_name,
                "specialty": hcp.specialty,
                "state": hcp.state,
                "composite_score": score.composite_score,
                "survey_score": score.score_survey,
                "nomination_count": score.nomination_count,
            }
            for score, hcp in rows.all()
        ]

    async def get_segment_scores(self, db: AsyncSession, campaign_id: str) -> dict:
        campaign = await self._campaign(db, campaign_id)
        config: Optional[CompositeScoreConfig] = await db.scalar(
            select(CompositeScoreConfig).where(CompositeScoreConfig.campaign_id == campaign_id)
        )
        rows = (await db.execute(
            select(HcpCampaignScore, HcpDiseaseAreaScore)
            .outerjoin(HcpDiseaseAreaScore, (HcpDiseaseAreaScore.hcp_id == HcpCampaignScore.hcp_id)
                       & (HcpDiseaseAreaScore.disease_area_id == campaign.disease_area_id)
                       & HcpDiseaseAreaScore.is_current.is_(True))
            .where(HcpCampaignScore.campaign_id == campaign_id)
        )).all()

        def weight(field: str) -> float:
            value = getattr(config, field, None) if config else None
            return value if value is not None else DEFAULT_WEIGHTS[field]

        def average(values: list) -> Optional[float]:
            present = [v for v in values if v is not None]
            return round2(sum(present) / len(present)) if present else None

        segments = [
            {
                "name": label,
                "average_score": average([getattr(area, score_field) if area else None for _, area in rows]),
                "weight": weight(weight_field),
            }
            for score_field, weight_field, label in SEGMENTS
        ]
        segments.append({
            "name": "Survey",
            "average_score": average([score.score_survey for score, _ in rows]),
            "weight": weight("weight_survey"),
        })
        return {"segments": segments}


dashboard_service = DashboardService()
