from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from kol360.models.campaign import CompositeScoreConfig
from kol360.schemas.score import DEFAULT_WEIGHTS, ScoreConfigUpdate


class ScoreConfigService:
    async def _find(self, db: AsyncSession, campaign_id: str):
        return await db.scalar(select(CompositeScoreConfig).where(CompositeScoreConfig.campaign_id == campaign_id))

    async def get(self, db: AsyncSession, campaign_id: str) -> CompositeScoreConfig:
        config = await self._find(db, campaign_id)
        if not config:
            config = CompositeScoreConfig(campaign_id=campaign_id, **DEFAULT_WEIGHTS)
            db.add(config)
            await db.flush()
        return config

    async def _set(self, db: AsyncSession, campaign_id: str, weights: dict) -> CompositeScoreConfig:
        config = await self._find(db, campaign_id)
        if config:
            for key, value in weights.items():
                setattr(config, key, value)
        else:
            config = CompositeScoreConfig(campaign_id=campaign_id, **weights)
            db.add(config)
        await db.flush()
        return config

    async def update(self, db: AsyncSession, campaign_id: str, data: ScoreConfigUpdate) -> CompositeScoreConfig:
        return await self._set(db, campaign_id, data.model_dump())

    async def reset(self, db: AsyncSession, campaign_id: str) -> CompositeScoreConfig:
        return await self._set(db, campaign_id, dict(DEFAULT_WEIGHTS))


score_config_service = ScoreConfigService()
