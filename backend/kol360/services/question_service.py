from collections import Counter
from typing import Optional
from sqlalchemy import select, func, cast, String
from sqlalchemy.ext.asyncio import AsyncSession
from kol360.constants import CampaignStatus
from kol360.database import contains_pattern, LIKE_ESCAPE
from kol360.exceptions import NotFoundError, BadRequestError
from kol360.models.campaign import Campaign
from kol360.models.question import Question, SurveyQuestion, SectionQuestion
from kol360.schemas.common import paginate
from kol360.schemas.question import QuestionCreate, QuestionUpdate, QuestionResponse, check_question_shape


class QuestionService:
    async def list_all(
        self,
        db: AsyncSession,
        category: str = "",
        type: str = "",
        tag: str = "",
        status: str = "",
        search: str = "",
        page: int = 1,
        limit: int = 50,
    ) -> dict:
        query = select(Question)
        if category:
            query = query.where(Question.category == category)
        if type:
            query = query.where(Question.type == type)
        if status:
            query = query.where(Question.status == status)
        if tag:
            tag_like = contains_pattern(f'"{tag}"')
            query = query.where(cast(Question.tags, String).ilike(tag_like, escape=LIKE_ESCAPE))
        if search:
            query = query.where(Question.text.ilike(contains_pattern(search), escape=LIKE_ESCAPE))

        total = await db.scalar(select(func.count()).select_from(query.subquery())) or 0
        query = query.order_by(Question.category, Question.created_at.desc()).offset((page - 1) * limit).limit(limit)
        questions = (await db.execute(query)).scalars().all()
        return {
            "items": [QuestionResponse.model_validate(q) for q in questions],
            "pagination": paginate(page, limit, total),
        }

    async def get(self, db: AsyncSession, question_id: str) -> Question:
        question = await db.get(Question, question_id)
        if not question:
            raise NotFoundError("Question", question_id)
        return question

    async def create(self, db: AsyncSession, data: QuestionCreate) -> Question:
        values = data.model_dump()
        question = Question(**values, status="active", usage_count=0)
        db.add(question)
        await db.flush()
        return question

    async def used_in_active_campaign(self, db: AsyncSession, question_id: str) -> bool:
        count = await db.scalar(
            select(func.count(SurveyQuestion.id))
            .join(Campaign, Campaign.id == SurveyQuestion.campaign_id)
            .where(SurveyQuestion.question_id == question_id, Campaign.status == CampaignStatus.ACTIVE)
        )
        return bool(count)

    async def update(self, db: AsyncSession, question_id: str, data: QuestionUpdate) -> Question:
        question = await self.get(db, question_id)
        changes = data.model_dump(exclude_unset=True)

        if "text" in changes and changes["text"] != question.text:
            if await self.used_in_active_campaign(db, question_id):
                raise BadRequestError("Cannot modify text of question used in active campaigns")

        merged_type = changes.get("type", question.type)
        merged_options = changes.get("options", question.options)
        merged_nomination = changes.get("nomination_type", question.nomination_type)
        try:
            check_question_shape(merged_type, merged_options, merged_nomination)
        except ValueError as e:
            raise BadRequestError(str(e))

        for key, value in changes.items():
            setattr(question, key, value)
        await db.flush()
        return question

    async def set_status(self, db: AsyncSession, question_id: str, status: str) -> Question:
        question = await self.get(db, question_id)
        question.status = status
        await db.flush()
        return question

    async def get_categories(self, db: AsyncSession) -> list[dict]:
        rows = await db.execute(
            select(Question.category, func.count(Question.id))
            .where(Question.category.isnot(None))
            .group_by(Question.category)
            .order_by(Question.category)
        )
        return [{"name": name, "count": count} for name, count in rows.all()]

    async def get_tags(self, db: AsyncSession) -> list[dict]:
        tag_lists = (await db.execute(select(Question.tags))).scalars().all()
        counts = Counter(tag for tags in tag_lists if tags for tag in tags)
        return [{"name": name, "count": count} for name, count in counts.most_common()]

    async def section_ids_for(self, db: AsyncSession, question_id: str) -> list[str]:
        rows = await db.execute(select(SectionQuestion.section_id).where(SectionQuestion.question_id == question_id))
        return list(rows.scalars().all())


question_service = QuestionService()
