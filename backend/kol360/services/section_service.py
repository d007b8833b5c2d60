from sqlalchemy import select, func, delete
from sqlalchemy.ext.asyncio import AsyncSession
from kol360.exceptions import NotFoundError, BadRequestError
from kol360.models.question import Question, SectionTemplate, SectionQuestion, TemplateSection
from kol360.schemas.question import QuestionResponse
from kol360.schemas.section import SectionCreate, SectionUpdate, SectionResponse


class SectionService:
    async def _questions(self, db: AsyncSession, section_id: str) -> list[dict]:
        rows = await db.execute(
            select(SectionQuestion, Question)
            .join(Question, Question.id == SectionQuestion.question_id)
            .where(SectionQuestion.section_id == section_id)
            .order_by(SectionQuestion.sort_order)
        )
        return [
            {"sort_order": link.sort_order, "question": QuestionResponse.model_validate(q)}
            for link, q in rows.all()
        ]

    async def _template_count(self, db: AsyncSession, section_id: str) -> int:
        return await db.scalar(
            select(func.count(TemplateSection.id)).where(TemplateSection.section_id == section_id)
        ) or 0

    async def serialize(self, db: AsyncSession, section: SectionTemplate) -> dict:
        return {
            **SectionResponse.model_validate(section).model_dump(),
            "questions": await self._questions(db, section.id),
            "template_count": await self._template_count(db, section.id),
        }

    async def list_all(self, db: AsyncSession) -> list[dict]:
        sections = (await db.execute(
            select(SectionTemplate).order_by(SectionTemplate.is_core.desc(), SectionTemplate.name)
        )).scalars().all()
        return [await self.serialize(db, s) for s in sections]

    async def get(self, db: AsyncSession, section_id: str) -> SectionTemplate:
        section = await db.get(SectionTemplate, section_id)
        if not section:
            raise NotFoundError("Section", section_id)
        return section

    async def create(self, db: AsyncSession, data: SectionCreate) -> SectionTemplate:
        section = SectionTemplate(**data.model_dump())
        db.add(section)
        await db.flush()
        return section

    async def update(self, db: AsyncSession, section_id: str, data: SectionUpdate) -> SectionTemplate:
        section = await self.get(db, section_id)
        for key, value in data.model_dump(exclude_unset=True).items():
            setattr(section, key, value)
        await db.flush()
        return section

    async def delete(self, db: AsyncSession, section_id: str) -> None:
        section = await self.get(db, section_id)
        if section.is_core:
            raise BadRequestError("Cannot delete core sections")
        if await self._template_count(db, section_id):
            raise BadRequestError(
                "Cannot delete section that is used in templates. Remove it from all templates first."
            )
        await db.execute(delete(SectionQuestion).where(SectionQuestion.section_id == section_id))
        await db.delete(section)
        await db.flush()

    async def add_question(self, db: AsyncSession, section_id: str, question_id: str) -> dict:
        await self.get(db, section_id)
        if not await db.get(Question, question_id):
            raise NotFoundError("Question", question_id)
        existing = await db.scalar(select(SectionQuestion.id).where(
            SectionQuestion.section_id == section_id, SectionQuestion.question_id == question_id,
        ))
        if existing:
            raise BadRequestError("Question already exists in this section")
        max_order = await db.scalar(
            select(func.max(SectionQuestion.sort_order)).where(SectionQuestion.section_id == section_id)
        )
        link = SectionQuestion(section_id=section_id, question_id=question_id, sort_order=(max_order or 0) + 1)
        db.add(link)
        await db.flush()
        return {"section_id": section_id, "question_id": question_id, "sort_order": link.sort_order}

    async def remove_question(self, db: AsyncSession, section_id: str, question_id: str) -> None:
        link = await db.scalar(select(SectionQuestion).where(
            SectionQuestion.section_id == section_id, SectionQuestion.question_id == question_id,
        ))
        if not link:
            raise NotFoundError("Question in section", question_id)
        await db.delete(link)
        await db.flush()

    async def reorder_questions(self, db: AsyncSession, section_id: str, question_ids: list[str]) -> None:
        links = (await db.execute(
            select(SectionQuestion).where(SectionQuestion.section_id == section_id)
        )).scalars().all()
        by_question = {link.question_id: link for link in links}
        unknown = [q for q in question_ids if q not in by_question]
        if unknown:
            raise BadRequestError(f"Question {unknown[0]} is not in this section")
        for index, question_id in enumerate(question_ids):
            by_question[question_id].sort_order = index
        await db.flush()


section_service = SectionService()
