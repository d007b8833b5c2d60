from typing import Optional
from sqlalchemy import select, func, update
from sqlalchemy.ext.asyncio import AsyncSession
from kol360.exceptions import NotFoundError, BadRequestError
from kol360.models.campaign import Campaign
from kol360.models.question import (
    Question, SectionTemplate, SectionQuestion, SurveyTemplate, TemplateSection, SurveyQuestion,
)
from kol360.schemas.survey_template import TemplateCreate, TemplateUpdate, TemplateResponse
from kol360.services.section_service import section_service


class SurveyTemplateService:
    async def _sections(self, db: AsyncSession, template_id: str) -> list[tuple[TemplateSection, SectionTemplate]]:
        rows = await db.execute(
            select(TemplateSection, SectionTemplate)
            .join(SectionTemplate, SectionTemplate.id == TemplateSection.section_id)
            .where(TemplateSection.template_id == template_id)
            .order_by(TemplateSection.sort_order)
        )
        return rows.all()

    async def serialize(self, db: AsyncSession, template: SurveyTemplate) -> dict:
        sections = []
        for link, section in await self._sections(db, template.id):
            sections.append({"sort_order": link.sort_order, **(await section_service.serialize(db, section))})
        campaign_count = await db.scalar(
            select(func.count(Campaign.id)).where(Campaign.survey_template_id == template.id)
        ) or 0
        return {
            **TemplateResponse.model_validate(template).model_dump(),
            "sections": sections,
            "campaign_count": campaign_count,
        }

    async def list_all(self, db: AsyncSession) -> list[dict]:
        templates = (await db.execute(select(SurveyTemplate).order_by(SurveyTemplate.name))).scalars().all()
        return [await self.serialize(db, t) for t in templates]

    async def get(self, db: AsyncSession, template_id: str) -> SurveyTemplate:
        template = await db.get(SurveyTemplate, template_id)
        if not template:
            raise NotFoundError("Template", template_id)
        return template

    async def create(self, db: AsyncSession, data: TemplateCreate) -> SurveyTemplate:
        template = SurveyTemplate(name=data.name, description=data.description)
        db.add(template)
        await db.flush()
        for section_id in data.section_ids:
            await self.add_section(db, template.id, section_id)
        return template

    async def update(self, db: AsyncSession, template_id: str, data: TemplateUpdate) -> SurveyTemplate:
        template = await self.get(db, template_id)
        for key, value in data.model_dump(exclude_unset=True).items():
            setattr(template, key, value)
        await db.flush()
        return template

    async def delete(self, db: AsyncSession, template_id: str) -> None:
        template = await self.get(db, template_id)
        in_use = await db.scalar(select(func.count(Campaign.id)).where(Campaign.survey_template_id == template_id))
        if in_use:
            raise BadRequestError("Cannot delete template that is used by campaigns")
        for link, _ in await self._sections(db, template_id):
            await db.delete(link)
        await db.delete(template)
        await db.flush()

    async def add_section(self, db: AsyncSession, template_id: str, section_id: str) -> dict:
        await self.get(db, template_id)
        await section_service.get(db, section_id)
        existing = await db.scalar(select(TemplateSection.id).where(
            TemplateSection.template_id == template_id, TemplateSection.section_id == section_id,
        ))
        if existing:
            raise BadRequestError("Section already exists in this template")
        max_order = await db.scalar(
            select(func.max(TemplateSection.sort_order)).where(TemplateSection.template_id == template_id)
        )
        link = TemplateSection(template_id=template_id, section_id=section_id, sort_order=(max_order or 0) + 1)
        db.add(link)
        await db.flush()
        return {"template_id": template_id, "section_id": section_id, "sort_order": link.sort_order}

    async def remove_section(self, db: AsyncSession, template_id: str, section_id: str) -> None:
        link = await db.scalar(select(TemplateSection).where(
            TemplateSection.template_id == template_id, TemplateSection.section_id == section_id,
        ))
        if not link:
            raise NotFoundError("Section in template", section_id)
        await db.delete(link)
        await db.flush()

    async def reorder_sections(self, db: AsyncSession, template_id: str, section_ids: list[str]) -> None:
        links = {link.section_id: link for link, _ in await self._sections(db, template_id)}
        unknown = [s for s in section_ids if s not in links]
        if unknown:
            raise BadRequestError(f"Section {unknown[0]} is not in this template")
        for index, section_id in enumerate(section_ids):
            links[section_id].sort_order = index
        await db.flush()

    async def clone(self, db: AsyncSession, template_id: str, name: Optional[str] = None) -> SurveyTemplate:
        template = await self.get(db, template_id)
        copy = SurveyTemplate(name=name or f"{template.name} (Copy)", description=template.description)
        db.add(copy)
        await db.flush()
        for link, _ in await self._sections(db, template_id):
            db.add(TemplateSection(template_id=copy.id, section_id=link.section_id, sort_order=link.sort_order))
        await db.flush()
        return copy

    async def instantiate_for_campaign(self, db: AsyncSession, template_id: str, campaign_id: str) -> int:
        """Copy the template's questions onto a campaign. Returns how many were created."""
        await self.get(db, template_id)
        global_order = 0
        question_ids = []
        for _, section in await self._sections(db, template_id):
            rows = await db.execute(
                select(SectionQuestion, Question)
                .join(Question, Question.id == SectionQuestion.question_id)
                .where(SectionQuestion.section_id == section.id)
                .order_by(SectionQuestion.sort_order)
            )
            for _, question in rows.all():
                db.add(SurveyQuestion(
                    campaign_id=campaign_id,
                    question_id=question.id,
                    section_name=section.name,
                    sort_order=global_order,
                    is_required=bool(question.is_required),
                    question_text_snapshot=question.text,
                    nomination_type=question.nomination_type,
                ))
                question_ids.append(question.id)
                global_order += 1

        if question_ids:
            for question_id in set(question_ids):
                await db.execute(
                    update(Question)
                    .where(Question.id == question_id)
                    .values(usage_count=Question.usage_count + question_ids.count(question_id))
                )
        await db.flush()
        return len(question_ids)


survey_template_service = SurveyTemplateService()
