import logging
from typing import Optional
from sqlalchemy import select, func, delete
from sqlalchemy.ext.asyncio import AsyncSession
from kol360.auth import UserPrincipal, ensure_tenant_access
from kol360.constants import CampaignStatus
from kol360.database import utcnow
from kol360.exceptions import NotFoundError, BadRequestError
from kol360.logging_config import LogActions, log_event
from kol360.models.audit_log import AuditLog
from kol360.models.campaign import Campaign, CampaignHcp, CompositeScoreConfig
from kol360.models.client import Client
from kol360.models.disease_area import DiseaseArea
from kol360.models.question import SurveyQuestion, Question
from kol360.models.survey_response import SurveyResponse
from kol360.models.user import User
from kol360.schemas.campaign import (
    CampaignCreate, CampaignUpdate, CampaignResponse, EmailTemplatesUpdate, LandingPageUpdate,
)
from kol360.schemas.common import paginate
from kol360.services.audit_service import create_audit_log
from kol360.services.score_calculation_service import score_calculation_service
from kol360.services.survey_template_service import survey_template_service

logger = logging.getLogger(__name__)

# action -> (required status, resulting status)
TRANSITIONS = {
    "activate": (CampaignStatus.DRAFT, CampaignStatus.ACTIVE),
    "close": (CampaignStatus.ACTIVE, CampaignStatus.CLOSED),
    "reopen": (CampaignStatus.CLOSED, CampaignStatus.ACTIVE),
    "publish": (CampaignStatus.CLOSED, CampaignStatus.PUBLISHED),
}

EMAIL_FIELDS = ("invitation_email_subject", "invitation_email_body", "reminder_email_subject", "reminder_email_body")
LANDING_FIELDS = ("landing_page_title", "landing_page_welcome_text", "landing_page_thank_you_text",
                  "landing_page_already_done_text")


class CampaignService:
    async def list_all(
        self,
        db: AsyncSession,
        current_user: UserPrincipal,
        client_id: Optional[str] = None,
        status: Optional[str] = None,
        page: int = 1,
        limit: int = 20,
    ) -> dict:
        query = select(Campaign)
        tenant = current_user.tenant_filter()
        if tenant is not None:
            client_id = tenant
        if client_id:
            query = query.where(Campaign.client_id == client_id)
        if status:
            query = query.where(Campaign.status == status)

        total = await db.scalar(select(func.count()).select_from(query.subquery())) or 0
        query = query.order_by(Campaign.created_at.desc()).offset((page - 1) * limit).limit(limit)
        campaigns = (await db.execute(query)).scalars().all()

        items = []
        for campaign in campaigns:
            counts = await self.counts(db, campaign.id)
            items.append({**CampaignResponse.model_validate(campaign).model_dump(), **counts})
        return {"items": items, "pagination": paginate(page, limit, total)}

    async def counts(self, db: AsyncSession, campaign_id: str) -> dict:
        return {
            "hcp_count": await db.scalar(
                select(func.count(CampaignHcp.id)).where(CampaignHcp.campaign_id == campaign_id)) or 0,
            "response_count": await db.scalar(
                select(func.count(SurveyResponse.id)).where(SurveyResponse.campaign_id == campaign_id)) or 0,
            "question_count": await db.scalar(
                select(func.count(SurveyQuestion.id)).where(SurveyQuestion.campaign_id == campaign_id)) or 0,
        }

    async def get(self, db: AsyncSession, campaign_id: str, current_user: Optional[UserPrincipal] = None) -> Campaign:
        campaign = await db.get(Campaign, campaign_id)
        if not campaign:
            raise NotFoundError("Campaign", campaign_id)
        if current_user is not None:
            ensure_tenant_access(current_user, campaign.client_id)
        return campaign

    async def get_detail(self, db: AsyncSession, campaign_id: str, current_user: UserPrincipal) -> dict:
        campaign = await self.get(db, campaign_id, current_user)
        client = await db.get(Client, campaign.client_id)
        area = await db.get(DiseaseArea, campaign.disease_area_id)
        return {
            **CampaignResponse.model_validate(campaign).model_dump(),
            **(await self.counts(db, campaign_id)),
            "client": {"id": client.id, "name": client.name} if client else None,
            "disease_area": {"id": area.id, "name": area.name, "code": area.code} if area else None,
        }

    async def create(self, db: AsyncSession, data: CampaignCreate, current_user: UserPrincipal) -> Campaign:
        ensure_tenant_access(current_user, data.client_id)
        if not await db.get(Client, data.client_id):
            raise BadRequestError("Client not found")
        if not await db.get(DiseaseArea, data.disease_area_id):
            raise BadRequestError("Disease area not found")

        campaign = Campaign(**data.model_dump(), status=CampaignStatus.DRAFT, created_by=current_user.sub)
        db.add(campaign)
        await db.flush()

        db.add(CompositeScoreConfig(campaign_id=campaign.id))
        if data.survey_template_id:
            await survey_template_service.instantiate_for_campaign(db, data.survey_template_id, campaign.id)
        await db.flush()

        await create_audit_log(
            db, current_user.sub, LogActions.CAMPAIGN_CREATED, "Campaign", campaign.id,
            new_values={"name": campaign.name, "client_id": campaign.client_id}, tenant_id=campaign.client_id,
        )
        log_event(logger, LogActions.CAMPAIGN_CREATED, campaign_id=campaign.id, user_id=current_user.sub)
        return campaign

    async def update(self, db: AsyncSession, campaign_id: str, data: CampaignUpdate,
                     current_user: UserPrincipal) -> Campaign:
        campaign = await self.get(db, campaign_id, current_user)
        if campaign.status == CampaignStatus.PUBLISHED:
            raise BadRequestError("Published campaigns cannot be edited")
        changes = data.model_dump(exclude_unset=True)
        if "disease_area_id" in changes and not await db.get(DiseaseArea, changes["disease_area_id"]):
            raise BadRequestError("Disease area not found")

        old_values = {k: _jsonable(getattr(campaign, k)) for k in changes}
        for key, value in changes.items():
            setattr(campaign, key, value)
        await db.flush()
        await create_audit_log(
            db, current_user.sub, LogActions.CAMPAIGN_UPDATED, "Campaign", campaign.id,
            old_values=old_values, new_values={k: _jsonable(v) for k, v in changes.items()},
            tenant_id=campaign.client_id,
        )
        return campaign

    async def delete(self, db: AsyncSession, campaign_id: str, current_user: UserPrincipal) -> None:
        campaign = await self.get(db, campaign_id, current_user)
        if campaign.status != CampaignStatus.DRAFT:
            raise BadRequestError("Can only delete draft campaigns")
        for model in (SurveyQuestion, CampaignHcp, CompositeScoreConfig):
            await db.execute(delete(model).where(model.campaign_id == campaign_id))
        await db.delete(campaign)
        await db.flush()
        await create_audit_log(
            db, current_user.sub, LogActions.CAMPAIGN_DELETED, "Campaign", campaign_id,
            old_values={"name": campaign.name}, tenant_id=campaign.client_id,
        )

    async def transition(self, db: AsyncSession, campaign_id: str, action: str,
                         current_user: UserPrincipal) -> Campaign:
        campaign = await self.get(db, campaign_id, current_user)
        from_status, to_status = TRANSITIONS[action]
        if campaign.status != from_status:
            raise BadRequestError(f"Can only {action} {from_status.lower()} campaigns")

        if action == "activate":
            counts = await self.counts(db, campaign_id)
            if counts["hcp_count"] == 0:
                raise BadRequestError("Campaign must have at least one HCP")
            if counts["question_count"] == 0:
                raise BadRequestError("Campaign must have survey questions")
        if action == "publish":
            await score_calculation_service.calculate_all(db, campaign_id)
            await score_calculation_service.publish_scores(db, campaign_id)
            campaign.published_at = utcnow()

        campaign.status = to_status
        await db.flush()
        await create_audit_log(
            db, current_user.sub, LogActions.CAMPAIGN_STATUS_CHANGED, "Campaign", campaign.id,
            old_values={"status": from_status}, new_values={"status": to_status}, tenant_id=campaign.client_id,
        )
        log_event(logger, LogActions.CAMPAIGN_STATUS_CHANGED, campaign_id=campaign.id,
                  from_status=from_status, to_status=to_status)
        return campaign

    # Templates

    async def get_email_templates(self, db: AsyncSession, campaign_id: str, current_user: UserPrincipal) -> dict:
        campaign = await self.get(db, campaign_id, current_user)
        return {field: getattr(campaign, field) for field in EMAIL_FIELDS}

    async def update_email_templates(self, db: AsyncSession, campaign_id: str, data: EmailTemplatesUpdate,
                                     current_user: UserPrincipal) -> dict:
        campaign = await self.get(db, campaign_id, current_user)
        for key, value in data.model_dump(exclude_unset=True).items():
            setattr(campaign, key, value)
        await db.flush()
        return {field: getattr(campaign, field) for field in EMAIL_FIELDS}

    async def get_landing_page(self, db: AsyncSession, campaign_id: str, current_user: UserPrincipal) -> dict:
        campaign = await self.get(db, campaign_id, current_user)
        return {field: getattr(campaign, field) for field in LANDING_FIELDS}

    async def update_landing_page(self, db: AsyncSession, campaign_id: str, data: LandingPageUpdate,
                                  current_user: UserPrincipal) -> dict:
        campaign = await self.get(db, campaign_id, current_user)
        for key, value in data.model_dump(exclude_unset=True).items():
            setattr(campaign, key, value)
        await db.flush()
        return {field: getattr(campaign, field) for field in LANDING_FIELDS}

    async def survey_questions(self, db: AsyncSession, campaign_id: str) -> list[dict]:
        rows = await db.execute(
            select(SurveyQuestion, Question)
            .join(Question, Question.id == SurveyQuestion.question_id)
            .where(SurveyQuestion.campaign_id == campaign_id)
            .order_by(SurveyQuestion.sort_order)
        )
        return [
            {
                "id": sq.id,
                "question_id": q.id,
                "text": sq.question_text_snapshot,
                "type": q.type,
                "section_name": sq.section_name,
                "sort_order": sq.sort_order,
                "is_required": bool(sq.is_required),
                "options": q.options,
                "min_entries": q.min_entries,
                "default_entries": q.default_entries,
                "nomination_type": sq.nomination_type or q.nomination_type,
            }
            for sq, q in rows.all()
        ]

    async def survey_preview(self, db: AsyncSession, campaign_id: str, current_user: UserPrincipal) -> dict:
        campaign = await self.get(db, campaign_id, current_user)
        sections: dict[str, list] = {}
        for question in await self.survey_questions(db, campaign_id):
            sections.setdefault(question["section_name"] or "General", []).append(question)
        return {
            "campaign": {"id": campaign.id, "name": campaign.name, "honorarium_amount": campaign.honorarium_amount},
            "sections": [{"name": name, "questions": questions} for name, questions in sections.items()],
        }

    async def audit_log(self, db: AsyncSession, campaign_id: str, current_user: UserPrincipal,
                        limit: int = 100) -> list[dict]:
        await self.get(db, campaign_id, current_user)
        rows = await db.execute(
            select(AuditLog, User.email)
            .join(User, User.id == AuditLog.user_id)
            .where(AuditLog.entity_type == "Campaign", AuditLog.entity_id == campaign_id)
            .order_by(AuditLog.created_at.desc())
            .limit(limit)
        )
        return [
            {
                "id": entry.id,
                "action": entry.action,
                "user_email": email,
                "old_values": entry.old_values,
                "new_values": entry.new_values,
                "created_at": entry.created_at,
            }
            for entry, email in rows.all()
        ]


def _jsonable(value):
    if hasattr(value, "isoformat"):
        return value.isoformat()
    return value


campaign_service = CampaignService()
