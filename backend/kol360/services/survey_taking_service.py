"""Public survey flow, keyed by the per-HCP survey token."""

import logging
from typing import Any, Optional
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from kol360.constants import CampaignStatus, ResponseStatus, QuestionType, PaymentStatus, OptOutScope
from kol360.database import utcnow
from kol360.exceptions import NotFoundError, BadRequestError
from kol360.logging_config import LogActions, log_event
from kol360.models.campaign import Campaign, CampaignHcp
from kol360.models.hcp import Hcp
from kol360.models.nomination import Nomination
from kol360.models.opt_out import OptOut
from kol360.models.payment import Payment
from kol360.models.question import Question, SurveyQuestion
from kol360.models.survey_response import SurveyResponse, SurveyResponseAnswer
from kol360.services.campaign_service import campaign_service

logger = logging.getLogger(__name__)


def split_answer(value: Any) -> tuple[Optional[str], Any]:
    """Scalars are stored as text, lists and objects as JSON."""
    if isinstance(value, (dict, list)):
        return None, value
    return str(value), None


def answer_value(answer: SurveyResponseAnswer) -> Any:
    return answer.answer_json if answer.answer_json is not None else answer.answer_text


def nomination_names(value: Any) -> list[str]:
    if isinstance(value, dict):
        value = value.get("texts") or []
    if not isinstance(value, list):
        return []
    names = []
    for name in value:
        if isinstance(name, str) and name.strip() and name.strip() not in names:
            names.append(name.strip())
    return names


class SurveyTakingService:
    async def _campaign_hcp(self, db: AsyncSession, token: str) -> CampaignHcp:
        campaign_hcp = await db.scalar(select(CampaignHcp).where(CampaignHcp.survey_token == token))
        if not campaign_hcp:
            raise NotFoundError("Survey")
        return campaign_hcp

    async def _response(self, db: AsyncSession, token: str) -> Optional[SurveyResponse]:
        return await db.scalar(select(SurveyResponse).where(SurveyResponse.survey_token == token))

    @staticmethod
    def _check_accepting(campaign: Campaign) -> None:
        if campaign.status == CampaignStatus.DRAFT:
            raise BadRequestError("This survey is not yet active")
        if campaign.status != CampaignStatus.ACTIVE:
            raise BadRequestError("This survey is no longer accepting responses")

    async def _answers(self, db: AsyncSession, response_id: str) -> dict:
        answers = (await db.execute(
            select(SurveyResponseAnswer).where(SurveyResponseAnswer.response_id == response_id)
        )).scalars().all()
        return {a.question_id: answer_value(a) for a in answers}

    async def get_survey(self, db: AsyncSession, token: str) -> dict:
        campaign_hcp = await self._campaign_hcp(db, token)
        campaign = await db.get(Campaign, campaign_hcp.campaign_id)
        hcp = await db.get(Hcp, campaign_hcp.hcp_id)
        self._check_accepting(campaign)

        response = await self._response(db, token)
        if response and response.status == ResponseStatus.COMPLETED:
            raise BadRequestError("You have already completed this survey")

        return {
            "campaign": {
                "id": campaign.id,
                "name": campaign.name,
                "status": campaign.status,
                "honorarium_amount": campaign.honorarium_amount,
                "landing_page_title": campaign.landing_page_title,
                "landing_page_welcome_text": campaign.landing_page_welcome_text,
                "landing_page_thank_you_text": campaign.landing_page_thank_you_text,
            },
            "hcp": {"first_name": hcp.first_name, "last_name": hcp.last_name},
            "questions": await campaign_service.survey_questions(db, campaign.id),
            "response": {
                "status": response.status,
                "answers": await self._answers(db, response.id),
            } if response else None,
        }

    async def start(self, db: AsyncSession, token: str, ip_address: Optional[str] = None) -> SurveyResponse:
        campaign_hcp = await self._campaign_hcp(db, token)
        self._check_accepting(await db.get(Campaign, campaign_hcp.campaign_id))

        response = await self._response(db, token)
        if response:
            if response.status == ResponseStatus.COMPLETED:
                raise BadRequestError("Survey already completed")
            if response.status == ResponseStatus.PENDING:
                response.status = ResponseStatus.OPENED
            response.started_at = response.started_at or utcnow()
            response.ip_address = ip_address or response.ip_address
        else:
            response = SurveyResponse(
                campaign_id=campaign_hcp.campaign_id,
                respondent_hcp_id=campaign_hcp.hcp_id,
                survey_token=token,
                status=ResponseStatus.OPENED,
                started_at=utcnow(),
                ip_address=ip_address,
            )
            db.add(response)
        await db.flush()
        log_event(logger, LogActions.SURVEY_STARTED, campaign_id=campaign_hcp.campaign_id,
                  response_id=response.id)
        return response

    async def _store_answers(self, db: AsyncSession, response: SurveyResponse, answers: dict) -> None:
        valid_ids = set((await db.execute(
            select(SurveyQuestion.id).where(SurveyQuestion.campaign_id == response.campaign_id)
        )).scalars().all())
        unknown = [qid for qid in answers if qid not in valid_ids]
        if unknown:
            raise BadRequestError(f"Unknown question: {unknown[0]}")

        existing = {
            a.question_id: a for a in (await db.execute(
                select(SurveyResponseAnswer).where(SurveyResponseAnswer.response_id == response.id)
            )).scalars().all()
        }
        for question_id, value in answers.items():
            if value is None:
                continue
            answer_text, answer_json = split_answer(value)
            answer = existing.get(question_id)
            if answer:
                answer.answer_text = answer_text
                answer.answer_json = answer_json
            else:
                db.add(SurveyResponseAnswer(
                    response_id=response.id, question_id=question_id,
                    answer_text=answer_text, answer_json=answer_json,
                ))
        await db.flush()

    async def save_progress(self, db: AsyncSession, token: str, answers: dict) -> dict:
        response = await self._response(db, token)
        if not response:
            raise BadRequestError("Survey not started")
        if response.status == ResponseStatus.COMPLETED:
            raise BadRequestError("Cannot save to completed survey")
        self._check_accepting(await db.get(Campaign, response.campaign_id))

        response.status = ResponseStatus.IN_PROGRESS
        await self._store_answers(db, response, answers)
        return {"saved": True}

    async def submit(self, db: AsyncSession, token: str, answers: dict) -> dict:
        await self.save_progress(db, token, answers)
        response = await self._response(db, token)
        campaign = await db.get(Campaign, response.campaign_id)

        response.status = ResponseStatus.COMPLETED
        response.completed_at = utcnow()

        rows = await db.execute(
            select(SurveyResponseAnswer, Question.type)
            .join(SurveyQuestion, SurveyQuestion.id == SurveyResponseAnswer.question_id)
            .join(Question, Question.id == SurveyQuestion.question_id)
            .where(SurveyResponseAnswer.response_id == response.id)
        )
        nomination_count = 0
        for answer, question_type in rows.all():
            if question_type != QuestionType.MULTI_TEXT:
                continue
            for name in nomination_names(answer.answer_json):
                db.add(Nomination(
                    response_id=response.id,
                    question_id=answer.question_id,
                    nominator_hcp_id=response.respondent_hcp_id,
                    raw_name_entered=name,
                ))
                nomination_count += 1

        if campaign.honorarium_amount:
            db.add(Payment(
                campaign_id=campaign.id,
                hcp_id=response.respondent_hcp_id,
                response_id=response.id,
                amount=campaign.honorarium_amount,
                status=PaymentStatus.PENDING_EXPORT,
                status_updated_at=utcnow(),
            ))
        await db.flush()
        log_event(logger, LogActions.SURVEY_SUBMITTED, campaign_id=campaign.id,
                  response_id=response.id, nominations=nomination_count)
        return {"submitted": True}

    async def unsubscribe_info(self, db: AsyncSession, token: str) -> dict:
        campaign_hcp = await db.scalar(select(CampaignHcp).where(CampaignHcp.survey_token == token))
        if not campaign_hcp:
            raise NotFoundError("Token")
        campaign = await db.get(Campaign, campaign_hcp.campaign_id)
        return {"valid": True, "campaign_name": campaign.name}

    async def unsubscribe(self, db: AsyncSession, token: str, scope: str, reason: Optional[str] = None) -> dict:
        campaign_hcp = await db.scalar(select(CampaignHcp).where(CampaignHcp.survey_token == token))
        hcp = await db.get(Hcp, campaign_hcp.hcp_id) if campaign_hcp else None
        if not hcp or not hcp.email:
            raise BadRequestError("Invalid token or no email associated")

        query = select(OptOut.id).where(
            OptOut.email == hcp.email, OptOut.scope == scope, OptOut.resubscribed_at.is_(None),
        )
        if scope == OptOutScope.CAMPAIGN:
            query = query.where(OptOut.campaign_id == campaign_hcp.campaign_id)
        if await db.scalar(query.limit(1)):
            return {"already_opted_out": True}

        db.add(OptOut(
            email=hcp.email,
            scope=scope,
            campaign_id=campaign_hcp.campaign_id if scope == OptOutScope.CAMPAIGN else None,
            reason=reason,
            opted_out_via="email_link",
        ))
        await db.flush()
        log_event(logger, LogActions.SURVEY_UNSUBSCRIBED, campaign_id=campaign_hcp.campaign_id, scope=scope)
        return {"opted_out": True, "scope": scope}


survey_taking_service = SurveyTakingService()
