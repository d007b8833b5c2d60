import logging
from typing import Any
from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession
from kol360.constants import ResponseStatus
from kol360.exceptions import NotFoundError, BadRequestError
from kol360.models.campaign import Campaign
from kol360.models.hcp import Hcp
from kol360.models.nomination import Nomination
from kol360.models.payment import Payment
from kol360.models.question import SurveyQuestion
from kol360.models.survey_response import SurveyResponse, SurveyResponseAnswer
from kol360.schemas.common import paginate
from kol360.services.audit_service import create_audit_log
from kol360.services.survey_taking_service import split_answer, answer_value

logger = logging.getLogger(__name__)


def _hcp_summary(hcp: Hcp) -> dict:
    return {
        "id": hcp.id,
        "npi": hcp.npi,
        "first_name": hcp.first_name,
        "last_name": hcp.last_name,
        "email": hcp.email,
    }


class ResponseService:
    async def get(self, db: AsyncSession, response_id: str, campaign_id: str) -> SurveyResponse:
        response = await db.get(SurveyResponse, response_id)
        if not response or response.campaign_id != campaign_id:
            raise NotFoundError("Response", response_id)
        return response

    async def list_for_campaign(self, db: AsyncSession, campaign_id: str, status: str = "",
                                page: int = 1, limit: int = 20) -> dict:
        nomination_count = (
            select(func.count(Nomination.id))
            .where(Nomination.response_id == SurveyResponse.id)
            .correlate(SurveyResponse)
            .scalar_subquery()
        )
        query = (
            select(SurveyResponse, Hcp, nomination_count)
            .join(Hcp, Hcp.id == SurveyResponse.respondent_hcp_id)
            .where(SurveyResponse.campaign_id == campaign_id)
        )
        if status:
            query = query.where(SurveyResponse.status == status)

        total = await db.scalar(
            select(func.count(SurveyResponse.id)).where(
                SurveyResponse.campaign_id == campaign_id,
                *([SurveyResponse.status == status] if status else []),
            )
        ) or 0
        rows = (await db.execute(
            query.order_by(SurveyResponse.completed_at.desc(), SurveyResponse.created_at.desc())
            .offset((page - 1) * limit).limit(limit)
        )).all()

        return {
            "items": [
                {
                    "id": response.id,
                    "campaign_id": response.campaign_id,
                    "status": response.status,
                    "started_at": response.started_at,
                    "completed_at": response.completed_at,
                    "created_at": response.created_at,
                    "respondent": _hcp_summary(hcp),
                    "nomination_count": count or 0,
                }
                for response, hcp, count in rows
            ],
            "pagination": paginate(page, limit, total),
        }

    async def get_detail(self, db: AsyncSession, response_id: str, campaign_id: str) -> dict:
        response = await self.get(db, response_id, campaign_id)
        hcp = await db.get(Hcp, response.respondent_hcp_id)
        campaign = await db.get(Campaign, response.campaign_id)

        answers = (await db.execute(
            select(SurveyResponseAnswer, SurveyQuestion)
            .join(SurveyQuestion, SurveyQuestion.id == SurveyResponseAnswer.question_id)
            .where(SurveyResponseAnswer.response_id == response_id)
            .order_by(SurveyQuestion.sort_order)
        )).all()
        nominations = (await db.execute(
            select(Nomination).where(Nomination.response_id == response_id).order_by(Nomination.created_at)
        )).scalars().all()
        payment = await db.scalar(select(Payment).where(Payment.response_id == response_id))

        nomination_items = []
        for n in nominations:
            matched = await db.get(Hcp, n.matched_hcp_id) if n.matched_hcp_id else None
            nomination_items.append({
                "id": n.id,
                "question_id": n.question_id,
                "raw_name_entered": n.raw_name_entered,
                "match_status": n.match_status,
                "matched_hcp": {
                    "id": matched.id, "npi": matched.npi,
                    "first_name": matched.first_name, "last_name": matched.last_name,
                } if matched else None,
            })

        return {
            "id": response.id,
            "status": response.status,
            "ip_address": response.ip_address,
            "started_at": response.started_at,
            "completed_at": response.completed_at,
            "campaign": {"id": campaign.id, "name": campaign.name, "status": campaign.status},
            "respondent": _hcp_summary(hcp),
            "answers": [
                {
                    "id": answer.id,
                    "question_id": question.id,
                    "question_text": question.question_text_snapshot,
                    "section_name": question.section_name,
                    "value": answer_value(answer),
                }
                for answer, question in answers
            ],
            "nominations": nomination_items,
            "payment": {
                "id": payment.id,
                "amount": payment.amount,
                "currency": payment.currency,
                "status": payment.status,
            } if payment else None,
        }

    async def update_answer(self, db: AsyncSession, response_id: str, campaign_id: str,
                            question_id: str, value: Any, updated_by: str) -> SurveyResponseAnswer:
        response = await self.get(db, response_id, campaign_id)
        question = await db.get(SurveyQuestion, question_id)
        if not question or question.campaign_id != response.campaign_id:
            raise NotFoundError("Question", question_id)

        answer = await db.scalar(select(SurveyResponseAnswer).where(
            SurveyResponseAnswer.response_id == response_id,
            SurveyResponseAnswer.question_id == question_id,
        ))
        old_value = answer_value(answer) if answer else None
        answer_text, answer_json = split_answer(value) if value is not None else (None, None)
        if answer:
            answer.answer_text = answer_text
            answer.answer_json = answer_json
        else:
            answer = SurveyResponseAnswer(
                response_id=response_id, question_id=question_id,
                answer_text=answer_text, answer_json=answer_json,
            )
            db.add(answer)
        await db.flush()

        await create_audit_log(
            db, updated_by, "response.answer_edited", "SurveyResponseAnswer", answer.id,
            old_values={"value": old_value},
            new_values={"value": value},
            details={"response_id": response_id, "question_id": question_id},
        )
        return answer

    async def exclude(self, db: AsyncSession, response_id: str, campaign_id: str,
                      reason: str, excluded_by: str) -> SurveyResponse:
        response = await self.get(db, response_id, campaign_id)
        if response.status == ResponseStatus.EXCLUDED:
            raise BadRequestError("Response is already excluded")

        previous_status = response.status
        response.status = ResponseStatus.EXCLUDED
        await db.flush()
        await create_audit_log(
            db, excluded_by, "response.excluded", "SurveyResponse", response_id,
            old_values={"status": previous_status},
            new_values={"status": ResponseStatus.EXCLUDED},
            details={"reason": reason},
        )
        return response

    async def include(self, db: AsyncSession, response_id: str, campaign_id: str,
                      included_by: str) -> SurveyResponse:
        response = await self.get(db, response_id, campaign_id)
        if response.status != ResponseStatus.EXCLUDED:
            raise BadRequestError("Response is not excluded")

        response.status = ResponseStatus.COMPLETED
        await db.flush()
        await create_audit_log(
            db, included_by, "response.included", "SurveyResponse", response_id,
            old_values={"status": ResponseStatus.EXCLUDED},
            new_values={"status": ResponseStatus.COMPLETED},
        )
        return response

    async def get_stats(self, db: AsyncSession, campaign_id: str) -> dict:
        rows = await db.execute(
            select(SurveyResponse.status, func.count(SurveyResponse.id))
            .where(SurveyResponse.campaign_id == campaign_id)
            .group_by(SurveyResponse.status)
        )
        return {status: count for status, count in rows.all()}


response_service = ResponseService()
