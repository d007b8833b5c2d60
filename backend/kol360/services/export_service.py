"""Spreadsheet exports of responses, scores and payments, plus payment-status imports."""

import json
import logging
import re
from dataclasses import dataclass
from typing import Optional
from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession
from kol360.constants import ResponseStatus, PaymentStatus, SEGMENTS
from kol360.database import utcnow
from kol360.exceptions import NotFoundError, BadRequestError
from kol360.logging_config import LogActions, log_event
from kol360.models.campaign import Campaign
from kol360.models.hcp import Hcp, HcpDiseaseAreaScore
from kol360.models.payment import Payment, PaymentStatusHistory, PaymentExportBatch, PaymentImportBatch
from kol360.models.question import SurveyQuestion
from kol360.models.score import HcpCampaignScore
from kol360.models.survey_response import SurveyResponse, SurveyResponseAnswer
from kol360.schemas.common import paginate
from kol360.services.spreadsheet import Sheet, XLSX_MEDIA_TYPE, read_rows, cell

logger = logging.getLogger(__name__)

HCP_COLUMNS = ["NPI", "First Name", "Last Name", "Email", "Specialty", "City", "State"]

# External processor statuses -> PaymentStatus
STATUS_MAP = {
    "sent": PaymentStatus.EMAIL_SENT,
    "email_sent": PaymentStatus.EMAIL_SENT,
    "delivered": PaymentStatus.EMAIL_DELIVERED,
    "email_delivered": PaymentStatus.EMAIL_DELIVERED,
    "opened": PaymentStatus.EMAIL_OPENED,
    "email_opened": PaymentStatus.EMAIL_OPENED,
    "claimed": PaymentStatus.CLAIMED,
    "accepted": PaymentStatus.CLAIMED,
    "paid": PaymentStatus.CLAIMED,
    "bounced": PaymentStatus.BOUNCED,
    "rejected": PaymentStatus.REJECTED,
    "declined": PaymentStatus.REJECTED,
    "expired": PaymentStatus.EXPIRED,
}

PAYMENT_ID_RE = re.compile(r"^[a-z0-9]{20,}$", re.IGNORECASE)


EXPORT_FORMATS = {"xlsx": XLSX_MEDIA_TYPE, "csv": "text/csv"}


@dataclass
class ExportFile:
    filename: str
    sheet: Sheet
    record_count: int

    def render(self) -> bytes:
        return self.sheet.to_csv() if self.filename.endswith(".csv") else self.sheet.to_xlsx()

    @property
    def media_type(self) -> str:
        return EXPORT_FORMATS[self.filename.rsplit(".", 1)[-1]]


def export_filename(campaign_name: str, kind: str, fmt: str = "xlsx") -> str:
    sanitized = re.sub(r"[^a-zA-Z0-9]", "_", campaign_name)
    return f"{sanitized}_{kind}_{utcnow().date().isoformat()}.{fmt}"


def _num(value: Optional[float]) -> Optional[float]:
    return None if value is None else round(value, 2)


def _hcp_cells(hcp: Hcp) -> list:
    return [hcp.npi, hcp.first_name, hcp.last_name, hcp.email or "", hcp.specialty or "",
            hcp.city or "", hcp.state or ""]


class ExportService:
    async def _campaign(self, db: AsyncSession, campaign_id: str) -> Campaign:
        campaign = await db.get(Campaign, campaign_id)
        if not campaign:
            raise NotFoundError("Campaign", campaign_id)
        return campaign

    async def export_responses(self, db: AsyncSession, campaign_id: str, fmt: str = "xlsx") -> ExportFile:
        campaign = await self._campaign(db, campaign_id)
        questions = (await db.execute(
            select(SurveyQuestion).where(SurveyQuestion.campaign_id == campaign_id).order_by(SurveyQuestion.sort_order)
        )).scalars().all()
        responses = (await db.execute(
            select(SurveyResponse, Hcp)
            .join(Hcp, Hcp.id == SurveyResponse.respondent_hcp_id)
            .where(SurveyResponse.campaign_id == campaign_id, SurveyResponse.status == ResponseStatus.COMPLETED)
            .order_by(SurveyResponse.completed_at.desc())
        )).all()

        rows = []
        for response, hcp in responses:
            answers = {}
            for a in (await db.execute(
                select(SurveyResponseAnswer).where(SurveyResponseAnswer.response_id == response.id)
            )).scalars().all():
                answers[a.question_id] = a.answer_text or (json.dumps(a.answer_json) if a.answer_json is not None else "")
            rows.append(
                _hcp_cells(hcp)
                + [response.completed_at.isoformat() if response.completed_at else ""]
                + [answers.get(q.id, "") for q in questions]
            )

        headers = HCP_COLUMNS + ["Completed At"] + [q.question_text_snapshot for q in questions]
        filename = export_filename(campaign.name, "Responses", fmt)
        return ExportFile(filename, Sheet("Responses", headers, rows), len(rows))

    async def export_scores(self, db: AsyncSession, campaign_id: str, fmt: str = "xlsx") -> ExportFile:
        campaign = await self._campaign(db, campaign_id)
        scores = (await db.execute(
            select(HcpCampaignScore, Hcp)
            .join(Hcp, Hcp.id == HcpCampaignScore.hcp_id)
            .where(HcpCampaignScore.campaign_id == campaign_id)
            .order_by(HcpCampaignScore.composite_score.desc().nulls_last(), Hcp.last_name)
        )).all()
        objective = {
            s.hcp_id: s for s in (await db.execute(
                select(HcpDiseaseAreaScore).where(
                    HcpDiseaseAreaScore.hcp_id.in_([hcp.id for _, hcp in scores]),
                    HcpDiseaseAreaScore.disease_area_id == campaign.disease_area_id,
                    HcpDiseaseAreaScore.is_current.is_(True),
                )
            )).scalars().all()
        }

        rows = []
        for rank, (score, hcp) in enumerate(scores, start=1):
            area = objective.get(hcp.id)
            rows.append(
                [rank]
                + _hcp_cells(hcp)
                + [_num(getattr(area, field) if area else None) for field, _, _ in SEGMENTS]
                + [_num(score.score_survey), score.nomination_count, _num(score.composite_score)]
            )

        headers = (
            ["Rank"] + HCP_COLUMNS
            + [f"{label} Score" for _, _, label in SEGMENTS]
            + ["Survey Score", "Nomination Count", "Composite Score"]
        )
        filename = export_filename(campaign.name, "Scores", fmt)
        return ExportFile(filename, Sheet("Scores", headers, rows), len(rows))

    async def export_payments(self, db: AsyncSession, campaign_id: str, exported_by: str,
                              fmt: str = "xlsx") -> ExportFile:
        campaign = await self._campaign(db, campaign_id)
        payments = (await db.execute(
            select(Payment, Hcp, SurveyResponse.completed_at)
            .join(Hcp, Hcp.id == Payment.hcp_id)
            .outerjoin(SurveyResponse, SurveyResponse.id == Payment.response_id)
            .where(Payment.campaign_id == campaign_id, Payment.status == PaymentStatus.PENDING_EXPORT)
            .order_by(Payment.created_at)
        )).all()
        if not payments:
            raise BadRequestError("No pending payments to export")

        filename = export_filename(campaign.name, "Payments", fmt)
        batch = PaymentExportBatch(
            campaign_id=campaign_id, file_name=filename, record_count=len(payments), exported_by=exported_by,
        )
        db.add(batch)
        await db.flush()

        now = utcnow()
        rows = []
        for payment, hcp, completed_at in payments:
            payment.status = PaymentStatus.EXPORTED
            payment.exported_at = now
            payment.status_updated_at = now
            payment.export_batch_id = batch.id
            db.add(PaymentStatusHistory(
                payment_id=payment.id,
                old_status=PaymentStatus.PENDING_EXPORT,
                new_status=PaymentStatus.EXPORTED,
                changed_by=exported_by,
                note=f"Export batch {batch.id}",
            ))
            rows.append([
                payment.id, hcp.npi, hcp.first_name, hcp.last_name, hcp.email or "",
                completed_at.date().isoformat() if completed_at else "",
                round(payment.amount, 2), payment.currency,
            ])
        await db.flush()

        log_event(logger, LogActions.PAYMENTS_EXPORTED, campaign_id=campaign_id, count=len(rows))
        headers = ["Payment ID", "NPI", "First Name", "Last Name", "Email",
                   "Survey Completion Date", "Payment Amount", "Currency"]
        return ExportFile(filename, Sheet("Payments", headers, rows), len(rows))

    async def import_payment_status(self, db: AsyncSession, campaign_id: str, content: bytes,
                                    imported_by: str, filename: Optional[str] = None) -> dict:
        await self._campaign(db, campaign_id)
        rows = read_rows(content, filename)
        if not rows or not any(k.lower() == "status" for k in rows[0]):
            raise BadRequestError("Status column not found in file")

        batch = PaymentImportBatch(campaign_id=campaign_id, file_name=filename, imported_by=imported_by)
        db.add(batch)
        await db.flush()

        result = {"processed": 0, "updated": 0, "errors": []}
        for i, row in enumerate(rows, start=2):
            result["processed"] += 1
            identifier = cell(row, "payment id") or cell(row, "npi")
            if not identifier:
                result["errors"].append({"row": i, "error": "No payment ID or NPI found"})
                continue

            raw_status = cell(row, "status").lower()
            new_status = STATUS_MAP.get(raw_status)
            if not new_status:
                result["errors"].append({"row": i, "error": f"Unknown status: {raw_status}"})
                continue

            query = select(Payment).where(Payment.campaign_id == campaign_id)
            if PAYMENT_ID_RE.match(identifier):
                query = query.where(Payment.id == identifier)
            else:
                query = query.join(Hcp, Hcp.id == Payment.hcp_id).where(Hcp.npi == identifier)
            payment = await db.scalar(query.limit(1))
            if not payment:
                result["errors"].append({"row": i, "error": f"Payment not found for: {identifier}"})
                continue

            db.add(PaymentStatusHistory(
                payment_id=payment.id,
                old_status=payment.status,
                new_status=new_status,
                changed_by=imported_by,
                note=f"Import batch {batch.id}",
            ))
            payment.status = new_status
            payment.status_updated_at = utcnow()
            result["updated"] += 1

        batch.total_rows = result["processed"]
        batch.updated_rows = result["updated"]
        batch.error_rows = len(result["errors"])
        await db.flush()

        log_event(logger, LogActions.PAYMENTS_IMPORTED, campaign_id=campaign_id,
                  updated=result["updated"], errors=len(result["errors"]))
        return result

    async def list_payments(self, db: AsyncSession, campaign_id: str, status: str = "",
                            page: int = 1, limit: int = 20) -> dict:
        conditions = [Payment.campaign_id == campaign_id]
        if status:
            conditions.append(Payment.status == status)
        total = await db.scalar(select(func.count(Payment.id)).where(*conditions)) or 0
        rows = (await db.execute(
            select(Payment, Hcp, SurveyResponse.completed_at)
            .join(Hcp, Hcp.id == Payment.hcp_id)
            .outerjoin(SurveyResponse, SurveyResponse.id == Payment.response_id)
            .where(*conditions)
            .order_by(Payment.created_at.desc())
            .offset((page - 1) * limit).limit(limit)
        )).all()

        items = []
        for payment, hcp, completed_at in rows:
            history = (await db.execute(
                select(PaymentStatusHistory)
                .where(PaymentStatusHistory.payment_id == payment.id)
                .order_by(PaymentStatusHistory.created_at.desc())
                .limit(5)
            )).scalars().all()
            items.append({
                "id": payment.id,
                "amount": payment.amount,
                "currency": payment.currency,
                "status": payment.status,
                "exported_at": payment.exported_at,
                "status_updated_at": payment.status_updated_at,
                "completed_at": completed_at,
                "hcp": {"npi": hcp.npi, "first_name": hcp.first_name,
                        "last_name": hcp.last_name, "email": hcp.email},
                "status_history": [
                    {"old_status": h.old_status, "new_status": h.new_status, "changed_at": h.created_at}
                    for h in history
                ],
            })
        return {"items": items, "pagination": paginate(page, limit, total)}

    async def get_payment_stats(self, db: AsyncSession, campaign_id: str) -> dict:
        rows = (await db.execute(
            select(Payment.status, func.count(Payment.id), func.sum(Payment.amount))
            .where(Payment.campaign_id == campaign_id)
            .group_by(Payment.status)
        )).all()
        by_status = {status: {"count": count, "amount": float(amount or 0)} for status, count, amount in rows}
        return {
            "by_status": by_status,
            "total": {
                "count": sum(s["count"] for s in by_status.values()),
                "amount": sum(s["amount"] for s in by_status.values()),
            },
        }


export_service = ExportService()
