import logging
import math
import secrets
from typing import Optional
from sqlalchemy import select, func, or_
from sqlalchemy.ext.asyncio import AsyncSession
from kol360.constants import CampaignStatus, ResponseStatus, OptOutScope
from kol360.database import utcnow
from kol360.exceptions import BadRequestError
from kol360.logging_config import LogActions, log_event
from kol360.models.campaign import Campaign, CampaignHcp
from kol360.models.hcp import Hcp
from kol360.models.opt_out import OptOut
from kol360.models.survey_response import SurveyResponse
from kol360.services.email_service import email_service, EmailDeliveryError
from kol360.services.hcp_service import hcp_from_row
from kol360.services.spreadsheet import read_rows

logger = logging.getLogger(__name__)


def new_survey_token() -> str:
    return secrets.token_urlsafe(24)


async def active_opt_out(db: AsyncSession, email: str, campaign_id: str):
    return await db.scalar(
        select(OptOut).where(
            func.lower(OptOut.email) == email.lower(),
            OptOut.resubscribed_at.is_(None),
            or_(
                OptOut.scope == OptOutScope.GLOBAL,
                (OptOut.scope == OptOutScope.CAMPAIGN) & (OptOut.campaign_id == campaign_id),
            ),
        ).limit(1)
    )


class DistributionService:
    async def list_campaign_hcps(self, db: AsyncSession, campaign_id: str) -> list[dict]:
        rows = await db.execute(
            select(CampaignHcp, Hcp)
            .join(Hcp, Hcp.id == CampaignHcp.hcp_id)
            .where(CampaignHcp.campaign_id == campaign_id)
            .order_by(CampaignHcp.created_at.desc(), Hcp.last_name)
        )
        return [
            {
                "id": ch.id,
                "hcp_id": hcp.id,
                "survey_token": ch.survey_token,
                "email_sent_at": ch.email_sent_at,
                "reminder_count": ch.reminder_count,
                "last_reminder_at": ch.last_reminder_at,
                "hcp": {
                    "id": hcp.id,
                    "npi": hcp.npi,
                    "first_name": hcp.first_name,
                    "last_name": hcp.last_name,
                    "email": hcp.email,
                    "specialty": hcp.specialty,
                },
            }
            for ch, hcp in rows.all()
        ]

    async def assign_hcps(self, db: AsyncSession, campaign: Campaign, hcp_ids: list[str]) -> dict:
        if campaign.status not in (CampaignStatus.DRAFT, CampaignStatus.ACTIVE):
            raise BadRequestError("HCPs can only be assigned to draft or active campaigns")
        hcp_ids = list(dict.fromkeys(hcp_ids))
        found = set((await db.execute(select(Hcp.id).where(Hcp.id.in_(hcp_ids)))).scalars().all())
        missing = [h for h in hcp_ids if h not in found]
        if missing:
            raise BadRequestError(f"HCP not found: {missing[0]}")

        existing = set((await db.execute(
            select(CampaignHcp.hcp_id).where(CampaignHcp.campaign_id == campaign.id, CampaignHcp.hcp_id.in_(hcp_ids))
        )).scalars().all())
        new_ids = [h for h in hcp_ids if h not in existing]
        for hcp_id in new_ids:
            db.add(CampaignHcp(campaign_id=campaign.id, hcp_id=hcp_id, survey_token=new_survey_token()))
        await db.flush()
        return {"added": len(new_ids), "skipped": len(existing)}

    async def import_hcps(self, db: AsyncSession, campaign: Campaign, content: bytes,
                          filename: Optional[str] = None) -> dict:
        """Add HCPs listed in a spreadsheet to the campaign, creating unknown NPIs."""
        if campaign.status not in (CampaignStatus.DRAFT, CampaignStatus.ACTIVE):
            raise BadRequestError("HCPs can only be assigned to draft or active campaigns")
        rows = read_rows(content, filename)
        result = {"total": len(rows), "hcps_created": 0, "hcps_existing": 0,
                  "added_to_campaign": 0, "skipped": 0, "errors": []}

        for i, row in enumerate(rows):
            try:
                data = hcp_from_row(row)
            except ValueError as e:
                result["errors"].append({"row": i + 2, "error": str(e)})
                continue

            hcp = await db.scalar(select(Hcp).where(Hcp.npi == data.npi))
            if hcp:
                result["hcps_existing"] += 1
            else:
                hcp = Hcp(**data.model_dump())
                db.add(hcp)
                await db.flush()
                result["hcps_created"] += 1

            assigned = await db.scalar(select(CampaignHcp.id).where(
                CampaignHcp.campaign_id == campaign.id, CampaignHcp.hcp_id == hcp.id,
            ))
            if assigned:
                result["skipped"] += 1
                continue
            db.add(CampaignHcp(campaign_id=campaign.id, hcp_id=hcp.id, survey_token=new_survey_token()))
            await db.flush()
            result["added_to_campaign"] += 1

        return result

    async def remove_hcp(self, db: AsyncSession, campaign_id: str, hcp_id: str) -> dict:
        campaign_hcp = await db.scalar(
            select(CampaignHcp).where(CampaignHcp.campaign_id == campaign_id, CampaignHcp.hcp_id == hcp_id)
        )
        if not campaign_hcp:
            raise BadRequestError("HCP not assigned to this campaign")
        if campaign_hcp.email_sent_at:
            raise BadRequestError("Cannot remove HCP after survey invitation was sent")
        await db.delete(campaign_hcp)
        await db.flush()
        return {"removed": True}

    async def send_invitations(self, db: AsyncSession, campaign: Campaign) -> dict:
        if campaign.status != CampaignStatus.ACTIVE:
            raise BadRequestError("Campaign must be active to send invitations")

        rows = (await db.execute(
            select(CampaignHcp, Hcp)
            .join(Hcp, Hcp.id == CampaignHcp.hcp_id)
            .where(CampaignHcp.campaign_id == campaign.id, CampaignHcp.email_sent_at.is_(None))
            .order_by(Hcp.last_name, Hcp.first_name)
        )).all()

        sent, failed, errors = 0, 0, []
        for campaign_hcp, hcp in rows:
            name = f"{hcp.first_name} {hcp.last_name}"
            if not hcp.email:
                failed += 1
                errors.append(f"{name}: No email address")
                continue
            if await active_opt_out(db, hcp.email, campaign.id):
                failed += 1
                errors.append(f"{name}: Opted out")
                continue

            message = email_service.build_invitation(
                hcp_name=hcp.last_name,
                token=campaign_hcp.survey_token,
                campaign_name=campaign.name,
                honorarium=campaign.honorarium_amount,
                subject=campaign.invitation_email_subject,
            )
            try:
                await email_service.send(db, hcp.email, message)
            except EmailDeliveryError:
                failed += 1
                errors.append(f"{name}: Send failed")
                continue
            campaign_hcp.email_sent_at = utcnow()
            sent += 1

        await db.flush()
        log_event(logger, LogActions.DISTRIBUTION_INVITATIONS_SENT, campaign_id=campaign.id, sent=sent, failed=failed)
        return {"sent": sent, "failed": failed, "errors": errors}

    async def send_reminders(self, db: AsyncSession, campaign: Campaign) -> dict:
        if campaign.status != CampaignStatus.ACTIVE:
            raise BadRequestError("Campaign must be active to send reminders")

        completed_ids = set((await db.execute(
            select(SurveyResponse.respondent_hcp_id).where(
                SurveyResponse.campaign_id == campaign.id, SurveyResponse.status == ResponseStatus.COMPLETED,
            )
        )).scalars().all())
        rows = (await db.execute(
            select(CampaignHcp, Hcp)
            .join(Hcp, Hcp.id == CampaignHcp.hcp_id)
            .where(CampaignHcp.campaign_id == campaign.id, CampaignHcp.email_sent_at.isnot(None))
            .order_by(Hcp.last_name, Hcp.first_name)
        )).all()

        sent, errors = 0, []
        for campaign_hcp, hcp in rows:
            if hcp.id in completed_ids or not hcp.email:
                continue
            if await active_opt_out(db, hcp.email, campaign.id):
                continue
            message = email_service.build_reminder(
                hcp_name=hcp.last_name,
                token=campaign_hcp.survey_token,
                campaign_name=campaign.name,
                reminder_number=(campaign_hcp.reminder_count or 0) + 1,
                subject=campaign.reminder_email_subject,
            )
            try:
                await email_service.send(db, hcp.email, message)
            except EmailDeliveryError:
                errors.append(f"{hcp.first_name} {hcp.last_name}: Send failed")
                continue
            campaign_hcp.reminder_count = (campaign_hcp.reminder_count or 0) + 1
            campaign_hcp.last_reminder_at = utcnow()
            sent += 1

        await db.flush()
        log_event(logger, LogActions.DISTRIBUTION_REMINDERS_SENT, campaign_id=campaign.id, sent=sent)
        return {"sent": sent, "errors": errors}

    async def get_stats(self, db: AsyncSession, campaign_id: str) -> dict:
        total = await db.scalar(
            select(func.count(CampaignHcp.id)).where(CampaignHcp.campaign_id == campaign_id)) or 0
        invited = await db.scalar(
            select(func.count(CampaignHcp.id)).where(
                CampaignHcp.campaign_id == campaign_id, CampaignHcp.email_sent_at.isnot(None))) or 0
        status_counts = await response_status_counts(db, campaign_id)

        completed = status_counts.get(ResponseStatus.COMPLETED, 0)
        in_progress = status_counts.get(ResponseStatus.OPENED, 0) + status_counts.get(ResponseStatus.IN_PROGRESS, 0)
        return {
            "total": total,
            "invited": invited,
            "not_invited": total - invited,
            "in_progress": in_progress,
            "completed": completed,
            "completion_rate": math.floor(completed / invited * 100 + 0.5) if invited > 0 else 0,
        }


async def response_status_counts(db: AsyncSession, campaign_id: str) -> dict:
    rows = await db.execute(
        select(SurveyResponse.status, func.count(SurveyResponse.id))
        .where(SurveyResponse.campaign_id == campaign_id)
        .group_by(SurveyResponse.status)
    )
    return {status: count for status, count in rows.all()}


distribution_service = DistributionService()
