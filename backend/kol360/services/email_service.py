"""Email service for survey invitations and reminders via AWS SES."""
import asyncio
import html
import logging
from typing import Optional
from uuid import uuid4

import boto3
from botocore.exceptions import BotoCoreError, ClientError
from sqlalchemy.ext.asyncio import AsyncSession

from kol360.config import get_settings
from kol360.logging_config import LogActions, log_event
from kol360.services.settings_service import settings_service

logger = logging.getLogger(__name__)


class EmailDeliveryError(Exception):
    pass


def _wrap_html(heading: str, paragraphs: list[str], button_label: str, survey_url: str, unsubscribe_url: str) -> str:
    body = "\n".join(f"<p>{p}</p>" for p in paragraphs)
    survey_url = html.escape(survey_url)
    unsubscribe_url = html.escape(unsubscribe_url)
    return f"""<!DOCTYPE html>
<html>
<head><meta charset="utf-8"><meta name="viewport" content="width=device-width, initial-scale=1.0"></head>
<body style="font-family: Arial, sans-serif; line-height: 1.6; color: #333;">
  <div style="max-width: 600px; margin: 0 auto; padding: 20px;">
    <h2 style="color: #0066CC;">{heading}</h2>
    {body}
    <p style="margin: 30px 0;">
      <a href="{survey_url}" style="background:#0066CC;color:white;padding:12px 24px;text-decoration:none;border-radius:4px;display:inline-block;">{button_label}</a>
    </p>
    <p style="font-size: 14px; color: #666;">Or copy this link: {survey_url}</p>
    <hr style="border: none; border-top: 1px solid #eee; margin: 30px 0;" />
    <p style="font-size: 12px; color: #999;">
      Don't want to receive these emails? <a href="{unsubscribe_url}" style="color: #666;">Unsubscribe</a>
    </p>
  </div>
</body>
</html>"""


class EmailService:
    """Builds survey emails and hands them to SES (or just logs them in mock mode)."""

    def __init__(self):
        self._client = None

    def _ses(self):
        if self._client is None:
            self._client = boto3.client("ses", region_name=get_settings().aws_region)
        return self._client

    @staticmethod
    def survey_url(token: str) -> str:
        return f"{get_settings().survey_url_base}/survey/{token}"

    @staticmethod
    def unsubscribe_url(token: str) -> str:
        return f"{get_settings().survey_url_base}/unsubscribe/{token}"

    def build_invitation(self, hcp_name: str, token: str, campaign_name: str,
                         honorarium: Optional[float] = None, subject: Optional[str] = None) -> dict:
        survey_url = self.survey_url(token)
        unsubscribe_url = self.unsubscribe_url(token)
        paragraphs = [
            f"Dear Dr. {html.escape(hcp_name)},",
            f"You have been selected to participate in our <strong>{html.escape(campaign_name)}</strong> survey.",
        ]
        text_lines = [
            f"Dear Dr. {hcp_name},",
            "",
            f"You have been selected to participate in our {campaign_name} survey.",
        ]
        if honorarium:
            paragraphs.append(f"Upon completion, you will receive a <strong>${honorarium:g}</strong> honorarium.")
            text_lines.append(f"Upon completion, you will receive a ${honorarium:g} honorarium.")
        text_lines += ["", f"Take the survey here: {survey_url}", "", f"To unsubscribe: {unsubscribe_url}"]
        return {
            "subject": subject or f"Survey Invitation: {campaign_name}",
            "html": _wrap_html("You're Invited to Participate in a KOL Survey", paragraphs,
                               "Take Survey", survey_url, unsubscribe_url),
            "text": "\n".join(text_lines),
        }

    def build_reminder(self, hcp_name: str, token: str, campaign_name: str,
                       reminder_number: int, subject: Optional[str] = None) -> dict:
        survey_url = self.survey_url(token)
        unsubscribe_url = self.unsubscribe_url(token)
        paragraphs = [
            f"Dear Dr. {html.escape(hcp_name)},",
            f"This is a friendly reminder to complete the <strong>{html.escape(campaign_name)}</strong> survey.",
        ]
        text = "\n".join([
            f"Dear Dr. {hcp_name},",
            "",
            f"This is a friendly reminder to complete the {campaign_name} survey.",
            "",
            f"Complete the survey here: {survey_url}",
            "",
            f"To unsubscribe: {unsubscribe_url}",
        ])
        return {
            "subject": subject or f"Reminder: {campaign_name} Survey",
            "html": _wrap_html("Reminder: Complete Your Survey", paragraphs,
                               "Complete Survey", survey_url, unsubscribe_url),
            "text": text,
            "reminder_number": reminder_number,
        }

    async def send(self, db: AsyncSession, to_email: str, message: dict) -> dict:
        """Deliver a built message. Raises EmailDeliveryError when SES rejects it."""
        effective = await settings_service.get_effective(db)

        if effective["email_mock_mode"] or not effective["send_external_email"]:
            log_event(logger, LogActions.EMAIL_SENT, to=to_email, subject=message["subject"], mocked=True)
            return {"success": True, "mocked": True, "message_id": f"mock-{uuid4().hex[:12]}"}

        source = f'{effective["ses_from_name"]} <{effective["ses_from_email"]}>'
        try:
            result = await asyncio.to_thread(
                self._ses().send_email,
                Source=source,
                Destination={"ToAddresses": [to_email]},
                Message={
                    "Subject": {"Data": message["subject"]},
                    "Body": {"Html": {"Data": message["html"]}, "Text": {"Data": message["text"]}},
                },
            )
        except (BotoCoreError, ClientError) as e:
            log_event(logger, LogActions.EMAIL_FAILED, logging.ERROR, to=to_email, error=str(e))
            raise EmailDeliveryError(str(e)) from e

        log_event(logger, LogActions.EMAIL_SENT, to=to_email, subject=message["subject"], mocked=False)
        return {"success": True, "mocked": False, "message_id": result.get("MessageId")}


email_service = EmailService()
