"""Row factories for tests. Each helper commits so request sessions can see the data."""
import io

from openpyxl import Workbook, load_workbook
from sqlalchemy import select

from kol360.auth import create_token
from kol360.constants import CampaignStatus, QuestionType, UserStatus, ResponseStatus, NominationStatus
from kol360.database import utcnow
from kol360.models.campaign import Campaign, CampaignHcp, CompositeScoreConfig
from kol360.models.client import Client
from kol360.models.disease_area import DiseaseArea
from kol360.models.hcp import Hcp
from kol360.models.nomination import Nomination
from kol360.models.question import Question, SurveyQuestion
from kol360.models.survey_response import SurveyResponse
from kol360.models.user import User
from kol360.services.distribution_service import new_survey_token


async def make_client(db, name: str = "Acme Pharma") -> Client:
    tenant = Client(name=name)
    db.add(tenant)
    await db.commit()
    return tenant


async def make_user(db, role: str, client_id=None, email: str = None, status: str = UserStatus.ACTIVE) -> User:
    user = User(
        email=email or f"{role.lower()}-{client_id or 'platform'}@example.com",
        first_name="Test",
        last_name=role.title(),
        role=role,
        status=status,
        client_id=client_id,
    )
    db.add(user)
    await db.commit()
    return user


def auth_headers(user: User) -> dict:
    return {"Authorization": f"Bearer {create_token(user)}"}


async def make_hcp(db, npi: str, first_name: str, last_name: str, **fields) -> Hcp:
    hcp = Hcp(npi=npi, first_name=first_name, last_name=last_name, **fields)
    db.add(hcp)
    await db.commit()
    return hcp


async def disease_area_id(db, code: str = "RETINA") -> str:
    return await db.scalar(select(DiseaseArea.id).where(DiseaseArea.code == code))


async def make_campaign(db, client_id: str, status: str = CampaignStatus.DRAFT, name: str = "Retina KOL 2026",
                        honorarium_amount=None) -> Campaign:
    campaign = Campaign(
        client_id=client_id,
        disease_area_id=await disease_area_id(db),
        name=name,
        status=status,
        honorarium_amount=honorarium_amount,
    )
    db.add(campaign)
    await db.flush()
    db.add(CompositeScoreConfig(campaign_id=campaign.id))
    await db.commit()
    return campaign


async def add_question(db, campaign_id: str, text: str, qtype: str = QuestionType.TEXT,
                       sort_order: int = 1, nomination_type=None) -> SurveyQuestion:
    question = Question(text=text, type=qtype, nomination_type=nomination_type)
    db.add(question)
    await db.flush()
    survey_question = SurveyQuestion(
        campaign_id=campaign_id,
        question_id=question.id,
        section_name="General",
        sort_order=sort_order,
        question_text_snapshot=text,
        nomination_type=nomination_type,
    )
    db.add(survey_question)
    await db.commit()
    return survey_question


async def assign_hcp(db, campaign_id: str, hcp_id: str, email_sent_at=None) -> CampaignHcp:
    campaign_hcp = CampaignHcp(
        campaign_id=campaign_id, hcp_id=hcp_id, survey_token=new_survey_token(), email_sent_at=email_sent_at,
    )
    db.add(campaign_hcp)
    await db.commit()
    return campaign_hcp


async def make_response(db, campaign_id: str, campaign_hcp: CampaignHcp,
                        status: str = ResponseStatus.COMPLETED) -> SurveyResponse:
    response = SurveyResponse(
        campaign_id=campaign_id,
        respondent_hcp_id=campaign_hcp.hcp_id,
        survey_token=campaign_hcp.survey_token,
        status=status,
        started_at=utcnow(),
        completed_at=utcnow() if status == ResponseStatus.COMPLETED else None,
    )
    db.add(response)
    await db.commit()
    return response


async def add_nomination(db, response: SurveyResponse, question_id: str, raw_name: str,
                         matched_hcp_id: str = None, match_status: str = NominationStatus.UNMATCHED) -> Nomination:
    nomination = Nomination(
        response_id=response.id,
        question_id=question_id,
        nominator_hcp_id=response.respondent_hcp_id,
        raw_name_entered=raw_name,
        matched_hcp_id=matched_hcp_id,
        match_status=match_status,
    )
    db.add(nomination)
    await db.commit()
    return nomination


def xlsx_bytes(rows: list[list]) -> bytes:
    """Build a one-sheet workbook from a list of rows (header first)."""
    wb = Workbook()
    ws = wb.active
    for row in rows:
        ws.append(row)
    buffer = io.BytesIO()
    wb.save(buffer)
    return buffer.getvalue()


def xlsx_rows(content: bytes) -> list[list]:
    ws = load_workbook(io.BytesIO(content)).active
    return [list(row) for row in ws.iter_rows(values_only=True)]
