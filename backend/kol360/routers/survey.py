"""
Public survey-taking endpoints.

Respondents are identified only by the survey token in the URL; no login.
"""
from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession
from kol360.database import get_db
from kol360.schemas.survey import SaveAnswersRequest, UnsubscribeRequest
from kol360.services.survey_taking_service import survey_taking_service

router = APIRouter()


def client_ip(request: Request) -> str:
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.client.host if request.client else ""


@router.get("/survey/take/{token}")
async def get_survey(token: str, db: AsyncSession = Depends(get_db)):
    return await survey_taking_service.get_survey(db, token)


@router.post("/survey/take/{token}/start")
async def start_survey(token: str, request: Request, db: AsyncSession = Depends(get_db)):
    response = await survey_taking_service.start(db, token, client_ip(request) or None)
    return {"response_id": response.id, "status": response.status, "started_at": response.started_at}


@router.post("/survey/take/{token}/save")
async def save_progress(token: str, data: SaveAnswersRequest, db: AsyncSession = Depends(get_db)):
    return await survey_taking_service.save_progress(db, token, data.answers)


@router.post("/survey/take/{token}/submit")
async def submit_survey(token: str, data: SaveAnswersRequest, db: AsyncSession = Depends(get_db)):
    return await survey_taking_service.submit(db, token, data.answers)


@router.get("/unsubscribe/{token}")
async def unsubscribe_info(token: str, db: AsyncSession = Depends(get_db)):
    return await survey_taking_service.unsubscribe_info(db, token)


@router.post("/unsubscribe/{token}")
async def unsubscribe(token: str, data: UnsubscribeRequest, db: AsyncSession = Depends(get_db)):
    return await survey_taking_service.unsubscribe(db, token, data.scope, data.reason)
