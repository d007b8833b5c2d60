from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession
from kol360.auth import require_client_admin
from kol360.database import get_db
from kol360.schemas.question import QuestionCreate, QuestionUpdate, QuestionResponse
from kol360.services.question_service import question_service

router = APIRouter(dependencies=[Depends(require_client_admin)])


@router.get("/categories")
async def list_categories(db: AsyncSession = Depends(get_db)):
    return {"items": await question_service.get_categories(db)}


@router.get("/tags")
async def list_tags(db: AsyncSession = Depends(get_db)):
    return {"items": await question_service.get_tags(db)}


@router.get("")
async def list_questions(
    category: str = Query(""),
    type: str = Query(""),
    tag: str = Query(""),
    status: str = Query(""),
    search: str = Query(""),
    page: int = Query(1, ge=1),
    limit: int = Query(50, ge=1, le=200),
    db: AsyncSession = Depends(get_db),
):
    return await question_service.list_all(db, category, type, tag, status, search, page, limit)


@router.get("/{question_id}")
async def get_question(question_id: str, db: AsyncSession = Depends(get_db)):
    question = await question_service.get(db, question_id)
    return {
        **QuestionResponse.model_validate(question).model_dump(),
        "section_ids": await question_service.section_ids_for(db, question_id),
    }


@router.post("", response_model=QuestionResponse, status_code=201)
async def create_question(data: QuestionCreate, db: AsyncSession = Depends(get_db)):
    return QuestionResponse.model_validate(await question_service.create(db, data))


@router.put("/{question_id}", response_model=QuestionResponse)
async def update_question(question_id: str, data: QuestionUpdate, db: AsyncSession = Depends(get_db)):
    return QuestionResponse.model_validate(await question_service.update(db, question_id, data))


@router.post("/{question_id}/archive", response_model=QuestionResponse)
async def archive_question(question_id: str, db: AsyncSession = Depends(get_db)):
    return QuestionResponse.model_validate(await question_service.set_status(db, question_id, "archived"))


@router.post("/{question_id}/restore", response_model=QuestionResponse)
async def restore_question(question_id: str, db: AsyncSession = Depends(get_db)):
    return QuestionResponse.model_validate(await question_service.set_status(db, question_id, "active"))
