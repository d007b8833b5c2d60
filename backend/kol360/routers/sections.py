from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from kol360.auth import require_client_admin
from kol360.database import get_db
from kol360.schemas.section import SectionCreate, SectionUpdate, AddQuestionRequest, ReorderRequest
from kol360.services.section_service import section_service

router = APIRouter(dependencies=[Depends(require_client_admin)])


@router.get("")
async def list_sections(db: AsyncSession = Depends(get_db)):
    return {"items": await section_service.list_all(db)}


@router.get("/{section_id}")
async def get_section(section_id: str, db: AsyncSession = Depends(get_db)):
    return await section_service.serialize(db, await section_service.get(db, section_id))


@router.post("", status_code=201)
async def create_section(data: SectionCreate, db: AsyncSession = Depends(get_db)):
    return await section_service.serialize(db, await section_service.create(db, data))


@router.put("/{section_id}")
async def update_section(section_id: str, data: SectionUpdate, db: AsyncSession = Depends(get_db)):
    return await section_service.serialize(db, await section_service.update(db, section_id, data))


@router.delete("/{section_id}")
async def delete_section(section_id: str, db: AsyncSession = Depends(get_db)):
    await section_service.delete(db, section_id)
    return {"deleted": True, "id": section_id}


@router.post("/{section_id}/questions", status_code=201)
async def add_question(section_id: str, data: AddQuestionRequest, db: AsyncSession = Depends(get_db)):
    return await section_service.add_question(db, section_id, data.question_id)


@router.put("/{section_id}/questions/reorder")
async def reorder_questions(section_id: str, data: ReorderRequest, db: AsyncSession = Depends(get_db)):
    await section_service.reorder_questions(db, section_id, data.ids)
    return await section_service.serialize(db, await section_service.get(db, section_id))


@router.delete("/{section_id}/questions/{question_id}")
async def remove_question(section_id: str, question_id: str, db: AsyncSession = Depends(get_db)):
    await section_service.remove_question(db, section_id, question_id)
    return {"deleted": True}
