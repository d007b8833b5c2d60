from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from kol360.auth import require_client_admin
from kol360.database import get_db
from kol360.schemas.section import AddSectionRequest, ReorderRequest
from kol360.schemas.survey_template import TemplateCreate, TemplateUpdate, TemplateClone
from kol360.services.survey_template_service import survey_template_service

router = APIRouter(dependencies=[Depends(require_client_admin)])


@router.get("")
async def list_templates(db: AsyncSession = Depends(get_db)):
    return {"items": await survey_template_service.list_all(db)}


@router.get("/{template_id}")
async def get_template(template_id: str, db: AsyncSession = Depends(get_db)):
    return await survey_template_service.serialize(db, await survey_template_service.get(db, template_id))


@router.post("", status_code=201)
async def create_template(data: TemplateCreate, db: AsyncSession = Depends(get_db)):
    return await survey_template_service.serialize(db, await survey_template_service.create(db, data))


@router.put("/{template_id}")
async def update_template(template_id: str, data: TemplateUpdate, db: AsyncSession = Depends(get_db)):
    template = await survey_template_service.update(db, template_id, data)
    return await survey_template_service.serialize(db, template)


@router.delete("/{template_id}")
async def delete_template(template_id: str, db: AsyncSession = Depends(get_db)):
    await survey_template_service.delete(db, template_id)
    return {"deleted": True, "id": template_id}


@router.post("/{template_id}/clone", status_code=201)
async def clone_template(template_id: str, data: TemplateClone, db: AsyncSession = Depends(get_db)):
    template = await survey_template_service.clone(db, template_id, data.name)
    return await survey_template_service.serialize(db, template)


@router.post("/{template_id}/sections", status_code=201)
async def add_section(template_id: str, data: AddSectionRequest, db: AsyncSession = Depends(get_db)):
    return await survey_template_service.add_section(db, template_id, data.section_id)


@router.put("/{template_id}/sections/reorder")
async def reorder_sections(template_id: str, data: ReorderRequest, db: AsyncSession = Depends(get_db)):
    await survey_template_service.reorder_sections(db, template_id, data.ids)
    return await survey_template_service.serialize(db, await survey_template_service.get(db, template_id))


@router.delete("/{template_id}/sections/{section_id}")
async def remove_section(template_id: str, section_id: str, db: AsyncSession = Depends(get_db)):
    await survey_template_service.remove_section(db, template_id, section_id)
    return {"deleted": True}
