from typing import Optional
from fastapi import APIRouter, Depends, Query, UploadFile, File
from sqlalchemy.ext.asyncio import AsyncSession
from kol360.auth import UserPrincipal, require_client_admin
from kol360.database import get_db
from kol360.schemas.common import ImportResult
from kol360.schemas.hcp import (
    HcpCreate, HcpUpdate, HcpResponse, HcpDetailResponse, AliasCreate, AliasResponse, HcpSpecialtiesUpdate,
)
from kol360.services.spreadsheet import read_upload
from kol360.services.hcp_service import hcp_service

router = APIRouter(dependencies=[Depends(require_client_admin)])


@router.get("/filters")
async def get_filters(db: AsyncSession = Depends(get_db)):
    return await hcp_service.get_filters(db)


@router.get("")
async def list_hcps(
    query: str = Query("", description="Search by NPI, name, email or alias"),
    specialty: str = Query(""),
    state: str = Query(""),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    db: AsyncSession = Depends(get_db),
):
    return await hcp_service.search(db, query, specialty, state, page, limit)


@router.post("/import", response_model=ImportResult)
async def import_hcps(file: UploadFile = File(...), db: AsyncSession = Depends(get_db)):
    return await hcp_service.import_hcps(db, await read_upload(file), file.filename)


@router.post("/aliases/import", response_model=ImportResult)
async def import_aliases(
    file: UploadFile = File(...),
    db: AsyncSession = Depends(get_db),
    current_user: UserPrincipal = Depends(require_client_admin),
):
    return await hcp_service.import_aliases(db, await read_upload(file), current_user.sub, file.filename)


@router.post("/scores/import", response_model=ImportResult)
async def import_segment_scores(
    file: UploadFile = File(...),
    disease_area_id: Optional[str] = Query(None),
    db: AsyncSession = Depends(get_db),
):
    return await hcp_service.import_segment_scores(db, await read_upload(file), disease_area_id, file.filename)


@router.get("/{hcp_id}", response_model=HcpDetailResponse)
async def get_hcp(hcp_id: str, db: AsyncSession = Depends(get_db)):
    return HcpDetailResponse.model_validate(await hcp_service.get_detail(db, hcp_id))


@router.post("", response_model=HcpResponse, status_code=201)
async def create_hcp(data: HcpCreate, db: AsyncSession = Depends(get_db)):
    return HcpResponse.model_validate(await hcp_service.create(db, data))


@router.put("/{hcp_id}", response_model=HcpResponse)
async def update_hcp(hcp_id: str, data: HcpUpdate, db: AsyncSession = Depends(get_db)):
    return HcpResponse.model_validate(await hcp_service.update(db, hcp_id, data))


@router.put("/{hcp_id}/specialties")
async def set_hcp_specialties(hcp_id: str, data: HcpSpecialtiesUpdate, db: AsyncSession = Depends(get_db)):
    return {"items": await hcp_service.set_specialties(db, hcp_id, data)}


@router.get("/{hcp_id}/aliases")
async def list_aliases(hcp_id: str, db: AsyncSession = Depends(get_db)):
    aliases = await hcp_service.list_aliases(db, hcp_id)
    return {"items": [AliasResponse.model_validate(a) for a in aliases]}


@router.post("/{hcp_id}/aliases", response_model=AliasResponse, status_code=201)
async def add_alias(
    hcp_id: str,
    data: AliasCreate,
    db: AsyncSession = Depends(get_db),
    current_user: UserPrincipal = Depends(require_client_admin),
):
    return AliasResponse.model_validate(await hcp_service.add_alias(db, hcp_id, data.alias_name, current_user.sub))


@router.delete("/{hcp_id}/aliases/{alias_id}")
async def remove_alias(hcp_id: str, alias_id: str, db: AsyncSession = Depends(get_db)):
    await hcp_service.remove_alias(db, hcp_id, alias_id)
    return {"deleted": True, "id": alias_id}
