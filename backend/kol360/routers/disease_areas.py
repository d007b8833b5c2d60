from fastapi import APIRouter, Depends
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from kol360.auth import UserPrincipal, require_platform_admin
from kol360.database import get_db
from kol360.exceptions import NotFoundError, ConflictError
from kol360.models.disease_area import DiseaseArea
from kol360.schemas.disease_area import DiseaseAreaCreate, DiseaseAreaUpdate, DiseaseAreaResponse

router = APIRouter()


@router.get("")
async def list_disease_areas(db: AsyncSession = Depends(get_db)):
    result = await db.execute(
        select(DiseaseArea)
        .where(DiseaseArea.is_active.is_(True))
        .order_by(DiseaseArea.therapeutic_area, DiseaseArea.name)
    )
    return {"items": [DiseaseAreaResponse.model_validate(d) for d in result.scalars().all()]}


@router.get("/{disease_area_id}", response_model=DiseaseAreaResponse)
async def get_disease_area(disease_area_id: str, db: AsyncSession = Depends(get_db)):
    area = await db.get(DiseaseArea, disease_area_id)
    if not area:
        raise NotFoundError("Disease area")
    return DiseaseAreaResponse.model_validate(area)


@router.post("", response_model=DiseaseAreaResponse, status_code=201)
async def create_disease_area(
    data: DiseaseAreaCreate,
    db: AsyncSession = Depends(get_db),
    current_user: UserPrincipal = Depends(require_platform_admin),
):
    if await db.scalar(select(DiseaseArea.id).where(DiseaseArea.code == data.code)):
        raise ConflictError(f"Disease area {data.code} already exists")
    area = DiseaseArea(**data.model_dump())
    db.add(area)
    await db.flush()
    return DiseaseAreaResponse.model_validate(area)


@router.put("/{disease_area_id}", response_model=DiseaseAreaResponse)
async def update_disease_area(
    disease_area_id: str,
    data: DiseaseAreaUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: UserPrincipal = Depends(require_platform_admin),
):
    area = await db.get(DiseaseArea, disease_area_id)
    if not area:
        raise NotFoundError("Disease area")
    for key, value in data.model_dump(exclude_unset=True).items():
        setattr(area, key, value)
    await db.flush()
    return DiseaseAreaResponse.model_validate(area)
