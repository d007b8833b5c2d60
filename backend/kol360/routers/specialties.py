from fastapi import APIRouter, Depends
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from kol360.auth import UserPrincipal, require_client_admin, require_platform_admin
from kol360.database import get_db
from kol360.exceptions import NotFoundError, ConflictError
from kol360.models.specialty import Specialty
from kol360.schemas.specialty import SpecialtyCreate, SpecialtyUpdate, SpecialtyResponse

router = APIRouter()


async def _get_specialty(db: AsyncSession, specialty_id: str) -> Specialty:
    specialty = await db.get(Specialty, specialty_id)
    if not specialty:
        raise NotFoundError("Specialty", specialty_id)
    return specialty


async def _check_name_free(db: AsyncSession, name: str, exclude_id: str = None) -> None:
    query = select(Specialty.id).where(Specialty.name == name)
    if exclude_id:
        query = query.where(Specialty.id != exclude_id)
    if await db.scalar(query):
        raise ConflictError(f"Specialty {name} already exists")


@router.get("", dependencies=[Depends(require_client_admin)])
async def list_specialties(db: AsyncSession = Depends(get_db)):
    result = await db.execute(select(Specialty).where(Specialty.is_active.is_(True)).order_by(Specialty.name))
    return {"items": [SpecialtyResponse.model_validate(s) for s in result.scalars().all()]}


@router.get("/{specialty_id}", response_model=SpecialtyResponse, dependencies=[Depends(require_client_admin)])
async def get_specialty(specialty_id: str, db: AsyncSession = Depends(get_db)):
    return SpecialtyResponse.model_validate(await _get_specialty(db, specialty_id))


@router.post("", response_model=SpecialtyResponse, status_code=201)
async def create_specialty(
    data: SpecialtyCreate,
    db: AsyncSession = Depends(get_db),
    current_user: UserPrincipal = Depends(require_platform_admin),
):
    await _check_name_free(db, data.name)
    specialty = Specialty(**data.model_dump())
    db.add(specialty)
    await db.flush()
    return SpecialtyResponse.model_validate(specialty)


@router.put("/{specialty_id}", response_model=SpecialtyResponse)
async def update_specialty(
    specialty_id: str,
    data: SpecialtyUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: UserPrincipal = Depends(require_platform_admin),
):
    specialty = await _get_specialty(db, specialty_id)
    changes = data.model_dump(exclude_unset=True)
    if changes.get("name"):
        await _check_name_free(db, changes["name"], exclude_id=specialty.id)
    for key, value in changes.items():
        setattr(specialty, key, value)
    await db.flush()
    return SpecialtyResponse.model_validate(specialty)


@router.delete("/{specialty_id}")
async def delete_specialty(
    specialty_id: str,
    db: AsyncSession = Depends(get_db),
    current_user: UserPrincipal = Depends(require_platform_admin),
):
    specialty = await _get_specialty(db, specialty_id)
    specialty.is_active = False
    await db.flush()
    return {"deleted": True, "id": specialty.id}
