import re
from typing import Optional
from pydantic import ValidationError
from sqlalchemy import select, func, or_, delete, exists
from sqlalchemy.ext.asyncio import AsyncSession
from kol360.constants import SEGMENTS
from kol360.database import utcnow, contains_pattern, LIKE_ESCAPE
from kol360.exceptions import NotFoundError, BadRequestError, ConflictError
from kol360.models.disease_area import DiseaseArea
from kol360.models.hcp import Hcp, HcpAlias, HcpSpecialty, HcpDiseaseAreaScore
from kol360.models.specialty import Specialty
from kol360.schemas.common import paginate
from kol360.schemas.hcp import AliasCreate, HcpCreate, HcpUpdate, HcpResponse, HcpSpecialtiesUpdate
from kol360.services.spreadsheet import read_rows, cell

NPI_RE = re.compile(r"^\d{10}$")

# Import column -> HcpDiseaseAreaScore field
SEGMENT_COLUMNS = {label: field for field, _, label in SEGMENTS}


def validation_message(exc: ValidationError) -> str:
    """First pydantic error as `field: message`, for per-row import errors."""
    error = exc.errors()[0]
    field = ".".join(str(part) for part in error["loc"])
    return f"{field}: {error['msg']}" if field else error["msg"]


def hcp_from_row(row: dict) -> HcpCreate:
    """Validate one import row with the same rules as the create endpoint."""
    npi = cell(row, "NPI")
    if not NPI_RE.match(npi):
        raise ValueError("Invalid NPI format")
    first_name = cell(row, "First Name", "first_name")
    last_name = cell(row, "Last Name", "last_name")
    if not first_name or not last_name:
        raise ValueError("First and last name required")
    state = cell(row, "State")
    if state and len(state) != 2:
        raise ValueError("State must be a 2-letter code")
    try:
        return HcpCreate(
            npi=npi,
            first_name=first_name,
            last_name=last_name,
            email=cell(row, "Email") or None,
            specialty=cell(row, "Specialty") or None,
            sub_specialty=cell(row, "Sub-specialty", "sub_specialty") or None,
            city=cell(row, "City") or None,
            state=state or None,
            years_in_practice=cell(row, "Years in Practice", "years_in_practice") or None,
        )
    except ValidationError as e:
        raise ValueError(validation_message(e))


class HcpService:
    async def search(
        self,
        db: AsyncSession,
        query: str = "",
        specialty: str = "",
        state: str = "",
        page: int = 1,
        limit: int = 20,
    ) -> dict:
        stmt = select(Hcp)
        if query:
            like = contains_pattern(query)
            alias_match = exists().where(
                HcpAlias.hcp_id == Hcp.id, HcpAlias.alias_name.ilike(like, escape=LIKE_ESCAPE),
            )
            stmt = stmt.where(or_(
                Hcp.npi.contains(query, autoescape=True),
                Hcp.first_name.ilike(like, escape=LIKE_ESCAPE),
                Hcp.last_name.ilike(like, escape=LIKE_ESCAPE),
                Hcp.email.ilike(like, escape=LIKE_ESCAPE),
                alias_match,
            ))
        if specialty:
            linked = exists().where(
                HcpSpecialty.hcp_id == Hcp.id,
                HcpSpecialty.specialty_id == Specialty.id,
                Specialty.name == specialty,
            )
            stmt = stmt.where(or_(Hcp.specialty == specialty, linked))
        if state:
            stmt = stmt.where(Hcp.state == state)

        total = await db.scalar(select(func.count()).select_from(stmt.subquery())) or 0
        stmt = stmt.order_by(Hcp.last_name, Hcp.first_name).offset((page - 1) * limit).limit(limit)
        hcps = (await db.execute(stmt)).scalars().all()

        return {
            "items": [HcpResponse.model_validate(h) for h in hcps],
            "pagination": paginate(page, limit, total),
        }

    async def get(self, db: AsyncSession, hcp_id: str) -> Hcp:
        hcp = await db.get(Hcp, hcp_id)
        if not hcp:
            raise NotFoundError("HCP", hcp_id)
        return hcp

    async def get_detail(self, db: AsyncSession, hcp_id: str) -> dict:
        hcp = await self.get(db, hcp_id)
        aliases = (await db.execute(
            select(HcpAlias).where(HcpAlias.hcp_id == hcp_id).order_by(HcpAlias.alias_name)
        )).scalars().all()
        specialties = (await db.execute(
            select(HcpSpecialty, Specialty)
            .join(Specialty, Specialty.id == HcpSpecialty.specialty_id)
            .where(HcpSpecialty.hcp_id == hcp_id)
            .order_by(HcpSpecialty.is_primary.desc(), Specialty.name)
        )).all()
        scores = (await db.execute(
            select(HcpDiseaseAreaScore)
            .where(HcpDiseaseAreaScore.hcp_id == hcp_id, HcpDiseaseAreaScore.is_current.is_(True))
        )).scalars().all()
        return {
            **HcpResponse.model_validate(hcp).model_dump(),
            "aliases": aliases,
            "specialties": [
                {"id": s.id, "name": s.name, "is_primary": bool(link.is_primary)} for link, s in specialties
            ],
            "disease_area_scores": scores,
        }

    async def create(self, db: AsyncSession, data: HcpCreate) -> Hcp:
        existing = await db.scalar(select(Hcp.id).where(Hcp.npi == data.npi))
        if existing:
            raise ConflictError(f"HCP with NPI {data.npi} already exists")
        hcp = Hcp(**data.model_dump())
        db.add(hcp)
        await db.flush()
        return hcp

    async def update(self, db: AsyncSession, hcp_id: str, data: HcpUpdate) -> Hcp:
        hcp = await self.get(db, hcp_id)
        for key, value in data.model_dump(exclude_unset=True).items():
            setattr(hcp, key, value)
        await db.flush()
        return hcp

    async def get_filters(self, db: AsyncSession) -> dict:
        specialties = (await db.execute(
            select(Specialty).where(Specialty.is_active.is_(True)).order_by(Specialty.name)
        )).scalars().all()
        states = (await db.execute(
            select(Hcp.state).where(Hcp.state.isnot(None)).distinct().order_by(Hcp.state)
        )).scalars().all()
        return {
            "specialties": [{"id": s.id, "name": s.name} for s in specialties],
            "states": [s for s in states if s],
        }

    # Aliases

    async def list_aliases(self, db: AsyncSession, hcp_id: str) -> list[HcpAlias]:
        await self.get(db, hcp_id)
        result = await db.execute(
            select(HcpAlias).where(HcpAlias.hcp_id == hcp_id).order_by(HcpAlias.alias_name)
        )
        return result.scalars().all()

    async def alias_exists(self, db: AsyncSession, hcp_id: str, alias_name: str) -> bool:
        found = await db.scalar(
            select(HcpAlias.id).where(
                HcpAlias.hcp_id == hcp_id,
                func.lower(HcpAlias.alias_name) == alias_name.strip().lower(),
            )
        )
        return found is not None

    async def add_alias(self, db: AsyncSession, hcp_id: str, alias_name: str, created_by: Optional[str] = None) -> HcpAlias:
        await self.get(db, hcp_id)
        alias_name = alias_name.strip()
        if await self.alias_exists(db, hcp_id, alias_name):
            raise BadRequestError("This alias already exists for this HCP")
        alias = HcpAlias(hcp_id=hcp_id, alias_name=alias_name, created_by=created_by)
        db.add(alias)
        await db.flush()
        return alias

    async def remove_alias(self, db: AsyncSession, hcp_id: str, alias_id: str) -> None:
        alias = await db.get(HcpAlias, alias_id)
        if not alias or alias.hcp_id != hcp_id:
            raise NotFoundError("Alias", alias_id)
        await db.delete(alias)
        await db.flush()

    # Specialties

    async def set_specialties(self, db: AsyncSession, hcp_id: str, data: HcpSpecialtiesUpdate) -> list[dict]:
        await self.get(db, hcp_id)
        specialty_ids = list(dict.fromkeys(data.specialty_ids))
        if specialty_ids:
            found = (await db.execute(select(Specialty.id).where(Specialty.id.in_(specialty_ids)))).scalars().all()
            missing = set(specialty_ids) - set(found)
            if missing:
                raise BadRequestError(f"Unknown specialty: {sorted(missing)[0]}")
        if data.primary_specialty_id and data.primary_specialty_id not in specialty_ids:
            raise BadRequestError("Primary specialty must be one of the selected specialties")

        await db.execute(delete(HcpSpecialty).where(HcpSpecialty.hcp_id == hcp_id))
        for specialty_id in specialty_ids:
            db.add(HcpSpecialty(
                hcp_id=hcp_id,
                specialty_id=specialty_id,
                is_primary=specialty_id == data.primary_specialty_id,
            ))
        await db.flush()
        return (await self.get_detail(db, hcp_id))["specialties"]

    # Spreadsheet imports

    async def import_hcps(self, db: AsyncSession, content: bytes, filename: Optional[str] = None) -> dict:
        rows = read_rows(content, filename)
        result = {"total": len(rows), "created": 0, "updated": 0, "errors": []}

        for i, row in enumerate(rows):
            try:
                data = hcp_from_row(row)
                hcp = await db.scalar(select(Hcp).where(Hcp.npi == data.npi))
                if hcp:
                    for key, value in data.model_dump(exclude={"npi"}).items():
                        setattr(hcp, key, value)
                    result["updated"] += 1
                else:
                    db.add(Hcp(**data.model_dump()))
                    result["created"] += 1
                await db.flush()
            except ValueError as e:
                result["errors"].append({"row": i + 2, "error": str(e)})

        return result

    async def import_aliases(self, db: AsyncSession, content: bytes, created_by: Optional[str] = None,
                             filename: Optional[str] = None) -> dict:
        rows = read_rows(content, filename)
        result = {"total": len(rows), "created": 0, "skipped": 0, "errors": []}

        for i, row in enumerate(rows):
            try:
                npi = cell(row, "NPI")
                alias_name = cell(row, "Alias", "alias_name")
                if not alias_name:
                    raise ValueError("Alias is required")
                try:
                    alias_name = AliasCreate(alias_name=alias_name).alias_name
                except ValidationError as e:
                    raise ValueError(validation_message(e))
                hcp = await db.scalar(select(Hcp).where(Hcp.npi == npi))
                if not hcp:
                    raise ValueError(f"HCP not found: {npi}")
                if await self.alias_exists(db, hcp.id, alias_name):
                    result["skipped"] += 1
                    continue
                db.add(HcpAlias(hcp_id=hcp.id, alias_name=alias_name, created_by=created_by))
                await db.flush()
                result["created"] += 1
            except ValueError as e:
                result["errors"].append({"row": i + 2, "error": str(e)})

        return result

    async def import_segment_scores(self, db: AsyncSession, content: bytes,
                                    disease_area_id: Optional[str] = None,
                                    filename: Optional[str] = None) -> dict:
        rows = read_rows(content, filename)
        result = {"total": len(rows), "created": 0, "updated": 0, "errors": []}

        if disease_area_id:
            area = await db.get(DiseaseArea, disease_area_id)
            if not area:
                raise NotFoundError("Disease area", disease_area_id)
        else:
            disease_area_id = await db.scalar(
                select(DiseaseArea.id).where(DiseaseArea.is_active.is_(True)).order_by(DiseaseArea.name).limit(1)
            )
            if not disease_area_id:
                result["errors"].append({"row": 0, "error": "No active disease area found"})
                return result

        for i, row in enumerate(rows):
            try:
                npi = cell(row, "NPI")
                if not NPI_RE.match(npi):
                    raise ValueError("Invalid NPI format")
                hcp = await db.scalar(select(Hcp).where(Hcp.npi == npi))
                if not hcp:
                    raise ValueError(f"HCP not found: {npi}")

                scores = {}
                for column, field in SEGMENT_COLUMNS.items():
                    raw = cell(row, column)
                    if not raw:
                        continue
                    try:
                        value = float(raw)
                    except ValueError:
                        continue
                    if 0 <= value <= 100:
                        scores[field] = value

                existing = await db.scalar(
                    select(HcpDiseaseAreaScore).where(
                        HcpDiseaseAreaScore.hcp_id == hcp.id,
                        HcpDiseaseAreaScore.disease_area_id == disease_area_id,
                        HcpDiseaseAreaScore.is_current.is_(True),
                    )
                )
                if existing:
                    for field, value in scores.items():
                        setattr(existing, field, value)
                    existing.last_calculated_at = utcnow()
                    result["updated"] += 1
                else:
                    db.add(HcpDiseaseAreaScore(
                        hcp_id=hcp.id,
                        disease_area_id=disease_area_id,
                        is_current=True,
                        effective_from=utcnow(),
                        **scores,
                    ))
                    result["created"] += 1
                await db.flush()
            except ValueError as e:
                result["errors"].append({"row": i + 2, "error": str(e)})

        return result


hcp_service = HcpService()
