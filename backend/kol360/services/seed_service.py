"""Idempotent reference data: disease areas, specialties, system user, settings row."""

import logging
from typing import Optional
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from kol360.auth import hash_password
from kol360.constants import (
    DISEASE_AREAS, THERAPEUTIC_AREA, OPHTHALMOLOGY_SPECIALTIES, SYSTEM_USER_EMAIL, UserRole, UserStatus,
)
from kol360.models.disease_area import DiseaseArea
from kol360.models.specialty import Specialty
from kol360.models.system_setting import SystemSetting
from kol360.models.user import User

logger = logging.getLogger(__name__)


async def seed_disease_areas(db: AsyncSession) -> int:
    created = 0
    for code, name in DISEASE_AREAS:
        if not await db.scalar(select(DiseaseArea.id).where(DiseaseArea.code == code)):
            db.add(DiseaseArea(code=code, name=name, therapeutic_area=THERAPEUTIC_AREA))
            created += 1
    await db.flush()
    return created


async def seed_specialties(db: AsyncSession) -> int:
    created = 0
    for name in OPHTHALMOLOGY_SPECIALTIES:
        if not await db.scalar(select(Specialty.id).where(Specialty.name == name)):
            db.add(Specialty(name=name, code=name.upper().replace(" ", "_"), category=THERAPEUTIC_AREA))
            created += 1
    await db.flush()
    return created


async def seed_system_user(db: AsyncSession) -> User:
    """Audit entries from unauthenticated actors are attributed to this user."""
    user = await db.scalar(select(User).where(User.email == SYSTEM_USER_EMAIL))
    if not user:
        user = User(
            email=SYSTEM_USER_EMAIL,
            first_name="System",
            last_name="User",
            role=UserRole.PLATFORM_ADMIN,
            status=UserStatus.DISABLED,
        )
        db.add(user)
        await db.flush()
    return user


async def seed_settings_row(db: AsyncSession) -> SystemSetting:
    row = await db.get(SystemSetting, 1)
    if not row:
        row = SystemSetting(id=1)
        db.add(row)
        await db.flush()
    return row


async def seed_platform_admin(db: AsyncSession, email: str, password: str,
                              first_name: Optional[str] = "Platform", last_name: Optional[str] = "Admin") -> User:
    user = await db.scalar(select(User).where(User.email == email.lower()))
    if user:
        return user
    user = User(
        email=email.lower(),
        first_name=first_name,
        last_name=last_name,
        role=UserRole.PLATFORM_ADMIN,
        status=UserStatus.ACTIVE,
        password_hash=hash_password(password),
    )
    db.add(user)
    await db.flush()
    logger.info(f"Created platform admin {user.email}")
    return user


async def seed_reference_data(db: AsyncSession) -> None:
    areas = await seed_disease_areas(db)
    await seed_system_user(db)
    await seed_settings_row(db)
    if areas:
        logger.info(f"Seeded {areas} disease areas")
