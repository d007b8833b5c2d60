"""Runtime settings: a single database row layered over the environment config."""

from typing import Optional
from sqlalchemy.ext.asyncio import AsyncSession
from kol360.config import get_settings
from kol360.logging_config import LogActions
from kol360.models.system_setting import SystemSetting
from kol360.schemas.settings import SettingsUpdate
from kol360.services.audit_service import create_audit_log

SECRET_FIELDS = {"health_check_token"}
EDITABLE_FIELDS = ("send_external_email", "email_mock_mode", "ses_from_email", "ses_from_name", "health_check_token")


def mask_secret(value: Optional[str]) -> str:
    if not value:
        return ""
    if len(value) <= 4:
        return "****"
    return "****" + value[-4:]


class SettingsService:
    async def get_row(self, db: AsyncSession) -> SystemSetting:
        row = await db.get(SystemSetting, 1)
        if not row:
            row = SystemSetting(id=1)
            db.add(row)
            await db.flush()
        return row

    async def get_effective(self, db: AsyncSession) -> dict:
        """Stored values win; unset ones fall back to the environment."""
        config = get_settings()
        row = await db.get(SystemSetting, 1)
        effective = {}
        for field in EDITABLE_FIELDS:
            stored = getattr(row, field) if row else None
            effective[field] = stored if stored is not None else getattr(config, field)
        effective["app_url"] = config.app_url
        effective["environment"] = config.environment
        return effective

    async def get_view(self, db: AsyncSession) -> dict:
        effective = await self.get_effective(db)
        return {
            "email": {
                "send_external_email": effective["send_external_email"],
                "email_mock_mode": effective["email_mock_mode"],
                "ses_from_email": effective["ses_from_email"],
                "ses_from_name": effective["ses_from_name"],
            },
            "security": {
                "health_check_token": mask_secret(effective["health_check_token"]),
            },
            "system": {
                "app_url": effective["app_url"],
                "environment": effective["environment"],
            },
        }

    async def update(self, db: AsyncSession, data: SettingsUpdate, user_id: str) -> dict:
        row = await self.get_row(db)
        changes = {}
        if data.email:
            changes.update(data.email.model_dump(exclude_unset=True))
        if data.security:
            changes.update(data.security.model_dump(exclude_unset=True))

        old_values, new_values = {}, {}
        for key, value in changes.items():
            old = getattr(row, key)
            setattr(row, key, value)
            if key in SECRET_FIELDS:
                old_values[key], new_values[key] = "****", "****"
            else:
                old_values[key], new_values[key] = old, value
        row.updated_by = user_id
        await db.flush()

        await create_audit_log(
            db, user_id, LogActions.SETTINGS_UPDATED, "Settings", "1",
            old_values=old_values, new_values=new_values,
        )
        return await self.get_view(db)


settings_service = SettingsService()
