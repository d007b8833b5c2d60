from typing import Optional
from pydantic import BaseModel, EmailStr, Field


class EmailSettingsUpdate(BaseModel):
    send_external_email: Optional[bool] = None
    email_mock_mode: Optional[bool] = None
    ses_from_email: Optional[EmailStr] = None
    ses_from_name: Optional[str] = Field(None, min_length=1, max_length=255)


class SecuritySettingsUpdate(BaseModel):
    health_check_token: Optional[str] = Field(None, max_length=255)


class SettingsUpdate(BaseModel):
    email: Optional[EmailSettingsUpdate] = None
    security: Optional[SecuritySettingsUpdate] = None
