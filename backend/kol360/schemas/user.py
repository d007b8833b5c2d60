from datetime import datetime
from typing import Literal, Optional
from pydantic import BaseModel, EmailStr, Field

Role = Literal["PLATFORM_ADMIN", "CLIENT_ADMIN", "TEAM_MEMBER"]


class UserInvite(BaseModel):
    email: EmailStr
    first_name: Optional[str] = Field(None, max_length=100)
    last_name: Optional[str] = Field(None, max_length=100)
    role: Role = "TEAM_MEMBER"
    client_id: Optional[str] = None
    password: Optional[str] = Field(None, min_length=8, max_length=128)


class UserUpdate(BaseModel):
    first_name: Optional[str] = Field(None, max_length=100)
    last_name: Optional[str] = Field(None, max_length=100)
    role: Optional[Role] = None
    client_id: Optional[str] = None


class UserResponse(BaseModel):
    id: str
    email: str
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    role: str
    status: str
    client_id: Optional[str] = None
    last_login_at: Optional[datetime] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True
