from datetime import datetime
from typing import Literal, Optional
from pydantic import BaseModel, Field

COLOR_PATTERN = r"^#[0-9A-Fa-f]{6}$"


class ClientBase(BaseModel):
    name: str = Field(..., min_length=2, max_length=100)
    type: Literal["FULL", "LITE"] = "FULL"
    logo_url: Optional[str] = Field(None, max_length=500)
    primary_color: str = Field("#0066CC", pattern=COLOR_PATTERN)


class ClientCreate(ClientBase):
    pass


class ClientUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=2, max_length=100)
    type: Optional[Literal["FULL", "LITE"]] = None
    logo_url: Optional[str] = Field(None, max_length=500)
    primary_color: Optional[str] = Field(None, pattern=COLOR_PATTERN)


class ClientResponse(BaseModel):
    id: str
    name: str
    type: str
    is_lite: bool = False
    logo_url: Optional[str] = None
    primary_color: Optional[str] = None
    is_active: bool
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True
