from typing import Optional
from pydantic import BaseModel, Field


class SpecialtyCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    code: Optional[str] = Field(None, max_length=50)
    category: Optional[str] = Field(None, max_length=100)


class SpecialtyUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    code: Optional[str] = Field(None, max_length=50)
    category: Optional[str] = Field(None, max_length=100)


class SpecialtyResponse(BaseModel):
    id: str
    name: str
    code: Optional[str] = None
    category: Optional[str] = None
    is_active: bool

    class Config:
        from_attributes = True
