from typing import Optional
from pydantic import BaseModel, Field


class DiseaseAreaCreate(BaseModel):
    code: str = Field(..., min_length=1, max_length=50, pattern=r"^[A-Z0-9_]+$")
    name: str = Field(..., min_length=1, max_length=100)
    therapeutic_area: str = Field(..., min_length=1, max_length=100)


class DiseaseAreaUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    therapeutic_area: Optional[str] = Field(None, min_length=1, max_length=100)
    is_active: Optional[bool] = None


class DiseaseAreaResponse(BaseModel):
    id: str
    code: str
    name: str
    therapeutic_area: str
    is_active: bool

    class Config:
        from_attributes = True
