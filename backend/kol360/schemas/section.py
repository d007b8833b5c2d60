from typing import Optional
from pydantic import BaseModel, Field


class SectionCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    description: Optional[str] = None
    is_core: bool = False


class SectionUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    description: Optional[str] = None


class SectionResponse(BaseModel):
    id: str
    name: str
    description: Optional[str] = None
    is_core: bool = False

    class Config:
        from_attributes = True


class AddQuestionRequest(BaseModel):
    question_id: str


class AddSectionRequest(BaseModel):
    section_id: str


class ReorderRequest(BaseModel):
    ids: list[str] = Field(..., min_length=1)
