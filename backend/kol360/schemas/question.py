from datetime import datetime
from typing import Literal, Optional
from pydantic import BaseModel, Field, model_validator
from kol360.constants import QuestionType, NominationType

QuestionTypeLiteral = Literal[
    "TEXT", "NUMBER", "RATING", "SINGLE_CHOICE", "MULTI_CHOICE", "DROPDOWN", "MULTI_TEXT"
]
NominationTypeLiteral = Literal[
    "NATIONAL_KOL", "RISING_STAR", "REGIONAL_EXPERT", "DIGITAL_INFLUENCER", "CLINICAL_EXPERT"
]


class QuestionOption(BaseModel):
    text: str
    requires_text: bool = False


def check_question_shape(qtype: Optional[str], options: Optional[list], nomination_type: Optional[str]) -> None:
    if qtype in QuestionType.CHOICE_TYPES:
        texts = [o.text if isinstance(o, QuestionOption) else (o or {}).get("text", "") for o in options or []]
        filled = [t for t in texts if t and t.strip()]
        if len(filled) < 2:
            raise ValueError("Choice questions need at least 2 options")
    if qtype == QuestionType.MULTI_TEXT and nomination_type not in NominationType.ALL:
        raise ValueError("MULTI_TEXT questions need a nomination_type")


class QuestionCreate(BaseModel):
    text: str = Field(..., min_length=10, max_length=500)
    type: QuestionTypeLiteral
    category: Optional[str] = Field(None, max_length=100)
    is_required: bool = False
    options: Optional[list[QuestionOption]] = None
    tags: list[str] = []
    min_entries: Optional[int] = Field(None, ge=1, le=50)
    default_entries: Optional[int] = Field(None, ge=1, le=50)
    nomination_type: Optional[NominationTypeLiteral] = None

    @model_validator(mode="after")
    def check_shape(self):
        check_question_shape(self.type, self.options, self.nomination_type)
        return self


class QuestionUpdate(BaseModel):
    text: Optional[str] = Field(None, min_length=10, max_length=500)
    type: Optional[QuestionTypeLiteral] = None
    category: Optional[str] = Field(None, max_length=100)
    is_required: Optional[bool] = None
    options: Optional[list[QuestionOption]] = None
    tags: Optional[list[str]] = None
    min_entries: Optional[int] = Field(None, ge=1, le=50)
    default_entries: Optional[int] = Field(None, ge=1, le=50)
    nomination_type: Optional[NominationTypeLiteral] = None


class QuestionResponse(BaseModel):
    id: str
    text: str
    type: str
    category: Optional[str] = None
    is_required: bool = False
    options: Optional[list[dict]] = None
    tags: Optional[list[str]] = None
    min_entries: Optional[int] = None
    default_entries: Optional[int] = None
    nomination_type: Optional[str] = None
    status: str
    usage_count: int = 0
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True
