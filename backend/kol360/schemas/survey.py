from typing import Any, Literal, Optional, Union
from pydantic import BaseModel, Field

AnswerValue = Optional[Union[str, int, float, list[str], dict[str, Any]]]


class SaveAnswersRequest(BaseModel):
    answers: dict[str, AnswerValue] = {}


class UnsubscribeRequest(BaseModel):
    scope: Literal["CAMPAIGN", "GLOBAL"] = "CAMPAIGN"
    reason: Optional[str] = Field(None, max_length=500)


class AnswerUpdate(BaseModel):
    question_id: str
    value: AnswerValue = None


class ExcludeResponseRequest(BaseModel):
    reason: str = Field(..., min_length=1, max_length=500)
