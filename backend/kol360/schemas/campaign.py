from datetime import datetime
from typing import Optional
from pydantic import BaseModel, Field, model_validator


class CampaignCreate(BaseModel):
    client_id: str
    disease_area_id: str
    name: str = Field(..., min_length=1, max_length=200)
    description: Optional[str] = Field(None, max_length=2000)
    survey_template_id: Optional[str] = None
    honorarium_amount: Optional[float] = Field(None, ge=0)
    survey_open_date: Optional[datetime] = None
    survey_close_date: Optional[datetime] = None

    @model_validator(mode="after")
    def check_dates(self):
        if self.survey_open_date and self.survey_close_date and self.survey_close_date < self.survey_open_date:
            raise ValueError("survey_close_date must be after survey_open_date")
        return self


class CampaignUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=200)
    description: Optional[str] = Field(None, max_length=2000)
    disease_area_id: Optional[str] = None
    honorarium_amount: Optional[float] = Field(None, ge=0)
    survey_open_date: Optional[datetime] = None
    survey_close_date: Optional[datetime] = None


class CampaignResponse(BaseModel):
    id: str
    client_id: str
    disease_area_id: str
    survey_template_id: Optional[str] = None
    name: str
    description: Optional[str] = None
    status: str
    honorarium_amount: Optional[float] = None
    survey_open_date: Optional[datetime] = None
    survey_close_date: Optional[datetime] = None
    published_at: Optional[datetime] = None
    created_by: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class CampaignDetailResponse(CampaignResponse):
    hcp_count: int = 0
    response_count: int = 0
    question_count: int = 0
    client: Optional[dict] = None
    disease_area: Optional[dict] = None


class EmailTemplatesUpdate(BaseModel):
    invitation_email_subject: Optional[str] = Field(None, max_length=300)
    invitation_email_body: Optional[str] = None
    reminder_email_subject: Optional[str] = Field(None, max_length=300)
    reminder_email_body: Optional[str] = None


class LandingPageUpdate(BaseModel):
    landing_page_title: Optional[str] = Field(None, max_length=300)
    landing_page_welcome_text: Optional[str] = None
    landing_page_thank_you_text: Optional[str] = None
    landing_page_already_done_text: Optional[str] = None


class AssignHcpsRequest(BaseModel):
    hcp_ids: list[str] = Field(..., min_length=1)
