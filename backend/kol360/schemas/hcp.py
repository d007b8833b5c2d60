from datetime import datetime
from typing import Optional
from pydantic import BaseModel, EmailStr, Field

NPI_PATTERN = r"^\d{10}$"


class HcpBase(BaseModel):
    first_name: str = Field(..., min_length=1, max_length=50)
    last_name: str = Field(..., min_length=1, max_length=50)
    email: Optional[EmailStr] = None
    specialty: Optional[str] = Field(None, max_length=100)
    sub_specialty: Optional[str] = Field(None, max_length=100)
    city: Optional[str] = Field(None, max_length=100)
    state: Optional[str] = Field(None, min_length=2, max_length=2)
    years_in_practice: Optional[int] = Field(None, gt=0)


class HcpCreate(HcpBase):
    npi: str = Field(..., pattern=NPI_PATTERN)


class HcpUpdate(BaseModel):
    first_name: Optional[str] = Field(None, min_length=1, max_length=50)
    last_name: Optional[str] = Field(None, min_length=1, max_length=50)
    email: Optional[EmailStr] = None
    specialty: Optional[str] = Field(None, max_length=100)
    sub_specialty: Optional[str] = Field(None, max_length=100)
    city: Optional[str] = Field(None, max_length=100)
    state: Optional[str] = Field(None, min_length=2, max_length=2)
    years_in_practice: Optional[int] = Field(None, gt=0)


class HcpResponse(BaseModel):
    id: str
    npi: str
    first_name: str
    last_name: str
    email: Optional[str] = None
    specialty: Optional[str] = None
    sub_specialty: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    years_in_practice: Optional[int] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class AliasCreate(BaseModel):
    alias_name: str = Field(..., min_length=1, max_length=200)


class AliasResponse(BaseModel):
    id: str
    hcp_id: str
    alias_name: str
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class HcpSpecialtiesUpdate(BaseModel):
    specialty_ids: list[str] = []
    primary_specialty_id: Optional[str] = None


class DiseaseAreaScoreResponse(BaseModel):
    id: str
    disease_area_id: str
    score_publications: Optional[float] = None
    score_clinical_trials: Optional[float] = None
    score_trade_pubs: Optional[float] = None
    score_org_leadership: Optional[float] = None
    score_org_awareness: Optional[float] = None
    score_conference: Optional[float] = None
    score_social_media: Optional[float] = None
    score_media_podcasts: Optional[float] = None
    score_survey: Optional[float] = None
    composite_score: Optional[float] = None
    total_nomination_count: Optional[int] = None
    campaign_count: Optional[int] = None
    is_current: bool
    effective_from: Optional[datetime] = None
    effective_to: Optional[datetime] = None

    class Config:
        from_attributes = True


class HcpDetailResponse(HcpResponse):
    aliases: list[AliasResponse] = []
    specialties: list[dict] = []
    disease_area_scores: list[DiseaseAreaScoreResponse] = []
