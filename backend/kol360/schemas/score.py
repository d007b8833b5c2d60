from pydantic import BaseModel, Field, model_validator

WEIGHT_FIELDS = [
    "weight_publications", "weight_clinical_trials", "weight_trade_pubs", "weight_org_leadership",
    "weight_org_awareness", "weight_conference", "weight_social_media", "weight_media_podcasts",
    "weight_survey",
]

DEFAULT_WEIGHTS = {
    "weight_publications": 10,
    "weight_clinical_trials": 15,
    "weight_trade_pubs": 10,
    "weight_org_leadership": 10,
    "weight_org_awareness": 10,
    "weight_conference": 10,
    "weight_social_media": 5,
    "weight_media_podcasts": 5,
    "weight_survey": 25,
}


class ScoreConfigUpdate(BaseModel):
    weight_publications: float = Field(..., ge=0, le=100)
    weight_clinical_trials: float = Field(..., ge=0, le=100)
    weight_trade_pubs: float = Field(..., ge=0, le=100)
    weight_org_leadership: float = Field(..., ge=0, le=100)
    weight_org_awareness: float = Field(..., ge=0, le=100)
    weight_conference: float = Field(..., ge=0, le=100)
    weight_social_media: float = Field(..., ge=0, le=100)
    weight_media_podcasts: float = Field(..., ge=0, le=100)
    weight_survey: float = Field(..., ge=0, le=100)

    @model_validator(mode="after")
    def check_total(self):
        total = sum(getattr(self, f) for f in WEIGHT_FIELDS)
        if abs(total - 100) > 0.01:
            raise ValueError(f"Weights must sum to 100 (got {round(total, 2)})")
        return self


class ScoreConfigResponse(BaseModel):
    id: str
    campaign_id: str
    weight_publications: float
    weight_clinical_trials: float
    weight_trade_pubs: float
    weight_org_leadership: float
    weight_org_awareness: float
    weight_conference: float
    weight_social_media: float
    weight_media_podcasts: float
    weight_survey: float

    class Config:
        from_attributes = True
