from typing import Literal, Optional
from pydantic import BaseModel, EmailStr, Field
from kol360.schemas.hcp import NPI_PATTERN


class MatchRequest(BaseModel):
    hcp_id: str
    match_type: Optional[Literal["exact", "primary", "alias", "partial"]] = None
    match_confidence: Optional[int] = Field(None, ge=0, le=100)
    add_alias: bool = False


class CreateHcpFromNomination(BaseModel):
    npi: str = Field(..., pattern=NPI_PATTERN)
    first_name: str = Field(..., min_length=1, max_length=50)
    last_name: str = Field(..., min_length=1, max_length=50)
    email: Optional[EmailStr] = None
    specialty: Optional[str] = Field(None, max_length=100)
    city: Optional[str] = Field(None, max_length=100)
    state: Optional[str] = Field(None, min_length=2, max_length=2)


class ExcludeNominationRequest(BaseModel):
    reason: Optional[str] = Field(None, max_length=500)


class UpdateRawNameRequest(BaseModel):
    raw_name_entered: str = Field(..., min_length=1, max_length=200)
