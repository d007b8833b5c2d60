from sqlalchemy import Column, String, Integer, Float, Boolean, DateTime, ForeignKey, UniqueConstraint
from kol360.database import Base, new_id, utcnow


class Hcp(Base):
    __tablename__ = "hcps"

    id = Column(String(32), primary_key=True, default=new_id)
    npi = Column(String(10), unique=True, nullable=False, index=True)
    first_name = Column(String(50), nullable=False)
    last_name = Column(String(50), nullable=False, index=True)
    email = Column(String(255))
    specialty = Column(String(100))
    sub_specialty = Column(String(100))
    city = Column(String(100))
    state = Column(String(2))
    years_in_practice = Column(Integer)
    created_at = Column(DateTime(timezone=True), default=utcnow)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"


class HcpAlias(Base):
    __tablename__ = "hcp_aliases"
    __table_args__ = (UniqueConstraint("hcp_id", "alias_name"),)

    id = Column(String(32), primary_key=True, default=new_id)
    hcp_id = Column(String(32), ForeignKey("hcps.id", ondelete="CASCADE"), nullable=False, index=True)
    alias_name = Column(String(200), nullable=False)
    created_by = Column(String(32))
    created_at = Column(DateTime(timezone=True), default=utcnow)


class HcpSpecialty(Base):
    __tablename__ = "hcp_specialties"
    __table_args__ = (UniqueConstraint("hcp_id", "specialty_id"),)

    id = Column(String(32), primary_key=True, default=new_id)
    hcp_id = Column(String(32), ForeignKey("hcps.id", ondelete="CASCADE"), nullable=False, index=True)
    specialty_id = Column(String(32), ForeignKey("specialties.id"), nullable=False)
    is_primary = Column(Boolean, default=False)


class HcpDiseaseAreaScore(Base):
    """Objective + survey scores per HCP and disease area. Old rows are closed, never updated."""

    __tablename__ = "hcp_disease_area_scores"

    id = Column(String(32), primary_key=True, default=new_id)
    hcp_id = Column(String(32), ForeignKey("hcps.id", ondelete="CASCADE"), nullable=False, index=True)
    disease_area_id = Column(String(32), ForeignKey("disease_areas.id"), nullable=False, index=True)
    score_publications = Column(Float)
    score_clinical_trials = Column(Float)
    score_trade_pubs = Column(Float)
    score_org_leadership = Column(Float)
    score_org_awareness = Column(Float)
    score_conference = Column(Float)
    score_social_media = Column(Float)
    score_media_podcasts = Column(Float)
    score_survey = Column(Float)
    composite_score = Column(Float)
    total_nomination_count = Column(Integer, default=0)
    campaign_count = Column(Integer, default=0)
    is_current = Column(Boolean, default=True, nullable=False, index=True)
    effective_from = Column(DateTime(timezone=True), default=utcnow)
    effective_to = Column(DateTime(timezone=True))
    last_calculated_at = Column(DateTime(timezone=True), default=utcnow)
