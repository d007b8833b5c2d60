from sqlalchemy import Column, String, Integer, Float, Text, DateTime, ForeignKey, UniqueConstraint
from kol360.database import Base, new_id, utcnow


class Campaign(Base):
    __tablename__ = "campaigns"

    id = Column(String(32), primary_key=True, default=new_id)
    client_id = Column(String(32), ForeignKey("clients.id"), nullable=False, index=True)
    disease_area_id = Column(String(32), ForeignKey("disease_areas.id"), nullable=False)
    survey_template_id = Column(String(32), ForeignKey("survey_templates.id"))
    name = Column(String(200), nullable=False)
    description = Column(Text)
    status = Column(String(20), nullable=False, default="DRAFT")  # DRAFT | ACTIVE | CLOSED | PUBLISHED
    honorarium_amount = Column(Float)
    survey_open_date = Column(DateTime(timezone=True))
    survey_close_date = Column(DateTime(timezone=True))
    invitation_email_subject = Column(String(300))
    invitation_email_body = Column(Text)
    reminder_email_subject = Column(String(300))
    reminder_email_body = Column(Text)
    landing_page_title = Column(String(300))
    landing_page_welcome_text = Column(Text)
    landing_page_thank_you_text = Column(Text)
    landing_page_already_done_text = Column(Text)
    published_at = Column(DateTime(timezone=True))
    created_by = Column(String(32))
    created_at = Column(DateTime(timezone=True), default=utcnow, index=True)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)


class CampaignHcp(Base):
    __tablename__ = "campaign_hcps"
    __table_args__ = (UniqueConstraint("campaign_id", "hcp_id"),)

    id = Column(String(32), primary_key=True, default=new_id)
    campaign_id = Column(String(32), ForeignKey("campaigns.id", ondelete="CASCADE"), nullable=False, index=True)
    hcp_id = Column(String(32), ForeignKey("hcps.id"), nullable=False)
    survey_token = Column(String(64), unique=True, nullable=False, index=True)
    email_sent_at = Column(DateTime(timezone=True))
    reminder_count = Column(Integer, default=0, nullable=False)
    last_reminder_at = Column(DateTime(timezone=True))
    created_at = Column(DateTime(timezone=True), default=utcnow)


class CompositeScoreConfig(Base):
    __tablename__ = "composite_score_configs"

    id = Column(String(32), primary_key=True, default=new_id)
    campaign_id = Column(String(32), ForeignKey("campaigns.id", ondelete="CASCADE"), unique=True, nullable=False)
    weight_publications = Column(Float, nullable=False, default=10)
    weight_clinical_trials = Column(Float, nullable=False, default=15)
    weight_trade_pubs = Column(Float, nullable=False, default=10)
    weight_org_leadership = Column(Float, nullable=False, default=10)
    weight_org_awareness = Column(Float, nullable=False, default=10)
    weight_conference = Column(Float, nullable=False, default=10)
    weight_social_media = Column(Float, nullable=False, default=5)
    weight_media_podcasts = Column(Float, nullable=False, default=5)
    weight_survey = Column(Float, nullable=False, default=25)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)
