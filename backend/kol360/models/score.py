from sqlalchemy import Column, String, Integer, Float, DateTime, ForeignKey, UniqueConstraint
from kol360.database import Base, new_id, utcnow


class HcpCampaignScore(Base):
    __tablename__ = "hcp_campaign_scores"
    __table_args__ = (UniqueConstraint("hcp_id", "campaign_id"),)

    id = Column(String(32), primary_key=True, default=new_id)
    hcp_id = Column(String(32), ForeignKey("hcps.id"), nullable=False, index=True)
    campaign_id = Column(String(32), ForeignKey("campaigns.id", ondelete="CASCADE"), nullable=False, index=True)
    score_survey = Column(Float, default=0)
    nomination_count = Column(Integer, default=0)
    composite_score = Column(Float)
    calculated_at = Column(DateTime(timezone=True), default=utcnow)
    published_at = Column(DateTime(timezone=True))
