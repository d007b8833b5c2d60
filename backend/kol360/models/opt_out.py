from sqlalchemy import Column, String, Text, DateTime, ForeignKey
from kol360.database import Base, new_id, utcnow


class OptOut(Base):
    __tablename__ = "opt_outs"

    id = Column(String(32), primary_key=True, default=new_id)
    email = Column(String(255), nullable=False, index=True)
    scope = Column(String(10), nullable=False)  # CAMPAIGN | GLOBAL
    campaign_id = Column(String(32), ForeignKey("campaigns.id", ondelete="CASCADE"))
    reason = Column(Text)
    opted_out_via = Column(String(50))
    opted_out_at = Column(DateTime(timezone=True), default=utcnow)
    resubscribed_at = Column(DateTime(timezone=True))
