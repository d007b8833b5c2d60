from sqlalchemy import Column, String, Integer, Text, DateTime, ForeignKey
from kol360.database import Base, new_id, utcnow


class Nomination(Base):
    __tablename__ = "nominations"

    id = Column(String(32), primary_key=True, default=new_id)
    response_id = Column(String(32), ForeignKey("survey_responses.id", ondelete="CASCADE"), nullable=False, index=True)
    question_id = Column(String(32), ForeignKey("survey_questions.id"), nullable=False)
    nominator_hcp_id = Column(String(32), ForeignKey("hcps.id"), nullable=False)
    raw_name_entered = Column(String(200), nullable=False)
    match_status = Column(String(20), nullable=False, default="UNMATCHED", index=True)
    matched_hcp_id = Column(String(32), ForeignKey("hcps.id"), index=True)
    match_type = Column(String(20))
    match_confidence = Column(Integer)
    matched_by = Column(String(32))
    matched_at = Column(DateTime(timezone=True))
    exclude_reason = Column(Text)
    created_at = Column(DateTime(timezone=True), default=utcnow)
