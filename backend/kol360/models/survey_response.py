from sqlalchemy import Column, String, Text, DateTime, JSON, ForeignKey, UniqueConstraint
from kol360.database import Base, new_id, utcnow


class SurveyResponse(Base):
    __tablename__ = "survey_responses"

    id = Column(String(32), primary_key=True, default=new_id)
    campaign_id = Column(String(32), ForeignKey("campaigns.id", ondelete="CASCADE"), nullable=False, index=True)
    respondent_hcp_id = Column(String(32), ForeignKey("hcps.id"), nullable=False)
    survey_token = Column(String(64), unique=True, nullable=False, index=True)
    status = Column(String(20), nullable=False, default="PENDING")
    ip_address = Column(String(64))
    started_at = Column(DateTime(timezone=True))
    completed_at = Column(DateTime(timezone=True))
    created_at = Column(DateTime(timezone=True), default=utcnow)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)


class SurveyResponseAnswer(Base):
    __tablename__ = "survey_response_answers"
    __table_args__ = (UniqueConstraint("response_id", "question_id"),)

    id = Column(String(32), primary_key=True, default=new_id)
    response_id = Column(String(32), ForeignKey("survey_responses.id", ondelete="CASCADE"), nullable=False, index=True)
    question_id = Column(String(32), ForeignKey("survey_questions.id"), nullable=False)
    answer_text = Column(Text)
    answer_json = Column(JSON)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)
