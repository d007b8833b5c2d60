from sqlalchemy import Column, String, Integer, Boolean, Text, DateTime, JSON, ForeignKey, UniqueConstraint
from kol360.database import Base, new_id, utcnow


class Question(Base):
    __tablename__ = "questions"

    id = Column(String(32), primary_key=True, default=new_id)
    text = Column(Text, nullable=False)
    type = Column(String(20), nullable=False)
    category = Column(String(100))
    is_required = Column(Boolean, default=False)
    options = Column(JSON)  # [{"text": "...", "requires_text": false}]
    tags = Column(JSON, default=list)
    min_entries = Column(Integer)
    default_entries = Column(Integer)
    nomination_type = Column(String(30))
    status = Column(String(10), nullable=False, default="active")  # active | archived
    usage_count = Column(Integer, default=0, nullable=False)
    created_at = Column(DateTime(timezone=True), default=utcnow)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)


class SectionTemplate(Base):
    __tablename__ = "section_templates"

    id = Column(String(32), primary_key=True, default=new_id)
    name = Column(String(100), nullable=False)
    description = Column(Text)
    is_core = Column(Boolean, default=False)
    created_at = Column(DateTime(timezone=True), default=utcnow)


class SectionQuestion(Base):
    __tablename__ = "section_questions"
    __table_args__ = (UniqueConstraint("section_id", "question_id"),)

    id = Column(String(32), primary_key=True, default=new_id)
    section_id = Column(String(32), ForeignKey("section_templates.id", ondelete="CASCADE"), nullable=False, index=True)
    question_id = Column(String(32), ForeignKey("questions.id"), nullable=False)
    sort_order = Column(Integer, nullable=False, default=0)


class SurveyTemplate(Base):
    __tablename__ = "survey_templates"

    id = Column(String(32), primary_key=True, default=new_id)
    name = Column(String(100), nullable=False)
    description = Column(Text)
    created_at = Column(DateTime(timezone=True), default=utcnow)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)


class TemplateSection(Base):
    __tablename__ = "template_sections"
    __table_args__ = (UniqueConstraint("template_id", "section_id"),)

    id = Column(String(32), primary_key=True, default=new_id)
    template_id = Column(String(32), ForeignKey("survey_templates.id", ondelete="CASCADE"), nullable=False, index=True)
    section_id = Column(String(32), ForeignKey("section_templates.id"), nullable=False)
    sort_order = Column(Integer, nullable=False, default=0)


class SurveyQuestion(Base):
    """A question as it appears in one campaign's survey."""

    __tablename__ = "survey_questions"

    id = Column(String(32), primary_key=True, default=new_id)
    campaign_id = Column(String(32), ForeignKey("campaigns.id", ondelete="CASCADE"), nullable=False, index=True)
    question_id = Column(String(32), ForeignKey("questions.id"), nullable=False)
    section_name = Column(String(100))
    sort_order = Column(Integer, nullable=False, default=0)
    is_required = Column(Boolean, default=False)
    question_text_snapshot = Column(Text, nullable=False)
    nomination_type = Column(String(30))
