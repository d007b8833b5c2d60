from sqlalchemy import Column, String, Boolean, DateTime
from kol360.database import Base, new_id, utcnow


class DiseaseArea(Base):
    __tablename__ = "disease_areas"

    id = Column(String(32), primary_key=True, default=new_id)
    code = Column(String(50), unique=True, nullable=False)
    name = Column(String(100), nullable=False)
    therapeutic_area = Column(String(100), nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime(timezone=True), default=utcnow)
