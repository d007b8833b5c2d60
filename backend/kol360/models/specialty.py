from sqlalchemy import Column, String, Boolean, DateTime
from kol360.database import Base, new_id, utcnow


class Specialty(Base):
    __tablename__ = "specialties"

    id = Column(String(32), primary_key=True, default=new_id)
    name = Column(String(100), unique=True, nullable=False)
    code = Column(String(50))
    category = Column(String(100))
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime(timezone=True), default=utcnow)
