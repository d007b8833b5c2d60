from sqlalchemy import Column, String, Boolean, DateTime
from kol360.database import Base, new_id, utcnow


class Client(Base):
    __tablename__ = "clients"

    id = Column(String(32), primary_key=True, default=new_id)
    name = Column(String(100), nullable=False)
    type = Column(String(10), nullable=False, default="FULL")  # FULL | LITE
    is_lite = Column(Boolean, default=False)
    logo_url = Column(String(500))
    primary_color = Column(String(7), default="#0066CC")
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime(timezone=True), default=utcnow)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)
