from sqlalchemy import Column, Integer, String, Boolean, DateTime
from kol360.database import Base, utcnow


class SystemSetting(Base):
    """Singleton row (id=1) with settings editable at runtime from the admin UI."""

    __tablename__ = "system_settings"

    id = Column(Integer, primary_key=True, default=1)
    send_external_email = Column(Boolean)
    email_mock_mode = Column(Boolean)
    ses_from_email = Column(String(255))
    ses_from_name = Column(String(255))
    health_check_token = Column(String(255))
    updated_by = Column(String(32))
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)
