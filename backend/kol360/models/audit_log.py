from sqlalchemy import Column, String, DateTime, JSON, ForeignKey
from kol360.database import Base, new_id, utcnow


class AuditLog(Base):
    __tablename__ = "audit_logs"

    id = Column(String(32), primary_key=True, default=new_id)
    user_id = Column(String(32), ForeignKey("users.id"), nullable=False)
    action = Column(String(100), nullable=False, index=True)
    entity_type = Column(String(50), nullable=False)
    entity_id = Column(String(32), index=True)
    old_values = Column(JSON)
    new_values = Column(JSON)
    details = Column(JSON)
    tenant_id = Column(String(32))
    created_at = Column(DateTime(timezone=True), default=utcnow, index=True)
