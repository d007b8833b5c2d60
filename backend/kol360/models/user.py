from sqlalchemy import Column, String, DateTime, ForeignKey
from kol360.database import Base, new_id, utcnow


class User(Base):
    __tablename__ = "users"

    id = Column(String(32), primary_key=True, default=new_id)
    email = Column(String(255), unique=True, nullable=False, index=True)
    first_name = Column(String(100))
    last_name = Column(String(100))
    role = Column(String(20), nullable=False, default="TEAM_MEMBER")  # PLATFORM_ADMIN | CLIENT_ADMIN | TEAM_MEMBER
    status = Column(String(30), nullable=False, default="PENDING_VERIFICATION")
    client_id = Column(String(32), ForeignKey("clients.id"), index=True)
    password_hash = Column(String(100))
    last_login_at = Column(DateTime(timezone=True))
    created_at = Column(DateTime(timezone=True), default=utcnow)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)
