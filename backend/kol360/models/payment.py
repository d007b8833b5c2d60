from sqlalchemy import Column, String, Integer, Float, Text, DateTime, ForeignKey
from kol360.database import Base, new_id, utcnow


class Payment(Base):
    __tablename__ = "payments"

    id = Column(String(32), primary_key=True, default=new_id)
    campaign_id = Column(String(32), ForeignKey("campaigns.id", ondelete="CASCADE"), nullable=False, index=True)
    hcp_id = Column(String(32), ForeignKey("hcps.id"), nullable=False)
    response_id = Column(String(32), ForeignKey("survey_responses.id"), unique=True)
    amount = Column(Float, nullable=False)
    currency = Column(String(3), default="USD")
    status = Column(String(20), nullable=False, default="PENDING_EXPORT", index=True)
    export_batch_id = Column(String(32), ForeignKey("payment_export_batches.id"))
    exported_at = Column(DateTime(timezone=True))
    status_updated_at = Column(DateTime(timezone=True))
    created_at = Column(DateTime(timezone=True), default=utcnow)


class PaymentStatusHistory(Base):
    __tablename__ = "payment_status_history"

    id = Column(String(32), primary_key=True, default=new_id)
    payment_id = Column(String(32), ForeignKey("payments.id", ondelete="CASCADE"), nullable=False, index=True)
    old_status = Column(String(20))
    new_status = Column(String(20), nullable=False)
    changed_by = Column(String(32))
    note = Column(Text)
    created_at = Column(DateTime(timezone=True), default=utcnow)


class PaymentExportBatch(Base):
    __tablename__ = "payment_export_batches"

    id = Column(String(32), primary_key=True, default=new_id)
    campaign_id = Column(String(32), ForeignKey("campaigns.id", ondelete="CASCADE"), nullable=False)
    file_name = Column(String(255), nullable=False)
    record_count = Column(Integer, nullable=False)
    exported_by = Column(String(32))
    created_at = Column(DateTime(timezone=True), default=utcnow)


class PaymentImportBatch(Base):
    __tablename__ = "payment_import_batches"

    id = Column(String(32), primary_key=True, default=new_id)
    campaign_id = Column(String(32), ForeignKey("campaigns.id", ondelete="CASCADE"), nullable=False)
    file_name = Column(String(255))
    total_rows = Column(Integer, default=0)
    updated_rows = Column(Integer, default=0)
    error_rows = Column(Integer, default=0)
    imported_by = Column(String(32))
    created_at = Column(DateTime(timezone=True), default=utcnow)
