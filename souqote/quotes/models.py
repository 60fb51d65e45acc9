from datetime import datetime

from sqlalchemy import JSON, Column, DateTime, Float, ForeignKey, Integer, String, Text
from sqlalchemy.orm import relationship

from souqote.database import Base


QUOTE_STATUSES = ("pending", "accepted", "rejected", "expired", "withdrawn")


class Quote(Base):
    __tablename__ = "quotes"

    id = Column(Integer, primary_key=True, index=True)
    rfq_id = Column(Integer, ForeignKey("rfqs.id", ondelete="CASCADE"), nullable=False, index=True)
    vendor_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)

    price = Column(Float, nullable=False)
    currency = Column(String(3), default="AED", nullable=False)
    validity_period = Column(Integer, default=30, nullable=False)
    delivery_time = Column(String(100), nullable=False)
    message = Column(Text, nullable=False)
    terms_conditions = Column(Text, nullable=True)
    status = Column(String(20), default="pending", nullable=False, index=True)
    attachments = Column(JSON, default=list)
    items = Column(JSON, default=list)

    valid_until = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, index=True)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    rfq = relationship("RFQ", back_populates="quotes")
    vendor = relationship("User")
