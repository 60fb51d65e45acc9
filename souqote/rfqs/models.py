from datetime import datetime

from sqlalchemy import JSON, Boolean, Column, DateTime, Float, ForeignKey, Integer, String, Text
from sqlalchemy.orm import relationship

from souqote.database import Base


RFQ_STATUSES = ("open", "in_progress", "awarded", "cancelled", "expired")
URGENCY_LEVELS = ("low", "medium", "high")
ITEM_UNITS = ("PCS", "KG", "MTR", "SQM", "CBM", "LTR", "SET", "PAIR", "BOX", "ROLL")


class RFQ(Base):
    __tablename__ = "rfqs"

    id = Column(Integer, primary_key=True, index=True)
    buyer_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)

    rfq_reference = Column(String(100), nullable=True)
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=False)
    category = Column(String(150), nullable=False, index=True)
    location = Column(String(255), nullable=False)
    budget_min = Column(Float, nullable=True)
    budget_max = Column(Float, nullable=True)
    urgency = Column(String(10), default="medium", nullable=False)
    deadline = Column(DateTime, nullable=False, index=True)
    status = Column(String(20), default="open", nullable=False, index=True)

    images = Column(JSON, default=list)
    specifications = Column(Text, nullable=True)
    requirements = Column(JSON, default=list)
    items = Column(JSON, default=list)

    # Commercial terms
    payment_terms = Column(Text, nullable=True)
    delivery_terms = Column(Text, nullable=True)
    delivery_date = Column(DateTime, nullable=True)
    delivery_location = Column(String(255), nullable=True)
    vat_applicable = Column(Boolean, default=False, nullable=False)
    vat_rate = Column(Float, default=5, nullable=False)
    quotation_validity_days = Column(Integer, default=30, nullable=False)
    warranty_requirements = Column(Text, nullable=True)
    installation_required = Column(Boolean, default=False, nullable=False)
    installation_specifications = Column(Text, nullable=True)
    currency = Column(String(3), default="AED", nullable=False)
    terms_conditions = Column(Text, nullable=True)

    # Contact
    contact_person_name = Column(String(150), nullable=True)
    contact_person_role = Column(String(150), nullable=True)
    contact_person_phone = Column(String(50), nullable=True)
    project_reference = Column(String(100), nullable=True)
    service_type = Column(String(100), nullable=True)

    awarded_quote_id = Column(Integer, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow, index=True)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    buyer = relationship("User")
    quotes = relationship(
        "Quote",
        back_populates="rfq",
        cascade="all, delete-orphan",
    )
    messages = relationship(
        "Message",
        back_populates="rfq",
        cascade="all, delete-orphan",
    )
