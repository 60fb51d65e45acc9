from datetime import datetime

from sqlalchemy import JSON, Boolean, Column, DateTime, Float, ForeignKey, Integer, String, Text
from sqlalchemy.orm import relationship

from souqote.database import Base


USER_TYPES = ("buyer", "vendor", "admin")
USER_STATUSES = ("pending", "approved", "rejected", "blocked", "deleted")


class Account(Base):
    """Credentials and sign-up metadata. The profile lives in `users`."""

    __tablename__ = "accounts"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String(255), unique=True, index=True, nullable=False)
    hashed_password = Column(String, nullable=False)
    user_metadata = Column(JSON, default=dict)
    created_at = Column(DateTime, default=datetime.utcnow)
    last_sign_in_at = Column(DateTime, nullable=True)

    profile = relationship("User", back_populates="account", uselist=False)


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, ForeignKey("accounts.id", ondelete="CASCADE"), primary_key=True)
    email = Column(String(255), unique=True, index=True, nullable=False)
    first_name = Column(String(100), nullable=False, default="")
    last_name = Column(String(100), nullable=False, default="")
    phone = Column(String(50), nullable=False, default="")
    user_type = Column(String(20), nullable=False, default="buyer", index=True)

    avatar_url = Column(String, nullable=True)
    bio = Column(Text, nullable=True)
    company_name = Column(String(255), nullable=True)
    business_license = Column(String(100), nullable=True)
    tax_id = Column(String(50), nullable=True)
    languages = Column(JSON, nullable=True)
    specialties = Column(JSON, nullable=True)

    is_verified = Column(Boolean, default=False, nullable=False)
    rating = Column(Float, default=0.0, nullable=False)
    total_rfqs = Column(Integer, default=0, nullable=False)
    total_quotes = Column(Integer, default=0, nullable=False)

    # Moderation
    status = Column(String(20), default="pending", nullable=False, index=True)
    is_deleted = Column(Boolean, default=False, nullable=False)
    status_updated_at = Column(DateTime, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    account = relationship("Account", back_populates="profile")
    vendor_profile = relationship("VendorProfile", back_populates="user", uselist=False)


class UserAction(Base):
    __tablename__ = "user_actions"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    admin_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    action_type = Column(String(20), nullable=False)
    notes = Column(Text, nullable=True)
    previous_status = Column(String(20), nullable=True)
    new_status = Column(String(20), nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)

    user = relationship("User", foreign_keys=[user_id])
    admin = relationship("User", foreign_keys=[admin_id])
