"""
User Model
Society members
"""

from sqlalchemy import Column, String, Integer, Boolean, DateTime, ForeignKey
from membership.database import Base


class User(Base):
    __tablename__ = "users"

    id = Column(String(36), primary_key=True)
    full_name = Column(String(100), nullable=False)
    email = Column(String(255), unique=True, nullable=False, index=True)
    phone = Column(String(20), nullable=False)

    # College as typed at registration, plus the resolved reference
    college = Column(String(200), nullable=False)
    college_id = Column(String(36), ForeignKey("colleges.id"), nullable=True, index=True)
    batch_year = Column(String(10), nullable=False, index=True)

    role = Column(String(20), nullable=False, default="other", index=True)
    photo_url = Column(String, nullable=True)
    member_id = Column(String(30), unique=True, nullable=False, index=True)

    # Status
    is_active = Column(Boolean, default=True, index=True)
    created_at = Column(DateTime(timezone=True), nullable=False)
    updated_at = Column(DateTime(timezone=True), nullable=False)
    version = Column(Integer, nullable=False, default=1)
