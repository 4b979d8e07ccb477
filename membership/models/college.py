"""
College Model
Colleges own their tenure-head history
"""

from sqlalchemy import Column, String, Integer, Boolean, DateTime, JSON
from membership.database import Base


class College(Base):
    __tablename__ = "colleges"

    id = Column(String(36), primary_key=True)
    name = Column(String(200), unique=True, nullable=False)
    code = Column(String(10), unique=True, nullable=False, index=True)
    location = Column(String(200), nullable=False)
    address = Column(String(500), nullable=False)

    # {"email": ..., "phone": ..., "website": ...}
    contact_info = Column(JSON, nullable=False)

    # [{"id", "admin_id", "batch_year", "start_date", "end_date", "is_active"}]
    tenure_heads = Column(JSON, nullable=False, default=list)

    # Status
    is_active = Column(Boolean, default=True, index=True)
    created_at = Column(DateTime(timezone=True), nullable=False)
    updated_at = Column(DateTime(timezone=True), nullable=False)
    version = Column(Integer, nullable=False, default=1)
