"""
Admin Model
Super admins and college admins share one table, discriminated by role
"""

from sqlalchemy import Column, String, Integer, Boolean, DateTime, ForeignKey, JSON, Index
from membership.database import Base


class Admin(Base):
    __tablename__ = "admins"

    id = Column(String(36), primary_key=True)

    # Login credentials
    username = Column(String(20), unique=True, nullable=False, index=True)
    email = Column(String(255), unique=True, nullable=False, index=True)
    password_hash = Column(String(255), nullable=False)
    full_name = Column(String(100), nullable=False)
    role = Column(String(20), nullable=False, index=True)  # 'super-admin' or 'admin'

    # Tenure (college admins only)
    assigned_college_id = Column(String(36), ForeignKey("colleges.id"), nullable=True)
    batch_year = Column(Integer, nullable=True)
    tenure = Column(JSON, nullable=True)

    # Status
    is_active = Column(Boolean, default=True, index=True)
    last_login = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False)
    updated_at = Column(DateTime(timezone=True), nullable=False)
    version = Column(Integer, nullable=False, default=1)

    __table_args__ = (
        # NULL college ids never collide, so only active tenures are constrained
        Index("uq_admins_active_tenure", "assigned_college_id", "batch_year", unique=True),
    )
