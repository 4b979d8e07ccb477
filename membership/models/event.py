"""
Event Model
Events own their registration list
"""

from sqlalchemy import Column, String, Integer, Boolean, DateTime, ForeignKey, JSON, Text, CheckConstraint
from membership.database import Base


class Event(Base):
    __tablename__ = "events"

    id = Column(String(36), primary_key=True)
    title = Column(String(200), nullable=False)
    description = Column(Text, nullable=False)
    date = Column(DateTime(timezone=True), nullable=False, index=True)
    time = Column(String(5), nullable=False)
    location = Column(String(200), nullable=False)

    event_type = Column(String(20), nullable=False, index=True)  # 'college-specific' or 'open-to-all'
    target_college_id = Column(String(36), ForeignKey("colleges.id"), nullable=True, index=True)
    max_attendees = Column(Integer, nullable=False)
    category = Column(String(20), nullable=False, default="other")

    # {"admin_id", "name", "contact"}
    organizer = Column(JSON, nullable=False)
    # [{"user_id", "registered_at", "status"}]
    registrations = Column(JSON, nullable=False, default=list)
    requirements = Column(JSON, nullable=False, default=list)
    prizes = Column(JSON, nullable=False, default=list)

    registration_deadline = Column(DateTime(timezone=True), nullable=False)

    # Status
    is_active = Column(Boolean, default=True, index=True)
    created_at = Column(DateTime(timezone=True), nullable=False)
    updated_at = Column(DateTime(timezone=True), nullable=False)
    version = Column(Integer, nullable=False, default=1)

    __table_args__ = (
        CheckConstraint("max_attendees BETWEEN 1 AND 10000", name="ck_events_max_attendees"),
    )
