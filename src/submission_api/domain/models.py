"""SQLAlchemy ORM models for the submission store.

The table keeps the document shape of a submission:
- String(36) for UUID primary keys
- JSON for nested blocks, custom fields and list fields
- DateTime (naive UTC) for timestamps; documents carry them as aware UTC
"""

import uuid
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import Column, DateTime, Index, Integer, JSON, String, Text

from submission_api.infra.database import Base


def as_utc(moment: Optional[datetime]) -> Optional[datetime]:
    """Attach UTC to a stored naive timestamp for the wire format."""
    return moment.replace(tzinfo=timezone.utc) if moment is not None else None


class Submission(Base):
    """One intake record representing a lead or inquiry."""

    __tablename__ = "submissions"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))

    # Core fields (from the producer)
    name = Column(String(255), nullable=False)
    email = Column(String(255), nullable=False, index=True)
    phone = Column(String(50), nullable=True)
    message = Column(Text, nullable=True)
    date_of_first_contact = Column(String(64), nullable=False)  # ISO or "YYYY-MM-DD HH:MM:SS EST"

    # Categorization
    submission_type = Column(String(32), nullable=False, default="other", index=True)
    stage = Column(String(32), nullable=False, default="Initial Demand", index=True)
    source = Column(String(100), nullable=False, index=True)
    status = Column(String(20), nullable=False, default="new", index=True)
    priority = Column(String(20), nullable=False, default="medium", index=True)

    # Nested blocks
    moving_details = Column(JSON, nullable=False, default=dict)
    contact_details = Column(JSON, nullable=False, default=dict)
    service_details = Column(JSON, nullable=False, default=dict)
    custom_fields = Column(JSON, nullable=False, default=dict)
    # "metadata" is reserved on declarative classes
    meta = Column("metadata", JSON, nullable=False, default=dict)
    # Mirrors len(metadata.processingErrors) so the dashboard can filter in SQL
    processing_error_count = Column(Integer, nullable=False, default=0)

    # Staff workflow
    assigned_to = Column(String(255), nullable=True, index=True)
    internal_notes = Column(JSON, nullable=False, default=list)
    follow_up_date = Column(DateTime, nullable=True)
    last_contact_date = Column(DateTime, nullable=True)
    tags = Column(JSON, nullable=False, default=list)

    created_at = Column(DateTime, nullable=False, index=True)
    updated_at = Column(DateTime, nullable=False)

    __table_args__ = (
        Index("ix_submissions_status_priority", "status", "priority"),
        Index("ix_submissions_type_status", "submission_type", "status"),
        Index("ix_submissions_source_created", "source", "created_at"),
    )

    def to_document(self) -> dict:
        """Render the row in its wire (camelCase) document shape."""
        return {
            "id": self.id,
            "name": self.name,
            "email": self.email,
            "phone": self.phone,
            "message": self.message,
            "dateOfFirstContact": self.date_of_first_contact,
            "submissionType": self.submission_type,
            "stage": self.stage,
            "source": self.source,
            "status": self.status,
            "priority": self.priority,
            "movingDetails": dict(self.moving_details or {}),
            "contactDetails": dict(self.contact_details or {}),
            "serviceDetails": dict(self.service_details or {}),
            "customFields": dict(self.custom_fields or {}),
            "metadata": dict(self.meta or {}),
            "assignedTo": self.assigned_to,
            "internalNotes": list(self.internal_notes or []),
            "followUpDate": as_utc(self.follow_up_date),
            "lastContactDate": as_utc(self.last_contact_date),
            "tags": list(self.tags or []),
            "createdAt": as_utc(self.created_at),
            "updatedAt": as_utc(self.updated_at),
        }

    def to_summary(self) -> dict:
        """Compact projection used by the dashboard's recent list."""
        return {
            "id": self.id,
            "name": self.name,
            "email": self.email,
            "submissionType": self.submission_type,
            "stage": self.stage,
            "status": self.status,
            "createdAt": as_utc(self.created_at),
        }
