"""Pydantic v2 schemas for submission payloads.

Wire names are camelCase; attributes are snake_case. All free-text strings
are trimmed on the way in.
"""

from datetime import datetime, timezone
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, JsonValue, field_validator, model_validator
from pydantic.alias_generators import to_camel

from submission_api.app.config import get_settings
from submission_api.domain.enums import (
    NOT_FOUND,
    NOT_SPECIFIED,
    Priority,
    Stage,
    SubmissionStatus,
    SubmissionType,
)


class _WireModel(BaseModel):
    """Base for all payload schemas."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        str_strip_whitespace=True,
        coerce_numbers_to_str=True,
        extra="ignore",
    )


def _dedupe(values: list[str]) -> list[str]:
    """Drop blanks and duplicates, keeping first-seen order."""
    seen: list[str] = []
    for value in values:
        if value and value not in seen:
            seen.append(value)
    return seen


# ---------------------------------------------------------------------------
# Nested detail blocks
# ---------------------------------------------------------------------------


class _DetailBlock(_WireModel):
    """Detail fields are always present; unknown values carry a sentinel."""

    @field_validator("*", mode="before")
    @classmethod
    def _blank_to_sentinel(cls, value, info):
        if value is None or (isinstance(value, str) and not value.strip()):
            return cls.model_fields[info.field_name].default
        return value


class MovingDetails(_DetailBlock):
    moving_date: str = NOT_FOUND
    first_address: str = NOT_FOUND
    second_address: str = NOT_FOUND
    housing_type_depart: str = NOT_SPECIFIED
    housing_type_dest: str = NOT_SPECIFIED
    number_of_rooms: str = NOT_SPECIFIED
    packing_services: str = NOT_SPECIFIED
    current_stage: str = NOT_SPECIFIED
    destination_stage: str = NOT_SPECIFIED
    department_elevator: str = NOT_SPECIFIED
    destination_elevator: str = NOT_SPECIFIED
    can_call: str = NOT_SPECIFIED
    preferred_call_time: str = NOT_SPECIFIED


class ContactDetails(_DetailBlock):
    company: str = NOT_FOUND
    subject: str = NOT_FOUND
    preferred_contact_method: str = NOT_SPECIFIED
    best_time_to_contact: str = NOT_SPECIFIED


class ServiceDetails(_DetailBlock):
    service_type: str = NOT_FOUND
    service_address: str = NOT_FOUND
    service_date: str = NOT_SPECIFIED
    budget: str = NOT_SPECIFIED
    urgency: str = NOT_SPECIFIED


class SubmissionMetadata(_WireModel):
    """Operational envelope. Unknown keys are kept as-is."""

    model_config = ConfigDict(extra="allow")

    processed_at: str | None = None
    original_text: str | None = None
    processing_errors: list[str] = Field(default_factory=list)
    tags: list[str] = Field(default_factory=list)
    ip_address: str | None = None
    user_agent: str | None = None

    @field_validator("tags")
    @classmethod
    def _unique_tags(cls, value: list[str]) -> list[str]:
        return _dedupe(value)


# ---------------------------------------------------------------------------
# Submission payloads
# ---------------------------------------------------------------------------


class SubmissionBase(_WireModel):
    """Fields a producer may send. Shared by create and replace."""

    name: str = Field(min_length=1)
    email: str = Field(min_length=1)
    phone: str | None = None
    message: str | None = None
    date_of_first_contact: datetime | str | None = None

    submission_type: SubmissionType = SubmissionType.OTHER
    stage: Stage = Stage.INITIAL_DEMAND
    source: str | None = Field(default=None, validate_default=True)
    status: SubmissionStatus = SubmissionStatus.NEW
    priority: Priority | None = None

    moving_details: MovingDetails = Field(default_factory=MovingDetails)
    contact_details: ContactDetails = Field(default_factory=ContactDetails)
    service_details: ServiceDetails = Field(default_factory=ServiceDetails)
    custom_fields: dict[str, JsonValue] = Field(default_factory=dict)
    meta: SubmissionMetadata = Field(default_factory=SubmissionMetadata, alias="metadata")

    @model_validator(mode="before")
    @classmethod
    def _fold_legacy_processing_errors(cls, data: Any) -> Any:
        """Older parser payloads carry processingErrors at the top level."""
        if not isinstance(data, dict) or "processingErrors" not in data:
            return data
        legacy = data.get("processingErrors")
        metadata = data.get("metadata")
        if not isinstance(legacy, list) or not (metadata is None or isinstance(metadata, dict)):
            return data
        data = dict(data)
        metadata = dict(metadata or {})
        metadata["processingErrors"] = list(metadata.get("processingErrors") or []) + legacy
        data["metadata"] = metadata
        data.pop("processingErrors")
        return data

    @field_validator("email")
    @classmethod
    def _lowercase_email(cls, value: str) -> str:
        return value.lower()

    @field_validator("phone", "message")
    @classmethod
    def _blank_to_none(cls, value: str | None) -> str | None:
        return value or None

    @field_validator("source")
    @classmethod
    def _check_source(cls, value: str | None) -> str:
        settings = get_settings()
        if not value:
            return settings.default_source
        allowed = settings.allowed_sources_list
        if allowed and value not in allowed:
            raise ValueError(f"must be one of: {', '.join(allowed)}")
        return value

    def to_record(self) -> dict[str, Any]:
        """Column values for the store (snake_case, enums as plain strings)."""
        first_contact = self.date_of_first_contact
        if isinstance(first_contact, datetime):
            first_contact = first_contact.isoformat()
        return {
            "name": self.name,
            "email": self.email,
            "phone": self.phone,
            "message": self.message,
            "date_of_first_contact": first_contact,
            "submission_type": self.submission_type.value,
            "stage": self.stage.value,
            "source": self.source,
            "status": self.status.value,
            "priority": (self.priority or Priority.MEDIUM).value,
            "moving_details": self.moving_details.model_dump(by_alias=True),
            "contact_details": self.contact_details.model_dump(by_alias=True),
            "service_details": self.service_details.model_dump(by_alias=True),
            "custom_fields": dict(self.custom_fields),
            "meta": self.meta.model_dump(by_alias=True),
        }


class SubmissionCreate(SubmissionBase):
    """Ingest payload. Staff-workflow fields are not accepted from producers."""


class SubmissionReplace(SubmissionBase):
    """Full update payload; staff-workflow fields may be set here."""

    assigned_to: str | None = None
    internal_notes: list[str] = Field(default_factory=list)
    follow_up_date: datetime | None = None
    last_contact_date: datetime | None = None
    tags: list[str] = Field(default_factory=list)

    @field_validator("assigned_to")
    @classmethod
    def _blank_assignee(cls, value: str | None) -> str | None:
        return value or None

    @field_validator("tags")
    @classmethod
    def _unique_tags(cls, value: list[str]) -> list[str]:
        return _dedupe(value)

    @field_validator("follow_up_date", "last_contact_date")
    @classmethod
    def _naive_utc(cls, value: datetime | None) -> datetime | None:
        # The store keeps naive UTC
        if value is not None and value.tzinfo is not None:
            return value.astimezone(timezone.utc).replace(tzinfo=None)
        return value

    def to_record(self) -> dict[str, Any]:
        record = super().to_record()
        record.update(
            assigned_to=self.assigned_to,
            internal_notes=list(self.internal_notes),
            follow_up_date=self.follow_up_date,
            last_contact_date=self.last_contact_date,
            tags=list(self.tags),
        )
        return record


class StatusUpdate(_WireModel):
    """Workflow fields a partial or bulk status update may change."""

    stage: Stage | None = None
    status: SubmissionStatus | None = None
    priority: Priority | None = None
    assigned_to: str | None = None

    def changes(self) -> dict[str, str]:
        """Column values for the fields actually supplied."""
        values = {
            "stage": self.stage.value if self.stage else None,
            "status": self.status.value if self.status else None,
            "priority": self.priority.value if self.priority else None,
            "assigned_to": self.assigned_to or None,
        }
        return {key: value for key, value in values.items() if value is not None}
