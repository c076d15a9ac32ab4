"""Domain enumerations for the submission pipeline.

All enums use the (str, Enum) pattern to ensure JSON serialization compatibility.
"""

from enum import Enum


class SubmissionType(str, Enum):
    """Category of an inbound submission; selects the relevant detail block."""

    MOVING = "moving"
    CONTACT = "contact"
    QUOTE = "quote"
    SERVICE_REQUEST = "service_request"
    OTHER = "other"


class Stage(str, Enum):
    """Position of a lead in the sales pipeline."""

    INITIAL_DEMAND = "Initial Demand"
    QUOTE_SENT = "Quote Sent"
    WAITING = "Waiting"
    NEGOTIATION = "Negotiation"
    WON = "Won"
    LOST = "Lost"


class SubmissionStatus(str, Enum):
    """Operational state of a submission record."""

    NEW = "new"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    ARCHIVED = "archived"
    SPAM = "spam"


class Priority(str, Enum):
    """Urgency classification. URGENT is what the auto-classifier assigns."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    URGENT = "urgent"
    CRITICAL = "critical"


# Sentinels for detail fields the upstream parser could not fill.
NOT_FOUND = "NOT FOUND"
NOT_SPECIFIED = "NOT SPECIFIED"
