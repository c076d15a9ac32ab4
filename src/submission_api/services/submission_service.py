"""Submission lifecycle: create, read, list, replace, status updates, delete.

Validation failures surface as ``ValidationError``; unknown ids as
``NotFoundError``; malformed ids as ``InvalidIdentifierError``. Storage
failures arrive from the store already mapped to ``PersistenceError``.

There is no enforced stage/status transition graph: any stage or status may
follow any other.
"""

import asyncio
import logging
import uuid
from typing import Any, Optional, Type, TypeVar

import pydantic
from pydantic import BaseModel
from pydantic.alias_generators import to_snake

from submission_api.domain.enums import SubmissionType
from submission_api.domain.errors import InvalidIdentifierError, NotFoundError, ValidationError
from submission_api.domain.schemas import StatusUpdate, SubmissionCreate, SubmissionReplace
from submission_api.infra.submission_store import SubmissionStore
from submission_api.services.priority_classifier import apply_auto_priority
from submission_api.services.query_builder import ListParams, Pagination, SubmissionQuery, build_query
from submission_api.services.timestamps import local_timestamp

logger = logging.getLogger(__name__)

M = TypeVar("M", bound=BaseModel)


def _field_errors(exc: pydantic.ValidationError) -> list[str]:
    """Flatten Pydantic errors into "<field>: <message>" strings."""
    errors = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error["loc"]) or "body"
        errors.append(f"{location}: {error['msg']}")
    return errors


def _validate(schema: Type[M], payload: Any) -> M:
    if not isinstance(payload, dict):
        raise ValidationError("Validation failed", ["body: must be a JSON object"])
    try:
        return schema.model_validate(payload)
    except pydantic.ValidationError as e:
        raise ValidationError("Validation failed", _field_errors(e)) from e


# Set by the store, never by a payload
_STORE_FIELDS = ("id", "createdAt", "updatedAt")


def _merge_over(existing: dict, payload: dict) -> dict:
    """Overlay ``payload`` on a stored document. Sent fields win, omitted ones are kept."""
    sent = {to_snake(key) for key in payload}
    if "meta" in sent:
        sent.add("metadata")
    merged = {
        key: value
        for key, value in existing.items()
        if key not in _STORE_FIELDS and to_snake(key) not in sent
    }
    merged.update(payload)
    return merged


def _canonical_id(submission_id: Any) -> str:
    """Normalize a UUID string, or raise InvalidIdentifierError."""
    try:
        return str(uuid.UUID(str(submission_id)))
    except (TypeError, ValueError) as e:
        raise InvalidIdentifierError(str(submission_id)) from e


class SubmissionService:
    """Lifecycle operations over a ``SubmissionStore``."""

    def __init__(self, store: SubmissionStore):
        self.store = store

    async def create(
        self,
        payload: Any,
        client_ip: Optional[str] = None,
        user_agent: Optional[str] = None,
    ) -> dict:
        """Validate, auto-prioritize and persist a new submission."""
        if isinstance(payload, dict):
            payload = apply_auto_priority(payload)
        submission = _validate(SubmissionCreate, payload)

        record = submission.to_record()
        record["date_of_first_contact"] = record["date_of_first_contact"] or local_timestamp()
        meta = record["meta"]
        meta["processedAt"] = meta.get("processedAt") or local_timestamp()
        meta["ipAddress"] = meta.get("ipAddress") or client_ip
        meta["userAgent"] = meta.get("userAgent") or user_agent

        saved = await self.store.insert(record)
        logger.info(
            "Submission created: id=%s type=%s source=%s priority=%s",
            saved["id"], saved["submissionType"], saved["source"], saved["priority"],
        )

        processing_errors = saved["metadata"].get("processingErrors") or []
        if processing_errors:
            logger.warning(
                "Submission %s arrived with %d processing errors: %s",
                saved["id"], len(processing_errors), "; ".join(processing_errors),
            )
        return saved

    async def get(self, submission_id: str) -> dict:
        sid = _canonical_id(submission_id)
        submission = await self.store.find_by_id(sid)
        if submission is None:
            raise NotFoundError(sid)
        return submission

    async def list_submissions(self, params: ListParams) -> dict:
        """Filtered, searched, sorted and paginated listing."""
        query = build_query(params)
        submissions, total = await asyncio.gather(
            self.store.find_many(query),
            self.store.count(query),
        )
        pagination = Pagination.build(total, query.page, query.limit)
        logger.debug("Listed %d of %d submissions (filters=%s)", len(submissions), total, query.filters)
        return {
            "submissions": submissions,
            "pagination": pagination.to_dict(),
            "filters": query.applied_filters(),
        }

    async def list_by_type(self, submission_type: str) -> dict:
        """Every submission of one type, newest first."""
        try:
            kind = SubmissionType(submission_type)
        except ValueError as e:
            allowed = ", ".join(t.value for t in SubmissionType)
            raise ValidationError(
                "Validation failed", [f"type: must be one of: {allowed}"]
            ) from e
        query = SubmissionQuery(filters={"submission_type": kind.value})
        submissions = await self.store.find_many(query, paginate=False)
        return {"submissions": submissions, "type": kind.value, "count": len(submissions)}

    async def replace(self, submission_id: str, payload: Any) -> dict:
        """Update with full re-validation.

        Fields the payload omits keep their stored values, so a name-only edit
        leaves stage, status, priority and tags alone. A ``metadata`` object
        that is sent replaces the stored one, except for the creation facts
        (processedAt, ipAddress, userAgent, originalText) it leaves out.
        """
        sid = _canonical_id(submission_id)
        existing = await self.store.find_by_id(sid)
        if existing is None:
            raise NotFoundError(sid)

        if isinstance(payload, dict):
            payload = _merge_over(existing, payload)
        submission = _validate(SubmissionReplace, payload)
        record = submission.to_record()
        record["date_of_first_contact"] = (
            record["date_of_first_contact"] or existing["dateOfFirstContact"]
        )
        previous_meta = existing["metadata"]
        meta = record["meta"]
        for key in ("processedAt", "ipAddress", "userAgent", "originalText"):
            meta[key] = meta.get(key) or previous_meta.get(key)

        updated = await self.store.update_by_id(sid, record)
        if updated is None:
            raise NotFoundError(sid)
        logger.info("Submission %s replaced", sid)
        return updated

    async def update_status(self, submission_id: str, payload: Any) -> dict:
        """Change any of stage, status, priority, assignedTo. Other keys are ignored."""
        sid = _canonical_id(submission_id)
        changes = _validate(StatusUpdate, payload).changes()
        if not changes:
            raise ValidationError(
                "No status fields to update",
                ["body: provide at least one of stage, status, priority, assignedTo"],
            )

        updated = await self.store.update_by_id(sid, changes)
        if updated is None:
            raise NotFoundError(sid)
        logger.info("Submission %s status updated: %s", sid, changes)
        return updated

    async def delete(self, submission_id: str) -> dict:
        sid = _canonical_id(submission_id)
        if not await self.store.delete_by_id(sid):
            raise NotFoundError(sid)
        logger.info("Submission %s deleted", sid)
        return {"deletedId": sid}

    async def bulk_update_status(self, payload: Any) -> dict:
        """Apply one status update to many submissions.

        Ids that are malformed or unknown simply do not match. ``modified``
        counts only records whose values actually changed, so it may be lower
        than ``matched``.
        """
        if not isinstance(payload, dict):
            raise ValidationError("Validation failed", ["body: must be a JSON object"])

        ids = payload.get("ids")
        if not isinstance(ids, list) or not ids:
            raise ValidationError("IDs array is required", ["ids: must be a non-empty list"])

        updates = payload.get("updates")
        if not isinstance(updates, dict) or not updates:
            raise ValidationError("Updates object is required", ["updates: must be a non-empty object"])

        changes = _validate(StatusUpdate, updates).changes()
        if not changes:
            raise ValidationError(
                "No status fields to update",
                ["updates: provide at least one of stage, status, priority, assignedTo"],
            )

        valid_ids = []
        for raw_id in ids:
            try:
                valid_ids.append(_canonical_id(raw_id))
            except InvalidIdentifierError:
                logger.warning("Bulk update skipping malformed id %r", raw_id)

        matched, modified = (0, 0)
        if valid_ids:
            matched, modified = await self.store.update_many(valid_ids, changes)
        logger.info(
            "Bulk update: %d requested, %d matched, %d modified", len(ids), matched, modified
        )
        return {"matched": matched, "modified": modified}
