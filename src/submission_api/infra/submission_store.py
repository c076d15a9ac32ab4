"""Document-style persistence for submissions.

Every operation opens its own session from the factory, so independent
reads (the dashboard) can run concurrently. Each call is bounded by the
configured storage timeout; timeouts and SQLAlchemy failures surface as
``PersistenceError``.
"""

import asyncio
import logging
from datetime import datetime
from typing import Any, Awaitable, Callable, Optional, TypeVar

from sqlalchemy import delete, func, or_, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from submission_api.app.config import get_settings
from submission_api.domain.errors import PersistenceError
from submission_api.domain.models import Submission, as_utc
from submission_api.infra.database import async_session
from submission_api.services.query_builder import SEARCH_FIELDS, SubmissionQuery
from submission_api.services.timestamps import next_update_time, utcnow

logger = logging.getLogger(__name__)

T = TypeVar("T")


def _escape_like(term: str) -> str:
    return term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def _error_count(meta: Optional[dict]) -> int:
    return len((meta or {}).get("processingErrors") or [])


def _conditions(query: SubmissionQuery) -> list:
    conditions = [getattr(Submission, column) == value for column, value in query.filters.items()]
    if query.search:
        pattern = f"%{_escape_like(query.search)}%"
        conditions.append(
            or_(*(getattr(Submission, name).ilike(pattern, escape="\\") for name in SEARCH_FIELDS))
        )
    return conditions


class SubmissionStore:
    """Insert, find, count, update, delete and aggregate submissions."""

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        timeout: Optional[float] = None,
    ):
        self._session_factory = session_factory
        self.timeout = timeout

    async def _run(self, action: str, work: Callable[[AsyncSession], Awaitable[T]]) -> T:
        async def _in_session() -> T:
            async with self._session_factory() as session:
                return await work(session)

        try:
            return await asyncio.wait_for(_in_session(), timeout=self.timeout)
        except asyncio.TimeoutError as e:
            logger.error("Storage timeout while %s (limit %ss)", action, self.timeout)
            raise PersistenceError(
                "Storage operation timed out", detail=f"{action} exceeded {self.timeout}s"
            ) from e
        except SQLAlchemyError as e:
            logger.error("Storage error while %s: %s", action, e)
            raise PersistenceError(f"Error {action}", detail=str(e)) from e

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    async def insert(self, values: dict[str, Any]) -> dict:
        """Persist a new submission and return its document."""

        async def work(session: AsyncSession) -> dict:
            now = utcnow()
            row = Submission(
                **values,
                processing_error_count=_error_count(values.get("meta")),
                created_at=now,
                updated_at=now,
            )
            session.add(row)
            await session.commit()
            return row.to_document()

        return await self._run("creating submission", work)

    async def update_by_id(self, submission_id: str, changes: dict[str, Any]) -> Optional[dict]:
        """Set ``changes`` on one submission. Returns None if it does not exist."""

        async def work(session: AsyncSession) -> Optional[dict]:
            row = await session.get(Submission, submission_id)
            if row is None:
                return None
            for column, value in changes.items():
                setattr(row, column, value)
            if "meta" in changes:
                row.processing_error_count = _error_count(changes["meta"])
            row.updated_at = next_update_time(row.updated_at)
            await session.commit()
            return row.to_document()

        return await self._run("updating submission", work)

    async def update_many(self, ids: list[str], changes: dict[str, Any]) -> tuple[int, int]:
        """Apply ``changes`` to every submission in ``ids``.

        Returns (matched, modified): modified counts rows where at least one
        of the changed columns actually differed. ``updated_at`` advances on
        every matched row.
        """

        async def work(session: AsyncSession) -> tuple[int, int]:
            result = await session.execute(select(Submission).where(Submission.id.in_(ids)))
            rows = result.scalars().all()
            modified = 0
            for row in rows:
                if any(getattr(row, column) != value for column, value in changes.items()):
                    modified += 1
                for column, value in changes.items():
                    setattr(row, column, value)
                row.updated_at = next_update_time(row.updated_at)
            await session.commit()
            return len(rows), modified

        return await self._run("bulk updating submissions", work)

    async def delete_by_id(self, submission_id: str) -> bool:
        """Physically remove a submission. False if nothing was deleted."""

        async def work(session: AsyncSession) -> bool:
            result = await session.execute(delete(Submission).where(Submission.id == submission_id))
            await session.commit()
            return result.rowcount > 0

        return await self._run("deleting submission", work)

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def find_by_id(self, submission_id: str) -> Optional[dict]:
        async def work(session: AsyncSession) -> Optional[dict]:
            row = await session.get(Submission, submission_id)
            return row.to_document() if row else None

        return await self._run("fetching submission", work)

    async def find_many(self, query: SubmissionQuery, paginate: bool = True) -> list[dict]:
        """Documents matching ``query``, sorted, optionally paginated."""

        async def work(session: AsyncSession) -> list[dict]:
            column = getattr(Submission, query.sort.column)
            stmt = (
                select(Submission)
                .where(*_conditions(query))
                .order_by(column.desc() if query.sort.descending else column.asc(), Submission.id)
            )
            if paginate:
                stmt = stmt.offset(query.skip).limit(query.limit)
            result = await session.execute(stmt)
            return [row.to_document() for row in result.scalars().all()]

        return await self._run("fetching submissions", work)

    async def count(self, query: Optional[SubmissionQuery] = None) -> int:
        async def work(session: AsyncSession) -> int:
            stmt = select(func.count(Submission.id))
            if query is not None:
                stmt = stmt.where(*_conditions(query))
            result = await session.execute(stmt)
            return result.scalar() or 0

        return await self._run("counting submissions", work)

    async def count_with_processing_errors(self) -> int:
        async def work(session: AsyncSession) -> int:
            result = await session.execute(
                select(func.count(Submission.id)).where(Submission.processing_error_count > 0)
            )
            return result.scalar() or 0

        return await self._run("counting submissions with errors", work)

    async def count_created_since(self, since: datetime) -> int:
        async def work(session: AsyncSession) -> int:
            result = await session.execute(
                select(func.count(Submission.id)).where(Submission.created_at >= since)
            )
            return result.scalar() or 0

        return await self._run("counting recent submissions", work)

    async def group_count(self, column: str, with_latest: bool = False) -> list[dict]:
        """Group by ``column`` and count, largest group first.

        With ``with_latest`` each group also carries the newest createdAt.
        """

        async def work(session: AsyncSession) -> list[dict]:
            key = getattr(Submission, column)
            count = func.count(Submission.id).label("count")
            columns = [key, count]
            if with_latest:
                columns.append(func.max(Submission.created_at).label("latest"))
            result = await session.execute(
                select(*columns).group_by(key).order_by(count.desc(), key.asc())
            )
            groups = []
            for row in result.all():
                group = {"_id": row[0], "count": row[1]}
                if with_latest:
                    group["latestSubmission"] = as_utc(row[2])
                groups.append(group)
            return groups

        return await self._run(f"grouping submissions by {column}", work)

    async def recent(self, limit: int) -> list[dict]:
        """Summaries of the newest ``limit`` submissions."""

        async def work(session: AsyncSession) -> list[dict]:
            result = await session.execute(
                select(Submission)
                .order_by(Submission.created_at.desc(), Submission.id)
                .limit(limit)
            )
            return [row.to_summary() for row in result.scalars().all()]

        return await self._run("fetching recent submissions", work)


def get_submission_store() -> SubmissionStore:
    """FastAPI dependency: a store bound to the application session factory."""
    return SubmissionStore(async_session, timeout=get_settings().storage_timeout_seconds)
