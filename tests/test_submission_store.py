"""Integration tests for SubmissionStore against a real SQLite database."""

import asyncio
from datetime import timedelta, timezone

import pytest
from sqlalchemy import update
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from submission_api.domain.errors import PersistenceError
from submission_api.domain.models import Submission
from submission_api.infra.submission_store import SubmissionStore
from submission_api.services.query_builder import ListParams, build_query
from submission_api.services.timestamps import utcnow


def _record(**fields) -> dict:
    values = {
        "name": "Jane Doe",
        "email": "jane@example.com",
        "message": "hello",
        "date_of_first_contact": "2026-01-01 09:00:00 EST",
        "submission_type": "other",
        "stage": "Initial Demand",
        "source": "Website Form",
        "status": "new",
        "priority": "medium",
        "moving_details": {},
        "contact_details": {},
        "service_details": {},
        "custom_fields": {},
        "meta": {"processingErrors": []},
    }
    values.update(fields)
    return values


class TestInsertAndFind:

    async def test_insert_assigns_id_and_timestamps(self, store):
        doc = await store.insert(_record())
        assert len(doc["id"]) == 36
        assert doc["createdAt"] == doc["updatedAt"]
        assert doc["metadata"] == {"processingErrors": []}

        found = await store.find_by_id(doc["id"])
        assert found["email"] == "jane@example.com"

    async def test_document_timestamps_are_utc(self, store):
        doc = await store.insert(_record(follow_up_date=utcnow()))
        assert doc["createdAt"].tzinfo is timezone.utc
        assert doc["updatedAt"].tzinfo is timezone.utc
        assert doc["followUpDate"].tzinfo is timezone.utc
        assert doc["lastContactDate"] is None
        summary = (await store.recent(1))[0]
        assert summary["createdAt"].tzinfo is timezone.utc

    async def test_find_missing_returns_none(self, store):
        assert await store.find_by_id("00000000-0000-0000-0000-000000000000") is None

    async def test_processing_error_count(self, store):
        await store.insert(_record(meta={"processingErrors": ["no phone", "bad date"]}))
        await store.insert(_record())
        assert await store.count_with_processing_errors() == 1


class TestFindMany:

    async def test_search_is_case_insensitive_across_fields(self, store):
        await store.insert(_record(name="JANE Smith", email="a@x.com", message=None))
        await store.insert(_record(name="Bob", email="bob.jane@x.com", message=None))
        await store.insert(_record(name="Bob", email="b@x.com", message="ask for Jane"))
        await store.insert(_record(name="Carl", email="c@x.com", message="nothing"))

        query = build_query(ListParams(search="jane"))
        assert len(await store.find_many(query)) == 3
        assert await store.count(query) == 3

    async def test_like_wildcards_are_literal(self, store):
        await store.insert(_record(name="100% real"))
        await store.insert(_record(name="1000 real"))
        query = build_query(ListParams(search="100%"))
        assert [d["name"] for d in await store.find_many(query)] == ["100% real"]

    async def test_filters_combine_with_search(self, store):
        await store.insert(_record(name="Jane", submission_type="moving"))
        await store.insert(_record(name="Jane", submission_type="quote"))
        query = build_query(ListParams(search="jane", type="moving"))
        docs = await store.find_many(query)
        assert [d["submissionType"] for d in docs] == ["moving"]

    async def test_sort_and_paginate(self, store):
        for name in ["d", "a", "c", "b", "e"]:
            await store.insert(_record(name=name))
        query = build_query(ListParams(sort="name", page="2", limit="2"))
        assert [d["name"] for d in await store.find_many(query)] == ["c", "d"]
        assert await store.count(query) == 5


class TestUpdates:

    async def test_update_by_id_advances_updated_at(self, store):
        doc = await store.insert(_record())
        updated = await store.update_by_id(doc["id"], {"status": "completed"})
        assert updated["status"] == "completed"
        assert updated["updatedAt"] > doc["updatedAt"]
        assert updated["createdAt"] == doc["createdAt"]

    async def test_update_by_id_missing(self, store):
        assert await store.update_by_id("00000000-0000-0000-0000-000000000000", {"status": "new"}) is None

    async def test_update_meta_recomputes_error_count(self, store):
        doc = await store.insert(_record(meta={"processingErrors": ["x"]}))
        await store.update_by_id(doc["id"], {"meta": {"processingErrors": []}})
        assert await store.count_with_processing_errors() == 0

    async def test_update_many_counts_matched_and_modified(self, store):
        a = await store.insert(_record(status="archived"))
        b = await store.insert(_record(status="new"))
        matched, modified = await store.update_many(
            [a["id"], b["id"], "00000000-0000-0000-0000-000000000000"], {"status": "archived"}
        )
        assert (matched, modified) == (2, 1)
        assert (await store.find_by_id(a["id"]))["updatedAt"] > a["updatedAt"]

    async def test_delete(self, store):
        doc = await store.insert(_record())
        assert await store.delete_by_id(doc["id"]) is True
        assert await store.delete_by_id(doc["id"]) is False


class TestAggregates:

    async def test_group_count_orders_by_count_then_key(self, store):
        for kind in ["quote", "moving", "moving", "contact"]:
            await store.insert(_record(submission_type=kind))
        groups = await store.group_count("submission_type", with_latest=True)
        assert [(g["_id"], g["count"]) for g in groups] == [
            ("moving", 2), ("contact", 1), ("quote", 1),
        ]
        assert all(g["latestSubmission"].tzinfo is timezone.utc for g in groups)

    async def test_count_created_since(self, store, session_factory):
        old = await store.insert(_record())
        await store.insert(_record())
        async with session_factory() as session:
            await session.execute(
                update(Submission)
                .where(Submission.id == old["id"])
                .values(created_at=utcnow() - timedelta(days=10))
            )
            await session.commit()
        assert await store.count_created_since(utcnow() - timedelta(days=7)) == 1

    async def test_recent_is_summary_newest_first(self, store):
        first = await store.insert(_record(name="first"))
        second = await store.insert(_record(name="second"))
        recent = await store.recent(5)
        assert [r["id"] for r in recent] == [second["id"], first["id"]]
        assert set(recent[0]) == {
            "id", "name", "email", "submissionType", "stage", "status", "createdAt",
        }


# ---------------------------------------------------------------------------
# Failure mapping
# ---------------------------------------------------------------------------


class _SlowSession:
    async def __aenter__(self):
        await asyncio.sleep(1)
        return self

    async def __aexit__(self, *exc_info):
        return False


class TestFailures:

    async def test_timeout_maps_to_persistence_error(self):
        slow_store = SubmissionStore(lambda: _SlowSession(), timeout=0.01)
        with pytest.raises(PersistenceError) as exc:
            await slow_store.count()
        assert exc.value.message == "Storage operation timed out"

    async def test_database_error_maps_to_persistence_error(self, tmp_path):
        # No tables created
        engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'empty.db'}")
        try:
            broken = SubmissionStore(async_sessionmaker(engine, class_=AsyncSession))
            with pytest.raises(PersistenceError) as exc:
                await broken.count()
            assert "no such table" in exc.value.detail
        finally:
            await engine.dispose()
