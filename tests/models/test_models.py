"""Tests for task and sync models."""

from datetime import UTC, datetime, timedelta, timezone

import pytest
from pydantic import ValidationError

from daygo_cli.models import (
    SyncRequest,
    SyncResponse,
    SyncSession,
    SyncStatus,
    Task,
    TaskRecord,
    extract_tags,
)


class TestExtractTags:
    def test_tags_in_order_without_hash(self):
        assert extract_tags("write #docs for #api") == ["docs", "api"]

    def test_duplicates_removed(self):
        assert extract_tags("#work fix #bug #work") == ["work", "bug"]

    def test_hash_inside_word_is_not_a_tag(self):
        assert extract_tags("issue#12 and C# code") == []

    def test_no_tags(self):
        assert extract_tags("plain task") == []


class TestTaskRecord:
    def test_zero_sentinel_means_unset(self):
        record = TaskRecord.model_validate(
            {
                "id": "a",
                "name": "task",
                "started_at": "0001-01-01T00:00:00Z",
                "ended_at": "",
                "queued_at": 0,
                "created_at": None,
            }
        )
        assert record.started_at is None
        assert record.ended_at is None
        assert record.queued_at is None
        assert record.created_at is None

    def test_timestamps_normalised_to_utc(self):
        record = TaskRecord.model_validate(
            {"id": "a", "name": "task", "started_at": "2024-03-04T10:00:00+01:00"}
        )
        assert record.started_at == datetime(2024, 3, 4, 9, 0, tzinfo=UTC)
        assert record.started_at.utcoffset() == timedelta(0)

    def test_naive_timestamp_read_as_utc(self):
        record = TaskRecord(id="a", name="task", started_at=datetime(2024, 3, 4, 9, 0))
        assert record.started_at.tzinfo is not None
        assert record.started_at == datetime(2024, 3, 4, 9, 0, tzinfo=UTC)

    def test_nil_parent_means_top_level(self):
        record = TaskRecord(id="a", name="task", parent_id="00000000-0000-0000-0000-000000000000")
        assert record.parent_id is None
        assert not record.is_note

    def test_empty_name_rejected(self):
        with pytest.raises(ValidationError):
            TaskRecord(id="a", name="")

    def test_pending_iff_started_and_not_ended(self):
        now = datetime(2024, 3, 4, tzinfo=UTC)
        assert not TaskRecord(id="a", name="t").is_pending
        assert TaskRecord(id="a", name="t", started_at=now).is_pending
        assert not TaskRecord(id="a", name="t", started_at=now, ended_at=now).is_pending

    def test_queueable_only_for_unstarted_top_level_tasks(self):
        now = datetime(2024, 3, 4, tzinfo=UTC)
        assert TaskRecord(id="a", name="t").is_queueable
        assert not TaskRecord(id="a", name="t", started_at=now).is_queueable
        assert not TaskRecord(id="a", name="t", parent_id="p").is_queueable


class TestTask:
    def test_generates_id(self):
        first, second = Task(name="one"), Task(name="two")
        assert first.id and second.id and first.id != second.id

    def test_tags_follow_name(self):
        task = Task(name="write #docs")
        task.name = "review #code"
        assert task.tags == ["code"]

    def test_in_memory_fields_not_serialised(self):
        task = Task(name="parent", is_terminal=True)
        task.notes.append(Task(name="note", parent_id=task.id))
        data = task.model_dump()
        assert "notes" not in data
        assert "is_terminal" not in data

    def test_record_round_trip_keeps_fields(self):
        started = datetime(2024, 3, 4, 9, 0, tzinfo=UTC)
        task = Task(name="work", started_at=started)
        task.notes.append(Task(name="note", parent_id=task.id))
        record = task.to_record()
        assert type(record) is TaskRecord
        assert record.id == task.id
        assert record.started_at == started
        restored = Task.from_record(record)
        assert restored.notes == []
        assert restored.id == task.id

    def test_open_item_is_last_note_or_task(self):
        task = Task(name="work")
        assert task.open_item() is task
        note = Task(name="note", parent_id=task.id)
        task.notes.append(note)
        assert task.open_item() is note


class TestWireModels:
    def test_request_accepts_null_watermark_and_tasks(self):
        request = SyncRequest.model_validate({"last_sync_time": None, "client_tasks": None})
        assert request.last_sync_time is None
        assert request.client_tasks == []

    def test_request_zero_watermark_means_everything(self):
        request = SyncRequest.model_validate({"last_sync_time": "0001-01-01T00:00:00Z"})
        assert request.last_sync_time is None

    def test_request_serialises_timestamps_as_iso(self):
        watermark = datetime(2024, 3, 4, 9, 0, tzinfo=timezone.utc)
        data = SyncRequest(last_sync_time=watermark).model_dump(mode="json")
        assert data["last_sync_time"].startswith("2024-03-04T09:00:00")
        assert data["client_tasks"] == []

    def test_response_rejects_negative_count(self):
        with pytest.raises(ValidationError):
            SyncResponse(to_server_sync_count=-1)

    def test_session_status_from_int(self):
        session = SyncSession.model_validate({"server_url": "http://peer", "status": 2})
        assert session.status is SyncStatus.SUCCESS
