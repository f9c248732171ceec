"""Tests for MigrationOrchestrator."""
from unittest.mock import patch

import pytest

from docmigrate.exceptions import MigrationInProgressError, ValidationError
from docmigrate.models.events import LogType
from docmigrate.models.migration import Credentials, MigrationRun, MigrationStatus
from docmigrate.extractors.api_extractor import TableAPIExtractor
from docmigrate.models.record import TransformedDocument
from docmigrate.models.schema import CollectionMapping
from docmigrate.services.transformer import RecordTransformer

from conftest import (
    FakeResponse,
    collection_url,
    documents_url,
    schema_response,
    table_url,
)


def messages(run):
    return [e.message for e in run.logs]


def add_collection(fake_session, table, db, coll, records, document_responses=None):
    fake_session.add("GET", table_url(table), FakeResponse(200, records))
    fake_session.add("GET", collection_url(db, coll), schema_response(
        {"key": "name", "type": "string"},
        {"key": "age", "type": "integer"},
    ))
    fake_session.add("POST", documents_url(db, coll), document_responses or FakeResponse(201, {}))


def test_missing_credentials_fail_without_network(orchestrator, fake_session, mapping):
    run = MigrationRun(credentials=Credentials(source_url="https://x"), mappings=[mapping])

    with pytest.raises(ValidationError, match="All credentials are required"):
        orchestrator.run_migration(run)

    assert run.status == MigrationStatus.ERROR
    assert run.error == "All credentials are required"
    assert messages(run) == ["Migration process failed: All credentials are required"]
    assert fake_session.calls == []


def test_incomplete_mapping_fails_without_network(orchestrator, fake_session, make_run):
    run = make_run(CollectionMapping("users", "db1", ""))

    with pytest.raises(ValidationError, match="All collection fields are required"):
        orchestrator.run_migration(run)

    assert run.status == MigrationStatus.ERROR
    assert fake_session.calls == []


def test_successful_migration(orchestrator, fake_session, make_run, mapping):
    add_collection(fake_session, "users", "db1", "users_coll", [
        {"id": 1, "name": "Ada", "age": "36", "created_at": "2024-01-01"},
        {"id": 2, "name": "Bob", "age": 40},
    ])
    run = make_run(mapping)

    orchestrator.run_migration(run)

    assert run.status == MigrationStatus.COMPLETED
    assert run.error is None
    assert run.progress.current == 2
    assert run.progress.total == 2
    assert run.progress.collection == "users"
    assert messages(run) == [
        "Found 2 records in users",
        "✓ Migrated record 1/2",
        "✓ Migrated record 2/2",
        "Completed migration for users",
    ]
    posts = fake_session.calls_to("POST", documents_url("db1", "users_coll"))
    assert posts[0]["json"] == {"documentId": "1", "data": {"name": "Ada", "age": 36}}
    assert run.stats.started_at is not None
    assert run.stats.completed_at is not None


def test_schema_is_fetched_before_every_record(orchestrator, fake_session, make_run, mapping):
    add_collection(fake_session, "users", "db1", "users_coll", [{"id": 1}, {"id": 2}, {"id": 3}])

    orchestrator.run_migration(make_run(mapping))

    assert len(fake_session.calls_to("GET", collection_url("db1", "users_coll"))) == 3


def test_record_failure_does_not_stop_the_table(orchestrator, fake_session, make_run, mapping):
    add_collection(fake_session, "users", "db1", "users_coll",
                   [{"id": 1}, {"id": 2}, {"id": 3}],
                   document_responses=[
                       FakeResponse(201, {}),
                       FakeResponse(400, {"message": "Document already exists"}),
                       FakeResponse(201, {}),
                   ])
    run = make_run(mapping)

    orchestrator.run_migration(run)

    assert run.status == MigrationStatus.COMPLETED
    assert messages(run) == [
        "Found 3 records in users",
        "✓ Migrated record 1/3",
        "✗ Failed to migrate record 2/3",
        "✓ Migrated record 3/3",
        "Completed migration for users",
    ]
    assert run.logs.count(LogType.ERROR) == 1
    assert run.progress.current == 3
    stats = run.stats.progress["users"]
    assert stats.total_records == 3
    assert stats.migrated_records == 2
    assert stats.failed_records == 1


def test_progress_stays_put_on_failed_record(orchestrator, fake_session, make_run, mapping):
    add_collection(fake_session, "users", "db1", "users_coll",
                   [{"id": 1}, {"id": 2}],
                   document_responses=[FakeResponse(201, {}), FakeResponse(500, {})])
    run = make_run(mapping)

    orchestrator.run_migration(run)

    assert run.progress.current == 1
    assert run.progress.percentage == 50


def test_table_failure_does_not_stop_the_run(orchestrator, fake_session, make_run):
    fake_session.add("GET", table_url("broken"), FakeResponse(404, {}, reason="Not Found"))
    add_collection(fake_session, "posts", "db1", "posts_coll", [{"id": "p1", "name": "Hello"}])
    run = make_run(
        CollectionMapping("broken", "db1", "broken_coll"),
        CollectionMapping("posts", "db1", "posts_coll"),
    )

    orchestrator.run_migration(run)

    assert run.status == MigrationStatus.COMPLETED
    assert messages(run) == [
        "Migration failed for broken: Source API error: Not Found",
        "Found 1 records in posts",
        "✓ Migrated record 1/1",
        "Completed migration for posts",
    ]
    assert run.stats.total_migrated == 1


def test_empty_table(orchestrator, fake_session, make_run, mapping):
    add_collection(fake_session, "users", "db1", "users_coll", [])
    run = make_run(mapping)

    orchestrator.run_migration(run)

    assert run.status == MigrationStatus.COMPLETED
    assert messages(run) == ["Found 0 records in users", "Completed migration for users"]
    assert run.progress.percentage == 0


def test_no_mappings_completes_immediately(orchestrator, fake_session, make_run):
    run = make_run()

    orchestrator.run_migration(run)

    assert run.status == MigrationStatus.COMPLETED
    assert len(run.logs) == 0
    assert fake_session.calls == []


def test_cancel_between_records(orchestrator, fake_session, make_run, mapping):
    run = make_run(mapping, CollectionMapping("posts", "db1", "posts_coll"))

    def cancel_after_first(url, json):
        run.request_cancel()
        return FakeResponse(201, {})

    add_collection(fake_session, "users", "db1", "users_coll",
                   [{"id": 1}, {"id": 2}, {"id": 3}],
                   document_responses=cancel_after_first)
    add_collection(fake_session, "posts", "db1", "posts_coll", [{"id": "p1"}])

    orchestrator.run_migration(run)

    assert run.status == MigrationStatus.IDLE
    assert len(fake_session.calls_to("POST", documents_url("db1", "users_coll"))) == 1
    assert fake_session.calls_to("GET", table_url("posts")) == []
    assert messages(run) == [
        "Found 3 records in users",
        "Canceling migration... Will complete current record.",
        "✓ Migrated record 1/3",
        "Completed migration for users",
        "Migration canceled.",
    ]
    assert run.progress.current == 1


def test_cancel_during_last_record_ends_idle(orchestrator, fake_session, make_run, mapping):
    run = make_run(mapping)

    def cancel_now(url, json):
        run.request_cancel()
        return FakeResponse(201, {})

    add_collection(fake_session, "users", "db1", "users_coll", [{"id": 1}],
                   document_responses=cancel_now)

    orchestrator.run_migration(run)

    assert run.status == MigrationStatus.IDLE
    assert messages(run)[-1] == "Migration canceled."


def test_orchestrator_cancel(orchestrator):
    assert orchestrator.cancel() is False


def test_rejects_second_active_run(orchestrator, fake_session, make_run, mapping):
    first = make_run(mapping)
    second = make_run(mapping)

    def start_second(url, json):
        with pytest.raises(MigrationInProgressError):
            orchestrator.run_migration(second)
        return FakeResponse(201, {})

    add_collection(fake_session, "users", "db1", "users_coll", [{"id": 1}],
                   document_responses=start_second)

    orchestrator.run_migration(first)

    assert first.status == MigrationStatus.COMPLETED
    assert second.status == MigrationStatus.IDLE
    assert orchestrator.active_run is first


def test_run_can_be_restarted(orchestrator, fake_session, make_run, mapping):
    add_collection(fake_session, "users", "db1", "users_coll", [{"id": 1}])
    run = make_run(mapping)

    orchestrator.run_migration(run)
    orchestrator.run_migration(run)

    assert run.status == MigrationStatus.COMPLETED
    assert len(run.logs) == 3
    assert run.stats.progress["users"].migrated_records == 1
    assert run.stats.total_collections == 1


def test_unexpected_error_ends_in_error_state(orchestrator, make_run, mapping):
    run = make_run(mapping)

    with patch.object(orchestrator, "_create_extractor", side_effect=RuntimeError("boom")):
        orchestrator.run_migration(run)

    assert run.status == MigrationStatus.ERROR
    assert run.error == "boom"
    assert messages(run) == ["Migration process failed: boom"]


def test_infer_schema_does_not_write(orchestrator, fake_session, credentials, mapping):
    fake_session.add("GET", table_url("users"), FakeResponse(200, [{"id": 1, "name": "Ada"}]))

    fields = orchestrator.infer_schema(credentials, mapping)

    assert [f.name for f in fields] == ["id", "name"]
    assert all(c["method"] == "GET" for c in fake_session.calls)


def test_analyze_schema(orchestrator, fake_session, credentials, mapping):
    fake_session.add("GET", table_url("users"), FakeResponse(200, [{"id": 1, "name": "Ada"}]))
    fake_session.add("POST", collection_url("db1", "users_coll") + "/attributes/string", FakeResponse(202, {}))

    result = orchestrator.analyze_schema(credentials, mapping)

    assert result.created == ["name"]
    assert result.skipped == ["id"]


def test_analyze_schema_validates(orchestrator, credentials):
    with pytest.raises(ValidationError):
        orchestrator.analyze_schema(credentials, CollectionMapping("", "db1", "c"))


def test_preview_record(orchestrator, fake_session, credentials, mapping):
    add_collection(fake_session, "users", "db1", "users_coll", [{"id": 9, "name": "Ada", "extra": 1}])

    sample, document = orchestrator.preview_record(credentials, mapping)

    assert sample == {"id": 9, "name": "Ada", "extra": 1}
    assert document.to_payload() == {"documentId": "9", "data": {"name": "Ada"}}
    assert not fake_session.calls_to("POST", documents_url("db1", "users_coll"))


def test_preview_of_empty_table(orchestrator, fake_session, credentials, mapping):
    fake_session.add("GET", table_url("users"), FakeResponse(200, []))
    assert orchestrator.preview_record(credentials, mapping) == (None, None)


def test_malformed_schema_body_fails_only_that_record(orchestrator, fake_session, make_run, mapping):
    add_collection(fake_session, "users", "db1", "users_coll", [{"id": 1, "name": "a"}, {"id": 2, "name": "b"}])
    fake_session.add("GET", collection_url("db1", "users_coll"), [
        FakeResponse(200, [{"key": "name"}]),
        schema_response({"key": "name", "type": "string"}),
    ])
    run = make_run(mapping)

    orchestrator.run_migration(run)

    assert run.status == MigrationStatus.COMPLETED
    assert messages(run) == [
        "Found 2 records in users",
        "✗ Failed to migrate record 1/2",
        "✓ Migrated record 2/2",
        "Completed migration for users",
    ]
    posts = fake_session.calls_to("POST", documents_url("db1", "users_coll"))
    assert [p["json"]["documentId"] for p in posts] == ["2"]


def test_malformed_table_body_fails_only_that_mapping(orchestrator, fake_session, make_run):
    fake_session.add("GET", table_url("broken"), FakeResponse(200, 5))
    add_collection(fake_session, "posts", "db1", "posts_coll", [{"id": "p1", "name": "Hello"}])
    run = make_run(
        CollectionMapping("broken", "db1", "broken_coll"),
        CollectionMapping("posts", "db1", "posts_coll"),
    )

    orchestrator.run_migration(run)

    assert run.status == MigrationStatus.COMPLETED
    assert messages(run)[0] == "Migration failed for broken: Source API returned an unexpected body for broken: int"
    assert run.stats.progress["posts"].migrated_records == 1


def test_unexpected_record_error_is_isolated(orchestrator, fake_session, make_run, mapping):
    add_collection(fake_session, "users", "db1", "users_coll", [{"id": 1}, {"id": 2}])
    run = make_run(mapping)

    with patch.object(RecordTransformer, "transform",
                      side_effect=[RuntimeError("bad record"), TransformedDocument("2", {})]):
        orchestrator.run_migration(run)

    assert run.status == MigrationStatus.COMPLETED
    assert run.stats.progress["users"].failed_records == 1
    assert run.stats.progress["users"].migrated_records == 1
    assert run.error is None


def test_unexpected_table_error_is_isolated(orchestrator, fake_session, make_run):
    add_collection(fake_session, "posts", "db1", "posts_coll", [{"id": "p1"}])
    run = make_run(
        CollectionMapping("broken", "db1", "broken_coll"),
        CollectionMapping("posts", "db1", "posts_coll"),
    )

    with patch.object(TableAPIExtractor, "fetch_all", side_effect=[KeyError("rows"), [{"id": "p1"}]]):
        orchestrator.run_migration(run)

    assert run.status == MigrationStatus.COMPLETED
    assert messages(run)[0] == "Migration failed for broken: 'rows'"
    assert run.stats.total_migrated == 1


def test_orchestrator_cancel_stops_active_run(orchestrator, fake_session, make_run, mapping):
    def cancel_through_orchestrator(url, json):
        assert orchestrator.cancel() is True
        return FakeResponse(201, {})

    add_collection(fake_session, "users", "db1", "users_coll", [{"id": 1}, {"id": 2}],
                   document_responses=cancel_through_orchestrator)
    run = make_run(mapping)

    orchestrator.run_migration(run)

    assert run.status == MigrationStatus.IDLE
    assert len(fake_session.calls_to("POST", documents_url("db1", "users_coll"))) == 1


def test_staged_run_keeps_early_cancel(orchestrator, fake_session, make_run, mapping):
    add_collection(fake_session, "users", "db1", "users_coll", [{"id": 1}])
    run = make_run(mapping)
    run.reset()
    run.status = MigrationStatus.MIGRATING
    run.request_cancel()

    orchestrator.run_migration(run)

    assert run.status == MigrationStatus.IDLE
    assert fake_session.calls == []
    assert messages(run) == [
        "Canceling migration... Will complete current record.",
        "Migration canceled.",
    ]
