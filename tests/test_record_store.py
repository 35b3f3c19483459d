# tests/test_record_store.py

import json

import pytest
from sqlalchemy import event
from sqlalchemy.exc import OperationalError

from student_roster.models.student import StudentRecord
from student_roster.services.persistence import MemoryBackend
from student_roster.services.record_store import RecordStore


class FlakyBackend(MemoryBackend):
    """Memory backend whose writes fail while `failing` is set."""

    def __init__(self):
        super().__init__()
        self.failing = False

    def set(self, key, value):
        if self.failing:
            raise RuntimeError("disk full")
        super().set(key, value)


def make_record(record_id, fields):
    return StudentRecord.from_fields(record_id, fields)


def stored_documents(backend, key="students"):
    return json.loads(backend.get(key))


# --- load ---


def test_load_without_stored_roster_is_empty(memory_backend):
    store = RecordStore(memory_backend)
    assert store.load() == []
    assert store.get_all() == []


@pytest.mark.parametrize(
    "blob",
    [
        "{not json",
        '{"students": []}',
        "42",
        '[{"id": "1", "firstName": "Ana"}]',
        '["just a string"]',
    ],
)
def test_load_unreadable_roster_is_empty(blob):
    store = RecordStore(MemoryBackend({"students": blob}))
    assert store.load() == []


def test_load_rejects_duplicate_ids(sample_fields):
    document = make_record("1", sample_fields).to_document()
    store = RecordStore(MemoryBackend({"students": json.dumps([document, document])}))
    assert store.load() == []


def test_load_restores_records_in_order(sample_fields, other_fields):
    documents = [
        make_record("200", other_fields).to_document(),
        make_record("100", sample_fields).to_document(),
    ]
    store = RecordStore(MemoryBackend({"students": json.dumps(documents)}))

    records = store.load()
    assert [r.id for r in records] == ["200", "100"]
    assert records[0].medical_info == "Peanut allergy"


def test_load_fills_missing_optional_fields(sample_fields):
    document = dict(sample_fields, id="1")
    store = RecordStore(MemoryBackend({"students": json.dumps([document])}))

    record = store.load()[0]
    assert record.section == ""
    assert record.email == ""


def test_load_uses_configured_key(sample_fields):
    document = make_record("1", sample_fields).to_document()
    backend = MemoryBackend({"roster-b": json.dumps([document])})

    assert RecordStore(backend).load() == []
    assert len(RecordStore(backend, key="roster-b").load()) == 1


# --- reads ---


def test_find_by_id(store, sample_fields):
    store.upsert(make_record("1", sample_fields))
    assert store.find_by_id("1").first_name == "Ana"
    assert store.find_by_id("2") is None


def test_get_all_returns_a_copy(store, sample_fields):
    store.upsert(make_record("1", sample_fields))
    snapshot = store.get_all()
    snapshot.clear()
    assert len(store.get_all()) == 1


# --- upsert ---


def test_upsert_appends_and_persists(store, memory_backend, sample_fields, other_fields):
    store.upsert(make_record("1", sample_fields))
    store.upsert(make_record("2", other_fields))

    assert [r.id for r in store.get_all()] == ["1", "2"]
    documents = stored_documents(memory_backend)
    assert [d["id"] for d in documents] == ["1", "2"]
    assert documents[0]["firstName"] == "Ana"
    assert documents[1]["parentContact"] == "555-0199"


def test_upsert_replaces_in_place(store, memory_backend, sample_fields, other_fields):
    store.upsert(make_record("1", sample_fields))
    store.upsert(make_record("2", other_fields))
    store.upsert(make_record("3", sample_fields))

    store.upsert(make_record("2", dict(other_fields, grade="4")))

    assert [r.id for r in store.get_all()] == ["1", "2", "3"]
    assert store.find_by_id("2").grade == "4"
    assert stored_documents(memory_backend)[1]["grade"] == "4"


def test_persisted_document_uses_form_field_names(store, memory_backend, other_fields):
    store.upsert(make_record("7", other_fields))
    document = stored_documents(memory_backend)[0]

    assert set(document) == {
        "id", "firstName", "lastName", "dob", "gender", "grade", "section",
        "address", "parentName", "parentContact", "email", "medicalInfo",
    }


# --- remove ---


def test_remove_existing_record(store, memory_backend, sample_fields, other_fields):
    store.upsert(make_record("1", sample_fields))
    store.upsert(make_record("2", other_fields))

    store.remove("1")

    assert [r.id for r in store.get_all()] == ["2"]
    assert [d["id"] for d in stored_documents(memory_backend)] == ["2"]


def test_remove_unknown_id_is_noop(store, memory_backend, sample_fields):
    store.upsert(make_record("1", sample_fields))

    store.remove("missing")

    assert [r.id for r in store.get_all()] == ["1"]
    assert [d["id"] for d in stored_documents(memory_backend)] == ["1"]


def test_remove_on_empty_store_still_persists(store, memory_backend):
    store.remove("anything")
    assert stored_documents(memory_backend) == []


# --- SQL backend ---


def test_sql_backend_get_missing_key(sql_backend):
    assert sql_backend.get("students") is None


def test_sql_backend_overwrites_slot(sql_backend):
    sql_backend.set("students", "[]")
    sql_backend.set("students", '[{"id": "1"}]')
    assert sql_backend.get("students") == '[{"id": "1"}]'


def test_roster_survives_reload_through_sql_backend(sql_backend, sample_fields, other_fields):
    first_session = RecordStore(sql_backend)
    first_session.load()
    first_session.upsert(make_record("1", sample_fields))
    first_session.upsert(make_record("2", other_fields))
    first_session.remove("1")

    second_session = RecordStore(sql_backend)
    records = second_session.load()

    assert [r.id for r in records] == ["2"]
    assert records[0] == make_record("2", other_fields)


# --- failed writes ---


def test_failed_write_leaves_roster_unchanged(sample_fields, other_fields):
    backend = FlakyBackend()
    store = RecordStore(backend)
    store.load()
    store.upsert(make_record("1", sample_fields))
    backend.failing = True

    with pytest.raises(RuntimeError):
        store.upsert(make_record("2", other_fields))
    with pytest.raises(RuntimeError):
        store.upsert(make_record("1", dict(sample_fields, grade="9")))
    with pytest.raises(RuntimeError):
        store.remove("1")

    assert store.get_all() == [make_record("1", sample_fields)]
    assert [d["id"] for d in stored_documents(backend)] == ["1"]
    assert stored_documents(backend)[0]["grade"] == "5"

    backend.failing = False
    store.remove("1")
    assert store.get_all() == []
    assert stored_documents(backend) == []


def test_sql_backend_write_error_rolls_back_and_propagates(sql_backend, sample_fields, other_fields):
    store = RecordStore(sql_backend)
    store.load()
    store.upsert(make_record("1", sample_fields))
    before = sql_backend.get("students")

    def refuse_flush(session, flush_context, instances):
        raise OperationalError("UPDATE kv_store", {}, Exception("database is locked"))

    event.listen(sql_backend.session_factory, "before_flush", refuse_flush)
    try:
        with pytest.raises(OperationalError):
            store.upsert(make_record("2", other_fields))
        with pytest.raises(OperationalError):
            store.remove("1")
    finally:
        event.remove(sql_backend.session_factory, "before_flush", refuse_flush)

    assert sql_backend.get("students") == before
    assert [r.id for r in store.get_all()] == ["1"]
    assert [r.id for r in RecordStore(sql_backend).load()] == ["1"]
