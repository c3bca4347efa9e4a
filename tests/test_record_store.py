# tests/test_record_store.py
import logging

import pytest

from fieldops.data_models import Visit
from fieldops.io.base import RecordKind
from fieldops.io.db_io import SqlKeyValueStore, make_session_factory, make_sql_record_store
from fieldops.io.record_store import InMemoryKeyValueStore, JsonRecordStore, make_memory_store


@pytest.fixture
def sql_factory(tmp_path):
    return make_session_factory(f"sqlite:///{tmp_path / 'store' / 'fieldops.db'}")


def test_missing_key_loads_as_empty_list():
    store = make_memory_store()

    assert store.load_records(RecordKind.VISITS) == []


def test_malformed_json_loads_as_empty_list(caplog):
    caplog.set_level(logging.WARNING)
    store = JsonRecordStore(InMemoryKeyValueStore({"visits": "{not json"}))

    assert store.load_records(RecordKind.VISITS) == []
    assert "Malformed JSON" in caplog.text


def test_non_list_value_loads_as_empty_list():
    store = JsonRecordStore(InMemoryKeyValueStore({"collections": '{"id": 1}'}))

    assert store.load_records(RecordKind.COLLECTIONS) == []


def test_non_dict_items_are_skipped():
    store = JsonRecordStore(InMemoryKeyValueStore({"orders": '[{"id": 1}, 5, "x", {"id": 2}]'}))

    assert store.load_records(RecordKind.ORDERS) == [{"id": 1}, {"id": 2}]


def test_records_round_trip_keeps_arabic_text():
    kv = InMemoryKeyValueStore()
    store = JsonRecordStore(kv)
    visit = Visit(id="visit-1", doctor_name="د. أحمد محمد", product1="Panadol", samples1=3)

    store.save_records(RecordKind.VISITS, [visit.to_dict()])

    assert "د. أحمد محمد" in kv.get("visits")
    assert [Visit.from_dict(item) for item in store.load_records(RecordKind.VISITS)] == [visit]


def test_load_document_returns_copy_of_default():
    store = make_memory_store()
    default = {"weeklyHolidays": [5]}

    loaded = store.load_document(RecordKind.WORK_SETTINGS, default)
    loaded["weeklyHolidays"].append(6)

    assert default == {"weeklyHolidays": [5]}


def test_load_document_type_mismatch_uses_default():
    store = JsonRecordStore(InMemoryKeyValueStore({"workCalendarHolidays": '{"oops": true}'}))

    assert store.load_document(RecordKind.HOLIDAYS, []) == []


def test_save_many_writes_all_kinds():
    store = make_memory_store()

    store.save_many({RecordKind.COLLECTIONS: [{"id": 1}], RecordKind.ORDERS: [{"id": 2}]})

    assert store.load_records(RecordKind.COLLECTIONS) == [{"id": 1}]
    assert store.load_records(RecordKind.ORDERS) == [{"id": 2}]


def test_sql_store_round_trip(sql_factory):
    store = make_sql_record_store(sql_factory)
    records = [{"id": 1, "pharmacy": "صيدلية النهدي", "status": "pending"}]

    store.save_records(RecordKind.COLLECTIONS, records)

    assert store.load_records(RecordKind.COLLECTIONS) == records
    assert store.load_records(RecordKind.ORDERS) == []


def test_sql_store_overwrites_whole_list(sql_factory):
    store = make_sql_record_store(sql_factory)

    store.save_records(RecordKind.VISITS, [{"id": "a"}, {"id": "b"}])
    store.save_records(RecordKind.VISITS, [{"id": "c"}])

    assert store.load_records(RecordKind.VISITS) == [{"id": "c"}]


def test_sql_save_many_and_documents(sql_factory):
    store = make_sql_record_store(sql_factory)

    store.save_many({RecordKind.COLLECTIONS: [{"id": 1}], RecordKind.ORDERS: [{"id": 2}]})
    store.save_document(RecordKind.WORK_SETTINGS, {"weeklyHolidays": [5, 6]})

    assert store.load_records(RecordKind.COLLECTIONS) == [{"id": 1}]
    assert store.load_records(RecordKind.ORDERS) == [{"id": 2}]
    assert store.load_document(RecordKind.WORK_SETTINGS, {}) == {"weeklyHolidays": [5, 6]}


def test_sql_kv_missing_key(sql_factory):
    kv = SqlKeyValueStore(sql_factory)

    assert kv.get("nothing-here") is None
    kv.set("k", "v")
    assert kv.get("k") == "v"
