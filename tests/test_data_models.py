# tests/test_data_models.py
from fieldops.data_models import (
    CollectionRecord,
    CollectionType,
    Holiday,
    HolidayType,
    Order,
    RecordStatus,
    Visit,
    WorkSettings,
    parse_records,
    parse_rows,
)


def test_visit_from_dict_cleans_samples():
    visit = Visit.from_dict(
        {"id": "v1", "doctorName": "د. أحمد محمد", "samples1": "4", "samples2": -3, "samples3": "abc"}
    )

    assert (visit.samples1, visit.samples2, visit.samples3) == (4, 0, 0)
    assert visit.visit_date == ""
    assert visit.to_dict()["doctorName"] == "د. أحمد محمد"


def test_order_record_gets_group_id_from_pharmacy_and_date():
    record = CollectionRecord.from_dict(
        {"id": 7, "type": "order", "date": "2024-05-02", "pharmacy": "صيدلية النهدي", "quantity": "3"}
    )

    assert record.is_order
    assert record.group_id == "صيدلية النهدي-2024-05-02"
    assert record.quantity == 3
    assert record.status == RecordStatus.PENDING


def test_collection_record_to_dict_omits_empty_fields():
    record = CollectionRecord(
        id=1,
        type=CollectionType.COLLECTION,
        date="2024-05-01",
        pharmacy="صيدلية الدواء",
        amount=250.5,
        receipt_number="R-9",
    )

    assert record.to_dict() == {
        "id": 1,
        "type": "collection",
        "date": "2024-05-01",
        "pharmacy": "صيدلية الدواء",
        "status": "pending",
        "amount": 250.5,
        "receiptNumber": "R-9",
    }
    assert record.group_id is None


def test_parse_records_skips_rows_that_cannot_be_read(caplog):
    caplog.set_level("WARNING")
    rows = [
        {"id": 1, "type": "collection", "date": "2024-05-01", "pharmacy": "P"},
        {"type": "collection", "date": "2024-05-01", "pharmacy": "P"},
        {"id": 3, "type": "collection", "date": "2024-05-01", "pharmacy": "P", "status": "Approved"},
        {"id": 4, "type": "refund", "date": "2024-05-01", "pharmacy": "P"},
    ]

    records = parse_records(rows, CollectionRecord.from_dict)
    pairs = parse_rows(rows, CollectionRecord.from_dict)

    assert [r.id for r in records] == [1]
    assert [raw for raw, record in pairs if record is None] == rows[1:]
    assert "Skipping malformed record" in caplog.text


def test_visit_keeps_numeric_id():
    raw = Visit(id=17, doctor_name="A", visit_date="2024-01-05").to_dict()

    visit = Visit.from_dict(raw)

    assert visit.id == 17
    assert visit.to_dict() == raw
    assert Visit.from_dict({"doctorName": "A"}).id == ""


def test_order_round_trip():
    order = Order(id=1700000000000, date="2024-05-02", pharmacy="صيدلية النهدي", medicine="Panadol", quantity=10)

    assert Order.from_dict(order.to_dict()) == order


def test_holiday_and_settings_defaults():
    holiday = Holiday.from_dict({"id": 5, "date": "2024-12-02", "name": "يوم الشركة"})
    settings = WorkSettings.from_dict({})

    assert holiday.id == "5"
    assert holiday.type == HolidayType.CUSTOM
    assert holiday.recurring is False
    assert settings.weekly_holidays == [5]
    assert settings.to_dict() == {"weeklyHolidays": [5], "workingHours": {"start": "08:00", "end": "17:00"}}
