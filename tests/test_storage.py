import json

from conftest import make_payment, make_student

from edupay.logger import AppEvent
from edupay.models import AppData, DayType, Level, PaymentMethod
from edupay.storage import JsonStore


def _sample() -> AppData:
    return AppData(
        students=[
            make_student("s2", "Mya", Level.MATH_6, DayType.WEEKEND, burmese_name="မြ"),
            make_student("s1", "Zaw", "Robotics"),
        ],
        payments=[
            make_payment("p1", "s2", method=PaymentMethod.KPAY, notes="transfer"),
            make_payment("p2", "s1", sheet_no=20),
        ],
        sheet_no=4,
    )


def test_load_missing_returns_none(store):
    assert store.load() is None
    assert store.load_or_default() == AppData()


def test_round_trip_preserves_order(store, tmp_path, err_logger):
    data = _sample()
    store.save(data)
    fresh = JsonStore(tmp_path / "edupay_data.json", err_logger=err_logger)
    loaded = fresh.load()
    assert loaded == data
    assert [s.id for s in loaded.students] == ["s2", "s1"]


def test_document_stored_under_fixed_key(store, tmp_path):
    store.save(_sample())
    kv = json.loads((tmp_path / "edupay_data.json").read_text(encoding="utf-8"))
    doc = json.loads(kv["edupay_data_v1"])
    assert set(doc) == {"students", "payments", "sheetNo"}
    assert doc["payments"][0]["studentId"] == "s2"


def test_corrupt_document_falls_back_and_logs(tmp_path, err_logger):
    path = tmp_path / "edupay_data.json"
    path.write_text(json.dumps({"edupay_data_v1": "{not json"}), encoding="utf-8")
    store = JsonStore(path, err_logger=err_logger)
    assert store.load() is None
    assert store.load_or_default() == AppData()
    assert "corrupt document" in (tmp_path / "error_log.txt").read_text(encoding="utf-8")


def test_corrupt_file_is_recovered_on_save(tmp_path, err_logger):
    path = tmp_path / "edupay_data.json"
    path.write_text("garbage", encoding="utf-8")
    store = JsonStore(path, err_logger=err_logger)
    assert store.load() is None
    store.save(_sample())
    store.invalidate_cache()
    assert store.load() == _sample()


def test_missing_fields_merge_onto_defaults(tmp_path, err_logger):
    path = tmp_path / "edupay_data.json"
    path.write_text(json.dumps({"edupay_data_v1": json.dumps({"students": []})}), encoding="utf-8")
    data = JsonStore(path, err_logger=err_logger).load()
    assert data == AppData()


def test_activity_events(store):
    store.save(AppData())
    for i in range(5):
        store.add_event(AppEvent(timestamp="t", action=f"a{i}", entity_type="student", entity_id=str(i)), keep=3)
    events = store.list_events()
    assert [e.action for e in events] == ["a2", "a3", "a4"]
    assert [e.action for e in store.list_events(limit=1)] == ["a4"]
    assert store.load() == AppData()


def test_string_valued_records_round_trip(store):
    data = AppData(
        students=[make_student("s1", "Zaw", "KET-1", "Weekend")],
        payments=[make_payment("p1", "s1", method="K-pay", day_type="Weekend")],
    )
    store.save(data)
    store.invalidate_cache()
    loaded = store.load()
    assert loaded == data
    assert loaded.students[0].category is Level.KET_1
    assert loaded.students[0].day_type is DayType.WEEKEND
    assert loaded.payments[0].method is PaymentMethod.KPAY
