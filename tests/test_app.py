from dataclasses import replace

import pytest
from openpyxl import load_workbook

from edupay.aggregation import daily_kpay_list, unpaid_students
from edupay.app import ExternalServiceError, PaymentTrackerApp
from edupay.models import AppData, DayType, Level, PaymentMethod
from edupay.settings_store import Settings, SettingsStore


def test_starts_from_zero_value(app):
    assert app.data == AppData()
    assert app.settings.sheet_count == 20


def test_add_student_generates_ids_and_persists(app, store):
    a = app.add_student("Zaw", "0911", Level.KET_1)
    b = app.add_student("  Mya ", "0922", Level.MATH_1, DayType.WEEKEND)
    assert (a.id, b.id) == ("STU-0001", "STU-0002")
    assert b.english_name == "Mya"
    store.invalidate_cache()
    assert store.load() == app.data


def test_add_student_requires_name(app):
    with pytest.raises(ValueError):
        app.add_student("  ", "0911", Level.PET)
    assert app.data.students == []


def test_record_payment_uses_defaults(app):
    s = app.add_student("Mya", "0922", Level.MATH_1, DayType.WEEKEND)
    app.set_sheet_no(6)
    p = app.record_payment(s.id, date="2024-03-05")
    assert p.id == "PAY-0001"
    assert p.amount == 55000
    assert p.method is PaymentMethod.KPAY
    assert p.sheet_no == 6
    assert p.month == "2024-03"
    assert p.day_type is DayType.WEEKEND
    assert unpaid_students(app.data.students, app.data.payments, "2024-03") == []


def test_record_payment_for_unknown_student(app):
    with pytest.raises(KeyError):
        app.record_payment("nobody")


def test_delete_student_cascades(app):
    s = app.add_student("Zaw", "0911", Level.KET_1)
    keep = app.add_student("Mya", "0922", Level.PET)
    app.record_payment(s.id, date="2024-03-05", method=PaymentMethod.CASH)
    app.record_payment(keep.id, date="2024-03-05")
    app.delete_student(s.id)
    assert [p.student_id for p in app.data.payments] == [keep.id]


def test_advance_sheet_cycles(app):
    app.set_sheet_no(19)
    assert app.advance_sheet() == 20
    assert app.advance_sheet() == 1


def test_clear_payments(app):
    s = app.add_student("Zaw", "0911", Level.KET_1)
    app.record_payment(s.id, date="2024-03-05")
    app.set_sheet_no(7)
    app.clear_payments()
    assert app.data.payments == []
    assert app.data.sheet_no == 1
    assert len(app.data.students) == 1


def test_activity_is_recorded(app):
    s = app.add_student("Zaw", "0911", Level.KET_1)
    app.record_payment(s.id, date="2024-03-05")
    app.delete_payment("PAY-0001")
    assert [e.action for e in app.list_events()] == ["add_student", "record_payment", "delete_payment"]


def test_failed_save_keeps_memory_state(app, tmp_path):
    def broken(_data):
        raise OSError("disk full")

    app.store.save = broken
    s = app.add_student("Zaw", "0911", Level.KET_1)
    assert app.data.students == [s]
    assert "disk full" in (tmp_path / "error_log.txt").read_text(encoding="utf-8")


def test_bulk_add_students(app):
    def extract(text):
        return [{"englishName": "Hla", "burmeseName": "", "parentPhone": "0933"}, {"englishName": "Su"}]

    added = app.bulk_add_students("Hla 0933\nSu", extract, Level.STARTERS, DayType.WEEKDAY)
    assert [s.english_name for s in app.data.students] == ["Hla", "Su"]
    assert added[1].parent_phone == "N/A"


def test_bulk_add_failure_commits_nothing(app):
    app.add_student("Zaw", "0911", Level.KET_1)

    def extract(text):
        raise RuntimeError("service down")

    with pytest.raises(ExternalServiceError):
        app.bulk_add_students("anything", extract, Level.PET, DayType.WEEKDAY)
    assert len(app.data.students) == 1


def test_generate_insights(app):
    app.add_student("Zaw", "0911", Level.KET_1)
    seen = {}

    def ask(payload):
        seen.update(payload)
        return "All good"

    assert app.generate_insights(ask, month="2024-03") == "All good"
    assert seen["totalStudents"] == 1

    def fail(payload):
        raise TimeoutError()

    with pytest.raises(ExternalServiceError):
        app.generate_insights(fail, month="2024-03")


def test_reload_from_store(app, tmp_path, store, err_logger):
    s = app.add_student("Zaw", "0911", Level.KET_1)
    app.record_payment(s.id, date="2024-03-05", method=PaymentMethod.KPAY)
    app.delete_student(s.id)
    store.invalidate_cache()
    again = PaymentTrackerApp(store=store, settings_store=SettingsStore(tmp_path / "settings.json"), err_logger=err_logger)
    assert again.data == app.data
    assert daily_kpay_list(again.data.students, again.data.payments, "2024-03-05").count == 0


def test_export_reports(app, tmp_path):
    s = app.add_student("Zaw", "0911", Level.KET_1)
    app.record_payment(s.id, date="2024-03-05", method=PaymentMethod.CASH)
    app.export_daily_record(tmp_path / "daily.xlsx", date="2024-03-05")
    app.export_monthly_summary(tmp_path / "monthly.xlsx", month="2024-03")
    assert (tmp_path / "daily.xlsx").exists()
    assert (tmp_path / "monthly.xlsx").exists()


def test_add_student_accepts_plain_strings(app, store):
    s = app.add_student("Zaw", "0911", "KET-1", day_type="Weekend")
    assert s.category is Level.KET_1
    assert s.day_type is DayType.WEEKEND
    store.invalidate_cache()
    assert store.load() == app.data


def test_update_student_accepts_plain_strings(app, store):
    s = app.add_student("Zaw", "0911", Level.KET_1)
    app.update_student(replace(s, category="pet", day_type="weekend"))
    assert app.find_student(s.id).category is Level.PET
    store.invalidate_cache()
    assert store.load().students[0].day_type is DayType.WEEKEND


def test_corrupt_settings_file_starts_with_defaults(tmp_path, store, err_logger):
    path = tmp_path / "settings.json"
    path.write_text("{broken", encoding="utf-8")
    app = PaymentTrackerApp(store=store, settings_store=SettingsStore(path, err_logger), err_logger=err_logger)
    assert app.settings == Settings()
    assert path.read_text(encoding="utf-8") == "{broken"
    assert "settings.json" in (tmp_path / "error_log.txt").read_text(encoding="utf-8")


def test_exports_carry_school_name_and_currency(app, tmp_path):
    app.settings = Settings(school_name="Golden School", currency="MMK")
    s = app.add_student("Zaw", "0911", Level.KET_1)
    app.record_payment(s.id, date="2024-03-05", method=PaymentMethod.CASH)
    app.export_daily_record(tmp_path / "daily.xlsx", date="2024-03-05")
    app.export_monthly_summary(tmp_path / "monthly.xlsx", month="2024-03")

    daily = load_workbook(tmp_path / "daily.xlsx")
    assert daily.properties.title == "Golden School: Daily record 2024-03-05 sheet 1"
    assert daily["Cash"].cell(1, 3).value == "Cash (MMK)"
    assert daily["K-pay"].cell(1, 6).value == "Amount (MMK)"

    monthly = load_workbook(tmp_path / "monthly.xlsx")
    ws = monthly["Final summary"]
    assert ws.cell(1, 1).value == "Golden School: Monthly summary March 2024"
    assert ws.cell(2, ws.max_column).value == "Amount (MMK)"
