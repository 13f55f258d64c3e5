from __future__ import annotations

import pytest

from edupay.app import PaymentTrackerApp
from edupay.logger import ErrorLogger
from edupay.models import DayType, Level, Payment, PaymentMethod, Student
from edupay.settings_store import SettingsStore
from edupay.storage import JsonStore


def make_student(sid: str, name: str = "", category=Level.KET_1, day_type=DayType.WEEKDAY, **kw) -> Student:
    return Student(
        id=sid,
        english_name=name or f"Student {sid}",
        burmese_name=kw.pop("burmese_name", ""),
        parent_phone=kw.pop("parent_phone", "09-000000"),
        join_date=kw.pop("join_date", "2024-01-10"),
        category=category,
        day_type=day_type,
        is_active=kw.pop("is_active", True),
    )


def make_payment(
    pid: str,
    student_id: str,
    date: str = "2024-03-05",
    amount: int = 70000,
    method=PaymentMethod.CASH,
    sheet_no: int = 1,
    day_type=DayType.WEEKDAY,
    notes: str = "",
) -> Payment:
    return Payment(
        id=pid,
        student_id=student_id,
        month=date[:7],
        date=date,
        amount=amount,
        method=method,
        day_type=day_type,
        sheet_no=sheet_no,
        notes=notes,
    )


@pytest.fixture
def err_logger(tmp_path):
    return ErrorLogger(tmp_path / "error_log.txt")


@pytest.fixture
def store(tmp_path, err_logger):
    return JsonStore(tmp_path / "edupay_data.json", err_logger=err_logger)


@pytest.fixture
def app(tmp_path, store, err_logger):
    return PaymentTrackerApp(
        store=store,
        settings_store=SettingsStore(tmp_path / "settings.json"),
        err_logger=err_logger,
    )
