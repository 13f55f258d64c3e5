"""
State transitions on AppData.

Each operation takes the current document and returns a new one; the input
is never modified. The lists are copied, the records inside are shared.
"""
from __future__ import annotations

import re
from dataclasses import replace
from typing import Any, Iterable, Optional

from .constants import DEFAULT_SHEET_NO, UNKNOWN_NAME, UNKNOWN_PHONE
from .levels import fee_for
from .models import AppData, DayType, Level, Payment, PaymentMethod, Student
from .utils import month_key, today_str


def add_student(data: AppData, student: Student) -> AppData:
    return replace(data, students=[*data.students, student])


def update_student(data: AppData, student: Student) -> AppData:
    """Replace the student with the same id; unchanged copy when the id is unknown."""
    return replace(data, students=[student if s.id == student.id else s for s in data.students])


def delete_student(data: AppData, student_id: str) -> AppData:
    """Remove the student and every payment recorded for them."""
    return replace(
        data,
        students=[s for s in data.students if s.id != student_id],
        payments=[p for p in data.payments if p.student_id != student_id],
    )


def record_payment(data: AppData, payment: Payment) -> AppData:
    return replace(data, payments=[*data.payments, payment])


def delete_payment(data: AppData, payment_id: str) -> AppData:
    return replace(data, payments=[p for p in data.payments if p.id != payment_id])


def set_sheet_no(data: AppData, sheet_no: int) -> AppData:
    return replace(data, sheet_no=sheet_no)


def clear_payments(data: AppData) -> AppData:
    """Drop every payment and restart the sheet counter. Students are kept."""
    return replace(data, payments=[], sheet_no=DEFAULT_SHEET_NO)


# ---------------- Builders ----------------
def next_id(prefix: str, existing_ids: Iterable[str]) -> str:
    max_n = 0
    for eid in existing_ids:
        if not eid.startswith(prefix):
            continue
        tail = eid[len(prefix) :]
        m = re.match(r"0*(\d+)$", tail)
        if m:
            max_n = max(max_n, int(m.group(1)))
    return f"{prefix}{max_n + 1:04d}"


def next_sheet_no(current: int, sheet_count: int) -> int:
    """Sheet after ``current``, wrapping back to 1 after ``sheet_count``."""
    if current < 1 or current >= sheet_count:
        return 1
    return current + 1


def new_payment(
    data: AppData,
    student: Student,
    payment_id: str,
    date: Optional[str] = None,
    amount: Optional[int] = None,
    method: PaymentMethod = PaymentMethod.KPAY,
    sheet_no: Optional[int] = None,
    notes: str = "",
) -> Payment:
    """Payment for ``student`` with the entry-form defaults filled in.

    The month comes from the date, the day type is copied from the student,
    the amount defaults to the level fee and the sheet to the current one.
    """
    date = date or today_str()
    return Payment(
        id=payment_id,
        student_id=student.id,
        month=month_key(date),
        date=date,
        amount=fee_for(student.category) if amount is None else int(amount),
        method=PaymentMethod.parse(method),
        day_type=DayType.parse(student.day_type),
        sheet_no=data.sheet_no if sheet_no is None else int(sheet_no),
        notes=notes,
    )


def students_from_extracted(
    records: list[dict[str, Any]],
    level: Level,
    day_type: DayType,
    prefix: str,
    existing_ids: Iterable[str],
    join_date: Optional[str] = None,
) -> list[Student]:
    """Students built from ``{englishName, burmeseName, parentPhone}`` partials.

    Missing or empty fields get placeholder strings, never None.
    """
    ids = list(existing_ids)
    join_date = join_date or today_str()
    out = []
    for rec in records:
        if not isinstance(rec, dict):
            continue
        sid = next_id(prefix, ids)
        ids.append(sid)
        out.append(
            Student(
                id=sid,
                english_name=str(rec.get("englishName") or UNKNOWN_NAME),
                burmese_name=str(rec.get("burmeseName") or ""),
                parent_phone=str(rec.get("parentPhone") or UNKNOWN_PHONE),
                join_date=join_date,
                category=level,
                day_type=day_type,
                is_active=True,
            )
        )
    return out
