"""
Record shapes for the payment tracker: students, payments and the whole
application document.

Persisted documents use the camelCase field names of the stored JSON
(``englishName``, ``studentId``, ``sheetNo`` ...). ``from_dict`` merges
onto defaults so older documents with missing fields still load.
"""
from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Optional, Union

from .constants import DEFAULT_SHEET_NO
from .utils import safe_int


class PaymentMethod(str, Enum):
    CASH = "Cash"
    KPAY = "K-pay"

    @staticmethod
    def parse(raw: Any) -> "PaymentMethod":
        if isinstance(raw, PaymentMethod):
            return raw
        for m in PaymentMethod:
            if str(raw).strip().lower() == m.value.lower():
                return m
        return PaymentMethod.CASH


class DayType(str, Enum):
    WEEKDAY = "Weekday"
    WEEKEND = "Weekend"

    @staticmethod
    def parse(raw: Any) -> "DayType":
        if isinstance(raw, DayType):
            return raw
        for d in DayType:
            if str(raw).strip().lower() == d.value.lower():
                return d
        return DayType.WEEKDAY

    @property
    def schedule_code(self) -> str:
        return "WD" if self is DayType.WEEKDAY else "WE"


class Level(str, Enum):
    PRE_STARTERS = "Pre-Starters"
    STARTERS = "Starters"
    STARTERS_1 = "Starters 1"
    STARTERS_2 = "Starters 2"
    MOVERS = "Movers"
    MOVERS_1 = "Movers 1"
    MOVERS_2 = "Movers 2"
    PRE_FLYERS = "Pre-flyers"
    FLYERS = "Flyers"
    FLYERS_1 = "Flyers1"
    FLYERS_2 = "Flyers2"
    KET_1 = "KET-1"
    KET_2 = "KET-2"
    PET = "PET"
    FCE = "FCE"
    MATH_1 = "Math-1"
    MATH_4 = "Math-4"
    MATH_6 = "Math-6"

    @staticmethod
    def parse(raw: Any) -> Optional["Level"]:
        """Exact or case-insensitive match on the display name, None when unknown."""
        if isinstance(raw, Level):
            return raw
        text = str(raw or "").strip()
        for lvl in Level:
            if text == lvl.value:
                return lvl
        lowered = text.lower()
        for lvl in Level:
            if lowered == lvl.value.lower():
                return lvl
        return None


# A stored category that is not a Level stays a plain string.
Category = Union[Level, str]


def _category_from(raw: Any) -> Category:
    lvl = Level.parse(raw)
    return lvl if lvl is not None else str(raw or "")


def _flag(raw: Any, default: bool = True) -> bool:
    # only real JSON booleans; "false" or 0 keep the default
    return raw if isinstance(raw, bool) else default


@dataclass
class Student:
    id: str
    english_name: str
    parent_phone: str
    join_date: str  # YYYY-MM-DD
    category: Category
    day_type: DayType = DayType.WEEKDAY
    burmese_name: str = ""
    is_active: bool = True

    @staticmethod
    def from_dict(d: dict[str, Any]) -> "Student":
        return Student(
            id=str(d.get("id", "")),
            english_name=str(d.get("englishName", "")),
            burmese_name=str(d.get("burmeseName", "") or ""),
            parent_phone=str(d.get("parentPhone", "")),
            join_date=str(d.get("joinDate", "")),
            category=_category_from(d.get("category", "")),
            day_type=DayType.parse(d.get("dayType", DayType.WEEKDAY.value)),
            is_active=_flag(d.get("isActive", True)),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "englishName": self.english_name,
            "burmeseName": self.burmese_name,
            "parentPhone": self.parent_phone,
            "joinDate": self.join_date,
            "category": str(getattr(self.category, "value", self.category)),
            "dayType": DayType.parse(self.day_type).value,
            "isActive": self.is_active,
        }

    def normalized(self) -> "Student":
        """Copy with ``category`` and ``day_type`` coerced to enum members where known."""
        return replace(self, category=_category_from(self.category), day_type=DayType.parse(self.day_type))

    def matches(self, term: str) -> bool:
        """Case-insensitive substring match on either name."""
        q = term.strip().lower()
        if not q:
            return True
        return q in self.english_name.lower() or q in self.burmese_name.lower()


@dataclass
class Payment:
    id: str
    student_id: str
    month: str  # YYYY-MM, copied from date at creation
    date: str  # YYYY-MM-DD
    amount: int  # whole Kyat
    method: PaymentMethod
    day_type: DayType  # snapshot of the student's day type
    sheet_no: int = DEFAULT_SHEET_NO
    notes: str = ""

    @staticmethod
    def from_dict(d: dict[str, Any]) -> "Payment":
        date = str(d.get("date", ""))
        return Payment(
            id=str(d.get("id", "")),
            student_id=str(d.get("studentId", "")),
            month=str(d.get("month", "") or date[:7]),
            date=date,
            amount=safe_int(d.get("amount", 0)),
            method=PaymentMethod.parse(d.get("method", PaymentMethod.CASH.value)),
            day_type=DayType.parse(d.get("dayType", DayType.WEEKDAY.value)),
            sheet_no=safe_int(d.get("sheetNo", DEFAULT_SHEET_NO), DEFAULT_SHEET_NO),
            notes=str(d.get("notes", "") or ""),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "studentId": self.student_id,
            "month": self.month,
            "amount": self.amount,
            "date": self.date,
            "method": PaymentMethod.parse(self.method).value,
            "dayType": DayType.parse(self.day_type).value,
            "sheetNo": self.sheet_no,
            "notes": self.notes,
        }


@dataclass
class AppData:
    students: list[Student] = field(default_factory=list)
    payments: list[Payment] = field(default_factory=list)
    sheet_no: int = DEFAULT_SHEET_NO

    @staticmethod
    def from_dict(d: dict[str, Any]) -> "AppData":
        students = [Student.from_dict(s) for s in d.get("students", []) or [] if isinstance(s, dict)]
        payments = [Payment.from_dict(p) for p in d.get("payments", []) or [] if isinstance(p, dict)]
        return AppData(
            students=students,
            payments=payments,
            sheet_no=safe_int(d.get("sheetNo", DEFAULT_SHEET_NO), DEFAULT_SHEET_NO),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "students": [s.to_dict() for s in self.students],
            "payments": [p.to_dict() for p in self.payments],
            "sheetNo": self.sheet_no,
        }

    def student_index(self) -> dict[str, Student]:
        return {s.id: s for s in self.students}
