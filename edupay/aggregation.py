"""
Derived views over the student and payment collections.

Every function here is pure: it takes the two flat collections (or the
whole AppData) plus the scope of the view and returns freshly built
structures. Nothing is cached. Payments whose student no longer exists and
students with a category outside the level table never raise; they show up
with placeholder names or in the "Other" bucket.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Iterable, Optional

from .constants import SHEET_COUNT, UNKNOWN_CLASS, UNKNOWN_NAME
from .levels import OTHER_BUCKET, SUMMARY_BUCKETS, summary_bucket_for
from .models import AppData, DayType, Level, Payment, PaymentMethod, Student
from .utils import format_short_date, percent


@dataclass
class Tally:
    count: int = 0
    amount: int = 0

    def add(self, amount: int) -> None:
        self.count += 1
        self.amount += amount


def _sum_tallies(tallies: Iterable[Tally]) -> Tally:
    out = Tally()
    for t in tallies:
        out.count += t.count
        out.amount += t.amount
    return out


def _index(students: list[Student]) -> dict[str, Student]:
    return {s.id: s for s in students}


def _category_key(student: Student) -> str:
    return str(getattr(student.category, "value", student.category))


def _name_key(name: str) -> str:
    return name.casefold()


def _same_category(category: Any, wanted: Any) -> bool:
    lvl = Level.parse(wanted)
    if lvl is not None:
        return Level.parse(category) is lvl
    return str(getattr(category, "value", category)).strip().casefold() == str(wanted).strip().casefold()


# ---------------- Unpaid / paid ----------------
def paid_student_ids(payments: list[Payment], month: str) -> set[str]:
    return {p.student_id for p in payments if p.month == month}


def paid_students(students: list[Student], payments: list[Payment], month: str) -> list[Student]:
    """Active students with at least one payment in the month."""
    paid = paid_student_ids(payments, month)
    return [s for s in students if s.is_active and s.id in paid]


def unpaid_students(
    students: list[Student],
    payments: list[Payment],
    month: str,
    level: Optional[Any] = None,
    search: str = "",
    sort: bool = False,
) -> list[Student]:
    """Active students without any payment in ``month``.

    ``level`` restricts to one category and ``search`` is a case-insensitive
    substring of either name. There is no pro-ration: a student who joined
    mid-month and has not paid is unpaid.
    """
    paid = paid_student_ids(payments, month)
    out = [s for s in students if s.is_active and s.id not in paid]
    if level is not None:
        out = [s for s in out if _same_category(s.category, level)]
    if search:
        out = [s for s in out if s.matches(search)]
    if sort:
        out.sort(key=lambda s: _name_key(s.english_name))
    return out


def unpaid_contacts_text(students: list[Student]) -> str:
    """One ``name: phone`` line per student, ready to paste into a message."""
    return "\n".join(f"{s.english_name}: {s.parent_phone}" for s in students)


# ---------------- Daily cash sheet ----------------
@dataclass
class DailyCashSheet:
    date: str
    sheet_no: int
    by_category: dict[str, Tally] = field(default_factory=dict)
    payment_count: int = 0
    total_cash: int = 0
    unassigned: Tally = field(default_factory=Tally)  # payments of deleted students

    def category(self, name: Any) -> Tally:
        return self.by_category.get(str(getattr(name, "value", name)), Tally())

    def families(self) -> dict[str, Tally]:
        """Per-category tallies merged into display families (Starters 1 + Starters 2 ...)."""
        out = {b: Tally() for b in SUMMARY_BUCKETS}
        for cat, t in self.by_category.items():
            bucket = summary_bucket_for(cat)
            acc = out.setdefault(bucket, Tally())
            acc.count += t.count
            acc.amount += t.amount
        return out

    def family(self, name: str) -> Tally:
        return self.families().get(name, Tally())


def daily_cash_sheet(students: list[Student], payments: list[Payment], date: str, sheet_no: int) -> DailyCashSheet:
    index = _index(students)
    sheet = DailyCashSheet(date=date, sheet_no=sheet_no)
    for lvl in Level:
        sheet.by_category[lvl.value] = Tally()

    for p in payments:
        if p.date != date or p.method != PaymentMethod.CASH or p.sheet_no != sheet_no:
            continue
        sheet.payment_count += 1
        sheet.total_cash += p.amount
        student = index.get(p.student_id)
        if student is None:
            sheet.unassigned.add(p.amount)
            continue
        sheet.by_category.setdefault(_category_key(student), Tally()).add(p.amount)
    return sheet


# ---------------- Daily K-pay list ----------------
@dataclass
class KpayRow:
    payment_id: str
    name: str
    class_name: str
    schedule: str  # WD / WE
    date: str  # as printed, dd / mm / yy
    amount: int


@dataclass
class DailyKpayList:
    date: str
    rows: list[KpayRow] = field(default_factory=list)

    @property
    def count(self) -> int:
        return len(self.rows)

    @property
    def total_amount(self) -> int:
        return sum(r.amount for r in self.rows)


def daily_kpay_list(
    students: list[Student], payments: list[Payment], date: str, sort: bool = False
) -> DailyKpayList:
    index = _index(students)
    out = DailyKpayList(date=date)
    for p in payments:
        if p.date != date or p.method != PaymentMethod.KPAY:
            continue
        student = index.get(p.student_id)
        out.rows.append(
            KpayRow(
                payment_id=p.id,
                name=student.english_name if student else UNKNOWN_NAME,
                class_name=_category_key(student) if student else UNKNOWN_CLASS,
                schedule=DayType.parse(p.day_type).schedule_code,
                date=format_short_date(p.date),
                amount=p.amount,
            )
        )
    if sort:
        out.rows.sort(key=lambda r: _name_key(r.name))
    return out


# ---------------- Daily history ----------------
@dataclass
class HistoryRow:
    payment_id: str
    student_id: str
    name: str
    burmese_name: str
    class_name: str
    schedule: str
    date: str
    method: str
    sheet_no: int
    amount: int
    notes: str


def _history_row(p: Payment, student: Optional[Student]) -> HistoryRow:
    return HistoryRow(
        payment_id=p.id,
        student_id=p.student_id,
        name=student.english_name if student else UNKNOWN_NAME,
        burmese_name=student.burmese_name if student else "",
        class_name=_category_key(student) if student else UNKNOWN_CLASS,
        schedule=DayType.parse(p.day_type).schedule_code,
        date=p.date,
        method=PaymentMethod.parse(p.method).value,
        sheet_no=p.sheet_no,
        amount=p.amount,
        notes=p.notes,
    )


def daily_history(students: list[Student], payments: list[Payment], date: str, sort: bool = True) -> list[HistoryRow]:
    index = _index(students)
    rows = [_history_row(p, index.get(p.student_id)) for p in payments if p.date == date]
    if sort:
        rows.sort(key=lambda r: _name_key(r.name))
    return rows


def payment_history(
    students: list[Student],
    payments: list[Payment],
    month: Optional[str] = None,
    date: Optional[str] = None,
    search: str = "",
) -> list[HistoryRow]:
    """Payments of a month or of a single day, filtered by student name.

    ``date`` wins when both scopes are given. With a search term, payments of
    deleted students are left out since there is no name to match.
    """
    index = _index(students)
    rows = []
    q = search.strip().lower()
    for p in payments:
        if date is not None:
            if p.date != date:
                continue
        elif month is not None and p.month != month:
            continue
        student = index.get(p.student_id)
        if q and (student is None or q not in student.english_name.lower()):
            continue
        rows.append(_history_row(p, student))
    return rows


# ---------------- Monthly summary ----------------
@dataclass
class MethodTally:
    counts: dict[str, int] = field(default_factory=lambda: {b: 0 for b in SUMMARY_BUCKETS + [OTHER_BUCKET]})
    amounts: dict[str, int] = field(default_factory=lambda: {b: 0 for b in SUMMARY_BUCKETS + [OTHER_BUCKET]})
    total_count: int = 0
    total_amount: int = 0

    def add(self, bucket: str, amount: int) -> None:
        self.counts[bucket] = self.counts.get(bucket, 0) + 1
        self.amounts[bucket] = self.amounts.get(bucket, 0) + amount
        self.total_count += 1
        self.total_amount += amount


@dataclass
class MonthlySummary:
    month: str
    cash: MethodTally = field(default_factory=MethodTally)
    kpay: MethodTally = field(default_factory=MethodTally)

    @property
    def cash_map(self) -> dict[str, int]:
        return self.cash.counts

    @property
    def kpay_map(self) -> dict[str, int]:
        return self.kpay.counts

    @property
    def cash_total_amount(self) -> int:
        return self.cash.total_amount

    @property
    def kpay_total_amount(self) -> int:
        return self.kpay.total_amount

    @property
    def gross_count(self) -> int:
        return self.cash.total_count + self.kpay.total_count

    @property
    def gross_amount(self) -> int:
        return self.cash.total_amount + self.kpay.total_amount


def _bucket_of(index: dict[str, Student], p: Payment) -> str:
    student = index.get(p.student_id)
    if student is None:
        return OTHER_BUCKET
    return summary_bucket_for(student.category)


def monthly_summary(students: list[Student], payments: list[Payment], month: str) -> MonthlySummary:
    index = _index(students)
    summary = MonthlySummary(month=month)
    for p in payments:
        if p.month != month:
            continue
        tally = summary.cash if p.method == PaymentMethod.CASH else summary.kpay
        tally.add(_bucket_of(index, p), p.amount)
    return summary


# ---------------- Sheet x level matrix ----------------
@dataclass
class SheetLevelMatrix:
    month: str
    cells: dict[int, dict[str, Tally]] = field(default_factory=dict)

    @property
    def sheets(self) -> list[int]:
        return sorted(self.cells)

    def cell(self, sheet_no: int, bucket: str) -> Tally:
        return self.cells.get(sheet_no, {}).get(bucket, Tally())

    def row_total(self, sheet_no: int) -> Tally:
        return _sum_tallies(self.cells.get(sheet_no, {}).values())

    def column_total(self, bucket: str) -> Tally:
        return _sum_tallies(row.get(bucket, Tally()) for row in self.cells.values())

    def grand_total(self) -> Tally:
        return _sum_tallies(self.row_total(s) for s in self.cells)


def _empty_row() -> dict[str, Tally]:
    return {b: Tally() for b in SUMMARY_BUCKETS + [OTHER_BUCKET]}


def sheet_level_matrix(
    students: list[Student], payments: list[Payment], month: str, sheet_count: int = SHEET_COUNT
) -> SheetLevelMatrix:
    """Cash payments of the month tabulated by sheet number and summary bucket.

    Rows 1..sheet_count always exist; a payment on a sheet number outside
    that range gets a row of its own so no payment falls out of the totals.
    """
    index = _index(students)
    matrix = SheetLevelMatrix(month=month)
    for n in range(1, sheet_count + 1):
        matrix.cells[n] = _empty_row()
    for p in payments:
        if p.month != month or p.method != PaymentMethod.CASH:
            continue
        row = matrix.cells.setdefault(p.sheet_no, _empty_row())
        row[_bucket_of(index, p)].add(p.amount)
    return matrix


# ---------------- Dashboard ----------------
@dataclass
class DashboardStats:
    month: str
    total_students: int
    weekday_total: int
    weekend_total: int
    paid_count: int
    pending_count: int
    amount_collected: int
    cash_count: int
    kpay_count: int
    weekday_paid: int
    weekend_paid: int
    class_groups: list[tuple[str, int]]
    unpaid: list[Student]

    @property
    def weekday_percent(self) -> int:
        return percent(self.weekday_total, self.total_students)

    @property
    def weekend_percent(self) -> int:
        return percent(self.weekend_total, self.total_students)

    @property
    def paid_rate(self) -> int:
        return percent(self.paid_count, self.total_students)

    @property
    def unpaid_rate(self) -> int:
        return percent(self.pending_count, self.total_students)

    @property
    def weekday_paid_rate(self) -> int:
        return percent(self.weekday_paid, self.weekday_total)

    @property
    def weekend_paid_rate(self) -> int:
        return percent(self.weekend_paid, self.weekend_total)

    @property
    def weekday_unpaid_rate(self) -> int:
        return percent(self.weekday_total - self.weekday_paid, self.weekday_total)

    @property
    def weekend_unpaid_rate(self) -> int:
        return percent(self.weekend_total - self.weekend_paid, self.weekend_total)


def dashboard_stats(data: AppData, month: str) -> DashboardStats:
    active = [s for s in data.students if s.is_active]
    month_payments = [p for p in data.payments if p.month == month]
    paid_ids = {p.student_id for p in month_payments}
    paid = [s for s in active if s.id in paid_ids]

    groups: dict[str, int] = {}
    for s in active:
        key = _category_key(s)
        groups[key] = groups.get(key, 0) + 1

    return DashboardStats(
        month=month,
        total_students=len(active),
        weekday_total=sum(1 for s in active if s.day_type == DayType.WEEKDAY),
        weekend_total=sum(1 for s in active if s.day_type == DayType.WEEKEND),
        paid_count=len(paid),
        pending_count=len(active) - len(paid),
        amount_collected=sum(p.amount for p in month_payments),
        cash_count=sum(1 for p in month_payments if p.method == PaymentMethod.CASH),
        kpay_count=sum(1 for p in month_payments if p.method == PaymentMethod.KPAY),
        weekday_paid=sum(1 for s in paid if s.day_type == DayType.WEEKDAY),
        weekend_paid=sum(1 for s in paid if s.day_type == DayType.WEEKEND),
        class_groups=sorted(groups.items(), key=lambda kv: kv[1], reverse=True),
        unpaid=[s for s in active if s.id not in paid_ids],
    )


def insight_payload(data: AppData, month: str) -> dict[str, Any]:
    """Data summary handed to the external insight service."""
    paid_ids = paid_student_ids(data.payments, month)
    return {
        "month": month,
        "totalStudents": len(data.students),
        "activeStudents": sum(1 for s in data.students if s.is_active),
        "totalPayments": len(data.payments),
        "paymentsThisMonth": sum(1 for p in data.payments if p.month == month),
        "studentsList": [
            {
                "name": s.english_name,
                "id": s.id,
                "phone": s.parent_phone,
                "category": _category_key(s),
                "dayType": s.day_type.value,
                "paidThisMonth": s.id in paid_ids,
            }
            for s in data.students
        ],
    }
