from __future__ import annotations

from typing import Any, Callable, Optional

from . import excel_export, mutations
from .aggregation import insight_payload
from .constants import APP_NAME
from .logger import AppEvent, ErrorLogger, now_ts
from .models import AppData, DayType, Level, Payment, PaymentMethod, Student
from .settings_store import Settings, SettingsStore
from .storage import JsonStore
from .utils import current_month, today_str


class ExternalServiceError(RuntimeError):
    """A call to the text-extraction or insight service failed."""


class PaymentTrackerApp:
    """Holds the current AppData and applies changes to it.

    Every change replaces the whole document, then saves it. A failed save is
    logged and the in-memory document is kept; nothing is retried. Reports are
    built by passing ``app.data`` to the functions in ``aggregation``.
    """

    def __init__(
        self,
        store: Optional[JsonStore] = None,
        settings_store: Optional[SettingsStore] = None,
        err_logger: Optional[ErrorLogger] = None,
    ):
        self.title = APP_NAME
        self.err_logger = err_logger or ErrorLogger()
        self.settings_store = settings_store or SettingsStore(err_logger=self.err_logger)
        self.settings: Settings = self.settings_store.load()
        self.store = store or JsonStore(err_logger=self.err_logger)
        self.data: AppData = self.store.load_or_default()

    # ---------------- Plumbing ----------------
    def _commit(self, new_data: AppData, action: str, entity_type: str, entity_id: str, details: str = "") -> AppData:
        self.data = new_data
        try:
            self.store.save(new_data)
        except Exception as e:
            self.err_logger.log_exception(e, f"save after {action}")
        self._emit(action, entity_type, entity_id, details)
        return new_data

    def _emit(self, action: str, entity_type: str, entity_id: str, details: str = "") -> None:
        try:
            self.store.add_event(
                AppEvent(timestamp=now_ts(), action=action, entity_type=entity_type, entity_id=entity_id, details=details)
            )
        except Exception as e:
            self.err_logger.log_exception(e, f"activity {action}")

    def find_student(self, student_id: str) -> Optional[Student]:
        for s in self.data.students:
            if s.id == student_id:
                return s
        return None

    # ---------------- Students ----------------
    def add_student(
        self,
        english_name: str,
        parent_phone: str,
        category: Level,
        day_type: DayType = DayType.WEEKDAY,
        burmese_name: str = "",
        join_date: Optional[str] = None,
        is_active: bool = True,
    ) -> Student:
        if not english_name.strip():
            raise ValueError("English name is required.")
        sid = mutations.next_id(self.settings.student_id_prefix, [s.id for s in self.data.students])
        student = Student(
            id=sid,
            english_name=english_name.strip(),
            burmese_name=burmese_name.strip(),
            parent_phone=parent_phone.strip(),
            join_date=join_date or today_str(),
            category=category,
            day_type=day_type,
            is_active=is_active,
        ).normalized()
        self._commit(mutations.add_student(self.data, student), "add_student", "student", sid, student.english_name)
        return student

    def update_student(self, student: Student) -> None:
        student = student.normalized()
        self._commit(mutations.update_student(self.data, student), "edit_student", "student", student.id, "updated profile")

    def delete_student(self, student_id: str) -> None:
        removed = sum(1 for p in self.data.payments if p.student_id == student_id)
        self._commit(
            mutations.delete_student(self.data, student_id),
            "delete_student",
            "student",
            student_id,
            f"deleted with {removed} payment(s)",
        )

    def bulk_add_students(
        self,
        text: str,
        extract: Callable[[str], list[dict[str, Any]]],
        category: Level,
        day_type: DayType,
    ) -> list[Student]:
        """Add every student the extraction service finds in ``text``.

        Either all extracted students are added or, when the service fails,
        none are.
        """
        if not text.strip():
            return []
        try:
            records = extract(text)
        except Exception as e:
            self.err_logger.log_exception(e, "bulk_add_students: extraction")
            raise ExternalServiceError("Unable to parse student list.") from e
        if not isinstance(records, list):
            raise ExternalServiceError("Unable to parse student list.")

        extracted = mutations.students_from_extracted(
            records,
            category,
            day_type,
            self.settings.student_id_prefix,
            [s.id for s in self.data.students],
        )
        new_students = [s.normalized() for s in extracted]
        data = self.data
        for s in new_students:
            data = mutations.add_student(data, s)
        self._commit(data, "bulk_add_students", "student", "", f"{len(new_students)} added")
        return new_students

    # ---------------- Payments ----------------
    def record_payment(
        self,
        student_id: str,
        date: Optional[str] = None,
        amount: Optional[int] = None,
        method: Optional[PaymentMethod] = None,
        sheet_no: Optional[int] = None,
        notes: str = "",
    ) -> Payment:
        student = self.find_student(student_id)
        if student is None:
            raise KeyError(student_id)
        pid = mutations.next_id(self.settings.payment_id_prefix, [p.id for p in self.data.payments])
        payment = mutations.new_payment(
            self.data,
            student,
            pid,
            date=date,
            amount=amount,
            method=method or PaymentMethod.parse(self.settings.default_method),
            sheet_no=sheet_no,
            notes=notes,
        )
        self._commit(
            mutations.record_payment(self.data, payment),
            "record_payment",
            "payment",
            pid,
            f"{student.english_name} {payment.amount} {payment.method.value}",
        )
        return payment

    def delete_payment(self, payment_id: str) -> None:
        self._commit(mutations.delete_payment(self.data, payment_id), "delete_payment", "payment", payment_id, "deleted")

    # ---------------- Sheets ----------------
    def set_sheet_no(self, sheet_no: int) -> None:
        self._commit(mutations.set_sheet_no(self.data, sheet_no), "set_sheet_no", "sheet", str(sheet_no))

    def advance_sheet(self) -> int:
        nxt = mutations.next_sheet_no(self.data.sheet_no, self.settings.sheet_count)
        self.set_sheet_no(nxt)
        return nxt

    def clear_payments(self) -> None:
        count = len(self.data.payments)
        self._commit(mutations.clear_payments(self.data), "clear_payments", "payment", "", f"{count} removed")

    # ---------------- Insights ----------------
    def generate_insights(self, ask: Callable[[dict[str, Any]], str], month: Optional[str] = None) -> str:
        """Prose summary of the month from the insight service."""
        try:
            return ask(insight_payload(self.data, month or current_month()))
        except Exception as e:
            self.err_logger.log_exception(e, "generate_insights")
            raise ExternalServiceError("Unable to generate insights at this time.") from e

    def list_events(self, limit: int = 500) -> list[AppEvent]:
        return self.store.list_events(limit)

    # ---------------- Reports ----------------
    def export_daily_record(self, filepath, date: Optional[str] = None, sheet_no: Optional[int] = None) -> None:
        try:
            excel_export.export_daily_record(
                self.data,
                filepath,
                date or today_str(),
                self.data.sheet_no if sheet_no is None else sheet_no,
                school_name=self.settings.school_name,
                currency=self.settings.currency,
            )
        except Exception as e:
            self.err_logger.log_exception(e, f"export_daily_record {filepath}")
            raise

    def export_monthly_summary(self, filepath, month: Optional[str] = None) -> None:
        try:
            excel_export.export_monthly_summary(
                self.data,
                filepath,
                month or current_month(),
                self.settings.sheet_count,
                school_name=self.settings.school_name,
                currency=self.settings.currency,
            )
        except Exception as e:
            self.err_logger.log_exception(e, f"export_monthly_summary {filepath}")
            raise
