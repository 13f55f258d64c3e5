from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional

from .constants import SETTINGS_JSON_PATH, SHEET_COUNT
from .logger import ErrorLogger
from .models import PaymentMethod


@dataclass
class Settings:
    school_name: str = "The School"
    student_id_prefix: str = "STU-"
    payment_id_prefix: str = "PAY-"
    sheet_count: int = SHEET_COUNT  # cash sheets cycle 1..sheet_count
    default_method: str = PaymentMethod.KPAY.value
    currency: str = "Ks"

    @staticmethod
    def from_dict(d: dict[str, Any]) -> "Settings":
        try:
            sheet_count = int(d.get("sheet_count", SHEET_COUNT))
        except Exception:
            sheet_count = SHEET_COUNT
        if sheet_count < 1:
            sheet_count = 1
        if sheet_count > 99:
            sheet_count = 99
        method = str(d.get("default_method", PaymentMethod.KPAY.value))
        if method not in {m.value for m in PaymentMethod}:
            method = PaymentMethod.KPAY.value
        return Settings(
            school_name=str(d.get("school_name", "The School")),
            student_id_prefix=str(d.get("student_id_prefix", "STU-")) or "STU-",
            payment_id_prefix=str(d.get("payment_id_prefix", "PAY-")) or "PAY-",
            sheet_count=sheet_count,
            default_method=method,
            currency=str(d.get("currency", "Ks")),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "school_name": self.school_name,
            "student_id_prefix": self.student_id_prefix,
            "payment_id_prefix": self.payment_id_prefix,
            "sheet_count": self.sheet_count,
            "default_method": self.default_method,
            "currency": self.currency,
        }


class SettingsStore:
    """JSON settings file. A missing file is created with the defaults; an
    unreadable one is logged and the defaults are used without overwriting it."""

    def __init__(self, path: Path = SETTINGS_JSON_PATH, err_logger: Optional[ErrorLogger] = None):
        self.path = path
        self.err_logger = err_logger or ErrorLogger()

    def load(self) -> Settings:
        if not self.path.exists():
            settings = Settings()
            self.save(settings)
            return settings
        try:
            raw = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            self.err_logger.log_exception(e, f"read {self.path}")
            return Settings()
        if not isinstance(raw, dict):
            self.err_logger.log_message(f"expected a JSON object, got {type(raw).__name__}", f"read {self.path}")
            return Settings()
        return Settings.from_dict(raw)

    def save(self, settings: Settings) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(json.dumps(settings.to_dict(), indent=2) + "\n", encoding="utf-8")
