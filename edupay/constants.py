from __future__ import annotations

from pathlib import Path

APP_NAME = "The School Payment Tracker"

WORKSPACE_ROOT = Path(__file__).resolve().parents[1]
DATA_JSON_PATH = WORKSPACE_ROOT / "edupay_data.json"
SETTINGS_JSON_PATH = WORKSPACE_ROOT / "settings.json"
ERROR_LOG_PATH = WORKSPACE_ROOT / "error_log.txt"

STORAGE_KEY = "edupay_data_v1"
ACTIVITY_KEY = "edupay_activity_v1"

SHEET_COUNT = 20
DEFAULT_SHEET_NO = 1

UNKNOWN_NAME = "Unknown"
UNKNOWN_CLASS = "N/A"
NO_TEACHER = "—"
UNKNOWN_PHONE = "N/A"
