import json

from edupay.logger import ErrorLogger
from edupay.settings_store import Settings, SettingsStore


def test_first_load_writes_defaults(tmp_path):
    path = tmp_path / "settings.json"
    settings = SettingsStore(path).load()
    assert settings == Settings()
    assert json.loads(path.read_text(encoding="utf-8"))["sheet_count"] == 20


def test_round_trip(tmp_path):
    store = SettingsStore(tmp_path / "settings.json")
    store.save(Settings(school_name="Golden School", sheet_count=12, default_method="Cash"))
    loaded = store.load()
    assert loaded.school_name == "Golden School"
    assert loaded.sheet_count == 12
    assert loaded.default_method == "Cash"


def test_bad_values_fall_back():
    s = Settings.from_dict({"sheet_count": "many", "default_method": "cheque", "student_id_prefix": ""})
    assert s.sheet_count == 20
    assert s.default_method == "K-pay"
    assert s.student_id_prefix == "STU-"
    assert Settings.from_dict({"sheet_count": 0}).sheet_count == 1
    assert Settings.from_dict({"sheet_count": 500}).sheet_count == 99


def test_corrupt_file_falls_back_and_logs(tmp_path):
    path = tmp_path / "settings.json"
    path.write_text("{not json", encoding="utf-8")
    logger = ErrorLogger(tmp_path / "error_log.txt")
    assert SettingsStore(path, logger).load() == Settings()
    assert "JSONDecodeError" in (tmp_path / "error_log.txt").read_text(encoding="utf-8")


def test_non_object_file_falls_back(tmp_path):
    path = tmp_path / "settings.json"
    path.write_text("[1, 2]", encoding="utf-8")
    logger = ErrorLogger(tmp_path / "error_log.txt")
    assert SettingsStore(path, logger).load() == Settings()
    assert "expected a JSON object" in (tmp_path / "error_log.txt").read_text(encoding="utf-8")
