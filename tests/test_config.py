from finance_tracker.config import getenv_with_default, load_config

ENV_VARS = (
    "FINANCE_TRACKER_DB_FILE",
    "FINANCE_TRACKER_CURRENCY",
    "FINANCE_TRACKER_CURRENCY_SYMBOL",
    "CRON_SECRET",
    "OCR_SPACE_API_KEY",
    "OCR_SPACE_ENDPOINT",
    "FINANCE_TRACKER_TREND_WINDOW",
    "FINANCE_TRACKER_TREND_WORKERS",
    "FINANCE_TRACKER_LOG_LEVEL",
)


def clear_env(monkeypatch):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)


def test_defaults(monkeypatch, tmp_path):
    clear_env(monkeypatch)
    monkeypatch.setenv("FINANCE_TRACKER_DB_FILE", str(tmp_path / "db" / "tracker.db"))

    config = load_config()

    assert config.currency == "MYR"
    assert config.currency_symbol == "RM"
    assert config.cron_secret is None
    assert config.ocr_api_key is None
    assert config.ocr_endpoint == "https://api.ocr.space/parse/image"
    assert config.trend_window == 6
    assert config.trend_workers == 6
    assert config.log_level == "INFO"
    assert (tmp_path / "db").is_dir()


def test_environment_overrides(monkeypatch, tmp_path):
    clear_env(monkeypatch)
    monkeypatch.setenv("FINANCE_TRACKER_DB_FILE", str(tmp_path / "tracker.db"))
    monkeypatch.setenv("FINANCE_TRACKER_CURRENCY", "SGD")
    monkeypatch.setenv("FINANCE_TRACKER_CURRENCY_SYMBOL", "S$")
    monkeypatch.setenv("CRON_SECRET", "abc")
    monkeypatch.setenv("OCR_SPACE_API_KEY", "")
    monkeypatch.setenv("FINANCE_TRACKER_TREND_WINDOW", "12")
    monkeypatch.setenv("FINANCE_TRACKER_LOG_LEVEL", "debug")

    config = load_config()

    assert config.database_file == tmp_path / "tracker.db"
    assert config.currency == "SGD"
    assert config.currency_symbol == "S$"
    assert config.cron_secret == "abc"
    assert config.ocr_api_key is None
    assert config.trend_window == 12
    assert config.log_level == "DEBUG"


def test_getenv_with_default(monkeypatch, tmp_path):
    monkeypatch.delenv("FINANCE_TRACKER_UNSET", raising=False)

    assert getenv_with_default("FINANCE_TRACKER_UNSET") is None
    assert getenv_with_default("FINANCE_TRACKER_UNSET", tmp_path) == str(tmp_path)
