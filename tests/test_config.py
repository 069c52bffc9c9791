import importlib
import json
import logging

import pytest

from finance_tracker import config


def test_default_categories(monkeypatch):
    monkeypatch.delenv("FINTRACK_CATEGORIES_FILE", raising=False)
    categories = config.load_categories()
    assert categories == list(config.DEFAULT_CATEGORIES)
    assert len(categories) == 13
    assert categories[-1] == "Other"


def test_categories_override_from_env(tmp_path, monkeypatch):
    path = tmp_path / "categories.json"
    path.write_text(json.dumps(["Rent", " Food ", "Rent", ""]))
    monkeypatch.setenv("FINTRACK_CATEGORIES_FILE", str(path))
    assert config.load_categories() == ["Rent", "Food"]


def test_missing_categories_file_falls_back(tmp_path):
    assert config.load_categories(tmp_path / "missing.json") == list(config.DEFAULT_CATEGORIES)


def test_invalid_categories_file(tmp_path):
    path = tmp_path / "categories.json"
    path.write_text(json.dumps({"Food": 1}))
    with pytest.raises(ValueError):
        config.load_categories(path)


def test_db_path_env_override(tmp_path, monkeypatch):
    monkeypatch.setenv("FINTRACK_DB_PATH", str(tmp_path / "custom.db"))
    try:
        reloaded = importlib.reload(config)
        assert reloaded.DB_PATH == (tmp_path / "custom.db").resolve()
    finally:
        monkeypatch.delenv("FINTRACK_DB_PATH")
        importlib.reload(config)


def test_configure_logging_level(monkeypatch):
    calls = []
    monkeypatch.setattr(logging, "basicConfig", lambda **kwargs: calls.append(kwargs))
    monkeypatch.setenv("FINTRACK_LOG_LEVEL", "debug")
    config.configure_logging()
    config.configure_logging("warning")
    assert [c["level"] for c in calls] == [logging.DEBUG, logging.WARNING]
    assert calls[0]["format"] == config.LOG_FORMAT
