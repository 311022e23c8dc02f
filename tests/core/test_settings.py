import pytest

from pysniff.core import settings


def test_settings_roundtrip() -> None:
    assert settings.load_settings() == {}

    settings.set_setting("answer", 42)

    assert settings.get_setting("answer") == 42
    assert settings.SETTINGS_PATH.exists()


def test_invalid_settings_file_is_ignored() -> None:
    settings.SETTINGS_DIR.mkdir(parents=True, exist_ok=True)
    settings.SETTINGS_PATH.write_text("{not json", encoding="utf-8")

    assert settings.load_settings() == {}
    assert settings.get_setting("timezone", "local") == "local"


def test_timezone_preference_is_persisted() -> None:
    assert settings.get_timezone() == "local"

    settings.set_timezone("utc")

    assert settings.get_timezone() == "utc"


def test_unknown_timezone_is_rejected_and_ignored() -> None:
    with pytest.raises(ValueError):
        settings.set_timezone("mars")

    settings.set_setting(settings.TIMEZONE_KEY, "mars")
    assert settings.get_timezone() == "local"
