import pytest

from taskrules.config import CONFIG_ENV_VAR, Settings, load_settings


def test_defaults_without_file(monkeypatch):
    monkeypatch.delenv(CONFIG_ENV_VAR, raising=False)
    settings = load_settings()
    assert settings == Settings()
    assert settings.timezone == "UTC"


def test_load_yaml(tmp_path):
    path = tmp_path / "taskrules.yaml"
    path.write_text("timezone: Europe/Berlin\nload_default_rules: false\nlog_level: debug\n", encoding="utf-8")
    settings = load_settings(path)
    assert settings.timezone == "Europe/Berlin"
    assert settings.load_default_rules is False
    assert settings.log_level == "DEBUG"


def test_env_var_path(tmp_path, monkeypatch):
    path = tmp_path / "env.yaml"
    path.write_text("rules_file: rules.json\n", encoding="utf-8")
    monkeypatch.setenv(CONFIG_ENV_VAR, str(path))
    assert load_settings().rules_file == "rules.json"


def test_invalid_config(tmp_path):
    unknown = tmp_path / "unknown.yaml"
    unknown.write_text("colour: blue\n", encoding="utf-8")
    with pytest.raises(ValueError):
        load_settings(unknown)

    bad_zone = tmp_path / "zone.yaml"
    bad_zone.write_text("timezone: Mars/Olympus\n", encoding="utf-8")
    with pytest.raises(ValueError):
        load_settings(bad_zone)

    with pytest.raises(FileNotFoundError):
        load_settings(tmp_path / "missing.yaml")
