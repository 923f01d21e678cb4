import hashlib
import logging

import pytest

from auth import config as auth_config
from auth.errors import ConfigurationError

LONG_SECRET = "x" * 48


def test_env_secret_takes_priority(monkeypatch, make_auth_file):
    path = make_auth_file({"jwt_secret": "from-file-" + LONG_SECRET})
    monkeypatch.setenv("JWT_SECRET", "from-env-" + LONG_SECRET)
    settings = auth_config.load_auth_settings(path)
    assert settings.jwt_secret == "from-env-" + LONG_SECRET
    assert settings.secret_from_env is True
    assert settings.config_path == path


def test_file_secret_used_without_env(make_auth_file):
    path = make_auth_file({"jwt_secret": LONG_SECRET, "users": []})
    settings = auth_config.load_auth_settings(path)
    assert settings.jwt_secret == LONG_SECRET
    assert settings.secret_from_env is False


def test_missing_secret_fails_closed(tmp_path):
    with pytest.raises(ConfigurationError):
        auth_config.load_auth_settings(tmp_path / "absent.json")


def test_empty_secret_fails_closed(monkeypatch, make_auth_file):
    path = make_auth_file({"jwt_secret": ""})
    monkeypatch.setenv("JWT_SECRET", "")
    with pytest.raises(ConfigurationError):
        auth_config.load_auth_settings(path)


def test_unreadable_file_is_configuration_error(tmp_path):
    path = tmp_path / "auth.json"
    path.write_text("{not json", encoding="utf-8")
    with pytest.raises(ConfigurationError):
        auth_config.load_auth_settings(path)


def test_non_object_file_is_configuration_error(make_auth_file):
    with pytest.raises(ConfigurationError):
        auth_config.load_auth_settings(make_auth_file(["jwt_secret"]))


def test_short_secret_logs_warning(monkeypatch, tmp_path, caplog):
    monkeypatch.setenv("JWT_SECRET", "short")
    with caplog.at_level(logging.WARNING, logger="auth.config"):
        settings = auth_config.load_auth_settings(tmp_path / "auth.json")
    assert settings.jwt_secret == "short"
    assert any("shorter than" in r.getMessage() for r in caplog.records)


def test_effective_config_path_env(monkeypatch, tmp_path):
    monkeypatch.setenv("AUTH_CONFIG_PATH", str(tmp_path / "custom.json"))
    assert auth_config.effective_config_path() == tmp_path / "custom.json"


def test_effective_config_path_default(monkeypatch, tmp_path):
    monkeypatch.setenv("DATA_BASE_PATH", str(tmp_path))
    assert auth_config.effective_config_path() == tmp_path / "auth.json"


def test_hash_password_is_plain_sha256_hex():
    assert auth_config.hash_password("admin123") == hashlib.sha256(b"admin123").hexdigest()


def test_verify_password():
    h = auth_config.hash_password("s3cret")
    assert auth_config.verify_password("s3cret", h)
    assert auth_config.verify_password("s3cret", h.upper())
    assert not auth_config.verify_password("wrong", h)
    assert not auth_config.verify_password("", h)
    assert not auth_config.verify_password("s3cret", "")
    assert not auth_config.verify_password("s3cret", "ключ")
