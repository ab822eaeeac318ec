from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

from pdfraster.exceptions import SettingsError
from pdfraster.settings import Settings, ensure_env_file_exists, get_settings

if TYPE_CHECKING:
    from pathlib import Path


def test_settings_load_from_env_file(tmp_path: Path, monkeypatch) -> None:
    env_file = tmp_path / ".env"
    env_file.write_text(
        "APP_ENV=test\n"
        "LOG_LEVEL=DEBUG\n"
        "LOG_JSON=false\n"
        "PDF_BUCKET=pages\n"
        "PDF_BODY_LIMIT=10\n"
        "PDF_TOKEN=s3cr3t\n"
        "UPLOAD_CONCURRENCY=4\n",
        encoding="utf-8",
    )
    monkeypatch.chdir(tmp_path)

    settings = Settings()

    assert settings.app_env == "test"
    assert settings.log_level == "DEBUG"
    assert settings.log_json is False
    assert settings.bucket == "pages"
    assert settings.body_limit_bytes == 10 * 1024 * 1024
    assert settings.token == "s3cr3t"
    assert settings.upload_concurrency == 4


def test_settings_defaults(monkeypatch, tmp_path: Path) -> None:
    monkeypatch.chdir(tmp_path)
    for name in ("HOST", "PORT", "PDF_BODY_LIMIT", "PDF_REGION", "UPLOAD_CONCURRENCY"):
        monkeypatch.delenv(name, raising=False)

    settings = Settings()

    assert settings.host == "127.0.0.1"
    assert settings.port == 3000
    assert settings.body_limit == 250
    assert settings.region == "auto"
    assert settings.upload_concurrency == 8


def test_storage_endpoint_derived_from_account_id() -> None:
    settings = Settings(account_id="acc123", endpoint_url=None)

    assert settings.storage_endpoint == "https://acc123.r2.cloudflarestorage.com"


def test_storage_endpoint_prefers_explicit_url() -> None:
    settings = Settings(account_id="acc123", endpoint_url="http://localhost:9000")

    assert settings.storage_endpoint == "http://localhost:9000"


def test_storage_endpoint_missing() -> None:
    assert Settings(account_id=None, endpoint_url=None).storage_endpoint is None


def test_proxies_mapping() -> None:
    settings = Settings(http_proxy="http://proxy:3128", https_proxy=None)

    assert settings.proxies == {"http": "http://proxy:3128"}


def test_settings_rejects_invalid_concurrency(monkeypatch) -> None:
    monkeypatch.setenv("UPLOAD_CONCURRENCY", "0")

    with pytest.raises(ValueError, match="upload_concurrency|UPLOAD_CONCURRENCY"):
        Settings()


def test_get_settings_uses_environment(monkeypatch) -> None:
    get_settings.cache_clear()
    monkeypatch.setenv("APP_ENV", "ci")

    settings = get_settings()
    assert settings.app_env == "ci"

    get_settings.cache_clear()


def test_get_settings_wraps_validation_errors(monkeypatch) -> None:
    get_settings.cache_clear()
    monkeypatch.setenv("PORT", "not-a-port")

    with pytest.raises(SettingsError, match="Failed to load settings"):
        get_settings()

    get_settings.cache_clear()


def test_ensure_env_file_exists_copies_template(tmp_path: Path) -> None:
    template = tmp_path / ".env.template"
    template.write_text("PDF_BUCKET=pages\n", encoding="utf-8")
    env_path = tmp_path / ".env"

    ensure_env_file_exists(env_path=env_path, template_path=template)

    assert env_path.read_text(encoding="utf-8") == "PDF_BUCKET=pages\n"


def test_ensure_env_file_exists_keeps_existing_file(tmp_path: Path) -> None:
    template = tmp_path / ".env.template"
    template.write_text("PDF_BUCKET=pages\n", encoding="utf-8")
    env_path = tmp_path / ".env"
    env_path.write_text("PDF_BUCKET=mine\n", encoding="utf-8")

    ensure_env_file_exists(env_path=env_path, template_path=template)

    assert env_path.read_text(encoding="utf-8") == "PDF_BUCKET=mine\n"
