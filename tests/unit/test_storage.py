from __future__ import annotations

import asyncio

import pytest

from pdfraster.exceptions import SettingsError
from pdfraster.settings import Settings
from pdfraster.storage import S3ObjectStore, build_client_config


def _storage_settings(**overrides: object) -> Settings:
    values: dict[str, object] = {
        "account_id": "acc",
        "key_id": "key",
        "secret": "secret",
        "bucket": "pages",
        "endpoint_url": None,
        "cert_path": None,
        "http_proxy": None,
        "https_proxy": None,
    }
    values.update(overrides)
    return Settings(**values)


def test_from_settings_builds_r2_client(mocker) -> None:
    client_factory = mocker.patch("pdfraster.storage.boto3.client")

    store = S3ObjectStore.from_settings(_storage_settings())

    assert store.bucket == "pages"
    kwargs = client_factory.call_args.kwargs
    assert client_factory.call_args.args == ("s3",)
    assert kwargs["endpoint_url"] == "https://acc.r2.cloudflarestorage.com"
    assert kwargs["aws_access_key_id"] == "key"
    assert kwargs["aws_secret_access_key"] == "secret"
    assert kwargs["verify"] is True


def test_from_settings_reports_missing_values(mocker) -> None:
    client_factory = mocker.patch("pdfraster.storage.boto3.client")

    with pytest.raises(SettingsError, match="PDF_BUCKET") as exc_info:
        S3ObjectStore.from_settings(_storage_settings(bucket=None, secret=None))

    assert "PDF_SECRET" in str(exc_info.value)
    client_factory.assert_not_called()


def test_build_client_config_disables_retries() -> None:
    config = build_client_config(_storage_settings(https_proxy="http://proxy:3128"))

    assert config.region_name == "auto"
    assert config.retries == {"max_attempts": 1, "mode": "standard"}
    assert config.proxies == {"https": "http://proxy:3128"}


def test_put_object_forwards_to_client(mocker) -> None:
    client = mocker.Mock()
    store = S3ObjectStore(client, "pages")

    asyncio.run(store.put_object("fp-0.png", b"data", content_type="image/png"))

    client.put_object.assert_called_once_with(
        Bucket="pages",
        Key="fp-0.png",
        Body=b"data",
        ContentType="image/png",
    )


def test_put_object_propagates_client_errors(mocker) -> None:
    client = mocker.Mock()
    client.put_object.side_effect = ConnectionError("down")
    store = S3ObjectStore(client, "pages")

    with pytest.raises(ConnectionError):
        asyncio.run(store.put_object("fp-0.png", b"data", content_type="image/png"))
