"""Tests for settings loading and logging setup."""

import logging

import pytest

from multiblob.config import DEFAULT_PRODUCTION_DOMAINS, Settings, load_settings
from multiblob.logging_config import _coerce_level, configure_logging

ENV_VARS = (
    "MULTIBLOB_STORE",
    "MULTIBLOB_ROOT",
    "MULTIBLOB_ENDPOINT_URL",
    "MULTIBLOB_ACCESS_KEY_ID",
    "MULTIBLOB_SECRET_ACCESS_KEY",
    "MULTIBLOB_REGION",
    "MULTIBLOB_LOGLEVEL",
    "MULTIBLOB_HEADER_BLOCK_SIZE",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch, tmp_path):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)


def test_defaults_without_file():
    settings = load_settings()
    assert settings.store == "file"
    assert settings.header_block_size == 10 * 1024 * 1024
    assert settings.production_domains == DEFAULT_PRODUCTION_DOMAINS


def test_yaml_file_in_working_directory(tmp_path):
    (tmp_path / "multiblob.yaml").write_text(
        "store: s3\n"
        "endpoint_url: minio.local:9000\n"
        "header_block_size: 1024\n"
        "production_domains: .example.org\n"
    )
    settings = load_settings()
    assert settings.store == "s3"
    assert settings.endpoint_url == "https://minio.local:9000"
    assert settings.header_block_size == 1024
    assert settings.production_domains == (".example.org",)


def test_env_overrides_file(tmp_path, monkeypatch):
    cfg = tmp_path / "custom.yaml"
    cfg.write_text("root: /from/file\nlog_level: DEBUG\n")
    monkeypatch.setenv("MULTIBLOB_ROOT", "/from/env")
    settings = load_settings(cfg)
    assert settings.root == "/from/env"
    assert settings.log_level == "DEBUG"


def test_explicit_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_settings(tmp_path / "absent.yaml")


def test_non_mapping_file_is_ignored(tmp_path):
    cfg = tmp_path / "list.yaml"
    cfg.write_text("- a\n- b\n")
    assert load_settings(cfg).store == "file"


def test_unknown_keys_are_ignored():
    settings = Settings.from_mapping({"store": "file", "colour": "blue", "region": None})
    assert settings.store == "file"
    assert settings.region is None


def test_invalid_sizes():
    with pytest.raises(ValueError):
        Settings.from_mapping({"max_block_size": 0})
    with pytest.raises(ValueError):
        Settings.from_mapping({"download_chunk_size": "lots"})


def test_masked_hides_secrets():
    settings = Settings(access_key_id="AKIA", secret_access_key="s3cr3t", endpoint_url="http://x")
    masked = settings.masked()
    assert masked["access_key_id"] == "***"
    assert masked["secret_access_key"] == "***"
    assert masked["endpoint_url"] == "http://x"


@pytest.mark.parametrize(
    "level, expected",
    [
        ("debug", logging.DEBUG),
        ("WARNING", logging.WARNING),
        (logging.ERROR, logging.ERROR),
        ("nonsense", logging.INFO),
    ],
)
def test_coerce_level(level, expected):
    assert _coerce_level(level) == expected


def test_coerce_level_from_environment(monkeypatch):
    monkeypatch.setenv("MULTIBLOB_LOGLEVEL", "ERROR")
    assert _coerce_level(None) == logging.ERROR


def test_configure_logging_quiets_sdk():
    logger = configure_logging("DEBUG")
    assert logger.name == "multiblob"
    assert logger.level == logging.DEBUG
    assert logging.getLogger("botocore").level == logging.WARNING
