"""Driver settings: an optional YAML file overlaid with environment variables."""

from __future__ import annotations

import os
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any

import yaml

from multiblob.logging_config import log

MIB = 1024 * 1024

DEFAULT_CONFIG_FILE = "multiblob.yaml"
DEFAULT_PRODUCTION_DOMAINS = (".core.windows.net", ".amazonaws.com")

_ENV_OVERRIDES = {
    "MULTIBLOB_STORE": "store",
    "MULTIBLOB_ROOT": "root",
    "MULTIBLOB_ENDPOINT_URL": "endpoint_url",
    "MULTIBLOB_ACCESS_KEY_ID": "access_key_id",
    "MULTIBLOB_SECRET_ACCESS_KEY": "secret_access_key",
    "MULTIBLOB_REGION": "region",
    "MULTIBLOB_LOGLEVEL": "log_level",
    "MULTIBLOB_HEADER_BLOCK_SIZE": "header_block_size",
}

_SENSITIVE_MARKERS = ("secret", "password", "token", "key")


@dataclass
class Settings:
    """Runtime configuration of a :class:`~multiblob.driver.Driver`."""

    store: str = "file"
    root: str = "."
    endpoint_url: str | None = None
    access_key_id: str | None = None
    secret_access_key: str | None = None
    region: str | None = None
    signature_version: str = "s3v4"
    log_level: str = "INFO"
    header_block_size: int = 10 * MIB
    download_chunk_size: int = 10 * MIB
    max_block_size: int = 100 * MIB
    production_domains: tuple[str, ...] = field(default=DEFAULT_PRODUCTION_DOMAINS)

    @classmethod
    def from_mapping(cls, data: dict[str, Any]) -> Settings:
        """Build settings from a mapping, ignoring unknown keys."""
        known = {f.name: f for f in fields(cls)}
        kwargs: dict[str, Any] = {}
        for key, value in data.items():
            if key not in known:
                log.warning("Ignoring unknown setting %r", key)
                continue
            if value is None:
                continue
            kwargs[key] = _coerce(key, value)
        settings = cls(**kwargs)
        settings.endpoint_url = _normalize_url(settings.endpoint_url)
        return settings

    def masked(self) -> dict[str, Any]:
        """Return the settings as a dict with secret values masked."""
        return {
            f.name: _mask_value(f.name, getattr(self, f.name)) for f in fields(self)
        }


def load_settings(path: str | Path | None = None) -> Settings:
    """Load settings from a YAML file overlaid with ``MULTIBLOB_*`` variables.

    When *path* is omitted, ``multiblob.yaml`` in the working directory is
    used if it exists. Environment variables always win over file values.
    """
    cfg_path = Path(path) if path is not None else Path(DEFAULT_CONFIG_FILE)
    cfg: dict[str, Any] = {}

    if cfg_path.exists():
        with cfg_path.open("r", encoding="utf-8") as fh:
            data = yaml.safe_load(fh) or {}
        if not isinstance(data, dict):
            log.warning("Config file %s does not contain a mapping", cfg_path)
        else:
            cfg.update(data)
    elif path is not None:
        raise FileNotFoundError(f"config file not found: {cfg_path}")

    for env_name, key in _ENV_OVERRIDES.items():
        value = os.getenv(env_name)
        if value:
            cfg[key] = value

    settings = Settings.from_mapping(cfg)
    log.debug("Configuration loaded: %s", settings.masked())
    return settings


def _coerce(key: str, value: Any) -> Any:
    if key in ("header_block_size", "download_chunk_size", "max_block_size"):
        size = int(value)
        if size <= 0:
            raise ValueError(f"{key} must be positive, got {size}")
        return size
    if key == "production_domains":
        if isinstance(value, str):
            value = [value]
        return tuple(str(v) for v in value)
    return str(value)


def _normalize_url(url: str | None) -> str | None:
    if not url:
        return None
    trimmed = url.strip()
    if not trimmed.startswith(("http://", "https://")):
        trimmed = f"https://{trimmed}"
        log.info("Normalized endpoint_url to %s", trimmed)
    return trimmed


def _mask_value(key: str, value: Any) -> Any:
    if value and any(marker in key.lower() for marker in _SENSITIVE_MARKERS):
        return "***"
    return value
