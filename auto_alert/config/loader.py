"""Configuration loading helpers for Auto-Alert."""

from __future__ import annotations

import json
import os
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Mapping

import yaml

from .models import AppConfig

CONFIG_FILENAME = "config.yaml"
HOME_ENV = "AUTO_ALERT_HOME"

_DURATION_PATTERN = re.compile(r"(?P<value>\d+(?:\.\d+)?)(?P<unit>ms|[smhd])", re.IGNORECASE)
_UNIT_SECONDS = {"ms": 0.001, "s": 1.0, "m": 60.0, "h": 3600.0, "d": 86400.0}


def parse_duration(value: str) -> float:
    """Parse ``"90"``, ``"10m"`` or ``"1h30m"`` into seconds."""

    text = value.strip().lower()
    if not text:
        raise ValueError("duration cannot be empty")
    try:
        seconds = float(text)
    except ValueError:
        pass
    else:
        if seconds <= 0:
            raise ValueError(f"duration must be positive: {value}")
        return seconds
    total = 0.0
    index = 0
    for match in _DURATION_PATTERN.finditer(text):
        if match.start() != index:
            raise ValueError(f"unsupported duration format: {value}")
        total += float(match.group("value")) * _UNIT_SECONDS[match.group("unit").lower()]
        index = match.end()
    if index != len(text) or total <= 0:
        raise ValueError(f"unsupported duration format: {value}")
    return total


def _read_file(path: Path) -> dict:
    text = path.read_text(encoding="utf-8")
    if path.suffix in (".yaml", ".yml"):
        data = yaml.safe_load(text) or {}
    else:
        data = json.loads(text)
    if not isinstance(data, dict):
        raise ValueError(f"Configuration file must contain a mapping: {path}")
    return data


def _write_file(path: Path, payload: dict) -> None:
    with path.open("w", encoding="utf-8") as stream:
        if path.suffix in (".yaml", ".yml"):
            yaml.safe_dump(payload, stream, allow_unicode=True, sort_keys=False)
        else:
            json.dump(payload, stream, indent=2, ensure_ascii=False)


@dataclass(slots=True)
class ConfigLocator:
    """Resolve important paths from project root."""

    project_root: Path | None = None
    data_dir: Path | None = None
    taxonomy_dir: Path | None = None
    logs_dir: Path | None = None
    environ: Mapping[str, str] | None = None

    def __post_init__(self) -> None:
        env = os.environ if self.environ is None else self.environ
        env_root = env.get(HOME_ENV)
        if env_root:
            root = Path(env_root).expanduser().resolve()
        else:
            root = (self.project_root or Path.cwd()).resolve()
        self.project_root = root
        self.data_dir = (root / "data").resolve()
        self.taxonomy_dir = (self.data_dir / "taxonomy").resolve()
        self.logs_dir = (root / "logs").resolve()
        self.ensure_directories()

    def ensure_directories(self) -> None:
        for directory in (self.data_dir, self.taxonomy_dir, self.logs_dir):
            directory.mkdir(parents=True, exist_ok=True)

    def config_path(self) -> Path:
        return self.data_dir / CONFIG_FILENAME


class ConfigRepository:
    """Load the YAML config file and apply environment overrides."""

    def __init__(
        self, locator: ConfigLocator | None = None, environ: Mapping[str, str] | None = None
    ) -> None:
        self.locator = locator or ConfigLocator(environ=environ)
        self.environ = os.environ if environ is None else environ
        self._cache: AppConfig | None = None

    def load(self) -> AppConfig:
        if self._cache is not None:
            return self._cache
        path = self.locator.config_path()
        payload: dict[str, Any] = _read_file(path) if path.exists() else {}
        self._apply_env(payload)
        config = AppConfig.model_validate(payload)
        self._cache = config
        return config

    def save(self, config: AppConfig) -> Path:
        path = self.locator.config_path()
        _write_file(path, config.model_dump(mode="json"))
        self._cache = config
        return path

    def database_path(self) -> Path:
        return self.load().resolved_database_path(self.locator.project_root)

    def _apply_env(self, payload: dict[str, Any]) -> None:
        env = self.environ
        if env.get("TELEGRAM_BOT_TOKEN"):
            payload.setdefault("telegram", {})["bot_token"] = env["TELEGRAM_BOT_TOKEN"]
        if env.get("SCRAPER_INTERVAL"):
            payload.setdefault("scraper", {})["interval_seconds"] = parse_duration(env["SCRAPER_INTERVAL"])
        if env.get("SCRAPER_START_OFFSET"):
            payload.setdefault("scraper", {})["start_offset_seconds"] = parse_duration(
                env["SCRAPER_START_OFFSET"]
            )
        if env.get("SCRAPER_WORKERS_COUNT"):
            payload.setdefault("scraper", {})["workers"] = int(env["SCRAPER_WORKERS_COUNT"])
        if env.get("WORKER_NOTIFICATION_INTERVAL"):
            payload.setdefault("dispatcher", {})["interval_seconds"] = parse_duration(
                env["WORKER_NOTIFICATION_INTERVAL"]
            )
        if env.get("PAGE_LIMIT"):
            payload.setdefault("marketplace", {})["page_limit"] = int(env["PAGE_LIMIT"])
        if env.get("LOG_LEVEL"):
            payload["log_level"] = env["LOG_LEVEL"]
        if env.get("DATABASE_PATH"):
            payload["database_path"] = env["DATABASE_PATH"]


__all__ = ["CONFIG_FILENAME", "ConfigLocator", "ConfigRepository", "parse_duration"]
