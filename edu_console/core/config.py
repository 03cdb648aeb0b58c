from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Literal

AppEnv = Literal["dev", "test", "prod"]
LogLevel = Literal["debug", "info", "warning", "error"]

_TRUTHY = ("1", "true", "yes", "on")
_FALSY = ("0", "false", "no", "off")


def _getenv(name: str, default: str) -> str:
    return os.environ.get(name, default).strip()


def _parse_bool(name: str, raw: str) -> bool:
    value = raw.lower()
    if value in _TRUTHY:
        return True
    if value in _FALSY:
        return False
    raise ValueError(f"{name} must be true|false (got {raw!r})")


@dataclass(frozen=True)
class Settings:
    app_env: AppEnv
    log_level: LogLevel
    log_json: bool
    port: int
    database_url: str | None
    snapshot_path: Path | None
    seed_sample_data: bool
    dashboard_top_n: int

    @property
    def is_dev(self) -> bool:
        return self.app_env == "dev"

    @property
    def is_test(self) -> bool:
        return self.app_env == "test"

    @property
    def is_prod(self) -> bool:
        return self.app_env == "prod"


def load_settings() -> Settings:
    app_env_raw = _getenv("APP_ENV", "dev").lower()
    log_level_raw = _getenv("LOG_LEVEL", "info").lower()
    port_raw = _getenv("PORT", "8000")
    top_n_raw = _getenv("DASHBOARD_TOP_N", "5")

    if app_env_raw not in ("dev", "test", "prod"):
        raise ValueError(f"APP_ENV must be dev|test|prod (got {app_env_raw!r})")

    if log_level_raw not in ("debug", "info", "warning", "error"):
        raise ValueError(
            f"LOG_LEVEL must be debug|info|warning|error (got {log_level_raw!r})"
        )

    try:
        port = int(port_raw)
    except ValueError:
        raise ValueError(f"PORT must be an integer (got {port_raw!r})") from None

    try:
        dashboard_top_n = int(top_n_raw)
    except ValueError:
        raise ValueError(
            f"DASHBOARD_TOP_N must be an integer (got {top_n_raw!r})"
        ) from None
    if dashboard_top_n < 1:
        raise ValueError(f"DASHBOARD_TOP_N must be >= 1 (got {dashboard_top_n})")

    log_json = _parse_bool("LOG_JSON", _getenv("LOG_JSON", "false"))
    # Sample data is a dev convenience; tests start from an empty store.
    seed_default = "false" if app_env_raw == "test" else "true"
    seed_sample_data = _parse_bool(
        "SEED_SAMPLE_DATA", _getenv("SEED_SAMPLE_DATA", seed_default)
    )

    database_url = _getenv("DATABASE_URL", "") or None
    snapshot_raw = _getenv("SNAPSHOT_PATH", "")
    snapshot_path = Path(snapshot_raw) if snapshot_raw else None

    return Settings(  # type: ignore[arg-type]
        app_env=app_env_raw,
        log_level=log_level_raw,
        log_json=log_json,
        port=port,
        database_url=database_url,
        snapshot_path=snapshot_path,
        seed_sample_data=seed_sample_data,
        dashboard_top_n=dashboard_top_n,
    )


SETTINGS = load_settings()
