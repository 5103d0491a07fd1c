from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Literal

AppEnv = Literal["dev", "test", "prod"]
LogLevel = Literal["debug", "info", "warning", "error"]

DEFAULT_TABLE_NAME = "oauth2_clients"


def _getenv(name: str, default: str) -> str:
    return os.environ.get(name, default).strip()


@dataclass(frozen=True)
class Settings:
    app_env: AppEnv
    log_level: LogLevel
    log_json: bool
    database_url: str | None
    client_table_name: str
    operation_timeout: float | None

    @property
    def is_dev(self) -> bool:
        return self.app_env == "dev"

    @property
    def is_test(self) -> bool:
        return self.app_env == "test"

    @property
    def is_prod(self) -> bool:
        return self.app_env == "prod"


@dataclass(frozen=True)
class ClientStoreConfig:
    """Construction-time options for a client store.

    database_url is only read by SqlClientStore.connect(); callers that
    hand in their own engine can leave it unset.
    """

    database_url: str | None = None
    table_name: str = ""
    echo: bool = False
    operation_timeout: float | None = None

    @property
    def resolved_table_name(self) -> str:
        return self.table_name or DEFAULT_TABLE_NAME

    @staticmethod
    def from_settings(settings: Settings) -> ClientStoreConfig:
        return ClientStoreConfig(
            database_url=settings.database_url,
            table_name=settings.client_table_name,
            echo=settings.is_dev,  # log SQL in dev only
            operation_timeout=settings.operation_timeout,
        )


def _parse_bool(name: str, raw: str) -> bool:
    if raw in ("1", "true", "yes", "on"):
        return True
    if raw in ("", "0", "false", "no", "off"):
        return False
    raise ValueError(f"{name} must be true|false (got {raw!r})")


def load_settings() -> Settings:
    app_env_raw = _getenv("APP_ENV", "dev").lower()
    log_level_raw = _getenv("LOG_LEVEL", "info").lower()
    log_json_raw = _getenv("LOG_JSON", "false").lower()
    timeout_raw = _getenv("CLIENT_STORE_TIMEOUT", "")

    if app_env_raw not in ("dev", "test", "prod"):
        raise ValueError(f"APP_ENV must be dev|test|prod (got {app_env_raw!r})")

    if log_level_raw not in ("debug", "info", "warning", "error"):
        raise ValueError(
            f"LOG_LEVEL must be debug|info|warning|error (got {log_level_raw!r})"
        )

    log_json = _parse_bool("LOG_JSON", log_json_raw)

    operation_timeout: float | None = None
    if timeout_raw:
        try:
            operation_timeout = float(timeout_raw)
        except ValueError:
            raise ValueError(
                f"CLIENT_STORE_TIMEOUT must be a number of seconds (got {timeout_raw!r})"
            ) from None
        if operation_timeout <= 0:
            raise ValueError(
                f"CLIENT_STORE_TIMEOUT must be positive (got {timeout_raw!r})"
            )

    database_url = _getenv("DATABASE_URL", "") or None
    client_table_name = _getenv("CLIENT_TABLE_NAME", "") or DEFAULT_TABLE_NAME

    return Settings(  # type: ignore[arg-type]
        app_env=app_env_raw,
        log_level=log_level_raw,
        log_json=log_json,
        database_url=database_url,
        client_table_name=client_table_name,
        operation_timeout=operation_timeout,
    )
