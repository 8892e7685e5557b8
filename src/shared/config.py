"""Configuration loading.

Settings live in ``marketplace.toml`` at the repository root. The top-level
tables hold the defaults; ``[environments.<name>]`` tables overlay them for
the environment selected by ``MARKETPLACE_ENV`` (``development`` when unset).
A few environment variables win over the file:

    DATABASE_URL   -> database.uri
    LOG_LEVEL      -> logging.level
    PAYMENT_MODE   -> payments.mode
"""

import os
import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

DEFAULT_CONFIG_PATH = Path(__file__).resolve().parents[2] / "marketplace.toml"

PAYMENT_MODES = ("random", "always_succeed", "always_fail")


@dataclass(frozen=True)
class PaymentSettings:
    mode: str = "random"
    success_rate: float = 0.7
    provider: str = "DummyPay"


@dataclass(frozen=True)
class Settings:
    env: str = "development"
    database_uri: str = "sqlite:///marketplace.db"
    echo_sql: bool = False
    lock_timeout_ms: int | None = 5000
    sqlite_busy_timeout_s: float = 30.0
    log_level: str = "INFO"
    log_json: bool = False
    payments: PaymentSettings = field(default_factory=PaymentSettings)


def _merge(base: dict, overlay: dict) -> dict:
    merged = dict(base)
    for key, value in overlay.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def _read_file(path: Path) -> dict[str, Any]:
    if not path.exists():
        return {}
    with path.open("rb") as fh:
        return tomllib.load(fh)


def load_settings(env: str | None = None, path: Path | str | None = None) -> Settings:
    """Build settings for ``env`` from the config file and environment."""
    env = (env or os.getenv("MARKETPLACE_ENV") or "development").lower()
    raw = _read_file(Path(path) if path else DEFAULT_CONFIG_PATH)

    environments = raw.pop("environments", {})
    data = _merge(raw, environments.get(env, {}))

    database = data.get("database", {})
    logging_ = data.get("logging", {})
    payments = data.get("payments", {})

    payment_mode = os.getenv("PAYMENT_MODE") or payments.get("mode", PaymentSettings.mode)
    if payment_mode not in PAYMENT_MODES:
        raise ValueError(f"Unknown payment mode {payment_mode!r}; expected one of {', '.join(PAYMENT_MODES)}")

    success_rate = float(payments.get("success_rate", PaymentSettings.success_rate))
    if not 0.0 <= success_rate <= 1.0:
        raise ValueError(f"payments.success_rate must be within [0, 1], got {success_rate}")

    return Settings(
        env=env,
        database_uri=os.getenv("DATABASE_URL") or database.get("uri", Settings.database_uri),
        echo_sql=bool(database.get("echo", False)),
        lock_timeout_ms=database.get("lock_timeout_ms", Settings.lock_timeout_ms),
        sqlite_busy_timeout_s=float(database.get("sqlite_busy_timeout_s", Settings.sqlite_busy_timeout_s)),
        log_level=(os.getenv("LOG_LEVEL") or logging_.get("level", Settings.log_level)).upper(),
        log_json=bool(logging_.get("json", False)),
        payments=PaymentSettings(
            mode=payment_mode,
            success_rate=success_rate,
            provider=payments.get("provider", PaymentSettings.provider),
        ),
    )
