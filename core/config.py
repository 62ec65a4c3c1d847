from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
import tomllib

from utils.numbers import as_float, as_int, clamp


def _as_bool(value, *, default: bool) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return bool(value)
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in {"1", "true", "yes", "y", "on"}:
            return True
        if lowered in {"0", "false", "no", "n", "off"}:
            return False
    return bool(default)


def _as_str(value, *, default: str) -> str:
    if isinstance(value, str) and value.strip():
        return value.strip()
    return default


def _table(data: dict, name: str) -> dict:
    value = data.get(name)
    return value if isinstance(value, dict) else {}


@dataclass(frozen=True)
class StorageConfig:
    db_path: str = "focus.db"


@dataclass(frozen=True)
class SoundsConfig:
    dir: str = "assets/sound"
    preview_ms: int = 5000


@dataclass(frozen=True)
class SessionSettings:
    tick_seconds: float = 1.0
    prolong_minutes: int = 10
    default_volume: float = 0.7


@dataclass(frozen=True)
class NotificationsConfig:
    enabled: bool = True
    app_name: str = "Focus Core"
    timeout: int = 5


@dataclass(frozen=True)
class LoggingConfig:
    level: str = "INFO"
    file: str = "logs/focus.log"


@dataclass(frozen=True)
class FocusConfig:
    storage: StorageConfig = field(default_factory=StorageConfig)
    sounds: SoundsConfig = field(default_factory=SoundsConfig)
    session: SessionSettings = field(default_factory=SessionSettings)
    notifications: NotificationsConfig = field(default_factory=NotificationsConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)


def load_focus_toml(path: Path) -> tuple[FocusConfig, str]:
    """Load app config from focus.toml.

    Returns (config, warning). Warning is empty on success; a missing file is
    not a warning.
    """

    if not path.exists():
        return FocusConfig(), ""

    try:
        data = tomllib.loads(path.read_text(encoding="utf-8"))
    except Exception as exc:  # noqa: BLE001
        return FocusConfig(), f"focus.toml parse failed: {exc}"

    storage = _table(data, "storage")
    sounds = _table(data, "sounds")
    session = _table(data, "session")
    notifications = _table(data, "notifications")
    logging_ = _table(data, "logging")

    cfg = FocusConfig(
        storage=StorageConfig(
            db_path=_as_str(storage.get("db_path"), default=StorageConfig.db_path),
        ),
        sounds=SoundsConfig(
            dir=_as_str(sounds.get("dir"), default=SoundsConfig.dir),
            preview_ms=max(0, as_int(sounds.get("preview_ms"), default=SoundsConfig.preview_ms)),
        ),
        session=SessionSettings(
            tick_seconds=max(
                0.001, as_float(session.get("tick_seconds"), default=SessionSettings.tick_seconds)
            ),
            prolong_minutes=int(
                clamp(as_int(session.get("prolong_minutes"), default=SessionSettings.prolong_minutes), 1, 480)
            ),
            default_volume=clamp(
                as_float(session.get("default_volume"), default=SessionSettings.default_volume), 0.0, 1.0
            ),
        ),
        notifications=NotificationsConfig(
            enabled=_as_bool(notifications.get("enabled"), default=NotificationsConfig.enabled),
            app_name=_as_str(notifications.get("app_name"), default=NotificationsConfig.app_name),
            timeout=max(1, as_int(notifications.get("timeout"), default=NotificationsConfig.timeout)),
        ),
        logging=LoggingConfig(
            level=_as_str(logging_.get("level"), default=LoggingConfig.level).upper(),
            file=_as_str(logging_.get("file"), default=LoggingConfig.file),
        ),
    )
    return cfg, ""
