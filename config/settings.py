"""
Configuration. All settings from env vars, optionally overlaid by one JSON file.

Built once at startup, validated, then passed explicitly to every component.
"""

import json
import os
from dataclasses import dataclass, field, fields
from pathlib import Path

# Auto-load .env file so you don't need `export $(grep ...)` every time
from dotenv import load_dotenv
load_dotenv()

from errors import ConfigurationError

LEVELS = ("passive", "active", "time-sensitive", "critical")


def _env_list(name: str) -> list[str]:
    raw = os.environ.get(name, "")
    return [part.strip() for part in raw.split(",") if part.strip()]


_TRUE = ("1", "true", "yes", "on")
_FALSE = ("0", "false", "no", "off", "")


def _as_bool(name: str, value) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str) and value.strip().lower() in _TRUE + _FALSE:
        return value.strip().lower() in _TRUE
    raise ConfigurationError(f"{name} must be a boolean, got {value!r}")


def _as_number(name: str, value, kind: type):
    # bool is an int subclass; "true" for a page number is a mistake, not 1
    if isinstance(value, bool):
        raise ConfigurationError(f"{name} must be a number, got {value!r}")
    try:
        return kind(value)
    except (TypeError, ValueError) as e:
        raise ConfigurationError(f"{name} must be a number, got {value!r}") from e


def _env_bool(name: str):
    return lambda: _as_bool(name, os.environ.get(name, ""))


def _env_int(name: str, default: str):
    return lambda: _as_number(name, os.environ.get(name, default), int)


def _env_float(name: str, default: str):
    return lambda: _as_number(name, os.environ.get(name, default), float)


@dataclass
class AppleCredentials:
    device_token: str
    group: str = ""


@dataclass
class BarkCredentials:
    device_key: str
    endpoint: str = "https://api.day.app/push"


@dataclass
class TelegramCredentials:
    bot_id: str
    chat_id: str


def _apple_from_env() -> AppleCredentials | None:
    token = os.environ.get("FEEDRELAY_APNS_DEVICE_TOKEN", "")
    if not token:
        return None
    return AppleCredentials(token, os.environ.get("FEEDRELAY_APNS_GROUP", ""))


def _bark_from_env() -> BarkCredentials | None:
    key = os.environ.get("FEEDRELAY_BARK_DEVICE_KEY", "")
    if not key:
        return None
    endpoint = os.environ.get("FEEDRELAY_BARK_ENDPOINT", "")
    return BarkCredentials(key, endpoint) if endpoint else BarkCredentials(key)


def _telegram_from_env() -> TelegramCredentials | None:
    bot_id = os.environ.get("FEEDRELAY_TELEGRAM_BOT_ID", "")
    chat_id = os.environ.get("FEEDRELAY_TELEGRAM_CHAT_ID", "")
    if not (bot_id and chat_id):
        return None
    return TelegramCredentials(bot_id, chat_id)


@dataclass
class Config:
    # Storage
    db_path: Path = Path(os.environ.get("FEEDRELAY_DB_PATH", "data/feed-relay.db"))

    # Push gateway and the redirect service used for app deep links
    push_url: str = os.environ.get(
        "FEEDRELAY_PUSH_URL", "https://p.19940731.xyz/api/notifications/push/v3"
    )
    redirect_url: str = os.environ.get(
        "FEEDRELAY_REDIRECT_URL", "https://p.19940731.xyz/api/network/url/redirect"
    )
    request_timeout: float = field(default_factory=_env_float("FEEDRELAY_REQUEST_TIMEOUT", "20"))
    debug: bool = field(default_factory=_env_bool("FEEDRELAY_DEBUG"))

    # ── Telegram channels (cursor-tracked) ──
    channels: list[str] = field(default_factory=lambda: _env_list("FEEDRELAY_CHANNELS"))
    channel_base_url: str = os.environ.get("FEEDRELAY_CHANNEL_BASE_URL", "https://t.me/s")
    # Max items delivered per channel per run. Also bounds the page walk.
    once_max_size: int = field(default_factory=_env_int("FEEDRELAY_ONCE_MAX_SIZE", "10"))

    # ── Notification shaping ──
    level: str = os.environ.get("FEEDRELAY_LEVEL", "passive")
    group: str = os.environ.get("FEEDRELAY_GROUP", "Telegram")
    icon: str = os.environ.get("FEEDRELAY_ICON", "")
    active_keywords: list[str] = field(default_factory=lambda: _env_list("FEEDRELAY_ACTIVE_KEYWORDS"))
    block_keywords: list[str] = field(default_factory=lambda: _env_list("FEEDRELAY_BLOCK_KEYWORDS"))

    # ── NGA threads (per-item cache) ──
    nga_api_url: str = os.environ.get("FEEDRELAY_NGA_API_URL", "https://p.19940731.xyz/api/nga/threads/v2")
    nga_fids: list[str] = field(default_factory=lambda: _env_list("FEEDRELAY_NGA_FIDS"))
    nga_uid: str = os.environ.get("FEEDRELAY_NGA_UID", "")
    nga_cid: str = os.environ.get("FEEDRELAY_NGA_CID", "")
    nga_from_page: int = field(default_factory=_env_int("FEEDRELAY_NGA_FROM", "1"))
    nga_to_page: int = field(default_factory=_env_int("FEEDRELAY_NGA_TO", "1"))
    nga_once_max: int = field(default_factory=_env_int("FEEDRELAY_NGA_ONCE_MAX", "0"))  # 0 = no cap
    nga_group: str = os.environ.get("FEEDRELAY_NGA_GROUP", "nga-threads")
    force: bool = field(default_factory=_env_bool("FEEDRELAY_FORCE"))

    # ── Push providers. None = provider skipped. ──
    apple: AppleCredentials | None = field(default_factory=_apple_from_env)
    bark: BarkCredentials | None = field(default_factory=_bark_from_env)
    telegram: TelegramCredentials | None = field(default_factory=_telegram_from_env)

    @property
    def has_provider(self) -> bool:
        return any((self.apple, self.bark, self.telegram))

    def validate(self) -> "Config":
        """Reject the run before any feed is touched."""
        if not self.channels and not self.nga_fids:
            raise ConfigurationError("no feeds configured: set channels and/or nga_fids")
        if not self.has_provider:
            raise ConfigurationError("no push provider configured: set apple, bark or telegram")
        if self.once_max_size <= 0:
            raise ConfigurationError(f"once_max_size must be positive, got {self.once_max_size}")
        if self.nga_from_page <= 0 or self.nga_to_page <= 0:
            raise ConfigurationError(
                f"page range must be positive, got {self.nga_from_page}..{self.nga_to_page}"
            )
        if self.nga_once_max < 0:
            raise ConfigurationError(f"nga_once_max must not be negative, got {self.nga_once_max}")
        if self.level not in LEVELS:
            raise ConfigurationError(f"invalid level {self.level!r}, expected one of {LEVELS}")
        if self.request_timeout <= 0:
            raise ConfigurationError(f"request_timeout must be positive, got {self.request_timeout}")
        if not self.push_url:
            raise ConfigurationError("push_url is required")
        return self


_PROVIDERS = {
    "apple": AppleCredentials,
    "bark": BarkCredentials,
    "telegram": TelegramCredentials,
}


def apply_overrides(config: Config, data: dict) -> Config:
    """Overlay a parsed JSON document onto a Config. Unknown keys are errors."""
    known = {f.name: f for f in fields(Config)}
    for key, value in data.items():
        if key not in known:
            raise ConfigurationError(f"unknown config key: {key}")
        if key in _PROVIDERS:
            if value is None:
                setattr(config, key, None)
                continue
            if not isinstance(value, dict):
                raise ConfigurationError(f"{key} must be an object, got {type(value).__name__}")
            try:
                value = _PROVIDERS[key](**value)
            except TypeError as e:
                raise ConfigurationError(f"invalid {key} credentials: {e}") from e
        elif key == "db_path":
            value = Path(value)
        elif key in ("channels", "nga_fids", "active_keywords", "block_keywords"):
            if not isinstance(value, list):
                raise ConfigurationError(f"{key} must be a list, got {type(value).__name__}")
            value = [str(v) for v in value]
        elif known[key].type is bool:
            value = _as_bool(key, value)
        elif known[key].type in (int, float):
            value = _as_number(key, value, known[key].type)
        setattr(config, key, value)
    return config


def load_config(path: Path | None = None) -> Config:
    config = Config()
    path = path or (Path(os.environ["FEEDRELAY_CONFIG"]) if os.environ.get("FEEDRELAY_CONFIG") else None)
    if path is not None:
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            raise ConfigurationError(f"cannot read config file {path}: {e}") from e
        if not isinstance(data, dict):
            raise ConfigurationError(f"config file {path} must hold a JSON object")
        apply_overrides(config, data)
    return config.validate()
