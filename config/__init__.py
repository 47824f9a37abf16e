from config.settings import (
    AppleCredentials,
    BarkCredentials,
    Config,
    TelegramCredentials,
    load_config,
)

__all__ = [
    "AppleCredentials",
    "BarkCredentials",
    "Config",
    "TelegramCredentials",
    "load_config",
]
