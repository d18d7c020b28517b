# src/clitester/telemetry/logger/processors.py

"""
Custom structlog processors used by clitester's logging setup.
"""

import logging

from structlog.typing import EventDict, WrappedLogger

LOG_EMOJIS = {
    logging.DEBUG: "🐛",
    logging.INFO: "ℹ️",
    logging.WARNING: "⚠️",
    logging.ERROR: "❌",
    logging.CRITICAL: "💥",
    "spawn": "🚀",
    "stream": "📥",
    "exit": "🏁",
    "kill": "🔪",
    "sandbox": "📁",
    "time": "⏱️",
    "snapshot": "📸",
    "general": "➡️",
}

# Keys used only to steer processors; they never reach the renderer.
INTERNAL_KEYS = ("emoji_key",)


def add_emoji_processor(logger: WrappedLogger, method_name: str, event_dict: EventDict) -> EventDict:
    """Prefixes the event with an emoji chosen by `emoji_key` or the log level."""
    emoji_key = event_dict.get("emoji_key")
    emoji = LOG_EMOJIS.get(emoji_key) if emoji_key else None
    if emoji is None:
        level_name = str(event_dict.get("level", method_name)).upper()
        emoji = LOG_EMOJIS.get(logging.getLevelName(level_name), LOG_EMOJIS["general"])
    event = event_dict.get("event")
    if isinstance(event, str) and not event.startswith(emoji):
        event_dict["event"] = f"{emoji} {event}"
    return event_dict


def remove_extra_keys_processor(logger: WrappedLogger, method_name: str, event_dict: EventDict) -> EventDict:
    """Drops processor-only keys from the event dict."""
    for key in INTERNAL_KEYS:
        event_dict.pop(key, None)
    return event_dict


# 🔼⚙️
