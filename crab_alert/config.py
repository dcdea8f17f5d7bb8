#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""Configuration management for CrabAlert.

The MailCrab endpoint is fixed. Timing and behavior settings come from a
read-only JSON file layered over built-in defaults.
"""

import os
import json
import logging

logger = logging.getLogger(__name__)

# Configuration paths
CONFIG_DIR = os.path.expanduser("~/.config/crab-alert")
SETTINGS_PATH = os.path.join(CONFIG_DIR, "settings.json")
ICON_PATH = os.path.join(CONFIG_DIR, "crab-alert.png")

# MailCrab endpoints
SERVER_URL = "http://localhost:1080"
WEBSOCKET_URL = "ws://localhost:1080/ws"
WEB_UI_URL = "http://localhost:1080/"

# Default settings
DEFAULT_SETTINGS = {
    "reconnect_interval": 5,  # Seconds
    "reconnect_backoff": False,
    "reconnect_max_interval": 60,  # Seconds, only used with backoff
    "fetch_timeout": 10,  # Seconds
    "notification_delay": 1,  # Seconds
    "enrich_body": True,
}

# Delays that must stay strictly positive
POSITIVE_SETTINGS = {"reconnect_interval", "reconnect_max_interval", "fetch_timeout"}


def _is_valid(key, value):
    """Check a stored value against the type of its default."""
    default = DEFAULT_SETTINGS[key]
    if isinstance(default, bool):
        return isinstance(value, bool)
    # bool is an int subclass; a flag is never a duration
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    if key in POSITIVE_SETTINGS:
        return value > 0
    return value >= 0


def load_settings(path=SETTINGS_PATH):
    """Load settings from the configuration file.

    Args:
        path: Location of the JSON settings file.

    Returns:
        dict: Defaults overlaid with the valid known keys found in the file.
              A missing or corrupted file yields the defaults; unknown keys
              and mistyped values are logged and skipped.
    """
    settings = DEFAULT_SETTINGS.copy()
    if not os.path.exists(path):
        return settings

    with open(path, "r") as f:
        try:
            stored = json.load(f)
        except (json.JSONDecodeError, ValueError):
            logger.warning("Settings file %s corrupted. Loading defaults.", path)
            return settings

    if not isinstance(stored, dict):
        logger.warning("Settings file %s is not an object. Loading defaults.", path)
        return settings

    for key, value in stored.items():
        if key not in DEFAULT_SETTINGS:
            logger.warning("Ignoring unknown setting %r", key)
        elif not _is_valid(key, value):
            logger.warning(
                "Ignoring invalid value %r for setting %r, keeping %r",
                value,
                key,
                DEFAULT_SETTINGS[key],
            )
        else:
            settings[key] = value
    return settings
