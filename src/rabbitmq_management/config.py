# SPDX-FileCopyrightText: 2026 Lasath Fernando <devel@lasath.org>
#
# SPDX-License-Identifier: GPL-3.0-or-later

"""Connection settings for the management API.

Settings are layered, highest priority first:

1. RABBITMQ_MANAGEMENT_URL / _USER / _PASSWORD environment variables
2. ~/.config/rabbitmq-management/management.conf  (user)
3. /etc/rabbitmq-management/management.conf      (system)

Config files are INI files with a [management] section:

    [management]
    url = http://broker.example.com:15672/api
    username = monitoring
    password = secret
"""

import configparser
import os
from pathlib import Path
from typing import NamedTuple


class ConnectionSettings(NamedTuple):
    """Where and as whom to connect to the management API."""

    url: str
    username: str
    password: str


DEFAULT_URL = "http://localhost:15672/api"
DEFAULT_USERNAME = "guest"
DEFAULT_PASSWORD = "guest"

SECTION = "management"

ENV_VARS = {
    "url": "RABBITMQ_MANAGEMENT_URL",
    "username": "RABBITMQ_MANAGEMENT_USER",
    "password": "RABBITMQ_MANAGEMENT_PASSWORD",
}


def get_config_path() -> Path:
    """Get the user config file path (for writing)."""
    config_home = os.environ.get("XDG_CONFIG_HOME", "")
    if not config_home:
        config_home = os.path.expanduser("~/.config")
    return Path(config_home) / "rabbitmq-management" / "management.conf"


def get_config_paths() -> list[Path]:
    """Get all config file paths in priority order (highest first)."""
    return [
        get_config_path(),
        Path("/etc/rabbitmq-management/management.conf"),
    ]


def load_settings(paths: list[Path] | None = None) -> ConnectionSettings:
    """Load settings from config files and the environment.

    Args:
        paths: Config files in priority order (highest first). Defaults
            to get_config_paths().

    Returns:
        ConnectionSettings with merged values.
    """
    values = {
        "url": DEFAULT_URL,
        "username": DEFAULT_USERNAME,
        "password": DEFAULT_PASSWORD,
    }

    if paths is None:
        paths = get_config_paths()

    # Lowest priority first, so later files override
    for config_path in reversed(paths):
        if not config_path.exists():
            continue

        parser = configparser.ConfigParser(interpolation=None)
        try:
            parser.read(config_path)
        except configparser.Error:
            # Skip malformed config files
            continue

        if parser.has_section(SECTION):
            for key in values:
                if parser.has_option(SECTION, key):
                    values[key] = parser.get(SECTION, key)

    for key, env_var in ENV_VARS.items():
        if os.environ.get(env_var):
            values[key] = os.environ[env_var]

    return ConnectionSettings(**values)


def save_settings(settings: ConnectionSettings, path: Path | None = None) -> Path:
    """Save settings to the user config file.

    Returns:
        The path written to.
    """
    config_path = path or get_config_path()
    config_path.parent.mkdir(parents=True, exist_ok=True)

    parser = configparser.ConfigParser(interpolation=None)
    parser[SECTION] = settings._asdict()

    with open(config_path, "w") as f:
        parser.write(f)
    # May hold a password
    config_path.chmod(0o600)
    return config_path
