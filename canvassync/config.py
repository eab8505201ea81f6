"""
Configuration management for Canvas Sync.

Config file (JSON, default ~/.canvassync.json):
- url: Canvas root URL, e.g. "https://canvas.example.edu"
- token: Canvas access token (or set CANVAS_TOKEN)
- directory: Local directory courses are mirrored into
- ignored_courses: Optional list of course ids to skip
"""

import json
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from .core.constants import CONFIG_FILENAME
from .errors import ConfigError

CONFIG_ENV_VAR = "CANVAS_SYNC_CONFIG"
TOKEN_ENV_VAR = "CANVAS_TOKEN"


def get_config_path() -> Path:
    """Get path to the config file, honouring CANVAS_SYNC_CONFIG."""
    override = os.environ.get(CONFIG_ENV_VAR)
    if override:
        return Path(override).expanduser()
    return Path.home() / CONFIG_FILENAME


@dataclass
class SyncConfig:
    """Validated sync settings."""
    url: str
    token: str
    directory: Path
    ignored_courses: set[int] = field(default_factory=set)

    @classmethod
    def from_dict(cls, data: dict) -> "SyncConfig":
        if not isinstance(data, dict):
            raise ConfigError("Config must be a JSON object")

        url = data.get("url")
        if not isinstance(url, str) or not url.strip():
            raise ConfigError("Config is missing 'url'")

        token = data.get("token") or os.environ.get(TOKEN_ENV_VAR, "")
        if not isinstance(token, str) or not token:
            raise ConfigError(f"Config is missing 'token' (or set {TOKEN_ENV_VAR})")

        directory = data.get("directory")
        if not isinstance(directory, str) or not directory.strip():
            raise ConfigError("Config is missing 'directory'")

        ignored = data.get("ignored_courses") or []
        if not isinstance(ignored, list):
            raise ConfigError("'ignored_courses' must be a list of course ids")
        try:
            ignored_courses = {int(course_id) for course_id in ignored}
        except (TypeError, ValueError):
            raise ConfigError("'ignored_courses' must be a list of course ids")

        return cls(
            url=url.strip().rstrip("/"),
            token=token,
            directory=Path(directory).expanduser(),
            ignored_courses=ignored_courses,
        )

    @classmethod
    def load(cls, path: Optional[Path] = None) -> "SyncConfig":
        """Load and validate the config file."""
        if path is None:
            path = get_config_path()

        try:
            with open(path) as f:
                data = json.load(f)
        except FileNotFoundError:
            raise ConfigError(f"Cannot find config file {path}")
        except json.JSONDecodeError as e:
            raise ConfigError(f"Invalid config file {path}: {e}")
        except OSError as e:
            raise ConfigError(f"Cannot open config file {path}: {e}")

        return cls.from_dict(data)
