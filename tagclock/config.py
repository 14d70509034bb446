"""Configuration for tagClock, read from the environment and `tagclock.env`."""
import os
import socket
from dataclasses import dataclass
from datetime import tzinfo
from typing import Optional

from dotenv import load_dotenv

from .errors import InvalidInputError

DEFAULT_ENV_FILE = os.path.join("~", ".config", "tagclock", "tagclock.env")
DEFAULT_SYNC_DIR = os.path.join("~", ".local", "share", "tagclock")


@dataclass
class Config:
    """Resolved settings."""
    sync_dir: str
    device_id: str
    timezone_name: Optional[str] = None

    @property
    def tz(self) -> Optional[tzinfo]:
        """Zone for local dates, or None to use the system zone."""
        if not self.timezone_name:
            return None
        from zoneinfo import ZoneInfo, ZoneInfoNotFoundError
        try:
            return ZoneInfo(self.timezone_name)
        except (ZoneInfoNotFoundError, ValueError):
            raise InvalidInputError(f"Unknown timezone '{self.timezone_name}' in TAGCLOCK_TIMEZONE")


def load_environment(env_file: Optional[str] = None) -> Optional[str]:
    """Load variables from the tagclock.env file if it exists.

    Variables already set in the environment take precedence.

    Returns:
        Path of the loaded file, or None if there was none
    """
    path = os.path.expanduser(env_file or os.getenv("TAGCLOCK_ENV_FILE") or DEFAULT_ENV_FILE)
    if not os.path.exists(path):
        return None
    load_dotenv(path)
    return path


def get_env_var(key: str, default: Optional[str] = None) -> Optional[str]:
    """Get an environment variable, treating empty values as unset."""
    value = os.getenv(key)
    return value if value else default


def default_device_id() -> str:
    return socket.gethostname().split(".")[0] or "default"


def load_config(sync_dir: Optional[str] = None, device_id: Optional[str] = None) -> Config:
    """Build the configuration; explicit arguments override the environment.

    Args:
        sync_dir: Value of --sync-dir (optional)
        device_id: Value of --device (optional)

    Returns:
        Config
    """
    device = device_id or get_env_var("TAGCLOCK_DEVICE_ID") or default_device_id()
    if any(sep in device for sep in ("/", "\\")) or device.startswith("."):
        raise InvalidInputError(f"Invalid device id '{device}'")
    return Config(
        sync_dir=os.path.expanduser(sync_dir or get_env_var("TAGCLOCK_SYNC_DIR", DEFAULT_SYNC_DIR)),
        device_id=device,
        timezone_name=get_env_var("TAGCLOCK_TIMEZONE"),
    )
