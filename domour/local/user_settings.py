import os
import json
import logging
import threading
from pathlib import Path
from dataclasses import asdict, dataclass, fields
from typing import Any, Dict, Optional

from domour.local.config import effective_settings as config

log = logging.getLogger(__name__)


@dataclass
class AppSettings:
    """The user's persisted preferences. Field names match the on-disk JSON keys."""
    displayName: str = "Domour Copilot"
    autoUpdate: bool = True
    vlinkAutoStart: bool = False
    notes: str = ""
    pomodoroNotifyDesktop: bool = True
    pomodoroNotifySound: bool = False

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "AppSettings":
        """Builds settings from JSON data; unknown keys are ignored, missing ones defaulted."""
        known = {f.name for f in fields(cls)}
        return cls(**{k: v for k, v in data.items() if k in known})

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


class UserSettingsStore:
    """
    Loads and saves `AppSettings` as indented JSON at a fixed per-user path.

    Readers and writers share one lock so the in-memory copy and the file agree.
    """

    def __init__(self, path: Optional[Path] = None) -> None:
        self.path = Path(path or config.USER_SETTINGS_PATH)
        self._lock = threading.Lock()
        self._settings = AppSettings()

    def load(self) -> AppSettings:
        """
        Reads the settings file. If it is missing or unreadable the defaults are
        used and written back.
        """
        try:
            data = json.loads(self.path.read_text())
            if not isinstance(data, dict):
                raise ValueError("settings file must contain a JSON object")
            settings = AppSettings.from_dict(data)
        except (OSError, ValueError, TypeError) as e:
            log.warning(f"Could not read settings from '{self.path}' ({e}). Using defaults.")
            settings = AppSettings()
            try:
                self._write(settings)
            except OSError:
                pass  # already logged; defaults still apply for this session

        with self._lock:
            self._settings = settings
        return settings

    def get(self) -> AppSettings:
        with self._lock:
            return self._settings

    def save(self, settings: AppSettings) -> str:
        """Replaces the current settings and persists them."""
        with self._lock:
            self._settings = settings
        self._write(settings)
        return "settings saved"

    def _write(self, settings: AppSettings) -> None:
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd = os.open(self.path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
            with os.fdopen(fd, "w") as f:
                json.dump(settings.to_dict(), f, indent=2)
            os.chmod(self.path, 0o600)
        except OSError as e:
            log.error(f"Failed to write settings to '{self.path}': {e}")
            raise
