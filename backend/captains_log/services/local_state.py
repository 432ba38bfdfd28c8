"""Client-side state kept in a single JSON file.

Holds the recording preferences, the OpenAI API key entered in settings and a
cached copy of the log list used when the server has nothing to offer.
"""

import json
import os
from pathlib import Path
from typing import Any, Optional

from captains_log.logging_config import get_logger
from captains_log.models.user import DEFAULT_USER_SETTINGS

logger = get_logger(__name__)

SETTINGS_KEY = "settings"
API_KEY_KEY = "openai_api_key"
LOGS_KEY = "logs"


class LocalStateStore:
    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)

    def _read(self) -> dict[str, Any]:
        if not self.path.exists():
            return {}
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as exc:
            logger.warning(f"Ignoring unreadable client state at {self.path}: {exc}")
            return {}
        return data if isinstance(data, dict) else {}

    def _write(self, key: str, value: Any) -> bool:
        data = self._read()
        data[key] = value
        tmp_path = self.path.with_suffix(self.path.suffix + ".tmp")
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            tmp_path.write_text(json.dumps(data, default=str), encoding="utf-8")
            os.replace(tmp_path, self.path)
        except OSError as exc:
            logger.error(f"Failed to save client state ({key}): {exc}")
            return False
        return True

    def load_settings(self) -> dict[str, Any]:
        """Saved preferences merged over the defaults."""
        saved = self._read().get(SETTINGS_KEY)
        if not isinstance(saved, dict):
            return dict(DEFAULT_USER_SETTINGS)
        return {**DEFAULT_USER_SETTINGS, **saved}

    def save_settings(self, preferences: dict[str, Any]) -> bool:
        return self._write(SETTINGS_KEY, dict(preferences))

    def load_api_key(self) -> Optional[str]:
        return self._read().get(API_KEY_KEY) or None

    def save_api_key(self, api_key: Optional[str]) -> bool:
        return self._write(API_KEY_KEY, (api_key or "").strip() or None)

    def is_api_key_configured(self) -> bool:
        return bool(self.load_api_key())

    def load_logs(self) -> list[dict[str, Any]]:
        logs = self._read().get(LOGS_KEY)
        return logs if isinstance(logs, list) else []

    def save_logs(self, logs: list[dict[str, Any]]) -> bool:
        return self._write(LOGS_KEY, logs)
