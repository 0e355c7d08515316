"""Settings access helpers for JSON-based configuration."""

from __future__ import annotations

import copy
import json
from pathlib import Path
from typing import Any

DEFAULTS: dict[str, Any] = {
    "storage": {"path": "~/.takelog/logbook.json"},
    "logging": {"dir": None, "level": "INFO"},
    "projects": {"default_camera_configuration": 1},
}


class JsonSettings:
    """Lightweight JSON settings reader with dotted-key access."""

    def __init__(self, settings_path: str | Path, data: dict[str, Any] | None = None) -> None:
        self._path = Path(settings_path)
        if data is not None:
            self._data = data
            return
        if not self._path.exists():
            raise FileNotFoundError(f"settings.json not found: {self._path}")
        with self._path.open("r", encoding="utf-8") as f:
            self._data = json.load(f)

    @classmethod
    def defaults(cls) -> JsonSettings:
        """Settings backed by built-in defaults only."""
        return cls("settings.json", data=copy.deepcopy(DEFAULTS))

    def get(self, key: str, default: Any | None = None) -> Any:
        """Return value for dotted `key`, or `default` if not present."""
        node: Any = self._data
        for part in key.split("."):
            if isinstance(node, dict) and part in node:
                node = node[part]
            else:
                return default
        return node

    @property
    def storage_path(self) -> Path:
        return Path(str(self.get("storage.path", DEFAULTS["storage"]["path"]))).expanduser()

    @property
    def log_dir(self) -> str | None:
        value = self.get("logging.dir")
        return str(value) if value else None

    @property
    def log_level(self) -> str:
        return str(self.get("logging.level", "INFO")).upper()

    @property
    def default_camera_configuration(self) -> int:
        value = self.get("projects.default_camera_configuration", 1)
        return value if isinstance(value, int) and not isinstance(value, bool) else 1
