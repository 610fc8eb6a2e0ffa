"""Persisted setup record (setup-config.json under the user-data root).

Keys use the on-disk camelCase names shared with the main application:
setupComplete, setupDate, downloadsDir, browserDownloaded, integrationEnabled.
"""

import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from core.utils.files import write_atomic

logger = logging.getLogger(__name__)

SETUP_CONFIG_FILE = "setup-config.json"


class SetupConfigStore:
    """Merged key/value record marking first-run setup as done."""

    def __init__(self, user_data_dir: Path) -> None:
        self.path = user_data_dir / SETUP_CONFIG_FILE

    def get_config(self) -> dict[str, Any] | None:
        """Stored record, or None when missing or unreadable."""
        if not self.path.exists():
            return None
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            logger.warning("Ignoring unreadable %s: %s", self.path, e)
            return None
        return data if isinstance(data, dict) else None

    def is_setup_complete(self) -> bool:
        config = self.get_config()
        return bool(config) and config.get("setupComplete") is True

    def save_config(self, data: dict[str, Any]) -> dict[str, Any]:
        """Merge data into the stored record, stamp completion, write atomically.

        Returns the merged record.
        """
        merged = {
            **(self.get_config() or {}),
            **data,
            "setupComplete": True,
            "setupDate": datetime.now(timezone.utc).isoformat(),
        }
        write_atomic(self.path, json.dumps(merged, indent=2))
        logger.info("Setup config saved to %s", self.path)
        return merged

    def get_downloads_dir(self, default: Path) -> Path:
        config = self.get_config() or {}
        value = config.get("downloadsDir")
        return Path(value) if value else default
