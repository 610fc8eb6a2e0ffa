"""Webhook integration settings (integrations.yaml under the user-data root)."""

import copy
import logging
from pathlib import Path
from typing import Any

import yaml

from core.utils.files import write_atomic

logger = logging.getLogger(__name__)

INTEGRATIONS_FILE = "integrations.yaml"

_DEFAULTS: dict[str, Any] = {
    "webhook": {
        "url": "",
        "enabled": False,
        "notify_on": ["download_complete", "download_failed"],
    },
}


class IntegrationError(Exception):
    """Integration settings could not be read or written."""


class IntegrationStore:
    """Load and persist the integration config. Unknown keys are preserved."""

    def __init__(self, user_data_dir: Path) -> None:
        self.path = user_data_dir / INTEGRATIONS_FILE

    def load_config(self) -> dict[str, Any]:
        """Return the stored config with defaults filled in for missing sections."""
        data: dict[str, Any] = {}
        if self.path.exists():
            try:
                loaded = yaml.safe_load(self.path.read_text(encoding="utf-8"))
            except (yaml.YAMLError, OSError) as e:
                raise IntegrationError(f"Could not read {self.path.name}: {e}") from e
            if isinstance(loaded, dict):
                data = loaded
        for section, defaults in _DEFAULTS.items():
            current = data.get(section)
            base = copy.deepcopy(defaults)
            data[section] = {**base, **current} if isinstance(current, dict) else base
        return data

    def save_config(self, config: dict[str, Any]) -> None:
        try:
            write_atomic(
                self.path,
                yaml.safe_dump(config, default_flow_style=False, allow_unicode=True),
            )
        except OSError as e:
            raise IntegrationError(f"Could not write {self.path.name}: {e}") from e
        logger.info("Integration config saved to %s", self.path)
