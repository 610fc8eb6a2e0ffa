"""Load application settings from config/settings.yaml."""

import os
from pathlib import Path
from typing import Any

import yaml

_DEFAULTS: dict[str, Any] = {
    "setup": {
        "user_data_dir": "~/.webhere",
        "downloads_dir": "~/Downloads/WebHere",
        # Relative paths resolve against user_data_dir
        "browser_cache_dir": "browser",
    },
    "browser": {
        "channel": "stable",
        "versions_url": (
            "https://googlechromelabs.github.io/chrome-for-testing/"
            "last-known-good-versions.json"
        ),
        "download_url": (
            "https://storage.googleapis.com/chrome-for-testing-public/"
            "{build_id}/{platform}/chrome-{platform}.zip"
        ),
        "timeout": 30.0,
    },
    "logging": {
        "file": "logs/setup.log",
        "level": "INFO",
        "log_to_console": False,
        "max_bytes": 10485760,  # 10 MB
        "backup_count": 3,
    },
}

# Environment variables that override settings paths (dot path -> env name)
_ENV_OVERRIDES = {
    "setup.user_data_dir": "WEBHERE_USER_DATA_DIR",
    "setup.downloads_dir": "WEBHERE_DOWNLOADS_DIR",
}

_cached: dict[str, Any] | None = None


def _deep_merge(base: dict[str, Any], overlay: dict[str, Any]) -> dict[str, Any]:
    """Merge overlay into base recursively. Mutates base."""
    for key, value in overlay.items():
        if value is None:
            continue
        if key in base and isinstance(base[key], dict) and isinstance(value, dict):
            _deep_merge(base[key], value)
        else:
            base[key] = value
    return base


def get_setting(settings: dict[str, Any], path: str, default: Any = None) -> Any:
    """Get a nested value by dot path (e.g. 'setup.user_data_dir')."""
    current: Any = settings
    for part in path.split("."):
        if not isinstance(current, dict) or part not in current:
            return default
        current = current[part]
    return current


def reload_settings() -> None:
    """Clear the settings cache."""
    global _cached
    _cached = None


def load_settings(config_dir: Path | None = None) -> dict[str, Any]:
    """Load settings from config/settings.yaml. Returns merged defaults + file values + env."""
    global _cached
    if _cached is not None:
        return _cached

    if config_dir is None:
        config_dir = Path(__file__).resolve().parent.parent / "config"
    path = config_dir / "settings.yaml"

    result = _deep_copy_nested(_DEFAULTS)

    if path.exists():
        try:
            data = yaml.safe_load(path.read_text(encoding="utf-8"))
            if isinstance(data, dict):
                _deep_merge(result, data)
        except (yaml.YAMLError, OSError):
            pass

    for dotted, env_name in _ENV_OVERRIDES.items():
        value = os.environ.get(env_name)
        if value:
            section, key = dotted.split(".", 1)
            result.setdefault(section, {})[key] = value

    _cached = result
    return result


def resolve_paths(settings: dict[str, Any]) -> tuple[Path, Path, Path]:
    """Return (user_data_dir, downloads_dir, browser_cache_dir) as absolute paths."""
    user_data_dir = Path(
        get_setting(settings, "setup.user_data_dir", "~/.webhere")
    ).expanduser().resolve()
    downloads_dir = Path(
        get_setting(settings, "setup.downloads_dir", "~/Downloads/WebHere")
    ).expanduser().resolve()
    cache = Path(get_setting(settings, "setup.browser_cache_dir", "browser")).expanduser()
    if not cache.is_absolute():
        cache = user_data_dir / cache
    return user_data_dir, downloads_dir, cache


def _deep_copy_nested(obj: Any) -> Any:
    """Return a deep copy of nested dicts/lists for defaults."""
    if isinstance(obj, dict):
        return {k: _deep_copy_nested(v) for k, v in obj.items()}
    if isinstance(obj, list):
        return [_deep_copy_nested(x) for x in obj]
    return obj
