"""Secret storage via OS keyring."""

import asyncio
import logging

import keyring
from keyring.errors import KeyringError

logger = logging.getLogger(__name__)
SERVICE_NAME = "webhere"


def _is_fail_backend() -> bool:
    """True when the active backend is the fail stub (no real keyring)."""
    try:
        from keyring.backends.fail import Keyring as FailKeyring

        return isinstance(keyring.get_keyring(), FailKeyring)
    except Exception:
        return True


def is_keyring_available() -> bool:
    """True when a real OS keyring backend is active (not the fail stub)."""
    return not _is_fail_backend()


def get_secret(name: str) -> str | None:
    """Read a secret from the keyring. None when absent or the lookup fails."""
    try:
        return keyring.get_password(SERVICE_NAME, name)
    except KeyringError:
        logger.debug("keyring lookup failed for %s", name)
        return None


async def set_secret_async(name: str, value: str) -> None:
    """Store a secret without blocking the event loop. Raises KeyringError."""
    await asyncio.to_thread(keyring.set_password, SERVICE_NAME, name, value)
