"""Administrator credential store.

The password is kept only as a salted scrypt hash. The hash lives in the OS
keyring when a real backend is available, otherwise in admin.json under the
user-data root (headless machines, CI).
"""

import asyncio
import hashlib
import hmac
import json
import logging
import secrets as pysecrets
from pathlib import Path

from keyring.errors import KeyringError

from core import secrets
from core.utils.files import write_atomic

logger = logging.getLogger(__name__)

ADMIN_SECRET_NAME = "ADMIN_PASSWORD_HASH"
ADMIN_FILE = "admin.json"

_SCRYPT_N = 2**14
_SCRYPT_R = 8
_SCRYPT_P = 1


class CredentialError(Exception):
    """Admin credential could not be stored or read."""


def hash_password(password: str, salt: bytes | None = None) -> str:
    """Return 'scrypt$<salt hex>$<digest hex>' for password."""
    salt = salt or pysecrets.token_bytes(16)
    digest = hashlib.scrypt(
        password.encode("utf-8"), salt=salt, n=_SCRYPT_N, r=_SCRYPT_R, p=_SCRYPT_P
    )
    return f"scrypt${salt.hex()}${digest.hex()}"


def check_password(password: str, encoded: str) -> bool:
    """Compare password against an encoded hash from hash_password."""
    try:
        scheme, salt_hex, digest_hex = encoded.split("$")
        salt = bytes.fromhex(salt_hex)
    except ValueError:
        return False
    if scheme != "scrypt" or not salt:
        return False
    expected = hash_password(password, salt)
    return hmac.compare_digest(expected.split("$")[2], digest_hex)


class AdminCredentialStore:
    """Stores the single administrator password for the application."""

    def __init__(self, user_data_dir: Path) -> None:
        self._file = user_data_dir / ADMIN_FILE

    async def create_admin(self, password: str) -> None:
        """Hash and store the admin password. Last write wins.

        Raises CredentialError when neither keyring nor file storage works.
        """
        if not password:
            raise CredentialError("Password must not be empty")
        encoded = await asyncio.to_thread(hash_password, password)

        if secrets.is_keyring_available():
            try:
                await secrets.set_secret_async(ADMIN_SECRET_NAME, encoded)
                self._file.unlink(missing_ok=True)
                logger.info("Admin password stored in keyring")
                return
            except KeyringError as e:
                logger.warning("Failed to store admin password in keyring: %s. Using file.", e)

        try:
            write_atomic(self._file, json.dumps({"password_hash": encoded}, indent=2))
        except OSError as e:
            raise CredentialError(f"Could not write {self._file.name}: {e}") from e
        logger.info("Admin password stored in %s", self._file)

    def verify(self, password: str) -> bool:
        """True when password matches the stored admin password."""
        encoded = secrets.get_secret(ADMIN_SECRET_NAME) if secrets.is_keyring_available() else None
        if not encoded and self._file.exists():
            try:
                encoded = json.loads(self._file.read_text(encoding="utf-8")).get("password_hash")
            except (OSError, json.JSONDecodeError) as e:
                raise CredentialError(f"Could not read {self._file.name}: {e}") from e
        return bool(encoded) and check_password(password, encoded)
