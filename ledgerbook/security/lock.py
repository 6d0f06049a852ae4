"""
PIN Session Gate

An optional PIN in front of the app. The ledger itself never consults it:
the host checks is_unlocked before showing anything.

The PIN is never kept in clear text. We store a salted PBKDF2 hash in
the form "<iterations>$<salt hex>$<hash hex>"; the host persists it via
pin_hash and hands it back on the next start.
"""

import hashlib
import hmac
import secrets
from typing import Optional

import structlog

from ledgerbook.config import SecuritySettings
from ledgerbook.validation import LedgerValidator

logger = structlog.get_logger("ledgerbook.security")

HASH_ALGORITHM = "sha256"
SALT_BYTES = 16


def hash_pin(pin: str, iterations: int, salt: Optional[bytes] = None) -> str:
    salt = salt if salt is not None else secrets.token_bytes(SALT_BYTES)
    digest = hashlib.pbkdf2_hmac(HASH_ALGORITHM, pin.encode("utf-8"), salt, iterations)
    return f"{iterations}${salt.hex()}${digest.hex()}"


def check_pin(pin: str, pin_hash: str) -> bool:
    try:
        iterations, salt_hex, digest_hex = pin_hash.split("$")
        salt = bytes.fromhex(salt_hex)
        expected = bytes.fromhex(digest_hex)
        rounds = int(iterations)
    except ValueError:
        return False
    digest = hashlib.pbkdf2_hmac(HASH_ALGORITHM, pin.encode("utf-8"), salt, rounds)
    return hmac.compare_digest(digest, expected)


class AppLock:
    """
    Session lock.

    Starts unlocked when no PIN is set, locked otherwise.
    """

    def __init__(
        self,
        pin_hash: Optional[str] = None,
        settings: Optional[SecuritySettings] = None,
        validator: Optional[LedgerValidator] = None,
    ):
        """
        Args:
            pin_hash: Previously persisted hash from pin_hash, if any
            settings: Security settings. Loaded from the environment if None.
            validator: Used to check new PINs
        """
        self._settings = settings or SecuritySettings()
        self._validator = validator or LedgerValidator()
        self._pin_hash = pin_hash or None
        self._unlocked = self._pin_hash is None

    @property
    def is_pin_enabled(self) -> bool:
        return self._pin_hash is not None

    @property
    def is_unlocked(self) -> bool:
        return self._unlocked

    @property
    def pin_hash(self) -> Optional[str]:
        """Hash to persist between sessions (None when no PIN is set)."""
        return self._pin_hash

    def setup_pin(self, pin: str) -> None:
        """
        Enable the gate with a new PIN. The current session stays unlocked.

        Raises:
            ValidationError: If the PIN is not all digits or too short
        """
        pin = self._validator.validate_pin(pin, self._settings.pin_min_length)
        self._pin_hash = hash_pin(pin, self._settings.pin_hash_iterations)
        self._unlocked = True
        logger.info("pin_enabled")

    def verify_pin(self, pin: str) -> bool:
        """Unlock if the PIN matches. Returns whether it matched."""
        if self._pin_hash is None:
            self._unlocked = True
            return True
        if isinstance(pin, str) and check_pin(pin, self._pin_hash):
            self._unlocked = True
            return True
        logger.warning("pin_rejected")
        return False

    def lock(self) -> None:
        """Lock the session. No-op when no PIN is set."""
        if self._pin_hash is not None:
            self._unlocked = False

    def remove_pin(self) -> None:
        """Disable the gate and unlock."""
        self._pin_hash = None
        self._unlocked = True
        logger.info("pin_disabled")
