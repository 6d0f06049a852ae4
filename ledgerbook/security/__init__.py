"""PIN gate package."""

from ledgerbook.security.lock import AppLock, check_pin, hash_pin

__all__ = ["AppLock", "check_pin", "hash_pin"]
