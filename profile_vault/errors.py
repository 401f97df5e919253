"""Profile Vault — exception hierarchy."""

from __future__ import annotations


class ProfileVaultError(Exception):
    """Base class for vault-level failures."""


class StorageError(ProfileVaultError):
    """Content store could not complete a put/get after retries."""


class CryptoError(ProfileVaultError):
    """Envelope could not be decrypted or is of an unsupported kind."""


class ProfileNotFoundError(ProfileVaultError):
    def __init__(self, telegram_id: int) -> None:
        super().__init__(f"Profile not found for telegram_id: {telegram_id}")
        self.telegram_id = telegram_id


class ProfileValidationError(ProfileVaultError):
    def __init__(self, errors: list[str]) -> None:
        super().__init__(f"Profile validation failed: {', '.join(errors)}")
        self.errors = errors
