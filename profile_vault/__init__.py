"""Profile Vault — Package."""

from profile_vault.crypto import CryptoBox, KeyCache
from profile_vault.errors import (
    CryptoError,
    ProfileNotFoundError,
    ProfileValidationError,
    ProfileVaultError,
    StorageError,
)
from profile_vault.manager import ProfileManager
from profile_vault.state import StateCache
from profile_vault.storage import ContentStore, IPFSStore, MemoryStore

__all__ = [
    "ContentStore",
    "CryptoBox",
    "CryptoError",
    "IPFSStore",
    "KeyCache",
    "MemoryStore",
    "ProfileManager",
    "ProfileNotFoundError",
    "ProfileValidationError",
    "ProfileVaultError",
    "StateCache",
    "StorageError",
]
