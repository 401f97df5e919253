"""
Backend — Shared Configuration
================================

Environment-driven settings and the lazily built ProfileManager.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path

from dotenv import load_dotenv

from profile_vault.crypto import DEFAULT_CACHE_TTL, DEFAULT_DERIVATION_MSG, CryptoBox, KeyCache
from profile_vault.manager import ProfileManager
from profile_vault.state import StateCache
from profile_vault.storage import DEFAULT_IPFS_URL, MAX_RETRIES, IPFSStore

logger = logging.getLogger("backend.config")

# ─────────────────────────────────────────────────────────────────────────────
# Load .env
# ─────────────────────────────────────────────────────────────────────────────
load_dotenv(Path(__file__).resolve().parent.parent / ".env")


def _env_bool(name: str, default: bool = False) -> bool:
    raw = os.environ.get(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


# ─────────────────────────────────────────────────────────────────────────────
# Settings
# ─────────────────────────────────────────────────────────────────────────────
IPFS_URL = os.environ.get("PROFILE_VAULT_IPFS_URL", DEFAULT_IPFS_URL)
IPFS_MAX_RETRIES = int(os.environ.get("PROFILE_VAULT_IPFS_RETRIES", MAX_RETRIES))
WALLET_PUBKEY = os.environ.get("PROFILE_VAULT_WALLET_PUBKEY")
WALLET_SECRET = os.environ.get("PROFILE_VAULT_WALLET_SECRET")
DERIVATION_MSG = os.environ.get("PROFILE_VAULT_DERIVATION_MSG", DEFAULT_DERIVATION_MSG)
KEY_CACHE_TTL = float(os.environ.get("PROFILE_VAULT_KEY_CACHE_TTL", DEFAULT_CACHE_TTL))
FORMAT = os.environ.get("PROFILE_VAULT_FORMAT", "toon")
STATE_PATH = os.environ.get("PROFILE_VAULT_STATE_PATH")
STRICT_DECODE = _env_bool("PROFILE_VAULT_STRICT_DECODE")
PIN_UPLOADS = _env_bool("PROFILE_VAULT_PIN_UPLOADS")

# ─────────────────────────────────────────────────────────────────────────────
# Singleton manager
# ─────────────────────────────────────────────────────────────────────────────
_manager: ProfileManager | None = None


def get_manager() -> ProfileManager:
    """Lazy-init the ProfileManager from environment settings."""
    global _manager

    if _manager is None:
        if not WALLET_SECRET:
            raise RuntimeError("PROFILE_VAULT_WALLET_SECRET is not set")

        crypto = CryptoBox(
            wallet_pubkey=WALLET_PUBKEY,
            secret_key=WALLET_SECRET,
            derivation_msg=DERIVATION_MSG,
            key_cache=KeyCache(ttl=KEY_CACHE_TTL),
        )
        _manager = ProfileManager(
            crypto=crypto,
            store=IPFSStore(IPFS_URL, max_retries=IPFS_MAX_RETRIES),
            state=StateCache(STATE_PATH),
            format=FORMAT,
            strict_decode=STRICT_DECODE,
            pin_uploads=PIN_UPLOADS,
        )
        logger.info("Profile manager initialized — store: %s, format: %s", IPFS_URL, FORMAT)

    return _manager
