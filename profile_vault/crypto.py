"""
Profile Vault — Envelope Encryption
=====================================

AES-256-GCM envelopes keyed by a wallet signature.

The symmetric key is the first 32 bytes of the Ed25519 signature
of a derivation message, so any holder of the wallet secret can
re-derive it. Derived keys are reused through an explicit KeyCache.
"""

from __future__ import annotations

import base64
import hashlib
import logging
import os
import time
from typing import Any, Optional, Union

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.asymmetric.ed25519 import Ed25519PrivateKey
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

from profile_vault.errors import CryptoError

logger = logging.getLogger("profile_vault.crypto")

ENVELOPE_VERSION = 1
ALGORITHM = "AES-256-GCM"
DEFAULT_DERIVATION_MSG = "IPFS_ENCRYPTION_KEY_V1"
DEFAULT_CACHE_TTL = 600.0  # seconds
IV_SIZE = 12
TAG_SIZE = 16

B58_ALPHABET = "123456789ABCDEFGHJKLMNPQRSTUVWXYZabcdefghijkmnopqrstuvwxyz"


def b58decode(value: str) -> bytes:
    """Decode a base58 (Bitcoin alphabet) string."""
    num = 0
    for char in value:
        digit = B58_ALPHABET.find(char)
        if digit < 0:
            raise CryptoError(f"Invalid base58 character: {char!r}")
        num = num * 58 + digit
    body = num.to_bytes((num.bit_length() + 7) // 8, "big") if num else b""
    leading = len(value) - len(value.lstrip("1"))
    return b"\x00" * leading + body


def sha256_hex(text: str) -> str:
    return hashlib.sha256(text.encode("utf-8")).hexdigest()


class KeyCache:
    """TTL cache for derived keys. Owned by whoever constructs it."""

    def __init__(self, ttl: float = DEFAULT_CACHE_TTL) -> None:
        self.ttl = ttl
        self._entries: dict[str, tuple[bytes, float]] = {}

    def get(self, cache_key: str) -> Optional[bytes]:
        entry = self._entries.get(cache_key)
        if entry is None:
            return None
        key, stored_at = entry
        if time.monotonic() - stored_at >= self.ttl:
            del self._entries[cache_key]
            return None
        return key

    def set(self, cache_key: str, key: bytes) -> None:
        self._entries[cache_key] = (key, time.monotonic())

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)


def derive_key(
    secret_key: Union[str, bytes],
    derivation_msg: str = DEFAULT_DERIVATION_MSG,
    cache: Optional[KeyCache] = None,
) -> bytes:
    """Derive the AES key from a wallet secret (base58 string or raw bytes)."""
    secret = b58decode(secret_key) if isinstance(secret_key, str) else bytes(secret_key)
    if len(secret) < 32:
        raise CryptoError("Wallet secret key must hold at least 32 bytes")

    cache_key = f"{hashlib.sha256(secret).hexdigest()[:16]}:{derivation_msg}"
    if cache is not None:
        cached = cache.get(cache_key)
        if cached is not None:
            return cached

    signer = Ed25519PrivateKey.from_private_bytes(secret[:32])
    key = signer.sign(derivation_msg.encode("utf-8"))[:32]

    if cache is not None:
        cache.set(cache_key, key)
    return key


def encrypt(plaintext: str, key: bytes) -> dict[str, str]:
    iv = os.urandom(IV_SIZE)
    sealed = AESGCM(key).encrypt(iv, plaintext.encode("utf-8"), None)
    return {
        "iv": base64.b64encode(iv).decode("ascii"),
        "data": base64.b64encode(sealed[:-TAG_SIZE]).decode("ascii"),
        "authTag": base64.b64encode(sealed[-TAG_SIZE:]).decode("ascii"),
    }


def decrypt(encrypted: dict[str, str], key: bytes) -> str:
    try:
        iv = base64.b64decode(encrypted["iv"])
        data = base64.b64decode(encrypted["data"])
        tag = base64.b64decode(encrypted["authTag"])
        plaintext = AESGCM(key).decrypt(iv, data + tag, None)
    except InvalidTag:
        raise CryptoError("Envelope authentication failed") from None
    except (KeyError, TypeError, ValueError) as exc:
        raise CryptoError(f"Malformed envelope data: {exc}") from exc
    return plaintext.decode("utf-8")


class CryptoBox:
    """Wallet-bound encrypt / decrypt of profile plaintext.

    Usage:
        box = CryptoBox(pubkey, secret_b58, key_cache=KeyCache())
        envelope = box.encrypt(text)
        text = box.decrypt(envelope)
    """

    def __init__(
        self,
        wallet_pubkey: Optional[str],
        secret_key: Union[str, bytes],
        derivation_msg: str = DEFAULT_DERIVATION_MSG,
        key_cache: Optional[KeyCache] = None,
    ) -> None:
        self.wallet_pubkey = wallet_pubkey
        self._secret_key = secret_key
        self.derivation_msg = derivation_msg
        self.key_cache = key_cache

    def encrypt(self, plaintext: str) -> dict[str, Any]:
        key = derive_key(self._secret_key, self.derivation_msg, self.key_cache)
        return {
            "version": ENVELOPE_VERSION,
            "algorithm": ALGORITHM,
            "wallet": self.wallet_pubkey,
            "derivationMsg": self.derivation_msg,
            "data": encrypt(plaintext, key),
        }

    def decrypt(self, envelope: dict[str, Any]) -> str:
        if envelope.get("version") != ENVELOPE_VERSION:
            raise CryptoError(f"Unsupported payload version: {envelope.get('version')}")
        if envelope.get("algorithm") != ALGORITHM:
            raise CryptoError(f"Unsupported algorithm: {envelope.get('algorithm')}")

        msg = envelope.get("derivationMsg") or self.derivation_msg
        key = derive_key(self._secret_key, msg, self.key_cache)
        return decrypt(envelope.get("data") or {}, key)
