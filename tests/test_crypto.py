from __future__ import annotations

import base64

import pytest

from profile_vault.crypto import (
    CryptoBox,
    KeyCache,
    b58decode,
    derive_key,
    sha256_hex,
)
from profile_vault.errors import CryptoError
from tests.conftest import SECRET, WALLET


def test_b58decode_known_vector():
    assert b58decode("2NEpo7TZRRrLZSi2U") == b"Hello World!"


def test_b58decode_keeps_leading_zero_bytes():
    assert b58decode("1112") == b"\x00\x00\x00\x01"


def test_b58decode_rejects_invalid_characters():
    with pytest.raises(CryptoError):
        b58decode("0OIl")


def test_envelope_round_trip(crypto):
    envelope = crypto.encrypt("@cyberdyne_profile_v2\n\nversion: 2")

    assert envelope["version"] == 1
    assert envelope["algorithm"] == "AES-256-GCM"
    assert envelope["wallet"] == WALLET
    assert envelope["derivationMsg"] == "IPFS_ENCRYPTION_KEY_V1"
    assert set(envelope["data"]) == {"iv", "data", "authTag"}
    assert len(base64.b64decode(envelope["data"]["iv"])) == 12

    assert crypto.decrypt(envelope) == "@cyberdyne_profile_v2\n\nversion: 2"


def test_each_encryption_uses_a_fresh_iv(crypto):
    first = crypto.encrypt("same text")
    second = crypto.encrypt("same text")
    assert first["data"]["iv"] != second["data"]["iv"]


def test_tampered_ciphertext_is_rejected(crypto):
    envelope = crypto.encrypt("secret profile")
    data = bytearray(base64.b64decode(envelope["data"]["data"]))
    data[0] ^= 0xFF
    envelope["data"]["data"] = base64.b64encode(bytes(data)).decode("ascii")

    with pytest.raises(CryptoError):
        crypto.decrypt(envelope)


def test_other_wallet_cannot_decrypt(crypto):
    envelope = crypto.encrypt("secret profile")
    stranger = CryptoBox(WALLET, bytes(range(100, 132)))
    with pytest.raises(CryptoError):
        stranger.decrypt(envelope)


@pytest.mark.parametrize("field,value", [("version", 2), ("algorithm", "AES-128-CBC")])
def test_unsupported_envelopes(crypto, field, value):
    envelope = crypto.encrypt("x")
    envelope[field] = value
    with pytest.raises(CryptoError):
        crypto.decrypt(envelope)


def test_malformed_envelope_data(crypto):
    envelope = crypto.encrypt("x")
    envelope["data"] = {"iv": "!!!"}
    with pytest.raises(CryptoError):
        crypto.decrypt(envelope)


def test_key_derivation_is_deterministic_and_cached():
    cache = KeyCache(ttl=60)
    first = derive_key(SECRET, cache=cache)
    assert len(first) == 32
    assert len(cache) == 1
    assert derive_key(SECRET, cache=cache) == first
    assert derive_key(SECRET) == first
    assert derive_key(SECRET, "OTHER_MESSAGE") != first


def test_expired_cache_entries_are_dropped():
    cache = KeyCache(ttl=0)
    derive_key(SECRET, cache=cache)
    assert cache.get(next(iter(cache._entries))) is None
    assert len(cache) == 0


def test_short_secret_is_rejected():
    with pytest.raises(CryptoError):
        derive_key(b"too short")


def test_sha256_hex():
    assert sha256_hex("") == "e3b0c44298fc1c149afbf4c8996fb92427ae41e4649b934ca495991b7852b855"
