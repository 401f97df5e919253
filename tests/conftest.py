"""Shared test fixtures for the profile vault test suite."""

from __future__ import annotations

import pytest

from profile_schema.models import create_default_profile
from profile_vault.crypto import CryptoBox, KeyCache
from profile_vault.manager import ProfileManager
from profile_vault.state import StateCache
from profile_vault.storage import MemoryStore

WALLET = "7xKXtg2CW87d97TXJSDpbD5jBkheTqA83TZRuJosgAsU"
SECRET = bytes(range(1, 33))


# ── Profiles ─────────────────────────────────────────────────────────────

@pytest.fixture
def make_profile():
    """Factory for valid, un-enhanced profile records.

    Defaults reproduce the reference scenario: score 417, rank 8,
    one builder contribution worth 150 points, two communities.
    """

    def _factory(score=417, rank=8, contributions=None, communities=None, **identity):
        base_identity = {"telegram_id": 123456, "username": "alice"}
        base_identity.update(identity)
        profile = create_default_profile(
            base_identity, {"score": score, "rank": rank, "tier": "ARCHITECT"}
        )
        if contributions is None:
            contributions = [{"type": "builder", "name": "Buy Bot", "score": 150}]
        profile["contributions"] = contributions
        profile["communities"] = ["A", "B"] if communities is None else communities
        return profile

    return _factory


# ── Vault ────────────────────────────────────────────────────────────────

@pytest.fixture
def crypto():
    return CryptoBox(WALLET, SECRET, key_cache=KeyCache())


@pytest.fixture
def store():
    return MemoryStore()


@pytest.fixture
def state(tmp_path):
    return StateCache(tmp_path / "state.json")


@pytest.fixture
def manager(crypto, store, state):
    return ProfileManager(crypto=crypto, store=store, state=state)
