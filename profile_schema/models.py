"""
Profile Schema — Data Models
==============================

Pydantic models for reputation profiles and the results produced
by the validator and the profile manager.

Profiles travel between modules as plain mappings (the "record");
these models type that record and build well-formed defaults.
"""

from __future__ import annotations

import copy
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from profile_schema.rules import (
    DEFAULT_ALGORITHM,
    DEFAULT_KEY_DERIVATION,
    DEFAULT_SOURCE,
    DEFAULT_TIER,
    SCHEMA_ID,
    SCHEMA_VERSION,
    SKILL_NAMES,
)
from profile_schema.timestamps import now_timestamp


# ─────────────────────────────────────────────────────────────────────────────
# Profile Parts
# ─────────────────────────────────────────────────────────────────────────────
class Identity(BaseModel):
    """Who the profile belongs to."""
    telegram_id: int = Field(gt=0)
    username: str = Field(min_length=1)
    display_name: Optional[str] = None
    handle: Optional[str] = None
    wallet: Optional[str] = None

    @model_validator(mode="after")
    def _fill_defaults(self) -> "Identity":
        if not self.display_name:
            self.display_name = self.username
        if not self.handle:
            self.handle = f"@{self.username}"
        return self


class Reputation(BaseModel):
    score: int = Field(ge=0, default=0)
    rank: int = Field(ge=0, default=0)
    tier: str = Field(min_length=1, default=DEFAULT_TIER)
    level: int = Field(ge=0, default=0)
    xp: int = Field(ge=0, default=0)
    xp_to_next: int = Field(ge=0, default=0)
    xnt_entitlement: int = Field(ge=0, default=0)


class Contribution(BaseModel):
    """Single contribution; ``type`` drives skill mapping and badges."""
    type: str
    name: str
    score: int = 0
    description: Optional[str] = None
    timestamp: Optional[str] = None


class ProfileMetadata(BaseModel):
    ipfs_cid: Optional[str] = None
    previous_cid: Optional[str] = None
    revision: int = Field(ge=1, default=1)
    source: str = DEFAULT_SOURCE
    auto_enhanced: bool = False


class EncryptionInfo(BaseModel):
    """Descriptive only; the real envelope lives in profile_vault.crypto."""
    algorithm: str = DEFAULT_ALGORITHM
    key_derivation: str = DEFAULT_KEY_DERIVATION
    encrypted_at: str = Field(default_factory=now_timestamp)


class Profile(BaseModel):
    """Complete reputation profile."""
    model_config = ConfigDict(populate_by_name=True)

    schema_id: str = Field(default=SCHEMA_ID, alias="schema")
    version: str = SCHEMA_VERSION
    created_at: str = Field(default_factory=now_timestamp)
    updated_at: str = Field(default_factory=now_timestamp)

    identity: Identity
    reputation: Reputation = Field(default_factory=Reputation)

    contributions: list[Contribution] = []
    achievements: list[str] = []
    communities: list[str] = []
    skills: dict[str, int] = {}
    badges: list[str] = []

    metadata: ProfileMetadata = Field(default_factory=ProfileMetadata)
    encryption: Optional[EncryptionInfo] = Field(default_factory=EncryptionInfo)

    @classmethod
    def from_record(cls, record: dict[str, Any]) -> "Profile":
        return cls.model_validate(record)

    def to_record(self) -> dict[str, Any]:
        """Dump to the plain mapping used by the validator, engine and codec."""
        return self.model_dump(by_alias=True, exclude_none=True)


# ─────────────────────────────────────────────────────────────────────────────
# Result Models
# ─────────────────────────────────────────────────────────────────────────────
class ValidationResult(BaseModel):
    """Output of the schema validator."""
    valid: bool
    errors: list[str] = []


class CreateResult(BaseModel):
    """Output of ProfileManager.create."""
    success: bool
    cid: Optional[str] = None
    profile: Optional[dict[str, Any]] = None
    size: int = 0
    format: Optional[str] = None
    error: Optional[str] = None


class VerifyResult(BaseModel):
    """Integrity check of a stored blob."""
    cid: str
    valid: bool
    errors: list[str] = []
    profile: Optional[dict[str, Any]] = None


class ProfileStats(BaseModel):
    telegram_id: int
    username: str
    score: int
    rank: int
    tier: str
    level: int
    xp: int
    xp_to_next: int
    total_contributions: int
    total_achievements: int
    communities_count: int
    badges_count: int
    cid: Optional[str] = None
    version: Optional[str] = None


class FormatSavings(BaseModel):
    """Encoded size comparison between JSON and TOON."""
    json_pretty: int
    json_compact: int
    toon: int
    savings_vs_compact: str
    savings_vs_pretty: str


# ─────────────────────────────────────────────────────────────────────────────
# Builders
# ─────────────────────────────────────────────────────────────────────────────
def create_default_profile(
    identity: dict[str, Any],
    reputation: dict[str, Any] | None = None,
    source: str = DEFAULT_SOURCE,
) -> dict[str, Any]:
    """Build a fresh, well-formed profile record.

    Derived reputation fields are left at zero; run the reputation
    engine to fill them.
    """
    rep = {k: v for k, v in (reputation or {}).items() if v is not None}
    profile = Profile(
        identity=Identity(**identity),
        reputation=Reputation(**rep),
        skills={name: 0 for name in SKILL_NAMES},
        metadata=ProfileMetadata(source=source),
    )
    return profile.to_record()


def sanitize_profile(
    profile: dict[str, Any],
    hide_wallet: bool = False,
    hide_encryption: bool = False,
) -> dict[str, Any]:
    """Return a deep copy with sensitive parts redacted."""
    sanitized = copy.deepcopy(profile)
    identity = sanitized.get("identity") or {}
    if hide_wallet and identity.get("wallet"):
        identity["wallet"] = "[REDACTED]"
    if hide_encryption:
        sanitized.pop("encryption", None)
    return sanitized
