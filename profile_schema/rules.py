"""
Profile Schema — Constants & Derivation Rules
===============================================

Schema identifiers, skill mapping, and badge thresholds.
All derivation constants are defined here.
No magic numbers elsewhere.
"""

from __future__ import annotations

# ─────────────────────────────────────────────────────────────────────────────
# Schema Identity
# ─────────────────────────────────────────────────────────────────────────────
SCHEMA_ID = "cyberdyne_profile_v2"
SCHEMA_VERSION = "2"

DEFAULT_TIER = "ATTUNING"
DEFAULT_SOURCE = "profile-vault"
DEFAULT_ALGORITHM = "AES-256-GCM"
DEFAULT_KEY_DERIVATION = "wallet_signature"


# ─────────────────────────────────────────────────────────────────────────────
# Levels
# ─────────────────────────────────────────────────────────────────────────────
POINTS_PER_LEVEL = 100


# ─────────────────────────────────────────────────────────────────────────────
# Skills: Contribution Type → Skill Bucket
# ─────────────────────────────────────────────────────────────────────────────
SKILL_NAMES: tuple[str, ...] = ("builder", "promoter", "ecosystem", "leadership")

CONTRIBUTION_SKILL_MAP: dict[str, str] = {
    # Building
    "builder": "builder",
    "infrastructure": "builder",
    "open_source": "builder",
    # Promotion
    "promoter": "promoter",
    "advocacy": "promoter",
    "education": "promoter",
    # Community
    "community_modding": "leadership",
    "community_ownership": "leadership",
    # Network
    "validators": "ecosystem",
    "staking_program": "ecosystem",
}


# ─────────────────────────────────────────────────────────────────────────────
# Badges
# ─────────────────────────────────────────────────────────────────────────────
class BadgeThresholds:
    """Score / rank / community thresholds for badge assignment."""

    ELITE_SCORE = 800
    ADVANCED_SCORE = 500
    RISING_STAR_SCORE = 100

    TOP_10_RANK = 10
    TOP_50_RANK = 50

    COMMUNITY_LEADER_COUNT = 5


BADGE_ELITE = "Elite"
BADGE_ADVANCED = "Advanced"
BADGE_RISING_STAR = "Rising Star"
BADGE_TOP_10 = "Top 10"
BADGE_TOP_50 = "Top 50"
BADGE_BUILDER = "Builder"
BADGE_MODERATOR = "Moderator"
BADGE_COMMUNITY_LEADER = "Community Leader"

BUILDER_TYPES = frozenset({"builder"})
MODERATOR_TYPES = frozenset({"community_modding", "promoter"})
