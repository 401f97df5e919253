"""
Reputation Engine — Derived Profile Fields
============================================

Fills the computed parts of a profile record from its raw
reputation and contribution data.

Capabilities:
    • Level / XP / XP-to-next from score
    • Skill aggregation from contribution types
    • Badge assignment from score, rank, contributions and communities

Every derivation is deterministic: enhancing an already-enhanced
profile yields the same level, xp, skills and badges.
"""

from __future__ import annotations

import copy
import logging
from collections.abc import Mapping
from typing import Any

from profile_schema.rules import (
    BADGE_ADVANCED,
    BADGE_BUILDER,
    BADGE_COMMUNITY_LEADER,
    BADGE_ELITE,
    BADGE_MODERATOR,
    BADGE_RISING_STAR,
    BADGE_TOP_10,
    BADGE_TOP_50,
    BUILDER_TYPES,
    CONTRIBUTION_SKILL_MAP,
    MODERATOR_TYPES,
    POINTS_PER_LEVEL,
    SKILL_NAMES,
    BadgeThresholds,
)

logger = logging.getLogger("reputation_engine")


class ReputationEngine:
    """Computes derived fields for profile records."""

    def enhance(self, profile: dict[str, Any], in_place: bool = True) -> dict[str, Any]:
        """Fill level, xp, skills and badges; mark the profile enhanced.

        Parameters
        ----------
        profile : dict
            Profile record. Assumed to have passed validation.
        in_place : bool
            Mutate and return *profile* (default) or work on a deep copy.
        """
        if not in_place:
            profile = copy.deepcopy(profile)

        reputation = profile.setdefault("reputation", {})
        score = reputation.get("score") or 0

        # ── Level / XP (fill only when unset or zero) ───────────────
        if not reputation.get("level"):
            reputation["level"] = self.level(score)
        if not reputation.get("xp"):
            reputation["xp"] = self.xp(score)
        if not reputation.get("xp_to_next"):
            reputation["xp_to_next"] = self.xp_to_next(score)

        # ── Skills (replaced, never accumulated) ────────────────────
        contributions = profile.get("contributions") or []
        if contributions:
            profile["skills"] = self.skills(contributions)

        # ── Badges (replaced on every call) ─────────────────────────
        profile["badges"] = self.badges(
            score=score,
            rank=reputation.get("rank") or 0,
            contributions=contributions,
            communities=profile.get("communities") or [],
        )

        metadata = profile.get("metadata")
        if not isinstance(metadata, dict):
            metadata = profile["metadata"] = {}
        metadata["auto_enhanced"] = True

        logger.debug(
            "Enhanced profile: level %s, %d badge(s)",
            reputation["level"],
            len(profile["badges"]),
        )
        return profile

    @staticmethod
    def level(score: int) -> int:
        return max(score, 0) // POINTS_PER_LEVEL

    @staticmethod
    def xp(score: int) -> int:
        return max(score, 0) % POINTS_PER_LEVEL

    @staticmethod
    def xp_to_next(score: int) -> int:
        return POINTS_PER_LEVEL - max(score, 0) % POINTS_PER_LEVEL

    @staticmethod
    def skills(contributions: list[dict[str, Any]]) -> dict[str, int]:
        """Sum contribution scores into their mapped skill bucket."""
        totals = {name: 0 for name in SKILL_NAMES}
        for contrib in _entries(contributions):
            bucket = CONTRIBUTION_SKILL_MAP.get(_type_of(contrib))
            if bucket is None:
                continue
            score = contrib.get("score")
            if isinstance(score, int) and not isinstance(score, bool):
                totals[bucket] += score
        return totals

    @staticmethod
    def badges(
        score: int,
        rank: int,
        contributions: list[dict[str, Any]],
        communities: list[str],
    ) -> list[str]:
        """Assign badges in fixed order."""
        earned: list[str] = []

        if score >= BadgeThresholds.ELITE_SCORE:
            earned.append(BADGE_ELITE)
        elif score >= BadgeThresholds.ADVANCED_SCORE:
            earned.append(BADGE_ADVANCED)
        elif score >= BadgeThresholds.RISING_STAR_SCORE:
            earned.append(BADGE_RISING_STAR)

        if rank <= BadgeThresholds.TOP_10_RANK:
            earned.append(BADGE_TOP_10)
        elif rank <= BadgeThresholds.TOP_50_RANK:
            earned.append(BADGE_TOP_50)

        types = {_type_of(c) for c in _entries(contributions)}
        if types & BUILDER_TYPES:
            earned.append(BADGE_BUILDER)
        if types & MODERATOR_TYPES:
            earned.append(BADGE_MODERATOR)

        if len(communities) >= BadgeThresholds.COMMUNITY_LEADER_COUNT:
            earned.append(BADGE_COMMUNITY_LEADER)

        return earned


def _entries(contributions: list[Any]) -> list[Mapping[str, Any]]:
    """Contribution items that are mappings; anything else is skipped."""
    return [c for c in contributions if isinstance(c, Mapping)]


def _type_of(contrib: Mapping[str, Any]) -> str | None:
    value = contrib.get("type")
    return value if isinstance(value, str) else None


_engine = ReputationEngine()


def enhance_profile(profile: dict[str, Any], in_place: bool = True) -> dict[str, Any]:
    """Module-level shortcut for ``ReputationEngine().enhance``."""
    return _engine.enhance(profile, in_place=in_place)
