"""
Profile Schema — Structural Validator
=======================================

Checks a profile record against schema v2 without mutating it.

Every check runs independently so that all violations are reported,
in a fixed order:
    • schema identifier and version
    • created_at / updated_at canonical timestamps
    • identity object (integer telegram_id, username)
    • reputation object (integer score and rank, tier)
    • list sections and the skills mapping
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from profile_schema.models import ValidationResult
from profile_schema.rules import SCHEMA_ID, SCHEMA_VERSION
from profile_schema.timestamps import is_canonical_timestamp

logger = logging.getLogger("profile_schema.validator")

LIST_SECTIONS = ("contributions", "achievements", "communities", "badges")


def _is_integer(value: Any) -> bool:
    # The text format only carries whole numbers.
    return isinstance(value, int) and not isinstance(value, bool)


def _is_text(value: Any) -> bool:
    return isinstance(value, str) and bool(value)


def _is_sequence(value: Any) -> bool:
    return isinstance(value, (list, tuple))


def validate_profile(profile: Any) -> ValidationResult:
    """Validate a profile record. Never raises."""
    if not isinstance(profile, Mapping):
        return ValidationResult(valid=False, errors=["Invalid profile: must be object"])

    errors: list[str] = []

    # ── Schema ───────────────────────────────────────────────────────
    if profile.get("schema") != SCHEMA_ID:
        errors.append(f"Invalid schema identifier: must be {SCHEMA_ID}")
    if profile.get("version") != SCHEMA_VERSION:
        errors.append(f'Invalid version: must be "{SCHEMA_VERSION}"')

    # ── Timestamps ───────────────────────────────────────────────────
    for field in ("created_at", "updated_at"):
        if not is_canonical_timestamp(profile.get(field)):
            errors.append(f"Invalid {field}: must be canonical ISO8601 timestamp")

    # ── Identity ─────────────────────────────────────────────────────
    identity = profile.get("identity")
    if not isinstance(identity, Mapping):
        errors.append("Missing identity object")
    else:
        telegram_id = identity.get("telegram_id")
        if not _is_integer(telegram_id) or telegram_id <= 0:
            errors.append("Invalid identity.telegram_id: must be number")
        if not _is_text(identity.get("username")):
            errors.append("Invalid identity.username: must be non-empty string")

    # ── Reputation ───────────────────────────────────────────────────
    reputation = profile.get("reputation")
    if not isinstance(reputation, Mapping):
        errors.append("Missing reputation object")
    else:
        if not _is_integer(reputation.get("score")):
            errors.append("Invalid reputation.score: must be number")
        if not _is_integer(reputation.get("rank")):
            errors.append("Invalid reputation.rank: must be number")
        if not _is_text(reputation.get("tier")):
            errors.append("Invalid reputation.tier: must be non-empty string")

    # ── Collections ──────────────────────────────────────────────────
    for section in LIST_SECTIONS:
        value = profile.get(section)
        if value is not None and not _is_sequence(value):
            errors.append(f"Invalid {section}: must be array")

    skills = profile.get("skills")
    if skills is not None and not isinstance(skills, Mapping):
        errors.append("Invalid skills: must be object")

    if errors:
        logger.debug("Profile failed validation with %d error(s)", len(errors))

    return ValidationResult(valid=not errors, errors=errors)
