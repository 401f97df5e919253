"""Profile Schema — Package."""

from profile_schema.models import (
    Contribution,
    EncryptionInfo,
    Identity,
    Profile,
    ProfileMetadata,
    Reputation,
    ValidationResult,
    create_default_profile,
    sanitize_profile,
)
from profile_schema.rules import SCHEMA_ID, SCHEMA_VERSION
from profile_schema.validator import validate_profile

__all__ = [
    "Contribution",
    "EncryptionInfo",
    "Identity",
    "Profile",
    "ProfileMetadata",
    "Reputation",
    "ValidationResult",
    "create_default_profile",
    "sanitize_profile",
    "validate_profile",
    "SCHEMA_ID",
    "SCHEMA_VERSION",
]
