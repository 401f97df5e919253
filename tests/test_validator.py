from __future__ import annotations

import copy

import pytest

from profile_schema.validator import validate_profile


def test_default_profile_is_valid(make_profile):
    result = validate_profile(make_profile())
    assert result.valid
    assert result.errors == []


def test_missing_identity_and_reputation_reports_both(make_profile):
    profile = make_profile()
    del profile["identity"]
    del profile["reputation"]

    result = validate_profile(profile)

    assert not result.valid
    assert "Missing identity object" in result.errors
    assert "Missing reputation object" in result.errors
    assert len(set(result.errors)) >= 2


def test_errors_follow_check_order(make_profile):
    profile = make_profile()
    profile["schema"] = "other_schema"
    profile["version"] = "3"
    profile["created_at"] = "yesterday"
    profile["skills"] = ["builder"]

    errors = validate_profile(profile).errors

    assert errors[0].startswith("Invalid schema identifier")
    assert errors[1].startswith("Invalid version")
    assert "created_at" in errors[2]
    assert errors[-1] == "Invalid skills: must be object"


@pytest.mark.parametrize("stamp", [
    "2024-01-01T00:00:00Z",
    "2024-01-01T00:00:00.000+00:00",
    "2024-01-01T00:00:00.5Z",
    "2024-01-01 00:00:00.000Z",
    "2024-13-01T00:00:00.000Z",
])
def test_non_canonical_timestamps_are_rejected(make_profile, stamp):
    profile = make_profile()
    profile["updated_at"] = stamp
    errors = validate_profile(profile).errors
    assert any("updated_at" in e for e in errors)


def test_canonical_timestamp_is_accepted(make_profile):
    profile = make_profile()
    profile["created_at"] = "2024-02-29T23:59:59.999Z"
    assert validate_profile(profile).valid


@pytest.mark.parametrize("telegram_id", [True, "123", None, 0])
def test_telegram_id_must_be_positive_number(make_profile, telegram_id):
    profile = make_profile()
    profile["identity"]["telegram_id"] = telegram_id
    errors = validate_profile(profile).errors
    assert "Invalid identity.telegram_id: must be number" in errors


def test_reputation_fields_checked_independently(make_profile):
    profile = make_profile()
    profile["reputation"]["score"] = "high"
    profile["reputation"]["rank"] = None
    profile["reputation"]["tier"] = ""
    profile["identity"]["username"] = ""

    errors = validate_profile(profile).errors

    assert "Invalid identity.username: must be non-empty string" in errors
    assert "Invalid reputation.score: must be number" in errors
    assert "Invalid reputation.rank: must be number" in errors
    assert "Invalid reputation.tier: must be non-empty string" in errors


@pytest.mark.parametrize("section", ["contributions", "achievements", "communities", "badges"])
def test_list_sections_must_be_sequences(make_profile, section):
    profile = make_profile()
    profile[section] = {"not": "a list"}
    assert f"Invalid {section}: must be array" in validate_profile(profile).errors


def test_absent_optional_sections_are_fine(make_profile):
    profile = make_profile()
    for key in ("contributions", "achievements", "communities", "badges", "skills"):
        del profile[key]
    assert validate_profile(profile).valid


def test_validation_does_not_mutate(make_profile):
    profile = make_profile()
    profile["version"] = 2
    snapshot = copy.deepcopy(profile)
    validate_profile(profile)
    assert profile == snapshot


def test_non_mapping_input():
    result = validate_profile(["not", "a", "profile"])
    assert not result.valid
    assert result.errors == ["Invalid profile: must be object"]


@pytest.mark.parametrize("field,value", [
    ("score", 417.5),
    ("score", 400.0),
    ("rank", 8.0),
])
def test_reputation_numbers_must_be_integers(make_profile, field, value):
    profile = make_profile()
    profile["reputation"][field] = value
    assert f"Invalid reputation.{field}: must be number" in validate_profile(profile).errors


@pytest.mark.parametrize("telegram_id", [123456.0, 1.5])
def test_telegram_id_must_be_integer(make_profile, telegram_id):
    profile = make_profile()
    profile["identity"]["telegram_id"] = telegram_id
    assert "Invalid identity.telegram_id: must be number" in validate_profile(profile).errors


def test_non_mapping_contributions_only_need_a_sequence(make_profile):
    assert validate_profile(make_profile(contributions=["Buy Bot"])).valid
