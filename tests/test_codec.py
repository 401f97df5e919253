from __future__ import annotations

import pytest

from profile_schema.validator import validate_profile
from reputation_engine.engine import enhance_profile
from toon_codec.codec import (
    ToonDecodeError,
    calculate_savings,
    decode_profile,
    encode_profile,
    is_toon,
)


def _reference_profile():
    return {
        "schema": "cyberdyne_profile_v2",
        "version": "2",
        "created_at": "2024-01-01T00:00:00.000Z",
        "updated_at": "2024-01-02T00:00:00.000Z",
        "identity": {
            "telegram_id": 123456,
            "username": "alice",
            "display_name": "alice",
            "handle": "@alice",
        },
        "reputation": {"score": 417, "rank": 8, "tier": "ARCHITECT"},
        "contributions": [{"type": "builder", "name": "Buy Bot", "score": 150}],
        "achievements": [],
        "communities": ["A", "B"],
        "skills": {},
        "badges": [],
        "metadata": {"source": "test", "revision": 1},
    }


EXPECTED_TOON = """\
@cyberdyne_profile_v2

version: 2
created: 2024-01-01T00:00:00.000Z
updated: 2024-01-02T00:00:00.000Z

# Identity
telegram: 123456
username: alice
display: alice
handle: @alice

# Reputation
score: 417
rank: 8
tier: ARCHITECT
level: 4
xp: 17/100

# Contributions
[builder]
- Buy Bot (150 pts)

# Communities
- A
- B

# Skills
builder: 150

# Badges
- Rising Star
- Top 10
- Builder

# Metadata
revision: 1
source: test
enhanced: true
"""


def test_encode_matches_wire_format():
    profile = enhance_profile(_reference_profile())
    assert encode_profile(profile) == EXPECTED_TOON


def test_reference_contribution_survives_round_trip():
    decoded = decode_profile(encode_profile(enhance_profile(_reference_profile())))
    assert decoded["contributions"][0]["score"] == 150
    assert decoded["contributions"][0]["type"] == "builder"


def test_full_round_trip(make_profile):
    profile = make_profile(
        wallet="7xKXtg2CW87d97TXJSDpbD5jBkheTqA83TZRuJosgAsU",
        contributions=[
            {
                "type": "builder",
                "name": "Buy Bot",
                "score": 150,
                "description": "Telegram alerts: buys & sells",
                "timestamp": "2024-05-01T12:00:00.000Z",
            },
            {"type": "education", "name": "Docs Sprint (part 2)", "score": 40},
        ],
        communities=["X1 Builders", "Validators", "Memes"],
    )
    profile["reputation"]["xnt_entitlement"] = 250
    profile["achievements"] = ["First deploy", "Hackathon: 2nd place"]
    profile["metadata"]["ipfs_cid"] = "QmCurrent"
    profile["metadata"]["previous_cid"] = "QmPrevious"
    enhance_profile(profile)

    decoded = decode_profile(encode_profile(profile))

    for key in ("schema", "version", "created_at", "updated_at"):
        assert decoded[key] == profile[key]
    assert decoded["identity"] == profile["identity"]
    assert decoded["reputation"] == profile["reputation"]
    assert decoded["contributions"] == profile["contributions"]
    assert decoded["achievements"] == profile["achievements"]
    assert decoded["communities"] == profile["communities"]
    assert decoded["skills"] == {k: v for k, v in profile["skills"].items() if v}
    assert decoded["badges"] == profile["badges"]
    assert decoded["metadata"] == profile["metadata"]
    assert decoded["encryption"] == profile["encryption"]


def test_optional_contribution_fields_absent_stay_absent(make_profile):
    decoded = decode_profile(encode_profile(enhance_profile(make_profile())))
    assert decoded["contributions"] == [{"type": "builder", "name": "Buy Bot", "score": 150}]


def test_empty_sections_are_omitted(make_profile):
    profile = make_profile(contributions=[], communities=[])
    del profile["encryption"]
    text = encode_profile(profile)
    for header in ("# Contributions", "# Achievements", "# Communities", "# Badges", "# Encryption"):
        assert header not in text
    assert "# Metadata" in text


def test_xp_reconstructs_xp_to_next():
    decoded = decode_profile("# Reputation\nxp: 30/100\n")
    assert decoded["reputation"]["xp"] == 30
    assert decoded["reputation"]["xp_to_next"] == 70


def test_blank_lines_keep_section():
    decoded = decode_profile("# Achievements\n- one\n\n- two\n")
    assert decoded["achievements"] == ["one", "two"]


def test_details_may_precede_the_name_line():
    text = "# Contributions\n[promoter]\n  Weekly spaces\n- Host (20 pts)\n"
    decoded = decode_profile(text)
    assert decoded["contributions"] == [
        {"type": "promoter", "name": "Host", "score": 20, "description": "Weekly spaces"}
    ]


def test_second_description_overwrites_first():
    text = "# Contributions\n[builder]\n- Bot (5 pts)\n  first\n  second\n"
    assert decode_profile(text)["contributions"][0]["description"] == "second"


# ── Lenient vs strict ────────────────────────────────────────────────────

MALFORMED = """\
@cyberdyne_profile_v2

version: 2

# Identity
telegram: 42
username: bob
color: blue

# Contributions
[builder]
- Broken entry
[promoter]
- Thread (12 pts)
"""


def test_lenient_decode_drops_bad_lines():
    decoded = decode_profile(MALFORMED)
    assert decoded["identity"] == {"telegram_id": 42, "username": "bob"}
    assert decoded["contributions"] == [{"type": "promoter", "name": "Thread", "score": 12}]


def test_strict_decode_reports_first_bad_line():
    with pytest.raises(ToonDecodeError) as excinfo:
        decode_profile(MALFORMED, strict=True)
    assert excinfo.value.line_no == 8
    assert excinfo.value.line == "color: blue"


@pytest.mark.parametrize("text,line_no", [
    ("# Contributions\n[builder]\n- Broken entry\n- Bot (1 pts)\n", 3),
    ("# Contributions\n[builder]\n", 3),
    ("# Identity\n@cyberdyne_profile_v2\n", 2),
    ("# Reputation\nxp: lots\n", 2),
    ("# Reputation\nscore: 12abc\n", 2),
    ("# Hobbies\n", 1),
    ("# Skills\ncooking: 10\n", 2),
    ("# Identity\n- stray item\n", 2),
    ("owner: me\n", 1),
    ("just words\n", 1),
])
def test_strict_decode_errors(text, line_no):
    with pytest.raises(ToonDecodeError) as excinfo:
        decode_profile(text, strict=True)
    assert excinfo.value.line_no == line_no


def test_strict_decode_accepts_encoder_output(make_profile):
    profile = enhance_profile(make_profile())
    assert decode_profile(encode_profile(profile), strict=True)["badges"] == profile["badges"]


def test_lenient_decode_never_raises():
    decoded = decode_profile("garbage\n# Nope\n[x]\n- ???\n  orphan\nxp: 1/2/3\n")
    assert decoded["contributions"] == []
    assert decoded["schema"] is None


# ── Helpers ──────────────────────────────────────────────────────────────

def test_is_toon(make_profile):
    assert is_toon(encode_profile(make_profile()))
    assert not is_toon('{"schema": "cyberdyne_profile_v2"}')


def test_savings_report(make_profile):
    report = calculate_savings(enhance_profile(make_profile()))
    assert report.toon < report.json_pretty
    assert report.json_compact < report.json_pretty
    assert report.savings_vs_pretty.endswith("%")


# ── Numbers and lossy corners ────────────────────────────────────────────

@pytest.mark.parametrize("score", [417, 400])
def test_valid_scores_survive_round_trip(make_profile, score):
    profile = enhance_profile(make_profile(score=score))
    decoded = decode_profile(encode_profile(profile), strict=True)
    for field in ("score", "rank", "level", "xp", "xp_to_next"):
        assert decoded["reputation"][field] == profile["reputation"][field]


@pytest.mark.parametrize("score", [417.5, 400.0])
def test_fractional_scores_never_reach_the_encoder(make_profile, score):
    profile = make_profile()
    profile["reputation"]["score"] = score
    assert not validate_profile(profile).valid


def test_non_mapping_contributions_are_skipped(make_profile):
    profile = enhance_profile(
        make_profile(contributions=["Buy Bot", {"type": "builder", "name": "Bot", "score": 5}])
    )
    decoded = decode_profile(encode_profile(profile), strict=True)
    assert decoded["contributions"] == [{"type": "builder", "name": "Bot", "score": 5}]


def test_non_integer_numbers_encode_as_zero(make_profile):
    profile = make_profile()
    profile["reputation"]["xp"] = "lots"
    profile["skills"] = {"builder": "many", "promoter": 7}
    decoded = decode_profile(encode_profile(profile), strict=True)
    assert decoded["reputation"]["xp"] == 0
    assert decoded["skills"] == {"promoter": 7}


def test_zero_xnt_entitlement_is_not_written(make_profile):
    profile = enhance_profile(make_profile())
    assert profile["reputation"]["xnt_entitlement"] == 0

    text = encode_profile(profile)
    decoded = decode_profile(text)

    assert "xnt:" not in text
    assert "xnt_entitlement" not in decoded["reputation"]
    expected = {k: v for k, v in profile["reputation"].items() if k != "xnt_entitlement"}
    assert decoded["reputation"] == expected


def test_list_whitespace_and_blank_items(make_profile):
    profile = make_profile()
    profile["achievements"] = ["first  ", "", "   ", "  indented", "last"]
    text = encode_profile(profile)
    decoded = decode_profile(text, strict=True)
    assert decoded["achievements"] == ["first", "  indented", "last"]
