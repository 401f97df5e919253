"""
TOON Codec — Profile Text Format
==================================

Compact, line-oriented text encoding for profile records.

Layout:
    @<schema>
    version / created / updated            top-level keys
    # Identity, # Reputation               key: value sections
    # Contributions                        [type] + "- name (N pts)" blocks,
                                           indented description / timestamp
    # Achievements, # Communities, # Badges   "- text" lists
    # Skills                               key: value (positive scores only)
    # Metadata, # Encryption               key: value sections

Decoding is a single forward pass. In lenient mode (default) lines that
match no rule are dropped; in strict mode they raise ToonDecodeError.

Not everything survives a round trip:
    • a zero xnt_entitlement and zero-valued skills are not written
    • key: value values lose surrounding whitespace; list items and
      contribution names lose trailing whitespace
    • blank list items are not written
    • contribution entries that are not mappings are skipped on encode
"""

from __future__ import annotations

import json
import logging
import re
from collections.abc import Mapping
from typing import Any, Callable, Optional

from profile_schema.models import FormatSavings
from profile_schema.rules import SKILL_NAMES

logger = logging.getLogger("toon_codec")

CONTRIBUTION_ITEM = re.compile(r"^(.+?)\s*\((\d+)\s*pts\)$")
TIMESTAMP_PREFIX = re.compile(r"^\d{4}-\d{2}-\d{2}")
INTEGER = re.compile(r"^-?\d+$")


class ToonDecodeError(ValueError):
    """Raised by strict decoding on the first line no rule accepts."""

    def __init__(self, reason: str, line_no: int, line: str) -> None:
        super().__init__(f"line {line_no}: {reason}: {line!r}")
        self.reason = reason
        self.line_no = line_no
        self.line = line


# ─────────────────────────────────────────────────────────────────────────────
# Key Tables
# ─────────────────────────────────────────────────────────────────────────────
def _parse_int(value: str) -> Optional[int]:
    return int(value) if INTEGER.match(value) else None


def _parse_bool(value: str) -> Optional[bool]:
    if value == "true":
        return True
    if value == "false":
        return False
    return None


def _parse_str(value: str) -> Optional[str]:
    return value


Parser = Callable[[str], Any]

TOP_LEVEL_KEYS: dict[str, str] = {
    "version": "version",
    "created": "created_at",
    "updated": "updated_at",
}

SECTION_KEYS: dict[str, dict[str, tuple[str, Parser]]] = {
    "identity": {
        "telegram": ("telegram_id", _parse_int),
        "username": ("username", _parse_str),
        "display": ("display_name", _parse_str),
        "handle": ("handle", _parse_str),
        "wallet": ("wallet", _parse_str),
    },
    "reputation": {
        "score": ("score", _parse_int),
        "rank": ("rank", _parse_int),
        "tier": ("tier", _parse_str),
        "level": ("level", _parse_int),
        "xnt": ("xnt_entitlement", _parse_int),
    },
    "metadata": {
        "cid": ("ipfs_cid", _parse_str),
        "prev": ("previous_cid", _parse_str),
        "source": ("source", _parse_str),
        "enhanced": ("auto_enhanced", _parse_bool),
        "revision": ("revision", _parse_int),
    },
    "encryption": {
        "algo": ("algorithm", _parse_str),
        "key": ("key_derivation", _parse_str),
        "encrypted": ("encrypted_at", _parse_str),
    },
}

LIST_SECTIONS = ("achievements", "communities", "badges")
KNOWN_SECTIONS = frozenset(
    {"contributions", "skills", *SECTION_KEYS, *LIST_SECTIONS}
)


# ─────────────────────────────────────────────────────────────────────────────
# Encoder
# ─────────────────────────────────────────────────────────────────────────────
def _text(value: Any) -> str:
    return "" if value is None else str(value)


def _whole(value: Any) -> int:
    return value if isinstance(value, int) and not isinstance(value, bool) else 0


def encode_profile(profile: dict[str, Any]) -> str:
    """Encode an (enhanced) profile record to TOON text."""
    lines: list[str] = [f"@{_text(profile.get('schema'))}", ""]

    lines.append(f"version: {_text(profile.get('version'))}")
    lines.append(f"created: {_text(profile.get('created_at'))}")
    lines.append(f"updated: {_text(profile.get('updated_at'))}")
    lines.append("")

    # ── Identity ─────────────────────────────────────────────────────
    identity = profile.get("identity") or {}
    lines.append("# Identity")
    lines.append(f"telegram: {_text(identity.get('telegram_id'))}")
    lines.append(f"username: {_text(identity.get('username'))}")
    for key, field in (("display", "display_name"), ("handle", "handle"), ("wallet", "wallet")):
        if identity.get(field):
            lines.append(f"{key}: {identity[field]}")
    lines.append("")

    # ── Reputation ───────────────────────────────────────────────────
    rep = profile.get("reputation") or {}
    xp = _whole(rep.get("xp"))
    xp_to_next = _whole(rep.get("xp_to_next"))
    lines.append("# Reputation")
    lines.append(f"score: {_whole(rep.get('score'))}")
    lines.append(f"rank: {_whole(rep.get('rank'))}")
    lines.append(f"tier: {_text(rep.get('tier'))}")
    lines.append(f"level: {_whole(rep.get('level'))}")
    lines.append(f"xp: {xp}/{xp + xp_to_next}")
    # Omitted when zero, so a decoded record has no xnt_entitlement key.
    if _whole(rep.get("xnt_entitlement")):
        lines.append(f"xnt: {rep['xnt_entitlement']}")
    lines.append("")

    # ── Contributions ────────────────────────────────────────────────
    contributions = [c for c in profile.get("contributions") or [] if isinstance(c, Mapping)]
    if contributions:
        lines.append("# Contributions")
        for contrib in contributions:
            lines.append(f"[{_text(contrib.get('type'))}]")
            lines.append(f"- {_text(contrib.get('name'))} ({_whole(contrib.get('score'))} pts)")
            if contrib.get("description"):
                lines.append(f"  {contrib['description']}")
            if contrib.get("timestamp"):
                lines.append(f"  {contrib['timestamp']}")
        lines.append("")

    # ── Plain lists ──────────────────────────────────────────────────
    for section in ("achievements", "communities"):
        _encode_list(lines, section, profile.get(section))

    # ── Skills ───────────────────────────────────────────────────────
    skills = profile.get("skills") or {}
    if skills:
        lines.append("# Skills")
        for skill, score in skills.items():
            if _whole(score) > 0:
                lines.append(f"{skill}: {score}")
        lines.append("")

    _encode_list(lines, "badges", profile.get("badges"))

    # ── Metadata ─────────────────────────────────────────────────────
    meta = profile.get("metadata") or {}
    lines.append("# Metadata")
    if meta.get("ipfs_cid"):
        lines.append(f"cid: {meta['ipfs_cid']}")
    if meta.get("previous_cid"):
        lines.append(f"prev: {meta['previous_cid']}")
    if meta.get("revision"):
        lines.append(f"revision: {meta['revision']}")
    lines.append(f"source: {meta.get('source') or 'unknown'}")
    if meta.get("auto_enhanced"):
        lines.append("enhanced: true")
    lines.append("")

    # ── Encryption ───────────────────────────────────────────────────
    enc = profile.get("encryption")
    if enc:
        lines.append("# Encryption")
        lines.append(f"algo: {_text(enc.get('algorithm'))}")
        lines.append(f"key: {_text(enc.get('key_derivation'))}")
        lines.append(f"encrypted: {_text(enc.get('encrypted_at'))}")

    return "\n".join(lines)


def _encode_list(lines: list[str], section: str, items: Any) -> None:
    if not items:
        return
    lines.append(f"# {section.capitalize()}")
    lines.extend(f"- {item}" for item in items if _text(item).strip())
    lines.append("")


# ─────────────────────────────────────────────────────────────────────────────
# Decoder
# ─────────────────────────────────────────────────────────────────────────────
def _empty_profile() -> dict[str, Any]:
    return {
        "schema": None,
        "version": None,
        "created_at": None,
        "updated_at": None,
        "identity": {},
        "reputation": {},
        "contributions": [],
        "achievements": [],
        "communities": [],
        "skills": {},
        "badges": [],
        "metadata": {"auto_enhanced": False},
        "encryption": {},
    }


class ToonDecoder:
    """Stateful single-pass decoder.

    State is the current section and the contribution being assembled:
    ``[type]`` opens it, ``- name (N pts)`` finalizes it, and indented
    lines that follow attach a description or timestamp.
    """

    def __init__(self, strict: bool = False) -> None:
        self.strict = strict

    def decode(self, text: str) -> dict[str, Any]:
        self.profile = _empty_profile()
        self.section: Optional[str] = None
        self.pending: Optional[dict[str, Any]] = None
        self.last: Optional[dict[str, Any]] = None

        lines = text.split("\n")
        for line_no, raw in enumerate(lines, start=1):
            self._feed(line_no, raw.rstrip("\r"))

        if self.pending is not None:
            self._reject(
                len(lines),
                f"[{self.pending['type']}]",
                "unterminated contribution",
            )
        return self.profile

    def _feed(self, line_no: int, raw: str) -> None:
        line = raw.strip()
        if not line:
            return

        if raw.startswith("  ") and self.section == "contributions":
            self._contribution_detail(line_no, raw, line)
            return

        if line.startswith("# "):
            self.section = line[2:].strip().lower()
            self.pending = self.last = None
            if self.section not in KNOWN_SECTIONS:
                self._reject(line_no, raw, "unknown section")
            return

        if line.startswith("@"):
            if self.section is None:
                self.profile["schema"] = line[1:]
            else:
                self._reject(line_no, raw, "schema header after first section")
            return

        if self.section == "contributions" and line.startswith("[") and line.endswith("]"):
            if self.pending is not None:
                self._reject(line_no, raw, "unterminated contribution")
            self.pending = {"type": line[1:-1]}
            self.last = None
            return

        if line.startswith("- "):
            self._list_item(line_no, raw, line[2:])
            return

        if ":" in line:
            key, _, value = line.partition(":")
            self._key_value(line_no, raw, key.strip(), value.strip())
            return

        self._reject(line_no, raw, "unrecognized line")

    # ── Line handlers ────────────────────────────────────────────────
    def _contribution_detail(self, line_no: int, raw: str, content: str) -> None:
        target = self.pending if self.pending is not None else self.last
        if target is None:
            self._reject(line_no, raw, "detail line outside a contribution")
            return
        field = "timestamp" if TIMESTAMP_PREFIX.match(content) else "description"
        target[field] = content

    def _list_item(self, line_no: int, raw: str, content: str) -> None:
        if self.section in LIST_SECTIONS:
            self.profile[self.section].append(content)
            return

        if self.pending is None:
            self._reject(line_no, raw, "list item outside a list section")
            return

        match = CONTRIBUTION_ITEM.match(content)
        if not match:
            self._reject(line_no, raw, "contribution item must read '<name> (<N> pts)'")
            return

        contrib = {
            "type": self.pending["type"],
            "name": match.group(1),
            "score": int(match.group(2)),
        }
        for field in ("description", "timestamp"):
            if field in self.pending:
                contrib[field] = self.pending[field]
        self.profile["contributions"].append(contrib)
        self.pending = None
        self.last = contrib

    def _key_value(self, line_no: int, raw: str, key: str, value: str) -> None:
        if self.section is None:
            field = TOP_LEVEL_KEYS.get(key)
            if field is None:
                self._reject(line_no, raw, "unknown top-level key")
            else:
                self.profile[field] = value
            return

        if self.section == "reputation" and key == "xp":
            self._xp(line_no, raw, value)
            return

        if self.section == "skills":
            score = _parse_int(value)
            if key not in SKILL_NAMES:
                self._reject(line_no, raw, "unknown skill")
            elif score is None:
                self._reject(line_no, raw, "malformed integer")
            else:
                self.profile["skills"][key] = score
            return

        table = SECTION_KEYS.get(self.section)
        if table is None or key not in table:
            self._reject(line_no, raw, f"unknown key in section '{self.section}'")
            return

        field, parse = table[key]
        parsed = parse(value)
        if parsed is None:
            self._reject(line_no, raw, "malformed value")
            return
        self.profile[self.section][field] = parsed

    def _xp(self, line_no: int, raw: str, value: str) -> None:
        current_raw, sep, total_raw = value.partition("/")
        current = _parse_int(current_raw.strip())
        total = _parse_int(total_raw.strip())
        if not sep or current is None or total is None:
            self._reject(line_no, raw, "xp must read '<current>/<total>'")
            return
        self.profile["reputation"]["xp"] = current
        self.profile["reputation"]["xp_to_next"] = total - current

    def _reject(self, line_no: int, raw: str, reason: str) -> None:
        if self.strict:
            raise ToonDecodeError(reason, line_no, raw)
        logger.debug("Dropping line %d (%s): %r", line_no, reason, raw)


def decode_profile(text: str, strict: bool = False) -> dict[str, Any]:
    """Decode TOON text into a profile record.

    Lenient decoding never raises; run the schema validator on the
    result before trusting it.
    """
    return ToonDecoder(strict=strict).decode(text)


def is_toon(text: str) -> bool:
    return text.lstrip().startswith("@")


# ─────────────────────────────────────────────────────────────────────────────
# JSON Alternative & Size Report
# ─────────────────────────────────────────────────────────────────────────────
def encode_json(profile: dict[str, Any]) -> str:
    return json.dumps(profile, indent=2, ensure_ascii=False)


def decode_json(text: str) -> dict[str, Any]:
    return json.loads(text)


def calculate_savings(profile: dict[str, Any]) -> FormatSavings:
    """Compare TOON size with pretty and compact JSON."""
    pretty = len(encode_json(profile))
    compact = len(json.dumps(profile, separators=(",", ":"), ensure_ascii=False))
    toon = len(encode_profile(profile))

    def _pct(baseline: int) -> str:
        if baseline == 0:
            return "0.0%"
        return f"{(baseline - toon) / baseline * 100:.1f}%"

    return FormatSavings(
        json_pretty=pretty,
        json_compact=compact,
        toon=toon,
        savings_vs_compact=_pct(compact),
        savings_vs_pretty=_pct(pretty),
    )
