"""
Profile Vault — Profile Manager
=================================

Orchestrates the profile lifecycle:

    create:  validate → enhance → chain → encode → encrypt → put → record state
    get:     state → get → decrypt → decode → validate

Stored versions are immutable. Every update produces a new blob whose
``metadata.previous_cid`` points at the prior one and whose
``metadata.revision`` is one higher.
"""

from __future__ import annotations

import copy
import json
import logging
from typing import Any, Optional

from profile_schema.models import CreateResult, ProfileStats, VerifyResult, sanitize_profile
from profile_schema.timestamps import now_timestamp
from profile_schema.validator import validate_profile
from profile_vault.crypto import CryptoBox, sha256_hex
from profile_vault.errors import (
    ProfileNotFoundError,
    ProfileValidationError,
    ProfileVaultError,
    StorageError,
)
from profile_vault.state import StateCache
from profile_vault.storage import ContentStore
from reputation_engine.engine import ReputationEngine
from toon_codec.codec import (
    ToonDecodeError,
    decode_json,
    decode_profile,
    encode_json,
    encode_profile,
    is_toon,
)

logger = logging.getLogger("profile_vault.manager")

FORMATS = ("toon", "json")
DERIVED_FIELDS = ("level", "xp", "xp_to_next")


class ProfileManager:
    """Create, read, update and verify encrypted profiles.

    Usage:
        manager = ProfileManager(crypto=box, store=IPFSStore(url), state=StateCache())
        result = await manager.create(profile)
    """

    def __init__(
        self,
        crypto: CryptoBox,
        store: ContentStore,
        state: StateCache,
        format: str = "toon",
        wallet_pubkey: Optional[str] = None,
        strict_decode: bool = False,
        pin_uploads: bool = False,
    ) -> None:
        if format not in FORMATS:
            raise ValueError(f"Unsupported format '{format}'. Choose from: {', '.join(FORMATS)}")
        self.crypto = crypto
        self.store = store
        self.state = state
        self.format = format
        self.wallet_pubkey = wallet_pubkey or crypto.wallet_pubkey
        self.strict_decode = strict_decode
        self.pin_uploads = pin_uploads
        self.engine = ReputationEngine()

    # ── Write path ───────────────────────────────────────────────────
    async def create(self, profile: dict[str, Any]) -> CreateResult:
        """Store *profile* as a new version. Never raises on bad input."""
        validation = validate_profile(profile)
        if not validation.valid:
            error = f"Profile validation failed: {', '.join(validation.errors)}"
            logger.warning(error)
            return CreateResult(success=False, error=error)

        profile = self.engine.enhance(profile, in_place=False)
        identity = profile["identity"]
        telegram_id = identity["telegram_id"]
        wallet = identity.get("wallet") or self.wallet_pubkey

        metadata = profile.setdefault("metadata", {})
        metadata.pop("ipfs_cid", None)
        existing = self.state.get(telegram_id, wallet)
        if existing and existing.get("cid"):
            metadata["previous_cid"] = existing["cid"]
            metadata["revision"] = int(existing.get("revision") or 1) + 1
        else:
            metadata.setdefault("revision", 1)

        plaintext = encode_profile(profile) if self.format == "toon" else encode_json(profile)
        digest = sha256_hex(plaintext)

        try:
            envelope = self.crypto.encrypt(plaintext)
            filename = f"profile_{telegram_id}_v{metadata['revision']}.json"
            cid = await self.store.put(json.dumps(envelope).encode("utf-8"), filename)
            if self.pin_uploads:
                await self.store.pin(cid)
        except ProfileVaultError as exc:
            logger.error("Create failed for %s: %s", telegram_id, exc, exc_info=True)
            return CreateResult(success=False, error=str(exc))

        metadata["ipfs_cid"] = cid
        reputation = profile["reputation"]
        self.state.set(
            telegram_id,
            {
                "cid": cid,
                "sha256": digest,
                "username": identity["username"],
                "score": reputation.get("score"),
                "rank": reputation.get("rank"),
                "tier": reputation.get("tier"),
                "version": profile.get("version"),
                "revision": metadata["revision"],
                "created_at": profile.get("created_at"),
                "updated_at": profile.get("updated_at"),
                "format": self.format,
            },
            wallet,
        )

        logger.info(
            "Stored profile %s rev %d → %s (%d chars, %s)",
            telegram_id, metadata["revision"], cid, len(plaintext), self.format,
        )
        return CreateResult(
            success=True,
            cid=cid,
            profile=profile,
            size=len(plaintext),
            format=self.format,
        )

    async def update(
        self,
        telegram_id: int,
        updates: dict[str, Any],
        wallet: Optional[str] = None,
    ) -> CreateResult:
        """Merge *updates* into the latest version and store the result.

        Supported keys: ``reputation`` (merged), ``contributions`` and
        ``achievements`` (lists; replaced, or appended with ``add_contribution``
        / ``add_achievement``), ``communities`` (replaced).
        """
        existing = await self.get(telegram_id, wallet)
        if existing is None:
            raise ProfileNotFoundError(telegram_id)

        updated = copy.deepcopy(existing)
        updated["updated_at"] = now_timestamp()

        if updates.get("reputation"):
            rep_updates = updates["reputation"]
            reputation = updated.setdefault("reputation", {})
            reputation.update(rep_updates)
            for field in DERIVED_FIELDS:
                if field not in rep_updates:
                    reputation[field] = 0

        if updates.get("contributions") is not None:
            if updates.get("add_contribution"):
                updated.setdefault("contributions", []).extend(updates["contributions"])
            else:
                updated["contributions"] = list(updates["contributions"])

        if updates.get("achievements") is not None:
            if updates.get("add_achievement"):
                updated.setdefault("achievements", []).extend(updates["achievements"])
            else:
                updated["achievements"] = list(updates["achievements"])

        if updates.get("communities") is not None:
            updated["communities"] = list(updates["communities"])

        return await self.create(updated)

    def delete(self, telegram_id: int, wallet: Optional[str] = None) -> bool:
        """Forget the local pointer; stored blobs are immutable."""
        owner, entry = self._locate(telegram_id, wallet)
        if entry is None:
            return False
        return self.state.delete(telegram_id, owner)

    # ── Read path ────────────────────────────────────────────────────
    async def get(self, telegram_id: int, wallet: Optional[str] = None) -> Optional[dict[str, Any]]:
        """Fetch and decode the latest version, or None if unknown."""
        _, entry = self._locate(telegram_id, wallet)
        if not entry or not entry.get("cid"):
            return None

        profile = await self._load(entry["cid"])
        validation = validate_profile(profile)
        if not validation.valid:
            raise ProfileValidationError(validation.errors)

        profile.setdefault("metadata", {})["ipfs_cid"] = entry["cid"]
        return profile

    def list(self, wallet: Optional[str] = None) -> list[dict[str, Any]]:
        """Entries stored under *wallet*, by default the manager's own wallet.

        Profiles created with their own ``identity.wallet`` are listed
        under that wallet only.
        """
        return self.state.list(wallet or self.wallet_pubkey)

    async def stats(self, telegram_id: int, wallet: Optional[str] = None) -> Optional[ProfileStats]:
        profile = await self.get(telegram_id, wallet)
        if profile is None:
            return None

        identity = profile["identity"]
        reputation = profile["reputation"]
        return ProfileStats(
            telegram_id=identity["telegram_id"],
            username=identity["username"],
            score=reputation.get("score") or 0,
            rank=reputation.get("rank") or 0,
            tier=reputation.get("tier") or "",
            level=reputation.get("level") or 0,
            xp=reputation.get("xp") or 0,
            xp_to_next=reputation.get("xp_to_next") or 0,
            total_contributions=len(profile.get("contributions") or []),
            total_achievements=len(profile.get("achievements") or []),
            communities_count=len(profile.get("communities") or []),
            badges_count=len(profile.get("badges") or []),
            cid=profile["metadata"].get("ipfs_cid"),
            version=profile.get("version"),
        )

    async def export(
        self,
        telegram_id: int,
        wallet: Optional[str] = None,
        sanitize: bool = False,
        hide_wallet: bool = False,
        hide_encryption: bool = False,
    ) -> dict[str, Any]:
        profile = await self.get(telegram_id, wallet)
        if profile is None:
            raise ProfileNotFoundError(telegram_id)
        if sanitize:
            return sanitize_profile(profile, hide_wallet=hide_wallet, hide_encryption=hide_encryption)
        return profile

    async def verify(self, cid: str) -> VerifyResult:
        """Check that the blob at *cid* decrypts, decodes and validates."""
        try:
            profile = await self._load(cid)
        except (ProfileVaultError, ToonDecodeError, ValueError) as exc:
            logger.warning("Verification of %s failed: %s", cid, exc)
            return VerifyResult(cid=cid, valid=False, errors=[str(exc)])

        validation = validate_profile(profile)
        return VerifyResult(
            cid=cid,
            valid=validation.valid,
            errors=validation.errors,
            profile=profile if validation.valid else None,
        )

    def _locate(
        self, telegram_id: int, wallet: Optional[str]
    ) -> tuple[Optional[str], Optional[dict[str, Any]]]:
        """Find the wallet and state entry holding *telegram_id*.

        An explicit *wallet* is looked up as given. Otherwise the manager's
        wallet is tried first, then the single entry stored under any other
        wallet (profiles created with their own ``identity.wallet``).
        """
        if wallet:
            return wallet, self.state.get(telegram_id, wallet)

        entry = self.state.get(telegram_id, self.wallet_pubkey)
        if entry is not None:
            return self.wallet_pubkey, entry

        matches = [e for e in self.state.list() if e["telegram_id"] == telegram_id]
        if len(matches) > 1:
            logger.warning(
                "Profile %s is stored under %d wallets; pass wallet to choose one",
                telegram_id, len(matches),
            )
            return None, None
        if not matches:
            return None, None

        key = matches[0]["key"]
        owner = key.rsplit(":", 1)[0] if ":" in key else None
        return owner, self.state.get(telegram_id, owner)

    async def _load(self, cid: str) -> dict[str, Any]:
        raw = await self.store.get(cid)
        try:
            envelope = json.loads(raw)
        except ValueError as exc:
            raise StorageError(f"Blob at {cid} is not an encrypted envelope") from exc
        if not isinstance(envelope, dict):
            raise StorageError(f"Blob at {cid} is not an encrypted envelope")

        plaintext = self.crypto.decrypt(envelope)
        if is_toon(plaintext):
            return decode_profile(plaintext, strict=self.strict_decode)
        return decode_json(plaintext)
