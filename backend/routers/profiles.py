"""
Backend Router — Profiles
===========================

POST   /profiles                       — Create a profile (new version if one exists)
GET    /profiles                       — List locally known profiles
GET    /profiles/{telegram_id}         — Fetch + decrypt latest version
PATCH  /profiles/{telegram_id}         — Merge updates into a new version
GET    /profiles/{telegram_id}/stats   — Summary numbers
GET    /profiles/{telegram_id}/export  — Optionally sanitized export
DELETE /profiles/{telegram_id}         — Forget the local pointer
GET    /verify/{cid}                   — Integrity check of a stored blob
"""

from __future__ import annotations

import logging
from typing import Any, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel

from backend.config import get_manager
from profile_schema.models import (
    Contribution,
    CreateResult,
    Identity,
    ProfileStats,
    Reputation,
    VerifyResult,
    create_default_profile,
)
from profile_vault.errors import (
    ProfileNotFoundError,
    ProfileValidationError,
    ProfileVaultError,
)
from profile_vault.manager import ProfileManager

logger = logging.getLogger("backend.profiles")
router = APIRouter(tags=["Profiles"])


def manager_dependency() -> ProfileManager:
    try:
        return get_manager()
    except RuntimeError as exc:
        logger.error("Profile manager unavailable: %s", exc)
        raise HTTPException(status_code=503, detail=str(exc))


class CreateProfileRequest(BaseModel):
    identity: Identity
    reputation: Reputation = Reputation()
    contributions: list[Contribution] = []
    achievements: list[str] = []
    communities: list[str] = []


class UpdateProfileRequest(BaseModel):
    reputation: Optional[dict[str, Any]] = None
    contributions: Optional[list[Contribution]] = None
    add_contribution: bool = False
    achievements: Optional[list[str]] = None
    add_achievement: bool = False
    communities: Optional[list[str]] = None


def _raise_for(exc: Exception, action: str) -> None:
    if isinstance(exc, ProfileNotFoundError):
        raise HTTPException(status_code=404, detail=str(exc))
    if isinstance(exc, ProfileValidationError):
        raise HTTPException(status_code=422, detail=exc.errors)
    logger.error("%s failed: %s", action, exc, exc_info=True)
    raise HTTPException(status_code=502, detail=str(exc))


@router.post("/profiles", response_model=CreateResult)
async def create_profile(
    req: CreateProfileRequest,
    manager: ProfileManager = Depends(manager_dependency),
):
    """Create (or re-version) a profile."""
    profile = create_default_profile(
        req.identity.model_dump(exclude_none=True), req.reputation.model_dump()
    )
    profile["contributions"] = [c.model_dump(exclude_none=True) for c in req.contributions]
    profile["achievements"] = req.achievements
    profile["communities"] = req.communities

    result = await manager.create(profile)
    if not result.success:
        raise HTTPException(status_code=422, detail=result.error)
    return result


@router.get("/profiles")
async def list_profiles(
    wallet: Optional[str] = None,
    manager: ProfileManager = Depends(manager_dependency),
):
    return manager.list(wallet)


@router.get("/profiles/{telegram_id}")
async def get_profile(
    telegram_id: int,
    wallet: Optional[str] = None,
    manager: ProfileManager = Depends(manager_dependency),
):
    try:
        profile = await manager.get(telegram_id, wallet)
    except ProfileVaultError as exc:
        _raise_for(exc, "Get")
    if profile is None:
        raise HTTPException(status_code=404, detail=f"Profile not found for telegram_id: {telegram_id}")
    return profile


@router.patch("/profiles/{telegram_id}", response_model=CreateResult)
async def update_profile(
    telegram_id: int,
    req: UpdateProfileRequest,
    wallet: Optional[str] = None,
    manager: ProfileManager = Depends(manager_dependency),
):
    updates = req.model_dump(exclude_none=True)
    try:
        result = await manager.update(telegram_id, updates, wallet)
    except ProfileVaultError as exc:
        _raise_for(exc, "Update")
    if not result.success:
        raise HTTPException(status_code=422, detail=result.error)
    return result


@router.get("/profiles/{telegram_id}/stats", response_model=ProfileStats)
async def profile_stats(
    telegram_id: int,
    wallet: Optional[str] = None,
    manager: ProfileManager = Depends(manager_dependency),
):
    try:
        stats = await manager.stats(telegram_id, wallet)
    except ProfileVaultError as exc:
        _raise_for(exc, "Stats")
    if stats is None:
        raise HTTPException(status_code=404, detail=f"Profile not found for telegram_id: {telegram_id}")
    return stats


@router.get("/profiles/{telegram_id}/export")
async def export_profile(
    telegram_id: int,
    wallet: Optional[str] = None,
    sanitize: bool = False,
    hide_wallet: bool = False,
    hide_encryption: bool = False,
    manager: ProfileManager = Depends(manager_dependency),
):
    try:
        return await manager.export(
            telegram_id,
            wallet,
            sanitize=sanitize,
            hide_wallet=hide_wallet,
            hide_encryption=hide_encryption,
        )
    except ProfileVaultError as exc:
        _raise_for(exc, "Export")


@router.delete("/profiles/{telegram_id}")
async def delete_profile(
    telegram_id: int,
    wallet: Optional[str] = None,
    manager: ProfileManager = Depends(manager_dependency),
):
    if not manager.delete(telegram_id, wallet):
        raise HTTPException(status_code=404, detail=f"Profile not found for telegram_id: {telegram_id}")
    return {"success": True}


@router.get("/verify/{cid}", response_model=VerifyResult)
async def verify_blob(
    cid: str,
    manager: ProfileManager = Depends(manager_dependency),
):
    return await manager.verify(cid)
