"""
Backend Router — Codec
========================

Stateless operations on profile records:

POST /validate      — Structural validation
POST /enhance       — Validate, then fill derived fields
POST /toon/encode   — Record → TOON text
POST /toon/decode   — TOON text → record (+ validation)
POST /toon/savings  — Size comparison with JSON
"""

from __future__ import annotations

import logging
from typing import Any

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel

from profile_schema.models import FormatSavings, ValidationResult
from profile_schema.validator import validate_profile
from reputation_engine.engine import ReputationEngine
from toon_codec.codec import ToonDecodeError, calculate_savings, decode_profile, encode_profile

logger = logging.getLogger("backend.codec")
router = APIRouter(tags=["Codec"])

engine = ReputationEngine()


class EncodeResponse(BaseModel):
    toon: str
    size: int


class DecodeRequest(BaseModel):
    text: str
    strict: bool = False


class DecodeResponse(BaseModel):
    profile: dict[str, Any]
    validation: ValidationResult


def _require_valid(profile: dict[str, Any]) -> None:
    validation = validate_profile(profile)
    if not validation.valid:
        raise HTTPException(status_code=422, detail=validation.errors)


@router.post("/validate", response_model=ValidationResult)
async def validate(profile: dict[str, Any]):
    return validate_profile(profile)


@router.post("/enhance")
async def enhance(profile: dict[str, Any]):
    _require_valid(profile)
    return engine.enhance(profile)


@router.post("/toon/encode", response_model=EncodeResponse)
async def encode(profile: dict[str, Any]):
    _require_valid(profile)
    text = encode_profile(profile)
    return EncodeResponse(toon=text, size=len(text))


@router.post("/toon/decode", response_model=DecodeResponse)
async def decode(req: DecodeRequest):
    try:
        profile = decode_profile(req.text, strict=req.strict)
    except ToonDecodeError as exc:
        logger.info("Strict decode rejected input: %s", exc)
        raise HTTPException(
            status_code=422,
            detail={"line": exc.line_no, "reason": exc.reason, "text": exc.line},
        )
    return DecodeResponse(profile=profile, validation=validate_profile(profile))


@router.post("/toon/savings", response_model=FormatSavings)
async def savings(profile: dict[str, Any]):
    _require_valid(profile)
    return calculate_savings(profile)
