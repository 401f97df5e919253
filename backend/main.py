"""
Profile Vault — FastAPI Backend
=================================

REST API over the profile codec, validator, reputation engine
and the encrypted profile store.

Run:
    uvicorn backend.main:app --reload --port 8000
"""

from __future__ import annotations

import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from backend.routers import codec, profiles
from profile_schema.rules import SCHEMA_ID, SCHEMA_VERSION

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s  %(levelname)-8s  %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger("backend")

API_VERSION = "1.0.0"

app = FastAPI(
    title="Profile Vault API",
    description="Encrypted, content-addressed reputation profiles in the TOON format",
    version=API_VERSION,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(codec.router)
app.include_router(profiles.router)


@app.get("/")
async def root():
    return {
        "name": "Profile Vault API",
        "version": API_VERSION,
        "schema": SCHEMA_ID,
        "schema_version": SCHEMA_VERSION,
    }
