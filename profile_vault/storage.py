"""
Profile Vault — Content-Addressed Storage
===========================================

Blob stores addressed by content identifier.

Implementations:
    • IPFSStore   — IPFS HTTP API (add / cat / pin) with retry + backoff
    • MemoryStore — in-process store for tests and local runs
"""

from __future__ import annotations

import abc
import asyncio
import hashlib
import logging
from typing import Optional

import httpx

from profile_vault.errors import StorageError

logger = logging.getLogger("profile_vault.storage")

DEFAULT_IPFS_URL = "https://vault.x1.xyz/ipfs"
MAX_RETRIES = 3
RETRY_DELAY = 1.0  # seconds, doubled on every attempt
REQUEST_TIMEOUT = 30.0


class ContentStore(abc.ABC):
    """Interface every profile blob store implements."""

    @abc.abstractmethod
    async def put(self, data: bytes, filename: str = "profile.json") -> str:
        """Store *data* and return its address."""

    @abc.abstractmethod
    async def get(self, address: str) -> bytes:
        """Return the blob stored at *address*."""

    async def pin(self, address: str) -> bool:
        return False


class IPFSStore(ContentStore):
    """IPFS HTTP API client.

    Usage:
        store = IPFSStore("https://vault.x1.xyz/ipfs")
        cid = await store.put(b"...", "profile.json")
    """

    def __init__(
        self,
        base_url: str = DEFAULT_IPFS_URL,
        max_retries: int = MAX_RETRIES,
        retry_delay: float = RETRY_DELAY,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.max_retries = max_retries
        self.retry_delay = retry_delay
        self._transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=REQUEST_TIMEOUT, transport=self._transport)

    async def put(self, data: bytes, filename: str = "profile.json") -> str:
        url = f"{self.base_url}/api/v0/add"
        files = {"file": (filename, data, "application/json")}

        async def _add(client: httpx.AsyncClient) -> str:
            resp = await client.post(url, files=files)
            resp.raise_for_status()
            payload = resp.json()
            cid = payload.get("Hash") or payload.get("cid")
            if not cid:
                raise StorageError(f"IPFS add returned no CID: {payload}")
            return cid

        cid = await self._with_retries("upload", _add)
        logger.info("Uploaded %s (%d bytes) → %s", filename, len(data), cid)
        return cid

    async def get(self, address: str) -> bytes:
        url = f"{self.base_url}/api/v0/cat"

        async def _cat(client: httpx.AsyncClient) -> bytes:
            resp = await client.post(url, params={"arg": address})
            resp.raise_for_status()
            return resp.content

        return await self._with_retries("fetch", _cat)

    async def pin(self, address: str) -> bool:
        """Pin *address*. Failures are logged, never raised."""
        try:
            async with self._client() as client:
                resp = await client.post(
                    f"{self.base_url}/api/v0/pin/add", params={"arg": address}
                )
                resp.raise_for_status()
            return True
        except httpx.HTTPError as exc:
            logger.warning("IPFS pin failed for %s: %s", address, exc)
            return False

    async def _with_retries(self, action: str, call):
        last_exc: Exception | None = None
        async with self._client() as client:
            for attempt in range(1, self.max_retries + 1):
                try:
                    return await call(client)
                except (httpx.HTTPError, ValueError) as exc:
                    last_exc = exc
                    if attempt < self.max_retries:
                        delay = self.retry_delay * 2 ** (attempt - 1)
                        logger.warning(
                            "IPFS %s attempt %d failed (%s) — retrying in %.1fs",
                            action, attempt, exc, delay,
                        )
                        await asyncio.sleep(delay)
        raise StorageError(
            f"IPFS {action} failed after {self.max_retries} attempts: {last_exc}"
        )


class MemoryStore(ContentStore):
    """Dict-backed store addressed by SHA-256 of the content."""

    def __init__(self) -> None:
        self.blobs: dict[str, bytes] = {}
        self.pinned: set[str] = set()

    async def put(self, data: bytes, filename: str = "profile.json") -> str:
        address = "mem-" + hashlib.sha256(data).hexdigest()
        self.blobs[address] = data
        return address

    async def get(self, address: str) -> bytes:
        try:
            return self.blobs[address]
        except KeyError:
            raise StorageError(f"No blob stored at {address}") from None

    async def pin(self, address: str) -> bool:
        if address not in self.blobs:
            return False
        self.pinned.add(address)
        return True
