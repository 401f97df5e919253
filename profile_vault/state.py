"""
Profile Vault — Local Metadata Cache
======================================

JSON file mapping ``"{wallet}:{telegram_id}"`` (or bare telegram_id)
to the latest stored version of each profile.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Optional

from profile_schema.timestamps import now_timestamp

logger = logging.getLogger("profile_vault.state")

DEFAULT_STATE_PATH = Path.home() / ".profile_vault" / "state.json"
STATE_VERSION = 1


def _state_key(telegram_id: int, wallet: Optional[str]) -> str:
    return f"{wallet}:{telegram_id}" if wallet else str(telegram_id)


class StateCache:
    """Persistent profile metadata keyed by wallet and telegram id."""

    def __init__(self, path: str | Path | None = None) -> None:
        self.path = Path(path) if path else DEFAULT_STATE_PATH
        self.data = self._load()

    def _empty(self) -> dict[str, Any]:
        now = now_timestamp()
        return {
            "version": STATE_VERSION,
            "profiles": {},
            "metadata": {"created_at": now, "updated_at": now},
        }

    def _load(self) -> dict[str, Any]:
        if not self.path.is_file():
            return self._empty()
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as exc:
            logger.warning("Failed to load state from %s: %s", self.path, exc)
            return self._empty()
        if not isinstance(data, dict) or not isinstance(data.get("profiles"), dict):
            logger.warning("Ignoring malformed state file %s", self.path)
            return self._empty()
        return data

    def save(self) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.data.setdefault("metadata", {})["updated_at"] = now_timestamp()
        self.path.write_text(json.dumps(self.data, indent=2), encoding="utf-8")

    def get(self, telegram_id: int, wallet: Optional[str] = None) -> Optional[dict[str, Any]]:
        return self.data["profiles"].get(_state_key(telegram_id, wallet))

    def set(self, telegram_id: int, entry: dict[str, Any], wallet: Optional[str] = None) -> None:
        self.data["profiles"][_state_key(telegram_id, wallet)] = {
            **entry,
            "updated_at": now_timestamp(),
        }
        self.save()

    def delete(self, telegram_id: int, wallet: Optional[str] = None) -> bool:
        removed = self.data["profiles"].pop(_state_key(telegram_id, wallet), None)
        self.save()
        return removed is not None

    def list(self, wallet: Optional[str] = None) -> list[dict[str, Any]]:
        """List entries, optionally only those stored under *wallet*."""
        entries: list[dict[str, Any]] = []
        for key, entry in self.data["profiles"].items():
            if wallet and not key.startswith(f"{wallet}:"):
                continue
            telegram_part = key.rsplit(":", 1)[-1]
            entries.append({
                "key": key,
                "telegram_id": int(telegram_part) if telegram_part.isdigit() else None,
                **entry,
            })
        return entries

    def clear(self) -> None:
        self.data = self._empty()
        self.save()

    def stats(self) -> dict[str, Any]:
        meta = self.data.get("metadata", {})
        return {
            "total_profiles": len(self.data["profiles"]),
            "state_path": str(self.path),
            "created_at": meta.get("created_at"),
            "updated_at": meta.get("updated_at"),
        }
