"""aiogram FSM storage that keeps one session record per user in the KV store."""

from __future__ import annotations

from typing import Any, Dict, Optional

from aiogram.fsm.state import State
from aiogram.fsm.storage.base import BaseStorage, StateType, StorageKey

from services.kv import KVStore
from services.models import utcnow_iso

SESSION = "session:"


class KVSessionStorage(BaseStorage):
    """Session record: ``{"user_id", "state", "context", "updated_at"}``.

    The record is deleted as soon as it holds neither a state nor context, so
    "no session" and "no flow in progress" are the same thing.
    """

    def __init__(self, kv: KVStore) -> None:
        self.kv = kv

    @staticmethod
    def _key(key: StorageKey) -> str:
        return f"{SESSION}{key.user_id}"

    async def _load(self, key: StorageKey) -> dict[str, Any] | None:
        return await self.kv.get(self._key(key))

    async def _save(self, key: StorageKey, state: str | None, context: Dict[str, Any]) -> None:
        if state is None and not context:
            await self.kv.delete(self._key(key))
            return
        await self.kv.set(
            self._key(key),
            {"user_id": key.user_id, "state": state, "context": context, "updated_at": utcnow_iso()},
        )

    async def set_state(self, key: StorageKey, state: StateType = None) -> None:
        record = await self._load(key) or {}
        value = state.state if isinstance(state, State) else state
        await self._save(key, value, record.get("context") or {})

    async def get_state(self, key: StorageKey) -> Optional[str]:
        record = await self._load(key)
        return record.get("state") if record else None

    async def set_data(self, key: StorageKey, data: Dict[str, Any]) -> None:
        record = await self._load(key) or {}
        await self._save(key, record.get("state"), dict(data))

    async def get_data(self, key: StorageKey) -> Dict[str, Any]:
        record = await self._load(key)
        return dict(record.get("context") or {}) if record else {}

    async def close(self) -> None:
        pass
