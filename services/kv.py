"""Key-value storage used for entities, indexes, counters and sessions.

Values are JSON documents. ``PgKVStore`` keeps them in PostgreSQL tables,
``MemoryKVStore`` keeps them in process memory (local runs and tests).
"""

from __future__ import annotations

import json
from typing import Any, Protocol

import asyncpg


class KVStore(Protocol):
    async def get(self, key: str) -> Any | None: ...

    async def set(self, key: str, value: Any) -> None: ...

    async def delete(self, key: str) -> None: ...

    async def incr(self, key: str) -> int: ...

    async def sadd(self, key: str, member: str) -> None: ...

    async def srem(self, key: str, member: str) -> None: ...

    async def smembers(self, key: str) -> set[str]: ...

    async def lpush(self, key: str, value: Any) -> None: ...

    async def lrange(self, key: str) -> list[Any]: ...


def _dumps(value: Any) -> str:
    return json.dumps(value, ensure_ascii=False)


async def ensure_kv_schema(conn: asyncpg.Connection) -> None:
    await conn.execute(
        """
        CREATE TABLE IF NOT EXISTS kv_entries (
            key text PRIMARY KEY,
            value jsonb NOT NULL,
            updated_at timestamptz NOT NULL DEFAULT now()
        );
        """
    )
    await conn.execute(
        """
        CREATE TABLE IF NOT EXISTS kv_counters (
            key text PRIMARY KEY,
            value bigint NOT NULL
        );
        """
    )
    await conn.execute(
        """
        CREATE TABLE IF NOT EXISTS kv_sets (
            key text NOT NULL,
            member text NOT NULL,
            PRIMARY KEY (key, member)
        );
        """
    )
    await conn.execute(
        """
        CREATE TABLE IF NOT EXISTS kv_lists (
            id bigserial PRIMARY KEY,
            key text NOT NULL,
            value jsonb NOT NULL
        );
        """
    )
    await conn.execute("CREATE INDEX IF NOT EXISTS kv_lists_key_idx ON kv_lists (key, id);")


class PgKVStore:
    def __init__(self, pool: asyncpg.Pool) -> None:
        self.pool = pool

    async def get(self, key: str) -> Any | None:
        async with self.pool.acquire() as conn:
            raw = await conn.fetchval("SELECT value FROM kv_entries WHERE key=$1", key)
        return json.loads(raw) if raw is not None else None

    async def set(self, key: str, value: Any) -> None:
        async with self.pool.acquire() as conn:
            await conn.execute(
                """
                INSERT INTO kv_entries(key, value, updated_at)
                VALUES ($1, $2::jsonb, now())
                ON CONFLICT (key) DO UPDATE SET value=EXCLUDED.value, updated_at=now()
                """,
                key,
                _dumps(value),
            )

    async def delete(self, key: str) -> None:
        async with self.pool.acquire() as conn:
            await conn.execute("DELETE FROM kv_entries WHERE key=$1", key)

    async def incr(self, key: str) -> int:
        async with self.pool.acquire() as conn:
            value = await conn.fetchval(
                """
                INSERT INTO kv_counters(key, value) VALUES ($1, 1)
                ON CONFLICT (key) DO UPDATE SET value = kv_counters.value + 1
                RETURNING value
                """,
                key,
            )
        return int(value)

    async def sadd(self, key: str, member: str) -> None:
        async with self.pool.acquire() as conn:
            await conn.execute(
                "INSERT INTO kv_sets(key, member) VALUES ($1, $2) ON CONFLICT DO NOTHING",
                key,
                str(member),
            )

    async def srem(self, key: str, member: str) -> None:
        async with self.pool.acquire() as conn:
            await conn.execute("DELETE FROM kv_sets WHERE key=$1 AND member=$2", key, str(member))

    async def smembers(self, key: str) -> set[str]:
        async with self.pool.acquire() as conn:
            rows = await conn.fetch("SELECT member FROM kv_sets WHERE key=$1", key)
        return {r["member"] for r in rows}

    async def lpush(self, key: str, value: Any) -> None:
        async with self.pool.acquire() as conn:
            await conn.execute(
                "INSERT INTO kv_lists(key, value) VALUES ($1, $2::jsonb)",
                key,
                _dumps(value),
            )

    async def lrange(self, key: str) -> list[Any]:
        # newest first, like LPUSH + LRANGE 0 -1
        async with self.pool.acquire() as conn:
            rows = await conn.fetch("SELECT value FROM kv_lists WHERE key=$1 ORDER BY id DESC", key)
        return [json.loads(r["value"]) for r in rows]


class MemoryKVStore:
    def __init__(self) -> None:
        self._values: dict[str, str] = {}
        self._counters: dict[str, int] = {}
        self._sets: dict[str, set[str]] = {}
        self._lists: dict[str, list[str]] = {}

    async def get(self, key: str) -> Any | None:
        raw = self._values.get(key)
        return json.loads(raw) if raw is not None else None

    async def set(self, key: str, value: Any) -> None:
        self._values[key] = _dumps(value)

    async def delete(self, key: str) -> None:
        self._values.pop(key, None)

    async def incr(self, key: str) -> int:
        self._counters[key] = self._counters.get(key, 0) + 1
        return self._counters[key]

    async def sadd(self, key: str, member: str) -> None:
        self._sets.setdefault(key, set()).add(str(member))

    async def srem(self, key: str, member: str) -> None:
        self._sets.get(key, set()).discard(str(member))

    async def smembers(self, key: str) -> set[str]:
        return set(self._sets.get(key, set()))

    async def lpush(self, key: str, value: Any) -> None:
        self._lists.setdefault(key, []).insert(0, _dumps(value))

    async def lrange(self, key: str) -> list[Any]:
        return [json.loads(raw) for raw in self._lists.get(key, [])]

    def keys(self, prefix: str = "") -> list[str]:
        return sorted(k for k in self._values if k.startswith(prefix))


__all__ = ["KVStore", "PgKVStore", "MemoryKVStore", "ensure_kv_schema"]
