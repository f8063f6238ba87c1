"""Process-wide handle to the async Supabase client."""

import asyncio
from dataclasses import dataclass, field

from supabase import AsyncClient, acreate_client


@dataclass
class SupabaseConnection:
    """Creates the Supabase client once and hands out the same instance."""

    url: str
    key: str
    _client: AsyncClient | None = field(default=None, init=False, repr=False)
    _lock: asyncio.Lock = field(default_factory=asyncio.Lock, init=False, repr=False)

    async def client(self) -> AsyncClient:
        """Return the shared client, creating it on first use."""
        if self._client is not None:
            return self._client
        async with self._lock:
            if self._client is None:
                self._client = await acreate_client(self.url, self.key)
        return self._client

    async def close(self) -> None:
        """Drop every realtime channel held by the client."""
        if self._client is None:
            return
        await self._client.remove_all_channels()
