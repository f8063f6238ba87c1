"""Supabase Realtime implementation of the channel transport."""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from realtime import RealtimeSubscribeStates

from tutor_portal.adapters.supabase_connection import SupabaseConnection
from tutor_portal.services.realtime import (
    ChannelError,
    PayloadCallback,
    RealtimeChannel,
)

if TYPE_CHECKING:
    from realtime import AsyncRealtimeChannel

logger = logging.getLogger(__name__)

_FAILED_STATES = {
    RealtimeSubscribeStates.CHANNEL_ERROR,
    RealtimeSubscribeStates.TIMED_OUT,
    RealtimeSubscribeStates.CLOSED,
}


@dataclass
class SupabaseRealtimeChannel:
    """Wraps one Supabase channel and waits for the join acknowledgement."""

    name: str
    channel: "AsyncRealtimeChannel"
    subscribe_timeout: float = 10.0

    def on_change(
        self, table: str, server_filter: str | None, callback: PayloadCallback
    ) -> None:
        """Listen for every postgres change on ``table``."""
        self.channel.on_postgres_changes(
            "*",
            callback=callback,
            table=table,
            schema="public",
            filter=server_filter,
        )

    async def subscribe(self) -> None:
        """Join the channel and wait until the server confirms it."""
        joined: asyncio.Future[None] = asyncio.get_running_loop().create_future()

        def on_status(
            status: RealtimeSubscribeStates, error: Exception | None
        ) -> None:
            if joined.done():
                if status in _FAILED_STATES:
                    logger.warning("Channel %s reported %s", self.name, status)
                return
            if status == RealtimeSubscribeStates.SUBSCRIBED:
                joined.set_result(None)
            elif status in _FAILED_STATES:
                joined.set_exception(
                    ChannelError(f"Channel {self.name} failed to join: {status}")
                )

        await self.channel.subscribe(on_status)
        try:
            await asyncio.wait_for(joined, timeout=self.subscribe_timeout)
        except TimeoutError as exc:
            raise ChannelError(f"Channel {self.name} timed out joining") from exc


@dataclass
class SupabaseRealtimeTransport:
    """Realtime transport backed by the shared Supabase client."""

    connection: SupabaseConnection
    subscribe_timeout: float = 10.0
    _channels: dict[str, SupabaseRealtimeChannel] = field(
        default_factory=dict, init=False, repr=False
    )

    async def open_channel(self, name: str) -> RealtimeChannel:
        """Create a channel that has not been joined yet."""
        client = await self.connection.client()
        channel = SupabaseRealtimeChannel(
            name=name,
            channel=client.channel(name),
            subscribe_timeout=self.subscribe_timeout,
        )
        self._channels[name] = channel
        return channel

    async def close_channel(self, channel: SupabaseRealtimeChannel) -> None:
        """Leave a channel and drop it from the client."""
        self._channels.pop(channel.name, None)
        client = await self.connection.client()
        await client.remove_channel(channel.channel)

    def list_channels(self) -> list[RealtimeChannel]:
        """Return channels opened through this transport."""
        return list(self._channels.values())
