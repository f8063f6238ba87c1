"""Live-update channels that mirror table changes into typed callbacks."""

import asyncio
import logging
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from typing import Any, Protocol
from uuid import UUID

from tutor_portal.domain.messages import Message, message_from_row
from tutor_portal.domain.resources import Resource, resource_from_row
from tutor_portal.domain.sessions import TutoringSession, session_from_row
from tutor_portal.domain.users import Role

logger = logging.getLogger(__name__)

SESSION_UPDATES = "session-updates"
RESOURCE_UPDATES = "resource-updates"
MESSAGE_UPDATES = "message-updates"

CLOSED = "closed"
SUBSCRIBING = "subscribing"
OPEN = "open"

PayloadCallback = Callable[[dict[str, Any]], None]
EntityCallback = Callable[[Any], None]
RemoveCallback = Callable[[UUID], None]


class ChannelError(RuntimeError):
    """Raised when the transport cannot open or close a channel."""


class RealtimeChannel(Protocol):
    """One named channel on the realtime transport."""

    name: str

    def on_change(
        self, table: str, server_filter: str | None, callback: PayloadCallback
    ) -> None:
        """Register a callback for row changes on a table."""

    async def subscribe(self) -> None:
        """Join the channel, raising if the server rejects it."""


class RealtimeTransport(Protocol):
    """Push-notification transport provided by the platform."""

    async def open_channel(self, name: str) -> RealtimeChannel:
        """Create a named channel that is not yet joined."""

    async def close_channel(self, channel: RealtimeChannel) -> None:
        """Leave and release a channel."""

    def list_channels(self) -> list[RealtimeChannel]:
        """Return the channels the transport currently holds."""


@dataclass(frozen=True)
class ChannelSpec:
    """How one kind of entity is filtered and decoded."""

    kind: str
    table: str
    decode: Callable[[Mapping[str, Any]], Any]
    server_filter: Callable[[UUID, Role], str | None]
    accepts: Callable[[Any, UUID, Role], bool]


@dataclass(frozen=True)
class SubscriptionHandle:
    """Opaque reference to a channel, used to close it."""

    name: str
    kind: str
    owner_id: UUID
    role: Role


@dataclass
class _ChannelEntry:
    handle: SubscriptionHandle
    state: str = SUBSCRIBING
    channel: RealtimeChannel | None = None


def channel_name(
    kind: str, owner_id: UUID, role: Role, scope: str | None = None
) -> str:
    """Return the channel name for a (kind, owner, role) tuple.

    A scope keeps channels of separate clients for the same owner apart.
    """
    name = f"{kind}:{role}:{owner_id}"
    return f"{name}:{scope}" if scope else name


def _session_filter(owner_id: UUID, role: Role) -> str:
    column = "tutor_id" if role == "tutor" else "student_id"
    return f"{column}=eq.{owner_id}"


def _session_accepts(session: TutoringSession, owner_id: UUID, role: Role) -> bool:
    if role == "tutor":
        return session.tutor_id == owner_id
    return session.student_id == owner_id


def _resource_filter(owner_id: UUID, role: Role) -> str | None:
    # Realtime filters take a single condition, so student visibility
    # (public OR granted) is checked client-side.
    if role == "tutor":
        return f"tutor_id=eq.{owner_id}"
    return None


def _resource_accepts(resource: Resource, owner_id: UUID, role: Role) -> bool:
    if role == "tutor":
        return resource.tutor_id == owner_id
    return resource.is_visible_to(owner_id)


def _message_accepts(message: Message, owner_id: UUID, role: Role) -> bool:
    return message.involves(owner_id)


CHANNEL_SPECS: dict[str, ChannelSpec] = {
    spec.kind: spec
    for spec in (
        ChannelSpec(
            kind=SESSION_UPDATES,
            table="sessions",
            decode=session_from_row,
            server_filter=_session_filter,
            accepts=_session_accepts,
        ),
        ChannelSpec(
            kind=RESOURCE_UPDATES,
            table="resources",
            decode=resource_from_row,
            server_filter=_resource_filter,
            accepts=_resource_accepts,
        ),
        ChannelSpec(
            kind=MESSAGE_UPDATES,
            table="messages",
            decode=message_from_row,
            server_filter=lambda _owner_id, _role: None,
            accepts=_message_accepts,
        ),
    )
}


@dataclass
class SubscriptionManager:
    """Opens, reuses and closes live-update channels.

    Each channel moves through ``closed -> subscribing -> open -> closed``.
    Subscribing to a name that is already subscribing or open returns the
    existing handle instead of opening a second channel. Events are handed
    to the callback in the order the transport delivers them.
    """

    transport: RealtimeTransport
    specs: Mapping[str, ChannelSpec] = field(
        default_factory=lambda: dict(CHANNEL_SPECS)
    )
    scope: str | None = None
    _entries: dict[str, _ChannelEntry] = field(
        default_factory=dict, init=False, repr=False
    )

    def state(self, name: str) -> str:
        """Return the lifecycle state of a channel name."""
        entry = self._entries.get(name)
        return entry.state if entry else CLOSED

    def name_for(self, kind: str, owner_id: UUID, role: Role) -> str:
        """Return the channel name this manager uses for a key."""
        return channel_name(kind, owner_id, role, self.scope)

    def open_channel_names(self) -> list[str]:
        """Return the names of channels that are fully open."""
        return [name for name, entry in self._entries.items() if entry.state == OPEN]

    async def subscribe(  # noqa: PLR0913
        self,
        kind: str,
        owner_id: UUID,
        role: Role,
        on_change: EntityCallback,
        on_remove: RemoveCallback | None = None,
    ) -> SubscriptionHandle:
        """Open the channel for ``kind`` scoped to ``owner_id`` and ``role``."""
        spec = self.specs.get(kind)
        if spec is None:
            raise ValueError(f"Unknown channel kind: {kind}")
        name = self.name_for(kind, owner_id, role)
        existing = self._entries.get(name)
        if existing is not None:
            return existing.handle

        entry = _ChannelEntry(
            handle=SubscriptionHandle(
                name=name, kind=kind, owner_id=owner_id, role=role
            )
        )
        self._entries[name] = entry
        try:
            channel = await self._open(entry, spec, on_change, on_remove)
        except asyncio.CancelledError:
            self._forget(entry)
            raise
        except Exception as exc:
            self._forget(entry)
            logger.warning("Failed to open channel %s", name)
            raise ChannelError(f"Could not open live updates for {kind}") from exc

        if entry.state == CLOSED:
            # Unsubscribed while the join was in flight.
            await self._close(channel)
            logger.info("Discarded channel %s opened after unsubscribe", name)
            return entry.handle
        entry.state = OPEN
        logger.info("Subscribed to %s", name)
        return entry.handle

    async def unsubscribe(self, name: str) -> None:
        """Close a channel by name; unknown or closed names are ignored."""
        entry = self._entries.pop(name, None)
        if entry is None:
            for channel in self.transport.list_channels():
                if channel.name == name:
                    await self._close(channel)
            return
        previous = entry.state
        entry.state = CLOSED
        if previous == SUBSCRIBING:
            logger.info("Cancelled pending subscription to %s", name)
            return
        if entry.channel is not None:
            await self._close(entry.channel)
        logger.info("Unsubscribed from %s", name)

    async def close_all(self) -> None:
        """Close every channel this manager opened."""
        for name in list(self._entries):
            await self.unsubscribe(name)

    async def _open(
        self,
        entry: _ChannelEntry,
        spec: ChannelSpec,
        on_change: EntityCallback,
        on_remove: RemoveCallback | None,
    ) -> RealtimeChannel:
        handle = entry.handle
        channel = await self.transport.open_channel(handle.name)
        entry.channel = channel
        channel.on_change(
            spec.table,
            spec.server_filter(handle.owner_id, handle.role),
            _dispatcher(entry, spec, on_change, on_remove),
        )
        try:
            await channel.subscribe()
        except Exception:
            await self.transport.close_channel(channel)
            raise
        return channel

    async def _close(self, channel: RealtimeChannel) -> None:
        try:
            await self.transport.close_channel(channel)
        except Exception as exc:
            raise ChannelError(f"Could not close channel {channel.name}") from exc

    def _forget(self, entry: _ChannelEntry) -> None:
        entry.state = CLOSED
        if self._entries.get(entry.handle.name) is entry:
            del self._entries[entry.handle.name]


def _dispatcher(
    entry: _ChannelEntry,
    spec: ChannelSpec,
    on_change: EntityCallback,
    on_remove: RemoveCallback | None,
) -> PayloadCallback:
    handle = entry.handle

    def dispatch(payload: dict[str, Any]) -> None:
        if entry.state == CLOSED:
            return
        event_type, record, old_record = parse_change_payload(payload)
        if event_type not in {"INSERT", "UPDATE", "DELETE"}:
            return
        try:
            if event_type == "DELETE":
                removed_id = UUID(str(old_record["id"]))
            else:
                entity = spec.decode(record)
        except (KeyError, TypeError, ValueError):
            logger.exception(
                "Dropping malformed %s payload on %s", spec.kind, handle.name
            )
            return
        if event_type == "DELETE":
            if on_remove is not None:
                on_remove(removed_id)
        elif spec.accepts(entity, handle.owner_id, handle.role):
            on_change(entity)
        elif on_remove is not None:
            # The row left this owner's view, e.g. access was revoked.
            on_remove(entity.id)

    return dispatch


def parse_change_payload(
    payload: Mapping[str, Any],
) -> tuple[str, Mapping[str, Any], Mapping[str, Any]]:
    """Split a postgres change payload into (event type, new row, old row)."""
    data = payload.get("data", payload)
    if not isinstance(data, Mapping):
        return "", {}, {}
    event_type = str(data.get("type") or data.get("eventType") or "").upper()
    record = data.get("record") or data.get("new") or {}
    old_record = data.get("old_record") or data.get("old") or {}
    return (
        event_type,
        record if isinstance(record, Mapping) else {},
        old_record if isinstance(old_record, Mapping) else {},
    )
