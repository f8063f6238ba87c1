"""Dashboard controllers that keep live entity collections for one view."""

import asyncio
import logging
from collections.abc import AsyncIterator, Awaitable, Callable
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from functools import partial
from typing import Any
from uuid import UUID, uuid4

from tutor_portal.domain.collections import merge_entity, remove_entity
from tutor_portal.domain.messages import Message
from tutor_portal.domain.resources import Resource
from tutor_portal.domain.sessions import TutoringSession
from tutor_portal.domain.users import Role
from tutor_portal.services.earnings import EarningsService
from tutor_portal.services.messages import MessageService
from tutor_portal.services.profiles import ProfileService
from tutor_portal.services.realtime import (
    MESSAGE_UPDATES,
    RESOURCE_UPDATES,
    SESSION_UPDATES,
    ChannelError,
    RealtimeTransport,
    SubscriptionManager,
)
from tutor_portal.services.resources import ResourceService
from tutor_portal.services.sessions import SessionService

logger = logging.getLogger(__name__)

_CHANGE = "change"
_REMOVE = "remove"
_PROFILE = "profile"

EARNINGS = "earnings"


class DashboardLoadError(RuntimeError):
    """Raised when the initial dashboard data cannot be fetched."""


@dataclass(frozen=True)
class Feed:
    """One dashboard collection: its kind and bulk fetch.

    Live feeds also follow the channel of the same kind.
    """

    kind: str
    fetch: Callable[[UUID], Awaitable[list[Any]]]
    live: bool = True


@dataclass(frozen=True)
class DashboardSnapshot:
    """Immutable view of a controller's collections."""

    role: Role
    owner_id: UUID | None
    collections: dict[str, tuple[Any, ...]]
    loading: bool
    error: str | None = None
    profile: dict[str, object] | None = None

    @property
    def sessions(self) -> tuple[TutoringSession, ...]:
        return self.collections.get(SESSION_UPDATES, ())

    @property
    def resources(self) -> tuple[Resource, ...]:
        return self.collections.get(RESOURCE_UPDATES, ())

    @property
    def messages(self) -> tuple[Message, ...]:
        return self.collections.get(MESSAGE_UPDATES, ())

    @property
    def earnings(self) -> tuple[dict[str, object], ...]:
        return self.collections.get(EARNINGS, ())


@dataclass
class DashboardController:
    """Owns the synchronized collections behind one dashboard view.

    ``initialize`` starts every bulk fetch, subscribes each live feed's
    channel and then waits for the fetches. Updates that arrive before a
    feed's rows are installed are buffered and replayed in arrival order.
    ``teardown`` closes every channel exactly once, and a controller torn
    down mid-initialize discards the fetched rows.
    """

    role: Role
    subscriptions: SubscriptionManager
    feeds: tuple[Feed, ...]
    listener: Callable[[DashboardSnapshot], None] | None = None
    profile_fetch: Callable[[UUID], Awaitable[dict[str, object]]] | None = None
    owner_id: UUID | None = field(default=None, init=False)
    profile: dict[str, object] | None = field(default=None, init=False)
    error: str | None = field(default=None, init=False)
    _collections: dict[str, list[Any]] = field(
        default_factory=dict, init=False, repr=False
    )
    _pending: dict[str, list[tuple[str, Any]]] = field(
        default_factory=dict, init=False, repr=False
    )
    _torn_down: bool = field(default=False, init=False, repr=False)

    @property
    def torn_down(self) -> bool:
        return self._torn_down

    async def initialize(self, owner_id: UUID) -> None:
        """Load the owner's collections and start live updates."""
        fetches = self._start_fetches(owner_id)
        try:
            for feed in self.feeds:
                if self._torn_down:
                    return
                if not feed.live:
                    continue
                await self.subscriptions.subscribe(
                    feed.kind,
                    owner_id,
                    self.role,
                    partial(self.on_update, feed.kind),
                    partial(self.on_remove, feed.kind),
                )
            if not await self._install_fetched(fetches):
                return
        except ChannelError:
            raise
        except Exception as exc:
            if self._torn_down:
                logger.info(
                    "Ignoring fetch failure for torn down %s dashboard", self.role
                )
                return
            raise self._load_failed() from exc
        finally:
            _settle(fetches)
        self._notify()

    async def load(self, owner_id: UUID) -> DashboardSnapshot:
        """Fetch the owner's collections once, without opening any channel."""
        fetches = self._start_fetches(owner_id)
        try:
            await self._install_fetched(fetches)
        except Exception as exc:
            raise self._load_failed() from exc
        finally:
            _settle(fetches)
        return self.snapshot()

    def on_update(self, kind: str, entity: Any) -> None:
        """Fold an inserted or updated entity into its collection."""
        if self._torn_down:
            return
        if kind not in self._collections:
            self._pending.setdefault(kind, []).append((_CHANGE, entity))
            return
        self._collections[kind] = merge_entity(self._collections[kind], entity)
        self._notify()

    def on_remove(self, kind: str, entity_id: UUID) -> None:
        """Drop a deleted entity from its collection."""
        if self._torn_down:
            return
        if kind not in self._collections:
            self._pending.setdefault(kind, []).append((_REMOVE, entity_id))
            return
        remaining = remove_entity(self._collections[kind], entity_id)
        if len(remaining) == len(self._collections[kind]):
            return
        self._collections[kind] = remaining
        self._notify()

    async def teardown(self) -> None:
        """Close every channel this controller may have opened."""
        if self._torn_down:
            return
        self._torn_down = True
        self._pending.clear()
        if self.owner_id is None:
            return
        failures: list[ChannelError] = []
        for feed in self.feeds:
            if not feed.live:
                continue
            name = self.subscriptions.name_for(feed.kind, self.owner_id, self.role)
            try:
                await self.subscriptions.unsubscribe(name)
            except ChannelError as exc:
                logger.warning("Failed to close %s: %s", name, exc)
                failures.append(exc)
        if failures:
            raise failures[0]

    @asynccontextmanager
    async def attached(self, owner_id: UUID) -> AsyncIterator["DashboardController"]:
        """Initialize for ``owner_id`` and always tear down on exit."""
        try:
            await self.initialize(owner_id)
            yield self
        finally:
            await self.teardown()

    def snapshot(self) -> DashboardSnapshot:
        """Return an immutable copy of the current collections."""
        loading = (
            self.owner_id is not None
            and self.error is None
            and len(self._collections) < len(self.feeds)
        )
        return DashboardSnapshot(
            role=self.role,
            owner_id=self.owner_id,
            collections={
                kind: tuple(items) for kind, items in self._collections.items()
            },
            loading=loading,
            error=self.error,
            profile=dict(self.profile) if self.profile is not None else None,
        )

    def _start_fetches(self, owner_id: UUID) -> dict[str, asyncio.Future[Any]]:
        if self._torn_down:
            raise RuntimeError("Dashboard controller has been torn down")
        if self.owner_id is not None:
            raise RuntimeError("Dashboard controller is already initialized")
        self.owner_id = owner_id
        fetches = {
            feed.kind: asyncio.ensure_future(feed.fetch(owner_id))
            for feed in self.feeds
        }
        if self.profile_fetch is not None:
            fetches[_PROFILE] = asyncio.ensure_future(self.profile_fetch(owner_id))
        return fetches

    async def _install_fetched(self, fetches: dict[str, asyncio.Future[Any]]) -> bool:
        """Install every fetch result; False if torn down while waiting."""
        if _PROFILE in fetches:
            profile = await fetches[_PROFILE]
            if self._torn_down:
                return False
            self.profile = profile
        for feed in self.feeds:
            rows = await fetches[feed.kind]
            if self._torn_down:
                return False
            self._install(feed, rows)
        return True

    def _load_failed(self) -> DashboardLoadError:
        self.error = (
            f"Failed to load {self.role} dashboard data. Please try again later."
        )
        logger.exception("Error loading %s dashboard for %s", self.role, self.owner_id)
        self._notify()
        return DashboardLoadError(self.error)

    def _install(self, feed: Feed, rows: list[Any]) -> None:
        if not feed.live:
            self._collections[feed.kind] = list(rows)
            return
        collection: list[Any] = []
        for entity in rows:
            collection = merge_entity(collection, entity)
        for action, value in self._pending.pop(feed.kind, []):
            if action == _CHANGE:
                collection = merge_entity(collection, value)
            else:
                collection = remove_entity(collection, value)
        self._collections[feed.kind] = collection

    def _notify(self) -> None:
        if self.listener is not None:
            self.listener(self.snapshot())


def _settle(fetches: dict[str, asyncio.Future[Any]]) -> None:
    # Cancel what is still running and mark finished failures as retrieved.
    for task in fetches.values():
        if not task.done():
            task.cancel()
        elif not task.cancelled():
            task.exception()


@dataclass
class DashboardFactory:
    """Builds tutor and student dashboard controllers.

    Every controller gets its own subscription manager, so two clients of
    the same owner never share a channel.
    """

    transport: RealtimeTransport
    session_service: SessionService
    resource_service: ResourceService
    message_service: MessageService
    profile_service: ProfileService
    earnings_service: EarningsService

    def create(
        self,
        role: Role,
        listener: Callable[[DashboardSnapshot], None] | None = None,
    ) -> DashboardController:
        """Return a controller with the feeds and profile for ``role``."""
        feeds = [
            Feed(
                SESSION_UPDATES,
                partial(self.session_service.list_sessions, role=role),
            ),
            Feed(
                RESOURCE_UPDATES,
                partial(self.resource_service.list_resources, role=role),
            ),
            Feed(MESSAGE_UPDATES, self.message_service.list_for_user),
        ]
        if role == "tutor":
            feeds.append(
                Feed(EARNINGS, self.earnings_service.list_earnings, live=False)
            )
        return DashboardController(
            role=role,
            subscriptions=SubscriptionManager(self.transport, scope=uuid4().hex),
            feeds=tuple(feeds),
            listener=listener,
            profile_fetch=partial(self.profile_service.get_owner_profile, role=role),
        )

    def tutor(
        self, listener: Callable[[DashboardSnapshot], None] | None = None
    ) -> DashboardController:
        return self.create("tutor", listener)

    def student(
        self, listener: Callable[[DashboardSnapshot], None] | None = None
    ) -> DashboardController:
        return self.create("student", listener)
