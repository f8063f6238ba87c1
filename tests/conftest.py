"""Shared test fixtures."""

import asyncio
from dataclasses import dataclass, field, replace
from datetime import UTC, datetime, timedelta
from uuid import UUID, uuid4

import pytest

from tutor_portal.config import Settings
from tutor_portal.containers import AppContainer
from tutor_portal.domain.messages import Message
from tutor_portal.domain.resources import Resource
from tutor_portal.domain.sessions import TutoringSession
from tutor_portal.domain.users import CurrentUser, Role
from tutor_portal.services.auth import AuthGateway, AuthService
from tutor_portal.services.dashboard import DashboardFactory
from tutor_portal.services.earnings import EarningsRepository, EarningsService
from tutor_portal.services.messages import MessageRepository, MessageService
from tutor_portal.services.profiles import ProfileRepository, ProfileService
from tutor_portal.services.realtime import (
    ChannelError,
    PayloadCallback,
    RealtimeChannel,
    RealtimeTransport,
)
from tutor_portal.services.resources import (
    ResourceRepository,
    ResourceService,
    StorageGateway,
)
from tutor_portal.services.sessions import SessionRepository, SessionService

BASE_TIME = datetime(2024, 9, 2, 15, 0, tzinfo=UTC)


def make_session(
    tutor_id: UUID,
    student_id: UUID,
    *,
    session_id: UUID | None = None,
    subject: str = "Algebra",
    status: str = "scheduled",
    hours_from_base: int = 0,
) -> TutoringSession:
    return TutoringSession(
        id=session_id or uuid4(),
        tutor_id=tutor_id,
        student_id=student_id,
        subject=subject,
        start_time=BASE_TIME + timedelta(hours=hours_from_base),
        end_time=BASE_TIME + timedelta(hours=hours_from_base + 1),
        status=status,
    )


def make_resource(
    tutor_id: UUID,
    *,
    resource_id: UUID | None = None,
    title: str = "Worksheet",
    is_public: bool = False,
    student_ids: tuple[UUID, ...] = (),
) -> Resource:
    return Resource(
        id=resource_id or uuid4(),
        tutor_id=tutor_id,
        title=title,
        subject="Maths",
        file_type="pdf",
        file_url=f"https://files.example/{title}.pdf",
        is_public=is_public,
        student_ids=student_ids,
    )


def session_row(session: TutoringSession) -> dict[str, object]:
    return {
        "id": str(session.id),
        "tutor_id": str(session.tutor_id),
        "student_id": str(session.student_id),
        "subject": session.subject,
        "start_time": session.start_time.isoformat(),
        "end_time": session.end_time.isoformat() if session.end_time else None,
        "status": session.status,
        "notes": session.notes,
    }


def resource_row(resource: Resource) -> dict[str, object]:
    return {
        "id": str(resource.id),
        "tutor_id": str(resource.tutor_id),
        "title": resource.title,
        "subject": resource.subject,
        "file_type": resource.file_type,
        "file_url": resource.file_url,
        "is_public": resource.is_public,
        "student_ids": [str(value) for value in resource.student_ids],
    }


def change_payload(
    event_type: str,
    record: dict[str, object] | None = None,
    old_record: dict[str, object] | None = None,
) -> dict[str, object]:
    """Build a postgres change payload shaped like the realtime client's."""
    return {
        "data": {
            "schema": "public",
            "table": "sessions",
            "type": event_type,
            "record": record or {},
            "old_record": old_record or {},
        },
        "ids": [1],
    }


@dataclass
class FakeRealtimeChannel(RealtimeChannel):
    """Fake channel that records listeners and can be held mid-join."""

    name: str
    fail_subscribe: bool = False
    gate: asyncio.Event | None = None
    listeners: list[tuple[str, str | None, PayloadCallback]] = field(
        default_factory=list
    )
    subscribed: bool = False

    def on_change(
        self, table: str, server_filter: str | None, callback: PayloadCallback
    ) -> None:
        self.listeners.append((table, server_filter, callback))

    async def subscribe(self) -> None:
        if self.gate is not None:
            await self.gate.wait()
        if self.fail_subscribe:
            raise ChannelError(f"{self.name} was rejected")
        self.subscribed = True

    def deliver(self, payload: dict[str, object]) -> None:
        for _table, _filter, callback in self.listeners:
            callback(payload)


@dataclass
class FakeRealtimeTransport(RealtimeTransport):
    """In-memory realtime transport with call counters."""

    channels: dict[str, FakeRealtimeChannel] = field(default_factory=dict)
    opened: list[str] = field(default_factory=list)
    closed: list[str] = field(default_factory=list)
    failing_kinds: set[str] = field(default_factory=set)
    gate: asyncio.Event | None = None
    fail_close: bool = False

    async def open_channel(self, name: str) -> FakeRealtimeChannel:
        channel = FakeRealtimeChannel(
            name=name,
            fail_subscribe=name.split(":")[0] in self.failing_kinds,
            gate=self.gate,
        )
        self.channels[name] = channel
        self.opened.append(name)
        return channel

    async def close_channel(self, channel: FakeRealtimeChannel) -> None:
        if self.fail_close:
            raise RuntimeError("socket already closed")
        self.closed.append(channel.name)
        self.channels.pop(channel.name, None)

    def list_channels(self) -> list[FakeRealtimeChannel]:
        return list(self.channels.values())

    def emit(self, name: str, payload: dict[str, object]) -> None:
        self.channels[name].deliver(payload)


@dataclass
class InMemorySessionRepository(SessionRepository):
    """In-memory session repository for tests."""

    sessions: dict[UUID, TutoringSession] = field(default_factory=dict)
    fail_list: bool = False

    def add(self, session: TutoringSession) -> TutoringSession:
        self.sessions[session.id] = session
        return session

    async def list_for_owner(
        self, owner_id: UUID, role: Role
    ) -> list[TutoringSession]:
        if self.fail_list:
            raise RuntimeError("database unavailable")
        owned = [
            session
            for session in self.sessions.values()
            if (session.tutor_id if role == "tutor" else session.student_id)
            == owner_id
        ]
        return sorted(owned, key=lambda session: session.start_time)

    async def get_session(self, session_id: UUID) -> TutoringSession | None:
        return self.sessions.get(session_id)

    async def create_session(self, payload: dict[str, object]) -> TutoringSession:
        end_time = payload.get("end_time")
        session = TutoringSession(
            id=uuid4(),
            tutor_id=UUID(str(payload["tutor_id"])),
            student_id=UUID(str(payload["student_id"])),
            subject=str(payload["subject"]),
            start_time=datetime.fromisoformat(str(payload["start_time"])),
            end_time=datetime.fromisoformat(str(end_time)) if end_time else None,
            status=str(payload["status"]),
            notes=str(payload.get("notes") or ""),
        )
        return self.add(session)

    async def update_status(
        self, session_id: UUID, status: str, current_status: str
    ) -> TutoringSession | None:
        session = self.sessions.get(session_id)
        if session is None or session.status != current_status:
            return None
        return self.add(replace(session, status=status))


@dataclass
class InMemoryResourceRepository(ResourceRepository):
    """In-memory resource repository for tests."""

    resources: dict[UUID, Resource] = field(default_factory=dict)
    payloads: list[dict[str, object]] = field(default_factory=list)
    fail_create: bool = False

    def add(self, resource: Resource) -> Resource:
        self.resources[resource.id] = resource
        return resource

    async def list_for_tutor(self, tutor_id: UUID) -> list[Resource]:
        return [
            resource
            for resource in self.resources.values()
            if resource.tutor_id == tutor_id
        ]

    async def list_for_student(self, student_id: UUID) -> list[Resource]:
        return [
            resource
            for resource in self.resources.values()
            if resource.is_visible_to(student_id)
        ]

    async def get_resource(self, resource_id: UUID) -> Resource | None:
        return self.resources.get(resource_id)

    async def create_resource(self, payload: dict[str, object]) -> Resource:
        self.payloads.append(payload)
        if self.fail_create:
            raise RuntimeError("Failed to create resource")
        student_ids = payload.get("student_ids") or []
        return self.add(
            Resource(
                id=uuid4(),
                tutor_id=UUID(str(payload["tutor_id"])),
                title=str(payload["title"]),
                subject=str(payload["subject"]),
                file_type=str(payload["file_type"]),
                file_url=str(payload["file_url"]),
                file_path=str(payload["file_path"]),
                description=str(payload.get("description") or ""),
                is_public=bool(payload.get("is_public")),
                student_ids=tuple(UUID(str(value)) for value in student_ids),
            )
        )

    async def delete_resource(self, resource_id: UUID) -> None:
        self.resources.pop(resource_id, None)


@dataclass
class FakeStorageGateway(StorageGateway):
    """Fake object storage that keeps uploads in memory."""

    objects: dict[str, tuple[bytes, str]] = field(default_factory=dict)
    removed: list[str] = field(default_factory=list)

    async def upload(self, path: str, data: bytes, content_type: str) -> str:
        self.objects[path] = (data, content_type)
        return f"https://storage.example/{path}"

    async def remove(self, path: str) -> None:
        self.removed.append(path)
        self.objects.pop(path, None)


@dataclass
class InMemoryMessageRepository(MessageRepository):
    """In-memory message repository for tests."""

    messages: list[Message] = field(default_factory=list)

    async def list_for_user(self, user_id: UUID) -> list[Message]:
        return [message for message in self.messages if message.involves(user_id)]

    async def list_conversation(
        self, user_id: UUID, other_id: UUID
    ) -> list[Message]:
        return [
            message
            for message in self.messages
            if {message.sender_id, message.receiver_id} == {user_id, other_id}
        ]

    async def create_message(
        self, sender_id: UUID, receiver_id: UUID, content: str
    ) -> Message:
        message = Message(
            id=uuid4(),
            sender_id=sender_id,
            receiver_id=receiver_id,
            content=content,
            created_at=BASE_TIME + timedelta(minutes=len(self.messages)),
        )
        self.messages.append(message)
        return message


@dataclass
class InMemoryEarningsRepository(EarningsRepository):
    """In-memory earnings rows for tests."""

    rows: list[dict[str, object]] = field(default_factory=list)

    def add(self, tutor_id: UUID, amount: float, created_at: str) -> None:
        self.rows.append(
            {
                "id": str(uuid4()),
                "tutor_id": str(tutor_id),
                "amount": amount,
                "created_at": created_at,
            }
        )

    async def list_for_tutor(self, tutor_id: UUID) -> list[dict[str, object]]:
        owned = [row for row in self.rows if row["tutor_id"] == str(tutor_id)]
        return sorted(owned, key=lambda row: str(row["created_at"]), reverse=True)


@dataclass
class InMemoryProfileRepository(ProfileRepository):
    """In-memory profile repository keyed by role and user id."""

    profiles: dict[tuple[str, UUID], dict[str, object]] = field(
        default_factory=dict
    )

    def add(self, role: Role, user_id: UUID, **values: object) -> UUID:
        profile_id = uuid4()
        self.profiles[(role, user_id)] = {
            "id": str(profile_id),
            "user_id": str(user_id),
            **values,
        }
        return profile_id

    async def get_profile(self, role: Role, user_id: UUID) -> dict[str, object] | None:
        return self.profiles.get((role, user_id))

    async def get_profile_by_id(
        self, role: Role, profile_id: UUID
    ) -> dict[str, object] | None:
        for (profile_role, _user_id), profile in self.profiles.items():
            if profile_role == role and profile["id"] == str(profile_id):
                return profile
        return None

    async def update_profile(
        self, role: Role, user_id: UUID, updates: dict[str, object]
    ) -> dict[str, object]:
        profile = {**self.profiles[(role, user_id)], **updates}
        self.profiles[(role, user_id)] = profile
        return profile


@dataclass
class FakeAuthGateway(AuthGateway):
    """Fake auth gateway with a static token table."""

    users: dict[str, CurrentUser] = field(default_factory=dict)
    oauth_calls: list[tuple[str, str, str]] = field(default_factory=list)
    oauth_url: str = "https://auth.example/authorize"
    oauth_error: Exception | None = None

    def add_user(self, role: Role, token: str | None = None) -> CurrentUser:
        user = CurrentUser(user_id=uuid4(), role=role, email=f"{role}@example.com")
        self.users[token or f"{role}-token"] = user
        return user

    async def get_user(self, access_token: str) -> CurrentUser | None:
        if access_token == "expired":
            raise RuntimeError("JWT expired")
        return self.users.get(access_token)

    async def social_sign_in_url(
        self, provider: str, role: Role, redirect_to: str
    ) -> str:
        self.oauth_calls.append((provider, role, redirect_to))
        if self.oauth_error is not None:
            raise self.oauth_error
        if not self.oauth_url:
            return ""
        return f"{self.oauth_url}?provider={provider}&role={role}"


@pytest.fixture
def settings() -> Settings:
    return Settings(
        supabase_url="https://example.supabase.co",
        supabase_anon_key="anon-key",
        social_providers="google,github",
        sse_keepalive_seconds=0.05,
    )


@pytest.fixture
def transport() -> FakeRealtimeTransport:
    return FakeRealtimeTransport()


@pytest.fixture
def session_repository() -> InMemorySessionRepository:
    return InMemorySessionRepository()


@pytest.fixture
def resource_repository() -> InMemoryResourceRepository:
    return InMemoryResourceRepository()


@pytest.fixture
def storage() -> FakeStorageGateway:
    return FakeStorageGateway()


@pytest.fixture
def message_repository() -> InMemoryMessageRepository:
    return InMemoryMessageRepository()


@pytest.fixture
def earnings_repository() -> InMemoryEarningsRepository:
    return InMemoryEarningsRepository()


@pytest.fixture
def profile_repository() -> InMemoryProfileRepository:
    return InMemoryProfileRepository()


@pytest.fixture
def auth_gateway() -> FakeAuthGateway:
    return FakeAuthGateway()


@pytest.fixture
def container(  # noqa: PLR0913
    settings: Settings,
    transport: FakeRealtimeTransport,
    session_repository: InMemorySessionRepository,
    resource_repository: InMemoryResourceRepository,
    storage: FakeStorageGateway,
    message_repository: InMemoryMessageRepository,
    earnings_repository: InMemoryEarningsRepository,
    profile_repository: InMemoryProfileRepository,
    auth_gateway: FakeAuthGateway,
) -> AppContainer:
    session_service = SessionService(session_repository)
    resource_service = ResourceService(
        repository=resource_repository,
        storage=storage,
        max_upload_bytes=settings.max_upload_bytes,
    )
    message_service = MessageService(message_repository)
    profile_service = ProfileService(profile_repository)
    earnings_service = EarningsService(earnings_repository)

    async def close_resources() -> None:
        for channel in transport.list_channels():
            await transport.close_channel(channel)

    return AppContainer(
        settings=settings,
        auth_service=AuthService(
            gateway=auth_gateway,
            providers=frozenset({"google", "github"}),
            redirect_url="http://localhost:3000/auth/callback",
        ),
        profile_service=profile_service,
        session_service=session_service,
        resource_service=resource_service,
        message_service=message_service,
        earnings_service=earnings_service,
        realtime=transport,
        dashboards=DashboardFactory(
            transport=transport,
            session_service=session_service,
            resource_service=resource_service,
            message_service=message_service,
            profile_service=profile_service,
            earnings_service=earnings_service,
        ),
        close_resources=close_resources,
    )
