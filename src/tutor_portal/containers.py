"""Dependency container wiring for the application."""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from tutor_portal.adapters.supabase_auth import SupabaseAuthGateway
from tutor_portal.adapters.supabase_connection import SupabaseConnection
from tutor_portal.adapters.supabase_earnings_repository import (
    SupabaseEarningsRepository,
)
from tutor_portal.adapters.supabase_message_repository import (
    SupabaseMessageRepository,
)
from tutor_portal.adapters.supabase_profile_repository import (
    SupabaseProfileRepository,
)
from tutor_portal.adapters.supabase_realtime import SupabaseRealtimeTransport
from tutor_portal.adapters.supabase_resource_repository import (
    SupabaseResourceRepository,
)
from tutor_portal.adapters.supabase_session_repository import (
    SupabaseSessionRepository,
)
from tutor_portal.adapters.supabase_storage import SupabaseStorageGateway
from tutor_portal.config import Settings, parse_social_providers
from tutor_portal.services.auth import AuthService
from tutor_portal.services.dashboard import DashboardFactory
from tutor_portal.services.earnings import EarningsService
from tutor_portal.services.messages import MessageService
from tutor_portal.services.profiles import ProfileService
from tutor_portal.services.realtime import RealtimeTransport
from tutor_portal.services.resources import ResourceService
from tutor_portal.services.sessions import SessionService


@dataclass
class AppContainer:
    """Holds application-wide dependencies."""

    settings: Settings
    auth_service: AuthService
    profile_service: ProfileService
    session_service: SessionService
    resource_service: ResourceService
    message_service: MessageService
    earnings_service: EarningsService
    realtime: RealtimeTransport
    dashboards: DashboardFactory
    close_resources: Callable[[], Awaitable[None]]


def build_container(settings: Settings | None = None) -> AppContainer:
    """Create the default dependency container."""
    resolved_settings = settings or Settings()
    connection = SupabaseConnection(
        url=resolved_settings.supabase_url, key=resolved_settings.supabase_anon_key
    )
    auth_service = AuthService(
        gateway=SupabaseAuthGateway(connection),
        providers=parse_social_providers(resolved_settings.social_providers),
        redirect_url=resolved_settings.oauth_redirect_url,
    )
    profile_service = ProfileService(SupabaseProfileRepository(connection))
    session_service = SessionService(SupabaseSessionRepository(connection))
    resource_service = ResourceService(
        repository=SupabaseResourceRepository(connection),
        storage=SupabaseStorageGateway(
            connection, bucket=resolved_settings.resource_bucket
        ),
        max_upload_bytes=resolved_settings.max_upload_bytes,
    )
    message_service = MessageService(SupabaseMessageRepository(connection))
    earnings_service = EarningsService(SupabaseEarningsRepository(connection))
    realtime = SupabaseRealtimeTransport(
        connection, subscribe_timeout=resolved_settings.realtime_subscribe_timeout
    )
    dashboards = DashboardFactory(
        transport=realtime,
        session_service=session_service,
        resource_service=resource_service,
        message_service=message_service,
        profile_service=profile_service,
        earnings_service=earnings_service,
    )

    return AppContainer(
        settings=resolved_settings,
        auth_service=auth_service,
        profile_service=profile_service,
        session_service=session_service,
        resource_service=resource_service,
        message_service=message_service,
        earnings_service=earnings_service,
        realtime=realtime,
        dashboards=dashboards,
        close_resources=connection.close,
    )
