"""Supabase Auth gateway."""

from dataclasses import dataclass
from uuid import UUID

from tutor_portal.adapters.supabase_connection import SupabaseConnection
from tutor_portal.domain.users import CurrentUser, Role, parse_role
from tutor_portal.services.auth import AuthGateway


@dataclass
class SupabaseAuthGateway(AuthGateway):
    """Reads users and starts OAuth flows through Supabase Auth."""

    connection: SupabaseConnection

    async def get_user(self, access_token: str) -> CurrentUser | None:
        """Return the user behind an access token, with their role claim."""
        client = await self.connection.client()
        response = await client.auth.get_user(access_token)
        if response is None or response.user is None:
            return None
        user = response.user
        role = parse_role((user.user_metadata or {}).get("role"))
        if role is None:
            return None
        return CurrentUser(user_id=UUID(str(user.id)), role=role, email=user.email)

    async def social_sign_in_url(
        self, provider: str, role: Role, redirect_to: str
    ) -> str:
        """Return the OAuth URL for a provider, tagging the requested role."""
        client = await self.connection.client()
        response = await client.auth.sign_in_with_oauth(
            {
                "provider": provider,
                "options": {
                    "redirect_to": redirect_to,
                    "query_params": {"role": role},
                },
            }
        )
        return response.url
