"""Authentication lookups against the hosted auth platform."""

import logging
from dataclasses import dataclass
from typing import Protocol

from tutor_portal.domain.users import CurrentUser, Role

logger = logging.getLogger(__name__)


class AuthenticationError(Exception):
    """Raised when a request has no valid session."""


class SocialLoginError(Exception):
    """Raised when a social sign-in cannot be started."""


class AuthGateway(Protocol):
    """Interface for the auth platform."""

    async def get_user(self, access_token: str) -> CurrentUser | None:
        """Return the user for an access token, or None if it has no role."""

    async def social_sign_in_url(
        self, provider: str, role: Role, redirect_to: str
    ) -> str:
        """Return the provider URL that starts an OAuth sign-in."""


@dataclass
class AuthService:
    """Resolves the current user and starts social sign-ins."""

    gateway: AuthGateway
    providers: frozenset[str]
    redirect_url: str

    async def authenticate(self, access_token: str | None) -> CurrentUser:
        """Return the signed-in user or raise AuthenticationError."""
        if not access_token:
            raise AuthenticationError("Missing access token")
        try:
            user = await self.gateway.get_user(access_token)
        except Exception as exc:
            logger.warning("Access token lookup failed: %s", exc)
            raise AuthenticationError("Invalid or expired session") from exc
        if user is None:
            raise AuthenticationError("Session has no tutor or student role")
        return user

    async def social_login_url(self, provider: str, role: Role) -> str:
        """Return the URL that starts a social sign-in for a role."""
        if provider not in self.providers:
            raise SocialLoginError(f"Sign-in with {provider} is not available")
        try:
            url = await self.gateway.social_sign_in_url(
                provider, role, self.redirect_url
            )
        except Exception as exc:
            logger.exception("Social login with %s failed", provider)
            raise SocialLoginError(
                f"Could not start sign-in with {provider}. Please try again."
            ) from exc
        if not url:
            raise SocialLoginError(
                f"Could not start sign-in with {provider}. Please try again."
            )
        return url
