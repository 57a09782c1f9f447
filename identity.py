"""
Identity gate.

Password hashing, sessions and token issuance belong to the identity
provider. This module only needs two things from it: turn a bearer token into
a caller identity, and create a new credential at signup.
"""

import logging
import secrets
import threading
import uuid
from dataclasses import dataclass
from typing import Dict, Optional

import httpx

from config import Settings
from errors import IdentityProviderError, Timeout, Unauthorized, Unexpected

logger = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 6


@dataclass(frozen=True)
class Identity:
    id: str
    email: Optional[str] = None
    name: Optional[str] = None


class CredentialRejected(Exception):
    """Provider refused to create the credential."""


class IdentityUnavailable(Exception):
    """Provider could not be reached or answered with a server error."""


class IdentityTimeout(IdentityUnavailable):
    """Provider did not answer within its bound."""


class IdentityProvider:
    def verify_token(self, token: str) -> Optional[Identity]:
        """Return the identity the token belongs to, or None if it is not valid."""
        raise NotImplementedError

    def create_user(self, email: str, password: str, name: str) -> Identity:
        raise NotImplementedError


class MemoryIdentityProvider(IdentityProvider):
    """Process-local provider for tests and local development."""

    def __init__(self):
        self._users: Dict[str, dict] = {}
        self._tokens: Dict[str, str] = {}
        self._lock = threading.Lock()

    def create_user(self, email: str, password: str, name: str) -> Identity:
        if "@" not in email:
            raise CredentialRejected("Unable to validate email address: invalid format")
        if len(password) < MIN_PASSWORD_LENGTH:
            raise CredentialRejected(f"Password should be at least {MIN_PASSWORD_LENGTH} characters")
        with self._lock:
            if any(u["email"].lower() == email.lower() for u in self._users.values()):
                raise CredentialRejected("A user with this email address has already been registered")
            user_id = str(uuid.uuid4())
            self._users[user_id] = {
                "id": user_id,
                "email": email,
                "name": name,
            }
        return Identity(id=user_id, email=email, name=name)

    def issue_token(self, user_id: str) -> str:
        with self._lock:
            if user_id not in self._users:
                raise KeyError(user_id)
            token = secrets.token_urlsafe(32)
            self._tokens[token] = user_id
        return token

    def revoke_token(self, token: str) -> None:
        with self._lock:
            self._tokens.pop(token, None)

    def verify_token(self, token: str) -> Optional[Identity]:
        with self._lock:
            user_id = self._tokens.get(token)
            user = self._users.get(user_id) if user_id else None
        if not user:
            return None
        return Identity(id=user["id"], email=user["email"], name=user["name"])


class SupabaseIdentityProvider(IdentityProvider):
    """Talks to a Supabase (GoTrue) compatible auth REST API."""

    def __init__(self, base_url: str, service_role_key: str, timeout: float = 5.0, client: Optional[httpx.Client] = None):
        self.service_role_key = service_role_key
        self.client = client or httpx.Client(base_url=base_url.rstrip("/"), timeout=timeout)

    @classmethod
    def from_settings(cls, settings: Settings) -> "SupabaseIdentityProvider":
        return cls(settings.supabase_url, settings.supabase_service_role_key or "", settings.identity_timeout)

    def _send(self, method: str, path: str, **kwargs) -> httpx.Response:
        try:
            return self.client.request(method, path, **kwargs)
        except httpx.TimeoutException as e:
            logger.error("Identity provider timed out on %s %s: %s", method, path, e)
            raise IdentityTimeout(str(e)) from e
        except httpx.RequestError as e:
            logger.error("Identity provider unavailable on %s %s: %s", method, path, e)
            raise IdentityUnavailable(str(e)) from e

    @staticmethod
    def _to_identity(response: httpx.Response) -> Identity:
        try:
            data = response.json()
            metadata = data.get("user_metadata") or {}
            return Identity(id=data["id"], email=data.get("email"), name=metadata.get("name"))
        except (KeyError, TypeError, AttributeError, ValueError) as e:
            logger.error("Malformed identity provider response: %s", e)
            raise IdentityUnavailable("Malformed identity provider response") from e

    @staticmethod
    def _error_message(response: httpx.Response) -> str:
        try:
            data = response.json()
        except ValueError:
            return response.text or f"HTTP {response.status_code}"
        for field in ("msg", "message", "error_description", "error"):
            if data.get(field):
                return str(data[field])
        return f"HTTP {response.status_code}"

    def verify_token(self, token: str) -> Optional[Identity]:
        response = self._send(
            "GET",
            "/auth/v1/user",
            headers={"Authorization": f"Bearer {token}", "apikey": self.service_role_key},
        )
        if response.status_code == 200:
            return self._to_identity(response)
        if response.status_code >= 500:
            raise IdentityUnavailable(self._error_message(response))
        return None

    def create_user(self, email: str, password: str, name: str) -> Identity:
        response = self._send(
            "POST",
            "/auth/v1/admin/users",
            headers={
                "Authorization": f"Bearer {self.service_role_key}",
                "apikey": self.service_role_key,
            },
            json={
                "email": email,
                "password": password,
                "user_metadata": {"name": name},
                # no mail server is configured, so confirm immediately
                "email_confirm": True,
            },
        )
        if response.status_code >= 500:
            raise IdentityUnavailable(self._error_message(response))
        if response.status_code >= 400:
            raise CredentialRejected(self._error_message(response))
        return self._to_identity(response)


def bearer_token(authorization: Optional[str]) -> Optional[str]:
    """Extract the token from an `Authorization: Bearer <token>` header value."""
    if not authorization:
        return None
    parts = authorization.split()
    if len(parts) != 2 or parts[0].lower() != "bearer":
        return None
    return parts[1]


class IdentityGate:
    def __init__(self, provider: IdentityProvider):
        self.provider = provider

    def authenticate(self, authorization: Optional[str]) -> Identity:
        token = bearer_token(authorization)
        if token is None:
            raise Unauthorized()
        try:
            identity = self.provider.verify_token(token)
        except IdentityTimeout as e:
            raise Timeout("Identity provider timed out") from e
        except IdentityUnavailable as e:
            raise Unexpected() from e
        if identity is None:
            raise Unauthorized()
        return identity

    def create_credential(self, email: str, password: str, name: str) -> Identity:
        try:
            return self.provider.create_user(email, password, name)
        except CredentialRejected as e:
            raise IdentityProviderError(str(e)) from e
        except IdentityTimeout as e:
            raise Timeout("Identity provider timed out") from e
        except IdentityUnavailable as e:
            raise Unexpected() from e


def create_identity_provider(settings: Settings) -> IdentityProvider:
    if settings.supabase_url:
        logger.info("Using Supabase identity provider at %s", settings.supabase_url)
        return SupabaseIdentityProvider.from_settings(settings)
    logger.warning("SUPABASE_URL not set, falling back to in-memory identity provider")
    return MemoryIdentityProvider()
