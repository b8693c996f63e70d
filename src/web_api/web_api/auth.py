import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional
from fastapi import Request, Security
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from supabase import Client

from shared.errors import AuthenticationError

LOG = logging.getLogger(__name__)

bearer_scheme = HTTPBearer(auto_error=False)


@dataclass(frozen=True)
class CallerIdentity:
    id: str
    email: Optional[str] = None


class IdentityVerifier(ABC):

    @abstractmethod
    def verify(self, token: str) -> CallerIdentity:
        """Resolve a bearer credential or raise AuthenticationError"""
        pass


class SupabaseAuthVerifier(IdentityVerifier):
    """Resolves access tokens through Supabase Auth (GET /auth/v1/user)."""

    def __init__(self, client: Client):
        self.client = client

    def verify(self, token: str) -> CallerIdentity:
        try:
            response = self.client.auth.get_user(token)
        except Exception as e:
            LOG.warning("Token rejected by auth provider: %s", e)
            raise AuthenticationError("Invalid authentication") from e

        user = getattr(response, "user", None) if response else None
        if not user or not getattr(user, "id", None):
            raise AuthenticationError("Invalid authentication")

        return CallerIdentity(id=str(user.id), email=getattr(user, "email", None))


def get_caller_identity(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Security(bearer_scheme),
) -> CallerIdentity:
    if not credentials or not credentials.credentials:
        raise AuthenticationError("Authorization required")

    verifier: Optional[IdentityVerifier] = getattr(request.app.state, "verifier", None)
    if verifier is None:
        raise AuthenticationError("Invalid authentication")

    identity = verifier.verify(credentials.credentials)
    LOG.info("Authenticated caller %s", identity.id)
    return identity
