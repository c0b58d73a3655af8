"""
Bearer token authentication.

Tokens are issued by the Supabase project configured in settings; we ask
its auth API who the token belongs to and never inspect the token itself.
"""
import logging
from dataclasses import dataclass
from typing import Optional

import httpx
from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from crdo.core.config import settings
from crdo.core.exceptions import AuthenticationError, DependencyError
from crdo.db import get_db
from crdo.models.user import User

logger = logging.getLogger(__name__)

# auto_error=False so a missing header is a 401 with our error body, not a 403
security = HTTPBearer(auto_error=False)


@dataclass(frozen=True)
class AuthUser:
    id: str
    email: Optional[str] = None


class SupabaseIdentityResolver:
    def __init__(
        self,
        base_url: str,
        api_key: str,
        timeout: float = 10.0,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self.timeout = timeout
        self.transport = transport

    def resolve(self, token: str) -> AuthUser:
        if not token:
            raise AuthenticationError()
        headers = {"Authorization": f"Bearer {token}", "apikey": self.api_key}
        try:
            with httpx.Client(timeout=self.timeout, transport=self.transport) as client:
                r = client.get(f"{self.base_url}/auth/v1/user", headers=headers)
        except httpx.HTTPError as exc:
            logger.error("Identity provider unreachable: %s", exc)
            raise DependencyError() from exc
        if r.status_code != 200:
            raise AuthenticationError()
        data = r.json()
        if not data.get("id"):
            raise AuthenticationError()
        return AuthUser(id=data["id"], email=data.get("email"))


def get_identity_resolver() -> SupabaseIdentityResolver:
    return SupabaseIdentityResolver(
        settings.supabase_url,
        settings.supabase_service_key,
        timeout=settings.auth_timeout_s,
    )


def mirror_user(db: Session, user: AuthUser) -> None:
    """Keep the local users row in step with the identity provider."""
    try:
        row = db.query(User).filter(User.id == user.id).first()
        if not row:
            db.add(User(id=user.id, email=user.email))
            db.commit()
        elif user.email and row.email != user.email:
            row.email = user.email
            db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        logger.error("Could not mirror user %s: %s", user.id, exc)
        raise DependencyError() from exc


def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    resolver: SupabaseIdentityResolver = Depends(get_identity_resolver),
    db: Session = Depends(get_db),
) -> AuthUser:
    if not credentials or not credentials.credentials.strip():
        raise AuthenticationError()
    user = resolver.resolve(credentials.credentials.strip())
    mirror_user(db, user)
    return user
