from typing import Generator, Optional

import dns.resolver
import httpx
from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from app.core.security import AuthenticatedUser, InvalidTokenError, decode_access_token
from app.db.session import SessionLocal
from app.logging_config import user_id_ctx
from app.services.domain_verification import DomainVerifier, TXTResolver
from app.services.health_check import HealthSampler

bearer_scheme = HTTPBearer(auto_error=False)


def get_db() -> Generator[Session, None, None]:
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_current_user(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> AuthenticatedUser:
    if credentials is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Unauthorized",
            headers={"WWW-Authenticate": "Bearer"},
        )
    # Already decoded by RequestLoggingMiddleware for this request
    user = getattr(request.state, "user", None)
    if user is None:
        try:
            user = decode_access_token(credentials.credentials)
        except InvalidTokenError:
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Could not validate credentials",
                headers={"WWW-Authenticate": "Bearer"},
            )
    user_id_ctx.set(str(user.id))
    return user


# ── Network collaborators (overridden in tests) ──

def get_dns_resolver() -> TXTResolver:
    return dns.resolver.Resolver(configure=True)


def get_http_client() -> Generator[httpx.Client, None, None]:
    with httpx.Client(follow_redirects=True) as client:
        yield client


def get_domain_verifier(
    resolver: TXTResolver = Depends(get_dns_resolver),
    http_client: httpx.Client = Depends(get_http_client),
) -> DomainVerifier:
    return DomainVerifier(resolver=resolver, http_client=http_client)


def get_health_sampler(
    http_client: httpx.Client = Depends(get_http_client),
) -> HealthSampler:
    return HealthSampler(http_client=http_client)
