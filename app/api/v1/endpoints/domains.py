"""
Domain Management API

Lets a signed-in user:
  1. Register a domain (ownership proof by DNS TXT record or hosted file)
  2. Verify ownership (re-runnable until DNS / the file has propagated)
  3. Probe reachability and browse the health history
  4. Run the DNS / file checks standalone for diagnostics
"""
import logging
from typing import Any, List
from uuid import UUID

import httpx
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from app.api import deps
from app.config import settings
from app.core.security import AuthenticatedUser
from app.crud import crud_domain
from app.schemas.domain import (
    DnsProbeResponse,
    Domain as DomainSchema,
    DomainAvailability,
    DomainCreate,
    DomainIdRequest,
    FileProbeResponse,
    HealthHistory,
    HealthResponse,
    HealthResult,
    VerifyResponse,
)
from app.services.domain_names import validate_domain, validate_token
from app.services.domain_verification import (
    DomainVerifier,
    TXTResolver,
    check_dns_txt,
    check_verification_file,
)
from app.services.health_check import HealthSampler, summarize

router = APIRouter()
logger = logging.getLogger("bingindex.domains")


@router.get("/", response_model=List[DomainSchema])
def list_domains(
    db: Session = Depends(deps.get_db),
    current_user: AuthenticatedUser = Depends(deps.get_current_user),
) -> Any:
    """List the caller's domains, newest first."""
    return crud_domain.get_by_user(db, current_user.id)


@router.post("/", response_model=DomainSchema, status_code=status.HTTP_201_CREATED)
def add_domain(
    body: DomainCreate,
    db: Session = Depends(deps.get_db),
    current_user: AuthenticatedUser = Depends(deps.get_current_user),
) -> Any:
    record = crud_domain.create(
        db,
        user_id=current_user.id,
        domain=body.domain,
        verification_method=body.verification_method,
    )
    logger.info("Domain added: %s (%s) for user %s", record.domain, record.verification_method, current_user.id)
    return record


@router.get("/availability", response_model=DomainAvailability)
def domain_availability(
    domain: str = Query(...),
    db: Session = Depends(deps.get_db),
    current_user: AuthenticatedUser = Depends(deps.get_current_user),
) -> Any:
    name = validate_domain(domain)
    return DomainAvailability(domain=name, available=crud_domain.is_available(db, name))


@router.post("/verify", response_model=VerifyResponse)
def verify_domain(
    body: DomainIdRequest,
    db: Session = Depends(deps.get_db),
    current_user: AuthenticatedUser = Depends(deps.get_current_user),
    verifier: DomainVerifier = Depends(deps.get_domain_verifier),
) -> Any:
    """
    Check the domain's ownership proof and store the outcome.

    dns:  TXT record ``bing-indexnow=<token>`` on the root domain
    file: ``https://<domain>/bing-indexnow-<token>.html`` containing ``<token>``
    """
    outcome = verifier.verify(db, body.domain_id, current_user.id)
    return VerifyResponse(
        success=True,
        verified=outcome.verified,
        status=outcome.status,
        message="Domain verified successfully" if outcome.verified else "Verification failed",
        detail=outcome.detail,
    )


@router.get("/verify/dns", response_model=DnsProbeResponse)
def probe_dns(
    domain: str = Query(""),
    token: str = Query(""),
    current_user: AuthenticatedUser = Depends(deps.get_current_user),
    resolver: TXTResolver = Depends(deps.get_dns_resolver),
) -> Any:
    """Read-only TXT check; does not touch stored domains."""
    result = check_dns_txt(resolver, validate_domain(domain), validate_token(token))
    return DnsProbeResponse(
        verified=result.verified,
        root_domain=result.root_domain,
        expected=result.expected,
        records=result.records,
        error=result.error,
    )


@router.get("/verify/file", response_model=FileProbeResponse)
def probe_file(
    domain: str = Query(""),
    token: str = Query(""),
    current_user: AuthenticatedUser = Depends(deps.get_current_user),
    http_client: httpx.Client = Depends(deps.get_http_client),
) -> Any:
    """Read-only verification file check; does not touch stored domains."""
    result = check_verification_file(http_client, validate_domain(domain), validate_token(token))
    return FileProbeResponse(
        verified=result.verified,
        url=result.url,
        status_code=result.status_code,
        error=result.error,
    )


@router.post("/health", response_model=HealthResponse)
def check_health(
    body: DomainIdRequest,
    db: Session = Depends(deps.get_db),
    current_user: AuthenticatedUser = Depends(deps.get_current_user),
    sampler: HealthSampler = Depends(deps.get_health_sampler),
) -> Any:
    probe = sampler.check(db, body.domain_id, current_user.id)
    return HealthResponse(
        success=True,
        health=HealthResult(
            status_code=probe.status_code,
            response_time=probe.response_time_ms,
            is_healthy=probe.is_healthy,
            error=probe.error,
        ),
    )


@router.get("/{domain_id}", response_model=DomainSchema)
def read_domain(
    domain_id: UUID,
    db: Session = Depends(deps.get_db),
    current_user: AuthenticatedUser = Depends(deps.get_current_user),
) -> Any:
    return crud_domain.get_or_404(db, domain_id, user_id=current_user.id)


@router.get("/{domain_id}/health", response_model=HealthHistory)
def health_history(
    domain_id: UUID,
    limit: int = Query(settings.HEALTH_LOG_PAGE_SIZE, ge=1, le=500),
    db: Session = Depends(deps.get_db),
    current_user: AuthenticatedUser = Depends(deps.get_current_user),
) -> Any:
    """Most recent health checks (newest first) with uptime / latency summary."""
    logs = crud_domain.get_health_logs(db, domain_id, user_id=current_user.id, limit=limit)
    return HealthHistory(logs=logs, summary=summarize(logs))
