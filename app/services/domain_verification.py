"""
Domain ownership verification.

Two proof methods:
  - dns:  a TXT record ``bing-indexnow=<token>`` on the root domain
  - file: ``https://<domain>/bing-indexnow-<token>.html`` serving exactly ``<token>``

Every call recomputes the status from scratch, so verify can be re-run
while DNS or the file upload is still propagating. Lookup and fetch
failures are verification failures, never exceptions.
"""
import logging
from dataclasses import dataclass, field
from typing import List, Optional, Protocol
from uuid import UUID

import dns.exception
import httpx
from sqlalchemy.orm import Session

from app.config import settings
from app.crud import crud_domain
from app.middleware.metrics import observe_verification
from app.models.domain import VerificationMethod, VerificationStatus
from app.services.domain_names import expected_txt_record, root_domain, verification_file_url

logger = logging.getLogger("bingindex.verification")


class TXTResolver(Protocol):
    """The part of ``dns.resolver.Resolver`` used here."""

    def resolve(self, qname: str, rdtype: str): ...


@dataclass
class DnsProbeResult:
    verified: bool
    root_domain: str
    expected: str
    records: List[str] = field(default_factory=list)
    error: Optional[str] = None


@dataclass
class FileProbeResult:
    verified: bool
    url: str
    status_code: Optional[int] = None
    error: Optional[str] = None


@dataclass
class VerificationOutcome:
    verified: bool
    detail: Optional[str] = None

    @property
    def status(self) -> str:
        return VerificationStatus.VERIFIED.value if self.verified else VerificationStatus.FAILED.value


def _txt_strings(answer) -> List[str]:
    values = []
    for rdata in answer:
        for chunk in rdata.strings:
            if isinstance(chunk, bytes):
                chunk = chunk.decode("utf-8", errors="replace")
            values.append(chunk)
    return values


def check_dns_txt(resolver: TXTResolver, domain: str, token: str) -> DnsProbeResult:
    root = root_domain(domain)
    expected = expected_txt_record(token)
    try:
        records = _txt_strings(resolver.resolve(root, "TXT"))
    except dns.exception.DNSException as exc:
        logger.info("TXT lookup failed for %s (root %s): %s", domain, root, exc)
        return DnsProbeResult(
            verified=False,
            root_domain=root,
            expected=expected,
            error=str(exc) or exc.__class__.__name__,
        )

    verified = any(value.strip() == expected for value in records)
    logger.info(
        "TXT check for %s (root %s): %d record(s), verified=%s",
        domain, root, len(records), verified,
    )
    return DnsProbeResult(verified=verified, root_domain=root, expected=expected, records=records)


def check_verification_file(client: httpx.Client, domain: str, token: str) -> FileProbeResult:
    url = verification_file_url(domain, token)
    try:
        response = client.get(url, headers={"User-Agent": settings.VERIFICATION_USER_AGENT})
    except httpx.HTTPError as exc:
        logger.info("Verification file fetch failed for %s (%s): %s", domain, url, exc)
        return FileProbeResult(verified=False, url=url, error=str(exc) or exc.__class__.__name__)

    if not response.is_success:
        logger.info("Verification file for %s (%s) returned HTTP %d", domain, url, response.status_code)
        return FileProbeResult(
            verified=False,
            url=url,
            status_code=response.status_code,
            error=f"HTTP {response.status_code}",
        )

    verified = response.text.strip() == token
    logger.info("Verification file check for %s (%s): verified=%s", domain, url, verified)
    return FileProbeResult(
        verified=verified,
        url=url,
        status_code=response.status_code,
        error=None if verified else "File content does not match the verification token",
    )


class DomainVerifier:
    """Runs the configured proof method for a stored domain and persists the result."""

    def __init__(self, resolver: TXTResolver, http_client: httpx.Client):
        self.resolver = resolver
        self.http_client = http_client

    def probe(self, method: str, domain: str, token: str) -> VerificationOutcome:
        if method == VerificationMethod.DNS.value:
            result = check_dns_txt(self.resolver, domain, token)
            if result.verified:
                return VerificationOutcome(verified=True)
            detail = result.error or (
                f"No TXT record on {result.root_domain} matches the expected value"
            )
            return VerificationOutcome(verified=False, detail=detail)

        result = check_verification_file(self.http_client, domain, token)
        return VerificationOutcome(verified=result.verified, detail=result.error)

    def verify(self, db: Session, domain_id: UUID, user_id: UUID) -> VerificationOutcome:
        """Verify a domain owned by ``user_id``.

        Raises DomainNotFound when the id is unknown or owned by someone else
        (also when ownership changes while the check runs), PersistenceError
        when the status write fails.
        """
        record = crud_domain.get_or_404(db, domain_id, user_id=user_id)
        method, name, token = record.verification_method, record.domain, record.verification_token
        # No transaction stays open across the network check
        db.rollback()

        outcome = self.probe(method, name, token)
        observe_verification(method, outcome.verified)

        crud_domain.set_verification_result(
            db, domain_id=domain_id, user_id=user_id, verified=outcome.verified,
        )
        logger.info("Domain %s verification via %s: %s", name, method, outcome.status)
        return outcome
