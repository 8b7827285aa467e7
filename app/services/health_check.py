"""On-demand domain health probing."""
import logging
import time
from dataclasses import dataclass
from typing import Optional
from uuid import UUID

import httpx
from sqlalchemy.orm import Session

from app.config import settings
from app.crud import crud_domain
from app.middleware.metrics import observe_health_probe

logger = logging.getLogger("bingindex.health")


@dataclass
class HealthProbe:
    status_code: int
    response_time_ms: int
    is_healthy: bool
    error: Optional[str] = None


def probe_domain(client: httpx.Client, domain: str) -> HealthProbe:
    """HEAD https://<domain> once. Connection-level failures become status 0."""
    start = time.perf_counter()
    try:
        response = client.head(
            f"https://{domain}",
            headers={"User-Agent": settings.HEALTH_CHECK_USER_AGENT},
        )
    except httpx.HTTPError as exc:
        logger.info("Health probe for %s failed: %s", domain, exc)
        return HealthProbe(
            status_code=0,
            response_time_ms=0,
            is_healthy=False,
            error=str(exc) or exc.__class__.__name__,
        )
    elapsed_ms = int(round((time.perf_counter() - start) * 1000))

    return HealthProbe(
        status_code=response.status_code,
        response_time_ms=elapsed_ms,
        is_healthy=response.is_success,
    )


class HealthSampler:
    def __init__(self, http_client: httpx.Client):
        self.http_client = http_client

    def check(self, db: Session, domain_id: UUID, user_id: UUID) -> HealthProbe:
        name = crud_domain.get_or_404(db, domain_id, user_id=user_id).domain
        # No transaction stays open across the network check
        db.rollback()

        probe = probe_domain(self.http_client, name)
        observe_health_probe(probe.is_healthy, probe.status_code, probe.response_time_ms)

        # Domain flags and the log row commit together or not at all
        crud_domain.record_health(
            db,
            domain_id=domain_id,
            user_id=user_id,
            status_code=probe.status_code,
            response_time=probe.response_time_ms,
            is_healthy=probe.is_healthy,
            error_message=probe.error,
        )
        logger.info(
            "Health check %s: status=%d time=%dms healthy=%s",
            name, probe.status_code, probe.response_time_ms, probe.is_healthy,
        )
        return probe


def summarize(logs) -> dict:
    """Uptime and latency over a window of health logs."""
    total = len(logs)
    healthy = [log for log in logs if log.is_healthy]
    uptime = round(len(healthy) / total * 100, 2) if total else None
    avg_ms = round(sum(log.response_time for log in healthy) / len(healthy), 1) if healthy else None
    return {
        "total_checks": total,
        "healthy_checks": len(healthy),
        "uptime_percentage": uptime,
        "average_response_time": avg_ms,
    }
