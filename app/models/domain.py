"""
Domain and health-log models.

A Domain is a website registered by one user (the identity provider's user
id, no local users table). Verification state is recomputed from scratch on
every verify call; health fields are only written by the health sampler.
"""
import enum
import uuid
from datetime import datetime, timezone
from sqlalchemy import Column, String, Boolean, DateTime, Integer, Text, ForeignKey, JSON, Uuid, func
from app.db.base_class import Base


class VerificationMethod(str, enum.Enum):
    DNS = "dns"
    FILE = "file"


class VerificationStatus(str, enum.Enum):
    PENDING = "pending"
    VERIFIED = "verified"
    FAILED = "failed"


class IndexingFrequency(str, enum.Enum):
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


DEFAULT_DOMAIN_SETTINGS = {
    "auto_sitemap_sync": False,
    "sitemap_urls": [],
    "auto_indexing": False,
    "indexing_frequency": IndexingFrequency.DAILY.value,
}


class Domain(Base):
    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4, index=True)
    user_id = Column(Uuid(as_uuid=True), nullable=False, index=True)
    domain = Column(String(253), unique=True, nullable=False, index=True)

    # Ownership proof
    verification_method = Column(String(8), nullable=False, default=VerificationMethod.DNS.value)
    verification_token = Column(String(64), nullable=False)
    verification_status = Column(String(16), nullable=False, default=VerificationStatus.PENDING.value)
    last_verified_at = Column(DateTime(timezone=True), nullable=True)

    # Health (optimistic until the first probe)
    is_healthy = Column(Boolean, nullable=False, default=True)
    last_health_check = Column(DateTime(timezone=True), nullable=True)

    settings = Column(JSON, nullable=False, default=lambda: dict(DEFAULT_DOMAIN_SETTINGS))

    created_at = Column(DateTime(timezone=True), default=_utcnow, server_default=func.now())


class DomainHealthLog(Base):
    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4, index=True)
    domain_id = Column(Uuid(as_uuid=True), ForeignKey("domain.id", ondelete="CASCADE"), nullable=False, index=True)
    status_code = Column(Integer, nullable=False, default=0)      # 0 = connection failed
    response_time = Column(Integer, nullable=False, default=0)    # milliseconds
    is_healthy = Column(Boolean, nullable=False)
    error_message = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), default=_utcnow, server_default=func.now(), index=True)
