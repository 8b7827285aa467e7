from typing import List, Optional
from uuid import UUID
from datetime import datetime
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from app.models.domain import IndexingFrequency, VerificationMethod, VerificationStatus


class CamelModel(BaseModel):
    """Wire shapes used by the dashboard client (camelCase, snake_case accepted)."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class DomainSettings(BaseModel):
    auto_sitemap_sync: bool = False
    sitemap_urls: List[str] = []
    auto_indexing: bool = False
    indexing_frequency: IndexingFrequency = IndexingFrequency.DAILY


# Properties to receive via API on creation
class DomainCreate(CamelModel):
    domain: str
    verification_method: VerificationMethod = VerificationMethod.DNS


class DomainInDBBase(BaseModel):
    id: UUID
    user_id: UUID
    domain: str
    verification_method: VerificationMethod
    verification_token: str
    verification_status: VerificationStatus
    last_verified_at: Optional[datetime] = None
    is_healthy: bool
    last_health_check: Optional[datetime] = None
    settings: DomainSettings
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


# Additional properties to return via API
class Domain(DomainInDBBase):
    pass


class DomainAvailability(BaseModel):
    domain: str
    available: bool


class DomainIdRequest(CamelModel):
    domain_id: UUID


class VerifyResponse(BaseModel):
    success: bool = True
    verified: bool
    status: VerificationStatus
    message: str
    detail: Optional[str] = None


class DnsProbeResponse(CamelModel):
    verified: bool
    root_domain: str
    expected: str
    records: List[str] = []
    error: Optional[str] = None


class FileProbeResponse(CamelModel):
    verified: bool
    url: str
    status_code: Optional[int] = None
    error: Optional[str] = None


class HealthResult(CamelModel):
    status_code: int
    response_time: int = Field(description="milliseconds, 0 when the probe could not connect")
    is_healthy: bool
    error: Optional[str] = None


class HealthResponse(BaseModel):
    success: bool = True
    health: HealthResult


class HealthLog(BaseModel):
    id: UUID
    domain_id: UUID
    status_code: int
    response_time: int
    is_healthy: bool
    error_message: Optional[str] = None
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class HealthSummary(BaseModel):
    total_checks: int
    healthy_checks: int
    uptime_percentage: Optional[float] = None
    average_response_time: Optional[float] = None


class HealthHistory(BaseModel):
    logs: List[HealthLog]
    summary: HealthSummary
