from datetime import datetime, timezone
from typing import List, Optional
from uuid import UUID

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.exceptions import DomainNotFound, DomainUnavailable, PersistenceError
from app.models.domain import (
    DEFAULT_DOMAIN_SETTINGS,
    Domain,
    DomainHealthLog,
    VerificationMethod,
    VerificationStatus,
)
from app.services.domain_names import generate_verification_token, validate_domain


def _read_failed(db: Session) -> PersistenceError:
    db.rollback()
    return PersistenceError("read", "Failed to load domain")


def get(db: Session, domain_id: UUID, *, user_id: UUID) -> Optional[Domain]:
    try:
        return db.query(Domain).filter(
            Domain.id == domain_id,
            Domain.user_id == user_id,
        ).first()
    except SQLAlchemyError as exc:
        raise _read_failed(db) from exc


def get_or_404(db: Session, domain_id: UUID, *, user_id: UUID) -> Domain:
    domain = get(db, domain_id, user_id=user_id)
    if domain is None:
        raise DomainNotFound()
    return domain


def get_by_user(db: Session, user_id: UUID, skip: int = 0, limit: int = 100) -> List[Domain]:
    try:
        return db.query(Domain).filter(
            Domain.user_id == user_id
        ).order_by(Domain.created_at.desc()).offset(skip).limit(limit).all()
    except SQLAlchemyError as exc:
        raise _read_failed(db) from exc


def is_available(db: Session, domain: str) -> bool:
    """Domain strings are unique across all users."""
    try:
        return db.query(Domain.id).filter(Domain.domain == domain.lower()).first() is None
    except SQLAlchemyError as exc:
        raise _read_failed(db) from exc


def create(
    db: Session,
    *,
    user_id: UUID,
    domain: str,
    verification_method: VerificationMethod = VerificationMethod.DNS,
) -> Domain:
    name = validate_domain(domain)
    if not is_available(db, name):
        raise DomainUnavailable()

    db_obj = Domain(
        user_id=user_id,
        domain=name,
        verification_method=VerificationMethod(verification_method).value,
        verification_token=generate_verification_token(),
        verification_status=VerificationStatus.PENDING.value,
        is_healthy=True,
        settings=dict(DEFAULT_DOMAIN_SETTINGS),
    )
    db.add(db_obj)
    try:
        db.commit()
    except IntegrityError as exc:
        # Lost a race against another insert of the same domain
        db.rollback()
        raise DomainUnavailable() from exc
    except SQLAlchemyError as exc:
        db.rollback()
        raise PersistenceError("create", "Failed to save domain") from exc
    db.refresh(db_obj)
    return db_obj


def set_verification_result(db: Session, *, domain_id: UUID, user_id: UUID, verified: bool) -> None:
    """Overwrite the verification fields, scoped by id and owner."""
    values = {
        Domain.verification_status: (
            VerificationStatus.VERIFIED.value if verified else VerificationStatus.FAILED.value
        ),
        Domain.last_verified_at: datetime.now(timezone.utc) if verified else None,
    }
    try:
        updated = db.query(Domain).filter(
            Domain.id == domain_id,
            Domain.user_id == user_id,
        ).update(values, synchronize_session="fetch")
        if updated == 0:
            db.rollback()
            raise DomainNotFound()
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        raise PersistenceError("verification_status", "Failed to update verification status") from exc


def record_health(
    db: Session,
    *,
    domain_id: UUID,
    user_id: UUID,
    status_code: int,
    response_time: int,
    is_healthy: bool,
    error_message: Optional[str],
) -> DomainHealthLog:
    """Update the domain's health fields and append a log row in one transaction."""
    try:
        updated = db.query(Domain).filter(
            Domain.id == domain_id,
            Domain.user_id == user_id,
        ).update(
            {
                Domain.is_healthy: is_healthy,
                Domain.last_health_check: datetime.now(timezone.utc),
            },
            synchronize_session="fetch",
        )
        if updated == 0:
            db.rollback()
            raise DomainNotFound()

        log = DomainHealthLog(
            domain_id=domain_id,
            status_code=status_code,
            response_time=response_time,
            is_healthy=is_healthy,
            error_message=error_message,
        )
        db.add(log)
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        raise PersistenceError("health_record", "Failed to record health check result") from exc
    db.refresh(log)
    return log


def get_health_logs(db: Session, domain_id: UUID, *, user_id: UUID, limit: int = 100) -> List[DomainHealthLog]:
    get_or_404(db, domain_id, user_id=user_id)
    try:
        return db.query(DomainHealthLog).filter(
            DomainHealthLog.domain_id == domain_id
        ).order_by(DomainHealthLog.created_at.desc()).limit(limit).all()
    except SQLAlchemyError as exc:
        raise _read_failed(db) from exc
