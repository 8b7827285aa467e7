"""Unit tests for the health probe and HealthSampler."""
import httpx
import pytest
from sqlalchemy.exc import OperationalError

from app.core.exceptions import DomainNotFound, PersistenceError
from app.crud import crud_domain
from app.models.domain import Domain, DomainHealthLog
from app.services import health_check
from app.services.health_check import HealthSampler, probe_domain, summarize


def test_probe_healthy_site(web, http_client):
    web.add("HEAD", "https://example.com/", 200)
    probe = probe_domain(http_client, "example.com")
    assert probe.status_code == 200
    assert probe.is_healthy is True
    assert probe.response_time_ms >= 0
    assert probe.error is None


def test_probe_uses_head_with_user_agent(web, http_client):
    web.add("HEAD", "https://example.com/", 204)
    probe_domain(http_client, "example.com")
    request = web.requests[0]
    assert request.method == "HEAD"
    assert str(request.url).startswith("https://example.com")
    assert request.headers["User-Agent"] == "BingIndex Health Check"


def test_probe_error_status_is_unhealthy(web, http_client):
    web.add("HEAD", "https://example.com/", 503)
    probe = probe_domain(http_client, "example.com")
    assert probe.status_code == 503
    assert probe.is_healthy is False
    assert probe.error is None


def test_probe_unreachable_host(http_client):
    probe = probe_domain(http_client, "unreachable.example")
    assert probe.status_code == 0
    assert probe.response_time_ms == 0
    assert probe.is_healthy is False
    assert probe.error


@pytest.mark.parametrize("exc", [
    httpx.ConnectTimeout("timed out"),
    httpx.ConnectError("[SSL: CERTIFICATE_VERIFY_FAILED] certificate verify failed"),
    httpx.RemoteProtocolError("Server disconnected without sending a response."),
])
def test_probe_network_errors_never_raise(web, http_client, exc):
    web.fail("HEAD", "https://example.com/", exc)
    probe = probe_domain(http_client, "example.com")
    assert (probe.status_code, probe.response_time_ms, probe.is_healthy) == (0, 0, False)
    assert probe.error


def test_sampler_records_healthy_probe(db, web, http_client, user_id):
    domain = crud_domain.create(db, user_id=user_id, domain="example.com")
    web.add("HEAD", "https://example.com/", 200)

    probe = HealthSampler(http_client).check(db, domain.id, user_id)

    assert probe.is_healthy is True
    db.refresh(domain)
    assert domain.is_healthy is True
    assert domain.last_health_check is not None
    logs = db.query(DomainHealthLog).filter(DomainHealthLog.domain_id == domain.id).all()
    assert len(logs) == 1
    assert logs[0].status_code == 200
    assert logs[0].error_message is None


def test_sampler_unreachable_host_marks_domain_unhealthy(db, http_client, user_id):
    domain = crud_domain.create(db, user_id=user_id, domain="unreachable.example")
    assert domain.is_healthy is True

    probe = HealthSampler(http_client).check(db, domain.id, user_id)

    assert (probe.status_code, probe.response_time_ms, probe.is_healthy) == (0, 0, False)
    assert probe.error is not None
    db.refresh(domain)
    assert domain.is_healthy is False
    assert domain.last_health_check is not None
    log = db.query(DomainHealthLog).filter(DomainHealthLog.domain_id == domain.id).one()
    assert log.is_healthy is False
    assert log.status_code == 0
    assert log.error_message == probe.error


def test_sampler_appends_one_log_per_call(db, web, http_client, user_id):
    domain = crud_domain.create(db, user_id=user_id, domain="example.com")
    web.add("HEAD", "https://example.com/", 200)
    sampler = HealthSampler(http_client)

    sampler.check(db, domain.id, user_id)
    sampler.check(db, domain.id, user_id)

    assert db.query(DomainHealthLog).filter(DomainHealthLog.domain_id == domain.id).count() == 2


def test_sampler_enforces_ownership(db, web, http_client, user_id, other_user_id):
    domain = crud_domain.create(db, user_id=user_id, domain="example.com")
    web.add("HEAD", "https://example.com/", 200)

    with pytest.raises(DomainNotFound):
        HealthSampler(http_client).check(db, domain.id, other_user_id)

    assert web.requests == []
    assert db.query(DomainHealthLog).count() == 0


def test_sampler_write_failure_rolls_back_both_writes(db, web, http_client, user_id, monkeypatch):
    domain = crud_domain.create(db, user_id=user_id, domain="example.com")
    web.add("HEAD", "https://example.com/", 500)

    def _broken_commit():
        raise OperationalError("INSERT INTO domainhealthlog", {}, Exception("disk I/O error"))

    monkeypatch.setattr(db, "commit", _broken_commit)
    with pytest.raises(PersistenceError) as exc:
        HealthSampler(http_client).check(db, domain.id, user_id)
    assert exc.value.stage == "health_record"

    monkeypatch.undo()
    db.refresh(domain)
    assert domain.is_healthy is True
    assert domain.last_health_check is None
    assert db.query(DomainHealthLog).count() == 0


class _Log:
    def __init__(self, is_healthy, response_time):
        self.is_healthy = is_healthy
        self.response_time = response_time


def test_summarize_window():
    logs = [_Log(True, 100), _Log(True, 300), _Log(False, 0), _Log(True, 200)]
    summary = summarize(logs)
    assert summary == {
        "total_checks": 4,
        "healthy_checks": 3,
        "uptime_percentage": 75.0,
        "average_response_time": 200.0,
    }


def test_summarize_empty_window():
    summary = summarize([])
    assert summary["total_checks"] == 0
    assert summary["uptime_percentage"] is None
    assert summary["average_response_time"] is None


def test_sampler_write_is_scoped_to_current_owner(
    db, session_factory, web, http_client, user_id, other_user_id, monkeypatch,
):
    domain = crud_domain.create(db, user_id=user_id, domain="example.com")
    domain_id = domain.id
    web.add("HEAD", "https://example.com/", 200)

    def _probe_after_transfer(client, name):
        # Ownership moves to another user while the HEAD request is in flight
        with session_factory() as other:
            other.query(Domain).filter(Domain.id == domain_id).update({Domain.user_id: other_user_id})
            other.commit()
        return probe_domain(client, name)

    monkeypatch.setattr(health_check, "probe_domain", _probe_after_transfer)
    with pytest.raises(DomainNotFound):
        HealthSampler(http_client).check(db, domain_id, user_id)

    assert len(web.requests) == 1
    db.expire_all()
    stored = db.get(Domain, domain_id)
    assert stored.user_id == other_user_id
    assert stored.is_healthy is True
    assert stored.last_health_check is None
    assert db.query(DomainHealthLog).count() == 0
