"""Hostname validation, root-domain extraction and verification values."""
import re
import secrets

from app.core.exceptions import InvalidDomain

TXT_RECORD_PREFIX = "bing-indexnow="
VERIFICATION_FILE_TEMPLATE = "bing-indexnow-{token}.html"

TOKEN_BYTES = 24

_HOSTNAME_RE = re.compile(
    r"^(?:[a-z0-9](?:[a-z0-9-]{0,61}[a-z0-9])?\.)+[a-z0-9][a-z0-9-]{0,61}[a-z0-9]$"
)
_MAX_HOSTNAME_LENGTH = 253

# Tokens end up in a URL path and a TXT value
_TOKEN_RE = re.compile(r"^[A-Za-z0-9_-]{1,128}$")


def normalize_domain(raw: str) -> str:
    return (raw or "").strip().lower().rstrip(".")


def validate_domain(raw: str) -> str:
    """Return the normalized hostname or raise InvalidDomain."""
    domain = normalize_domain(raw)
    if not domain:
        raise InvalidDomain("Domain is required")
    if len(domain) > _MAX_HOSTNAME_LENGTH or not _HOSTNAME_RE.match(domain):
        raise InvalidDomain("Please enter a valid domain name")
    return domain


def validate_token(token: str) -> str:
    token = (token or "").strip()
    if not token:
        raise InvalidDomain("Verification token is required")
    if not _TOKEN_RE.match(token):
        raise InvalidDomain("Invalid verification token")
    return token


def root_domain(domain: str) -> str:
    """Last two dot-separated labels of the hostname.

    Multi-label public suffixes come out wrong (``a.b.co.uk`` -> ``co.uk``);
    the DNS instructions shown to users assume this heuristic.
    """
    return ".".join(domain.split(".")[-2:])


def generate_verification_token() -> str:
    """24 random bytes, hex encoded (48 chars)."""
    return secrets.token_hex(TOKEN_BYTES)


def expected_txt_record(token: str) -> str:
    return f"{TXT_RECORD_PREFIX}{token}"


def verification_file_url(domain: str, token: str) -> str:
    return f"https://{domain}/" + VERIFICATION_FILE_TEMPLATE.format(token=token)
