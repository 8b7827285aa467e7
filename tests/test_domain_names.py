"""Unit tests for hostname validation and verification values."""
import re

import pytest

from app.core.exceptions import InvalidDomain
from app.services.domain_names import (
    expected_txt_record,
    generate_verification_token,
    root_domain,
    validate_domain,
    validate_token,
    verification_file_url,
)


@pytest.mark.parametrize("hostname, expected", [
    ("sub.example.com", "example.com"),
    ("example.com", "example.com"),
    ("deep.sub.example.org", "example.org"),
    # Multi-label public suffixes are not special-cased
    ("a.b.co.uk", "co.uk"),
])
def test_root_domain_keeps_last_two_labels(hostname, expected):
    assert root_domain(hostname) == expected


@pytest.mark.parametrize("raw, expected", [
    ("example.com", "example.com"),
    ("Example.COM", "example.com"),
    ("  shop.example.io ", "shop.example.io"),
    ("example.com.", "example.com"),
    ("xn--bcher-kva.example", "xn--bcher-kva.example"),
    ("a-b.c-d.net", "a-b.c-d.net"),
])
def test_validate_domain_normalizes(raw, expected):
    assert validate_domain(raw) == expected


@pytest.mark.parametrize("raw", [
    "localhost",
    "-example.com",
    "example-.com",
    "exa_mple.com",
    "example.c",
    "https://example.com",
    "example.com/path",
    "ex ample.com",
    "a" * 64 + ".com",
    ".".join(["abcdefghij"] * 25) + ".com",
])
def test_validate_domain_rejects_bad_hostnames(raw):
    with pytest.raises(InvalidDomain) as exc:
        validate_domain(raw)
    assert exc.value.message == "Please enter a valid domain name"


def test_validate_domain_requires_value():
    with pytest.raises(InvalidDomain) as exc:
        validate_domain("   ")
    assert exc.value.message == "Domain is required"


def test_verification_token_is_48_hex_chars():
    token = generate_verification_token()
    assert re.fullmatch(r"[0-9a-f]{48}", token)
    assert generate_verification_token() != token


def test_expected_values():
    assert expected_txt_record("abc123") == "bing-indexnow=abc123"
    assert verification_file_url("foo.io", "xyz") == "https://foo.io/bing-indexnow-xyz.html"


def test_validate_token():
    assert validate_token(" abc123 ") == "abc123"
    with pytest.raises(InvalidDomain):
        validate_token("")
    with pytest.raises(InvalidDomain):
        validate_token("../etc/passwd")
