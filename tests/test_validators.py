"""Tests for input validation utilities."""

import pytest

from app.utils.validators import validate_host


def test_validate_host_valid():
    """Test host validation with public hosts."""
    assert validate_host("scontent-lax3-1.cdninstagram.com") == "scontent-lax3-1.cdninstagram.com"
    assert validate_host("cdn.example:8443") == "cdn.example:8443"
    assert validate_host("8.8.8.8") == "8.8.8.8"


@pytest.mark.parametrize(
    "host",
    ["localhost", "LOCALHOST:80", "app.localhost", "127.0.0.1", "10.1.2.3", "192.168.0.1", "172.16.5.4", "0.0.0.0"],
)
def test_validate_host_blocks_private(host):
    """Test host validation blocks localhost and private ranges."""
    with pytest.raises(Exception):
        validate_host(host)


@pytest.mark.parametrize("host", ["", "cdn.example/path", "user@cdn.example", "cdn example"])
def test_validate_host_malformed(host):
    """Test host validation with malformed hosts."""
    with pytest.raises(Exception):
        validate_host(host)
