"""Tests for cookie sources."""

import asyncio

import pytest

from ticket_monitor.exceptions import CookieError
from ticket_monitor.host.cookies import CookieFileSource, StaticCookieSource, domain_matches
from ticket_monitor.models import Cookie

COOKIES_TXT = """# Netscape HTTP Cookie File
.zendesk.com\tTRUE\t/\tTRUE\t4102444800\t_zendesk_shared_session\tshared
acme.zendesk.com\tFALSE\t/\tTRUE\t4102444800\t_zendesk_session\tabc
other.zendesk.com\tFALSE\t/\tTRUE\t4102444800\t_zendesk_session\tnope
acme.zendesk.com\tFALSE\t/\tTRUE\t1000000000\texpired_session\told
"""


def test_domain_matches():
    assert domain_matches("acme.zendesk.com", ".zendesk.com")
    assert domain_matches("acme.zendesk.com", "acme.zendesk.com")
    assert domain_matches("ACME.zendesk.com", "acme.zendesk.com")
    assert not domain_matches("acme.zendesk.com", "other.zendesk.com")
    assert not domain_matches("evilzendesk.com", "zendesk.com")


def test_cookie_file_source(tmp_path):
    path = tmp_path / "cookies.txt"
    path.write_text(COOKIES_TXT)
    cookies = asyncio.run(CookieFileSource(path).cookies_for("acme.zendesk.com"))
    assert sorted((c.name, c.value) for c in cookies) == [
        ("_zendesk_session", "abc"),
        ("_zendesk_shared_session", "shared"),
    ]


def test_cookie_file_missing(tmp_path):
    with pytest.raises(CookieError, match="not found"):
        asyncio.run(CookieFileSource(tmp_path / "absent.txt").cookies_for("acme.zendesk.com"))


def test_cookie_file_bad_format(tmp_path):
    path = tmp_path / "cookies.txt"
    path.write_text("this is not a cookie file\n")
    with pytest.raises(CookieError):
        asyncio.run(CookieFileSource(path).cookies_for("acme.zendesk.com"))


def test_static_cookie_source():
    source = StaticCookieSource({".zendesk.com": [Cookie("auth", "1")]})
    assert asyncio.run(source.cookies_for("acme.zendesk.com")) == [Cookie("auth", "1")]
    assert asyncio.run(source.cookies_for("example.com")) == []
