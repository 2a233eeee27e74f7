# File: tests/test_validation.py
import pytest
from pydantic import ValidationError

from site_mapper.server.validation import SitemapRequest, format_validation_error, is_private_host


def validate(data, **context):
    return SitemapRequest.model_validate(data, context=context or None)


def error_of(data, **context) -> str:
    with pytest.raises(ValidationError) as exc_info:
        validate(data, **context)
    return format_validation_error(exc_info.value)


def test_defaults():
    req = validate({"url": "https://example.com"})
    assert req.change_freq == "weekly"
    assert req.priority == 0.5
    assert req.include_last_mod is False
    assert req.include_debug is False
    opts = req.sitemap_options()
    assert (opts.change_frequency, opts.priority, opts.include_last_modified) == ("weekly", 0.5, False)


def test_aliases():
    req = validate(
        {"url": "http://example.com/a", "changeFreq": "daily", "priority": 1, "includeLastMod": True, "includeDebug": True}
    )
    assert req.change_freq == "daily"
    assert req.priority == 1.0
    assert req.include_last_mod is True
    assert req.include_debug is True


@pytest.mark.parametrize(
    "data, field",
    [
        ({}, "url"),
        ({"url": ""}, "url"),
        ({"url": 42}, "url"),
        ({"url": "https://example.com/" + "a" * 2048}, "url"),
        ({"url": "ftp://example.com/"}, "url"),
        ({"url": "javascript:alert(1)"}, "url"),
        ({"url": "not a url"}, "url"),
        ({"url": "https://example.com", "changeFreq": "sometimes"}, "changeFreq"),
        ({"url": "https://example.com", "priority": 1.5}, "priority"),
        ({"url": "https://example.com", "priority": -1}, "priority"),
        ({"url": "https://example.com", "priority": "0.5"}, "priority"),
        ({"url": "https://example.com", "priority": True}, "priority"),
        ({"url": "https://example.com", "includeLastMod": "true"}, "includeLastMod"),
        ({"url": "https://example.com", "includeDebug": 1}, "includeDebug"),
        ({"url": "https://example.com", "maxPages": 5}, "maxPages"),
    ],
)
def test_rejects(data, field):
    assert field in error_of(data)


@pytest.mark.parametrize(
    "url",
    [
        "http://localhost/",
        "http://LOCALHOST:3000/",
        "http://app.localhost/",
        "http://127.0.0.1/",
        "http://10.0.0.5/",
        "http://172.16.4.1/",
        "http://192.168.1.1/",
        "http://169.254.169.254/latest/meta-data",
        "http://0.0.0.0/",
        "http://[::1]/",
        "http://[fe80::1]/",
        "http://127.1/",
        "http://2130706433/",
        "http://0x7f000001/",
        "http://017700000001/",
        "http://10.1/",
        "http://0x7f.1/",
    ],
)
def test_private_hosts_rejected(url):
    assert "private" in error_of({"url": url})


def test_private_hosts_allowed_with_context():
    req = validate({"url": "http://127.0.0.1:8080/"}, allow_private_hosts=True)
    assert req.url == "http://127.0.0.1:8080/"


@pytest.mark.parametrize("host", ["example.com", "8.8.8.8", "2001:4860:4860::8888", "localhost.example.com"])
def test_public_hosts(host):
    assert not is_private_host(host)


def test_error_message_strips_prefix_and_joins_fields():
    message = error_of({"url": "ftp://example.com", "extra": True})
    assert "Value error" not in message
    assert "url: URL scheme not allowed" in message
    assert "extra: " in message
    assert "; " in message


@pytest.mark.parametrize("host", ["127.1", "2130706433", "0x7f000001", "017700000001", "10.1", "192.168.257"])
def test_shorthand_ipv4_is_private(host):
    assert is_private_host(host)


@pytest.mark.parametrize("host", ["134744072", "0x08080808", "8.8.2056"])
def test_shorthand_public_ipv4(host):
    assert not is_private_host(host)


def test_numeric_looking_names_are_hostnames():
    # five dot-groups is not an address form
    assert not is_private_host("1.2.3.4.5")
    assert not is_private_host("10.example")
