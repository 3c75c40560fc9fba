import pytest

from attentionmarket.kit.sanitize import escape_html, sanitize_url


def test_escape_html():
    assert escape_html("<script>alert(1)</script>") == "&lt;script&gt;alert(1)&lt;&#x2F;script&gt;"
    assert escape_html("Tom & Jerry's `x`") == "Tom &amp; Jerry&#x27;s &#96;x&#96;"
    assert escape_html(None) == ""


@pytest.mark.parametrize("url", [
    None,
    "",
    "   ",
    "javascript:alert(1)",
    "JavaScript:alert(1)",
    "data:text/html;base64,xx",
    "file:///etc/passwd",
    "vbscript:msgbox",
    "blob:https://x",
    "ftp://example.com",
    "http://example.com",
    "not a url",
    "https://example.com/" + "a" * 2048,
])
def test_blocked(url):
    assert sanitize_url(url) is None


def test_allowed():
    assert sanitize_url("  https://example.com/path?q=1 ") == "https://example.com/path?q=1"
    assert sanitize_url("//cdn.example.com/x") == "https://cdn.example.com/x"
    assert sanitize_url("http://example.com", allow_http=True) == "http://example.com"
    assert sanitize_url("tel:+15551234") == "tel:+15551234"
    assert sanitize_url("mailto:a@b.c") == "mailto:a@b.c"
    assert sanitize_url("tel:+15551234", allow_tel=False) is None
    assert sanitize_url("mailto:a@b.c", allow_mailto=False) is None


def test_warning_hook():
    seen = []
    sanitize_url("javascript:alert(1)", on_warning=lambda msg, ctx: seen.append((msg, ctx)))
    assert seen == [("Blocked dangerous URL protocol", {"url": "javascript:alert(1)", "protocol": "javascript:"})]
