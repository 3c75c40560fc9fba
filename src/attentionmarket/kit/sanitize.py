from __future__ import annotations

import re
from typing import Callable, Dict, Optional
from urllib.parse import urlsplit

HTML_ESCAPES = {
    "&": "&amp;",
    "<": "&lt;",
    ">": "&gt;",
    '"': "&quot;",
    "'": "&#x27;",
    "/": "&#x2F;",
    "`": "&#96;",
}
HTML_ESCAPE_RX = re.compile(r"[&<>\"'`/]")

MAX_URL_LENGTH = 2048
DANGEROUS_SCHEMES = {"javascript", "data", "file", "vbscript", "blob"}

WarningHook = Callable[[str, Dict[str, str]], None]


def escape_html(text: Optional[str]) -> str:
    """Escape ad copy before it is placed in an HTML context. ``None`` gives ``""``."""
    if text is None:
        return ""
    return HTML_ESCAPE_RX.sub(lambda m: HTML_ESCAPES[m.group(0)], text)


def sanitize_url(
    url: Optional[str],
    allow_http: bool = False,
    allow_tel: bool = True,
    allow_mailto: bool = True,
    on_warning: Optional[WarningHook] = None,
) -> Optional[str]:
    """Return ``url`` trimmed if it is safe to open, otherwise ``None``.

    Only ``https`` passes by default; ``http``, ``tel`` and ``mailto`` are
    opt-in/opt-out through the flags. Protocol-relative URLs are upgraded to
    ``https``.
    """

    def warn(message: str, **context: str) -> None:
        if on_warning is not None:
            on_warning(message, context)

    if url is None:
        return None
    trimmed = url.strip()
    if not trimmed:
        return None
    if len(trimmed) > MAX_URL_LENGTH:
        warn("URL exceeds maximum length", url=trimmed)
        return None

    if trimmed.startswith("//"):
        if not urlsplit(f"https:{trimmed}").netloc:
            warn("Invalid protocol-relative URL", url=trimmed)
            return None
        return f"https:{trimmed}"

    try:
        parts = urlsplit(trimmed)
    except ValueError:
        warn("Invalid URL format", url=trimmed)
        return None
    scheme = parts.scheme.lower()
    if not scheme:
        warn("Invalid URL format", url=trimmed)
        return None

    if scheme in DANGEROUS_SCHEMES:
        warn("Blocked dangerous URL protocol", url=trimmed, protocol=f"{scheme}:")
        return None
    if scheme == "https":
        return trimmed if parts.netloc else None
    if scheme == "http":
        if allow_http and parts.netloc:
            return trimmed
        warn("HTTP URL blocked. Use HTTPS or set allow_http=True", url=trimmed, protocol="http:")
        return None
    if scheme == "tel":
        return trimmed if allow_tel else None
    if scheme == "mailto":
        return trimmed if allow_mailto else None

    warn("Unknown URL protocol blocked", url=trimmed, protocol=f"{scheme}:")
    return None
