"""Turn ``sponsored_suggestion`` units into conversational text.

Tracking and disclosure data are carried over untouched so a rendered ad can
still be reported through ``track_impression``/``track_click``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

STYLES = ("conversational", "helpful", "direct")


@dataclass
class FormattedAd:
    text: str
    cta: str
    action_url: str
    tracking: Dict[str, str]
    disclosure: Dict[str, str]


@dataclass
class FitCheck:
    fits: bool
    violations: List[str] = field(default_factory=list)


def _suggestion(ad: Dict[str, Any], caller: str) -> Dict[str, Any]:
    if ad.get("unit_type") != "sponsored_suggestion":
        raise ValueError(f"{caller}() only supports sponsored_suggestion ad units")
    return ad["suggestion"]


def _carry_over(ad: Dict[str, Any], suggestion: Dict[str, Any], text: str) -> FormattedAd:
    disclosure = ad.get("disclosure") or {}
    return FormattedAd(
        text=text,
        cta=suggestion.get("cta", ""),
        action_url=suggestion.get("action_url", ""),
        # the unit id doubles as event and decision id for click tracking
        tracking={
            "event_id": ad["unit_id"],
            "tracking_token": (ad.get("tracking") or {}).get("token", ""),
            "decision_id": ad["unit_id"],
        },
        disclosure={
            "label": disclosure.get("label", ""),
            "sponsor_name": disclosure.get("sponsor_name", ""),
        },
    )


def truncate_gracefully(text: str, max_length: int) -> str:
    """Cut at a sentence end in the last 30%, else at a word, else hard."""
    if len(text) <= max_length:
        return text
    cut = text[:max_length]
    sentence_end = max(cut.rfind("."), cut.rfind("?"), cut.rfind("!"))
    if sentence_end > max_length * 0.7:
        return text[: sentence_end + 1]
    head = text[: max_length - 3]
    last_space = head.rfind(" ")
    if last_space > 0:
        return head[:last_space] + "..."
    return head + "..."


def format_natural(
    ad: Dict[str, Any],
    style: str = "conversational",
    user_context: Optional[str] = None,
    max_length: Optional[int] = None,
    include_disclosure: bool = True,
) -> FormattedAd:
    if style not in STYLES:
        raise ValueError(f"Unknown style: {style!r}")
    s = _suggestion(ad, "format_natural")
    title, body = s.get("title", ""), s.get("body", "")

    if style == "conversational":
        intro = (
            "Based on what you mentioned, I found something that might help: "
            if user_context
            else "I found something that might be useful: "
        )
        text = f"{intro}**{title}**. {body}"
    elif style == "helpful":
        intro = (
            "For your situation, here's a relevant service: "
            if user_context
            else "Here's a service you might find helpful: "
        )
        text = f"{intro}**{title}** - {body}"
    else:
        text = f"**{title}**\n{body}"

    if include_disclosure:
        disclosure = ad.get("disclosure") or {}
        text = f"{text}\n\n_{disclosure.get('label', 'Sponsored')}_ by {disclosure.get('sponsor_name', '')}"

    if max_length and len(text) > max_length:
        text = truncate_gracefully(text, max_length)
    return _carry_over(ad, s, text)


def format_inline_mention(ad: Dict[str, Any]) -> FormattedAd:
    """Short ``Title (Sponsored)`` reference for use inside a sentence."""
    s = _suggestion(ad, "format_inline_mention")
    label = (ad.get("disclosure") or {}).get("label", "Sponsored")
    return _carry_over(ad, s, f"{s.get('title', '')} ({label})")


def validate_ad_fits(
    ad: Dict[str, Any],
    max_title_chars: Optional[int] = None,
    max_body_chars: Optional[int] = None,
    max_cta_chars: Optional[int] = None,
) -> FitCheck:
    if ad.get("unit_type") != "sponsored_suggestion":
        return FitCheck(fits=True)
    s = ad["suggestion"]
    violations = []
    for name, key, limit in (
        ("Title", "title", max_title_chars),
        ("Body", "body", max_body_chars),
        ("CTA", "cta", max_cta_chars),
    ):
        size = len(s.get(key, ""))
        if limit and size > limit:
            violations.append(f"{name} too long: {size} chars (max {limit})")
    return FitCheck(fits=not violations, violations=violations)
