"""Builders for the request bodies the ads API expects.

The API speaks snake_case JSON, so the helpers return plain dicts that can be
handed straight to :class:`~attentionmarket.tools.ads_client.AttentionMarketClient`.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

PLATFORMS = {"web", "ios", "android", "desktop", "voice", "other"}
PLACEMENT_TYPES = {"sponsored_suggestion", "sponsored_block", "sponsored_tool"}
DATA_POLICIES = {"coarse_only", "none", "extended"}

_OPTIONAL_CONSTRAINTS = ("blocked_categories", "max_title_chars", "max_body_chars")


def generate_uuid() -> str:
    return str(uuid.uuid4())


def generate_timestamp() -> str:
    """Current UTC time as ISO 8601 with millisecond precision and a ``Z`` suffix."""
    now = datetime.now(tz=timezone.utc)
    return now.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def create_opportunity(
    taxonomy: str,
    country: str,
    language: str,
    platform: str,
    query: Optional[str] = None,
    region: Optional[str] = None,
    city: Optional[str] = None,
    constraints: Optional[Dict[str, Any]] = None,
    privacy: Optional[Dict[str, Any]] = None,
) -> Dict[str, Any]:
    """Build an opportunity with safe defaults.

    Defaults: one unit, ``sponsored_suggestion`` only, ``coarse_only`` data
    policy. Optional fields are left out unless supplied.
    """

    if platform not in PLATFORMS:
        raise ValueError(f"Unknown platform: {platform!r}")
    constraints = constraints or {}
    privacy = privacy or {}

    opportunity: Dict[str, Any] = {
        "intent": {"taxonomy": taxonomy},
        "context": {"country": country, "language": language, "platform": platform},
        "constraints": {
            "max_units": constraints.get("max_units", 1),
            "allowed_unit_types": list(constraints.get("allowed_unit_types") or ["sponsored_suggestion"]),
        },
        "privacy": {"data_policy": privacy.get("data_policy", "coarse_only")},
    }
    if query is not None:
        opportunity["intent"]["query"] = query
    if region is not None:
        opportunity["context"]["region"] = region
    if city is not None:
        opportunity["context"]["city"] = city
    for name in _OPTIONAL_CONSTRAINTS:
        if constraints.get(name) is not None:
            opportunity["constraints"][name] = constraints[name]
    return opportunity


def _create_event(
    event_type: str,
    agent_id: str,
    request_id: str,
    decision_id: str,
    unit_id: str,
    tracking_token: str,
    occurred_at: Optional[str] = None,
    metadata: Optional[Dict[str, Any]] = None,
) -> Dict[str, Any]:
    event: Dict[str, Any] = {
        "event_id": generate_uuid(),
        "occurred_at": occurred_at or generate_timestamp(),
        "agent_id": agent_id,
        "request_id": request_id,
        "decision_id": decision_id,
        "unit_id": unit_id,
        "event_type": event_type,
        "tracking_token": tracking_token,
    }
    if metadata is not None:
        event["metadata"] = metadata
    return event


def create_impression_event(
    agent_id: str,
    request_id: str,
    decision_id: str,
    unit_id: str,
    tracking_token: str,
    occurred_at: Optional[str] = None,
    metadata: Optional[Dict[str, Any]] = None,
) -> Dict[str, Any]:
    return _create_event(
        "impression", agent_id, request_id, decision_id, unit_id, tracking_token, occurred_at, metadata
    )


def create_click_event(
    agent_id: str,
    request_id: str,
    decision_id: str,
    unit_id: str,
    tracking_token: str,
    href: Optional[str] = None,
    occurred_at: Optional[str] = None,
    metadata: Optional[Dict[str, Any]] = None,
) -> Dict[str, Any]:
    """Click event; ``href`` is recorded in ``metadata`` when given."""
    if href is not None:
        metadata = {**(metadata or {}), "href": href}
    return _create_event(
        "click", agent_id, request_id, decision_id, unit_id, tracking_token, occurred_at, metadata
    )


def build_context(user_message: str, conversation_history: Optional[List[str]] = None, limit: int = 5) -> str:
    """Join the last ``limit`` history messages with the current message."""
    history = list(conversation_history or [])[-limit:] if limit > 0 else []
    return "\n".join(history + [user_message])
