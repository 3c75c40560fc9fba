from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

import requests

from attentionmarket.config.settings import (
    DEFAULT_BASE_URL,
    DEFAULT_MAX_RETRIES,
    DEFAULT_TIMEOUT_MS,
    ClientConfig,
    Settings,
)
from attentionmarket.kit.errors import ConfigError
from attentionmarket.kit.payloads import (
    PLACEMENT_TYPES,
    build_context,
    create_click_event,
    create_impression_event,
    create_opportunity,
    generate_uuid,
)
from attentionmarket.tools.http_client import HTTPClient

logger = logging.getLogger(__name__)

HISTORY_LIMIT = 5


class AttentionMarketClient:
    """Agent-facing client for the decide, event and policy endpoints."""

    def __init__(
        self,
        api_key: str,
        agent_id: Optional[str] = None,
        base_url: str = DEFAULT_BASE_URL,
        timeout_ms: int = DEFAULT_TIMEOUT_MS,
        max_retries: int = DEFAULT_MAX_RETRIES,
        http: Optional[HTTPClient] = None,
    ):
        if not api_key:
            raise ConfigError("api_key is required")
        self.agent_id = agent_id
        self.http = http or HTTPClient(
            ClientConfig(
                base_url=base_url,
                api_key=api_key,
                timeout_ms=timeout_ms,
                max_retries=max_retries,
            )
        )

    @classmethod
    def from_settings(cls, settings: Settings) -> "AttentionMarketClient":
        cfg = settings.client_config()
        return cls(
            api_key=cfg.api_key or "",
            agent_id=settings.attentionmarket_agent_id or None,
            base_url=cfg.base_url,
            timeout_ms=cfg.timeout_ms,
            max_retries=cfg.max_retries,
        )

    def close(self) -> None:
        self.http.close()

    def decide_raw(self, request: Dict[str, Any], idempotency_key: Optional[str] = None) -> Dict[str, Any]:
        """Full decide response: ``request_id``, ``decision_id``, ``status``, ``ttl_ms``, ``units``."""
        return self.http.request("POST", "/v1/decide", body=request, idempotency_key=idempotency_key)

    def decide(self, request: Dict[str, Any], idempotency_key: Optional[str] = None) -> Optional[Dict[str, Any]]:
        """First ad unit of the decision, or ``None`` on no fill."""
        response = self.decide_raw(request, idempotency_key=idempotency_key)
        if response.get("status") == "no_fill":
            logger.debug("No fill for request %s", response.get("request_id"))
            return None
        units = response.get("units") or []
        return units[0] if units else None

    def decide_from_context(
        self,
        user_message: str,
        conversation_history: Optional[List[str]] = None,
        placement: str = "sponsored_suggestion",
        suggested_category: Optional[str] = None,
        country: str = "US",
        language: str = "en",
        platform: str = "web",
        min_quality_score: Optional[float] = None,
        allowed_categories: Optional[List[str]] = None,
        blocked_categories: Optional[List[str]] = None,
        blocked_advertisers: Optional[List[str]] = None,
        idempotency_key: Optional[str] = None,
    ) -> Optional[Dict[str, Any]]:
        """Ask for an ad using the conversation instead of a hand-picked taxonomy.

        Only the last five history messages are sent. ``allowed_categories``
        takes precedence over ``blocked_categories`` on the server.
        """

        if not self.agent_id:
            raise ConfigError("agent_id is required for decide_from_context")
        if not user_message or not user_message.strip():
            raise ValueError("user_message must not be empty")
        if placement not in PLACEMENT_TYPES:
            raise ValueError(f"Unknown placement: {placement!r}")
        if min_quality_score is not None and not 0.0 <= min_quality_score <= 1.0:
            raise ValueError("min_quality_score must be between 0.0 and 1.0")

        request: Dict[str, Any] = {
            "request_id": generate_uuid(),
            "agent_id": self.agent_id,
            "placement": {"type": placement, "surface": "chat"},
            "opportunity": create_opportunity(
                taxonomy=suggested_category or "general",
                country=country,
                language=language,
                platform=platform,
                query=user_message,
                constraints={"allowed_unit_types": [placement]},
            ),
            "context": build_context(user_message, conversation_history, HISTORY_LIMIT),
            "user_intent": user_message,
        }
        controls = {
            "min_quality_score": min_quality_score,
            "allowed_categories": allowed_categories,
            "blocked_categories": blocked_categories,
            "blocked_advertisers": blocked_advertisers,
        }
        request.update({k: v for k, v in controls.items() if v is not None})
        return self.decide(request, idempotency_key=idempotency_key)

    def track(self, event: Dict[str, Any]) -> Dict[str, Any]:
        return self.http.request("POST", "/v1/event", body=event)

    def track_impression(self, **params: Any) -> Dict[str, Any]:
        return self.track(create_impression_event(**params))

    def track_click(self, **params: Any) -> Dict[str, Any]:
        return self.track(create_click_event(**params))

    def get_policy(self) -> Dict[str, Any]:
        return self.http.request("GET", "/v1/policy")

    @staticmethod
    def signup_agent(
        request: Dict[str, Any],
        base_url: str = DEFAULT_BASE_URL,
        timeout_ms: int = DEFAULT_TIMEOUT_MS,
        max_retries: int = DEFAULT_MAX_RETRIES,
        session: Optional[requests.Session] = None,
    ) -> Dict[str, Any]:
        """Register an agent. The endpoint is unauthenticated, so no API key is sent."""
        cfg = ClientConfig(base_url=base_url, timeout_ms=timeout_ms, max_retries=max_retries)
        with HTTPClient(cfg, session=session) as http:
            return http.request("POST", "/v1/agent/signup", body=request)
