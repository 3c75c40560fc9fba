from __future__ import annotations

import logging
import random
import time
from typing import Any, Callable, Dict, List, Optional

from attentionmarket.kit.errors import ConfigError
from attentionmarket.kit.payloads import create_click_event, create_impression_event, generate_uuid

logger = logging.getLogger(__name__)

MOCK_TTL_MS = 60000


def _unit(slug: str, sponsor: str, title: str, body: str, cta: str, action_url: str) -> Dict[str, Any]:
    return {
        "unit_id": f"unit_mock_{slug}_001",
        "unit_type": "sponsored_suggestion",
        "disclosure": {
            "label": "Sponsored",
            "explanation": "This is a paid advertisement",
            "sponsor_name": sponsor,
        },
        "tracking": {
            "token": f"trk_mock_{slug}_{generate_uuid()[:8]}",
            "impression_url": f"https://mock.attentionmarket.com/imp/{slug}",
            "click_url": f"https://mock.attentionmarket.com/click/{slug}",
        },
        "suggestion": {"title": title, "body": body, "cta": cta, "action_url": action_url},
    }


def _seed_units() -> Dict[str, Dict[str, Any]]:
    return {
        "local_services.movers.quote": _unit(
            "movers", "Brooklyn Premium Movers",
            "Professional Moving Services - Same Day Available",
            "Licensed & insured movers serving Brooklyn since 2015. Free on-site estimates, "
            "packing services, and storage options. Rated 4.9/5 stars.",
            "Get Free Quote", "https://demo-movers.example.com/quote?ref=am_mock",
        ),
        "local_services.restaurants.search": _unit(
            "restaurant", "Tony's Italian Kitchen",
            "Tony's Italian Kitchen - Authentic NYC Italian",
            "4.8/5 stars. Midtown Manhattan. Reservations available tonight. "
            "Try our signature wood-fired pizza and homemade pasta.",
            "Reserve Table", "https://demo-restaurant.example.com/reserve?ref=am_mock",
        ),
        "local_services.plumbers.quote": _unit(
            "plumber", "24/7 Emergency Plumbing",
            "Emergency Plumber - 30 Min Response Time",
            "Licensed plumbers available 24/7 across NYC. Free estimates. No overtime charges. "
            "Same-day service guaranteed.",
            "Call Now", "tel:+1-555-PLUMBER",
        ),
        "local_services.electricians.quote": _unit(
            "electrician", "Spark Electric Co",
            "Licensed Electrician - Free Safety Inspection",
            "Certified electricians for residential & commercial. Emergency service available. "
            "10-year warranty on all work.",
            "Schedule Service", "https://demo-electrician.example.com/schedule?ref=am_mock",
        ),
        "local_services.cleaners.quote": _unit(
            "cleaner", "Sparkle Clean NYC",
            "Professional Home Cleaning - $99 First Visit",
            "Eco-friendly cleaning products. Background-checked staff. "
            "Satisfaction guaranteed or your money back.",
            "Book Cleaning", "https://demo-cleaners.example.com/book?ref=am_mock",
        ),
        "shopping.electronics.search": _unit(
            "electronics", "TechDeals Pro",
            "Latest Laptops & Electronics - Up to 40% Off",
            "Free shipping on orders over $50. 30-day returns. Price match guarantee. Shop top brands.",
            "Shop Deals", "https://demo-electronics.example.com/deals?ref=am_mock",
        ),
    }


class MockAttentionMarketClient:
    """Offline stand-in for :class:`AttentionMarketClient` with canned ads.

    Same call surface as the real client; ``latency_ms`` and ``fill_rate``
    simulate a slow or partially filling ad server.
    """

    def __init__(
        self,
        latency_ms: int = 100,
        fill_rate: float = 1.0,
        verbose: bool = True,
        rng: Optional[random.Random] = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        if latency_ms < 0:
            raise ConfigError(f"latency_ms must be >= 0, got {latency_ms}")
        if not 0.0 <= fill_rate <= 1.0:
            raise ConfigError(f"fill_rate must be between 0.0 and 1.0, got {fill_rate}")
        self.latency_ms = latency_ms
        self.fill_rate = fill_rate
        self.verbose = verbose
        self._rng = rng or random.Random()
        self._sleep = sleep
        self._units = _seed_units()

    def _simulate_latency(self) -> None:
        if self.latency_ms > 0:
            self._sleep(self.latency_ms / 1000.0)

    def _log(self, message: str, *args: Any) -> None:
        if self.verbose:
            logger.info("[MockClient] " + message, *args)

    def _response(self, request: Dict[str, Any], units: List[Dict[str, Any]]) -> Dict[str, Any]:
        return {
            "request_id": request.get("request_id"),
            "decision_id": f"dec_mock_{generate_uuid()[:8]}",
            "status": "filled" if units else "no_fill",
            "ttl_ms": MOCK_TTL_MS,
            "units": units,
        }

    def decide_raw(self, request: Dict[str, Any], idempotency_key: Optional[str] = None) -> Dict[str, Any]:
        self._simulate_latency()
        taxonomy = request["opportunity"]["intent"]["taxonomy"]
        self._log("decide() taxonomy=%s placement=%s", taxonomy, (request.get("placement") or {}).get("type"))

        if self._rng.random() >= self.fill_rate:
            self._log("No fill (simulated by fill_rate=%s)", self.fill_rate)
            return self._response(request, [])
        unit = self._units.get(taxonomy)
        if unit is None:
            self._log("No mock data for taxonomy %s", taxonomy)
            return self._response(request, [])
        self._log("Returning mock ad from %s", unit["disclosure"]["sponsor_name"])
        return self._response(request, [unit])

    def decide(self, request: Dict[str, Any], idempotency_key: Optional[str] = None) -> Optional[Dict[str, Any]]:
        response = self.decide_raw(request, idempotency_key=idempotency_key)
        if response["status"] == "filled" and response["units"]:
            return response["units"][0]
        return None

    def track(self, event: Dict[str, Any]) -> Dict[str, Any]:
        self._simulate_latency()
        self._log("track() event_type=%s unit_id=%s", event.get("event_type"), event.get("unit_id"))
        return {"accepted": True}

    def track_impression(self, **params: Any) -> Dict[str, Any]:
        return self.track(create_impression_event(**params))

    def track_click(self, **params: Any) -> Dict[str, Any]:
        return self.track(create_click_event(**params))

    def get_policy(self) -> Dict[str, Any]:
        self._simulate_latency()
        self._log("get_policy()")
        return {
            "version": "1.0.0",
            "defaults": {"max_units_per_response": 1, "blocked_categories": []},
            "disclosure": {"required": True, "label": "Sponsored", "require_sponsor_name": True},
            "unit_rules": {},
        }

    def add_mock_unit(self, taxonomy: str, unit: Dict[str, Any]) -> None:
        self._units[taxonomy] = unit
        self._log("Added custom mock unit for %s", taxonomy)

    def available_taxonomies(self) -> List[str]:
        return list(self._units)

    def close(self) -> None:
        pass
