from __future__ import annotations
from typing import Optional, Tuple

from attentionmarket.config.settings import Settings
from attentionmarket.kit.errors import APIRequestError, AttentionMarketError, ConfigError
from attentionmarket.tools.ads_client import AttentionMarketClient


def api_ping(s: Optional[Settings] = None, client: Optional[AttentionMarketClient] = None) -> Tuple[bool, str]:
    """
    Lightweight connectivity check against the ads API:
    - GET /v1/policy
    Returns (ok, message).
    """
    try:
        client = client or AttentionMarketClient.from_settings(s or Settings())
    except ConfigError as e:
        return False, f"AttentionMarket config error: {e}"
    try:
        policy = client.get_policy()
    except APIRequestError as e:
        if e.status_code in (401, 403):
            return False, f"AttentionMarket auth failed ({e.status_code})."
        return False, f"AttentionMarket error: {e}"
    except AttentionMarketError as e:
        return False, f"AttentionMarket {e.kind.value}: {e}"
    version = policy.get("version") if isinstance(policy, dict) else None
    return True, f"AttentionMarket OK (policy {version or 'unknown'})"
