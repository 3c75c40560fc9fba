from __future__ import annotations

import argparse
import json
import logging
from typing import List, Optional

from rich.console import Console

from attentionmarket.config.settings import Settings
from attentionmarket.kit.errors import AttentionMarketError, ConfigError, ErrorKind
from attentionmarket.kit.payloads import PLATFORMS, create_opportunity, generate_uuid
from attentionmarket.tools.ads_client import AttentionMarketClient
from attentionmarket.tools.api_ping import api_ping

logger = logging.getLogger(__name__)

console = Console()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="attentionmarket", description="AttentionMarket agent ads API client")
    parser.add_argument("--base-url", help="Override ATTENTIONMARKET_BASE_URL")
    parser.add_argument("--timeout-ms", type=int, help="Per-attempt timeout in milliseconds")
    parser.add_argument("--max-retries", type=int, help="Retries after the first attempt")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")

    sub = parser.add_subparsers(dest="command", required=True)
    sub.add_parser("policy", help="Print the default policy")
    sub.add_parser("ping", help="Check connectivity and credentials")

    decide = sub.add_parser("decide", help="Request a sponsored unit for a taxonomy")
    decide.add_argument("--taxonomy", required=True)
    decide.add_argument("--query")
    decide.add_argument("--country", default="US")
    decide.add_argument("--language", default="en")
    decide.add_argument("--platform", default="web", choices=sorted(PLATFORMS))
    decide.add_argument("--surface", default="chat")
    decide.add_argument("--idempotency-key")

    signup = sub.add_parser("signup", help="Register a new agent")
    signup.add_argument("--email", required=True)
    signup.add_argument("--name", required=True)
    signup.add_argument("--environment", default="test", choices=["test", "live"])
    return parser


def _apply_overrides(args: argparse.Namespace, s: Settings) -> Settings:
    updates = {}
    if args.base_url:
        updates["attentionmarket_base_url"] = args.base_url.rstrip("/")
    if args.timeout_ms is not None:
        updates["attentionmarket_timeout_ms"] = args.timeout_ms
    if args.max_retries is not None:
        updates["attentionmarket_max_retries"] = args.max_retries
    return s.model_copy(update=updates) if updates else s


def _print(data) -> None:
    console.print_json(json.dumps(data))


def _run(args: argparse.Namespace, s: Settings) -> int:
    if args.command == "ping":
        ok, message = api_ping(s)
        console.print(message, style="green" if ok else "red")
        return 0 if ok else 1

    if args.command == "signup":
        request = {
            "owner_email": args.email,
            "agent_name": args.name,
            "sdk": "python",
            "environment": args.environment,
        }
        _print(
            AttentionMarketClient.signup_agent(
                request,
                base_url=s.attentionmarket_base_url,
                timeout_ms=s.attentionmarket_timeout_ms,
                max_retries=s.attentionmarket_max_retries,
            )
        )
        return 0

    client = AttentionMarketClient.from_settings(s)
    try:
        if args.command == "policy":
            _print(client.get_policy())
            return 0

        if not client.agent_id:
            raise ConfigError("ATTENTIONMARKET_AGENT_ID is required for decide")
        request = {
            "request_id": generate_uuid(),
            "agent_id": client.agent_id,
            "placement": {"type": "sponsored_suggestion", "surface": args.surface},
            "opportunity": create_opportunity(
                taxonomy=args.taxonomy,
                country=args.country,
                language=args.language,
                platform=args.platform,
                query=args.query,
            ),
        }
        logger.info("Requesting decision %s", request["request_id"])
        unit = client.decide(request, idempotency_key=args.idempotency_key)
        if unit is None:
            console.print("No fill", style="yellow")
        else:
            _print(unit)
        return 0
    finally:
        client.close()


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    s = Settings()
    logging.basicConfig(level=logging.DEBUG if args.verbose else s.log_level)

    try:
        return _run(args, _apply_overrides(args, s))
    except ConfigError as e:
        console.print(f"Config error: {e}", style="red")
        return 1
    except AttentionMarketError as e:
        if e.kind is ErrorKind.API:
            console.print(f"API error {e}", style="red")
        elif e.kind is ErrorKind.TIMEOUT:
            console.print("Request timed out; the ad service may be slow, try later.", style="red")
        else:
            console.print(f"Network error: {e}", style="red")
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
