"""Helpers for the dotted ``vertical.category.subcategory[.intent]`` taxonomy."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import List, Optional

INTENTS = ("research", "compare", "quote", "trial", "book", "apply", "consultation")

PART_RX = re.compile(r"^[a-z0-9_]+$")

# Checked in order; the first match wins.
INTENT_RULES = [
    ("research", re.compile(r"what is|how does|how do|learn about|tell me about|explain|understand|definition")),
    ("compare", re.compile(r"best|compare|vs|versus|which|top|options|alternatives|review|recommend")),
    ("quote", re.compile(r"price|cost|how much|quote|estimate|pricing|rate|afford")),
    ("trial", re.compile(r"try|demo|free trial|test|preview|sample")),
    ("book", re.compile(r"book|schedule|appointment|reserve|set up|make appointment")),
    ("apply", re.compile(r"apply|sign up|get started|register|enroll|join")),
    ("consultation", re.compile(r"talk to|speak with|consult|meet with|call|contact|discuss")),
]

SUGGESTION_RULES = [
    (re.compile(r"car|auto|vehicle|drive|driving"), [
        ("insurance", "auto", "full_coverage"),
        ("insurance", "auto", "liability"),
    ]),
    (re.compile(r"health|medical|doctor"), [("insurance", "health", "individual")]),
    (re.compile(r"life insurance"), [("insurance", "life", "term")]),
    (re.compile(r"crm|customer|sales|lead"), [("business", "saas", "crm")]),
    (re.compile(r"online store|ecommerce|sell online"), [("business", "ecommerce", "platform")]),
    (re.compile(r"project management|task|team"), [("business", "saas", "project_management")]),
    (re.compile(r"accident|injury|hurt"), [("legal", "personal_injury", "accident")]),
    (re.compile(r"divorce|custody|family law"), [("legal", "family_law", "divorce")]),
    (re.compile(r"dentist|teeth|dental"), [("healthcare", "dental", "general")]),
    (re.compile(r"therapist|therapy|counseling"), [("healthcare", "mental_health", "therapy")]),
    (re.compile(r"mover|moving|relocate"), [("home_services", "moving", "local")]),
    (re.compile(r"plumber|plumbing|leak"), [("home_services", "plumbing", "emergency")]),
    (re.compile(r"clean|cleaning|maid"), [("home_services", "cleaning", "regular")]),
]


@dataclass
class ParsedTaxonomy:
    vertical: str
    category: str
    subcategory: str
    full: str
    intent: Optional[str] = None


def build_taxonomy(vertical: str, category: str, subcategory: str, intent: Optional[str] = None) -> str:
    parts = [vertical, category, subcategory]
    if intent:
        parts.append(intent)
    return ".".join(parts)


def detect_intent(query: str) -> str:
    """Guess where the user is in the buying journey. Defaults to ``compare``."""
    lowered = query.lower()
    for intent, rx in INTENT_RULES:
        if rx.search(lowered):
            return intent
    return "compare"


def is_valid_taxonomy(taxonomy: str) -> bool:
    """Three or four lowercase ``[a-z0-9_]`` parts; a fourth part must be a known intent."""
    parts = taxonomy.split(".")
    if not 3 <= len(parts) <= 4:
        return False
    if len(parts) == 4 and parts[3] not in INTENTS:
        return False
    return all(PART_RX.match(p) for p in parts)


def parse_taxonomy(taxonomy: str) -> Optional[ParsedTaxonomy]:
    if not is_valid_taxonomy(taxonomy):
        return None
    parts = taxonomy.split(".")
    return ParsedTaxonomy(
        vertical=parts[0],
        category=parts[1],
        subcategory=parts[2],
        full=taxonomy,
        intent=parts[3] if len(parts) == 4 else None,
    )


def get_base_taxonomy(taxonomy: str) -> Optional[str]:
    parsed = parse_taxonomy(taxonomy)
    if parsed is None:
        return None
    return build_taxonomy(parsed.vertical, parsed.category, parsed.subcategory)


def matches_taxonomy(first: str, second: str) -> bool:
    """Same vertical, category and subcategory; intent is ignored."""
    base = get_base_taxonomy(first)
    return base is not None and base == get_base_taxonomy(second)


def get_vertical(taxonomy: str) -> Optional[str]:
    parsed = parse_taxonomy(taxonomy)
    return parsed.vertical if parsed else None


def suggest_taxonomies(query: str) -> List[str]:
    """Keyword-based taxonomy suggestions, each carrying the detected intent."""
    lowered = query.lower()
    intent = detect_intent(query)
    out: List[str] = []
    for rx, bases in SUGGESTION_RULES:
        if rx.search(lowered):
            out.extend(build_taxonomy(*base, intent=intent) for base in bases)
    return out
