"""Accessors and vocabulary for the projection export document.

The document is kept as the plain JSON structure it was loaded from so that a
load/save round trip leaves every field the tools do not touch exactly as it
was. These helpers only know where the collections live and how to create
them lazily.
"""
from typing import Any, Dict, List, Optional

Document = Dict[str, Any]
Entity = Dict[str, Any]

# --- Date references ---
DATE_REFERENCE_TYPES = ("keyword", "year", "date", "milestone")
DATE_KEYWORDS = ("now", "endOfPlan", "beforeCurrentYear", "never")
BOUNDARY_MODIFIERS = ("include", "exclude")
BUILTIN_MILESTONES = ("retirement", "spouseRetirement", "fire")

DEFAULT_START = {"type": "keyword", "value": "now"}
DEFAULT_END = {"type": "keyword", "value": "endOfPlan"}

# --- Milestone criteria ---
CRITERION_TYPES = ("year", "date", "milestone", "netWorth", "account", "totalDebt")

# --- Today snapshot collections ---
SAVINGS_ACCOUNTS = "savingsAccounts"
INVESTMENT_ACCOUNTS = "investmentAccounts"
DEBTS = "debts"
ASSETS = "assets"

# --- Plan collections ---
# Event lists are wrapped as {"events": [...]}, milestone lists are bare.
PLAN_EVENT_CONTAINERS = ("income", "expenses", "priorities")
PLAN_MILESTONE_LISTS = ("milestones", "computedMilestones")

PLAN_BLOCKS = ("variables", "withdrawalStrategy", "montecarlo")


def is_number(value: Any) -> bool:
    """JSON numbers only; booleans are not amounts."""
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def today_collection(document: Document, key: str, create: bool = False) -> List[Entity]:
    today = document.setdefault("today", {}) if create else document.get("today") or {}
    collection = today.get(key)
    if collection is None:
        if not create:
            return []
        collection = today[key] = []
    return collection


def plan_collection(plan: Entity, key: str, create: bool = False) -> List[Entity]:
    if key in PLAN_MILESTONE_LISTS:
        collection = plan.get(key)
        if collection is None:
            if not create:
                return []
            collection = plan[key] = []
        return collection

    if key not in PLAN_EVENT_CONTAINERS:
        raise KeyError(f"Unknown plan collection: {key}")
    container = plan.get(key)
    if container is None:
        if not create:
            return []
        container = plan[key] = {"events": []}
    events = container.get("events")
    if events is None:
        if not create:
            return []
        events = container["events"] = []
    return events


def plan_block(plan: Entity, key: str, create: bool = False) -> Optional[Dict[str, Any]]:
    if key not in PLAN_BLOCKS:
        raise KeyError(f"Unknown plan block: {key}")
    block = plan.get(key)
    if block is None and create:
        block = plan[key] = {}
    return block


def display_name(entity: Entity) -> Any:
    return entity.get("name") or entity.get("title") or entity.get("id")
