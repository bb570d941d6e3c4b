"""The tool catalogue, expressed against a ProjectionSession.

Each function is one named operation. Reads return the live entity (or a
summary built from it); mutations go through ``MutationOrchestrator`` so that
validation always precedes writes and every success is committed.
"""
import copy
import logging
from typing import Any, Dict, List, NamedTuple, Tuple

from .document import (
    ASSETS,
    DEBTS,
    DEFAULT_END,
    DEFAULT_START,
    INVESTMENT_ACCOUNTS,
    SAVINGS_ACCOUNTS,
    Entity,
    display_name,
    plan_block,
    plan_collection,
    today_collection,
)
from .errors import InvariantViolationError, NotFoundError, ValidationError
from .locator import (
    find_account,
    find_account_ref,
    find_debt,
    find_plan,
    index_in_collection,
    require_in_collection,
)
from .mutations import MutationOrchestrator
from .session import ProjectionSession, now_ms

logger = logging.getLogger(__name__)


class PlanEventKind(NamedTuple):
    collection: str
    label: str
    id_prefix: str
    update_fields: Tuple[str, ...]


INCOME = PlanEventKind("income", "Income", "income", ("amount", "name", "frequency", "start", "end"))
EXPENSE = PlanEventKind("expenses", "Expense", "expense", ("amount", "name", "frequency", "start", "end"))
PRIORITY = PlanEventKind(
    "priorities",
    "Priority",
    "priority",
    (
        "amount",
        "name",
        "amountType",
        "mode",
        "contribution",
        "contributionType",
        "employerMatch",
        "employerMatchLimit",
        "start",
        "end",
    ),
)
MILESTONE = PlanEventKind("milestones", "Milestone", "milestone", ("name", "criteria"))

PLAN_EVENT_KINDS = {kind.id_prefix: kind for kind in (INCOME, EXPENSE, PRIORITY, MILESTONE)}

PERSON_FIELDS = {"name": "yourName", "birthYear": "birthYear", "birthMonth": "birthMonth", "age": "age"}
SPOUSE_FIELDS = {
    "name": "spouseName",
    "birthYear": "spouseBirthYear",
    "birthMonth": "spouseBirthMonth",
    "age": "spouseAge",
}

DEBT_UPDATE_FIELDS = ("amount", "interestRate", "monthlyPayment")
ASSET_UPDATE_FIELDS = ("amount", "balance")
PLAN_VARIABLE_FIELDS = (
    "loopYear",
    "investmentReturn",
    "inflation",
    "dividendRate",
    "filingStatus",
    "effectiveIncomeTaxRate",
    "capGainsTaxRate",
)
WITHDRAWAL_STRATEGY_FIELDS = ("strategy", "enabled", "start")
MONTECARLO_FIELDS = ("trials", "mode")
PROGRESS_FIELDS = ("netWorth", "savings", "taxable", "taxDeferred", "taxFree", "debt")
PRIORITY_OPTIONAL_FIELDS = (
    "accountId",
    "debtId",
    "amount",
    "amountType",
    "contribution",
    "contributionType",
    "employerMatch",
    "employerMatchLimit",
)


def _required(payload: Dict[str, Any], key: str) -> Any:
    if payload.get(key) is None:
        raise ValidationError(key, "a value (required)", None)
    return payload[key]


def _sum(entities: List[Entity], key: str) -> float:
    return sum(entity.get(key) or 0 for entity in entities)


# --- Setup / overview ---

def set_data_file(session: ProjectionSession, path: str) -> str:
    absolute = session.load(path)
    return f"Data loaded from: {absolute}"


def get_overview(session: ProjectionSession) -> Dict[str, Any]:
    d = session.document
    today = d.get("today") or {}
    total_savings = _sum(today_collection(d, SAVINGS_ACCOUNTS), "balance")
    total_investments = _sum(today_collection(d, INVESTMENT_ACCOUNTS), "balance")
    total_debt = _sum(today_collection(d, DEBTS), "amount")
    total_asset_value = _sum(today_collection(d, ASSETS), "amount")
    total_asset_loans = _sum(today_collection(d, ASSETS), "balance")
    return {
        "meta": d.get("meta"),
        "personal": {
            "name": today.get("yourName"),
            "age": today.get("age"),
            "partnerStatus": today.get("partnerStatus"),
            "spouseName": today.get("spouseName"),
            "spouseAge": today.get("spouseAge"),
            "location": today.get("location"),
        },
        "summary": {
            "totalSavings": total_savings,
            "totalInvestments": total_investments,
            "totalLiquid": total_savings + total_investments,
            "totalDebt": total_debt,
            "totalAssetValue": total_asset_value,
            "totalAssetLoans": total_asset_loans,
            "estimatedNetWorth": total_savings + total_investments + total_asset_value - total_debt - total_asset_loans,
        },
        "planCount": len(d["plans"]),
        "planNames": [{"id": p.get("id"), "name": p.get("name"), "active": p.get("active")} for p in d["plans"]],
    }


def overview_summary(session: ProjectionSession) -> Dict[str, Any]:
    d = session.document
    total_savings = _sum(today_collection(d, SAVINGS_ACCOUNTS), "balance")
    total_investments = _sum(today_collection(d, INVESTMENT_ACCOUNTS), "balance")
    total_debt = _sum(today_collection(d, DEBTS), "amount")
    return {
        "totalSavings": total_savings,
        "totalInvestments": total_investments,
        "totalDebt": total_debt,
        "netWorth": total_savings + total_investments - total_debt,
        "planCount": len(d["plans"]),
    }


def list_plans(session: ProjectionSession) -> List[Dict[str, Any]]:
    return [
        {
            "id": p.get("id"),
            "name": p.get("name"),
            "active": p.get("active"),
            "icon": p.get("icon"),
            "lastUpdated": p.get("lastUpdated"),
            "milestonesCount": len(plan_collection(p, "milestones")),
            "incomeCount": len(plan_collection(p, "income")),
            "expenseCount": len(plan_collection(p, "expenses")),
            "prioritiesCount": len(plan_collection(p, "priorities")),
        }
        for p in session.document["plans"]
    ]


def get_plan(session: ProjectionSession, plan_id: str) -> Entity:
    return find_plan(session.document, plan_id)


# --- Person ---

def _update_person_fields(session: ProjectionSession, payload: Dict[str, Any], mapping: Dict[str, str]) -> Dict[str, Any]:
    today = session.document.setdefault("today", {})
    renamed = {mapping[k]: v for k, v in payload.items() if k in mapping}
    MutationOrchestrator(session).update(today, renamed, mapping.values())
    return {arg: today.get(key) for arg, key in mapping.items()}


def update_person(session: ProjectionSession, payload: Dict[str, Any]) -> Dict[str, Any]:
    return _update_person_fields(session, payload, PERSON_FIELDS)


def update_spouse(session: ProjectionSession, payload: Dict[str, Any]) -> Dict[str, Any]:
    return _update_person_fields(session, payload, SPOUSE_FIELDS)


# --- Accounts ---

def list_accounts(session: ProjectionSession) -> List[Dict[str, Any]]:
    d = session.document
    return [
        {**account, "category": "savings"} for account in today_collection(d, SAVINGS_ACCOUNTS)
    ] + [
        {**account, "category": "investment"} for account in today_collection(d, INVESTMENT_ACCOUNTS)
    ]


def get_account(session: ProjectionSession, account_id: str) -> Entity:
    return find_account(session.document, account_id)


def update_account_balance(session: ProjectionSession, account_id: str, balance: float) -> Entity:
    account = find_account(session.document, account_id)
    return MutationOrchestrator(session).update(account, {"balance": balance}, ("balance",))


def rename_account(session: ProjectionSession, account_id: str, name: str) -> Entity:
    account = find_account(session.document, account_id)
    return MutationOrchestrator(session).update(account, {"name": name}, ("name",))


def add_account(session: ProjectionSession, payload: Dict[str, Any]) -> Entity:
    orchestrator = MutationOrchestrator(session)
    account_type = _required(payload, "accountType")
    account = {
        "id": session.new_id("account"),
        "type": account_type,
        "name": _required(payload, "name"),
        "balance": _required(payload, "balance"),
        "owner": payload.get("owner") or "me",
    }
    account.update(orchestrator.prepare(payload, ("withdrawAge",)))
    key = SAVINGS_ACCOUNTS if account_type == "savings" else INVESTMENT_ACCOUNTS
    with orchestrator.guard(session.document["today"], key):
        return orchestrator.add(today_collection(session.document, key, create=True), account)


def delete_account(session: ProjectionSession, account_id: str) -> str:
    ref = find_account_ref(session.document, account_id)
    collection = today_collection(session.document, ref.collection_key)
    deleted = MutationOrchestrator(session).remove_at(collection, ref.index)
    return f"Deleted {ref.category} account: {display_name(deleted)}"


# --- Debts ---

def list_debts(session: ProjectionSession) -> List[Entity]:
    return today_collection(session.document, DEBTS)


def get_debt(session: ProjectionSession, debt_id: str) -> Entity:
    return find_debt(session.document, debt_id)


def update_debt(session: ProjectionSession, debt_id: str, payload: Dict[str, Any]) -> Entity:
    debt = find_debt(session.document, debt_id)
    return MutationOrchestrator(session).update(debt, payload, DEBT_UPDATE_FIELDS)


def add_debt(session: ProjectionSession, payload: Dict[str, Any]) -> Entity:
    debt = {
        "id": session.new_id("debt"),
        "type": "debt",
        "subtype": _required(payload, "debtType"),
        "name": _required(payload, "name"),
        "amount": _required(payload, "amount"),
        "owner": payload.get("owner") or "me",
    }
    orchestrator = MutationOrchestrator(session)
    debt.update(orchestrator.prepare(payload, ("interestRate", "monthlyPayment")))
    with orchestrator.guard(session.document["today"], DEBTS):
        return orchestrator.add(today_collection(session.document, DEBTS, create=True), debt)


def delete_debt(session: ProjectionSession, debt_id: str) -> str:
    deleted = MutationOrchestrator(session).remove(today_collection(session.document, DEBTS), debt_id, "Debt")
    return f"Deleted debt: {display_name(deleted)}"


# --- Assets ---

def list_assets(session: ProjectionSession) -> List[Entity]:
    return today_collection(session.document, ASSETS)


def get_asset(session: ProjectionSession, asset_id: str) -> Entity:
    return require_in_collection(today_collection(session.document, ASSETS), asset_id, "Asset")


def update_asset(session: ProjectionSession, asset_id: str, payload: Dict[str, Any]) -> Entity:
    asset = get_asset(session, asset_id)
    return MutationOrchestrator(session).update(asset, payload, ASSET_UPDATE_FIELDS)


def add_asset(session: ProjectionSession, payload: Dict[str, Any]) -> Entity:
    asset = {
        "id": session.new_id("asset"),
        "type": _required(payload, "assetType"),
        "name": _required(payload, "name"),
        "amount": _required(payload, "amount"),
        "owner": payload.get("owner") or "me",
    }
    orchestrator = MutationOrchestrator(session)
    asset.update(orchestrator.prepare(payload, ("balance",)))
    with orchestrator.guard(session.document["today"], ASSETS):
        return orchestrator.add(today_collection(session.document, ASSETS, create=True), asset)


def delete_asset(session: ProjectionSession, asset_id: str) -> str:
    deleted = MutationOrchestrator(session).remove(today_collection(session.document, ASSETS), asset_id, "Asset")
    return f"Deleted asset: {display_name(deleted)}"


# --- Plan events and milestones ---

def list_plan_events(session: ProjectionSession, plan_id: str, kind: PlanEventKind) -> List[Entity]:
    plan = find_plan(session.document, plan_id)
    return plan_collection(plan, kind.collection)


def get_plan_event(session: ProjectionSession, plan_id: str, kind: PlanEventKind, entity_id: str) -> Entity:
    plan = find_plan(session.document, plan_id)
    return require_in_collection(plan_collection(plan, kind.collection), entity_id, kind.label)


def update_plan_event(
    session: ProjectionSession,
    plan_id: str,
    kind: PlanEventKind,
    entity_id: str,
    payload: Dict[str, Any],
) -> Entity:
    plan = find_plan(session.document, plan_id)
    entity = require_in_collection(plan_collection(plan, kind.collection), entity_id, kind.label)
    return MutationOrchestrator(session).update(entity, payload, kind.update_fields, plan=plan)


def delete_plan_event(session: ProjectionSession, plan_id: str, kind: PlanEventKind, entity_id: str) -> str:
    plan = find_plan(session.document, plan_id)
    deleted = MutationOrchestrator(session).remove(plan_collection(plan, kind.collection), entity_id, kind.label)
    return f"Deleted {kind.label.lower()}: {display_name(deleted)}"


def _add_plan_event(
    session: ProjectionSession,
    plan_id: str,
    kind: PlanEventKind,
    entity: Entity,
    payload: Dict[str, Any],
    optional_fields: Tuple[str, ...],
) -> Entity:
    plan = find_plan(session.document, plan_id)
    orchestrator = MutationOrchestrator(session)
    staged = orchestrator.prepare(payload, optional_fields, plan=plan)
    new_entity = {"id": session.new_id(kind.id_prefix), **entity, **staged}
    with orchestrator.guard(plan, kind.collection):
        return orchestrator.add(plan_collection(plan, kind.collection, create=True), new_entity)


def add_income(session: ProjectionSession, plan_id: str, payload: Dict[str, Any]) -> Entity:
    income = {
        "type": _required(payload, "type"),
        "name": _required(payload, "name"),
        "amount": _required(payload, "amount"),
        "amountType": "today$",
        "owner": payload.get("owner") or "me",
        "frequency": "yearly",
        "start": dict(DEFAULT_START),
        "end": dict(DEFAULT_END),
    }
    return _add_plan_event(session, plan_id, INCOME, income, payload, ("frequency", "start", "end"))


def add_expense(session: ProjectionSession, plan_id: str, payload: Dict[str, Any]) -> Entity:
    expense = {
        "type": _required(payload, "type"),
        "name": _required(payload, "name"),
        "amount": _required(payload, "amount"),
        "amountType": "today$",
        "frequency": "yearly",
        "spendingType": payload.get("spendingType") or "discretionary",
        "start": dict(DEFAULT_START),
        "end": dict(DEFAULT_END),
    }
    return _add_plan_event(session, plan_id, EXPENSE, expense, payload, ("frequency", "start", "end"))


def add_priority(session: ProjectionSession, plan_id: str, payload: Dict[str, Any]) -> Entity:
    priority = {
        "type": _required(payload, "type"),
        "name": _required(payload, "name"),
        "owner": payload.get("owner") or "me",
        "mode": payload.get("mode") or "contribution",
        "start": dict(DEFAULT_START),
        "end": dict(DEFAULT_END),
    }
    return _add_plan_event(
        session, plan_id, PRIORITY, priority, payload, PRIORITY_OPTIONAL_FIELDS + ("start", "end")
    )


def add_milestone(session: ProjectionSession, plan_id: str, payload: Dict[str, Any]) -> Entity:
    milestone = {"name": _required(payload, "name"), "removable": True}
    return _add_plan_event(session, plan_id, MILESTONE, milestone, payload, ("icon", "color", "criteria"))


# --- Plan configuration blocks ---

def get_plan_block(session: ProjectionSession, plan_id: str, key: str) -> Dict[str, Any]:
    plan = find_plan(session.document, plan_id)
    return plan_block(plan, key) or {}


def update_plan_block(
    session: ProjectionSession,
    plan_id: str,
    key: str,
    payload: Dict[str, Any],
    fields: Tuple[str, ...],
) -> Dict[str, Any]:
    plan = find_plan(session.document, plan_id)
    orchestrator = MutationOrchestrator(session)
    staged = orchestrator.prepare(payload, fields, plan=plan)
    with orchestrator.guard(plan, key):
        return orchestrator.apply(plan_block(plan, key, create=True), staged)


def update_plan_variables(session: ProjectionSession, plan_id: str, payload: Dict[str, Any]) -> Dict[str, Any]:
    return update_plan_block(session, plan_id, "variables", payload, PLAN_VARIABLE_FIELDS)


def update_withdrawal_strategy(session: ProjectionSession, plan_id: str, payload: Dict[str, Any]) -> Dict[str, Any]:
    return update_plan_block(session, plan_id, "withdrawalStrategy", payload, WITHDRAWAL_STRATEGY_FIELDS)


def update_montecarlo_settings(session: ProjectionSession, plan_id: str, payload: Dict[str, Any]) -> Dict[str, Any]:
    return update_plan_block(session, plan_id, "montecarlo", payload, MONTECARLO_FIELDS)


# --- Progress ---

def get_progress(session: ProjectionSession) -> Dict[str, Any]:
    return session.document.get("progress") or {"data": []}


def add_progress_snapshot(session: ProjectionSession, payload: Dict[str, Any]) -> Dict[str, Any]:
    _required(payload, "netWorth")
    d = session.document
    snapshot = {"date": now_ms()}
    snapshot.update({k: payload[k] for k in PROGRESS_FIELDS if payload.get(k) is not None})
    with MutationOrchestrator(session).guard(d, "progress"):
        progress = d.setdefault("progress", {"data": []})
        progress.setdefault("data", []).append(snapshot)
        progress["lastUpdated"] = now_ms()
        session.commit()
    logger.info(f"Added progress snapshot (netWorth={snapshot['netWorth']})")
    return snapshot


# --- Plan management ---

def duplicate_plan(session: ProjectionSession, plan_id: str, new_name: str) -> Dict[str, Any]:
    source = find_plan(session.document, plan_id)
    new_plan = copy.deepcopy(source)
    new_plan["id"] = session.new_id("plan")
    new_plan["name"] = new_name
    new_plan["lastUpdated"] = now_ms()
    MutationOrchestrator(session).add(session.document["plans"], new_plan)
    return {"id": new_plan["id"], "name": new_plan["name"], "copiedFrom": source.get("name")}


def delete_plan(session: ProjectionSession, plan_id: str) -> str:
    plans = session.document["plans"]
    index = index_in_collection(plans, plan_id)
    if index < 0:
        raise NotFoundError("Plan", plan_id)
    if len(plans) == 1:
        raise InvariantViolationError("Cannot delete the last plan")
    deleted = MutationOrchestrator(session).remove_at(plans, index)
    return f"Deleted plan: {display_name(deleted)}"
