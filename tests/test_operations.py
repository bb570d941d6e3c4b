import copy

import pytest

from projectionlab_mcp.projection import (
    InvariantViolationError,
    NotFoundError,
    PreconditionError,
    ProjectionSession,
    ReferentialIntegrityError,
    SequentialIdGenerator,
    ValidationError,
)
from projectionlab_mcp.projection import operations as ops


def _plan(session, plan_id="plan-1"):
    return ops.get_plan(session, plan_id)


def test_operations_require_loaded_data():
    with pytest.raises(PreconditionError) as excinfo:
        ops.list_accounts(ProjectionSession())

    assert "set_data_file" in str(excinfo.value)


def test_overview_summarizes_today_snapshot(session):
    overview = ops.get_overview(session)

    assert overview["personal"]["name"] == "Alex"
    assert overview["summary"]["totalLiquid"] == 185000
    assert overview["summary"]["estimatedNetWorth"] == 185000 + 650000 - 18000 - 420000
    assert overview["planCount"] == 2
    assert ops.overview_summary(session)["netWorth"] == 167000


def test_list_plans_counts_collections(session):
    plans = ops.list_plans(session)

    assert [p["id"] for p in plans] == ["plan-1", "plan-2"]
    assert plans[0]["incomeCount"] == 1
    assert plans[0]["milestonesCount"] == 1
    assert plans[1]["expenseCount"] == 0


def test_partial_update_leaves_other_fields_identical(session):
    before = copy.deepcopy(ops.get_plan_event(session, "plan-1", ops.INCOME, "inc-1"))

    updated = ops.update_plan_event(session, "plan-1", ops.INCOME, "inc-1", {"amount": 0})

    assert updated["amount"] == 0
    for key, value in before.items():
        if key != "amount":
            assert updated[key] == value
    assert session.revision == 1


def test_update_stores_validated_date_reference(session):
    updated = ops.update_plan_event(
        session, "plan-1", ops.EXPENSE, "exp-1", {"end": {"type": "year", "value": "2060", "modifier": "include"}}
    )

    assert updated["end"] == {"type": "year", "value": "2060", "modifier": "include"}


def test_failed_validation_writes_nothing(session):
    before = copy.deepcopy(session.document)

    with pytest.raises(ValidationError):
        ops.update_plan_event(
            session,
            "plan-1",
            ops.INCOME,
            "inc-1",
            {"amount": 1, "name": "Changed", "end": {"type": "year", "value": 2060}},
        )

    assert session.document == before
    assert session.revision == 0


def test_update_unknown_debt_is_not_found_and_leaves_revision(session):
    with pytest.raises(NotFoundError) as excinfo:
        ops.update_debt(session, "debt-404", {"amount": 1})

    assert str(excinfo.value) == "Debt not found: debt-404"
    assert session.revision == 0


def test_update_person_and_spouse_map_to_today_fields(session):
    assert ops.update_person(session, {"name": "Alexis", "age": 34})["name"] == "Alexis"
    ops.update_spouse(session, {"birthYear": 1994})

    today = session.document["today"]
    assert today["yourName"] == "Alexis"
    assert today["age"] == 34
    assert today["spouseBirthYear"] == 1994
    assert today["spouseName"] == "Sam"


def test_account_balance_rename_and_listing(session):
    ops.update_account_balance(session, "inv-2", 41000)
    ops.rename_account(session, "sav-1", "Rainy Day")

    accounts = {a["id"]: a for a in ops.list_accounts(session)}
    assert accounts["inv-2"]["balance"] == 41000
    assert accounts["sav-1"]["name"] == "Rainy Day"
    assert accounts["sav-1"]["category"] == "savings"
    assert "category" not in session.document["today"]["savingsAccounts"][0]


def test_add_account_routes_by_type(session):
    savings = ops.add_account(session, {"name": "Vacation", "balance": 500, "accountType": "savings"})
    roth = ops.add_account(
        session,
        {
            "name": "Roth",
            "balance": 7000,
            "accountType": "roth-ira",
            "owner": "spouse",
            "withdrawAge": {"type": "milestone", "value": "retirement"},
        },
    )

    assert savings["id"] == "account-1"
    assert savings["owner"] == "me"
    assert session.document["today"]["savingsAccounts"][-1] is savings
    assert session.document["today"]["investmentAccounts"][-1] is roth
    assert roth["withdrawAge"] == {"type": "milestone", "value": "retirement"}


def test_delete_account_reports_category(session):
    assert ops.delete_account(session, "inv-1") == "Deleted investment account: Work 401k"
    with pytest.raises(NotFoundError):
        ops.get_account(session, "inv-1")


def test_debt_lifecycle(session):
    debt = ops.add_debt(session, {"name": "Visa", "debtType": "credit-card", "amount": 2500, "interestRate": 22.9})

    assert debt["type"] == "debt"
    assert debt["subtype"] == "credit-card"
    assert debt["interestRate"] == 22.9
    assert "monthlyPayment" not in debt

    ops.update_debt(session, debt["id"], {"monthlyPayment": 100})
    assert ops.get_debt(session, debt["id"])["monthlyPayment"] == 100
    assert ops.delete_debt(session, debt["id"]) == "Deleted debt: Visa"


def test_asset_lifecycle(session):
    asset = ops.add_asset(session, {"name": "Car", "assetType": "car", "amount": 30000})
    ops.update_asset(session, asset["id"], {"balance": 12000})

    assert ops.get_asset(session, asset["id"])["balance"] == 12000
    assert ops.delete_asset(session, asset["id"]) == "Deleted asset: Car"
    with pytest.raises(NotFoundError):
        ops.delete_asset(session, asset["id"])


def test_add_income_applies_defaults(session):
    income = ops.add_income(session, "plan-2", {"type": "rental", "name": "Duplex", "amount": 24000})

    assert income["id"] == "income-1"
    assert income["frequency"] == "yearly"
    assert income["start"] == {"type": "keyword", "value": "now"}
    assert income["end"] == {"type": "keyword", "value": "endOfPlan"}
    assert ops.list_plan_events(session, "plan-2", ops.INCOME) == [income]


def test_add_expense_creates_missing_container(session):
    expense = ops.add_expense(
        session,
        "plan-2",
        {"type": "healthcare", "name": "Insurance", "amount": 8000, "start": {"type": "year", "value": "2030"}},
    )

    assert session.document["plans"][1]["expenses"] == {"events": [expense]}
    assert expense["spendingType"] == "discretionary"
    assert expense["start"] == {"type": "year", "value": "2030"}


def test_add_priority_keeps_optional_targets(session):
    priority = ops.add_priority(
        session,
        "plan-1",
        {"type": "debt", "name": "Pay Loan", "debtId": "debt-1", "contribution": 500},
    )

    assert priority["debtId"] == "debt-1"
    assert priority["mode"] == "contribution"
    assert "accountId" not in priority


def test_add_milestone_checks_criteria_against_plan(session):
    milestone = ops.add_milestone(
        session,
        "plan-1",
        {"name": "FIRE", "criteria": [{"type": "netWorth", "value": 2500000}, {"type": "account", "value": 1, "refId": "sav-1"}]},
    )
    assert milestone["removable"] is True

    with pytest.raises(ReferentialIntegrityError):
        ops.add_milestone(
            session, "plan-1", {"name": "Bad", "criteria": [{"type": "milestone", "value": "x", "refId": "nope"}]}
        )
    assert len(ops.list_plan_events(session, "plan-1", ops.MILESTONE)) == 2


def test_delete_plan_event_messages(session):
    assert ops.delete_plan_event(session, "plan-1", ops.PRIORITY, "pri-1") == "Deleted priority: Max 401k"
    with pytest.raises(NotFoundError) as excinfo:
        ops.delete_plan_event(session, "plan-1", ops.MILESTONE, "ms-404")

    assert str(excinfo.value) == "Milestone not found: ms-404"


def test_plan_blocks_read_and_update(session):
    assert ops.get_plan_block(session, "plan-2", "variables") == {}
    assert "variables" not in session.document["plans"][1]

    variables = ops.update_plan_variables(session, "plan-2", {"loopYear": 2090, "inflation": 2.5})
    assert variables == {"loopYear": 2090, "inflation": 2.5}

    strategy = ops.update_withdrawal_strategy(
        session, "plan-1", {"enabled": False, "start": {"type": "milestone", "value": "fire"}}
    )
    assert strategy == {"strategy": "initial-%", "enabled": False, "start": {"type": "milestone", "value": "fire"}}

    assert ops.update_montecarlo_settings(session, "plan-1", {"trials": 5000})["mode"] == "historical"


def test_invalid_withdrawal_start_does_not_create_block(session):
    with pytest.raises(ValidationError):
        ops.update_withdrawal_strategy(session, "plan-2", {"start": {"type": "keyword", "value": "soon"}})

    assert "withdrawalStrategy" not in session.document["plans"][1]


def test_progress_snapshot_appends(session):
    snapshot = ops.add_progress_snapshot(session, {"netWorth": 175000, "debt": 18000})

    data = ops.get_progress(session)["data"]
    assert data[-1] is snapshot
    assert snapshot["netWorth"] == 175000
    assert "savings" not in snapshot
    assert len(data) == 2


def test_duplicate_plan_is_independent(export_document):
    session = ProjectionSession.from_document(export_document, id_generator=SequentialIdGenerator(start=10))

    result = ops.duplicate_plan(session, "plan-1", "What If")

    assert result == {"id": "plan-10", "name": "What If", "copiedFrom": "Base Plan"}
    copy_plan = ops.get_plan(session, "plan-10")
    assert copy_plan["milestones"] == _plan(session)["milestones"]
    copy_plan["income"]["events"][0]["amount"] = 1

    assert _plan(session)["income"]["events"][0]["amount"] == 150000
    assert len(session.document["plans"]) == 3


def test_delete_plan_guards_last_plan(session):
    with pytest.raises(NotFoundError):
        ops.delete_plan(session, "plan-404")

    assert ops.delete_plan(session, "plan-2") == "Deleted plan: Early Retirement"
    with pytest.raises(InvariantViolationError) as excinfo:
        ops.delete_plan(session, "plan-1")

    assert str(excinfo.value) == "Cannot delete the last plan"
    assert len(session.document["plans"]) == 1


def test_update_priority_can_rename(session):
    updated = ops.update_plan_event(session, "plan-1", ops.PRIORITY, "pri-1", {"name": "Max 401k (2026)"})

    assert updated["name"] == "Max 401k (2026)"
    assert updated["contribution"] == 23000
