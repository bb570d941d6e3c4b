# projectionlab_mcp/server.py
"""
MCP Server exposing a ProjectionLab export as named tools.

Every tool takes a single pydantic input model; argument names on the wire are
camelCase (``planId``, ``incomeId``) to match the export's own field names.
"""
import logging
import sys
from typing import Any, Callable, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel
from mcp.server.fastmcp import FastMCP
from mcp.server.fastmcp.exceptions import ToolError

from . import config
from .projection import ProjectionError, ProjectionSession, make_id_generator
from .projection import operations as ops

logger = logging.getLogger(__name__)

Number = Union[int, float]
Owner = Literal["me", "spouse", "joint"]

DATE_REFERENCE_HELP = (
    "DateReference object {type, value, modifier?}. type='year' with value='2059', "
    "type='keyword' with value in now/endOfPlan/beforeCurrentYear/never, type='date' with an ISO date "
    "('2027', '2027-06', '2027-06-01'), or type='milestone' with a milestone ID or retirement/spouseRetirement/fire. "
    "modifier is a whole-year offset integer or 'include'/'exclude'."
)
CRITERIA_HELP = (
    "Conditions that trigger the milestone, combined left to right with 'logic' ('and'/'or'). Each item: "
    "type (year/date/milestone/netWorth/account/totalDebt), value (date string for year/date, milestone ID for "
    "milestone, number for netWorth/account/totalDebt), valueType ($, today$, expenses, %), operator "
    "(>=, <=, ==, >, <), modifier (include/exclude), logic (and/or), refId (account, debt or milestone ID)."
)

session = ProjectionSession(
    id_generator=make_id_generator(config.PROJECTIONLAB_ID_STRATEGY),
    json_indent=config.PROJECTIONLAB_JSON_INDENT,
)

projection_mcp_server = FastMCP(
    name=config.PROJECTIONLAB_SERVER_NAME,
    instructions="Inspect and edit a ProjectionLab export: accounts, debts, assets, plans, events, milestones.",
)


def _call(tool_name: str, operation: Callable[..., Any], *args: Any) -> Any:
    """Run one operation against the session, mapping failures to a tool error."""
    try:
        result = operation(session, *args)
    except ProjectionError as e:
        logger.warning(f"{tool_name} rejected [{e.code}]: {e.message}")
        raise ToolError(e.message) from e
    except Exception as e:
        logger.error(f"{tool_name} failed unexpectedly: {e}", exc_info=True)
        raise ToolError(f"Unexpected error in {tool_name}: {e}") from e
    logger.debug(f"{tool_name} completed (revision {session.revision})")
    return result


# --- Pydantic Models ---
class ToolInput(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def payload(self, *identifiers: str) -> Dict[str, Any]:
        """Fields the caller actually supplied, keyed by their export names."""
        return self.model_dump(by_alias=True, exclude_unset=True, exclude=set(identifiers))


class EmptyInput(ToolInput):
    pass


class SetDataFileInput(ToolInput):
    path: str = Field(..., description="Absolute path to the ProjectionLab export JSON file")


class PlanInput(ToolInput):
    plan_id: str = Field(..., description="The plan ID")


class PersonInput(ToolInput):
    name: Optional[str] = Field(None, description="Person's name")
    birth_year: Optional[int] = Field(None, description="Birth year (e.g., 1992). Combined with plan loopYear to determine life expectancy")
    birth_month: Optional[int] = Field(None, description="Birth month (1-12)")
    age: Optional[int] = Field(None, description="Current age")


class AccountInput(ToolInput):
    account_id: str = Field(..., description="The account ID")


class UpdateAccountBalanceInput(AccountInput):
    balance: Number = Field(..., description="New balance")


class RenameAccountInput(AccountInput):
    name: str = Field(..., description="New account name")


class AddAccountInput(ToolInput):
    name: str = Field(..., description="Account name")
    balance: Number = Field(..., description="Initial balance")
    account_type: Literal["savings", "401k", "roth-ira", "traditional-ira", "hsa", "taxable", "529"] = Field(
        ..., description="Type of account"
    )
    owner: Optional[Owner] = Field(None, description="Account owner (defaults to 'me')")
    withdraw_age: Optional[Dict[str, Any]] = Field(None, description=f"When withdrawals may start. {DATE_REFERENCE_HELP}")


class DebtInput(ToolInput):
    debt_id: str = Field(..., description="The debt ID")


class UpdateDebtInput(DebtInput):
    amount: Optional[Number] = Field(None, description="New amount")
    interest_rate: Optional[Number] = Field(None, description="New interest rate")
    monthly_payment: Optional[Number] = Field(None, description="New monthly payment")


class AddDebtInput(ToolInput):
    name: str = Field(..., description="Debt name")
    debt_type: Literal["student-loans", "mortgage", "auto", "credit-card", "personal", "other"] = Field(
        ..., description="Type of debt"
    )
    amount: Number = Field(..., description="Current balance owed")
    interest_rate: Optional[Number] = Field(None, description="Annual interest rate (e.g., 6.5 for 6.5%)")
    monthly_payment: Optional[Number] = Field(None, description="Monthly payment amount")
    owner: Optional[Owner] = Field(None, description="Debt owner (defaults to 'me')")


class AssetInput(ToolInput):
    asset_id: str = Field(..., description="The asset ID")


class UpdateAssetInput(AssetInput):
    amount: Optional[Number] = Field(None, description="New current value")
    balance: Optional[Number] = Field(None, description="New loan balance")


class AddAssetInput(ToolInput):
    name: str = Field(..., description="Asset name")
    asset_type: Literal["car", "real-estate", "other"] = Field(..., description="Type of asset")
    amount: Number = Field(..., description="Current value")
    balance: Optional[Number] = Field(None, description="Loan balance (if financed)")
    owner: Optional[Owner] = Field(None, description="Asset owner (defaults to 'me')")


class TimedEventFields(ToolInput):
    start: Optional[Dict[str, Any]] = Field(None, description=f"When it starts. {DATE_REFERENCE_HELP}")
    end: Optional[Dict[str, Any]] = Field(None, description=f"When it ends. {DATE_REFERENCE_HELP}")


class IncomeInput(PlanInput):
    income_id: str = Field(..., description="The income event ID")


class UpdateIncomeInput(IncomeInput, TimedEventFields):
    amount: Optional[Number] = Field(None, description="New amount")
    name: Optional[str] = Field(None, description="New name")
    frequency: Optional[Literal["yearly", "monthly", "bi-weekly", "weekly", "quarterly", "once"]] = None


class AddIncomeInput(PlanInput, TimedEventFields):
    type: Literal["salary", "rsu", "social-security", "pension", "rental", "other"] = Field(..., description="Income type")
    name: str = Field(..., description="Income name")
    amount: Number = Field(..., description="Annual amount")
    owner: Optional[Owner] = Field(None, description="Owner")
    frequency: Optional[Literal["yearly", "monthly", "bi-weekly", "weekly", "quarterly", "once"]] = None


class ExpenseInput(PlanInput):
    expense_id: str = Field(..., description="The expense event ID")


class UpdateExpenseInput(ExpenseInput, TimedEventFields):
    amount: Optional[Number] = Field(None, description="New amount")
    name: Optional[str] = Field(None, description="New name")
    frequency: Optional[Literal["yearly", "monthly", "bi-weekly", "weekly", "quarterly", "once"]] = None


class AddExpenseInput(PlanInput, TimedEventFields):
    type: Literal["living-expenses", "debt", "charity", "education", "dependent-support", "healthcare", "other"] = Field(
        ..., description="Expense type"
    )
    name: str = Field(..., description="Expense name")
    amount: Number = Field(..., description="Annual amount")
    spending_type: Optional[Literal["essential", "discretionary", "flex"]] = Field(None, description="Spending category")
    frequency: Optional[Literal["yearly", "monthly", "bi-weekly", "weekly", "quarterly", "once"]] = None


class PriorityInput(PlanInput):
    priority_id: str = Field(..., description="The priority ID")


class PrioritySettings(TimedEventFields):
    amount: Optional[Number] = Field(None, description="Target amount for savings goals (e.g., 150000 for an Emergency Fund target)")
    amount_type: Optional[Literal["today$", "future$"]] = Field(None, description="How to interpret the target amount")
    mode: Optional[Literal["target", "contribution"]] = Field(None, description="Target amount or ongoing contributions")
    contribution: Optional[Number] = Field(None, description="Contribution amount per period")
    contribution_type: Optional[Literal["today$", "%"]] = Field(None, description="Fixed dollars or percentage")
    employer_match: Optional[Number] = Field(None, description="Employer match percentage")
    employer_match_limit: Optional[Number] = Field(None, description="Employer match limit")


class UpdatePriorityInput(PriorityInput, PrioritySettings):
    name: Optional[str] = Field(None, description="New name")


class AddPriorityInput(PlanInput, PrioritySettings):
    type: Literal[
        "401k", "roth-ira", "traditional-ira", "hsa", "529", "taxable", "savings", "debt", "asset", "mega-backdoor", "espp"
    ] = Field(..., description="Type of priority")
    name: str = Field(..., description="Priority name")
    account_id: Optional[str] = Field(None, description="Target account ID (for account-based priorities)")
    debt_id: Optional[str] = Field(None, description="Target debt ID (for debt payment priorities)")
    owner: Optional[Owner] = Field(None, description="Owner")


class MilestoneInput(PlanInput):
    milestone_id: str = Field(..., description="The milestone ID")


class UpdateMilestoneInput(MilestoneInput):
    name: Optional[str] = Field(None, description="New name")
    criteria: Optional[List[Dict[str, Any]]] = Field(None, description=CRITERIA_HELP)


class AddMilestoneInput(PlanInput):
    name: str = Field(..., description="Milestone name (e.g., 'Retirement', 'FIRE', 'Career Change')")
    icon: Optional[str] = Field(None, description="Icon identifier")
    color: Optional[str] = Field(None, description="Color for the milestone")
    criteria: Optional[List[Dict[str, Any]]] = Field(None, description=CRITERIA_HELP)


class UpdatePlanVariablesInput(PlanInput):
    loop_year: Optional[int] = Field(None, description="Plan end year, effectively life expectancy (e.g., 2088)")
    investment_return: Optional[Number] = Field(None, description="Expected investment return %")
    inflation: Optional[Number] = Field(None, description="Expected inflation %")
    dividend_rate: Optional[Number] = Field(None, description="Expected dividend rate %")
    filing_status: Optional[Literal["single", "joint", "married-separate", "head-of-household"]] = None
    effective_income_tax_rate: Optional[Number] = Field(None, description="Effective income tax rate %")
    cap_gains_tax_rate: Optional[Number] = Field(None, description="Capital gains tax rate %")


class UpdateWithdrawalStrategyInput(PlanInput):
    strategy: Optional[
        Literal["initial-%", "fixed-%", "fixed-amount", "1/N", "vpw", "kitces-ratchet", "clyatt-95%", "guyton-klinger"]
    ] = Field(None, description="Strategy type")
    enabled: Optional[bool] = Field(None, description="Enable/disable withdrawal strategy")
    start: Optional[Dict[str, Any]] = Field(None, description=f"When withdrawals start. {DATE_REFERENCE_HELP}")


class UpdateMonteCarloInput(PlanInput):
    trials: Optional[int] = Field(None, description="Number of simulation trials")
    mode: Optional[Literal["custom", "historical", "normal"]] = Field(None, description="Simulation mode")


class ProgressSnapshotInput(ToolInput):
    net_worth: Number = Field(..., description="Total net worth")
    savings: Optional[Number] = Field(None, description="Total in savings accounts")
    taxable: Optional[Number] = Field(None, description="Total in taxable accounts")
    tax_deferred: Optional[Number] = Field(None, description="Total in tax-deferred accounts (401k, Traditional IRA)")
    tax_free: Optional[Number] = Field(None, description="Total in tax-free accounts (Roth)")
    debt: Optional[Number] = Field(None, description="Total debt")


class DuplicatePlanInput(PlanInput):
    new_name: str = Field(..., description="Name for the new plan")


# --- Setup / Overview ---
@projection_mcp_server.tool(name="set_data_file", description="Set the path to the ProjectionLab export JSON file")
async def set_data_file_tool(input: SetDataFileInput) -> str:
    return _call("set_data_file", ops.set_data_file, input.path)


@projection_mcp_server.tool(
    name="get_overview",
    description="Get a high-level overview of the financial data including net worth summary, plan count, and personal info",
)
async def get_overview_tool(input: EmptyInput = EmptyInput()) -> Dict[str, Any]:
    return _call("get_overview", ops.get_overview)


@projection_mcp_server.tool(name="list_plans", description="List all financial plans with their basic info")
async def list_plans_tool(input: EmptyInput = EmptyInput()) -> List[Dict[str, Any]]:
    return _call("list_plans", ops.list_plans)


@projection_mcp_server.tool(name="get_plan", description="Get detailed information about a specific plan")
async def get_plan_tool(input: PlanInput) -> Dict[str, Any]:
    return _call("get_plan", ops.get_plan, input.plan_id)


# --- Person ---
@projection_mcp_server.tool(name="update_person", description="Update primary person's info (name, birth year/month, age)")
async def update_person_tool(input: PersonInput) -> Dict[str, Any]:
    return _call("update_person", ops.update_person, input.payload())


@projection_mcp_server.tool(name="update_spouse", description="Update spouse's info (name, birth year/month, age)")
async def update_spouse_tool(input: PersonInput) -> Dict[str, Any]:
    return _call("update_spouse", ops.update_spouse, input.payload())


# --- Accounts ---
@projection_mcp_server.tool(name="list_accounts", description="List all accounts (savings and investment) from the 'today' snapshot")
async def list_accounts_tool(input: EmptyInput = EmptyInput()) -> List[Dict[str, Any]]:
    return _call("list_accounts", ops.list_accounts)


@projection_mcp_server.tool(name="get_account", description="Get details of a specific account")
async def get_account_tool(input: AccountInput) -> Dict[str, Any]:
    return _call("get_account", ops.get_account, input.account_id)


@projection_mcp_server.tool(name="update_account_balance", description="Update the balance of an account")
async def update_account_balance_tool(input: UpdateAccountBalanceInput) -> Dict[str, Any]:
    return _call("update_account_balance", ops.update_account_balance, input.account_id, input.balance)


@projection_mcp_server.tool(name="rename_account", description="Rename a savings or investment account")
async def rename_account_tool(input: RenameAccountInput) -> Dict[str, Any]:
    return _call("rename_account", ops.rename_account, input.account_id, input.name)


@projection_mcp_server.tool(name="add_account", description="Add a new savings or investment account")
async def add_account_tool(input: AddAccountInput) -> Dict[str, Any]:
    return _call("add_account", ops.add_account, input.payload())


@projection_mcp_server.tool(name="delete_account", description="Delete a savings or investment account")
async def delete_account_tool(input: AccountInput) -> str:
    return _call("delete_account", ops.delete_account, input.account_id)


# --- Debts ---
@projection_mcp_server.tool(name="list_debts", description="List all debts from the 'today' snapshot")
async def list_debts_tool(input: EmptyInput = EmptyInput()) -> List[Dict[str, Any]]:
    return _call("list_debts", ops.list_debts)


@projection_mcp_server.tool(name="get_debt", description="Get details of a specific debt")
async def get_debt_tool(input: DebtInput) -> Dict[str, Any]:
    return _call("get_debt", ops.get_debt, input.debt_id)


@projection_mcp_server.tool(name="update_debt", description="Update a debt's properties")
async def update_debt_tool(input: UpdateDebtInput) -> Dict[str, Any]:
    return _call("update_debt", ops.update_debt, input.debt_id, input.payload("debt_id"))


@projection_mcp_server.tool(name="add_debt", description="Add a new debt (student loans, credit card, personal loan, etc.)")
async def add_debt_tool(input: AddDebtInput) -> Dict[str, Any]:
    return _call("add_debt", ops.add_debt, input.payload())


@projection_mcp_server.tool(name="delete_debt", description="Delete a debt")
async def delete_debt_tool(input: DebtInput) -> str:
    return _call("delete_debt", ops.delete_debt, input.debt_id)


# --- Assets ---
@projection_mcp_server.tool(name="list_assets", description="List all physical assets (real estate, cars, etc.) from the 'today' snapshot")
async def list_assets_tool(input: EmptyInput = EmptyInput()) -> List[Dict[str, Any]]:
    return _call("list_assets", ops.list_assets)


@projection_mcp_server.tool(name="get_asset", description="Get details of a specific asset")
async def get_asset_tool(input: AssetInput) -> Dict[str, Any]:
    return _call("get_asset", ops.get_asset, input.asset_id)


@projection_mcp_server.tool(name="update_asset", description="Update an asset's properties")
async def update_asset_tool(input: UpdateAssetInput) -> Dict[str, Any]:
    return _call("update_asset", ops.update_asset, input.asset_id, input.payload("asset_id"))


@projection_mcp_server.tool(name="add_asset", description="Add a new physical asset (real estate, car, etc.)")
async def add_asset_tool(input: AddAssetInput) -> Dict[str, Any]:
    return _call("add_asset", ops.add_asset, input.payload())


@projection_mcp_server.tool(name="delete_asset", description="Delete an asset")
async def delete_asset_tool(input: AssetInput) -> str:
    return _call("delete_asset", ops.delete_asset, input.asset_id)


# --- Income ---
@projection_mcp_server.tool(name="list_income", description="List all income events in a plan")
async def list_income_tool(input: PlanInput) -> List[Dict[str, Any]]:
    return _call("list_income", ops.list_plan_events, input.plan_id, ops.INCOME)


@projection_mcp_server.tool(name="get_income", description="Get details of a specific income event")
async def get_income_tool(input: IncomeInput) -> Dict[str, Any]:
    return _call("get_income", ops.get_plan_event, input.plan_id, ops.INCOME, input.income_id)


@projection_mcp_server.tool(name="update_income", description="Update an income event's properties including start/end timing")
async def update_income_tool(input: UpdateIncomeInput) -> Dict[str, Any]:
    payload = input.payload("plan_id", "income_id")
    return _call("update_income", ops.update_plan_event, input.plan_id, ops.INCOME, input.income_id, payload)


@projection_mcp_server.tool(name="add_income", description="Add a new income event to a plan")
async def add_income_tool(input: AddIncomeInput) -> Dict[str, Any]:
    return _call("add_income", ops.add_income, input.plan_id, input.payload("plan_id"))


@projection_mcp_server.tool(name="delete_income", description="Delete an income event from a plan")
async def delete_income_tool(input: IncomeInput) -> str:
    return _call("delete_income", ops.delete_plan_event, input.plan_id, ops.INCOME, input.income_id)


# --- Expenses ---
@projection_mcp_server.tool(name="list_expenses", description="List all expense events in a plan")
async def list_expenses_tool(input: PlanInput) -> List[Dict[str, Any]]:
    return _call("list_expenses", ops.list_plan_events, input.plan_id, ops.EXPENSE)


@projection_mcp_server.tool(name="get_expense", description="Get details of a specific expense event")
async def get_expense_tool(input: ExpenseInput) -> Dict[str, Any]:
    return _call("get_expense", ops.get_plan_event, input.plan_id, ops.EXPENSE, input.expense_id)


@projection_mcp_server.tool(name="update_expense", description="Update an expense event's properties including start/end timing")
async def update_expense_tool(input: UpdateExpenseInput) -> Dict[str, Any]:
    payload = input.payload("plan_id", "expense_id")
    return _call("update_expense", ops.update_plan_event, input.plan_id, ops.EXPENSE, input.expense_id, payload)


@projection_mcp_server.tool(name="add_expense", description="Add a new expense event to a plan")
async def add_expense_tool(input: AddExpenseInput) -> Dict[str, Any]:
    return _call("add_expense", ops.add_expense, input.plan_id, input.payload("plan_id"))


@projection_mcp_server.tool(name="delete_expense", description="Delete an expense event from a plan")
async def delete_expense_tool(input: ExpenseInput) -> str:
    return _call("delete_expense", ops.delete_plan_event, input.plan_id, ops.EXPENSE, input.expense_id)


# --- Priorities ---
@projection_mcp_server.tool(
    name="list_priorities",
    description="List all cash flow priorities in a plan (401k contributions, debt payments, etc.)",
)
async def list_priorities_tool(input: PlanInput) -> List[Dict[str, Any]]:
    return _call("list_priorities", ops.list_plan_events, input.plan_id, ops.PRIORITY)


@projection_mcp_server.tool(name="get_priority", description="Get details of a specific priority")
async def get_priority_tool(input: PriorityInput) -> Dict[str, Any]:
    return _call("get_priority", ops.get_plan_event, input.plan_id, ops.PRIORITY, input.priority_id)


@projection_mcp_server.tool(
    name="update_priority",
    description="Update a priority's settings including target amounts and contribution settings",
)
async def update_priority_tool(input: UpdatePriorityInput) -> Dict[str, Any]:
    payload = input.payload("plan_id", "priority_id")
    return _call("update_priority", ops.update_plan_event, input.plan_id, ops.PRIORITY, input.priority_id, payload)


@projection_mcp_server.tool(
    name="add_priority",
    description="Add a new cash flow priority to a plan (401k contribution, debt payment, savings goal, etc.)",
)
async def add_priority_tool(input: AddPriorityInput) -> Dict[str, Any]:
    return _call("add_priority", ops.add_priority, input.plan_id, input.payload("plan_id"))


@projection_mcp_server.tool(name="delete_priority", description="Delete a priority from a plan")
async def delete_priority_tool(input: PriorityInput) -> str:
    return _call("delete_priority", ops.delete_plan_event, input.plan_id, ops.PRIORITY, input.priority_id)


# --- Milestones ---
@projection_mcp_server.tool(name="list_milestones", description="List all milestones in a plan (retirement, FIRE, etc.)")
async def list_milestones_tool(input: PlanInput) -> List[Dict[str, Any]]:
    return _call("list_milestones", ops.list_plan_events, input.plan_id, ops.MILESTONE)


@projection_mcp_server.tool(name="get_milestone", description="Get details of a specific milestone")
async def get_milestone_tool(input: MilestoneInput) -> Dict[str, Any]:
    return _call("get_milestone", ops.get_plan_event, input.plan_id, ops.MILESTONE, input.milestone_id)


@projection_mcp_server.tool(
    name="update_milestone",
    description="Update a milestone's properties including when it triggers (criteria)",
)
async def update_milestone_tool(input: UpdateMilestoneInput) -> Dict[str, Any]:
    payload = input.payload("plan_id", "milestone_id")
    return _call("update_milestone", ops.update_plan_event, input.plan_id, ops.MILESTONE, input.milestone_id, payload)


@projection_mcp_server.tool(
    name="add_milestone",
    description="Add a new milestone to a plan (e.g., retirement, FIRE, career change)",
)
async def add_milestone_tool(input: AddMilestoneInput) -> Dict[str, Any]:
    return _call("add_milestone", ops.add_milestone, input.plan_id, input.payload("plan_id"))


@projection_mcp_server.tool(name="delete_milestone", description="Delete a milestone from a plan")
async def delete_milestone_tool(input: MilestoneInput) -> str:
    return _call("delete_milestone", ops.delete_plan_event, input.plan_id, ops.MILESTONE, input.milestone_id)


# --- Plan Configuration ---
@projection_mcp_server.tool(name="get_plan_variables", description="Get plan assumptions and tax settings")
async def get_plan_variables_tool(input: PlanInput) -> Dict[str, Any]:
    return _call("get_plan_variables", ops.get_plan_block, input.plan_id, "variables")


@projection_mcp_server.tool(
    name="update_plan_variables",
    description="Update plan assumptions (investment return, inflation, tax rates, plan end year/life expectancy, etc.)",
)
async def update_plan_variables_tool(input: UpdatePlanVariablesInput) -> Dict[str, Any]:
    return _call("update_plan_variables", ops.update_plan_variables, input.plan_id, input.payload("plan_id"))


@projection_mcp_server.tool(name="get_withdrawal_strategy", description="Get the withdrawal strategy for a plan")
async def get_withdrawal_strategy_tool(input: PlanInput) -> Dict[str, Any]:
    return _call("get_withdrawal_strategy", ops.get_plan_block, input.plan_id, "withdrawalStrategy")


@projection_mcp_server.tool(name="update_withdrawal_strategy", description="Update the withdrawal strategy")
async def update_withdrawal_strategy_tool(input: UpdateWithdrawalStrategyInput) -> Dict[str, Any]:
    return _call("update_withdrawal_strategy", ops.update_withdrawal_strategy, input.plan_id, input.payload("plan_id"))


@projection_mcp_server.tool(name="get_montecarlo_settings", description="Get Monte Carlo simulation settings for a plan")
async def get_montecarlo_settings_tool(input: PlanInput) -> Dict[str, Any]:
    return _call("get_montecarlo_settings", ops.get_plan_block, input.plan_id, "montecarlo")


@projection_mcp_server.tool(name="update_montecarlo_settings", description="Update Monte Carlo simulation settings")
async def update_montecarlo_settings_tool(input: UpdateMonteCarloInput) -> Dict[str, Any]:
    return _call("update_montecarlo_settings", ops.update_montecarlo_settings, input.plan_id, input.payload("plan_id"))


# --- Progress ---
@projection_mcp_server.tool(name="get_progress", description="Get historical net worth tracking data")
async def get_progress_tool(input: EmptyInput = EmptyInput()) -> Dict[str, Any]:
    return _call("get_progress", ops.get_progress)


@projection_mcp_server.tool(name="add_progress_snapshot", description="Add a new progress snapshot")
async def add_progress_snapshot_tool(input: ProgressSnapshotInput) -> Dict[str, Any]:
    return _call("add_progress_snapshot", ops.add_progress_snapshot, input.payload())


# --- Plan Management ---
@projection_mcp_server.tool(name="duplicate_plan", description="Create a copy of an existing plan with a new name")
async def duplicate_plan_tool(input: DuplicatePlanInput) -> Dict[str, Any]:
    return _call("duplicate_plan", ops.duplicate_plan, input.plan_id, input.new_name)


@projection_mcp_server.tool(name="delete_plan", description="Delete a plan (the last remaining plan cannot be deleted)")
async def delete_plan_tool(input: PlanInput) -> str:
    return _call("delete_plan", ops.delete_plan, input.plan_id)


# --- Resources ---
@projection_mcp_server.resource(
    "projectionlab://overview",
    name="Financial Overview",
    description="High-level summary of financial data",
    mime_type="application/json",
)
def overview_resource() -> Dict[str, Any]:
    return _call("overview_resource", ops.overview_summary)


@projection_mcp_server.resource(
    "projectionlab://plan/{plan_id}",
    name="Plan",
    description="Full JSON of one financial plan",
    mime_type="application/json",
)
def plan_resource(plan_id: str) -> Dict[str, Any]:
    return _call("plan_resource", ops.get_plan, plan_id)


# --- Run Server ---
if __name__ == "__main__":
    logging.basicConfig(level=config.LOG_LEVEL, format=config.LOG_FORMAT, stream=sys.stderr)
    logger.info("Starting FastMCP ProjectionLab Server via projection_mcp_server.run()...")
    try:
        projection_mcp_server.run()
    except KeyboardInterrupt:
        logger.info("FastMCP ProjectionLab Server shutting down.")
    except Exception as e:
        logger.critical(f"FastMCP ProjectionLab Server exited with critical error: {e}", exc_info=True)
        sys.exit(1)
