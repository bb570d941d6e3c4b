import copy
import json

import pytest

from projectionlab_mcp.projection import ProjectionSession, SequentialIdGenerator

SAMPLE_EXPORT = {
    "meta": {"version": "4.2.0", "lastUpdated": 1700000000000},
    "today": {
        "yourName": "Alex",
        "age": 33,
        "birthYear": 1992,
        "partnerStatus": "married",
        "spouseName": "Sam",
        "spouseAge": 31,
        "location": "US-CA",
        "savingsAccounts": [
            {"id": "sav-1", "name": "Emergency Fund", "type": "savings", "balance": 25000, "owner": "joint"},
        ],
        "investmentAccounts": [
            {"id": "inv-1", "name": "Work 401k", "type": "401k", "balance": 120000, "owner": "me"},
            {"id": "inv-2", "name": "Brokerage", "type": "taxable", "balance": 40000, "owner": "me"},
        ],
        "debts": [
            {"id": "debt-1", "name": "Student Loan", "type": "debt", "subtype": "student-loans",
             "amount": 18000, "interestRate": 5.5, "monthlyPayment": 350, "owner": "me"},
        ],
        "assets": [
            {"id": "asset-1", "name": "Home", "type": "real-estate", "amount": 650000, "balance": 420000,
             "owner": "joint"},
        ],
        "customField": {"nested": [1, 2, 3]},
    },
    "plans": [
        {
            "id": "plan-1",
            "name": "Base Plan",
            "active": True,
            "icon": "home",
            "lastUpdated": 1700000000000,
            "income": {
                "events": [
                    {"id": "inc-1", "name": "Salary", "type": "salary", "amount": 150000, "frequency": "yearly",
                     "start": {"type": "keyword", "value": "now"},
                     "end": {"type": "milestone", "value": "retirement"}},
                ]
            },
            "expenses": {
                "events": [
                    {"id": "exp-1", "name": "Living", "type": "living-expenses", "amount": 60000,
                     "frequency": "yearly", "spendingType": "essential",
                     "start": {"type": "keyword", "value": "now"},
                     "end": {"type": "keyword", "value": "endOfPlan"}},
                ]
            },
            "priorities": {
                "events": [
                    {"id": "pri-1", "name": "Max 401k", "type": "401k", "accountId": "inv-1",
                     "mode": "contribution", "contribution": 23000, "contributionType": "today$"},
                ]
            },
            "milestones": [
                {"id": "ms-1", "name": "Retirement", "criteria": [
                    {"type": "year", "value": "2055", "operator": ">="},
                ]},
            ],
            "computedMilestones": [
                {"id": "ms-computed-1", "name": "Debt Free"},
            ],
            "variables": {"loopYear": 2088, "investmentReturn": 7, "inflation": 3},
            "withdrawalStrategy": {"strategy": "initial-%", "enabled": True},
            "montecarlo": {"trials": 1000, "mode": "historical"},
        },
        {
            "id": "plan-2",
            "name": "Early Retirement",
            "active": False,
            "income": {"events": []},
        },
    ],
    "progress": {"data": [{"date": 1690000000000, "netWorth": 150000}]},
}


@pytest.fixture
def export_document():
    return copy.deepcopy(SAMPLE_EXPORT)


@pytest.fixture
def session(export_document):
    return ProjectionSession.from_document(export_document, id_generator=SequentialIdGenerator())


@pytest.fixture
def export_file(tmp_path):
    path = tmp_path / "projectionlab-export.json"
    with path.open("w", encoding="utf-8") as handle:
        json.dump(SAMPLE_EXPORT, handle, indent=2)
    return path


@pytest.fixture
def file_session(export_file):
    file_backed = ProjectionSession(id_generator=SequentialIdGenerator())
    file_backed.load(export_file)
    return file_backed
