import copy
import json

import pytest

from projectionlab_mcp.projection import DocumentFormatError, PreconditionError, ProjectionSession, ValidationError
from projectionlab_mcp.projection import operations as ops
from projectionlab_mcp.projection.ids import SequentialIdGenerator, TimestampIdGenerator, make_id_generator
from projectionlab_mcp.projection.storage import load_document, save_document


def _read(path):
    with path.open("r", encoding="utf-8") as handle:
        return json.load(handle)


def test_commit_round_trip_only_changes_last_updated(file_session, export_file):
    original = _read(export_file)

    ops.update_account_balance(file_session, "sav-1", 25000)

    stored = _read(export_file)
    assert stored["meta"]["lastUpdated"] != original["meta"]["lastUpdated"]
    stored["meta"]["lastUpdated"] = original["meta"]["lastUpdated"]
    assert stored == original
    assert file_session.revision == 1


def test_mutation_is_persisted_and_reloadable(file_session, export_file):
    ops.add_debt(file_session, {"name": "Car Loan", "debtType": "auto", "amount": 15000})

    reloaded = ProjectionSession()
    reloaded.load(export_file)
    assert [d["name"] for d in ops.list_debts(reloaded)] == ["Student Loan", "Car Loan"]


def test_rejected_mutation_leaves_file_untouched(file_session, export_file):
    before = export_file.read_bytes()

    with pytest.raises(ValidationError):
        ops.update_plan_event(file_session, "plan-1", ops.INCOME, "inc-1", {"start": {"type": "year", "value": 2030}})

    assert export_file.read_bytes() == before


def test_save_replaces_file_without_leaving_temp(tmp_path):
    path = tmp_path / "export.json"
    path.write_text("{}", encoding="utf-8")

    save_document(path, {"meta": {}, "today": {}, "plans": [{"id": "p", "name": "Ünïcode"}]}, indent=4)

    assert not (tmp_path / "export.json.tmp").exists()
    assert "Ünïcode" in path.read_text(encoding="utf-8")
    assert _read(path)["plans"][0]["id"] == "p"


def test_load_missing_file_is_a_precondition_error(tmp_path):
    with pytest.raises(PreconditionError) as excinfo:
        load_document(tmp_path / "missing.json")

    assert "Data file not found" in str(excinfo.value)


def test_load_rejects_invalid_json(tmp_path):
    path = tmp_path / "broken.json"
    path.write_text("{not json", encoding="utf-8")

    with pytest.raises(DocumentFormatError):
        load_document(path)


def test_load_rejects_documents_missing_plans(tmp_path):
    path = tmp_path / "other.json"
    path.write_text(json.dumps({"meta": {}, "today": {}}), encoding="utf-8")

    with pytest.raises(DocumentFormatError) as excinfo:
        load_document(path)

    assert "plans" in str(excinfo.value)


def test_load_rejects_plans_without_ids(tmp_path):
    path = tmp_path / "other.json"
    path.write_text(json.dumps({"meta": {}, "today": {}, "plans": [{"name": "No id"}]}), encoding="utf-8")

    with pytest.raises(DocumentFormatError) as excinfo:
        load_document(path)

    assert "plans -> 0" in str(excinfo.value)


def test_set_data_file_reports_absolute_path(export_file):
    fresh = ProjectionSession()

    message = ops.set_data_file(fresh, str(export_file))

    assert message == f"Data loaded from: {export_file.resolve()}"
    assert fresh.is_loaded


def test_id_generators():
    sequential = SequentialIdGenerator()
    assert [sequential.new_id("debt"), sequential.new_id("asset")] == ["debt-1", "asset-2"]

    timestamps = TimestampIdGenerator()
    first, second = timestamps.new_id("plan"), timestamps.new_id("plan")
    assert first != second

    assert make_id_generator("uuid").new_id("income").startswith("income-")
    assert make_id_generator("sequential").new_id("plan") == "plan-1"
    with pytest.raises(ValueError):
        make_id_generator("random")


@pytest.fixture
def unwritable_session(file_session, tmp_path):
    file_session.source_path = tmp_path / "missing-dir" / "export.json"
    return file_session


@pytest.mark.parametrize(
    "mutate",
    [
        lambda s: ops.update_plan_event(s, "plan-1", ops.INCOME, "inc-1", {"amount": 1}),
        lambda s: ops.add_expense(s, "plan-2", {"type": "other", "name": "Gym", "amount": 600}),
        lambda s: ops.add_debt(s, {"name": "Visa", "debtType": "credit-card", "amount": 900}),
        lambda s: ops.delete_account(s, "inv-1"),
        lambda s: ops.update_withdrawal_strategy(s, "plan-2", {"enabled": True}),
        lambda s: ops.add_progress_snapshot(s, {"netWorth": 1}),
        lambda s: ops.delete_plan(s, "plan-2"),
    ],
)
def test_failed_write_leaves_document_unchanged(unwritable_session, mutate):
    before = copy.deepcopy(unwritable_session.document)

    with pytest.raises(OSError):
        mutate(unwritable_session)

    assert unwritable_session.document == before
    assert unwritable_session.revision == 0


def test_failed_write_keeps_income_amount(unwritable_session):
    with pytest.raises(OSError):
        ops.update_plan_event(unwritable_session, "plan-1", ops.INCOME, "inc-1", {"amount": 1})

    assert ops.get_plan_event(unwritable_session, "plan-1", ops.INCOME, "inc-1")["amount"] == 150000


def test_failed_serialization_removes_temp_file(tmp_path):
    path = tmp_path / "export.json"
    path.write_text("{}", encoding="utf-8")

    with pytest.raises(TypeError):
        save_document(path, {"meta": {}, "today": {}, "plans": [], "bad": {1, 2}})

    assert not (tmp_path / "export.json.tmp").exists()
    assert path.read_text(encoding="utf-8") == "{}"


def test_load_rejects_null_progress_data(tmp_path):
    path = tmp_path / "export.json"
    path.write_text(json.dumps({"meta": {}, "today": {}, "plans": [], "progress": {"data": None}}), encoding="utf-8")

    with pytest.raises(DocumentFormatError) as excinfo:
        load_document(path)

    assert "progress -> data" in str(excinfo.value)
