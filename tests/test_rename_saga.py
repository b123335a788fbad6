import logging

import pytest
from conftest import FakeStore, make_location

from dq.core.errors import ConflictError, InconsistentStateError, NotFoundError, UpstreamError
from dq.core.models import FixAction, IssueType, Overrides, Severity
from dq.fixers.base import FixerContext
from dq.fixers.rename_saga import RenameIdFixer, rename_location_id
from dq.rules import names
from dq.rules.base import RuleContext, make_issue

OLD = "tea-house-1a2b3c4d"
NEW = "fushimi-inari-taisha-kansai-1a2b3c4d"


@pytest.fixture
def store():
    return FakeStore(
        [make_location(OLD, "Fushimi Inari Taisha")],
        tables={
            "place_details": [{"location_id": OLD}],
            "favorites": [{"location_id": OLD}, {"location_id": "other"}],
            "travel_guidance": [{"location_ids": ["x", OLD]}],
            "guides": [{"location_ids": ["y"]}],
        },
    )


def _issue(store):
    location = store.get(OLD)
    [issue] = names.detect_name_id_mismatch(RuleContext.build([location], Overrides()))
    return issue


def _references(store, old_id):
    refs = [r for t in ("place_details", "favorites") for r in store.tables[t] if r["location_id"] == old_id]
    arrays = [r for t in ("travel_guidance", "guides") for r in store.tables[t] if old_id in r["location_ids"]]
    return refs + arrays


def test_rename_moves_row_and_every_reference(store):
    result = RenameIdFixer().fix(_issue(store), FixerContext(store=store))

    assert result.success is True
    assert result.message == f"Renamed {OLD} -> {NEW}"
    assert (result.previous_value, result.new_value) == (OLD, NEW)
    assert set(store.rows) == {NEW}
    assert store.rows[NEW]["name"] == "Fushimi Inari Taisha"
    assert _references(store, OLD) == []
    assert store.tables["favorites"][1] == {"location_id": "other"}
    assert store.tables["travel_guidance"][0]["location_ids"] == ["x", NEW]


def test_rename_conflict_writes_nothing(store):
    store.rows[NEW] = dict(store.rows[OLD], id=NEW)

    with pytest.raises(ConflictError, match=f"ID conflict: {NEW} already exists"):
        rename_location_id(store, OLD, NEW)

    assert store.writes == []


def test_conflict_surfaces_as_failed_result(store):
    store.rows[NEW] = dict(store.rows[OLD], id=NEW)

    result = RenameIdFixer().fix(_issue(store), FixerContext(store=store))

    assert result.success is False
    assert result.error == "ID conflict"
    assert result.message == f"ID conflict: {NEW} already exists"
    assert result.error_kind == "conflict"
    assert result.fatal is False


def test_dry_run_reports_conflict(store):
    store.rows[NEW] = dict(store.rows[OLD], id=NEW)

    result = RenameIdFixer().fix(_issue(store), FixerContext(store=store, dry_run=True))

    assert result.success is False
    assert result.error == "ID conflict"
    assert result.error_kind == "conflict"
    assert store.writes == []


def test_missing_source_row(store):
    with pytest.raises(NotFoundError):
        rename_location_id(store, "ghost", NEW)


def test_insert_failure_needs_no_cleanup(store):
    store.fail_on["insert"] = "duplicate key"

    with pytest.raises(UpstreamError, match="Failed to insert new location"):
        rename_location_id(store, OLD, NEW)

    assert set(store.rows) == {OLD}
    assert store.writes == []


@pytest.mark.parametrize("failing_table", ["place_details", "favorites"])
def test_reference_failure_is_undone(store, failing_table):
    store.fail_on[f"repoint:{failing_table}"] = "deadlock"

    with pytest.raises(UpstreamError, match=f"Failed to update {failing_table}"):
        rename_location_id(store, OLD, NEW)

    assert set(store.rows) == {OLD}
    assert _references(store, NEW) == []
    assert store.tables["place_details"] == [{"location_id": OLD}]
    assert store.writes[-1] == ("delete", NEW)


def test_undo_of_repointed_references_runs_in_reverse(store):
    store.fail_on["repoint:favorites"] = "deadlock"

    with pytest.raises(UpstreamError):
        rename_location_id(store, OLD, NEW)

    assert store.writes == [
        ("insert", NEW),
        ("repoint", "place_details", OLD, NEW),
        ("repoint", "place_details", NEW, OLD),
        ("delete", NEW),
    ]


def test_failed_undo_is_inconsistent(store, caplog):
    store.fail_on["repoint:favorites"] = "deadlock"
    store.fail_on[f"delete:{NEW}"] = "connection lost"

    with caplog.at_level(logging.CRITICAL):
        with pytest.raises(InconsistentStateError):
            rename_location_id(store, OLD, NEW)

    assert set(store.rows) == {OLD, NEW}
    assert "Could not undo rename" in caplog.text


def test_array_failures_are_warnings(store):
    store.fail_on["array:travel_guidance"] = "timeout"

    result = RenameIdFixer().fix(_issue(store), FixerContext(store=store))

    assert result.success is True
    assert result.message == f"Renamed {OLD} -> {NEW} (warnings: travel_guidance: timeout)"
    assert set(store.rows) == {NEW}
    assert store.tables["travel_guidance"][0]["location_ids"] == ["x", OLD]


def test_old_row_delete_failure_is_fatal(store, caplog):
    store.fail_on[f"delete:{OLD}"] = "connection lost"

    with caplog.at_level(logging.CRITICAL):
        result = RenameIdFixer().fix(_issue(store), FixerContext(store=store))

    assert result.success is False
    assert result.error_kind == "inconsistent"
    assert result.fatal is True
    assert result.to_dict()["fatal"] is True
    assert set(store.rows) == {OLD, NEW}
    assert "could not delete the old row" in caplog.text


def test_dry_run_previews_rename(store):
    result = RenameIdFixer().fix(_issue(store), FixerContext(store=store, dry_run=True))

    assert result.success is True
    assert result.action is FixAction.UPDATE_ID
    assert result.message == f"[dry run] Would rename {OLD} -> {NEW}"
    assert store.writes == []


def test_missing_or_identical_target(store):
    location = store.get(OLD)
    no_target = make_issue(location, "name-id", IssueType.NAME_ID_MISMATCH, Severity.LOW, "")
    same_target = make_issue(location, "name-id", IssueType.NAME_ID_MISMATCH, Severity.LOW, "", {"newId": OLD})
    ctx = FixerContext(store=store)

    assert RenameIdFixer().fix(no_target, ctx).error_kind == "ambiguous"
    assert RenameIdFixer().fix(same_target, ctx).action is FixAction.SKIP
    assert store.writes == []


def test_lock_keys_cover_both_ids(store):
    assert RenameIdFixer().lock_keys(_issue(store)) == (OLD, NEW)
