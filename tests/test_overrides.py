import json

import pytest

from dq.core.errors import ConfigError
from dq.core.models import FixAction
from dq.core.overrides import load_overrides, parse_overrides


def test_missing_keys_default_to_empty():
    overrides = parse_overrides({})

    assert overrides.names == {}
    assert overrides.duplicates == []
    assert overrides.skip == frozenset()


def test_parse_full_document():
    overrides = parse_overrides(
        {
            "version": 3,
            "names": {"a": "Fushimi Inari Taisha"},
            "descriptions": {"b": "A shrine."},
            "categories": {"c": "shrine"},
            "duplicates": [{"keep": "d1", "delete": ["d2", "d3"], "reason": "same place"}],
            "skip": ["e"],
        }
    )

    assert overrides.version == "3"
    assert overrides.value_for(FixAction.RENAME, "a") == "Fushimi Inari Taisha"
    assert overrides.value_for(FixAction.UPDATE_DESCRIPTION, "b") == "A shrine."
    assert overrides.value_for(FixAction.UPDATE_CATEGORY, "c") == "shrine"
    assert overrides.value_for(FixAction.UPDATE_REGION, "c") is None
    assert overrides.should_skip("e") is True
    assert overrides.duplicate_resolution("d1").action == "keep"
    assert overrides.duplicate_resolution("d2").action == "delete"
    assert overrides.duplicate_resolution("d2").reason == "same place"
    assert overrides.duplicate_resolution("zzz") is None


def test_keep_beats_delete(caplog):
    with caplog.at_level("WARNING"):
        overrides = parse_overrides(
            {"duplicates": [{"keep": "a", "delete": ["b"]}, {"keep": "b", "delete": ["c"]}]}
        )

    assert overrides.duplicate_resolution("b").action == "keep"
    assert "both keep and delete" in " ".join(caplog.messages)


@pytest.mark.parametrize(
    "payload",
    [
        [],
        {"names": ["not", "a", "map"]},
        {"names": {"a": 1}},
        {"duplicates": [{"delete": ["x"]}]},
        {"duplicates": [{"keep": "a", "delete": "b"}]},
        {"skip": "a"},
    ],
)
def test_malformed_documents_raise(payload):
    with pytest.raises(ConfigError):
        parse_overrides(payload)


def test_load_missing_file_returns_empty(tmp_path, caplog):
    with caplog.at_level("WARNING"):
        overrides = load_overrides(tmp_path / "missing.json")

    assert overrides.names == {}
    assert "not found" in " ".join(caplog.messages)


def test_load_reads_file(tmp_path):
    path = tmp_path / "overrides.json"
    path.write_text(json.dumps({"skip": ["a"], "names": {"b": "B"}}), encoding="utf-8")

    overrides = load_overrides(path)

    assert overrides.should_skip("a")
    assert overrides.name_for("b") == "B"


def test_load_invalid_json_raises(tmp_path):
    path = tmp_path / "overrides.json"
    path.write_text("{not json", encoding="utf-8")

    with pytest.raises(ConfigError):
        load_overrides(path)
