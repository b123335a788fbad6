import pytest
from conftest import make_location

from dq.core.models import FixAction, FixSource, Overrides, Severity
from dq.core.overrides import parse_overrides
from dq.rules import duplicates
from dq.rules.base import RuleContext

SUMMARY = "A Zen temple in northern Kyoto whose top two floors are completely covered in gold leaf."


def _ctx(*locations, overrides=None):
    return RuleContext.build(locations, overrides or Overrides())


def test_quality_score_rewards_each_signal():
    bare = make_location("bare", description=None, latitude=None, longitude=None)
    described = make_location("described", latitude=None, longitude=None)
    placed = make_location("placed")
    referenced = make_location("referenced", place_id="pid")
    enriched = make_location("enriched", place_id="pid", editorial_summary=SUMMARY)
    long_desc = make_location("long", place_id="pid", editorial_summary=SUMMARY, description="x" * 120)

    scores = [duplicates.quality_score(loc) for loc in (bare, described, placed, referenced, enriched, long_desc)]

    assert scores == [0, 20, 30, 60, 75, 85]


def test_same_city_keeps_best_and_deletes_the_rest():
    weak = make_location("kinkaku-a")
    strong = make_location("kinkaku-b", place_id="pid", latitude=35.0394, longitude=135.7292)

    issues = duplicates.detect_duplicate_same_city(_ctx(weak, strong))

    by_id = {issue.location_id: issue for issue in issues}
    assert set(by_id) == {"kinkaku-a", "kinkaku-b"}
    assert all(issue.severity is Severity.CRITICAL for issue in issues)
    assert all(issue.details["keepId"] == "kinkaku-b" for issue in issues)

    keep = by_id["kinkaku-b"].suggested_fix
    assert (keep.action, keep.confidence) == (FixAction.SKIP, 70)

    delete = by_id["kinkaku-a"].suggested_fix
    assert (delete.action, delete.confidence) == (FixAction.DELETE, 60)
    assert delete.reason == "Lower quality than kinkaku-b (score: 30 vs 60)"
    assert by_id["kinkaku-a"].details["otherIds"] == ["kinkaku-b"]


def test_same_city_ignores_case_and_spacing_but_not_city():
    a = make_location("a", "Kinkaku-ji")
    b = make_location("b", "kinkaku-ji ", latitude=35.0394, longitude=135.7292)
    elsewhere = make_location("c", "Kinkaku-ji", city="Nara")

    issues = duplicates.detect_duplicate_same_city(_ctx(a, b, elsewhere))

    assert sorted(issue.location_id for issue in issues) == ["a", "b"]


def test_score_tie_keeps_first_member():
    first = make_location("first")
    second = make_location("second", latitude=35.0394, longitude=135.7292)

    fix, keep_id = duplicates.determine_duplicate_fix(second, [first, second])

    assert keep_id == "first"
    assert fix.action is FixAction.DELETE


def test_override_keep_and_delete():
    a = make_location("a")
    b = make_location("b", place_id="pid", latitude=35.0394, longitude=135.7292)
    overrides = parse_overrides({"duplicates": [{"keep": "a", "delete": ["b"], "reason": "a is the main hall"}]})

    issues = duplicates.detect_duplicate_same_city(_ctx(a, b, overrides=overrides))

    by_id = {issue.location_id: issue for issue in issues}
    assert by_id["a"].suggested_fix.action is FixAction.SKIP
    assert by_id["a"].suggested_fix.source is FixSource.OVERRIDE
    assert by_id["a"].suggested_fix.confidence == 100
    assert by_id["a"].details["keepId"] == "a"
    assert by_id["b"].suggested_fix.action is FixAction.DELETE
    assert by_id["b"].suggested_fix.reason == "a is the main hall"
    assert by_id["b"].details["keepId"] is None


def test_duplicate_many_cities():
    kyoto = make_location("kyoto-inari", "Inari Shrine")
    nara = make_location("nara-inari", "Inari Shrine", city="Nara")
    nara_again = make_location("nara-inari-2", "Inari Shrine", city="nara")

    issues = duplicates.detect_duplicate_many_cities(_ctx(kyoto, nara, nara_again))

    assert len(issues) == 3
    assert issues[0].severity is Severity.LOW
    assert issues[0].details["cities"] == ["kyoto", "nara"]
    assert issues[0].suggested_fix is None


def test_duplicate_coordinates():
    a = make_location("a", "Golden Pavilion")
    b = make_location("b", "Kinkaku-ji", place_id="pid")

    issues = duplicates.detect_duplicate_coordinates(_ctx(a, b, make_location("c", latitude=35.1, longitude=135.1)))

    assert [issue.location_id for issue in issues] == ["a", "b"]
    assert issues[0].details["coordinates"] == "35.039370,135.729243"
    assert issues[0].details["otherNames"] == ["Kinkaku-ji"]
    assert issues[0].details["keepId"] == "b"
    assert issues[0].severity is Severity.HIGH


def test_non_finite_coordinates_never_pair_up():
    a = make_location("a", "Golden Pavilion", latitude=float("nan"), longitude=float("nan"))
    b = make_location("b", "Ginkaku-ji", latitude=float("nan"), longitude=float("nan"))

    assert duplicates.detect_duplicate_coordinates(_ctx(a, b)) == []


@pytest.mark.parametrize("offset, flagged", [(0.0072, True), (0.0135, False)])
def test_nearby_duplicates_within_radius(offset, flagged):
    a = make_location("a")
    b = make_location("b", latitude=35.039370 + offset, place_id="pid")

    issues = duplicates.detect_duplicate_nearby(_ctx(a, b))

    if not flagged:
        assert issues == []
        return
    assert [issue.id for issue in issues] == ["a-duplicate-nearby-b", "b-duplicate-nearby-a"]
    assert 750 < issues[0].details["distanceMeters"] < 850
    assert issues[0].details["radiusMeters"] == 1000.0
    assert issues[0].suggested_fix.action is FixAction.DELETE
    assert issues[1].suggested_fix.action is FixAction.SKIP
    assert all(issue.details["keepId"] == "b" for issue in issues)


def test_nearby_skips_exact_coordinate_matches():
    a = make_location("a")
    b = make_location("b")

    assert duplicates.detect_duplicate_nearby(_ctx(a, b)) == []
