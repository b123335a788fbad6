from conftest import make_location

from dq.core.models import FixAction, FixSource, Overrides, Severity
from dq.core.overrides import parse_overrides
from dq.rules import completeness
from dq.rules.base import RuleContext


def _ctx(*locations, overrides=None):
    return RuleContext.build(locations, overrides or Overrides())


def test_missing_coordinates():
    loc = make_location("nowhere", latitude=None, longitude=None)
    half = make_location("half", longitude=None)

    issues = completeness.detect_missing_coordinates(_ctx(loc, half, make_location("ok")))

    assert [i.location_id for i in issues] == ["nowhere", "half"]
    assert issues[0].severity is Severity.MEDIUM


def test_coordinates_outside_bounds():
    paris = make_location("paris", latitude=48.858370, longitude=2.294481)

    [issue] = completeness.detect_invalid_coordinates(_ctx(paris, make_location("ok")))

    assert issue.severity is Severity.HIGH
    assert issue.details == {"lat": 48.858370, "lng": 2.294481}


def test_low_precision_coordinates():
    rough = make_location("rough", latitude=35.0, longitude=135.72)

    [issue] = completeness.detect_low_precision_coordinates(_ctx(rough, make_location("ok")))

    assert issue.severity is Severity.INFO
    assert issue.details == {"latPrecision": 0, "lngPrecision": 2}


def test_non_finite_coordinates_are_invalid_not_missing():
    nan = make_location("nan", latitude=float("nan"), longitude=float("nan"))
    inf = make_location("inf", latitude=float("inf"), longitude=135.0)
    rough = make_location("rough", latitude=35.0, longitude=135.0)
    ctx = _ctx(nan, inf, rough)

    invalid = completeness.detect_invalid_coordinates(ctx)
    precision = completeness.detect_low_precision_coordinates(ctx)

    assert [i.location_id for i in invalid] == ["nan", "inf"]
    assert "not finite" in invalid[0].message
    assert completeness.detect_missing_coordinates(ctx) == []
    assert [i.location_id for i in precision] == ["rough"]
    assert precision[0].details == {"latPrecision": 0, "lngPrecision": 0}


def test_missing_place_id():
    issues = completeness.detect_missing_place_id(
        _ctx(make_location("a"), make_location("b", place_id="ChIJ123"))
    )

    assert [i.location_id for i in issues] == ["a"]


def test_permanently_closed_suggests_delete():
    closed = make_location("closed", business_status="CLOSED_PERMANENTLY")
    open_ = make_location("open", business_status="OPERATIONAL")

    [issue] = completeness.detect_permanently_closed(_ctx(closed, open_))

    assert issue.severity is Severity.HIGH
    assert issue.suggested_fix.action is FixAction.DELETE
    assert issue.suggested_fix.source is FixSource.GOOGLE_PLACES
    assert issue.suggested_fix.confidence == 90


def test_missing_operating_hours_only_for_visiting_categories():
    museum = make_location("museum", "Mori Art Museum", category="museum")
    with_hours = make_location("cafe", "Cafe", category="restaurant", operating_hours={"mon": "9-17"})
    temple = make_location("temple")

    [issue] = completeness.detect_missing_operating_hours(_ctx(museum, with_hours, temple))

    assert issue.location_id == "museum"
    assert issue.message == "Museum location has no operating hours"


def test_invalid_rating():
    too_high = make_location("high", rating=7.5, review_count=10)
    no_reviews = make_location("lonely", rating=4.2)
    fine = make_location("fine", rating=4.2, review_count=120)

    issues = completeness.detect_invalid_rating(_ctx(too_high, no_reviews, fine))

    assert [i.location_id for i in issues] == ["high", "lonely"]
    assert issues[0].message == "Rating 7.5 is outside 0-5"
    assert issues[1].details == {"rating": 4.2, "reviewCount": None}


def test_skip_list_applies():
    loc = make_location("nowhere", latitude=None, longitude=None)
    overrides = parse_overrides({"skip": ["nowhere"]})

    assert completeness.detect_missing_coordinates(_ctx(loc, overrides=overrides)) == []
