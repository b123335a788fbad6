from conftest import make_location

from dq.core.models import FixAction, FixSource, Overrides, Severity
from dq.rules import google
from dq.rules.base import RuleContext


def _ctx(*locations):
    return RuleContext.build(locations, Overrides())


def test_type_mismatch_severity_by_category():
    ramen = make_location("ramen", "Ramen Ya", category="restaurant", google_primary_type="airport")
    temple = make_location("temple", google_primary_type="restaurant")
    hotel = make_location("hotel", "Hotel Granvia", category="accommodation", google_primary_type="cafe")
    hotel_cafe = make_location("hotel-cafe", "Hotel Cafe", category="accommodation", google_primary_type="cafe")
    fine = make_location("fine", google_primary_type="buddhist_temple")

    issues = google.detect_google_type_mismatch(_ctx(ramen, temple, hotel, hotel_cafe, fine))

    assert [(i.location_id, i.severity, i.suggested_fix.confidence) for i in issues] == [
        ("ramen", Severity.CRITICAL, 90),
        ("temple", Severity.CRITICAL, 90),
        ("hotel", Severity.HIGH, 85),
    ]
    assert all(i.suggested_fix.action is FixAction.DELETE for i in issues)
    assert all(i.suggested_fix.source is FixSource.DETECTION for i in issues)


def test_airport_mismatch():
    diner = make_location(
        "diner", "Sakura Diner", category="restaurant", google_primary_type="restaurant", google_types=["Airport"]
    )
    airport = make_location("kix", "Kansai Airport", category="transport", google_primary_type="airport")

    [issue] = google.detect_google_airport_mismatch(_ctx(diner, airport))

    assert issue.location_id == "diner"
    assert issue.severity is Severity.CRITICAL
    assert issue.suggested_fix.confidence == 95


def test_content_mismatch():
    loc = make_location(
        "eel",
        "Unagi Hirokawa",
        category="restaurant",
        short_description="Famous eel restaurant",
        editorial_summary="Busy terminal with flights to Seoul.",
    )
    consistent = make_location(
        "ok", short_description="Famous eel restaurant", editorial_summary="Charcoal-grilled eel over rice."
    )

    [issue] = google.detect_google_content_mismatch(_ctx(loc, consistent))

    assert issue.location_id == "eel"
    assert issue.details["shortDescription"] == "Famous eel restaurant"


def test_name_verification_for_single_word_with_place_id():
    flagged = make_location("yasaka", "Yasaka", category="landmark", place_id="pid")
    no_ref = make_location("no-ref", "Yasaka", category="landmark")
    area = make_location("gion", "Gion", category="landmark", place_id="pid")
    city = make_location("kyoto", "Kyoto", category="landmark", place_id="pid")

    [issue] = google.detect_google_name_verification(_ctx(flagged, no_ref, area, city))

    assert issue.location_id == "yasaka"
    assert issue.severity is Severity.MEDIUM
    assert issue.suggested_fix.action is FixAction.RENAME
    assert issue.suggested_fix.confidence == 70
