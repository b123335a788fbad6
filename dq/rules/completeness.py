"""Completeness and coordinate sanity rules."""

from typing import List

from dq.core import geography
from dq.core.models import FixAction, FixSource, Issue, IssueType, Severity, SuggestedFix
from dq.rules import heuristics as h
from dq.rules.base import Rule, RuleContext, make_issue

CLOSED_STATUSES = frozenset({"PERMANENTLY_CLOSED", "CLOSED_PERMANENTLY"})

# Categories whose visitors need opening hours.
CATEGORIES_WITH_HOURS = frozenset({"restaurant", "food", "bar", "museum", "shopping", "market"})


def detect_missing_coordinates(ctx: RuleContext) -> List[Issue]:
    return [
        make_issue(
            loc,
            "missing-coords",
            IssueType.MISSING_COORDINATES,
            Severity.MEDIUM,
            "Location has no coordinates",
        )
        for loc in ctx.active()
        if not loc.has_position
    ]


def detect_invalid_coordinates(ctx: RuleContext) -> List[Issue]:
    issues: List[Issue] = []
    for loc in ctx.active():
        if not loc.has_position:
            continue
        if not loc.has_coordinates:
            message = f"Coordinates ({loc.latitude}, {loc.longitude}) are not finite numbers"
        elif not geography.is_within_bounds(loc.latitude, loc.longitude):
            message = f"Coordinates ({loc.latitude}, {loc.longitude}) fall outside the catalog bounds"
        else:
            continue
        issues.append(
            make_issue(
                loc,
                "invalid-coords",
                IssueType.INVALID_COORDINATES,
                Severity.HIGH,
                message,
                details={"lat": loc.latitude, "lng": loc.longitude},
            )
        )
    return issues


def detect_low_precision_coordinates(ctx: RuleContext) -> List[Issue]:
    issues: List[Issue] = []
    for loc in ctx.active():
        if not loc.has_coordinates:
            continue
        if geography.has_sufficient_precision(loc.latitude, loc.longitude):
            continue
        issues.append(
            make_issue(
                loc,
                "coords-precision",
                IssueType.COORDINATES_PRECISION_LOW,
                Severity.INFO,
                f"Coordinates ({loc.latitude}, {loc.longitude}) have fewer than "
                f"{geography.MIN_COORDINATE_PRECISION} decimal places",
                details={
                    "latPrecision": geography.coordinate_precision(loc.latitude),
                    "lngPrecision": geography.coordinate_precision(loc.longitude),
                },
            )
        )
    return issues


def detect_missing_place_id(ctx: RuleContext) -> List[Issue]:
    return [
        make_issue(loc, "missing-place-id", IssueType.MISSING_PLACE_ID, Severity.INFO, "Location has no Google Place ID")
        for loc in ctx.active()
        if not loc.place_id
    ]


def detect_permanently_closed(ctx: RuleContext) -> List[Issue]:
    issues: List[Issue] = []
    for loc in ctx.active():
        if (loc.business_status or "").upper() not in CLOSED_STATUSES:
            continue
        issues.append(
            make_issue(
                loc,
                "closed",
                IssueType.PERMANENTLY_CLOSED,
                Severity.HIGH,
                f'"{loc.name}" is permanently closed according to Google Places',
                details={"businessStatus": loc.business_status},
                suggested_fix=SuggestedFix(
                    action=FixAction.DELETE,
                    reason="Business is permanently closed",
                    confidence=h.PERMANENTLY_CLOSED_CONFIDENCE,
                    source=FixSource.GOOGLE_PLACES,
                ),
            )
        )
    return issues


def detect_missing_operating_hours(ctx: RuleContext) -> List[Issue]:
    return [
        make_issue(
            loc,
            "missing-hours",
            IssueType.MISSING_OPERATING_HOURS,
            Severity.LOW,
            f"{loc.category.capitalize()} location has no operating hours",
            details={"category": loc.category},
        )
        for loc in ctx.active()
        if loc.category in CATEGORIES_WITH_HOURS and not loc.operating_hours
    ]


def detect_invalid_rating(ctx: RuleContext) -> List[Issue]:
    issues: List[Issue] = []
    for loc in ctx.active():
        if loc.rating is None:
            continue
        if not 0 <= loc.rating <= h.MAX_RATING:
            message = f"Rating {loc.rating} is outside 0-{h.MAX_RATING:g}"
        elif loc.review_count is None:
            message = f"Rating {loc.rating} has no review count"
        else:
            continue
        issues.append(
            make_issue(
                loc,
                "invalid-rating",
                IssueType.INVALID_RATING,
                Severity.LOW,
                message,
                details={"rating": loc.rating, "reviewCount": loc.review_count},
            )
        )
    return issues


COMPLETENESS_RULES = [
    Rule(
        "missing-coordinates",
        "Missing Coordinates",
        "Locations without a position",
        "completeness",
        (IssueType.MISSING_COORDINATES,),
        detect_missing_coordinates,
    ),
    Rule(
        "invalid-coordinates",
        "Invalid Coordinates",
        "Positions outside the catalog bounds",
        "completeness",
        (IssueType.INVALID_COORDINATES,),
        detect_invalid_coordinates,
    ),
    Rule(
        "coordinates-precision-low",
        "Low Coordinate Precision",
        "Positions with fewer than four decimals",
        "completeness",
        (IssueType.COORDINATES_PRECISION_LOW,),
        detect_low_precision_coordinates,
    ),
    Rule(
        "missing-place-id",
        "Missing Place ID",
        "Locations never matched to Google Places",
        "completeness",
        (IssueType.MISSING_PLACE_ID,),
        detect_missing_place_id,
    ),
    Rule(
        "permanently-closed",
        "Permanently Closed",
        "Businesses Google reports as closed",
        "completeness",
        (IssueType.PERMANENTLY_CLOSED,),
        detect_permanently_closed,
    ),
    Rule(
        "missing-operating-hours",
        "Missing Operating Hours",
        "Categories that need hours but have none",
        "completeness",
        (IssueType.MISSING_OPERATING_HOURS,),
        detect_missing_operating_hours,
    ),
    Rule(
        "invalid-rating",
        "Invalid Rating",
        "Ratings out of range or without reviews",
        "completeness",
        (IssueType.INVALID_RATING,),
        detect_invalid_rating,
    ),
]
