"""Rules that catch corrupted Google Places enrichment (wrong place_id)."""

import re
from typing import List, Optional

from dq.core.models import FixAction, Issue, IssueType, Location, Severity
from dq.rules import heuristics as h
from dq.rules import text
from dq.rules.base import Rule, RuleContext, detection_fix, make_issue
from dq.rules.names import CATEGORIES_NEEDING_FULL_NAMES

INCOMPATIBLE_TYPES_FOR_FOOD = frozenset(
    {
        "airport", "train_station", "bus_station", "transit_station",
        "hospital", "school", "university", "church", "mosque",
        "police", "fire_station", "cemetery", "funeral_home",
    }
)

INCOMPATIBLE_TYPES_FOR_RELIGIOUS = frozenset(
    {"airport", "restaurant", "hotel", "shopping_mall", "hospital", "train_station", "bus_station", "cafe", "bar"}
)

INCOMPATIBLE_TYPES_FOR_ACCOMMODATION = frozenset(
    {"restaurant", "cafe", "bar", "bakery", "fast_food_restaurant", "airport", "train_station", "school", "hospital"}
)

FOOD_KEYWORDS = (
    "restaurant", "ramen", "sushi", "unagi", "eel", "beef", "pork",
    "noodle", "tempura", "yakitori", "izakaya", "menu", "chef",
    "cuisine", "dish", "dining", "meal", "food",
)

TRANSPORT_KEYWORDS = ("airport", "runway", "terminal", "flight", "airline", "train station", "platform", "railway")

_WRONG_PLACE = "Google Place ID points to wrong location - needs re-enrichment"


def _type_mismatch(loc: Location) -> Optional[tuple]:
    """Return ``(severity, confidence)`` when the Google type conflicts with the category."""
    category = (loc.category or "").lower()
    google_type = loc.google_primary_type.lower()

    if category in {"food", "restaurant", "cafe", "bar"} and google_type in INCOMPATIBLE_TYPES_FOR_FOOD:
        return Severity.CRITICAL, h.GOOGLE_TYPE_CONFIDENCE
    if category in {"shrine", "temple"} and google_type in INCOMPATIBLE_TYPES_FOR_RELIGIOUS:
        return Severity.CRITICAL, h.GOOGLE_TYPE_CONFIDENCE
    if category == "accommodation" and google_type in INCOMPATIBLE_TYPES_FOR_ACCOMMODATION:
        name = loc.name.lower()
        if "restaurant" not in name and "cafe" not in name:
            return Severity.HIGH, h.GOOGLE_ACCOMMODATION_TYPE_CONFIDENCE
    return None


def detect_google_type_mismatch(ctx: RuleContext) -> List[Issue]:
    issues: List[Issue] = []
    for loc in ctx.active():
        if not loc.google_primary_type:
            continue
        mismatch = _type_mismatch(loc)
        if mismatch is None:
            continue
        severity, confidence = mismatch
        issues.append(
            make_issue(
                loc,
                "google-type-mismatch",
                IssueType.GOOGLE_TYPE_MISMATCH,
                severity,
                f'Category "{loc.category}" but Google type is "{loc.google_primary_type}" - likely wrong place_id',
                details={"ourCategory": loc.category, "googleType": loc.google_primary_type},
                suggested_fix=detection_fix(FixAction.DELETE, _WRONG_PLACE, confidence),
            )
        )
    return issues


def detect_google_airport_mismatch(ctx: RuleContext) -> List[Issue]:
    issues: List[Issue] = []
    for loc in ctx.active():
        if not loc.google_primary_type:
            continue
        types = {item.lower() for item in loc.google_types}
        is_airport = loc.google_primary_type.lower() == "airport" or "airport" in types
        name = loc.name.lower()
        if not is_airport or "airport" in name or "空港" in name:
            continue
        issues.append(
            make_issue(
                loc,
                "airport-mismatch",
                IssueType.GOOGLE_AIRPORT_MISMATCH,
                Severity.CRITICAL,
                f'Google type is "airport" but name "{loc.name}" doesn\'t contain "airport" - wrong place_id',
                details={"googleType": loc.google_primary_type, "googleTypes": list(loc.google_types)},
                suggested_fix=detection_fix(
                    FixAction.DELETE,
                    "Google Place ID points to airport but location name indicates otherwise",
                    h.GOOGLE_AIRPORT_CONFIDENCE,
                ),
            )
        )
    return issues


def detect_google_content_mismatch(ctx: RuleContext) -> List[Issue]:
    issues: List[Issue] = []
    for loc in ctx.active():
        if not loc.short_description or not loc.editorial_summary:
            continue
        short = loc.short_description.lower()
        editorial = loc.editorial_summary.lower()
        if not any(k in short for k in FOOD_KEYWORDS) or not any(k in editorial for k in TRANSPORT_KEYWORDS):
            continue
        issues.append(
            make_issue(
                loc,
                "content-mismatch",
                IssueType.GOOGLE_CONTENT_MISMATCH,
                Severity.CRITICAL,
                "Our description mentions food but Google editorial mentions transport - wrong place_id",
                details={
                    "shortDescription": loc.short_description[:100],
                    "editorialSummary": loc.editorial_summary[:100],
                },
                suggested_fix=detection_fix(
                    FixAction.DELETE,
                    "Content mismatch indicates Google returned wrong location",
                    h.GOOGLE_CONTENT_CONFIDENCE,
                ),
            )
        )
    return issues


def detect_google_name_verification(ctx: RuleContext) -> List[Issue]:
    issues: List[Issue] = []
    for loc in ctx.active():
        if not loc.place_id or (loc.category or "").lower() not in CATEGORIES_NEEDING_FULL_NAMES:
            continue
        if len(re.split(r"\s+", loc.name.strip())) > 1 or len(loc.name) < h.SHORT_NAME_MIN_LENGTH:
            continue
        if loc.city and text.fold_accents(loc.name) == loc.city.lower():
            continue
        if text.is_known_area_name(loc.name) or text.has_geographic_suffix(loc.name):
            continue
        issues.append(
            make_issue(
                loc,
                "name-verification",
                IssueType.GOOGLE_NAME_MISMATCH,
                Severity.MEDIUM,
                f'Single-word name "{loc.name}" has place_id - should verify against Google displayName',
                details={"category": loc.category, "placeId": loc.place_id, "wordCount": 1},
                suggested_fix=detection_fix(
                    FixAction.RENAME, "Use Google Places API to get full displayName", h.GOOGLE_NAME_CONFIDENCE
                ),
            )
        )
    return issues


GOOGLE_RULES = [
    Rule(
        "google-type-mismatch",
        "Google Type Mismatch",
        "Google primary type conflicts with our category",
        "google",
        (IssueType.GOOGLE_TYPE_MISMATCH,),
        detect_google_type_mismatch,
    ),
    Rule(
        "google-airport-mismatch",
        "Google Airport Mismatch",
        "Google says airport but the name does not",
        "google",
        (IssueType.GOOGLE_AIRPORT_MISMATCH,),
        detect_google_airport_mismatch,
    ),
    Rule(
        "google-content-mismatch",
        "Google Content Mismatch",
        "Short description and editorial summary describe different places",
        "google",
        (IssueType.GOOGLE_CONTENT_MISMATCH,),
        detect_google_content_mismatch,
    ),
    Rule(
        "google-name-verification-needed",
        "Google Name Verification Needed",
        "Single-word names that can be checked against Google displayName",
        "google",
        (IssueType.GOOGLE_NAME_MISMATCH,),
        detect_google_name_verification,
    ),
]
