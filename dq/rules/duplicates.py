"""Duplicate detection: same city, many cities, exact and nearby coordinates.

Every group member gets its own issue. Members that an override names as
``keep`` or ``delete`` get that decision at confidence 100; otherwise the
member with the best :func:`quality_score` is kept and the rest are marked
for deletion, with both scores quoted in the reason.
"""

from typing import Dict, List, Optional, Sequence, Tuple

from dq.core import geography
from dq.core.models import FixAction, FixSource, Issue, IssueType, Location, Severity, SuggestedFix
from dq.rules import heuristics as h
from dq.rules import text
from dq.rules.base import Rule, RuleContext, detection_fix, make_issue


def quality_score(loc: Location) -> int:
    score = 0
    if loc.place_id:
        score += h.PLACE_ID_BONUS
    description = loc.description or ""
    if len(description) > h.DESCRIPTION_BONUS_MIN_LENGTH:
        score += h.DESCRIPTION_BONUS
    if loc.editorial_summary and len(loc.editorial_summary) > h.EDITORIAL_BONUS_MIN_LENGTH:
        score += h.EDITORIAL_BONUS
    if loc.has_coordinates:
        score += h.COORDINATES_BONUS
    if len(description) > h.LONG_DESCRIPTION_MIN_LENGTH:
        score += h.LONG_DESCRIPTION_BONUS
    return score


def best_duplicate(group: Sequence[Location]) -> Tuple[Location, int]:
    """Highest-scoring member; ties go to the earliest one."""
    best, best_score = group[0], quality_score(group[0])
    for loc in group[1:]:
        score = quality_score(loc)
        if score > best_score:
            best, best_score = loc, score
    return best, best_score


def determine_duplicate_fix(loc: Location, group: Sequence[Location]) -> Tuple[SuggestedFix, str]:
    """Return the keep/delete suggestion for ``loc`` and the id that should survive."""
    best, best_score = best_duplicate(group)
    if loc.id == best.id:
        return (
            detection_fix(FixAction.SKIP, "Best quality duplicate (highest score)", h.DUPLICATE_KEEP_CONFIDENCE),
            best.id,
        )
    reason = f"Lower quality than {best.id} (score: {quality_score(loc)} vs {best_score})"
    return detection_fix(FixAction.DELETE, reason, h.DUPLICATE_DELETE_CONFIDENCE), best.id


def resolve_duplicate(ctx: RuleContext, loc: Location, group: Sequence[Location]) -> Tuple[SuggestedFix, Optional[str]]:
    decision = ctx.overrides.duplicate_resolution(loc.id)
    if decision is None:
        return determine_duplicate_fix(loc, group)
    if decision.action == "keep":
        fix = SuggestedFix(
            action=FixAction.SKIP,
            reason=decision.reason or "Configured to keep",
            confidence=h.OVERRIDE_CONFIDENCE,
            source=FixSource.OVERRIDE,
        )
        return fix, loc.id
    fix = SuggestedFix(
        action=FixAction.DELETE,
        reason=decision.reason or "Configured to delete",
        confidence=h.OVERRIDE_CONFIDENCE,
        source=FixSource.OVERRIDE,
    )
    return fix, None


def _group_by_name(locations: Sequence[Location]) -> Dict[str, List[Location]]:
    groups: Dict[str, List[Location]] = {}
    for loc in locations:
        key = text.normalize_text(loc.name)
        if key:
            groups.setdefault(key, []).append(loc)
    return groups


def detect_duplicate_same_city(ctx: RuleContext) -> List[Issue]:
    issues: List[Issue] = []
    by_city: Dict[str, List[Location]] = {}
    for loc in ctx.active():
        by_city.setdefault(text.normalize_text(loc.city), []).append(loc)

    for city, city_locations in by_city.items():
        for group in _group_by_name(city_locations).values():
            if len(group) < 2:
                continue
            for loc in group:
                fix, keep_id = resolve_duplicate(ctx, loc, group)
                issues.append(
                    make_issue(
                        loc,
                        "duplicate-city",
                        IssueType.DUPLICATE_SAME_CITY,
                        Severity.CRITICAL,
                        f'Duplicate name "{loc.name}" found {len(group)} times in {city}',
                        details={
                            "duplicateCount": len(group),
                            "otherIds": [other.id for other in group if other.id != loc.id],
                            "hasPlaceId": bool(loc.place_id),
                            "hasDescription": bool(loc.description),
                            "qualityScore": quality_score(loc),
                            "keepId": keep_id,
                        },
                        suggested_fix=fix,
                    )
                )
    return issues


def detect_duplicate_many_cities(ctx: RuleContext) -> List[Issue]:
    issues: List[Issue] = []
    for group in _group_by_name(list(ctx.active())).values():
        if len(group) < 2:
            continue
        cities: List[str] = []
        for loc in group:
            city = text.normalize_text(loc.city)
            if city not in cities:
                cities.append(city)
        if len(cities) < 2:
            continue
        for loc in group:
            issues.append(
                make_issue(
                    loc,
                    "duplicate-multi",
                    IssueType.DUPLICATE_MANY,
                    Severity.LOW,
                    f'Name "{loc.name}" appears in {len(cities)} cities: {", ".join(cities)}',
                    details={
                        "cityCount": len(cities),
                        "cities": cities,
                        "allLocations": [{"id": other.id, "city": other.city} for other in group],
                    },
                )
            )
    return issues


def detect_duplicate_coordinates(ctx: RuleContext) -> List[Issue]:
    issues: List[Issue] = []
    by_coords: Dict[str, List[Location]] = {}
    for loc in ctx.active():
        if loc.has_coordinates:
            by_coords.setdefault(geography.coordinate_key(loc.latitude, loc.longitude), []).append(loc)

    for coords, group in by_coords.items():
        if len(group) < 2:
            continue
        names = ", ".join(loc.name for loc in group)
        for loc in group:
            others = [other for other in group if other.id != loc.id]
            fix, keep_id = resolve_duplicate(ctx, loc, group)
            issues.append(
                make_issue(
                    loc,
                    "duplicate-coords",
                    IssueType.DUPLICATE_COORDINATES,
                    Severity.HIGH,
                    f"{len(group)} locations share coordinates ({coords}): {names}",
                    details={
                        "coordinates": coords,
                        "duplicateCount": len(group),
                        "otherIds": [other.id for other in others],
                        "otherNames": [other.name for other in others],
                        "keepId": keep_id,
                    },
                    suggested_fix=fix,
                )
            )
    return issues


def detect_duplicate_nearby(ctx: RuleContext) -> List[Issue]:
    """Same-named pairs within the radius that do not share exact coordinates."""
    issues: List[Issue] = []
    radius = h.NEARBY_DUPLICATE_RADIUS_M
    for group in _group_by_name(list(ctx.active())).values():
        placed = [loc for loc in group if loc.has_coordinates]
        for i, first in enumerate(placed):
            for second in placed[i + 1:]:
                if geography.coordinate_key(first.latitude, first.longitude) == geography.coordinate_key(
                    second.latitude, second.longitude
                ):
                    continue
                distance = geography.haversine_m(first.latitude, first.longitude, second.latitude, second.longitude)
                if distance > radius:
                    continue
                pair = (first, second)
                for loc, other in ((first, second), (second, first)):
                    fix, keep_id = resolve_duplicate(ctx, loc, pair)
                    issues.append(
                        make_issue(
                            loc,
                            f"duplicate-nearby-{other.id}",
                            IssueType.DUPLICATE_NEARBY,
                            Severity.HIGH,
                            f'"{loc.name}" has a same-named location {distance:.0f} m away ({other.id})',
                            details={
                                "otherId": other.id,
                                "distanceMeters": round(distance, 1),
                                "radiusMeters": radius,
                                "keepId": keep_id,
                            },
                            suggested_fix=fix,
                        )
                    )
    return issues


DUPLICATE_RULES = [
    Rule(
        "duplicate-same-city",
        "Duplicate Same City",
        "Locations with the same name in the same city",
        "duplicates",
        (IssueType.DUPLICATE_SAME_CITY,),
        detect_duplicate_same_city,
    ),
    Rule(
        "duplicate-many-cities",
        "Duplicate Many Cities",
        "Locations with the same name across 2+ different cities",
        "duplicates",
        (IssueType.DUPLICATE_MANY,),
        detect_duplicate_many_cities,
    ),
    Rule(
        "duplicate-coordinates",
        "Duplicate Coordinates",
        "Multiple locations at the exact same lat/lng",
        "duplicates",
        (IssueType.DUPLICATE_COORDINATES,),
        detect_duplicate_coordinates,
    ),
    Rule(
        "duplicate-nearby",
        "Duplicate Nearby",
        "Same-named locations within 1 km of each other",
        "duplicates",
        (IssueType.DUPLICATE_NEARBY,),
        detect_duplicate_nearby,
    ),
]
