"""Category and region consistency rules."""

import re
from typing import List, Optional, Tuple

from dq.core import geography
from dq.core.models import FixAction, FixSource, Issue, IssueType, Location, Severity, SuggestedFix
from dq.rules import heuristics as h
from dq.rules.base import Rule, RuleContext, detection_fix, make_issue, with_override

_EVENT_NAME = re.compile(
    r"(Festival|Matsuri|Illumination|Fair|Parade|Celebration|Fireworks|Hanami|Momiji)$", re.IGNORECASE
)
_EVENT_CATEGORIES = frozenset({"culture", "nature"})

# Name pattern -> category, first match wins; landmark patterns come before dining ones.
CATEGORY_PATTERNS: Tuple[Tuple[re.Pattern, str], ...] = (
    (re.compile(r"castle|jo\b|城", re.IGNORECASE), "landmark"),
    (re.compile(r"palace|imperial|御所", re.IGNORECASE), "landmark"),
    (re.compile(r"tower|塔", re.IGNORECASE), "landmark"),
    (re.compile(r"gate|mon\b|門", re.IGNORECASE), "landmark"),
    (re.compile(r"shrine|jinja|jingu|taisha|torii|神社|大社|神宮", re.IGNORECASE), "shrine"),
    (re.compile(r"temple|-ji\b|dera|\bin\b|寺|院", re.IGNORECASE), "temple"),
    (re.compile(r"museum|gallery|art center|美術館|博物館", re.IGNORECASE), "museum"),
    (re.compile(r"park|garden|botanical|koen|公園|庭園", re.IGNORECASE), "park"),
    (re.compile(r"observatory|observation deck|viewpoint|lookout|展望", re.IGNORECASE), "viewpoint"),
    (re.compile(r"market|arcade|shotengai|市場|商店街", re.IGNORECASE), "market"),
    (re.compile(r"restaurant|ramen|sushi|izakaya|cafe|café|coffee shop|bakery|dining|eatery|レストラン|食堂", re.IGNORECASE), "restaurant"),
    (re.compile(r"\bbar\b|pub|sake bar|brewery|酒", re.IGNORECASE), "bar"),
)

DINING_CATEGORIES = frozenset({"food", "restaurant", "bar", "cafe"})
LANDMARK_CATEGORIES = frozenset({"shrine", "temple", "landmark", "museum", "park", "viewpoint"})

NON_RESTAURANT_PATTERN = re.compile(
    r"castle|shrine|temple|museum|park|garden|tower|palace|observatory|gate|bridge|historic|heritage|"
    r"ruins|monument|jo\b|jinja|jingu|dera|taisha|-ji\b|城|神社|寺|塔|門",
    re.IGNORECASE,
)
_DINING_NAME = re.compile(r"restaurant|ramen|sushi|izakaya|cafe|café|bistro|diner|eatery|dining", re.IGNORECASE)
_LODGING_NAME = re.compile(r"hotel|inn|ryokan|hostel|resort|lodge|guest ?house|minshuku|onsen", re.IGNORECASE)


def infer_category(name: str) -> Optional[str]:
    for pattern, category in CATEGORY_PATTERNS:
        if pattern.search(name):
            return category
    return None


def _category_fix(ctx: RuleContext, loc: Location, fallback: Optional[SuggestedFix]) -> Optional[SuggestedFix]:
    return with_override(ctx.overrides, loc, FixAction.UPDATE_CATEGORY, fallback)


def detect_invalid_category(ctx: RuleContext) -> List[Issue]:
    issues: List[Issue] = []
    for loc in ctx.active():
        if loc.category in geography.VALID_CATEGORIES:
            continue
        guess = infer_category(loc.name)
        if guess:
            fallback = SuggestedFix(
                action=FixAction.UPDATE_CATEGORY,
                new_value=guess,
                reason="Inferred from name",
                confidence=h.INFERRED_CATEGORY_CONFIDENCE,
                source=FixSource.GENERATED,
            )
        else:
            fallback = detection_fix(FixAction.UPDATE_CATEGORY, "Needs manual categorisation")
        issues.append(
            make_issue(
                loc,
                "invalid-category",
                IssueType.CATEGORY_INVALID,
                Severity.HIGH,
                f'Category "{loc.category}" is not one of the allowed categories',
                details={"category": loc.category},
                suggested_fix=_category_fix(ctx, loc, fallback),
            )
        )
    return issues


def detect_event_wrong_category(ctx: RuleContext) -> List[Issue]:
    issues: List[Issue] = []
    for loc in ctx.active():
        if not _EVENT_NAME.search(loc.name) or loc.category in _EVENT_CATEGORIES:
            continue
        fallback = SuggestedFix(
            action=FixAction.UPDATE_CATEGORY,
            new_value="culture",
            reason="Events belong to the culture category",
            confidence=h.EVENT_CATEGORY_CONFIDENCE,
            source=FixSource.GENERATED,
        )
        issues.append(
            make_issue(
                loc,
                "event-category",
                IssueType.EVENT_WRONG_CATEGORY,
                Severity.LOW,
                f'Event "{loc.name}" is categorised as "{loc.category}"',
                details={"category": loc.category},
                suggested_fix=_category_fix(ctx, loc, fallback),
            )
        )
    return issues


def detect_accommodation_miscategorized(ctx: RuleContext) -> List[Issue]:
    issues: List[Issue] = []
    for loc in ctx.active():
        if loc.category != "accommodation":
            continue
        if not _DINING_NAME.search(loc.name) or _LODGING_NAME.search(loc.name):
            continue
        fallback = SuggestedFix(
            action=FixAction.UPDATE_CATEGORY,
            new_value="restaurant",
            reason="Name describes a dining establishment",
            confidence=h.ACCOMMODATION_RESTAURANT_CONFIDENCE,
            source=FixSource.GENERATED,
        )
        issues.append(
            make_issue(
                loc,
                "accommodation-category",
                IssueType.ACCOMMODATION_MISCATEGORIZED,
                Severity.MEDIUM,
                f'"{loc.name}" is categorised as accommodation but looks like a restaurant',
                suggested_fix=_category_fix(ctx, loc, fallback),
            )
        )
    return issues


def detect_landmark_miscategorized(ctx: RuleContext) -> List[Issue]:
    issues: List[Issue] = []
    for loc in ctx.active():
        if loc.category not in DINING_CATEGORIES or not NON_RESTAURANT_PATTERN.search(loc.name):
            continue
        expected = infer_category(loc.name)
        if expected not in LANDMARK_CATEGORIES:
            continue
        fallback = SuggestedFix(
            action=FixAction.UPDATE_CATEGORY,
            new_value=expected,
            reason=f"Name matches {expected} pattern",
            confidence=h.LANDMARK_CATEGORY_CONFIDENCE,
            source=FixSource.GENERATED,
        )
        issues.append(
            make_issue(
                loc,
                "landmark-category",
                IssueType.LANDMARK_MISCATEGORIZED,
                Severity.HIGH,
                f'"{loc.name}" is categorised as {loc.category} but looks like a {expected}',
                details={"category": loc.category, "expectedCategory": expected},
                suggested_fix=_category_fix(ctx, loc, fallback),
            )
        )
    return issues


def detect_prefecture_region_mismatch(ctx: RuleContext) -> List[Issue]:
    issues: List[Issue] = []
    for loc in ctx.active():
        if not loc.prefecture:
            continue
        expected = geography.expected_region(loc.prefecture)
        if expected is None or expected == loc.region:
            continue
        issues.append(
            make_issue(
                loc,
                "prefecture-region",
                IssueType.PREFECTURE_REGION_MISMATCH,
                Severity.MEDIUM,
                f'Prefecture "{loc.prefecture}" belongs to {expected}, not "{loc.region}"',
                details={"prefecture": loc.prefecture, "region": loc.region, "expectedRegion": expected},
                suggested_fix=SuggestedFix(
                    action=FixAction.UPDATE_REGION,
                    new_value=expected,
                    reason="Region derived from prefecture",
                    confidence=h.REGION_FROM_PREFECTURE_CONFIDENCE,
                    source=FixSource.GENERATED,
                ),
            )
        )
    return issues


CATEGORY_RULES = [
    Rule(
        "category-invalid",
        "Invalid Category",
        "Categories outside the allowed vocabulary",
        "categories",
        (IssueType.CATEGORY_INVALID,),
        detect_invalid_category,
    ),
    Rule(
        "event-wrong-category",
        "Event Wrong Category",
        "Festivals and events outside culture/nature",
        "categories",
        (IssueType.EVENT_WRONG_CATEGORY,),
        detect_event_wrong_category,
    ),
    Rule(
        "accommodation-miscategorized",
        "Accommodation Miscategorized",
        "Restaurants filed as accommodation",
        "categories",
        (IssueType.ACCOMMODATION_MISCATEGORIZED,),
        detect_accommodation_miscategorized,
    ),
    Rule(
        "landmark-miscategorized",
        "Landmark Miscategorized",
        "Castles, shrines and museums filed as dining",
        "categories",
        (IssueType.LANDMARK_MISCATEGORIZED,),
        detect_landmark_miscategorized,
    ),
    Rule(
        "prefecture-region-mismatch",
        "Prefecture Region Mismatch",
        "Region that does not match the prefecture",
        "categories",
        (IssueType.PREFECTURE_REGION_MISMATCH,),
        detect_prefecture_region_mismatch,
    ),
]
