"""Name-related detection rules."""

import re
from typing import List

from dq.core import geography
from dq.core.models import FixAction, FixSource, Issue, IssueType, Severity, SuggestedFix
from dq.rules import heuristics as h
from dq.rules import text
from dq.rules.base import Rule, RuleContext, detection_fix, make_issue, preview, with_override

_ID_SUFFIX = re.compile(r"-([a-f0-9]{8})$")
_GENERIC_ARTICLE = re.compile(r"^The\s+\w+$", re.IGNORECASE)

# Words that are usually followed by "Palace", "Park", "Museum", ...
TRUNCATED_NAME_ENDINGS = frozenset(
    {"Imperial", "National", "Memorial", "Peace", "Royal", "Prefectural", "Municipal", "City"}
)

# Categories where a single-word name is usually incomplete.
CATEGORIES_NEEDING_FULL_NAMES = frozenset({"culture", "landmark", "museum", "attraction", "entertainment"})

_SHORT_NAME_EXCEPTIONS = frozenset({"spa", "inn", "pub", "bar"})


def detect_event_name_mismatch(ctx: RuleContext) -> List[Issue]:
    issues: List[Issue] = []
    for loc in ctx.active():
        if not text.contains_event_keyword(loc.name) or text.has_shrine_temple_suffix(loc.name):
            continue
        if not loc.editorial_summary or not text.contains_shrine_temple_keyword(loc.editorial_summary):
            continue

        confidence = text.event_mismatch_confidence(loc.name, loc.editorial_summary)
        if confidence < h.EVENT_REPORT_THRESHOLD:
            continue

        severity = Severity.HIGH if confidence >= h.EVENT_HIGH_SEVERITY_THRESHOLD else Severity.MEDIUM
        fallback = detection_fix(
            FixAction.RENAME, "Needs Google Places lookup to determine correct name", confidence
        )
        issues.append(
            make_issue(
                loc,
                "event-name",
                IssueType.EVENT_NAME_MISMATCH,
                severity,
                f'Event name "{loc.name}" appears to describe a shrine/temple based on editorial summary',
                details={"confidence": confidence, "editorialSummary": preview(loc.editorial_summary) + "..."},
                suggested_fix=with_override(ctx.overrides, loc, FixAction.RENAME, fallback),
            )
        )
    return issues


def proposed_id(location_id: str, name: str, region: str) -> str:
    """Slug id regenerated from the current name, keeping any 8-hex suffix."""
    match = _ID_SUFFIX.search(location_id)
    region_slug = re.sub(r"\s+", "-", region.lower())
    base = f"{text.to_slug(name)}-{region_slug}"
    return f"{base}-{match.group(1)}" if match else base


def detect_name_id_mismatch(ctx: RuleContext) -> List[Issue]:
    issues: List[Issue] = []
    for loc in ctx.active():
        name_slug = text.to_slug(loc.name)
        id_slug = _ID_SUFFIX.sub("", loc.id)
        if name_slug == id_slug or name_slug in id_slug or id_slug in name_slug:
            continue
        if abs(len(name_slug) - len(id_slug)) < h.NAME_ID_MIN_LENGTH_GAP:
            continue

        new_id = proposed_id(loc.id, loc.name, loc.region)
        issues.append(
            make_issue(
                loc,
                "name-id",
                IssueType.NAME_ID_MISMATCH,
                Severity.LOW,
                f'ID slug "{id_slug}" doesn\'t match name slug "{name_slug}"',
                details={"idSlug": id_slug, "nameSlug": name_slug, "newId": new_id},
                suggested_fix=SuggestedFix(
                    action=FixAction.UPDATE_ID,
                    new_value=new_id,
                    reason="ID regenerated from current name",
                    confidence=h.NAME_ID_CONFIDENCE,
                    source=FixSource.GENERATED,
                ),
            )
        )
    return issues


def detect_all_caps_name(ctx: RuleContext) -> List[Issue]:
    issues: List[Issue] = []
    for loc in ctx.active():
        if not text.is_all_caps(loc.name):
            continue
        fallback = SuggestedFix(
            action=FixAction.RENAME,
            new_value=text.title_case(loc.name),
            reason="Converted to title case",
            confidence=h.ALL_CAPS_CONFIDENCE,
            source=FixSource.GENERATED,
        )
        issues.append(
            make_issue(
                loc,
                "all-caps",
                IssueType.ALL_CAPS_NAME,
                Severity.MEDIUM,
                f'Name "{loc.name}" is in ALL CAPS',
                suggested_fix=with_override(ctx.overrides, loc, FixAction.RENAME, fallback),
            )
        )
    return issues


def detect_bad_name_start(ctx: RuleContext) -> List[Issue]:
    issues: List[Issue] = []
    for loc in ctx.active():
        if not text.has_bad_name_start(loc.name):
            continue
        fallback = SuggestedFix(
            action=FixAction.RENAME,
            new_value=text.strip_bad_name_start(loc.name),
            reason="Removed leading special characters",
            confidence=h.BAD_NAME_START_CONFIDENCE,
            source=FixSource.GENERATED,
        )
        issues.append(
            make_issue(
                loc,
                "bad-start",
                IssueType.BAD_NAME_START,
                Severity.MEDIUM,
                f'Name "{loc.name}" starts with a special character',
                suggested_fix=with_override(ctx.overrides, loc, FixAction.RENAME, fallback),
            )
        )
    return issues


def detect_generic_plural(ctx: RuleContext) -> List[Issue]:
    return [
        make_issue(
            loc,
            "generic-plural",
            IssueType.GENERIC_PLURAL_NAME,
            Severity.MEDIUM,
            f'Name "{loc.name}" is a generic plural category, not a specific location',
        )
        for loc in ctx.active()
        if text.is_generic_plural(loc.name)
    ]


def detect_generic_article(ctx: RuleContext) -> List[Issue]:
    return [
        make_issue(
            loc,
            "generic-article",
            IssueType.GENERIC_ARTICLE_NAME,
            Severity.LOW,
            f'Name "{loc.name}" is too generic (article + single word)',
        )
        for loc in ctx.active()
        if _GENERIC_ARTICLE.match(loc.name) and len(loc.name.split(" ")) == 2
    ]


def detect_truncated_name(ctx: RuleContext) -> List[Issue]:
    issues: List[Issue] = []
    for loc in ctx.active():
        words = loc.name.split()
        if not words or words[-1] not in TRUNCATED_NAME_ENDINGS:
            continue
        if len(words) == 1 or len(words) > h.TRUNCATED_NAME_MAX_WORDS:
            continue

        fallback = detection_fix(
            FixAction.RENAME, "Needs Google Places lookup to determine full name", h.TRUNCATED_NAME_CONFIDENCE
        )
        issues.append(
            make_issue(
                loc,
                "truncated-name",
                IssueType.TRUNCATED_NAME,
                Severity.HIGH,
                f'Name "{loc.name}" appears truncated - missing suffix after "{words[-1]}"',
                details={"truncatedEnding": words[-1], "editorialSummary": preview(loc.editorial_summary)},
                suggested_fix=with_override(ctx.overrides, loc, FixAction.RENAME, fallback),
            )
        )
    return issues


def is_complete_single_word(name: str, city: str) -> bool:
    """True for single words that are legitimate full names (areas, islands, temples)."""
    if len(name) < h.SHORT_NAME_MIN_LENGTH or name.lower() in _SHORT_NAME_EXCEPTIONS:
        return True
    if city and name.lower() == city.lower():
        return True
    return text.has_geographic_suffix(name) or text.is_known_area_name(name)


def detect_short_incomplete_name(ctx: RuleContext) -> List[Issue]:
    issues: List[Issue] = []
    for loc in ctx.active():
        if (loc.category or "").lower() not in CATEGORIES_NEEDING_FULL_NAMES:
            continue
        if len(re.split(r"[\s-]+", loc.name.strip())) > 1:
            continue
        if is_complete_single_word(loc.name, loc.city):
            continue

        if loc.place_id:
            fallback = detection_fix(
                FixAction.RENAME,
                "Needs Google Places lookup to determine full name",
                h.SHORT_NAME_WITH_PLACE_ID_CONFIDENCE,
            )
        else:
            fallback = detection_fix(
                FixAction.RENAME,
                "Needs manual lookup or place_id for Google verification",
                h.SHORT_NAME_WITHOUT_PLACE_ID_CONFIDENCE,
            )
        issues.append(
            make_issue(
                loc,
                "short-name",
                IssueType.SHORT_INCOMPLETE_NAME,
                Severity.HIGH,
                f'Single-word name "{loc.name}" in {loc.category} category - likely incomplete',
                details={"category": loc.category, "wordCount": 1, "hasPlaceId": bool(loc.place_id)},
                suggested_fix=with_override(ctx.overrides, loc, FixAction.RENAME, fallback),
            )
        )
    return issues


def detect_city_spelling_variant(ctx: RuleContext) -> List[Issue]:
    issues: List[Issue] = []
    for loc in ctx.active():
        suggestion = geography.city_normalization_suggestion(loc.city)
        if suggestion is None:
            continue
        normalized, reason = suggestion
        issues.append(
            make_issue(
                loc,
                "city-variant",
                IssueType.CITY_SPELLING_VARIANT,
                Severity.MEDIUM,
                f'City "{loc.city}" should be normalized to "{normalized}"',
                details={"currentCity": loc.city, "normalizedCity": normalized, "reason": reason},
                suggested_fix=detection_fix(FixAction.SKIP, f"Normalize city name: {reason}", h.CITY_VARIANT_CONFIDENCE),
            )
        )
    return issues


def detect_name_city_mismatch(ctx: RuleContext) -> List[Issue]:
    issues: List[Issue] = []
    for loc in ctx.active():
        other_city = geography.find_mismatched_city_in_name(loc.name, loc.city)
        if other_city is None:
            continue
        issues.append(
            make_issue(
                loc,
                "name-city-mismatch",
                IssueType.NAME_CITY_MISMATCH,
                Severity.MEDIUM,
                f'Location "{loc.name}" contains city name "{other_city}" but is located in {loc.city}',
                details={"actualCity": loc.city, "cityInName": other_city},
                suggested_fix=detection_fix(
                    FixAction.SKIP,
                    'Needs manual review - may be correct (e.g., "Osaka-style Okonomiyaki" in Kyoto) or data error',
                    h.NAME_CITY_MISMATCH_CONFIDENCE,
                ),
            )
        )
    return issues


NAME_RULES = [
    Rule(
        "event-name-mismatch",
        "Event Name Mismatch",
        "Locations named after a festival whose summary describes a shrine or temple",
        "names",
        (IssueType.EVENT_NAME_MISMATCH,),
        detect_event_name_mismatch,
    ),
    Rule(
        "name-id-mismatch",
        "Name/ID Mismatch",
        "Locations whose id slug no longer matches the name",
        "names",
        (IssueType.NAME_ID_MISMATCH,),
        detect_name_id_mismatch,
    ),
    Rule("all-caps-name", "All Caps Name", "Names written in ALL CAPS", "names", (IssueType.ALL_CAPS_NAME,), detect_all_caps_name),
    Rule(
        "bad-name-start",
        "Bad Name Start",
        "Names starting with punctuation",
        "names",
        (IssueType.BAD_NAME_START,),
        detect_bad_name_start,
    ),
    Rule(
        "generic-plural-name",
        "Generic Plural Name",
        'Generic plural names like "Ramen Shops"',
        "names",
        (IssueType.GENERIC_PLURAL_NAME,),
        detect_generic_plural,
    ),
    Rule(
        "generic-article-name",
        "Generic Article Name",
        'Names like "The X"',
        "names",
        (IssueType.GENERIC_ARTICLE_NAME,),
        detect_generic_article,
    ),
    Rule(
        "truncated-name",
        "Truncated Name",
        "Names cut off before their suffix",
        "names",
        (IssueType.TRUNCATED_NAME,),
        detect_truncated_name,
    ),
    Rule(
        "short-incomplete-name",
        "Short Incomplete Name",
        "Single-word names in categories that need full names",
        "names",
        (IssueType.SHORT_INCOMPLETE_NAME,),
        detect_short_incomplete_name,
    ),
    Rule(
        "city-spelling-variant",
        "City Spelling Variant",
        'City names that need normalising ("Amakusa, Kumamoto" -> "Amakusa")',
        "names",
        (IssueType.CITY_SPELLING_VARIANT,),
        detect_city_spelling_variant,
    ),
    Rule(
        "name-city-mismatch",
        "Name City Mismatch",
        "Names that mention a different major city",
        "names",
        (IssueType.NAME_CITY_MISMATCH,),
        detect_name_city_mismatch,
    ),
]
