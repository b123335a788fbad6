"""Description-related detection rules."""

from typing import List, Optional

from dq.core.models import FixAction, FixSource, Issue, IssueType, Location, Severity, SuggestedFix
from dq.rules import heuristics as h
from dq.rules import text
from dq.rules.base import Rule, RuleContext, detection_fix, make_issue, with_override

_UPDATE = FixAction.UPDATE_DESCRIPTION
_DESCRIPTION_OPTIONAL = frozenset({"food", "restaurant"})


def _editorial_fix(loc: Location, confidence: int, reason: str = "Use editorial summary") -> Optional[SuggestedFix]:
    summary = loc.editorial_summary
    if not summary or len(summary) <= h.EDITORIAL_SUMMARY_MIN_LENGTH:
        return None
    return SuggestedFix(
        action=_UPDATE,
        new_value=summary,
        reason=reason,
        confidence=confidence,
        source=FixSource.EDITORIAL_SUMMARY,
    )


def detect_address_as_description(ctx: RuleContext) -> List[Issue]:
    issues: List[Issue] = []
    for loc in ctx.active():
        if not text.is_address_like(loc.description):
            continue
        fallback = _editorial_fix(loc, h.ADDRESS_EDITORIAL_CONFIDENCE) or detection_fix(
            _UPDATE, "Needs Google Places lookup or manual entry"
        )
        issues.append(
            make_issue(
                loc,
                "address-desc",
                IssueType.ADDRESS_AS_DESC,
                Severity.HIGH,
                f'Description is just an address: "{loc.description}"',
                suggested_fix=with_override(ctx.overrides, loc, _UPDATE, fallback),
            )
        )
    return issues


def detect_truncated_description(ctx: RuleContext) -> List[Issue]:
    issues: List[Issue] = []
    for loc in ctx.active():
        if not text.is_truncated_description(loc.description):
            continue

        if loc.place_id:
            fallback = detection_fix(_UPDATE, "Can fetch from Google Places API", h.TRUNCATED_LOOKUP_CONFIDENCE)
        else:
            fallback = _editorial_fix(loc, h.TRUNCATED_EDITORIAL_CONFIDENCE) or detection_fix(
                _UPDATE, "Needs manual entry (no place_id or editorial_summary)"
            )
        issues.append(
            make_issue(
                loc,
                "truncated-desc",
                IssueType.TRUNCATED_DESC,
                Severity.MEDIUM,
                f'Description appears truncated: "{loc.description[:50]}..."',
                details={"startsWithLowercase": True, "descriptionPreview": loc.description[:100]},
                suggested_fix=with_override(ctx.overrides, loc, _UPDATE, fallback),
            )
        )
    return issues


def detect_missing_description(ctx: RuleContext) -> List[Issue]:
    issues: List[Issue] = []
    for loc in ctx.active():
        if loc.category in _DESCRIPTION_OPTIONAL:
            continue
        if loc.description and loc.description.strip():
            continue

        fallback = _editorial_fix(loc, h.MISSING_EDITORIAL_CONFIDENCE) or SuggestedFix(
            action=_UPDATE,
            new_value=text.category_description(loc.category, loc.city),
            reason="Generated from category template",
            confidence=h.GENERATED_DESCRIPTION_CONFIDENCE,
            source=FixSource.GENERATED,
        )
        issues.append(
            make_issue(
                loc,
                "missing-desc",
                IssueType.MISSING_DESC,
                Severity.MEDIUM,
                "Location has no description",
                suggested_fix=with_override(ctx.overrides, loc, _UPDATE, fallback),
            )
        )
    return issues


def detect_short_incomplete_description(ctx: RuleContext) -> List[Issue]:
    issues: List[Issue] = []
    for loc in ctx.active():
        if not loc.description:
            continue
        desc = loc.description.strip()
        if len(desc) >= h.SHORT_DESC_LENGTH or text.is_address_like(desc) or desc.endswith("."):
            continue

        if loc.editorial_summary and len(loc.editorial_summary) > len(desc):
            fallback = SuggestedFix(
                action=_UPDATE,
                new_value=loc.editorial_summary,
                reason="Use longer editorial summary",
                confidence=h.SHORT_DESC_EDITORIAL_CONFIDENCE,
                source=FixSource.EDITORIAL_SUMMARY,
            )
        else:
            fallback = detection_fix(_UPDATE, "Needs expansion")
        issues.append(
            make_issue(
                loc,
                "short-desc",
                IssueType.SHORT_INCOMPLETE_DESC,
                Severity.LOW,
                f'Description is very short ({len(desc)} chars): "{desc}"',
                details={"length": len(desc)},
                suggested_fix=with_override(ctx.overrides, loc, _UPDATE, fallback),
            )
        )
    return issues


def detect_generic_description(ctx: RuleContext) -> List[Issue]:
    issues: List[Issue] = []
    for loc in ctx.active():
        if not text.is_generic_description(loc.description):
            continue
        fallback = _editorial_fix(loc, h.GENERIC_DESC_EDITORIAL_CONFIDENCE) or detection_fix(
            _UPDATE, "Needs more specific description"
        )
        issues.append(
            make_issue(
                loc,
                "generic-desc",
                IssueType.GENERIC_DESC,
                Severity.LOW,
                f'Description is too generic: "{loc.description}"',
                suggested_fix=with_override(ctx.overrides, loc, _UPDATE, fallback),
            )
        )
    return issues


DESCRIPTION_RULES = [
    Rule(
        "address-as-desc",
        "Address as Description",
        "Descriptions that are only an address or postal code",
        "descriptions",
        (IssueType.ADDRESS_AS_DESC,),
        detect_address_as_description,
    ),
    Rule(
        "truncated-desc",
        "Truncated Description",
        "Descriptions that start mid-sentence",
        "descriptions",
        (IssueType.TRUNCATED_DESC,),
        detect_truncated_description,
    ),
    Rule(
        "missing-desc",
        "Missing Description",
        "Locations without a description (food is exempt)",
        "descriptions",
        (IssueType.MISSING_DESC,),
        detect_missing_description,
    ),
    Rule(
        "short-incomplete-desc",
        "Short Incomplete Description",
        "Descriptions too short to be useful",
        "descriptions",
        (IssueType.SHORT_INCOMPLETE_DESC,),
        detect_short_incomplete_description,
    ),
    Rule(
        "generic-desc",
        "Generic Description",
        "Placeholder descriptions",
        "descriptions",
        (IssueType.GENERIC_DESC,),
        detect_generic_description,
    ),
]
