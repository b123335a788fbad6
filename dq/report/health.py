"""Aggregate issues into a health score and operator recommendations."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Sequence

from dq.core.models import Issue, Severity

TOP_ISSUE_TYPES = 10
# Recommend Place ID enrichment once this share of records lacks one.
MISSING_PLACE_ID_SHARE = 0.3

_FIX_COMMAND = "python -m dq.jobs.run_audit fix --type={}"


@dataclass
class HealthReport:
    timestamp: str
    total_locations: int
    issues_by_type: Dict[str, int]
    issues_by_severity: Dict[str, int]
    health_score: int
    top_issues: List[Issue] = field(default_factory=list)
    recommendations: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "timestamp": self.timestamp,
            "totalLocations": self.total_locations,
            "issuesByType": dict(self.issues_by_type),
            "issuesBySeverity": dict(self.issues_by_severity),
            "healthScore": self.health_score,
            "topIssues": [issue.to_dict() for issue in self.top_issues],
            "recommendations": list(self.recommendations),
        }


def health_score(issues: Sequence[Issue], total_locations: int) -> int:
    """100 minus the severity-weighted penalty as a share of ``total_locations * 10``."""
    if total_locations <= 0 or not issues:
        return 100
    penalty = sum(issue.severity.weight for issue in issues)
    max_penalty = total_locations * Severity.CRITICAL.weight
    ratio = min(penalty / max_penalty, 1)
    return max(0, min(100, round((1 - ratio) * 100)))


def _top_issues(issues: Sequence[Issue], limit: int) -> List[Issue]:
    first_by_type: Dict[str, Issue] = {}
    counts: Dict[str, int] = {}
    for issue in issues:
        first_by_type.setdefault(issue.type.value, issue)
        counts[issue.type.value] = counts.get(issue.type.value, 0) + 1
    ranked = sorted(counts, key=lambda issue_type: counts[issue_type], reverse=True)
    return [first_by_type[issue_type] for issue_type in ranked[:limit]]


def _recommendations(by_type: Dict[str, int], by_severity: Dict[str, int], total_locations: int) -> List[str]:
    recommendations: List[str] = []

    critical = by_severity.get(Severity.CRITICAL.value, 0)
    if critical:
        recommendations.append(f"Fix {critical} critical issue(s) immediately - these affect data integrity")
    high = by_severity.get(Severity.HIGH.value, 0)
    if high:
        recommendations.append(f"Address {high} high-severity issue(s) to improve data quality")

    if by_type.get("DUPLICATE_SAME_CITY"):
        recommendations.append(
            f"Review {by_type['DUPLICATE_SAME_CITY']} duplicate entries in same cities - "
            f"run '{_FIX_COMMAND.format('DUPLICATE_SAME_CITY')}'"
        )
    if by_type.get("ADDRESS_AS_DESC"):
        recommendations.append(
            f"Update {by_type['ADDRESS_AS_DESC']} descriptions that are just addresses - "
            f"run '{_FIX_COMMAND.format('ADDRESS_AS_DESC')}'"
        )
    if by_type.get("EVENT_NAME_MISMATCH"):
        recommendations.append(
            f"Review {by_type['EVENT_NAME_MISMATCH']} locations where event names may need correction"
        )
    if by_type.get("ALL_CAPS_NAME"):
        recommendations.append(
            f"Fix {by_type['ALL_CAPS_NAME']} ALL CAPS names - run '{_FIX_COMMAND.format('ALL_CAPS_NAME')}'"
        )
    if by_type.get("MISSING_COORDINATES"):
        recommendations.append(f"Geocode {by_type['MISSING_COORDINATES']} locations missing coordinates")

    missing_place_ids = by_type.get("MISSING_PLACE_ID", 0)
    if missing_place_ids > total_locations * MISSING_PLACE_ID_SHARE:
        recommendations.append(
            f"Consider enriching {missing_place_ids} locations with Google Place IDs for better data"
        )
    return recommendations


def generate_health_report(
    issues: Sequence[Issue],
    total_locations: int,
    now: Optional[datetime] = None,
) -> HealthReport:
    by_type: Dict[str, int] = {}
    by_severity: Dict[str, int] = {}
    for issue in issues:
        by_type[issue.type.value] = by_type.get(issue.type.value, 0) + 1
        by_severity[issue.severity.value] = by_severity.get(issue.severity.value, 0) + 1

    timestamp = (now or datetime.now(timezone.utc)).isoformat()
    return HealthReport(
        timestamp=timestamp,
        total_locations=total_locations,
        issues_by_type=by_type,
        issues_by_severity=by_severity,
        health_score=health_score(issues, total_locations),
        top_issues=_top_issues(issues, TOP_ISSUE_TYPES),
        recommendations=_recommendations(by_type, by_severity, total_locations),
    )
