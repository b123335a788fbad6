from datetime import datetime, timezone

import pytest

from dq.core.models import Issue, IssueType, Severity
from dq.report import health


def _issue(index, issue_type=IssueType.MISSING_PLACE_ID, severity=Severity.INFO):
    return Issue(
        id=f"loc-{index}-{issue_type.value}",
        type=issue_type,
        severity=severity,
        location_id=f"loc-{index}",
        location_name=f"Location {index}",
        city="Kyoto",
        region="Kansai",
        message="",
    )


def test_score_is_perfect_without_records_or_issues():
    assert health.health_score([], 0) == 100
    assert health.health_score([], 50) == 100
    assert health.health_score([_issue(1, severity=Severity.CRITICAL)], 0) == 100


def test_score_stays_in_range_and_drops_with_more_criticals():
    scores = [
        health.health_score([_issue(i, severity=Severity.CRITICAL) for i in range(count)], 10)
        for count in range(0, 13)
    ]

    assert all(0 <= score <= 100 for score in scores)
    assert scores[:11] == sorted(scores[:11], reverse=True)
    assert len(set(scores[:11])) == 11
    assert scores[10] == scores[12] == 0


@pytest.mark.parametrize(
    "severity, expected",
    [(Severity.HIGH, 95), (Severity.MEDIUM, 98), (Severity.LOW, 99), (Severity.INFO, 100)],
)
def test_score_weights(severity, expected):
    assert health.health_score([_issue(1, severity=severity)], 10) == expected


def test_report_counts_top_issues_and_recommendations():
    issues = [
        _issue(1, IssueType.DUPLICATE_SAME_CITY, Severity.CRITICAL),
        _issue(2, IssueType.DUPLICATE_SAME_CITY, Severity.CRITICAL),
        _issue(3, IssueType.ADDRESS_AS_DESC, Severity.HIGH),
        _issue(1, IssueType.MISSING_PLACE_ID),
        _issue(2, IssueType.MISSING_PLACE_ID),
        _issue(3, IssueType.MISSING_PLACE_ID),
    ]
    now = datetime(2026, 1, 2, 3, 4, 5, tzinfo=timezone.utc)

    report = health.generate_health_report(issues, 5, now=now)

    assert report.timestamp == "2026-01-02T03:04:05+00:00"
    assert report.issues_by_type == {"DUPLICATE_SAME_CITY": 2, "ADDRESS_AS_DESC": 1, "MISSING_PLACE_ID": 3}
    assert report.issues_by_severity == {"critical": 2, "high": 1, "info": 3}
    assert [issue.type for issue in report.top_issues] == [
        IssueType.MISSING_PLACE_ID,
        IssueType.DUPLICATE_SAME_CITY,
        IssueType.ADDRESS_AS_DESC,
    ]
    assert report.top_issues[1].location_id == "loc-1"
    assert report.recommendations == [
        "Fix 2 critical issue(s) immediately - these affect data integrity",
        "Address 1 high-severity issue(s) to improve data quality",
        "Review 2 duplicate entries in same cities - run 'python -m dq.jobs.run_audit fix --type=DUPLICATE_SAME_CITY'",
        "Update 1 descriptions that are just addresses - run 'python -m dq.jobs.run_audit fix --type=ADDRESS_AS_DESC'",
        "Consider enriching 3 locations with Google Place IDs for better data",
    ]


def test_place_id_recommendation_needs_a_large_share():
    issues = [_issue(1, IssueType.MISSING_PLACE_ID)]

    assert health.generate_health_report(issues, 10).recommendations == []


def test_to_dict_uses_camel_case_keys():
    report = health.generate_health_report([_issue(1, IssueType.ALL_CAPS_NAME, Severity.MEDIUM)], 4)

    payload = report.to_dict()

    assert payload["totalLocations"] == 4
    assert payload["healthScore"] == 95
    assert payload["issuesBySeverity"] == {"medium": 1}
    assert payload["topIssues"][0]["type"] == "ALL_CAPS_NAME"
    assert payload["recommendations"] == [
        "Fix 1 ALL CAPS names - run 'python -m dq.jobs.run_audit fix --type=ALL_CAPS_NAME'"
    ]
