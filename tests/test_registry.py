import logging

from conftest import make_location

from dq.core.models import AuditOptions, Issue, IssueType, Overrides, Severity
from dq.rules import registry
from dq.rules.base import Rule, RuleContext


def _issue(issue_id, severity):
    return Issue(
        id=issue_id,
        type=IssueType.MISSING_PLACE_ID,
        severity=severity,
        location_id=issue_id,
        location_name=issue_id,
        city="Kyoto",
        region="Kansai",
        message="",
    )


def _catalog():
    return [
        make_location("kinkaku-ji-kansai", "KINKAKU-JI"),
        make_location("ginkaku-ji-kansai", "Ginkaku-ji", description=None),
        make_location("ryoan-ji-kansai", "Ryoan-ji", latitude=None, longitude=None),
        make_location("kinkaku-ji-kansai-2", "Kinkaku-ji"),
    ]


def test_rule_ids_are_unique_and_categorised():
    ids = [rule.id for rule in registry.ALL_RULES]

    assert len(ids) == len(set(ids))
    assert list(registry.rules_by_category()) == [
        "names",
        "descriptions",
        "duplicates",
        "categories",
        "completeness",
        "google",
    ]
    assert registry.get_rule("duplicate-nearby").category == "duplicates"
    assert registry.get_rule("nope") is None


def test_select_rules_by_id_and_category(caplog):
    options = AuditOptions(rules=["completeness", "all-caps-name", "bogus"])

    with caplog.at_level("WARNING"):
        selected = registry.select_rules(options)

    assert [rule.id for rule in selected][0] == "all-caps-name"
    assert {rule.category for rule in selected} == {"names", "completeness"}
    assert len(selected) == 1 + len(registry.rules_by_category()["completeness"])
    assert "Unknown rule or category bogus" in caplog.text


def test_select_rules_defaults_to_everything():
    assert registry.select_rules(None) == registry.ALL_RULES
    assert registry.select_rules(AuditOptions()) == registry.ALL_RULES


def test_run_rules_is_deterministic_across_worker_counts():
    ctx = RuleContext.build(_catalog(), Overrides())

    sequential = registry.run_rules(registry.ALL_RULES, ctx)
    pooled = registry.run_rules(registry.ALL_RULES, ctx, max_workers=4)

    assert [issue.id for issue in sequential] == [issue.id for issue in pooled]
    assert sequential


def test_failing_rule_does_not_stop_the_run(caplog):
    def explode(ctx):
        raise RuntimeError("boom")

    broken = Rule("broken", "Broken", "", "names", (), explode)
    working = registry.get_rule("missing-coordinates")
    ctx = RuleContext.build(_catalog(), Overrides())

    with caplog.at_level(logging.ERROR):
        issues = registry.run_rules([broken, working], ctx)

    assert [issue.location_id for issue in issues] == ["ryoan-ji-kansai"]
    assert "Rule broken failed" in caplog.text


def test_sort_issues_is_stable_within_severity():
    issues = [
        _issue("low-1", Severity.LOW),
        _issue("crit-1", Severity.CRITICAL),
        _issue("low-2", Severity.LOW),
        _issue("info", Severity.INFO),
        _issue("crit-2", Severity.CRITICAL),
    ]

    ordered = registry.sort_issues(issues)

    assert [issue.id for issue in ordered] == ["crit-1", "crit-2", "low-1", "low-2", "info"]


def test_filter_issues_by_minimum_severity_and_limit():
    issues = registry.sort_issues(
        [_issue("h", Severity.HIGH), _issue("m", Severity.MEDIUM), _issue("c", Severity.CRITICAL)]
    )

    assert [i.id for i in registry.filter_issues(issues, Severity.HIGH)] == ["c", "h"]
    assert [i.id for i in registry.filter_issues(issues, limit=1)] == ["c"]
    assert registry.filter_issues(issues, limit=0) == []
