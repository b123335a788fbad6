"""CLI for auditing and repairing the locations catalog.

    python -m dq.jobs.run_audit audit --severity=high
    python -m dq.jobs.run_audit fix --type=ALL_CAPS_NAME --dry-run
    python -m dq.jobs.run_audit report --detailed
    python -m dq.jobs.run_audit list
"""

import argparse
import json
import logging
from typing import List, Optional, Sequence

from dq.core.config import get_settings
from dq.core.db import LocationStore, init_pool
from dq.core.models import AuditOptions, Issue, IssueType, Severity
from dq.core.overrides import load_overrides
from dq.fixers.base import FixerContext
from dq.fixers.registry import ALL_FIXERS
from dq.jobs.pipeline import build_report, collect_issues, run_audit, run_fixes
from dq.report.health import HealthReport
from dq.rules.registry import rules_by_category
from dq.vendors.google_places import PlacesClient

logger = logging.getLogger(__name__)

_ISSUE_PREVIEW_LIMIT = 50


def _split(raw: Optional[str]) -> Optional[List[str]]:
    if not raw:
        return None
    return [part.strip() for part in raw.split(",") if part.strip()]


def parse_issue_types(raw: Optional[str]) -> Optional[List[IssueType]]:
    names = _split(raw)
    if not names:
        return None
    try:
        return [IssueType(name.upper()) for name in names]
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"unknown issue type in {raw!r}") from exc


def options_from_args(args: argparse.Namespace) -> AuditOptions:
    return AuditOptions(
        rules=_split(getattr(args, "rules", None)),
        severity=Severity(args.severity) if getattr(args, "severity", None) else None,
        limit=getattr(args, "limit", None),
        city=getattr(args, "city", None),
        region=getattr(args, "region", None),
        category=getattr(args, "category", None),
    )


def make_places_client() -> Optional[PlacesClient]:
    settings = get_settings()
    if not settings.google_api_key:
        return None
    return PlacesClient(settings.google_api_key, delay_seconds=settings.lookup_delay_seconds)


def print_issues(issues: Sequence[Issue], limit: int = _ISSUE_PREVIEW_LIMIT) -> None:
    if not issues:
        print("No issues found")
        return
    for issue in issues[:limit]:
        print(f"[{issue.severity.value.upper()}] {issue.type.value} {issue.location_name} ({issue.city})")
        print(f"  {issue.message}")
        if issue.suggested_fix is not None:
            print(f"  Fix: {issue.suggested_fix.reason} (confidence {issue.suggested_fix.confidence})")
            if issue.suggested_fix.new_value:
                print(f"  Value: {issue.suggested_fix.new_value[:60]}")
    if len(issues) > limit:
        print(f"... and {len(issues) - limit} more issues")


def print_report(report: HealthReport, detailed: bool = False) -> None:
    print(f"Health Score: {report.health_score}/100")
    print(f"Total Locations: {report.total_locations}")
    print(f"Report Generated: {report.timestamp}")
    print("Issues by Severity:")
    for severity in Severity:
        count = report.issues_by_severity.get(severity.value, 0)
        if count or detailed:
            print(f"  {severity.value:<10} {count}")
    if detailed:
        print("Issues by Type:")
        for issue_type, count in sorted(report.issues_by_type.items(), key=lambda item: item[1], reverse=True):
            print(f"  {issue_type:<30} {count}")
    if report.top_issues:
        print("Top Issues:")
        for issue in report.top_issues[:5]:
            print(f"  [{issue.type.value}] {issue.message} ({report.issues_by_type[issue.type.value]} total)")
    if report.recommendations:
        print("Recommendations:")
        for recommendation in report.recommendations:
            print(f"  - {recommendation}")


def cmd_audit(args: argparse.Namespace) -> int:
    settings = get_settings()
    init_pool()
    issues = run_audit(
        LocationStore(),
        load_overrides(settings.overrides_path),
        options_from_args(args),
        max_workers=settings.rule_workers,
    )
    if args.json:
        print(json.dumps([issue.to_dict() for issue in issues], ensure_ascii=False, indent=2))
    else:
        print_issues(issues)
    return 0


def cmd_fix(args: argparse.Namespace) -> int:
    types = parse_issue_types(args.type)
    settings = get_settings()
    init_pool()
    store = LocationStore()
    overrides = load_overrides(settings.overrides_path)

    options = options_from_args(args)
    limit, options.limit = options.limit, None
    _, issues = collect_issues(store, overrides, options, max_workers=settings.rule_workers)

    ctx = FixerContext(store=store, overrides=overrides, dry_run=args.dry_run, places=make_places_client())
    summary = run_fixes(
        issues,
        ctx,
        types=types,
        limit=limit,
        max_workers=settings.fix_workers,
    )

    if args.json:
        print(json.dumps(summary.to_dict(), ensure_ascii=False, indent=2))
    else:
        prefix = "[DRY RUN] " if args.dry_run else ""
        for result in summary.results:
            mark = "ok" if result.success else ("FATAL" if result.fatal else "failed")
            print(f"{prefix}{mark} {result.action.value} {result.location_id}: {result.message}")
        print(
            f"{summary.fixed} fixed, {summary.skipped} skipped, {summary.failed} failed, "
            f"{summary.inconsistent} inconsistent"
        )
    return 2 if summary.inconsistent else (1 if summary.failed else 0)


def cmd_report(args: argparse.Namespace) -> int:
    settings = get_settings()
    init_pool()
    report = build_report(
        LocationStore(),
        load_overrides(settings.overrides_path),
        options_from_args(args),
        max_workers=settings.rule_workers,
    )
    if args.json:
        print(json.dumps(report.to_dict(), ensure_ascii=False, indent=2))
    else:
        print_report(report, detailed=args.detailed)
    return 0


def cmd_list(args: argparse.Namespace) -> int:
    if args.json:
        payload = {
            "rules": [
                {"id": rule.id, "name": rule.name, "category": category, "issueTypes": [t.value for t in rule.issue_types]}
                for category, rules in rules_by_category().items()
                for rule in rules
            ],
            "fixers": [{"name": fixer.name, "handles": [t.value for t in fixer.handles]} for fixer in ALL_FIXERS],
        }
        print(json.dumps(payload, indent=2))
        return 0

    print("Available Rules:")
    for category, rules in rules_by_category().items():
        print(f"  {category}:")
        for rule in rules:
            print(f"    {rule.id:<34} {rule.description}")
    print("Available Fixers:")
    for fixer in ALL_FIXERS:
        print(f"  {fixer.name}")
        print(f"    Handles: {', '.join(t.value for t in fixer.handles)}")
    return 0


def _add_filters(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--rules", dest="rules", help="Comma-separated rule ids or categories")
    parser.add_argument(
        "--severity", dest="severity", choices=[s.value for s in Severity], help="Minimum severity to include"
    )
    parser.add_argument("--limit", dest="limit", type=int, help="Maximum number of issues")
    parser.add_argument("--city", dest="city", help="Only audit this city")
    parser.add_argument("--region", dest="region", help="Only audit this region")
    parser.add_argument("--category", dest="category", help="Only audit this category")
    parser.add_argument("--json", dest="json", action="store_true", help="Print machine-readable JSON")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Audit and repair location data quality")
    subparsers = parser.add_subparsers(dest="command", required=True)

    audit = subparsers.add_parser("audit", help="Run detection rules and list issues")
    _add_filters(audit)
    audit.set_defaults(handler=cmd_audit)

    fix = subparsers.add_parser("fix", help="Apply fixers to detected issues")
    _add_filters(fix)
    fix.add_argument("--type", dest="type", help="Comma-separated issue types to fix")
    fix.add_argument("--dry-run", dest="dry_run", action="store_true", help="Preview fixes without writing")
    fix.set_defaults(handler=cmd_fix)

    report = subparsers.add_parser("report", help="Print the data health report")
    _add_filters(report)
    report.add_argument("--detailed", dest="detailed", action="store_true", help="Include per-type counts")
    report.set_defaults(handler=cmd_report)

    listing = subparsers.add_parser("list", help="List rules and fixers")
    listing.add_argument("--json", dest="json", action="store_true", help="Print machine-readable JSON")
    listing.set_defaults(handler=cmd_list)
    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s - %(message)s")
    parser = build_parser()
    args = parser.parse_args(argv)
    try:
        return args.handler(args)
    except argparse.ArgumentTypeError as exc:
        parser.error(str(exc))
    return 2


if __name__ == "__main__":
    raise SystemExit(main())
