"""Audit, remediation and report runs shared by the CLI and the HTTP server."""

from __future__ import annotations

import logging
import threading
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple

from dq.core.models import AuditOptions, FixAction, FixResult, Issue, IssueType, Location, Overrides
from dq.fixers.base import FixerContext
from dq.fixers.registry import get_fixer_for_issue_type
from dq.report.health import HealthReport, generate_health_report
from dq.rules.base import RuleContext
from dq.rules.registry import filter_issues, run_rules, select_rules, sort_issues

logger = logging.getLogger(__name__)


@dataclass
class FixRunSummary:
    results: List[FixResult] = field(default_factory=list)
    fixed: int = 0
    skipped: int = 0
    failed: int = 0
    inconsistent: int = 0
    cancelled: bool = False

    def record(self, result: FixResult) -> None:
        self.results.append(result)
        if result.fatal:
            self.inconsistent += 1
        elif result.success and result.action is not FixAction.SKIP:
            self.fixed += 1
        elif result.success or result.error_kind == "ambiguous":
            self.skipped += 1
        else:
            self.failed += 1

    def to_dict(self) -> Dict[str, Any]:
        return {
            "fixed": self.fixed,
            "skipped": self.skipped,
            "failed": self.failed,
            "inconsistent": self.inconsistent,
            "cancelled": self.cancelled,
            "results": [result.to_dict() for result in self.results],
        }


def collect_issues(
    store: Any,
    overrides: Overrides,
    options: Optional[AuditOptions] = None,
    max_workers: int = 1,
) -> Tuple[List[Location], List[Issue]]:
    """Scan the catalog and run the selected rules; issues come back sorted, unfiltered."""
    options = options or AuditOptions()
    locations = store.scan(city=options.city, region=options.region, category=options.category)
    logger.info("Loaded %s locations", len(locations))

    rules = select_rules(options)
    ctx = RuleContext.build(locations, overrides, options)
    issues = sort_issues(run_rules(rules, ctx, max_workers=max_workers))
    logger.info("Ran %s rules, found %s issues", len(rules), len(issues))
    return locations, issues


def run_audit(
    store: Any,
    overrides: Overrides,
    options: Optional[AuditOptions] = None,
    max_workers: int = 1,
) -> List[Issue]:
    options = options or AuditOptions()
    _, issues = collect_issues(store, overrides, options, max_workers)
    return filter_issues(issues, options.severity, options.limit)


def build_report(
    store: Any,
    overrides: Overrides,
    options: Optional[AuditOptions] = None,
    max_workers: int = 1,
) -> HealthReport:
    locations, issues = collect_issues(store, overrides, options, max_workers)
    return generate_health_report(issues, len(locations))


def select_fixable(
    issues: Iterable[Issue],
    types: Optional[Sequence[IssueType]] = None,
    limit: Optional[int] = None,
) -> List[Issue]:
    wanted = set(types) if types else None
    selected = [
        issue
        for issue in issues
        if get_fixer_for_issue_type(issue.type) is not None and (wanted is None or issue.type in wanted)
    ]
    selected = sort_issues(selected)
    if limit is not None:
        selected = selected[: max(limit, 0)]
    return selected


def _apply_one(issue: Issue, ctx: FixerContext) -> FixResult:
    fixer = get_fixer_for_issue_type(issue.type)
    with ctx.locks.hold(*fixer.lock_keys(issue)):
        try:
            return fixer.fix(issue, ctx)
        except Exception as exc:  # noqa: BLE001
            logger.exception("Unexpected error fixing %s: %s", issue.location_id, exc)
            return FixResult(
                success=False,
                action=fixer.action,
                location_id=issue.location_id,
                message="Unexpected error",
                error=str(exc),
                error_kind="error",
            )


def run_fixes(
    issues: Iterable[Issue],
    ctx: FixerContext,
    types: Optional[Sequence[IssueType]] = None,
    limit: Optional[int] = None,
    max_workers: int = 1,
    cancel: Optional[threading.Event] = None,
) -> FixRunSummary:
    """Apply fixers most-severe first.

    With ``max_workers > 1`` fixes run on a bounded pool, each holding the
    advisory locks for the ids it touches; results stay in issue order.
    Setting ``cancel`` stops new fixer calls, calls already running finish.
    """
    candidates = select_fixable(issues, types, limit)
    summary = FixRunSummary()
    logger.info("Found %s fixable issues (dry_run=%s)", len(candidates), ctx.dry_run)

    def cancelled() -> bool:
        return cancel is not None and cancel.is_set()

    if max_workers <= 1:
        for issue in candidates:
            if cancelled():
                summary.cancelled = True
                break
            summary.record(_apply_one(issue, ctx))
    else:

        def guarded(issue: Issue) -> Optional[FixResult]:
            if cancelled():
                return None
            return _apply_one(issue, ctx)

        with ThreadPoolExecutor(max_workers=max_workers) as executor:
            futures = [executor.submit(guarded, issue) for issue in candidates]
            for future in futures:
                result = future.result()
                if result is None:
                    summary.cancelled = True
                    continue
                summary.record(result)

    logger.info(
        "Fix run done: fixed=%s skipped=%s failed=%s inconsistent=%s",
        summary.fixed,
        summary.skipped,
        summary.failed,
        summary.inconsistent,
    )
    if summary.inconsistent:
        logger.critical("%s rename(s) left the catalog inconsistent; resolve by hand", summary.inconsistent)
    return summary
