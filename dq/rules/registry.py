"""Rule table plus the helpers that run, order and filter rule output."""

import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Dict, Iterable, List, Optional, Sequence

from dq.core.models import AuditOptions, Issue, Severity
from dq.rules.base import Rule, RuleContext
from dq.rules.categories import CATEGORY_RULES
from dq.rules.completeness import COMPLETENESS_RULES
from dq.rules.descriptions import DESCRIPTION_RULES
from dq.rules.duplicates import DUPLICATE_RULES
from dq.rules.google import GOOGLE_RULES
from dq.rules.names import NAME_RULES

logger = logging.getLogger(__name__)

ALL_RULES: List[Rule] = [
    *NAME_RULES,
    *DESCRIPTION_RULES,
    *DUPLICATE_RULES,
    *CATEGORY_RULES,
    *COMPLETENESS_RULES,
    *GOOGLE_RULES,
]


def rules_by_category(rules: Sequence[Rule] = ALL_RULES) -> Dict[str, List[Rule]]:
    grouped: Dict[str, List[Rule]] = {}
    for rule in rules:
        grouped.setdefault(rule.category, []).append(rule)
    return grouped


def get_rule(rule_id: str) -> Optional[Rule]:
    for rule in ALL_RULES:
        if rule.id == rule_id:
            return rule
    return None


def select_rules(options: Optional[AuditOptions] = None) -> List[Rule]:
    """Rules named in ``options.rules`` by id or category; all rules when unset.

    Unknown names are logged and ignored. Table order is preserved.
    """
    wanted = options.rules if options else None
    if not wanted:
        return list(ALL_RULES)

    names = {name.strip() for name in wanted if name and name.strip()}
    known = {rule.id for rule in ALL_RULES} | {rule.category for rule in ALL_RULES}
    for name in sorted(names - known):
        logger.warning("Unknown rule or category %s; ignoring", name)
    return [rule for rule in ALL_RULES if rule.id in names or rule.category in names]


def _run_one(rule: Rule, ctx: RuleContext) -> List[Issue]:
    try:
        return rule.detect(ctx)
    except Exception:  # noqa: BLE001
        logger.exception("Rule %s failed; continuing without its issues", rule.id)
        return []


def run_rules(rules: Sequence[Rule], ctx: RuleContext, max_workers: int = 1) -> List[Issue]:
    """Run every rule against the same snapshot.

    Results are concatenated in ``rules`` order regardless of which worker
    finishes first, so identical input gives an identical list.
    """
    if max_workers <= 1 or len(rules) <= 1:
        per_rule = [_run_one(rule, ctx) for rule in rules]
    else:
        with ThreadPoolExecutor(max_workers=max_workers) as executor:
            futures = [executor.submit(_run_one, rule, ctx) for rule in rules]
            per_rule = [future.result() for future in futures]

    issues: List[Issue] = []
    for rule, found in zip(rules, per_rule):
        logger.debug("Rule %s produced %s issues", rule.id, len(found))
        issues.extend(found)
    return issues


def sort_issues(issues: Iterable[Issue]) -> List[Issue]:
    """Most severe first; issues of equal severity keep their relative order."""
    return sorted(issues, key=lambda issue: issue.severity.rank)


def filter_issues(
    issues: Iterable[Issue],
    min_severity: Optional[Severity] = None,
    limit: Optional[int] = None,
) -> List[Issue]:
    selected = [issue for issue in issues if min_severity is None or issue.severity.at_least(min_severity)]
    if limit is not None:
        selected = selected[: max(limit, 0)]
    return selected
