import logging
from typing import Tuple

from dq.core.errors import AmbiguousFixError
from dq.core.models import FixAction, FixResult, Issue, IssueType
from dq.fixers.base import Fixer, FixerContext, delete_location
from dq.rules import heuristics as h

logger = logging.getLogger(__name__)


class DuplicateFixer(Fixer):
    name = "duplicate-fixer"
    description = "Deletes the lower-quality member of a duplicate group"
    action = FixAction.DELETE
    handles = (
        IssueType.DUPLICATE_SAME_CITY,
        IssueType.DUPLICATE_COORDINATES,
        IssueType.DUPLICATE_NEARBY,
    )

    def lock_keys(self, issue: Issue) -> Tuple[str, ...]:
        keep_id = issue.details.get("keepId")
        if keep_id and keep_id != issue.location_id:
            return (issue.location_id, keep_id)
        return (issue.location_id,)

    def apply(self, issue: Issue, ctx: FixerContext) -> FixResult:
        decision = ctx.overrides.duplicate_resolution(issue.location_id)
        if decision is not None and decision.action == "keep":
            return FixResult(True, FixAction.SKIP, issue.location_id, decision.reason or "Configured to keep")

        location = ctx.store.get(issue.location_id)
        if location is None:
            return FixResult(True, FixAction.SKIP, issue.location_id, "Already removed")

        if decision is not None:
            return delete_location(location, ctx, decision.reason or "Configured to delete")

        suggestion = issue.suggested_fix
        if suggestion is None or suggestion.action is not FixAction.DELETE:
            return FixResult(True, FixAction.SKIP, issue.location_id, "Best quality duplicate; kept")
        if suggestion.confidence < h.DUPLICATE_DELETE_CONFIDENCE:
            raise AmbiguousFixError(f"Delete confidence {suggestion.confidence} is too low for {issue.location_id}")

        keep_id = issue.details.get("keepId")
        if not keep_id or not ctx.store.exists(keep_id):
            raise AmbiguousFixError(f"Keeper {keep_id} no longer exists; not deleting {issue.location_id}")

        return delete_location(location, ctx, f"{suggestion.reason} (keeping {keep_id})")


class ClosedLocationFixer(Fixer):
    name = "closed-location-fixer"
    description = "Deletes locations Google reports as permanently closed"
    action = FixAction.DELETE
    handles = (IssueType.PERMANENTLY_CLOSED,)

    def apply(self, issue: Issue, ctx: FixerContext) -> FixResult:
        location = self._load(issue, ctx)
        return delete_location(location, ctx, "Business is permanently closed")
