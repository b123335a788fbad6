"""Fixer interface, shared context and the single-field resolution order."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Optional, Tuple

from dq.core.errors import AmbiguousFixError, DataQualityError, NotFoundError
from dq.core.locks import RecordLocks
from dq.core.models import FixAction, FixResult, FixSource, Issue, IssueType, Location, Overrides
from dq.rules.text import normalize_text

logger = logging.getLogger(__name__)


@dataclass
class FixerContext:
    store: Any
    overrides: Overrides = field(default_factory=Overrides)
    dry_run: bool = False
    places: Optional[Any] = None
    locks: RecordLocks = field(default_factory=RecordLocks)


class Fixer:
    """Resolves the issue types listed in ``handles``.

    Subclasses implement :meth:`apply`; :meth:`fix` guards the declared
    types and turns taxonomy errors into failed results.
    """

    name = "fixer"
    description = ""
    action = FixAction.SKIP
    handles: Tuple[IssueType, ...] = ()

    def can_fix(self, issue: Issue) -> bool:
        return issue.type in self.handles

    def lock_keys(self, issue: Issue) -> Tuple[str, ...]:
        return (issue.location_id,)

    def fix(self, issue: Issue, ctx: FixerContext) -> FixResult:
        if not self.can_fix(issue):
            return FixResult(
                success=False,
                action=FixAction.SKIP,
                location_id=issue.location_id,
                message=f"{self.name} does not handle {issue.type.value}",
                error="unsupported issue type",
                error_kind="validation",
            )
        try:
            return self.apply(issue, ctx)
        except DataQualityError as exc:
            return self._failure(issue, exc)

    def apply(self, issue: Issue, ctx: FixerContext) -> FixResult:
        raise NotImplementedError

    def _failure(self, issue: Issue, exc: DataQualityError) -> FixResult:
        if exc.fatal:
            logger.critical("%s left %s inconsistent: %s", self.name, issue.location_id, exc)
        elif isinstance(exc, AmbiguousFixError):
            logger.info("Skipping %s (%s): %s", issue.location_id, issue.type.value, exc)
        else:
            logger.warning("%s failed for %s: %s", self.name, issue.location_id, exc)

        action = FixAction.SKIP if isinstance(exc, AmbiguousFixError) else self.action
        return FixResult(
            success=False,
            action=action,
            location_id=issue.location_id,
            message=str(exc),
            error=exc.summary or str(exc),
            error_kind=exc.kind,
        )

    @staticmethod
    def _load(issue: Issue, ctx: FixerContext) -> Location:
        location = ctx.store.get(issue.location_id)
        if location is None:
            raise NotFoundError(f"location {issue.location_id} no longer exists")
        return location


class FieldFixer(Fixer):
    """Writes one column, picking the value in this order:

    1. override for the record and field,
    2. a suggested fix with real provenance (anything but ``detection``),
    3. the Places lookup when a client is configured,
    4. a locally generated value,
    5. nothing: the issue goes to manual review.
    """

    field_name = ""

    def lookup(self, location: Location, places: Any) -> Optional[str]:
        return None

    def generate(self, location: Location, issue: Issue) -> Optional[str]:
        return None

    def validate(self, value: str) -> None:
        """Raise ``ValidationError`` for values outside the column's domain."""

    def resolve(self, issue: Issue, location: Location, ctx: FixerContext) -> Tuple[Optional[str], Optional[FixSource]]:
        override = ctx.overrides.value_for(self.action, location.id)
        if override is not None:
            return override, FixSource.OVERRIDE

        suggestion = issue.suggested_fix
        if (
            suggestion is not None
            and suggestion.action is self.action
            and suggestion.source is not FixSource.DETECTION
            and suggestion.new_value
        ):
            return suggestion.new_value, suggestion.source

        if ctx.places is not None:
            found = self.lookup(location, ctx.places)
            current = getattr(location, self.field_name)
            if found and normalize_text(found) != normalize_text(current):
                return found, FixSource.GOOGLE_PLACES

        generated = self.generate(location, issue)
        if generated:
            return generated, FixSource.GENERATED
        return None, None

    def apply(self, issue: Issue, ctx: FixerContext) -> FixResult:
        location = self._load(issue, ctx)
        value, source = self.resolve(issue, location, ctx)
        if value is None:
            raise AmbiguousFixError(f"No safe {self.field_name} for {location.id}; needs manual review")
        self.validate(value)

        previous = getattr(location, self.field_name)
        if previous == value:
            return FixResult(True, FixAction.SKIP, location.id, f"{self.field_name} already up to date")

        if ctx.dry_run:
            return FixResult(
                True,
                self.action,
                location.id,
                f"[dry run] Would set {self.field_name} ({source.value})",
                previous_value=previous,
                new_value=value,
            )

        ctx.store.update(location.id, {self.field_name: value})
        logger.info("Set %s on %s from %s", self.field_name, location.id, source.value)
        return FixResult(
            True,
            self.action,
            location.id,
            f"Updated {self.field_name} ({source.value})",
            previous_value=previous,
            new_value=value,
        )


def delete_location(location: Location, ctx: FixerContext, reason: str) -> FixResult:
    """Delete one record, honouring dry-run."""
    if ctx.dry_run:
        return FixResult(
            True, FixAction.DELETE, location.id, f"[dry run] Would delete: {reason}", previous_value=location.name
        )
    if not ctx.store.delete(location.id):
        return FixResult(True, FixAction.SKIP, location.id, "Already removed")
    logger.info("Deleted %s: %s", location.id, reason)
    return FixResult(True, FixAction.DELETE, location.id, f"Deleted: {reason}", previous_value=location.name)
