"""Primary-key rename across the catalog and the tables that reference it.

There is no cross-table transaction available, so the rename runs as an
ordered series of writes:

1. fetch the full row (no write),
2. insert a copy under the new id,
3. repoint ``place_details.location_id``,
4. repoint ``favorites.location_id``,
5. replace the id inside ``travel_guidance`` and ``guides`` id arrays,
6. delete the old row.

A failure at step 2 needs no cleanup. Failures at 3 and 4 undo the earlier
steps in reverse. Step 5 failures are warnings. A failure at 6, or a failed
undo, leaves both rows behind and raises ``InconsistentStateError``.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, List, Tuple

from dq.core.errors import (
    AmbiguousFixError,
    ConflictError,
    InconsistentStateError,
    NotFoundError,
    StoreError,
    UpstreamError,
)
from dq.core.models import FixAction, FixResult, Issue, IssueType
from dq.fixers.base import Fixer, FixerContext

logger = logging.getLogger(__name__)

FOREIGN_KEYS: Tuple[Tuple[str, str], ...] = (
    ("place_details", "location_id"),
    ("favorites", "location_id"),
)

ARRAY_REFERENCES: Tuple[Tuple[str, str], ...] = (
    ("travel_guidance", "location_ids"),
    ("guides", "location_ids"),
)


@dataclass
class RenameOutcome:
    old_id: str
    new_id: str
    warnings: List[str] = field(default_factory=list)


def _undo(store: Any, old_id: str, new_id: str, repointed: List[Tuple[str, str]]) -> None:
    try:
        for table, column in reversed(repointed):
            store.repoint(table, column, new_id, old_id)
        store.delete(new_id)
    except StoreError as exc:
        logger.critical("Could not undo rename %s -> %s; both rows may exist: %s", old_id, new_id, exc)
        raise InconsistentStateError(f"rollback of {old_id} -> {new_id} failed: {exc}") from exc


def rename_location_id(store: Any, old_id: str, new_id: str) -> RenameOutcome:
    if store.exists(new_id):
        raise ConflictError(f"ID conflict: {new_id} already exists")

    row = store.fetch_row(old_id)
    if row is None:
        raise NotFoundError(f"location {old_id} not found")

    try:
        store.insert_row({**row, "id": new_id})
    except StoreError as exc:
        raise UpstreamError(f"Failed to insert new location: {exc}") from exc

    repointed: List[Tuple[str, str]] = []
    for table, column in FOREIGN_KEYS:
        try:
            store.repoint(table, column, old_id, new_id)
        except StoreError as exc:
            _undo(store, old_id, new_id, repointed)
            raise UpstreamError(f"Failed to update {table}: {exc}") from exc
        repointed.append((table, column))

    outcome = RenameOutcome(old_id, new_id)
    for table, column in ARRAY_REFERENCES:
        try:
            store.replace_in_array(table, column, old_id, new_id)
        except StoreError as exc:
            logger.warning("Could not update %s.%s for %s -> %s: %s", table, column, old_id, new_id, exc)
            outcome.warnings.append(f"{table}: {exc}")

    try:
        deleted = store.delete(old_id)
    except StoreError as exc:
        logger.critical("Renamed %s -> %s but could not delete the old row: %s", old_id, new_id, exc)
        raise InconsistentStateError(f"both {old_id} and {new_id} exist: {exc}") from exc
    if not deleted:
        logger.warning("Old row %s was already gone after rename to %s", old_id, new_id)

    logger.info("Renamed %s -> %s", old_id, new_id)
    return outcome


class RenameIdFixer(Fixer):
    name = "rename-id-fixer"
    description = "Changes a location id to match its name, carrying every reference along"
    action = FixAction.UPDATE_ID
    handles = (IssueType.NAME_ID_MISMATCH,)

    @staticmethod
    def target_id(issue: Issue) -> str:
        if issue.suggested_fix is not None and issue.suggested_fix.new_value:
            return issue.suggested_fix.new_value
        return issue.details.get("newId") or ""

    def lock_keys(self, issue: Issue) -> Tuple[str, ...]:
        new_id = self.target_id(issue)
        return (issue.location_id, new_id) if new_id else (issue.location_id,)

    def apply(self, issue: Issue, ctx: FixerContext) -> FixResult:
        old_id, new_id = issue.location_id, self.target_id(issue)
        if not new_id:
            raise AmbiguousFixError(f"No target id for {old_id}")
        if new_id == old_id:
            return FixResult(True, FixAction.SKIP, old_id, "ID already matches name")
        if ctx.store.exists(new_id):
            raise ConflictError(f"ID conflict: {new_id} already exists")

        if ctx.dry_run:
            return FixResult(
                True, self.action, old_id, f"[dry run] Would rename {old_id} -> {new_id}", old_id, new_id
            )

        outcome = rename_location_id(ctx.store, old_id, new_id)
        message = f"Renamed {old_id} -> {new_id}"
        if outcome.warnings:
            message += f" (warnings: {'; '.join(outcome.warnings)})"
        return FixResult(True, self.action, old_id, message, previous_value=old_id, new_value=new_id)
