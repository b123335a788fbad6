"""Rule interface and helpers for building issues."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterator, List, Optional, Sequence, Tuple

from dq.core.models import (
    AuditOptions,
    FixAction,
    FixSource,
    Issue,
    IssueType,
    Location,
    Overrides,
    Severity,
    SuggestedFix,
)
from dq.rules import heuristics as h


@dataclass(frozen=True)
class RuleContext:
    """Immutable snapshot handed to every rule."""

    locations: Tuple[Location, ...]
    overrides: Overrides = field(default_factory=Overrides)
    options: AuditOptions = field(default_factory=AuditOptions)

    @classmethod
    def build(
        cls,
        locations: Sequence[Location],
        overrides: Optional[Overrides] = None,
        options: Optional[AuditOptions] = None,
    ) -> "RuleContext":
        return cls(tuple(locations), overrides or Overrides(), options or AuditOptions())

    def active(self) -> Iterator[Location]:
        """Locations not excluded by the overrides skip list."""
        for location in self.locations:
            if not self.overrides.should_skip(location.id):
                yield location


@dataclass(frozen=True)
class Rule:
    id: str
    name: str
    description: str
    category: str
    issue_types: Tuple[IssueType, ...]
    detect: Callable[[RuleContext], List[Issue]]


def make_issue(
    location: Location,
    suffix: str,
    issue_type: IssueType,
    severity: Severity,
    message: str,
    details: Optional[Dict[str, Any]] = None,
    suggested_fix: Optional[SuggestedFix] = None,
) -> Issue:
    return Issue(
        id=f"{location.id}-{suffix}",
        type=issue_type,
        severity=severity,
        location_id=location.id,
        location_name=location.name,
        city=location.city,
        region=location.region,
        message=message,
        details=details or {},
        suggested_fix=suggested_fix,
    )


def override_fix(action: FixAction, value: str) -> SuggestedFix:
    return SuggestedFix(
        action=action,
        new_value=value,
        reason="Override configured",
        confidence=h.OVERRIDE_CONFIDENCE,
        source=FixSource.OVERRIDE,
    )


def detection_fix(action: FixAction, reason: str, confidence: int = 0) -> SuggestedFix:
    return SuggestedFix(action=action, reason=reason, confidence=confidence, source=FixSource.DETECTION)


def with_override(
    overrides: Overrides, location: Location, action: FixAction, fallback: Optional[SuggestedFix]
) -> Optional[SuggestedFix]:
    """An override for the field always beats the rule's own suggestion."""
    value = overrides.value_for(action, location.id)
    if value is not None:
        return override_fix(action, value)
    return fallback


def preview(text: Optional[str], length: int = 100) -> Optional[str]:
    if text is None:
        return None
    return text[:length]
