"""Core data models shared by the audit and remediation pipeline."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, FrozenSet, List, Optional


class Severity(str, Enum):
    """Issue severity, ordered from most to least severe."""

    CRITICAL = "critical"
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"
    INFO = "info"

    @property
    def rank(self) -> int:
        return _SEVERITY_ORDER.index(self)

    @property
    def weight(self) -> int:
        return SEVERITY_WEIGHTS[self]

    def at_least(self, minimum: "Severity") -> bool:
        """Return True when this severity is as severe as ``minimum`` or more."""
        return self.rank <= minimum.rank


_SEVERITY_ORDER = [Severity.CRITICAL, Severity.HIGH, Severity.MEDIUM, Severity.LOW, Severity.INFO]

SEVERITY_WEIGHTS: Dict[Severity, int] = {
    Severity.CRITICAL: 10,
    Severity.HIGH: 5,
    Severity.MEDIUM: 2,
    Severity.LOW: 1,
    Severity.INFO: 0,
}


class IssueType(str, Enum):
    """Closed list of detectable defects."""

    # names
    EVENT_NAME_MISMATCH = "EVENT_NAME_MISMATCH"
    NAME_ID_MISMATCH = "NAME_ID_MISMATCH"
    ALL_CAPS_NAME = "ALL_CAPS_NAME"
    BAD_NAME_START = "BAD_NAME_START"
    GENERIC_PLURAL_NAME = "GENERIC_PLURAL_NAME"
    GENERIC_ARTICLE_NAME = "GENERIC_ARTICLE_NAME"
    TRUNCATED_NAME = "TRUNCATED_NAME"
    SHORT_INCOMPLETE_NAME = "SHORT_INCOMPLETE_NAME"
    CITY_SPELLING_VARIANT = "CITY_SPELLING_VARIANT"
    NAME_CITY_MISMATCH = "NAME_CITY_MISMATCH"
    # descriptions
    ADDRESS_AS_DESC = "ADDRESS_AS_DESC"
    TRUNCATED_DESC = "TRUNCATED_DESC"
    MISSING_DESC = "MISSING_DESC"
    SHORT_INCOMPLETE_DESC = "SHORT_INCOMPLETE_DESC"
    GENERIC_DESC = "GENERIC_DESC"
    # categories
    EVENT_WRONG_CATEGORY = "EVENT_WRONG_CATEGORY"
    ACCOMMODATION_MISCATEGORIZED = "ACCOMMODATION_MISCATEGORIZED"
    LANDMARK_MISCATEGORIZED = "LANDMARK_MISCATEGORIZED"
    CATEGORY_INVALID = "CATEGORY_INVALID"
    PREFECTURE_REGION_MISMATCH = "PREFECTURE_REGION_MISMATCH"
    # third-party enrichment
    GOOGLE_TYPE_MISMATCH = "GOOGLE_TYPE_MISMATCH"
    GOOGLE_AIRPORT_MISMATCH = "GOOGLE_AIRPORT_MISMATCH"
    GOOGLE_CONTENT_MISMATCH = "GOOGLE_CONTENT_MISMATCH"
    GOOGLE_NAME_MISMATCH = "GOOGLE_NAME_MISMATCH"
    # duplicates
    DUPLICATE_SAME_CITY = "DUPLICATE_SAME_CITY"
    DUPLICATE_MANY = "DUPLICATE_MANY"
    DUPLICATE_COORDINATES = "DUPLICATE_COORDINATES"
    DUPLICATE_NEARBY = "DUPLICATE_NEARBY"
    # completeness
    MISSING_COORDINATES = "MISSING_COORDINATES"
    INVALID_COORDINATES = "INVALID_COORDINATES"
    COORDINATES_PRECISION_LOW = "COORDINATES_PRECISION_LOW"
    MISSING_PLACE_ID = "MISSING_PLACE_ID"
    PERMANENTLY_CLOSED = "PERMANENTLY_CLOSED"
    MISSING_OPERATING_HOURS = "MISSING_OPERATING_HOURS"
    INVALID_RATING = "INVALID_RATING"


class FixAction(str, Enum):
    RENAME = "rename"
    DELETE = "delete"
    UPDATE_DESCRIPTION = "update_description"
    UPDATE_CATEGORY = "update_category"
    UPDATE_REGION = "update_region"
    UPDATE_ID = "update_id"
    SKIP = "skip"


# Column written by each single-field action.
ACTION_FIELDS: Dict[FixAction, str] = {
    FixAction.RENAME: "name",
    FixAction.UPDATE_DESCRIPTION: "description",
    FixAction.UPDATE_CATEGORY: "category",
    FixAction.UPDATE_REGION: "region",
}


class FixSource(str, Enum):
    """Provenance of a suggested value, highest precedence first."""

    OVERRIDE = "override"
    GOOGLE_PLACES = "google_places"
    EDITORIAL_SUMMARY = "editorial_summary"
    GENERATED = "generated"
    DETECTION = "detection"

    @property
    def precedence(self) -> int:
        """Higher wins."""
        return len(_SOURCE_ORDER) - _SOURCE_ORDER.index(self)

    def outranks(self, other: "FixSource") -> bool:
        return self.precedence > other.precedence


_SOURCE_ORDER = [
    FixSource.OVERRIDE,
    FixSource.GOOGLE_PLACES,
    FixSource.EDITORIAL_SUMMARY,
    FixSource.GENERATED,
    FixSource.DETECTION,
]


def _to_float(value: Any) -> Optional[float]:
    if value is None or value == "":
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


@dataclass(slots=True)
class Location:
    """Snapshot of one row of the ``locations`` table."""

    id: str
    name: str
    city: str = ""
    region: str = ""
    category: str = ""
    description: Optional[str] = None
    short_description: Optional[str] = None
    editorial_summary: Optional[str] = None
    place_id: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    prefecture: Optional[str] = None
    google_primary_type: Optional[str] = None
    google_types: List[str] = field(default_factory=list)
    business_status: Optional[str] = None
    rating: Optional[float] = None
    review_count: Optional[int] = None
    operating_hours: Optional[Dict[str, Any]] = field(default=None, repr=False)

    @property
    def has_position(self) -> bool:
        """Both coordinate columns are filled, finite or not."""
        return self.latitude is not None and self.longitude is not None

    @property
    def has_coordinates(self) -> bool:
        return self.has_position and math.isfinite(self.latitude) and math.isfinite(self.longitude)

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "Location":
        """Build a location from a store row.

        Coordinates are read from a ``coordinates`` JSON object (``{"lat", "lng"}``)
        and fall back to plain ``lat``/``lng`` columns.
        """
        coords = row.get("coordinates") or {}
        lat = _to_float(row.get("lat"))
        lng = _to_float(row.get("lng"))
        if isinstance(coords, dict):
            lat = lat if lat is not None else _to_float(coords.get("lat"))
            lng = lng if lng is not None else _to_float(coords.get("lng"))

        review_count = row.get("review_count")
        return cls(
            id=str(row["id"]),
            name=row.get("name") or "",
            city=row.get("city") or "",
            region=row.get("region") or "",
            category=row.get("category") or "",
            description=row.get("description"),
            short_description=row.get("short_description"),
            editorial_summary=row.get("editorial_summary"),
            place_id=row.get("place_id") or None,
            latitude=lat,
            longitude=lng,
            prefecture=row.get("prefecture"),
            google_primary_type=row.get("google_primary_type"),
            google_types=list(row.get("google_types") or []),
            business_status=row.get("business_status"),
            rating=_to_float(row.get("rating")),
            review_count=int(review_count) if review_count is not None else None,
            operating_hours=row.get("operating_hours"),
        )


@dataclass(slots=True)
class SuggestedFix:
    action: FixAction
    reason: str
    confidence: int
    source: FixSource = FixSource.DETECTION
    new_value: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "action": self.action.value,
            "reason": self.reason,
            "confidence": self.confidence,
            "source": self.source.value,
        }
        if self.new_value is not None:
            payload["newValue"] = self.new_value
        return payload


@dataclass(slots=True)
class Issue:
    """One defect found on one location during a run."""

    id: str
    type: IssueType
    severity: Severity
    location_id: str
    location_name: str
    city: str
    region: str
    message: str
    details: Dict[str, Any] = field(default_factory=dict)
    suggested_fix: Optional[SuggestedFix] = None

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "id": self.id,
            "type": self.type.value,
            "severity": self.severity.value,
            "locationId": self.location_id,
            "locationName": self.location_name,
            "city": self.city,
            "region": self.region,
            "message": self.message,
        }
        if self.details:
            payload["details"] = self.details
        if self.suggested_fix is not None:
            payload["suggestedFix"] = self.suggested_fix.to_dict()
        return payload


@dataclass(slots=True)
class FixResult:
    success: bool
    action: FixAction
    location_id: str
    message: str
    previous_value: Optional[str] = None
    new_value: Optional[str] = None
    error: Optional[str] = None
    error_kind: Optional[str] = None

    @property
    def fatal(self) -> bool:
        return self.error_kind == "inconsistent"

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "success": self.success,
            "action": self.action.value,
            "locationId": self.location_id,
            "message": self.message,
        }
        if self.previous_value is not None:
            payload["previousValue"] = self.previous_value
        if self.new_value is not None:
            payload["newValue"] = self.new_value
        if self.error is not None:
            payload["error"] = self.error
            payload["errorKind"] = self.error_kind
        if self.fatal:
            payload["fatal"] = True
        return payload


@dataclass(slots=True)
class DuplicateResolution:
    keep: str
    delete: List[str] = field(default_factory=list)
    reason: Optional[str] = None


@dataclass(slots=True)
class DuplicateDecision:
    action: str  # "keep" or "delete"
    reason: Optional[str] = None


@dataclass(slots=True)
class Overrides:
    """Manually curated corrections, read-only for a run."""

    names: Dict[str, str] = field(default_factory=dict)
    descriptions: Dict[str, str] = field(default_factory=dict)
    categories: Dict[str, str] = field(default_factory=dict)
    duplicates: List[DuplicateResolution] = field(default_factory=list)
    skip: FrozenSet[str] = frozenset()
    version: Optional[str] = None

    def should_skip(self, location_id: str) -> bool:
        return location_id in self.skip

    def name_for(self, location_id: str) -> Optional[str]:
        return self.names.get(location_id)

    def description_for(self, location_id: str) -> Optional[str]:
        return self.descriptions.get(location_id)

    def category_for(self, location_id: str) -> Optional[str]:
        return self.categories.get(location_id)

    def value_for(self, action: FixAction, location_id: str) -> Optional[str]:
        if action is FixAction.RENAME:
            return self.name_for(location_id)
        if action is FixAction.UPDATE_DESCRIPTION:
            return self.description_for(location_id)
        if action is FixAction.UPDATE_CATEGORY:
            return self.category_for(location_id)
        return None

    def duplicate_resolution(self, location_id: str) -> Optional[DuplicateDecision]:
        """Return the configured keep/delete decision; ``keep`` wins over ``delete``."""
        deleted: Optional[DuplicateDecision] = None
        for entry in self.duplicates:
            if entry.keep == location_id:
                return DuplicateDecision("keep", entry.reason)
            if deleted is None and location_id in entry.delete:
                deleted = DuplicateDecision("delete", entry.reason)
        return deleted


@dataclass(slots=True)
class AuditOptions:
    rules: Optional[List[str]] = None
    severity: Optional[Severity] = None
    limit: Optional[int] = None
    city: Optional[str] = None
    region: Optional[str] = None
    category: Optional[str] = None
