from typing import Any, Optional

from dq.core.models import FixAction, Issue, IssueType, Location
from dq.fixers.base import FieldFixer
from dq.rules import text

# Radius for matching a misnamed record to the place at its coordinates.
NEARBY_LOOKUP_RADIUS_M = 100


class NameFixer(FieldFixer):
    name = "name-fixer"
    description = "Renames locations from overrides, suggestions or the Google display name"
    action = FixAction.RENAME
    field_name = "name"
    handles = (
        IssueType.EVENT_NAME_MISMATCH,
        IssueType.ALL_CAPS_NAME,
        IssueType.BAD_NAME_START,
        IssueType.TRUNCATED_NAME,
        IssueType.SHORT_INCOMPLETE_NAME,
        IssueType.GOOGLE_NAME_MISMATCH,
    )

    def lookup(self, location: Location, places: Any) -> Optional[str]:
        """Display name by place id, else the closest place at the record's coordinates."""
        if location.place_id:
            name = places.display_name(location.place_id)
            if name:
                return name
        if location.has_coordinates:
            nearby = places.nearby_search(location.latitude, location.longitude, radius_m=NEARBY_LOOKUP_RADIUS_M)
            if nearby:
                return nearby[0]["name"]
        return None

    def generate(self, location: Location, issue: Issue) -> Optional[str]:
        if issue.type is IssueType.ALL_CAPS_NAME:
            return text.title_case(location.name)
        if issue.type is IssueType.BAD_NAME_START:
            return text.strip_bad_name_start(location.name) or None
        return None
