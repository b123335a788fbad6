from typing import Any, Optional

from dq.core.models import FixAction, Issue, IssueType, Location
from dq.fixers.base import FieldFixer
from dq.rules import text


class DescriptionFixer(FieldFixer):
    name = "description-fixer"
    description = "Replaces bad descriptions with overrides, editorial summaries or a category template"
    action = FixAction.UPDATE_DESCRIPTION
    field_name = "description"
    handles = (
        IssueType.ADDRESS_AS_DESC,
        IssueType.TRUNCATED_DESC,
        IssueType.MISSING_DESC,
        IssueType.SHORT_INCOMPLETE_DESC,
        IssueType.GENERIC_DESC,
    )

    def lookup(self, location: Location, places: Any) -> Optional[str]:
        if not location.place_id:
            return None
        return places.summary(location.place_id)

    def generate(self, location: Location, issue: Issue) -> Optional[str]:
        return text.category_description(location.category, location.city)
