from typing import Optional

from dq.core import geography
from dq.core.errors import ValidationError
from dq.core.models import FixAction, Issue, IssueType, Location
from dq.fixers.base import FieldFixer
from dq.rules.categories import infer_category


class CategoryFixer(FieldFixer):
    name = "category-fixer"
    description = "Moves locations into the right category"
    action = FixAction.UPDATE_CATEGORY
    field_name = "category"
    handles = (
        IssueType.EVENT_WRONG_CATEGORY,
        IssueType.ACCOMMODATION_MISCATEGORIZED,
        IssueType.LANDMARK_MISCATEGORIZED,
        IssueType.CATEGORY_INVALID,
    )

    def generate(self, location: Location, issue: Issue) -> Optional[str]:
        return infer_category(location.name)

    def validate(self, value: str) -> None:
        if value not in geography.VALID_CATEGORIES:
            raise ValidationError(f"category {value!r} is not allowed")


class RegionFixer(FieldFixer):
    name = "region-fixer"
    description = "Aligns the region with the prefecture"
    action = FixAction.UPDATE_REGION
    field_name = "region"
    handles = (IssueType.PREFECTURE_REGION_MISMATCH,)

    def generate(self, location: Location, issue: Issue) -> Optional[str]:
        if not location.prefecture:
            return None
        return geography.expected_region(location.prefecture)

    def validate(self, value: str) -> None:
        if not geography.is_valid_region(value):
            raise ValidationError(f"region {value!r} is not a known region")
