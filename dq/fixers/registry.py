from typing import List, Optional

from dq.core.models import IssueType
from dq.fixers.base import Fixer
from dq.fixers.categories import CategoryFixer, RegionFixer
from dq.fixers.descriptions import DescriptionFixer
from dq.fixers.duplicates import ClosedLocationFixer, DuplicateFixer
from dq.fixers.names import NameFixer
from dq.fixers.rename_saga import RenameIdFixer

ALL_FIXERS: List[Fixer] = [
    NameFixer(),
    DescriptionFixer(),
    CategoryFixer(),
    RegionFixer(),
    DuplicateFixer(),
    ClosedLocationFixer(),
    RenameIdFixer(),
]


def get_fixer_for_issue_type(issue_type: IssueType) -> Optional[Fixer]:
    for fixer in ALL_FIXERS:
        if issue_type in fixer.handles:
            return fixer
    return None


def fixable_types() -> List[IssueType]:
    return [issue_type for fixer in ALL_FIXERS for issue_type in fixer.handles]
