"""
Project type classification.

Exactly one of new_build, addition, demolition, renovation, mechanical,
repair, other. Rules are checked top to bottom; the first hit wins:

    1. work field (most specific, coded values)
    2. permit_type field
    3. mechanical-only permit types with no building work
    4. free-text description
    5. other
"""
import re
from typing import Callable, List, NamedTuple, Tuple

from .models import Permit, ProjectType

WORK_ADDITION_RE = re.compile(r'^(Deck|Porch|Garage|Pool)$', re.IGNORECASE)
WORK_REPAIR_RE = re.compile(r'repair|fire damage|balcony/guard', re.IGNORECASE)
TYPE_NEW_RE = re.compile(r'new\s*(house|building)', re.IGNORECASE)
TYPE_DEMOLITION_RE = re.compile(r'demolition\s*folder', re.IGNORECASE)
TYPE_MECHANICAL_RE = re.compile(r'^(Plumbing|Mechanical|Drain|Electrical)', re.IGNORECASE)
WORK_BUILDING_RE = re.compile(
    r'addition|alteration|new\s*building|renovation|construct', re.IGNORECASE)

DESC_NEW_RE = re.compile(r'\bnew\s*(build|construct|erect)')
DESC_DEMOLITION_RE = re.compile(r'\bdemolish|demolition|tear\s*down')
DESC_ADDITION_RE = re.compile(r'\badd(i)?tion\b')
DESC_RENOVATION_RE = re.compile(r'\brenovati?on|interior\s*alter|remodel')
DESC_REPAIR_RE = re.compile(r'\brepair\b')


class ProjectFields(NamedTuple):
    work: str
    permit_type: str
    description: str  # lower-cased

    @classmethod
    def of(cls, permit: Permit) -> 'ProjectFields':
        return cls(
            work=(permit.work or '').strip(),
            permit_type=(permit.permit_type or '').strip(),
            description=(permit.description or '').strip().lower(),
        )


def _is_mechanical_only(f: ProjectFields) -> bool:
    return bool(TYPE_MECHANICAL_RE.search(f.permit_type)) and not WORK_BUILDING_RE.search(f.work)


PROJECT_TYPE_RULES: List[Tuple[Callable[[ProjectFields], bool], ProjectType]] = [
    # work field
    (lambda f: f.work == 'New Building', 'new_build'),
    (lambda f: f.work == 'Demolition', 'demolition'),
    (lambda f: f.work == 'Interior Alterations', 'renovation'),
    (lambda f: f.work == 'Addition(s)', 'addition'),
    (lambda f: bool(WORK_ADDITION_RE.match(f.work)), 'addition'),
    (lambda f: bool(WORK_REPAIR_RE.search(f.work)), 'repair'),
    # permit type
    (lambda f: bool(TYPE_NEW_RE.search(f.permit_type)), 'new_build'),
    (lambda f: bool(TYPE_DEMOLITION_RE.search(f.permit_type)), 'demolition'),
    (_is_mechanical_only, 'mechanical'),
    # description fallback
    (lambda f: bool(DESC_NEW_RE.search(f.description)), 'new_build'),
    (lambda f: bool(DESC_DEMOLITION_RE.search(f.description)), 'demolition'),
    (lambda f: bool(DESC_ADDITION_RE.search(f.description)), 'addition'),
    (lambda f: bool(DESC_RENOVATION_RE.search(f.description)), 'renovation'),
    (lambda f: bool(DESC_REPAIR_RE.search(f.description)), 'repair'),
]


def classify_project_type(permit: Permit) -> ProjectType:
    fields = ProjectFields.of(permit)
    for predicate, project_type in PROJECT_TYPE_RULES:
        if predicate(fields):
            return project_type
    return 'other'
