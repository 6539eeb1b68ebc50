"""
BLD -> companion scope propagation.

Companion permits ("21 123456 PLB 00", "21 123456 HVA 00") rarely carry a
useful description; the building permit ("21 123456 BLD 00") does. After
per-permit classification, the BLD permit's project type and scope tags
are copied onto every coded sibling sharing its base number. Demolition
folders get their demolition tag back if the copy dropped it.
"""
import itertools
from dataclasses import asdict, dataclass, field
from typing import Dict, Iterable, Iterator, List, Optional, Tuple

from .models import Permit, ScopeSource
from .permit_numbers import extract_base_permit_num, has_permit_code, is_bld_permit
from .project_type import TYPE_DEMOLITION_RE


@dataclass
class PropagatedScope:
    """Scope to write onto a companion permit."""
    permit_num: str
    revision_num: str
    project_type: Optional[str]
    scope_tags: List[str] = field(default_factory=list)
    source_permit_num: str = ''
    scope_source: ScopeSource = 'propagated'

    def to_dict(self) -> dict:
        return asdict(self)


def group_by_base_permit(permits: Iterable[Permit]) -> Dict[str, List[Permit]]:
    groups: Dict[str, List[Permit]] = {}
    for permit in permits:
        groups.setdefault(extract_base_permit_num(permit.permit_num), []).append(permit)
    return groups


def iter_sibling_groups(permits: Iterable[Permit]) -> Iterator[Tuple[str, List[Permit]]]:
    """Group a permit_num-ordered stream into (base number, siblings) without buffering it all."""
    for base, siblings in itertools.groupby(
            permits, key=lambda p: extract_base_permit_num(p.permit_num)):
        yield base, list(siblings)


def select_source(siblings: Iterable[Permit]) -> Optional[Permit]:
    """Latest-revision BLD sibling that has scope tags."""
    candidates = [p for p in siblings if is_bld_permit(p.permit_num) and p.scope_tags]
    if not candidates:
        return None
    return max(candidates, key=lambda p: (p.revision_num, p.permit_num))


def propagate_group(siblings: List[Permit]) -> List[PropagatedScope]:
    """Updates for one base-number group. Reads every sibling before producing any update."""
    source = select_source(siblings)
    if source is None:
        return []

    updates = []
    for sibling in siblings:
        if is_bld_permit(sibling.permit_num) or not has_permit_code(sibling.permit_num):
            continue
        tags = list(source.scope_tags)
        if TYPE_DEMOLITION_RE.search(sibling.permit_type or '') and 'demolition' not in tags:
            tags = sorted(tags + ['demolition'])
        updates.append(PropagatedScope(
            permit_num=sibling.permit_num,
            revision_num=sibling.revision_num,
            project_type=source.project_type,
            scope_tags=tags,
            source_permit_num=source.permit_num,
        ))
    return updates


def propagate_scope(permits: Iterable[Permit]) -> List[PropagatedScope]:
    updates = []
    for siblings in group_by_base_permit(permits).values():
        updates.extend(propagate_group(siblings))
    return updates
