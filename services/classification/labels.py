"""Display labels for project types and scope tags."""
import re
from typing import Optional, Tuple

PROJECT_TYPE_LABELS = {
    'new_build': 'New Build',
    'addition': 'Addition',
    'renovation': 'Renovation',
    'demolition': 'Demolition',
    'mechanical': 'Mechanical',
    'repair': 'Repair',
    'other': 'Other',
}

USE_TYPE_LABELS = {
    'residential': 'Residential',
    'commercial': 'Commercial',
    'mixed-use': 'Mixed Use',
}

# Tags whose label is not just the title-cased slug
TAG_LABELS = {
    'new:sfd': 'Single Family Detached',
    'new:semi-detached': 'Semi-Detached',
    'new:accessory-building': 'Accessory Building',
    'alter:deck': 'Deck (Repair)',
    'alter:porch': 'Porch (Repair)',
    'alter:garage': 'Garage (Repair)',
    'hvac': 'HVAC',
}

HOUSEPLEX_RE = re.compile(r'^new:houseplex-(\d+)-unit$')


def parse_tag_prefix(tag: str) -> Tuple[str, str]:
    """"alter:deck" -> ("alter", "deck"); unprefixed tags count as new."""
    for prefix in ('new', 'alter'):
        if tag.startswith(f'{prefix}:'):
            return prefix, tag[len(prefix) + 1:]
    return 'new', tag


def _title(slug: str) -> str:
    return ' '.join(w if w[:1].isdigit() else w.capitalize() for w in slug.split('-') if w)


def format_scope_tag(tag: str, storeys: Optional[int] = None) -> str:
    """Human-readable label, e.g. "new:2-storey-addition" -> "2 Storey Addition"."""
    if tag in USE_TYPE_LABELS:
        return USE_TYPE_LABELS[tag]
    if tag in TAG_LABELS:
        return TAG_LABELS[tag]

    houseplex = HOUSEPLEX_RE.match(tag)
    if houseplex:
        label = f'Houseplex {houseplex.group(1)} Units'
        if storeys and storeys > 0:
            label += f" · {storeys} Storey{'s' if storeys > 1 else ''}"
        return label

    return _title(parse_tag_prefix(tag)[1])
