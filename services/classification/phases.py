"""
Construction phase model.

Phase is a coarse guess at where a project is, from its status text and
the months elapsed since the permit was issued:

    not issued / 0-3 months   -> early_construction
    4-9 months                -> structural
    10-18 months              -> finishing
    18+ months or closed      -> landscaping
"""
from datetime import date
from types import MappingProxyType
from typing import Mapping, Optional

from .models import Permit, Phase

PHASE_TRADE_MAP: Mapping[str, frozenset] = MappingProxyType({
    'early_construction': frozenset([
        'excavation', 'shoring', 'demolition', 'concrete', 'waterproofing',
        'temporary-fencing',
    ]),
    'structural': frozenset([
        'framing', 'structural-steel', 'masonry', 'concrete', 'roofing', 'plumbing', 'hvac',
        'electrical', 'elevator', 'fire-protection', 'pool-installation',
    ]),
    'finishing': frozenset([
        'insulation', 'drywall', 'painting', 'flooring', 'glazing', 'fire-protection',
        'plumbing', 'hvac', 'electrical', 'trim-work', 'millwork-cabinetry', 'tiling',
        'stone-countertops', 'caulking', 'security', 'solar', 'eavestrough-siding',
    ]),
    'landscaping': frozenset([
        'landscaping', 'painting', 'decking-fences', 'pool-installation',
    ]),
})

# Upper month bound (inclusive) per phase, checked in order
PHASE_MONTH_BOUNDS = [
    (3, 'early_construction'),
    (9, 'structural'),
    (18, 'finishing'),
]


def months_between(start: date, end: date) -> int:
    """Whole calendar months from start to end (0 if end precedes start)."""
    months = (end.year - start.year) * 12 + (end.month - start.month)
    if end.day < start.day:
        months -= 1
    return max(months, 0)


def determine_phase(permit: Permit, today: Optional[date] = None) -> Phase:
    status = (permit.status or '').lower()
    if 'completed' in status or 'closed' in status:
        return 'landscaping'
    if 'application' in status or 'not started' in status:
        return 'early_construction'
    if permit.issued_date is None:
        return 'early_construction'

    elapsed = months_between(permit.issued_date, today or date.today())
    for upper, phase in PHASE_MONTH_BOUNDS:
        if elapsed <= upper:
            return phase
    return 'landscaping'


def is_trade_active_in_phase(
    trade_slug: str, phase: str, phase_trades: Mapping[str, frozenset] = PHASE_TRADE_MAP
) -> bool:
    return trade_slug in phase_trades.get(phase, ())
