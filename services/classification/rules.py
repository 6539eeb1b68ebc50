"""
Rule-administration data for trade classification.

- TIER_1_RULES: direct permit_type substring rules (highest signal)
- NARROW_SCOPE_CODES: permit-number codes limited to a fixed trade allow-list
- WORK_SCOPE_EXCLUSIONS: work values that rule out trades (first key wins)
- FALLBACK_TRADES: used when nothing else matched
- ADDITION_FEATURE_BLACKLIST: nouns that make "addition of a ..." non-structural
"""
from types import MappingProxyType

from .models import TradeMappingRule

TIER_CONFIDENCE = MappingProxyType({1: 0.95, 2: 0.80, 3: 0.60})

FALLBACK_CONFIDENCE = 0.40
FALLBACK_TIER = 3
FALLBACK_TRADES = ('framing', 'plumbing', 'electrical', 'hvac', 'drywall', 'painting')

# (trade_id, pattern, confidence, phase_start, phase_end)
_TIER_1_ROWS = [
    (8, 'Plumbing(PS)', 0.95, 3, 18),
    (8, 'Plumbing', 0.95, 3, 18),
    (8, 'Drain and Site Service', 0.90, 3, 18),
    (18, 'Demolition Folder (DM)', 0.95, 0, 3),
    (18, 'Demolition', 0.95, 0, 3),
    (9, 'Mechanical/HVAC(MH)', 0.95, 3, 18),
    (9, 'Mechanical', 0.90, 3, 18),
    (10, 'Electrical(EL)', 0.95, 3, 18),
    (10, 'Electrical', 0.95, 3, 18),
    (11, 'Fire/Security Upgrade', 0.95, 6, 18),
    (11, 'Fire Alarm', 0.90, 6, 18),
    (11, 'Sprinkler', 0.90, 6, 18),
]

TIER_1_RULES = tuple(
    TradeMappingRule(
        trade_id=trade_id,
        tier=1,
        match_field='permit_type',
        match_pattern=pattern,
        confidence=confidence,
        phase_start=start,
        phase_end=end,
    )
    for trade_id, pattern, confidence, start, end in _TIER_1_ROWS
)

NARROW_SCOPE_CODES = MappingProxyType({
    'PLB': ('plumbing',),
    'PSA': ('plumbing',),
    'HVA': ('hvac',),
    'MSA': ('hvac',),
    'DRN': ('plumbing',),
    'STS': ('plumbing',),
    'FSU': ('fire-protection',),
    'DEM': ('demolition',),
    'SHO': ('excavation', 'shoring', 'concrete', 'waterproofing'),
    'FND': ('excavation', 'concrete', 'waterproofing', 'shoring'),
    'TPS': ('framing', 'electrical'),
    'PCL': ('electrical', 'plumbing', 'hvac'),
})

# Everything but electrical and security
_LOW_VOLTAGE_ONLY = (
    'excavation', 'shoring', 'concrete', 'roofing', 'framing', 'masonry', 'plumbing', 'hvac',
    'insulation', 'drywall', 'painting', 'flooring', 'glazing', 'elevator', 'demolition',
    'landscaping', 'waterproofing', 'structural-steel',
)

# Ordered: the first key found in the lower-cased work value is applied
WORK_SCOPE_EXCLUSIONS = (
    ('interior alterations', ('excavation', 'shoring', 'roofing', 'landscaping', 'waterproofing')),
    ('underpinning', ('roofing', 'glazing', 'landscaping', 'elevator', 'painting', 'flooring')),
    ('re-roofing', ('excavation', 'shoring', 'concrete', 'elevator', 'landscaping')),
    ('re-cladding', ('excavation', 'shoring', 'elevator', 'landscaping')),
    ('fire alarm', _LOW_VOLTAGE_ONLY),
    ('sprinklers', tuple(slug for slug in _LOW_VOLTAGE_ONLY if slug != 'plumbing')),
    ('electromagnetic locks', _LOW_VOLTAGE_ONLY),
    ('elevator', (
        'excavation', 'shoring', 'roofing', 'landscaping', 'demolition', 'masonry',
        'insulation', 'painting', 'waterproofing',
    )),
    ('demolition', (
        'framing', 'roofing', 'insulation', 'drywall', 'painting', 'flooring', 'glazing',
        'elevator', 'landscaping',
    )),
    ('deck', ('elevator', 'shoring', 'structural-steel')),
    ('porch', ('elevator', 'shoring', 'structural-steel')),
    ('garage', ('elevator', 'landscaping')),
)

ADDITION_FEATURE_BLACKLIST = (
    'washroom', 'bathroom', 'laundry', 'closet', 'window', 'door', 'powder', 'shower',
    'fireplace', 'skylight',
)
