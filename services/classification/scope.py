"""
Scope classification: project type plus descriptive scope tags.

Branch selection (first match wins):
    Small Residential                             -> residential tags (new:/alter:)
    New House*                                    -> new-house tags (building type + features)
    Building Additions + residential structure    -> residential tags
    everything else                               -> general tags (unprefixed)

Every permit then gets a demolition tag when it is a demolition, and
exactly one use-type tag (residential / commercial / mixed-use).
"""
import re
from functools import lru_cache
from typing import Callable, Iterable, List, Optional, Pattern, Set, Tuple

from .models import Permit, ScopeResult, UseType
from .project_type import TYPE_DEMOLITION_RE, classify_project_type
from .reference import ReferenceTables, default_reference_tables
from .text import extract_storey_count, has_repair_signal_near


def _compile(patterns: Iterable[str]) -> List[Pattern]:
    return [re.compile(p, re.IGNORECASE) for p in patterns]


def _any_match(patterns: Iterable[Pattern], text: str) -> bool:
    return any(p.search(text) for p in patterns)


# =============================================================================
# GENERAL TAGS (non-residential permits)
# =============================================================================

GENERAL_TAG_PATTERNS = [
    (tag, _compile(patterns)) for tag, patterns in [
        # Structural
        ('2nd-floor', [r'\b2nd\s*(floor|storey|flr)\b', r'\bsecond\s*(floor|storey|flr)\b']),
        ('3rd-floor', [r'\b3rd\s*(floor|storey|flr)\b', r'\bthird\s*(floor|storey|flr)\b']),
        ('rear-addition', [r'\brear\s*(addition|ext(ension)?)\b']),
        ('side-addition', [r'\bside\s*(addition|ext(ension)?)\b']),
        ('front-addition', [r'\bfront\s*(addition|ext(ension)?)\b']),
        ('storey-addition', [
            r'\b(storey|story)\s*addition\b',
            r'\badd(ition)?\s*(a|one|1|two|2|three|3)?\s*(storey|story|stories)\b',
        ]),
        ('basement', [r'\bbasement\b']),
        ('underpinning', [r'\bunderpinn?ing\b']),
        ('foundation', [r'\bfoundation\b']),
        # Exterior
        ('deck', [r'\bdeck\b']),
        ('porch', [r'\bporch\b']),
        ('garage', [r'\bgarage\b']),
        ('carport', [r'\bcarport\b']),
        ('canopy', [r'\bcanopy\b']),
        ('walkout', [r'\bwalk[\s-]?out\b']),
        ('balcony', [r'\bbalcon(y|ies)\b']),
        ('laneway-suite', [r'\blaneway\s*(suite|house)\b', r'\blaneway\b']),
        ('pool', [r'\bpool\b']),
        ('fence', [r'\bfenc(e|ing)\b']),
        ('roofing', [r'\broof(ing)?\b', r'\bre-?roof\b']),
        # Interior
        ('kitchen', [r'\bkitchen\b']),
        ('bathroom', [r'\bbath(room)?\b', r'\bwashroom\b']),
        ('basement-finish', [
            r'\bbasement\s*(finish|reno|completion|convert|apartment)\b',
            r'\bfinish(ed|ing)?\s*basement\b',
        ]),
        ('second-suite', [
            r'\b(2nd|second)\s*suite\b', r'\bsecondary\s*suite\b',
            r'\b2nd\s*unit\b', r'\bsecond\s*unit\b',
        ]),
        ('open-concept', [
            r'\bopen\s*concept\b',
            r'\bremov(e|al|ing)\s*(of\s*)?(bearing|load|interior)\s*wall\b',
        ]),
        ('convert-unit', [r'\bconvert\b']),
        ('tenant-fitout', [r'\btenant\b', r'\bfit[\s-]?out\b', r'\bleasehold\s*improv']),
        # Building type
        ('condo', [r'\bcondo(minium)?\b']),
        ('apartment', [r'\bapartment\b']),
        ('townhouse', [r'\btownhouse\b', r'\btown\s*home\b', r'\brow\s*house\b']),
        ('mixed-use', [r'\bmixed[\s-]?use\b']),
        ('retail', [r'\bretail\b']),
        ('office', [r'\boffice\b']),
        ('restaurant', [r'\brestaurant\b']),
        ('warehouse', [r'\bwarehouse\b']),
        ('school', [r'\bschool\b']),
        ('hospital', [r'\bhospital\b']),
        # Systems
        ('hvac', [r'\bhvac\b', r'\b(furnace|air\s*condition|heat\s*pump|duct(work)?)\b']),
        ('plumbing', [r'\bplumbing\b']),
        ('electrical', [r'\belectrical\b']),
        ('sprinkler', [r'\bsprinkler\b']),
        ('fire-alarm', [r'\bfire\s*alarm\b']),
        ('elevator', [r'\belevator\b', r'\blift\b']),
        ('drain', [r'\bdrain\b', r'\bsewer\b', r'\bstorm\s*water\b']),
        ('backflow-preventer', [r'\bbackflow\b']),
        ('access-control', [
            r'\bmaglock\b', r'\baccess\s*control\b', r'\bcard\s*reader\b',
            r'\bsecurity\s*(lock|access)\b',
        ]),
        # Other
        ('stair', [r'\bstair(s|case|way|\s*well)?\b', r'\bstep(s)?\b']),
        ('window', [r'\bwindow(s)?\b', r'\bfenestration\b']),
        ('door', [r'\bdoor(s)?\b']),
        ('shoring', [r'\bshor(ing|e)\b']),
        ('demolition', [r'\bdemol(ish|ition)\b', r'\btear[\s-]?down\b']),
        ('station', [r'\bstation\b']),
        ('storage', [r'\bstorage\b', r'\bracking\b', r'\bsilo\b']),
    ]
]

# Minimum storeys per scale tag, checked highest first
SCALE_TAGS = [
    (10, 'high-rise'),
    (5, 'mid-rise'),
    (2, 'low-rise'),
]


def extract_general_tags(permit: Permit) -> List[str]:
    """Scan description, work, structure type and uses for unprefixed tags."""
    text = ' '.join([
        permit.description or '',
        permit.work or '',
        permit.structure_type or '',
        permit.proposed_use or '',
        permit.current_use or '',
    ])
    tags = {tag for tag, patterns in GENERAL_TAG_PATTERNS if _any_match(patterns, text)}

    storeys = permit.storeys or 0
    for minimum, tag in SCALE_TAGS:
        if storeys >= minimum:
            tags.add(tag)
            break

    return sorted(tags)


# =============================================================================
# RESIDENTIAL TAGS (Small Residential, residential Building Additions)
# =============================================================================

# Features that switch from new: to alter: when repair wording is nearby
REPAIRABLE_FEATURES = [
    ('deck', re.compile(r'\bdeck\b'), re.compile(r'^Deck$', re.IGNORECASE)),
    ('garage', re.compile(r'\bgarage\b'), re.compile(r'^Garage$', re.IGNORECASE)),
    ('porch', re.compile(r'\bporch\b'), re.compile(r'^Porch$', re.IGNORECASE)),
]

# (tag, description patterns, exact work values)
RESIDENTIAL_KEYWORD_TAGS = [
    (tag, _compile(patterns), work_values) for tag, patterns, work_values in [
        ('new:basement', [r'\bbasement\b'], ()),
        ('new:underpinning', [r'\bunderpinn?ing\b'], ()),
        ('new:walkout', [r'\bwalk[\s-]?out\b'], ()),
        ('new:balcony', [r'\bbalcon(y|ies)\b'], ()),
        ('new:dormer', [r'\bdormer\b'], ()),
        ('new:second-suite', [r'\b(2nd|second(ary)?)\s*(suite|unit)\b'], ('Second Suite (New)',)),
        ('new:kitchen', [r'\bkitchen\b'], ()),
        ('new:bathroom', [
            r'\bbath(room)?\b', r'\bwashroom\b', r'\bpowder\s*room\b', r'\bensuite\b',
            r'\ben-suite\b', r'\blavatory\b',
        ], ()),
        ('new:laundry', [r'\blaundry\b'], ()),
        ('new:open-concept', [r'\bopen\s*concept\b', r'\b(remov|load[\s-]*bearing).*wall\b'], ()),
        ('new:structural-beam', [r'\b(beam|lvl|steel\s*beam)\b'], ()),
        ('new:laneway-suite', [
            r'\blaneway\b', r'\bgarden\s*suite\b', r'\brear\s*yard\s*suite\b',
        ], ('New Laneway / Rear Yard Suite',)),
        ('new:pool', [r'\bpool\b'], ('Pool',)),
        ('new:carport', [r'\bcarport\b'], ()),
        ('new:canopy', [r'\bcanopy\b'], ()),
        ('new:roofing', [r'\broof(ing)?\b'], ()),
        ('new:fence', [r'\bfenc(e|ing)\b'], ()),
        ('new:foundation', [r'\bfoundation\b'], ()),
        ('new:solar', [r'\bsolar\b'], ()),
        ('new:fireplace', [r'\bfireplace\b', r'\bwood\s*stove\b'], ('Fireplace/Wood Stoves',)),
        ('new:accessory-building', [
            r'\bshed\b', r'\bcabana\b', r'\bancillary\b', r'\baccessory\s*(building|structure)\b',
        ], ('Accessory Building(s)', 'Accessory Structure')),
        ('new:stair', [r'\bstair(s|case|way|\s*well)?\b', r'\bstep(s)?\b'], ()),
        ('new:window', [r'\bwindow(s)?\b', r'\bfenestration\b'], ()),
        ('new:door', [r'\bdoor(s)?\b'], ()),
        ('new:shoring', [r'\bshor(ing|e)\b'], ()),
        # Renovation wording folds into interior-alterations
        ('alter:interior-alterations', [
            r'\binterior\s*alter', r'\brenovati?on\b', r'\bremodel\b',
        ], ('Interior Alterations',)),
        ('alter:fire-damage', [
            r'\bfire\s*(damage|restoration)\b', r'\bvehicle\s*impact\b',
        ], ('Fire Damage',)),
        ('alter:unit-conversion', [r'\bconvert\b', r'\bconversion\b'], ('Change of Use',)),
    ]
]

# (tag to remove, tags that cause removal); applied in this order
DEDUP_RULES = [
    ('new:basement', ('new:underpinning',)),
    ('new:basement', ('new:second-suite',)),
    ('alter:interior-alterations', ('new:second-suite',)),
    ('new:accessory-building', ('new:garage', 'alter:garage')),
    ('new:accessory-building', ('new:pool',)),
    ('alter:unit-conversion', ('new:second-suite',)),
]

NON_SCOPE_WORK = ('Party Wall Admin Permits',)

WORK_ADDITION_RE = re.compile(r'^Addition', re.IGNORECASE)


@lru_cache(maxsize=8)
def addition_pattern(blacklist: Tuple[str, ...]) -> Pattern:
    """
    "addition"/"addtion" as a structural addition, unless it reads as
    "addition of [a] [new] <blacklisted feature>".
    """
    if not blacklist:
        return re.compile(r'\badd(i)?tion\b', re.IGNORECASE)
    nouns = '|'.join(re.escape(word) for word in blacklist)
    return re.compile(
        rf'\badd(i)?tion\b(?!\s+(of\s+)?((a|an|the)\s+)?(new\s+)?({nouns})\b)',
        re.IGNORECASE,
    )


def addition_tag(storeys: int) -> str:
    if storeys >= 3:
        return 'new:3-storey-addition'
    if storeys == 2:
        return 'new:2-storey-addition'
    return 'new:1-storey-addition'


def apply_dedup_rules(tags: Set[str]) -> Set[str]:
    result = set(tags)
    for remove, when_present in DEDUP_RULES:
        if remove in result and any(tag in result for tag in when_present):
            result.discard(remove)
    return result


def extract_residential_tags(permit: Permit, tables: ReferenceTables) -> List[str]:
    """Prefixed tags for residential renovation and addition permits."""
    work = (permit.work or '').strip()
    desc = (permit.description or '').strip().lower()

    if work in NON_SCOPE_WORK:
        return []

    tags: Set[str] = set()

    is_addition = bool(WORK_ADDITION_RE.match(work)) or bool(
        addition_pattern(tuple(tables.addition_feature_blacklist)).search(desc))
    if is_addition:
        tags.add(addition_tag(extract_storey_count(desc)))

    for keyword, desc_re, work_re in REPAIRABLE_FEATURES:
        if desc_re.search(desc) or work_re.match(work):
            prefix = 'alter' if has_repair_signal_near(desc, keyword) else 'new'
            tags.add(f'{prefix}:{keyword}')

    for tag, patterns, work_values in RESIDENTIAL_KEYWORD_TAGS:
        if _any_match(patterns, desc) or work in work_values:
            tags.add(tag)

    return sorted(apply_dedup_rules(tags))


def is_residential_structure(permit: Permit) -> bool:
    st = (permit.structure_type or '').strip()
    pu = (permit.proposed_use or '').strip()
    return bool(
        re.match(r'^SFD\b', st, re.IGNORECASE)
        or re.search(r'\b(Detached|Semi|Townhouse|Row\s*House|Stacked)\b', st, re.IGNORECASE)
        or re.search(r'\b(residential|dwelling|house|duplex|triplex)\b', pu, re.IGNORECASE)
    )


# =============================================================================
# NEW HOUSE TAGS
# =============================================================================

HOUSEPLEX_UNITS_RE = re.compile(r'\((\d+)\s*Units?\)', re.IGNORECASE)
MIN_HOUSEPLEX_UNITS = 2
MAX_HOUSEPLEX_UNITS = 6
DEFAULT_HOUSEPLEX_UNITS = 3


def houseplex_tag(units: int) -> str:
    units = max(MIN_HOUSEPLEX_UNITS, min(MAX_HOUSEPLEX_UNITS, units))
    return f'new:houseplex-{units}-unit'


def _housing_units(permit: Permit) -> int:
    return permit.housing_units or 0


def _units_or_default(permit: Permit) -> int:
    units = _housing_units(permit)
    return units if units > 1 else DEFAULT_HOUSEPLEX_UNITS


def _houseplex_from_use(permit: Permit) -> Optional[str]:
    pu = permit.proposed_use or ''
    if not re.search(r'houseplex', pu, re.IGNORECASE):
        return None
    match = HOUSEPLEX_UNITS_RE.search(pu)
    return houseplex_tag(int(match.group(1)) if match else _units_or_default(permit))


def _houseplex_from_structure(permit: Permit) -> Optional[str]:
    if re.search(r'3\+\s*Unit', permit.structure_type or '', re.IGNORECASE):
        return houseplex_tag(_units_or_default(permit))
    return None


def _houseplex_from_description(permit: Permit) -> Optional[str]:
    units = _housing_units(permit)
    if units > 1 and 'houseplex' in (permit.description or '').lower():
        return houseplex_tag(units)
    return None


def _structure_match(pattern: str, tag: str) -> Callable[[Permit], Optional[str]]:
    compiled = re.compile(pattern, re.IGNORECASE)
    return lambda permit: tag if compiled.search(permit.structure_type or '') else None


# First non-None wins; default new:sfd
NEW_HOUSE_BUILDING_TYPES = [
    _houseplex_from_use,
    _houseplex_from_structure,
    _houseplex_from_description,
    _structure_match(r'stacked', 'new:stacked-townhouse'),
    _structure_match(r'townhouse|row\s*house', 'new:townhouse'),
    _structure_match(r'semi', 'new:semi-detached'),
]

NEW_HOUSE_FEATURES = [
    (tag, _compile(patterns)) for tag, patterns in [
        ('new:garage', [r'\bgarage\b']),
        ('new:deck', [r'\bdeck\b']),
        ('new:porch', [r'\bporch\b']),
        ('new:walkout', [r'\bwalk[\s-]?out\b']),
        ('new:balcony', [r'\bbalcon(y|ies)\b']),
        ('new:laneway-suite', [r'\blaneway\b', r'\bgarden\s*suite\b', r'\brear\s*yard\s*suite\b']),
        ('new:finished-basement', [r'\bfinish(ed)?\s*basement\b']),
    ]
]


def new_house_building_type(permit: Permit) -> str:
    for rule in NEW_HOUSE_BUILDING_TYPES:
        tag = rule(permit)
        if tag:
            return tag
    return 'new:sfd'


def extract_new_house_tags(permit: Permit) -> List[str]:
    """Exactly one building-type tag plus any feature tags."""
    desc = (permit.description or '').strip().lower()
    tags = {new_house_building_type(permit)}
    tags.update(tag for tag, patterns in NEW_HOUSE_FEATURES if _any_match(patterns, desc))
    return sorted(tags)


# =============================================================================
# USE TYPE
# =============================================================================

RESIDENTIAL_TYPE_RE = re.compile(r'^(Small Residential|New House|Residential)', re.IGNORECASE)
RESIDENTIAL_STRUCTURE_RE = re.compile(
    r'\b(SFD|Detached|Semi|Townhouse|Row\s*House|Stacked|Duplex|Triplex)\b', re.IGNORECASE)
RESIDENTIAL_USE_RE = re.compile(
    r'\b(residential|dwelling|house|duplex|triplex|apartment)\b', re.IGNORECASE)
COMMERCIAL_TYPE_RE = re.compile(r'^Non-Residential', re.IGNORECASE)
COMMERCIAL_STRUCTURE_RE = re.compile(r'\b(commercial|industrial|mercantile)\b', re.IGNORECASE)
COMMERCIAL_USE_RE = re.compile(
    r'\b(commercial|industrial|retail|office|mercantile|warehouse)\b', re.IGNORECASE)


def classify_use_type(permit: Permit) -> UseType:
    pt = (permit.permit_type or '').strip()
    st = (permit.structure_type or '').strip()
    pu = (permit.proposed_use or '').strip()

    residential = bool(
        RESIDENTIAL_TYPE_RE.match(pt)
        or RESIDENTIAL_STRUCTURE_RE.search(st)
        or RESIDENTIAL_USE_RE.search(pu)
    )
    commercial = bool(
        COMMERCIAL_TYPE_RE.match(pt)
        or COMMERCIAL_STRUCTURE_RE.search(st)
        or COMMERCIAL_USE_RE.search(pu)
    )

    if residential and commercial:
        return 'mixed-use'
    if residential:
        return 'residential'
    return 'commercial'


# =============================================================================
# BRANCH SELECTION / ENTRY POINT
# =============================================================================

def _permit_type(permit: Permit) -> str:
    return (permit.permit_type or '').strip()


SCOPE_BRANCHES = [
    (lambda p: _permit_type(p).startswith('Small Residential'), 'residential'),
    (lambda p: _permit_type(p).startswith('New House'), 'new_house'),
    (lambda p: _permit_type(p).startswith('Building Additions') and is_residential_structure(p),
     'residential'),
]


def select_branch(permit: Permit) -> str:
    for predicate, branch in SCOPE_BRANCHES:
        if predicate(permit):
            return branch
    return 'general'


def extract_scope_tags(permit: Permit, tables: ReferenceTables) -> List[str]:
    branch = select_branch(permit)
    if branch == 'residential':
        return extract_residential_tags(permit, tables)
    if branch == 'new_house':
        return extract_new_house_tags(permit)
    return extract_general_tags(permit)


def classify(permit: Permit, tables: Optional[ReferenceTables] = None) -> ScopeResult:
    """Project type and sorted, de-duplicated scope tags for one permit."""
    tables = tables or default_reference_tables()
    project_type = classify_project_type(permit)
    tags = set(extract_scope_tags(permit, tables))

    if project_type == 'demolition' or TYPE_DEMOLITION_RE.search(permit.permit_type or ''):
        tags.add('demolition')
    tags.add(classify_use_type(permit))

    return ScopeResult(project_type=project_type, scope_tags=sorted(tags))
