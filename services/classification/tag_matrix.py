"""
Tag-to-trade and tag-to-product matrices.

Scope tags are normalized before lookup: the work-type prefix is dropped
("new:kitchen" and "alter:kitchen" both hit "kitchen") and houseplex tags
collapse to the bare key ("new:houseplex-4-unit" -> "houseplex").
"""
import re
from types import MappingProxyType
from typing import Dict, Iterable, List, Mapping, Tuple

TAG_PREFIX_RE = re.compile(r'^(new|alter|sys|scale|exp):')
HOUSEPLEX_RE = re.compile(r'^houseplex-\d+-unit$')

# Shared by new-build building types
_BUILDING_SHELL = (
    ('excavation', 0.75), ('concrete', 0.75), ('framing', 0.80), ('roofing', 0.75),
    ('plumbing', 0.75), ('hvac', 0.75), ('electrical', 0.75), ('insulation', 0.70),
    ('drywall', 0.70), ('painting', 0.65), ('flooring', 0.65), ('masonry', 0.70),
)

_SECONDARY_DWELLING = (
    ('framing', 0.80), ('concrete', 0.75), ('excavation', 0.70), ('plumbing', 0.75),
    ('electrical', 0.75), ('hvac', 0.70), ('insulation', 0.65), ('drywall', 0.65),
    ('roofing', 0.65),
)

_TAG_TRADES = {
    # Residential interior
    'kitchen': (
        ('plumbing', 0.80), ('electrical', 0.80), ('tiling', 0.70),
        ('millwork-cabinetry', 0.80), ('stone-countertops', 0.70), ('flooring', 0.65),
        ('drywall', 0.60), ('painting', 0.55),
    ),
    'bathroom': (
        ('plumbing', 0.85), ('tiling', 0.80), ('drywall', 0.70), ('glazing', 0.60),
        ('electrical', 0.65), ('waterproofing', 0.60), ('painting', 0.55),
    ),
    'basement': (
        ('framing', 0.75), ('drywall', 0.75), ('plumbing', 0.70), ('electrical', 0.75),
        ('insulation', 0.70), ('flooring', 0.65), ('waterproofing', 0.65), ('painting', 0.55),
    ),
    # Residential exterior
    'pool': (
        ('pool-installation', 0.90), ('excavation', 0.75), ('concrete', 0.80),
        ('plumbing', 0.75), ('electrical', 0.65), ('landscaping', 0.60),
        ('temporary-fencing', 0.70),
    ),
    'deck': (('decking-fences', 0.85), ('framing', 0.65), ('concrete', 0.55)),
    'porch': (('framing', 0.70), ('concrete', 0.65), ('roofing', 0.55), ('masonry', 0.55)),
    'garage': (
        ('framing', 0.70), ('concrete', 0.70), ('roofing', 0.65), ('electrical', 0.60),
        ('drywall', 0.55),
    ),
    'fence': (('decking-fences', 0.85),),
    'garden_suite': _SECONDARY_DWELLING,
    'laneway': _SECONDARY_DWELLING,
    # Building types
    'sfd': (
        ('excavation', 0.80), ('concrete', 0.80), ('framing', 0.85), ('roofing', 0.80),
        ('plumbing', 0.80), ('hvac', 0.80), ('electrical', 0.80), ('insulation', 0.75),
        ('drywall', 0.75), ('painting', 0.70), ('flooring', 0.70), ('masonry', 0.65),
        ('tiling', 0.65), ('trim-work', 0.65), ('millwork-cabinetry', 0.65),
        ('stone-countertops', 0.55), ('eavestrough-siding', 0.65), ('landscaping', 0.60),
        ('waterproofing', 0.55), ('glazing', 0.60), ('caulking', 0.55),
        ('temporary-fencing', 0.60), ('decking-fences', 0.50),
    ),
    'semi': _BUILDING_SHELL + (
        ('tiling', 0.60), ('trim-work', 0.60), ('eavestrough-siding', 0.60),
        ('landscaping', 0.55), ('caulking', 0.50),
    ),
    'townhouse': _BUILDING_SHELL + (
        ('fire-protection', 0.55), ('tiling', 0.60), ('trim-work', 0.60),
        ('eavestrough-siding', 0.60), ('landscaping', 0.55),
    ),
    'houseplex': (
        ('excavation', 0.75), ('concrete', 0.75), ('framing', 0.80), ('roofing', 0.75),
        ('plumbing', 0.80), ('hvac', 0.80), ('electrical', 0.80), ('insulation', 0.70),
        ('drywall', 0.70), ('painting', 0.65), ('flooring', 0.65), ('fire-protection', 0.60),
        ('tiling', 0.60), ('masonry', 0.65),
    ),
    # Systems
    'hvac': (('hvac', 0.85),),
    'plumbing': (('plumbing', 0.85),),
    'electrical': (('electrical', 0.85),),
    'fire_alarm': (('fire-protection', 0.85), ('electrical', 0.55)),
    'sprinkler': (('fire-protection', 0.85), ('plumbing', 0.55)),
    # Structural
    'underpinning': (
        ('shoring', 0.85), ('concrete', 0.75), ('waterproofing', 0.65), ('excavation', 0.70),
    ),
    'foundation': (('concrete', 0.85), ('excavation', 0.75), ('waterproofing', 0.70)),
    'addition': (
        ('framing', 0.75), ('concrete', 0.65), ('roofing', 0.60), ('plumbing', 0.55),
        ('electrical', 0.60), ('insulation', 0.55), ('drywall', 0.55),
    ),
    # Exterior envelope
    'roof': (('roofing', 0.85), ('eavestrough-siding', 0.55)),
    'cladding': (
        ('masonry', 0.70), ('eavestrough-siding', 0.70), ('insulation', 0.60),
        ('caulking', 0.55),
    ),
    'windows': (('glazing', 0.85), ('caulking', 0.55)),
    # Energy and specialty
    'solar': (('solar', 0.90), ('electrical', 0.75), ('roofing', 0.55)),
    'ev_charger': (('electrical', 0.80),),
    'elevator': (('elevator', 0.85), ('electrical', 0.55)),
    # Interior finish
    'interior': (
        ('drywall', 0.70), ('painting', 0.65), ('flooring', 0.60), ('trim-work', 0.55),
        ('electrical', 0.55),
    ),
    'fireplace': (('hvac', 0.65), ('masonry', 0.55)),
    # Scale
    'high-rise': (
        ('elevator', 0.65), ('concrete', 0.65), ('structural-steel', 0.60),
        ('fire-protection', 0.60), ('glazing', 0.55),
    ),
    'mid-rise': (('concrete', 0.60), ('fire-protection', 0.55), ('elevator', 0.55)),
    'demolition': (('demolition', 0.85), ('temporary-fencing', 0.60), ('excavation', 0.50)),
    'security': (('security', 0.85), ('electrical', 0.55)),
}

_DWELLING_PRODUCTS = (
    'kitchen-cabinets', 'appliances', 'countertops', 'plumbing-fixtures', 'tiling',
    'windows', 'doors', 'flooring', 'paint', 'lighting', 'lumber-drywall',
    'roofing-materials',
)

_SUITE_PRODUCTS = (
    'windows', 'doors', 'flooring', 'lighting', 'plumbing-fixtures', 'lumber-drywall',
    'roofing-materials', 'paint',
)

_TAG_PRODUCTS = {
    'kitchen': (
        'kitchen-cabinets', 'appliances', 'countertops', 'plumbing-fixtures', 'tiling',
        'lighting', 'flooring',
    ),
    'bathroom': ('plumbing-fixtures', 'tiling', 'mirrors-glass', 'lighting', 'paint'),
    'basement': ('lumber-drywall', 'flooring', 'paint', 'lighting', 'doors', 'staircases'),
    'deck': ('lumber-drywall',),
    'porch': ('lumber-drywall', 'paint'),
    'garage': ('lumber-drywall', 'garage-doors', 'lighting'),
    'garden_suite': _SUITE_PRODUCTS,
    'laneway': _SUITE_PRODUCTS,
    'sfd': _DWELLING_PRODUCTS + ('eavestroughs', 'staircases', 'mirrors-glass', 'garage-doors'),
    'semi': _DWELLING_PRODUCTS + ('eavestroughs', 'staircases'),
    'townhouse': _DWELLING_PRODUCTS + ('eavestroughs', 'staircases'),
    'houseplex': _DWELLING_PRODUCTS + ('staircases',),
    'roof': ('roofing-materials', 'eavestroughs'),
    'cladding': ('eavestroughs',),
    'windows': ('windows', 'mirrors-glass'),
    'interior': ('paint', 'flooring', 'doors', 'lighting'),
    'addition': (
        'windows', 'doors', 'flooring', 'lumber-drywall', 'roofing-materials', 'paint',
        'lighting',
    ),
}

# Tag spellings emitted by the extractor that share a matrix row
TAG_ALIASES = {
    'fire-alarm': 'fire_alarm',
    'roofing': 'roof',
    'laneway-suite': 'laneway',
    'interior-alterations': 'interior',
    '1-storey-addition': 'addition',
    '2-storey-addition': 'addition',
    '3-storey-addition': 'addition',
    'storey-addition': 'addition',
    'rear-addition': 'addition',
    'side-addition': 'addition',
    'front-addition': 'addition',
    'window': 'windows',
    'access-control': 'security',
}


def _with_aliases(rows: dict) -> Mapping:
    merged = dict(rows)
    for alias, key in TAG_ALIASES.items():
        if key in rows and alias not in rows:
            merged[alias] = rows[key]
    return MappingProxyType(merged)


TAG_TRADE_MATRIX: Mapping[str, Tuple[Tuple[str, float], ...]] = _with_aliases(_TAG_TRADES)
TAG_PRODUCT_MATRIX: Mapping[str, Tuple[str, ...]] = _with_aliases(_TAG_PRODUCTS)


def normalize_tag(tag: str) -> str:
    """Strip the work-type prefix and collapse houseplex-N-unit to houseplex."""
    base = TAG_PREFIX_RE.sub('', tag, count=1)
    if HOUSEPLEX_RE.match(base):
        return 'houseplex'
    return base


def lookup_trades_for_tags(
    tags: Iterable[str], matrix: Mapping[str, Iterable[Tuple[str, float]]] = TAG_TRADE_MATRIX
) -> Dict[str, float]:
    """Return {trade_slug: max confidence} across all tags. Unknown tags are ignored."""
    best: Dict[str, float] = {}
    for tag in tags:
        for slug, confidence in matrix.get(normalize_tag(tag), ()):
            if confidence > best.get(slug, 0.0):
                best[slug] = confidence
    return best


def lookup_products_for_tags(
    tags: Iterable[str], matrix: Mapping[str, Iterable[str]] = TAG_PRODUCT_MATRIX
) -> List[str]:
    """Return product slugs for the tags, de-duplicated in first-seen order."""
    seen: List[str] = []
    for tag in tags:
        for slug in matrix.get(normalize_tag(tag), ()):
            if slug not in seen:
                seen.append(slug)
    return seen
