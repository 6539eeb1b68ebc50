"""Trade catalog used to turn permits into trade leads."""
from .models import Trade

# (id, slug, name, icon, color); sort_order follows id
_TRADE_ROWS = [
    (1, 'excavation', 'Excavation', 'Shovel', '#795548'),
    (2, 'shoring', 'Shoring', 'Layers', '#8D6E63'),
    (3, 'concrete', 'Concrete', 'Square', '#9E9E9E'),
    (4, 'structural-steel', 'Structural Steel', 'Construction', '#607D8B'),
    (5, 'framing', 'Framing', 'Frame', '#FF9800'),
    (6, 'masonry', 'Masonry', 'Brick', '#BF360C'),
    (7, 'roofing', 'Roofing', 'Home', '#4CAF50'),
    (8, 'plumbing', 'Plumbing', 'Droplet', '#2196F3'),
    (9, 'hvac', 'HVAC', 'Wind', '#00BCD4'),
    (10, 'electrical', 'Electrical', 'Zap', '#FFC107'),
    (11, 'fire-protection', 'Fire Protection', 'Flame', '#F44336'),
    (12, 'insulation', 'Insulation', 'Thermometer', '#E91E63'),
    (13, 'drywall', 'Drywall', 'Layout', '#BDBDBD'),
    (14, 'painting', 'Painting', 'Paintbrush', '#9C27B0'),
    (15, 'flooring', 'Flooring', 'Grid3x3', '#3E2723'),
    (16, 'glazing', 'Glazing', 'PanelTop', '#03A9F4'),
    (17, 'elevator', 'Elevator', 'ArrowUpDown', '#455A64'),
    (18, 'demolition', 'Demolition', 'Trash', '#D32F2F'),
    (19, 'landscaping', 'Landscaping', 'TreePine', '#388E3C'),
    (20, 'waterproofing', 'Waterproofing', 'Shield', '#0D47A1'),
    (21, 'temporary-fencing', 'Temporary Fencing', 'Fence', '#FBC02D'),
    (22, 'pool-installation', 'Pool Installation', 'Waves', '#0097A7'),
    (23, 'trim-work', 'Trim Work', 'Ruler', '#A1887F'),
    (24, 'millwork-cabinetry', 'Millwork & Cabinetry', 'Archive', '#6D4C41'),
    (25, 'tiling', 'Tiling', 'LayoutGrid', '#78909C'),
    (26, 'stone-countertops', 'Stone Countertops', 'Gem', '#616161'),
    (27, 'caulking', 'Caulking', 'Pipette', '#B0BEC5'),
    (28, 'security', 'Security', 'Lock', '#37474F'),
    (29, 'solar', 'Solar', 'Sun', '#FFB300'),
    (30, 'eavestrough-siding', 'Eavestrough & Siding', 'CloudRain', '#546E7A'),
    (31, 'decking-fences', 'Decking & Fences', 'Fence', '#8D6E63'),
]

TRADES = tuple(
    Trade(id=tid, slug=slug, name=name, icon=icon, color=color, sort_order=tid)
    for tid, slug, name, icon, color in _TRADE_ROWS
)


def get_trade_by_slug(slug: str, trades=TRADES) -> Trade | None:
    for trade in trades:
        if trade.slug == slug:
            return trade
    return None


def get_trade_by_id(trade_id: int, trades=TRADES) -> Trade | None:
    for trade in trades:
        if trade.id == trade_id:
            return trade
    return None
