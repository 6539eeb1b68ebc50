"""Product groups for material supplier leads."""
from .models import ProductGroup

_PRODUCT_ROWS = [
    (1, 'kitchen-cabinets', 'Kitchen Cabinets'),
    (2, 'appliances', 'Appliances'),
    (3, 'countertops', 'Countertops'),
    (4, 'plumbing-fixtures', 'Plumbing Fixtures'),
    (5, 'tiling', 'Tiling'),
    (6, 'windows', 'Windows'),
    (7, 'doors', 'Doors'),
    (8, 'flooring', 'Flooring'),
    (9, 'paint', 'Paint'),
    (10, 'lighting', 'Lighting'),
    (11, 'lumber-drywall', 'Lumber & Drywall'),
    (12, 'roofing-materials', 'Roofing Materials'),
    (13, 'eavestroughs', 'Eavestroughs'),
    (14, 'staircases', 'Staircases'),
    (15, 'mirrors-glass', 'Mirrors & Glass'),
    (16, 'garage-doors', 'Garage Doors'),
]

PRODUCT_GROUPS = tuple(
    ProductGroup(id=pid, slug=slug, name=name, sort_order=pid)
    for pid, slug, name in _PRODUCT_ROWS
)


def get_product_group_by_slug(slug: str, groups=PRODUCT_GROUPS) -> ProductGroup | None:
    for group in groups:
        if group.slug == slug:
            return group
    return None


def get_product_group_by_id(product_id: int, groups=PRODUCT_GROUPS) -> ProductGroup | None:
    for group in groups:
        if group.id == product_id:
            return group
    return None
