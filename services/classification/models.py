"""Data models for the permit classification service."""
from dataclasses import asdict, dataclass, field
from datetime import date, datetime
from typing import Any, Literal

ProjectType = Literal[
    'new_build', 'addition', 'demolition', 'renovation', 'mechanical', 'repair', 'other'
]
Phase = Literal['early_construction', 'structural', 'finishing', 'landscaping']
UseType = Literal['residential', 'commercial', 'mixed-use']
ScopeSource = Literal['classified', 'propagated']

PROJECT_TYPES = (
    'new_build', 'addition', 'demolition', 'renovation', 'mechanical', 'repair', 'other',
)
PHASES = ('early_construction', 'structural', 'finishing', 'landscaping')
USE_TYPES = ('residential', 'commercial', 'mixed-use')


def _text(value: Any) -> str:
    if value is None:
        return ''
    return str(value)


def _int(value: Any) -> int:
    if value is None or value == '':
        return 0
    try:
        return int(float(value))
    except (TypeError, ValueError):
        return 0


def _float(value: Any) -> float | None:
    if value is None or value == '':
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def _date(value: Any) -> date | None:
    """Parse issued dates from DB rows (date, datetime or ISO text)."""
    if value is None or value == '':
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return datetime.strptime(str(value)[:10], '%Y-%m-%d').date()
    except ValueError:
        return None


@dataclass
class Permit:
    """A building permit as read from the permits table."""
    permit_num: str
    revision_num: str
    permit_type: str = ''
    work: str = ''
    description: str = ''
    structure_type: str = ''
    current_use: str = ''
    proposed_use: str = ''
    storeys: int = 0
    est_const_cost: float | None = None
    status: str = ''
    issued_date: date | None = None
    housing_units: int = 0
    # Derived fields, only read by propagation
    project_type: str | None = None
    scope_tags: list[str] = field(default_factory=list)

    @property
    def key(self) -> tuple[str, str]:
        return (self.permit_num, self.revision_num)

    @classmethod
    def from_row(cls, row: dict) -> 'Permit':
        """Build a Permit from a DB row, treating NULL text as empty."""
        return cls(
            permit_num=_text(row.get('permit_num')),
            revision_num=_text(row.get('revision_num')),
            permit_type=_text(row.get('permit_type')),
            work=_text(row.get('work')),
            description=_text(row.get('description')),
            structure_type=_text(row.get('structure_type')),
            current_use=_text(row.get('current_use')),
            proposed_use=_text(row.get('proposed_use')),
            storeys=_int(row.get('storeys')),
            est_const_cost=_float(row.get('est_const_cost')),
            status=_text(row.get('status')),
            issued_date=_date(row.get('issued_date')),
            housing_units=_int(row.get('housing_units')),
            project_type=row.get('project_type'),
            scope_tags=list(row.get('scope_tags') or []),
        )


@dataclass
class ScopeResult:
    """Project category plus sorted, de-duplicated scope tags."""
    project_type: ProjectType
    scope_tags: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass(frozen=True)
class Trade:
    id: int
    slug: str
    name: str
    icon: str
    color: str
    sort_order: int


@dataclass(frozen=True)
class ProductGroup:
    id: int
    slug: str
    name: str
    sort_order: int


@dataclass(frozen=True)
class TradeMappingRule:
    """Direct field-pattern rule. confidence=0 means use the tier default."""
    trade_id: int
    tier: int
    match_field: str
    match_pattern: str
    confidence: float = 0.0
    phase_start: int | None = None
    phase_end: int | None = None
    is_active: bool = True

    @classmethod
    def from_row(cls, row: dict) -> 'TradeMappingRule':
        return cls(
            trade_id=_int(row.get('trade_id')),
            tier=_int(row.get('tier')) or 1,
            match_field=_text(row.get('match_field')),
            match_pattern=_text(row.get('match_pattern')),
            confidence=_float(row.get('confidence')) or 0.0,
            phase_start=row.get('phase_start'),
            phase_end=row.get('phase_end'),
            is_active=bool(row.get('is_active', True)),
        )


@dataclass
class TradeMatch:
    """One trade inferred for one permit."""
    permit_num: str
    revision_num: str
    trade_id: int
    trade_slug: str
    trade_name: str
    tier: int
    confidence: float
    is_active: bool
    phase: Phase
    lead_score: int = 0

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class ProductMatch:
    """One product group inferred for one permit."""
    permit_num: str
    revision_num: str
    product_id: int
    product_slug: str
    product_name: str
    confidence: float

    def to_dict(self) -> dict:
        return asdict(self)
