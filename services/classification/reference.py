"""
Reference tables bundle.

All catalogs the classifier reads are collected into one frozen
ReferenceTables value, built once at startup and passed into the pure
classification functions. Rule-administration data (narrow-scope codes,
work exclusions, the addition blacklist, tier-1 rules) can be overridden
from a JSON file:

    {
        "narrow_scope_codes": {"PLB": ["plumbing"]},
        "work_scope_exclusions": [["interior alterations", ["roofing"]]],
        "addition_feature_blacklist": ["washroom", "pantry"],
        "fallback_trades": ["framing", "electrical"],
        "tier1_rules": [{"trade_id": 8, "match_field": "permit_type",
                         "match_pattern": "Plumbing", "confidence": 0.95}]
    }
"""
import json
import logging
from dataclasses import dataclass, field, replace
from functools import lru_cache
from pathlib import Path
from types import MappingProxyType
from typing import Dict, Iterable, Mapping, Optional, Tuple

from .models import ProductGroup, Trade, TradeMappingRule
from .phases import PHASE_TRADE_MAP
from .products import PRODUCT_GROUPS
from .rules import (
    ADDITION_FEATURE_BLACKLIST,
    FALLBACK_CONFIDENCE,
    FALLBACK_TRADES,
    NARROW_SCOPE_CODES,
    TIER_1_RULES,
    TIER_CONFIDENCE,
    WORK_SCOPE_EXCLUSIONS,
)
from .tag_matrix import TAG_PRODUCT_MATRIX, TAG_TRADE_MATRIX
from .trades import TRADES

logger = logging.getLogger(__name__)


class ReferenceDataError(ValueError):
    """Reference tables are inconsistent or an override file is malformed."""


@dataclass(frozen=True)
class ReferenceTables:
    trades: Tuple[Trade, ...] = TRADES
    product_groups: Tuple[ProductGroup, ...] = PRODUCT_GROUPS
    # Read-only mappings are unhashable, so they need factories
    phase_trades: Mapping[str, frozenset] = field(default_factory=lambda: PHASE_TRADE_MAP)
    tag_trade_matrix: Mapping[str, Tuple[Tuple[str, float], ...]] = field(
        default_factory=lambda: TAG_TRADE_MATRIX)
    tag_product_matrix: Mapping[str, Tuple[str, ...]] = field(
        default_factory=lambda: TAG_PRODUCT_MATRIX)
    tier1_rules: Tuple[TradeMappingRule, ...] = TIER_1_RULES
    tier_confidence: Mapping[int, float] = field(default_factory=lambda: TIER_CONFIDENCE)
    narrow_scope_codes: Mapping[str, Tuple[str, ...]] = field(
        default_factory=lambda: NARROW_SCOPE_CODES)
    work_scope_exclusions: Tuple[Tuple[str, Tuple[str, ...]], ...] = WORK_SCOPE_EXCLUSIONS
    fallback_trades: Tuple[str, ...] = FALLBACK_TRADES
    fallback_confidence: float = FALLBACK_CONFIDENCE
    addition_feature_blacklist: Tuple[str, ...] = ADDITION_FEATURE_BLACKLIST
    _by_slug: Mapping[str, Trade] = field(init=False, repr=False, compare=False)
    _by_id: Mapping[int, Trade] = field(init=False, repr=False, compare=False)
    _products_by_slug: Mapping[str, ProductGroup] = field(init=False, repr=False, compare=False)

    def __post_init__(self):
        object.__setattr__(
            self, '_by_slug', MappingProxyType({t.slug: t for t in self.trades}))
        object.__setattr__(
            self, '_by_id', MappingProxyType({t.id: t for t in self.trades}))
        object.__setattr__(
            self, '_products_by_slug',
            MappingProxyType({p.slug: p for p in self.product_groups}))

    def trade_by_slug(self, slug: str) -> Optional[Trade]:
        return self._by_slug.get(slug)

    def trade_by_id(self, trade_id: int) -> Optional[Trade]:
        return self._by_id.get(trade_id)

    def product_by_slug(self, slug: str) -> Optional[ProductGroup]:
        return self._products_by_slug.get(slug)

    def is_trade_active(self, slug: str, phase: str) -> bool:
        return slug in self.phase_trades.get(phase, ())

    def active_tier1_rules(self) -> Tuple[TradeMappingRule, ...]:
        return tuple(r for r in self.tier1_rules if r.is_active and r.tier == 1)

    def with_tier1_rules(self, rules: Iterable[TradeMappingRule]) -> 'ReferenceTables':
        return replace(self, tier1_rules=tuple(rules))

    def validate(self) -> 'ReferenceTables':
        """Raise ReferenceDataError if any table references an unknown trade or product."""
        slugs = [t.slug for t in self.trades]
        if len(set(slugs)) != len(slugs):
            raise ReferenceDataError('Duplicate trade slugs in catalog')
        if len({t.id for t in self.trades}) != len(self.trades):
            raise ReferenceDataError('Duplicate trade ids in catalog')

        known = set(slugs)
        in_phase = set().union(*self.phase_trades.values()) if self.phase_trades else set()
        orphans = sorted(known - in_phase)
        if orphans:
            raise ReferenceDataError(f'Trades not active in any phase: {orphans}')
        _check_known('phase table', in_phase, known)

        for tag, entries in self.tag_trade_matrix.items():
            _check_known(f'tag matrix [{tag}]', [slug for slug, _ in entries], known)
        for code, allowed in self.narrow_scope_codes.items():
            _check_known(f'narrow scope code {code}', allowed, known)
        for key, excluded in self.work_scope_exclusions:
            _check_known(f'work exclusion "{key}"', excluded, known)
        _check_known('fallback trades', self.fallback_trades, known)

        products = {p.slug for p in self.product_groups}
        for tag, entries in self.tag_product_matrix.items():
            _check_known(f'product matrix [{tag}]', entries, products)
        return self


def _check_known(where: str, slugs: Iterable[str], known: set):
    unknown = sorted(set(slugs) - known)
    if unknown:
        raise ReferenceDataError(f'{where} references unknown slugs: {unknown}')


@lru_cache(maxsize=1)
def default_reference_tables() -> ReferenceTables:
    return ReferenceTables().validate()


def _load_overrides(path: Path) -> Dict:
    try:
        data = json.loads(Path(path).read_text())
    except (OSError, json.JSONDecodeError) as e:
        raise ReferenceDataError(f'Cannot read rules file {path}: {e}') from e
    if not isinstance(data, dict):
        raise ReferenceDataError(f'Rules file {path} must contain a JSON object')
    return data


def _overrides_to_fields(data: Dict) -> Dict:
    fields = {}
    try:
        if 'narrow_scope_codes' in data:
            fields['narrow_scope_codes'] = MappingProxyType({
                code.upper(): tuple(slugs) for code, slugs in data['narrow_scope_codes'].items()
            })
        if 'work_scope_exclusions' in data:
            raw = data['work_scope_exclusions']
            pairs = raw.items() if isinstance(raw, dict) else raw
            fields['work_scope_exclusions'] = tuple(
                (key.lower(), tuple(slugs)) for key, slugs in pairs
            )
        if 'addition_feature_blacklist' in data:
            fields['addition_feature_blacklist'] = tuple(
                word.lower() for word in data['addition_feature_blacklist']
            )
        if 'fallback_trades' in data:
            fields['fallback_trades'] = tuple(data['fallback_trades'])
        if 'tier1_rules' in data:
            fields['tier1_rules'] = tuple(
                TradeMappingRule.from_row({'tier': 1, **row}) for row in data['tier1_rules']
            )
    except (AttributeError, TypeError, ValueError) as e:
        raise ReferenceDataError(f'Malformed rules override: {e}') from e
    return fields


def load_reference_tables(
    rules_file: Optional[str] = None,
    tier1_rules: Optional[Iterable[TradeMappingRule]] = None,
) -> ReferenceTables:
    """
    Build validated reference tables.

    Args:
        rules_file: Optional JSON override file (see module docstring).
        tier1_rules: Rules loaded from the database; replace the built-ins
            (and any file-provided rules) when non-empty.
    """
    tables = ReferenceTables()
    if rules_file:
        fields = _overrides_to_fields(_load_overrides(Path(rules_file)))
        logger.info(f"Loaded rule overrides from {rules_file}: {sorted(fields)}")
        tables = replace(tables, **fields)
    if tier1_rules:
        tables = tables.with_tier1_rules(tier1_rules)
    return tables.validate()
