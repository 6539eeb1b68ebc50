"""
Trade classification.

Two strategies are merged per permit:

- Tier 1: direct permit-field rules (e.g. permit_type contains "Plumbing")
- Tier 2: scope tags looked up in the tag-trade matrix

The higher confidence wins per trade. Permits with no signal get the
fallback trade set (tier 3). The result is then limited by the permit's
narrow-scope code (e.g. PLB -> plumbing only) or, failing that, by the
work-field exclusion list.
"""
import logging
from datetime import date
from typing import Dict, Iterable, List, Optional, Tuple

from .models import Permit, ProductMatch, TradeMatch
from .permit_numbers import extract_permit_code
from .phases import determine_phase
from .reference import ReferenceTables, default_reference_tables
from .rules import FALLBACK_TIER
from .scoring import calculate_lead_score
from .tag_matrix import lookup_products_for_tags, lookup_trades_for_tags
from .text import contains_ci

logger = logging.getLogger(__name__)

TAG_MATRIX_TIER = 2

# slug -> (confidence, tier)
Candidates = Dict[str, Tuple[float, int]]


def _field_value(permit: Permit, field_name: str) -> str:
    value = getattr(permit, field_name, None)
    return value if isinstance(value, str) else ''


def match_tier1_rules(permit: Permit, tables: ReferenceTables) -> Candidates:
    """Best tier-1 confidence per trade for rules whose pattern is in the permit field."""
    best: Candidates = {}
    for rule in tables.active_tier1_rules():
        if not contains_ci(_field_value(permit, rule.match_field), rule.match_pattern):
            continue
        trade = tables.trade_by_id(rule.trade_id)
        if trade is None:
            logger.debug(f"Skipping rule '{rule.match_pattern}': unknown trade id {rule.trade_id}")
            continue
        confidence = rule.confidence if rule.confidence > 0 else tables.tier_confidence[1]
        if trade.slug not in best or confidence > best[trade.slug][0]:
            best[trade.slug] = (confidence, 1)
    return best


def match_tag_matrix(scope_tags: Iterable[str], tables: ReferenceTables) -> Candidates:
    return {
        slug: (confidence, TAG_MATRIX_TIER)
        for slug, confidence in lookup_trades_for_tags(scope_tags, tables.tag_trade_matrix).items()
    }


def merge_candidates(*strategies: Candidates) -> Candidates:
    """Union by slug keeping the higher confidence; earlier strategies win ties."""
    merged: Candidates = {}
    for candidates in strategies:
        for slug, (confidence, tier) in candidates.items():
            if slug not in merged or confidence > merged[slug][0]:
                merged[slug] = (confidence, tier)
    return merged


def fallback_candidates(slugs: Iterable[str], tables: ReferenceTables) -> Candidates:
    return {slug: (tables.fallback_confidence, FALLBACK_TIER) for slug in slugs}


def apply_scope_limit(
    matches: List[TradeMatch],
    permit_num: str,
    work: str,
    tables: Optional[ReferenceTables] = None,
) -> List[TradeMatch]:
    """Keep only trades in scope for the permit's code, else drop work-excluded trades."""
    tables = tables or default_reference_tables()
    code = extract_permit_code(permit_num)
    if code and code in tables.narrow_scope_codes:
        allowed = tables.narrow_scope_codes[code]
        return [m for m in matches if m.trade_slug in allowed]

    work_lower = (work or '').lower()
    if work_lower:
        for key, excluded in tables.work_scope_exclusions:
            if key.lower() in work_lower:
                return [m for m in matches if m.trade_slug not in excluded]
    return matches


def _build_matches(
    permit: Permit,
    candidates: Candidates,
    tables: ReferenceTables,
    phase: str,
    today: Optional[date],
) -> List[TradeMatch]:
    matches = []
    for slug, (confidence, tier) in candidates.items():
        trade = tables.trade_by_slug(slug)
        if trade is None:
            logger.debug(f"Skipping unknown trade slug '{slug}'")
            continue
        match = TradeMatch(
            permit_num=permit.permit_num,
            revision_num=permit.revision_num,
            trade_id=trade.id,
            trade_slug=trade.slug,
            trade_name=trade.name,
            tier=tier,
            confidence=confidence,
            is_active=tables.is_trade_active(trade.slug, phase),
            phase=phase,
        )
        match.lead_score = calculate_lead_score(permit, match, today)
        matches.append(match)
    matches.sort(key=lambda m: tables.trade_by_slug(m.trade_slug).sort_order)
    return matches


def classify_trades(
    permit: Permit,
    scope_tags: Iterable[str],
    tables: Optional[ReferenceTables] = None,
    today: Optional[date] = None,
) -> List[TradeMatch]:
    """
    Trades likely involved in a permit, with phase and lead score.

    Args:
        permit: The permit being classified.
        scope_tags: Tags from classify() for the same permit.
        tables: Reference tables (defaults to the built-in catalogs).
        today: Reference date for phase and recency (defaults to today).
    """
    tables = tables or default_reference_tables()
    code = extract_permit_code(permit.permit_num)
    narrow_scope = tables.narrow_scope_codes.get(code) if code else None

    candidates = match_tier1_rules(permit, tables)
    if narrow_scope is None:
        candidates = merge_candidates(candidates, match_tag_matrix(scope_tags, tables))
    if not candidates:
        logger.debug(f"{permit.permit_num}: no trade signal, using fallback trades")
        candidates = fallback_candidates(tables.fallback_trades, tables)

    phase = determine_phase(permit, today)
    matches = apply_scope_limit(
        _build_matches(permit, candidates, tables, phase, today),
        permit.permit_num, permit.work, tables,
    )
    if not matches and narrow_scope:
        matches = _build_matches(
            permit, fallback_candidates(narrow_scope, tables), tables, phase, today)
    return matches


def classify_products(
    permit: Permit,
    scope_tags: Iterable[str],
    tables: Optional[ReferenceTables] = None,
) -> List[ProductMatch]:
    """Product groups implied by the scope tags, in catalog order."""
    tables = tables or default_reference_tables()
    slugs = set(lookup_products_for_tags(scope_tags, tables.tag_product_matrix))
    confidence = tables.tier_confidence[TAG_MATRIX_TIER]
    return [
        ProductMatch(
            permit_num=permit.permit_num,
            revision_num=permit.revision_num,
            product_id=group.id,
            product_slug=group.slug,
            product_name=group.name,
            confidence=confidence,
        )
        for group in tables.product_groups
        if group.slug in slugs
    ]
