"""Permit scope and trade classification service."""
from .classifier import apply_scope_limit, classify_products, classify_trades
from .models import Permit, ProductMatch, ScopeResult, TradeMappingRule, TradeMatch
from .phases import determine_phase, is_trade_active_in_phase
from .propagation import PropagatedScope, propagate_scope
from .reference import (
    ReferenceDataError,
    ReferenceTables,
    default_reference_tables,
    load_reference_tables,
)
from .scope import classify
from .scoring import calculate_lead_score

__all__ = [
    'Permit',
    'ScopeResult',
    'TradeMatch',
    'TradeMappingRule',
    'ProductMatch',
    'PropagatedScope',
    'ReferenceTables',
    'ReferenceDataError',
    'classify',
    'classify_trades',
    'classify_products',
    'apply_scope_limit',
    'determine_phase',
    'is_trade_active_in_phase',
    'calculate_lead_score',
    'propagate_scope',
    'default_reference_tables',
    'load_reference_tables',
]
