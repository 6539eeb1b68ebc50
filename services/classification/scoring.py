"""
Lead scoring for trade matches.

A lead score (0-100) ranks how useful a permit is to a contractor in the
matched trade right now. It is the clamped sum of:

    status base      40 issued, 50 inspection, 30 review, ... (first match wins)
    cost bonus       0 to +15 by estimated construction cost
    freshness bonus  0 to +20 by days since issued
    phase bonus      +15 when the trade is active in the current phase
    confidence       round(confidence * 10)
    staleness        0 to -20 by days since issued
    revocation       -30 for revoked, cancelled or abandoned permits

Freshness and staleness use overlapping day ranges and are applied
independently.
"""
import math
from dataclasses import asdict, dataclass
from datetime import date
from typing import Optional

from .models import Permit, TradeMatch

MIN_SCORE = 0
MAX_SCORE = 100
PHASE_ACTIVE_BONUS = 15
REVOCATION_PENALTY = -30

# (status substrings, base score); first match wins
STATUS_SCORES = [
    (('permit issued', 'revision issued'), 40),
    (('inspection',), 50),
    (('under review', 'issuance pending'), 30),
    (('application',), 20),
    (('not started',), 15),
    (('revocation', 'cancellation'), 5),
    (('abandoned',), 0),
]
DEFAULT_STATUS_SCORE = 25

# (minimum cost, bonus), highest first
COST_BONUSES = [
    (5_000_000, 15),
    (1_000_000, 12),
    (500_000, 10),
    (100_000, 7),
    (50_000, 4),
]

# (max days since issued, bonus)
FRESHNESS_BONUSES = [
    (7, 20),
    (30, 15),
    (90, 10),
    (180, 5),
]

# (days since issued greater than, penalty), most stale first
STALENESS_PENALTIES = [
    (730, -20),
    (365, -10),
    (180, -5),
]

REVOKED_STATUSES = ('revocation', 'cancellation', 'abandoned')


@dataclass
class ScoreBreakdown:
    status: int = 0
    cost: int = 0
    freshness: int = 0
    phase: int = 0
    confidence: int = 0
    staleness: int = 0
    revocation: int = 0

    @property
    def raw_total(self) -> int:
        return sum(asdict(self).values())

    @property
    def total(self) -> int:
        return max(MIN_SCORE, min(MAX_SCORE, self.raw_total))


def status_score(status: str) -> int:
    status = (status or '').lower()
    for keywords, score in STATUS_SCORES:
        if any(k in status for k in keywords):
            return score
    return DEFAULT_STATUS_SCORE


def cost_bonus(cost: Optional[float]) -> int:
    cost = cost or 0
    for minimum, bonus in COST_BONUSES:
        if cost >= minimum:
            return bonus
    return 0


def freshness_bonus(days: Optional[int]) -> int:
    if days is None:
        return 0
    for max_days, bonus in FRESHNESS_BONUSES:
        if days <= max_days:
            return bonus
    return 0


def staleness_penalty(days: Optional[int]) -> int:
    if days is None:
        return 0
    for min_days, penalty in STALENESS_PENALTIES:
        if days > min_days:
            return penalty
    return 0


def confidence_bonus(confidence: float) -> int:
    # Half rounds up (0.85 -> 9)
    return int(math.floor((confidence or 0) * 10 + 0.5))


def days_since_issued(permit: Permit, today: Optional[date] = None) -> Optional[int]:
    if permit.issued_date is None:
        return None
    return ((today or date.today()) - permit.issued_date).days


def score_breakdown(permit: Permit, match: TradeMatch, today: Optional[date] = None) -> ScoreBreakdown:
    """Individual lead-score components for one permit/trade pair."""
    days = days_since_issued(permit, today)
    status = (permit.status or '').lower()
    return ScoreBreakdown(
        status=status_score(status),
        cost=cost_bonus(permit.est_const_cost),
        freshness=freshness_bonus(days),
        phase=PHASE_ACTIVE_BONUS if match.is_active else 0,
        confidence=confidence_bonus(match.confidence),
        staleness=staleness_penalty(days),
        revocation=REVOCATION_PENALTY if any(s in status for s in REVOKED_STATUSES) else 0,
    )


def calculate_lead_score(permit: Permit, match: TradeMatch, today: Optional[date] = None) -> int:
    return score_breakdown(permit, match, today).total
