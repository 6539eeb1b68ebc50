"""Tests for lead scoring."""
from datetime import date, timedelta

import pytest

from services.classification.models import Permit, TradeMatch
from services.classification.scoring import (
    calculate_lead_score,
    confidence_bonus,
    cost_bonus,
    freshness_bonus,
    score_breakdown,
    staleness_penalty,
    status_score,
)

TODAY = date(2026, 3, 15)


def _make_permit(status='Permit Issued', cost=None, days_ago=None):
    issued = TODAY - timedelta(days=days_ago) if days_ago is not None else None
    return Permit(permit_num='21 100000 BLD 00', revision_num='00',
                  status=status, est_const_cost=cost, issued_date=issued)


def _make_match(confidence=0.95, is_active=True):
    return TradeMatch(
        permit_num='21 100000 BLD 00', revision_num='00', trade_id=8,
        trade_slug='plumbing', trade_name='Plumbing', tier=1,
        confidence=confidence, is_active=is_active, phase='structural',
    )


class TestComponents:
    @pytest.mark.parametrize('status,expected', [
        ('Permit Issued', 40),
        ('Revision Issued', 40),
        ('Under Inspection', 50),
        ('Inspection', 50),
        ('Under Review', 30),
        ('Issuance Pending', 30),
        ('Application Received', 20),
        ('Not Started', 15),
        ('Revocation Pending', 5),
        ('Pending Cancellation', 5),
        ('Abandoned', 0),
        ('Something Else', 25),
        ('', 25),
    ])
    def test_status_score(self, status, expected):
        assert status_score(status) == expected

    @pytest.mark.parametrize('cost,expected', [
        (6_000_000, 15),
        (5_000_000, 15),
        (1_000_000, 12),
        (750_000, 10),
        (100_000, 7),
        (50_000, 4),
        (49_999, 0),
        (None, 0),
    ])
    def test_cost_bonus(self, cost, expected):
        assert cost_bonus(cost) == expected

    @pytest.mark.parametrize('days,freshness,staleness', [
        (0, 20, 0),
        (7, 20, 0),
        (30, 15, 0),
        (90, 10, 0),
        (100, 5, 0),
        (180, 5, 0),
        (181, 0, -5),
        (365, 0, -5),
        (400, 0, -10),
        (800, 0, -20),
        (None, 0, 0),
    ])
    def test_recency(self, days, freshness, staleness):
        assert freshness_bonus(days) == freshness
        assert staleness_penalty(days) == staleness

    def test_confidence_bonus_rounds_half_up(self):
        assert confidence_bonus(0.25) == 3
        assert confidence_bonus(0.4) == 4
        assert confidence_bonus(0.0) == 0
        assert confidence_bonus(1.0) == 10


class TestLeadScore:
    def test_fresh_large_issued_permit_hits_cap(self):
        permit = _make_permit(status='Permit Issued', cost=6_000_000, days_ago=0)
        breakdown = score_breakdown(permit, _make_match(confidence=1.0), TODAY)
        assert breakdown.raw_total == 40 + 15 + 20 + 15 + 10
        assert calculate_lead_score(permit, _make_match(confidence=1.0), TODAY) == 100

    def test_fresh_issued_beats_stale_review(self):
        fresh = _make_permit(status='Permit Issued', cost=5_000_000, days_ago=0)
        stale = _make_permit(status='Under Review', cost=5_000, days_ago=3 * 365)
        match = _make_match()
        assert calculate_lead_score(fresh, match, TODAY) > calculate_lead_score(stale, match, TODAY)

    def test_inactive_trade_scores_lower(self):
        permit = _make_permit(days_ago=45)
        active = calculate_lead_score(permit, _make_match(is_active=True), TODAY)
        inactive = calculate_lead_score(permit, _make_match(is_active=False), TODAY)
        assert active - inactive == 15

    def test_revoked_clamps_to_zero(self):
        permit = _make_permit(status='Revocation Pending', days_ago=3 * 365)
        breakdown = score_breakdown(permit, _make_match(confidence=0.0, is_active=False), TODAY)
        assert breakdown.raw_total == 5 - 20 - 30
        assert breakdown.total == 0

    def test_abandoned_penalty(self):
        permit = _make_permit(status='Abandoned')
        breakdown = score_breakdown(permit, _make_match(), TODAY)
        assert breakdown.status == 0
        assert breakdown.revocation == -30

    def test_no_issued_date(self):
        permit = _make_permit(status='Application Received', days_ago=None)
        breakdown = score_breakdown(permit, _make_match(confidence=0.4, is_active=False), TODAY)
        assert breakdown.freshness == 0
        assert breakdown.staleness == 0
        assert breakdown.total == 24

    def test_always_in_range(self):
        for status in ['Permit Issued', 'Abandoned', 'Under Inspection', '']:
            for days in [None, 0, 200, 1000]:
                for cost in [None, 10_000_000]:
                    score = calculate_lead_score(
                        _make_permit(status, cost, days), _make_match(), TODAY)
                    assert 0 <= score <= 100
