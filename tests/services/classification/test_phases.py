"""Tests for construction phase detection."""
from datetime import date

import pytest

from services.classification.models import PHASES, Permit
from services.classification.phases import (
    PHASE_TRADE_MAP,
    determine_phase,
    is_trade_active_in_phase,
    months_between,
)
from services.classification.trades import TRADES

TODAY = date(2026, 3, 15)


def _make_permit(status='Permit Issued', issued_date=None):
    return Permit(permit_num='21 100000 BLD 00', revision_num='00',
                  status=status, issued_date=issued_date)


class TestDeterminePhase:
    def test_under_inspection_after_13_months(self):
        permit = _make_permit(status='Under Inspection', issued_date=date(2025, 2, 15))
        assert determine_phase(permit, TODAY) == 'finishing'

    def test_no_issued_date(self):
        assert determine_phase(_make_permit(issued_date=None), TODAY) == 'early_construction'

    @pytest.mark.parametrize('status', ['Completed', 'Permit Closed', 'CLOSED'])
    def test_closed_statuses(self, status):
        permit = _make_permit(status=status, issued_date=date(2026, 3, 1))
        assert determine_phase(permit, TODAY) == 'landscaping'

    @pytest.mark.parametrize('status', ['Application Received', 'Not Started'])
    def test_not_started_statuses(self, status):
        permit = _make_permit(status=status, issued_date=date(2020, 1, 1))
        assert determine_phase(permit, TODAY) == 'early_construction'

    @pytest.mark.parametrize('issued,expected', [
        (date(2026, 3, 1), 'early_construction'),     # 0 months
        (date(2025, 12, 15), 'early_construction'),   # 3 months
        (date(2025, 11, 15), 'structural'),           # 4 months
        (date(2025, 6, 15), 'structural'),            # 9 months
        (date(2025, 5, 15), 'finishing'),             # 10 months
        (date(2024, 9, 15), 'finishing'),             # 18 months
        (date(2024, 8, 15), 'landscaping'),           # 19 months
    ])
    def test_month_boundaries(self, issued, expected):
        assert determine_phase(_make_permit(issued_date=issued), TODAY) == expected

    def test_always_a_known_phase(self):
        for status in ['', 'Permit Issued', 'Revocation Pending', 'Under Review']:
            for issued in [None, date(2010, 1, 1), date(2026, 3, 14)]:
                assert determine_phase(_make_permit(status, issued), TODAY) in PHASES


class TestMonthsBetween:
    def test_partial_month_not_counted(self):
        assert months_between(date(2026, 1, 31), date(2026, 2, 28)) == 0
        assert months_between(date(2026, 1, 15), date(2026, 2, 14)) == 0
        assert months_between(date(2026, 1, 15), date(2026, 2, 15)) == 1

    def test_future_issue_date(self):
        assert months_between(date(2026, 6, 1), date(2026, 3, 1)) == 0


class TestActiveTrades:
    def test_active(self):
        assert is_trade_active_in_phase('plumbing', 'structural')
        assert is_trade_active_in_phase('painting', 'landscaping')

    def test_inactive(self):
        assert not is_trade_active_in_phase('landscaping', 'structural')
        assert not is_trade_active_in_phase('plumbing', 'unknown-phase')

    def test_every_trade_has_a_phase(self):
        active = set().union(*PHASE_TRADE_MAP.values())
        assert {t.slug for t in TRADES} <= active

    def test_phase_keys(self):
        assert set(PHASE_TRADE_MAP) == set(PHASES)
