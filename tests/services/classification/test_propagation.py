"""Tests for BLD -> companion scope propagation."""
from services.classification.models import Permit
from services.classification.propagation import (
    iter_sibling_groups,
    propagate_group,
    propagate_scope,
    select_source,
)


def _make_permit(permit_num, permit_type='', tags=None, project_type=None, revision_num='00'):
    return Permit(
        permit_num=permit_num,
        revision_num=revision_num,
        permit_type=permit_type,
        project_type=project_type,
        scope_tags=list(tags or []),
    )


class TestPropagateScope:
    def test_companion_gets_bld_scope(self):
        permits = [
            _make_permit('24 101234 BLD 00', 'New Houses', ['new:sfd', 'new:garage'], 'new_build'),
            _make_permit('24 101234 PLB 00', 'Plumbing(PS)', []),
        ]
        updates = propagate_scope(permits)
        assert len(updates) == 1
        update = updates[0]
        assert update.permit_num == '24 101234 PLB 00'
        assert update.scope_tags == ['new:sfd', 'new:garage']
        assert update.project_type == 'new_build'
        assert update.scope_source == 'propagated'
        assert update.source_permit_num == '24 101234 BLD 00'

    def test_demolition_folder_keeps_demolition(self):
        permits = [
            _make_permit('24 555555 BLD 00', 'New Houses', ['new:sfd', 'residential'], 'new_build'),
            _make_permit('24 555555 DM 00', 'Demolition Folder (DM)', ['demolition']),
        ]
        update = propagate_scope(permits)[0]
        assert update.scope_tags == ['demolition', 'new:sfd', 'residential']

    def test_demolition_not_duplicated(self):
        permits = [
            _make_permit('24 555555 BLD 00', 'New Houses', ['demolition', 'new:sfd']),
            _make_permit('24 555555 DM 00', 'Demolition Folder (DM)'),
        ]
        assert propagate_scope(permits)[0].scope_tags == ['demolition', 'new:sfd']

    def test_bld_without_tags_propagates_nothing(self):
        permits = [
            _make_permit('24 101234 BLD 00', 'New Houses', []),
            _make_permit('24 101234 PLB 00', 'Plumbing(PS)', ['plumbing']),
        ]
        assert propagate_scope(permits) == []

    def test_bld_and_uncoded_siblings_skipped(self):
        permits = [
            _make_permit('24 101234 BLD 00', 'New Houses', ['new:sfd']),
            _make_permit('24 101234 BLD 01', 'New Houses', ['new:sfd'], revision_num='01'),
            _make_permit('24 101234', 'Plumbing(PS)'),
            _make_permit('24 101234 HVA 00', 'Mechanical(MS)'),
        ]
        assert [u.permit_num for u in propagate_scope(permits)] == ['24 101234 HVA 00']

    def test_groups_are_independent(self):
        permits = [
            _make_permit('24 101234 BLD 00', 'New Houses', ['new:sfd']),
            _make_permit('24 999999 PLB 00', 'Plumbing(PS)'),
        ]
        assert propagate_scope(permits) == []

    def test_latest_revision_is_source(self):
        siblings = [
            _make_permit('24 101234 BLD 00', tags=['new:sfd'], revision_num='00'),
            _make_permit('24 101234 BLD 00', tags=['new:semi-detached'], revision_num='02'),
            _make_permit('24 101234 PLB 00'),
        ]
        assert select_source(siblings).revision_num == '02'
        assert propagate_group(siblings)[0].scope_tags == ['new:semi-detached']

    def test_source_tags_not_mutated(self):
        bld = _make_permit('24 555555 BLD 00', 'New Houses', ['new:sfd'])
        propagate_scope([bld, _make_permit('24 555555 DM 00', 'Demolition Folder (DM)')])
        assert bld.scope_tags == ['new:sfd']


class TestSiblingGroups:
    def test_contiguous_groups(self):
        permits = [
            _make_permit('24 101234 BLD 00'),
            _make_permit('24 101234 PLB 00'),
            _make_permit('24 202020 BLD 00'),
        ]
        groups = [(base, [p.permit_num for p in siblings])
                  for base, siblings in iter_sibling_groups(permits)]
        assert groups == [
            ('24 101234', ['24 101234 BLD 00', '24 101234 PLB 00']),
            ('24 202020', ['24 202020 BLD 00']),
        ]


def test_propagated_scope_to_dict():
    permits = [
        _make_permit('24 101234 BLD 00', 'New Houses', ['new:sfd'], 'new_build'),
        _make_permit('24 101234 PLB 00', 'Plumbing(PS)'),
    ]
    assert propagate_scope(permits)[0].to_dict() == {
        'permit_num': '24 101234 PLB 00',
        'revision_num': '00',
        'project_type': 'new_build',
        'scope_tags': ['new:sfd'],
        'source_permit_num': '24 101234 BLD 00',
        'scope_source': 'propagated',
    }
