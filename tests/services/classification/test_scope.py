"""Tests for scope tag extraction and use-type classification."""
from dataclasses import replace

import pytest

from services.classification.models import USE_TYPES, Permit
from services.classification.reference import default_reference_tables
from services.classification.scope import (
    addition_tag,
    apply_dedup_rules,
    classify,
    classify_use_type,
    extract_general_tags,
    extract_new_house_tags,
    select_branch,
)


def _make_permit(**kwargs):
    return Permit(permit_num='21 100000 BLD 00', revision_num='00', **kwargs)


def _residential(description='', work=''):
    return _make_permit(
        permit_type='Small Residential Projects', work=work, description=description)


class TestBranchSelection:
    def test_small_residential(self):
        assert select_branch(_residential()) == 'residential'

    def test_new_house(self):
        assert select_branch(_make_permit(permit_type='New Houses')) == 'new_house'

    def test_building_additions_residential_structure(self):
        permit = _make_permit(permit_type='Building Additions/Alterations',
                              structure_type='SFD - Detached')
        assert select_branch(permit) == 'residential'

    def test_building_additions_commercial_structure(self):
        permit = _make_permit(permit_type='Building Additions/Alterations',
                              structure_type='Office')
        assert select_branch(permit) == 'general'

    def test_everything_else_general(self):
        assert select_branch(_make_permit(permit_type='Non-Residential Building Permit')) == 'general'
        assert select_branch(_make_permit(permit_type=None)) == 'general'


class TestResidentialTags:
    """Prefixed tags for Small Residential and residential Building Additions."""

    def test_rear_addition_from_work(self):
        result = classify(_residential('Proposal for a rear addition', work='Addition(s)'))
        assert 'new:1-storey-addition' in result.scope_tags
        assert result.project_type == 'addition'

    def test_feature_addition_is_not_structural(self):
        result = classify(_residential('addition of a new washroom', work='Interior Alterations'))
        assert not any(t.endswith('-storey-addition') for t in result.scope_tags)
        assert 'new:bathroom' in result.scope_tags

    @pytest.mark.parametrize('description,expected', [
        ('Construct a rear addition', 'new:1-storey-addition'),
        ('Construct a two storey rear addition', 'new:2-storey-addition'),
        ('2-storey addition at rear', 'new:2-storey-addition'),
        ('Proposed three storey addtion', 'new:3-storey-addition'),
        ('single storey addition', 'new:1-storey-addition'),
    ])
    def test_storey_addition(self, description, expected):
        assert expected in classify(_residential(description)).scope_tags

    def test_addition_tag_buckets(self):
        assert addition_tag(0) == 'new:1-storey-addition'
        assert addition_tag(1) == 'new:1-storey-addition'
        assert addition_tag(2) == 'new:2-storey-addition'
        assert addition_tag(5) == 'new:3-storey-addition'

    def test_blacklist_is_configurable(self):
        permit = _residential('addition of a pantry')
        assert 'new:1-storey-addition' in classify(permit).scope_tags

        tables = replace(default_reference_tables(),
                         addition_feature_blacklist=('washroom', 'pantry'))
        assert 'new:1-storey-addition' not in classify(permit, tables).scope_tags

    def test_repair_wording_gives_alter(self):
        tags = classify(_residential('Repair existing deck boards')).scope_tags
        assert 'alter:deck' in tags
        assert 'new:deck' not in tags

    def test_new_wording_overrides_repair(self):
        tags = classify(_residential('Replace deck with new deck')).scope_tags
        assert 'new:deck' in tags
        assert 'alter:deck' not in tags

    def test_work_value_feature(self):
        assert 'new:deck' in classify(_residential(work='Deck')).scope_tags

    def test_keyword_tags(self):
        tags = classify(_residential(
            'Interior renovation with new kitchen, ensuite and laundry room')).scope_tags
        assert {'new:kitchen', 'new:bathroom', 'new:laundry',
                'alter:interior-alterations'} <= set(tags)

    def test_work_value_matches_exactly(self):
        assert 'new:second-suite' in classify(_residential(work='Second Suite (New)')).scope_tags
        assert 'new:second-suite' not in classify(_residential(work='second suite (new)')).scope_tags

    def test_party_wall_has_no_scope_tags(self):
        result = classify(_residential('rear addition', work='Party Wall Admin Permits'))
        assert result.scope_tags == ['residential']

    def test_residential_building_additions(self):
        permit = _make_permit(permit_type='Building Additions/Alterations',
                              structure_type='SFD - Detached', description='rear addition')
        assert 'new:1-storey-addition' in classify(permit).scope_tags

    def test_commercial_building_additions_use_general_tags(self):
        permit = _make_permit(permit_type='Building Additions/Alterations',
                              structure_type='Office', description='rear addition')
        tags = classify(permit).scope_tags
        assert 'rear-addition' in tags
        assert 'new:1-storey-addition' not in tags

    def test_tags_are_prefixed(self):
        tags = classify(_residential(
            'Rear addition, repair porch, new basement walkout and kitchen')).scope_tags
        for tag in tags:
            assert tag in USE_TYPES or tag == 'demolition' or ':' in tag


class TestDedupRules:
    def test_underpinning_removes_basement(self):
        tags = classify(_residential('Basement underpinning for existing dwelling')).scope_tags
        assert 'new:underpinning' in tags
        assert 'new:basement' not in tags

    def test_second_suite_removes_basement(self):
        tags = classify(_residential('Finish basement with second suite')).scope_tags
        assert 'new:second-suite' in tags
        assert 'new:basement' not in tags

    def test_second_suite_removes_interior_alterations(self):
        tags = classify(_residential('Interior alterations to create second suite')).scope_tags
        assert 'new:second-suite' in tags
        assert 'alter:interior-alterations' not in tags

    def test_garage_removes_accessory_building(self):
        tags = classify(_residential('Construct detached garage and shed')).scope_tags
        assert 'new:garage' in tags
        assert 'new:accessory-building' not in tags

    def test_pool_removes_accessory_building(self):
        tags = classify(_residential('Pool with cabana')).scope_tags
        assert 'new:pool' in tags
        assert 'new:accessory-building' not in tags

    def test_second_suite_removes_unit_conversion(self):
        tags = classify(_residential('Convert basement to second unit')).scope_tags
        assert 'new:second-suite' in tags
        assert 'alter:unit-conversion' not in tags
        assert 'new:basement' not in tags

    def test_dedup_without_trigger_keeps_tags(self):
        assert apply_dedup_rules({'new:basement', 'new:kitchen'}) == {'new:basement', 'new:kitchen'}


class TestNewHouseTags:
    def _new_house(self, **kwargs):
        return _make_permit(permit_type='New Houses', **kwargs)

    @pytest.mark.parametrize('kwargs,expected', [
        ({'proposed_use': 'Houseplex (4 Units)'}, 'new:houseplex-4-unit'),
        ({'proposed_use': 'Houseplex (9 Units)'}, 'new:houseplex-6-unit'),
        ({'proposed_use': 'Houseplex'}, 'new:houseplex-3-unit'),
        ({'structure_type': '3+ Unit', 'housing_units': 5}, 'new:houseplex-5-unit'),
        ({'description': 'New houseplex', 'housing_units': 4}, 'new:houseplex-4-unit'),
        ({'structure_type': 'Stacked Townhouse'}, 'new:stacked-townhouse'),
        ({'structure_type': 'Row House'}, 'new:townhouse'),
        ({'structure_type': 'Semi-Detached'}, 'new:semi-detached'),
        ({}, 'new:sfd'),
    ])
    def test_building_type(self, kwargs, expected):
        assert expected in extract_new_house_tags(self._new_house(**kwargs))

    def test_exactly_one_building_type(self):
        building_types = ('new:sfd', 'new:semi-detached', 'new:townhouse',
                          'new:stacked-townhouse')
        tags = extract_new_house_tags(self._new_house(
            structure_type='Semi-Detached', description='with detached garage'))
        found = [t for t in tags if t in building_types or t.startswith('new:houseplex-')]
        assert found == ['new:semi-detached']

    def test_features(self):
        tags = classify(self._new_house(
            description='New SFD with attached garage, rear deck and finished basement')).scope_tags
        assert {'new:sfd', 'new:garage', 'new:deck', 'new:finished-basement',
                'residential'} <= set(tags)

    def test_project_type(self):
        assert classify(self._new_house()).project_type == 'new_build'

    @pytest.mark.parametrize('kwargs,expected', [
        ({}, 'new:sfd'),
        ({'structure_type': '3+ Unit'}, 'new:houseplex-3-unit'),
        ({'proposed_use': 'Houseplex'}, 'new:houseplex-3-unit'),
        ({'description': 'New houseplex'}, 'new:sfd'),
    ])
    def test_missing_housing_units(self, kwargs, expected):
        # NULL housing_units from the database
        permit = self._new_house(housing_units=None, **kwargs)
        assert expected in extract_new_house_tags(permit)
        assert expected in classify(permit).scope_tags


class TestGeneralTags:
    def test_commercial_interior(self):
        permit = _make_permit(
            permit_type='Non-Residential Building Permit',
            description='Interior alterations to 2nd floor office; new sprinkler and fire alarm',
            storeys=12,
        )
        tags = classify(permit).scope_tags
        assert {'2nd-floor', 'office', 'sprinkler', 'fire-alarm', 'high-rise',
                'commercial'} <= set(tags)

    @pytest.mark.parametrize('storeys,expected', [
        (12, ['high-rise']),
        (6, ['mid-rise']),
        (3, ['low-rise']),
        (1, []),
    ])
    def test_scale_tags(self, storeys, expected):
        tags = extract_general_tags(_make_permit(storeys=storeys))
        assert [t for t in tags if t.endswith('-rise')] == expected

    def test_unprefixed(self):
        tags = extract_general_tags(_make_permit(
            description='Retail fit-out with new washroom, elevator and storage racking'))
        assert tags
        assert all(':' not in t for t in tags)

    def test_each_tag_once(self):
        tags = extract_general_tags(_make_permit(description='bath and washroom'))
        assert tags.count('bathroom') == 1

    def test_fields_other_than_description_are_scanned(self):
        tags = extract_general_tags(_make_permit(proposed_use='Restaurant'))
        assert 'restaurant' in tags


class TestUniversalTags:
    def test_demolition_folder_once(self):
        permit = _make_permit(permit_type='Demolition Folder (DM)',
                              description='Demolish existing SFD')
        result = classify(permit)
        assert result.scope_tags.count('demolition') == 1
        assert result.project_type == 'demolition'

    def test_demolition_project_type_adds_tag(self):
        result = classify(_residential(work='Demolition'))
        assert 'demolition' in result.scope_tags

    def test_exactly_one_use_type(self):
        permits = [
            _residential('rear addition'),
            _make_permit(permit_type='Non-Residential Building Permit'),
            _make_permit(structure_type='SFD', proposed_use='Retail'),
            _make_permit(),
        ]
        for permit in permits:
            tags = classify(permit).scope_tags
            assert len([t for t in tags if t in USE_TYPES]) == 1

    def test_sorted_and_unique(self):
        result = classify(_residential(
            'Rear addition with kitchen, bathroom, deck, garage and basement walkout'))
        assert result.scope_tags == sorted(set(result.scope_tags))

    def test_deterministic(self):
        permit = _residential('Repair porch and build new deck')
        assert classify(permit) == classify(permit)

    def test_empty_permit(self):
        result = classify(_make_permit())
        assert result.project_type == 'other'
        assert result.scope_tags == ['commercial']


class TestUseType:
    @pytest.mark.parametrize('kwargs,expected', [
        ({'permit_type': 'Small Residential Projects'}, 'residential'),
        ({'permit_type': 'New Houses'}, 'residential'),
        ({'proposed_use': 'Apartment Building'}, 'residential'),
        ({'structure_type': 'Townhouse'}, 'residential'),
        ({'permit_type': 'Non-Residential Building Permit'}, 'commercial'),
        ({'proposed_use': 'Warehouse'}, 'commercial'),
        ({'structure_type': 'SFD', 'proposed_use': 'Retail'}, 'mixed-use'),
        ({}, 'commercial'),
    ])
    def test_classify_use_type(self, kwargs, expected):
        assert classify_use_type(_make_permit(**kwargs)) == expected


def test_scope_result_to_dict():
    result = classify(_residential('Repair existing deck boards'))
    assert result.to_dict() == {
        'project_type': 'repair',
        'scope_tags': ['alter:deck', 'residential'],
    }
