from dataclasses import asdict, fields

import pytest

from chronicle.records import (
    GeneratedPoi, ItemDraft, LocationDraft, NpcDraft, NpcPlacement, PLACEMENT_NOT_FOUND, coerce,
    dump_generated_pois, load_generated_pois, npc_type_for_role,
)


class _Npc:
    location_id = 7
    poi_id = 9


def test_coerce_fills_every_field_with_text():
    draft = coerce(ItemDraft, {'name': 'Lantern of Whispers', 'value': 250, 'rarity': None,
                               'properties': ['glows'], 'made_up': 'ignored'})

    assert draft.name == 'Lantern of Whispers'
    assert draft.value == '250'
    assert draft.rarity == ''
    assert draft.properties == ''
    assert not hasattr(draft, 'made_up')
    assert set(asdict(draft)) == {f.name for f in fields(ItemDraft)}


def test_coerce_tolerates_non_objects():
    assert coerce(NpcDraft, None) == NpcDraft()
    assert coerce(NpcDraft, ['a', 'list']) == NpcDraft()


def test_coerce_renders_booleans_as_words():
    assert coerce(NpcDraft, {'notes': True}).notes == 'true'


def test_location_expansion_needs_pois_or_inhabitants():
    assert not LocationDraft(name='The Empty Moor').wants_expansion
    assert not LocationDraft(points_of_interest='   ').wants_expansion
    assert LocationDraft(inhabitants='goblins').wants_expansion
    assert LocationDraft(points_of_interest='A ruined tower').wants_expansion


def test_generated_pois_survive_the_hidden_field():
    pois = [GeneratedPoi.from_json({
        'name': 'The Burrow Inn', 'type': 'Inn',
        'npcs': [{'name': 'Pip Tealeaf', 'race': 'Halfling', 'role': 'Owner'}],
    })]

    loaded = load_generated_pois(dump_generated_pois(pois))

    assert loaded == pois
    assert loaded[0].npcs[0].role == 'Owner'


@pytest.mark.parametrize('text', ['', '   ', 'not json', '{"name": "x"}', '[1, 2]'])
def test_malformed_hidden_field_means_no_pois(text):
    assert load_generated_pois(text) == []


@pytest.mark.parametrize('role,npc_type', [
    ('Owner', 'Shopkeeper'),
    ('Shopkeeper', 'Shopkeeper'),
    ('Bartender', 'Bartender'),
    ('Guard', 'Guard'),
    ('Patron', 'Patron'),
    ('Resident', 'Other'),
    ('', 'Other'),
])
def test_role_maps_to_npc_type(role, npc_type):
    assert npc_type_for_role(role) == npc_type


def test_placement_from_form():
    assert NpcPlacement.from_form('', '') == NpcPlacement.unlinked()
    assert NpcPlacement.from_form('3', '') == NpcPlacement.at_location(3)
    assert NpcPlacement.from_form(' ', '5') == NpcPlacement.at_poi(5)

    with pytest.raises(ValueError):
        NpcPlacement.from_form('3', '5')


@pytest.mark.parametrize('location_id, poi_id', [('abc', ''), ('', '4x'), ('1.5', '')])
def test_placement_rejects_junk_ids(location_id, poi_id):
    with pytest.raises(ValueError) as excinfo:
        NpcPlacement.from_form(location_id, poi_id)
    assert str(excinfo.value) == PLACEMENT_NOT_FOUND


def test_placement_never_sets_both():
    npc = _Npc()

    NpcPlacement.at_poi(4).apply(npc)
    assert (npc.location_id, npc.poi_id) == (None, 4)

    NpcPlacement.at_location(2).apply(npc)
    assert (npc.location_id, npc.poi_id) == (2, None)

    NpcPlacement.unlinked().apply(npc)
    assert (npc.location_id, npc.poi_id) == (None, None)
