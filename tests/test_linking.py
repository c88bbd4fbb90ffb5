import pytest

from chronicle import db
from chronicle.linking import (
    create_location, delete_campaign, delete_location, delete_npc, delete_poi,
    link_npcs_to_poi, poi_npc_count, set_poi_npcs,
)
from chronicle.models import Campaign, Location, NPC, NpcPoi, POI, Session
from chronicle.records import GeneratedNpc, GeneratedPoi

INHABITANTS = 'a small village of mostly halflings and a few gnomes'


def _location(user_id, name='Thornwood Hollow'):
    location = Location(user_id=user_id, name=name)
    db.session.add(location)
    db.session.flush()
    return location


def _poi(user_id, location, name='The Burrow Inn'):
    poi = POI(user_id=user_id, location_id=location.id, name=name)
    db.session.add(poi)
    db.session.flush()
    return poi


def _npc(user_id, name='Pip Tealeaf', **kwargs):
    npc = NPC(user_id=user_id, name=name, **kwargs)
    db.session.add(npc)
    db.session.flush()
    return npc


def test_location_with_generated_pois_and_npcs(ctx, user_id):
    pois = [
        GeneratedPoi(name='The Burrow Inn', type='Inn', services='Rooms, stew',
                     npcs=[GeneratedNpc(name='Pip Tealeaf', race='Halfling', role='Owner'),
                           GeneratedNpc(name='Fennick', race='Gnome', role='Patron')]),
        GeneratedPoi(name='Mossy Shrine', type='Temple'),
    ]

    report = create_location(user_id, {'name': 'Thornwood Hollow', 'type': 'Village',
                                       'inhabitants': INHABITANTS, 'region': '  '},
                             generated_pois=pois)

    location = report.location
    assert location.id is not None
    assert location.inhabitants == INHABITANTS
    assert location.region is None
    assert [p.name for p in report.pois_created] == ['The Burrow Inn', 'Mossy Shrine']
    assert report.links_created == 2
    assert report.failures == []

    pip = NPC.query.filter_by(name='Pip Tealeaf').one()
    assert pip.npc_type == 'Shopkeeper'
    assert pip.poi.name == 'The Burrow Inn'
    assert pip.location_id is None
    assert pip.location == 'The Burrow Inn in Thornwood Hollow'
    assert NpcPoi.query.filter_by(npc_id=pip.id).one().role == 'Owner'


def test_failed_poi_insert_does_not_stop_the_others(ctx, user_id):
    # The middle POI has no name, so the NOT NULL constraint rejects it
    pois = [
        GeneratedPoi(name='The Burrow Inn', type='Inn',
                     npcs=[GeneratedNpc(name='Pip Tealeaf', race='Halfling', role='Bartender')]),
        GeneratedPoi(name='', type='Shop', npcs=[GeneratedNpc(name='Lost Soul')]),
        GeneratedPoi(name='Mossy Shrine', type='Temple'),
    ]

    report = create_location(user_id, {'name': 'Thornwood Hollow'}, generated_pois=pois)
    location_id = report.location.id
    db.session.remove()

    assert db.session.get(Location, location_id).name == 'Thornwood Hollow'
    names = sorted(p.name for p in POI.query.filter_by(location_id=location_id))
    assert names == ['Mossy Shrine', 'The Burrow Inn']
    assert len(report.failures) == 1
    assert NPC.query.filter_by(name='Lost Soul').count() == 0
    assert NpcPoi.query.count() == 1


def test_failed_npc_insert_keeps_its_poi(ctx, user_id):
    pois = [GeneratedPoi(name='The Burrow Inn', npcs=[GeneratedNpc(name=''),
                                                      GeneratedNpc(name='Pip Tealeaf')])]

    report = create_location(user_id, {'name': 'Thornwood Hollow'}, generated_pois=pois)

    assert [p.name for p in report.pois_created] == ['The Burrow Inn']
    assert [n.name for n in report.npcs_created] == ['Pip Tealeaf']
    assert report.partial


def test_location_insert_failure_raises(ctx, user_id):
    from chronicle.linking import PersistenceError

    with pytest.raises(PersistenceError):
        create_location(user_id, {'name': ''})

    assert Location.query.count() == 0


def test_manual_links_move_npcs_and_pois(ctx, user_id):
    old = _location(user_id, 'Old Town')
    tavern = _poi(user_id, old, 'The Leaky Cask')
    wanderer = _npc(user_id, 'Wanderer', poi_id=tavern.id)
    db.session.commit()

    report = create_location(user_id, {'name': 'New Town'}, npc_ids=[wanderer.id, 9999],
                             poi_ids=[tavern.id])

    assert report.npcs_linked == 1
    assert report.pois_linked == 1
    assert len(report.failures) == 1
    assert wanderer.location_id == report.location.id
    assert wanderer.poi_id is None
    assert wanderer.location == 'New Town'
    assert tavern.location_id == report.location.id


def test_manual_links_ignore_other_users(ctx, user_id):
    from chronicle.models import User

    other = User(name='Rook', email='rook@example.com', subscription_tier='free')
    other.set_password('another password')
    db.session.add(other)
    db.session.flush()
    theirs = _npc(other.id, 'Not Yours')
    db.session.commit()

    report = create_location(user_id, {'name': 'New Town'}, npc_ids=[theirs.id])

    assert report.npcs_linked == 0
    assert theirs.location_id is None


def test_deleting_an_npc_decrements_the_poi_count(ctx, user_id):
    location = _location(user_id)
    poi = _poi(user_id, location)
    pip = _npc(user_id, 'Pip Tealeaf')
    fennick = _npc(user_id, 'Fennick')
    link_npcs_to_poi(poi, [pip.id, fennick.id], 'Patron')
    db.session.commit()
    assert poi_npc_count(poi) == 2

    delete_npc(pip)

    assert poi_npc_count(poi) == 1
    assert NpcPoi.query.filter_by(npc_id=fennick.id).count() == 1


def test_link_npcs_skips_duplicates_and_strangers(ctx, user_id):
    location = _location(user_id)
    poi = _poi(user_id, location)
    pip = _npc(user_id)

    assert link_npcs_to_poi(poi, [pip.id, pip.id, 12345], 'Owner') == 1
    db.session.commit()
    assert link_npcs_to_poi(poi, [pip.id]) == 0


def test_set_poi_npcs_replaces_the_selection(ctx, user_id):
    location = _location(user_id)
    poi = _poi(user_id, location)
    pip = _npc(user_id, 'Pip Tealeaf')
    fennick = _npc(user_id, 'Fennick')
    link_npcs_to_poi(poi, [pip.id], 'Owner')
    db.session.commit()

    set_poi_npcs(poi, [fennick.id], 'Patron')
    db.session.commit()

    links = NpcPoi.query.filter_by(poi_id=poi.id).all()
    assert [(link.npc_id, link.role) for link in links] == [(fennick.id, 'Patron')]


def test_deleting_a_poi_unplaces_its_residents(ctx, user_id):
    location = _location(user_id)
    poi = _poi(user_id, location)
    resident = _npc(user_id, 'Resident', poi_id=poi.id)
    link_npcs_to_poi(poi, [resident.id])
    db.session.commit()

    delete_poi(poi)

    assert resident.poi_id is None
    assert NpcPoi.query.count() == 0
    assert db.session.get(NPC, resident.id) is not None


def test_deleting_a_location_removes_pois_and_keeps_npcs(ctx, user_id):
    location = _location(user_id)
    poi = _poi(user_id, location)
    at_location = _npc(user_id, 'Mayor', location_id=location.id)
    at_poi = _npc(user_id, 'Cook', poi_id=poi.id)
    db.session.commit()

    delete_location(location)

    assert POI.query.count() == 0
    assert at_location.location_id is None
    assert at_poi.poi_id is None
    assert NPC.query.count() == 2


def test_deleting_a_campaign_detaches_the_world(ctx, user_id, campaign_id):
    location = Location(user_id=user_id, name='Thornwood Hollow', campaign_id=campaign_id)
    npc = NPC(user_id=user_id, name='Pip Tealeaf', campaign_id=campaign_id)
    session = Session(campaign_id=campaign_id, title='Session Zero', session_number=1)
    db.session.add_all([location, npc, session])
    db.session.commit()
    location_id, npc_id = location.id, npc.id

    delete_campaign(db.session.get(Campaign, campaign_id))
    db.session.remove()

    assert Session.query.count() == 0
    assert db.session.get(Location, location_id).campaign_id is None
    assert db.session.get(NPC, npc_id).campaign_id is None
