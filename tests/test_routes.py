import io

import pytest

from chronicle import db
from chronicle.models import Campaign, Item, Location, NPC, Note, NpcPoi, POI, User
from chronicle.records import GeneratedNpc, GeneratedPoi, dump_generated_pois


@pytest.mark.parametrize('path', ['/', '/campaigns/', '/locations/new', '/npcs/', '/settings/'])
def test_pages_require_login(client, path):
    response = client.get(path)

    assert response.status_code == 302
    assert '/login' in response.headers['Location']


def test_signup_logs_the_user_in(app, client):
    response = client.post('/signup', data={
        'name': 'Mira', 'email': 'Mira@Example.com',
        'password': 'correct horse battery', 'confirm_password': 'correct horse battery',
    })

    assert response.status_code == 302
    assert response.headers['Location'].endswith('/')
    with app.app_context():
        user = User.query.filter_by(email='mira@example.com').one()
        assert user.subscription_tier == 'free'
        assert user.check_password('correct horse battery')


def test_signup_rejects_mismatched_passwords(app, client):
    response = client.post('/signup', data={
        'name': 'Mira', 'email': 'mira@example.com',
        'password': 'correct horse battery', 'confirm_password': 'something else',
    })

    assert response.status_code == 200
    assert b'Passwords do not match' in response.data
    with app.app_context():
        assert User.query.count() == 0


def test_login_with_email(client, user_id):
    bad = client.post('/login', data={'email': 'mira@example.com', 'password': 'wrong'})
    assert b'Invalid email or password' in bad.data

    good = client.post('/login?next=/campaigns/', data={'email': 'MIRA@example.com',
                                                        'password': 'correct horse battery'})
    assert good.status_code == 302
    assert good.headers['Location'] == '/campaigns/'


def test_login_ignores_offsite_next(client, user_id):
    response = client.post('/login?next=//evil.example', data={'email': 'mira@example.com',
                                                               'password': 'correct horse battery'})

    assert response.headers['Location'] == '/'


def test_dashboard_renders(logged_in, campaign_id):
    response = logged_in.get('/')

    assert response.status_code == 200
    assert b'Welcome back, Mira' in response.data
    assert b'Curse of the Hollow' in response.data


def test_campaign_lifecycle(app, logged_in):
    response = logged_in.post('/campaigns/new', data={
        'name': 'Curse of the Hollow', 'dm_name': 'Mira', 'player_names': 'Ash\n\nBryn \n',
    })
    assert response.status_code == 302

    with app.app_context():
        campaign = Campaign.query.one()
        assert campaign.player_names == ['Ash', 'Bryn']
        campaign_id = campaign.id

    assert logged_in.get(f'/campaigns/{campaign_id}').status_code == 200

    logged_in.post(f'/campaigns/{campaign_id}/edit', data={'name': 'Curse of the Hollow II',
                                                          'dm_name': 'Mira'})
    with app.app_context():
        assert db.session.get(Campaign, campaign_id).name == 'Curse of the Hollow II'

    logged_in.post(f'/campaigns/{campaign_id}/delete')
    with app.app_context():
        assert Campaign.query.count() == 0


def test_campaign_requires_dm_name(app, logged_in):
    response = logged_in.post('/campaigns/new', data={'name': 'Nameless DM'})

    assert b'DM name is required' in response.data
    with app.app_context():
        assert Campaign.query.count() == 0


def test_location_form_renders(logged_in):
    response = logged_in.get('/locations/new')

    assert response.status_code == 200
    assert b'generated_pois_json' in response.data


def test_location_create_with_generated_pois(app, logged_in, campaign_id):
    generated = dump_generated_pois([
        GeneratedPoi(name='The Burrow Inn', type='Inn',
                     npcs=[GeneratedNpc(name='Pip Tealeaf', race='Halfling', role='Owner')]),
        GeneratedPoi(name='Mossy Shrine', type='Temple'),
    ])

    response = logged_in.post('/locations/new', data={
        'name': 'Thornwood Hollow', 'type': 'Village', 'size': 'Hamlet',
        'inhabitants': 'a small village of mostly halflings and a few gnomes',
        'campaign_id': str(campaign_id), 'generated_pois_json': generated,
    })

    assert response.status_code == 302
    assert response.headers['Location'].endswith('/locations/')
    with app.app_context():
        location = Location.query.one()
        assert location.campaign_id == campaign_id
        assert sorted(p.name for p in location.pois) == ['Mossy Shrine', 'The Burrow Inn']
        assert all(p.campaign_id == campaign_id for p in location.pois)
        pip = NPC.query.filter_by(name='Pip Tealeaf').one()
        assert pip.poi.location_id == location.id


def test_location_create_requires_name(app, logged_in):
    response = logged_in.post('/locations/new', data={'name': ' ', 'generated_pois_json': 'garbage'})

    assert response.status_code == 200
    assert b'Location name is required' in response.data
    with app.app_context():
        assert Location.query.count() == 0


def test_location_detail_and_delete(app, logged_in, user_id):
    with app.app_context():
        location = Location(user_id=user_id, name='Thornwood Hollow', description='Round doors.')
        db.session.add(location)
        db.session.flush()
        db.session.add(POI(user_id=user_id, location_id=location.id, name='The Burrow Inn'))
        db.session.commit()
        location_id = location.id

    page = logged_in.get(f'/locations/{location_id}')
    assert page.status_code == 200
    assert b'The Burrow Inn' in page.data

    logged_in.post(f'/locations/{location_id}/delete')
    with app.app_context():
        assert Location.query.count() == 0
        assert POI.query.count() == 0


def _world(app, user_id):
    with app.app_context():
        location = Location(user_id=user_id, name='Thornwood Hollow')
        db.session.add(location)
        db.session.flush()
        poi = POI(user_id=user_id, location_id=location.id, name='The Burrow Inn')
        npc = NPC(user_id=user_id, name='Pip Tealeaf')
        db.session.add_all([poi, npc])
        db.session.commit()
        return location.id, poi.id, npc.id


def test_poi_create_links_npcs(app, logged_in, user_id):
    location_id, _, npc_id = _world(app, user_id)

    response = logged_in.post('/pois/new', data={
        'name': 'Mossy Shrine', 'location_id': str(location_id),
        'npc_ids': [str(npc_id)], 'role': 'Resident',
    })

    assert response.status_code == 302
    with app.app_context():
        poi = POI.query.filter_by(name='Mossy Shrine').one()
        assert [(link.npc_id, link.role) for link in poi.npc_links] == [(npc_id, 'Resident')]

    page = logged_in.get(response.headers['Location'])
    assert b'Pip Tealeaf' in page.data


def test_poi_create_requires_a_location(app, logged_in, user_id):
    response = logged_in.post('/pois/new', data={'name': 'Floating Shop'})

    assert b'POI name and location are required' in response.data


def test_poi_edit_keeps_location_and_resets_links(app, logged_in, user_id):
    location_id, poi_id, npc_id = _world(app, user_id)
    with app.app_context():
        db.session.add(NpcPoi(npc_id=npc_id, poi_id=poi_id, role='Owner'))
        db.session.commit()

    logged_in.post(f'/pois/{poi_id}/edit', data={'name': 'The Burrow Inn', 'location_id': '999'})

    with app.app_context():
        poi = db.session.get(POI, poi_id)
        assert poi.location_id == location_id
        assert poi.npc_links == []


def test_npc_placement_rules(app, logged_in, user_id):
    location_id, poi_id, _ = _world(app, user_id)

    both = logged_in.post('/npcs/new', data={'name': 'Confused', 'location_id': str(location_id),
                                             'poi_id': str(poi_id)})
    assert b'not both' in both.data

    at_poi = logged_in.post('/npcs/new', data={'name': 'Barkeep', 'poi_id': str(poi_id),
                                               'ability_str': '14', 'ability_dex': ''})
    assert at_poi.status_code == 302

    with app.app_context():
        assert NPC.query.filter_by(name='Confused').count() == 0
        barkeep = NPC.query.filter_by(name='Barkeep').one()
        assert (barkeep.location_id, barkeep.poi_id) == (None, poi_id)
        assert barkeep.ability_scores == {'str': 14}
        assert barkeep.status == 'alive'


def test_npc_with_junk_placement_id_is_rejected(app, logged_in):
    response = logged_in.post('/npcs/new', data={'name': 'Pip', 'location_id': 'abc'})

    assert response.status_code == 200
    assert b'was not found' in response.data
    assert b'invalid literal' not in response.data
    with app.app_context():
        assert NPC.query.count() == 0


def test_npc_detail_and_form_render(app, logged_in, user_id):
    _, _, npc_id = _world(app, user_id)

    assert logged_in.get(f'/npcs/{npc_id}').status_code == 200
    assert logged_in.get(f'/npcs/{npc_id}/edit').status_code == 200
    assert logged_in.get('/npcs/new').status_code == 200


def test_npc_image_upload(app, logged_in, storage):
    response = logged_in.post('/npcs/new', data={
        'name': 'Portrait Sitter',
        'image_file': (io.BytesIO(b'\x89PNG fake'), 'portrait.png'),
    }, content_type='multipart/form-data')

    assert response.status_code == 302
    with app.app_context():
        npc = NPC.query.one()
        assert npc.image_url.startswith('https://storage.test/images/uploads/')
        assert npc.image_url.endswith('.png')


def test_item_lifecycle(app, logged_in):
    logged_in.post('/items/new', data={'name': 'Lantern of Whispers', 'rarity': 'Rare',
                                       'attunement': 'on', 'charges': '3'})

    with app.app_context():
        item = Item.query.one()
        assert item.attunement is True
        assert item.cursed is False
        assert item.charges == 3
        item_id = item.id

    listing = logged_in.get('/items/?rarity=Rare')
    assert b'Lantern of Whispers' in listing.data
    assert logged_in.get(f'/items/{item_id}').status_code == 200

    logged_in.post(f'/items/{item_id}/delete')
    with app.app_context():
        assert Item.query.count() == 0


def test_notes_and_lorebook(app, logged_in):
    logged_in.post('/notes/new', data={'title': 'The Hollow King', 'content': '**Crowned** in ash.',
                                       'tags': 'Lore, Villains', 'is_lorebook': 'on'},
                   follow_redirects=True)
    logged_in.post('/notes/new', data={'title': 'Shopping list', 'tags': 'misc'}, follow_redirects=True)

    with app.app_context():
        lore = Note.query.filter_by(title='The Hollow King').one()
        assert lore.tags == ['lore', 'villains']
        lore_id = lore.id

    lorebook = logged_in.get('/notes/lorebook')
    assert b'<strong>The Hollow King</strong>' in lorebook.data
    assert b'<strong>Shopping list</strong>' not in lorebook.data

    tagged = logged_in.get('/notes/?tag=misc')
    assert b'<strong>Shopping list</strong>' in tagged.data
    assert b'<strong>The Hollow King</strong>' not in tagged.data

    detail = logged_in.get(f'/notes/{lore_id}')
    assert b'<strong>Crowned</strong>' in detail.data


def test_settings_show_usage(app, logged_in, user_id):
    response = logged_in.get('/settings/')

    assert response.status_code == 200
    assert b'Sessions recorded' in response.data

    logged_in.post('/settings/', data={'name': 'Mira the Bold'})
    with app.app_context():
        assert db.session.get(User, user_id).name == 'Mira the Bold'
