"""
Field lists for the world-entity forms, and the helpers that copy a submitted
form onto a model. Templates render the same lists, so adding a column means
adding one tuple here.

Each field is (name, label, widget). Widgets: text, textarea, int, bool, url.
"""

from flask import request
from flask_login import current_user

from chronicle.models import Campaign

NPC_FIELDS = [
    ('name', 'Name', 'text'),
    ('npc_type', 'Type', 'text'),
    ('race', 'Race', 'text'),
    ('class_or_occupation', 'Class / Occupation', 'text'),
    ('level', 'Level', 'int'),
    ('alignment', 'Alignment', 'text'),
    ('faction', 'Faction', 'text'),
    ('status', 'Status', 'text'),
    ('armor_class', 'Armor Class', 'int'),
    ('hit_points', 'Hit Points', 'text'),
    ('speed', 'Speed', 'text'),
    ('challenge_rating', 'Challenge Rating', 'text'),
    ('skills', 'Skills', 'textarea'),
    ('languages', 'Languages', 'textarea'),
    ('abilities', 'Abilities', 'textarea'),
    ('appearance', 'Appearance', 'textarea'),
    ('personality', 'Personality', 'textarea'),
    ('voice_mannerisms', 'Voice & Mannerisms', 'textarea'),
    ('description', 'Description', 'textarea'),
    ('backstory', 'Backstory', 'textarea'),
    ('goals', 'Goals', 'textarea'),
    ('secrets', 'Secrets', 'textarea'),
    ('location', 'Where to find them', 'text'),
    ('relationship', 'Relationship to the party', 'text'),
    ('notes', 'Notes', 'textarea'),
    ('image_url', 'Image URL', 'url'),
]

ABILITY_KEYS = ['str', 'dex', 'con', 'int', 'wis', 'cha']

LOCATION_FIELDS = [
    ('name', 'Name', 'text'),
    ('type', 'Type', 'text'),
    ('region', 'Region', 'text'),
    ('climate', 'Climate', 'text'),
    ('population', 'Population', 'textarea'),
    ('size', 'Size', 'text'),
    ('government', 'Government', 'textarea'),
    ('economy', 'Economy', 'textarea'),
    ('defenses', 'Defenses', 'textarea'),
    ('description', 'Description', 'textarea'),
    ('atmosphere', 'Atmosphere', 'textarea'),
    ('history', 'History', 'textarea'),
    ('inhabitants', 'Inhabitants', 'textarea'),
    ('points_of_interest', 'Points of Interest', 'textarea'),
    ('dangers', 'Dangers', 'textarea'),
    ('hooks', 'Adventure Hooks', 'textarea'),
    ('secrets', 'Secrets', 'textarea'),
    ('notes', 'Notes', 'textarea'),
    ('image_url', 'Image URL', 'url'),
    ('map_url', 'Map URL', 'url'),
]

POI_FIELDS = [
    ('name', 'Name', 'text'),
    ('type', 'Type', 'text'),
    ('description', 'Description', 'textarea'),
    ('services', 'Services', 'textarea'),
    ('notes', 'Notes', 'textarea'),
    ('image_url', 'Image URL', 'url'),
]

ITEM_FIELDS = [
    ('name', 'Name', 'text'),
    ('type', 'Type', 'text'),
    ('rarity', 'Rarity', 'text'),
    ('value', 'Value', 'text'),
    ('weight', 'Weight', 'text'),
    ('attunement', 'Requires attunement', 'bool'),
    ('requires_attunement_by', 'Attunement by', 'text'),
    ('charges', 'Charges', 'int'),
    ('cursed', 'Cursed', 'bool'),
    ('damage', 'Damage', 'text'),
    ('damage_type', 'Damage Type', 'text'),
    ('armor_class_bonus', 'AC Bonus', 'int'),
    ('description', 'Description', 'textarea'),
    ('properties', 'Properties', 'textarea'),
    ('history', 'History', 'textarea'),
    ('lore', 'Lore', 'textarea'),
    ('notes', 'Notes', 'textarea'),
    ('image_url', 'Image URL', 'url'),
]

NPC_TYPE_CHOICES = ['Ally', 'Enemy', 'Boss', 'Shopkeeper', 'Innkeeper', 'Bartender', 'Quest Giver',
                    'Guard', 'Merchant', 'Noble', 'Commoner', 'Patron', 'Contact', 'Informant',
                    'Neutral', 'Other']
NPC_STATUS_CHOICES = ['alive', 'dead', 'unknown', 'missing']
ITEM_RARITY_CHOICES = ['Common', 'Uncommon', 'Rare', 'Very Rare', 'Legendary', 'Artifact']
LOCATION_SIZE_CHOICES = ['Thorp', 'Hamlet', 'Village', 'Small Town', 'Large Town',
                         'Small City', 'Large City', 'Metropolis']


def form_text(name):
    value = request.form.get(name, '').strip()
    return value or None


def form_int(name):
    value = request.form.get(name, '').strip()
    try:
        return int(value) if value else None
    except ValueError:
        return None


def form_ids(name):
    """All integer ids from a multi-select, ignoring blanks and junk."""
    ids = []
    for raw in request.form.getlist(name):
        try:
            ids.append(int(raw))
        except (TypeError, ValueError):
            continue
    return ids


def apply_form(obj, field_specs, skip=()):
    """Copy submitted values for field_specs onto obj. Blank text becomes None."""
    for name, _label, widget in field_specs:
        if name in skip:
            continue
        if widget == 'int':
            setattr(obj, name, form_int(name))
        elif widget == 'bool':
            setattr(obj, name, name in request.form)
        else:
            setattr(obj, name, form_text(name))


def form_ability_scores():
    scores = {}
    for key in ABILITY_KEYS:
        value = form_int(f'ability_{key}')
        if value is not None:
            scores[key] = value
    return scores or None


def form_campaign_id():
    """The selected campaign id, only if it belongs to the current user."""
    campaign_id = form_int('campaign_id')
    if campaign_id is None:
        return None
    campaign = Campaign.query.filter_by(id=campaign_id, user_id=current_user.id).first()
    return campaign.id if campaign else None


def user_campaigns():
    return Campaign.query.filter_by(user_id=current_user.id).order_by(Campaign.name).all()
