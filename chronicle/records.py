"""
chronicle/records.py - Typed records for AI output and form state

The model's JSON is untrusted and loosely shaped. Everything that flows from
a completion into a form goes through coerce(), which turns every known field
into a string ('' when missing, None, or not a scalar) and drops unknown keys.
"""

import json
import logging
from dataclasses import dataclass, field, fields, asdict

logger = logging.getLogger(__name__)


def _as_text(value):
    if value is None:
        return ''
    if isinstance(value, bool):
        return 'true' if value else 'false'
    if isinstance(value, (str, int, float)):
        return str(value)
    return ''


def coerce(record_cls, data):
    """Build a record_cls instance from an arbitrary JSON value.

    Every declared string field becomes text; nested list fields
    (GeneratedPoi.npcs) are coerced element by element.
    """
    if not isinstance(data, dict):
        data = {}
    kwargs = {}
    for f in fields(record_cls):
        nested = f.metadata.get('items')
        if nested:
            raw = data.get(f.name)
            kwargs[f.name] = [coerce(nested, item) for item in raw if isinstance(item, dict)] \
                if isinstance(raw, list) else []
        else:
            kwargs[f.name] = _as_text(data.get(f.name))
    return record_cls(**kwargs)


@dataclass
class LocationDraft:
    name: str = ''
    type: str = ''
    region: str = ''
    climate: str = ''
    population: str = ''
    size: str = ''
    government: str = ''
    economy: str = ''
    defenses: str = ''
    description: str = ''
    atmosphere: str = ''
    history: str = ''
    inhabitants: str = ''
    points_of_interest: str = ''
    notable_npcs: str = ''
    dangers: str = ''
    hooks: str = ''
    secrets: str = ''
    notes: str = ''

    @property
    def wants_expansion(self):
        return bool(self.points_of_interest.strip() or self.inhabitants.strip())


@dataclass
class NpcDraft:
    name: str = ''
    race: str = ''
    npc_type: str = ''
    class_or_occupation: str = ''
    description: str = ''
    personality: str = ''
    appearance: str = ''
    location: str = ''
    relationship: str = ''
    notes: str = ''


@dataclass
class ItemDraft:
    name: str = ''
    type: str = ''
    rarity: str = ''
    description: str = ''
    properties: str = ''
    value: str = ''
    notes: str = ''


@dataclass
class PoiDraft:
    name: str = ''
    type: str = ''
    description: str = ''


@dataclass
class GeneratedNpc:
    name: str = ''
    race: str = ''
    class_or_occupation: str = ''
    role: str = ''
    description: str = ''
    personality: str = ''
    appearance: str = ''


@dataclass
class GeneratedPoi:
    """A POI from location expansion, held in the form until the location is saved."""
    name: str = ''
    type: str = ''
    description: str = ''
    services: str = ''
    npcs: list = field(default_factory=list, metadata={'items': GeneratedNpc})

    @classmethod
    def from_json(cls, data):
        return coerce(cls, data)

    def to_json(self):
        return asdict(self)


DRAFT_TYPES = {
    'npc': NpcDraft,
    'npc_detailed': NpcDraft,
    'location': LocationDraft,
    'item': ItemDraft,
    'poi': PoiDraft,
}


def dump_generated_pois(pois):
    """Serialize generated POIs for the hidden form field."""
    return json.dumps([poi.to_json() for poi in pois])


def load_generated_pois(text):
    """Parse the hidden form field back into GeneratedPoi records.

    Malformed data is logged and treated as no generated POIs.
    """
    if not text or not text.strip():
        return []
    try:
        raw = json.loads(text)
    except json.JSONDecodeError:
        logger.warning('Discarding malformed generated POI data (%d chars)', len(text))
        return []
    if not isinstance(raw, list):
        logger.warning('Discarding generated POI data: expected a list, got %s', type(raw).__name__)
        return []
    return [GeneratedPoi.from_json(item) for item in raw if isinstance(item, dict)]


# npc_type assigned to NPCs created from a POI role
ROLE_TO_NPC_TYPE = {
    'Owner': 'Shopkeeper',
    'Shopkeeper': 'Shopkeeper',
    'Bartender': 'Bartender',
    'Guard': 'Guard',
    'Patron': 'Patron',
}


def npc_type_for_role(role):
    return ROLE_TO_NPC_TYPE.get(role, 'Other')


PLACEMENT_NOT_FOUND = 'Selected location or point of interest was not found.'


@dataclass(frozen=True)
class NpcPlacement:
    """Where an NPC lives: nowhere, at a Location, or at a POI. Never both."""
    kind: str = 'unlinked'
    target_id: int = None

    @classmethod
    def unlinked(cls):
        return cls()

    @classmethod
    def at_location(cls, location_id):
        return cls('location', int(location_id))

    @classmethod
    def at_poi(cls, poi_id):
        return cls('poi', int(poi_id))

    @classmethod
    def from_form(cls, location_id, poi_id):
        """Resolve the two optional form selects. Raises ValueError if both are set."""
        location_id = (location_id or '').strip() if isinstance(location_id, str) else location_id
        poi_id = (poi_id or '').strip() if isinstance(poi_id, str) else poi_id
        if location_id and poi_id:
            raise ValueError('An NPC can belong to a location or a point of interest, not both.')
        try:
            if location_id:
                return cls.at_location(location_id)
            if poi_id:
                return cls.at_poi(poi_id)
        except (TypeError, ValueError):
            raise ValueError(PLACEMENT_NOT_FOUND) from None
        return cls.unlinked()

    @property
    def location_id(self):
        return self.target_id if self.kind == 'location' else None

    @property
    def poi_id(self):
        return self.target_id if self.kind == 'poi' else None

    def apply(self, npc):
        npc.location_id = self.location_id
        npc.poi_id = self.poi_id
