"""
chronicle/prompts.py - System and user prompts for world-entity generation

Each entity kind has an ordered field schema (field name -> what the model
should put there). The system prompt enumerates those fields verbatim so the
documented key set and the prompt can never drift apart.

Kinds:
  npc, location (19 fields when full_details), location_basic (6 fields),
  item, poi, npc_detailed, plus the nested location_entities structure.
"""

import json

PERSONA = 'You are a D&D world-building assistant.'

SURPRISE_ME_PROMPT = ('Generate a completely random and creative D&D location. '
                      'Surprise me with something unique and interesting!')

# Role vocabulary for NPCs nested under a generated POI
NPC_ROLES = ['Owner', 'Shopkeeper', 'Bartender', 'Guard', 'Resident', 'Patron']

NPC_TYPES = ['Ally', 'Enemy', 'Boss', 'Shopkeeper', 'Innkeeper', 'Bartender', 'Quest Giver',
             'Guard', 'Merchant', 'Noble', 'Commoner', 'Patron', 'Contact', 'Informant',
             'Neutral', 'Other']

ENTITY_SCHEMAS = {
    'npc': {
        'intro': "Generate a detailed NPC based on the user's description.",
        'fields': {
            'name':                'Full name of the NPC',
            'race':                'Race (e.g., Human, Elf, Dwarf)',
            'class_or_occupation': 'Class or occupation',
            'description':         '2-3 sentence general description',
            'personality':         'Personality traits, quirks, and mannerisms',
            'appearance':          'Physical description including clothing and distinguishing features',
            'location':            'Where they can be found',
            'relationship':        'Suggested relationship to the party (Ally, Enemy, Neutral, Quest Giver, etc.)',
            'notes':               'Additional background, motivations, or secrets',
        },
    },
    'location': {
        'intro': ("Generate a COMPREHENSIVE and DETAILED location based on the user's description. "
                  'Fill ALL fields with rich, extensive content.'),
        'fields': {
            'name':               'Name of the location',
            'type':               'Type of location (e.g., City, Forest, Dungeon, Tavern, Castle)',
            'region':             'The larger region it belongs to (e.g., Sword Coast, Northern Mountains)',
            'climate':            'Climate type (e.g., Temperate, Arctic, Tropical, Desert)',
            'population':         'Population count and demographics (e.g., ~5,000 - mostly humans and dwarves)',
            'size':               ('Settlement size (Thorp, Hamlet, Village, Small Town, Large Town, '
                                   'Small City, Large City, or Metropolis)'),
            'government':         "Detailed description of how it's governed, who rules, political structure",
            'economy':            'Main industries, trade goods, wealth level, economic activity',
            'defenses':           'Walls, guards, military strength, magical wards, defenses in detail',
            'description':        'Rich, detailed description of the location - at least 3-4 sentences',
            'atmosphere':         ('Detailed description of the mood, sights, sounds, smells, '
                                   'what it feels like to be there'),
            'history':            'Comprehensive history - founding, major events, how it came to be, important past events',
            'inhabitants':        'Detailed breakdown of who lives here - races, factions, social classes, creatures',
            'points_of_interest': ('Extensive list of notable buildings, landmarks, shops, districts, '
                                   'places to visit - be specific and detailed'),
            'notable_npcs':       'List of important NPCs found here with brief descriptions of each',
            'dangers':            'Threats, hazards, monsters, environmental dangers, crime, conflicts',
            'hooks':              'Multiple adventure hooks, rumors, quest ideas, opportunities - at least 3-5 specific hooks',
            'secrets':            'Hidden information, mysteries, plot twists, secrets about the location',
            'notes':              'Additional lore, interesting facts, cultural details',
        },
    },
    'location_basic': {
        'intro': "Generate a detailed location based on the user's description.",
        'fields': {
            'name':               'Name of the location',
            'type':               'Type of location (e.g., City, Forest, Dungeon, Tavern)',
            'description':        'Detailed description of the location',
            'inhabitants':        'Who or what lives here',
            'points_of_interest': 'Notable features, landmarks, or places within this location',
            'notes':              'History, secrets, quest hooks, or additional lore',
        },
    },
    'item': {
        'intro': "Generate a detailed magic item or piece of loot based on the user's description.",
        'fields': {
            'name':        'Name of the item',
            'type':        'Type (e.g., Weapon, Armor, Wondrous Item, Potion)',
            'rarity':      'Rarity (Common, Uncommon, Rare, Very Rare, Legendary, or Artifact)',
            'description': "Detailed description of the item's appearance",
            'properties':  'Magical properties, abilities, bonuses, and how to use it',
            'value':       'Approximate value in gold pieces',
            'notes':       'History, lore, attunement requirements, or side effects',
        },
    },
    'poi': {
        'intro': ("Based on the user's description, generate a Point of Interest (POI) "
                  'with detailed information.'),
        'fields': {
            'name':        'POI name',
            'type':        'Tavern|Shop|Temple|Guild Hall|Inn|Market|Dungeon|etc',
            'description': ('Detailed description of the POI, including atmosphere, notable features, '
                            'and what makes it unique'),
        },
        'guidelines': [
            'Create a vivid, memorable name appropriate for a D&D setting',
            'Choose an appropriate type that matches the description',
            'Write a rich, atmospheric description (2-4 sentences)',
            'Include sensory details and unique characteristics',
            'Make it feel like a real place in a fantasy world',
        ],
    },
    'npc_detailed': {
        'intro': ("Based on the user's description, generate a Non-Player Character (NPC) "
                  'with detailed information.'),
        'fields': {
            'name':                'Character name appropriate for their race',
            'race':                'Human|Elf|Dwarf|Halfling|Gnome|Half-Elf|Half-Orc|Tiefling|Dragonborn|etc',
            'npc_type':            '|'.join(NPC_TYPES),
            'class_or_occupation': 'Specific occupation or class (e.g., Blacksmith, Wizard, Fighter, Merchant, etc)',
            'description':         ("Detailed description of the NPC's background, personality, "
                                    'and notable characteristics'),
            'personality':         'Brief personality traits and mannerisms',
            'appearance':          'Physical description appropriate for their race',
        },
        'guidelines': [
            'Create a memorable name that fits the race and setting',
            'Choose an appropriate race for a D&D campaign',
            'Select a fitting NPC type based on their role',
            'Include specific occupation/class details',
            'Write a rich character description that brings them to life',
            'Include personality quirks and distinctive features',
            'Make appearance descriptions match the chosen race',
        ],
    },
}

# Nested structure requested by the location expansion call
LOCATION_ENTITY_POI_FIELDS = {
    'name':        'POI name',
    'type':        'Tavern|Shop|Temple|Guild Hall|Residence|Market|etc',
    'description': 'Brief description',
    'services':    "What's available here (for shops/taverns/services)",
}

LOCATION_ENTITY_NPC_FIELDS = {
    'name':                'NPC name appropriate for their race',
    'race':                'Race based on location demographics',
    'class_or_occupation': 'Appropriate occupation (Shopkeeper, Bartender, Innkeeper, Guard, Priest, etc)',
    'role':                '|'.join(NPC_ROLES),
    'description':         'Brief description',
    'personality':         'Brief personality',
    'appearance':          'Brief physical description appropriate for their race',
}

LOCATION_ENTITIES_GUIDELINES = """IMPORTANT: Generate NPCs with realistic D&D races based on the location's demographics. Follow these guidelines:
- Use the population/inhabitants description to determine racial makeup
- Common D&D races: Human, Elf, Dwarf, Halfling, Gnome, Half-Elf, Half-Orc, Tiefling, Dragonborn
- Cities typically have diverse populations
- Specific settlements may be race-dominated (e.g., Dwarven strongholds, Elven forests)
- NPCs should have appropriate classes/occupations for their roles
- Shopkeepers, bartenders, innkeepers should match the local demographics"""

LOCATION_ENTITIES_RULES = """GUIDELINES:
- Generate 3-8 POIs based on location size and type
- Each POI should have 1-3 NPCs
- Cities/towns: Taverns, shops, temples, guild halls
- Villages: General store, tavern, maybe a temple
- Dungeons: Guard posts, treasure rooms (with monster NPCs)
- Forests: Clearings, ancient trees, druid circles
- Ensure NPC races match the demographics described in inhabitants/population
- Give NPCs fitting names for their race (e.g., Thorin for Dwarf, Elara for Elf, John for Human)"""

IMAGE_MAP_TEMPLATE = ('A top-down fantasy RPG map showing {prompt}. Hand-drawn medieval cartography style '
                      'with parchment texture, showing terrain features like forests, mountains, water, '
                      'and settlements. No text, no borders, no compass rose, no labels. '
                      'Clean map illustration only.')

IMAGE_ART_TEMPLATE = ('A detailed fantasy illustration showing {prompt}. Professional D&D artwork style '
                      'with rich colors. Show the complete subject, do not crop. No text, no borders, '
                      'no frames, no labels. Pure visual illustration only.')

MAP_LEGEND_LIMIT = 8


def _schema_key(kind, full_details=False):
    if kind == 'location' and not full_details:
        return 'location_basic'
    return kind


def schema_fields(kind, full_details=False):
    """Return the documented output keys for a kind, in prompt order."""
    key = _schema_key(kind, full_details)
    if key not in ENTITY_SCHEMAS:
        raise ValueError(f'Unknown entity kind: {kind}')
    return list(ENTITY_SCHEMAS[key]['fields'])


def _json_skeleton(fields, indent=2):
    return json.dumps(fields, indent=indent)


def build_system_prompt(kind, full_details=False):
    """Build the system prompt for a single-entity generation call.

    `location` uses the 19-field template when full_details is set and the
    6-field one otherwise; every other kind ignores full_details.
    """
    key = _schema_key(kind, full_details)
    schema = ENTITY_SCHEMAS.get(key)
    if not schema:
        raise ValueError(f'Unknown entity kind: {kind}')

    prompt = (f"{PERSONA} {schema['intro']} "
              f"Return ONLY a valid JSON object with these exact fields:\n"
              f"{_json_skeleton(schema['fields'])}")

    guidelines = schema.get('guidelines')
    if guidelines:
        prompt += '\n\nGUIDELINES:\n' + '\n'.join(f'- {g}' for g in guidelines)
    return prompt


def build_user_prompt(kind, prompt):
    if kind == 'poi':
        return f'Generate a POI based on this description: {prompt}'
    if kind == 'npc_detailed':
        return f'Generate an NPC based on this description: {prompt}'
    return prompt


def build_poi_prompt(prompt):
    return build_system_prompt('poi'), build_user_prompt('poi', prompt)


def build_npc_prompt(prompt):
    return build_system_prompt('npc_detailed'), build_user_prompt('npc_detailed', prompt)


def build_location_entities_prompt(name, type=None, inhabitants=None, population=None,
                                   points_of_interest=None):
    """Build (system, user) prompts for the POI/NPC expansion of a location.

    The inhabitants text is embedded verbatim so the model derives NPC races
    from it; population is used only when inhabitants is blank.
    """
    structure = dict(LOCATION_ENTITY_POI_FIELDS)
    structure['npcs'] = [dict(LOCATION_ENTITY_NPC_FIELDS)]

    system_prompt = (
        f'{PERSONA} Based on the location details provided, generate Points of Interest (POIs) and NPCs.\n\n'
        f'{LOCATION_ENTITIES_GUIDELINES}\n\n'
        f'Return a JSON object with this structure:\n'
        f'{_json_skeleton({"pois": [structure]})}\n\n'
        f'{LOCATION_ENTITIES_RULES}'
    )

    user_prompt = (
        f'Location: {name}\n'
        f"Type: {type or 'Unknown'}\n"
        f"Population/Inhabitants: {inhabitants or population or 'Unknown'}\n"
        f"Points of Interest context: {points_of_interest or 'Generate appropriate POIs for this location type'}\n\n"
        f'Generate POIs and NPCs for this location.'
    )
    return system_prompt, user_prompt


def is_map_prompt(prompt, is_map=False):
    return bool(is_map) or 'map' in (prompt or '').lower()


def build_image_prompt(prompt, is_map=False):
    """Wrap a subject description in the illustration or map template."""
    template = IMAGE_MAP_TEMPLATE if is_map_prompt(prompt, is_map) else IMAGE_ART_TEMPLATE
    return template.format(prompt=prompt)


def location_image_prompt(fields):
    """Illustration subject built from the current location form values."""
    parts = []
    if fields.get('name'):
        parts.append(fields['name'])
    if fields.get('type'):
        parts.append(f"a {fields['type']}")
    if fields.get('description'):
        parts.append(fields['description'])
    if fields.get('atmosphere'):
        parts.append(fields['atmosphere'])
    return ', '.join(parts)


def location_map_prompt(fields):
    """Map subject: name, type, size, and up to eight POI lines for the legend."""
    parts = []
    if fields.get('name'):
        parts.append(f"of {fields['name']}")
    if fields.get('type'):
        parts.append(fields['type'])
    if fields.get('size'):
        parts.append(fields['size'])

    poi_lines = [line.strip() for line in (fields.get('points_of_interest') or '').splitlines()]
    poi_lines = [line for line in poi_lines if line][:MAP_LEGEND_LIMIT]
    if poi_lines:
        parts.append('showing these locations in the legend: ' + ', '.join(poi_lines))
    return ', '.join(parts)
