from chronicle import db
from datetime import datetime
from flask_login import UserMixin
from werkzeug.security import generate_password_hash, check_password_hash

SESSION_STATUSES = ['recording', 'processing', 'completed', 'failed']
SUBSCRIPTION_TIERS = ['free', 'premium']


class TimestampMixin:
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)


class User(UserMixin, db.Model):
    __tablename__ = 'users'

    id = db.Column(db.Integer, primary_key=True)
    email = db.Column(db.String(256), unique=True, nullable=False)
    name = db.Column(db.String(200), nullable=False)
    password_hash = db.Column(db.String(256), nullable=False)
    avatar_url = db.Column(db.String(500))
    subscription_tier = db.Column(db.String(20), default='free')   # free / premium
    subscription_expires_at = db.Column(db.DateTime)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    campaigns = db.relationship('Campaign', backref='owner', lazy=True)

    def set_password(self, password):
        self.password_hash = generate_password_hash(password, method='pbkdf2:sha256')

    def check_password(self, password):
        return check_password_hash(self.password_hash, password)

    @property
    def is_premium(self):
        return self.subscription_tier == 'premium'

    def __repr__(self):
        return f'<User {self.email}>'


class UsageTracking(db.Model):
    """Monthly rolled-up usage counters, one row per user per month.
    Only displayed on the settings page against the free-tier limits."""
    __tablename__ = 'usage_tracking'

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=False)
    month = db.Column(db.String(7), nullable=False)   # "2026-10"
    sessions_recorded = db.Column(db.Integer, default=0, nullable=False)
    ai_recaps_generated = db.Column(db.Integer, default=0, nullable=False)
    transcription_minutes = db.Column(db.Integer, default=0, nullable=False)
    storage_used_mb = db.Column(db.Float, default=0.0, nullable=False)

    user = db.relationship('User', backref='usage_rows')

    __table_args__ = (db.UniqueConstraint('user_id', 'month', name='uq_usage_user_month'),)

    def __repr__(self):
        return f'<UsageTracking {self.user_id} {self.month}>'


class Campaign(TimestampMixin, db.Model):
    __tablename__ = 'campaigns'

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=False)
    name = db.Column(db.String(200), nullable=False)
    description = db.Column(db.Text)
    dm_name = db.Column(db.String(200), nullable=False)
    player_names = db.Column(db.JSON, default=list)   # ordered list of strings
    cover_image_url = db.Column(db.String(500))

    # Sessions cannot exist without their campaign
    sessions = db.relationship('Session', backref='campaign', lazy=True,
                               cascade='all, delete-orphan',
                               order_by='Session.session_number')

    def __repr__(self):
        return f'<Campaign {self.name}>'


class Session(TimestampMixin, db.Model):
    __tablename__ = 'sessions'

    id = db.Column(db.Integer, primary_key=True)
    campaign_id = db.Column(db.Integer, db.ForeignKey('campaigns.id'), nullable=False)
    title = db.Column(db.String(200), nullable=False)
    session_number = db.Column(db.Integer, nullable=False)   # max+1 per campaign, not guarded
    recorded_at = db.Column(db.DateTime, default=datetime.utcnow)
    duration_seconds = db.Column(db.Integer, default=0)

    audio_url = db.Column(db.String(500))
    audio_size_bytes = db.Column(db.Integer)

    # AI-derived content. Written by an external processing job, never by this app.
    transcript = db.Column(db.Text)
    summary = db.Column(db.Text)
    key_moments = db.Column(db.JSON)          # [{timestamp, description, type}]
    npcs_mentioned = db.Column(db.JSON)
    locations_mentioned = db.Column(db.JSON)
    loot_acquired = db.Column(db.JSON)

    status = db.Column(db.String(20), default='recording', nullable=False)
    processing_started_at = db.Column(db.DateTime)
    processing_completed_at = db.Column(db.DateTime)
    error_message = db.Column(db.Text)

    def __repr__(self):
        return f'<Session {self.session_number}: {self.title}>'


class Location(TimestampMixin, db.Model):
    __tablename__ = 'locations'

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=False)
    campaign_id = db.Column(db.Integer, db.ForeignKey('campaigns.id'), nullable=True)
    name = db.Column(db.String(200), nullable=False)
    type = db.Column(db.String(100))          # City / Forest / Dungeon / Tavern (free text)
    region = db.Column(db.String(200))
    climate = db.Column(db.String(100))
    population = db.Column(db.Text)
    size = db.Column(db.String(100))          # Thorp ... Metropolis
    government = db.Column(db.Text)
    economy = db.Column(db.Text)
    defenses = db.Column(db.Text)
    description = db.Column(db.Text)
    atmosphere = db.Column(db.Text)
    history = db.Column(db.Text)
    inhabitants = db.Column(db.Text)
    points_of_interest = db.Column(db.Text)
    notable_npcs = db.Column(db.Text)         # legacy; linked NPCs are used instead
    dangers = db.Column(db.Text)
    hooks = db.Column(db.Text)
    secrets = db.Column(db.Text)              # GM-only
    notes = db.Column(db.Text)
    image_url = db.Column(db.String(500))
    map_url = db.Column(db.String(500))

    campaign = db.relationship('Campaign', backref='locations')
    pois = db.relationship('POI', backref='location', cascade='all, delete-orphan',
                           order_by='POI.name')
    npcs = db.relationship('NPC', backref='home_location', foreign_keys='NPC.location_id')

    def __repr__(self):
        return f'<Location {self.name}>'


class POI(TimestampMixin, db.Model):
    """A point of interest (shop, tavern, landmark) inside exactly one Location."""
    __tablename__ = 'pois'

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=False)
    location_id = db.Column(db.Integer, db.ForeignKey('locations.id', ondelete='CASCADE'),
                            nullable=False)
    campaign_id = db.Column(db.Integer, db.ForeignKey('campaigns.id'), nullable=True)
    name = db.Column(db.String(200), nullable=False)
    type = db.Column(db.String(100))
    description = db.Column(db.Text)
    services = db.Column(db.Text)
    notes = db.Column(db.Text)
    image_url = db.Column(db.String(500))

    campaign = db.relationship('Campaign', backref='pois')
    npc_links = db.relationship('NpcPoi', backref='poi', cascade='all, delete-orphan')
    resident_npcs = db.relationship('NPC', backref='poi', foreign_keys='NPC.poi_id')

    def __repr__(self):
        return f'<POI {self.name}>'


class NPC(TimestampMixin, db.Model):
    __tablename__ = 'npcs'

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=False)
    campaign_id = db.Column(db.Integer, db.ForeignKey('campaigns.id'), nullable=True)

    # An NPC lives at a Location OR at a POI, never both
    location_id = db.Column(db.Integer, db.ForeignKey('locations.id'), nullable=True)
    poi_id = db.Column(db.Integer, db.ForeignKey('pois.id'), nullable=True)

    name = db.Column(db.String(200), nullable=False)
    npc_type = db.Column(db.String(100))      # Ally / Enemy / Shopkeeper / Quest Giver ...
    race = db.Column(db.String(100))
    class_or_occupation = db.Column(db.String(200))
    level = db.Column(db.Integer)
    alignment = db.Column(db.String(50))
    faction = db.Column(db.String(200))
    status = db.Column(db.String(50), default='alive')

    # Combat stats
    armor_class = db.Column(db.Integer)
    hit_points = db.Column(db.String(50))     # "27 (5d8+5)"
    speed = db.Column(db.String(50))
    challenge_rating = db.Column(db.String(20))
    ability_scores = db.Column(db.JSON)       # {str, dex, con, int, wis, cha}
    skills = db.Column(db.Text)
    languages = db.Column(db.Text)
    abilities = db.Column(db.Text)

    # Roleplay
    appearance = db.Column(db.Text)
    personality = db.Column(db.Text)
    voice_mannerisms = db.Column(db.Text)
    description = db.Column(db.Text)
    backstory = db.Column(db.Text)
    goals = db.Column(db.Text)
    secrets = db.Column(db.Text)              # GM-only
    location = db.Column(db.String(300))      # free-text "where to find them"
    relationship = db.Column(db.String(200))  # relationship to the party
    notes = db.Column(db.Text)
    image_url = db.Column(db.String(500))

    campaign = db.relationship('Campaign', backref='npcs')
    poi_links = db.relationship('NpcPoi', backref='npc', cascade='all, delete-orphan')

    __table_args__ = (
        db.CheckConstraint('location_id IS NULL OR poi_id IS NULL',
                           name='ck_npc_single_placement'),
    )

    def __repr__(self):
        return f'<NPC {self.name}>'


class NpcPoi(db.Model):
    """Join row linking an NPC to a POI, with a free-text role ("Bartender")."""
    __tablename__ = 'npc_pois'

    id = db.Column(db.Integer, primary_key=True)
    npc_id = db.Column(db.Integer, db.ForeignKey('npcs.id', ondelete='CASCADE'), nullable=False)
    poi_id = db.Column(db.Integer, db.ForeignKey('pois.id', ondelete='CASCADE'), nullable=False)
    role = db.Column(db.String(100))
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    def __repr__(self):
        return f'<NpcPoi npc={self.npc_id} poi={self.poi_id} {self.role}>'


class Item(TimestampMixin, db.Model):
    __tablename__ = 'items'

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=False)
    campaign_id = db.Column(db.Integer, db.ForeignKey('campaigns.id'), nullable=True)
    name = db.Column(db.String(200), nullable=False)
    type = db.Column(db.String(100))          # Weapon / Armor / Wondrous Item / Potion
    rarity = db.Column(db.String(50))         # Common ... Legendary, Artifact
    value = db.Column(db.String(100))
    weight = db.Column(db.String(50))
    attunement = db.Column(db.Boolean, default=False)
    requires_attunement_by = db.Column(db.String(200))
    charges = db.Column(db.Integer)
    cursed = db.Column(db.Boolean, default=False)
    damage = db.Column(db.String(50))         # "1d8"
    damage_type = db.Column(db.String(50))
    armor_class_bonus = db.Column(db.Integer)
    description = db.Column(db.Text)
    properties = db.Column(db.Text)
    history = db.Column(db.Text)
    lore = db.Column(db.Text)
    notes = db.Column(db.Text)
    image_url = db.Column(db.String(500))

    campaign = db.relationship('Campaign', backref='items')

    def __repr__(self):
        return f'<Item {self.name}>'


class Note(TimestampMixin, db.Model):
    """A personal note, or a lorebook entry when is_lorebook is set."""
    __tablename__ = 'notes'

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=False)
    campaign_id = db.Column(db.Integer, db.ForeignKey('campaigns.id'), nullable=True)
    title = db.Column(db.String(200), nullable=False)
    content = db.Column(db.Text)
    tags = db.Column(db.JSON, default=list)
    is_lorebook = db.Column(db.Boolean, default=False, nullable=False)

    campaign = db.relationship('Campaign', backref='notes')

    def __repr__(self):
        return f'<Note {self.title}>'


def parse_tags(tag_string):
    """Parse a comma-separated tag string into a de-duplicated list.
    Tags are stored lowercase and trimmed, in first-seen order."""
    seen = []
    for raw in (tag_string or '').split(','):
        tag = raw.strip().lower()
        if tag and tag not in seen:
            seen.append(tag)
    return seen


def parse_names(text):
    """Split a newline- or comma-separated list of player names, keeping order."""
    parts = (text or '').replace('\r', '').replace(',', '\n').split('\n')
    return [p.strip() for p in parts if p.strip()]
