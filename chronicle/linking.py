"""
chronicle/linking.py - Location creation cascade and world-entity link upkeep

create_location() is the one multi-row write in the app. The location row
must succeed; everything after it (generated POIs, their NPCs, the NPC-POI
join rows, manually selected NPCs/POIs) is best-effort. Each of those writes
runs in its own SAVEPOINT so one bad row is rolled back on its own and the
rest of the cascade carries on. Resubmitting the form creates duplicates.
"""

import logging
from dataclasses import dataclass, field

from sqlalchemy.exc import SQLAlchemyError

from chronicle import db
from chronicle.models import Location, POI, NPC, NpcPoi, Item, Note
from chronicle.forms import LOCATION_FIELDS
from chronicle.records import npc_type_for_role

logger = logging.getLogger(__name__)

LOCATION_COLUMNS = [name for name, _label, _widget in LOCATION_FIELDS]


class PersistenceError(Exception):
    """Raised when the primary row of a create/update cannot be written."""
    pass


@dataclass
class LinkReport:
    location: Location = None
    pois_created: list = field(default_factory=list)
    npcs_created: list = field(default_factory=list)
    links_created: int = 0
    npcs_linked: int = 0
    pois_linked: int = 0
    failures: list = field(default_factory=list)

    @property
    def partial(self):
        return bool(self.failures)

    def fail(self, message):
        logger.warning(message)
        self.failures.append(message)


def _blank_to_none(value):
    if value is None:
        return None
    value = str(value).strip()
    return value or None


def create_location(user_id, fields, generated_pois=(), npc_ids=(), poi_ids=(), campaign_id=None):
    """Insert a location, then its generated POIs/NPCs, then the manual links.

    Raises PersistenceError (after rolling back) only if the location row
    itself cannot be written. Returns a LinkReport describing what else
    made it in.
    """
    location = Location(user_id=user_id, campaign_id=campaign_id)
    for name in LOCATION_COLUMNS:
        setattr(location, name, _blank_to_none(fields.get(name)))

    try:
        db.session.add(location)
        db.session.flush()
    except SQLAlchemyError as e:
        db.session.rollback()
        logger.error('Could not create location "%s": %s', fields.get('name'), e)
        raise PersistenceError('Failed to create location. Please try again.') from e

    report = LinkReport(location=location)

    for generated in generated_pois:
        _create_generated_poi(report, user_id, campaign_id, location, generated)

    for npc_id in npc_ids:
        _move_npc_to_location(report, user_id, location, npc_id)

    for poi_id in poi_ids:
        _move_poi_to_location(report, user_id, location, poi_id)

    db.session.commit()
    logger.info('Created location "%s" (id=%s): %d POIs, %d NPCs, %d failures',
                location.name, location.id, len(report.pois_created),
                len(report.npcs_created), len(report.failures))
    return report


def _create_generated_poi(report, user_id, campaign_id, location, generated):
    poi = POI(
        user_id=user_id,
        location_id=location.id,
        campaign_id=campaign_id,
        name=_blank_to_none(generated.name),
        type=_blank_to_none(generated.type),
        description=_blank_to_none(generated.description),
        services=_blank_to_none(generated.services),
    )
    try:
        with db.session.begin_nested():
            db.session.add(poi)
            db.session.flush()
    except SQLAlchemyError as e:
        report.fail(f'Skipped generated POI "{generated.name}": {e.__class__.__name__}')
        return
    report.pois_created.append(poi)

    for generated_npc in generated.npcs:
        npc = NPC(
            user_id=user_id,
            campaign_id=campaign_id,
            poi_id=poi.id,
            name=_blank_to_none(generated_npc.name),
            npc_type=npc_type_for_role(generated_npc.role),
            race=_blank_to_none(generated_npc.race),
            class_or_occupation=_blank_to_none(generated_npc.class_or_occupation),
            description=_blank_to_none(generated_npc.description),
            personality=_blank_to_none(generated_npc.personality),
            appearance=_blank_to_none(generated_npc.appearance),
            location=f'{poi.name} in {location.name}',
        )
        try:
            with db.session.begin_nested():
                db.session.add(npc)
                db.session.flush()
        except SQLAlchemyError as e:
            report.fail(f'Skipped NPC "{generated_npc.name}" at {poi.name}: {e.__class__.__name__}')
            continue
        report.npcs_created.append(npc)

        try:
            with db.session.begin_nested():
                db.session.add(NpcPoi(npc_id=npc.id, poi_id=poi.id,
                                      role=_blank_to_none(generated_npc.role)))
                db.session.flush()
        except SQLAlchemyError as e:
            report.fail(f'Could not link {npc.name} to {poi.name}: {e.__class__.__name__}')
            continue
        report.links_created += 1


def _move_npc_to_location(report, user_id, location, npc_id):
    npc = NPC.query.filter_by(id=npc_id, user_id=user_id).first()
    if not npc:
        report.fail(f'NPC {npc_id} not found; not linked to {location.name}')
        return
    try:
        with db.session.begin_nested():
            npc.location_id = location.id
            npc.poi_id = None
            npc.location = location.name
            db.session.flush()
    except SQLAlchemyError as e:
        report.fail(f'Could not link NPC {npc_id} to {location.name}: {e.__class__.__name__}')
        return
    report.npcs_linked += 1


def _move_poi_to_location(report, user_id, location, poi_id):
    poi = POI.query.filter_by(id=poi_id, user_id=user_id).first()
    if not poi:
        report.fail(f'POI {poi_id} not found; not linked to {location.name}')
        return
    try:
        with db.session.begin_nested():
            poi.location_id = location.id
            db.session.flush()
    except SQLAlchemyError as e:
        report.fail(f'Could not link POI {poi_id} to {location.name}: {e.__class__.__name__}')
        return
    report.pois_linked += 1


def link_npcs_to_poi(poi, npc_ids, role=None):
    """Add npc_pois rows for the selected NPCs that aren't linked yet. Returns the count added."""
    already = {link.npc_id for link in poi.npc_links}
    added = 0
    for npc_id in npc_ids:
        npc = NPC.query.filter_by(id=npc_id, user_id=poi.user_id).first()
        if not npc or npc.id in already:
            continue
        db.session.add(NpcPoi(npc_id=npc.id, poi_id=poi.id, role=_blank_to_none(role)))
        already.add(npc.id)
        added += 1
    return added


def set_poi_npcs(poi, npc_ids, role=None):
    """Make the POI's linked NPCs exactly npc_ids, keeping existing roles."""
    wanted = {int(i) for i in npc_ids}
    for link in list(poi.npc_links):
        if link.npc_id not in wanted:
            poi.npc_links.remove(link)
    return link_npcs_to_poi(poi, wanted, role)


def poi_npc_count(poi):
    return NpcPoi.query.filter_by(poi_id=poi.id).count()


def delete_npc(npc):
    """Delete an NPC; its npc_pois rows go with it."""
    db.session.delete(npc)
    db.session.commit()


def delete_poi(poi):
    """Delete a POI and its npc_pois rows. NPCs living there become unplaced."""
    for npc in list(poi.resident_npcs):
        npc.poi_id = None
    db.session.delete(poi)
    db.session.commit()


def delete_location(location):
    """Delete a location and its POIs. NPCs living there become unplaced."""
    for npc in list(location.npcs):
        npc.location_id = None
    for poi in location.pois:
        for npc in list(poi.resident_npcs):
            npc.poi_id = None
    db.session.delete(location)
    db.session.commit()


def delete_campaign(campaign):
    """Delete a campaign and its sessions. World entities stay, detached from it."""
    for model in (Location, POI, NPC, Item, Note):
        model.query.filter_by(campaign_id=campaign.id).update(
            {'campaign_id': None}, synchronize_session='fetch')
    db.session.delete(campaign)
    db.session.commit()