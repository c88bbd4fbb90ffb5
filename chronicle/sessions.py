"""
chronicle/sessions.py - Session numbering and recorded-audio intake

Session numbers are max(existing) + 1 within a campaign. Nothing guards two
concurrent saves from picking the same number; a single DM per campaign makes
that an accepted race.
"""

import logging

from flask import current_app

from chronicle import db
from chronicle.models import Session
from chronicle.storage import StorageError, allowed_file
from chronicle.usage import record_session_upload

logger = logging.getLogger(__name__)

BROWSER_RECORDING_EXT = 'webm'
BROWSER_RECORDING_TYPE = 'audio/webm'


class SessionSaveError(Exception):
    pass


def next_session_number(campaign_id):
    current_max = db.session.query(db.func.max(Session.session_number)).filter(
        Session.campaign_id == campaign_id).scalar() or 0
    return current_max + 1


def _audio_extension(audio_file):
    # Browser recordings arrive as a blob named "recording.webm" or with no name at all
    ext = allowed_file(audio_file.filename, current_app.config['ALLOWED_AUDIO_EXTENSIONS'])
    if ext:
        return ext, audio_file.mimetype or f'audio/{ext}'
    if not audio_file.filename or '.' not in audio_file.filename:
        return BROWSER_RECORDING_EXT, BROWSER_RECORDING_TYPE
    return None, None


def save_recorded_session(campaign, title, audio_file, duration_seconds, storage, user):
    """Create a session row and attach its uploaded audio.

    The row is inserted first (status 'processing') so the audio can be
    stored as <session_id>.<ext>. If the upload fails the row is kept and
    marked 'failed'.

    Raises:
        SessionSaveError: missing title/audio, unsupported file type, or upload failure.
    """
    title = (title or '').strip()
    if not title or not audio_file:
        raise SessionSaveError('Please provide a session title and audio')

    ext, content_type = _audio_extension(audio_file)
    if not ext:
        raise SessionSaveError('Unsupported audio format.')

    data = audio_file.read()
    if not data:
        raise SessionSaveError('Please provide a session title and audio')

    session = Session(
        campaign_id=campaign.id,
        title=title,
        session_number=next_session_number(campaign.id),
        duration_seconds=duration_seconds or 0,
        status='processing',
    )
    db.session.add(session)
    db.session.commit()

    try:
        url = storage.upload(current_app.config['AUDIO_BUCKET'], f'{session.id}.{ext}', data, content_type)
    except StorageError as e:
        logger.error('Audio upload for session %s failed: %s', session.id, e)
        session.status = 'failed'
        session.error_message = str(e)
        db.session.commit()
        raise SessionSaveError('Failed to save session. Please try again.') from e

    session.audio_url = url
    session.audio_size_bytes = len(data)
    record_session_upload(user.id, len(data))
    db.session.commit()

    logger.info('Saved session %d "%s" for campaign %s (%d bytes)',
                session.session_number, title, campaign.id, len(data))
    return session
