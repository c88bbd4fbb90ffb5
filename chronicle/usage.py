"""Monthly usage counters shown on the settings page."""

import logging
from datetime import datetime

from chronicle import db
from chronicle.models import UsageTracking

logger = logging.getLogger(__name__)

FREE_TIER_LIMITS = {'sessions': 3, 'recaps': 2}


def current_month(now=None):
    return (now or datetime.utcnow()).strftime('%Y-%m')


def get_usage(user_id, month=None):
    """Return this month's UsageTracking row, or None if nothing was recorded yet."""
    return UsageTracking.query.filter_by(user_id=user_id, month=month or current_month()).first()


def _get_or_create(user_id, month):
    row = get_usage(user_id, month)
    if row is None:
        row = UsageTracking(user_id=user_id, month=month, sessions_recorded=0,
                            ai_recaps_generated=0, transcription_minutes=0, storage_used_mb=0.0)
        db.session.add(row)
    return row


def record_session_upload(user_id, size_bytes, month=None):
    """Count one recorded session and its audio size against the month. Caller commits."""
    row = _get_or_create(user_id, month or current_month())
    row.sessions_recorded = (row.sessions_recorded or 0) + 1
    row.storage_used_mb = (row.storage_used_mb or 0.0) + size_bytes / (1024 * 1024)
    return row


def usage_summary(user, month=None):
    """Numbers for the settings page. Premium users have no limits (limit is None)."""
    row = get_usage(user.id, month)
    sessions_used = row.sessions_recorded if row else 0
    recaps_used = row.ai_recaps_generated if row else 0

    def _meter(used, limit):
        if user.is_premium:
            return {'used': used, 'limit': None, 'percent': 0, 'at_limit': False}
        return {
            'used': used,
            'limit': limit,
            'percent': min(int(used * 100 / limit), 100),
            'at_limit': used >= limit,
        }

    return {
        'month': month or current_month(),
        'sessions': _meter(sessions_used, FREE_TIER_LIMITS['sessions']),
        'recaps': _meter(recaps_used, FREE_TIER_LIMITS['recaps']),
        'transcription_minutes': row.transcription_minutes if row else 0,
        'storage_used_mb': row.storage_used_mb if row else 0.0,
    }
