import os
from flask import Blueprint, render_template, send_from_directory, current_app, abort
from flask_login import login_required, current_user
from chronicle.models import Campaign, Session, Location, NPC, Item, Note

main_bp = Blueprint('main', __name__)


@main_bp.route('/')
@login_required
def dashboard():
    campaigns = Campaign.query.filter_by(user_id=current_user.id).order_by(Campaign.updated_at.desc()).all()
    campaign_ids = [c.id for c in campaigns]

    sessions_q = Session.query.filter(Session.campaign_id.in_(campaign_ids)) if campaign_ids else None
    recent_sessions = sessions_q.order_by(Session.recorded_at.desc()).limit(5).all() if sessions_q else []

    counts = {
        'campaigns': len(campaigns),
        'sessions': sessions_q.count() if sessions_q else 0,
        'locations': Location.query.filter_by(user_id=current_user.id).count(),
        'npcs': NPC.query.filter_by(user_id=current_user.id).count(),
        'items': Item.query.filter_by(user_id=current_user.id).count(),
        'notes': Note.query.filter_by(user_id=current_user.id).count(),
    }
    return render_template('dashboard.html', campaigns=campaigns[:6],
                           recent_sessions=recent_sessions, counts=counts)


@main_bp.route('/uploads/<bucket>/<path:key>')
@login_required
def uploaded_file(bucket, key):
    """Serve files written by LocalStorage."""
    allowed = {current_app.config['IMAGE_BUCKET'], current_app.config['AUDIO_BUCKET']}
    if bucket not in allowed:
        abort(404)
    return send_from_directory(os.path.join(current_app.config['UPLOAD_FOLDER'], bucket), key)
