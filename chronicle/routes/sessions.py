from flask import Blueprint, render_template, redirect, url_for, request, flash, jsonify
from flask_login import login_required, current_user
from chronicle import db
from chronicle.forms import form_text, form_int
from chronicle.models import Campaign, Session, SESSION_STATUSES
from chronicle.routes import owned_or_404
from chronicle.sessions import save_recorded_session, next_session_number, SessionSaveError
from chronicle.storage import get_storage

sessions_bp = Blueprint('sessions', __name__)


def _owned_session_or_404(session_id):
    return Session.query.join(Campaign).filter(
        Session.id == session_id, Campaign.user_id == current_user.id
    ).first_or_404()


def _wants_json():
    return request.accept_mimetypes.best == 'application/json' or request.args.get('format') == 'json'


@sessions_bp.route('/sessions')
@login_required
def list_sessions():
    campaign_id = request.args.get('campaign_id', type=int)
    query = Session.query.join(Campaign).filter(Campaign.user_id == current_user.id)
    if campaign_id:
        query = query.filter(Session.campaign_id == campaign_id)
    sessions = query.order_by(Session.recorded_at.desc()).all()
    campaigns = Campaign.query.filter_by(user_id=current_user.id).order_by(Campaign.name).all()
    return render_template('sessions/list.html', sessions=sessions, campaigns=campaigns,
                           campaign_id=campaign_id)


@sessions_bp.route('/campaigns/<int:campaign_id>/record', methods=['GET', 'POST'])
@login_required
def record_session(campaign_id):
    """Browser recording or file upload; both submit the same multipart form."""
    campaign = owned_or_404(Campaign, campaign_id)

    if request.method == 'POST':
        duration = form_int('duration_seconds') or 0
        try:
            sess = save_recorded_session(campaign, request.form.get('title', ''),
                                         request.files.get('audio'), duration,
                                         get_storage(), current_user)
        except SessionSaveError as e:
            if _wants_json():
                return jsonify({'error': str(e)}), 400
            flash(str(e), 'danger')
            return redirect(url_for('sessions.record_session', campaign_id=campaign.id))

        if _wants_json():
            return jsonify({'id': sess.id, 'redirect': url_for('sessions.session_detail', session_id=sess.id)})
        flash(f'Session {sess.session_number} saved.', 'success')
        return redirect(url_for('sessions.session_detail', session_id=sess.id))

    return render_template('sessions/record.html', campaign=campaign,
                           next_number=next_session_number(campaign.id))


@sessions_bp.route('/sessions/<int:session_id>')
@login_required
def session_detail(session_id):
    sess = _owned_session_or_404(session_id)
    return render_template('sessions/detail.html', sess=sess)


@sessions_bp.route('/sessions/<int:session_id>/edit', methods=['GET', 'POST'])
@login_required
def edit_session(session_id):
    sess = _owned_session_or_404(session_id)

    if request.method == 'POST':
        title = request.form.get('title', '').strip()
        if not title:
            flash('Session title is required.', 'danger')
            return redirect(url_for('sessions.edit_session', session_id=sess.id))

        status = request.form.get('status', sess.status)
        if status not in SESSION_STATUSES:
            status = sess.status

        sess.title = title
        sess.status = status
        sess.transcript = form_text('transcript')
        sess.summary = form_text('summary')
        db.session.commit()

        flash(f'Session "{sess.title}" updated!', 'success')
        return redirect(url_for('sessions.session_detail', session_id=sess.id))

    return render_template('sessions/form.html', sess=sess, statuses=SESSION_STATUSES)


@sessions_bp.route('/sessions/<int:session_id>/delete', methods=['POST'])
@login_required
def delete_session(session_id):
    sess = _owned_session_or_404(session_id)
    campaign_id = sess.campaign_id
    title = sess.title
    db.session.delete(sess)
    db.session.commit()
    flash(f'Session "{title}" deleted.', 'warning')
    return redirect(url_for('campaigns.campaign_detail', campaign_id=campaign_id))
