from flask import Blueprint, render_template, request, redirect, url_for, flash
from flask_login import login_required, current_user
from chronicle import db
from chronicle.forms import form_text
from chronicle.usage import usage_summary, FREE_TIER_LIMITS

settings_bp = Blueprint('settings', __name__, url_prefix='/settings')


@settings_bp.route('/', methods=['GET', 'POST'])
@login_required
def index():
    if request.method == 'POST':
        name = request.form.get('name', '').strip()
        if not name:
            flash('Name is required.', 'danger')
            return redirect(url_for('settings.index'))

        current_user.name = name
        current_user.avatar_url = form_text('avatar_url')
        db.session.commit()
        flash('Profile updated.', 'success')
        return redirect(url_for('settings.index'))

    return render_template('settings.html', usage=usage_summary(current_user),
                           limits=FREE_TIER_LIMITS)
