from flask import Blueprint, render_template, redirect, url_for, request, flash
from flask_login import login_required, current_user
from chronicle import db
from chronicle.forms import form_text
from chronicle.linking import delete_campaign as delete_campaign_cascade
from chronicle.models import Campaign, parse_names
from chronicle.routes import owned_or_404

campaigns_bp = Blueprint('campaigns', __name__, url_prefix='/campaigns')


def _apply_campaign_form(campaign):
    campaign.name = request.form.get('name', '').strip()
    campaign.dm_name = request.form.get('dm_name', '').strip()
    campaign.description = form_text('description')
    campaign.player_names = parse_names(request.form.get('player_names', ''))
    campaign.cover_image_url = form_text('cover_image_url')


def _validate_campaign_form():
    if not request.form.get('name', '').strip():
        return 'Campaign name is required.'
    if not request.form.get('dm_name', '').strip():
        return 'DM name is required.'
    return None


@campaigns_bp.route('/')
@login_required
def list_campaigns():
    campaigns = Campaign.query.filter_by(user_id=current_user.id).order_by(Campaign.name).all()
    return render_template('campaigns/list.html', campaigns=campaigns)


@campaigns_bp.route('/new', methods=['GET', 'POST'])
@login_required
def create_campaign():
    if request.method == 'POST':
        error = _validate_campaign_form()
        if error:
            flash(error, 'danger')
            return render_template('campaigns/form.html', campaign=None, form=request.form)

        campaign = Campaign(user_id=current_user.id)
        _apply_campaign_form(campaign)
        db.session.add(campaign)
        db.session.commit()

        flash(f'Campaign "{campaign.name}" created!', 'success')
        return redirect(url_for('campaigns.campaign_detail', campaign_id=campaign.id))

    return render_template('campaigns/form.html', campaign=None, form={})


@campaigns_bp.route('/<int:campaign_id>')
@login_required
def campaign_detail(campaign_id):
    campaign = owned_or_404(Campaign, campaign_id)
    return render_template('campaigns/detail.html', campaign=campaign)


@campaigns_bp.route('/<int:campaign_id>/edit', methods=['GET', 'POST'])
@login_required
def edit_campaign(campaign_id):
    campaign = owned_or_404(Campaign, campaign_id)

    if request.method == 'POST':
        error = _validate_campaign_form()
        if error:
            flash(error, 'danger')
            return render_template('campaigns/form.html', campaign=campaign, form=request.form)

        _apply_campaign_form(campaign)
        db.session.commit()
        flash(f'Campaign "{campaign.name}" updated!', 'success')
        return redirect(url_for('campaigns.campaign_detail', campaign_id=campaign.id))

    return render_template('campaigns/form.html', campaign=campaign, form={})


@campaigns_bp.route('/<int:campaign_id>/delete', methods=['POST'])
@login_required
def delete_campaign(campaign_id):
    campaign = owned_or_404(Campaign, campaign_id)
    name = campaign.name
    delete_campaign_cascade(campaign)
    flash(f'Campaign "{name}" deleted.', 'warning')
    return redirect(url_for('campaigns.list_campaigns'))
