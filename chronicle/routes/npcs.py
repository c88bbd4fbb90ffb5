from flask import Blueprint, render_template, redirect, url_for, request, flash
from flask_login import login_required, current_user
from chronicle import db
from chronicle.forms import (NPC_FIELDS, NPC_TYPE_CHOICES, NPC_STATUS_CHOICES, ABILITY_KEYS,
                             apply_form, form_ability_scores, form_campaign_id, user_campaigns)
from chronicle.linking import delete_npc as delete_npc_cascade
from chronicle.models import NPC, Location, POI
from chronicle.records import NpcPlacement, PLACEMENT_NOT_FOUND
from chronicle.routes import owned_or_404, attach_uploaded_image

npcs_bp = Blueprint('npcs', __name__, url_prefix='/npcs')


def _form_context(npc=None, form=None):
    return dict(
        npc=npc,
        form=form or {},
        fields=NPC_FIELDS,
        ability_keys=ABILITY_KEYS,
        type_choices=NPC_TYPE_CHOICES,
        status_choices=NPC_STATUS_CHOICES,
        campaigns=user_campaigns(),
        locations=Location.query.filter_by(user_id=current_user.id).order_by(Location.name).all(),
        pois=POI.query.filter_by(user_id=current_user.id).order_by(POI.name).all(),
    )


def _resolve_placement():
    """Read the location/POI selects. Returns (placement, error message)."""
    try:
        placement = NpcPlacement.from_form(request.form.get('location_id', ''),
                                           request.form.get('poi_id', ''))
    except ValueError as e:
        return None, str(e)

    model = {'location': Location, 'poi': POI}.get(placement.kind)
    if model and not model.query.filter_by(id=placement.target_id, user_id=current_user.id).first():
        return None, PLACEMENT_NOT_FOUND
    return placement, None


def _apply_npc_form(npc, placement):
    apply_form(npc, NPC_FIELDS)
    attach_uploaded_image(npc)
    npc.ability_scores = form_ability_scores()
    npc.status = npc.status or 'alive'
    npc.campaign_id = form_campaign_id()
    placement.apply(npc)


@npcs_bp.route('/')
@login_required
def list_npcs():
    query = NPC.query.filter_by(user_id=current_user.id)
    npc_type = request.args.get('type', '').strip()
    if npc_type:
        query = query.filter_by(npc_type=npc_type)
    npcs = query.order_by(NPC.name).all()
    return render_template('npcs/list.html', npcs=npcs, type_choices=NPC_TYPE_CHOICES,
                           active_type=npc_type)


@npcs_bp.route('/new', methods=['GET', 'POST'])
@login_required
def create_npc():
    if request.method == 'POST':
        if not request.form.get('name', '').strip():
            flash('NPC name is required.', 'danger')
            return render_template('npcs/form.html', **_form_context(form=request.form))

        placement, error = _resolve_placement()
        if error:
            flash(error, 'danger')
            return render_template('npcs/form.html', **_form_context(form=request.form))

        npc = NPC(user_id=current_user.id)
        _apply_npc_form(npc, placement)
        db.session.add(npc)
        db.session.commit()

        flash(f'NPC "{npc.name}" created!', 'success')
        return redirect(url_for('npcs.npc_detail', npc_id=npc.id))

    return render_template('npcs/form.html', **_form_context())


@npcs_bp.route('/<int:npc_id>')
@login_required
def npc_detail(npc_id):
    npc = owned_or_404(NPC, npc_id)
    return render_template('npcs/detail.html', npc=npc, fields=NPC_FIELDS, ability_keys=ABILITY_KEYS)


@npcs_bp.route('/<int:npc_id>/edit', methods=['GET', 'POST'])
@login_required
def edit_npc(npc_id):
    npc = owned_or_404(NPC, npc_id)

    if request.method == 'POST':
        if not request.form.get('name', '').strip():
            flash('NPC name is required.', 'danger')
            return redirect(url_for('npcs.edit_npc', npc_id=npc.id))

        placement, error = _resolve_placement()
        if error:
            flash(error, 'danger')
            return redirect(url_for('npcs.edit_npc', npc_id=npc.id))

        _apply_npc_form(npc, placement)
        db.session.commit()

        flash(f'NPC "{npc.name}" updated!', 'success')
        return redirect(url_for('npcs.npc_detail', npc_id=npc.id))

    return render_template('npcs/form.html', **_form_context(npc=npc))


@npcs_bp.route('/<int:npc_id>/delete', methods=['POST'])
@login_required
def delete_npc(npc_id):
    npc = owned_or_404(NPC, npc_id)
    name = npc.name
    delete_npc_cascade(npc)
    flash(f'NPC "{name}" deleted.', 'warning')
    return redirect(url_for('npcs.list_npcs'))
