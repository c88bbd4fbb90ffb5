from flask import Blueprint, render_template, redirect, url_for, request, flash
from flask_login import login_required, current_user
from chronicle import db
from chronicle.forms import POI_FIELDS, apply_form, form_campaign_id, form_ids, form_int, user_campaigns
from chronicle.linking import link_npcs_to_poi, set_poi_npcs, poi_npc_count, delete_poi as delete_poi_cascade
from chronicle.models import POI, Location, NPC
from chronicle.routes import owned_or_404, attach_uploaded_image

pois_bp = Blueprint('pois', __name__, url_prefix='/pois')


def _form_context(poi=None, form=None):
    return dict(
        poi=poi,
        form=form or {},
        fields=POI_FIELDS,
        campaigns=user_campaigns(),
        locations=Location.query.filter_by(user_id=current_user.id).order_by(Location.name).all(),
        npcs=NPC.query.filter_by(user_id=current_user.id).order_by(NPC.name).all(),
        linked_ids={link.npc_id for link in poi.npc_links} if poi else set(),
    )


@pois_bp.route('/')
@login_required
def list_pois():
    query = POI.query.filter_by(user_id=current_user.id)
    location_id = request.args.get('location_id', type=int)
    if location_id:
        query = query.filter_by(location_id=location_id)
    pois = query.order_by(POI.name).all()
    return render_template('pois/list.html', pois=pois, location_id=location_id)


@pois_bp.route('/new', methods=['GET', 'POST'])
@login_required
def create_poi():
    if request.method == 'POST':
        name = request.form.get('name', '').strip()
        location = Location.query.filter_by(id=form_int('location_id'), user_id=current_user.id).first()
        if not name or not location:
            flash('POI name and location are required.', 'danger')
            return render_template('pois/form.html', **_form_context(form=request.form))

        poi = POI(user_id=current_user.id, location_id=location.id)
        apply_form(poi, POI_FIELDS)
        attach_uploaded_image(poi)
        poi.campaign_id = form_campaign_id() or location.campaign_id
        db.session.add(poi)
        db.session.flush()

        link_npcs_to_poi(poi, form_ids('npc_ids'), request.form.get('role'))
        db.session.commit()

        flash(f'POI "{poi.name}" created!', 'success')
        return redirect(url_for('pois.poi_detail', poi_id=poi.id))

    form = {'location_id': request.args.get('location_id', '')}
    return render_template('pois/form.html', **_form_context(form=form))


@pois_bp.route('/<int:poi_id>')
@login_required
def poi_detail(poi_id):
    poi = owned_or_404(POI, poi_id)
    return render_template('pois/detail.html', poi=poi, fields=POI_FIELDS,
                           npc_count=poi_npc_count(poi))


@pois_bp.route('/<int:poi_id>/edit', methods=['GET', 'POST'])
@login_required
def edit_poi(poi_id):
    poi = owned_or_404(POI, poi_id)

    if request.method == 'POST':
        if not request.form.get('name', '').strip():
            flash('POI name is required.', 'danger')
            return redirect(url_for('pois.edit_poi', poi_id=poi.id))

        # Location is fixed once the POI exists
        apply_form(poi, POI_FIELDS)
        attach_uploaded_image(poi)
        poi.campaign_id = form_campaign_id()
        set_poi_npcs(poi, form_ids('npc_ids'), request.form.get('role'))
        db.session.commit()

        flash(f'POI "{poi.name}" updated!', 'success')
        return redirect(url_for('pois.poi_detail', poi_id=poi.id))

    return render_template('pois/form.html', **_form_context(poi=poi))


@pois_bp.route('/<int:poi_id>/delete', methods=['POST'])
@login_required
def delete_poi(poi_id):
    poi = owned_or_404(POI, poi_id)
    name = poi.name
    location_id = poi.location_id
    delete_poi_cascade(poi)
    flash(f'POI "{name}" deleted.', 'warning')
    return redirect(url_for('locations.location_detail', location_id=location_id))
