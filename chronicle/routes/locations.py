from flask import Blueprint, render_template, redirect, url_for, request, flash
from flask_login import login_required, current_user
from chronicle import db
from chronicle.forms import (LOCATION_FIELDS, LOCATION_SIZE_CHOICES, apply_form,
                             form_campaign_id, form_ids, user_campaigns)
from chronicle.linking import create_location as create_location_cascade, delete_location as \
    delete_location_cascade, PersistenceError
from chronicle.models import Location, NPC, POI
from chronicle.records import load_generated_pois, dump_generated_pois
from chronicle.routes import owned_or_404, attach_uploaded_image

locations_bp = Blueprint('locations', __name__, url_prefix='/locations')


def _form_context(location=None, form=None, generated_pois=None):
    submitted = form is not None
    return dict(
        selected_npc_ids=set(form_ids('npc_ids')) if submitted else set(),
        selected_poi_ids=set(form_ids('poi_ids')) if submitted else set(),
        location=location,
        form=form or {},
        fields=LOCATION_FIELDS,
        size_choices=LOCATION_SIZE_CHOICES,
        campaigns=user_campaigns(),
        npcs=NPC.query.filter_by(user_id=current_user.id).order_by(NPC.name).all(),
        pois=POI.query.filter_by(user_id=current_user.id).order_by(POI.name).all(),
        generated_pois_json=dump_generated_pois(generated_pois or []),
    )


@locations_bp.route('/')
@login_required
def list_locations():
    query = Location.query.filter_by(user_id=current_user.id)
    campaign_id = request.args.get('campaign_id', type=int)
    if campaign_id:
        query = query.filter_by(campaign_id=campaign_id)
    locations = query.order_by(Location.name).all()
    return render_template('locations/list.html', locations=locations,
                           campaigns=user_campaigns(), campaign_id=campaign_id)


@locations_bp.route('/new', methods=['GET', 'POST'])
@login_required
def create_location():
    if request.method == 'POST':
        generated = load_generated_pois(request.form.get('generated_pois_json', ''))

        if not request.form.get('name', '').strip():
            flash('Location name is required.', 'danger')
            return render_template('locations/form.html',
                                   **_form_context(form=request.form, generated_pois=generated))

        try:
            report = create_location_cascade(
                current_user.id,
                request.form,
                generated_pois=generated,
                npc_ids=form_ids('npc_ids'),
                poi_ids=form_ids('poi_ids'),
                campaign_id=form_campaign_id(),
            )
        except PersistenceError as e:
            flash(str(e), 'danger')
            return render_template('locations/form.html',
                                   **_form_context(form=request.form, generated_pois=generated))

        location = report.location
        if request.files.get('image_file'):
            attach_uploaded_image(location)
            db.session.commit()
        created = len(report.pois_created)
        if created:
            flash(f'Location "{location.name}" created with {created} points of interest '
                  f'and {len(report.npcs_created)} NPCs!', 'success')
        else:
            flash(f'Location "{location.name}" created!', 'success')
        if report.partial:
            flash('Some generated entities could not be saved: ' + '; '.join(report.failures), 'warning')
        return redirect(url_for('locations.list_locations'))

    return render_template('locations/form.html', **_form_context())


@locations_bp.route('/<int:location_id>')
@login_required
def location_detail(location_id):
    location = owned_or_404(Location, location_id)
    return render_template('locations/detail.html', location=location, fields=LOCATION_FIELDS)


@locations_bp.route('/<int:location_id>/edit', methods=['GET', 'POST'])
@login_required
def edit_location(location_id):
    location = owned_or_404(Location, location_id)

    if request.method == 'POST':
        if not request.form.get('name', '').strip():
            flash('Location name is required.', 'danger')
            return redirect(url_for('locations.edit_location', location_id=location.id))

        apply_form(location, LOCATION_FIELDS)
        attach_uploaded_image(location)
        location.campaign_id = form_campaign_id()
        db.session.commit()

        flash(f'Location "{location.name}" updated!', 'success')
        return redirect(url_for('locations.location_detail', location_id=location.id))

    return render_template('locations/form.html', **_form_context(location=location))


@locations_bp.route('/<int:location_id>/delete', methods=['POST'])
@login_required
def delete_location(location_id):
    location = owned_or_404(Location, location_id)
    name = location.name
    delete_location_cascade(location)
    flash(f'Location "{name}" deleted.', 'warning')
    return redirect(url_for('locations.list_locations'))
