from flask import Blueprint, render_template, redirect, url_for, request, flash
from flask_login import login_required, current_user
from chronicle import db
from chronicle.forms import ITEM_FIELDS, ITEM_RARITY_CHOICES, apply_form, form_campaign_id, user_campaigns
from chronicle.models import Item
from chronicle.routes import owned_or_404, attach_uploaded_image

items_bp = Blueprint('items', __name__, url_prefix='/items')


def _form_context(item=None, form=None):
    return dict(item=item, form=form or {}, fields=ITEM_FIELDS,
                rarity_choices=ITEM_RARITY_CHOICES, campaigns=user_campaigns())


@items_bp.route('/')
@login_required
def list_items():
    query = Item.query.filter_by(user_id=current_user.id)
    rarity = request.args.get('rarity', '').strip()
    if rarity:
        query = query.filter_by(rarity=rarity)
    items = query.order_by(Item.name).all()
    return render_template('items/list.html', items=items, rarity_choices=ITEM_RARITY_CHOICES,
                           active_rarity=rarity)


@items_bp.route('/new', methods=['GET', 'POST'])
@login_required
def create_item():
    if request.method == 'POST':
        if not request.form.get('name', '').strip():
            flash('Item name is required.', 'danger')
            return render_template('items/form.html', **_form_context(form=request.form))

        item = Item(user_id=current_user.id)
        apply_form(item, ITEM_FIELDS)
        attach_uploaded_image(item)
        item.campaign_id = form_campaign_id()
        db.session.add(item)
        db.session.commit()

        flash(f'Item "{item.name}" created!', 'success')
        return redirect(url_for('items.item_detail', item_id=item.id))

    return render_template('items/form.html', **_form_context())


@items_bp.route('/<int:item_id>')
@login_required
def item_detail(item_id):
    item = owned_or_404(Item, item_id)
    return render_template('items/detail.html', item=item, fields=ITEM_FIELDS)


@items_bp.route('/<int:item_id>/edit', methods=['GET', 'POST'])
@login_required
def edit_item(item_id):
    item = owned_or_404(Item, item_id)

    if request.method == 'POST':
        if not request.form.get('name', '').strip():
            flash('Item name is required.', 'danger')
            return redirect(url_for('items.edit_item', item_id=item.id))

        apply_form(item, ITEM_FIELDS)
        attach_uploaded_image(item)
        item.campaign_id = form_campaign_id()
        db.session.commit()

        flash(f'Item "{item.name}" updated!', 'success')
        return redirect(url_for('items.item_detail', item_id=item.id))

    return render_template('items/form.html', **_form_context(item=item))


@items_bp.route('/<int:item_id>/delete', methods=['POST'])
@login_required
def delete_item(item_id):
    item = owned_or_404(Item, item_id)
    name = item.name
    db.session.delete(item)
    db.session.commit()
    flash(f'Item "{name}" deleted.', 'warning')
    return redirect(url_for('items.list_items'))
