from flask import Blueprint, render_template, redirect, url_for, request, flash
from flask_login import login_required, current_user
from chronicle import db
from chronicle.forms import form_text, form_campaign_id, user_campaigns
from chronicle.models import Note, parse_tags
from chronicle.routes import owned_or_404

notes_bp = Blueprint('notes', __name__, url_prefix='/notes')


def _apply_note_form(note):
    note.title = request.form.get('title', '').strip()
    note.content = form_text('content')
    note.tags = parse_tags(request.form.get('tags', ''))
    note.is_lorebook = 'is_lorebook' in request.form
    note.campaign_id = form_campaign_id()


def _filtered(query):
    tag = request.args.get('tag', '').strip().lower()
    notes = query.order_by(Note.updated_at.desc()).all()
    # Tags are a JSON list, so filter in Python rather than per-dialect SQL
    if tag:
        notes = [n for n in notes if tag in (n.tags or [])]
    return notes, tag


@notes_bp.route('/')
@login_required
def list_notes():
    notes, tag = _filtered(Note.query.filter_by(user_id=current_user.id))
    return render_template('notes/list.html', notes=notes, active_tag=tag, lorebook=False)


@notes_bp.route('/lorebook')
@login_required
def lorebook():
    notes, tag = _filtered(Note.query.filter_by(user_id=current_user.id, is_lorebook=True))
    return render_template('notes/list.html', notes=notes, active_tag=tag, lorebook=True)


@notes_bp.route('/new', methods=['GET', 'POST'])
@login_required
def create_note():
    if request.method == 'POST':
        if not request.form.get('title', '').strip():
            flash('Note title is required.', 'danger')
            return render_template('notes/form.html', note=None, form=request.form,
                                   campaigns=user_campaigns())

        note = Note(user_id=current_user.id)
        _apply_note_form(note)
        db.session.add(note)
        db.session.commit()

        flash(f'Note "{note.title}" created!', 'success')
        return redirect(url_for('notes.note_detail', note_id=note.id))

    form = {'is_lorebook': 'on'} if request.args.get('lorebook') else {}
    return render_template('notes/form.html', note=None, form=form, campaigns=user_campaigns())


@notes_bp.route('/<int:note_id>')
@login_required
def note_detail(note_id):
    note = owned_or_404(Note, note_id)
    return render_template('notes/detail.html', note=note)


@notes_bp.route('/<int:note_id>/edit', methods=['GET', 'POST'])
@login_required
def edit_note(note_id):
    note = owned_or_404(Note, note_id)

    if request.method == 'POST':
        if not request.form.get('title', '').strip():
            flash('Note title is required.', 'danger')
            return redirect(url_for('notes.edit_note', note_id=note.id))

        _apply_note_form(note)
        db.session.commit()

        flash(f'Note "{note.title}" updated!', 'success')
        return redirect(url_for('notes.note_detail', note_id=note.id))

    return render_template('notes/form.html', note=note, form={}, campaigns=user_campaigns())


@notes_bp.route('/<int:note_id>/delete', methods=['POST'])
@login_required
def delete_note(note_id):
    note = owned_or_404(Note, note_id)
    title = note.title
    db.session.delete(note)
    db.session.commit()
    flash(f'Note "{title}" deleted.', 'warning')
    return redirect(url_for('notes.list_notes'))
