from flask import request, flash
from flask_login import current_user

from chronicle.storage import StorageError, save_image_upload


def owned_or_404(model, obj_id):
    """Fetch a row belonging to the current user, or 404."""
    return model.query.filter_by(id=obj_id, user_id=current_user.id).first_or_404()


def attach_uploaded_image(obj):
    """If the form carried an image_file, store it and point obj.image_url at it."""
    try:
        url = save_image_upload(request.files.get('image_file'))
    except StorageError as e:
        flash(f'Image upload failed: {e}', 'warning')
        return
    if url:
        obj.image_url = url
