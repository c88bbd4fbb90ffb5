"""
chronicle/routes/images.py - Image generation endpoint

POST /api/images/generate-image
  { "prompt": "...", "is_map": false }            - explicit subject
  { "location": { "name": ..., ... }, "is_map": true } - subject built from location form values

Returns { "success": true, "imageUrl": "..." } with the stored file's public URL.
"""

from flask import Blueprint, request, jsonify, current_app
from flask_login import login_required

from chronicle.image_provider import generate_image as render_and_store, get_image_provider, is_image_enabled
from chronicle.prompts import location_image_prompt, location_map_prompt
from chronicle.storage import get_storage

images_bp = Blueprint('images', __name__, url_prefix='/api/images')


@images_bp.route('/generate-image', methods=['POST'])
@login_required
def generate_image():
    if not is_image_enabled():
        return jsonify({'error': 'Image generation is not configured. Set IMAGE_PROVIDER.'}), 403

    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        return jsonify({'error': 'Request must be JSON.'}), 400

    is_map = bool(data.get('is_map'))
    location = data.get('location')
    if isinstance(location, dict):
        fields = {k: str(v) for k, v in location.items() if isinstance(v, (str, int, float))}
        prompt = location_map_prompt(fields) if is_map else location_image_prompt(fields)
    else:
        prompt = str(data.get('prompt') or '')

    if not prompt.strip():
        return jsonify({'error': 'Please fill in some details first.'}), 400

    result = render_and_store(get_image_provider(), get_storage(), prompt, is_map=is_map,
                              bucket=current_app.config['IMAGE_BUCKET'])
    if not result.success:
        return jsonify(result.to_dict()), 500
    return jsonify(result.to_dict())
