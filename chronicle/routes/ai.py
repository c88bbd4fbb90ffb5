"""
chronicle/routes/ai.py - JSON endpoints behind the "Generate with AI" buttons

  POST /api/ai/generate                    - npc / location / item from a description
  POST /api/ai/generate-location           - location draft plus generated POIs and NPCs
  POST /api/ai/generate-location-entities  - POIs and NPCs for existing location details
  POST /api/ai/generate-poi                - one POI
  POST /api/ai/generate-npc                - one NPC

Responses carry form-ready strings (every field present, '' when the model
left it out). If no AI provider is configured, every endpoint returns a 403.
"""

from dataclasses import asdict

from flask import Blueprint, request, jsonify
from flask_login import login_required

from chronicle.ai_provider import get_ai_provider, is_ai_enabled
from chronicle.generation import (
    GENERATION_KINDS, ERR_PROMPT_REQUIRED, generate_with_ai, generate_location_draft,
    generate_location_entities, generate_poi, generate_npc,
)
from chronicle.records import DRAFT_TYPES, NpcDraft, PoiDraft, coerce, dump_generated_pois

ai_bp = Blueprint('ai', __name__, url_prefix='/api/ai')

MAX_PROMPT_CHARS = 2000


def _not_configured():
    return jsonify({'error': 'AI features are not configured. Set AI_PROVIDER and its API key.'}), 403


def _read_json():
    """Return (data, error_response). data is a dict when the body is usable."""
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        return None, (jsonify({'error': 'Request must be JSON.'}), 400)
    prompt = data.get('prompt')
    if prompt is not None and not isinstance(prompt, str):
        return None, (jsonify({'error': 'Prompt must be a string.'}), 400)
    if prompt and len(prompt) > MAX_PROMPT_CHARS:
        return None, (jsonify({'error': f'Prompt is too long (max ~{MAX_PROMPT_CHARS} characters).'}), 400)
    return data, None


def _failure(result):
    status = 400 if result.error == ERR_PROMPT_REQUIRED else 500
    return jsonify({'success': False, 'error': result.error}), status


@ai_bp.route('/generate', methods=['POST'])
@login_required
def generate():
    """
    Accepts JSON body: { "kind": "npc", "prompt": "a grizzled dwarven blacksmith", "full_details": false }
    Returns JSON: { "success": true, "data": { "name": "...", ... } }
    """
    if not is_ai_enabled():
        return _not_configured()
    data, error = _read_json()
    if error:
        return error

    kind = str(data.get('kind', '')).strip().lower()
    if kind not in GENERATION_KINDS:
        return jsonify({'error': f'Unknown entity type: {kind}'}), 400

    result = generate_with_ai(get_ai_provider(), kind, data.get('prompt') or '',
                              full_details=bool(data.get('full_details')))
    if not result.success:
        return _failure(result)
    return jsonify({'success': True, 'data': asdict(coerce(DRAFT_TYPES[kind], result.data))})


@ai_bp.route('/generate-location', methods=['POST'])
@login_required
def generate_location():
    """Location page flow. A blank prompt means "surprise me"."""
    if not is_ai_enabled():
        return _not_configured()
    data, error = _read_json()
    if error:
        return error

    result = generate_location_draft(get_ai_provider(), data.get('prompt') or '',
                                     full_details=bool(data.get('full_details')))
    if not result.success:
        return jsonify({'success': False, 'error': result.error}), 500

    return jsonify({
        'success': True,
        'data': asdict(result.draft),
        'generated_pois': [poi.to_json() for poi in result.generated_pois],
        'generated_pois_json': dump_generated_pois(result.generated_pois),
    })


@ai_bp.route('/generate-location-entities', methods=['POST'])
@login_required
def location_entities():
    if not is_ai_enabled():
        return _not_configured()
    data, error = _read_json()
    if error:
        return error

    if not str(data.get('name', '')).strip():
        return jsonify({'error': 'Location name is required.'}), 400

    location_data = {key: str(data.get(key) or '') for key in
                     ('name', 'type', 'inhabitants', 'population', 'points_of_interest')}
    result = generate_location_entities(get_ai_provider(), location_data)
    if not result.success:
        return _failure(result)

    pois = result.data['pois']
    return jsonify({
        'success': True,
        'data': {'pois': [poi.to_json() for poi in pois]},
        'generated_pois_json': dump_generated_pois(pois),
    })


@ai_bp.route('/generate-poi', methods=['POST'])
@login_required
def poi():
    if not is_ai_enabled():
        return _not_configured()
    data, error = _read_json()
    if error:
        return error

    result = generate_poi(get_ai_provider(), data.get('prompt') or '')
    if not result.success:
        return _failure(result)
    return jsonify({'success': True, 'data': asdict(coerce(PoiDraft, result.data))})


@ai_bp.route('/generate-npc', methods=['POST'])
@login_required
def npc():
    if not is_ai_enabled():
        return _not_configured()
    data, error = _read_json()
    if error:
        return error

    result = generate_npc(get_ai_provider(), data.get('prompt') or '')
    if not result.success:
        return _failure(result)
    return jsonify({'success': True, 'data': asdict(coerce(NpcDraft, result.data))})
