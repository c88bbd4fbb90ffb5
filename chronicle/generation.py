"""
chronicle/generation.py - World-entity generation on top of the AI provider

Every public function here takes the provider explicitly and returns a
GenerationResult instead of raising. Provider and parse failures are logged
with their detail; callers only ever see the generic error string.

Public API:
  parse_completion(raw)                      - pull a JSON object out of a model reply
  generate_with_ai(provider, kind, prompt)   - npc / location / item
  generate_location_entities(provider, data) - POIs with nested NPCs for a location
  generate_poi(provider, prompt)             - one standalone POI
  generate_npc(provider, prompt)             - one standalone NPC
  generate_location_draft(provider, prompt)  - location + best-effort POI expansion
"""

import json
import logging
import re
from dataclasses import dataclass, field

from chronicle.ai_provider import AIProviderError, TEMP_DEFAULT, TEMP_CREATIVE, TEMP_RANDOM
from chronicle.prompts import (
    SURPRISE_ME_PROMPT, build_system_prompt, build_location_entities_prompt,
    build_poi_prompt, build_npc_prompt,
)
from chronicle.records import GeneratedPoi, LocationDraft, coerce

logger = logging.getLogger(__name__)

GENERATION_KINDS = ('npc', 'location', 'item')

ERR_PROMPT_REQUIRED = 'Prompt is required'
ERR_GENERATE = 'Failed to generate with AI'
ERR_ENTITIES = 'Failed to generate location entities'
ERR_POI = 'Failed to generate POI'
ERR_NPC = 'Failed to generate NPC'


class PromptRequiredError(ValueError):
    """Raised before any provider call when a required prompt is blank."""
    pass


@dataclass
class GenerationResult:
    success: bool
    data: dict = None
    error: str = None

    @classmethod
    def ok(cls, data):
        return cls(True, data=data)

    @classmethod
    def fail(cls, error):
        return cls(False, error=error)

    def to_dict(self):
        if self.success:
            return {'success': True, 'data': self.data}
        return {'success': False, 'error': self.error}


@dataclass
class LocationDraftResult:
    """Outcome of the location page's generate button."""
    success: bool
    draft: LocationDraft = None
    generated_pois: list = field(default_factory=list)
    error: str = None


def parse_completion(raw):
    """Robustly extract a JSON object from a model response.

    Tries a direct parse, then a fenced code block, then everything from the
    first '{'. Anything that isn't a JSON object raises json.JSONDecodeError.
    """
    raw = (raw or '').strip()

    candidates = [raw]
    fence_match = re.search(r'```(?:json)?\s*\n([\s\S]*?)\n```', raw)
    if fence_match:
        candidates.append(fence_match.group(1).strip())
    brace_idx = raw.find('{')
    if brace_idx > 0:
        candidates.append(raw[brace_idx:])

    for candidate in candidates:
        try:
            result = json.loads(candidate)
        except json.JSONDecodeError:
            continue
        if isinstance(result, dict):
            return result

    preview = raw[:300].replace('\n', ' ') if raw else '(empty response)'
    raise json.JSONDecodeError(f'No valid JSON object found. Model returned: {preview}', raw, 0)


def _require_prompt(prompt):
    if not prompt or not prompt.strip():
        raise PromptRequiredError(ERR_PROMPT_REQUIRED)
    return prompt.strip()


def _complete(provider, system_prompt, user_prompt, temperature):
    raw = provider.chat(system_prompt, user_prompt, temperature=temperature, json_mode=True)
    return parse_completion(raw)


def generate_with_ai(provider, kind, prompt, full_details=False):
    """Generate one npc, location or item from a free-text description.

    A blank location prompt is replaced by the fixed surprise-me sentence and
    sampled at the fully random temperature. Blank prompts for other kinds
    fail without calling the provider.
    """
    if kind not in GENERATION_KINDS:
        return GenerationResult.fail(f'Unknown entity type: {kind}')

    temperature = TEMP_DEFAULT
    if kind == 'location' and not (prompt or '').strip():
        user_prompt = SURPRISE_ME_PROMPT
        temperature = TEMP_RANDOM
    else:
        try:
            user_prompt = _require_prompt(prompt)
        except PromptRequiredError as e:
            return GenerationResult.fail(str(e))

    system_prompt = build_system_prompt(kind, full_details=full_details)
    try:
        data = _complete(provider, system_prompt, user_prompt, temperature)
    except AIProviderError as e:
        logger.error('Generation of %s failed at the provider: %s', kind, e)
        return GenerationResult.fail(ERR_GENERATE)
    except json.JSONDecodeError as e:
        logger.error('Generation of %s returned unparsable output: %s', kind, e.msg)
        return GenerationResult.fail(ERR_GENERATE)

    return GenerationResult.ok(data)


def generate_location_entities(provider, location_data):
    """Ask for 3-8 POIs, each with 1-3 NPCs, fitting a location's demographics.

    location_data keys: name, type, inhabitants, population, points_of_interest.
    On success data is {'pois': [GeneratedPoi, ...]}.
    """
    system_prompt, user_prompt = build_location_entities_prompt(
        name=location_data.get('name') or '',
        type=location_data.get('type'),
        inhabitants=location_data.get('inhabitants'),
        population=location_data.get('population'),
        points_of_interest=location_data.get('points_of_interest'),
    )
    try:
        data = _complete(provider, system_prompt, user_prompt, TEMP_CREATIVE)
    except AIProviderError as e:
        logger.error('Location entity generation failed at the provider: %s', e)
        return GenerationResult.fail(ERR_ENTITIES)
    except json.JSONDecodeError as e:
        logger.error('Location entity generation returned unparsable output: %s', e.msg)
        return GenerationResult.fail(ERR_ENTITIES)

    raw_pois = data.get('pois')
    if not isinstance(raw_pois, list):
        raw_pois = []
    pois = [GeneratedPoi.from_json(p) for p in raw_pois if isinstance(p, dict)]
    return GenerationResult.ok({'pois': pois})


def _generate_single(provider, prompts, prompt, error, label):
    try:
        user_input = _require_prompt(prompt)
    except PromptRequiredError as e:
        return GenerationResult.fail(str(e))

    system_prompt, user_prompt = prompts(user_input)
    try:
        data = _complete(provider, system_prompt, user_prompt, TEMP_CREATIVE)
    except (AIProviderError, json.JSONDecodeError) as e:
        logger.error('%s generation failed: %s', label, e)
        return GenerationResult.fail(error)
    return GenerationResult.ok(data)


def generate_poi(provider, prompt):
    return _generate_single(provider, build_poi_prompt, prompt, ERR_POI, 'POI')


def generate_npc(provider, prompt):
    return _generate_single(provider, build_npc_prompt, prompt, ERR_NPC, 'NPC')


def generate_location_draft(provider, prompt, full_details=False):
    """Generate a location and, when it mentions POIs or inhabitants, its POIs and NPCs.

    Expansion is best-effort: if it fails the draft still succeeds with no
    generated POIs.
    """
    result = generate_with_ai(provider, 'location', prompt, full_details=full_details)
    if not result.success:
        return LocationDraftResult(False, error=result.error)

    data = result.data
    draft = coerce(LocationDraft, data)
    generated = []

    if draft.wants_expansion:
        expansion = generate_location_entities(provider, {
            'name': draft.name,
            'type': draft.type,
            'inhabitants': draft.inhabitants or draft.population,
            'population': draft.population,
            'points_of_interest': draft.points_of_interest,
        })
        if expansion.success:
            generated = expansion.data['pois']
        else:
            logger.warning('Continuing without generated POIs for "%s": %s',
                           draft.name, expansion.error)

    return LocationDraftResult(True, draft=draft, generated_pois=generated)
