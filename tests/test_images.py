import pytest

from chronicle.image_provider import (
    EXTENSION_KEY, ImageProvider, ImageProviderError, generate_image,
)
from chronicle.prompts import IMAGE_ART_TEMPLATE

from conftest import FakeImageProvider, MemoryStorage


def test_provider_from_config():
    assert ImageProvider.from_config({'IMAGE_PROVIDER': 'openai', 'OPENAI_API_KEY': 'k'}).enabled
    assert not ImageProvider.from_config({'IMAGE_PROVIDER': 'openai'}).enabled
    sd = ImageProvider.from_config({'IMAGE_PROVIDER': 'sd', 'SD_URL': ' http://localhost:7860 '})
    assert sd.enabled
    assert sd.extension == 'png'
    assert not ImageProvider.from_config({'IMAGE_PROVIDER': 'none'}).enabled


def test_unconfigured_provider_raises():
    with pytest.raises(ImageProviderError):
        ImageProvider('none').generate('a harbor')


def test_generate_image_stores_under_a_random_key():
    provider, storage = FakeImageProvider(), MemoryStorage()

    result = generate_image(provider, storage, ' a stormy harbor ')

    assert result.success
    (bucket, key), = storage.objects
    assert bucket == 'images'
    assert key.startswith('generated-images/') and key.endswith('.webp')
    assert result.to_dict() == {'success': True, 'imageUrl': f'https://storage.test/images/{key}'}
    assert provider.prompts == [IMAGE_ART_TEMPLATE.format(prompt='a stormy harbor')]


def test_map_keyword_switches_template():
    provider = FakeImageProvider()

    generate_image(provider, MemoryStorage(), 'map of the Sunken Coast')

    assert provider.prompts[0].startswith('A top-down fantasy RPG map showing map of the Sunken Coast')


@pytest.mark.parametrize('provider,storage', [
    (FakeImageProvider(error='content policy'), MemoryStorage()),
    (FakeImageProvider(), MemoryStorage(fail=True)),
])
def test_failures_become_results(provider, storage):
    result = generate_image(provider, storage, 'a harbor')

    assert result.success is False
    assert result.error.startswith('Failed to generate image: ')


def test_blank_prompt_is_rejected_without_a_call():
    provider = FakeImageProvider()

    result = generate_image(provider, MemoryStorage(), '   ')

    assert result.error == 'Failed to generate image: Prompt is required'
    assert provider.prompts == []


def test_route_builds_prompt_from_location_fields(logged_in, images, storage):
    response = logged_in.post('/api/images/generate-image', json={
        'location': {'name': 'Thornwood Hollow', 'type': 'Village', 'description': 'Round doors.'},
        'is_map': False,
    })

    assert response.status_code == 200
    assert response.get_json()['imageUrl'].startswith('https://storage.test/images/generated-images/')
    assert 'Thornwood Hollow, a Village, Round doors.' in images.prompts[0]


def test_route_map_mode(logged_in, images, storage):
    logged_in.post('/api/images/generate-image', json={
        'location': {'name': 'Thornwood Hollow', 'points_of_interest': 'The Burrow Inn\nMossy Shrine'},
        'is_map': True,
    })

    assert 'legend: The Burrow Inn, Mossy Shrine' in images.prompts[0]
    assert images.prompts[0].startswith('A top-down fantasy RPG map')


def test_route_needs_some_details(logged_in, images, storage):
    response = logged_in.post('/api/images/generate-image', json={'location': {'name': ''}})

    assert response.status_code == 400
    assert images.prompts == []


def test_route_failure(logged_in, app, storage):
    app.extensions[EXTENSION_KEY] = FakeImageProvider(error='boom')

    response = logged_in.post('/api/images/generate-image', json={'prompt': 'a harbor'})

    assert response.status_code == 500
    assert response.get_json()['success'] is False


def test_route_reports_missing_configuration(logged_in, app):
    app.extensions[EXTENSION_KEY] = FakeImageProvider(enabled=False)

    response = logged_in.post('/api/images/generate-image', json={'prompt': 'a harbor'})

    assert response.status_code == 403
