"""
chronicle/image_provider.py - Image generation for location art and maps

Backends:
  - openai: gpt-image-1 via the official SDK, returns base64 WebP
  - sd: AUTOMATIC1111 WebUI txt2img API (run it with --api), returns base64 PNG

generate_image() wraps the subject in the illustration or map template,
renders it, and uploads the bytes to object storage under a random key.
"""

import base64
import logging
from dataclasses import dataclass

import requests
from flask import current_app

from chronicle.prompts import build_image_prompt, is_map_prompt
from chronicle.storage import StorageError, random_key

logger = logging.getLogger(__name__)

EXTENSION_KEY = 'chronicle.images'
IMAGE_PREFIX = 'generated-images'


class ImageProviderError(Exception):
    """Raised when an image generation call fails."""
    pass


class ImageProvider:
    def __init__(self, provider, api_key=None, model=None, base_url=None):
        self.provider = provider
        self.api_key = api_key
        self.model = model
        self.base_url = base_url
        self._client = None

    @classmethod
    def from_config(cls, config):
        provider = (config.get('IMAGE_PROVIDER') or 'none').lower()
        if provider == 'openai':
            return cls('openai', api_key=config.get('OPENAI_API_KEY'),
                       model=config.get('OPENAI_IMAGE_MODEL') or 'gpt-image-1')
        if provider == 'sd':
            return cls('sd', base_url=(config.get('SD_URL') or '').strip())
        return cls('none')

    @property
    def enabled(self):
        if self.provider == 'openai':
            return bool(self.api_key)
        if self.provider == 'sd':
            return bool(self.base_url)
        return False

    @property
    def extension(self):
        return 'png' if self.provider == 'sd' else 'webp'

    @property
    def content_type(self):
        return f'image/{self.extension}'

    def generate(self, prompt):
        """Render prompt and return the raw image bytes.

        Raises:
            ImageProviderError: if unconfigured, the call fails, or no image comes back.
        """
        if self.provider == 'openai':
            b64 = self._call_openai(prompt)
        elif self.provider == 'sd':
            b64 = self._call_sd(prompt)
        else:
            raise ImageProviderError('No image provider configured. Set IMAGE_PROVIDER.')

        if not b64:
            raise ImageProviderError('No image generated')
        return base64.b64decode(b64)

    def _call_openai(self, prompt):
        if not self.api_key:
            raise ImageProviderError('OpenAI API key is not set.')
        try:
            if self._client is None:
                from openai import OpenAI
                self._client = OpenAI(api_key=self.api_key)
            response = self._client.images.generate(
                model=self.model,
                prompt=prompt,
                size='1024x1024',
                quality='medium',
                output_format='webp',
                output_compression=90,
            )
        except Exception as e:
            raise ImageProviderError(f'OpenAI image error: {e}') from e

        if not response.data:
            return None
        return response.data[0].b64_json

    def _call_sd(self, prompt):
        url = self.base_url.rstrip('/')
        payload = {
            'prompt': prompt,
            'negative_prompt': 'blurry, low quality, deformed, text, watermark, signature, extra limbs',
            'steps': 4,
            'width': 1024,
            'height': 1024,
            'cfg_scale': 2,
            'sampler_name': 'DPM++ SDE Karras',
            'seed': -1,
        }
        try:
            resp = requests.post(f'{url}/sdapi/v1/txt2img', json=payload, timeout=120)
            resp.raise_for_status()
            data = resp.json()
        except requests.ConnectionError:
            raise ImageProviderError(
                f'Cannot connect to Stable Diffusion at {url}. '
                'Make sure AUTOMATIC1111 is running with --api flag.'
            )
        except requests.Timeout:
            raise ImageProviderError('Image generation timed out. Try again or use a simpler prompt.')
        except requests.HTTPError as e:
            raise ImageProviderError(f'Stable Diffusion returned an error: {e}')
        except ValueError as e:
            raise ImageProviderError(f'Unexpected response from Stable Diffusion: {e}')

        images = data.get('images') or []
        return images[0] if images else None


@dataclass
class ImageResult:
    success: bool
    image_url: str = None
    error: str = None

    def to_dict(self):
        if self.success:
            return {'success': True, 'imageUrl': self.image_url}
        return {'success': False, 'error': self.error}


def generate_image(provider, storage, prompt, is_map=False, bucket='images'):
    """Generate an illustration (or a map) and store it. Never raises."""
    if not prompt or not prompt.strip():
        return ImageResult(False, error='Failed to generate image: Prompt is required')

    map_mode = is_map_prompt(prompt, is_map)
    final_prompt = build_image_prompt(prompt.strip(), map_mode)
    logger.info('Generating %s image (%d char prompt)', 'map' if map_mode else 'art', len(final_prompt))

    try:
        image_bytes = provider.generate(final_prompt)
        key = random_key(IMAGE_PREFIX, provider.extension)
        url = storage.upload(bucket, key, image_bytes, provider.content_type)
    except (ImageProviderError, StorageError) as e:
        logger.error('Image generation failed: %s', e)
        return ImageResult(False, error=f'Failed to generate image: {e}')

    return ImageResult(True, image_url=url)


def get_image_provider():
    return current_app.extensions[EXTENSION_KEY]


def is_image_enabled():
    provider = current_app.extensions.get(EXTENSION_KEY)
    return bool(provider and provider.enabled)
