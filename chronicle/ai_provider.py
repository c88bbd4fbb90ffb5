"""
chronicle/ai_provider.py - Provider-agnostic chat-completion client

Supports three backends:
  - OpenAI (cloud, default) - official openai SDK, JSON-object response format
  - Ollama (local, free) - talks to the Ollama REST API
  - Anthropic (cloud) - official anthropic SDK

One AIProvider is built from the app config in create_app() and stored in
app.extensions['chronicle.ai']. Request code gets it with get_ai_provider();
tests swap in a fake with the same chat() signature.

Public API:
  AIProvider.from_config(config)  - build a provider from a config mapping
  AIProvider.chat(...)            - send one system+user prompt, get a string back
  get_ai_provider()               - the provider bound to the current app
  is_ai_enabled()                 - True if the bound provider has credentials
"""

import json
import logging

import requests
from flask import current_app

logger = logging.getLogger(__name__)

# Sampling temperatures per call site
TEMP_DEFAULT = 0.8    # entity generation from a user description
TEMP_CREATIVE = 0.9   # POI / NPC / location-entity expansion
TEMP_RANDOM = 1.0     # blank-prompt "surprise me" location

EXTENSION_KEY = 'chronicle.ai'


class AIProviderError(Exception):
    """Raised when an AI provider call fails."""
    pass


class AIProvider:
    """A single configured completion backend.

    No retries, no streaming: every chat() call is one blocking request.
    """

    def __init__(self, provider, api_key=None, model=None, base_url=None, timeout=300):
        self.provider = provider
        self.api_key = api_key
        self.model = model
        self.base_url = base_url
        self.timeout = timeout
        self._client = None

    @classmethod
    def from_config(cls, config):
        provider = (config.get('AI_PROVIDER') or 'none').lower()
        if provider == 'openai':
            return cls('openai', api_key=config.get('OPENAI_API_KEY'),
                       model=config.get('OPENAI_MODEL') or 'gpt-4o-mini')
        if provider == 'ollama':
            return cls('ollama', model=config.get('OLLAMA_MODEL') or 'llama3.1',
                       base_url=config.get('OLLAMA_URL') or 'http://localhost:11434')
        if provider == 'anthropic':
            return cls('anthropic', api_key=config.get('ANTHROPIC_API_KEY'),
                       model=config.get('ANTHROPIC_MODEL'))
        return cls('none')

    @property
    def enabled(self):
        if self.provider == 'ollama':
            return bool(self.base_url)
        if self.provider in ('openai', 'anthropic'):
            return bool(self.api_key)
        return False

    def chat(self, system_prompt, user_prompt, temperature=TEMP_DEFAULT, json_mode=True):
        """Send a system + user prompt and return the assistant's content string.

        Raises:
            AIProviderError: if no provider is configured, the call fails,
                             or the provider returns an empty body.
        """
        if self.provider == 'openai':
            content = self._call_openai(system_prompt, user_prompt, temperature, json_mode)
        elif self.provider == 'ollama':
            content = self._call_ollama(system_prompt, user_prompt, temperature, json_mode)
        elif self.provider == 'anthropic':
            content = self._call_anthropic(system_prompt, user_prompt, temperature)
        else:
            raise AIProviderError('No AI provider configured. Set AI_PROVIDER and its API key.')

        if not content:
            raise AIProviderError('No response from AI')
        return content

    def _openai_client(self):
        if self._client is None:
            from openai import OpenAI
            self._client = OpenAI(api_key=self.api_key)
        return self._client

    def _call_openai(self, system_prompt, user_prompt, temperature, json_mode):
        if not self.api_key:
            raise AIProviderError('OpenAI API key is not set.')

        kwargs = {
            'model': self.model,
            'messages': [
                {'role': 'system', 'content': system_prompt},
                {'role': 'user', 'content': user_prompt},
            ],
            'temperature': temperature,
        }
        if json_mode:
            kwargs['response_format'] = {'type': 'json_object'}

        try:
            completion = self._openai_client().chat.completions.create(**kwargs)
        except Exception as e:
            raise AIProviderError(f'OpenAI API error: {e}') from e

        if not completion.choices:
            return ''
        return completion.choices[0].message.content or ''

    def _call_ollama(self, system_prompt, user_prompt, temperature, json_mode):
        """Call the Ollama REST API."""
        url = self.base_url.rstrip('/')
        payload = {
            'model': self.model,
            'messages': [
                {'role': 'system', 'content': system_prompt},
                {'role': 'user', 'content': user_prompt},
            ],
            'stream': False,
            'options': {'temperature': temperature},
            'keep_alive': '30m',  # Keep model loaded in VRAM for 30 min
        }
        # Constrains output to valid JSON at the token level
        if json_mode:
            payload['format'] = 'json'

        try:
            resp = requests.post(f'{url}/api/chat', json=payload, timeout=self.timeout)
            # Ollama returns 404 when the model isn't pulled
            if resp.status_code == 404:
                raise AIProviderError(
                    f'Model "{self.model}" not found on Ollama server. '
                    f'Pull it first: ollama pull {self.model}'
                )
            resp.raise_for_status()
            data = resp.json()
            return data.get('message', {}).get('content', '')
        except AIProviderError:
            raise
        except requests.ConnectionError:
            raise AIProviderError(
                f'Cannot connect to Ollama at {url}. '
                'Make sure the Ollama server is running.'
            )
        except requests.Timeout:
            raise AIProviderError('Ollama request timed out. The model may be loading or the server is slow.')
        except requests.HTTPError as e:
            raise AIProviderError(f'Ollama returned an error: {e}')
        except (KeyError, json.JSONDecodeError) as e:
            raise AIProviderError(f'Unexpected response from Ollama: {e}')

    def _call_anthropic(self, system_prompt, user_prompt, temperature):
        """Call the Anthropic Claude API. JSON output relies on the prompt."""
        if not self.api_key:
            raise AIProviderError('Anthropic API key is not set.')

        try:
            import anthropic
            if self._client is None:
                self._client = anthropic.Anthropic(api_key=self.api_key)
            response = self._client.messages.create(
                model=self.model,
                max_tokens=4096,
                temperature=min(temperature, 1.0),
                system=system_prompt,
                messages=[{'role': 'user', 'content': user_prompt}],
            )
        except Exception as e:
            error_msg = str(e)
            if 'authentication' in error_msg.lower() or 'api_key' in error_msg.lower():
                raise AIProviderError('Invalid Anthropic API key.')
            raise AIProviderError(f'Anthropic API error: {error_msg}')

        if not response.content:
            return ''
        return response.content[0].text.strip()


def get_ai_provider():
    """Return the AIProvider bound to the current app."""
    return current_app.extensions[EXTENSION_KEY]


def is_ai_enabled():
    """Check if the bound provider is configured and could work."""
    provider = current_app.extensions.get(EXTENSION_KEY)
    return bool(provider and provider.enabled)
