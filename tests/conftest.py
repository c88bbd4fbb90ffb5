# tests/conftest.py

import json

import pytest

from chronicle import create_app, db
from chronicle.ai_provider import AIProviderError, TEMP_DEFAULT, EXTENSION_KEY as AI_KEY
from chronicle.image_provider import ImageProviderError, EXTENSION_KEY as IMAGE_KEY
from chronicle.models import User, Campaign
from chronicle.storage import StorageError, EXTENSION_KEY as STORAGE_KEY
from config import TestConfig


class FakeAIProvider:
    """Stands in for AIProvider. Replies are consumed in order; an Exception reply is raised."""

    def __init__(self, *replies, enabled=True):
        self.replies = list(replies)
        self.calls = []
        self.enabled = enabled

    def queue(self, *replies):
        self.replies.extend(replies)

    def chat(self, system_prompt, user_prompt, temperature=TEMP_DEFAULT, json_mode=True):
        self.calls.append({
            'system': system_prompt,
            'user': user_prompt,
            'temperature': temperature,
            'json_mode': json_mode,
        })
        if not self.replies:
            raise AIProviderError('No response from AI')
        reply = self.replies.pop(0)
        if isinstance(reply, Exception):
            raise reply
        return reply if isinstance(reply, str) else json.dumps(reply)


class FakeImageProvider:
    extension = 'webp'
    content_type = 'image/webp'

    def __init__(self, enabled=True, error=None):
        self.enabled = enabled
        self.error = error
        self.prompts = []

    def generate(self, prompt):
        self.prompts.append(prompt)
        if self.error:
            raise ImageProviderError(self.error)
        return b'RIFF....WEBP'


class MemoryStorage:
    def __init__(self, fail=False):
        self.fail = fail
        self.objects = {}

    def upload(self, bucket, key, data, content_type=None):
        if self.fail:
            raise StorageError('bucket unavailable')
        self.objects[(bucket, key)] = (data, content_type)
        return self.public_url(bucket, key)

    def public_url(self, bucket, key):
        return f'https://storage.test/{bucket}/{key}'


@pytest.fixture
def app(tmp_path):
    class Config(TestConfig):
        UPLOAD_FOLDER = str(tmp_path / 'uploads')

    app = create_app(Config)
    with app.app_context():
        db.create_all()
    yield app
    with app.app_context():
        db.session.remove()
        db.drop_all()


@pytest.fixture
def ctx(app):
    with app.app_context():
        yield app


@pytest.fixture
def ai(app):
    fake = FakeAIProvider()
    app.extensions[AI_KEY] = fake
    return fake


@pytest.fixture
def images(app):
    fake = FakeImageProvider()
    app.extensions[IMAGE_KEY] = fake
    return fake


@pytest.fixture
def storage(app):
    fake = MemoryStorage()
    app.extensions[STORAGE_KEY] = fake
    return fake


@pytest.fixture
def user_id(app):
    with app.app_context():
        user = User(name='Mira', email='mira@example.com', subscription_tier='free')
        user.set_password('correct horse battery')
        db.session.add(user)
        db.session.commit()
        return user.id


@pytest.fixture
def campaign_id(app, user_id):
    with app.app_context():
        campaign = Campaign(user_id=user_id, name='Curse of the Hollow', dm_name='Mira',
                            player_names=['Ash', 'Bryn'])
        db.session.add(campaign)
        db.session.commit()
        return campaign.id


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def logged_in(client, user_id):
    with client.session_transaction() as sess:
        sess['_user_id'] = str(user_id)
        sess['_fresh'] = True
    return client
