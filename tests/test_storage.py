import os
import re

import pytest

from chronicle.storage import LocalStorage, StorageError, allowed_file, build_storage, random_key


def test_random_key_format():
    key = random_key('generated-images/', 'webp')

    assert re.fullmatch(r'generated-images/\d{13}-[0-9a-f]{8}\.webp', key)
    assert random_key('', 'png').endswith('.png')
    assert '/' not in random_key('', 'png')


def test_allowed_file():
    allowed = {'png', 'webp'}

    assert allowed_file('Portrait.PNG', allowed) == 'png'
    assert allowed_file('notes.txt', allowed) is None
    assert allowed_file('noextension', allowed) is None
    assert allowed_file('', allowed) is None


def test_local_upload_is_served(app, logged_in, tmp_path):
    storage = LocalStorage(app.config['UPLOAD_FOLDER'])
    with app.test_request_context():
        url = storage.upload('images', 'uploads/portrait.png', b'\x89PNG fake', 'image/png')

    assert url == '/uploads/images/uploads/portrait.png'
    assert os.path.exists(os.path.join(app.config['UPLOAD_FOLDER'], 'images', 'uploads', 'portrait.png'))

    response = logged_in.get(url)
    assert response.status_code == 200
    assert response.data == b'\x89PNG fake'


def test_local_storage_refuses_escaping_keys(tmp_path):
    storage = LocalStorage(str(tmp_path))

    with pytest.raises(StorageError):
        storage.path_for('images', '../../etc/passwd')


def test_unknown_bucket_is_not_served(logged_in):
    assert logged_in.get('/uploads/secrets/anything.txt').status_code == 404


def test_build_storage_backends(tmp_path):
    assert isinstance(build_storage({'UPLOAD_FOLDER': str(tmp_path)}), LocalStorage)

    with pytest.raises(RuntimeError):
        build_storage({'STORAGE_BACKEND': 'supabase', 'SUPABASE_URL': 'https://x.supabase.co'})
