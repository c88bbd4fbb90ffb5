"""
chronicle/storage.py - Object storage for generated images and session audio

Two backends with the same upload(bucket, key, data, content_type) call:
  - LocalStorage: files under UPLOAD_FOLDER/<bucket>/<key>, served by the app
  - SupabaseStorage: Supabase Storage buckets with public URLs

The configured backend lives in app.extensions['chronicle.storage'].
"""

import logging
import os
import time
import uuid

from flask import current_app, url_for

logger = logging.getLogger(__name__)

EXTENSION_KEY = 'chronicle.storage'


class StorageError(Exception):
    """Raised when an object cannot be stored."""
    pass


def random_key(prefix, ext):
    """Build a collision-resistant object key like 'generated-images/1718000000000-3f9a1c2b.webp'."""
    stamp = int(time.time() * 1000)
    name = f'{stamp}-{uuid.uuid4().hex[:8]}.{ext}'
    return f'{prefix.rstrip("/")}/{name}' if prefix else name


class LocalStorage:
    def __init__(self, root):
        self.root = root

    def path_for(self, bucket, key):
        # Keys come from our own code, but never let one climb out of the bucket
        path = os.path.normpath(os.path.join(self.root, bucket, key))
        bucket_root = os.path.normpath(os.path.join(self.root, bucket))
        if not path.startswith(bucket_root + os.sep):
            raise StorageError(f'Invalid storage key: {key}')
        return path

    def upload(self, bucket, key, data, content_type=None):
        path = self.path_for(bucket, key)
        try:
            os.makedirs(os.path.dirname(path), exist_ok=True)
            with open(path, 'wb') as f:
                f.write(data)
        except OSError as e:
            raise StorageError(f'Could not write {bucket}/{key}: {e}') from e
        logger.info('Stored %d bytes at %s/%s', len(data), bucket, key)
        return self.public_url(bucket, key)

    def public_url(self, bucket, key):
        return url_for('main.uploaded_file', bucket=bucket, key=key)


class SupabaseStorage:
    def __init__(self, url, key):
        from supabase import create_client
        self.client = create_client(url, key)

    def upload(self, bucket, key, data, content_type=None):
        options = {'cache-control': '3600', 'upsert': 'false'}
        if content_type:
            options['content-type'] = content_type
        try:
            self.client.storage.from_(bucket).upload(key, data, file_options=options)
        except Exception as e:
            logger.error('Supabase upload of %s/%s failed: %s', bucket, key, e, exc_info=True)
            raise StorageError(f'Upload to {bucket} failed.') from e
        logger.info('Uploaded %d bytes to Supabase at %s/%s', len(data), bucket, key)
        return self.public_url(bucket, key)

    def public_url(self, bucket, key):
        return self.client.storage.from_(bucket).get_public_url(key)


def build_storage(config):
    backend = (config.get('STORAGE_BACKEND') or 'local').lower()
    if backend == 'supabase':
        url = config.get('SUPABASE_URL')
        key = config.get('SUPABASE_SERVICE_ROLE_KEY')
        if not url or not key:
            raise RuntimeError('STORAGE_BACKEND=supabase needs SUPABASE_URL and SUPABASE_SERVICE_ROLE_KEY.')
        return SupabaseStorage(url, key)
    return LocalStorage(config['UPLOAD_FOLDER'])


def get_storage():
    return current_app.extensions[EXTENSION_KEY]


def allowed_file(filename, allowed):
    """Return the lowercase extension if filename has an allowed one, else None."""
    if not filename or '.' not in filename:
        return None
    ext = filename.rsplit('.', 1)[1].lower()
    return ext if ext in allowed else None


def save_image_upload(file):
    """Store an uploaded image file in the image bucket and return its URL.

    Returns None if the file is missing or not an allowed image type.
    """
    if not file or not file.filename:
        return None
    ext = allowed_file(file.filename, current_app.config.get('ALLOWED_IMAGE_EXTENSIONS', set()))
    if not ext:
        return None
    return get_storage().upload(current_app.config['IMAGE_BUCKET'], random_key('uploads', ext),
                                file.read(), file.mimetype)
