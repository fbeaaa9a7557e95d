"""
File storage buckets on the local filesystem.

Directory structure:

STORAGE_ROOT/
└── scorm-packages/
    ├── uploads/            Uploaded SCORM ZIP files
    │   └── scorm-<timestamp>-<name>.zip
    └── content/            Extracted package files per course
        └── <course_id>/...
"""

import logging
import os
from pathlib import Path

from flask import current_app

SCORM_BUCKET = 'scorm-packages'


class StorageError(Exception):
    """Raised when an object is missing or a path escapes its bucket"""


class LocalStorage:
    """A named bucket rooted in a directory"""

    def __init__(self, root, bucket):
        self.logger = logging.getLogger(__name__)
        self.bucket_path = (Path(root) / bucket).resolve()

    @classmethod
    def bucket(cls, name=SCORM_BUCKET):
        return cls(current_app.config['STORAGE_ROOT'], name)

    def _resolve(self, key):
        if not key:
            raise StorageError('Empty object key')
        path = (self.bucket_path / key.lstrip('/')).resolve()
        # Keys must stay inside the bucket
        if path != self.bucket_path and self.bucket_path not in path.parents:
            raise StorageError(f"Object key outside bucket: {key}")
        return path

    def upload(self, key, data, upsert=True):
        path = self._resolve(key)
        if path.exists() and not upsert:
            raise StorageError(f"Object already exists: {key}")
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, 'wb') as handle:
            handle.write(data)
        return key

    def download(self, key):
        path = self._resolve(key)
        if not path.is_file():
            raise StorageError(f"Object not found: {key}")
        with open(path, 'rb') as handle:
            return handle.read()

    def exists(self, key):
        try:
            return self._resolve(key).is_file()
        except StorageError:
            return False

    def list(self, prefix=''):
        """Keys under a prefix, relative to the bucket"""
        base = self._resolve(prefix) if prefix else self.bucket_path
        if not base.exists():
            return []
        keys = []
        for dirpath, _, filenames in os.walk(base):
            for filename in filenames:
                full_path = Path(dirpath) / filename
                keys.append(full_path.relative_to(self.bucket_path).as_posix())
        return sorted(keys)
