import uuid

import pytest
from fastapi.testclient import TestClient

from photo_upload.errors import StorageError
from photo_upload.main import create_app


class FakeWriter:
    def __init__(self, store, key):
        self.store = store
        self.key = key
        self.chunks = []
        self.content_type = None

    def set_content_type(self, content_type):
        self.content_type = content_type

    def write(self, data):
        if self.store.fail_on == "write":
            raise StorageError("backend exploded: secret-detail")
        self.chunks.append(bytes(data))
        return len(data)

    def close(self):
        if self.store.fail_on == "close":
            raise StorageError("backend exploded: secret-detail")
        self.store.objects[self.key] = (b"".join(self.chunks), self.content_type)


class FakeBucketStore:
    """Keeps closed objects in memory, keyed like the real store."""

    def __init__(self):
        self.objects = {}
        self.hints = []
        self.fail_on = None

    def new_writer(self, key_hint):
        self.hints.append(key_hint)
        return FakeWriter(self, str(uuid.uuid4()))

    def stored_payloads(self):
        return [payload for payload, _ in self.objects.values()]


@pytest.fixture
def store():
    return FakeBucketStore()


@pytest.fixture
def client(store):
    with TestClient(create_app(store)) as c:
        yield c
