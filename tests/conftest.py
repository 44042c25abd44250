import os

import pytest

from mediaq.context import WorkerContext
from mediaq.settings import MediaQSettings
from tests.fakes import FakeObjectStore, FakeQueue, FakeTransform, InMemoryMediaStore

os.environ.setdefault("MEDIAQ_TEST_DATABASE_URL", "postgresql://postgres@localhost/mediaq_test")


@pytest.fixture(autouse=True)
def clean_mediaq_env(monkeypatch):
    """Isolate every test from MEDIAQ_* variables and the settings cache."""
    import mediaq.settings

    for key in list(os.environ):
        if key.startswith("MEDIAQ_") and key != "MEDIAQ_TEST_DATABASE_URL":
            monkeypatch.delenv(key, raising=False)
    mediaq.settings._settings = None
    yield
    mediaq.settings._settings = None


@pytest.fixture
def settings():
    return MediaQSettings(
        _env_file=None,
        retry_attempts=3,
        retry_base_delay=0.0,
        poll_interval=0.0,
        poll_wait_seconds=0,
        transform_url="http://imagor:8080",
        storage_endpoint="http://minio:9000",
    )


@pytest.fixture
def store():
    return InMemoryMediaStore()


@pytest.fixture
def object_store():
    return FakeObjectStore()


@pytest.fixture
def queue():
    return FakeQueue()


@pytest.fixture
def transform():
    return FakeTransform()


@pytest.fixture
def context(settings, store, object_store, queue, transform):
    return WorkerContext(
        settings=settings,
        store=store,
        object_store=object_store,
        queue=queue,
        transform=transform,
    )
