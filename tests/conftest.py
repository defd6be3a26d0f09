"""
Shared fixtures for the friends backend tests
"""
import pytest
from fastapi.testclient import TestClient

from fireteam.core.dependencies import get_social_service
from fireteam.core.exceptions import StoreWriteFailure
from fireteam.core.rate_limit import limiter
from fireteam.core.security import create_session_token
from fireteam.main import app
from fireteam.schemas.relationship import CallerContext, RelationshipRecord
from fireteam.services.record_store import FileRecordStore, RecordStore
from fireteam.services.social_service import SocialService


class FlakyRecordStore(RecordStore):
    """Wraps a store and fails selected save calls (counted from 1 after arming)"""

    backend_name = "flaky"

    def __init__(self, inner: RecordStore):
        self.inner = inner
        self.fail_on = set()
        self.save_calls = 0

    def fail_saves(self, *calls: int) -> None:
        self.fail_on = set(calls)
        self.save_calls = 0

    def load(self, user_id: str) -> RelationshipRecord:
        return self.inner.load(user_id)

    def save(self, user_id: str, record: RelationshipRecord) -> None:
        self.save_calls += 1
        if self.save_calls in self.fail_on:
            raise StoreWriteFailure(user_id, "injected failure")
        self.inner.save(user_id, record)


@pytest.fixture
def file_store(tmp_path):
    return FileRecordStore(str(tmp_path / "friends"))


@pytest.fixture
def store(file_store):
    return FlakyRecordStore(file_store)


@pytest.fixture
def service(store):
    return SocialService(store)


@pytest.fixture
def alice():
    return CallerContext(user_id="4611686018467284386", display_name="Alice#1234")


@pytest.fixture
def bob():
    return CallerContext(user_id="4611686018429384721", display_name="Bob#0042")


@pytest.fixture
def carol():
    return CallerContext(user_id="4611686018500011122", display_name="Carol#7777")


@pytest.fixture
def client(service):
    app.dependency_overrides[get_social_service] = lambda: service
    was_enabled = limiter.enabled
    limiter.enabled = False
    try:
        yield TestClient(app)
    finally:
        limiter.enabled = was_enabled
        app.dependency_overrides.clear()


@pytest.fixture
def headers_for():
    def _headers(caller: CallerContext) -> dict:
        return {"Authorization": f"Bearer {create_session_token(caller.user_id, caller.display_name)}"}
    return _headers
