"""
Record store backends
"""
import json

import pytest
from sqlalchemy import create_engine, text
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from fireteam.core.config import Settings
from fireteam.core.exceptions import StoreReadFailure, StoreWriteFailure
from fireteam.schemas.relationship import FriendEntry, IncomingRequest, RelationshipRecord
from fireteam.services.record_store import FileRecordStore, build_record_store
from fireteam.utils.time_utils import utc_now


def sample_record() -> RelationshipRecord:
    now = utc_now()
    return RelationshipRecord(
        friends=[FriendEntry(id="1001", display_name="Guardian#0001", added_at=now)],
        incoming_requests=[IncomingRequest(
            id="req-1",
            requester_id="1002",
            requester_display_name="Warlock#0002",
            created_at=now,
        )],
    )


class TestFileRecordStore:
    def test_missing_record_loads_empty(self, file_store):
        assert file_store.load("1001") == RelationshipRecord()

    def test_saves_camel_case_document(self, file_store, tmp_path):
        record = sample_record()
        file_store.save("1000", record)

        with open(tmp_path / "friends" / "1000.json", encoding="utf-8") as fh:
            data = json.load(fh)

        assert set(data) == {"friends", "outgoingRequests", "incomingRequests"}
        assert data["friends"][0]["displayName"] == "Guardian#0001"
        assert data["incomingRequests"][0]["requesterId"] == "1002"
        assert file_store.load("1000") == record

    def test_partial_document_fills_missing_sets(self, file_store, tmp_path):
        file_store.prepare()
        (tmp_path / "friends" / "1000.json").write_text(json.dumps({"friends": []}), encoding="utf-8")

        record = file_store.load("1000")

        assert record.outgoing_requests == []
        assert record.incoming_requests == []

    def test_corrupt_document_is_read_failure(self, file_store, tmp_path):
        file_store.prepare()
        (tmp_path / "friends" / "1000.json").write_text("{not json", encoding="utf-8")

        with pytest.raises(StoreReadFailure) as excinfo:
            file_store.load("1000")
        assert excinfo.value.key == "1000"

    def test_unwritable_directory_is_write_failure(self, tmp_path):
        blocker = tmp_path / "blocked"
        blocker.write_text("not a directory", encoding="utf-8")
        store = FileRecordStore(str(blocker / "friends"))

        with pytest.raises(StoreWriteFailure) as excinfo:
            store.save("1000", sample_record())
        assert excinfo.value.key == "1000"

    def test_failed_temp_write_is_cleaned_up(self, file_store, tmp_path, monkeypatch):
        import builtins

        real_open = builtins.open

        def failing_open(path, mode="r", *args, **kwargs):
            if "w" in mode:
                raise OSError("disk full")
            return real_open(path, mode, *args, **kwargs)

        record = sample_record()
        file_store.save("1000", record)
        monkeypatch.setattr(builtins, "open", failing_open)

        with pytest.raises(StoreWriteFailure):
            file_store.save("1000", RelationshipRecord())

        monkeypatch.undo()
        assert [p.name for p in (tmp_path / "friends").iterdir()] == ["1000.json"]
        assert file_store.load("1000") == record

    def test_save_leaves_no_temp_files(self, file_store, tmp_path):
        file_store.save("1000", sample_record())
        file_store.save("1000", RelationshipRecord())

        assert [p.name for p in (tmp_path / "friends").iterdir()] == ["1000.json"]
        assert file_store.load("1000") == RelationshipRecord()


class TestSqlRecordStore:
    @pytest.fixture
    def engine(self):
        engine = create_engine(
            "sqlite://",
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
        yield engine
        engine.dispose()

    @pytest.fixture
    def sql_store(self, engine):
        from fireteam.services.sql_record_store import SqlRecordStore

        store = SqlRecordStore(sessionmaker(autocommit=False, autoflush=False, bind=engine))
        store.prepare()
        return store

    def test_round_trip_and_upsert(self, sql_store):
        assert sql_store.load("1000") == RelationshipRecord()

        record = sample_record()
        sql_store.save("1000", record)
        assert sql_store.load("1000") == record

        sql_store.save("1000", RelationshipRecord())
        assert sql_store.load("1000") == RelationshipRecord()

    def test_missing_table_surfaces_failures(self, sql_store, engine):
        with engine.begin() as conn:
            conn.execute(text("DROP TABLE relationship_records"))

        with pytest.raises(StoreReadFailure):
            sql_store.load("1000")
        with pytest.raises(StoreWriteFailure):
            sql_store.save("1000", sample_record())

    def test_status_reports_dialect(self, sql_store):
        assert sql_store.status() == {"backend": "database", "dialect": "sqlite"}


class FakeSnapshot:
    def __init__(self, data):
        self._data = data

    @property
    def exists(self):
        return self._data is not None

    def to_dict(self):
        return self._data


class FakeDocument:
    def __init__(self, docs, key, fail):
        self.docs = docs
        self.key = key
        self.fail = fail

    def get(self):
        if self.fail:
            raise RuntimeError("firestore unavailable")
        return FakeSnapshot(self.docs.get(self.key))

    def set(self, data):
        if self.fail:
            raise RuntimeError("firestore unavailable")
        self.docs[self.key] = data


class FakeFirestoreClient:
    """Minimal stand-in for firestore.Client: collection(name).document(id)"""

    def __init__(self, fail=False):
        self.collections = {}
        self.fail = fail

    def collection(self, name):
        client = self

        class _Collection:
            def document(self, key):
                return FakeDocument(client.collections.setdefault(name, {}), key, client.fail)

        return _Collection()


class TestFirestoreRecordStore:
    def test_round_trip(self):
        from fireteam.services.firestore_record_store import FirestoreRecordStore

        client = FakeFirestoreClient()
        store = FirestoreRecordStore(client=client, collection="friends")

        assert store.load("1000") == RelationshipRecord()
        record = sample_record()
        store.save("1000", record)

        assert client.collections["friends"]["1000"]["friends"][0]["id"] == "1001"
        assert store.load("1000") == record

    def test_client_errors_are_store_failures(self):
        from fireteam.services.firestore_record_store import FirestoreRecordStore

        store = FirestoreRecordStore(client=FakeFirestoreClient(fail=True))

        with pytest.raises(StoreReadFailure):
            store.load("1000")
        with pytest.raises(StoreWriteFailure):
            store.save("1000", RelationshipRecord())


def test_build_record_store_selects_file_backend(tmp_path):
    config = Settings(RECORD_STORE_BACKEND="file", FRIENDS_DATA_DIR=str(tmp_path / "data"))

    store = build_record_store(config)

    assert isinstance(store, FileRecordStore)
    assert store.status()["directory"] == str(tmp_path / "data")


def test_build_record_store_rejects_unknown_backend():
    with pytest.raises(ValueError):
        build_record_store(Settings(RECORD_STORE_BACKEND="carrier-pigeon"))
