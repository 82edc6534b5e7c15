"""Tests for credential storage."""

import json
import os
import stat
from unittest import mock

import pytest

from oauth1_client.credential_store import CredentialStore, LoadStatus
from oauth1_client.credentials import CredentialRecord
from oauth1_client.exceptions import PersistenceError


class TestCredentialStore:
    """Tests for CredentialStore class."""

    @pytest.fixture
    def record(self):
        """Stored record for consumer ck/cs."""
        return CredentialRecord(
            api_name="TWITTER",
            consumer_key="ck",
            consumer_secret="cs",
            access_token="tok",
            access_secret="sec",
            screen_name="alice",
            user_id="42",
        )

    @pytest.fixture
    def store(self, tmp_path):
        """Store writing under a temporary directory."""
        return CredentialStore(str(tmp_path / "credentials.json"))

    def test_save_and_load(self, store, record):
        """A saved record loads back unchanged."""
        store.save(record)

        assert store.load() == record

    def test_save_writes_json(self, store, record):
        """The file is a JSON object with the record's field names."""
        store.save(record)

        data = json.loads(store.credentials_file.read_text())
        assert data["api_name"] == "TWITTER"
        assert data["access_secret"] == "sec"
        assert data["user_id_encoded"] == ""

    @pytest.mark.skipif(os.name == "nt", reason="POSIX permissions")
    def test_save_sets_user_only_permissions(self, store, record):
        """The credentials file is readable by the owner only."""
        store.save(record)

        assert stat.S_IMODE(store.credentials_file.stat().st_mode) == 0o600

    def test_save_replaces_without_leftovers(self, store, record, tmp_path):
        """Saving twice leaves one file and no temporary files."""
        store.save(record)
        record.access_token = "tok2"
        store.save(record)

        assert [p.name for p in tmp_path.iterdir()] == ["credentials.json"]
        assert store.load().access_token == "tok2"

    def test_save_creates_parent_directories(self, tmp_path, record):
        """Missing parent directories are created."""
        path = tmp_path / "nested" / "dir" / "credentials.json"

        CredentialStore(str(path)).save(record)

        assert path.exists()

    def test_save_failure_keeps_previous_file(self, store, record, tmp_path):
        """A failed write raises PersistenceError and keeps the old record."""
        store.save(record)
        record.access_token = "new"

        with mock.patch(
            "oauth1_client.credential_store.os.replace", side_effect=OSError("disk full")
        ):
            with pytest.raises(PersistenceError, match="disk full"):
                store.save(record)

        assert store.load().access_token == "tok"
        assert [p.name for p in tmp_path.iterdir()] == ["credentials.json"]

    def test_load_missing_file(self, tmp_path):
        """A missing file loads as None."""
        assert CredentialStore(str(tmp_path / "missing.json")).load() is None

    def test_load_invalid_json(self, store):
        """A corrupt file loads as None."""
        store.credentials_file.write_text("{not json")

        assert store.load() is None

    def test_load_non_object(self, store):
        """A JSON document that is not an object loads as None."""
        store.credentials_file.write_text("[1, 2, 3]")

        assert store.load() is None

    def test_load_tolerates_missing_fields(self, store):
        """Missing fields default to empty strings."""
        store.credentials_file.write_text(json.dumps({"consumer_key": "ck"}))

        loaded = store.load()

        assert loaded.consumer_key == "ck"
        assert loaded.access_token == ""

    def test_delete(self, store, record):
        """delete() removes the file and reports whether one existed."""
        store.save(record)

        assert store.exists() is True
        assert store.delete() is True
        assert store.exists() is False
        assert store.delete() is False


class TestLoadFor:
    """Tests for CredentialStore.load_for outcomes."""

    @pytest.fixture
    def store(self, tmp_path):
        """Store writing under a temporary directory."""
        return CredentialStore(str(tmp_path / "credentials.json"))

    def test_not_found(self, store):
        """No file is reported as NOT_FOUND."""
        result = store.load_for("ck", "cs")

        assert result.status is LoadStatus.NOT_FOUND
        assert result.record is None
        assert result.ok is False

    def test_invalid(self, store):
        """An unreadable file is reported as INVALID."""
        store.credentials_file.write_text("garbage")

        assert store.load_for("ck", "cs").status is LoadStatus.INVALID

    def test_consumer_mismatch(self, store):
        """A record for another consumer is not used."""
        store.save(
            CredentialRecord(
                consumer_key="ck", consumer_secret="old", access_token="t", access_secret="s"
            )
        )

        result = store.load_for("ck", "cs")

        assert result.status is LoadStatus.CONSUMER_MISMATCH
        assert result.ok is False

    def test_no_access_token(self, store):
        """A record without the full access pair is not used."""
        store.save(CredentialRecord(consumer_key="ck", consumer_secret="cs", access_token="t"))

        assert store.load_for("ck", "cs").status is LoadStatus.NO_ACCESS_TOKEN

    def test_loaded(self, store):
        """A matching record with an access token is LOADED."""
        record = CredentialRecord(
            consumer_key="ck", consumer_secret="cs", access_token="t", access_secret="s"
        )
        store.save(record)

        result = store.load_for("ck", "cs")

        assert result.ok is True
        assert result.record == record
