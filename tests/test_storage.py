"""Tests for verifier persistence."""

import hashlib
import json
import os
import stat

import pytest

from pkce_oauth import storage as storage_module
from pkce_oauth.errors import MissingVerifierError
from pkce_oauth.pkce import base64url_decode, base64url_encode
from pkce_oauth.storage import FileStorage, MemoryStorage, VerifierStore


class TestVerifierStore:
    """Tests for the single-slot verifier store."""

    def test_generate_stores_verifier_matching_challenge(self, store):
        """The persisted verifier is the one the returned challenge was derived from."""
        challenge = store.generate_code_challenge()

        verifier = store.storage.get("code_verifier")
        assert verifier is not None
        assert challenge == base64url_encode(hashlib.sha256(verifier.encode("ascii")).digest())
        assert len(base64url_decode(verifier)) >= 32

    def test_get_without_generate_raises(self, store):
        with pytest.raises(MissingVerifierError, match="No Code Verifier found"):
            store.get_code_verifier()

    def test_get_returns_stored_value(self, store):
        store.storage.set("code_verifier", "test")
        assert store.get_code_verifier() == "test"

    def test_last_write_wins(self, store):
        store.generate_code_challenge()
        first = store.get_code_verifier()
        store.generate_code_challenge()
        second = store.get_code_verifier()

        assert first != second
        assert store.storage.get("code_verifier") == second

    def test_repeated_reads_return_same_value(self, store):
        store.generate_code_challenge()
        assert store.get_code_verifier() == store.get_code_verifier()

    def test_get_after_clear_raises(self, store):
        store.generate_code_challenge()
        store.clear()
        with pytest.raises(MissingVerifierError):
            store.get_code_verifier()

    def test_custom_key(self):
        backend = MemoryStorage()
        store = VerifierStore(backend, key="other_slot")
        store.generate_code_challenge()

        assert backend.get("code_verifier") is None
        assert backend.get("other_slot") == store.get_code_verifier()

    def test_storage_write_failure_propagates(self):
        class BrokenStorage(MemoryStorage):
            def set(self, key, value):
                raise OSError("quota exceeded")

        with pytest.raises(OSError, match="quota exceeded"):
            VerifierStore(BrokenStorage()).generate_code_challenge()


class TestFileStorage:
    """Tests for the JSON file backend."""

    def test_survives_new_instance(self, tmp_path):
        path = tmp_path / "session.json"
        challenge = VerifierStore(FileStorage(path)).generate_code_challenge()

        verifier = VerifierStore(FileStorage(path)).get_code_verifier()
        assert challenge == base64url_encode(hashlib.sha256(verifier.encode("ascii")).digest())

    def test_missing_file_reads_empty(self, tmp_path):
        backend = FileStorage(tmp_path / "nested" / "session.json")
        assert backend.get("code_verifier") is None

    def test_corrupt_file_reads_empty(self, tmp_path):
        path = tmp_path / "session.json"
        path.write_text("{not json")
        assert FileStorage(path).get("code_verifier") is None

    def test_set_preserves_other_keys(self, tmp_path):
        path = tmp_path / "session.json"
        path.write_text(json.dumps({"other": "value"}))

        FileStorage(path).set("code_verifier", "abc")

        assert json.loads(path.read_text()) == {"other": "value", "code_verifier": "abc"}

    def test_clear_removes_key(self, tmp_path):
        backend = FileStorage(tmp_path / "session.json")
        backend.set("code_verifier", "abc")
        backend.clear("code_verifier")
        assert backend.get("code_verifier") is None

    @pytest.mark.skipif(os.name == "nt", reason="POSIX permissions")
    def test_file_is_private(self, tmp_path):
        path = tmp_path / "session.json"
        FileStorage(path).set("code_verifier", "abc")
        assert stat.S_IMODE(path.stat().st_mode) == 0o600


class TestModuleHelpers:
    """Tests for the module-level helpers bound to the default store."""

    def test_generate_then_get(self, tmp_path, monkeypatch):
        monkeypatch.setattr(storage_module, "_default_store", VerifierStore(FileStorage(tmp_path / "s.json")))

        challenge = storage_module.generate_code_challenge()
        verifier = storage_module.get_code_verifier()

        assert challenge == base64url_encode(hashlib.sha256(verifier.encode("ascii")).digest())
