"""Tests for API key storage."""

import pytest

from vtt_translator.config import API_KEY_NAME
from vtt_translator.credentials import (
    DotenvSecretStore,
    MemorySecretStore,
    clear_api_key,
    load_api_key,
    save_api_key,
)
from vtt_translator.errors import InvalidArgument


class TestMemorySecretStore:

    def test_round_trip(self):
        store = MemorySecretStore()
        assert load_api_key(store) is None

        save_api_key(store, "  sk-abc  ")
        assert load_api_key(store) == "sk-abc"

        clear_api_key(store)
        assert load_api_key(store) is None

    def test_empty_key_rejected(self):
        store = MemorySecretStore()
        with pytest.raises(InvalidArgument):
            save_api_key(store, "   ")
        assert load_api_key(store) is None

    def test_clear_missing_key(self):
        clear_api_key(MemorySecretStore())


class TestDotenvSecretStore:

    def test_creates_file(self, tmp_path):
        path = tmp_path / "config" / ".env"
        store = DotenvSecretStore(path)

        save_api_key(store, "sk-file")

        assert path.exists()
        assert API_KEY_NAME in path.read_text(encoding="utf-8")
        assert load_api_key(DotenvSecretStore(path)) == "sk-file"

    def test_keeps_other_entries(self, tmp_path):
        path = tmp_path / ".env"
        path.write_text("OTHER=1\n", encoding="utf-8")
        store = DotenvSecretStore(path)

        save_api_key(store, "sk-file")
        clear_api_key(store)

        assert load_api_key(store) is None
        assert store.get("OTHER") == "1"

    def test_missing_file(self, tmp_path):
        store = DotenvSecretStore(tmp_path / "missing.env")
        assert load_api_key(store) is None
        clear_api_key(store)
        assert not (tmp_path / "missing.env").exists()
