"""Unit tests for the filesystem blob store."""

import pytest

from furioza.kernel.errors import ValidationError
from furioza.kernel.storage.blob_store import LocalBlobStore


class TestLocalBlobStore:
    def test_upload_writes_file_and_returns_url(self, tmp_path):
        store = LocalBlobStore(root=str(tmp_path), public_base_url="https://cdn.furioza.pl/")
        url = store.upload("abc/avatar.png", b"\x89PNG")

        assert url == "https://cdn.furioza.pl/abc/avatar.png"
        assert (tmp_path / "abc" / "avatar.png").read_bytes() == b"\x89PNG"

    @pytest.mark.parametrize("key", ["", "/etc/passwd", "../outside.png", "a/../../b.png"])
    def test_unsafe_keys_rejected(self, tmp_path, key):
        store = LocalBlobStore(root=str(tmp_path), public_base_url="https://cdn.furioza.pl")
        with pytest.raises(ValidationError):
            store.upload(key, b"x")
