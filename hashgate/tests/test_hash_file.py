"""
Tests for file and attachment hashing.
"""

import hashlib
import os

import pytest

from hashgate.app.security.site_secret import StaticSecretProvider
from hashgate.app.services import facade as facade_module
from hashgate.app.services import hashing as hashing_module
from hashgate.app.services.attachments import (
    DirectoryFileRegistry,
    MappingFileRegistry,
    NullFileRegistry,
)
from hashgate.app.services.facade import HashFacade
from hashgate.app.services.hashing import digest_file


@pytest.fixture
def sample_file(tmp_path):
    path = tmp_path / "report.txt"
    path.write_bytes(b"quarterly numbers\n")
    return path


def test_hash_file_matches_hashlib(facade, sample_file):
    expected = hashlib.sha256(b"quarterly numbers\n").hexdigest()
    assert facade.hash_file(sample_file) == expected
    assert facade.hash_file(str(sample_file), "md5") == hashlib.md5(b"quarterly numbers\n").hexdigest()


def test_hash_file_is_unsalted(facade, sample_file):
    assert facade.hash_file(sample_file, "sha1") == hashlib.sha1(sample_file.read_bytes()).hexdigest()


def test_hash_file_nonexistent_returns_none(facade):
    assert facade.hash_file("/nonexistent") is None


def test_hash_file_directory_returns_none(facade, tmp_path):
    assert facade.hash_file(tmp_path) is None


def test_hash_file_unsupported_algorithm_returns_none(facade, sample_file):
    assert facade.hash_file(sample_file, "bogus") is None


def test_hash_file_read_error_returns_none(facade, sample_file, monkeypatch):
    def failing_digest(*args, **kwargs):
        raise OSError("device went away")

    monkeypatch.setattr(facade_module, "digest_file", failing_digest)

    assert facade.hash_file(sample_file) is None


@pytest.mark.skipif(hasattr(os, "geteuid") and os.geteuid() == 0, reason="root can read any file")
def test_hash_file_unreadable_returns_none(facade, sample_file):
    sample_file.chmod(0)
    try:
        assert facade.hash_file(sample_file) is None
    finally:
        sample_file.chmod(0o600)


def test_hash_file_larger_than_chunk_size(facade, tmp_path):
    """Files many times the chunk size hash identically to a one-shot digest."""
    content = os.urandom(1024 * 256 + 17)
    path = tmp_path / "large.bin"
    path.write_bytes(content)

    assert facade.settings.file_chunk_size == 1024
    assert facade.hash_file(path) == hashlib.sha256(content).hexdigest()


def test_digest_file_reads_in_chunks(tmp_path, monkeypatch):
    content = b"x" * 10_000
    path = tmp_path / "chunks.bin"
    path.write_bytes(content)

    reads = []
    real_open = open

    class CountingReader:
        def __init__(self, handle):
            self._handle = handle

        def read(self, size):
            reads.append(size)
            return self._handle.read(size)

        def __enter__(self):
            return self

        def __exit__(self, *exc):
            self._handle.close()

    def counting_open(file, mode="r", *args, **kwargs):
        return CountingReader(real_open(file, mode, *args, **kwargs))

    monkeypatch.setattr("builtins.open", counting_open)

    digest = digest_file("sha256", path, chunk_size=1000)

    assert digest == hashlib.sha256(content).hexdigest()
    assert reads and max(reads) == 1000
    assert len(reads) == 11


def test_hash_attachment_via_mapping_registry(settings, sample_file):
    registry = MappingFileRegistry({42: sample_file})
    facade = HashFacade(
        settings=settings,
        secret_provider=StaticSecretProvider("s"),
        file_registry=registry,
    )

    assert facade.hash_attachment(42) == facade.hash_file(sample_file)
    assert facade.hash_attachment("42", "md5") == facade.hash_file(sample_file, "md5")


def test_hash_attachment_unresolved_returns_none(settings, sample_file):
    facade = HashFacade(
        settings=settings,
        secret_provider=StaticSecretProvider("s"),
        file_registry=MappingFileRegistry({1: sample_file}),
    )

    assert facade.hash_attachment(2) is None


def test_hash_attachment_resolved_but_missing_file(settings, tmp_path):
    facade = HashFacade(
        settings=settings,
        secret_provider=StaticSecretProvider("s"),
        file_registry=MappingFileRegistry({1: tmp_path / "deleted.txt"}),
    )

    assert facade.hash_attachment(1) is None


def test_default_registry_resolves_nothing(facade):
    assert NullFileRegistry().resolve_path(1) is None
    assert facade.hash_attachment(1) is None


def test_directory_registry(settings, tmp_path):
    uploads = tmp_path / "uploads"
    (uploads / "2024").mkdir(parents=True)
    (uploads / "2024" / "photo.jpg").write_bytes(b"jpeg")
    (tmp_path / "secret.txt").write_bytes(b"outside")

    registry = DirectoryFileRegistry(uploads)
    facade = HashFacade(
        settings=settings,
        secret_provider=StaticSecretProvider("s"),
        file_registry=registry,
    )

    assert facade.hash_attachment("2024/photo.jpg") == hashlib.sha256(b"jpeg").hexdigest()
    assert registry.resolve_path("../secret.txt") is None
    assert registry.resolve_path(str(tmp_path / "secret.txt")) is None
    assert registry.resolve_path("") is None
    assert facade.hash_attachment("../secret.txt") is None
    assert registry.resolve_path("a\x00b") is None
    assert facade.hash_attachment("2024/photo.jpg\x00") is None


def test_hash_file_read_error_mid_stream_releases_handle(facade, tmp_path, monkeypatch):
    path = tmp_path / "flaky.bin"
    path.write_bytes(b"y" * 4096)
    handles = []
    real_open = open

    class FlakyReader:
        def __init__(self, handle):
            self._handle = handle
            self.reads = 0

        def read(self, size):
            self.reads += 1
            if self.reads == 2:
                raise OSError("I/O error")
            return self._handle.read(size)

        def __enter__(self):
            return self

        def __exit__(self, *exc):
            self._handle.close()

        @property
        def closed(self):
            return self._handle.closed

    def flaky_open(file, mode="r", *args, **kwargs):
        reader = FlakyReader(real_open(file, mode, *args, **kwargs))
        handles.append(reader)
        return reader

    monkeypatch.setattr(hashing_module, "open", flaky_open, raising=False)

    assert facade.hash_file(path) is None
    assert len(handles) == 1
    assert handles[0].reads == 2
    assert handles[0].closed
