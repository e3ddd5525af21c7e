"""Tests for the CDISC controlled terminology lookup."""

from contextlib import contextmanager

import httpx
import pytest
from tenacity import stop_after_attempt

import send_select.vocabulary as vocabulary_module
from send_select.config import settings
from send_select.vocabulary import (
    ReferenceVocabulary,
    codelist_values,
    download_ct_file,
    load_ct_file,
    lookup_reference_values,
)


def test_membership_is_case_insensitive():
    vocabulary = ReferenceVocabulary.of("ROUTE", ["Oral", "DERMAL "])
    assert "ORAL" in vocabulary
    assert "oral" in vocabulary
    assert "dermal" in vocabulary
    assert "INTRAVENOUS" not in vocabulary
    assert None not in vocabulary
    assert len(vocabulary) == 2


def test_codelist_values(ct_file):
    ct = load_ct_file(ct_file)
    assert set(codelist_values(ct, "ROUTE")) == {"ORAL", "ORAL GAVAGE", "SUBCUTANEOUS", "INTRAVENOUS", "DERMAL"}
    assert set(codelist_values(ct, "design")) == {"PARALLEL", "CROSSOVER", "LATIN SQUARE"}


def test_lookup_uses_configured_file(ct_file):
    vocabulary = lookup_reference_values("ROUTE")
    assert vocabulary.name == "ROUTE"
    assert "oral gavage" in vocabulary
    assert "PARALLEL" not in vocabulary


def test_unknown_codelist(ct_file):
    with pytest.raises(LookupError):
        lookup_reference_values("NOSUCHLIST")


def test_missing_configuration(monkeypatch):
    monkeypatch.setattr(settings, "ct_file", None)
    with pytest.raises(FileNotFoundError):
        lookup_reference_values("ROUTE")


def test_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        lookup_reference_values("ROUTE", ct_file=tmp_path / "nope.txt")


def test_not_a_ct_file(tmp_path):
    path = tmp_path / "other.txt"
    path.write_text("a\tb\n1\t2\n", encoding="utf-8")
    with pytest.raises(ValueError):
        load_ct_file(path)


class TestDownload:
    """CT file download without network access."""

    @pytest.fixture
    def fetched(self, monkeypatch):
        calls = []

        def fake_fetch(url, dest, timeout=300.0):
            calls.append(url)
            dest.write_text("downloaded", encoding="utf-8")

        monkeypatch.setattr(vocabulary_module, "_fetch_url", fake_fetch)
        return calls

    def test_downloads_to_default_path(self, fetched, tmp_path, monkeypatch):
        monkeypatch.setattr(settings, "db_path", tmp_path / "pool" / "send.db")
        path = download_ct_file()
        assert path == tmp_path / "pool" / "SEND_Terminology.txt"
        assert path.read_text(encoding="utf-8") == "downloaded"
        assert fetched == [settings.ct_url]

    def test_existing_file_kept(self, fetched, tmp_path):
        dest = tmp_path / "ct.txt"
        dest.write_text("old", encoding="utf-8")
        assert download_ct_file(dest) == dest
        assert fetched == []
        download_ct_file(dest, force=True)
        assert dest.read_text(encoding="utf-8") == "downloaded"


class _Response:
    def __init__(self, chunks, error=None):
        self.chunks = chunks
        self.error = error

    def raise_for_status(self):
        pass

    def iter_bytes(self, chunk_size):
        yield from self.chunks
        if self.error:
            raise self.error


class TestFetchUrl:
    """Streaming into a temporary file that only replaces the target when complete."""

    @pytest.fixture
    def fetch(self):
        return vocabulary_module._fetch_url.retry_with(stop=stop_after_attempt(1), reraise=True)

    def _serve(self, monkeypatch, response):
        @contextmanager
        def fake_stream(method, url, **kwargs):
            yield response

        monkeypatch.setattr(vocabulary_module.httpx, "stream", fake_stream)

    def test_complete_download(self, fetch, monkeypatch, tmp_path):
        self._serve(monkeypatch, _Response([b"Code\t", b"Codelist Code\n"]))
        dest = tmp_path / "ct.txt"

        fetch("https://example.org/ct.txt", dest)

        assert dest.read_bytes() == b"Code\tCodelist Code\n"
        assert list(tmp_path.iterdir()) == [dest]

    def test_interrupted_download_leaves_nothing(self, fetch, monkeypatch, tmp_path):
        self._serve(monkeypatch, _Response([b"Code\t"], httpx.ReadError("connection reset")))
        dest = tmp_path / "ct.txt"

        with pytest.raises(httpx.ReadError):
            fetch("https://example.org/ct.txt", dest)

        assert list(tmp_path.iterdir()) == []

    def test_interrupted_download_keeps_previous_file(self, fetch, monkeypatch, tmp_path):
        self._serve(monkeypatch, _Response([b"new"], httpx.ReadError("connection reset")))
        dest = tmp_path / "ct.txt"
        dest.write_text("old", encoding="utf-8")

        with pytest.raises(httpx.ReadError):
            fetch("https://example.org/ct.txt", dest)

        assert dest.read_text(encoding="utf-8") == "old"
