"""Tests for identity key normalization."""

from litscout.models.article import CandidateArticle
from litscout.utils.keys import (
    ArticleKeys,
    decode_identifier,
    dismissal_record_id,
    doi_from_url,
    keys_of,
    normalize_key,
    url_doi_key,
)


class TestNormalizeKey:
    def test_case_and_whitespace_insensitive(self):
        assert normalize_key(" DOI/ABC ") == normalize_key("doi/abc")
        assert normalize_key(" DOI/ABC ") == "doi/abc"

    def test_idempotent(self):
        once = normalize_key("  Mixed Case Title\t")
        assert normalize_key(once) == once

    def test_absent_is_empty(self):
        assert normalize_key(None) == ""
        assert normalize_key("   ") == ""


def test_keys_of_mapping_and_model():
    from_dict = keys_of({"doi": "10.1/A", "title": " Some Title "})
    from_model = keys_of(CandidateArticle(doi="10.1/a", title="some title"))

    assert from_dict == ArticleKeys(doi_key="10.1/a", title_key="some title")
    assert from_dict == from_model


def test_keys_of_missing_fields():
    keys = keys_of({"url": "https://example.org"})
    assert keys == ArticleKeys()
    assert not keys


def test_empty_keys_never_match():
    keys = ArticleKeys(doi_key="", title_key="a title")
    assert not keys.matches("", "other")
    assert keys.matches("10.1/x", "a title")
    assert not ArticleKeys().matches("", "")


def test_doi_from_url():
    assert doi_from_url("https://doi.org/10.1145/3544548") == "10.1145/3544548"
    assert doi_from_url("http://dx.doi.org/10.1/ABC") == "10.1/ABC"
    assert doi_from_url("https://example.org/paper") == ""
    assert doi_from_url(None) == ""


def test_url_doi_key_reads_mappings_and_models():
    assert url_doi_key({"url": "https://doi.org/10.1/ABC "}) == "10.1/abc"
    assert url_doi_key({"title": "No url"}) == ""
    assert url_doi_key(CandidateArticle(title="A titled work", url="https://doi.org/10.1/x")) == "10.1/x"


def test_decode_identifier():
    assert decode_identifier("10.1%2FABC") == "10.1/abc"
    assert decode_identifier("Creative%20Labour%20") == "creative labour"
    assert decode_identifier("") == ""


class TestDismissalRecordId:
    def test_deterministic(self):
        keys = ArticleKeys(doi_key="10.1/a", title_key="t")
        assert dismissal_record_id(keys) == dismissal_record_id(keys)

    def test_prefers_doi_key(self):
        with_title = ArticleKeys(doi_key="10.1/a", title_key="one")
        other_title = ArticleKeys(doi_key="10.1/a", title_key="two")
        assert dismissal_record_id(with_title) == dismissal_record_id(other_title)

    def test_falls_back_to_title_then_unknown(self):
        title_only = dismissal_record_id(ArticleKeys(title_key="a title"))
        unknown = dismissal_record_id(ArticleKeys())
        assert title_only != unknown
        assert unknown.startswith("dismissed_")
