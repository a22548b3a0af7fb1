"""Identity key utilities.

Every identity comparison in the engine (existing references, dismissed
records, shortlist entries, candidates within a run) goes through these
helpers so that DOIs and titles are compared on their normalized form
rather than raw strings.
"""

import hashlib
import re
from dataclasses import dataclass
from typing import Any, Mapping, Optional
from urllib.parse import unquote

UNKNOWN_IDENTITY = "unknown"

_DOI_URL_PATTERN = re.compile(r"^.*doi\.org/", re.IGNORECASE)


@dataclass(frozen=True)
class ArticleKeys:
    """Normalized identity keys of an article-like record."""

    doi_key: str = ""
    title_key: str = ""

    def __bool__(self) -> bool:
        return bool(self.doi_key or self.title_key)

    def matches(self, doi_key: str, title_key: str) -> bool:
        """Check whether either non-empty key equals the given pair.

        Args:
            doi_key: Normalized DOI key to compare against.
            title_key: Normalized title key to compare against.

        Returns:
            True if the DOI keys or the title keys are equal and non-empty.
        """
        if self.doi_key and self.doi_key == doi_key:
            return True
        if self.title_key and self.title_key == title_key:
            return True
        return False


def normalize_key(value: Optional[Any]) -> str:
    """Normalize a DOI or title into an identity key.

    Args:
        value: Raw DOI, title or identifier (may be None).

    Returns:
        Trimmed, lowercased string; empty string for absent input.
    """
    if value is None:
        return ""
    return str(value).strip().lower()


def _field(article: Any, name: str) -> Optional[Any]:
    if isinstance(article, Mapping):
        return article.get(name)
    return getattr(article, name, None)


def keys_of(article: Any) -> ArticleKeys:
    """Compute identity keys for any article-like record.

    Accepts pydantic models, plain objects or mappings exposing
    ``doi`` and ``title``.

    Args:
        article: Candidate, shortlist entry, reference or raw dict.

    Returns:
        ArticleKeys with normalized DOI and title.
    """
    return ArticleKeys(
        doi_key=normalize_key(_field(article, "doi")),
        title_key=normalize_key(_field(article, "title")),
    )


def doi_from_url(url: Optional[str]) -> str:
    """Extract the DOI from a doi.org resolver URL.

    Args:
        url: Reference URL, e.g. ``https://doi.org/10.1145/123``.

    Returns:
        The DOI part of the URL, or empty string if it is not a DOI URL.
    """
    if not url or "doi.org" not in url.lower():
        return ""
    return _DOI_URL_PATTERN.sub("", url.strip())


def decode_identifier(identifier: Optional[str]) -> str:
    """Percent-decode and normalize a DOI-or-title identifier.

    Args:
        identifier: Identifier as received from a URL path segment.

    Returns:
        Normalized identity key.
    """
    if not identifier:
        return ""
    return normalize_key(unquote(identifier))


def dismissal_record_id(keys: ArticleKeys) -> str:
    """Derive the deterministic storage id of a dismissed record.

    Hashes the DOI key, falling back to the title key and finally the
    literal "unknown", so dismissing the same work twice overwrites one
    record instead of creating two.

    Args:
        keys: Identity keys of the dismissed article.

    Returns:
        Hex SHA-256 digest prefixed with ``dismissed_``.
    """
    basis = keys.doi_key or keys.title_key or UNKNOWN_IDENTITY
    digest = hashlib.sha256(basis.encode("utf-8")).hexdigest()
    return f"dismissed_{digest}"


def url_doi_key(reference: Any) -> str:
    """Normalized DOI carried by a reference's ``doi.org`` URL.

    Args:
        reference: Reference model or mapping exposing ``url``.

    Returns:
        DOI key parsed from the URL, or empty string.
    """
    return normalize_key(doi_from_url(_field(reference, "url")))
