"""Article data models.

Defines the unified candidate record produced by every source adapter, the
persisted shortlist aggregate and dismissal records, and the read-only
projection of catalogued references used for identity exclusion.

Field names are snake_case in Python and camelCase on the wire
(``publishedDate``, ``doiKey``, ``isNew``), matching the JSON documents the
stores and HTTP clients exchange.
"""

from datetime import datetime, timezone
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

from litscout.utils.keys import ArticleKeys, keys_of

SHORTLIST_DOC_ID = "shortlist"
SHORTLIST_DOC_TYPE = "shortlist"
DISMISSED_DOC_TYPE = "dismissed"


def utc_now() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


def _as_utc(value: Optional[datetime]) -> Optional[datetime]:
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class WireModel(BaseModel):
    """Base for models serialized with camelCase aliases."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )


class CandidateArticle(WireModel):
    """A freshly discovered, not yet admitted article.

    Produced by a source adapter for one discovery run and never persisted
    directly. ``title`` may be missing on malformed upstream records; the
    admission gate drops those.
    """

    title: Optional[str] = None
    doi: Optional[str] = Field(None, description="DOI or provider paper id")
    authors: str = "Unknown Author"
    year: Optional[int] = Field(None, ge=1000, le=3000)
    abstract: str = ""
    url: str = ""
    published_date: Optional[datetime] = None

    source: str = Field("", description="Provenance tag of the source adapter")
    venue: str = ""
    article_type: str = "Article"
    category: str = ""

    # Computed identity and ranking fields
    doi_key: str = ""
    title_key: str = ""
    is_new: bool = False

    @field_validator("published_date")
    @classmethod
    def normalize_published_date(cls, v: Optional[datetime]) -> Optional[datetime]:
        return _as_utc(v)

    @field_validator("abstract", "url", "venue", "category", mode="before")
    @classmethod
    def none_to_empty(cls, v):
        return "" if v is None else v

    @model_validator(mode="after")
    def compute_keys(self):
        keys = keys_of(self)
        self.doi_key = keys.doi_key
        self.title_key = keys.title_key
        return self

    @property
    def keys(self) -> ArticleKeys:
        """Identity keys of this article."""
        return ArticleKeys(doi_key=self.doi_key, title_key=self.title_key)

    @property
    def has_exact_date(self) -> bool:
        """Whether a full publication date (not just a year) is known."""
        return self.published_date is not None

    @property
    def best_date(self) -> Optional[datetime]:
        """Best-known publication date.

        The exact publication date when present, otherwise January 1st of
        the reported year, otherwise None.
        """
        if self.published_date is not None:
            return self.published_date
        if self.year:
            return datetime(self.year, 1, 1, tzinfo=timezone.utc)
        return None


class ShortlistEntry(CandidateArticle):
    """A curated candidate the user intends to review."""

    added_at: datetime = Field(default_factory=utc_now)

    @field_validator("added_at")
    @classmethod
    def normalize_added_at(cls, v: datetime) -> datetime:
        return _as_utc(v)  # type: ignore[return-value]

    @classmethod
    def from_article(cls, article: CandidateArticle) -> "ShortlistEntry":
        """Create an entry from a candidate, stamping ``added_at``."""
        data = article.model_dump(exclude={"doi_key", "title_key"})
        return cls(**data)


class ShortlistAggregate(WireModel):
    """Single persisted document holding the ordered shortlist."""

    id: str = SHORTLIST_DOC_ID
    type: str = SHORTLIST_DOC_TYPE
    entries: List[ShortlistEntry] = Field(default_factory=list)

    def contains(self, keys: ArticleKeys) -> bool:
        """Check whether any entry shares a non-empty key with ``keys``."""
        return any(keys.matches(e.doi_key, e.title_key) for e in self.entries)

    def remove_matching(self, doi_key: str, title_key: str) -> int:
        """Drop entries whose DOI key or title key matches.

        Args:
            doi_key: Normalized DOI key (empty string never matches).
            title_key: Normalized title key (empty string never matches).

        Returns:
            Number of entries removed.
        """
        keys = ArticleKeys(doi_key=doi_key, title_key=title_key)
        before = len(self.entries)
        self.entries = [e for e in self.entries if not keys.matches(e.doi_key, e.title_key)]
        return before - len(self.entries)

    def get_entry_count(self) -> int:
        """Number of entries in the shortlist."""
        return len(self.entries)


class DismissedRecord(WireModel):
    """Permanent rejection of one work's identity."""

    id: str
    type: str = DISMISSED_DOC_TYPE
    doi: Optional[str] = None
    title: Optional[str] = None
    url: str = ""
    source: str = ""
    authors: str = ""
    year: Optional[int] = None
    doi_key: str = ""
    title_key: str = ""
    date_dismissed: datetime = Field(default_factory=utc_now)

    @field_validator("url", "source", "authors", mode="before")
    @classmethod
    def none_to_empty(cls, v):
        return "" if v is None else v

    @property
    def keys(self) -> ArticleKeys:
        """Identity keys of the dismissed work."""
        return ArticleKeys(doi_key=self.doi_key, title_key=self.title_key)


class ExistingReferenceIdentity(WireModel):
    """Read-only identity projection of a catalogued reference."""

    title: Optional[str] = None
    doi: Optional[str] = None
    url: Optional[str] = None
