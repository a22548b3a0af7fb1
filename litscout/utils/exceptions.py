"""Exception hierarchy for the newsreader engine.

Errors fall into four families:
- Validation errors for requests missing a required identifier
- Upstream errors raised by source adapters (soft, reported as diagnostics)
- Persistence errors raised by the shortlist and dismissal stores (hard)
- Configuration errors for a missing identity feed or credential (hard)

All exceptions inherit from NewsreaderError so callers at the transport
boundary can catch everything the engine raises in one place.
"""


class NewsreaderError(Exception):
    """Base exception for all newsreader errors

    Use this at the outermost boundary (HTTP handler, CLI command):
    ```python
    try:
        result = await newsreader.dismiss(article)
    except NewsreaderError as e:
        logger.error("dismiss_failed", error=str(e))
    ```
    """

    pass


class ValidationError(NewsreaderError):
    """Request is missing a required identifier

    Raised when:
    - dismiss() receives an article with neither DOI nor title
    - remove_from_shortlist() receives an empty identifier
    - add_to_shortlist() receives an article without a title

    The operation is rejected before any state is touched.
    """

    pass


class UpstreamUnavailableError(NewsreaderError):
    """A source adapter could not produce candidates

    Raised when:
    - HTTP request fails or returns a non-200 status
    - Response body cannot be parsed
    - Request times out

    Never fatal to a discovery request: the failing source contributes
    zero candidates and is listed in the result diagnostics.
    """

    pass


class RateLimitError(UpstreamUnavailableError):
    """Upstream rate limit exceeded with optional retry-after metadata."""

    def __init__(self, message: str, retry_after: float | None = None) -> None:
        super().__init__(message)
        self.retry_after = retry_after


class PersistenceError(NewsreaderError):
    """Shortlist or dismissal store is unreachable or rejected a write

    The specific add/remove/dismiss operation fails visibly.
    """

    pass


class VersionConflictError(PersistenceError):
    """Compare-and-swap write lost against a concurrent writer.

    Raised by DocumentStore.replace() when the stored etag no longer matches
    the one the caller read. Services retry on this error; it only escapes
    as a PersistenceError once retries are exhausted.
    """

    def __init__(
        self,
        collection: str,
        doc_id: str,
        expected: str | None,
        actual: str | None,
    ) -> None:
        super().__init__(
            f"Version conflict on {collection}/{doc_id}: "
            f"expected etag {expected!r}, found {actual!r}"
        )
        self.collection = collection
        self.doc_id = doc_id
        self.expected = expected
        self.actual = actual


class NotConfiguredError(NewsreaderError):
    """A mandatory collaborator or credential is absent

    Raised when:
    - No existing-reference identity feed is wired into the context
    - A source that requires an API key is explicitly demanded without one

    An optional search provider without its key is skipped instead.
    """

    pass
