"""
Candidate admission gate.

Multi-stage admission, first rejection wins:
1. Title sanity (missing, too short, no letters, "title pending" placeholder)
2. Exact key match against catalogued references and the shortlist
3. Exact key match against dismissed records
4. Near-duplicate token overlap against dismissed titles
5. Exact key match against candidates already admitted in this run
6. Domain relevance
"""

import math
import re
from dataclasses import dataclass, field
from typing import FrozenSet, Iterable, List, Optional, Set, Tuple, Union
import structlog

from litscout.models.article import (
    CandidateArticle,
    DismissedRecord,
    ExistingReferenceIdentity,
    ShortlistEntry,
)
from litscout.models.dedup import DedupStats, RejectionReason
from litscout.services.relevance_filter import RelevanceFilter
from litscout.utils.keys import ArticleKeys, keys_of, url_doi_key

logger = structlog.get_logger()

MIN_TITLE_LENGTH = 10
MIN_TOKEN_LENGTH = 4

_NO_LETTERS = re.compile(r"^[\W\d_]+$")
_TITLE_PENDING = re.compile(r"^title pending", re.IGNORECASE)
_NON_ALNUM = re.compile(r"[^a-z0-9\s]")

# Generic academic and function words that carry no identity
TITLE_STOPWORDS: FrozenSet[str] = frozenset(
    {
        "about", "across", "after", "against", "among", "analysis", "approach",
        "approaches", "based", "before", "being", "between", "beyond", "case",
        "does", "during", "evidence", "from", "have", "into", "more", "over",
        "paper", "perspective", "perspectives", "research", "review", "some",
        "study", "such", "than", "that", "their", "them", "there", "these",
        "they", "this", "those", "through", "toward", "towards", "under",
        "using", "what", "when", "where", "which", "while", "with", "within",
        "without",
    }
)


def tokenize_title(title: Optional[str]) -> FrozenSet[str]:
    """
    Reduce a title to its identity-bearing tokens.

    Args:
        title: Raw title

    Returns:
        Lowercase alphanumeric tokens longer than three characters,
        stopwords removed
    """
    if not title:
        return frozenset()
    text = _NON_ALNUM.sub(" ", title.lower())
    return frozenset(
        tok
        for tok in text.split()
        if len(tok) >= MIN_TOKEN_LENGTH and tok not in TITLE_STOPWORDS
    )


def near_duplicate_threshold(token_count: int) -> int:
    """
    Minimum overlap for a candidate to count as a near-duplicate.

    Args:
        token_count: Size of the dismissed title's token set

    Returns:
        min(3, max(2, ceil(0.6 * token_count)))
    """
    return min(3, max(2, math.ceil(0.6 * token_count)))


def is_valid_title(title: Optional[str]) -> bool:
    """Title sanity gate."""
    if not title or len(title) < MIN_TITLE_LENGTH:
        return False
    if _NO_LETTERS.match(title):
        return False
    if _TITLE_PENDING.match(title.strip()):
        return False
    return True


def _add_keys(keys: ArticleKeys, doi_keys: Set[str], title_keys: Set[str]) -> None:
    if keys.doi_key:
        doi_keys.add(keys.doi_key)
    if keys.title_key:
        title_keys.add(keys.title_key)


def _hits(keys: ArticleKeys, doi_keys: Set[str], title_keys: Set[str]) -> bool:
    return bool(
        (keys.doi_key and keys.doi_key in doi_keys)
        or (keys.title_key and keys.title_key in title_keys)
    )


@dataclass
class DismissedKeys:
    """Dismissed identities as exact key sets plus title token sets.

    Shared by the admission gate, the shortlist add guard and the
    shortlist read-time filter.
    """

    doi_keys: Set[str] = field(default_factory=set)
    title_keys: Set[str] = field(default_factory=set)
    token_sets: List[FrozenSet[str]] = field(default_factory=list)

    @classmethod
    def from_records(cls, records: Iterable[DismissedRecord]) -> "DismissedKeys":
        """Collect keys and title tokens from dismissed records."""
        dismissed = cls()
        for record in records:
            _add_keys(record.keys, dismissed.doi_keys, dismissed.title_keys)
            tokens = tokenize_title(record.title)
            if tokens:
                dismissed.token_sets.append(tokens)
        return dismissed

    def contains(self, keys: ArticleKeys) -> bool:
        """Exact match on either key; near-duplicates are not considered."""
        return _hits(keys, self.doi_keys, self.title_keys)


@dataclass
class AdmissionContext:
    """Everything already known when a discovery run starts.

    Existing-reference sets cover the catalogue and the current shortlist;
    the admitted sets grow as candidates pass the gate during the run.
    """

    existing_doi_keys: Set[str] = field(default_factory=set)
    existing_title_keys: Set[str] = field(default_factory=set)
    dismissed: DismissedKeys = field(default_factory=DismissedKeys)
    admitted_doi_keys: Set[str] = field(default_factory=set)
    admitted_title_keys: Set[str] = field(default_factory=set)

    @classmethod
    def build(
        cls,
        references: Iterable[ExistingReferenceIdentity] = (),
        shortlist: Iterable[ShortlistEntry] = (),
        dismissed: Union[DismissedKeys, Iterable[DismissedRecord]] = (),
    ) -> "AdmissionContext":
        """
        Build a context from the identity feed and both stores.

        Args:
            references: Catalogued reference identities
            shortlist: Current shortlist entries
            dismissed: Dismissed keys, or the dismissed records to collect them from

        Returns:
            Populated AdmissionContext
        """
        ctx = cls()
        for ref in references:
            _add_keys(keys_of(ref), ctx.existing_doi_keys, ctx.existing_title_keys)
            url_doi = url_doi_key(ref)
            if url_doi:
                ctx.existing_doi_keys.add(url_doi)
        for entry in shortlist:
            _add_keys(entry.keys, ctx.existing_doi_keys, ctx.existing_title_keys)
        if isinstance(dismissed, DismissedKeys):
            ctx.dismissed = dismissed
        else:
            ctx.dismissed = DismissedKeys.from_records(dismissed)
        return ctx

    def admit(self, candidate: CandidateArticle) -> None:
        """Record an admitted candidate's keys for the in-run check."""
        _add_keys(candidate.keys, self.admitted_doi_keys, self.admitted_title_keys)


class DeduplicationService:
    """
    Composite admission gate for discovery candidates.

    Pure over the supplied AdmissionContext; only the context's admitted
    sets and this service's stats are mutated.
    """

    def __init__(self, relevance_filter: Optional[RelevanceFilter] = None):
        """
        Initialize admission gate.

        Args:
            relevance_filter: Relevance filter for the final gate
        """
        self.relevance_filter = relevance_filter or RelevanceFilter()
        self.stats = DedupStats()

    def evaluate(
        self, candidate: CandidateArticle, context: AdmissionContext
    ) -> Optional[RejectionReason]:
        """
        Run the gates in order and report the first failure.

        Args:
            candidate: Candidate to check
            context: Known identities for this run

        Returns:
            RejectionReason, or None if the candidate is admissible
        """
        if not is_valid_title(candidate.title):
            return RejectionReason.INVALID_TITLE

        keys = candidate.keys
        if _hits(keys, context.existing_doi_keys, context.existing_title_keys):
            return RejectionReason.EXISTING_REFERENCE

        if context.dismissed.contains(keys):
            return RejectionReason.DISMISSED

        if self._is_near_duplicate(candidate.title, context.dismissed.token_sets):
            return RejectionReason.NEAR_DUPLICATE

        if _hits(keys, context.admitted_doi_keys, context.admitted_title_keys):
            return RejectionReason.DUPLICATE_IN_RUN

        if not self.relevance_filter.is_relevant(candidate.title, candidate.abstract):
            return RejectionReason.NOT_RELEVANT

        return None

    def is_admissible(
        self, candidate: CandidateArticle, context: AdmissionContext
    ) -> bool:
        """Check a candidate without recording it."""
        return self.evaluate(candidate, context) is None

    @staticmethod
    def _is_near_duplicate(
        title: Optional[str], dismissed_token_sets: List[FrozenSet[str]]
    ) -> bool:
        tokens = tokenize_title(title)
        if not tokens:
            return False

        for dismissed in dismissed_token_sets:
            overlap = len(tokens & dismissed)
            if overlap >= near_duplicate_threshold(len(dismissed)):
                logger.debug(
                    "near_duplicate_detected",
                    title=(title or "")[:50],
                    overlap=overlap,
                    dismissed_tokens=len(dismissed),
                )
                return True
        return False

    def admit_candidates(
        self, candidates: Iterable[CandidateArticle], context: AdmissionContext
    ) -> Tuple[List[CandidateArticle], List[Tuple[CandidateArticle, RejectionReason]]]:
        """
        Separate admitted candidates from rejected ones, in input order.

        Args:
            candidates: Candidates in source-enumeration order
            context: Known identities; its admitted sets are updated

        Returns:
            Tuple of (admitted, [(rejected, reason), ...])
        """
        admitted: List[CandidateArticle] = []
        rejected: List[Tuple[CandidateArticle, RejectionReason]] = []

        for candidate in candidates:
            self.stats.total_checked += 1
            reason = self.evaluate(candidate, context)

            if reason is None:
                context.admit(candidate)
                admitted.append(candidate)
                self.stats.admitted += 1
            else:
                rejected.append((candidate, reason))
                self.stats.record_rejection(reason)
                logger.debug(
                    "candidate_rejected",
                    reason=reason.value,
                    source=candidate.source,
                    title=(candidate.title or "")[:50],
                )

        logger.info(
            "admission_complete",
            total=self.stats.total_checked,
            admitted=len(admitted),
            rejected=len(rejected),
            rejection_rate=f"{self.stats.rejection_rate:.1%}",
        )

        return admitted, rejected

    def get_stats(self) -> DedupStats:
        """
        Get admission statistics.

        Returns:
            DedupStats with current statistics
        """
        return self.stats

    def reset_stats(self) -> None:
        """Clear counters before a new run"""
        self.stats = DedupStats()
