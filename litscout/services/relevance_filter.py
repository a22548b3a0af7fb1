"""
Domain relevance filter.

Two gates over the lowercased title + abstract text:
- Keyword gate (recall): at least one domain keyword must appear as a substring
- Off-topic gate (precision): no word-boundary exclusion pattern may match

A candidate is relevant only if it passes both.
"""

import re
from typing import List, Optional, Pattern
import structlog

from litscout.models.filters import RelevanceConfig, RelevanceStats

logger = structlog.get_logger()


class RelevanceFilter:
    """
    Keyword-positive / off-topic-negative classifier.

    The keyword list is deliberately broad; the exclusion patterns are
    narrow and word-bounded.
    """

    def __init__(self, config: Optional[RelevanceConfig] = None):
        """
        Initialize relevance filter.

        Args:
            config: Keyword vocabulary and exclusion patterns
        """
        self.config = config or RelevanceConfig()
        self._keywords: List[str] = [kw.lower() for kw in self.config.keywords]
        self._off_topic: List[Pattern[str]] = [
            re.compile(p, re.IGNORECASE) for p in self.config.off_topic_patterns
        ]
        self.stats = RelevanceStats()

        logger.debug(
            "relevance_filter_initialized",
            keywords=len(self._keywords),
            off_topic_patterns=len(self._off_topic),
        )

    def is_relevant(self, title: Optional[str], abstract: Optional[str]) -> bool:
        """
        Classify an article as in-domain or not.

        Args:
            title: Article title (may be None)
            abstract: Article abstract (may be None)

        Returns:
            True if a domain keyword matches and no off-topic pattern does
        """
        self.stats.total_checked += 1
        text = f"{title or ''} {abstract or ''}".lower()

        if not any(kw in text for kw in self._keywords):
            self.stats.rejected_no_keyword += 1
            return False

        for pattern in self._off_topic:
            if pattern.search(text):
                self.stats.rejected_off_topic += 1
                logger.debug(
                    "relevance_off_topic",
                    title=(title or "")[:50],
                    pattern=pattern.pattern,
                )
                return False

        self.stats.accepted += 1
        return True

    def get_stats(self) -> RelevanceStats:
        """
        Get relevance statistics.

        Returns:
            RelevanceStats with current counters
        """
        return self.stats
