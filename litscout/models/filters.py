"""Data models for relevance filtering."""

from pydantic import BaseModel, Field, ConfigDict, field_validator
from typing import List
import re


DEFAULT_RELEVANCE_KEYWORDS: List[str] = [
    "artificial intelligence", "AI", "machine learning", "generative", "neural network",
    "deep learning", "GPT", "LLM", "language model", "diffusion", "DALL-E", "Midjourney",
    "ChatGPT", "creative", "creativity", "art", "artist", "design", "designer",
    "music", "writing", "author", "copyright", "intellectual property", "automation",
    "labor", "labour", "work", "worker", "employment", "job", "platform", "gig economy",
    "human-computer", "HCI", "interaction", "co-creation", "collaboration",
    "media", "journalism", "content", "algorithm", "computational", "authorship",
    "creative industries", "cultural industries", "precarity", "deskilling",
]

# Healthcare, hard sciences, agriculture, sports, finance, military
DEFAULT_OFF_TOPIC_PATTERNS: List[str] = [
    r"\bhealthcare\b", r"\bmedical\b", r"\bclinical\b", r"\bpatient\b",
    r"\bbiological\b", r"\bchemistry\b", r"\bphysics\b", r"\bgeology\b",
    r"\bagriculture\b", r"\bfarming\b", r"\bcrop\b",
    r"\bsports\b", r"\bathletic\b",
    r"\bfinancial\b", r"\bbanking\b", r"\bstock\b",
    r"\bmilitary\b", r"\bdefense\b", r"\bweapon\b",
]


class RelevanceConfig(BaseModel):
    """Keyword gate and off-topic exclusion configuration"""
    model_config = ConfigDict(protected_namespaces=())

    keywords: List[str] = Field(
        default_factory=lambda: list(DEFAULT_RELEVANCE_KEYWORDS), min_length=1
    )
    off_topic_patterns: List[str] = Field(
        default_factory=lambda: list(DEFAULT_OFF_TOPIC_PATTERNS)
    )

    @field_validator("off_topic_patterns")
    @classmethod
    def validate_patterns(cls, v: List[str]) -> List[str]:
        for pattern in v:
            try:
                re.compile(pattern)
            except re.error as e:
                raise ValueError(f"Invalid off-topic pattern {pattern!r}: {e}")
        return v


class RelevanceStats(BaseModel):
    """Relevance filtering statistics"""
    model_config = ConfigDict(protected_namespaces=())

    total_checked: int = 0
    rejected_no_keyword: int = 0
    rejected_off_topic: int = 0
    accepted: int = 0
