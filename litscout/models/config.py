import re
from enum import Enum
from typing import Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from litscout.models.filters import RelevanceConfig

_UNEXPANDED_VAR = re.compile(r"^\$\{\w+\}$")


class SourceType(str, Enum):
    CROSSREF = "crossref"
    SEMANTIC_SCHOLAR = "semantic_scholar"
    ARXIV = "arxiv"


class SearchQuery(BaseModel):
    """A single discovery query and the category label it assigns"""

    query: str = Field(..., min_length=1, max_length=500)
    category: str = Field("", max_length=200)

    @field_validator("query")
    @classmethod
    def validate_query(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Query cannot be blank")
        if any(ord(c) < 32 for c in v if c not in "\t\n\r"):
            raise ValueError("Query contains invalid control characters")
        return v


DEFAULT_QUERIES: List[SearchQuery] = [
    SearchQuery(query=q, category=c)
    for q, c in [
        ("longitudinal study generative AI creative practice workflow", "Longitudinal AI Studies"),
        ("ethnography AI creative work studio practice", "AI Ethnography"),
        ("AI governance creative industries provenance attribution", "AI Governance"),
        ("AI copyright licensing consent compensation creators", "Copyright & Licensing"),
        ("AI embodied creativity performance craft making", "Embodied AI Creativity"),
        ("AI creative industries global south non-western", "Global Perspectives"),
        ("AI sustainability compute carbon creative production", "AI Sustainability"),
        ("generative AI creative labor automation displacement", "Creative AI & Labor"),
        ("human AI co-creation collaboration creativity HCI", "Human-AI Co-Creativity"),
        ("AI copyright intellectual property training data artists", "Copyright & IP"),
        ("AI creative industries cultural production work", "Creative Industries"),
        ("large language models writing authorship text generation", "LLMs & Writing"),
        ("AI art visual design image generation artists", "AI Art & Design"),
        ("AI music composition production audio generation", "AI & Music"),
        ("AI agency autonomy creativity intentionality", "AI & Agency"),
    ]
]


class SourceSettings(BaseModel):
    """Per-source query caps and credentials"""

    enabled: bool = Field(True, description="Whether the source is queried")
    max_queries: int = Field(
        4, ge=0, le=100, description="Number of leading queries sent to this source"
    )
    results_per_query: int = Field(10, ge=1, le=100)
    min_year: Optional[int] = Field(
        None, ge=1900, le=2100, description="Drop records published before this year"
    )
    api_key: Optional[str] = Field(None, description="API key (from environment)")
    mailto: Optional[str] = Field(
        None, description="Contact address for polite-pool access (CrossRef)"
    )

    @field_validator("api_key", "mailto", mode="before")
    @classmethod
    def blank_to_none(cls, v):
        # Unset ${VAR} references are left verbatim by safe_substitute
        if isinstance(v, str) and (not v.strip() or _UNEXPANDED_VAR.match(v.strip())):
            return None
        return v


def _default_sources() -> Dict[SourceType, SourceSettings]:
    return {
        SourceType.CROSSREF: SourceSettings(
            enabled=True, max_queries=8, results_per_query=10, min_year=2020
        ),
        SourceType.SEMANTIC_SCHOLAR: SourceSettings(
            enabled=True, max_queries=4, results_per_query=8, min_year=2023
        ),
        SourceType.ARXIV: SourceSettings(
            enabled=False, max_queries=4, results_per_query=10, min_year=2023
        ),
    }


class DiscoverySettings(BaseModel):
    """Ranking window and fan-out limits"""

    max_results: int = Field(30, ge=1, le=500, description="Truncate output to N")
    new_window_days: int = Field(
        90, ge=1, le=3650, description="Age limit for the is_new flag"
    )
    lookback_days: int = Field(365, ge=1, le=3650)
    new_lookback_days: int = Field(
        180, ge=1, le=3650, description="Narrower lookback used in only-new mode"
    )
    max_concurrency: int = Field(
        4, ge=1, le=64, description="Concurrent source calls per request"
    )
    source_timeout_seconds: float = Field(
        30.0, ge=1.0, le=300.0, description="Per source call timeout"
    )

    @model_validator(mode="after")
    def validate_windows(self):
        if self.new_lookback_days > self.lookback_days:
            raise ValueError("new_lookback_days cannot exceed lookback_days")
        return self


class StorageSettings(BaseModel):
    """Document store backend selection"""

    backend: Literal["memory", "json"] = "json"
    path: str = Field("./data", description="Directory for the json backend")


class LoggingSettings(BaseModel):
    level: str = Field("INFO", pattern=r"^(DEBUG|INFO|WARNING|ERROR|CRITICAL)$")
    json_output: bool = True


class NewsreaderConfig(BaseModel):
    """Root configuration model"""

    model_config = ConfigDict(extra="forbid")

    queries: List[SearchQuery] = Field(
        default_factory=lambda: list(DEFAULT_QUERIES), min_length=1, max_length=100
    )
    discovery: DiscoverySettings = Field(default_factory=DiscoverySettings)
    sources: Dict[SourceType, SourceSettings] = Field(default_factory=_default_sources)
    relevance: RelevanceConfig = Field(default_factory=RelevanceConfig)
    storage: StorageSettings = Field(default_factory=StorageSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)

    @field_validator("sources")
    @classmethod
    def fill_missing_sources(
        cls, v: Dict[SourceType, SourceSettings]
    ) -> Dict[SourceType, SourceSettings]:
        # Sources omitted from the file keep their defaults
        merged = _default_sources()
        merged.update(v)
        return merged
