"""Orchestration: collaborator wiring and the operation facade."""

from litscout.orchestration.context import NewsreaderContext, build_store
from litscout.orchestration.newsreader import Newsreader, to_article

__all__ = [
    "NewsreaderContext",
    "Newsreader",
    "build_store",
    "to_article",
]
