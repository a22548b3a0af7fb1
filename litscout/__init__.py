"""litscout: research article discovery, relevance filtering and shortlist curation."""

__version__ = "1.0.0"
