"""Response models for shortlist, dismissal and cascade operations."""

from typing import Literal, Optional

from pydantic import Field

from litscout.models.article import WireModel


class AddResult(WireModel):
    """Outcome of adding an article to the shortlist.

    Exactly one of three shapes:
    - ``added=True``: a new entry was appended
    - ``added=False, skipped="dismissed"``: the identity was dismissed before
    - ``added=False, duplicate=True``: the identity is already shortlisted
    """

    added: bool
    skipped: Optional[Literal["dismissed"]] = None
    duplicate: bool = False


class RemoveResult(WireModel):
    removed: bool


class DismissResult(WireModel):
    """Outcome of dismissing an article."""

    dismissed: bool = True
    record_id: str
    removed_from_shortlist: int = Field(0, ge=0)


class CascadeResult(WireModel):
    """Shortlist entries purged by a reference lifecycle hook."""

    event: Literal["created", "updated"]
    removed: int = Field(0, ge=0)
