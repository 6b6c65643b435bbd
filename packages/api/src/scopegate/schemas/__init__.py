# This project was developed with assistance from AI tools.
"""Shared schema components."""

from pydantic import BaseModel


class Pagination(BaseModel):
    """Page-based pagination metadata for list responses.

    ``pages == ceil(records / limit)``; ``current`` may exceed ``pages``, in
    which case the page is simply empty.
    """

    current: int
    limit: int
    records: int
    pages: int
