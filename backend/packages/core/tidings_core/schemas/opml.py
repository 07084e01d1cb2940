"""
OPML import schemas.
"""

from pydantic import BaseModel


class OPMLImportResult(BaseModel):
    """Summary of an OPML import."""

    total: int = 0
    added: int = 0
    skipped: int = 0
    failed: int = 0
    folders_created: int = 0
    errors: list[str] = []
