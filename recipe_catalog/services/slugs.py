"""
Slug generation and collision resolution.

A slug is the lowercase ASCII, hyphen-separated form of a display name
("Crème Brûlée!" -> "creme-brulee"). When the slug is taken, numeric suffixes
are tried in order ("apple-pie-1", "apple-pie-2", ...) and the first free one
wins. The check is advisory: the unique constraint on the slug column decides
races between concurrent writers.
"""
import re
import unicodedata
from itertools import count
from typing import Callable, Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

_NON_ALNUM = re.compile(r"[^a-z0-9]+")

# exists(slug, exclude_id) -> True when a row other than exclude_id owns slug
SlugExists = Callable[[str, Optional[int]], bool]


def slugify(text: str) -> str:
    """Normalize text into a URL-safe slug. May return an empty string."""
    decomposed = unicodedata.normalize("NFKD", text or "")
    ascii_text = decomposed.encode("ascii", "ignore").decode("ascii")
    return _NON_ALNUM.sub("-", ascii_text.lower()).strip("-")


def resolve_unique_slug(
    name: str,
    exists: SlugExists,
    exclude_id: Optional[int] = None,
    fallback: str = "item",
) -> str:
    """
    Return the smallest free slug for ``name``.

    Args:
        name: Display name to derive the slug from
        exists: Collision check against the store
        exclude_id: Row whose own slug does not count as a collision (updates)
        fallback: Base used when the name has no ASCII letters or digits

    Returns:
        The base slug if free, otherwise base-N for the smallest N >= 1
    """
    base = slugify(name) or fallback
    if not exists(base, exclude_id):
        return base

    for counter in count(1):
        candidate = f"{base}-{counter}"
        if not exists(candidate, exclude_id):
            return candidate


def column_slug_exists(db: Session, model) -> SlugExists:
    """Build a collision check against ``model.slug`` (``model.id`` is excluded)."""

    def exists(slug: str, exclude_id: Optional[int]) -> bool:
        stmt = select(model.id).where(model.slug == slug)
        if exclude_id is not None:
            stmt = stmt.where(model.id != exclude_id)
        return db.execute(stmt.limit(1)).first() is not None

    return exists
