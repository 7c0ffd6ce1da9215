"""
Tests for slug generation and collision resolution.
"""
from sqlalchemy.orm import Session

from recipe_catalog.models.recipe import Recipe
from recipe_catalog.services.slugs import column_slug_exists, resolve_unique_slug, slugify


class TestSlugify:
    """Tests for name normalization."""

    def test_lowercases_and_hyphenates(self):
        assert slugify("Apple Pie") == "apple-pie"

    def test_strips_punctuation_and_edges(self):
        assert slugify("  Apple Pie!  ") == "apple-pie"
        assert slugify("--Mac & Cheese--") == "mac-cheese"

    def test_transliterates_accents(self):
        assert slugify("Crème Brûlée") == "creme-brulee"

    def test_collapses_separators(self):
        assert slugify("Fish   and__chips") == "fish-and-chips"

    def test_no_ascii_content_is_empty(self):
        assert slugify("!!!") == ""
        assert slugify("") == ""


class TestResolveUniqueSlug:
    """Tests for the suffix search against an in-memory set of slugs."""

    @staticmethod
    def _exists_in(taken: dict):
        def exists(slug, exclude_id):
            owner = taken.get(slug)
            return owner is not None and owner != exclude_id
        return exists

    def test_free_base_is_used(self):
        assert resolve_unique_slug("Apple Pie", self._exists_in({})) == "apple-pie"

    def test_collisions_take_smallest_suffix(self):
        taken = {"apple-pie": 1}
        assert resolve_unique_slug("Apple Pie!", self._exists_in(taken)) == "apple-pie-1"

        taken["apple-pie-1"] = 2
        assert resolve_unique_slug("apple pie", self._exists_in(taken)) == "apple-pie-2"

    def test_gap_in_suffixes_is_filled(self):
        taken = {"apple-pie": 1, "apple-pie-2": 3}
        assert resolve_unique_slug("Apple Pie", self._exists_in(taken)) == "apple-pie-1"

    def test_excluded_row_keeps_its_slug(self):
        taken = {"apple-pie": 7}
        assert resolve_unique_slug("Apple Pie", self._exists_in(taken), exclude_id=7) == "apple-pie"

    def test_idempotent_without_state_change(self):
        exists = self._exists_in({"apple-pie": 1})
        assert resolve_unique_slug("Apple Pie", exists) == resolve_unique_slug("Apple Pie", exists)

    def test_fallback_for_empty_slug(self):
        assert resolve_unique_slug("???", self._exists_in({}), fallback="recipe") == "recipe"


class TestColumnSlugExists:
    """Tests for the database-backed collision check."""

    def test_checks_recipe_slugs(self, db: Session, recipe: Recipe):
        exists = column_slug_exists(db, Recipe)

        assert exists("apple-pie", None) is True
        assert exists("apple-pie", recipe.id) is False
        assert exists("banana-bread", None) is False

    def test_resolves_against_stored_recipes(self, db: Session, recipe: Recipe):
        slug = resolve_unique_slug("Apple Pie", column_slug_exists(db, Recipe))

        assert slug == "apple-pie-1"
