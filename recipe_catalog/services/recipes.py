"""
Recipe versioning engine.

Owns the Recipe aggregate: the live recipe row, its append-only version
history, the ingredients and steps of each version, and its category and tag
links. Every write runs in one transaction and is rolled back as a whole on
failure.
"""
import logging
from typing import Callable, Iterable, List, Optional, Sequence, Tuple

from sqlalchemy import delete, func, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from recipe_catalog.core.config import Settings, get_settings
from recipe_catalog.core.errors import AppError
from recipe_catalog.models.catalog import Category, Ingredient, Tag
from recipe_catalog.models.recipe import (
    DIFFICULTIES,
    Recipe,
    RecipeIngredient,
    RecipeStep,
    RecipeVersion,
)
from recipe_catalog.schemas.recipe import RecipeCreate
from recipe_catalog.services.slugs import column_slug_exists, resolve_unique_slug

logger = logging.getLogger(__name__)

# Fields a patch may set on the recipe row
RECIPE_FIELDS = ("name", "description", "prep_time", "cook_time", "servings", "difficulty", "image_url")

# Fields captured by a version snapshot
VERSIONED_FIELDS = ("name", "description", "prep_time", "cook_time", "servings", "difficulty")


def _is_slug_violation(exc: IntegrityError) -> bool:
    return "slug" in str(exc.orig).lower()


class RecipeService:
    """
    Create, update, soft-delete and read recipes.

    Update semantics: ``changes`` holds only the fields the caller sent
    (``RecipeUpdate.model_dump(exclude_unset=True)``). A present field
    overwrites the stored value even when it is null; an absent field is left
    untouched. ``ingredients``/``steps``/``category_ids``/``tag_ids`` set to
    null are treated as absent.
    """

    def __init__(self, db: Session, settings: Optional[Settings] = None):
        self.db = db
        self.settings = settings or get_settings()

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def get_recipe(self, recipe_id: int) -> Optional[Recipe]:
        """Direct lookup, soft-deleted recipes included."""
        return self.db.get(Recipe, recipe_id)

    def get_active_recipe(self, recipe_id: int) -> Recipe:
        """Lookup following read-path visibility: missing or deleted is NotFound."""
        recipe = self.get_recipe(recipe_id)
        if recipe is None or not recipe.is_active:
            raise AppError.not_found("Recipe", recipe_id)
        return recipe

    def list_recipes(self, limit: int = 50, offset: int = 0) -> List[Recipe]:
        """Active recipes, most viewed first, ties broken by recency."""
        stmt = (
            self._popular_active_query()
            .limit(limit)
            .offset(offset)
        )
        return list(self.db.execute(stmt).scalars().all())

    def list_top(self, limit: int = 10) -> List[Recipe]:
        return list(self.db.execute(self._popular_active_query().limit(limit)).scalars().all())

    def get_current_version(self, recipe_id: int) -> Optional[RecipeVersion]:
        stmt = select(RecipeVersion).where(
            RecipeVersion.recipe_id == recipe_id,
            RecipeVersion.is_current.is_(True),
        )
        return self.db.execute(stmt).scalar_one_or_none()

    def list_versions(self, recipe_id: int) -> List[RecipeVersion]:
        """Version history of an active recipe, newest first."""
        self.get_active_recipe(recipe_id)
        stmt = (
            select(RecipeVersion)
            .where(RecipeVersion.recipe_id == recipe_id)
            .order_by(RecipeVersion.version_number.desc())
        )
        return list(self.db.execute(stmt).scalars().all())

    def list_version_ingredients(
        self, recipe_id: int, version: Optional[RecipeVersion]
    ) -> List[Tuple[RecipeIngredient, str]]:
        """Ingredient lines of a version with the ingredient's name."""
        stmt = (
            select(RecipeIngredient, Ingredient.name)
            .join(Ingredient, Ingredient.id == RecipeIngredient.ingredient_id)
            .where(*self._version_scope(RecipeIngredient, recipe_id, version))
            .order_by(RecipeIngredient.id)
        )
        return [(row[0], row[1]) for row in self.db.execute(stmt).all()]

    def list_version_steps(self, recipe_id: int, version: Optional[RecipeVersion]) -> List[RecipeStep]:
        stmt = (
            select(RecipeStep)
            .where(*self._version_scope(RecipeStep, recipe_id, version))
            .order_by(RecipeStep.step_number)
        )
        return list(self.db.execute(stmt).scalars().all())

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def create_recipe(self, data: RecipeCreate, created_by: Optional[str] = None) -> Recipe:
        """
        Create a recipe with version 1 as its current version.

        Args:
            data: Validated request body
            created_by: Token subject recorded on the version

        Returns:
            The persisted recipe

        Raises:
            AppError: VALIDATION_ERROR for rule violations, CONFLICT when the
                slug keeps losing races against concurrent writers
        """
        values = data.model_dump()
        try:
            self._validate_fields(values)

            ingredients = values.get("ingredients")
            steps = values.get("steps")
            self._validate_children(ingredients, steps)
            categories = self._load_labels(Category, values.get("category_ids"), "category_ids")
            tags = self._load_labels(Tag, values.get("tag_ids"), "tag_ids")

            recipe = Recipe(
                name=values["name"].strip(),
                description=values.get("description"),
                prep_time=values.get("prep_time"),
                cook_time=values.get("cook_time"),
                servings=values.get("servings"),
                difficulty=values.get("difficulty"),
                image_url=values.get("image_url"),
                view_count=0,
                is_active=True,
            )

            def assign_slug() -> Recipe:
                recipe.slug = resolve_unique_slug(
                    recipe.name, column_slug_exists(self.db, Recipe), fallback="recipe"
                )
                self.db.add(recipe)
                return recipe

            self._flush_with_slug_retry(assign_slug)

            version = RecipeVersion(
                recipe_id=recipe.id,
                version_number=1,
                is_current=True,
                created_by=created_by,
                **{field: getattr(recipe, field) for field in VERSIONED_FIELDS},
            )
            self.db.add(version)
            self.db.flush()

            self._add_children(recipe.id, version.id, ingredients or [], steps or [])
            recipe.categories = categories or []
            recipe.tags = tags or []

            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        self.db.refresh(recipe)
        logger.info("Created recipe %s (%s) at version 1", recipe.id, recipe.slug)
        return recipe

    def update_recipe(
        self,
        recipe_id: int,
        changes: dict,
        create_new_version: bool = False,
        note: Optional[str] = None,
        created_by: Optional[str] = None,
    ) -> Recipe:
        """
        Apply a partial update, optionally snapshotting it as a new version.

        With ``create_new_version`` the current version is retired and a new
        current version numbered max + 1 records the post-update values. The
        new version gets the patched ingredients/steps, or copies of the
        previous version's when those were not sent.

        Raises:
            AppError: NOT_FOUND for a missing or deleted recipe,
                VALIDATION_ERROR for rule violations
        """
        changes = {key: value for key, value in changes.items() if key != "version_note"}
        try:
            recipe = self.get_active_recipe(recipe_id)
            self._validate_fields(changes)

            ingredients = changes.get("ingredients")
            steps = changes.get("steps")
            self._validate_children(ingredients, steps)
            categories = self._load_labels(Category, changes.get("category_ids"), "category_ids")
            tags = self._load_labels(Tag, changes.get("tag_ids"), "tag_ids")

            scalar_changes = {field: changes[field] for field in RECIPE_FIELDS if field in changes}
            if "name" in scalar_changes:
                scalar_changes["name"] = scalar_changes["name"].strip()
            name_changed = "name" in scalar_changes and scalar_changes["name"] != recipe.name

            current = self.get_current_version(recipe.id)

            if create_new_version:
                snapshot = {
                    field: scalar_changes.get(field, getattr(recipe, field))
                    for field in VERSIONED_FIELDS
                }
                version = self._append_version(recipe.id, snapshot, note, created_by)
                self._carry_children_forward(recipe.id, current, version, ingredients, steps)
            else:
                version = current
                self._replace_children(recipe.id, version, ingredients, steps)

            def apply_changes() -> Recipe:
                for field, value in scalar_changes.items():
                    setattr(recipe, field, value)
                if name_changed:
                    recipe.slug = resolve_unique_slug(
                        recipe.name,
                        column_slug_exists(self.db, Recipe),
                        exclude_id=recipe.id,
                        fallback="recipe",
                    )
                recipe.updated_at = func.now()
                return recipe

            self._flush_with_slug_retry(apply_changes)

            if categories is not None:
                recipe.categories = categories
            if tags is not None:
                recipe.tags = tags

            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        self.db.refresh(recipe)
        if create_new_version:
            logger.info("Updated recipe %s to version %s", recipe.id, version.version_number)
        else:
            logger.info("Updated recipe %s", recipe.id)
        return recipe

    def delete_recipe(self, recipe_id: int) -> None:
        """Soft delete. Versions and children are kept; repeating is a no-op."""
        recipe = self.get_recipe(recipe_id)
        if recipe is None:
            raise AppError.not_found("Recipe", recipe_id)
        if not recipe.is_active:
            return

        recipe.is_active = False
        try:
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        logger.info("Soft-deleted recipe %s", recipe_id)

    def increment_view_count(self, recipe_id: int) -> None:
        """Add exactly one view with a single UPDATE; deleted recipes are NotFound."""
        stmt = (
            update(Recipe)
            .where(Recipe.id == recipe_id, Recipe.is_active.is_(True))
            .values(view_count=Recipe.view_count + 1, updated_at=Recipe.updated_at)
            .execution_options(synchronize_session=False)
        )
        try:
            result = self.db.execute(stmt)
            if result.rowcount == 0:
                raise AppError.not_found("Recipe", recipe_id)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _popular_active_query(self):
        return (
            select(Recipe)
            .where(Recipe.is_active.is_(True))
            .order_by(Recipe.view_count.desc(), Recipe.created_at.desc(), Recipe.id.desc())
        )

    def _validate_fields(self, values: dict) -> None:
        """Check the recipe rules for every field present in ``values``."""
        errors = []
        if "name" in values and (values["name"] is None or not values["name"].strip()):
            errors.append({"field": "name", "message": "Recipe name must not be empty"})
        for field in ("prep_time", "cook_time"):
            if values.get(field) is not None and values[field] < 0:
                errors.append({"field": field, "message": f"{field} must not be negative"})
        if values.get("servings") is not None and values["servings"] <= 0:
            errors.append({"field": "servings", "message": "servings must be greater than zero"})
        if values.get("difficulty") is not None and values["difficulty"] not in DIFFICULTIES:
            errors.append({
                "field": "difficulty",
                "message": f"difficulty must be one of {', '.join(DIFFICULTIES)}",
            })

        if errors:
            raise AppError.validation(errors[0]["message"], details=errors)

    def _validate_children(self, ingredients: Optional[list], steps: Optional[list]) -> None:
        if ingredients is not None:
            if len(ingredients) == 0:
                raise AppError.validation("Recipe must have at least one ingredient")
            wanted = {line["ingredient_id"] for line in ingredients}
            found = set(self.db.execute(
                select(Ingredient.id).where(Ingredient.id.in_(wanted))
            ).scalars().all())
            missing = sorted(wanted - found)
            if missing:
                raise AppError.validation(
                    "Unknown ingredients", details={"ingredient_ids": missing}
                )

        if steps:
            numbers = [step["step_number"] for step in steps]
            if len(numbers) != len(set(numbers)):
                raise AppError.validation("Step numbers must be unique")

    def _load_labels(self, model, ids: Optional[Sequence[int]], field: str):
        """Load categories or tags by id; None means the caller did not send the field."""
        if ids is None:
            return None
        wanted = list(dict.fromkeys(ids))
        if not wanted:
            return []
        labels = self.db.execute(select(model).where(model.id.in_(wanted))).scalars().all()
        missing = sorted(set(wanted) - {label.id for label in labels})
        if missing:
            raise AppError.validation(f"Unknown {field}", details={field: missing})
        return list(labels)

    def _flush_with_slug_retry(self, apply: Callable[[], Recipe]) -> Recipe:
        """
        Flush the recipe written by ``apply`` inside a savepoint.

        When a concurrent writer takes the chosen slug first, the savepoint is
        rolled back, the slug resolved again and the write retried up to
        SLUG_MAX_ATTEMPTS times.
        """
        attempts = self.settings.SLUG_MAX_ATTEMPTS
        for attempt in range(1, attempts + 1):
            savepoint = self.db.begin_nested()
            recipe = apply()
            slug = recipe.slug
            try:
                self.db.flush()
            except IntegrityError as exc:
                savepoint.rollback()
                if not _is_slug_violation(exc):
                    raise
                if attempt == attempts:
                    raise AppError.conflict(
                        "Recipe slug is already in use", details={"slug": slug}
                    ) from exc
                logger.warning(
                    "Slug %r taken by a concurrent write, retrying (%s/%s)",
                    slug, attempt, attempts,
                )
                continue
            savepoint.commit()
            return recipe

    def _next_version_number(self, recipe_id: int) -> int:
        current_max = self.db.execute(
            select(func.max(RecipeVersion.version_number)).where(RecipeVersion.recipe_id == recipe_id)
        ).scalar()
        return (current_max or 0) + 1

    def _append_version(
        self, recipe_id: int, snapshot: dict, note: Optional[str], created_by: Optional[str]
    ) -> RecipeVersion:
        next_number = self._next_version_number(recipe_id)

        # Retire the current version before inserting its successor
        self.db.execute(
            update(RecipeVersion)
            .where(RecipeVersion.recipe_id == recipe_id, RecipeVersion.is_current.is_(True))
            .values(is_current=False)
        )

        version = RecipeVersion(
            recipe_id=recipe_id,
            version_number=next_number,
            is_current=True,
            note=note,
            created_by=created_by,
            **snapshot,
        )
        self.db.add(version)
        self.db.flush()
        return version

    def _add_children(
        self, recipe_id: int, version_id: Optional[int], ingredients: Iterable[dict], steps: Iterable[dict]
    ) -> None:
        for line in ingredients:
            self.db.add(RecipeIngredient(
                recipe_id=recipe_id,
                recipe_version_id=version_id,
                ingredient_id=line["ingredient_id"],
                quantity=line["quantity"],
                unit=line["unit"],
                notes=line.get("notes"),
            ))
        for step in steps:
            self.db.add(RecipeStep(
                recipe_id=recipe_id,
                recipe_version_id=version_id,
                step_number=step["step_number"],
                instruction=step["instruction"],
                image_url=step.get("image_url"),
            ))
        self.db.flush()

    def _carry_children_forward(
        self,
        recipe_id: int,
        previous: Optional[RecipeVersion],
        version: RecipeVersion,
        ingredients: Optional[list],
        steps: Optional[list],
    ) -> None:
        if ingredients is None:
            ingredients = [
                {
                    "ingredient_id": line.ingredient_id,
                    "quantity": line.quantity,
                    "unit": line.unit,
                    "notes": line.notes,
                }
                for line, _ in self.list_version_ingredients(recipe_id, previous)
            ]
        if steps is None:
            steps = [
                {
                    "step_number": step.step_number,
                    "instruction": step.instruction,
                    "image_url": step.image_url,
                }
                for step in self.list_version_steps(recipe_id, previous)
            ]
        self._add_children(recipe_id, version.id, ingredients, steps)

    def _replace_children(
        self,
        recipe_id: int,
        version: Optional[RecipeVersion],
        ingredients: Optional[list],
        steps: Optional[list],
    ) -> None:
        version_id = version.id if version is not None else None
        if ingredients is not None:
            self.db.execute(
                delete(RecipeIngredient).where(*self._version_scope(RecipeIngredient, recipe_id, version))
            )
            self._add_children(recipe_id, version_id, ingredients, [])
        if steps is not None:
            self.db.execute(
                delete(RecipeStep).where(*self._version_scope(RecipeStep, recipe_id, version))
            )
            self._add_children(recipe_id, version_id, [], steps)

    @staticmethod
    def _version_scope(model, recipe_id: int, version: Optional[RecipeVersion]) -> tuple:
        if version is None:
            return (model.recipe_id == recipe_id, model.recipe_version_id.is_(None))
        return (model.recipe_id == recipe_id, model.recipe_version_id == version.id)
