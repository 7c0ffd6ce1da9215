"""
Reference data service: ingredients, categories, tags and restaurants.
"""
import logging
from typing import List

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from recipe_catalog.core.errors import AppError
from recipe_catalog.models.catalog import Category, Ingredient, Tag
from recipe_catalog.models.restaurant import Restaurant
from recipe_catalog.schemas.catalog import CategoryCreate, IngredientCreate, RestaurantCreate, TagCreate
from recipe_catalog.services.slugs import column_slug_exists, resolve_unique_slug

logger = logging.getLogger(__name__)


class CatalogService:
    """Lookups and inserts for the labels recipes and menus refer to."""

    def __init__(self, db: Session):
        self.db = db

    # Ingredients

    def list_ingredients(self) -> List[Ingredient]:
        return list(self.db.execute(select(Ingredient).order_by(Ingredient.name.asc())).scalars().all())

    def get_ingredient(self, ingredient_id: int) -> Ingredient:
        ingredient = self.db.get(Ingredient, ingredient_id)
        if ingredient is None:
            raise AppError.not_found("Ingredient", ingredient_id)
        return ingredient

    def create_ingredient(self, data: IngredientCreate) -> Ingredient:
        name = data.name.strip()
        if not name:
            raise AppError.validation("Ingredient name must not be empty")

        existing = self.db.execute(
            select(Ingredient.id).where(func.lower(Ingredient.name) == name.lower())
        ).first()
        if existing is not None:
            raise AppError.conflict(f"Ingredient already exists: {name}", details={"id": existing[0]})

        ingredient = Ingredient(name=name, unit=data.unit.strip())
        self.db.add(ingredient)
        try:
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            raise AppError.conflict(f"Ingredient already exists: {name}")

        self.db.refresh(ingredient)
        logger.info("Created ingredient %s (%s)", ingredient.id, ingredient.name)
        return ingredient

    # Categories

    def list_categories(self) -> List[Category]:
        return list(self.db.execute(select(Category).order_by(Category.name.asc())).scalars().all())

    def get_category(self, category_id: int) -> Category:
        category = self.db.get(Category, category_id)
        if category is None:
            raise AppError.not_found("Category", category_id)
        return category

    def create_category(self, data: CategoryCreate) -> Category:
        name = data.name.strip()
        if not name:
            raise AppError.validation("Category name must not be empty")

        slug = resolve_unique_slug(name, column_slug_exists(self.db, Category), fallback="category")
        category = Category(name=name, slug=slug, description=data.description)
        self.db.add(category)
        self._commit_with_slug(slug)

        self.db.refresh(category)
        logger.info("Created category %s (%s)", category.id, category.slug)
        return category

    # Tags

    def list_tags(self) -> List[Tag]:
        return list(self.db.execute(select(Tag).order_by(Tag.name.asc())).scalars().all())

    def get_tag(self, tag_id: int) -> Tag:
        tag = self.db.get(Tag, tag_id)
        if tag is None:
            raise AppError.not_found("Tag", tag_id)
        return tag

    def get_or_create_tag(self, data: TagCreate) -> Tag:
        """Return the tag with this name, creating it on first use."""
        name = data.name.strip()
        if not name:
            raise AppError.validation("Tag name must not be empty")

        tag = self.db.execute(
            select(Tag).where(func.lower(Tag.name) == name.lower())
        ).scalars().first()
        if tag is not None:
            return tag

        slug = resolve_unique_slug(name, column_slug_exists(self.db, Tag), fallback="tag")
        tag = Tag(name=name, slug=slug)
        self.db.add(tag)
        self._commit_with_slug(slug)

        self.db.refresh(tag)
        logger.info("Created tag %s (%s)", tag.id, tag.slug)
        return tag

    # Restaurants

    def list_restaurants(self) -> List[Restaurant]:
        return list(self.db.execute(select(Restaurant).order_by(Restaurant.name.asc())).scalars().all())

    def get_restaurant(self, restaurant_id: int) -> Restaurant:
        restaurant = self.db.get(Restaurant, restaurant_id)
        if restaurant is None:
            raise AppError.not_found("Restaurant", restaurant_id)
        return restaurant

    def create_restaurant(self, data: RestaurantCreate) -> Restaurant:
        name = data.name.strip()
        if not name:
            raise AppError.validation("Restaurant name must not be empty")

        slug = resolve_unique_slug(name, column_slug_exists(self.db, Restaurant), fallback="restaurant")
        restaurant = Restaurant(name=name, slug=slug, description=data.description)
        self.db.add(restaurant)
        self._commit_with_slug(slug)

        self.db.refresh(restaurant)
        logger.info("Created restaurant %s (%s)", restaurant.id, restaurant.slug)
        return restaurant

    def _commit_with_slug(self, slug: str) -> None:
        # Reference data is written rarely; a lost slug race is reported rather than retried
        try:
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            raise AppError.conflict(f"Slug already taken: {slug}", details={"slug": slug})
