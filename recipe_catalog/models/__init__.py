"""
SQLAlchemy models for the recipe catalog.
"""
# Reference data
from recipe_catalog.models.catalog import Ingredient, Category, Tag
from recipe_catalog.models.restaurant import Restaurant

# Recipes
from recipe_catalog.models.recipe import (
    DIFFICULTIES,
    Recipe,
    RecipeVersion,
    RecipeIngredient,
    RecipeStep,
    recipe_categories,
    recipe_tags,
)

# Menus
from recipe_catalog.models.menu import Menu, MenuItem, MenuItemMetric


__all__ = [
    # Reference data
    "Ingredient",
    "Category",
    "Tag",
    "Restaurant",
    # Recipes
    "DIFFICULTIES",
    "Recipe",
    "RecipeVersion",
    "RecipeIngredient",
    "RecipeStep",
    "recipe_categories",
    "recipe_tags",
    # Menus
    "Menu",
    "MenuItem",
    "MenuItemMetric",
]
