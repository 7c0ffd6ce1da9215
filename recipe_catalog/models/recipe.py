"""
Recipe aggregate models.

Recipe: live, mutable record addressed by id or slug
RecipeVersion: append-only snapshot history, exactly one current per recipe
RecipeIngredient / RecipeStep: children scoped to the version they belong to
recipe_categories / recipe_tags: many-to-many links
"""
from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Table,
    Text,
    UniqueConstraint,
    func,
    text,
)
from sqlalchemy.orm import relationship

from recipe_catalog.db.base import Base

DIFFICULTIES = ("easy", "medium", "hard")

_difficulty_check = "difficulty IS NULL OR difficulty IN ('easy', 'medium', 'hard')"


recipe_categories = Table(
    "recipe_categories",
    Base.metadata,
    Column("recipe_id", Integer, ForeignKey("recipes.id", ondelete="CASCADE"), primary_key=True),
    Column("category_id", Integer, ForeignKey("categories.id", ondelete="CASCADE"), primary_key=True),
)

recipe_tags = Table(
    "recipe_tags",
    Base.metadata,
    Column("recipe_id", Integer, ForeignKey("recipes.id", ondelete="CASCADE"), primary_key=True),
    Column("tag_id", Integer, ForeignKey("tags.id", ondelete="CASCADE"), primary_key=True),
)


class Recipe(Base):
    """A recipe as currently published."""
    __tablename__ = "recipes"

    id = Column(Integer, primary_key=True)
    name = Column(String(255), nullable=False)
    slug = Column(String(255), nullable=False, unique=True)
    description = Column(Text)
    prep_time = Column(Integer)  # minutes
    cook_time = Column(Integer)  # minutes
    servings = Column(Integer)
    difficulty = Column(String(10))
    image_url = Column(String(500))
    view_count = Column(Integer, nullable=False, default=0, server_default="0")
    is_active = Column(Boolean, nullable=False, default=True, server_default=text("true"))
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    versions = relationship(
        "RecipeVersion",
        back_populates="recipe",
        order_by="RecipeVersion.version_number",
        cascade="all, delete-orphan",
    )
    ingredients = relationship("RecipeIngredient", back_populates="recipe", cascade="all, delete-orphan")
    steps = relationship(
        "RecipeStep",
        back_populates="recipe",
        order_by="RecipeStep.step_number",
        cascade="all, delete-orphan",
    )
    categories = relationship("Category", secondary=recipe_categories, order_by="Category.name")
    tags = relationship("Tag", secondary=recipe_tags, order_by="Tag.name")
    menu_items = relationship("MenuItem", back_populates="recipe")

    __table_args__ = (
        CheckConstraint("prep_time IS NULL OR prep_time >= 0", name="ck_recipes_prep_time"),
        CheckConstraint("cook_time IS NULL OR cook_time >= 0", name="ck_recipes_cook_time"),
        CheckConstraint("servings IS NULL OR servings > 0", name="ck_recipes_servings"),
        CheckConstraint("view_count >= 0", name="ck_recipes_view_count"),
        CheckConstraint(_difficulty_check, name="ck_recipes_difficulty"),
        Index("idx_recipes_popularity", "is_active", "view_count", "created_at"),
    )


class RecipeVersion(Base):
    """
    Immutable snapshot of a recipe's descriptive fields.

    Version numbers start at 1 and increase without gaps per recipe. Once a
    version is superseded only its ``is_current`` flag changes.
    """
    __tablename__ = "recipe_versions"

    id = Column(Integer, primary_key=True)
    recipe_id = Column(Integer, ForeignKey("recipes.id", ondelete="CASCADE"), nullable=False)
    version_number = Column(Integer, nullable=False)
    name = Column(String(255), nullable=False)
    description = Column(Text)
    prep_time = Column(Integer)
    cook_time = Column(Integer)
    servings = Column(Integer)
    difficulty = Column(String(10))
    note = Column(Text)  # version_note supplied with the update
    created_by = Column(String(64))  # token subject of the author
    is_current = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime, server_default=func.now())

    recipe = relationship("Recipe", back_populates="versions")
    ingredients = relationship("RecipeIngredient", back_populates="version")
    steps = relationship("RecipeStep", back_populates="version", order_by="RecipeStep.step_number")

    __table_args__ = (
        UniqueConstraint("recipe_id", "version_number", name="uq_recipe_versions_number"),
        CheckConstraint("version_number >= 1", name="ck_recipe_versions_number"),
        CheckConstraint(_difficulty_check, name="ck_recipe_versions_difficulty"),
        # At most one current version per recipe
        Index(
            "uq_recipe_versions_current",
            "recipe_id",
            unique=True,
            postgresql_where=text("is_current"),
            sqlite_where=text("is_current"),
        ),
    )


class RecipeIngredient(Base):
    """Quantity of an ingredient used by one version of a recipe."""
    __tablename__ = "recipe_ingredients"

    id = Column(Integer, primary_key=True)
    recipe_id = Column(Integer, ForeignKey("recipes.id", ondelete="CASCADE"), nullable=False)
    recipe_version_id = Column(Integer, ForeignKey("recipe_versions.id", ondelete="CASCADE"))
    ingredient_id = Column(Integer, ForeignKey("ingredients.id"), nullable=False)
    quantity = Column(Numeric(10, 3), nullable=False)
    unit = Column(String(50), nullable=False)
    notes = Column(Text)

    recipe = relationship("Recipe", back_populates="ingredients")
    version = relationship("RecipeVersion", back_populates="ingredients")
    ingredient = relationship("Ingredient")

    __table_args__ = (
        Index("idx_recipe_ingredients_version", "recipe_version_id"),
    )


class RecipeStep(Base):
    """One instruction of a recipe version, ordered by step_number."""
    __tablename__ = "recipe_steps"

    id = Column(Integer, primary_key=True)
    recipe_id = Column(Integer, ForeignKey("recipes.id", ondelete="CASCADE"), nullable=False)
    recipe_version_id = Column(Integer, ForeignKey("recipe_versions.id", ondelete="CASCADE"))
    step_number = Column(Integer, nullable=False)
    instruction = Column(Text, nullable=False)
    image_url = Column(String(500))
    created_at = Column(DateTime, server_default=func.now())

    recipe = relationship("Recipe", back_populates="steps")
    version = relationship("RecipeVersion", back_populates="steps")

    __table_args__ = (
        Index("idx_recipe_steps_version", "recipe_version_id", "step_number"),
    )
