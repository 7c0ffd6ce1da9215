"""Initial schema for the recipe catalog, menus and menu item metrics

Revision ID: 001_initial_schema
Revises:
Create Date: 2026-10-18

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = '001_initial_schema'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

DIFFICULTY_CHECK = "difficulty IS NULL OR difficulty IN ('easy', 'medium', 'hard')"


def upgrade() -> None:
    # Reference data
    op.create_table(
        'restaurants',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('slug', sa.String(255), nullable=False, unique=True),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(), server_default=sa.func.now(), nullable=True),
        sa.Column('updated_at', sa.DateTime(), server_default=sa.func.now(), nullable=True),
    )

    op.create_table(
        'ingredients',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('name', sa.String(255), nullable=False, unique=True),
        sa.Column('unit', sa.String(50), nullable=False),
        sa.Column('created_at', sa.DateTime(), server_default=sa.func.now(), nullable=True),
    )

    op.create_table(
        'categories',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('name', sa.String(100), nullable=False),
        sa.Column('slug', sa.String(120), nullable=False, unique=True),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(), server_default=sa.func.now(), nullable=True),
    )

    op.create_table(
        'tags',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('name', sa.String(100), nullable=False, unique=True),
        sa.Column('slug', sa.String(120), nullable=False, unique=True),
        sa.Column('created_at', sa.DateTime(), server_default=sa.func.now(), nullable=True),
    )

    # Recipes
    op.create_table(
        'recipes',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('slug', sa.String(255), nullable=False, unique=True),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('prep_time', sa.Integer(), nullable=True),
        sa.Column('cook_time', sa.Integer(), nullable=True),
        sa.Column('servings', sa.Integer(), nullable=True),
        sa.Column('difficulty', sa.String(10), nullable=True),
        sa.Column('image_url', sa.String(500), nullable=True),
        sa.Column('view_count', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.text('true')),
        sa.Column('created_at', sa.DateTime(), server_default=sa.func.now(), nullable=True),
        sa.Column('updated_at', sa.DateTime(), server_default=sa.func.now(), nullable=True),
        sa.CheckConstraint('prep_time IS NULL OR prep_time >= 0', name='ck_recipes_prep_time'),
        sa.CheckConstraint('cook_time IS NULL OR cook_time >= 0', name='ck_recipes_cook_time'),
        sa.CheckConstraint('servings IS NULL OR servings > 0', name='ck_recipes_servings'),
        sa.CheckConstraint('view_count >= 0', name='ck_recipes_view_count'),
        sa.CheckConstraint(DIFFICULTY_CHECK, name='ck_recipes_difficulty'),
    )
    op.create_index('idx_recipes_popularity', 'recipes', ['is_active', 'view_count', 'created_at'])

    op.create_table(
        'recipe_versions',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('recipe_id', sa.Integer(), sa.ForeignKey('recipes.id', ondelete='CASCADE'), nullable=False),
        sa.Column('version_number', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('prep_time', sa.Integer(), nullable=True),
        sa.Column('cook_time', sa.Integer(), nullable=True),
        sa.Column('servings', sa.Integer(), nullable=True),
        sa.Column('difficulty', sa.String(10), nullable=True),
        sa.Column('note', sa.Text(), nullable=True),
        sa.Column('created_by', sa.String(64), nullable=True),
        sa.Column('is_current', sa.Boolean(), nullable=False),
        sa.Column('created_at', sa.DateTime(), server_default=sa.func.now(), nullable=True),
        sa.UniqueConstraint('recipe_id', 'version_number', name='uq_recipe_versions_number'),
        sa.CheckConstraint('version_number >= 1', name='ck_recipe_versions_number'),
        sa.CheckConstraint(DIFFICULTY_CHECK, name='ck_recipe_versions_difficulty'),
    )
    # At most one current version per recipe
    op.create_index(
        'uq_recipe_versions_current',
        'recipe_versions',
        ['recipe_id'],
        unique=True,
        postgresql_where=sa.text('is_current'),
        sqlite_where=sa.text('is_current'),
    )

    op.create_table(
        'recipe_ingredients',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('recipe_id', sa.Integer(), sa.ForeignKey('recipes.id', ondelete='CASCADE'), nullable=False),
        sa.Column('recipe_version_id', sa.Integer(), sa.ForeignKey('recipe_versions.id', ondelete='CASCADE'), nullable=True),
        sa.Column('ingredient_id', sa.Integer(), sa.ForeignKey('ingredients.id'), nullable=False),
        sa.Column('quantity', sa.Numeric(10, 3), nullable=False),
        sa.Column('unit', sa.String(50), nullable=False),
        sa.Column('notes', sa.Text(), nullable=True),
    )
    op.create_index('idx_recipe_ingredients_version', 'recipe_ingredients', ['recipe_version_id'])

    op.create_table(
        'recipe_steps',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('recipe_id', sa.Integer(), sa.ForeignKey('recipes.id', ondelete='CASCADE'), nullable=False),
        sa.Column('recipe_version_id', sa.Integer(), sa.ForeignKey('recipe_versions.id', ondelete='CASCADE'), nullable=True),
        sa.Column('step_number', sa.Integer(), nullable=False),
        sa.Column('instruction', sa.Text(), nullable=False),
        sa.Column('image_url', sa.String(500), nullable=True),
        sa.Column('created_at', sa.DateTime(), server_default=sa.func.now(), nullable=True),
    )
    op.create_index('idx_recipe_steps_version', 'recipe_steps', ['recipe_version_id', 'step_number'])

    op.create_table(
        'recipe_categories',
        sa.Column('recipe_id', sa.Integer(), sa.ForeignKey('recipes.id', ondelete='CASCADE'), primary_key=True),
        sa.Column('category_id', sa.Integer(), sa.ForeignKey('categories.id', ondelete='CASCADE'), primary_key=True),
    )

    op.create_table(
        'recipe_tags',
        sa.Column('recipe_id', sa.Integer(), sa.ForeignKey('recipes.id', ondelete='CASCADE'), primary_key=True),
        sa.Column('tag_id', sa.Integer(), sa.ForeignKey('tags.id', ondelete='CASCADE'), primary_key=True),
    )

    # Menus
    op.create_table(
        'menus',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('restaurant_id', sa.Integer(), sa.ForeignKey('restaurants.id', ondelete='CASCADE'), nullable=False),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.text('true')),
        sa.Column('created_at', sa.DateTime(), server_default=sa.func.now(), nullable=True),
        sa.Column('updated_at', sa.DateTime(), server_default=sa.func.now(), nullable=True),
    )
    op.create_index('idx_menus_restaurant', 'menus', ['restaurant_id', 'is_active'])

    op.create_table(
        'menu_items',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('menu_id', sa.Integer(), sa.ForeignKey('menus.id', ondelete='CASCADE'), nullable=False),
        sa.Column('recipe_id', sa.Integer(), sa.ForeignKey('recipes.id', ondelete='CASCADE'), nullable=False),
        sa.Column('price', sa.Numeric(10, 2), nullable=True),
        sa.Column('display_order', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('is_available', sa.Boolean(), nullable=False, server_default=sa.text('true')),
        sa.Column('view_count', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('created_at', sa.DateTime(), server_default=sa.func.now(), nullable=True),
        sa.Column('updated_at', sa.DateTime(), server_default=sa.func.now(), nullable=True),
        sa.UniqueConstraint('menu_id', 'recipe_id', name='uq_menu_items_menu_recipe'),
        sa.CheckConstraint('price IS NULL OR price >= 0', name='ck_menu_items_price'),
        sa.CheckConstraint('view_count >= 0', name='ck_menu_items_view_count'),
    )

    op.create_table(
        'menu_item_metrics',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('menu_item_id', sa.Integer(), sa.ForeignKey('menu_items.id', ondelete='CASCADE'), nullable=False),
        sa.Column('recipe_id', sa.Integer(), sa.ForeignKey('recipes.id', ondelete='CASCADE'), nullable=False),
        sa.Column('restaurant_id', sa.Integer(), sa.ForeignKey('restaurants.id', ondelete='CASCADE'), nullable=False),
        sa.Column('access_date', sa.Date(), nullable=False),
        sa.Column('view_count', sa.Integer(), nullable=False, server_default='1'),
        sa.Column('created_at', sa.DateTime(), server_default=sa.func.now(), nullable=True),
        sa.UniqueConstraint('menu_item_id', 'access_date', name='uq_menu_item_metrics_item_date'),
        sa.CheckConstraint('view_count >= 1', name='ck_menu_item_metrics_view_count'),
    )


def downgrade() -> None:
    op.drop_table('menu_item_metrics')
    op.drop_table('menu_items')
    op.drop_index('idx_menus_restaurant', table_name='menus')
    op.drop_table('menus')
    op.drop_table('recipe_tags')
    op.drop_table('recipe_categories')
    op.drop_index('idx_recipe_steps_version', table_name='recipe_steps')
    op.drop_table('recipe_steps')
    op.drop_index('idx_recipe_ingredients_version', table_name='recipe_ingredients')
    op.drop_table('recipe_ingredients')
    op.drop_index('uq_recipe_versions_current', table_name='recipe_versions')
    op.drop_table('recipe_versions')
    op.drop_index('idx_recipes_popularity', table_name='recipes')
    op.drop_table('recipes')
    op.drop_table('tags')
    op.drop_table('categories')
    op.drop_table('ingredients')
    op.drop_table('restaurants')
