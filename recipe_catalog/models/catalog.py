"""
Reference data used by recipes: ingredients, categories and tags.
"""
from sqlalchemy import Column, String, Text, Integer, DateTime, func

from recipe_catalog.db.base import Base


class Ingredient(Base):
    """An ingredient that recipes reference with a quantity."""
    __tablename__ = "ingredients"

    id = Column(Integer, primary_key=True)
    name = Column(String(255), nullable=False, unique=True)
    unit = Column(String(50), nullable=False)  # default unit: g, ml, units
    created_at = Column(DateTime, server_default=func.now())


class Category(Base):
    """Browsing category (desserts, soups, ...)."""
    __tablename__ = "categories"

    id = Column(Integer, primary_key=True)
    name = Column(String(100), nullable=False)
    slug = Column(String(120), nullable=False, unique=True)
    description = Column(Text)
    created_at = Column(DateTime, server_default=func.now())


class Tag(Base):
    """Free-form label (vegan, quick, ...)."""
    __tablename__ = "tags"

    id = Column(Integer, primary_key=True)
    name = Column(String(100), nullable=False, unique=True)
    slug = Column(String(120), nullable=False, unique=True)
    created_at = Column(DateTime, server_default=func.now())
