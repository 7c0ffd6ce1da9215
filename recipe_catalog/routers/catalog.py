"""
Reference data router: ingredients, categories, tags and restaurants.
"""
from typing import List

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from recipe_catalog.core.cache import cache_control
from recipe_catalog.core.deps import AuthenticatedUser, get_current_user
from recipe_catalog.db.session import get_db
from recipe_catalog.schemas.catalog import (
    CategoryCreate,
    CategoryResponse,
    IngredientCreate,
    IngredientResponse,
    RestaurantCreate,
    RestaurantResponse,
    TagCreate,
    TagResponse,
)
from recipe_catalog.services.catalog import CatalogService

router = APIRouter(tags=["catalog"])
cached = [Depends(cache_control(3600))]


# ============ Ingredients ============

@router.get("/ingredients", response_model=List[IngredientResponse], dependencies=cached)
def list_ingredients(db: Session = Depends(get_db)):
    return CatalogService(db).list_ingredients()


@router.get("/ingredients/{ingredient_id}", response_model=IngredientResponse, dependencies=cached)
def get_ingredient(ingredient_id: int, db: Session = Depends(get_db)):
    return CatalogService(db).get_ingredient(ingredient_id)


@router.post("/ingredients", response_model=IngredientResponse, status_code=status.HTTP_201_CREATED)
def create_ingredient(
    data: IngredientCreate,
    db: Session = Depends(get_db),
    current_user: AuthenticatedUser = Depends(get_current_user),
):
    """Create an ingredient. Names are unique regardless of case."""
    return CatalogService(db).create_ingredient(data)


# ============ Categories ============

@router.get("/categories", response_model=List[CategoryResponse], dependencies=cached)
def list_categories(db: Session = Depends(get_db)):
    return CatalogService(db).list_categories()


@router.get("/categories/{category_id}", response_model=CategoryResponse, dependencies=cached)
def get_category(category_id: int, db: Session = Depends(get_db)):
    return CatalogService(db).get_category(category_id)


@router.post("/categories", response_model=CategoryResponse, status_code=status.HTTP_201_CREATED)
def create_category(
    data: CategoryCreate,
    db: Session = Depends(get_db),
    current_user: AuthenticatedUser = Depends(get_current_user),
):
    return CatalogService(db).create_category(data)


# ============ Tags ============

@router.get("/tags", response_model=List[TagResponse], dependencies=cached)
def list_tags(db: Session = Depends(get_db)):
    return CatalogService(db).list_tags()


@router.get("/tags/{tag_id}", response_model=TagResponse, dependencies=cached)
def get_tag(tag_id: int, db: Session = Depends(get_db)):
    return CatalogService(db).get_tag(tag_id)


@router.post("/tags", response_model=TagResponse, status_code=status.HTTP_201_CREATED)
def create_tag(
    data: TagCreate,
    db: Session = Depends(get_db),
    current_user: AuthenticatedUser = Depends(get_current_user),
):
    """Return the tag with this name, creating it if needed."""
    return CatalogService(db).get_or_create_tag(data)


# ============ Restaurants ============

@router.get("/restaurants", response_model=List[RestaurantResponse], dependencies=cached)
def list_restaurants(db: Session = Depends(get_db)):
    return CatalogService(db).list_restaurants()


@router.get("/restaurants/{restaurant_id}", response_model=RestaurantResponse, dependencies=cached)
def get_restaurant(restaurant_id: int, db: Session = Depends(get_db)):
    return CatalogService(db).get_restaurant(restaurant_id)


@router.post("/restaurants", response_model=RestaurantResponse, status_code=status.HTTP_201_CREATED)
def create_restaurant(
    data: RestaurantCreate,
    db: Session = Depends(get_db),
    current_user: AuthenticatedUser = Depends(get_current_user),
):
    return CatalogService(db).create_restaurant(data)
