"""
Recipe router.

Reads are public and cacheable; writes require a bearer token. Reading a
single recipe counts as a view.
"""
from typing import List

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.orm import Session

from recipe_catalog.core.cache import cache_control
from recipe_catalog.core.config import get_settings
from recipe_catalog.core.deps import AuthenticatedUser, get_current_user
from recipe_catalog.db.session import get_db
from recipe_catalog.models.recipe import Recipe
from recipe_catalog.schemas.recipe import (
    LabelResponse,
    RecipeCreate,
    RecipeDetailResponse,
    RecipeIngredientResponse,
    RecipeResponse,
    RecipeStepResponse,
    RecipeUpdate,
    RecipeVersionResponse,
)
from recipe_catalog.services.recipes import RecipeService

router = APIRouter(prefix="/recipes", tags=["recipes"])
settings = get_settings()


def build_recipe_detail(service: RecipeService, recipe: Recipe) -> RecipeDetailResponse:
    """Assemble a recipe with the ingredients and steps of its current version."""
    version = service.get_current_version(recipe.id)
    ingredients = [
        RecipeIngredientResponse(
            ingredient_id=line.ingredient_id,
            ingredient_name=ingredient_name,
            quantity=line.quantity,
            unit=line.unit,
            notes=line.notes,
        )
        for line, ingredient_name in service.list_version_ingredients(recipe.id, version)
    ]
    steps = [RecipeStepResponse.model_validate(step) for step in service.list_version_steps(recipe.id, version)]

    base = RecipeResponse.model_validate(recipe).model_dump()
    return RecipeDetailResponse(
        **base,
        current_version=version.version_number if version else None,
        ingredients=ingredients,
        steps=steps,
        categories=[LabelResponse.model_validate(c) for c in recipe.categories],
        tags=[LabelResponse.model_validate(t) for t in recipe.tags],
    )


@router.get("", response_model=List[RecipeResponse], dependencies=[Depends(cache_control(3600))])
def list_recipes(
    limit: int = Query(settings.DEFAULT_PAGE_SIZE, ge=1, le=settings.MAX_PAGE_SIZE),
    offset: int = Query(0, ge=0),
    db: Session = Depends(get_db),
):
    """List active recipes, most viewed first."""
    return RecipeService(db).list_recipes(limit=limit, offset=offset)


@router.get("/top", response_model=List[RecipeResponse], dependencies=[Depends(cache_control(3600))])
def list_top_recipes(
    limit: int = Query(settings.DEFAULT_TOP_LIMIT, ge=1, le=settings.MAX_PAGE_SIZE),
    db: Session = Depends(get_db),
):
    """Most viewed active recipes."""
    return RecipeService(db).list_top(limit=limit)


@router.get("/{recipe_id}", response_model=RecipeDetailResponse, dependencies=[Depends(cache_control(3600))])
def get_recipe(recipe_id: int, db: Session = Depends(get_db)):
    """
    Get a recipe with the content of its current version.

    Counts one view. Missing and deleted recipes are 404.
    """
    service = RecipeService(db)
    service.increment_view_count(recipe_id)
    recipe = service.get_active_recipe(recipe_id)
    return build_recipe_detail(service, recipe)


@router.get("/{recipe_id}/versions", response_model=List[RecipeVersionResponse])
def list_recipe_versions(recipe_id: int, db: Session = Depends(get_db)):
    """Version history, newest first."""
    return RecipeService(db).list_versions(recipe_id)


@router.post("", response_model=RecipeDetailResponse, status_code=status.HTTP_201_CREATED)
def create_recipe(
    data: RecipeCreate,
    db: Session = Depends(get_db),
    current_user: AuthenticatedUser = Depends(get_current_user),
):
    """Create a recipe; its first version is recorded as version 1."""
    service = RecipeService(db)
    recipe = service.create_recipe(data, created_by=current_user.id)
    return build_recipe_detail(service, recipe)


@router.put("/{recipe_id}", response_model=RecipeDetailResponse)
def update_recipe(
    recipe_id: int,
    data: RecipeUpdate,
    db: Session = Depends(get_db),
    current_user: AuthenticatedUser = Depends(get_current_user),
):
    """
    Partially update a recipe.

    Only fields present in the body are changed. Sending ``version_note``
    (even null) snapshots the result as a new version.
    """
    changes = data.model_dump(exclude_unset=True)
    create_new_version = "version_note" in changes
    note = changes.pop("version_note", None)

    service = RecipeService(db)
    recipe = service.update_recipe(
        recipe_id,
        changes,
        create_new_version=create_new_version,
        note=note,
        created_by=current_user.id,
    )
    return build_recipe_detail(service, recipe)


@router.delete("/{recipe_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_recipe(
    recipe_id: int,
    db: Session = Depends(get_db),
    current_user: AuthenticatedUser = Depends(get_current_user),
):
    """Soft-delete a recipe."""
    RecipeService(db).delete_recipe(recipe_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
