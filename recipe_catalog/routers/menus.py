"""
Menu router: restaurant menus, their items and item view metrics.
"""
from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from recipe_catalog.core.cache import cache_control
from recipe_catalog.core.deps import AuthenticatedUser, get_current_user, get_optional_user
from recipe_catalog.db.session import get_db
from recipe_catalog.models.menu import Menu, MenuItem
from recipe_catalog.models.recipe import Recipe
from recipe_catalog.schemas.menu import (
    MenuCreate,
    MenuDetailResponse,
    MenuItemDetailResponse,
    MenuItemMetricResponse,
    MenuItemResponse,
    MenuResponse,
    MenuUpdate,
)
from recipe_catalog.services.menu_metrics import MenuMetricsService
from recipe_catalog.services.menus import MenuService

router = APIRouter(prefix="/menus", tags=["menus"])


def build_menu_detail(menu: Menu) -> MenuDetailResponse:
    base = MenuResponse.model_validate(menu).model_dump()
    return MenuDetailResponse(
        **base,
        restaurant_name=menu.restaurant.name,
        restaurant_slug=menu.restaurant.slug,
        items=[MenuItemResponse.model_validate(item) for item in menu.items],
    )


def build_item_detail(item: MenuItem, recipe: Recipe) -> MenuItemDetailResponse:
    base = MenuItemResponse.model_validate(item).model_dump()
    return MenuItemDetailResponse(
        **base,
        recipe_name=recipe.name,
        recipe_slug=recipe.slug,
        recipe_image=recipe.image_url,
        recipe_description=recipe.description,
    )


@router.post("", response_model=MenuDetailResponse, status_code=status.HTTP_201_CREATED)
def create_menu(
    data: MenuCreate,
    db: Session = Depends(get_db),
    current_user: AuthenticatedUser = Depends(get_current_user),
):
    """Create a menu with its items."""
    menu = MenuService(db).create_menu(data)
    return build_menu_detail(menu)


@router.get(
    "/restaurants/{restaurant_id}",
    response_model=List[MenuResponse],
    dependencies=[Depends(cache_control(3600))],
)
def list_restaurant_menus(restaurant_id: int, db: Session = Depends(get_db)):
    """Active menus of a restaurant."""
    return MenuService(db).list_by_restaurant(restaurant_id)


@router.get(
    "/restaurants/{restaurant_id}/items/{item_id}",
    response_model=MenuItemDetailResponse,
    dependencies=[Depends(cache_control(1800))],
)
def get_restaurant_menu_item(
    restaurant_id: int,
    item_id: int,
    db: Session = Depends(get_db),
    current_user: Optional[AuthenticatedUser] = Depends(get_optional_user),
):
    """
    Get one menu item of a restaurant.

    Every read is recorded as a view of the item and its recipe.
    """
    service = MenuService(db)
    item, recipe = service.get_restaurant_item(restaurant_id, item_id)
    MenuMetricsService(db).record_view(item.id, recipe.id, restaurant_id)
    return build_item_detail(item, recipe)


@router.get(
    "/items/{menu_item_id}/metrics",
    response_model=List[MenuItemMetricResponse],
)
def get_menu_item_metrics(
    menu_item_id: int,
    start_date: Optional[date] = Query(None, alias="startDate"),
    end_date: Optional[date] = Query(None, alias="endDate"),
    db: Session = Depends(get_db),
    current_user: AuthenticatedUser = Depends(get_current_user),
):
    """Daily view counts of a menu item, newest first."""
    return MenuMetricsService(db).get_metrics(menu_item_id, start_date=start_date, end_date=end_date)


@router.get(
    "/{menu_id}/items",
    response_model=List[MenuItemDetailResponse],
    dependencies=[Depends(cache_control(3600))],
)
def list_menu_items(menu_id: int, db: Session = Depends(get_db)):
    """Available items of an active menu in display order."""
    return [build_item_detail(item, recipe) for item, recipe in MenuService(db).list_items(menu_id)]


@router.put("/{menu_id}", response_model=MenuDetailResponse)
def update_menu(
    menu_id: int,
    data: MenuUpdate,
    db: Session = Depends(get_db),
    current_user: AuthenticatedUser = Depends(get_current_user),
):
    """
    Partially update a menu.

    Listed items are upserted on (menu, recipe); items not listed are kept.
    """
    changes = data.model_dump(exclude_unset=True)
    if data.items is not None:
        changes["items"] = [item.model_dump(exclude_unset=True) for item in data.items]
    menu = MenuService(db).update_menu(menu_id, changes)
    return build_menu_detail(menu)
