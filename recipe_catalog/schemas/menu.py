"""
Menu Pydantic schemas for API request/response models.
"""
from datetime import date, datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class MenuItemInput(BaseModel):
    """A recipe to list on a menu."""
    recipe_id: int = Field(..., gt=0)
    price: Optional[Decimal] = None
    display_order: Optional[int] = Field(None, ge=0)
    is_available: Optional[bool] = None


class MenuCreate(BaseModel):
    """Request model for creating a menu with its items."""
    restaurant_id: int
    name: str
    description: Optional[str] = None
    items: Optional[List[MenuItemInput]] = None


class MenuUpdate(BaseModel):
    """
    Request model for updating a menu.

    Listed items are inserted or updated by recipe; unlisted items are kept.
    """
    name: Optional[str] = None
    description: Optional[str] = None
    is_active: Optional[bool] = None
    items: Optional[List[MenuItemInput]] = None


class MenuItemResponse(BaseModel):
    """Response model for a single menu item."""
    id: int
    menu_id: int
    recipe_id: int
    price: Optional[Decimal] = None
    display_order: int = 0
    is_available: bool = True
    view_count: int = 0
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class MenuItemDetailResponse(MenuItemResponse):
    """Menu item with the recipe fields a menu page displays."""
    recipe_name: str
    recipe_slug: str
    recipe_image: Optional[str] = None
    recipe_description: Optional[str] = None


class MenuResponse(BaseModel):
    """Response model for a menu row."""
    id: int
    restaurant_id: int
    name: str
    description: Optional[str] = None
    is_active: bool = True
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class MenuDetailResponse(MenuResponse):
    """Menu with its restaurant and every item."""
    restaurant_name: str
    restaurant_slug: str
    items: List[MenuItemResponse] = []


class MenuItemMetricResponse(BaseModel):
    """Views of a menu item on one day."""
    access_date: date
    view_count: int
    recipe_id: int
    restaurant_id: int

    model_config = ConfigDict(from_attributes=True)
