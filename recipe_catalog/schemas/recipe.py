"""
Recipe Pydantic schemas for API request/response models.

Business rules (non-empty names, non-negative times, positive servings) are
enforced by RecipeService so they hold for every caller; these schemas only
check shapes and types.
"""
from datetime import datetime
from decimal import Decimal
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

Difficulty = Literal["easy", "medium", "hard"]


class RecipeIngredientInput(BaseModel):
    """An ingredient line of a recipe."""
    ingredient_id: int = Field(..., gt=0)
    quantity: Decimal = Field(..., gt=0)
    unit: str = Field(..., min_length=1, max_length=50)
    notes: Optional[str] = None


class RecipeStepInput(BaseModel):
    """A numbered instruction of a recipe."""
    step_number: int = Field(..., gt=0)
    instruction: str = Field(..., min_length=1)
    image_url: Optional[str] = None


class RecipeCreate(BaseModel):
    """Request model for creating a recipe."""
    name: str = Field(..., json_schema_extra={"example": "Apple Pie"})
    description: Optional[str] = None
    prep_time: Optional[int] = None
    cook_time: Optional[int] = None
    servings: Optional[int] = None
    difficulty: Optional[Difficulty] = None
    image_url: Optional[str] = None
    # Omitted means "no ingredients yet"; an explicit empty list is rejected
    ingredients: Optional[List[RecipeIngredientInput]] = None
    steps: Optional[List[RecipeStepInput]] = None
    category_ids: Optional[List[int]] = None
    tag_ids: Optional[List[int]] = None


class RecipeUpdate(BaseModel):
    """
    Request model for a partial recipe update.

    Only fields present in the request body are applied, including explicit
    nulls. Sending ``version_note`` snapshots the result as a new version.
    """
    name: Optional[str] = None
    description: Optional[str] = None
    prep_time: Optional[int] = None
    cook_time: Optional[int] = None
    servings: Optional[int] = None
    difficulty: Optional[Difficulty] = None
    image_url: Optional[str] = None
    ingredients: Optional[List[RecipeIngredientInput]] = None
    steps: Optional[List[RecipeStepInput]] = None
    category_ids: Optional[List[int]] = None
    tag_ids: Optional[List[int]] = None
    version_note: Optional[str] = None


class RecipeResponse(BaseModel):
    """Response model for a recipe row."""
    id: int
    name: str
    slug: str
    description: Optional[str] = None
    prep_time: Optional[int] = None
    cook_time: Optional[int] = None
    servings: Optional[int] = None
    difficulty: Optional[str] = None
    image_url: Optional[str] = None
    view_count: int = 0
    is_active: bool = True
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class RecipeIngredientResponse(BaseModel):
    ingredient_id: int
    ingredient_name: str
    quantity: Decimal
    unit: str
    notes: Optional[str] = None


class RecipeStepResponse(BaseModel):
    step_number: int
    instruction: str
    image_url: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


class LabelResponse(BaseModel):
    """Category or tag attached to a recipe."""
    id: int
    name: str
    slug: str

    model_config = ConfigDict(from_attributes=True)


class RecipeDetailResponse(RecipeResponse):
    """Recipe with the content of its current version."""
    current_version: Optional[int] = None
    ingredients: List[RecipeIngredientResponse] = []
    steps: List[RecipeStepResponse] = []
    categories: List[LabelResponse] = []
    tags: List[LabelResponse] = []


class RecipeVersionResponse(BaseModel):
    """Response model for one entry of a recipe's version history."""
    id: int
    recipe_id: int
    version_number: int
    name: str
    description: Optional[str] = None
    prep_time: Optional[int] = None
    cook_time: Optional[int] = None
    servings: Optional[int] = None
    difficulty: Optional[str] = None
    note: Optional[str] = None
    created_by: Optional[str] = None
    is_current: bool
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)
