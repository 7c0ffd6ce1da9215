"""
Test configuration and fixtures.
"""
import os
import tempfile
from decimal import Decimal
from typing import Generator

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

# Set test database and secrets before importing app
_test_dir = tempfile.mkdtemp(prefix="recipe-catalog-tests-")
os.environ["DATABASE_URL"] = f"sqlite:///{os.path.join(_test_dir, 'test.db')}"
os.environ["JWT_SECRET_KEY"] = "test-secret-key-that-is-long-enough-for-hs256"
os.environ["ENVIRONMENT"] = "test"
os.environ["METRICS_TIMEZONE"] = "UTC"

from recipe_catalog.main import app
from recipe_catalog.db.base import Base
from recipe_catalog.db.session import SessionLocal, engine, get_db
from recipe_catalog.core.security import create_access_token
from recipe_catalog.models.catalog import Ingredient
from recipe_catalog.models.recipe import Recipe
from recipe_catalog.models.restaurant import Restaurant
from recipe_catalog.schemas.recipe import RecipeCreate
from recipe_catalog.services.recipes import RecipeService

Base.metadata.create_all(bind=engine)


@pytest.fixture(autouse=True)
def clean_tables() -> Generator[None, None, None]:
    """Empty every table after each test, children first."""
    yield
    with engine.begin() as conn:
        for table in reversed(Base.metadata.sorted_tables):
            conn.execute(table.delete())


@pytest.fixture(scope="function")
def db() -> Generator[Session, None, None]:
    """Create a database session for the test."""
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture(scope="function")
def client(db: Session) -> Generator[TestClient, None, None]:
    """Create test client with database session override."""
    def override_get_db():
        try:
            yield db
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db

    with TestClient(app) as c:
        yield c

    app.dependency_overrides.clear()


@pytest.fixture
def auth_headers() -> dict:
    """Bearer headers for a token signed with the test secret."""
    token = create_access_token(subject="user-123", email="chef@example.com")
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def ingredients(db: Session) -> list[Ingredient]:
    """Flour, butter and apples."""
    rows = [
        Ingredient(name="Flour", unit="g"),
        Ingredient(name="Butter", unit="g"),
        Ingredient(name="Apple", unit="units"),
    ]
    db.add_all(rows)
    db.commit()
    for row in rows:
        db.refresh(row)
    return rows


@pytest.fixture
def restaurant(db: Session) -> Restaurant:
    restaurant = Restaurant(name="Test Bistro", slug="test-bistro", description="Neighbourhood bistro")
    db.add(restaurant)
    db.commit()
    db.refresh(restaurant)
    return restaurant


@pytest.fixture
def recipe(db: Session, ingredients: list[Ingredient]) -> Recipe:
    """An Apple Pie recipe at version 1 with two ingredients and two steps."""
    flour, butter, _ = ingredients
    data = RecipeCreate(
        name="Apple Pie",
        description="Classic pie",
        prep_time=30,
        cook_time=45,
        servings=8,
        difficulty="medium",
        ingredients=[
            {"ingredient_id": flour.id, "quantity": Decimal("250"), "unit": "g"},
            {"ingredient_id": butter.id, "quantity": Decimal("125"), "unit": "g", "notes": "cold"},
        ],
        steps=[
            {"step_number": 1, "instruction": "Make the dough"},
            {"step_number": 2, "instruction": "Bake"},
        ],
    )
    return RecipeService(db).create_recipe(data, created_by="user-123")
