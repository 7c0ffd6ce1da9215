"""
Tests for menu aggregate operations.
"""
from decimal import Decimal

import pytest
from sqlalchemy import func, select
from sqlalchemy.orm import Session

from recipe_catalog.core.errors import AppError, ErrorKind
from recipe_catalog.models.menu import Menu, MenuItem
from recipe_catalog.models.recipe import Recipe
from recipe_catalog.models.restaurant import Restaurant
from recipe_catalog.schemas.menu import MenuCreate
from recipe_catalog.schemas.recipe import RecipeCreate
from recipe_catalog.services.menus import MenuService
from recipe_catalog.services.recipes import RecipeService


@pytest.fixture
def second_recipe(db: Session) -> Recipe:
    return RecipeService(db).create_recipe(RecipeCreate(name="Banana Bread"))


@pytest.fixture
def menu(db: Session, restaurant: Restaurant, recipe: Recipe) -> Menu:
    data = MenuCreate(
        restaurant_id=restaurant.id,
        name="Lunch",
        items=[{"recipe_id": recipe.id, "price": Decimal("9.50"), "display_order": 1}],
    )
    return MenuService(db).create_menu(data)


def _count(db: Session, model) -> int:
    return db.execute(select(func.count()).select_from(model)).scalar()


class TestCreateMenu:
    """Tests for MenuService.create_menu."""

    def test_create_with_items(self, db: Session, menu: Menu, recipe: Recipe):
        assert menu.name == "Lunch"
        assert menu.is_active is True
        assert len(menu.items) == 1
        item = menu.items[0]
        assert item.recipe_id == recipe.id
        assert item.price == Decimal("9.50")
        assert item.is_available is True
        assert item.view_count == 0

    def test_duplicate_recipe_rejected_before_persistence(
        self, db: Session, restaurant: Restaurant, recipe: Recipe
    ):
        data = MenuCreate(
            restaurant_id=restaurant.id,
            name="Dinner",
            items=[{"recipe_id": recipe.id}, {"recipe_id": recipe.id, "price": Decimal("3")}],
        )

        with pytest.raises(AppError) as exc_info:
            MenuService(db).create_menu(data)

        assert exc_info.value.kind is ErrorKind.VALIDATION
        assert exc_info.value.message == "A recipe cannot be listed twice on the same menu"
        assert exc_info.value.details == {"recipe_ids": [recipe.id]}
        assert _count(db, Menu) == 0
        assert _count(db, MenuItem) == 0

    def test_negative_price_rejected(self, db: Session, restaurant: Restaurant, recipe: Recipe):
        data = MenuCreate(
            restaurant_id=restaurant.id,
            name="Dinner",
            items=[{"recipe_id": recipe.id, "price": Decimal("-1")}],
        )

        with pytest.raises(AppError) as exc_info:
            MenuService(db).create_menu(data)

        assert exc_info.value.kind is ErrorKind.VALIDATION
        assert _count(db, Menu) == 0

    def test_unknown_restaurant(self, db: Session, recipe: Recipe):
        data = MenuCreate(restaurant_id=404, name="Dinner", items=[{"recipe_id": recipe.id}])

        with pytest.raises(AppError) as exc_info:
            MenuService(db).create_menu(data)

        assert exc_info.value.kind is ErrorKind.NOT_FOUND

    def test_unknown_recipe(self, db: Session, restaurant: Restaurant):
        data = MenuCreate(restaurant_id=restaurant.id, name="Dinner", items=[{"recipe_id": 777}])

        with pytest.raises(AppError) as exc_info:
            MenuService(db).create_menu(data)

        assert exc_info.value.kind is ErrorKind.VALIDATION
        assert exc_info.value.details == {"recipe_ids": [777]}

    def test_empty_name_rejected(self, db: Session, restaurant: Restaurant):
        with pytest.raises(AppError) as exc_info:
            MenuService(db).create_menu(MenuCreate(restaurant_id=restaurant.id, name="  "))

        assert exc_info.value.kind is ErrorKind.VALIDATION


class TestUpdateMenu:
    """Tests for MenuService.update_menu."""

    def test_existing_item_is_upserted(self, db: Session, menu: Menu, recipe: Recipe):
        item_id = menu.items[0].id

        updated = MenuService(db).update_menu(
            menu.id, {"items": [{"recipe_id": recipe.id, "price": Decimal("11.00")}]}
        )

        assert len(updated.items) == 1
        item = updated.items[0]
        assert item.id == item_id
        assert item.price == Decimal("11.00")
        # Fields not sent are untouched
        assert item.display_order == 1

    def test_new_item_is_inserted_and_others_kept(
        self, db: Session, menu: Menu, recipe: Recipe, second_recipe: Recipe
    ):
        updated = MenuService(db).update_menu(
            menu.id, {"items": [{"recipe_id": second_recipe.id, "display_order": 2}]}
        )

        assert sorted(i.recipe_id for i in updated.items) == sorted([recipe.id, second_recipe.id])

    def test_update_menu_fields(self, db: Session, menu: Menu):
        updated = MenuService(db).update_menu(menu.id, {"name": "Brunch", "description": "Weekends"})

        assert updated.name == "Brunch"
        assert updated.description == "Weekends"

    def test_duplicate_in_update_rejected(self, db: Session, menu: Menu, recipe: Recipe):
        with pytest.raises(AppError) as exc_info:
            MenuService(db).update_menu(
                menu.id, {"name": "Changed", "items": [{"recipe_id": recipe.id}, {"recipe_id": recipe.id}]}
            )

        assert exc_info.value.kind is ErrorKind.VALIDATION
        db.expire_all()
        assert db.get(Menu, menu.id).name == "Lunch"

    def test_update_missing_menu(self, db: Session):
        with pytest.raises(AppError) as exc_info:
            MenuService(db).update_menu(999, {"name": "x"})

        assert exc_info.value.kind is ErrorKind.NOT_FOUND


class TestMenuReads:
    """Tests for menu and item queries."""

    def test_list_by_restaurant_hides_inactive(self, db: Session, menu: Menu, restaurant: Restaurant):
        service = MenuService(db)
        assert [m.id for m in service.list_by_restaurant(restaurant.id)] == [menu.id]

        service.update_menu(menu.id, {"is_active": False})

        assert service.list_by_restaurant(restaurant.id) == []

    def test_list_items_in_display_order(
        self, db: Session, menu: Menu, recipe: Recipe, second_recipe: Recipe
    ):
        service = MenuService(db)
        service.update_menu(menu.id, {"items": [{"recipe_id": second_recipe.id, "display_order": 0}]})

        rows = service.list_items(menu.id)

        assert [r.id for _, r in rows] == [second_recipe.id, recipe.id]

    def test_list_items_hides_deleted_recipes(self, db: Session, menu: Menu, recipe: Recipe):
        RecipeService(db).delete_recipe(recipe.id)

        assert MenuService(db).list_items(menu.id) == []

    def test_list_items_of_missing_menu(self, db: Session):
        with pytest.raises(AppError) as exc_info:
            MenuService(db).list_items(999)

        assert exc_info.value.kind is ErrorKind.NOT_FOUND

    def test_restaurant_item_lookup(self, db: Session, menu: Menu, restaurant: Restaurant, recipe: Recipe):
        item_id = menu.items[0].id

        item, found_recipe = MenuService(db).get_restaurant_item(restaurant.id, item_id)

        assert item.id == item_id
        assert found_recipe.id == recipe.id

    def test_restaurant_item_of_other_restaurant(self, db: Session, menu: Menu):
        other = Restaurant(name="Other", slug="other")
        db.add(other)
        db.commit()

        with pytest.raises(AppError) as exc_info:
            MenuService(db).get_restaurant_item(other.id, menu.items[0].id)

        assert exc_info.value.kind is ErrorKind.NOT_FOUND
